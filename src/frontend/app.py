"""Main Textual app for the zepwatch settings panel."""

from __future__ import annotations

from typing import Any

from rich.text import Text
from textual.app import App, ComposeResult
from textual.containers import Container, Horizontal, Vertical
from textual.widgets import Button, Footer, Input, Static, Switch

from adapters.json_store import JsonKeyValueStore
from core.config import MY_NAME_KEY, SETTINGS_DEFAULTS, WatcherSettings

from .constants import ZEP_PURPLE
from .modals import ReloadConfirmScreen, UnsavedChangesScreen
from .state import SettingsFormState
from .validators import parse_cooldown


class SettingsPanelApp(App):
    """Edits the runtime settings the watcher follows while running."""

    BINDINGS = [
        ("ctrl+s", "save_settings", "Save"),
        ("ctrl+r", "reload_settings", "Reload"),
        ("q", "request_quit", "Quit"),
        ("ctrl+c", "request_quit", "Quit"),
    ]

    CSS = """
    Screen {
        background: #14121f;
        color: #ecebf5;
    }

    #header {
        height: 8;
        padding: 1 4;
        border-bottom: solid #2e2a46;
    }

    #header-row {
        height: 6;
    }

    #header-left, #header-right {
        width: 1fr;
    }

    #header-right {
        content-align: right top;
        text-align: right;
    }

    #title {
        text-style: bold;
    }

    .subtle {
        color: #c9c6dd;
    }

    #settings-form {
        padding: 1 4;
    }

    .form-label {
        margin-top: 1;
        color: #c9c6dd;
    }

    .settings-error, .status-error {
        color: #ff6b6b;
    }

    .status-modified {
        color: #ffd166;
    }

    .status-loaded {
        color: #7bd389;
    }

    .modal-dialog {
        width: 50;
        height: auto;
        padding: 1 2;
        border: round #2e2a46;
        background: #1d1a2e;
    }

    .modal-actions {
        height: auto;
        margin-top: 1;
    }
    """

    def __init__(self, store_path: str, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self._store = JsonKeyValueStore(store_path)
        self.form_state = SettingsFormState()
        self._loading_form = False

    def compose(self) -> ComposeResult:
        with Container(id="header"):
            with Horizontal(id="header-row"):
                with Vertical(id="header-left"):
                    yield Static(self._title_text(), id="title")
                    yield Static(f"store: {self._store.path.name}", classes="subtle")
                with Vertical(id="header-right"):
                    yield Static("", id="my-name", classes="subtle")
                    yield Static("", id="header-status")
                    yield Horizontal(
                        Button("Save", id="save-btn"),
                        Button("Reload", id="reload-btn"),
                        id="header-actions",
                    )

        with Vertical(id="settings-form"):
            yield Static("only notify on the Private tab", classes="form-label")
            yield Switch(id="only-private")
            yield Static("cooldown between notifications (ms, 0 disables)", classes="form-label")
            yield Input(placeholder="1500", id="cooldown-ms")
            yield Static("", id="cooldown-error", classes="settings-error")
            yield Static("debug logging", classes="form-label")
            yield Switch(id="debug")
        yield Footer()

    def on_mount(self) -> None:
        self._load_settings()

    def on_switch_changed(self, event: Switch.Changed) -> None:
        if not self._loading_form:
            self.mark_dirty()

    def on_input_changed(self, event: Input.Changed) -> None:
        if self._loading_form:
            return
        info = parse_cooldown(event.value)
        self.query_one("#cooldown-error", Static).update(info.error or "")
        self.mark_dirty()

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "save-btn":
            self.action_save_settings()
        elif event.button.id == "reload-btn":
            self.action_reload_settings()

    def action_save_settings(self) -> None:
        self._save_settings()

    def action_reload_settings(self) -> None:
        if self.form_state.dirty:
            self.push_screen(ReloadConfirmScreen(), self._handle_reload_choice)
        else:
            self._load_settings()

    def action_request_quit(self) -> None:
        if self.form_state.dirty:
            self.push_screen(UnsavedChangesScreen(), self._handle_exit_choice)
        else:
            self.exit()

    def _handle_exit_choice(self, choice: str | None) -> None:
        if choice == "save":
            if self._save_settings():
                self.exit()
        elif choice == "discard":
            self.exit()

    def _handle_reload_choice(self, choice: str | None) -> None:
        if choice == "save":
            if self._save_settings():
                self._load_settings()
        elif choice == "reload":
            self._load_settings()

    def _load_settings(self) -> None:
        try:
            data = self._store.get({**SETTINGS_DEFAULTS, MY_NAME_KEY: None})
        except OSError as exc:
            self.form_state.error = f"store error: {exc.strerror or exc}"
            self._refresh_header()
            return

        snapshot = WatcherSettings.from_mapping(data)
        self.form_state.settings = snapshot
        self.form_state.my_name = data.get(MY_NAME_KEY)
        self.form_state.dirty = False
        self.form_state.error = None

        self._loading_form = True
        self.query_one("#only-private", Switch).value = snapshot.only_when_private_on
        self.query_one("#cooldown-ms", Input).value = str(snapshot.cooldown_ms)
        self.query_one("#debug", Switch).value = snapshot.debug
        self.query_one("#cooldown-error", Static).update("")
        self._loading_form = False
        self._refresh_header()

    def _save_settings(self) -> bool:
        info = parse_cooldown(self.query_one("#cooldown-ms", Input).value)
        if info.error:
            self.query_one("#cooldown-error", Static).update(info.error)
            self.form_state.error = "invalid cooldown"
            self._refresh_header()
            return False

        snapshot = WatcherSettings(
            only_when_private_on=self.query_one("#only-private", Switch).value,
            cooldown_ms=info.value or 0,
            debug=self.query_one("#debug", Switch).value,
        )
        try:
            self._store.set(snapshot.to_mapping())
        except OSError as exc:
            self.form_state.error = f"save failed: {exc.strerror or exc}"
            self._refresh_header()
            return False

        self.form_state.settings = snapshot
        self.form_state.dirty = False
        self.form_state.error = None
        self._refresh_header()
        return True

    def mark_dirty(self) -> None:
        self.form_state.dirty = True
        self._refresh_header()

    def _refresh_header(self) -> None:
        status = self.query_one("#header-status", Static)
        save_btn = self.query_one("#save-btn", Button)

        status.remove_class("status-loaded", "status-modified", "status-error")
        if self.form_state.error:
            status.update(f"settings: {self.form_state.error}")
            status.add_class("status-error")
        elif self.form_state.dirty:
            status.update("settings: modified *")
            status.add_class("status-modified")
        else:
            status.update("settings: loaded")
            status.add_class("status-loaded")

        name = self.form_state.my_name or "not learned yet"
        self.query_one("#my-name", Static).update(f"my name: {name}")
        save_btn.disabled = not self.form_state.dirty

    @staticmethod
    def _title_text() -> Text:
        return Text.assemble(
            ("ZEP", ZEP_PURPLE),
            ("WATCH > Settings", "bold"),
        )
