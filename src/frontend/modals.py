"""Modal dialogs for the Textual settings panel."""

from __future__ import annotations

from textual.app import ComposeResult
from textual.containers import Container, Horizontal
from textual.screen import ModalScreen
from textual.widgets import Button, Static


class _ChoiceScreen(ModalScreen[str]):
    """Title, explanation and a row of buttons; dismisses with the chosen key."""

    TITLE_TEXT = ""
    BODY_TEXT = ""
    # (choice, label, variant); the last entry is also the fallback.
    CHOICES: tuple[tuple[str, str, str], ...] = ()

    def compose(self) -> ComposeResult:
        buttons = [
            Button(label, id=f"choice-{choice}", variant=variant)
            for choice, label, variant in self.CHOICES
        ]
        yield Container(
            Static(self.TITLE_TEXT, classes="modal-title"),
            Static(self.BODY_TEXT, classes="modal-body"),
            Horizontal(*buttons, classes="modal-actions"),
            classes="modal-dialog modal-dialog--confirm",
        )

    def on_button_pressed(self, event: Button.Pressed) -> None:
        choice = (event.button.id or "").removeprefix("choice-")
        known = {key for key, _label, _variant in self.CHOICES}
        self.dismiss(choice if choice in known else self.CHOICES[-1][0])


class UnsavedChangesScreen(_ChoiceScreen):
    """Asked on quit while the form differs from the store."""

    TITLE_TEXT = "Notification settings not saved"
    BODY_TEXT = "The running watcher only follows saved values. Save before closing?"
    CHOICES = (
        ("save", "Save and close", "success"),
        ("discard", "Close without saving", "error"),
        ("cancel", "Keep editing", "default"),
    )


class ReloadConfirmScreen(_ChoiceScreen):
    """Asked on reload while the form has edits."""

    TITLE_TEXT = "Reload from the store?"
    BODY_TEXT = "Your edits are replaced by the values the watcher is using, including the learned nickname."
    CHOICES = (
        ("save", "Save first", "primary"),
        ("reload", "Reload", "warning"),
        ("cancel", "Cancel", "default"),
    )
