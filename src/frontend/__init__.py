"""Textual settings panel for zepwatch."""
