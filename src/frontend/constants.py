"""Shared constants for the Textual UI."""

from __future__ import annotations

ZEP_PURPLE = "#6758FF"
