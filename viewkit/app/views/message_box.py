"""Notification sink backed by ``tkinter.messagebox``."""

from __future__ import annotations

import logging
from typing import Any, Optional

from viewkit.domain.ports import NotificationSink


class MessageBoxSink(NotificationSink):
    """Show error/success/warning boxes; detail text goes below the message."""

    def __init__(self, parent: Any = None, *, messagebox_module: Any = None) -> None:
        if messagebox_module is None:
            from tkinter import messagebox as messagebox_module
        self._log = logging.getLogger(__name__)
        self.parent = parent
        self._mb = messagebox_module

    @staticmethod
    def compose(message: str, detail: Optional[str] = None) -> str:
        detail_text = (detail or "").strip()
        if detail_text:
            return f"{message}\n\n{detail_text}"
        return message

    def show_error(self, message: str, detail: Optional[str] = None) -> None:
        self._log.debug("error box: %s", message)
        self._mb.showerror("Error", self.compose(message, detail), parent=self.parent)

    def show_success(self, message: str, detail: Optional[str] = None) -> None:
        self._mb.showinfo("Success", self.compose(message, detail), parent=self.parent)

    def show_warning(self, message: str, detail: Optional[str] = None) -> None:
        self._mb.showwarning("Warning", self.compose(message, detail), parent=self.parent)


__all__ = ["MessageBoxSink"]
