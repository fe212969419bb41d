"""Delayed modal busy indicator.

The window appears only if a request is still running after
``delay_ms``; short requests never flash a dialog. Scheduling goes through
``after``/``after_cancel`` compatible callables so the timing logic works
without a display.
"""

from __future__ import annotations

from typing import Any, Callable, Optional

from viewkit.domain.ports import BusyIndicator

ScheduleFn = Callable[[int, Callable[[], None]], str]
CancelFn = Callable[[str], None]
WindowFactory = Callable[[], Any]


class BusyDialog(BusyIndicator):
    def __init__(
        self,
        schedule: ScheduleFn,
        cancel: CancelFn,
        window_factory: WindowFactory,
        *,
        delay_ms: int = 2000,
    ) -> None:
        self._schedule = schedule
        self._cancel = cancel
        self._window_factory = window_factory
        self.delay_ms = max(0, int(delay_ms))
        self._token: Optional[str] = None
        self._window: Any = None

    @property
    def is_pending(self) -> bool:
        return self._token is not None

    @property
    def is_visible(self) -> bool:
        return self._window is not None

    def open(self) -> None:
        if self._token is not None or self._window is not None:
            return
        if self.delay_ms == 0:
            self._show()
        else:
            self._token = self._schedule(self.delay_ms, self._show)

    def close(self) -> None:
        token, self._token = self._token, None
        if token is not None:
            self._cancel(token)
        window, self._window = self._window, None
        if window is not None:
            window.destroy()

    def _show(self) -> None:
        self._token = None
        self._window = self._window_factory()

    @classmethod
    def for_parent(cls, parent: Any, *, delay_ms: int = 2000, text: str = "Please wait...") -> "BusyDialog":
        """Build a Tk-backed indicator centered over ``parent``."""
        import tkinter as tk
        from tkinter import ttk

        def make_window() -> tk.Toplevel:
            top = tk.Toplevel(parent)
            top.title("")
            top.transient(parent)
            top.resizable(False, False)
            top.protocol("WM_DELETE_WINDOW", lambda: None)
            ttk.Label(top, text=text).pack(padx=16, pady=(12, 6))
            bar = ttk.Progressbar(top, mode="indeterminate", length=180)
            bar.pack(padx=16, pady=(0, 12))
            bar.start(15)
            top.grab_set()
            return top

        return cls(parent.after, parent.after_cancel, make_window, delay_ms=delay_ms)


__all__ = ["BusyDialog"]
