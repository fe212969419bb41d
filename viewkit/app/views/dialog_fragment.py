"""Base class for Tk dialog fragments loaded through ``ImportFragmentLoader``."""

from __future__ import annotations

import tkinter as tk
from typing import Any, Dict, Optional


class DialogFragment(tk.Toplevel):
    """Hidden-until-opened ``Toplevel`` that registers its controls by id.

    Subclasses override ``build`` and call ``register`` for every control
    that callers look up with ``by_id``.
    """

    title_text = ""

    def __init__(self, *, fragment_id: str, controller: Any) -> None:
        super().__init__(getattr(controller, "root", None))
        self.fragment_id = fragment_id
        self.controller = controller
        self._controls: Dict[str, tk.Misc] = {}
        self.withdraw()
        self.title(self.title_text or fragment_id)
        self.protocol("WM_DELETE_WINDOW", self.close)
        self.build()

    def build(self) -> None:
        """Create child widgets."""

    def register(self, control_id: str, widget: tk.Misc) -> tk.Misc:
        self._controls[control_id] = widget
        return widget

    def by_id(self, control_id: str) -> Optional[tk.Misc]:
        return self._controls.get(control_id)

    def is_open(self) -> bool:
        return self.state() != "withdrawn"

    def open(self) -> None:
        self.deiconify()
        self.lift()
        self.focus_set()

    def close(self) -> None:
        self.withdraw()


__all__ = ["DialogFragment"]
