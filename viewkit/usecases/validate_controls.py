from __future__ import annotations

import logging
from typing import Any, Iterable, List, Optional, Sequence

from viewkit.domain.ports import TableRow, ViewControlLocator

VALUE_STATE_NONE = "None"
VALUE_STATE_ERROR = "Error"


def is_empty(value: Any) -> bool:
    """``None``, blank strings and empty containers count as empty."""
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (dict, list, tuple, set)):
        return len(value) == 0
    return False


def _control_value(control: Any) -> Any:
    # Select-like controls are empty when nothing is chosen or the chosen
    # item has neither key nor text.
    get_selected = getattr(control, "get_selected_item", None)
    if callable(get_selected):
        item = get_selected()
        if item is None:
            return None
        key = item.get_key() if hasattr(item, "get_key") else None
        text = item.get_text() if hasattr(item, "get_text") else None
        return None if is_empty(key) and is_empty(text) else (key, text)
    return control.get_value()


class ControlsValidation:
    """Mark empty input controls and gate a submit control on the result."""

    def __init__(self, locator: ViewControlLocator) -> None:
        self._log = logging.getLogger(__name__)
        self._locator = locator
        self.user_controls: List[Any] = []
        self.invalid_fields: List[Any] = []
        self.submit_button: Optional[Any] = None

    def add_controls(self, control_ids: Iterable[str]) -> None:
        if not isinstance(control_ids, (list, tuple)):
            self._log.warning("add_controls expects a list of ids, got %r", control_ids)
            return
        for control_id in control_ids:
            control = self._locator.by_id(control_id)
            if control is not None:
                self.user_controls.append(control)

    def add_submit_button(self, button_id: str) -> None:
        button = self._locator.by_id(button_id)
        if button is not None:
            self.submit_button = button

    def validate_fields(self) -> bool:
        self.invalid_fields = []
        for control in self.user_controls:
            if is_empty(_control_value(control)):
                control.set_value_state(VALUE_STATE_ERROR)
                self.invalid_fields.append(control)
            else:
                control.set_value_state(VALUE_STATE_NONE)
        return not self.invalid_fields

    def update_submit_enablement(self) -> None:
        if self.submit_button is None:
            return
        self.submit_button.set_enabled(not self.invalid_fields)


class TableValidation(ControlsValidation):
    """``ControlsValidation`` over the mandatory cells of table lines.

    ``mandatory_columns`` lists the cell indexes that must be filled; they
    follow the table's column order, so rearranging columns means updating
    them.
    """

    def __init__(self, locator: ViewControlLocator, mandatory_columns: Sequence[int]) -> None:
        super().__init__(locator)
        self.mandatory_columns = tuple(mandatory_columns)
        self.table_lines: List[TableRow] = []

    def add_table_lines(self, items: Iterable[TableRow]) -> None:
        new_lines = list(items)
        self.table_lines.extend(new_lines)
        for line in new_lines:
            cells = line.get_cells()
            for column in self.mandatory_columns:
                if column < len(cells):
                    self.user_controls.append(cells[column])
                else:
                    self._log.warning("Table line has no cell at column %d", column)

    @staticmethod
    def is_table_not_empty(items: Sequence[Any]) -> bool:
        return len(items) > 0


class ClearControls:
    """Reset inputs, selects and upload lists found by id."""

    def __init__(self, locator: ViewControlLocator, control_ids: Sequence[str]) -> None:
        self._log = logging.getLogger(__name__)
        self._locator = locator
        self.control_ids = control_ids

    def clean_all_controls(self) -> int:
        """Clear every known control; returns how many were found."""
        if not isinstance(self.control_ids, (list, tuple)):
            self._log.warning("clean_all_controls expects a list of ids, got %r", self.control_ids)
            return 0
        cleaned = 0
        for control_id in self.control_ids:
            control = self._locator.by_id(control_id)
            if control is None:
                self._log.warning("Control %s does not exist; not cleared", control_id)
                continue
            _clear(control)
            cleaned += 1
        return cleaned


def _clear(control: Any) -> None:
    # Selects first: they may also expose get_value/set_value.
    if hasattr(control, "set_selected_key"):
        control.set_selected_key("")
    elif hasattr(control, "remove_all_items"):
        if control.get_items():
            control.remove_all_items()
    elif hasattr(control, "set_value"):
        control.set_value("")
        if hasattr(control, "set_description"):
            control.set_description("")


__all__ = [
    "ClearControls",
    "ControlsValidation",
    "TableValidation",
    "VALUE_STATE_ERROR",
    "VALUE_STATE_NONE",
    "is_empty",
]
