from __future__ import annotations

from typing import Any, Dict, List, Optional

import pytest

from viewkit.usecases.validate_controls import (
    ClearControls,
    ControlsValidation,
    TableValidation,
    is_empty,
)


class _Input:
    def __init__(self, value: Any) -> None:
        self.value = value
        self.value_state: Optional[str] = None

    def get_value(self) -> Any:
        return self.value

    def set_value_state(self, state: str) -> None:
        self.value_state = state


class _Item:
    def __init__(self, key: str, text: str) -> None:
        self._key = key
        self._text = text

    def get_key(self) -> str:
        return self._key

    def get_text(self) -> str:
        return self._text


class _Select:
    def __init__(self, item: Optional[_Item]) -> None:
        self.item = item
        self.value_state: Optional[str] = None

    def get_selected_item(self) -> Optional[_Item]:
        return self.item

    def set_value_state(self, state: str) -> None:
        self.value_state = state


class _Button:
    def __init__(self) -> None:
        self.enabled: Optional[bool] = None

    def set_enabled(self, enabled: bool) -> None:
        self.enabled = enabled


class _Locator:
    def __init__(self, controls: Dict[str, Any]) -> None:
        self.controls = controls

    def by_id(self, control_id: str) -> Any:
        return self.controls.get(control_id)


@pytest.mark.parametrize(
    "value, expected",
    [(None, True), ("  ", True), ({}, True), ([], True), ("x", False), (0, False), ({"a": 1}, False)],
)
def test_is_empty(value, expected) -> None:
    assert is_empty(value) is expected


def test_validate_marks_empty_controls_and_gates_submit() -> None:
    controls = {
        "name": _Input("Acme"),
        "city": _Input(" "),
        "country": _Select(None),
        "currency": _Select(_Item("EUR", "Euro")),
        "blank": _Select(_Item("", "")),
        "submit": _Button(),
    }
    validation = ControlsValidation(_Locator(controls))
    validation.add_controls(["name", "city", "country", "currency", "blank", "unknown"])
    validation.add_submit_button("submit")

    assert validation.validate_fields() is False
    validation.update_submit_enablement()

    assert len(validation.user_controls) == 5
    assert controls["name"].value_state == "None"
    assert controls["city"].value_state == "Error"
    assert controls["country"].value_state == "Error"
    assert controls["currency"].value_state == "None"
    assert controls["blank"].value_state == "Error"
    assert controls["submit"].enabled is False


def test_revalidation_clears_previous_failures() -> None:
    field = _Input("")
    button = _Button()
    validation = ControlsValidation(_Locator({"f": field, "b": button}))
    validation.add_controls(["f"])
    validation.add_submit_button("b")
    validation.validate_fields()

    field.value = "filled"

    assert validation.validate_fields() is True
    validation.update_submit_enablement()
    assert button.enabled is True
    assert validation.invalid_fields == []


def test_add_controls_ignores_non_lists() -> None:
    validation = ControlsValidation(_Locator({"a": _Input("x")}))

    validation.add_controls("a")

    assert validation.user_controls == []


class _Row:
    def __init__(self, *cells: Any) -> None:
        self.cells = list(cells)

    def get_cells(self) -> List[Any]:
        return self.cells


def test_table_validation_checks_mandatory_cells_of_every_line() -> None:
    first = _Row(_Input("A-1"), _Input(""), _Input("10"))
    second = _Row(_Input("A-2"), _Input("kg"), _Input(" "))
    validation = TableValidation(_Locator({}), mandatory_columns=[0, 2])

    validation.add_table_lines([first, second])

    assert validation.table_lines == [first, second]
    assert validation.user_controls == [first.cells[0], first.cells[2], second.cells[0], second.cells[2]]
    assert validation.validate_fields() is False
    assert validation.invalid_fields == [second.cells[2]]
    assert first.cells[1].value_state is None


def test_table_validation_skips_missing_columns() -> None:
    short = _Row(_Input("only"))
    validation = TableValidation(_Locator({}), mandatory_columns=[0, 3])

    validation.add_table_lines([short])

    assert validation.user_controls == [short.cells[0]]


def test_is_table_not_empty() -> None:
    assert TableValidation.is_table_not_empty([_Row()]) is True
    assert TableValidation.is_table_not_empty([]) is False


class _TextInput:
    def __init__(self, value: str, description: str = "") -> None:
        self.value = value
        self.description = description

    def set_value(self, value: str) -> None:
        self.value = value

    def set_description(self, description: str) -> None:
        self.description = description


class _KeySelect:
    def __init__(self, key: str) -> None:
        self.key = key

    def set_selected_key(self, key: str) -> None:
        self.key = key


class _Uploads:
    def __init__(self, items: List[str]) -> None:
        self.items = items
        self.removed = 0

    def get_items(self) -> List[str]:
        return self.items

    def remove_all_items(self) -> None:
        self.removed += 1
        self.items = []


def test_clean_all_controls_resets_each_control_kind() -> None:
    controls = {
        "name": _TextInput("Acme", "Customer"),
        "currency": _KeySelect("EUR"),
        "files": _Uploads(["a.pdf"]),
        "empty_files": _Uploads([]),
    }

    cleaned = ClearControls(_Locator(controls), ["name", "currency", "files", "empty_files", "missing"]).clean_all_controls()

    assert cleaned == 4
    assert (controls["name"].value, controls["name"].description) == ("", "")
    assert controls["currency"].key == ""
    assert controls["files"].items == []
    assert controls["empty_files"].removed == 0


def test_clean_all_controls_ignores_non_lists() -> None:
    field = _TextInput("keep")

    assert ClearControls(_Locator({"f": field}), "f").clean_all_controls() == 0
    assert field.value == "keep"
