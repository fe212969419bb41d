"""Filter and sorter value objects for entity-set reads.

``build_filters`` is the primitive shared by search fields and suggestion
popups: one ``CONTAINS`` filter per binding field, OR-combined.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable, Optional, Tuple


class FilterOperator(str, Enum):
    EQ = "EQ"
    NE = "NE"
    GT = "GT"
    GE = "GE"
    LT = "LT"
    LE = "LE"
    BT = "BT"
    CONTAINS = "Contains"
    NOT_CONTAINS = "NotContains"
    STARTS_WITH = "StartsWith"
    ENDS_WITH = "EndsWith"

    @classmethod
    def parse(cls, value: Any) -> "FilterOperator":
        if isinstance(value, FilterOperator):
            return value
        text = str(value or "").strip()
        for member in cls:
            if text.lower() in (member.value.lower(), member.name.lower()):
                return member
        raise ValueError(f"Unsupported filter operator: {value!r}")


@dataclass(frozen=True)
class Filter:
    """Leaf condition (``path``/``operator``/``value1``) or a composite.

    A composite carries child ``filters`` joined with AND when ``and_`` is
    true, otherwise with OR.
    """

    path: Optional[str] = None
    operator: Optional[FilterOperator] = None
    value1: Any = None
    value2: Any = None
    filters: Tuple["Filter", ...] = field(default_factory=tuple)
    and_: bool = False

    def __post_init__(self) -> None:
        if self.filters:
            object.__setattr__(self, "filters", tuple(self.filters))
            return
        if not self.path:
            raise ValueError("Filter requires a path or child filters")
        object.__setattr__(self, "operator", FilterOperator.parse(self.operator))

    @property
    def is_composite(self) -> bool:
        return bool(self.filters)

    @classmethod
    def from_mapping(cls, payload: dict) -> "Filter":
        """Build a leaf from ``{"field", "op", "value"}`` style mappings."""
        path = payload.get("path") or payload.get("field")
        operator = payload.get("operator") or payload.get("op") or FilterOperator.EQ
        value1 = payload.get("value1", payload.get("value"))
        return cls(path=path, operator=operator, value1=value1, value2=payload.get("value2"))


@dataclass(frozen=True)
class Sorter:
    path: str
    descending: bool = False


def coerce_filter(item: Any) -> Filter:
    if isinstance(item, Filter):
        return item
    if isinstance(item, dict):
        return Filter.from_mapping(item)
    raise TypeError(f"Cannot use {type(item).__name__} as a filter")


def coerce_sorter(item: Any) -> Sorter:
    if isinstance(item, Sorter):
        return item
    if isinstance(item, str):
        return Sorter(path=item)
    if isinstance(item, dict):
        return Sorter(path=item["path"], descending=bool(item.get("descending", False)))
    raise TypeError(f"Cannot use {type(item).__name__} as a sorter")


def build_filters(query: Any, binding_fields: Iterable[str]) -> Filter:
    """OR together one ``CONTAINS`` filter per binding field.

    Raises:
        TypeError: ``binding_fields`` is not a list or tuple.
        ValueError: ``binding_fields`` is empty.
    """
    if not isinstance(binding_fields, (list, tuple)):
        raise TypeError(f"{binding_fields!r} is not a list")
    if not binding_fields:
        raise ValueError("build_filters requires at least one binding field")
    leaves = [
        Filter(path=binding, operator=FilterOperator.CONTAINS, value1=query)
        for binding in binding_fields
    ]
    return Filter(filters=tuple(leaves), and_=False)


def binding_path_from_template(binding: str) -> Optional[str]:
    """Strip model prefix and braces: ``"{tableModel>Kstar}"`` -> ``"Kstar"``."""
    text = (binding or "").strip()
    if not text:
        return None
    if ">" in text:
        text = text[text.rindex(">") + 1:]
    return text.replace("{", "").replace("}", "")


__all__ = [
    "Filter",
    "FilterOperator",
    "Sorter",
    "binding_path_from_template",
    "build_filters",
    "coerce_filter",
    "coerce_sorter",
]
