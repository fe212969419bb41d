from __future__ import annotations

import re
from copy import deepcopy
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from viewkit.domain.filters import Filter, FilterOperator, Sorter
from viewkit.domain.ports import DataServiceClient, EntitySetPath, Record

from .api_errors import ApiClientError

_ENTITY_PATH = re.compile(r"^/?(?P<set>[A-Za-z_][\w.]*)(?:\((?P<key>[^)]*)\))?$")


def _parse_path(entity_set: EntitySetPath) -> Tuple[str, Optional[str]]:
    match = _ENTITY_PATH.match(entity_set.strip())
    if not match:
        raise ApiClientError(f"Malformed entity path {entity_set!r}", status=400)
    key = match.group("key")
    if key is not None:
        key = key.strip().strip("'")
    return match.group("set"), key


def matches(record: Mapping[str, Any], item: Filter) -> bool:
    if item.is_composite:
        results = (matches(record, child) for child in item.filters)
        return all(results) if item.and_ else any(results)

    value = record.get(item.path)
    op = item.operator
    if op is FilterOperator.EQ:
        return value == item.value1
    if op is FilterOperator.NE:
        return value != item.value1
    if op is FilterOperator.BT:
        return value is not None and item.value1 <= value <= item.value2
    if op in (FilterOperator.GT, FilterOperator.GE, FilterOperator.LT, FilterOperator.LE):
        if value is None:
            return False
        return {
            FilterOperator.GT: value > item.value1,
            FilterOperator.GE: value >= item.value1,
            FilterOperator.LT: value < item.value1,
            FilterOperator.LE: value <= item.value1,
        }[op]

    text = "" if value is None else str(value).lower()
    needle = "" if item.value1 is None else str(item.value1).lower()
    if op is FilterOperator.CONTAINS:
        return needle in text
    if op is FilterOperator.NOT_CONTAINS:
        return needle not in text
    if op is FilterOperator.STARTS_WITH:
        return text.startswith(needle)
    return text.endswith(needle)


@dataclass
class ODataMock(DataServiceClient):
    """Offline substitute for ``ODataRestAdapter`` with deterministic responses.

    Records live in ``entity_sets`` keyed by set name then by the string form
    of ``key_field``. Every call is appended to ``calls`` as
    ``(operation, entity_set, kwargs)``.
    """

    entity_sets: Dict[str, List[Record]] = field(default_factory=dict)
    key_field: str = "ID"

    def __post_init__(self) -> None:
        self.calls: List[Tuple[str, EntitySetPath, Dict[str, Any]]] = []
        self._store: Dict[str, Dict[str, Record]] = {}
        self._next_key: Dict[str, int] = {}
        self._failures: List[Exception] = []
        for name, records in self.entity_sets.items():
            for record in records:
                self._insert(name, dict(record))

    def fail_next(self, exc: Exception) -> None:
        """Make the next call raise ``exc`` instead of touching the store."""
        self._failures.append(exc)

    def records(self, name: str) -> List[Record]:
        return [deepcopy(record) for record in self._store.get(name, {}).values()]

    # ---------- DataServiceClient ----------

    async def read(
        self,
        entity_set: EntitySetPath,
        *,
        filters: Sequence[Filter] = (),
        sorters: Sequence[Sorter] = (),
        url_parameters: Optional[Mapping[str, Any]] = None,
    ) -> Any:
        params = dict(url_parameters or {})
        self._record_call("read", entity_set, filters=list(filters), sorters=list(sorters), url_parameters=params)
        name, key = _parse_path(entity_set)
        if key is not None:
            return self._select(self._get(name, key), params.get("$select"))

        rows = [r for r in self._store.get(name, {}).values() if all(matches(r, f) for f in filters)]
        for sorter in reversed(list(sorters)):
            rows.sort(key=lambda r: (r.get(sorter.path) is None, r.get(sorter.path)), reverse=sorter.descending)
        skip = int(params.get("$skip") or 0)
        rows = rows[skip:]
        if params.get("$top") is not None:
            rows = rows[: int(params["$top"])]
        return [self._select(row, params.get("$select")) for row in rows]

    async def create(
        self,
        entity_set: EntitySetPath,
        data: Any,
        *,
        url_parameters: Optional[Mapping[str, Any]] = None,
        refresh_after_change: bool = True,
    ) -> Any:
        self._record_call(
            "create", entity_set, data=deepcopy(data),
            url_parameters=dict(url_parameters or {}), refresh_after_change=refresh_after_change,
        )
        name, _ = _parse_path(entity_set)
        return deepcopy(self._insert(name, dict(data or {})))

    async def update(
        self,
        entity_set: EntitySetPath,
        data: Any,
        *,
        url_parameters: Optional[Mapping[str, Any]] = None,
        refresh_after_change: bool = True,
    ) -> Any:
        self._record_call(
            "update", entity_set, data=deepcopy(data),
            url_parameters=dict(url_parameters or {}), refresh_after_change=refresh_after_change,
        )
        name, key = _parse_path(entity_set)
        if key is None:
            key = str((data or {}).get(self.key_field, ""))
        record = self._get(name, key)
        record.update({k: v for k, v in dict(data or {}).items() if k != self.key_field})
        return deepcopy(record)

    async def remove(
        self,
        entity_set: EntitySetPath,
        *,
        url_parameters: Optional[Mapping[str, Any]] = None,
        refresh_after_change: bool = True,
    ) -> Any:
        self._record_call(
            "remove", entity_set,
            url_parameters=dict(url_parameters or {}), refresh_after_change=refresh_after_change,
        )
        name, key = _parse_path(entity_set)
        if key is None:
            raise ApiClientError(f"DELETE {entity_set} requires an entity key", status=400)
        self._get(name, key)
        del self._store[name][key]
        return None

    # ---------- helpers ----------

    def _record_call(self, op: str, entity_set: EntitySetPath, **kwargs: Any) -> None:
        self.calls.append((op, entity_set, kwargs))
        if self._failures:
            raise self._failures.pop(0)

    def _insert(self, name: str, record: Record) -> Record:
        bucket = self._store.setdefault(name, {})
        key = record.get(self.key_field)
        if key is None:
            counter = self._next_key.get(name, len(bucket)) + 1
            self._next_key[name] = counter
            key = str(counter)
            record[self.key_field] = key
        key = str(key)
        if key in bucket:
            raise ApiClientError(f"{name}('{key}') already exists", status=409)
        bucket[key] = record
        return record

    def _get(self, name: str, key: str) -> Record:
        record = self._store.get(name, {}).get(key)
        if record is None:
            raise ApiClientError(
                f"{name}('{key}') not found",
                status=404,
                response_text=f"Resource {name}('{key}') not found",
            )
        return record

    @staticmethod
    def _select(record: Record, select: Optional[str]) -> Record:
        if not select:
            return deepcopy(record)
        wanted = [part.strip() for part in select.split(",") if part.strip()]
        return {name: deepcopy(record.get(name)) for name in wanted}


__all__ = ["ODataMock", "matches"]
