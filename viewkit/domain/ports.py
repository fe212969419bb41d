from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional, Protocol, Sequence

from .filters import Filter, Sorter

FragmentName = str
EntitySetPath = str


# ---- Ports (Hexagonal boundaries) ----
class NotificationSink(Protocol):
    """Presents error/success/warning messages to the user."""

    def show_error(self, message: str, detail: Optional[str] = None) -> None: ...
    def show_success(self, message: str, detail: Optional[str] = None) -> None: ...
    def show_warning(self, message: str, detail: Optional[str] = None) -> None: ...


class ViewControlLocator(Protocol):
    """Resolves a logical control id to a live control handle (or ``None``)."""

    def by_id(self, control_id: str) -> Any: ...


class ViewPort(ViewControlLocator, Protocol):
    """The view a controller owns; dependents share its lifetime."""

    def add_dependent(self, control: Any) -> None: ...
    def get_controller(self) -> Any: ...


class FragmentInstance(Protocol):
    """Dialog-like control tree created from a fragment definition."""

    def open(self) -> None: ...
    def close(self) -> None: ...
    def destroy(self) -> None: ...


class FragmentLoader(Protocol):
    """Instantiates a fragment's control tree asynchronously."""

    async def load(
        self, fragment_id: str, name: FragmentName, controller: Any
    ) -> FragmentInstance: ...


class DataServiceClient(Protocol):
    """Entity-oriented remote data service (OData style).

    ``url_parameters`` carries ``$select``/``$expand``/``$top``/``$skip``.
    Failures raise; results are whatever the service returns.
    """

    async def read(
        self,
        entity_set: EntitySetPath,
        *,
        filters: Sequence[Filter] = (),
        sorters: Sequence[Sorter] = (),
        url_parameters: Optional[Mapping[str, Any]] = None,
    ) -> Any: ...

    async def create(
        self,
        entity_set: EntitySetPath,
        data: Any,
        *,
        url_parameters: Optional[Mapping[str, Any]] = None,
        refresh_after_change: bool = True,
    ) -> Any: ...

    async def update(
        self,
        entity_set: EntitySetPath,
        data: Any,
        *,
        url_parameters: Optional[Mapping[str, Any]] = None,
        refresh_after_change: bool = True,
    ) -> Any: ...

    async def remove(
        self,
        entity_set: EntitySetPath,
        *,
        url_parameters: Optional[Mapping[str, Any]] = None,
        refresh_after_change: bool = True,
    ) -> Any: ...


class BusyIndicator(Protocol):
    """Visual cue shown while a request is in flight."""

    def open(self) -> None: ...
    def close(self) -> None: ...


class ValidatableControl(Protocol):
    """Input-like control checked by ``ControlsValidation``."""

    def get_value(self) -> Any: ...
    def set_value_state(self, state: str) -> None: ...


class TableRow(Protocol):
    """One table line; ``get_cells`` returns its controls in column order."""

    def get_cells(self) -> Sequence[Any]: ...


class FilterableList(Protocol):
    """List/table whose item binding can be narrowed with filters."""

    def apply_filters(self, filters: Sequence[Filter]) -> None: ...


Record = Dict[str, Any]
RecordList = List[Record]
