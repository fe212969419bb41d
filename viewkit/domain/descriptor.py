"""Request descriptor and its normalized form for CRUD orchestration.

Callers build one ``RequestDescriptor`` per logical operation.  The
orchestrator turns it into ``NormalizedRequestParameters`` exactly once:
the entity set gains its leading ``/``, filters and sorters become tuples,
and the optional OData URL parameters are collected only when supplied.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Optional, Tuple

from .errors import RequestDescriptorError
from .filters import Filter, Sorter, coerce_filter, coerce_sorter
from .ports import DataServiceClient, EntitySetPath, ViewPort

SuccessCallback = Callable[[Any, Any], Any]

OPERATION_KIND_REQUIRED = (
    "Request type must be supplied as one of read, create, update, delete"
)


class _Unset:
    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False


UNSET: Any = _Unset()


class OperationKind(str, Enum):
    READ = "read"
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"

    @classmethod
    def parse(cls, value: Any) -> "OperationKind":
        if isinstance(value, OperationKind):
            return value
        if isinstance(value, str):
            for member in cls:
                if member.value == value:
                    return member
        raise RequestDescriptorError(OPERATION_KIND_REQUIRED)


@dataclass
class RequestDescriptor:
    """Caller-provided description of one CRUD operation.

    Attributes:
        service: Data-service client the call goes through.
        entity_set: Entity set name, with or without the leading ``/``.
        view: View whose controller receives the success callback.
        success_callback: ``callback(controller, result)``; optional.
        data: Payload for create/update. ``UNSET`` means no payload.
        filters: One filter, a list of filters, or ``{"field", "op", "value"}``
            mappings.
        sorters: One sorter or a list; strings are ascending paths.
        select, expand, top, skip: OData URL parameters; ``None`` means absent,
            so ``top=0`` or ``select=""`` are still sent.
    """

    service: DataServiceClient
    entity_set: str
    view: ViewPort
    success_callback: Optional[SuccessCallback] = None
    data: Any = UNSET
    filters: Any = None
    sorters: Any = None
    select: Optional[str] = None
    expand: Optional[str] = None
    top: Optional[int] = None
    skip: Optional[int] = None

    def __post_init__(self) -> None:
        if self.service is None:
            raise ValueError("RequestDescriptor requires a data service")
        if self.view is None:
            raise ValueError("RequestDescriptor requires the current view")
        if not isinstance(self.entity_set, str) or not self.entity_set.strip("/ "):
            raise ValueError("RequestDescriptor requires an entity set name")


def entity_set_path(name: str) -> EntitySetPath:
    text = name.strip()
    return text if text.startswith("/") else f"/{text}"


def _as_tuple(value: Any) -> Tuple[Any, ...]:
    if value is None:
        return ()
    if isinstance(value, (list, tuple)):
        return tuple(value)
    return (value,)


@dataclass(frozen=True)
class NormalizedRequestParameters:
    service: DataServiceClient
    entity_set: EntitySetPath
    view: ViewPort
    controller: Any
    success_callback: Optional[SuccessCallback]
    data: Any = UNSET
    filters: Tuple[Filter, ...] = ()
    sorters: Tuple[Sorter, ...] = ()
    url_parameters: Dict[str, Any] = field(default_factory=dict)

    @property
    def has_data(self) -> bool:
        return self.data is not UNSET

    @classmethod
    def from_descriptor(cls, descriptor: RequestDescriptor) -> "NormalizedRequestParameters":
        url_parameters: Dict[str, Any] = {}
        if descriptor.select is not None:
            url_parameters["$select"] = descriptor.select
        if descriptor.expand is not None:
            url_parameters["$expand"] = descriptor.expand
        if descriptor.top is not None:
            url_parameters["$top"] = descriptor.top
        if descriptor.skip is not None:
            url_parameters["$skip"] = descriptor.skip

        return cls(
            service=descriptor.service,
            entity_set=entity_set_path(descriptor.entity_set),
            view=descriptor.view,
            controller=descriptor.view.get_controller(),
            success_callback=descriptor.success_callback,
            data=descriptor.data,
            filters=tuple(coerce_filter(item) for item in _as_tuple(descriptor.filters)),
            sorters=tuple(coerce_sorter(item) for item in _as_tuple(descriptor.sorters)),
            url_parameters=url_parameters,
        )


__all__ = [
    "NormalizedRequestParameters",
    "OPERATION_KIND_REQUIRED",
    "OperationKind",
    "RequestDescriptor",
    "SuccessCallback",
    "UNSET",
    "entity_set_path",
]
