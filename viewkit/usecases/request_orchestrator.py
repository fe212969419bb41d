"""Single-entry CRUD orchestration against a ``DataServiceClient``.

``RequestOrchestrator.configure`` normalizes a ``RequestDescriptor``;
``execute`` issues exactly one read/create/update/delete call inside a busy
scope, then hands the result to the descriptor's success callback. Failures
never reach the caller: they are reported through the ``NotificationSink``.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Awaitable, Callable, Dict, Iterator, Optional

from viewkit.domain.descriptor import (
    NormalizedRequestParameters,
    OperationKind,
    RequestDescriptor,
)
from viewkit.domain.errors import RequestDescriptorError
from viewkit.domain.ports import BusyIndicator, NotificationSink

from .error_mapping import map_service_error

NOT_CONFIGURED = "Request descriptor must be configured before the request is executed"
PAYLOAD_REQUIRED = "Request payload must be supplied for {kind} requests"
ALREADY_IN_FLIGHT = "A request is already in progress; wait for it to finish"


@contextmanager
def busy_scope(indicator: Optional[BusyIndicator]) -> Iterator[None]:
    """Show ``indicator`` for the body of the ``with`` block, hiding it once."""
    if indicator is None:
        yield
        return
    indicator.open()
    try:
        yield
    finally:
        indicator.close()


class RequestOrchestrator:
    """Execute one CRUD operation per configured descriptor.

    Only one call may be in flight per instance. Reconfiguring between calls
    is allowed; each ``execute`` opens and closes the busy indicator once.
    """

    def __init__(
        self,
        notifier: NotificationSink,
        busy_indicator: Optional[BusyIndicator] = None,
    ) -> None:
        self._log = logging.getLogger(__name__)
        self._notifier = notifier
        self._busy = busy_indicator
        self._params: Optional[NormalizedRequestParameters] = None
        self._in_flight = False
        self._handlers: Dict[
            OperationKind, Callable[[NormalizedRequestParameters], Awaitable[Any]]
        ] = {
            OperationKind.READ: self._read,
            OperationKind.CREATE: self._create,
            OperationKind.UPDATE: self._update,
            OperationKind.DELETE: self._delete,
        }

    @property
    def parameters(self) -> Optional[NormalizedRequestParameters]:
        return self._params

    @property
    def busy_indicator(self) -> Optional[BusyIndicator]:
        return self._busy

    @property
    def in_flight(self) -> bool:
        return self._in_flight

    def configure(self, descriptor: RequestDescriptor) -> NormalizedRequestParameters:
        """Normalize ``descriptor`` for the next ``execute`` call.

        Raises:
            RuntimeError: A request from this instance is still in flight.
        """
        if self._in_flight:
            raise RuntimeError("Cannot reconfigure while a request is in flight")
        self._params = NormalizedRequestParameters.from_descriptor(descriptor)
        if self._params.success_callback is None:
            self._log.debug("No success callback for %s; results are only returned", self._params.entity_set)
        return self._params

    async def execute(self, kind: Any) -> Any:
        """Run the configured request as ``kind`` (read/create/update/delete).

        A call made while another one from this instance is still running
        is rejected like any other descriptor misuse: it is reported through
        the notifier and no service call is made.

        Returns:
            The service result, or ``None`` when the request was rejected or
            failed (the failure has already been shown to the user).
        """
        try:
            operation = OperationKind.parse(kind)
            params = self._require_parameters(operation)
            if self._in_flight:
                raise RequestDescriptorError(ALREADY_IN_FLIGHT)
        except RequestDescriptorError as err:
            self._log.warning("Rejected request %r: %s", kind, err.message)
            self._notifier.show_error(err.message)
            return None

        self._in_flight = True
        self._log.debug("Dispatching %s %s", operation.value, params.entity_set)
        try:
            with busy_scope(self._busy):
                result = await self._handlers[operation](params)
        except Exception as exc:
            self._report_failure(operation, params, exc)
            return None
        finally:
            self._in_flight = False

        if params.success_callback is not None:
            try:
                params.success_callback(params.controller, result)
            except Exception as exc:
                self._report_failure(operation, params, exc)
        return result

    def _require_parameters(self, operation: OperationKind) -> NormalizedRequestParameters:
        if self._params is None:
            raise RequestDescriptorError(NOT_CONFIGURED)
        if operation in (OperationKind.CREATE, OperationKind.UPDATE) and not self._params.has_data:
            raise RequestDescriptorError(PAYLOAD_REQUIRED.format(kind=operation.value))
        return self._params

    def _report_failure(
        self, operation: OperationKind, params: NormalizedRequestParameters, exc: BaseException
    ) -> None:
        err = map_service_error(exc)
        self._log.warning("%s %s failed: %s", operation.value, params.entity_set, err.message)
        self._notifier.show_error(err.message, err.detail)

    # ---------- one handler per operation kind ----------

    async def _read(self, params: NormalizedRequestParameters) -> Any:
        return await params.service.read(
            params.entity_set,
            filters=params.filters,
            sorters=params.sorters,
            url_parameters=dict(params.url_parameters),
        )

    async def _create(self, params: NormalizedRequestParameters) -> Any:
        return await params.service.create(
            params.entity_set,
            params.data,
            url_parameters=dict(params.url_parameters),
            refresh_after_change=True,
        )

    async def _update(self, params: NormalizedRequestParameters) -> Any:
        return await params.service.update(
            params.entity_set,
            params.data,
            url_parameters=dict(params.url_parameters),
            refresh_after_change=True,
        )

    async def _delete(self, params: NormalizedRequestParameters) -> Any:
        return await params.service.remove(
            params.entity_set,
            url_parameters=dict(params.url_parameters),
            refresh_after_change=True,
        )


__all__ = ["ALREADY_IN_FLIGHT", "RequestOrchestrator", "busy_scope"]
