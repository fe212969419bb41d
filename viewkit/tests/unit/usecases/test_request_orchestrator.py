from __future__ import annotations

import asyncio
from typing import Any, List, Optional, Tuple

import pytest

from viewkit.adapters.api_errors import ApiClientError
from viewkit.adapters.odata_mock import ODataMock
from viewkit.domain.descriptor import RequestDescriptor
from viewkit.domain.filters import Filter, FilterOperator
from viewkit.usecases.request_orchestrator import (
    ALREADY_IN_FLIGHT,
    RequestOrchestrator,
    busy_scope,
)


class _ViewStub:
    def __init__(self) -> None:
        self.controller = object()

    def get_controller(self):
        return self.controller

    def by_id(self, control_id):
        return None

    def add_dependent(self, control) -> None:
        pass


class _Notifier:
    def __init__(self, log: Optional[List[str]] = None) -> None:
        self.errors: List[Tuple[str, Optional[str]]] = []
        self._log = log

    def show_error(self, message: str, detail: Optional[str] = None) -> None:
        if self._log is not None:
            self._log.append("error")
        self.errors.append((message, detail))

    def show_success(self, message, detail=None) -> None:
        pass

    def show_warning(self, message, detail=None) -> None:
        pass


class _Busy:
    def __init__(self, log: List[str]) -> None:
        self._log = log

    def open(self) -> None:
        self._log.append("busy:open")

    def close(self) -> None:
        self._log.append("busy:close")


class _ServiceStub:
    """Records every call; returns ``result`` or raises ``error``."""

    def __init__(self, log: List[str], result: Any = None, error: Optional[BaseException] = None) -> None:
        self._log = log
        self.result = result
        self.error = error
        self.calls: List[Tuple[str, tuple, dict]] = []

    async def _call(self, op: str, *args, **kwargs):
        self._log.append(f"call:{op}")
        self.calls.append((op, args, kwargs))
        await asyncio.sleep(0)
        if self.error is not None:
            raise self.error
        return self.result

    async def read(self, *args, **kwargs):
        return await self._call("read", *args, **kwargs)

    async def create(self, *args, **kwargs):
        return await self._call("create", *args, **kwargs)

    async def update(self, *args, **kwargs):
        return await self._call("update", *args, **kwargs)

    async def remove(self, *args, **kwargs):
        return await self._call("remove", *args, **kwargs)


class _Failure(Exception):
    def __init__(self, message: str, response_text: str) -> None:
        super().__init__(message)
        self.message = message
        self.responseText = response_text


def _setup(result: Any = None, error: Optional[BaseException] = None):
    log: List[str] = []
    service = _ServiceStub(log, result=result, error=error)
    notifier = _Notifier(log)
    orchestrator = RequestOrchestrator(notifier, _Busy(log))
    return orchestrator, service, notifier, log


def test_create_posts_payload_to_qualified_path_and_passes_record_through() -> None:
    record = {"ID": "42", "name": "X"}
    orchestrator, service, notifier, log = _setup(result=record)
    view = _ViewStub()
    received: List[Tuple[Any, Any]] = []

    orchestrator.configure(
        RequestDescriptor(
            service=service,
            entity_set="Orders",
            view=view,
            success_callback=lambda ctx, result: received.append((ctx, result)),
            data={"name": "X"},
        )
    )
    result = asyncio.run(orchestrator.execute("create"))

    op, args, kwargs = service.calls[0]
    assert op == "create"
    assert args == ("/Orders", {"name": "X"})
    assert kwargs["refresh_after_change"] is True
    assert received == [(view.controller, record)]
    assert received[0][1] is record
    assert result is record
    assert notifier.errors == []


def test_read_passes_filters_and_delivers_result_verbatim() -> None:
    rows = [{"ID": "1", "Status": "Active"}]
    orchestrator, service, _, _ = _setup(result=rows)
    received: List[Any] = []

    orchestrator.configure(
        RequestDescriptor(
            service=service,
            entity_set="Customers",
            view=_ViewStub(),
            success_callback=lambda ctx, result: received.append(result),
            filters=[{"field": "Status", "op": "eq", "value": "Active"}],
        )
    )
    asyncio.run(orchestrator.execute("read"))

    op, args, kwargs = service.calls[0]
    assert (op, args) == ("read", ("/Customers",))
    assert kwargs["filters"] == (Filter(path="Status", operator=FilterOperator.EQ, value1="Active"),)
    assert kwargs["sorters"] == ()
    assert kwargs["url_parameters"] == {}
    assert received == [rows]
    assert received[0] is rows


def test_delete_and_update_forward_url_parameters() -> None:
    orchestrator, service, _, _ = _setup(result=None)
    orchestrator.configure(
        RequestDescriptor(
            service=service, entity_set="Orders('1')", view=_ViewStub(),
            data={"name": "Y"}, expand="Items", top=0,
        )
    )

    asyncio.run(orchestrator.execute("update"))
    asyncio.run(orchestrator.execute("delete"))

    assert [c[0] for c in service.calls] == ["update", "remove"]
    assert service.calls[1][1] == ("/Orders('1')",)
    for _, _, kwargs in service.calls:
        assert kwargs["url_parameters"] == {"$expand": "Items", "$top": 0}
        assert kwargs["refresh_after_change"] is True


def test_unknown_kind_reports_once_and_never_calls_service() -> None:
    orchestrator, service, notifier, log = _setup()
    orchestrator.configure(RequestDescriptor(service=service, entity_set="Orders", view=_ViewStub()))

    result = asyncio.run(orchestrator.execute("bogus"))

    assert result is None
    assert service.calls == []
    assert len(notifier.errors) == 1
    assert "Request type must be supplied" in notifier.errors[0][0]
    assert "busy:open" not in log


def test_failing_read_reports_message_and_detail_without_callback() -> None:
    failure = _Failure("timeout", "<html>gateway timeout</html>")
    orchestrator, service, notifier, log = _setup(error=failure)
    called: List[Any] = []
    orchestrator.configure(
        RequestDescriptor(
            service=service, entity_set="Customers", view=_ViewStub(),
            success_callback=lambda ctx, result: called.append(result),
        )
    )

    result = asyncio.run(orchestrator.execute("read"))

    assert result is None
    assert called == []
    assert notifier.errors == [("timeout", "<html>gateway timeout</html>")]
    assert log == ["busy:open", "call:read", "busy:close", "error"]


@pytest.mark.parametrize("kind", ["read", "create", "update", "delete"])
@pytest.mark.parametrize("fails", [False, True])
def test_busy_shows_once_before_and_hides_once_after(kind: str, fails: bool) -> None:
    orchestrator, service, _, log = _setup(
        result={"ok": True}, error=RuntimeError("down") if fails else None
    )
    orchestrator.configure(
        RequestDescriptor(service=service, entity_set="Orders", view=_ViewStub(), data={"a": 1})
    )

    asyncio.run(orchestrator.execute(kind))

    assert log.count("busy:open") == 1
    assert log.count("busy:close") == 1
    assert log.index("busy:open") < log.index(f"call:{'remove' if kind == 'delete' else kind}")
    assert log.index("busy:close") > log.index(f"call:{'remove' if kind == 'delete' else kind}")


def test_missing_callback_is_tolerated() -> None:
    orchestrator, service, notifier, _ = _setup(result=[1, 2])
    orchestrator.configure(RequestDescriptor(service=service, entity_set="Orders", view=_ViewStub()))

    assert asyncio.run(orchestrator.execute("read")) == [1, 2]
    assert notifier.errors == []


def test_callback_errors_are_reported_not_raised() -> None:
    orchestrator, service, notifier, _ = _setup(result=[])

    def broken(ctx, result):
        raise ValueError("bad binding")

    orchestrator.configure(
        RequestDescriptor(service=service, entity_set="Orders", view=_ViewStub(), success_callback=broken)
    )

    assert asyncio.run(orchestrator.execute("read")) == []
    assert notifier.errors == [("bad binding", None)]


def test_create_without_payload_is_rejected_before_calling() -> None:
    orchestrator, service, notifier, _ = _setup()
    orchestrator.configure(RequestDescriptor(service=service, entity_set="Orders", view=_ViewStub()))

    assert asyncio.run(orchestrator.execute("create")) is None
    assert service.calls == []
    assert "payload" in notifier.errors[0][0]


def test_execute_before_configure_reports_error() -> None:
    notifier = _Notifier()
    orchestrator = RequestOrchestrator(notifier)

    assert asyncio.run(orchestrator.execute("read")) is None
    assert len(notifier.errors) == 1


def test_second_execute_while_in_flight_is_reported_and_skipped() -> None:
    orchestrator, service, notifier, log = _setup(result=[])
    orchestrator.configure(RequestDescriptor(service=service, entity_set="Orders", view=_ViewStub()))

    async def overlap():
        first = asyncio.ensure_future(orchestrator.execute("read"))
        await asyncio.sleep(0)
        assert await orchestrator.execute("read") is None
        with pytest.raises(RuntimeError):
            orchestrator.configure(
                RequestDescriptor(service=service, entity_set="Orders", view=_ViewStub())
            )
        return await first

    assert asyncio.run(overlap()) == []
    assert len(service.calls) == 1
    assert orchestrator.in_flight is False
    assert notifier.errors == [(ALREADY_IN_FLIGHT, None)]
    assert log.count("busy:open") == 1


def test_adapter_errors_use_response_text_as_detail() -> None:
    mock = ODataMock()
    mock.fail_next(ApiClientError("GET /Orders: not allowed (HTTP 403)", status=403, response_text="forbidden"))
    notifier = _Notifier()
    orchestrator = RequestOrchestrator(notifier)
    orchestrator.configure(RequestDescriptor(service=mock, entity_set="Orders", view=_ViewStub()))

    asyncio.run(orchestrator.execute("read"))

    assert notifier.errors == [("GET /Orders: not allowed (HTTP 403)", "forbidden")]


def test_busy_scope_closes_on_error() -> None:
    log: List[str] = []

    with pytest.raises(KeyError):
        with busy_scope(_Busy(log)):
            raise KeyError("x")

    assert log == ["busy:open", "busy:close"]
