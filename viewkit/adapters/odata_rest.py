"""REST adapter exposing an OData v2 JSON service as a ``DataServiceClient``.

Dependencies:
    - ``requests`` through :class:`viewkit.adapters.http_client.RetryingSession`.
    - ``asyncio.to_thread`` so blocking I/O never runs on the event loop.

Call context:
    Built by ``viewkit.app.controller.build_service`` from ``ServiceSettings``
    and handed to request descriptors. Only the request orchestrator calls it.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import date, datetime
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence

from viewkit.domain.filters import Filter, FilterOperator, Sorter
from viewkit.domain.ports import DataServiceClient, EntitySetPath

from .api_errors import (
    ApiClientError,
    ApiServerError,
    build_error_message,
    extract_error_code,
    parse_error_payload,
)
from .http_client import HttpConfig, RetryingSession

ChangeListener = Callable[[EntitySetPath], None]

_COMPARISON = {
    FilterOperator.EQ: "eq",
    FilterOperator.NE: "ne",
    FilterOperator.GT: "gt",
    FilterOperator.GE: "ge",
    FilterOperator.LT: "lt",
    FilterOperator.LE: "le",
}


def format_literal(value: Any) -> str:
    """Render a Python value as an OData v2 URI literal."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, datetime):
        return f"datetime'{value.strftime('%Y-%m-%dT%H:%M:%S')}'"
    if isinstance(value, date):
        return f"datetime'{value.isoformat()}T00:00:00'"
    text = str(value).replace("'", "''")
    return f"'{text}'"


def render_filter(item: Filter) -> str:
    if item.is_composite:
        joiner = " and " if item.and_ else " or "
        return "(" + joiner.join(render_filter(child) for child in item.filters) + ")"

    path = item.path
    op = item.operator
    left = format_literal(item.value1)
    if op in _COMPARISON:
        return f"{path} {_COMPARISON[op]} {left}"
    if op is FilterOperator.BT:
        return f"({path} ge {left} and {path} le {format_literal(item.value2)})"
    if op is FilterOperator.CONTAINS:
        return f"substringof({left},{path})"
    if op is FilterOperator.NOT_CONTAINS:
        return f"not substringof({left},{path})"
    if op is FilterOperator.STARTS_WITH:
        return f"startswith({path},{left})"
    if op is FilterOperator.ENDS_WITH:
        return f"endswith({path},{left})"
    raise ValueError(f"Unsupported filter operator: {op!r}")


def render_filters(filters: Sequence[Filter]) -> Optional[str]:
    """Join top-level filters with ``and``; ``None`` when there are none."""
    if not filters:
        return None
    return " and ".join(render_filter(item) for item in filters)


def render_orderby(sorters: Sequence[Sorter]) -> Optional[str]:
    if not sorters:
        return None
    return ",".join(f"{s.path} {'desc' if s.descending else 'asc'}" for s in sorters)


def unwrap(payload: Any) -> Any:
    """Strip the ``{"d": ...}`` envelope; collections yield their ``results``."""
    if not isinstance(payload, dict) or "d" not in payload:
        return payload
    body = payload["d"]
    if isinstance(body, dict) and isinstance(body.get("results"), list):
        return body["results"]
    return body


class ODataRestAdapter(DataServiceClient):
    """OData v2 REST adapter with CSRF handling and change notifications."""

    def __init__(
        self,
        base_url: str,
        *,
        api_key: Optional[str] = None,
        request_timeout_s: int = 10,
        retries: int = 0,
        csrf_enabled: bool = True,
    ) -> None:
        if not base_url or not base_url.strip():
            raise ValueError("ODataRestAdapter requires a service base URL")
        self._log = logging.getLogger(__name__)
        self.base_url = base_url.strip().rstrip("/")
        self.csrf_enabled = csrf_enabled
        self.http = RetryingSession(
            api_key, HttpConfig(request_timeout_s=request_timeout_s, retries=retries)
        )
        self._change_listeners: List[ChangeListener] = []

    # ---------- change notifications ----------

    def add_change_listener(self, listener: ChangeListener) -> None:
        self._change_listeners.append(listener)

    def remove_change_listener(self, listener: ChangeListener) -> None:
        if listener in self._change_listeners:
            self._change_listeners.remove(listener)

    def _notify_change(self, entity_set: EntitySetPath) -> None:
        for listener in list(self._change_listeners):
            listener(entity_set)

    # ---------- DataServiceClient ----------

    async def read(
        self,
        entity_set: EntitySetPath,
        *,
        filters: Sequence[Filter] = (),
        sorters: Sequence[Sorter] = (),
        url_parameters: Optional[Mapping[str, Any]] = None,
    ) -> Any:
        params = self._params(url_parameters)
        filter_text = render_filters(filters)
        if filter_text:
            params["$filter"] = filter_text
        orderby = render_orderby(sorters)
        if orderby:
            params["$orderby"] = orderby
        return await asyncio.to_thread(self._send, "GET", entity_set, params, None)

    async def create(
        self,
        entity_set: EntitySetPath,
        data: Any,
        *,
        url_parameters: Optional[Mapping[str, Any]] = None,
        refresh_after_change: bool = True,
    ) -> Any:
        return await self._modify("POST", entity_set, data, url_parameters, refresh_after_change)

    async def update(
        self,
        entity_set: EntitySetPath,
        data: Any,
        *,
        url_parameters: Optional[Mapping[str, Any]] = None,
        refresh_after_change: bool = True,
    ) -> Any:
        return await self._modify("PUT", entity_set, data, url_parameters, refresh_after_change)

    async def remove(
        self,
        entity_set: EntitySetPath,
        *,
        url_parameters: Optional[Mapping[str, Any]] = None,
        refresh_after_change: bool = True,
    ) -> Any:
        return await self._modify("DELETE", entity_set, None, url_parameters, refresh_after_change)

    # ---------- helpers ----------

    async def _modify(
        self,
        method: str,
        entity_set: EntitySetPath,
        data: Any,
        url_parameters: Optional[Mapping[str, Any]],
        refresh_after_change: bool,
    ) -> Any:
        params = self._params(url_parameters)
        result = await asyncio.to_thread(self._send_modifying, method, entity_set, params, data)
        if refresh_after_change:
            self._notify_change(entity_set)
        return result

    @staticmethod
    def _params(url_parameters: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
        return {key: value for key, value in (url_parameters or {}).items()}

    def _url(self, entity_set: EntitySetPath) -> str:
        path = entity_set if entity_set.startswith("/") else f"/{entity_set}"
        return f"{self.base_url}{path}"

    def _send_modifying(
        self, method: str, entity_set: EntitySetPath, params: Dict[str, Any], data: Any
    ) -> Any:
        if self.csrf_enabled and not self.http.csrf_token:
            self._fetch_csrf_token()
        return self._send(method, entity_set, params, data)

    def _fetch_csrf_token(self) -> None:
        resp = self.http.get(f"{self.base_url}/", headers={"X-CSRF-Token": "Fetch"})
        token = (getattr(resp, "headers", None) or {}).get("X-CSRF-Token")
        if token and token.lower() != "required":
            self.http.csrf_token = token
            self._log.debug("CSRF token acquired for %s", self.base_url)
        else:
            self._log.warning("Service %s did not issue a CSRF token", self.base_url)

    def _send(
        self, method: str, entity_set: EntitySetPath, params: Dict[str, Any], data: Any
    ) -> Any:
        url = self._url(entity_set)
        resp = self.http.request(method, url, params=params or None, json_body=data)
        return self._check(resp, f"{method} {entity_set}")

    @staticmethod
    def _check(resp: Any, ctx: str) -> Any:
        status = int(getattr(resp, "status_code", 0) or 0)
        if 200 <= status < 300:
            if status == 204 or not (getattr(resp, "text", "") or "").strip():
                return None
            return unwrap(resp.json())

        payload = parse_error_payload(resp)
        message = build_error_message(ctx, status, payload)
        response_text = getattr(resp, "text", None)
        if 400 <= status < 500:
            raise ApiClientError(
                message,
                status=status,
                code=extract_error_code(payload),
                payload=payload,
                response_text=response_text,
                context=ctx,
            )
        raise ApiServerError(
            message,
            status=status,
            code=extract_error_code(payload),
            payload=payload,
            response_text=response_text,
            context=ctx,
        )


__all__ = [
    "ODataRestAdapter",
    "format_literal",
    "render_filter",
    "render_filters",
    "render_orderby",
    "unwrap",
]
