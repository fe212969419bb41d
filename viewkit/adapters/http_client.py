"""Shared HTTP transport utilities for the data-service adapter.

This module provides a thin wrapper around ``requests.Session`` so the
adapter can share timeout policy, optional retry behavior, and header
construction (API key, CSRF token).

Dependencies:
    - ``requests`` for network I/O.
    - ``viewkit.adapters.api_errors.ApiTimeoutError`` for typed transport failures.

Call context:
    - Constructed by ``viewkit/adapters/odata_rest.py``.
    - Used only inside adapter methods; the orchestrator talks to ports.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

import requests
from requests import exceptions as req_exc

from viewkit.adapters.api_errors import ApiError, ApiTimeoutError


@dataclass
class HttpConfig:
    """Timeout and retry configuration for adapter HTTP calls.

    Attributes:
        request_timeout_s: Default timeout in seconds for JSON API calls.
        retries: Retry attempts after the initial request on transport
            failures. Zero keeps every operation single-attempt.
    """
    request_timeout_s: int = 10
    retries: int = 0


class RetryingSession:
    """Shared requests wrapper with API-key/CSRF headers and retry loops.

    This class is transport-only. Callers provide endpoint URLs and decide
    how to map non-2xx responses into typed errors.
    """

    def __init__(self, api_key: Optional[str], cfg: HttpConfig) -> None:
        """Create a session.

        Args:
            api_key: API key value to place in ``X-API-Key`` headers, or ``None``.
            cfg: Shared timeout and retry settings.
        """
        self._log = logging.getLogger(__name__)
        self.session = requests.Session()
        self.api_key = api_key
        self.cfg = cfg
        self.csrf_token: Optional[str] = None

    def _headers(
        self,
        accept: str = "application/json",
        json_body: bool = False,
        extra: Optional[Mapping[str, str]] = None,
    ) -> Dict[str, str]:
        headers = {"Accept": accept}
        if self.api_key:
            headers["X-API-Key"] = self.api_key
        if json_body:
            headers["Content-Type"] = "application/json"
        if self.csrf_token:
            headers["X-CSRF-Token"] = self.csrf_token
        if extra:
            headers.update(extra)
        return headers

    def request(
        self,
        method: str,
        url: str,
        *,
        params: Optional[Mapping[str, Any]] = None,
        json_body: Any = None,
        headers: Optional[Mapping[str, str]] = None,
        timeout: Optional[int] = None,
    ) -> requests.Response:
        """Send one request, retrying only timeout/connectivity failures.

        Returns:
            ``requests.Response`` from the first attempt that reached the server.

        Raises:
            ApiTimeoutError: All attempts failed with timeout/connection errors.
            ApiError: Any other ``requests`` failure.
        """
        context = f"{method} {url}"
        data = None if json_body is None else json.dumps(json_body)
        last_err: ApiError | None = None
        attempts = self.cfg.retries + 1
        for _ in range(attempts):
            try:
                self._log.debug("%s params=%s", context, dict(params or {}))
                return self.session.request(
                    method,
                    url,
                    params=params,
                    data=data,
                    headers=self._headers(json_body=json_body is not None, extra=headers),
                    timeout=timeout or self.cfg.request_timeout_s,
                )
            except (req_exc.Timeout, req_exc.ConnectionError):
                last_err = ApiTimeoutError(f"Timeout contacting {url}", context=context)
            except req_exc.RequestException as exc:
                raise ApiError(str(exc), context=context) from exc
        raise last_err

    def get(self, url: str, **kwargs: Any) -> requests.Response:
        return self.request("GET", url, **kwargs)

    def post(self, url: str, **kwargs: Any) -> requests.Response:
        return self.request("POST", url, **kwargs)

    def put(self, url: str, **kwargs: Any) -> requests.Response:
        return self.request("PUT", url, **kwargs)

    def delete(self, url: str, **kwargs: Any) -> requests.Response:
        return self.request("DELETE", url, **kwargs)


__all__ = ["HttpConfig", "RetryingSession"]
