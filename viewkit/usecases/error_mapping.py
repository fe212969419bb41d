"""Reduce any request failure to a ``DataServiceError`` for user display."""

from __future__ import annotations

from typing import Optional

from viewkit.adapters.api_errors import stringify
from viewkit.domain.errors import DataServiceError, ViewKitError


def map_service_error(exc: BaseException) -> DataServiceError:
    """Map an exception to a message plus optional response detail.

    ``DataServiceError`` instances pass through, topped up with a payload
    summary when they carry no response text. Other exceptions contribute
    ``message``/``response_text`` attributes when present, else ``str(exc)``.
    """
    if isinstance(exc, DataServiceError):
        if not exc.detail:
            summary = stringify(getattr(exc, "payload", None))
            if summary and summary not in exc.message:
                exc.detail = summary
        return exc
    if isinstance(exc, ViewKitError):
        return DataServiceError(exc.message)

    message = _text(getattr(exc, "message", None)) or str(exc).strip() or type(exc).__name__
    detail = _text(getattr(exc, "response_text", None)) or _text(getattr(exc, "responseText", None))
    return DataServiceError(message, detail=detail)


def _text(value: object) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


__all__ = ["map_service_error"]
