"""Domain-level error types shared by the fragment and request helpers.

Every error here is recoverable: the core reports it through a
``NotificationSink`` and never lets it escape to the calling view.
"""

from __future__ import annotations

from typing import Optional


class ViewKitError(Exception):
    """Base class for user-presentable helper errors."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class FragmentLoadError(ViewKitError):
    """Fragment could not be imported or instantiated."""

    def __init__(self, message: str, *, fragment_name: Optional[str] = None) -> None:
        super().__init__(message)
        self.fragment_name = fragment_name


class RequestDescriptorError(ViewKitError):
    """Request descriptor is incomplete or names an unsupported operation."""


class DataServiceError(ViewKitError):
    """Remote data-service call failed.

    Attributes:
        detail: Response body or other diagnostic text shown as message details.
        status: HTTP status code when the failure came from a response.
    """

    def __init__(
        self,
        message: str,
        *,
        detail: Optional[str] = None,
        status: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.detail = detail
        self.status = status

    @property
    def response_text(self) -> Optional[str]:
        return self.detail


__all__ = [
    "DataServiceError",
    "FragmentLoadError",
    "RequestDescriptorError",
    "ViewKitError",
]
