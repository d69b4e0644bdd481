"""
Error taxonomy for the linking flow.

Every error carries a short, user-safe message that is rendered verbatim on the
terminal error page. Nothing here is retried; a failed hop ends the flow.
"""

from __future__ import annotations

from typing import Optional


class LinkError(Exception):
    """Base class for failures that end a linking flow."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(LinkError):
    """The incoming request is missing data or its state cannot be trusted."""


class InvalidTokenError(ValidationError):
    """A signed state token is malformed, expired or carries a bad signature."""


class UpstreamAuthError(LinkError):
    """A provider endpoint answered with a non-2xx status."""

    def __init__(self, status: int, message: Optional[str] = None) -> None:
        self.status = status
        super().__init__(message or f"Upstream request failed with status {status}")


class UnknownError(LinkError):
    """Any other failure while handling a callback."""


class UpstreamSchemaError(UnknownError):
    """A provider answered 2xx but the body did not have the expected shape."""
