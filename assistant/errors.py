from __future__ import annotations

from typing import Optional


class LuminaryError(Exception):
    """Base class for every error raised by the chat proxy."""


class ConfigurationError(LuminaryError):
    """Required configuration is missing or unreadable. Fatal at startup."""


class ValidationError(LuminaryError, ValueError):
    """A contact submission is missing a required field."""


class UpstreamError(LuminaryError):
    """The completion API answered with a non-success status."""

    def __init__(self, status_code: Optional[int], body: str = "") -> None:
        self.status_code = status_code
        self.body = body
        super().__init__(f"Upstream returned {status_code}: {body[:200]}")


class DeliveryError(LuminaryError):
    """The mail transport failed to accept the primary delivery."""


class RelayError(LuminaryError):
    """Streaming failed after the response had already started."""
