"""Custom exception hierarchy for the SteriTrack client."""
from __future__ import annotations

from typing import Any


class SteriTrackError(RuntimeError):
    """Base error for SteriTrack failures."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        details: Any | None = None,
        response: Any | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.details = details
        self.response = response


class RequestError(SteriTrackError):
    """Raised when the API answers with a non-success status."""


class AuthenticationError(RequestError):
    """Raised when the API rejects the presented credential (HTTP 401)."""


class TransportError(SteriTrackError):
    """Raised when no response was received at all."""


class UnexpectedResponseError(SteriTrackError):
    """Raised when the API returns an unexpected payload structure."""


class SessionError(SteriTrackError):
    """Raised when an operation needs credentials that are not stored."""
