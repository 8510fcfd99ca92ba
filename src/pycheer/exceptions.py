"""Custom exception hierarchy for pycheer."""

from __future__ import annotations


class CheerError(Exception):
    """Base exception for all pycheer errors."""


class CheerConfigError(CheerError):
    """Invalid or missing configuration."""


class CheerTransportError(CheerError):
    """HTTP-level failure (network, timeout, invalid JSON)."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        endpoint: str = "",
    ) -> None:
        self.status_code = status_code
        self.endpoint = endpoint
        super().__init__(message)


class CheerApiError(CheerError):
    """Backend returned an error body (PostgREST, GoTrue or storage).

    ``code`` carries the backend error code when one is present, e.g.
    ``PGRST116`` for "no rows returned" on a single-row select.
    """

    def __init__(
        self,
        message: str,
        *,
        code: str = "",
        endpoint: str = "",
        status_code: int | None = None,
    ) -> None:
        self.code = code
        self.endpoint = endpoint
        self.status_code = status_code
        super().__init__(message)


class CheerAuthenticationError(CheerApiError):
    """Sign-in failed, or the operation requires an authenticated user."""


class FetchError(CheerError):
    """A resource fetch or mutation could not be completed.

    This is what slice operations raise; the thunk boundary converts it into
    the slice ``error`` string.
    """

    def __init__(self, message: str, *, resource: str = "") -> None:
        self.resource = resource
        super().__init__(message)


class ValidationError(CheerError):
    """A backend row could not be converted into its record type."""

    def __init__(self, message: str, *, resource: str = "", row: object = None) -> None:
        self.resource = resource
        self.row = row
        super().__init__(message)
