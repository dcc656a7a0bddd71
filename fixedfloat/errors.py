"""Exception hierarchy for the FixedFloat client.

Every error raised by this package derives from ``FixedFloatError`` so callers
can catch the whole family at once, or pick the specific kind they care about.
"""
from typing import Any, Iterable, Optional


class FixedFloatError(Exception):
    pass


class ConfigurationError(FixedFloatError, ValueError):
    """Raised when the client is built without usable credentials."""
    pass


class ValidationError(FixedFloatError, ValueError):
    """Raised before dispatch when call parameters are missing or invalid.

    ``missing`` lists the parameter names that were absent (empty when the
    failure is an invalid value rather than a missing one).
    """

    def __init__(self, message: str, missing: Optional[Iterable[str]] = None):
        super().__init__(message)
        self.missing = list(missing or [])


class FixedFloatAPIError(FixedFloatError):
    """Raised when the server answers with a non-zero ``code`` or a non-2xx status."""

    def __init__(self, message: str, code: Optional[int] = None, http_status: Optional[int] = None, data: Any = None):
        self.message = message
        self.code = code
        self.http_status = http_status
        self.data = data
        if code is not None:
            super().__init__(f"API Error {code}: {message}")
        else:
            super().__init__(message)


class TransportError(FixedFloatError):
    """Raised when no response was received (connection failure, timeout)."""
    pass


class OrderStateError(FixedFloatError):
    """Raised when an order handle is used before its id and token are known."""
    pass


class SessionError(FixedFloatError):
    """Raised when the async client is used without an open HTTP session."""
    pass
