"""Exception hierarchy shared by the store, the OTP service and the adapters."""

from __future__ import annotations


class OtpAuthError(Exception):
    """Base class for every error raised by this package."""


class OtpValidationError(OtpAuthError, ValueError):
    """A required field (phone or code) was empty when it reached the core."""


class StoreFailure(OtpAuthError):
    """The record store was unreachable or an operation on it failed."""


class UpstreamError(OtpAuthError):
    """The commerce platform returned an error or could not be reached.

    ``status_code`` is the upstream HTTP status, or ``None`` when the
    request never got a response.
    """

    def __init__(self, message: str, status_code: int | None = None, detail: object = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.detail = detail
