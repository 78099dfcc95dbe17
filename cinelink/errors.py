"""Error taxonomy shared by the clients, services and HTTP layer."""
from __future__ import annotations


class CineLinkError(RuntimeError):
    """Base error; ``status_code`` is the HTTP status the API answers with."""

    status_code = 500


class InvalidRequestError(CineLinkError):
    """Raised when caller input is missing or malformed."""

    status_code = 400


class UpstreamError(CineLinkError):
    """Raised when an upstream provider fails in an unclassified way."""

    def __init__(self, message: str, *, upstream: str | None = None) -> None:
        super().__init__(message)
        self.upstream = upstream


class NotFoundError(UpstreamError):
    """The provider answered but had no match."""

    status_code = 404


class UnavailableError(UpstreamError):
    """Network failure or 5xx from the provider."""

    status_code = 503


class UpstreamTimeoutError(UnavailableError):
    """The provider did not answer within the call's timeout."""

    status_code = 408
