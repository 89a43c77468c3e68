"""Error taxonomy for Independent Reserve API calls."""

from __future__ import annotations

from enum import Enum


class ErrorKind(Enum):
    """Machine-usable classification of a failed call."""

    CONFIGURATION = "ConfigurationError"
    VALIDATION = "ValidationError"
    TRANSPORT = "TransportError"
    HTTP = "HttpError"
    APPLICATION = "ApplicationError"
    EMPTY_RESPONSE = "EmptyResponse"
    UNPARSABLE_RESPONSE = "UnparsableResponse"


class IndependentReserveError(Exception):
    """Base class for every failure the client reports."""

    kind: ErrorKind

    def __init__(self, message: str, *, tag: str | int | None = None, cause: BaseException | None = None):
        super().__init__(message)
        self.message = message
        self.tag = tag
        self.cause = cause
        if cause is not None:
            self.__cause__ = cause

    def __repr__(self) -> str:
        return f"{type(self).__name__}(kind={self.kind.value!r}, tag={self.tag!r}, message={self.message!r})"


class ConfigurationError(IndependentReserveError):
    """Credentials missing or unusable for the requested call."""

    kind = ErrorKind.CONFIGURATION


class ValidationError(IndependentReserveError):
    """Caller-supplied argument outside the endpoint's contract."""

    kind = ErrorKind.VALIDATION


class TransportError(IndependentReserveError):
    """Request never produced an HTTP response (DNS, connect, timeout)."""

    kind = ErrorKind.TRANSPORT


class HttpError(IndependentReserveError):
    """Non-2xx HTTP status."""

    kind = ErrorKind.HTTP

    def __init__(self, message: str, *, status: int, reason: str | None = None):
        super().__init__(message, tag=status)
        self.status = status
        self.reason = reason


class ApplicationError(IndependentReserveError):
    """Exchange reported an error message inside a 2xx response."""

    kind = ErrorKind.APPLICATION


class EmptyResponseError(IndependentReserveError):
    kind = ErrorKind.EMPTY_RESPONSE


class UnparsableResponseError(IndependentReserveError):
    """Response body was not JSON, typically an HTML error page."""

    kind = ErrorKind.UNPARSABLE_RESPONSE

    def __init__(self, message: str, *, body_text: str | None = None):
        super().__init__(message)
        self.body_text = body_text
