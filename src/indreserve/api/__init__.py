"""Independent Reserve REST API core: signing, request building and response classification."""

from .classifier import ParsedBody, UnparsedBody, classify, extract_body_text
from .client import IndependentReserveClient, OrderType
from .errors import (
    ApplicationError,
    ConfigurationError,
    EmptyResponseError,
    ErrorKind,
    HttpError,
    IndependentReserveError,
    TransportError,
    UnparsableResponseError,
    ValidationError,
)
from .request import RequestBuilder, SignedRequest, build_message
from .result import Failure, Result, Success
from .signing import NonceSource, sign

__all__ = [
    "IndependentReserveClient",
    "OrderType",
    "RequestBuilder",
    "SignedRequest",
    "build_message",
    "NonceSource",
    "sign",
    "classify",
    "extract_body_text",
    "ParsedBody",
    "UnparsedBody",
    "Result",
    "Success",
    "Failure",
    "ErrorKind",
    "IndependentReserveError",
    "ConfigurationError",
    "ValidationError",
    "TransportError",
    "HttpError",
    "ApplicationError",
    "EmptyResponseError",
    "UnparsableResponseError",
]
