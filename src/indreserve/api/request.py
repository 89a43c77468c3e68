"""Construction of public and signed private requests."""

from __future__ import annotations

import json
import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Mapping

from .errors import ConfigurationError, ValidationError
from .signing import NonceSource, sign

DEFAULT_SERVER = "https://api.independentreserve.com"
DEFAULT_TIMEOUT_MS = 10000
DEFAULT_USER_AGENT = "Independent Reserve Javascript API Client"


def to_iso8601(value: datetime) -> str:
    """Render a datetime as UTC with millisecond precision, e.g. ``2024-01-02T03:04:05.678Z``.

    Naive datetimes are taken to be UTC already.
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    else:
        value = value.astimezone(timezone.utc)
    return value.strftime("%Y-%m-%dT%H:%M:%S") + f".{value.microsecond // 1000:03d}Z"


def format_number(value: float) -> str:
    """Render a float the way JavaScript's ``Number.prototype.toString`` does.

    Uses the shortest round-tripping digits (as ``repr`` does) but JS's
    rules for when to switch to exponent notation: ``1e-8``, ``0.00001``,
    ``45000``, ``1e+21``.
    """
    if value == 0:
        return "0"
    sign_ = "-" if value < 0 else ""
    digits_tuple = Decimal(repr(abs(value))).normalize().as_tuple()
    digits = "".join(str(d) for d in digits_tuple.digits)
    k = len(digits)
    n = digits_tuple.exponent + k

    if k <= n <= 21:
        text = digits + "0" * (n - k)
    elif 0 < n <= 21:
        text = f"{digits[:n]}.{digits[n:]}"
    elif -6 < n <= 0:
        text = "0." + "0" * -n + digits
    else:
        exp = n - 1
        exp_text = f"e+{exp}" if exp >= 0 else f"e-{-exp}"
        mantissa = digits if k == 1 else f"{digits[0]}.{digits[1:]}"
        text = mantissa + exp_text
    return sign_ + text


def normalize_value(value: Any) -> Any:
    """Reduce a parameter value to the types the wire format knows.

    Enums become their value, datetimes their ISO-8601 string and tuples
    lists.

    Raises:
        ValidationError: For non-finite numbers or unsupported types
    """
    if isinstance(value, Enum):
        value = value.value
    if value is None or isinstance(value, (bool, int, str)):
        return value
    if isinstance(value, (float, Decimal)):
        if not (value.is_finite() if isinstance(value, Decimal) else math.isfinite(value)):
            raise ValidationError(f"parameter value {value} is not a finite number")
        return value
    if isinstance(value, datetime):
        return to_iso8601(value)
    if isinstance(value, (list, tuple)):
        return [normalize_value(v) for v in value]
    raise ValidationError(f"unsupported parameter value {value!r} of type {type(value).__name__}")


def normalize_params(params: Mapping[str, Any] | None) -> dict[str, Any]:
    return {key: normalize_value(value) for key, value in (params or {}).items()}


def _render_scalar(value: Any) -> str | None:
    """Text shared by the canonical message and the JSON body for numbers and literals."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "null"
    if isinstance(value, float):
        return format_number(value)
    if isinstance(value, Decimal):
        return format(value, "f")
    if isinstance(value, int):
        return str(value)
    return None


def format_value(value: Any) -> str:
    """Render a parameter value exactly as it appears in the canonical message."""
    value = normalize_value(value)
    if isinstance(value, list):
        return ",".join(format_value(v) for v in value)
    rendered = _render_scalar(value)
    return rendered if rendered is not None else str(value)


def encode_json(value: Any) -> str:
    """JSON-encode normalized values, writing numbers exactly as :func:`format_value` does."""
    if isinstance(value, dict):
        items = (f"{json.dumps(str(k), ensure_ascii=False)}:{encode_json(v)}" for k, v in value.items())
        return "{" + ",".join(items) + "}"
    if isinstance(value, list):
        return "[" + ",".join(encode_json(v) for v in value) + "]"
    rendered = _render_scalar(value)
    if rendered is not None:
        return rendered
    return json.dumps(value, ensure_ascii=False)


def build_message(url: str, api_key: str, nonce: int, params: Mapping[str, Any]) -> str:
    """Build the comma separated string the exchange recomputes server-side.

    Field order is fixed: url, apiKey, nonce, then params in caller order.
    """
    parts = [url, f"apiKey={api_key}", f"nonce={nonce}"]
    parts.extend(f"{key}={format_value(value)}" for key, value in params.items())
    return ",".join(parts)


@dataclass(frozen=True, slots=True)
class SignedRequest:
    """A fully built request, ready for dispatch."""

    action: str
    url: str
    method: str
    headers: dict[str, str]
    params: dict[str, Any] = field(default_factory=dict)
    timeout_ms: int = DEFAULT_TIMEOUT_MS
    nonce: int | None = None
    signature: str | None = None
    body: str | None = None
    description: str = ""

    @property
    def is_private(self) -> bool:
        return self.signature is not None


class RequestBuilder:
    """Assembles URLs, headers and parameters for both API surfaces."""

    def __init__(
        self,
        api_key: str | None = None,
        api_secret: str | None = None,
        *,
        server: str = DEFAULT_SERVER,
        timeout_ms: int = DEFAULT_TIMEOUT_MS,
        user_agent: str = DEFAULT_USER_AGENT,
        nonce_source: NonceSource | None = None,
    ):
        self.api_key = api_key
        self.api_secret = api_secret
        self.server = server
        self.timeout_ms = timeout_ms
        self.user_agent = user_agent
        self.nonces = nonce_source or NonceSource()

    @property
    def has_credentials(self) -> bool:
        return bool(self.api_key) and bool(self.api_secret)

    def _get_headers(self) -> dict[str, str]:
        return {"User-Agent": self.user_agent}

    def build_public(self, action: str, params: Mapping[str, Any] | None = None) -> SignedRequest:
        """GET ``<server>/Public/<action>`` with params in the query string."""
        params = normalize_params(params)
        url = f"{self.server}/Public/{action}"
        query = {key: format_value(value) for key, value in params.items()}
        description = f"GET request to url {url} with params {encode_json(params)}"

        return SignedRequest(
            action=action,
            url=url,
            method="GET",
            headers=self._get_headers(),
            params=query,
            timeout_ms=self.timeout_ms,
            description=description,
        )

    def build_private(self, action: str, params: Mapping[str, Any] | None = None) -> SignedRequest:
        """POST ``<server>/Private/<action>`` with a signed JSON body.

        Consumes one nonce even if the request is never sent.

        Raises:
            ConfigurationError: If the API key or secret is missing
            ValidationError: If a parameter value cannot be sent; no nonce is used
        """
        if not self.has_credentials:
            raise ConfigurationError(
                "The API key and secret must be set on the client for private API requests"
            )

        params = normalize_params(params)
        url = f"{self.server}/Private/{action}"
        nonce = self.nonces.next()
        message = build_message(url, self.api_key, nonce, params)
        signature = sign(self.api_secret, message)

        # caller params win over the fixed fields
        body: dict[str, Any] = {
            "apiKey": self.api_key,
            "signature": signature,
            "nonce": nonce,
            **params,
        }
        description = f"POST request to url {url} with nonce {nonce} and params {encode_json(params)}"

        return SignedRequest(
            action=action,
            url=url,
            method="POST",
            headers={**self._get_headers(), "Content-Type": "application/json"},
            params=body,
            body=encode_json(body),
            timeout_ms=self.timeout_ms,
            nonce=nonce,
            signature=signature,
            description=description,
        )
