"""Turns a completed (or failed) HTTP exchange into a normalized result."""

from __future__ import annotations

import asyncio
import errno
import json
import logging
from dataclasses import dataclass
from html.parser import HTMLParser
from typing import Any, Union

from .errors import (
    ApplicationError,
    EmptyResponseError,
    HttpError,
    IndependentReserveError,
    TransportError,
    UnparsableResponseError,
)
from .result import Failure, Result, Success

logger = logging.getLogger(__name__)

# the only action that answers success with an empty body
WITHDRAW_DIGITAL_CURRENCY = "WithdrawDigitalCurrency"


@dataclass(frozen=True, slots=True)
class ParsedBody:
    """Response text decoded as JSON."""

    value: Any


@dataclass(frozen=True, slots=True)
class UnparsedBody:
    """Response text that was not JSON."""

    text: str


Body = Union[ParsedBody, UnparsedBody]


class _BodyTextExtractor(HTMLParser):
    """Collects text content, restricted to <body> once one is seen."""

    _SKIP = {"script", "style"}
    _BLOCK = {
        "p", "div", "br", "li", "tr", "pre", "table", "ul", "ol", "title",
        "h1", "h2", "h3", "h4", "h5", "h6", "section", "header", "footer",
    }

    def __init__(self) -> None:
        super().__init__(convert_charrefs=True)
        self.body_chunks: list[str] = []
        self.all_chunks: list[str] = []
        self.seen_body = False
        self._in_body = 0
        self._skip = 0

    def handle_starttag(self, tag: str, attrs: list[tuple[str, str | None]]) -> None:
        if tag == "body":
            self.seen_body = True
            self._in_body += 1
        elif tag in self._SKIP:
            self._skip += 1
        elif tag in self._BLOCK:
            self._break()

    def handle_endtag(self, tag: str) -> None:
        if tag == "body" and self._in_body:
            self._in_body -= 1
        elif tag in self._SKIP and self._skip:
            self._skip -= 1
        elif tag in self._BLOCK:
            self._break()

    def _break(self) -> None:
        self.all_chunks.append("\n")
        if self._in_body:
            self.body_chunks.append("\n")

    def handle_data(self, data: str) -> None:
        if self._skip:
            return
        self.all_chunks.append(data)
        if self._in_body:
            self.body_chunks.append(data)


def extract_body_text(html: str) -> str:
    """Return the human-readable text of an HTML page's body.

    Falls back to the text of the whole document when there is no <body>
    tag. Blank lines are dropped; an empty string means nothing readable.
    """
    parser = _BodyTextExtractor()
    parser.feed(html)
    parser.close()

    chunks = parser.body_chunks if parser.seen_body else parser.all_chunks
    lines = (line.strip() for line in "".join(chunks).splitlines())
    return "\n".join(line for line in lines if line)


def transport_error_tag(exc: BaseException) -> str:
    """Symbolic code for a transport failure, e.g. ``ECONNREFUSED``."""
    if isinstance(exc, asyncio.TimeoutError):
        return "ETIMEDOUT"

    code = getattr(exc, "errno", None)
    if code is None:
        os_error = getattr(exc, "os_error", None)
        code = getattr(os_error, "errno", None)
    if isinstance(code, int) and code in errno.errorcode:
        return errno.errorcode[code]

    return type(exc).__name__


def _is_empty(body: Body | None) -> bool:
    if body is None:
        return True
    if isinstance(body, ParsedBody):
        return not isinstance(body.value, (dict, list)) and not body.value
    return not body.text


def _response_message(body: ParsedBody) -> Any:
    value = body.value
    if isinstance(value, dict):
        return value.get("Message")
    return None


def classify(
    transport_error: BaseException | None,
    status: int | None,
    reason: str | None,
    body: Body | None,
    action: str,
    description: str = "",
) -> Result:
    """Classify the outcome of one request.

    Args:
        transport_error: Exception raised before any response arrived
        status: HTTP status code
        reason: HTTP status message
        body: Decoded response body, ``None`` when empty
        action: API action name, e.g. ``GetAccounts``
        description: Human-readable request description for messages

    Returns:
        ``Success`` with the parsed body or ``Failure`` with a typed error
    """
    error = _classify_error(transport_error, status, reason, body, action, description)
    if error is not None:
        logger.warning("%s %s: %s", action, error.kind.value, error.message)
        return Failure(error)

    if action == WITHDRAW_DIGITAL_CURRENCY:
        return Success(None)
    return Success(body.value)


def _classify_error(
    transport_error: BaseException | None,
    status: int | None,
    reason: str | None,
    body: Body | None,
    action: str,
    description: str,
) -> IndependentReserveError | None:
    if transport_error is not None:
        return TransportError(
            f"{description} failed: {transport_error!r}",
            tag=transport_error_tag(transport_error),
            cause=transport_error,
        )

    if status is None or status < 200 or status >= 300:
        return HttpError(
            f"HTTP status code {status} returned from {description}. Status message: {reason}",
            status=status,
            reason=reason,
        )

    if action == WITHDRAW_DIGITAL_CURRENCY:
        return None

    if _is_empty(body):
        return EmptyResponseError(f"{description} failed. No data returned.")

    if isinstance(body, ParsedBody):
        message = _response_message(body)
        if message:
            return ApplicationError(f"{description} failed. Response message: {message}", tag=message)
        if isinstance(body.value, (dict, list)):
            return None
        # bare JSON scalar: not structured data
        raw = body.value if isinstance(body.value, str) else json.dumps(body.value)
    else:
        raw = body.text

    text = extract_body_text(raw)
    if text:
        return UnparsableResponseError(
            f"could not json parse response from {description}. Response body:\n{text}",
            body_text=text,
        )
    return UnparsableResponseError(
        f"could not parse json or HTML body from {description}",
        body_text=None,
    )
