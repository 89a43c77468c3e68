"""aiohttp dispatch of built requests."""

from __future__ import annotations

import asyncio
import json
import logging

import aiohttp

from .classifier import Body, ParsedBody, UnparsedBody, classify
from .request import SignedRequest
from .result import Result

logger = logging.getLogger(__name__)


def decode_body(text: str | None) -> Body | None:
    """Decode response text into a parsed or raw body; ``None`` when empty."""
    if text is None or not text.strip():
        return None
    try:
        return ParsedBody(json.loads(text))
    except ValueError:
        return UnparsedBody(text)


class HttpTransport:
    """Owns the aiohttp session and executes one request per call."""

    def __init__(self, session: aiohttp.ClientSession | None = None):
        self.session = session
        self._owns_session = session is None

    async def _ensure_session(self) -> aiohttp.ClientSession:
        if self.session is None:
            self.session = aiohttp.ClientSession()
            self._owns_session = True
        return self.session

    async def execute(self, request: SignedRequest) -> Result:
        """Send ``request`` and classify whatever comes back."""
        session = await self._ensure_session()
        timeout = aiohttp.ClientTimeout(total=request.timeout_ms / 1000)

        kwargs = {"headers": request.headers, "timeout": timeout}
        if request.method == "GET":
            kwargs["params"] = request.params
        else:
            kwargs["data"] = request.body.encode("utf-8")

        logger.debug("dispatching %s", request.description)
        try:
            async with session.request(request.method, request.url, **kwargs) as resp:
                status = resp.status
                reason = resp.reason
                text = await resp.text(errors="replace")
            logger.debug("%s answered %s %s", request.action, status, reason)
        except (aiohttp.ClientError, asyncio.TimeoutError, OSError) as exc:
            return classify(exc, None, None, None, request.action, request.description)

        return classify(None, status, reason, decode_body(text), request.action, request.description)

    async def close(self) -> None:
        """Close the session if this transport created it."""
        if self.session is not None and self._owns_session:
            await self.session.close()
        self.session = None
