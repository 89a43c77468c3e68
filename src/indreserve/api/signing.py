"""Request signing and nonce allocation."""

from __future__ import annotations

import hashlib
import hmac
import time


def sign(secret: str, message: str) -> str:
    """Generate an HMAC-SHA256 signature.

    Args:
        secret: API secret used as the HMAC key
        message: Canonical message to sign

    Returns:
        Upper-case hex-encoded digest
    """
    return hmac.new(secret.encode("utf-8"), message.encode("utf-8"), hashlib.sha256).hexdigest().upper()


class NonceSource:
    """Strictly increasing nonce sequence owned by a single client.

    Seeded from wall-clock milliseconds once; every later value is the
    previous one plus one, so clock skew or resolution never produce a
    repeat.
    """

    def __init__(self, initial: int | None = None):
        self._value = int(time.time() * 1000) if initial is None else int(initial)

    @property
    def current(self) -> int:
        """Value the next call to :meth:`next` will return."""
        return self._value

    def next(self) -> int:
        # no await between read and increment
        value = self._value
        self._value += 1
        return value

    __next__ = next

    def __iter__(self) -> "NonceSource":
        return self
