"""Normalized outcome of an API call."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Union

from .errors import ErrorKind, IndependentReserveError


@dataclass(frozen=True, slots=True)
class Success:
    """Call completed; ``data`` is the decoded response body (``None`` when the endpoint returns nothing)."""

    data: Any = None

    @property
    def ok(self) -> bool:
        return True

    @property
    def error(self) -> None:
        return None

    def unwrap(self) -> Any:
        return self.data


@dataclass(frozen=True, slots=True)
class Failure:
    """Call failed; ``error`` carries the kind, message, tag and cause."""

    error: IndependentReserveError

    @property
    def ok(self) -> bool:
        return False

    @property
    def data(self) -> None:
        return None

    @property
    def kind(self) -> ErrorKind:
        return self.error.kind

    @property
    def message(self) -> str:
        return self.error.message

    @property
    def tag(self) -> str | int | None:
        return self.error.tag

    @property
    def cause(self) -> BaseException | None:
        return self.error.cause

    def unwrap(self) -> Any:
        """Raise the carried error."""
        raise self.error


Result = Union[Success, Failure]
