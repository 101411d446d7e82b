"""Explicit outcome of a supervised store action.

:meth:`pyanimehub.state.store.AnimeStore.with_loading` never raises for a
failed action; it logs once and returns :class:`Err`. Callers that care
can inspect the result, callers that don't get "log and continue".
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Generic, TypeVar

from pyanimehub.exceptions import (
    AnimeHubApiError,
    AnimeHubAuthenticationError,
    AnimeHubRateLimitError,
    AnimeHubTransportError,
)

T = TypeVar("T")


class ErrorKind(StrEnum):
    TRANSPORT = "transport"
    RATE_LIMITED = "rate_limited"
    AUTHENTICATION = "authentication"
    API = "api"
    UNKNOWN = "unknown"


def classify_error(error: BaseException) -> ErrorKind:
    # Order matters: subclasses first.
    if isinstance(error, AnimeHubRateLimitError):
        return ErrorKind.RATE_LIMITED
    if isinstance(error, AnimeHubTransportError):
        return ErrorKind.TRANSPORT
    if isinstance(error, AnimeHubAuthenticationError):
        return ErrorKind.AUTHENTICATION
    if isinstance(error, AnimeHubApiError):
        return ErrorKind.API
    return ErrorKind.UNKNOWN


@dataclass(frozen=True, slots=True)
class Ok(Generic[T]):
    value: T

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True, slots=True)
class Err:
    error: Exception
    kind: ErrorKind = ErrorKind.UNKNOWN

    @property
    def ok(self) -> bool:
        return False

    @classmethod
    def from_exception(cls, error: Exception) -> Err:
        return cls(error=error, kind=classify_error(error))


ActionResult = Ok[T] | Err
