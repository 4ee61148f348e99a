"""Explicit success/failure values for remote operations.

Every remote call returns a `Result` instead of raising, so orchestrators can decide per step
whether a failure is fatal or merely recorded.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeGuard, TypeVar

T = TypeVar("T")
E = TypeVar("E", bound=Exception)


@dataclass(frozen=True, slots=True)
class Ok(Generic[T]):
    value: T


@dataclass(frozen=True, slots=True)
class Err(Generic[E]):
    error: E


Result = Ok[T] | Err[E]


def is_ok(result: Result[T, E]) -> TypeGuard[Ok[T]]:
    return isinstance(result, Ok)


def is_err(result: Result[T, E]) -> TypeGuard[Err[E]]:
    return isinstance(result, Err)


def unwrap(result: Result[T, E]) -> T:
    """Return the success value or raise the carried error."""

    if isinstance(result, Ok):
        return result.value
    raise result.error
