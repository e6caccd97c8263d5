"""
Result type for best-effort sub-calls.

A best-effort call (token balance, snapshot write, single block fetch) returns
Ok(value) or Err(error) instead of raising. The caller decides at one place
what to do with the Err branch: substitute a default, log it, move on.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any, Awaitable, Generic, TypeVar, Union

T = TypeVar("T")


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T

    def unwrap_or(self, default: Any) -> T:
        return self.value


@dataclass(frozen=True)
class Err:
    error: BaseException

    def unwrap_or(self, default: T) -> T:
        return default


Result = Union[Ok[T], Err]


async def capture(awaitable: Awaitable[T]) -> "Result[T]":
    """Await and wrap the outcome. Cancellation is re-raised, never captured."""
    try:
        return Ok(await awaitable)
    except asyncio.CancelledError:
        raise
    except Exception as e:
        return Err(e)
