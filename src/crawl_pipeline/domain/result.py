"""Explicit success/failure values for operations wrapped by the retry middleware."""

from __future__ import annotations

from collections.abc import Awaitable
from dataclasses import dataclass
from typing import Generic, Literal, NoReturn, TypeAlias, TypeVar

from crawl_pipeline.errors import PipelineError


T = TypeVar("T")


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T
    ok: Literal[True] = True

    def unwrap(self) -> T:
        return self.value


@dataclass(frozen=True)
class Err:
    error: PipelineError
    ok: Literal[False] = False

    def unwrap(self) -> NoReturn:
        raise self.error


Result: TypeAlias = Ok[T] | Err


async def capture(awaitable: Awaitable[T]) -> Ok[T] | Err:
    """Await ``awaitable`` and fold a ``PipelineError`` into an ``Err`` value.

    Anything that is not a ``PipelineError`` is a bug and keeps propagating.
    """
    try:
        return Ok(await awaitable)
    except PipelineError as exc:
        return Err(exc)
