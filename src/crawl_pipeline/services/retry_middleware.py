"""Bounded retry around one logical pipeline operation.

Only authenticated callers whose context still allows retrying get more than one
attempt. Every attempt runs with retrying disabled, so an inner call can never
start its own retry loop. There is no backoff or jitter between attempts.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
import logging
from typing import TypeVar

from crawl_pipeline.domain.context import RequestContext
from crawl_pipeline.domain.result import Ok, Result


logger = logging.getLogger(__name__)

T = TypeVar("T")

Operation = Callable[[RequestContext], Awaitable[Result[T]]]


class RetryMiddleware:
    def __init__(self, times: int = 3):
        if times < 1:
            raise ValueError("times must be at least 1")
        self.times = times

    async def run(self, ctx: RequestContext, op: Operation[T]) -> Result[T]:
        if not ctx.can_retry or not ctx.is_authenticated:
            return await op(ctx)

        nested = ctx.without_retry()
        attempts = 0
        while True:
            result = await op(nested)
            if isinstance(result, Ok):
                return result
            attempts += 1
            error = result.error
            if not error.retryable or attempts >= self.times or ctx.cancel.cancelled:
                return result
            logger.info(
                "Retrying after %s for %s (attempt %d of %d)",
                error.code,
                error.url,
                attempts + 1,
                self.times,
            )
