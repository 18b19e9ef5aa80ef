"""Cancellation token threaded from the request down to every outbound fetch."""

from __future__ import annotations

import asyncio

from crawl_pipeline.errors import FetchAbortedError


class CancellationToken:
    """One-shot cancel signal tied to the lifetime of the inbound request."""

    def __init__(self) -> None:
        self._event = asyncio.Event()
        self.reason: str | None = None

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self, reason: str = "Cancelled by caller") -> None:
        if not self._event.is_set():
            self.reason = reason
            self._event.set()

    async def wait(self) -> None:
        await self._event.wait()

    def raise_if_cancelled(self, url: str | None = None) -> None:
        if self.cancelled:
            raise FetchAbortedError(self.reason or "Cancelled by caller", url=url)
