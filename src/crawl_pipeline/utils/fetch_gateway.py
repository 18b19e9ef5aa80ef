"""Outbound HTTP GET with a hard deadline and caller cancellation."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field, replace
import logging
from typing import TYPE_CHECKING

import httpx
from opentelemetry.trace import SpanKind

from crawl_pipeline.errors import (
    FetchAbortedError,
    FetchFailedError,
    FetchTimeoutError,
    UnsupportedContentError,
)
from crawl_pipeline.observability.metrics import FETCH_FAILURES
from crawl_pipeline.observability.tracing import create_span
from crawl_pipeline.utils.cancellation import CancellationToken


if TYPE_CHECKING:
    from crawl_pipeline.config import Settings


logger = logging.getLogger(__name__)

DEFAULT_FETCH_TIMEOUT_MS = 15000
TEXTUAL_CONTENT_MARKERS = ("html", "text", "xml")


@dataclass(frozen=True)
class FetchResult:
    """Transient response snapshot; consumed by downstream stages and never persisted."""

    url: str
    status_code: int
    text: str
    headers: dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300

    @property
    def content_type(self) -> str:
        return self.headers.get("content-type", "")

    @property
    def is_textual(self) -> bool:
        content_type = self.content_type.lower()
        return any(marker in content_type for marker in TEXTUAL_CONTENT_MARKERS)

    @classmethod
    def from_response(cls, response: httpx.Response) -> FetchResult:
        return cls(
            url=str(response.url),
            status_code=response.status_code,
            text=response.text,
            headers={key.lower(): value for key, value in response.headers.items()},
        )


def create_http_client(settings: Settings) -> httpx.AsyncClient:
    """Build the shared client; owned by the pipeline and closed with it."""
    headers = {
        "User-Agent": settings.user_agent,
        "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
        "Accept-Language": "en-US,en;q=0.9",
    }
    return httpx.AsyncClient(
        timeout=httpx.Timeout(settings.fetch_timeout_ms / 1000),
        follow_redirects=settings.follow_redirects,
        headers=headers,
        limits=httpx.Limits(max_connections=settings.http_max_connections),
    )


def ensure_textual(result: FetchResult) -> FetchResult:
    if not result.is_textual:
        raise UnsupportedContentError(
            f"Unsupported content type: {result.content_type or 'unknown'}",
            url=result.url,
            status_code=result.status_code,
        )
    return result


class FetchGateway:
    """Single GET per call. Timeout and user cancel surface as distinct errors."""

    def __init__(self, client: httpx.AsyncClient, *, timeout_ms: int = DEFAULT_FETCH_TIMEOUT_MS):
        self._client = client
        self.timeout_ms = timeout_ms

    async def fetch(
        self,
        url: str,
        *,
        timeout_ms: int | None = None,
        cancel: CancellationToken | None = None,
        raise_for_status: bool = True,
    ) -> FetchResult:
        """Fetch ``url``.

        With ``raise_for_status`` a non-2xx answer raises ``FetchFailedError``
        carrying the status; without it the result comes back with ``ok`` False
        and an empty body (the sitemap path wants that).
        """
        budget_ms = timeout_ms or self.timeout_ms
        cancel = cancel or CancellationToken()
        cancel.raise_if_cancelled(url)

        with create_span("fetch", kind=SpanKind.CLIENT, attributes={"http.url": url, "timeout_ms": budget_ms}):
            request = asyncio.ensure_future(self._get(url))
            cancelled = asyncio.ensure_future(cancel.wait())
            try:
                done, _ = await asyncio.wait(
                    {request, cancelled},
                    timeout=budget_ms / 1000,
                    return_when=asyncio.FIRST_COMPLETED,
                )
            finally:
                for task in (request, cancelled):
                    if not task.done():
                        task.cancel()
                await asyncio.gather(request, cancelled, return_exceptions=True)

            if request in done:
                response = request.result()
            elif cancelled in done:
                FETCH_FAILURES.labels(reason="aborted").inc()
                logger.info("Fetch aborted by caller: %s", url)
                raise FetchAbortedError(cancel.reason or "Cancelled by caller", url=url)
            else:
                FETCH_FAILURES.labels(reason="timeout").inc()
                logger.warning("Fetch timed out after %sms: %s", budget_ms, url)
                raise FetchTimeoutError(f"Request timed out after {budget_ms}ms", url=url, timeout_ms=budget_ms)

        result = FetchResult.from_response(response)
        if result.ok:
            logger.debug("Fetched %s (%s, %d chars)", url, result.status_code, len(result.text))
            return result

        FETCH_FAILURES.labels(reason="status").inc()
        if raise_for_status:
            raise FetchFailedError(f"HTTP status {result.status_code}", url=url, status_code=result.status_code)
        return replace(result, text="")

    async def _get(self, url: str) -> httpx.Response:
        try:
            return await self._client.get(url)
        except httpx.TimeoutException as exc:
            FETCH_FAILURES.labels(reason="timeout").inc()
            raise FetchTimeoutError(f"Request timed out: {exc}", url=url, timeout_ms=self.timeout_ms) from exc
        except httpx.HTTPError as exc:
            FETCH_FAILURES.labels(reason="network").inc()
            raise FetchFailedError(f"Network error: {exc}", url=url) from exc
