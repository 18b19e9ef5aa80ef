"""Session lookup against the auth service, with an HTTP fallback endpoint."""

from __future__ import annotations

from collections.abc import Mapping
import logging
from typing import TYPE_CHECKING

import httpx

from crawl_pipeline.domain.context import AuthSession, RequestContext
from crawl_pipeline.utils.cancellation import CancellationToken


if TYPE_CHECKING:
    from crawl_pipeline.config import Settings


logger = logging.getLogger(__name__)

FORWARDED_HEADERS = frozenset({"cookie", "authorization", "x-api-key"})


class AuthSessionClient:
    """Ask each session endpoint in turn; the next one is only tried when the previous failed."""

    def __init__(self, client: httpx.AsyncClient, endpoints: list[str], *, timeout_ms: int = 5000):
        self._client = client
        self.endpoints = list(endpoints)
        self._timeout = httpx.Timeout(timeout_ms / 1000)

    @classmethod
    def from_settings(cls, client: httpx.AsyncClient, settings: Settings) -> AuthSessionClient:
        return cls(client, settings.auth_session_urls(), timeout_ms=settings.auth_timeout_ms)

    async def get_session(self, headers: Mapping[str, str]) -> AuthSession | None:
        forwarded = {key: value for key, value in headers.items() if key.lower() in FORWARDED_HEADERS}
        if not forwarded:
            return None

        for endpoint in self.endpoints:
            try:
                response = await self._client.get(endpoint, headers=forwarded, timeout=self._timeout)
            except httpx.HTTPError as e:
                logger.warning(f"Session lookup failed at {endpoint}: {e}")
                continue
            if not response.is_success:
                logger.warning(f"Session lookup at {endpoint} returned HTTP {response.status_code}")
                continue
            try:
                payload = response.json()
            except ValueError:
                logger.warning(f"Session lookup at {endpoint} returned a non-JSON body")
                continue
            return AuthSession.from_payload(payload)

        return None


async def build_request_context(
    headers: Mapping[str, str],
    auth_client: AuthSessionClient | None = None,
    cancel: CancellationToken | None = None,
) -> RequestContext:
    """Resolve the caller's session once per request; lookup failures mean unauthenticated."""
    auth = await auth_client.get_session(headers) if auth_client is not None else None
    return RequestContext(auth=auth, cancel=cancel or CancellationToken())
