"""Per-request context handed to the retry middleware and the pipeline stages."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any

from crawl_pipeline.utils.cancellation import CancellationToken


@dataclass(frozen=True)
class AuthSession:
    """Answer from the auth service: ``user`` and ``session`` payloads as returned."""

    user: dict[str, Any] | None = None
    session: dict[str, Any] | None = None

    @classmethod
    def from_payload(cls, payload: Any) -> AuthSession | None:
        if not isinstance(payload, dict):
            return None
        user = payload.get("user")
        session = payload.get("session")
        if not user and not session:
            return None
        return cls(user=user or None, session=session or None)


@dataclass(frozen=True)
class RequestContext:
    auth: AuthSession | None = None
    can_retry: bool = True
    cancel: CancellationToken = field(default_factory=CancellationToken)

    @property
    def is_authenticated(self) -> bool:
        """True only when the session object, its user and its inner session are all present."""
        return self.auth is not None and bool(self.auth.user) and bool(self.auth.session)

    def without_retry(self) -> RequestContext:
        return replace(self, can_retry=False)
