"""Typed errors surfaced by the pipeline.

Callers receive either a well-formed response or one of these, and can tell
"your input was invalid" (``InvalidUrlError``) from "the remote site could not be
reached" (``FetchFailedError``/``FetchTimeoutError``) from "the operation was
cancelled" (``FetchAbortedError``).
"""

from __future__ import annotations

from typing import Any


class PipelineError(Exception):
    """Base class for every error the pipeline raises."""

    code = "pipeline_error"
    retryable = False
    status_code: int | None = None

    def __init__(self, message: str, *, url: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.url = url

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": False,
            "code": self.code,
            "message": self.message,
            "url": self.url,
            "status_code": self.status_code,
        }


class InvalidUrlError(PipelineError):
    code = "invalid_url"


class FetchFailedError(PipelineError):
    """Remote answered non-2xx, or the network failed before a response arrived."""

    code = "fetch_failed"
    retryable = True

    def __init__(self, message: str, *, url: str | None = None, status_code: int | None = None) -> None:
        super().__init__(message, url=url)
        self.status_code = status_code


class UnsupportedContentError(FetchFailedError):
    code = "unsupported_content"
    retryable = False


class FetchTimeoutError(PipelineError):
    code = "timeout"
    retryable = True

    def __init__(self, message: str, *, url: str | None = None, timeout_ms: int | None = None) -> None:
        super().__init__(message, url=url)
        self.timeout_ms = timeout_ms


class FetchAbortedError(PipelineError):
    code = "aborted"


class CacheUnavailableError(PipelineError):
    """Cache backend failure. Absorbed by ``ResponseCache``; never reaches callers."""

    code = "cache_unavailable"
