"""Service layer: operations composed from the pipeline stages, with injected collaborators."""

from .auth_client import AuthSessionClient, build_request_context
from .cache_service import (
    CacheEntry,
    CacheStore,
    FilesystemCacheStore,
    InMemoryCacheStore,
    ResponseCache,
    cache_key,
    stable_serialize,
)
from .links_service import LinksService
from .read_service import ReadService
from .retry_middleware import RetryMiddleware


__all__ = [
    "AuthSessionClient",
    "CacheEntry",
    "CacheStore",
    "FilesystemCacheStore",
    "InMemoryCacheStore",
    "LinksService",
    "ReadService",
    "ResponseCache",
    "RetryMiddleware",
    "build_request_context",
    "cache_key",
    "stable_serialize",
]
