"""Response cache keyed by a stable hash of the request options.

Stores are plain key/value backends with per-key TTL. ``ResponseCache`` sits on
top: it is switched on per operation kind, turns every backend failure on read
into a miss, and retries writes with backoff without ever failing the caller.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
import hashlib
import json
import logging
from pathlib import Path
import shutil
import time
from typing import TYPE_CHECKING, Any, Literal, TypeVar

import anyio
import orjson
from pydantic import BaseModel, ValidationError

from crawl_pipeline.errors import CacheUnavailableError
from crawl_pipeline.observability.metrics import CACHE_LOOKUPS


if TYPE_CHECKING:
    from crawl_pipeline.config import Settings


logger = logging.getLogger(__name__)

CacheKind = Literal["read", "links"]
ModelT = TypeVar("ModelT", bound=BaseModel)

DEFAULT_TTL_SECONDS = 86400
MIN_TTL_SECONDS = 60


def stable_serialize(value: Any) -> str:
    """Compact JSON with object keys sorted at every depth; list order is kept."""
    if isinstance(value, BaseModel):
        value = value.model_dump(mode="json", by_alias=True)
    return orjson.dumps(value, option=orjson.OPT_SORT_KEYS).decode("utf-8")


def cache_key(options: Any, kind: str) -> str:
    """Lowercase hex SHA-256 of the operation kind plus the stably serialized options."""
    return hashlib.sha256(f"{kind}:{stable_serialize(options)}".encode()).hexdigest()


@dataclass(frozen=True)
class CacheEntry:
    key: str
    value: str
    expires_at: float

    def is_expired(self, now: float) -> bool:
        return now >= self.expires_at


class CacheStore(ABC):
    """Key/value backend with per-key TTL. Outages raise ``CacheUnavailableError``."""

    @abstractmethod
    async def get(self, key: str) -> CacheEntry | None: ...

    @abstractmethod
    async def put(self, key: str, value: str, ttl_seconds: int) -> None: ...

    @abstractmethod
    async def delete(self, key: str) -> None: ...


class InMemoryCacheStore(CacheStore):
    def __init__(self, *, clock: Callable[[], float] = time.time):
        self._entries: dict[str, CacheEntry] = {}
        self._clock = clock

    async def get(self, key: str) -> CacheEntry | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if entry.is_expired(self._clock()):
            self._entries.pop(key, None)
            return None
        return entry

    async def put(self, key: str, value: str, ttl_seconds: int) -> None:
        self._entries[key] = CacheEntry(key=key, value=value, expires_at=self._clock() + ttl_seconds)

    async def delete(self, key: str) -> None:
        self._entries.pop(key, None)

    def __len__(self) -> int:
        return len(self._entries)


class FilesystemCacheStore(CacheStore):
    """One JSON file per key, written atomically via a temp file and rename."""

    def __init__(self, root: Path, *, clock: Callable[[], float] = time.time):
        self.root = Path(root)
        self._clock = clock

    def _path(self, key: str) -> Path:
        return self.root / key[:2] / f"{key}.json"

    async def get(self, key: str) -> CacheEntry | None:
        path = self._path(key)
        try:
            async with await anyio.open_file(path, "r", encoding="utf-8") as fp:
                content = await fp.read()
        except FileNotFoundError:
            return None
        except OSError as exc:
            raise CacheUnavailableError(f"Cannot read cache entry {key}: {exc}") from exc

        try:
            payload = json.loads(content)
            entry = CacheEntry(key=payload["key"], value=payload["value"], expires_at=float(payload["expires_at"]))
        except (json.JSONDecodeError, KeyError, TypeError, ValueError):
            logger.warning("Discarding corrupt cache entry %s", path)
            await self.delete(key)
            return None

        if entry.is_expired(self._clock()):
            await self.delete(key)
            return None
        return entry

    async def put(self, key: str, value: str, ttl_seconds: int) -> None:
        path = self._path(key)
        payload = {"key": key, "value": value, "expires_at": self._clock() + ttl_seconds}
        tmp_path = path.with_suffix(path.suffix + ".tmp")
        try:
            await anyio.Path(path.parent).mkdir(parents=True, exist_ok=True)
            async with await anyio.open_file(tmp_path, "w", encoding="utf-8") as fp:
                await fp.write(json.dumps(payload, sort_keys=True))
            await anyio.to_thread.run_sync(shutil.move, str(tmp_path), str(path))
        except OSError as exc:
            raise CacheUnavailableError(f"Cannot write cache entry {key}: {exc}") from exc

    async def delete(self, key: str) -> None:
        try:
            await anyio.Path(self._path(key)).unlink(missing_ok=True)
        except OSError as exc:
            raise CacheUnavailableError(f"Cannot delete cache entry {key}: {exc}") from exc


class ResponseCache:
    """Fail-open cache front: misses on outage, never raises to the pipeline."""

    def __init__(
        self,
        store: CacheStore,
        settings: Settings,
        *,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self.store = store
        self.settings = settings
        self._sleep = sleep

    def enabled(self, kind: CacheKind) -> bool:
        return self.settings.cache_enabled_for(kind)

    @staticmethod
    def key(options: Any, kind: CacheKind) -> str:
        return cache_key(options, kind)

    async def get(self, kind: CacheKind, key: str) -> str | None:
        if not self.enabled(kind):
            CACHE_LOOKUPS.labels(kind=kind, result="disabled").inc()
            return None
        try:
            entry = await self.store.get(key)
        except Exception as e:
            logger.warning(f"Cache read failed for {kind}:{key}, treating as miss: {e}")
            CACHE_LOOKUPS.labels(kind=kind, result="error").inc()
            return None
        result = "miss" if entry is None else "hit"
        CACHE_LOOKUPS.labels(kind=kind, result=result).inc()
        logger.debug("Cache %s for %s:%s", result, kind, key)
        return None if entry is None else entry.value

    async def put(self, kind: CacheKind, key: str, value: str, ttl_seconds: int | None = None) -> bool:
        """Write with exponential backoff. Returns False when caching is off or every attempt failed."""
        if not self.enabled(kind):
            return False
        ttl = max(MIN_TTL_SECONDS, ttl_seconds or self.settings.cache_ttl_seconds)
        delay = self.settings.cache_put_backoff_ms / 1000
        attempts = self.settings.cache_put_attempts
        for attempt in range(1, attempts + 1):
            try:
                await self.store.put(key, value, ttl)
                return True
            except Exception as e:
                if attempt == attempts:
                    logger.warning(f"Cache write failed for {kind}:{key} after {attempts} attempts: {e}")
                    return False
                logger.debug("Cache write attempt %d for %s failed, retrying in %.3fs", attempt, key, delay)
                await self._sleep(delay)
                delay *= 2
        return False

    async def get_model(self, kind: CacheKind, key: str, model: type[ModelT]) -> ModelT | None:
        raw = await self.get(kind, key)
        if raw is None:
            return None
        try:
            return model.model_validate_json(raw)
        except ValidationError as e:
            logger.warning(f"Ignoring undecodable cached {kind} response {key}: {e}")
            return None

    async def put_model(self, kind: CacheKind, key: str, value: BaseModel, ttl_seconds: int | None = None) -> bool:
        return await self.put(kind, key, value.model_dump_json(by_alias=True, exclude_none=True), ttl_seconds)
