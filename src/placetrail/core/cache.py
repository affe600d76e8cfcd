from __future__ import annotations

import contextvars
import json
import logging
import time
from contextlib import contextmanager
from dataclasses import dataclass
from hashlib import sha256
from pathlib import Path
from typing import Any, Callable, Iterator

"""
Simple on-disk JSON cache.

Used by collaborators of the core engines (reverse geocoding of place labels) so that
repeated runs over the same history do not repeat lookups:
- values are JSON-serializable and stored under `.cache/placetrail/` by default,
- keys are hashed (SHA-256) to avoid filesystem path issues,
- eviction is TTL based: expired entries are misses on read and are deleted by
  `purge_expired()`.

The cache is an explicit object handed to whoever needs it; nothing in the clustering or
dedup engines holds module-level cache state.
"""

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CacheEntry:
    """Serialized cache envelope stored on disk."""

    created_at_unix: int
    ttl_seconds: int
    value: Any

    def is_expired(self, now: int, ttl_seconds: int | None = None) -> bool:
        effective_ttl = ttl_seconds if ttl_seconds is not None else self.ttl_seconds
        return now - self.created_at_unix > effective_ttl


@dataclass
class CacheStats:
    """Cache usage stats for one block of work (best-effort)."""

    hits: int = 0
    misses: int = 0
    expired: int = 0
    sets: int = 0
    stale_fallbacks: int = 0

    def as_dict(self) -> dict[str, int]:
        return {
            "hits": int(self.hits),
            "misses": int(self.misses),
            "expired": int(self.expired),
            "sets": int(self.sets),
            "stale_fallbacks": int(self.stale_fallbacks),
        }


_cache_stats_var: contextvars.ContextVar[CacheStats | None] = contextvars.ContextVar(
    "placetrail_cache_stats", default=None
)


def _stats() -> CacheStats | None:
    return _cache_stats_var.get()


@contextmanager
def record_cache_stats() -> Iterator[CacheStats]:
    """Capture cache stats within the current context (thread/task-safe)."""
    stats = CacheStats()
    token = _cache_stats_var.set(stats)
    try:
        yield stats
    finally:
        _cache_stats_var.reset(token)


def _read_entry(path: Path) -> CacheEntry | None:
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
        return CacheEntry(
            created_at_unix=int(raw["created_at_unix"]),
            ttl_seconds=int(raw["ttl_seconds"]),
            value=raw["value"],
        )
    except (OSError, ValueError, KeyError, TypeError):
        logger.debug("Ignoring unreadable cache entry %s", path)
        return None


class FileCache:
    """A filesystem-backed cache keyed by (namespace, key)."""

    def __init__(
        self, base_dir: Path, enabled: bool = True, default_ttl_seconds: int = 86400
    ):
        self._base_dir = base_dir
        self._enabled = enabled
        self._default_ttl_seconds = default_ttl_seconds

    @property
    def base_dir(self) -> Path:
        return self._base_dir

    @property
    def enabled(self) -> bool:
        return self._enabled

    def _key_path(self, namespace: str, key: str) -> Path:
        """Return the file path for a cache entry (hash-based)."""
        digest = sha256(f"{namespace}:{key}".encode("utf-8")).hexdigest()
        return self._base_dir / namespace / f"{digest}.json"

    def get(
        self, namespace: str, key: str, ttl_seconds: int | None = None
    ) -> Any | None:
        """Read a cached value if present and not expired; otherwise return None."""
        if not self._enabled:
            return None

        st = _stats()
        path = self._key_path(namespace, key)
        entry = _read_entry(path) if path.exists() else None
        if entry is None:
            if st:
                st.misses += 1
            return None

        if entry.is_expired(int(time.time()), ttl_seconds):
            if st:
                st.misses += 1
                st.expired += 1
            return None

        if st:
            st.hits += 1
        return entry.value

    def get_stale(self, namespace: str, key: str) -> Any | None:
        """Read a cached value even if expired; otherwise return None."""
        if not self._enabled:
            return None
        path = self._key_path(namespace, key)
        if not path.exists():
            return None
        entry = _read_entry(path)
        return entry.value if entry else None

    def set(
        self, namespace: str, key: str, value: Any, ttl_seconds: int | None = None
    ) -> None:
        """Write a JSON-serializable value to disk.

        Writes via a temporary file + atomic replace to avoid partial/corrupt cache files.
        """
        if not self._enabled:
            return None

        ttl = ttl_seconds if ttl_seconds is not None else self._default_ttl_seconds
        path = self._key_path(namespace, key)
        path.parent.mkdir(parents=True, exist_ok=True)

        payload = {
            "created_at_unix": int(time.time()),
            "ttl_seconds": int(ttl),
            "value": value,
        }
        tmp = path.with_suffix(".tmp")
        tmp.write_text(json.dumps(payload, ensure_ascii=False), encoding="utf-8")
        tmp.replace(path)
        st = _stats()
        if st:
            st.sets += 1

    def get_or_set(
        self,
        namespace: str,
        key: str,
        builder: Callable[[], Any],
        ttl_seconds: int | None = None,
        *,
        stale_if_error: bool = False,
        stale_predicate: Callable[[Exception], bool] | None = None,
    ) -> Any:
        """Return cached value, or compute/store it via `builder`.

        If `stale_if_error` is enabled and `builder()` raises, an expired value is returned
        instead of failing, as long as one exists on disk and `stale_predicate(exc)` is
        True (or the predicate is None). `None` results are not stored.
        """
        cached = self.get(namespace, key, ttl_seconds=ttl_seconds)
        if cached is not None:
            return cached
        try:
            value = builder()
        except Exception as exc:
            if stale_if_error and (stale_predicate(exc) if stale_predicate else True):
                stale = self.get_stale(namespace, key)
                if stale is not None:
                    logger.warning("Serving stale cache value for %s after error: %s", namespace, exc)
                    st = _stats()
                    if st:
                        st.stale_fallbacks += 1
                    return stale
            raise
        if value is not None:
            self.set(namespace, key, value, ttl_seconds=ttl_seconds)
        return value

    def purge_expired(self, namespace: str, ttl_seconds: int | None = None) -> int:
        """Delete expired (or unreadable) entries of a namespace; returns the count removed."""
        ns_dir = self._base_dir / namespace
        if not ns_dir.is_dir():
            return 0
        now = int(time.time())
        removed = 0
        for path in sorted(ns_dir.glob("*.json")):
            entry = _read_entry(path)
            if entry is None or entry.is_expired(now, ttl_seconds):
                path.unlink(missing_ok=True)
                removed += 1
        if removed:
            logger.info("Purged %d expired cache entries from %s", removed, namespace)
        return removed
