"""File-backed response cache with stale-while-revalidate semantics.

Layout on disk (one directory, shared by every CLI invocation):
    index.json          {"entries": {key: {"file", "size", "accessed"}}, "total_size"}
    <sha256[:32]>.json  {"data", "created_at", "stale_at", "expires_at"}

All timestamps are epoch milliseconds. The index is the single source of
truth for eviction and is read-modify-written on every mutation. Two
processes racing on the same key is accepted: last write wins.

Corrupt or unreadable files never raise. The entry is forgotten and the
caller sees a miss.
"""

import hashlib
import json
import logging
import os
import tempfile
import threading
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

MAX_ENTRIES = 1000
MAX_BYTES = 10 * 1024 * 1024  # 10 MiB

INDEX_FILENAME = "index.json"


@dataclass(frozen=True)
class CachePolicy:
    """How long a response is fresh, then servable-but-stale, then gone."""

    stale_after: timedelta
    expires_after: timedelta


CACHE_PROFILES = {
    # Live scores
    "live": CachePolicy(timedelta(seconds=30), timedelta(seconds=60)),
    # Fixtures/results
    "standard": CachePolicy(timedelta(minutes=5), timedelta(minutes=15)),
    # Team search
    "search": CachePolicy(timedelta(hours=1), timedelta(hours=24)),
    # League teams and other rarely-changing lists
    "long": CachePolicy(timedelta(hours=24), timedelta(days=7)),
}


@dataclass(frozen=True)
class CachedValue:
    """A cache hit."""

    data: Any
    is_stale: bool
    cached_at: datetime


def make_cache_key(endpoint: str, params: dict[str, Any]) -> str:
    """Build a composite key: endpoint plus params sorted by name.

    None values are dropped so optional params never split the cache.
    make_cache_key("games", {"season": 2025, "league": 16})
    -> "games?league=16&season=2025"
    """
    query = "&".join(
        f"{name}={value}" for name, value in sorted(params.items()) if value is not None
    )
    return f"{endpoint}?{query}"


def _to_ms(value: datetime) -> int:
    return int(value.timestamp() * 1000)


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _empty_index() -> dict:
    return {"entries": {}, "total_size": 0}


class ResponseCache:
    """Size-bounded LRU cache of API responses on disk.

    Usage:
        cache = ResponseCache(get_cache_dir())
        cache.set(key, payload, CACHE_PROFILES["standard"])
        hit = cache.get(key)  # CachedValue or None
    """

    def __init__(
        self,
        cache_dir: str | Path,
        max_entries: int = MAX_ENTRIES,
        max_bytes: int = MAX_BYTES,
        now: Callable[[], datetime] | None = None,
    ):
        self._dir = Path(cache_dir)
        self._index_path = self._dir / INDEX_FILENAME
        self._max_entries = max_entries
        self._max_bytes = max_bytes
        self._now = now or _utcnow
        self._lock = threading.Lock()

    @property
    def cache_dir(self) -> Path:
        return self._dir

    # =========================================================================
    # Public API
    # =========================================================================

    def get(self, key: str) -> CachedValue | None:
        """Get a cached response.

        Returns None when there is no entry, when the entry has hit its hard
        expiry (the entry is deleted), or when its file is unreadable (the
        entry is forgotten). Otherwise flags whether the stale threshold passed.
        """
        with self._lock:
            index = self._read_index()
            meta = index["entries"].get(key)
            if meta is None:
                return None

            payload = self._read_payload(meta)
            if payload is None:
                logger.debug("[CACHE] Dropping unreadable entry: %s", key)
                self._forget(index, key)
                self._write_index(index)
                return None

            now_ms = _to_ms(self._now())
            if now_ms >= payload["expires_at"]:
                logger.debug("[CACHE] Expired: %s", key)
                self._forget(index, key)
                self._write_index(index)
                return None

            meta["accessed"] = now_ms
            self._write_index(index)

            return CachedValue(
                data=payload["data"],
                is_stale=now_ms >= payload["stale_at"],
                cached_at=datetime.fromtimestamp(payload["created_at"] / 1000, UTC),
            )

    def set(self, key: str, data: Any, policy: CachePolicy) -> None:
        """Store a response and evict least-recently-used entries if over the limits."""
        now = self._now()
        now_ms = _to_ms(now)
        entry = {
            "data": data,
            "created_at": now_ms,
            "stale_at": _to_ms(now + policy.stale_after),
            "expires_at": _to_ms(now + policy.expires_after),
        }
        filename = self._key_to_filename(key)
        content = json.dumps(entry, separators=(",", ":"))
        size = len(content.encode("utf-8"))

        with self._lock:
            try:
                self._dir.mkdir(parents=True, exist_ok=True)
                self._atomic_write(self._dir / filename, content)
            except OSError as e:
                logger.warning("[CACHE] Could not write %s: %s", key, e)
                return

            index = self._read_index()
            previous = index["entries"].get(key)
            if previous is not None:
                index["total_size"] -= previous["size"]
            index["entries"][key] = {"file": filename, "size": size, "accessed": now_ms}
            index["total_size"] += size

            self._evict_if_needed(index)
            self._write_index(index)

    def delete(self, key: str) -> None:
        """Delete a cache entry."""
        with self._lock:
            index = self._read_index()
            if key in index["entries"]:
                self._forget(index, key)
                self._write_index(index)

    def clear(self) -> None:
        """Clear all cache entries."""
        with self._lock:
            index = self._read_index()
            for meta in index["entries"].values():
                self._unlink(meta.get("file"))
            self._write_index(_empty_index())

    def stats(self) -> dict:
        """Get cache statistics."""
        with self._lock:
            index = self._read_index()
            return {
                "entries": len(index["entries"]),
                "total_size_bytes": index["total_size"],
                "max_entries": self._max_entries,
                "max_bytes": self._max_bytes,
                "cache_dir": str(self._dir),
            }

    # =========================================================================
    # Internals (called with lock held)
    # =========================================================================

    @staticmethod
    def _key_to_filename(key: str) -> str:
        digest = hashlib.sha256(key.encode("utf-8")).hexdigest()[:32]
        return f"{digest}.json"

    def _read_index(self) -> dict:
        """Load the index, rebuilding an empty one if missing or corrupt."""
        try:
            raw = json.loads(self._index_path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return _empty_index()
        except (OSError, ValueError) as e:
            logger.warning("[CACHE] Index unreadable, starting fresh: %s", e)
            return _empty_index()

        entries = raw.get("entries") if isinstance(raw, dict) else None
        if not isinstance(entries, dict):
            return _empty_index()

        clean: dict[str, dict] = {}
        for key, meta in entries.items():
            if (
                isinstance(meta, dict)
                and isinstance(meta.get("file"), str)
                and isinstance(meta.get("size"), int)
                and isinstance(meta.get("accessed"), (int, float))
            ):
                clean[key] = meta
            elif isinstance(meta, dict) and isinstance(meta.get("file"), str):
                logger.debug("[CACHE] Dropping malformed index entry %s", key)
                self._unlink(meta["file"])
        # Size total is derived, never trusted from disk
        return {"entries": clean, "total_size": sum(m["size"] for m in clean.values())}

    def _write_index(self, index: dict) -> None:
        try:
            self._dir.mkdir(parents=True, exist_ok=True)
            self._atomic_write(self._index_path, json.dumps(index, indent=2))
        except OSError as e:
            logger.warning("[CACHE] Could not write index: %s", e)

    def _read_payload(self, meta: dict) -> dict | None:
        try:
            payload = json.loads((self._dir / meta["file"]).read_text(encoding="utf-8"))
        except (OSError, ValueError):
            return None
        if not isinstance(payload, dict) or "data" not in payload:
            return None
        for field in ("created_at", "stale_at", "expires_at"):
            if not isinstance(payload.get(field), (int, float)):
                return None
        return payload

    def _forget(self, index: dict, key: str) -> None:
        meta = index["entries"].pop(key, None)
        if meta is None:
            return
        index["total_size"] -= meta["size"]
        self._unlink(meta["file"])

    def _unlink(self, filename: str | None) -> None:
        if not filename:
            return
        try:
            (self._dir / filename).unlink(missing_ok=True)
        except OSError as e:
            logger.debug("[CACHE] Could not remove %s: %s", filename, e)

    def _evict_if_needed(self, index: dict) -> None:
        """LRU eviction until both the entry and byte limits hold."""
        entries = index["entries"]
        if len(entries) <= self._max_entries and index["total_size"] <= self._max_bytes:
            return

        oldest_first = sorted(entries.items(), key=lambda item: item[1]["accessed"])
        evicted = 0
        for key, _meta in oldest_first:
            if len(entries) <= self._max_entries and index["total_size"] <= self._max_bytes:
                break
            self._forget(index, key)
            evicted += 1

        logger.debug(
            "[CACHE] Evicted %d entries (now %d entries, %d bytes)",
            evicted,
            len(entries),
            index["total_size"],
        )

    def _atomic_write(self, path: Path, content: str) -> None:
        fd, tmp_name = tempfile.mkstemp(dir=self._dir, prefix=".tmp-", suffix=".json")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(content)
            os.replace(tmp_name, path)
        except OSError:
            Path(tmp_name).unlink(missing_ok=True)
            raise
