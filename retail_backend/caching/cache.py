# caching/cache.py

"""
======================================================
PATH: caching/cache.py
======================================================
LEDGER CACHE (read-through cache for listings and detail reads)

Purpose:
- Thin, explicit wrapper around a Django cache backend (settings.CACHES).
- Adds what the backend API lacks: prefix deletion and hit/miss stats.

Rules:
- The cache is advisory. A backend failure is logged and treated as a miss
  (reads) or a no-op (writes); it never fails a business request.
- TTLs are clamped to [LEDGER_CACHE.TTL_MIN, LEDGER_CACHE.TTL_MAX].
- Keys are "<namespace>:<kind>:<rest>". Prefix deletion works on
  "<namespace>:" and "<namespace>:<kind>:".
- Invalidation is generation based: every stored entry is tagged with the
  current generation of its namespace and of its kind, both kept in the
  backend under "__gen__:<scope>". delete_by_prefix() bumps the generation
  with the backend's atomic incr(), so entries written by any worker under
  the old generation are never read again.
- A per-namespace index ("__keys__:<namespace>") lists stored entries for
  stats, keys() and memory cleanup only. A lost index update costs memory
  until the TTL expires, never a stale read.
- Instances are constructed explicitly and injected; get_ledger_cache() only
  builds the process default from settings.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable

from django.conf import settings
from django.core.cache import caches

logger = logging.getLogger("caching")

_MISSING = object()
INDEX_PREFIX = "__keys__:"
GENERATION_PREFIX = "__gen__:"
RESERVED_PREFIXES = (INDEX_PREFIX, GENERATION_PREFIX)
TAG_SEPARATOR = "|"


@dataclass
class CacheStats:
    hits: int = 0
    misses: int = 0
    sets: int = 0
    deletes: int = 0

    def as_dict(self) -> dict:
        lookups = self.hits + self.misses
        return {
            "hits": self.hits,
            "misses": self.misses,
            "sets": self.sets,
            "deletes": self.deletes,
            "hit_rate": round(self.hits / lookups, 4) if lookups else 0.0,
        }


def _namespace(key: str) -> str:
    return key.split(":", 1)[0]


def _scopes(key: str) -> tuple[str, str]:
    """(namespace, namespace:kind) generation scopes owning `key`."""
    parts = key.split(":", 2)
    kind = parts[1] if len(parts) > 1 else ""
    return parts[0], f"{parts[0]}:{kind}"


def _logical(stored_key: str) -> str:
    return stored_key.rpartition(TAG_SEPARATOR)[0]


def _generation_seed() -> int:
    # Millisecond clock: a counter lost to eviction restarts above every value it held.
    return int(time.time() * 1000)


class LedgerCache:
    """
    Key/value cache with TTL + prefix invalidation over a Django cache backend.
    """

    def __init__(self, backend=None, *, default_ttl: int = 300, ttl_min: int = 300, ttl_max: int = 900):
        self.backend = backend if backend is not None else caches["default"]
        self.ttl_min = int(ttl_min)
        self.ttl_max = max(int(ttl_max), self.ttl_min)
        self.default_ttl = self.clamp_ttl(default_ttl)
        self._stats = CacheStats()
        self._lock = threading.Lock()

    @classmethod
    def from_settings(cls) -> "LedgerCache":
        conf = getattr(settings, "LEDGER_CACHE", {}) or {}
        return cls(
            caches[conf.get("ALIAS", "default")],
            default_ttl=conf.get("DEFAULT_TTL", 300),
            ttl_min=conf.get("TTL_MIN", 300),
            ttl_max=conf.get("TTL_MAX", 900),
        )

    # -----------------------------
    # TTL
    # -----------------------------
    def clamp_ttl(self, ttl: int | None) -> int:
        if ttl is None:
            return getattr(self, "default_ttl", self.ttl_min)
        return max(self.ttl_min, min(int(ttl), self.ttl_max))

    def ttl_for(self, data_type: str) -> int:
        ttls = (getattr(settings, "LEDGER_CACHE", {}) or {}).get("TTLS", {})
        return self.clamp_ttl(ttls.get(data_type, self.default_ttl))

    # -----------------------------
    # Generations
    # -----------------------------
    def _generation_key(self, scope: str) -> str:
        return f"{GENERATION_PREFIX}{scope}"

    def _generations(self, scopes) -> dict[str, int]:
        gen_keys = {scope: self._generation_key(scope) for scope in scopes}
        found = self.backend.get_many(list(gen_keys.values()))

        generations = {}
        for scope, gen_key in gen_keys.items():
            value = found.get(gen_key)
            if value is None:
                # add() is a no-op when another worker seeded the counter first.
                self.backend.add(gen_key, _generation_seed(), None)
                value = self.backend.get(gen_key)
            generations[scope] = int(value)
        return generations

    def _bump_generation(self, scope: str) -> None:
        gen_key = self._generation_key(scope)
        try:
            self.backend.incr(gen_key)
        except ValueError:
            # Counter never seeded (or evicted): a fresh seed is already a new generation.
            if not self.backend.add(gen_key, _generation_seed(), None):
                self.backend.incr(gen_key)

    def _stored_key(self, key: str, generations: dict[str, int] | None = None) -> str:
        ns, kind = _scopes(key)
        if generations is None:
            generations = self._generations((ns, kind))
        return f"{key}{TAG_SEPARATOR}{generations[ns]}.{generations[kind]}"

    def _live(self, stored_keys) -> set[str]:
        stored_keys = set(stored_keys)
        scopes = {scope for stored in stored_keys for scope in _scopes(_logical(stored))}
        generations = self._generations(scopes) if scopes else {}
        return {s for s in stored_keys if s == self._stored_key(_logical(s), generations)}

    # -----------------------------
    # Key index (per namespace)
    # -----------------------------
    def _index_key(self, namespace: str) -> str:
        return f"{INDEX_PREFIX}{namespace}"

    def _read_index(self, namespace: str) -> set[str]:
        return set(self.backend.get(self._index_key(namespace)) or ())

    def _write_index(self, namespace: str, keys: set[str]) -> None:
        # The index outlives the entries it lists; stale names are pruned on delete.
        self.backend.set(self._index_key(namespace), sorted(keys), None)

    def _index_add(self, stored_key: str) -> None:
        ns = _namespace(stored_key)
        with self._lock:
            keys = self._read_index(ns)
            if stored_key not in keys:
                keys.add(stored_key)
                self._write_index(ns, keys)

    def _index_discard(self, keys_to_drop: set[str]) -> None:
        by_ns: dict[str, set[str]] = {}
        for key in keys_to_drop:
            by_ns.setdefault(_namespace(key), set()).add(key)
        with self._lock:
            for ns, dropped in by_ns.items():
                keys = self._read_index(ns) - dropped
                self._write_index(ns, keys)

    # -----------------------------
    # Public API
    # -----------------------------
    def get(self, key: str, default: Any = None) -> Any:
        try:
            value = self.backend.get(self._stored_key(key), _MISSING)
        except Exception:
            logger.warning("Cache get failed", extra={"cache_key": key}, exc_info=True)
            value = _MISSING

        if value is _MISSING:
            self._stats.misses += 1
            return default

        self._stats.hits += 1
        return value

    def set(self, key: str, value: Any, ttl: int | None = None) -> bool:
        if key.startswith(RESERVED_PREFIXES):
            raise ValueError(f"Cache keys may not start with {RESERVED_PREFIXES!r}")
        try:
            stored = self._stored_key(key)
            self.backend.set(stored, value, self.clamp_ttl(ttl))
            self._index_add(stored)
        except Exception:
            logger.warning("Cache set failed", extra={"cache_key": key}, exc_info=True)
            return False

        self._stats.sets += 1
        return True

    def delete(self, key: str) -> bool:
        try:
            stored = self._stored_key(key)
            self.backend.delete(stored)
            self._index_discard({stored})
        except Exception:
            logger.warning("Cache delete failed", extra={"cache_key": key}, exc_info=True)
            return False

        self._stats.deletes += 1
        return True

    def delete_by_prefix(self, prefix: str) -> int:
        """
        Invalidate every key starting with `prefix` ("<namespace>:" or
        "<namespace>:<kind>:"). Returns the number of live entries removed.
        """
        scope = prefix.rstrip(":")
        if not scope or scope.count(":") > 1:
            raise ValueError(f"Unsupported cache prefix: {prefix!r}")

        ns = _namespace(prefix)
        try:
            matched = {k for k in self._read_index(ns) if _logical(k).startswith(prefix)}
            live = self._live(matched)
            self._bump_generation(scope)
            if matched:
                self.backend.delete_many(list(matched))
                self._index_discard(matched)
        except Exception:
            logger.warning("Cache prefix delete failed", extra={"cache_prefix": prefix}, exc_info=True)
            return 0

        self._stats.deletes += len(live)
        return len(live)

    def get_or_set(self, key: str, compute: Callable[[], Any], ttl: int | None = None) -> Any:
        value = self.get(key, _MISSING)
        if value is not _MISSING:
            return value
        value = compute()
        self.set(key, value, ttl)
        return value

    def namespaces(self) -> list[str]:
        from caching.router import DataType

        return [data_type.value for data_type in DataType]

    def keys(self, namespace: str | None = None) -> list[str]:
        """Live logical keys, optionally limited to one namespace."""
        stored: set[str] = set()
        for ns in ([namespace] if namespace is not None else self.namespaces()):
            stored |= self._read_index(ns)
        return sorted(_logical(k) for k in self._live(stored))

    def clear(self) -> int:
        """
        Drop every ledger namespace. Returns the number of live entries removed.
        """
        removed = sum(self.delete_by_prefix(f"{ns}:") for ns in self.namespaces())
        logger.info("Ledger cache flushed", extra={"keys_removed": removed})
        return removed

    def stats(self) -> dict:
        data = self._stats.as_dict()
        data["total_keys"] = len(self.keys())
        data["ttl"] = {"default": self.default_ttl, "min": self.ttl_min, "max": self.ttl_max}
        return data

    def reset_stats(self) -> None:
        self._stats = CacheStats()


_default_cache: LedgerCache | None = None
_default_lock = threading.Lock()


def get_ledger_cache() -> LedgerCache:
    """
    Process-wide default instance built from settings.LEDGER_CACHE.
    """
    global _default_cache
    with _default_lock:
        if _default_cache is None:
            _default_cache = LedgerCache.from_settings()
        return _default_cache
