"""Per-scope cache of dictionary term indexes.

Each scope holds at most one TermIndex, built lazily from the dictionary
store and dropped after a TTL or on explicit invalidation.

Concurrency model (one event loop):
- Builds are single-flight: concurrent ``get`` calls for a cold scope share
  one build task, so they all observe the same TermIndex instance.
- Every scope carries a generation counter bumped by ``invalidate``. A build
  remembers the generation it started under and only stores its result if no
  invalidation happened meanwhile; otherwise the result is still returned to
  the requests already waiting on it but is not cached.
- Waiters are shielded from the build task, so cancelling a request never
  cancels a build other requests (or the cache) may still use.
- Scopes share no state, so a slow build for one scope never delays another.
"""

import asyncio
import logging
import time
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterator, Optional

from termshield.metrics.dictionary_metrics import (
    dictionary_cache_build_duration_seconds,
    dictionary_cache_builds_total,
    dictionary_cache_invalidations_total,
    dictionary_cache_lookups_total,
)
from termshield.models.dictionary import DictionaryScope
from termshield.services.dictionary.store import DictionaryStore
from termshield.services.dictionary.term_index import TermIndex, build_term_index

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 300.0


@dataclass
class _ScopeState:
    """Bookkeeping for one scope."""

    index: Optional[TermIndex] = None
    generation: int = 0
    build_task: Optional["asyncio.Task[TermIndex]"] = None


class DictionaryCacheManager:
    """Lazily built, TTL-bound, invalidatable term indexes keyed by scope."""

    def __init__(
        self,
        store: DictionaryStore,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
    ):
        """Initialize the cache manager.

        Args:
            store: Source of truth for dictionary rows
            ttl_seconds: Lifetime of a built index, measured from its build time
            clock: Wall-clock source in seconds (injectable for tests)
        """
        if ttl_seconds <= 0:
            raise ValueError(f"ttl_seconds must be greater than 0, got {ttl_seconds}")

        self._store = store
        self._ttl_seconds = ttl_seconds
        self._clock = clock
        self._states: Dict[str, _ScopeState] = {}

        # Statistics
        self._hits = 0
        self._misses = 0
        self._expirations = 0
        self._builds = 0
        self._discarded_builds = 0
        self._failed_builds = 0

        logger.info(f"DictionaryCacheManager initialized: ttl={ttl_seconds}s")

    @property
    def ttl_seconds(self) -> float:
        return self._ttl_seconds

    def _is_expired(self, index: TermIndex) -> bool:
        return (self._clock() - index.built_at) > self._ttl_seconds

    async def get(self, scope: DictionaryScope) -> TermIndex:
        """Return a usable TermIndex for ``scope``, building it if needed.

        Raises:
            StoreUnavailableError: If the store read fails during a build.
                A previously cached index is never served in its place.
        """
        state = self._states.setdefault(scope.key, _ScopeState())

        index = state.index
        if index is not None:
            if not self._is_expired(index):
                self._hits += 1
                dictionary_cache_lookups_total.labels(result="hit").inc()
                return index
            state.index = None
            self._expirations += 1
            dictionary_cache_lookups_total.labels(result="expired").inc()
            logger.debug(f"Dictionary cache expired for scope {scope.key}")
        else:
            self._misses += 1
            dictionary_cache_lookups_total.labels(result="miss").inc()

        task = state.build_task
        if task is None:
            task = asyncio.ensure_future(self._build(scope, state, state.generation))
            task.add_done_callback(
                lambda finished: self._on_build_done(scope, state, finished)
            )
            state.build_task = task

        return await asyncio.shield(task)

    async def _build(
        self, scope: DictionaryScope, state: _ScopeState, generation: int
    ) -> TermIndex:
        start_time = time.perf_counter()
        try:
            rows = await self._store.fetch_rows(scope)
        except Exception:
            self._failed_builds += 1
            dictionary_cache_builds_total.labels(outcome="error").inc()
            raise
        finally:
            dictionary_cache_build_duration_seconds.observe(
                max(0.0, time.perf_counter() - start_time)
            )

        index = build_term_index(rows, built_at=self._clock())
        self._builds += 1

        if state.generation != generation:
            # Invalidated while the store read was in flight
            self._discarded_builds += 1
            dictionary_cache_builds_total.labels(outcome="discarded").inc()
            logger.info(
                f"Discarding dictionary index for scope {scope.key}: "
                f"invalidated during build (generation {generation} -> {state.generation})"
            )
            return index

        state.index = index
        dictionary_cache_builds_total.labels(outcome="success").inc()
        logger.info(
            f"Built dictionary index for scope {scope.key}: "
            f"{index.term_count} terms from {len(rows)} rows"
        )
        return index

    def _on_build_done(
        self,
        scope: DictionaryScope,
        state: _ScopeState,
        task: "asyncio.Task[TermIndex]",
    ) -> None:
        if state.build_task is task:
            state.build_task = None
        if task.cancelled():
            return
        # Retrieve the exception so it is not reported as unhandled when
        # every waiting request was cancelled before the build failed.
        exc = task.exception()
        if exc is not None:
            logger.error(f"Dictionary index build failed for scope {scope.key}: {exc}")

    def invalidate(self, scope: DictionaryScope) -> None:
        """Drop the cached index for ``scope``.

        The next ``get`` rebuilds from the store. Builds already in flight
        still answer the requests waiting on them but will not repopulate the
        cache.
        """
        state = self._states.get(scope.key)
        dictionary_cache_invalidations_total.inc()
        if state is None:
            return
        state.generation += 1
        state.index = None
        state.build_task = None
        logger.info(
            f"Invalidated dictionary cache for scope {scope.key} "
            f"(generation {state.generation})"
        )

    def clear(self) -> None:
        """Drop every cached index."""
        for state in self._states.values():
            state.generation += 1
            state.index = None
            state.build_task = None
        self._states.clear()
        self._hits = 0
        self._misses = 0
        self._expirations = 0
        self._builds = 0
        self._discarded_builds = 0
        self._failed_builds = 0
        logger.info("Dictionary cache cleared")

    def get_stats(self) -> Dict[str, Any]:
        """Get cache statistics.

        Returns:
            Dict with cached scope count, per-scope term counts and build
            times, and lookup/build counters
        """
        scopes = [
            {
                "key": key,
                "term_count": state.index.term_count,
                "built_at": state.index.built_at,
            }
            for key, state in self._states.items()
            if state.index is not None
        ]
        total = self._hits + self._misses + self._expirations
        return {
            "scope_count": len(scopes),
            "scopes": scopes,
            "hits": self._hits,
            "misses": self._misses,
            "expirations": self._expirations,
            "hit_rate": self._hits / total if total > 0 else 0.0,
            "builds": self._builds,
            "discarded_builds": self._discarded_builds,
            "failed_builds": self._failed_builds,
            "ttl_seconds": self._ttl_seconds,
        }


@contextmanager
def invalidate_on_success(
    manager: DictionaryCacheManager, scope: DictionaryScope
) -> Iterator[None]:
    """Invalidate ``scope`` once the wrapped dictionary mutation succeeds.

    Example:
        with invalidate_on_success(cache_manager, scope):
            repository.update_entry(...)

    If the block raises, the exception propagates and the cache is left as is.
    """
    yield
    manager.invalidate(scope)
