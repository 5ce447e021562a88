"""Tests for the per-scope dictionary cache manager.

Covers:
- Lazy build and cache hits returning the same TermIndex instance
- TTL expiry measured from build time
- Explicit invalidation and the mutation helper
- Single-flight builds under concurrent reads
- Invalidation racing an in-flight build
- Store failures propagating without stale fallback
- Cancellation of a waiting request
- Scope isolation
"""

import asyncio

import pytest
from termshield.core.exceptions import StoreUnavailableError
from termshield.services.dictionary.cache_manager import (
    DictionaryCacheManager,
    invalidate_on_success,
)

from tests.dictionary_helpers import make_rows, settle

TTL = 300.0


@pytest.fixture
def manager(fake_store, clock):
    return DictionaryCacheManager(fake_store, ttl_seconds=TTL, clock=clock)


@pytest.fixture
def hello_rows():
    return make_rows([("dict-1", {"en": "Hello", "es": "Hola"})])


class TestLazyBuild:
    """Tests for building on first use and serving cache hits."""

    @pytest.mark.asyncio
    async def test_first_get_builds_from_store(self, manager, fake_store, scope, hello_rows):
        fake_store.set_rows(scope, hello_rows)

        index = await manager.get(scope)

        assert fake_store.calls_for(scope) == 1
        assert index.term_owner["hola"] == "dict-1"
        assert index.built_at == 1000.0

    @pytest.mark.asyncio
    async def test_second_get_returns_same_instance(self, manager, fake_store, scope, hello_rows):
        fake_store.set_rows(scope, hello_rows)

        first = await manager.get(scope)
        second = await manager.get(scope)

        assert first is second
        assert fake_store.calls_for(scope) == 1

    @pytest.mark.asyncio
    async def test_scope_without_terms_yields_empty_index(self, manager, scope):
        index = await manager.get(scope)

        assert index.is_empty

    def test_rejects_non_positive_ttl(self, fake_store):
        with pytest.raises(ValueError):
            DictionaryCacheManager(fake_store, ttl_seconds=0)


class TestTTLExpiry:
    """Tests for wall-clock TTL measured from build time."""

    @pytest.mark.asyncio
    async def test_not_rebuilt_just_before_ttl(self, manager, fake_store, clock, scope):
        first = await manager.get(scope)

        clock.advance(TTL - 0.001)
        second = await manager.get(scope)

        assert second is first
        assert fake_store.calls_for(scope) == 1

    @pytest.mark.asyncio
    async def test_rebuilt_just_after_ttl(self, manager, fake_store, clock, scope, hello_rows):
        first = await manager.get(scope)
        assert first.is_empty

        # Side-channel change that bypassed invalidation
        fake_store.set_rows(scope, hello_rows)
        clock.advance(TTL + 0.001)
        second = await manager.get(scope)

        assert second is not first
        assert fake_store.calls_for(scope) == 2
        assert second.term_owner["hello"] == "dict-1"
        assert second.built_at == clock.now

    @pytest.mark.asyncio
    async def test_expired_entry_is_not_served_when_rebuild_fails(
        self, manager, fake_store, clock, scope, hello_rows
    ):
        fake_store.set_rows(scope, hello_rows)
        await manager.get(scope)

        clock.advance(TTL + 1)
        fake_store.fail_with = StoreUnavailableError(scope.key, "connection refused")

        with pytest.raises(StoreUnavailableError):
            await manager.get(scope)


class TestInvalidation:
    """Tests for explicit, mutation-triggered invalidation."""

    @pytest.mark.asyncio
    async def test_invalidate_forces_rebuild_within_ttl(
        self, manager, fake_store, clock, scope, hello_rows
    ):
        first = await manager.get(scope)
        fake_store.set_rows(scope, hello_rows)

        clock.advance(1)
        manager.invalidate(scope)
        second = await manager.get(scope)

        assert second is not first
        assert fake_store.calls_for(scope) == 2
        assert second.term_owner["hello"] == "dict-1"

    @pytest.mark.asyncio
    async def test_invalidate_only_affects_its_scope(
        self, manager, fake_store, scope, other_scope
    ):
        await manager.get(scope)
        other = await manager.get(other_scope)

        manager.invalidate(scope)
        await manager.get(scope)

        assert await manager.get(other_scope) is other
        assert fake_store.calls_for(scope) == 2
        assert fake_store.calls_for(other_scope) == 1

    def test_invalidate_unknown_scope_is_a_no_op(self, manager, scope):
        manager.invalidate(scope)

        assert manager.get_stats()["scope_count"] == 0

    @pytest.mark.asyncio
    async def test_invalidate_on_success_invalidates_after_mutation(
        self, manager, fake_store, scope, hello_rows
    ):
        await manager.get(scope)

        with invalidate_on_success(manager, scope):
            fake_store.set_rows(scope, hello_rows)

        index = await manager.get(scope)
        assert fake_store.calls_for(scope) == 2
        assert "hello" in index.term_owner

    @pytest.mark.asyncio
    async def test_invalidate_on_success_skips_failed_mutation(
        self, manager, fake_store, scope
    ):
        first = await manager.get(scope)

        with pytest.raises(RuntimeError, match="constraint"):
            with invalidate_on_success(manager, scope):
                raise RuntimeError("unique constraint failed")

        assert await manager.get(scope) is first
        assert fake_store.calls_for(scope) == 1


class TestConcurrency:
    """Tests for single-flight builds, the invalidate/build race and isolation."""

    @pytest.mark.asyncio
    async def test_concurrent_cold_reads_share_one_build(
        self, manager, fake_store, scope, hello_rows
    ):
        fake_store.set_rows(scope, hello_rows)
        gate = fake_store.hold(scope)

        tasks = [asyncio.create_task(manager.get(scope)) for _ in range(5)]
        await settle()
        gate.set()
        results = await asyncio.gather(*tasks)

        assert fake_store.calls_for(scope) == 1
        assert all(result is results[0] for result in results)

    @pytest.mark.asyncio
    async def test_build_finishing_after_invalidate_is_not_cached(
        self, manager, fake_store, scope, hello_rows
    ):
        gate = fake_store.hold(scope)
        in_flight = asyncio.create_task(manager.get(scope))
        await settle()
        assert fake_store.calls_for(scope) == 1

        # Mutation lands while the pre-mutation read is still in flight
        fake_store.set_rows(scope, hello_rows)
        manager.invalidate(scope)
        gate.set()

        stale = await in_flight
        assert stale.is_empty

        fresh = await manager.get(scope)
        assert fresh is not stale
        assert "hello" in fresh.term_owner
        assert fake_store.calls_for(scope) == 2
        assert manager.get_stats()["discarded_builds"] == 1

    @pytest.mark.asyncio
    async def test_read_after_invalidate_does_not_join_stale_build(
        self, manager, fake_store, scope, hello_rows
    ):
        gate = fake_store.hold(scope)
        before = asyncio.create_task(manager.get(scope))
        await settle()

        fake_store.set_rows(scope, hello_rows)
        manager.invalidate(scope)
        after = asyncio.create_task(manager.get(scope))
        await settle()
        gate.set()

        old_index, new_index = await asyncio.gather(before, after)

        assert old_index.is_empty
        assert "hello" in new_index.term_owner
        assert fake_store.calls_for(scope) == 2
        assert await manager.get(scope) is new_index

    @pytest.mark.asyncio
    async def test_slow_scope_does_not_block_other_scope(
        self, manager, fake_store, scope, other_scope, hello_rows
    ):
        fake_store.set_rows(other_scope, hello_rows)
        gate = fake_store.hold(scope)
        slow = asyncio.create_task(manager.get(scope))
        await settle()

        other = await asyncio.wait_for(manager.get(other_scope), timeout=1.0)

        assert "hello" in other.term_owner
        assert not slow.done()
        gate.set()
        await slow

    @pytest.mark.asyncio
    async def test_cancelled_request_lets_build_populate_cache(
        self, manager, fake_store, scope, hello_rows
    ):
        fake_store.set_rows(scope, hello_rows)
        gate = fake_store.hold(scope)
        request = asyncio.create_task(manager.get(scope))
        await settle()

        request.cancel()
        with pytest.raises(asyncio.CancelledError):
            await request

        gate.set()
        await settle()

        index = await manager.get(scope)
        assert "hello" in index.term_owner
        assert fake_store.calls_for(scope) == 1

    @pytest.mark.asyncio
    async def test_failed_build_reaches_every_waiter_then_retries(
        self, manager, fake_store, scope, hello_rows
    ):
        fake_store.set_rows(scope, hello_rows)
        fake_store.fail_with = StoreUnavailableError(scope.key, "disk I/O error")
        gate = fake_store.hold(scope)

        tasks = [asyncio.create_task(manager.get(scope)) for _ in range(3)]
        await settle()
        gate.set()
        results = await asyncio.gather(*tasks, return_exceptions=True)

        assert all(isinstance(r, StoreUnavailableError) for r in results)
        assert fake_store.calls_for(scope) == 1

        fake_store.fail_with = None
        index = await manager.get(scope)
        assert "hello" in index.term_owner
        assert fake_store.calls_for(scope) == 2


class TestStatsAndClear:
    """Tests for get_stats and clear."""

    @pytest.mark.asyncio
    async def test_stats_report_cached_scopes(
        self, manager, fake_store, scope, other_scope, hello_rows
    ):
        fake_store.set_rows(scope, hello_rows)
        await manager.get(scope)
        await manager.get(scope)
        await manager.get(other_scope)

        stats = manager.get_stats()

        assert stats["scope_count"] == 2
        assert {"key": scope.key, "term_count": 2, "built_at": 1000.0} in stats["scopes"]
        assert stats["hits"] == 1
        assert stats["misses"] == 2
        assert stats["builds"] == 2
        assert stats["ttl_seconds"] == TTL

    def test_stats_empty_when_nothing_cached(self, manager):
        stats = manager.get_stats()

        assert stats["scope_count"] == 0
        assert stats["scopes"] == []
        assert stats["hit_rate"] == 0.0

    @pytest.mark.asyncio
    async def test_clear_drops_all_scopes(self, manager, fake_store, scope, other_scope):
        await manager.get(scope)
        await manager.get(other_scope)

        manager.clear()

        assert manager.get_stats()["scope_count"] == 0
        await manager.get(scope)
        assert fake_store.calls_for(scope) == 2
