"""
Unit tests for QuotaGate against the in-memory store.
"""
import asyncio

from app.services.curation.quota import QuotaGate, utc_today


class TestQuotaGate:
    async def test_five_grants_then_denial(self, store):
        gate = QuotaGate(store, daily_limit=5)

        decisions = [await gate.try_consume("u1") for _ in range(5)]

        assert [d.granted for d in decisions] == [True] * 5
        assert [d.used for d in decisions] == [1, 2, 3, 4, 5]

        denied = await gate.try_consume("u1")
        assert not denied.granted
        assert denied.remaining == 0
        assert await gate.remaining("u1") == 0
        assert await store.get_quota_count("u1", utc_today()) == 5

    async def test_users_have_separate_budgets(self, store):
        gate = QuotaGate(store, daily_limit=1)

        assert (await gate.try_consume("u1")).granted
        assert (await gate.try_consume("u2")).granted
        assert not (await gate.try_consume("u1")).granted

    async def test_concurrent_consumers_never_exceed_limit(self, store):
        gate = QuotaGate(store, daily_limit=5)

        decisions = await asyncio.gather(*(gate.try_consume("u1") for _ in range(12)))

        assert sum(d.granted for d in decisions) == 5
        assert await gate.used("u1") == 5

    async def test_stats(self, store):
        gate = QuotaGate(store, daily_limit=5)
        await gate.try_consume("u1")
        await gate.try_consume("u1")

        stats = await gate.stats("u1")

        assert stats.refreshesUsed == 2
        assert stats.refreshesRemaining == 3
        assert stats.maxDaily == 5
