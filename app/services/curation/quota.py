from datetime import datetime, timezone

from loguru import logger

from app.core.config import settings
from app.core.security import redact_token
from app.models.curation import QuotaDecision, UserStats
from app.services.record_store import RecordStore


def utc_today() -> str:
    return datetime.now(timezone.utc).date().isoformat()


class QuotaGate:
    """Per-user, per-UTC-day budget of recommendation refreshes."""

    def __init__(self, store: RecordStore, daily_limit: int = settings.MAX_DAILY_REFRESHES):
        self.store = store
        self.daily_limit = daily_limit

    async def try_consume(self, user_id: str) -> QuotaDecision:
        day = utc_today()
        count = await self.store.increment_quota(user_id, day, self.daily_limit)
        if count is None:
            logger.info(f"[{redact_token(user_id)}] Daily refresh limit reached ({self.daily_limit})")
            used = await self.store.get_quota_count(user_id, day)
            return QuotaDecision(granted=False, used=used, limit=self.daily_limit)
        return QuotaDecision(granted=True, used=count, limit=self.daily_limit)

    async def used(self, user_id: str) -> int:
        return await self.store.get_quota_count(user_id, utc_today())

    async def remaining(self, user_id: str) -> int:
        return max(0, self.daily_limit - await self.used(user_id))

    async def stats(self, user_id: str) -> UserStats:
        used = await self.used(user_id)
        return UserStats(
            refreshesUsed=used,
            refreshesRemaining=max(0, self.daily_limit - used),
            maxDaily=self.daily_limit,
        )
