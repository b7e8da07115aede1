import json
import time

import redis.asyncio as redis
from async_lru import alru_cache
from cachetools import TTLCache
from loguru import logger

from app.core.config import settings
from app.core.constants import QUOTA_KEY, QUOTA_KEY_TTL_SECONDS, REJECTIONS_KEY, SHOWN_KEY, USER_KEY
from app.core.security import TokenCipher, redact_token
from app.models.user import CriteriaSource, UserRecord
from app.models.video import RejectionRecord, ShownRecord
from app.services.record_store import RecordStore

# Check and increment in one step; returns -1 when the limit is already reached.
INCREMENT_QUOTA_SCRIPT = """
local current = tonumber(redis.call('GET', KEYS[1]) or '0')
if current >= tonumber(ARGV[1]) then
    return -1
end
current = redis.call('INCR', KEYS[1])
redis.call('EXPIRE', KEYS[1], ARGV[2])
return current
"""

# Upsert a shown record as rejected, keeping its original shown date.
MARK_REJECTED_SCRIPT = """
local raw = redis.call('HGET', KEYS[1], ARGV[1])
local record
if raw then
    record = cjson.decode(raw)
else
    record = {shown_date = ARGV[3]}
end
record['was_rejected'] = true
if ARGV[2] == '' then
    record['rejection_reason'] = cjson.null
else
    record['rejection_reason'] = ARGV[2]
end
record['rejected_at'] = tonumber(ARGV[4])
redis.call('HSET', KEYS[1], ARGV[1], cjson.encode(record))
redis.call('ZADD', KEYS[2], ARGV[4], ARGV[1])
return 1
"""


class RedisRecordStore(RecordStore):
    """Redis-backed store for users, shown records and refresh counters."""

    KEY_PREFIX = settings.REDIS_KEY_PREFIX

    def __init__(self, client: redis.Redis | None = None) -> None:
        self._client = client
        self._increment_quota = None
        self._mark_rejected = None
        # Negative cache for unknown users to avoid repeated Redis reads
        self._missing_users: TTLCache = TTLCache(maxsize=10000, ttl=300)
        if client is None and not settings.REDIS_URL:
            logger.warning("REDIS_URL is not set. Record storage will fail until a Redis instance is configured.")

        if not settings.TOKEN_SALT or settings.TOKEN_SALT == "change-me":
            logger.warning(
                "TOKEN_SALT is missing or using the default placeholder. Set a strong value to secure tokens."
            )
        self._cipher = TokenCipher(settings.TOKEN_SALT)

    async def _get_client(self) -> redis.Redis:
        if self._client is None:
            logger.info("Creating shared Redis client")
            self._client = redis.from_url(
                settings.REDIS_URL,
                decode_responses=True,
                encoding="utf-8",
                socket_connect_timeout=5,
                socket_timeout=5,
                max_connections=settings.REDIS_MAX_CONNECTIONS,
                health_check_interval=30,
                socket_keepalive=True,
            )
        if self._increment_quota is None:
            self._increment_quota = self._client.register_script(INCREMENT_QUOTA_SCRIPT)
            self._mark_rejected = self._client.register_script(MARK_REJECTED_SCRIPT)
        return self._client

    async def close(self) -> None:
        """Close and disconnect the shared Redis client (call on shutdown)."""
        if self._client is None:
            return
        try:
            logger.info("Closing shared Redis client")
            await self._client.aclose()
        except Exception as e:
            logger.debug(f"Silent failure closing redis client: {e}")
        finally:
            self._client = None
            self._increment_quota = None
            self._mark_rejected = None

    def _key(self, template: str, **kwargs) -> str:
        return f"{self.KEY_PREFIX}{template.format(**kwargs)}"

    def _invalidate_user(self, user_id: str) -> None:
        try:
            self.get_user.cache_invalidate(user_id)
        except KeyError:
            pass
        except Exception as e:
            logger.warning(f"Targeted cache invalidation failed: {e}. Falling back to clearing cache.")
            self.get_user.cache_clear()
        self._missing_users.pop(user_id, None)

    # Users

    @alru_cache(maxsize=2000, ttl=300)
    async def get_user(self, user_id: str) -> UserRecord | None:
        if user_id in self._missing_users:
            logger.debug(f"[REDIS] Negative cache hit for missing user {redact_token(user_id)}")
            return None

        client = await self._get_client()
        data = await client.hgetall(self._key(USER_KEY, user_id=user_id))
        if not data:
            self._missing_users[user_id] = True
            return None

        if data.get("access_token"):
            try:
                data["access_token"] = self._cipher.decrypt(data["access_token"])
            except Exception as e:
                logger.warning(f"Decryption failed for access token of {redact_token(user_id)}: {e}")
                # Forces the re-authentication path
                data["access_token"] = None
        return UserRecord.model_validate(data)

    async def save_user(self, user: UserRecord) -> None:
        mapping = {
            "user_id": user.user_id,
            "email": user.email,
            "display_name": user.display_name,
            "criteria": user.criteria,
            "updated_by": user.updated_by,
            "created_at": user.created_at.isoformat(),
            "access_token": self._cipher.encrypt(user.access_token) if user.access_token else "",
        }
        client = await self._get_client()
        await client.hset(self._key(USER_KEY, user_id=user.user_id), mapping=mapping)
        self._invalidate_user(user.user_id)

    async def update_criteria(self, user_id: str, criteria: str, updated_by: CriteriaSource) -> None:
        client = await self._get_client()
        await client.hset(
            self._key(USER_KEY, user_id=user_id), mapping={"criteria": criteria, "updated_by": updated_by}
        )
        self._invalidate_user(user_id)

    async def count_users(self) -> int:
        client = await self._get_client()
        total = 0
        async for _ in client.scan_iter(match=self._key(USER_KEY, user_id="*"), count=500):
            total += 1
        return total

    # Shown records

    async def get_shown_ids(self, user_id: str) -> set[str]:
        client = await self._get_client()
        return set(await client.hkeys(self._key(SHOWN_KEY, user_id=user_id)))

    async def get_shown_record(self, user_id: str, video_id: str) -> ShownRecord | None:
        client = await self._get_client()
        raw = await client.hget(self._key(SHOWN_KEY, user_id=user_id), video_id)
        if not raw:
            return None
        return ShownRecord(user_id=user_id, video_id=video_id, **json.loads(raw))

    async def add_shown(self, user_id: str, video_ids: list[str], day: str) -> None:
        if not video_ids:
            return
        client = await self._get_client()
        key = self._key(SHOWN_KEY, user_id=user_id)
        payload = json.dumps({"shown_date": day, "was_rejected": False, "rejection_reason": None})
        async with client.pipeline(transaction=True) as pipe:
            for vid in video_ids:
                pipe.hsetnx(key, vid, payload)
            await pipe.execute()

    async def mark_rejected(self, user_id: str, video_id: str, reason: str | None, day: str) -> None:
        await self._get_client()
        await self._mark_rejected(
            keys=[self._key(SHOWN_KEY, user_id=user_id), self._key(REJECTIONS_KEY, user_id=user_id)],
            args=[video_id, reason or "", day, time.time()],
        )

    async def get_rejections(self, user_id: str, limit: int) -> list[RejectionRecord]:
        client = await self._get_client()
        video_ids = await client.zrevrange(self._key(REJECTIONS_KEY, user_id=user_id), 0, limit - 1)
        if not video_ids:
            return []
        raw_records = await client.hmget(self._key(SHOWN_KEY, user_id=user_id), video_ids)

        rejections = []
        for vid, raw in zip(video_ids, raw_records):
            record = json.loads(raw) if raw else {}
            rejections.append(
                RejectionRecord(video_id=vid, reason=record.get("rejection_reason"), shown_date=record.get("shown_date"))
            )
        return rejections

    # Refresh quota

    async def get_quota_count(self, user_id: str, day: str) -> int:
        client = await self._get_client()
        value = await client.get(self._key(QUOTA_KEY, user_id=user_id, day=day))
        return int(value) if value else 0

    async def increment_quota(self, user_id: str, day: str, limit: int) -> int | None:
        await self._get_client()
        count = await self._increment_quota(
            keys=[self._key(QUOTA_KEY, user_id=user_id, day=day)],
            args=[limit, QUOTA_KEY_TTL_SECONDS],
        )
        count = int(count)
        return None if count < 0 else count
