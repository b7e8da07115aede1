import time
from collections import defaultdict

from app.models.user import CriteriaSource, UserRecord
from app.models.video import RejectionRecord, ShownRecord
from app.services.record_store import RecordStore


class InMemoryRecordStore(RecordStore):
    """
    Process-local store for development and tests.

    Methods never await, so each one runs atomically on the event loop.
    """

    def __init__(self):
        self._users: dict[str, UserRecord] = {}
        self._shown: dict[str, dict[str, ShownRecord]] = defaultdict(dict)
        self._quota: dict[tuple[str, str], int] = {}
        self._clock = 0

    def _tick(self) -> float:
        # time.time() can repeat within a test; keep rejection order strict
        self._clock += 1
        return time.time() + self._clock * 1e-6

    async def get_user(self, user_id: str) -> UserRecord | None:
        user = self._users.get(user_id)
        return user.model_copy() if user else None

    async def save_user(self, user: UserRecord) -> None:
        self._users[user.user_id] = user.model_copy()

    async def update_criteria(self, user_id: str, criteria: str, updated_by: CriteriaSource) -> None:
        user = self._users.get(user_id)
        if user is None:
            return
        self._users[user_id] = user.model_copy(update={"criteria": criteria, "updated_by": updated_by})

    async def count_users(self) -> int:
        return len(self._users)

    async def get_shown_ids(self, user_id: str) -> set[str]:
        return set(self._shown.get(user_id, {}))

    async def get_shown_record(self, user_id: str, video_id: str) -> ShownRecord | None:
        return self._shown.get(user_id, {}).get(video_id)

    async def add_shown(self, user_id: str, video_ids: list[str], day: str) -> None:
        records = self._shown[user_id]
        for vid in video_ids:
            records.setdefault(vid, ShownRecord(user_id=user_id, video_id=vid, shown_date=day))

    async def mark_rejected(self, user_id: str, video_id: str, reason: str | None, day: str) -> None:
        records = self._shown[user_id]
        record = records.get(video_id) or ShownRecord(user_id=user_id, video_id=video_id, shown_date=day)
        records[video_id] = record.model_copy(
            update={"was_rejected": True, "rejection_reason": reason or None, "rejected_at": self._tick()}
        )

    async def get_rejections(self, user_id: str, limit: int) -> list[RejectionRecord]:
        rejected = [r for r in self._shown.get(user_id, {}).values() if r.was_rejected]
        rejected.sort(key=lambda r: r.rejected_at or 0, reverse=True)
        return [
            RejectionRecord(video_id=r.video_id, reason=r.rejection_reason, shown_date=r.shown_date)
            for r in rejected[:limit]
        ]

    async def get_quota_count(self, user_id: str, day: str) -> int:
        return self._quota.get((user_id, day), 0)

    async def increment_quota(self, user_id: str, day: str, limit: int) -> int | None:
        current = self._quota.get((user_id, day), 0)
        if current >= limit:
            return None
        self._quota[(user_id, day)] = current + 1
        return current + 1
