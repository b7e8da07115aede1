from abc import ABC, abstractmethod

from app.models.user import CriteriaSource, UserRecord
from app.models.video import RejectionRecord, ShownRecord


class RecordStore(ABC):
    """
    Durable state touched by the curation pipeline.

    Every mutating method is a single atomic operation in the backing store,
    so callers never need their own locking.
    """

    # Users

    @abstractmethod
    async def get_user(self, user_id: str) -> UserRecord | None:
        pass

    @abstractmethod
    async def save_user(self, user: UserRecord) -> None:
        pass

    @abstractmethod
    async def update_criteria(self, user_id: str, criteria: str, updated_by: CriteriaSource) -> None:
        pass

    @abstractmethod
    async def count_users(self) -> int:
        pass

    # Shown records

    @abstractmethod
    async def get_shown_ids(self, user_id: str) -> set[str]:
        pass

    @abstractmethod
    async def get_shown_record(self, user_id: str, video_id: str) -> ShownRecord | None:
        pass

    @abstractmethod
    async def add_shown(self, user_id: str, video_ids: list[str], day: str) -> None:
        """Record videos as shown; existing records are left untouched."""

    @abstractmethod
    async def mark_rejected(self, user_id: str, video_id: str, reason: str | None, day: str) -> None:
        """Flag a video as rejected, creating its shown record if needed."""

    @abstractmethod
    async def get_rejections(self, user_id: str, limit: int) -> list[RejectionRecord]:
        """Most recent rejections first."""

    # Refresh quota

    @abstractmethod
    async def get_quota_count(self, user_id: str, day: str) -> int:
        pass

    @abstractmethod
    async def increment_quota(self, user_id: str, day: str, limit: int) -> int | None:
        """
        Increment the user's counter for ``day`` unless it already reached ``limit``.

        Returns the new count, or None when the limit was reached and nothing changed.
        """

    async def close(self) -> None:
        return None
