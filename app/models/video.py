from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class Video(BaseModel):
    """
    Transient projection of an upstream video.

    Identity is ``id``; every other field depends on the fetch context
    (candidate listings carry a description, detail lookups carry duration
    and view count).
    """

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(serialization_alias="videoId")
    title: str = ""
    channel_title: str = Field(default="", serialization_alias="channelTitle")
    description: str = ""
    thumbnail_url: str | None = Field(default=None, serialization_alias="thumbnail")
    published_at: datetime | None = Field(default=None, serialization_alias="publishedAt")
    duration_seconds: int | None = Field(default=None, ge=0, serialization_alias="duration")
    view_count: int | None = Field(default=None, serialization_alias="viewCount")

    def to_client(self) -> dict:
        return self.model_dump(by_alias=True, mode="json", exclude_none=True)


class RejectionRecord(BaseModel):
    video_id: str
    reason: str | None = None
    shown_date: str | None = None

    def to_client(self) -> dict:
        return {"video_id": self.video_id, "rejection_reason": self.reason, "shown_date": self.shown_date}


class ShownRecord(BaseModel):
    user_id: str
    video_id: str
    shown_date: str
    was_rejected: bool = False
    rejection_reason: str | None = None
    rejected_at: float | None = None
