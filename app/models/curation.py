from pydantic import BaseModel

from app.models.video import Video


class QuotaDecision(BaseModel):
    granted: bool
    used: int
    limit: int

    @property
    def remaining(self) -> int:
        return max(0, self.limit - self.used)


class UserStats(BaseModel):
    refreshesUsed: int
    refreshesRemaining: int
    maxDaily: int


class RecommendationResult(BaseModel):
    videos: list[Video] = []
    refreshes_remaining: int | None = None
    quota_exceeded: bool = False

    def to_client(self) -> dict:
        data: dict = {"videos": [v.to_client() for v in self.videos]}
        if self.refreshes_remaining is not None:
            data["refreshesRemaining"] = self.refreshes_remaining
        return data
