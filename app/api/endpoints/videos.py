from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from app.api.dependencies import get_curation_service
from app.core.config import settings
from app.services.curation.service import CurationService

router = APIRouter(prefix="/{user_id}", tags=["videos"])


class RejectRequest(BaseModel):
    reason: str | None = Field(default=None, description="Optional free-text reason for the rejection")


@router.get("/subscriptions")
async def get_subscriptions(user_id: str, service: CurationService = Depends(get_curation_service)):
    """Videos from subscriptions, past few days, no Shorts."""
    videos = await service.get_recent_subscription_videos(user_id)
    return {"videos": [v.to_client() for v in videos]}


@router.get("/recommended")
async def get_recommended(user_id: str, service: CurationService = Depends(get_curation_service)):
    result = await service.get_recommendations(user_id)
    return result.to_client()


@router.post("/recommended/refresh")
async def refresh_recommended(user_id: str, service: CurationService = Depends(get_curation_service)):
    """Curate a new set of videos, counting against the daily refresh limit."""
    result = await service.get_recommendations(user_id, refresh=True)
    if result.quota_exceeded:
        return JSONResponse(
            status_code=429,
            content={
                "error": f"Daily refresh limit reached ({settings.MAX_DAILY_REFRESHES} per day)",
                "refreshesRemaining": 0,
            },
        )
    return result.to_client()


@router.post("/video/{video_id}/reject")
async def reject_video(
    user_id: str,
    video_id: str,
    payload: RejectRequest | None = None,
    service: CurationService = Depends(get_curation_service),
):
    reason = payload.reason if payload else None
    updated = await service.reject_video(user_id, video_id, reason)
    return {"message": "Video rejected and preferences updated", "updatedCriteria": updated}
