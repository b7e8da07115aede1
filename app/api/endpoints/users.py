from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from app.api.dependencies import get_curation_service, require_registration_secret
from app.services.curation.service import CurationService

router = APIRouter(tags=["users"])


class RegisterRequest(BaseModel):
    user_id: str = Field(description="Stable account id issued by the identity provider")
    access_token: str = Field(description="OAuth access token with YouTube read scope")
    email: str = ""
    display_name: str = ""


class SettingsUpdate(BaseModel):
    curationCriteria: str | None = None


@router.post("/users", status_code=201, dependencies=[Depends(require_registration_secret)])
async def register_user(payload: RegisterRequest, service: CurationService = Depends(get_curation_service)):
    """
    Called by the sign-in layer once it holds a valid access token.

    Replaces the stored token of an existing user, so deployments set
    REGISTRATION_SECRET and keep the route behind that layer.
    """
    user = await service.register_user(payload.user_id, payload.access_token, payload.email, payload.display_name)
    return {"user_id": user.user_id, "curationCriteria": user.criteria}


@router.get("/{user_id}/user/settings")
async def get_settings(user_id: str, service: CurationService = Depends(get_curation_service)):
    return await service.get_settings(user_id)


@router.put("/{user_id}/user/settings")
async def update_settings(
    user_id: str, payload: SettingsUpdate, service: CurationService = Depends(get_curation_service)
):
    criteria = await service.update_criteria(user_id, payload.curationCriteria)
    return {"message": "Settings updated", "curationCriteria": criteria}


@router.get("/{user_id}/user/stats")
async def get_stats(user_id: str, service: CurationService = Depends(get_curation_service)):
    """Refreshes used and remaining today."""
    return await service.get_stats(user_id)


@router.get("/{user_id}/user/rejections")
async def get_rejections(user_id: str, service: CurationService = Depends(get_curation_service)):
    rejections = await service.get_rejections(user_id)
    return {"rejections": [r.to_client() for r in rejections]}
