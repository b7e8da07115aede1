from fastapi import APIRouter

from .endpoints.health import router as health_router
from .endpoints.users import router as users_router
from .endpoints.videos import router as videos_router

api_router = APIRouter()


@api_router.get("/")
async def root():
    return {"message": "Video Curator API is running"}


api_router.include_router(health_router)
api_router.include_router(users_router)
api_router.include_router(videos_router)
