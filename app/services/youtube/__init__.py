from app.services.youtube.client import YouTubeClient
from app.services.youtube.service import YouTubeService

__all__ = ["YouTubeClient", "YouTubeService"]
