from typing import Any

from loguru import logger

from app.core.constants import (
    CANDIDATE_DESCRIPTION_LENGTH,
    DETAIL_DESCRIPTION_LENGTH,
    YOUTUBE_MAX_BATCH_SIZE,
)
from app.models.video import Video
from app.services.youtube.client import YouTubeClient
from app.shared.durations import parse_iso_duration


def _thumbnail(snippet: dict[str, Any]) -> str | None:
    thumbs = snippet.get("thumbnails") or {}
    for size in ("medium", "default"):
        url = (thumbs.get(size) or {}).get("url")
        if url:
            return url
    return None


def _check_batch(ids: list[str]) -> None:
    if len(ids) > YOUTUBE_MAX_BATCH_SIZE:
        raise ValueError(f"At most {YOUTUBE_MAX_BATCH_SIZE} ids per batch, got {len(ids)}")


class YouTubeService:
    """
    Paginated catalog source backed by the YouTube Data API.

    Every method issues exactly one upstream request; pagination loops and
    chunking across batches are the caller's job.
    """

    def __init__(self, access_token: str):
        self.client = YouTubeClient(access_token=access_token)

    async def close(self):
        """Close the underlying HTTP client."""
        await self.client.close()

    async def list_subscriptions(self, page_token: str | None = None) -> tuple[list[str], str | None]:
        """Return one page of subscribed channel ids and the next page token."""
        params = {"part": "snippet", "mine": "true", "maxResults": YOUTUBE_MAX_BATCH_SIZE}
        if page_token:
            params["pageToken"] = page_token
        data = await self.client.get("/subscriptions", params=params)

        channel_ids = []
        for item in data.get("items", []):
            channel_id = ((item.get("snippet") or {}).get("resourceId") or {}).get("channelId")
            if channel_id:
                channel_ids.append(channel_id)
        return channel_ids, data.get("nextPageToken")

    async def resolve_upload_playlists(self, channel_ids: list[str]) -> dict[str, str]:
        """Map each channel id to its uploads playlist id."""
        _check_batch(channel_ids)
        if not channel_ids:
            return {}
        params = {"part": "contentDetails", "id": ",".join(channel_ids), "maxResults": YOUTUBE_MAX_BATCH_SIZE}
        data = await self.client.get("/channels", params=params)

        playlists = {}
        for item in data.get("items", []):
            uploads = ((item.get("contentDetails") or {}).get("relatedPlaylists") or {}).get("uploads")
            if uploads:
                playlists[item.get("id")] = uploads
        return playlists

    async def list_playlist_items(self, playlist_id: str, max_results: int) -> list[Video]:
        params = {"part": "snippet", "playlistId": playlist_id, "maxResults": max_results}
        data = await self.client.get("/playlistItems", params=params)

        videos = []
        for item in data.get("items", []):
            snippet = item.get("snippet") or {}
            video_id = (snippet.get("resourceId") or {}).get("videoId")
            if not video_id:
                continue
            videos.append(
                Video(
                    id=video_id,
                    title=snippet.get("title", ""),
                    channel_title=snippet.get("channelTitle", ""),
                    description=(snippet.get("description") or "")[:CANDIDATE_DESCRIPTION_LENGTH],
                    thumbnail_url=_thumbnail(snippet),
                    published_at=snippet.get("publishedAt"),
                )
            )
        return videos

    async def resolve_durations(self, video_ids: list[str]) -> dict[str, int]:
        """Durations in seconds. Ids the upstream omits are simply absent."""
        _check_batch(video_ids)
        if not video_ids:
            return {}
        params = {"part": "contentDetails", "id": ",".join(video_ids)}
        data = await self.client.get("/videos", params=params)
        return {
            item["id"]: parse_iso_duration((item.get("contentDetails") or {}).get("duration"))
            for item in data.get("items", [])
            if item.get("id")
        }

    async def list_popular(self, region: str, max_results: int) -> list[Video]:
        """Currently popular videos, with durations already populated."""
        params = {
            "part": "snippet,contentDetails",
            "chart": "mostPopular",
            "regionCode": region,
            "maxResults": max_results,
        }
        data = await self.client.get("/videos", params=params)
        return [
            self._video_from_resource(item, CANDIDATE_DESCRIPTION_LENGTH)
            for item in data.get("items", [])
            if item.get("id")
        ]

    async def get_video_details(self, video_ids: list[str]) -> list[Video]:
        """Full records for up to one batch of ids."""
        _check_batch(video_ids)
        if not video_ids:
            return []
        params = {"part": "snippet,contentDetails,statistics", "id": ",".join(video_ids)}
        data = await self.client.get("/videos", params=params)
        videos = [
            self._video_from_resource(item, DETAIL_DESCRIPTION_LENGTH) for item in data.get("items", []) if item.get("id")
        ]
        logger.debug(f"Resolved details for {len(videos)}/{len(video_ids)} videos")
        return videos

    @staticmethod
    def _video_from_resource(item: dict[str, Any], description_length: int) -> Video:
        snippet = item.get("snippet") or {}
        view_count = (item.get("statistics") or {}).get("viewCount")
        duration = (item.get("contentDetails") or {}).get("duration")
        return Video(
            id=item["id"],
            title=snippet.get("title", ""),
            channel_title=snippet.get("channelTitle", ""),
            description=(snippet.get("description") or "")[:description_length],
            thumbnail_url=_thumbnail(snippet),
            published_at=snippet.get("publishedAt"),
            duration_seconds=parse_iso_duration(duration) if duration else None,
            view_count=int(view_count) if view_count is not None else None,
        )
