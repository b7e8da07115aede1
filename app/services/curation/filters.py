from collections.abc import Iterable

from loguru import logger

from app.core.constants import SHORTS_MAX_SECONDS, YOUTUBE_MAX_BATCH_SIZE
from app.models.video import Video
from app.services.curation.fanout import run_chunked


def dedupe_videos(videos: Iterable[Video]) -> list[Video]:
    """Keep the first occurrence of every video id, preserving order."""
    seen: set[str] = set()
    unique = []
    for video in videos:
        if video.id in seen:
            continue
        seen.add(video.id)
        unique.append(video)
    return unique


def exclude_seen(videos: Iterable[Video], seen_ids: set[str]) -> list[Video]:
    """Drop videos already shown to the user, preserving order."""
    return [video for video in videos if video.id not in seen_ids]


class DurationFilter:
    """
    Removes Shorts from a candidate list.

    Durations already present on a video are trusted; the rest are resolved
    upstream in batches. A video whose duration stays unknown is dropped.
    """

    def __init__(self, catalog, min_seconds: int = SHORTS_MAX_SECONDS):
        self.catalog = catalog
        self.min_seconds = min_seconds

    async def resolve(self, video_ids: list[str]) -> dict[str, int]:
        durations: dict[str, int] = {}
        if not video_ids:
            return durations
        for batch in await run_chunked(
            self.catalog.resolve_durations, video_ids, YOUTUBE_MAX_BATCH_SIZE, "duration lookup"
        ):
            durations.update(batch)
        return durations

    async def apply(self, videos: list[Video]) -> list[Video]:
        if not videos:
            return []

        unknown = list(dict.fromkeys(v.id for v in videos if v.duration_seconds is None))
        durations = await self.resolve(unknown)
        return self.keep(videos, durations)

    def keep(self, videos: list[Video], durations: dict[str, int] | None = None) -> list[Video]:
        """Filter on known durations only; without ``durations`` every unresolved video is dropped."""
        durations = durations or {}
        kept = []
        for video in videos:
            seconds = video.duration_seconds if video.duration_seconds is not None else durations.get(video.id)
            if seconds is None or seconds < self.min_seconds:
                continue
            if video.duration_seconds is None:
                video = video.model_copy(update={"duration_seconds": seconds})
            kept.append(video)

        logger.debug(f"Duration filter kept {len(kept)}/{len(videos)} videos")
        return kept
