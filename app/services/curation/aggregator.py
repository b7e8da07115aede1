from datetime import datetime, timedelta, timezone

from loguru import logger

from app.core.config import settings
from app.core.constants import (
    CHUNK_GROUP_WIDTH,
    PLAYLIST_ITEMS_PER_CHANNEL,
    POPULAR_VIDEOS_LIMIT,
    RECENT_HEADROOM_FACTOR,
    SHORTS_MAX_SECONDS,
    SUBSCRIPTION_PAGES_BROAD,
    SUBSCRIPTION_PAGES_RECENT,
    YOUTUBE_MAX_BATCH_SIZE,
)
from app.core.exceptions import AuthExpiredError, UpstreamError, UpstreamUnavailableError
from app.models.video import Video
from app.services.curation.fanout import chunked, gather_settled, run_chunked
from app.services.curation.filters import DurationFilter, dedupe_videos, exclude_seen


class CandidateAggregator:
    """
    Builds video pools from a user's subscriptions and the popular chart.

    Two modes share the subscription traversal:
    - recent subscriptions: a small, date-sorted feed of recent uploads
    - broad candidates: a larger pool for AI curation, minus already shown videos
    """

    def __init__(
        self,
        catalog,
        subscription_days: int = settings.SUBSCRIPTION_DAYS,
        video_limit: int = settings.SUBSCRIPTION_VIDEO_LIMIT,
        popular_region: str = settings.POPULAR_REGION,
    ):
        self.catalog = catalog
        self.subscription_days = subscription_days
        self.video_limit = video_limit
        self.popular_region = popular_region
        self.duration_filter = DurationFilter(catalog)

    def _since(self) -> datetime:
        return datetime.now(timezone.utc) - timedelta(days=self.subscription_days)

    async def get_recent_subscription_videos(self) -> list[Video]:
        """Recent uploads from subscribed channels, newest first, Shorts removed."""
        videos = await self._collect_subscription_uploads(
            max_pages=SUBSCRIPTION_PAGES_RECENT,
            stop_after=self.video_limit * RECENT_HEADROOM_FACTOR,
        )
        videos = dedupe_videos(videos)
        videos = await self.duration_filter.apply(videos)
        videos.sort(key=lambda v: v.published_at, reverse=True)

        logger.info(f"Recent subscriptions: {len(videos)} videos, returning {min(len(videos), self.video_limit)}")
        return videos[: self.video_limit]

    async def get_candidate_videos(self, shown_ids: set[str]) -> list[Video]:
        """
        Candidate pool for curation: subscription uploads plus popular videos,
        deduplicated, without anything already shown, Shorts removed.
        """
        pool: list[Video] = []
        failed_sources = []

        try:
            pool.extend(await self._collect_subscription_uploads(max_pages=SUBSCRIPTION_PAGES_BROAD))
        except AuthExpiredError:
            raise
        except UpstreamError as e:
            logger.warning(f"Subscription traversal failed, using other sources only: {e}")
            failed_sources.append("subscriptions")

        try:
            pool.extend(await self._fetch_popular())
        except AuthExpiredError:
            raise
        except UpstreamError as e:
            logger.warning(f"Error fetching popular videos: {e}")
            failed_sources.append("popular")

        # a failed source only escalates when nothing else produced videos
        if failed_sources and not pool:
            raise UpstreamUnavailableError("candidate aggregation")

        unique = dedupe_videos(pool)
        fresh = exclude_seen(unique, shown_ids)
        try:
            candidates = await self.duration_filter.apply(fresh)
        except UpstreamUnavailableError as e:
            candidates = self.duration_filter.keep(fresh)
            if not candidates:
                raise
            logger.warning(f"Duration lookup failed, keeping {len(candidates)} videos with known durations: {e}")

        logger.info(
            f"Candidates: {len(pool)} collected, {len(unique)} unique, "
            f"{len(fresh)} unseen, {len(candidates)} after Shorts filter"
        )
        return candidates

    async def _list_subscribed_channels(self, max_pages: int) -> list[str]:
        channel_ids: list[str] = []
        page_token = None
        for page in range(max_pages):
            try:
                ids, page_token = await self.catalog.list_subscriptions(page_token)
            except AuthExpiredError:
                raise
            except UpstreamError as e:
                if page == 0:
                    raise UpstreamUnavailableError("subscription listing") from e
                logger.warning(f"Subscription page {page + 1} failed, keeping {len(channel_ids)} channels: {e}")
                break
            channel_ids.extend(ids)
            if not page_token:
                break
        return list(dict.fromkeys(channel_ids))

    async def _collect_subscription_uploads(self, max_pages: int, stop_after: int | None = None) -> list[Video]:
        channel_ids = await self._list_subscribed_channels(max_pages)
        if not channel_ids:
            return []

        playlist_ids: list[str] = []
        for mapping in await run_chunked(
            self.catalog.resolve_upload_playlists, channel_ids, YOUTUBE_MAX_BATCH_SIZE, "channel resolution"
        ):
            playlist_ids.extend(mapping.values())
        if not playlist_ids:
            return []

        since = self._since()
        videos: list[Video] = []
        failures = 0
        issued = 0
        for wave in chunked(playlist_ids, CHUNK_GROUP_WIDTH):
            issued += len(wave)
            batches, failed = await gather_settled(
                (self.catalog.list_playlist_items(pid, PLAYLIST_ITEMS_PER_CHANNEL) for pid in wave),
                "upload playlists",
            )
            failures += failed
            for batch in batches:
                videos.extend(v for v in batch if v.published_at is not None and v.published_at >= since)
            if stop_after is not None and len(videos) >= stop_after:
                logger.debug(f"Collected {len(videos)} uploads after {issued} playlists, stopping early")
                break

        if failures == issued:
            raise UpstreamUnavailableError("upload playlists")
        return videos

    async def _fetch_popular(self) -> list[Video]:
        popular = await self.catalog.list_popular(self.popular_region, POPULAR_VIDEOS_LIMIT)
        return [v for v in popular if v.duration_seconds is not None and v.duration_seconds >= SHORTS_MAX_SECONDS]
