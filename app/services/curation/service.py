from collections.abc import Callable

from loguru import logger

from app.core.config import settings
from app.core.constants import YOUTUBE_MAX_BATCH_SIZE
from app.core.exceptions import (
    AuthExpiredError,
    CuratorError,
    UpstreamError,
    UserLimitReachedError,
    UserNotFoundError,
    ValidationError,
)
from app.core.security import redact_token
from app.models.curation import RecommendationResult, UserStats
from app.models.user import UserRecord, UserSettingsView
from app.models.video import RejectionRecord, Video
from app.services.curation.adaptation import CriteriaAdaptation
from app.services.curation.aggregator import CandidateAggregator
from app.services.curation.fanout import run_chunked
from app.services.curation.quota import QuotaGate, utc_today
from app.services.curation.selector import CurationSelector
from app.services.record_store import RecordStore
from app.services.youtube.service import YouTubeService


class CurationService:
    """
    Facade over the curation pipeline, one method per user-facing operation.

    A catalog client is opened per call with the user's stored access token
    and closed before returning.
    """

    def __init__(
        self,
        store: RecordStore,
        oracle,
        catalog_factory: Callable[[str], object] = YouTubeService,
    ):
        self.store = store
        self.catalog_factory = catalog_factory
        self.selector = CurationSelector(oracle)
        self.adaptation = CriteriaAdaptation(oracle)
        self.quota = QuotaGate(store)

    async def _get_user(self, user_id: str) -> UserRecord:
        user = await self.store.get_user(user_id)
        if not user:
            raise UserNotFoundError(user_id)
        return user

    def _open_catalog(self, user: UserRecord):
        if not user.access_token:
            raise AuthExpiredError(reason="no access token stored")
        return self.catalog_factory(user.access_token)

    async def get_recent_subscription_videos(self, user_id: str) -> list[Video]:
        user = await self._get_user(user_id)
        catalog = self._open_catalog(user)
        try:
            return await CandidateAggregator(catalog).get_recent_subscription_videos()
        finally:
            await catalog.close()

    async def get_recommendations(self, user_id: str, refresh: bool = False) -> RecommendationResult:
        """
        Curate a fresh set of videos. With ``refresh`` the daily quota is
        consumed first and nothing upstream is touched when it is exhausted.
        """
        user = await self._get_user(user_id)

        if refresh:
            decision = await self.quota.try_consume(user_id)
            if not decision.granted:
                return RecommendationResult(quota_exceeded=True, refreshes_remaining=0)

        catalog = self._open_catalog(user)
        try:
            shown_ids = await self.store.get_shown_ids(user_id)
            candidates = await CandidateAggregator(catalog).get_candidate_videos(shown_ids)
            rejections = await self.store.get_rejections(user_id, settings.REJECTION_CONTEXT_LIMIT)

            selected_ids = await self.selector.select(candidates, user.criteria, rejections)
            videos = await self._resolve_details(catalog, selected_ids, candidates)
        finally:
            await catalog.close()

        await self.store.add_shown(user_id, selected_ids, utc_today())
        logger.info(f"[{redact_token(user_id)}] Curated {len(videos)} videos from {len(candidates)} candidates")

        remaining = await self.quota.remaining(user_id) if refresh else None
        return RecommendationResult(videos=videos, refreshes_remaining=remaining)

    async def _resolve_details(self, catalog, video_ids: list[str], candidates: list[Video]) -> list[Video]:
        """Full records in selection order; candidate projections stand in for anything unresolved."""
        by_id = {v.id: v for v in candidates}
        try:
            for batch in await run_chunked(
                catalog.get_video_details, video_ids, YOUTUBE_MAX_BATCH_SIZE, "video details"
            ):
                by_id.update({v.id: v for v in batch})
        except AuthExpiredError:
            raise
        except UpstreamError as e:
            logger.warning(f"Video details unavailable, using candidate data: {e}")
        return [by_id[vid] for vid in video_ids if vid in by_id]

    async def reject_video(self, user_id: str, video_id: str, reason: str | None = None) -> str:
        """Store the rejection, then fold it into the user's criteria. Returns the criteria now in effect."""
        video_id = (video_id or "").strip()
        if not video_id:
            raise ValidationError("videoId is required")
        reason = (reason or "").strip() or None

        user = await self._get_user(user_id)
        await self.store.mark_rejected(user_id, video_id, reason, utc_today())

        title = "Unknown video"
        try:
            catalog = self._open_catalog(user)
            try:
                details = await catalog.get_video_details([video_id])
            finally:
                await catalog.close()
            if details:
                title = details[0].title
        except CuratorError as e:
            logger.warning(f"[{redact_token(user_id)}] Could not fetch title for rejected video {video_id}: {e}")

        updated = await self.adaptation.adapt(user.criteria, title, reason)
        if updated != user.criteria:
            await self.store.update_criteria(user_id, updated, "adaptation")
        return updated

    async def get_settings(self, user_id: str) -> UserSettingsView:
        user = await self._get_user(user_id)
        return UserSettingsView(
            email=user.email,
            displayName=user.display_name,
            curationCriteria=user.criteria,
            updatedBy=user.updated_by,
        )

    async def update_criteria(self, user_id: str, criteria: str | None) -> str:
        if not isinstance(criteria, str) or not criteria.strip():
            raise ValidationError("curationCriteria is required")
        criteria = criteria.strip()
        await self._get_user(user_id)
        await self.store.update_criteria(user_id, criteria, "user-edit")
        return criteria

    async def get_stats(self, user_id: str) -> UserStats:
        await self._get_user(user_id)
        return await self.quota.stats(user_id)

    async def get_rejections(self, user_id: str) -> list[RejectionRecord]:
        await self._get_user(user_id)
        return await self.store.get_rejections(user_id, settings.REJECTION_HISTORY_LIMIT)

    async def register_user(
        self, user_id: str, access_token: str, email: str = "", display_name: str = ""
    ) -> UserRecord:
        """Create a user or refresh an existing user's credentials, leaving criteria alone."""
        user_id = (user_id or "").strip()
        access_token = (access_token or "").strip()
        if not user_id or not access_token:
            raise ValidationError("user_id and access_token are required")

        existing = await self.store.get_user(user_id)
        if existing:
            user = existing.model_copy(
                update={
                    "access_token": access_token,
                    "email": email or existing.email,
                    "display_name": display_name or existing.display_name,
                }
            )
        else:
            if await self.store.count_users() >= settings.MAX_USERS:
                raise UserLimitReachedError(settings.MAX_USERS)
            user = UserRecord(user_id=user_id, access_token=access_token, email=email, display_name=display_name)

        await self.store.save_user(user)
        logger.info(f"[{redact_token(user_id)}] Account {'updated' if existing else 'created'}")
        return user
