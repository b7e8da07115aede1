"""
Pytest configuration and fixtures.
"""
from collections import defaultdict
from datetime import datetime, timedelta, timezone

import pytest

from app.models.user import UserRecord
from app.models.video import Video
from app.services.curation.service import CurationService
from app.services.memory_store import InMemoryRecordStore


def make_video(video_id: str, hours_ago: float = 1, duration: int | None = None, **kwargs) -> Video:
    return Video(
        id=video_id,
        title=kwargs.pop("title", f"Video {video_id}"),
        channel_title=kwargs.pop("channel_title", "Channel"),
        published_at=datetime.now(timezone.utc) - timedelta(hours=hours_ago),
        duration_seconds=duration,
        **kwargs,
    )


class FakeCatalog:
    """In-memory stand-in for YouTubeService. ``failures`` maps a method name,
    or a (method, argument) pair, to the exception that call raises."""

    def __init__(
        self,
        subscription_pages: list[list[str]] | None = None,
        playlist_items: dict[str, list[Video]] | None = None,
        durations: dict[str, int] | None = None,
        popular: list[Video] | None = None,
        details: dict[str, Video] | None = None,
        failures: dict | None = None,
    ):
        self.subscription_pages = subscription_pages or []
        self.playlist_items = playlist_items or {}
        self.durations = durations or {}
        self.popular = popular or []
        self.details = details or {}
        self.failures = failures or {}
        self.calls = defaultdict(list)
        self.closed = False

    def _maybe_fail(self, name, arg=None):
        exc = self.failures.get((name, arg)) or self.failures.get(name)
        if exc:
            raise exc

    async def list_subscriptions(self, page_token=None):
        self.calls["list_subscriptions"].append(page_token)
        self._maybe_fail("list_subscriptions", page_token)
        if not self.subscription_pages:
            return [], None
        index = int(page_token) if page_token else 0
        next_token = str(index + 1) if index + 1 < len(self.subscription_pages) else None
        return list(self.subscription_pages[index]), next_token

    async def resolve_upload_playlists(self, channel_ids):
        self.calls["resolve_upload_playlists"].append(list(channel_ids))
        self._maybe_fail("resolve_upload_playlists", channel_ids[0])
        return {cid: f"UU{cid}" for cid in channel_ids}

    async def list_playlist_items(self, playlist_id, max_results):
        self.calls["list_playlist_items"].append(playlist_id)
        self._maybe_fail("list_playlist_items", playlist_id)
        return list(self.playlist_items.get(playlist_id, []))[:max_results]

    async def resolve_durations(self, video_ids):
        self.calls["resolve_durations"].append(list(video_ids))
        self._maybe_fail("resolve_durations", video_ids[0])
        return {vid: self.durations[vid] for vid in video_ids if vid in self.durations}

    async def list_popular(self, region, max_results):
        self.calls["list_popular"].append(region)
        self._maybe_fail("list_popular")
        return list(self.popular)[:max_results]

    async def get_video_details(self, video_ids):
        self.calls["get_video_details"].append(list(video_ids))
        self._maybe_fail("get_video_details")
        return [self.details[vid] for vid in video_ids if vid in self.details]

    async def close(self):
        self.closed = True


class FakeOracle:
    def __init__(self, response: str = "", error: Exception | None = None):
        self.response = response
        self.error = error
        self.prompts: list[str] = []

    async def generate_content_async(self, prompt, system_prompt=None, temperature=None, max_output_tokens=None):
        self.prompts.append(prompt)
        if self.error:
            raise self.error
        return self.response


@pytest.fixture
def store():
    return InMemoryRecordStore()


@pytest.fixture
def oracle():
    return FakeOracle()


@pytest.fixture
def catalog():
    return FakeCatalog()


@pytest.fixture
async def user(store):
    record = UserRecord(user_id="user-1", email="a@example.com", display_name="A", access_token="token-1")
    await store.save_user(record)
    return record


@pytest.fixture
def service(store, oracle, catalog):
    """CurationService wired to in-memory fakes; every call gets the same catalog."""
    svc = CurationService(store=store, oracle=oracle, catalog_factory=lambda token: catalog)
    svc.opened_tokens = []
    factory = svc.catalog_factory

    def tracking_factory(token):
        svc.opened_tokens.append(token)
        return factory(token)

    svc.catalog_factory = tracking_factory
    return svc
