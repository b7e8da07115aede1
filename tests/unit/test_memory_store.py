"""
Unit tests for InMemoryRecordStore shown-record semantics.
"""
from app.models.user import UserRecord


class TestShownRecords:
    async def test_rejecting_twice_keeps_one_record_with_latest_reason(self, store):
        await store.add_shown("u1", ["v1"], "2026-01-01")

        await store.mark_rejected("u1", "v1", "boring", "2026-01-02")
        await store.mark_rejected("u1", "v1", "clickbait", "2026-01-03")

        assert await store.get_shown_ids("u1") == {"v1"}
        record = await store.get_shown_record("u1", "v1")
        assert record.was_rejected
        assert record.rejection_reason == "clickbait"
        assert record.shown_date == "2026-01-01"
        rejections = await store.get_rejections("u1", 10)
        assert [(r.video_id, r.reason) for r in rejections] == [("v1", "clickbait")]

    async def test_reject_creates_record_when_never_shown(self, store):
        await store.mark_rejected("u1", "v9", None, "2026-01-02")

        record = await store.get_shown_record("u1", "v9")
        assert record.was_rejected
        assert record.rejection_reason is None
        assert record.shown_date == "2026-01-02"

    async def test_add_shown_does_not_reset_rejection(self, store):
        await store.mark_rejected("u1", "v1", "nope", "2026-01-02")
        await store.add_shown("u1", ["v1", "v2"], "2026-01-03")

        assert (await store.get_shown_record("u1", "v1")).was_rejected
        assert await store.get_shown_ids("u1") == {"v1", "v2"}

    async def test_rejections_newest_first_and_limited(self, store):
        for vid in ["a", "b", "c"]:
            await store.mark_rejected("u1", vid, f"reason {vid}", "2026-01-01")

        rejections = await store.get_rejections("u1", 2)

        assert [r.video_id for r in rejections] == ["c", "b"]


class TestUsers:
    async def test_update_criteria(self, store):
        await store.save_user(UserRecord(user_id="u1", access_token="t"))

        await store.update_criteria("u1", "Only chess.", "user-edit")

        user = await store.get_user("u1")
        assert user.criteria == "Only chess."
        assert user.updated_by == "user-edit"
        assert await store.count_users() == 1
