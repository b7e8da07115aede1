"""
Core constants used across the application. Keep these simple and documented.
"""

# Upstream accepts at most this many ids per batch lookup
YOUTUBE_MAX_BATCH_SIZE: int = 50

# Width of each wave of concurrent upstream calls
CHUNK_GROUP_WIDTH: int = 10

# Anything shorter than this is treated as a Short and never curated
SHORTS_MAX_SECONDS: int = 60

SUBSCRIPTION_PAGES_RECENT: int = 2
SUBSCRIPTION_PAGES_BROAD: int = 3
PLAYLIST_ITEMS_PER_CHANNEL: int = 5
POPULAR_VIDEOS_LIMIT: int = 50

# Recent mode stops walking playlists once it has this multiple of its cap
RECENT_HEADROOM_FACTOR: int = 2

CANDIDATE_DESCRIPTION_LENGTH: int = 200
DETAIL_DESCRIPTION_LENGTH: int = 300

DEFAULT_CRITERIA: str = (
    "Prefer educational, informative, or genuinely entertaining content. "
    "Avoid clickbait, drama, reaction content, and anything low-effort."
)

USER_KEY: str = "user:{user_id}"
SHOWN_KEY: str = "shown:{user_id}"
REJECTIONS_KEY: str = "rejections:{user_id}"
QUOTA_KEY: str = "quota:{user_id}:{day}"

# Quota counters outlive their day briefly so late reads still see them
QUOTA_KEY_TTL_SECONDS: int = 2 * 24 * 60 * 60
