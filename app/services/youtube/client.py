from typing import Any

import httpx
from loguru import logger

from app.core.base_client import BaseClient
from app.core.config import settings
from app.core.exceptions import AuthExpiredError, UpstreamError
from app.core.version import __version__

AUTH_ERROR_REASONS = {"authError", "insufficientPermissions", "forbidden", "invalid_grant"}
AUTH_ERROR_MESSAGES = ("insufficient authentication scopes", "Invalid Credentials", "invalid_grant")


def _error_payload(response: httpx.Response) -> tuple[set[str], str]:
    try:
        body = response.json()
    except ValueError:
        return set(), response.text or ""
    error = body.get("error") if isinstance(body, dict) else None
    if not isinstance(error, dict):
        return set(), str(error or "")
    reasons = {e.get("reason", "") for e in error.get("errors", []) if isinstance(e, dict)}
    return reasons, error.get("message", "")


def is_auth_failure(response: httpx.Response) -> bool:
    """Whether a failed response means the user's credentials or scopes are no longer usable."""
    if response.status_code == 401:
        return True
    reasons, message = _error_payload(response)
    if reasons & AUTH_ERROR_REASONS:
        return True
    if any(marker in message for marker in AUTH_ERROR_MESSAGES):
        return True
    return response.status_code == 403 and "forbidden" in message.lower()


class YouTubeClient(BaseClient):
    """
    Client for the YouTube Data API, authorized with one user's OAuth access token.

    Raises AuthExpiredError for credential problems and UpstreamError for
    everything else, so callers never deal with httpx exceptions.
    """

    def __init__(self, access_token: str, timeout: float | None = None, max_retries: int = 3):
        headers = {
            "User-Agent": f"VideoCurator/{__version__}",
            "Accept": "application/json",
            "Authorization": f"Bearer {access_token}",
        }
        super().__init__(
            base_url=settings.YOUTUBE_API_BASE_URL,
            timeout=timeout or settings.YOUTUBE_TIMEOUT_SECONDS,
            max_retries=max_retries,
            headers=headers,
        )

    async def get(self, url: str, params: dict[str, Any] | None = None, **kwargs) -> dict[str, Any]:
        try:
            return await super().get(url, params=params, **kwargs)
        except httpx.HTTPStatusError as e:
            if is_auth_failure(e.response):
                logger.warning(f"YouTube rejected credentials on {url} ({e.response.status_code})")
                raise AuthExpiredError(reason=str(e)) from e
            raise UpstreamError(reason=f"{url} returned {e.response.status_code}") from e
        except httpx.RequestError as e:
            raise UpstreamError(reason=f"{url}: {e}") from e
        except ValueError as e:
            raise UpstreamError(reason=f"{url} returned invalid JSON") from e
