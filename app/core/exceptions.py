"""
Error taxonomy for the curation pipeline.
Each exception carries the HTTP status the API layer answers with.
"""

from typing import Any


class CuratorError(Exception):
    """Base exception for all application errors."""

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        error_code: str = "INTERNAL_ERROR",
        details: dict[str, Any] | None = None,
    ) -> None:
        self.message = message
        self.status_code = status_code
        self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to API response format."""
        return {"error": self.message, "code": self.error_code, **self.details}


class AuthExpiredError(CuratorError):
    """Upstream rejected the user's credentials or scopes. Never retried."""

    def __init__(self, reason: str = "credentials rejected") -> None:
        super().__init__(
            message="YouTube access expired. Please sign out and sign back in.",
            status_code=403,
            error_code="AUTH_EXPIRED",
            details={"reauth": True},
        )
        self.reason = reason


class UpstreamError(CuratorError):
    """A single upstream call failed (network, timeout, 5xx)."""

    def __init__(self, reason: str = "Unknown error") -> None:
        super().__init__(
            message=f"Upstream request failed: {reason}",
            status_code=502,
            error_code="UPSTREAM_ERROR",
        )
        self.reason = reason


class UpstreamUnavailableError(UpstreamError):
    """Every request of a pipeline stage failed, leaving no data at all."""

    def __init__(self, stage: str) -> None:
        super().__init__(reason=f"all requests failed during {stage}")
        self.error_code = "UPSTREAM_UNAVAILABLE"
        self.details = {"stage": stage}


class ValidationError(CuratorError):
    """Caller supplied input failed a precondition."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(
            message=message,
            status_code=400,
            error_code="VALIDATION_ERROR",
            details=details,
        )


class UserNotFoundError(CuratorError):
    def __init__(self, user_id: str) -> None:
        super().__init__(
            message="User not found",
            status_code=404,
            error_code="USER_NOT_FOUND",
        )
        self.user_id = user_id


class UserLimitReachedError(CuratorError):
    def __init__(self, limit: int) -> None:
        super().__init__(
            message="Maximum number of users reached",
            status_code=403,
            error_code="USER_LIMIT_REACHED",
            details={"maxUsers": limit},
        )


class RegistrationDeniedError(CuratorError):
    def __init__(self) -> None:
        super().__init__(
            message="Registration secret missing or invalid",
            status_code=401,
            error_code="REGISTRATION_DENIED",
        )
