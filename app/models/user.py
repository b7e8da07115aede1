from datetime import datetime, timezone
from typing import Literal

from pydantic import BaseModel, Field

from app.core.constants import DEFAULT_CRITERIA

CriteriaSource = Literal["system-default", "user-edit", "adaptation"]


class UserRecord(BaseModel):
    """User row: identity, upstream credentials and curation preferences."""

    user_id: str
    email: str = ""
    display_name: str = ""
    access_token: str | None = None
    criteria: str = DEFAULT_CRITERIA
    updated_by: CriteriaSource = "system-default"
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class UserSettingsView(BaseModel):
    email: str
    displayName: str
    curationCriteria: str
    updatedBy: CriteriaSource
