import hmac
from functools import lru_cache

from fastapi import Header

from app.core.config import settings
from app.core.exceptions import RegistrationDeniedError
from app.services.curation.service import CurationService
from app.services.gemini import GeminiService
from app.services.memory_store import InMemoryRecordStore
from app.services.record_store import RecordStore
from app.services.redis_store import RedisRecordStore


@lru_cache
def get_record_store() -> RecordStore:
    if settings.STORE_BACKEND == "memory":
        return InMemoryRecordStore()
    return RedisRecordStore()


@lru_cache
def get_curation_service() -> CurationService:
    return CurationService(store=get_record_store(), oracle=GeminiService())


def require_registration_secret(x_registration_secret: str | None = Header(default=None)) -> None:
    """Only the sign-in layer may register users or replace their access tokens."""
    expected = settings.REGISTRATION_SECRET
    if not expected:
        return
    if not x_registration_secret or not hmac.compare_digest(x_registration_secret, expected):
        raise RegistrationDeniedError()
