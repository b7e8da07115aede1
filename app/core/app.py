from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger

from app.api.dependencies import get_record_store
from app.api.main import api_router
from app.core.exceptions import AuthExpiredError, CuratorError

from .config import settings
from .version import __version__


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application lifespan events (startup/shutdown).
    """
    if not settings.REGISTRATION_SECRET:
        logger.warning("REGISTRATION_SECRET is not set; POST /users must only be reachable from the sign-in layer")
    yield
    try:
        await get_record_store().close()
        logger.info("Record store closed")
    except Exception as exc:
        logger.warning(f"Failed to close record store: {exc}")


app = FastAPI(
    title=settings.APP_NAME,
    description="AI-curated YouTube recommendations from a user's subscriptions",
    version=__version__,
    lifespan=lifespan,
    docs_url=None if settings.APP_ENV != "development" else "/docs",
    redoc_url=None if settings.APP_ENV != "development" else "/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(CuratorError)
async def curator_error_handler(request: Request, exc: CuratorError) -> JSONResponse:
    if isinstance(exc, AuthExpiredError):
        logger.warning(f"{request.url.path}: upstream credentials rejected ({exc.reason})")
    elif exc.status_code >= 500:
        logger.error(f"{request.url.path}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


app.include_router(api_router)
