import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from userfeed.config import Settings, get_settings
from userfeed.core.database import build_engine, dispose_engine, ensure_users_table
from userfeed.core.dependencies import build_http_client
from userfeed.core.observability import configure_logging
from userfeed.core.security import SecurityHeadersMiddleware
from userfeed.routers import users

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings: Settings = app.state.settings
    engine = build_engine(settings)
    try:
        ensure_users_table(engine)
    except Exception:
        logger.exception("startup.failed reason=users_table")
        dispose_engine(engine)
        raise
    app.state.engine = engine
    app.state.http_client = build_http_client(settings)
    logger.info("startup.ok environment=%s", settings.ENVIRONMENT)
    try:
        yield
    finally:
        await app.state.http_client.aclose()
        dispose_engine(engine)
        logger.info("shutdown.ok")


async def global_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled exception: %s", exc)
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


def create_app(settings: Settings | None = None) -> FastAPI:
    if settings is None:
        settings = get_settings()
    configure_logging(settings.LOG_LEVEL)

    app = FastAPI(title="Userfeed API", version="1.0.0", redirect_slashes=False, lifespan=lifespan)
    app.state.settings = settings

    app.add_exception_handler(Exception, global_exception_handler)

    limiter = Limiter(key_func=get_remote_address)
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "Accept", "X-Request-ID"],
    )

    app.include_router(users.create_router(limiter, settings), prefix="/api", tags=["users"])

    @app.get("/")
    async def root():
        return {"message": "Userfeed API"}

    @app.get("/health")
    async def health():
        return {"status": "healthy"}

    return app
