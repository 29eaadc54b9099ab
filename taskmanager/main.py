"""Application factory and server entry point."""
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from taskmanager.api.v1 import api_router, health
from taskmanager.config import Settings, get_settings
from taskmanager.database import Database
from taskmanager.errors import register_exception_handlers
from taskmanager.logging_setup import setup_logging
from taskmanager.rate_limit import build_limiter, rate_limit_exceeded_handler
from taskmanager.storage import AttachmentStorage

logger = logging.getLogger(__name__)

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "SAMEORIGIN",
    "Referrer-Policy": "no-referrer",
    "X-DNS-Prefetch-Control": "off",
}


def create_app(settings: Optional[Settings] = None, database: Optional[Database] = None) -> FastAPI:
    """Build the FastAPI application.

    The database and attachment storage are created here and attached to
    ``app.state``; the lifespan handler creates the schema on startup and
    disposes the connection pool on shutdown.
    """
    settings = settings or get_settings()
    database = database or Database(settings.database_url)
    storage = AttachmentStorage(settings.UPLOAD_PATH, settings.MAX_UPLOAD_BYTES)
    limiter = build_limiter(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        database.create_all()
        storage.ensure_root()
        logger.info("%s %s started (%s)", settings.APP_NAME, settings.APP_VERSION, settings.ENVIRONMENT)
        try:
            yield
        finally:
            database.dispose()

    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description="A REST API for managing tasks and users",
        debug=settings.DEBUG,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.db = database
    app.state.storage = storage
    app.state.limiter = limiter

    @app.middleware("http")
    async def add_security_headers(request: Request, call_next):
        response = await call_next(request)
        for name, value in SECURITY_HEADERS.items():
            response.headers.setdefault(name, value)
        return response

    app.add_middleware(SlowAPIMiddleware)
    app.add_middleware(GZipMiddleware, minimum_size=settings.GZIP_MINIMUM_SIZE)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
    limiter.exempt(health.root_health)
    app.include_router(health.root_router, include_in_schema=False)
    app.include_router(api_router, prefix="/api")
    return app


def run() -> None:
    """Run the API with uvicorn using the configured host and port."""
    import uvicorn

    settings = get_settings()
    setup_logging(settings.LOG_LEVEL)
    uvicorn.run(create_app(settings), host=settings.HOST, port=settings.PORT, log_config=None)


if __name__ == "__main__":
    run()
