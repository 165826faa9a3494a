import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.cache import cache
from app.config import settings
from app.database import init_db
from app.errors import unhandled_error_handler
from app.middleware import RequestLogMiddleware
from app.routes import build_router

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    if settings.CREATE_TABLES:
        await init_db()
    await cache.connect()  # App works without Redis
    yield
    # Shutdown
    await cache.disconnect()


def create_app(log_requests: bool = settings.LOG_REQUESTS) -> FastAPI:
    app = FastAPI(
        title="Linkshare API",
        description="Share links, like them and talk about them",
        version="1.0.0",
        lifespan=lifespan,
    )

    # Middleware
    if log_requests:
        app.add_middleware(RequestLogMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Anything a handler did not answer itself becomes a generic 500.
    app.add_exception_handler(Exception, unhandled_error_handler)

    app.include_router(build_router())
    return app


app = create_app()
