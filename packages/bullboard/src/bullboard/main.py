"""bullboard API server."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from bullboard.config import Settings, get_settings
from bullboard.engines import get_engine
from bullboard.logging import configure_logging
from bullboard.middleware import BoardRequestMiddleware
from bullboard.routes import health_router, queues_router
from bullboard.services.refresh import QueueRefresher
from bullboard.services.registry import QueueRegistry

logger = logging.getLogger(__name__)


def build_refresher(settings: Settings, registry: QueueRegistry) -> QueueRefresher:
    """Wire the refresh pipeline for the configured engine and prefix."""
    params = settings.connection_params
    engine = get_engine(
        settings.bull_version,
        params,
        key_prefix=settings.bull_prefix,
        timeout=settings.redis_connect_timeout,
    )
    return QueueRefresher(
        registry,
        engine,
        params,
        settings.bull_prefix,
        scan_count=settings.scan_count,
        connect_timeout=settings.redis_connect_timeout,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Run the first discovery pass before serving requests."""
    settings: Settings = app.state.settings
    logger.info(
        "bullboard is started http://localhost:%d%s", settings.port, settings.home_page
    )
    logger.info("bullboard is fetching queue list, please wait...")

    result = await app.state.refresher.refresh()
    if result.ok:
        logger.info("Discovered %d queues", len(result.queue_names))

    yield

    logger.info("Shutting down bullboard...")


def create_app(settings: Settings | None = None) -> FastAPI:
    """
    Build the board application.

    The registry and refresher are created here and shared through
    ``app.state`` so routes and tests use the same instances.
    """
    settings = settings or get_settings()
    registry = QueueRegistry()

    app = FastAPI(
        title="bullboard",
        description="Live dashboard over Bull / BullMQ queues discovered in Redis",
        version=settings.version,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.registry = registry
    app.state.refresher = build_refresher(settings, registry)

    app.add_middleware(BoardRequestMiddleware, proxy_path=settings.proxy_path)

    app.include_router(health_router)
    app.include_router(queues_router, prefix=settings.route_prefix)
    return app


def main():
    """Run the server."""
    import uvicorn

    settings = get_settings()
    configure_logging(log_format=settings.log_format, debug=settings.debug)

    uvicorn.run(
        create_app(settings),
        host=settings.host,
        port=settings.port,
        # Access log only outside production.
        access_log=not settings.is_production,
        log_config=None,
    )


if __name__ == "__main__":
    main()
