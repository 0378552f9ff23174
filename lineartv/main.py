"""
LinearTV Main Application

FastAPI application entry point for channel playout and schedule extension.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from lineartv import __version__
from lineartv.config import LinearTVConfig, load_config
from lineartv.database import close_db, init_db

logger = logging.getLogger(__name__)


async def _shutdown_services() -> None:
    """Stop playout timers, drop the shared services and release the database."""
    from lineartv.playout.session import get_session_registry
    from lineartv.scheduling.extender import reset_schedule_extender
    from lineartv.timeline.store import reset_timeline_store

    closed = await get_session_registry().close_all()
    logger.info(f"{closed} playout sessions closed")

    reset_schedule_extender()
    reset_timeline_store()

    try:
        await close_db()
    except Exception as e:
        logger.warning(f"Error closing database: {e}")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan manager.

    Startup loads the configuration and creates the timeline tables;
    shutdown closes every open playout session before the database.
    """
    config = load_config()
    logger.info(f"Starting LinearTV v{__version__} on port {config.server.port}")

    await init_db()
    logger.info(f"Timeline database ready ({config.database.url.split(':', 1)[0]})")

    yield

    logger.info("Shutting down LinearTV")
    await _shutdown_services()
    logger.info("LinearTV stopped")


async def validation_exception_handler(
    request: Request,
    exc: RequestValidationError,
) -> JSONResponse:
    """Report malformed requests as 400 Bad Request."""
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": jsonable_encoder(exc.errors())},
    )


def create_app() -> FastAPI:
    """Build the FastAPI application with every API router under /api."""
    from lineartv.api import api_router

    app = FastAPI(
        title="LinearTV",
        description="Linear channel scheduling and playout",
        version=__version__,
        lifespan=lifespan,
    )
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.include_router(api_router)

    @app.get("/", include_in_schema=False)
    async def root() -> dict:
        return {"name": "LinearTV", "version": __version__}

    return app


app = create_app()


def _configure_logging(config: LinearTVConfig) -> None:
    from lineartv.utils.logging_setup import parse_size, setup_logging

    setup_logging(
        log_level=config.logging.level,
        log_file_name=config.logging.file,
        max_bytes=parse_size(config.logging.max_size),
        backup_count=config.logging.backup_count,
        log_format=config.logging.format,
    )


def main() -> None:
    """
    Run the server with uvicorn.

    Called by ``python -m lineartv`` and the ``lineartv`` console script.
    """
    import uvicorn

    config = load_config()
    _configure_logging(config)

    uvicorn.run(
        "lineartv.main:app",
        host=config.server.host,
        port=config.server.port,
        reload=config.server.debug,
        log_level=config.server.log_level.lower(),
    )


if __name__ == "__main__":
    main()
