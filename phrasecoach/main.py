"""
FastAPI application setup with dependency injection.
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import logging
from contextlib import asynccontextmanager

from phrasecoach.config import get_settings
from phrasecoach.core.db import db_session, init_db
from phrasecoach.core.error_handlers import setup_error_handlers
from phrasecoach.core.logging import configure_logging
from phrasecoach.middleware import RequestContextMiddleware
from phrasecoach.services.expression_service import ExpressionService

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan management with service container.
    Creates tables and default categories, then opens the text-generation client.
    """
    settings = get_settings()
    logger.info(f"Starting {settings.app_name} v{settings.app_version}")

    try:
        if settings.database.create_tables:
            init_db()
        if settings.database.seed_defaults:
            with db_session() as db:
                seeded = ExpressionService(db).seed_default_categories()
            if seeded:
                logger.info(f"Seeded {seeded} default categories")

        from phrasecoach.core.dependencies import service_container
        await service_container.initialize_services()
        app.state.service_container = service_container

        logger.info("Application startup complete")

        yield

    except Exception as e:
        logger.error(f"Application startup failed: {e}", exc_info=True)
        raise

    finally:
        logger.info("Shutting down application")

        try:
            if hasattr(app.state, 'service_container'):
                await app.state.service_container.cleanup_services()

            logger.info("Application shutdown complete")

        except Exception as e:
            logger.error(f"Application shutdown failed: {e}", exc_info=True)


def create_app() -> FastAPI:
    """
    Create and configure FastAPI application.

    Returns:
        FastAPI: Configured application instance
    """
    settings = get_settings()
    configure_logging(settings.log_level.value, settings.log_format)

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        debug=settings.debug,
        lifespan=lifespan
    )

    app.add_middleware(
        CORSMiddleware,
        **settings.get_cors_config()
    )
    app.add_middleware(RequestContextMiddleware)

    setup_error_handlers(app)

    from phrasecoach.api import (
        category_router,
        chat_router,
        expression_router,
        health_router,
        practice_router,
        stats_router,
    )
    app.include_router(health_router)
    app.include_router(expression_router)
    app.include_router(category_router)
    app.include_router(practice_router)
    app.include_router(chat_router)
    app.include_router(stats_router)

    return app


# Create application instance
app = create_app()
