"""FastAPI application factory."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api.routers import (
    blends_router,
    common_router,
    comparisons_router,
    metrics_router,
    pricing_router,
)
from api.services.app_initializer import AppServiceInitializer
from modelviz import get_logger, setup_logging
from modelviz.config import load_settings

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    settings = load_settings()
    setup_logging(
        level=settings.log_level,
        enable_file_logging=not settings.is_testing,
    )
    logger.info(f"Starting ModelViz API server in {settings.environment} mode")

    initializer = AppServiceInitializer(settings)
    await initializer.initialize_all_services(app)
    await initializer.start_all_services()

    logger.info("ModelViz API server initialized successfully")

    yield

    try:
        await initializer.stop_all_services()
    except Exception as e:
        logger.error(f"Error stopping background services: {e}")

    logger.info("ModelViz API server shutting down")


def create_app() -> FastAPI:
    """Create FastAPI app with current settings."""
    settings = load_settings()

    app = FastAPI(
        title=settings.api_title,
        description="Blend, compare and meter LLM provider calls",
        version=settings.api_version,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(common_router)
    app.include_router(blends_router)
    app.include_router(comparisons_router)
    app.include_router(metrics_router)
    app.include_router(pricing_router)

    @app.exception_handler(Exception)
    async def global_exception_handler(
        request: Request, exc: Exception
    ) -> JSONResponse:
        logger.error(f"Unhandled exception on {request.url.path}: {exc}", exc_info=True)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": str(exc)},
        )

    return app


app = create_app()
