import logging
import os
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.httpsredirect import HTTPSRedirectMiddleware
from fastapi.staticfiles import StaticFiles

from api import home
from core.config import Settings, get_settings
from core.logging import setup_logging
from middleware.correlation import CorrelationIDMiddleware
from middleware.errors import ExceptionHandlerMiddleware
from middleware.pipeline import Pipeline, PipelineMiddleware
from middleware.security import SecurityHeadersMiddleware
from middleware.steps import build_pipeline

logger = logging.getLogger(__name__)


def create_app(settings: Settings | None = None, pipeline: Pipeline | None = None) -> FastAPI:
    settings = settings or get_settings()
    pipeline = pipeline if pipeline is not None else build_pipeline(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Lifespan events for application initialization and cleanup"""
        setup_logging(settings)

        # The step chain is fixed once the server starts accepting requests
        pipeline.freeze()
        logger.info(
            f"{settings.app_name} started: environment={settings.environment}, "
            f"steps={len(pipeline.steps)}"
        )

        yield

        logger.info(f"{settings.app_name} shutting down")

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        # Development surfaces full tracebacks instead of the generic error body
        debug=settings.debug or settings.is_development,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.pipeline = pipeline

    # Middleware (order matters - applied in reverse, last added runs first)
    # 1. HTTPS redirect, right before routing
    if settings.https_redirect:
        app.add_middleware(HTTPSRedirectMiddleware)

    # 2. Inline step pipeline
    app.add_middleware(PipelineMiddleware, pipeline=pipeline)

    # 3. HSTS outside development
    if not settings.is_development:
        app.add_middleware(
            SecurityHeadersMiddleware,
            max_age=settings.hsts_max_age,
            include_subdomains=settings.hsts_include_subdomains,
        )

    # 4. Faults re-executed as /error (status 500) through the pipeline
    if not settings.is_development:
        app.add_middleware(ExceptionHandlerMiddleware, error_path="/error")

    # 5. Correlation ID, outermost so every response carries it
    app.add_middleware(CorrelationIDMiddleware, header_name=settings.request_id_header_name)

    if os.path.isdir(settings.static_dir):
        app.mount("/static", StaticFiles(directory=settings.static_dir), name="static")

    app.include_router(home.router, tags=["home"])

    return app


app = create_app()


if __name__ == "__main__":
    uvicorn.run("main:app", host="0.0.0.0", port=8000, log_level="info")
