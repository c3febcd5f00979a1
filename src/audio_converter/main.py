"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

import uvicorn
from ddtrace import patch_all
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from audio_converter.config import AppConfig, load_config
from audio_converter.dependencies import ServiceContainer
from audio_converter.logging import setup_logging
from audio_converter.response_models import ProblemDetail
from audio_converter.routes import convert_router

patch_all()

logger = logging.getLogger(__name__)


def create_app(
    config: AppConfig | None = None,
    container: ServiceContainer | None = None,
) -> FastAPI:
    """
    Builds the application.

    Args:
        config: Configuration to use; read from the environment when omitted.
        container: Pre-built collaborators, mainly for tests substituting
            fake tools or stores.
    """
    config = config or (container.config if container else load_config())
    setup_logging(config.server.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app.state.container.start()
        try:
            yield
        finally:
            app.state.container.close()

    app = FastAPI(title="Audio Converter Service", lifespan=lifespan)
    app.state.container = container or ServiceContainer(config)
    app.include_router(convert_router)

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception(
            "Unhandled error", extra={"path": request.url.path}
        )
        problem = ProblemDetail(
            title="Internal server error",
            status=500,
            detail="An unexpected error occurred",
        )
        return JSONResponse(
            status_code=500,
            content=problem.model_dump(),
            media_type="application/problem+json",
        )

    return app


app = create_app()


def run() -> None:
    """Serves the application with uvicorn."""
    config = app.state.container.config
    uvicorn.run(
        app,
        host=config.server.host,
        port=config.server.port,
        log_config=None,
    )


if __name__ == "__main__":
    run()
