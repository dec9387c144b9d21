from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from relocation_insights.api.dependencies import Providers, build_repository
from relocation_insights.api.routes import router
from relocation_insights.api.schemas import HealthResponse
from relocation_insights.config import settings
from relocation_insights.data.repository import LocationRepository
from relocation_insights.data.seed import seed_default_user, seed_locations
from relocation_insights.exceptions import RelocationInsightsError
from relocation_insights.logging_config import get_logger, setup_logging

logger = get_logger(__name__)


def create_app(
    repository: Optional[LocationRepository] = None,
    providers: Optional[Providers] = None,
    seed: Optional[bool] = None,
) -> FastAPI:
    """
    Build the API application.

    Args:
        repository: Storage to serve from. Built from settings at startup when None.
        providers: Upstream clients. Built from settings at startup when None.
        seed: Seed base cities and the demo user at startup.
            Defaults to STORAGE_SEED_ON_STARTUP.
    """
    should_seed = settings.storage.seed_on_startup if seed is None else seed

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Startup: pick the storage backend once and share it across requests
        owns_repository = repository is None
        app.state.repository = repository or build_repository()
        app.state.providers = providers or Providers()

        if should_seed:
            seed_locations(app.state.repository)
            seed_default_user(app.state.repository)
        logger.info("API ready (%d locations)", app.state.repository.count_locations())

        yield

        app.state.providers.close()
        if owns_repository:
            app.state.repository.close()

    app = FastAPI(
        title="Relocation Insights API",
        description="Location data, market trends and AI summaries for CBP employees considering relocation.",
        version="1.0.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.api.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException):
        return JSONResponse(status_code=exc.status_code, content={"error": exc.detail}, headers=exc.headers)

    @app.exception_handler(RequestValidationError)
    async def validation_error(request: Request, exc: RequestValidationError):
        logger.info("Rejected %s %s: %s", request.method, request.url.path, exc.errors())
        return JSONResponse(status_code=400, content={"error": "Invalid request parameters"})

    @app.exception_handler(RelocationInsightsError)
    async def domain_error(request: Request, exc: RelocationInsightsError):
        logger.error("Unhandled %s on %s %s: %s", type(exc).__name__, request.method, request.url.path, exc.message)
        return JSONResponse(status_code=500, content={"error": exc.message})

    @app.exception_handler(Exception)
    async def unexpected_error(request: Request, exc: Exception):
        logger.error("Unexpected error on %s %s", request.method, request.url.path, exc_info=exc)
        return JSONResponse(status_code=500, content={"error": "Internal server error"})

    app.include_router(router)

    @app.get("/health", response_model=HealthResponse)
    def health_check():
        """Simple health check endpoint."""
        return HealthResponse(status="healthy", storage_backend=settings.storage_backend)

    static_dir = settings.api.static_dir
    if static_dir and Path(static_dir).is_dir():
        app.mount("/", StaticFiles(directory=static_dir, html=True), name="static")
        logger.info("Serving frontend from %s", static_dir)

    return app


app = create_app()


def main() -> None:
    settings.setup()
    setup_logging(settings.logging.level, settings.logging.file)
    uvicorn.run(
        "relocation_insights.api.main:app",
        host=settings.api.host,
        port=settings.api.port,
        reload=settings.api.reload,
    )


if __name__ == "__main__":
    main()
