"""FastAPI app factory for the Non-Rev planner."""

import asyncio
import logging
import os
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from ..cache.client import ValkeyClient
from ..cache.config import ValkeyConfig
from ..database.config import DatabaseConfig, get_database_config
from ..exceptions import InvalidInput, MissingParameter, NonRevError
from ..services.factory import build_pipeline
from ..services.pipeline import FlightSearchPipeline
from ..utils.config import PlannerConfig, get_config
from .routes import api_router

logger = logging.getLogger(__name__)

CLIENT_ERRORS = (MissingParameter, InvalidInput)


def create_app(
    pipeline: Optional[FlightSearchPipeline] = None,
    db_config: Optional[DatabaseConfig] = None,
    config: Optional[PlannerConfig] = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        pipeline: Pre-built pipeline; built from settings at startup when omitted
        db_config: Database configuration; the global one when omitted
        config: Planner settings; loaded from the environment when omitted

    Returns:
        FastAPI application instance
    """
    config = config or get_config()
    db_config = db_config or get_database_config()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        valkey_client = None
        if app.state.pipeline is None:
            await asyncio.to_thread(db_config.create_tables)
            if config.cache_backend == "valkey":
                valkey_client = ValkeyClient(ValkeyConfig.from_env())
            app.state.pipeline = await build_pipeline(config, db_config, valkey_client)
        try:
            yield
        finally:
            if valkey_client is not None:
                await valkey_client.disconnect()

    app = FastAPI(
        title="Non-Rev Flight Planner",
        root_path=os.getenv("ROOT_PATH", ""),
        lifespan=lifespan,
    )
    app.state.pipeline = pipeline
    app.state.db_config = db_config
    app.state.config = config

    register_error_handlers(app)
    app.include_router(api_router, prefix="/api")
    return app


def register_error_handlers(app: FastAPI) -> None:
    """Map planner errors onto ``{error, details}`` responses."""

    @app.exception_handler(NonRevError)
    async def handle_planner_error(request: Request, exc: NonRevError):
        if isinstance(exc, CLIENT_ERRORS):
            return JSONResponse(status_code=400, content=exc.to_dict())
        logger.error(f"{request.method} {request.url.path} failed: {exc.error_code}: {exc.details}")
        return JSONResponse(status_code=500, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=400,
            content={"error": InvalidInput.error_code, "details": "Request body must be a JSON object"},
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.exception(f"{request.method} {request.url.path} failed")
        return JSONResponse(
            status_code=500,
            content={"error": "InternalError", "details": "Unexpected server error"},
        )
