"""FastAPI application factory for the report card directory."""

from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager
from pathlib import Path
from typing import TYPE_CHECKING, Any

from aiosqlite import connect as aiosqlite_connect
from fastapi import APIRouter, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse  # noqa: TC002

from reportcard.auth import Validate, configure_auth_router
from reportcard.common import ActionResult, ErrorKind
from reportcard.config import configure_logging, load_config_from_env
from reportcard.directory import (
    DirectoryQueries,
    DirectoryService,
    configure_directory_router,
)
from reportcard.directory.routes import to_response

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

    from reportcard.config import AppConfig

LOGGER = logging.getLogger(__name__)


def configure_fastapi_app(config: AppConfig) -> FastAPI:
    """Configure and return the FastAPI application.

    :param config: Application configuration
    :return: Configured FastAPI application
    """
    configure_logging(config)

    database_dir = Path(config.database_path).parent
    if not database_dir.exists():
        database_dir.mkdir(parents=True, exist_ok=True)
        LOGGER.info("Created directory for database at %s", database_dir)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[Any, Any]:
        """Application lifespan manager.

        Opens the directory store, creates its tables, seeds the
        super-administrator and mounts the routers.
        """
        LOGGER.info("Report card directory is starting")

        async with aiosqlite_connect(config.database_path) as db_connection:
            queries = DirectoryQueries(db_connection)
            await queries.initialize_tables()

            service = DirectoryService(queries, config.security_manager)
            await service.bootstrap(
                config.super_admin_email,
                config.super_admin_password,
            )

            validate = Validate(queries, config.security_manager)
            auth_router = configure_auth_router(APIRouter(), service, validate)
            directory_router = configure_directory_router(
                APIRouter(),
                service,
                validate,
            )

            app.include_router(auth_router, prefix="/auth", tags=["auth"])
            app.include_router(
                directory_router,
                prefix="/directory",
                tags=["directory"],
            )
            app.state.service = service

            yield

            LOGGER.info("Report card directory is shutting down")

    app = FastAPI(
        title="Report Card Directory API",
        version="0.1.0",
        lifespan=lifespan,
        root_path=config.root_path,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(
        request: Request,  # noqa: ARG001
        exc: RequestValidationError,
    ) -> JSONResponse:
        """Report malformed requests in the result envelope, naming the field."""
        error = exc.errors()[0]
        location = ".".join(
            str(part) for part in error["loc"] if part not in {"body", "query", "path"}
        )
        message = f"{location}: {error['msg']}" if location else error["msg"]
        return to_response(ActionResult.fail(ErrorKind.VALIDATION, message))

    @app.get("/")
    def read_root() -> str:
        return "Report Card Directory API"

    return app


def create_app(env_file: str | None = os.environ.get("ENV_FILE", ".env")) -> FastAPI:
    """Create and configure the FastAPI application.

    The default here is for uvicorn command line usage, in which case the user
    should set ENV_FILE environment variable if they want a different file.

    :param env_file: Optional path to the environment configuration file
    :return: Configured FastAPI application
    """
    config = load_config_from_env(env_file)
    return configure_fastapi_app(config)
