"""
FastAPI Application Entry Point
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException

from lingopal.api.router import api_router
from lingopal.core.config import settings
from lingopal.core.errors import (
    AppError,
    app_exception_handler,
    general_exception_handler,
    http_exception_handler,
    validation_exception_handler,
)
from lingopal.core.logging import RequestContextMiddleware, get_logger, setup_logging
from lingopal.infra.db import close_db_connection, engine, init_models

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    setup_logging()
    if settings.db_auto_create:
        await init_models(engine)
    logger.info("app.startup", env=settings.env)

    yield

    # Shutdown
    await close_db_connection()
    logger.info("app.shutdown")


tags_metadata = [
    {
        "name": "friend-requests",
        "description": "Send, accept and list friend requests.",
    },
    {
        "name": "friends",
        "description": "Confirmed friends and partner recommendations.",
    },
    {
        "name": "health",
        "description": "System health check.",
    },
]


def create_app() -> FastAPI:
    app = FastAPI(
        title="LingoPal Backend",
        description="""
LingoPal API helps language learners find exchange partners.

## Features
* **Recommendations**: Onboarded learners you are not friends with yet.
* **Friend Requests**: Send a request, accept the ones addressed to you.
* **Friends**: Your confirmed language partners.
""",
        version="0.1.0",
        openapi_tags=tags_metadata,
        openapi_url=f"{settings.api_prefix}/openapi.json",
        docs_url="/docs",
        redoc_url="/redoc",
        swagger_ui_parameters={
            "persistAuthorization": True,
            "displayRequestDuration": True
        },
        lifespan=lifespan,
    )

    # Middleware
    app.add_middleware(RequestContextMiddleware)

    # CORS Configuration
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=settings.cors_credentials,
        allow_methods=settings.cors_methods,
        allow_headers=settings.cors_headers,
    )

    @app.get("/", tags=["health"], include_in_schema=False)
    async def root():
        return {
            "message": "Welcome to LingoPal Backend API",
            "docs": "/docs",
            "status": "operational"
        }

    # Routes
    app.include_router(api_router, prefix=settings.api_prefix)

    # Exception Handlers
    app.add_exception_handler(AppError, app_exception_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)

    return app


app = create_app()
