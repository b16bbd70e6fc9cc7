import logging
import os
import time
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from src.codeprep.api.api_v1.api import api_router
from src.codeprep.core.config import settings
from src.codeprep.core.error_handlers import (
    conflict_exception_handler,
    general_exception_handler,
    http_exception_handler,
    not_found_exception_handler,
    sqlalchemy_exception_handler,
    validation_exception_handler,
)
from src.codeprep.crud.base import ConflictError, NotFoundError
from src.codeprep.db.init_db import init_db
from src.codeprep.db.session import AsyncSessionLocal, SessionDep
from src.codeprep.models.base import utcnow
from src.codeprep.services.conversation_store import close_conversation_store

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan events for FastAPI application."""
    logger.info(f"Environment: {os.getenv('ENV', 'not set')}")

    try:
        async with AsyncSessionLocal() as session:
            await init_db(session)
        logger.info("Database connection verified")
    except SQLAlchemyError as e:
        logger.error(f"Database initialization failed: {e}")
        # Don't fail startup for database issues in development
        if os.getenv("ENV") == "production":
            raise

    yield

    await close_conversation_store()


def mask_authorization(value: str) -> str:
    """Keep only the start of a bearer token for the logs."""
    if value.startswith("Bearer ") and len(value) > 16:
        return value[:16] + "..."
    return value


def create_app() -> FastAPI:
    """Create FastAPI application."""
    app = FastAPI(
        lifespan=lifespan,
        title=settings.PROJECT_NAME,
        openapi_url=f"{settings.API_V1_STR}/openapi.json",
    )

    # Health check endpoint
    @app.get("/healthz")
    async def health_check(db: SessionDep):
        """Health check endpoint for container orchestration."""
        try:
            await db.execute(text("SELECT 1"))
        except SQLAlchemyError as e:
            logger.error(f"Health check failed: {e}")
            raise HTTPException(status_code=503, detail="Service unhealthy")
        return {
            "status": "healthy",
            "timestamp": utcnow().isoformat(),
            "service": settings.PROJECT_NAME,
        }

    # Log every request line; bodies are never logged
    @app.middleware("http")
    async def log_request_middleware(request: Request, call_next):
        start_time = time.time()

        headers_dict = dict(request.headers)
        if "authorization" in headers_dict:
            headers_dict["authorization"] = mask_authorization(headers_dict["authorization"])
        if "cookie" in headers_dict:
            headers_dict["cookie"] = "(masked)"
        logger.info(f"{request.method} {request.url.path} query={dict(request.query_params)}")
        logger.debug(f"Headers: {headers_dict}")

        response = await call_next(request)

        process_time = time.time() - start_time
        logger.info(f"{request.method} {request.url.path} -> {response.status_code} in {process_time:.4f}s")
        return response

    # Add exception handlers
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(NotFoundError, not_found_exception_handler)
    app.add_exception_handler(ConflictError, conflict_exception_handler)
    app.add_exception_handler(SQLAlchemyError, sqlalchemy_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)

    environment = os.getenv("ENV", "development")
    if environment == "development":
        logger.info("Development mode: Allowing all CORS origins")
        cors_origins = ["*"]
    else:
        cors_origins = settings.BACKEND_CORS_ORIGINS.copy()
    logger.info("CORS Origins: %s", cors_origins)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        max_age=600,  # Cache preflight requests for 10 minutes
    )

    # Include the routers
    app.include_router(api_router, prefix=settings.API_V1_STR)

    return app


app = create_app()

if __name__ == "__main__":
    host = "localhost"
    port = settings.SERVER_PORT
    uvicorn.run(app, host=host, port=port)
