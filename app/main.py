"""
Tablehop Backend - FastAPI Application

Main entry point for the application.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.api.v1 import router as api_v1_router
from app.core.config import settings
from app.core.database import close_db, get_session_maker
from app.core.exceptions import (
    AppError,
    app_error_handler,
    error_body,
    request_validation_handler,
)
from app.core.logging import setup_logging
from app.services.otp_service import run_cleanup_forever


logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan manager.

    Starts the expired-code sweep and closes the database pool on shutdown.
    """
    setup_logging()
    logger.info("Starting Tablehop Backend (%s)", settings.ENVIRONMENT)

    cleanup_task = None
    if settings.OTP_CLEANUP_INTERVAL_SECONDS > 0:
        cleanup_task = asyncio.create_task(
            run_cleanup_forever(get_session_maker(), settings.OTP_CLEANUP_INTERVAL_SECONDS)
        )

    yield

    logger.info("Shutting down Tablehop Backend")
    if cleanup_task is not None:
        cleanup_task.cancel()
        try:
            await cleanup_task
        except asyncio.CancelledError:
            pass
        except Exception:
            logger.exception("Reset code sweep ended with an error")
    await close_db()


# Create FastAPI application
app = FastAPI(
    title="Tablehop Backend",
    description="Restaurant discovery API: accounts and email OTP password reset.",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_exception_handler(AppError, app_error_handler)
app.add_exception_handler(RequestValidationError, request_validation_handler)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(str(exc.detail)),
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content=error_body("Internal server error"))


# Include API routers
app.include_router(api_v1_router, prefix="/api/v1")


@app.get("/health", tags=["Health"])
async def health_check() -> dict:
    """
    Health check endpoint.

    Returns:
        dict: Health status and environment info.
    """
    return {
        "status": "healthy",
        "environment": settings.ENVIRONMENT,
        "version": "0.1.0",
    }


@app.get("/", tags=["Root"])
async def root() -> dict:
    return {
        "message": "Welcome to Tablehop Backend API",
        "docs": "/docs",
        "health": "/health",
    }
