"""
FastAPI main application for the Loop hospital network assistant

This module sets up the FastAPI application with:
- API configuration and middleware
- CORS handling
- Error handling
- Logging configuration
- Hospital directory loading at startup
"""

import logging
import sys
import time
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
import uvicorn
from app.config import settings, validate_configuration
from app.api import get_api_router
from app.directory import DirectoryLoadError, load_hospital_directory
from app.llm import check_gemini_connection
from app.models import ErrorResponse
from app.telephony import get_telephony_router

# Configure logging
_handlers = [logging.StreamHandler(sys.stdout)]
if settings.log_file:
    _handlers.append(logging.FileHandler(settings.log_file))

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper()),
    format=settings.log_format,
    handlers=_handlers
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan context manager for startup and shutdown events.

    The server does not start serving unless the hospital directory loads.

    Args:
        app: FastAPI application instance
    """
    # Startup
    logger.info("Starting Loop hospital network assistant...")
    if not validate_configuration():
        logger.error("Configuration validation failed")
        sys.exit(1)

    try:
        directory = load_hospital_directory(settings.hospital_csv_path)
    except DirectoryLoadError as e:
        logger.error(f"Failed to start server because hospitals CSV could not be loaded: {e}")
        sys.exit(1)

    if settings.gemini_api_key:
        if not check_gemini_connection():
            logger.warning("Gemini API connection test failed - queries will use the rule-based parser")

    logger.info(f"Application startup completed with {len(directory)} hospitals")

    yield

    # Shutdown
    logger.info("Shutting down Loop hospital network assistant...")


# Create FastAPI application
app = FastAPI(
    title=settings.api_title,
    description=settings.api_description,
    version=settings.api_version,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc"
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """
    Middleware to log all HTTP requests.

    Args:
        request: HTTP request
        call_next: Next middleware/endpoint

    Returns:
        HTTP response
    """
    start_time = time.time()

    logger.info(f"{request.method} {request.url.path} - {request.client.host if request.client else 'unknown'}")

    response = await call_next(request)

    process_time = time.time() - start_time
    logger.info(f"{request.method} {request.url.path} - {response.status_code} - {process_time:.4f}s")

    return response


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    """
    Handle HTTP exceptions.

    Args:
        request: HTTP request
        exc: HTTP exception

    Returns:
        JSON error response
    """
    logger.error(f"HTTP Exception: {exc.status_code} - {exc.detail}")

    error_response = ErrorResponse(
        error=str(exc.detail),
        error_code=str(exc.status_code)
    )

    return JSONResponse(
        status_code=exc.status_code,
        content=error_response.model_dump(mode="json")
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """
    Handle request validation errors.

    Args:
        request: HTTP request
        exc: Validation exception

    Returns:
        JSON error response
    """
    logger.error(f"Validation Error: {exc.errors()}")

    error_response = ErrorResponse(
        error="Request validation failed",
        error_code="VALIDATION_ERROR",
        details={"errors": [str(error.get("msg", "")) for error in exc.errors()]}
    )

    return JSONResponse(
        status_code=422,
        content=error_response.model_dump(mode="json")
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """
    Handle general exceptions.

    Args:
        request: HTTP request
        exc: Exception

    Returns:
        JSON error response
    """
    logger.error(f"Unhandled Exception: {type(exc).__name__} - {str(exc)}")

    error_response = ErrorResponse(
        error="Internal server error",
        error_code="INTERNAL_ERROR",
        details={"exception_type": type(exc).__name__}
    )

    return JSONResponse(
        status_code=500,
        content=error_response.model_dump(mode="json")
    )


# Include routers
app.include_router(get_api_router(), prefix="/api")
app.include_router(get_telephony_router())


@app.get("/")
async def root():
    """
    Root endpoint with basic API information.

    Returns:
        JSON response with API info
    """
    return {
        "name": settings.api_title,
        "version": settings.api_version,
        "status": "operational",
        "docs": "/docs",
        "api_prefix": "/api",
        "voice_webhook": "/twilio/voice"
    }


def main():
    """Main entry point for running the application."""
    try:
        logger.info(f"Starting server on {settings.app_host}:{settings.app_port}")

        uvicorn.run(
            "app.main:app",
            host=settings.app_host,
            port=settings.app_port,
            reload=settings.debug,
            log_level=settings.log_level.lower(),
            access_log=True
        )

    except KeyboardInterrupt:
        logger.info("Server shutdown requested by user")
    except Exception as e:
        logger.error(f"Server startup failed: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
