"""FastAPI application entry point with lifespan, CORS, and structured logging.

This module initializes the FastAPI application with:
- Lifespan context manager owning the OpenAI and Reddit clients
- CORS middleware for the dashboard dev server
- Structured logging (JSON) to logs/backend.log
- Exception handlers for consistent error responses
- Basic health check endpoints

The clients and settings are stored on app.state (ai_client, reddit,
settings) for access by route handlers throughout the application lifecycle.

Usage:
    uvicorn brandpulse.api.app:app --reload
"""

import traceback
from contextlib import asynccontextmanager
from typing import Dict

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from brandpulse.ai_client import OpenAIClient
from brandpulse.api.models import ErrorDetail, ErrorEnvelope
from brandpulse.api.responses import INTERNAL_ERROR, NOT_FOUND, VALIDATION_ERROR
from brandpulse.api.routes import posts, sentiment, summary, system
from brandpulse.backend.utils.logging_config import get_logger, setup_logging
from brandpulse.config import load_dotenv, load_settings
from brandpulse.reddit import RedditClient


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create the shared clients on startup and close the HTTP client on shutdown.

    Args:
        app: FastAPI application instance

    Yields:
        None (context manager for startup/shutdown)
    """
    logger = get_logger(__name__)

    app.state.settings = settings
    app.state.ai_client = OpenAIClient(model=settings.openai_model)
    app.state.reddit = RedditClient(user_agent=settings.reddit_user_agent)
    logger.info("clients_initialized", model=settings.openai_model)

    try:
        yield
    finally:
        await app.state.reddit.aclose()
        logger.info("clients_closed")


# Load configuration and initialize logging before creating the app
load_dotenv()
settings = load_settings()
setup_logging(log_dir=settings.log_dir, log_filename="backend.log")

app = FastAPI(
    title="BrandPulse API",
    description="Reddit brand sentiment analysis, topic prioritization and response drafting",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

logger = get_logger(__name__)
logger.info("fastapi_app_initialized", cors_origins=settings.cors_origins)

app.include_router(sentiment.router)
app.include_router(summary.router)
app.include_router(posts.router)
app.include_router(system.router)


def _error_response(status_code: int, code: str, message: str) -> JSONResponse:
    error_envelope = ErrorEnvelope(error=ErrorDetail(code=code, message=message))
    return JSONResponse(status_code=status_code, content=error_envelope.model_dump())


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Convert request validation errors (missing entity, missing platform, ...) to a 422 envelope."""
    logger = get_logger(__name__)
    logger.warning("validation_error", path=request.url.path, errors=str(exc.errors()))

    errors = exc.errors()
    first = errors[0] if errors else {}
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = first.get("msg", "Invalid request")
    if location:
        message = f"{location}: {message}"

    return _error_response(422, VALIDATION_ERROR, f"Request validation failed: {message}")


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Route exceptions raised via raise_api_error() or raw HTTPException into the error envelope."""
    logger = get_logger(__name__)
    logger.warning("http_exception", path=request.url.path, status=exc.status_code)

    if isinstance(exc.detail, dict) and "code" in exc.detail:
        code = exc.detail["code"]
        message = exc.detail["message"]
    else:
        code_map = {404: NOT_FOUND, 422: VALIDATION_ERROR}
        code = code_map.get(exc.status_code, INTERNAL_ERROR)
        message = str(exc.detail) if exc.detail else "An error occurred"

    return _error_response(exc.status_code, code, message)


@app.exception_handler(404)
async def not_found_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger = get_logger(__name__)
    logger.warning("not_found", path=request.url.path)
    return _error_response(404, NOT_FOUND, f"Resource not found: {request.url.path}")


@app.exception_handler(Exception)
async def internal_server_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Last-resort handler for uncaught errors outside the analysis pipeline."""
    logger = get_logger(__name__)
    logger.error(
        "internal_server_error",
        path=request.url.path,
        error=str(exc),
        traceback=traceback.format_exc(),
    )
    return _error_response(500, INTERNAL_ERROR, "An internal server error occurred")


@app.get("/")
async def root() -> Dict[str, str]:
    """Root endpoint.

    Example:
        GET / -> {"status": "ok", "message": "BrandPulse API"}
    """
    return {
        "status": "ok",
        "message": "BrandPulse API"
    }


@app.get("/health")
async def health() -> Dict[str, str]:
    return {"status": "healthy"}
