"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import OperationalError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError

from src.api import auth, groups, users
from src.config import get_settings
from src.services.exceptions import AccountServiceError, Unavailable

settings = get_settings()

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

RETRY_HEADERS = {"Retry-After": "5"}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Handle application startup and shutdown events."""
    logger.info(f"Starting account administration API ({settings.environment})")
    yield


app = FastAPI(
    title="Sentinel Admin API",
    description="Administration of user accounts, groups and account flags",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS middleware for development
if settings.is_development:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:3000"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )


@app.exception_handler(AccountServiceError)
async def account_service_error_handler(request: Request, exc: AccountServiceError):
    """Render service errors with their user-facing message."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "errors": exc.errors},
        headers=RETRY_HEADERS if isinstance(exc, Unavailable) else None,
    )


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    """Report invalid request data as field-level 400 errors."""
    errors: dict[str, list[str]] = {}
    for error in exc.errors():
        location = [str(part) for part in error.get("loc", ()) if part != "body"]
        field = ".".join(location) or "__root__"
        errors.setdefault(field, []).append(error.get("msg", "Invalid value"))
    first = next(iter(errors.values()), ["The given data was invalid."])[0]
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": first, "errors": errors},
    )


@app.exception_handler(OperationalError)
@app.exception_handler(PoolTimeoutError)
async def store_unavailable_handler(request: Request, exc: Exception):
    """Database timeouts and connection failures are retryable 503s."""
    logger.error(f"Account store unavailable: {exc}")
    unavailable = Unavailable()
    return JSONResponse(
        status_code=unavailable.status_code,
        content={"detail": unavailable.message, "errors": {}},
        headers=RETRY_HEADERS,
    )


# Register routers
app.include_router(auth.router)
app.include_router(users.router)
app.include_router(groups.router)


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "environment": settings.environment}
