"""
ClaimsIntake Backend - Main Application Entry Point
"""
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.core.config import settings
from app.core.exceptions import (
    ClaimsIntakeError,
    ConcurrencyConflictError,
    ExternalDependencyError,
    InvalidStateError,
    NotFoundError,
    ValidationError,
)
from app.core.langfuse_handler import flush_langfuse
from app.core.logging import logger
from app.core.middleware import CorrelationIdMiddleware, SecurityHeadersMiddleware
from app.api.routes import claims, documents, verification, triage


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifecycle management."""
    # Startup
    logger.info(f"Starting {settings.APP_NAME} in {settings.APP_ENV} mode")
    yield
    # Shutdown
    flush_langfuse()
    logger.info("Shutting down...")


app = FastAPI(
    title=settings.APP_NAME,
    description="FNOL claims intake: verification-gated risk assessment and triage",
    version="1.0.0",
    lifespan=lifespan,
)

# CORS Configuration
app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000", "http://localhost:3001", "http://localhost:3002"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(CorrelationIdMiddleware)


# Error category -> HTTP status
STATUS_BY_ERROR = (
    (ValidationError, status.HTTP_400_BAD_REQUEST),
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (InvalidStateError, status.HTTP_409_CONFLICT),
    (ConcurrencyConflictError, status.HTTP_409_CONFLICT),
    (ExternalDependencyError, status.HTTP_502_BAD_GATEWAY),
)


def _error_body(request: Request, error: str, message: str, **extra) -> dict:
    return {
        "error": error,
        "message": message,
        "correlation_id": getattr(request.state, "correlation_id", None),
        **extra,
    }


@app.exception_handler(ClaimsIntakeError)
async def claims_intake_error_handler(request: Request, exc: ClaimsIntakeError):
    status_code = next(
        (code for error_cls, code in STATUS_BY_ERROR if isinstance(exc, error_cls)),
        status.HTTP_500_INTERNAL_SERVER_ERROR,
    )
    extra = {"errors": exc.errors} if isinstance(exc, ValidationError) else {}
    if status_code >= 500:
        logger.error(f"{type(exc).__name__} on {request.method} {request.url.path}: {exc.message}")
        message = exc.message if status_code == status.HTTP_502_BAD_GATEWAY else "Internal server error"
    else:
        logger.warning(f"{type(exc).__name__} on {request.method} {request.url.path}: {exc.message}")
        message = exc.message
    return JSONResponse(
        status_code=status_code,
        content=_error_body(request, exc.error_code, message, **extra),
    )


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    errors = [f"{'.'.join(str(p) for p in e['loc'])}: {e['msg']}" for e in exc.errors()]
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=_error_body(request, ValidationError.error_code, "Invalid request", errors=errors),
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_error_body(request, "internal_error", "Internal server error"),
    )


# Include API Routers
app.include_router(claims.router, prefix="/claims", tags=["Claims"])
app.include_router(documents.router, prefix="/claims", tags=["Documents"])
app.include_router(verification.router, prefix="/verification", tags=["Verification"])
app.include_router(triage.router, tags=["Triage"])


@app.get("/")
async def root():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "app": settings.APP_NAME,
        "env": settings.APP_ENV,
    }
