"""Mortgage Credit Reporting Service - FastAPI Entry Point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from mortgage_credit.config import settings
from mortgage_credit.database import engine, Base
from mortgage_credit import models  # noqa: F401
from mortgage_credit.middleware.error_capture import ErrorCaptureMiddleware
from mortgage_credit.api import credit
from mortgage_credit.services.credit_reporting.encryption import configured_key

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Refuse to start without a valid credit key; create tables in dev only."""
    configured_key()
    if settings.environment == "development":
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
    logger.info(
        "Credit service started: provider=%s retention_days=%s",
        settings.credit_bureau_provider, settings.credit_retention_days,
    )
    yield
    await engine.dispose()


app = FastAPI(
    title="Mortgage Credit Reporting API",
    description="Tri-merge credit pulls, FCRA retention and pull-log audit trail",
    version="0.1.0",
    lifespan=lifespan,
)

app.state.limiter = credit.limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


# ── Security headers middleware ──────────────────────────────────
class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Adds standard security headers to every response."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        response.headers["Cache-Control"] = "no-store"
        if settings.environment != "development":
            response.headers["Strict-Transport-Security"] = "max-age=63072000; includeSubDomains"
        return response


# Error capture middleware
app.add_middleware(ErrorCaptureMiddleware)

# Security headers
app.add_middleware(SecurityHeadersMiddleware)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type", "Accept", "X-Requested-With"],
)

# Routers
app.include_router(credit.router, prefix="/api/credit", tags=["Credit Reporting"])


@app.get("/api/health")
async def health_check():
    return {"status": "healthy", "service": "mortgage-credit-api", "version": "0.1.0"}
