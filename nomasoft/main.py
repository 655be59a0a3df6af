"""
FastAPI Application - NomaSoft contact service
"""

from __future__ import annotations

import logging
import secrets
from contextlib import asynccontextmanager

from asgi_correlation_id import CorrelationIdMiddleware
from fastapi import Depends, FastAPI, HTTPException, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from fastapi.security import HTTPBasic, HTTPBasicCredentials
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from nomasoft.config import settings
from nomasoft.content import brand_name, load_site_content
from nomasoft.observability import (
    MetricsMiddleware,
    configure_logging,
    metrics_response,
)
from nomasoft.observability.tracing import configure_tracing
from nomasoft.routers.contact import router as contact_router
from nomasoft.security import SecurityHeadersMiddleware, limiter
from nomasoft.services.captcha import captcha_verifier

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    load_site_content()
    # Surfaces partial captcha configuration at boot rather than first submit
    client_captcha = captcha_verifier.client_config()
    logger.info(
        "Application ready",
        extra={
            "brand": brand_name(),
            "captcha": client_captcha.type.value if client_captcha else "disabled",
        },
    )
    yield
    logger.info("Shutting down application")


configure_logging(settings.log_level.upper())
IS_PROD = settings.is_production


async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
    return JSONResponse(
        {"error": "rate_limited"},
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
    )


app = FastAPI(
    title="NomaSoft Contact API",
    description="Contact form submission service for the NomaSoft website",
    version="1.0.0",
    lifespan=lifespan,
    docs_url=None if IS_PROD else "/docs",
    redoc_url=None if IS_PROD else "/redoc",
    openapi_url=None if IS_PROD else "/openapi.json",
)
# Order: compression → rate-limit/metrics → security → correlation id
app.add_middleware(GZipMiddleware, minimum_size=1000)
app.add_middleware(SlowAPIMiddleware)
app.add_middleware(MetricsMiddleware)
app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(CorrelationIdMiddleware, header_name="X-Request-ID")
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_handler)
if settings.cors_origins:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=False,
        allow_methods=["GET", "POST"],
        allow_headers=["Accept", "Content-Type"],
    )
if settings.enable_tracing and settings.otlp_endpoint:
    configure_tracing(
        app, "nomasoft-contact", settings.otlp_endpoint, settings.otlp_headers
    )


@app.get("/healthz", tags=["system"], summary="Health check", response_model=dict)
async def health_check() -> dict:
    if IS_PROD:
        return {"status": "healthy"}
    return {"status": "healthy", "version": app.version}


security = HTTPBasic()


def verify_metrics_auth(
    credentials: HTTPBasicCredentials = Depends(security),
) -> str:
    """Verify HTTP Basic Auth credentials for metrics endpoint."""
    if not settings.metrics_password:
        return credentials.username

    correct_username = secrets.compare_digest(
        credentials.username, settings.metrics_username
    )
    correct_password = secrets.compare_digest(
        credentials.password, settings.metrics_password
    )

    if not (correct_username and correct_password):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
            headers={"WWW-Authenticate": "Basic"},
        )
    return credentials.username


@app.get("/metrics", include_in_schema=False)
def metrics(_: str = Depends(verify_metrics_auth)):
    """
    Prometheus metrics endpoint (protected with HTTP Basic Auth).

    Set METRICS_USERNAME and METRICS_PASSWORD environment variables.
    """
    return metrics_response()


app.include_router(contact_router)
