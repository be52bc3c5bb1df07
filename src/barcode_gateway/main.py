# src/barcode_gateway/main.py
import logging
import platform
import time
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from barcode_gateway.api.dependencies import build_context
from barcode_gateway.api.v1.router import api_router
from barcode_gateway.core.config import get_settings
from barcode_gateway.core.limiter import limiter
from barcode_gateway.core.metrics import REQUEST_COUNT

settings = get_settings()
logger = logging.getLogger(__name__)

_STARTED_AT = time.monotonic()


class MetricsMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        response = await call_next(request)
        REQUEST_COUNT.labels(
            method=request.method,
            path=request.url.path,
            status_code=str(response.status_code),
        ).inc()
        return response


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    # Startup: Logging, HTTP Client, Limiter und Cache initialisieren
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    app.state.context = build_context(get_settings())
    logger.info("%s %s started", settings.app_name, settings.app_version)
    yield
    # Shutdown: Gracefully schließen
    await app.state.context.aclose()
    logger.info("%s stopped", settings.app_name)


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan,
)

# Rate Limiting (eingehend, pro Client-IP)
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)  # type: ignore[arg-type]

# Metrics Middleware
app.add_middleware(MetricsMiddleware)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["GET", "DELETE"],
    allow_headers=["X-API-Key", "Content-Type"],
)

app.include_router(api_router)


@app.get("/healthz", tags=["Health"])
async def health_check() -> dict[str, str]:
    return {"status": "ok", "version": settings.app_version}


@app.get("/healthz/detailed", tags=["Health"])
async def detailed_health_check() -> dict[str, Any]:
    return {
        "status": "ok",
        "version": settings.app_version,
        "uptime_seconds": round(time.monotonic() - _STARTED_AT, 3),
        "system": {
            "platform": platform.platform(),
            "python_version": platform.python_version(),
        },
    }


@app.get("/readyz", tags=["Health"])
async def readiness_check() -> dict[str, str]:
    return {"status": "ready"}


@app.get("/metrics", tags=["Monitoring"])
async def metrics_endpoint() -> Response:
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
