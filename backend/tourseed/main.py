"""
Tour Seed Reconciler -- maintenance API.
Reconcile published tours with the catalog and audit the resulting
itinerary trees over HTTP. The same operations are available from the CLI.
"""

from contextlib import asynccontextmanager
import logging
import time

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded

from tourseed.api import health, routes_tours
from tourseed.core.config import ConfigurationError, settings
from tourseed.core.monitoring import configure_logging
from tourseed.core.rate_limiting import limiter, rate_limit_handler
from tourseed.db.database import init_db

configure_logging(settings.log_level, settings.log_format)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Starting {settings.app_name} v{settings.app_version} ({settings.environment})")
    try:
        init_db()
    except ConfigurationError as e:
        # Store endpoints answer 503 until DATABASE_URL is set
        logger.error(f"Database not configured: {e}")

    try:
        catalog = routes_tours.configured_catalog()
        logger.info(f"Catalog {settings.catalog_path}: {len(catalog)} tours")
    except (OSError, ValueError) as e:
        logger.error(f"Catalog {settings.catalog_path} unusable, reconcile disabled: {e}")

    yield


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="Seeds and reconciles tour itineraries, and audits their structure.",
    docs_url="/docs" if settings.debug else None,
    redoc_url=None,
    lifespan=lifespan,
)
app.state.last_reconcile = None

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_handler)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=False,
    allow_methods=settings.cors_allow_methods,
    allow_headers=settings.cors_allow_headers,
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.perf_counter()
    response = await call_next(request)
    elapsed_ms = (time.perf_counter() - start) * 1000
    logger.info(
        f"{request.method} {request.url.path} -> {response.status_code} in {elapsed_ms:.0f}ms",
        extra={"duration_ms": round(elapsed_ms)},
    )
    return response


@app.exception_handler(Exception)
async def unhandled_error(request: Request, exc: Exception):
    logger.error(f"Unhandled exception on {request.url.path}: {exc}", exc_info=True)
    detail = str(exc) if settings.debug else "An unexpected error occurred"
    return JSONResponse(status_code=500, content={"error": "Internal Server Error", "detail": detail})


app.include_router(health.router, prefix=settings.api_prefix)
app.include_router(routes_tours.router, prefix=settings.api_prefix)


@app.get("/")
async def root():
    prefix = settings.api_prefix
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "status": "running",
        "endpoints": {
            "health": f"{prefix}/health/",
            "reconcile": f"{prefix}/tours/reconcile",
            "audit": f"{prefix}/tours/audit",
            "inventory": f"{prefix}/tours/inventory",
        },
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "tourseed.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )
