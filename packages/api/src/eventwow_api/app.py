"""FastAPI application factory."""

from __future__ import annotations

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from eventwow_shared import __version__
from eventwow_shared.config import Settings, settings
from eventwow_shared.errors import DiscoveryError, ValidationError

from eventwow_api.middleware.logging import LoggingMiddleware
from eventwow_api.ranking.eligibility import EligibilityGate
from eventwow_api.ranking.params import RankingParams
from eventwow_api.responses import error_response
from eventwow_api.routers.health import router as health_router
from eventwow_api.routers.v1 import v1_router
from eventwow_api.services.discovery_service import DiscoveryPipeline
from eventwow_api.services.supplier_store import SupplierStore
from eventwow_api.utils.cache import TTLCache
from eventwow_api.utils.logging import configure_logging

logger = structlog.get_logger()

RETRY_AFTER_SECONDS = 5


def build_pipeline(s: Settings = settings) -> DiscoveryPipeline:
    return DiscoveryPipeline(
        SupplierStore(batch_size=s.store_batch_size, max_candidates=s.max_candidates),
        gate=EligibilityGate(frozenset(s.eligibility_disabled_checks)),
        params=RankingParams.from_settings(s),
        baseline_cache=TTLCache(default_ttl=s.baseline_cache_ttl_seconds),
        timeout_seconds=s.store_timeout_seconds,
        default_page_size=s.default_page_size,
        max_page_size=s.max_page_size,
        max_page=s.max_page,
    )


async def discovery_error_handler(request: Request, exc: DiscoveryError) -> JSONResponse:
    log = logger.bind(path=request.url.path, code=exc.code)
    if exc.status_code >= 500:
        log.error("request_error", error=exc.message, details=exc.details)
    else:
        log.info("request_rejected", error=exc.message)
    headers = {"Retry-After": str(RETRY_AFTER_SECONDS)} if exc.retryable else None
    return JSONResponse(
        status_code=exc.status_code,
        content=error_response(
            exc.code, exc.message, retryable=exc.retryable, details=exc.details
        ),
        headers=headers,
    )


async def validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    errors = [
        {"loc": ".".join(str(p) for p in err.get("loc", ())), "msg": err.get("msg", "")}
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=ValidationError.status_code,
        content=error_response(
            ValidationError.code, "Invalid query parameters", details={"errors": errors}
        ),
    )


def create_app(pipeline: DiscoveryPipeline | None = None) -> FastAPI:
    configure_logging()

    app = FastAPI(
        title="Eventwow Discovery API",
        description="Supplier discovery, ranking and SEO listings for the Eventwow marketplace",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["GET"],
        allow_headers=["*"],
    )
    app.add_middleware(LoggingMiddleware)

    app.add_exception_handler(DiscoveryError, discovery_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)

    app.state.discovery_pipeline = pipeline or build_pipeline()

    # Routers
    app.include_router(health_router)
    app.include_router(v1_router)

    logger.info("app_created", cors_origins=settings.cors_origins_list)
    return app


app = create_app()


def run() -> None:
    """Console entry point: serve the app with uvicorn."""
    import uvicorn

    uvicorn.run(
        "eventwow_api.app:app",
        host=settings.api_host,
        port=settings.api_port,
        log_config=None,
    )
