from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any

import sentry_sdk
from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, RedirectResponse
from sentry_sdk.integrations.fastapi import FastApiIntegration

from .api.routes import analytics as analytics_routes
from .api.routes import blog as blog_routes
from .api.routes import businesses as businesses_routes
from .api.routes import categories as categories_routes
from .api.routes import content as content_routes
from .api.routes import preferences as preferences_routes
from .api.routes import reviews as reviews_routes
from .api.routes import stats as stats_routes
from .api.routes import users as users_routes
from .api.utils import envelope_response
from .contracts import ApiResponse
from .health import health_checker
from .logging_config import SERVICE_NAME, SERVICE_VERSION, configure_structlog, get_logger
from .metrics import PrometheusMiddleware, get_metrics
from .service import service
from .settings import settings
from .utils import add_cors, add_request_id_tracing, add_security_headers

# Configure structured logging (must be done before any logging calls)
configure_structlog(json_logs=not settings.DEBUG)

if settings.SENTRY_DSN:
    sentry_sdk.init(
        dsn=settings.SENTRY_DSN,
        environment=settings.SENTRY_ENVIRONMENT,
        release=settings.SENTRY_RELEASE or f"{SERVICE_NAME}@dev",
        integrations=[FastApiIntegration()],
        traces_sample_rate=settings.SENTRY_TRACES_SAMPLE_RATE,
    )

# Use structlog for structured logging
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    mirrored = await service.bootstrap()
    logger.info(
        "directory_ready",
        site=settings.SITE_NAME,
        businesses=len(service.directory.businesses),
        sql_mirror=mirrored,
    )
    yield
    await service.analytics.drain()


app = FastAPI(
    title=f"{settings.SITE_NAME} Directory API",
    version=SERVICE_VERSION,
    description=f"Local business directory for {settings.DIRECTORY_NICHE}",
    lifespan=lifespan,
)
add_cors(app)
add_security_headers(app)
add_request_id_tracing(app)
app.add_middleware(PrometheusMiddleware)

API_PREFIX = "/v1"

for router in (
    businesses_routes.router,
    categories_routes.router,
    reviews_routes.router,
    blog_routes.router,
    analytics_routes.router,
    users_routes.router,
    preferences_routes.router,
    stats_routes.router,
    content_routes.router,
):
    app.include_router(router, prefix=API_PREFIX)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Report malformed requests in the same envelope the service uses."""
    first = exc.errors()[0] if exc.errors() else {}
    loc = [str(part) for part in first.get("loc", ())]
    if loc and loc[0] in {"body", "query", "path", "header"}:
        loc = loc[1:]
    envelope = ApiResponse.fail(
        first.get("msg", "Invalid request"),
        field=loc[0] if loc else None,
        status_code=422,
    )
    return envelope_response(envelope)


@app.get("/health")
async def health():
    """Return service health including dependency checks."""
    health_status = await health_checker.check_all()
    status_code = 200 if health_status["status"] == "healthy" else 503
    body = {
        "status": health_status["status"],
        "timestamp": health_status.get("timestamp"),
        "checks": health_status.get("checks", {}),
    }
    if not settings.DEBUG:
        body["checks"] = _scrub_health_details(body["checks"])
    body["service"] = SERVICE_NAME
    body["version"] = SERVICE_VERSION

    return JSONResponse(content=body, status_code=status_code)


@app.get("/metrics")
def metrics():
    """Expose Prometheus metrics."""
    try:
        return get_metrics()
    except Exception:  # pragma: no cover - defensive path
        logger.exception("Metrics export failed")
        raise HTTPException(status_code=503, detail="metrics unavailable")


@app.get("/", include_in_schema=False)
def root_redirect():
    return RedirectResponse(url="/docs", status_code=307)


def _scrub_health_details(payload: dict[str, Any]) -> dict[str, Any]:
    """Remove error internals from health details outside DEBUG."""

    def _scrub(value: Any) -> Any:
        if isinstance(value, dict):
            cleaned: dict[str, Any] = {}
            for key, inner in value.items():
                if key in {"error", "error_type", "traceback"}:
                    continue
                cleaned[key] = _scrub(inner)
            return cleaned
        if isinstance(value, list):
            return [_scrub(item) for item in value]
        return value

    return _scrub(payload)
