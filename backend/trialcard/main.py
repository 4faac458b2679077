import logging
import time

import sentry_sdk
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.routing import APIRoute
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest
from sentry_sdk.integrations.fastapi import FastApiIntegration
from slowapi.middleware import SlowAPIMiddleware

from .auth import get_current_user
from .config import Settings, get_settings
from .errors import register_error_handlers
from .logging_config import setup_logging
from .routes import audit, auth, department_progress, departments, master_list, stages, trials

_logger = logging.getLogger(__name__)

REQUEST_COUNT = Counter("request_count", "Total requests", ["method", "endpoint"])
REQUEST_LATENCY = Histogram(
    "request_latency_seconds", "Request latency", ["endpoint"]
)

PUBLIC_PATHS = {
    "/api/login",
    "/api/login/refresh-token",
    "/api/departments",
    "/metrics",
}


def _dependency_calls(dependant):
    for dep in dependant.dependencies:
        yield dep.call
        yield from _dependency_calls(dep)


ROUTERS = [
    auth.router,
    departments.router,
    trials.router,
    *stages.routers,
    master_list.router,
    department_progress.router,
    audit.router,
]


def iter_api_routes(routes):
    """Yield every APIRoute, descending into mounted or included sub-routers."""

    for route in routes:
        if isinstance(route, APIRoute):
            yield route
            continue
        nested = getattr(route, "routes", None)
        if nested is None and getattr(route, "router", None) is not None:
            nested = getattr(route.router, "routes", None)
        if nested:
            yield from iter_api_routes(nested)


def audit_routes(routers) -> int:
    """Refuse to start if any non-public API route skips authentication.

    Returns the number of API routes checked; finding none is an error.
    """

    checked = 0
    for router in routers:
        for route in iter_api_routes(router.routes):
            if not route.path.startswith("/api"):
                continue
            checked += 1
            if route.path in PUBLIC_PATHS:
                continue
            if get_current_user not in set(_dependency_calls(route.dependant)):
                raise RuntimeError(f"Route {route.path} missing authentication")
    if checked == 0:
        raise RuntimeError("No API routes found to audit")
    return checked


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()
    setup_logging(settings.log_level, settings.log_format)

    if settings.sentry_dsn:
        sentry_sdk.init(dsn=settings.sentry_dsn, integrations=[FastApiIntegration()])

    app = FastAPI(title=settings.app_name)
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.limiter = auth.limiter
    if not settings.testing:
        app.add_middleware(SlowAPIMiddleware)

    register_error_handlers(app)

    @app.middleware("http")
    async def record_metrics(request: Request, call_next):
        start = time.time()
        response = await call_next(request)
        endpoint = request.url.path
        REQUEST_COUNT.labels(request.method, endpoint).inc()
        REQUEST_LATENCY.labels(endpoint).observe(time.time() - start)
        return response

    @app.get("/metrics")
    def metrics():
        return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)

    checked = audit_routes(ROUTERS)
    for router in ROUTERS:
        app.include_router(router)
    _logger.info("%s started with %d API routes", settings.app_name, checked)
    return app


app = create_app()
