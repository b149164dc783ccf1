"""FastAPI application factory"""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

from horizon.api.dependencies import get_request_id
from horizon.api.errors import http_error
from horizon.api.middleware import RequestIDMiddleware, MetricsMiddleware
from horizon.api.v1 import auth, banks, pages, transfers
from horizon.config import settings
from horizon.domain.exceptions import HorizonError
from horizon.infrastructure.observability.logging import setup_logging

setup_logging(settings.log_level)

ROUTERS = (
    (auth.router, "auth"),
    (banks.router, "banks"),
    (pages.router, "pages"),
    (transfers.router, "transfers"),
)


async def horizon_error_handler(request: Request, exc: HorizonError) -> JSONResponse:
    """Domain errors that escape a route get the same status mapping as caught ones"""
    error = http_error(exc, get_request_id(request))
    return JSONResponse(status_code=error.status_code, content={"detail": error.detail})


def create_app() -> FastAPI:
    """Build the Horizon API with tracing, metrics and the v1 routers"""
    app = FastAPI(
        title="Horizon",
        description="Linked bank accounts, balances, transaction history and transfers",
        version="0.1.0",
    )

    # RequestIDMiddleware runs first so metrics and handlers see the id
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)
    app.add_exception_handler(HorizonError, horizon_error_handler)

    @app.get("/health")
    def health_check():
        return {
            "status": "ok",
            "service": settings.service_name,
            "environment": settings.environment,
        }

    @app.get("/metrics")
    def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    for router, tag in ROUTERS:
        app.include_router(router, prefix="/v1", tags=[tag])

    return app


app = create_app()
