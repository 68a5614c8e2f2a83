"""
Screen Service - Main Entry Point
Serves screen templates and rendered component trees over HTTP
"""

import time
from contextlib import asynccontextmanager
from typing import Any

from fastapi import Depends, FastAPI, Query, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from injector import Injector
from prometheus_client import CONTENT_TYPE_LATEST
from pydantic import BaseModel, Field, ValidationError as PydanticValidationError
from pydantic.alias_generators import to_snake

from core import (
    LogContext,
    ScreenRequest,
    Settings,
    ValidationError,
    configure_logging,
    create_container,
    get_logger,
    get_settings,
    init_tracer,
    new_request_id,
    safe_json_dumps,
)
from handlers import ScreenHandler
from interpreter import ActionDispatcher, EnvironmentProvider, EvaluationError, Interpreter
from monitoring import MetricsCollector
from schema import RenderedScreen
from screens import ResolutionError, ScreenService, TemplateStore

logger = get_logger(__name__)

CORRELATION_HEADER = "X-Correlation-ID"


class RenderBody(BaseModel):
    """Caller-supplied bindings and context for a render."""

    environment: dict[str, Any] = Field(default_factory=dict)
    context: dict[str, Any] = Field(default_factory=dict)


class InteractionBody(RenderBody):
    """A tap/submit on one rendered node."""

    identity: str = Field(min_length=1)


def json_response(content: Any, status_code: int = 200, headers: dict[str, str] | None = None) -> Response:
    """JSON response with sorted keys (stable bodies for equal content)."""
    return Response(
        content=safe_json_dumps(content),
        status_code=status_code,
        media_type="application/json",
        headers=headers,
    )


def error_response(status_code: int, error: str, message: str) -> Response:
    return json_response({"error": error, "message": message}, status_code=status_code)


def screen_request(
    screen_id: str,
    user_id: str | None = Query(default=None, alias="userId"),
    route_id: str | None = Query(default=None, alias="routeId"),
    service_date: str | None = Query(default=None, alias="serviceDate"),
    device_model: str | None = Query(default=None, alias="deviceModel"),
    app_version: str | None = Query(default=None, alias="appVersion"),
    locale: str | None = Query(default=None),
) -> dict[str, Any]:
    """Path and query parameters of a screen request (validated later)."""
    return {
        "screen_id": screen_id,
        "user_id": user_id,
        "route_id": route_id,
        "service_date": service_date,
        "device_model": device_model,
        "app_version": app_version,
        "locale": locale,
    }


def validate_request(params: dict[str, Any], overrides: dict[str, Any] | None = None) -> ScreenRequest:
    """
    Build a ScreenRequest, letting body context fields override query ones.

    Raises:
        ValidationError: If the request is invalid
    """
    merged = dict(params)
    for key, value in (overrides or {}).items():
        name = to_snake(key)
        if name != "screen_id" and value is not None:
            merged[name] = value
    try:
        return ScreenRequest(**merged)
    except PydanticValidationError as e:
        first = e.errors()[0]
        field = ".".join(str(p) for p in first.get("loc", ())) or "request"
        raise ValidationError(f"{field}: {first.get('msg', 'invalid')}") from e


def create_app(container: Injector | None = None, settings: Settings | None = None) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        container: Dependency container (defaults to one built from settings)
        settings: Settings used when no container is given
    """
    container = container or create_container(settings)
    settings = container.get(Settings)

    handler = ScreenHandler(
        service=container.get(ScreenService),
        interpreter=container.get(Interpreter),
        environment_provider=container.get(EnvironmentProvider),
        metrics=container.get(MetricsCollector),
    )
    metrics = handler.metrics

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Log startup, release clients on shutdown."""
        logger.info(
            "service_starting",
            store=settings.template_store,
            cache=settings.enable_cache,
            max_depth=settings.max_depth,
        )
        yield
        for dependency in (container.get(TemplateStore), container.get(ActionDispatcher)):
            close = getattr(dependency, "close", None)
            if close is not None:
                close()
        logger.info("service_stopped")

    app = FastAPI(title="SDUI Screen Service", version="1.0.0", lifespan=lifespan)
    app.state.container = container
    app.state.handler = handler

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
        expose_headers=[CORRELATION_HEADER, "ETag"],
    )

    @app.middleware("http")
    async def correlation_id(request: Request, call_next):
        correlation = request.headers.get(CORRELATION_HEADER) or new_request_id()
        request.state.correlation_id = correlation
        start = time.perf_counter()
        with LogContext(correlation_id=correlation):
            response = await call_next(request)
            logger.info(
                "http_request",
                method=request.method,
                path=request.url.path,
                status=response.status_code,
                duration_ms=round((time.perf_counter() - start) * 1000, 2),
            )
        response.headers[CORRELATION_HEADER] = correlation
        return response

    # ------------------------------------------------------------------
    # Error mapping
    # ------------------------------------------------------------------

    @app.exception_handler(ResolutionError)
    async def resolution_error(request: Request, exc: ResolutionError) -> Response:
        logger.warning("request_failed", path=request.url.path, error=exc.code, message=exc.message)
        return error_response(exc.status_code, exc.code, exc.message)

    @app.exception_handler(ValidationError)
    async def validation_error(request: Request, exc: ValidationError) -> Response:
        logger.info("request_invalid", path=request.url.path, message=str(exc))
        metrics.record_screen_request("validate", "invalid_request")
        return error_response(400, "invalid_request", str(exc))

    @app.exception_handler(RequestValidationError)
    async def request_validation_error(request: Request, exc: RequestValidationError) -> Response:
        errors = exc.errors()
        message = errors[0].get("msg", "invalid request") if errors else "invalid request"
        return error_response(400, "invalid_request", message)

    @app.exception_handler(EvaluationError)
    async def evaluation_error(request: Request, exc: EvaluationError) -> Response:
        logger.info("interaction_rejected", path=request.url.path, message=str(exc))
        return error_response(400, "invalid_request", str(exc))

    # ------------------------------------------------------------------
    # Routes
    # ------------------------------------------------------------------

    def rendered(screen: RenderedScreen, request: Request) -> Response:
        etag = f'"{screen.fingerprint()}"'
        if request.headers.get("if-none-match") == etag:
            return Response(status_code=304, headers={"ETag": etag})
        return json_response(screen.to_json_dict(), headers={"ETag": etag})

    @app.get("/healthz")
    def healthz() -> Response:
        return json_response({"status": "ok"})

    @app.get("/readyz")
    def readyz() -> Response:
        if not handler.service.ping():
            return error_response(503, "store_unavailable", "Template store is not reachable")
        return json_response({"status": "ready", "store": handler.service.store.name})

    @app.get("/metrics")
    def metrics_endpoint() -> Response:
        return Response(content=metrics.get_metrics(), media_type=CONTENT_TYPE_LATEST)

    @app.get("/v1/screens/{screen_id}")
    def get_screen(params: dict[str, Any] = Depends(screen_request)) -> Response:
        document = handler.fetch(validate_request(params))
        return json_response(document.model_dump(mode="json", by_alias=True, exclude_none=True))

    @app.get("/v1/screens/{screen_id}/render")
    def render_screen(request: Request, params: dict[str, Any] = Depends(screen_request)) -> Response:
        screen = handler.render(validate_request(params))
        return rendered(screen, request)

    @app.post("/v1/screens/{screen_id}/render")
    def render_screen_with(
        body: RenderBody,
        request: Request,
        params: dict[str, Any] = Depends(screen_request),
    ) -> Response:
        screen = handler.render(validate_request(params, body.context), body.environment)
        return rendered(screen, request)

    @app.post("/v1/screens/{screen_id}/interactions")
    def interact(body: InteractionBody, params: dict[str, Any] = Depends(screen_request)) -> Response:
        action = handler.interact(validate_request(params, body.context), body.identity, body.environment)
        return json_response({"action": action.model_dump(mode="json", by_alias=True)})

    return app


def serve() -> None:
    """Run the HTTP server."""
    import uvicorn

    settings = get_settings()
    configure_logging(settings.log_level, settings.json_logs)
    init_tracer("sdui-screen-service")

    uvicorn.run(
        create_app(settings=settings),
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    serve()
