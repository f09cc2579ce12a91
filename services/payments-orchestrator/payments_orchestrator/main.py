from __future__ import annotations

import time
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from opentelemetry import trace
from starlette.responses import Response

from payments_orchestrator.api.routes_payments import router as payments_router
from payments_orchestrator.api.routes_webhooks import router as webhooks_router
from payments_orchestrator.core.config import Settings, get_settings
from payments_orchestrator.core.error_handlers import register_error_handlers
from payments_orchestrator.core.metrics import error_counter, latency_histogram, request_counter
from payments_orchestrator.providers.factory import build_provider_registry
from payments_orchestrator.services.orchestrator import PaymentOrchestrator
from payments_orchestrator.storage.factory import build_stores
from shared.logging import CorrelationMiddleware, configure_logging, get_logger
from shared.observability import configure_otel, current_trace_id, extract_context_from_headers
from shared.utils import apply_security_headers

logger = get_logger(__name__)


def build_orchestrator(app: FastAPI, settings: Settings) -> PaymentOrchestrator:
    stores = build_stores(settings)
    stores.manager.initialize()
    registry = build_provider_registry(settings)

    app.state.store_manager = stores.manager
    app.state.provider_registry = registry
    return PaymentOrchestrator(
        stores.payments,
        stores.events,
        registry,
        settings.normalized_callback_base_url,
        ignore_remote_cancel_failures=settings.cancel_ignores_remote_failures,
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    settings = get_settings()
    configure_logging(settings.log_level)
    configure_otel(settings.service_name, settings.app_env)

    app.state.settings = settings
    app.state.orchestrator = build_orchestrator(app, settings)
    logger.info(
        "service_started",
        extra={
            "extra_fields": {
                "storage_backend": settings.storage_backend,
                "providers": [provider.id for provider in app.state.provider_registry.all()],
            }
        },
    )

    yield

    await app.state.provider_registry.close_all()
    app.state.store_manager.flush_all()
    logger.info("service_stopped")


app = FastAPI(title="payments-orchestrator", version="0.1.0", lifespan=lifespan)
app.add_middleware(CorrelationMiddleware)
register_error_handlers(app)
app.include_router(webhooks_router)
app.include_router(payments_router)


@app.middleware("http")
async def telemetry_middleware(
    request: Request, call_next: Callable[[Request], Awaitable[Response]]
) -> Response:
    tracer = trace.get_tracer("payments-orchestrator")
    start = time.perf_counter()
    request_counter.add(1, {"path": request.url.path, "method": request.method})

    with tracer.start_as_current_span(
        f"{request.method} {request.url.path}",
        context=extract_context_from_headers(request.headers),
    ):
        response = await call_next(request)
        response.headers["X-Trace-Id"] = current_trace_id()

    duration_ms = (time.perf_counter() - start) * 1000
    latency_histogram.record(duration_ms, {"path": request.url.path, "method": request.method})
    if response.status_code >= 400:
        error_counter.add(
            1,
            {
                "path": request.url.path,
                "method": request.method,
                "status_code": response.status_code,
            },
        )

    return apply_security_headers(response)


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok"}
