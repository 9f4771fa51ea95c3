"""HTTP surface for indirect-payment checkout.

Thin layer: hands the raw request body to `PaymentOrchestrator` and maps the
`PaymentResult` onto a status code and JSON body. Processor configuration is
resolved at import, so a missing or partial credential set stops the process
before it can accept requests.
"""

from contextlib import asynccontextmanager
from time import perf_counter
from uuid import uuid4

import httpx
import uvicorn
from fastapi import Depends, FastAPI, Header, Request
from fastapi.responses import JSONResponse

from paybridge.common.config import load_processor_config, settings
from paybridge.common.logging import configure_logging, logger, trace_id_ctx
from paybridge.common.metrics import http_request_duration_seconds, http_requests_total, metrics_response
from paybridge.common.startup import log_startup_config
from paybridge.common.tracing import instrument_app, setup_tracing
from paybridge.services.checkout.envelope import CipherEnvelope
from paybridge.services.checkout.service import PaymentOrchestrator

configure_logging()
setup_tracing(settings.service_name)
log_startup_config(
    settings.service_name,
    [
        "SERVICE_NAME",
        "PROCESSOR_ENV",
        "PROCESSOR_BASE_URL",
        "PROCESSOR_MERCHANT_CODE",
        "PROCESSOR_ACCESS_CODE",
        "PROCESSOR_SECRET_KEY",
        "PROCESSOR_IV_KEY",
        "PROCESSOR_TIMEOUT_SECONDS",
    ],
)
processor_config = load_processor_config(settings)
envelope = CipherEnvelope.from_config(processor_config)
logger.info(
    "processor configured environment=%s checkout_url=%s",
    processor_config.environment,
    processor_config.checkout_url,
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Share one outbound HTTP client across requests."""

    async with httpx.AsyncClient(timeout=processor_config.timeout_seconds) as client:
        app.state.orchestrator = PaymentOrchestrator(
            processor_config,
            client,
            envelope=envelope,
            service_name=settings.service_name,
        )
        yield


app = FastAPI(title="Paybridge Checkout", lifespan=lifespan)
instrument_app(app)


@app.middleware("http")
async def metrics_middleware(request: Request, call_next):
    """Record request count and latency for every HTTP call."""

    start = perf_counter()
    route = request.url.path
    method = request.method
    status_code = 500
    try:
        response = await call_next(request)
        status_code = response.status_code
        route_obj = request.scope.get("route")
        if route_obj is not None and getattr(route_obj, "path", None):
            route = route_obj.path
        return response
    finally:
        elapsed = max(0.0, perf_counter() - start)
        http_request_duration_seconds.labels(
            service=settings.service_name,
            route=route,
            method=method,
        ).observe(elapsed)
        http_requests_total.labels(
            service=settings.service_name,
            route=route,
            method=method,
            status_code=str(status_code),
        ).inc()


def get_orchestrator(request: Request) -> PaymentOrchestrator:
    return request.app.state.orchestrator


@app.post("/checkout/indirect-payment")
async def create_indirect_payment(
    request: Request,
    orchestrator: PaymentOrchestrator = Depends(get_orchestrator),
    x_correlation_id: str | None = Header(default=None),
):
    """Create a hosted-payment-page checkout and return its redirect URL."""

    trace_id_ctx.set(x_correlation_id or str(uuid4()))
    raw_body = (await request.body()).decode("utf-8", errors="replace")
    result = await orchestrator.initiate_payment(raw_body)
    return JSONResponse(status_code=result.status_code, content=result.to_public())


@app.get("/")
@app.get("/health")
def health():
    """Container health probe endpoint."""

    return {"ok": True, "environment": processor_config.environment}


@app.get("/metrics")
def metrics():
    """Prometheus scrape endpoint."""

    return metrics_response()


def run() -> None:
    """Serve the checkout API on the configured host and port."""

    uvicorn.run(app, host=settings.host, port=settings.port)


if __name__ == "__main__":
    run()
