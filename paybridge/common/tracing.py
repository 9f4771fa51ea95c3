"""OpenTelemetry wiring for the checkout service.

Spans are exported only when `OTEL_EXPORTER_OTLP_ENDPOINT` is set; otherwise
the global no-op provider stays in place and `checkout_tracer` is free to use.
"""

from fastapi import FastAPI
from opentelemetry import trace
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter

from paybridge.common.config import settings

checkout_tracer = trace.get_tracer("paybridge.checkout")


def setup_tracing(service_name: str) -> bool:
    """Register an OTLP-exporting tracer provider. Returns whether it did."""

    endpoint = settings.otel_exporter_otlp_endpoint
    if not endpoint:
        return False
    provider = TracerProvider(resource=Resource.create({"service.name": service_name}))
    provider.add_span_processor(BatchSpanProcessor(OTLPSpanExporter(endpoint=endpoint)))
    trace.set_tracer_provider(provider)
    return True


def instrument_app(app: FastAPI) -> None:
    """Attach FastAPI auto-instrumentation for request spans."""

    FastAPIInstrumentor.instrument_app(app)
