# dog_api/core/tracing.py
import logging
from typing import Callable

from opentelemetry import propagate, trace
from opentelemetry.baggage.propagation import W3CBaggagePropagator
from opentelemetry.exporter.cloud_trace import CloudTraceSpanExporter
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.propagators.cloud_trace_propagator import CloudTraceFormatPropagator
from opentelemetry.propagators.composite import CompositePropagator
from opentelemetry.sdk.resources import SERVICE_NAME, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter
from opentelemetry.trace.propagation.tracecontext import TraceContextTextMapPropagator

logger = logging.getLogger(__name__)

SERVICE = 'dog-api'


def build_propagator() -> CompositePropagator:
    """W3C traceparent and baggage plus the X-Cloud-Trace-Context header set by Google front ends."""
    return CompositePropagator([
        TraceContextTextMapPropagator(),
        W3CBaggagePropagator(),
        CloudTraceFormatPropagator(),
    ])


def _build_exporter(exporter: str, project_id: str, otlp_endpoint: str):
    if exporter == 'console':
        return ConsoleSpanExporter()
    if exporter == 'otlp':
        return OTLPSpanExporter(endpoint=otlp_endpoint, insecure=True)
    if exporter == 'gcp':
        return CloudTraceSpanExporter(project_id=project_id)
    raise ValueError(f"unknown trace exporter: {exporter!r}")


def init_tracing(exporter: str, project_id: str, otlp_endpoint: str = 'localhost:4317') -> Callable[[], None]:
    """
    Installs a global tracer provider and text map propagator and returns a
    callable that flushes and shuts the provider down. With exporter 'none'
    nothing is installed and the OpenTelemetry API stays a no-op.
    """
    if exporter == 'none':
        logger.info("Tracing disabled")
        return lambda: None

    span_exporter = _build_exporter(exporter, project_id, otlp_endpoint)
    resource = Resource.create({SERVICE_NAME: SERVICE, 'gcp.project_id': project_id})
    provider = TracerProvider(resource=resource)
    provider.add_span_processor(BatchSpanProcessor(span_exporter))
    trace.set_tracer_provider(provider)
    propagate.set_global_textmap(build_propagator())
    logger.info(f"Tracing initialized with {exporter} exporter")

    def shutdown():
        provider.force_flush()
        provider.shutdown()

    return shutdown
