"""Observability setup for OpenTelemetry tracing, Prometheus metrics, and structured logging."""

import logging

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from prometheus_client import CollectorRegistry, Counter, Histogram, generate_latest
import structlog

from .. import __version__
from .config import settings

# Prometheus metrics
REGISTRY = CollectorRegistry()

# Request metrics
REQUEST_COUNT = Counter(
    'http_requests_total',
    'Total HTTP requests',
    ['method', 'endpoint', 'status_code'],
    registry=REGISTRY
)

REQUEST_DURATION = Histogram(
    'http_request_duration_seconds',
    'HTTP request duration in seconds',
    ['method', 'endpoint'],
    registry=REGISTRY
)

# Domain metrics
SCHEDULE_EDITS = Counter(
    'schedule_edits_total',
    'Schedule field edits applied',
    ['field'],
    registry=REGISTRY
)

VALUES_CLAMPED = Counter(
    'schedule_values_clamped_total',
    'Schedule values snapped to the nearest legal value',
    ['field'],
    registry=REGISTRY
)

DIFFS_COMPUTED = Counter(
    'tour_diffs_computed_total',
    'Original/proposed tour diffs computed',
    registry=REGISTRY
)

FIELDS_CHANGED = Counter(
    'tour_diff_fields_changed_total',
    'Fields reported as semantically changed',
    ['field'],
    registry=REGISTRY
)

UPDATE_REQUEST_SUBMISSIONS = Counter(
    'update_request_submissions_total',
    'Update request submissions by outcome',
    ['outcome'],
    registry=REGISTRY
)


def setup_structured_logging():
    """Configure structured logging with structlog."""

    def add_trace_context(logger, method_name, event_dict):
        """Add trace context to log events."""
        span = trace.get_current_span()
        if span and span.is_recording():
            ctx = span.get_span_context()
            event_dict['trace_id'] = format(ctx.trace_id, '032x')
            event_dict['span_id'] = format(ctx.span_id, '016x')
        return event_dict

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            add_trace_context,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.ConsoleRenderer() if settings.debug else structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, settings.log_level)
        ),
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def setup_tracing(app_name: str = "tour-update-service"):
    """Setup OpenTelemetry tracing."""
    resource = Resource.create({
        "service.name": app_name,
        "service.version": __version__,
        "environment": settings.environment,
    })

    provider = TracerProvider(resource=resource)
    if settings.otlp_endpoint:
        provider.add_span_processor(
            BatchSpanProcessor(OTLPSpanExporter(endpoint=settings.otlp_endpoint))
        )
    trace.set_tracer_provider(provider)

    return trace.get_tracer(__name__)


def instrument_fastapi(app):
    """Instrument FastAPI with OpenTelemetry."""
    FastAPIInstrumentor.instrument_app(app)


class MetricsCollector:
    """Collector for domain metrics."""

    @staticmethod
    def record_request(method: str, endpoint: str, status_code: int, duration: float):
        """Record one served HTTP request."""
        REQUEST_COUNT.labels(method=method, endpoint=endpoint, status_code=str(status_code)).inc()
        REQUEST_DURATION.labels(method=method, endpoint=endpoint).observe(duration)

    @staticmethod
    def record_schedule_edit(field: str, clamped_fields: list[str]):
        """Record an applied schedule edit and every value it snapped."""
        SCHEDULE_EDITS.labels(field=field).inc()
        for clamped in clamped_fields:
            VALUES_CLAMPED.labels(field=clamped).inc()

    @staticmethod
    def record_diff(changed_fields: list[str]):
        """Record a computed diff and the fields it flagged."""
        DIFFS_COMPUTED.inc()
        for field in changed_fields:
            # Collapse per-day entries so label cardinality stays bounded
            FIELDS_CHANGED.labels(field=field.split(".", 1)[0]).inc()

    @staticmethod
    def record_submission(outcome: str):
        """Record an update request submission outcome."""
        UPDATE_REQUEST_SUBMISSIONS.labels(outcome=outcome).inc()


def get_prometheus_metrics():
    """Get Prometheus metrics for the /metrics endpoint."""
    return generate_latest(REGISTRY)


# Global metrics collector instance
metrics_collector = MetricsCollector()
