"""OpenTelemetry configuration and structured logging setup.

The API runs as a Lambda function behind API Gateway. Spans come from three
places: FastAPI request spans, botocore client spans for every DynamoDB and S3
call, and the ``@traced`` service spans in between.
"""

import logging
import os
from typing import Any

from opentelemetry import metrics, trace
from opentelemetry.exporter.otlp.proto.http.metric_exporter import OTLPMetricExporter
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.botocore import BotocoreInstrumentor
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import PeriodicExportingMetricReader
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from pythonjsonlogger import jsonlogger

logger = logging.getLogger(__name__)

DEFAULT_SERVICE_NAME = "food-ordering-api"
DEFAULT_OTLP_ENDPOINT = "http://localhost:4318"
DEFAULT_METRIC_EXPORT_INTERVAL_MS = 60000

# Health checks are not traced
EXCLUDED_URLS = "health"


def get_service_resource() -> Resource:
    """Create OpenTelemetry resource with service identification.

    Lambda sets ``AWS_LAMBDA_FUNCTION_NAME`` and ``AWS_REGION``; when present
    they are attached so traces can be told apart per function and region.

    Returns:
        Resource with service, environment and runtime attributes
    """
    attributes: dict[str, Any] = {
        "service.name": os.getenv("OTEL_SERVICE_NAME", DEFAULT_SERVICE_NAME),
        "service.namespace": "food-ordering",
        "deployment.environment": os.getenv("ENVIRONMENT", "development"),
    }

    function_name = os.getenv("AWS_LAMBDA_FUNCTION_NAME")
    if function_name:
        attributes["cloud.provider"] = "aws"
        attributes["faas.name"] = function_name
        attributes["cloud.region"] = os.getenv("AWS_REGION", "us-east-1")

    return Resource.create(attributes)


def _otlp_endpoint() -> str:
    return os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT", DEFAULT_OTLP_ENDPOINT).rstrip("/")


def setup_tracing(resource: Resource) -> None:
    """Configure OpenTelemetry tracing.

    Args:
        resource: Service resource for trace identification
    """
    # OTLP over HTTP with batched export
    otlp_endpoint = _otlp_endpoint()
    exporter = OTLPSpanExporter(endpoint=f"{otlp_endpoint}/v1/traces")

    provider = TracerProvider(resource=resource)
    provider.add_span_processor(BatchSpanProcessor(exporter))

    # Set as global tracer provider
    trace.set_tracer_provider(provider)

    logger.info(f"OpenTelemetry tracing configured with endpoint: {otlp_endpoint}")


def setup_metrics(resource: Resource) -> None:
    """Configure OpenTelemetry metrics.

    The export interval honours ``OTEL_METRIC_EXPORT_INTERVAL`` (milliseconds).
    Short-lived Lambda containers may want it well under the one minute default.

    Args:
        resource: Service resource for metric identification
    """
    otlp_endpoint = _otlp_endpoint()
    exporter = OTLPMetricExporter(endpoint=f"{otlp_endpoint}/v1/metrics")

    interval_ms = int(os.getenv("OTEL_METRIC_EXPORT_INTERVAL", str(DEFAULT_METRIC_EXPORT_INTERVAL_MS)))
    reader = PeriodicExportingMetricReader(exporter, export_interval_millis=interval_ms)

    # Set as global meter provider
    metrics.set_meter_provider(MeterProvider(resource=resource, metric_readers=[reader]))

    logger.info(
        f"OpenTelemetry metrics configured with endpoint: {otlp_endpoint} "
        f"(export every {interval_ms} ms)"
    )


def setup_auto_instrumentation() -> None:
    """Instrument botocore so DynamoDB and S3 calls produce client spans.

    Safe to call on every cold start of a reused process: an already
    instrumented botocore is left alone.
    """
    instrumentor = BotocoreInstrumentor()
    if instrumentor.is_instrumented_by_opentelemetry:
        return

    # Covers the menu, order and account tables and the image bucket
    instrumentor.instrument()

    logger.info("Auto-instrumentation enabled for botocore (DynamoDB, S3)")


def setup_observability(app: Any = None, enable_exporters: bool = True) -> None:
    """Initialize OpenTelemetry with tracing, metrics, and auto-instrumentation.

    Args:
        app: Optional FastAPI application to instrument
        enable_exporters: Whether to enable OTLP exporters (default: True, set False for tests)
    """
    # Test runs never ship telemetry
    environment = os.getenv("ENVIRONMENT", "development")
    if environment == "test":
        enable_exporters = False

    resource = get_service_resource()

    if enable_exporters:
        setup_tracing(resource)
        setup_metrics(resource)
    else:
        # Providers without exporters keep spans and instruments cheap no-ops
        trace.set_tracer_provider(TracerProvider(resource=resource))
        metrics.set_meter_provider(MeterProvider(resource=resource))

    setup_auto_instrumentation()

    # Instrument FastAPI if provided
    if app is not None:
        FastAPIInstrumentor.instrument_app(app, excluded_urls=EXCLUDED_URLS)
        logger.info("FastAPI application instrumented")

    logger.info("OpenTelemetry observability fully configured")


def configure_logging(log_level: str = "INFO") -> None:
    """Configure structured JSON logging.

    CloudWatch stores one JSON object per line, so handler output stays
    queryable with Logs Insights.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    # Get log level from environment or use provided default
    level_str = os.getenv("LOG_LEVEL", log_level).upper()
    level = getattr(logging, level_str, logging.INFO)

    formatter = jsonlogger.JsonFormatter(
        "%(asctime)s %(name)s %(levelname)s %(message)s",
        timestamp=True,
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    # The Lambda runtime installs its own plain-text handler; replace it
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    # boto noise drowns out request logs at DEBUG
    logging.getLogger("botocore").setLevel(max(level, logging.INFO))
    logging.getLogger("boto3").setLevel(max(level, logging.INFO))

    logger.info(f"Structured JSON logging configured at {level_str} level")
