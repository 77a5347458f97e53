import logging
import os

# --- OTel & Observability Imports ---
from opentelemetry import trace
from opentelemetry._logs import set_logger_provider
from opentelemetry.exporter.otlp.proto.grpc._log_exporter import OTLPLogExporter
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk._logs import LoggerProvider, LoggingHandler
from opentelemetry.sdk._logs.export import BatchLogRecordProcessor
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor

# --- Prometheus Import ---
from prometheus_client import start_http_server

logger = logging.getLogger(__name__)


def configure_observability(
    service_name: str, metrics_port: int | None = None
) -> bool:
    """
    Configures OpenTelemetry to ship traces and logs via OTLP and optionally
    starts a background Prometheus server for metrics.

    Returns True when the OTLP exporters were installed.
    """
    if metrics_port is not None:
        try:
            start_http_server(metrics_port)
            logger.info(f"✅ Prometheus metrics server started on port {metrics_port}")
        except OSError:
            # Streamlit reloads re-run this in the same process
            logger.warning(f"⚠️ Prometheus port {metrics_port} already in use. Skipping.")

    endpoint = os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT")
    headers = os.getenv("OTEL_EXPORTER_OTLP_HEADERS")

    if not endpoint:
        logger.warning(
            "⚠️ OTEL_EXPORTER_OTLP_ENDPOINT not set. Telemetry stays local."
        )
        return False

    resource = Resource.create({"service.name": service_name})

    # --- A. TRACING ---
    trace_provider = TracerProvider(resource=resource)
    trace_provider.add_span_processor(
        BatchSpanProcessor(OTLPSpanExporter(endpoint=endpoint, headers=headers))
    )
    trace.set_tracer_provider(trace_provider)

    # --- B. LOGGING ---
    logger_provider = LoggerProvider(resource=resource)
    logger_provider.add_log_record_processor(
        BatchLogRecordProcessor(OTLPLogExporter(endpoint=endpoint, headers=headers))
    )
    set_logger_provider(logger_provider)

    # Root handler captures every Telemetry logger as well
    handler = LoggingHandler(level=logging.INFO, logger_provider=logger_provider)
    logging.getLogger().addHandler(handler)

    logger.info(f"✅ OTLP exporters configured for {service_name}")
    return True
