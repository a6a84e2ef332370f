"""
Telemetry module for OpenTelemetry + Application Insights.

Configures distributed tracing for the chat pipeline stages. Spans can be
exported to Application Insights, printed to the console for local
debugging, or dropped entirely.
"""

import logging

from opentelemetry import trace
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import (
    BatchSpanProcessor,
    ConsoleSpanExporter,
    SimpleSpanProcessor,
)

from ragchat.core.config import Settings

logger = logging.getLogger(__name__)

SERVICE_NAME = "zerodb-rag-chat"

_tracer: trace.Tracer | None = None


def setup_telemetry(settings: Settings) -> TracerProvider:
    """
    Initialize OpenTelemetry for the chat API.

    Args:
        settings: Application settings. ``applicationinsights_connection_string``
                  enables Azure Monitor export; ``telemetry_console_export``
                  prints finished spans to stdout.

    Returns:
        The installed tracer provider.
    """
    global _tracer

    resource = Resource.create(
        {
            "service.name": SERVICE_NAME,
            "zerodb.project_id": settings.zerodb_project_id,
        }
    )
    provider = TracerProvider(resource=resource)

    connection_string = settings.applicationinsights_connection_string
    if connection_string:
        try:
            from azure.monitor.opentelemetry.exporter import (
                AzureMonitorTraceExporter,
            )

            exporter = AzureMonitorTraceExporter(
                connection_string=connection_string
            )
            provider.add_span_processor(BatchSpanProcessor(exporter))
            logger.info("Application Insights telemetry enabled.")
        except ImportError:
            logger.warning(
                "azure-monitor-opentelemetry-exporter not installed. "
                "Install the 'monitor' extra to export traces."
            )

    if settings.telemetry_console_export:
        provider.add_span_processor(SimpleSpanProcessor(ConsoleSpanExporter()))
        logger.info("Console span export enabled.")

    if not connection_string and not settings.telemetry_console_export:
        logger.info("No span exporter configured. Telemetry export disabled.")

    trace.set_tracer_provider(provider)
    _tracer = trace.get_tracer(SERVICE_NAME)
    return provider


def get_tracer() -> trace.Tracer:
    """Return the application tracer, initializing a no-op if not set up."""
    global _tracer
    if _tracer is None:
        _tracer = trace.get_tracer(SERVICE_NAME)
    return _tracer
