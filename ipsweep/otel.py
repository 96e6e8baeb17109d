from __future__ import annotations

from typing import Optional, Tuple

from opentelemetry import trace, metrics
from opentelemetry.sdk.resources import SERVICE_NAME, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.exporter.otlp.proto.grpc.metric_exporter import OTLPMetricExporter
from opentelemetry.sdk.metrics.export import PeriodicExportingMetricReader

from ipsweep.config import OTelConfig


def init_otel(cfg: OTelConfig, component: str = "") -> Optional[Tuple[TracerProvider, MeterProvider]]:
    """Install OTLP exporters for the current process.

    Returns ``None`` and leaves the no-op API providers in place when
    telemetry is disabled.
    """
    if not cfg.enabled:
        return None
    service_name = f"{cfg.service_name}-{component}" if component else cfg.service_name
    resource = Resource(attributes={SERVICE_NAME: service_name})

    tracer_provider = TracerProvider(resource=resource)
    span_exporter = OTLPSpanExporter(endpoint=cfg.endpoint, insecure=True)
    tracer_provider.add_span_processor(BatchSpanProcessor(span_exporter))
    trace.set_tracer_provider(tracer_provider)

    metric_exporter = OTLPMetricExporter(endpoint=cfg.endpoint, insecure=True)
    reader = PeriodicExportingMetricReader(metric_exporter)
    meter_provider = MeterProvider(resource=resource, metric_readers=[reader])
    metrics.set_meter_provider(meter_provider)

    return tracer_provider, meter_provider


def shutdown_otel(providers: Optional[Tuple[TracerProvider, MeterProvider]]) -> None:
    # flushes pending spans and metrics before a short-lived CLI exits
    if providers is None:
        return
    tracer_provider, meter_provider = providers
    tracer_provider.shutdown()
    meter_provider.shutdown()
