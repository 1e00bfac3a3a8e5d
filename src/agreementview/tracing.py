from __future__ import annotations
from dataclasses import dataclass
from typing import Optional

from opentelemetry import trace
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor

_configured = False

@dataclass(frozen=True)
class TracingConfig:
    service_name: str
    otlp_endpoint: Optional[str] = None

def configure_tracing(cfg: TracingConfig) -> None:
    """Install the SDK tracer provider once per process.

    Without an OTLP endpoint spans are still created but not exported.
    """
    global _configured
    if _configured:
        return
    provider = TracerProvider(resource=Resource.create({"service.name": cfg.service_name}))
    if cfg.otlp_endpoint:
        from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
        provider.add_span_processor(BatchSpanProcessor(OTLPSpanExporter(endpoint=cfg.otlp_endpoint)))
    trace.set_tracer_provider(provider)
    _configured = True

def get_tracer(name: str):
    return trace.get_tracer(name)
