"""OpenTelemetry tracing.

Span helpers are best-effort: a failure to create, annotate or end a span
is logged at DEBUG and never reaches the traced operation.
"""

import logging
from contextlib import contextmanager
from typing import Any, Iterator, Optional

from opentelemetry import context as otel_context
from opentelemetry import trace
from opentelemetry.trace import Span, SpanKind, Status, StatusCode

from petstore.config import Settings
from petstore.errors import BusinessError

logger = logging.getLogger(__name__)

DB_SYSTEM = "postgresql"

_configured = False


def configure_tracing(settings: Settings) -> None:
    """Install an SDK tracer provider exporting over OTLP/HTTP."""
    global _configured
    if not settings.enable_tracing or _configured:
        return

    from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
    from opentelemetry.sdk.resources import Resource
    from opentelemetry.sdk.trace import TracerProvider
    from opentelemetry.sdk.trace.export import BatchSpanProcessor

    resource = Resource.create({"service.name": settings.service_name})
    provider = TracerProvider(resource=resource)
    provider.add_span_processor(BatchSpanProcessor(OTLPSpanExporter(endpoint=settings.otlp_endpoint)))
    trace.set_tracer_provider(provider)
    _configured = True
    logger.info(f"Tracing enabled, exporting to {settings.otlp_endpoint}")


def get_tracer() -> trace.Tracer:
    return trace.get_tracer("petstore")


def _start(name: str, kind: SpanKind, attributes: Optional[dict[str, Any]]) -> Optional[Span]:
    try:
        return get_tracer().start_span(name, kind=kind, attributes=_clean(attributes))
    except Exception as e:
        logger.debug(f"Failed to start span {name}: {e}")
        return None


def _activate(span: Optional[Span]) -> Optional[object]:
    # Spans opened while this one is current become its children
    if span is None:
        return None
    try:
        return otel_context.attach(trace.set_span_in_context(span))
    except Exception as e:
        logger.debug(f"Failed to activate span: {e}")
        return None


def _deactivate(token: Optional[object]) -> None:
    if token is None:
        return
    try:
        otel_context.detach(token)
    except Exception as e:
        logger.debug(f"Failed to deactivate span: {e}")


def _record_error(span: Optional[Span], exc: BaseException) -> None:
    if span is None:
        return
    try:
        if isinstance(exc, BusinessError) and exc.status_code < 400:
            # Informational outcome, not a failure
            span.set_attribute("business.code", exc.code)
            return
        span.record_exception(exc)
        span.set_status(Status(StatusCode.ERROR, str(exc)))
    except Exception as e:
        logger.debug(f"Failed to record span error: {e}")


def set_error_status(span: Optional[Span], description: str) -> None:
    """Mark a span failed without an exception (e.g. a 5xx response)."""
    if span is None:
        return
    try:
        span.set_status(Status(StatusCode.ERROR, description))
    except Exception as e:
        logger.debug(f"Failed to set span status: {e}")


def _end(span: Optional[Span]) -> None:
    if span is None:
        return
    try:
        span.end()
    except Exception as e:
        logger.debug(f"Failed to end span: {e}")


def _clean(attributes: Optional[dict[str, Any]]) -> Optional[dict[str, Any]]:
    # OpenTelemetry only accepts primitive attribute values
    if not attributes:
        return None
    return {
        k: v if isinstance(v, (str, bool, int, float)) else str(v)
        for k, v in attributes.items()
        if v is not None
    }


def set_attribute(span: Optional[Span], key: str, value: Any) -> None:
    """Add metadata to a span."""
    if span is None:
        return
    try:
        span.set_attribute(key, value if isinstance(value, (str, bool, int, float)) else str(value))
    except Exception as e:
        logger.debug(f"Failed to add {key} metadata: {e}")


@contextmanager
def traced(
    name: str,
    attributes: Optional[dict[str, Any]] = None,
    kind: SpanKind = SpanKind.INTERNAL,
) -> Iterator[Optional[Span]]:
    """Span around a request, service or repository call.

    The span is current for the body, so nested calls join its trace.
    """
    span = _start(name, kind, attributes)
    token = _activate(span)
    try:
        yield span
    except BaseException as exc:
        _record_error(span, exc)
        raise
    finally:
        _deactivate(token)
        _end(span)


@contextmanager
def db_span(operation: str, table: str, statement: str) -> Iterator[Optional[Span]]:
    """Client span around a single SQL statement."""
    attributes = {
        "db.system": DB_SYSTEM,
        "db.statement": statement,
        "db.operation": operation,
        "db.sql.table": table,
    }
    with traced(f"DataStore.{operation.lower()}", attributes, SpanKind.CLIENT) as span:
        yield span
