"""
Lightweight Tracing
Spans around screen resolution and render passes, reported through structlog.
"""

import contextvars
import time
import uuid
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Iterator

import structlog

logger = structlog.get_logger(__name__)

# Context variables for trace propagation
_trace_id: contextvars.ContextVar[str] = contextvars.ContextVar("trace_id", default="")
_span_id: contextvars.ContextVar[str] = contextvars.ContextVar("span_id", default="")


@dataclass
class Span:
    """Represents a single traced operation."""

    trace_id: str
    span_id: str
    parent_id: str
    name: str
    service: str
    start_time: float
    end_time: float = 0.0
    duration: float = 0.0
    tags: dict[str, str] = field(default_factory=dict)
    error: Exception | None = None

    def finish(self) -> None:
        """Mark span as complete."""
        self.end_time = time.time()
        self.duration = self.end_time - self.start_time

    def set_tag(self, key: str, value: str) -> None:
        self.tags[key] = value

    def set_error(self, error: Exception) -> None:
        self.error = error


class Tracer:
    """Creates spans and reports them when they finish."""

    def __init__(self, service: str, slow_threshold: float = 1.0) -> None:
        self.service = service
        self.slow_threshold = slow_threshold

    def start_span(self, name: str, **tags: str) -> Span:
        """Create a new span as a child of the current one."""
        return Span(
            trace_id=_trace_id.get() or str(uuid.uuid4()),
            span_id=str(uuid.uuid4()),
            parent_id=_span_id.get(),
            name=name,
            service=self.service,
            start_time=time.time(),
            tags=tags,
        )

    def submit(self, span: Span) -> None:
        """Process completed span."""
        fields = {
            "trace_id": span.trace_id,
            "span_id": span.span_id,
            "operation": span.name,
            "duration_ms": span.duration * 1000,
            "service": span.service,
            **span.tags,
        }

        if span.parent_id:
            fields["parent_id"] = span.parent_id

        if span.error:
            logger.error("span_completed_with_error", error=str(span.error), **fields)
        elif span.duration > self.slow_threshold:
            logger.warning("span_completed_slow", **fields)
        else:
            logger.debug("span_completed", **fields)


_tracer: Tracer | None = None


def init_tracer(service: str) -> Tracer:
    """Initialize global tracer."""
    global _tracer
    _tracer = Tracer(service)
    return _tracer


@contextmanager
def trace_operation(operation: str, **kwargs: Any) -> Iterator[Span | None]:
    """Context manager for tracing operations (no-op until init_tracer)."""
    if _tracer is None:
        yield None
        return

    span = _tracer.start_span(operation, **{k: str(v) for k, v in kwargs.items()})
    trace_token = _trace_id.set(span.trace_id)
    span_token = _span_id.set(span.span_id)
    try:
        yield span
    except Exception as e:
        span.set_error(e)
        raise
    finally:
        span.finish()
        _span_id.reset(span_token)
        _trace_id.reset(trace_token)
        _tracer.submit(span)

