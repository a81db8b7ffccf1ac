"""Batch operation tracing."""

import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any, Generator

from inventory_engine.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass
class TraceEvent:
    """Individual step of a batch operation."""

    timestamp: datetime
    step: str
    product_id: str
    order_id: str
    success: bool
    duration_ms: float | None = None
    metadata: dict[str, Any] = field(default_factory=dict)


class BatchTracer:
    """Traces the per-item steps of one batch operation on an order."""

    def __init__(self, operation: str, order_id: str):
        self.operation = operation
        self.order_id = order_id
        self.events: list[TraceEvent] = []
        self.start_time = time.time()

    def add_event(
        self,
        step: str,
        product_id: str,
        success: bool,
        duration_ms: float | None = None,
        **metadata: Any,
    ) -> None:
        """Add a trace event."""
        event = TraceEvent(
            timestamp=datetime.now(UTC),
            step=step,
            product_id=product_id,
            order_id=self.order_id,
            success=success,
            duration_ms=duration_ms,
            metadata=metadata,
        )
        self.events.append(event)

        logger.debug(
            "trace_event",
            operation=self.operation,
            order_id=self.order_id,
            step=step,
            product_id=product_id,
            success=success,
            duration_ms=duration_ms,
            **metadata,
        )

    @contextmanager
    def trace_step(
        self, step: str, product_id: str, **metadata: Any
    ) -> Generator[dict[str, Any], None, None]:
        """
        Context manager to trace a step with timing.

        The yielded dict may be updated with extra metadata; a step that
        raises is recorded as failed and the exception propagates.
        """
        start = time.time()
        success = True
        try:
            yield metadata
        except Exception:
            success = False
            raise
        finally:
            duration_ms = (time.time() - start) * 1000
            self.add_event(step, product_id, success, duration_ms=duration_ms, **metadata)

    def get_trace_summary(self) -> dict[str, Any]:
        """Get a summary of the trace."""
        total_duration = (time.time() - self.start_time) * 1000

        step_stats: dict[str, dict[str, Any]] = {}
        for event in self.events:
            if event.step not in step_stats:
                step_stats[event.step] = {
                    "count": 0,
                    "failures": 0,
                    "total_duration_ms": 0.0,
                }

            step_stats[event.step]["count"] += 1
            if not event.success:
                step_stats[event.step]["failures"] += 1
            if event.duration_ms:
                step_stats[event.step]["total_duration_ms"] += event.duration_ms

        return {
            "operation": self.operation,
            "order_id": self.order_id,
            "total_duration_ms": total_duration,
            "total_events": len(self.events),
            "step_stats": step_stats,
            "events": [
                {
                    "timestamp": event.timestamp.isoformat(),
                    "step": event.step,
                    "product_id": event.product_id,
                    "success": event.success,
                    "duration_ms": event.duration_ms,
                    "metadata": event.metadata,
                }
                for event in self.events
            ],
        }

    def finish(self) -> dict[str, Any]:
        """Log and return the trace summary."""
        summary = self.get_trace_summary()
        logger.info(
            "batch_trace_complete",
            operation=self.operation,
            order_id=self.order_id,
            total_duration_ms=summary["total_duration_ms"],
            total_events=summary["total_events"],
            step_stats=summary["step_stats"],
        )
        return summary
