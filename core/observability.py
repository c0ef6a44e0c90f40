"""Observability Module - Logging, Tracing, and Metrics

This module provides:
1. Structured logging configuration for the chat pipeline
2. Operation tracing (open / send / stream) tagged with the session id
3. Performance metrics collection
"""
import logging
import functools
from typing import Any, Callable, Dict, List, Optional
from dataclasses import dataclass, field
from datetime import datetime

# Configure structured logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s | %(name)s | %(levelname)s | %(message)s',
    datefmt='%Y-%m-%d %H:%M:%S'
)

logger = logging.getLogger("momcare")


@dataclass
class OperationTrace:
    """Represents a single pipeline operation trace."""
    operation: str
    session_id: Optional[str] = None
    start_time: datetime = field(default_factory=datetime.now)
    end_time: Optional[datetime] = None
    duration_ms: Optional[float] = None
    success: bool = True
    error: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    def complete(self, success: bool = True, error: str = None):
        """Mark trace as complete."""
        self.end_time = datetime.now()
        self.duration_ms = (self.end_time - self.start_time).total_seconds() * 1000
        self.success = success
        self.error = error


@dataclass
class PipelineMetrics:
    """Counters for the chat pipeline, keyed by operation and outcome kind.

    Outcome counts only cover traces that tagged ``metadata["outcome"]``
    (send and send_stream), so blocked and truncated replies can be watched
    separately from transport failures.
    """
    total_operations: int = 0
    failed_operations: int = 0
    latencies_ms: Dict[str, List[float]] = field(default_factory=dict)
    failures_by_operation: Dict[str, int] = field(default_factory=dict)
    outcome_counts: Dict[str, int] = field(default_factory=dict)

    @property
    def success_rate(self) -> float:
        if not self.total_operations:
            return 0.0
        return 1 - self.failed_operations / self.total_operations

    def record(self, trace: OperationTrace):
        self.total_operations += 1
        if not trace.success:
            self.failed_operations += 1
            self.failures_by_operation[trace.operation] = self.failures_by_operation.get(trace.operation, 0) + 1

        outcome = trace.metadata.get("outcome")
        if outcome:
            self.outcome_counts[outcome] = self.outcome_counts.get(outcome, 0) + 1
        if trace.duration_ms is not None:
            self.latencies_ms.setdefault(trace.operation, []).append(trace.duration_ms)

    def summary(self) -> Dict[str, Any]:
        """Snapshot for dashboards: counts, success rate, mean latency per operation."""
        return {
            "total_requests": self.total_operations,
            "failed_requests": self.failed_operations,
            "success_rate": f"{self.success_rate:.1%}",
            "operation_avg_latency": {
                op: round(sum(values) / len(values), 1) for op, values in self.latencies_ms.items() if values
            },
            "failures_by_operation": dict(self.failures_by_operation),
            "outcomes": dict(self.outcome_counts),
        }

    def reset(self):
        self.total_operations = 0
        self.failed_operations = 0
        self.latencies_ms.clear()
        self.failures_by_operation.clear()
        self.outcome_counts.clear()


# Global metrics instance
metrics = PipelineMetrics()


class Tracer:
    """Context manager for tracing one pipeline operation.

    Failures are logged with the operation name and session id only; the
    exception text stays in the log and never reaches user-facing output.
    """

    def __init__(self, operation: str, session_id: Optional[str] = None):
        self.trace = OperationTrace(operation=operation, session_id=session_id)

    @property
    def _label(self) -> str:
        if self.trace.session_id:
            return f"{self.trace.operation} [session={self.trace.session_id}]"
        return self.trace.operation

    def __enter__(self):
        logger.info(f"▶ {self._label} started")
        return self.trace

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type:
            self.trace.complete(success=False, error=f"{exc_type.__name__}: {exc_val}")
            logger.error(f"✖ {self._label} failed: {exc_type.__name__}: {exc_val}")
        else:
            self.trace.complete(success=self.trace.error is None, error=self.trace.error)
            if self.trace.error:
                logger.error(f"✖ {self._label} failed: {self.trace.error}")
            else:
                logger.info(f"✔ {self._label} completed in {self.trace.duration_ms:.0f}ms")

        metrics.record(self.trace)
        return False  # Don't suppress exceptions


def traced(operation: str) -> Callable:
    """Decorator tracing a method whose first argument is a ChatSession."""
    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(self, session, *args, **kwargs):
            with Tracer(operation, getattr(session, "session_id", None)):
                return func(self, session, *args, **kwargs)
        return wrapper
    return decorator


def get_metrics_summary() -> Dict[str, Any]:
    """Get current metrics summary for dashboard/API."""
    return metrics.summary()
