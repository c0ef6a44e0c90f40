"""Tests for tracing and pipeline metrics."""
import pytest

from core.observability import PipelineMetrics, Tracer, metrics


@pytest.fixture(autouse=True)
def clean_metrics():
    metrics.reset()
    yield
    metrics.reset()


class TestTracer:

    def test_success_recorded_with_outcome(self):
        with Tracer("send", "abc") as trace:
            trace.metadata["outcome"] = "ok"

        summary = metrics.summary()
        assert summary["total_requests"] == 1
        assert summary["success_rate"] == "100.0%"
        assert summary["outcomes"] == {"ok": 1}
        assert "send" in summary["operation_avg_latency"]

    def test_exception_propagates_and_counts_as_failure(self):
        with pytest.raises(ValueError):
            with Tracer("open_session", "abc"):
                raise ValueError("bad")

        assert metrics.summary()["failures_by_operation"] == {"open_session": 1}

    def test_manual_error_counts_as_failure(self):
        with Tracer("send_stream") as trace:
            trace.error = "TransportError"

        assert metrics.failed_operations == 1
        assert metrics.success_rate == 0.0


class TestPipelineMetrics:

    def test_empty_summary(self):
        summary = PipelineMetrics().summary()
        assert summary["total_requests"] == 0
        assert summary["success_rate"] == "0.0%"
        assert summary["outcomes"] == {}
