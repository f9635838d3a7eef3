# ============================================
# FILE: sagastep/monitoring/prometheus.py
# ============================================

"""
Prometheus metrics integration for sagastep.

Quick Start:
    >>> from sagastep.monitoring.prometheus import PrometheusMetrics, start_metrics_server
    >>>
    >>> start_metrics_server(port=8000)
    >>> metrics = PrometheusMetrics()
    >>> txn = Transaction(name="provision-user", metrics=metrics)
"""

from prometheus_client import CollectorRegistry, Counter, Gauge, Histogram, start_http_server

from sagastep.core.logger import library_logger
from sagastep.core.types import TransactionStatus

logger = library_logger(__name__)


class PrometheusMetrics:
    """
    Prometheus-compatible metrics collector for transactions.

    Exposes the following metrics:
        - <prefix>_execution_total: Counter of runs by name and status
        - <prefix>_retries_total: Counter of step retries
        - <prefix>_compensation_failures_total: Counter of suppressed compensation errors
        - <prefix>_execution_duration_seconds: Histogram of run durations
        - <prefix>_step_duration_seconds: Histogram of step durations
        - <prefix>_active_count: Gauge of currently running transactions
    """

    def __init__(self, prefix: str = "transaction", registry: CollectorRegistry | None = None):
        """
        Initialize Prometheus metrics.

        Args:
            prefix: Metric name prefix (default: "transaction")
            registry: Registry to register into (default: the global registry)
        """
        self._prefix = prefix
        kwargs = {"registry": registry} if registry is not None else {}

        self._execution_total = Counter(
            f"{prefix}_execution_total",
            "Total transaction executions",
            ["transaction_name", "status"],
            **kwargs,
        )

        self._retries_total = Counter(
            f"{prefix}_retries_total",
            "Total step retries",
            ["transaction_name", "step_name"],
            **kwargs,
        )

        self._compensation_failures_total = Counter(
            f"{prefix}_compensation_failures_total",
            "Total compensation errors suppressed during rollback",
            ["transaction_name", "step_name", "scope"],
            **kwargs,
        )

        self._execution_duration = Histogram(
            f"{prefix}_execution_duration_seconds",
            "Transaction execution duration in seconds",
            ["transaction_name"],
            buckets=[0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0],
            **kwargs,
        )

        self._step_duration = Histogram(
            f"{prefix}_step_duration_seconds",
            "Step execution duration in seconds, retries included",
            ["transaction_name", "step_name"],
            buckets=[0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 5.0],
            **kwargs,
        )

        self._active_count = Gauge(
            f"{prefix}_active_count",
            "Number of currently running transactions",
            ["transaction_name"],
            **kwargs,
        )

    def record_execution(
        self, transaction_name: str, status: TransactionStatus, duration: float
    ) -> None:
        status_str = status.value if hasattr(status, "value") else str(status)
        self._execution_total.labels(transaction_name=transaction_name, status=status_str).inc()
        self._execution_duration.labels(transaction_name=transaction_name).observe(duration)

    def record_step_duration(self, transaction_name: str, step_name: str, duration: float) -> None:
        self._step_duration.labels(
            transaction_name=transaction_name, step_name=step_name
        ).observe(duration)

    def record_retry(self, transaction_name: str, step_name: str) -> None:
        self._retries_total.labels(transaction_name=transaction_name, step_name=step_name).inc()

    def record_compensation_failure(
        self, transaction_name: str, step_name: str, scope: str
    ) -> None:
        self._compensation_failures_total.labels(
            transaction_name=transaction_name, step_name=step_name, scope=scope
        ).inc()

    def transaction_started(self, transaction_name: str) -> None:
        self._active_count.labels(transaction_name=transaction_name).inc()

    def transaction_finished(self, transaction_name: str) -> None:
        self._active_count.labels(transaction_name=transaction_name).dec()


def start_metrics_server(port: int = 8000, addr: str = "0.0.0.0") -> None:
    """
    Start a Prometheus HTTP metrics server.

    Example:
        >>> start_metrics_server(port=8000)
        >>> # Metrics available at http://localhost:8000/metrics
    """
    start_http_server(port, addr)
    logger.info(f"Prometheus metrics server started on port {port}")
