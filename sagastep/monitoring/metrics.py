# ============================================
# FILE: sagastep/monitoring/metrics.py
# ============================================

"""
Metrics collection for transactions
"""

from typing import Any

from sagastep.core.types import TransactionStatus


class TransactionMetrics:
    """Collect and expose transaction metrics in memory"""

    def __init__(self):
        self.metrics = {
            "total_executed": 0,
            "total_successful": 0,
            "total_failed": 0,
            "total_retries": 0,
            "total_compensation_failures": 0,
            "active": 0,
            "average_execution_time": 0.0,
            "by_transaction_name": {},
            "step_durations": {},
        }

    def transaction_started(self, transaction_name: str) -> None:
        self.metrics["active"] += 1

    def transaction_finished(self, transaction_name: str) -> None:
        self.metrics["active"] = max(0, self.metrics["active"] - 1)

    def record_execution(
        self, transaction_name: str, status: TransactionStatus, duration: float
    ) -> None:
        """Record a finished transaction run"""
        self.metrics["total_executed"] += 1
        self._increment_status_counter(status)
        self._update_average_time(duration)
        self._update_transaction_stats(transaction_name, status)

    def record_step_duration(self, transaction_name: str, step_name: str, duration: float) -> None:
        key = f"{transaction_name}.{step_name}"
        self.metrics["step_durations"].setdefault(key, []).append(duration)

    def record_retry(self, transaction_name: str, step_name: str) -> None:
        self.metrics["total_retries"] += 1

    def record_compensation_failure(
        self, transaction_name: str, step_name: str, scope: str
    ) -> None:
        self.metrics["total_compensation_failures"] += 1

    def _increment_status_counter(self, status: TransactionStatus) -> None:
        status_map = {
            TransactionStatus.COMPLETED: "total_successful",
            TransactionStatus.FAILED: "total_failed",
        }
        counter = status_map.get(status)
        if counter:
            self.metrics[counter] += 1

    def _update_average_time(self, duration: float) -> None:
        total_time = self.metrics["average_execution_time"] * (
            self.metrics["total_executed"] - 1
        )
        self.metrics["average_execution_time"] = (
            total_time + duration
        ) / self.metrics["total_executed"]

    def _update_transaction_stats(self, transaction_name: str, status: TransactionStatus) -> None:
        stats = self.metrics["by_transaction_name"].setdefault(
            transaction_name, {"count": 0, "success": 0, "failed": 0}
        )
        stats["count"] += 1
        if status == TransactionStatus.COMPLETED:
            stats["success"] += 1
        else:
            stats["failed"] += 1

    def get_metrics(self) -> dict[str, Any]:
        """Get all metrics"""
        success_rate = (
            self.metrics["total_successful"] / self.metrics["total_executed"] * 100
            if self.metrics["total_executed"] > 0
            else 0
        )

        return {
            **self.metrics,
            "success_rate": f"{success_rate:.2f}%",
        }
