"""
Tests for the Prometheus metrics collector.
"""

from unittest.mock import patch

import pytest
from prometheus_client import CollectorRegistry

from sagastep import Transaction, TransactionStatus
from sagastep.monitoring.prometheus import PrometheusMetrics, start_metrics_server


@pytest.fixture
def registry():
    return CollectorRegistry()


@pytest.fixture
def metrics(registry):
    return PrometheusMetrics(prefix="test_txn", registry=registry)


class TestPrometheusMetrics:
    def test_record_execution(self, metrics, registry):
        metrics.record_execution("provision", TransactionStatus.FAILED, 0.5)

        value = registry.get_sample_value(
            "test_txn_execution_total", {"transaction_name": "provision", "status": "failed"}
        )
        assert value == 1.0
        count = registry.get_sample_value(
            "test_txn_execution_duration_seconds_count", {"transaction_name": "provision"}
        )
        assert count == 1.0

    def test_retries_and_compensation_failures(self, metrics, registry):
        metrics.record_retry("provision", "charge")
        metrics.record_retry("provision", "charge")
        metrics.record_compensation_failure("provision", "charge", "global")

        assert (
            registry.get_sample_value(
                "test_txn_retries_total", {"transaction_name": "provision", "step_name": "charge"}
            )
            == 2.0
        )
        assert (
            registry.get_sample_value(
                "test_txn_compensation_failures_total",
                {"transaction_name": "provision", "step_name": "charge", "scope": "global"},
            )
            == 1.0
        )

    def test_active_gauge(self, metrics, registry):
        metrics.transaction_started("provision")
        metrics.transaction_started("provision")
        metrics.transaction_finished("provision")

        assert (
            registry.get_sample_value("test_txn_active_count", {"transaction_name": "provision"})
            == 1.0
        )

    @pytest.mark.asyncio
    async def test_wired_into_transaction(self, metrics, registry):
        txn = Transaction(name="provision", metrics=metrics).add_step("a", lambda ctx: 1)

        await txn.run()

        assert (
            registry.get_sample_value(
                "test_txn_execution_total",
                {"transaction_name": "provision", "status": "completed"},
            )
            == 1.0
        )
        assert (
            registry.get_sample_value(
                "test_txn_step_duration_seconds_count",
                {"transaction_name": "provision", "step_name": "a"},
            )
            == 1.0
        )
        assert (
            registry.get_sample_value("test_txn_active_count", {"transaction_name": "provision"})
            == 0.0
        )


def test_start_metrics_server():
    with patch("sagastep.monitoring.prometheus.start_http_server") as server:
        start_metrics_server(port=9999, addr="127.0.0.1")

    server.assert_called_once_with(9999, "127.0.0.1")
