"""Tests for the loguru sinks and record filters."""

import pytest

from core.correlation import set_correlation_id
from core.logging_config import (
    configure_logging,
    correlation_filter,
    reconciliation_filter,
)


def _record(name: str = "services.engagement_service", **extra) -> dict:
    return {"name": name, "extra": dict(extra)}


class TestCorrelationFilter:
    def test_context_lists_club_fields_in_order(self) -> None:
        record = _record(
            action="like", content_id=7, user_id=3, content_type="News", active=True
        )

        assert correlation_filter(record) is True
        assert record["extra"]["context"] == (
            "user_id=3 content_type=News content_id=7 action=like"
        )

    def test_empty_context_and_placeholder_correlation_id(self) -> None:
        set_correlation_id("")
        record = _record()

        correlation_filter(record)

        assert record["extra"] == {"correlation_id": "-", "context": ""}

    def test_carries_request_correlation_id(self) -> None:
        set_correlation_id("req-42")
        record = _record()

        correlation_filter(record)

        assert record["extra"]["correlation_id"] == "req-42"
        set_correlation_id("")


class TestReconciliationFilter:
    @pytest.mark.parametrize(
        "name", ["services.reconciliation_service", "tasks.reconcile_counters"]
    )
    def test_keeps_reconciliation_records(self, name: str) -> None:
        assert reconciliation_filter(_record(name, content_id=1)) is True

    def test_drops_everything_else(self) -> None:
        assert reconciliation_filter(_record("services.comment_service")) is False


class TestConfigureLogging:
    def test_file_sinks_created_outside_tests(self, tmp_path) -> None:
        log_dir = tmp_path / "logs"
        try:
            configure_logging("production", str(log_dir))
            assert (log_dir / "uniclub.log").exists()
            assert (log_dir / "reconciliation.log").exists()
        finally:
            configure_logging("test")

    def test_no_files_in_test_environment(self, tmp_path) -> None:
        log_dir = tmp_path / "logs"
        configure_logging("test", str(log_dir))
        assert not log_dir.exists()
