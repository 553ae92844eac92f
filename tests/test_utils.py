"""
Unit tests for utils.py
"""

import logging
import tempfile
from pathlib import Path

import pytest

from mysql_utils.models import BatchJob, CopyStats, ItemResult, JobResult, ResultCode, SplitResult
from mysql_utils.utils import (
    aggregate_status,
    dry_run_default,
    log_copy_stats,
    log_item_results,
    log_job_results,
    log_split_result,
    setup_logging,
)


class TestSetupLogging:
    """Tests for setup_logging function."""

    @pytest.fixture(autouse=True)
    def reset_logging(self):
        """Reset logging configuration before each test."""
        root_logger = logging.getLogger()
        # Remove all handlers
        for handler in root_logger.handlers[:]:
            root_logger.removeHandler(handler)
        # Reset level to NOTSET so basicConfig will work
        root_logger.setLevel(logging.NOTSET)
        yield
        for handler in root_logger.handlers[:]:
            root_logger.removeHandler(handler)
            handler.close()

    def test_default_log_level(self):
        """Test default log level is INFO."""
        setup_logging({})
        assert logging.getLogger().level == logging.INFO

    def test_custom_log_level(self):
        """Test setting custom log level."""
        setup_logging({"level": "DEBUG"})
        assert logging.getLogger().level == logging.DEBUG

    def test_replaces_existing_handlers(self):
        """Test the level is applied even when the root logger already has a handler."""
        existing = logging.NullHandler()
        logging.getLogger().addHandler(existing)

        setup_logging({"level": "ERROR"})

        assert logging.getLogger().level == logging.ERROR
        assert existing not in logging.getLogger().handlers

    def test_log_level_case_insensitive(self):
        """Test log level is case insensitive."""
        setup_logging({"level": "warning"})
        assert logging.getLogger().level == logging.WARNING

    def test_log_to_file(self):
        """Test logging to a file."""
        with tempfile.TemporaryDirectory() as tmpdir:
            log_file = Path(tmpdir) / "test.log"
            setup_logging({"file": str(log_file)})

            logging.info("Test message")

            assert log_file.exists()
            for handler in logging.getLogger().handlers[:]:
                handler.close()

    def test_creates_log_directory(self):
        """Test that log directory is created if it doesn't exist."""
        with tempfile.TemporaryDirectory() as tmpdir:
            log_file = Path(tmpdir) / "nested" / "dir" / "test.log"
            setup_logging({"file": str(log_file)})

            assert log_file.parent.exists()
            for handler in logging.getLogger().handlers[:]:
                handler.close()


class TestDryRunDefault:
    """Tests for dry_run_default function."""

    def test_unset(self):
        assert dry_run_default({}) is True

    @pytest.mark.parametrize("value", ["0", "false", "No", "off", ""])
    def test_disabled(self, value):
        """Test false-ish DRY_RUN values turn dry-run off."""
        assert dry_run_default({"DRY_RUN": value}) is False

    @pytest.mark.parametrize("value", ["1", "yes", "true"])
    def test_enabled(self, value):
        assert dry_run_default({"DRY_RUN": value}) is True


class TestAggregateStatus:
    """Tests for aggregate_status function."""

    def test_empty(self):
        assert aggregate_status([]) == ResultCode.OK

    def test_dry_run(self):
        """Test any dry-run item makes the aggregate 304."""
        assert aggregate_status([ResultCode.OK, ResultCode.DRY_RUN]) == ResultCode.DRY_RUN

    def test_failure_wins(self):
        """Test the first failure is returned."""
        statuses = [ResultCode.DRY_RUN, ResultCode.IO_ERROR, ResultCode.PRECONDITION_FAILED]
        assert aggregate_status(statuses) == ResultCode.IO_ERROR


class TestLogResults:
    """Tests for the result logging helpers."""

    @pytest.fixture(autouse=True)
    def setup_logging(self):
        """Setup logging for tests."""
        logging.basicConfig(level=logging.INFO)

    def test_log_item_results(self, caplog):
        """Test per-item results are logged with their codes."""
        results = [
            ItemResult("shop.users", ResultCode.DRY_RUN, "OK (dry-run)"),
            ItemResult("shop.orders", ResultCode.DRY_RUN, "OK (dry-run)"),
        ]

        with caplog.at_level(logging.INFO):
            status = log_item_results(results)

        assert status == ResultCode.DRY_RUN
        assert "[304] shop.users: OK (dry-run)" in caplog.text
        assert "Processed 2 table(s)" in caplog.text

    def test_log_job_results(self, caplog):
        """Test failed jobs are listed and make the aggregate fail."""
        ok = JobResult(BatchJob(Path("a.sql"), Path("a.txt")), ResultCode.OK, message="OK")
        skipped = JobResult(BatchJob(Path("b.sql"), Path("b.txt")), ResultCode.OK, skipped=True)
        failed = JobResult(
            BatchJob(Path("c.sql"), Path("c.txt")), ResultCode.IO_ERROR,
            returncode=1, message="exited with status 1"
        )

        with caplog.at_level(logging.INFO):
            status = log_job_results([ok, skipped, failed])

        assert status == ResultCode.IO_ERROR
        assert "Jobs: 3, ran: 2, skipped: 1" in caplog.text
        assert "c.sql: exited with status 1" in caplog.text

    def test_log_split_result(self, caplog):
        result = SplitResult(tables_written=["a", "b"], tables_skipped=["c"], lines_written=42)

        with caplog.at_level(logging.INFO):
            log_split_result(result)

        assert "Tables written: 2, skipped: 1, lines: 42" in caplog.text

    def test_log_copy_stats(self, caplog):
        """Test copy stats are logged and dry-run reports 304."""
        stats = CopyStats(num_inserted=3, num_skipped=1, num_adjusted=2)

        with caplog.at_level(logging.INFO):
            assert log_copy_stats(stats, dry_run=True) == ResultCode.DRY_RUN
            assert log_copy_stats(stats, dry_run=False) == ResultCode.OK

        assert "Inserted: 3, Skipped: 1, Adjusted: 2" in caplog.text
