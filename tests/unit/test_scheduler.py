"""Tests for the scheduled check job."""

import logging
from datetime import datetime, timezone
from unittest.mock import MagicMock

from dns_monitor.config import settings
from dns_monitor.models.snapshot_models import ChangeSummary, CheckResult, CheckStatus
from dns_monitor.scheduler import jobs


def _result(**overrides):
    values = dict(
        status=CheckStatus.SAVED,
        domain="example.com",
        checked_at=datetime.now(timezone.utc),
        snapshot_id=1,
    )
    values.update(overrides)
    return CheckResult(**values)


class TestReportCheck:

    def test_change_logs_notification(self, caplog):
        result = _result(changes=ChangeSummary.of(1, 0, 0), changes_detected=True)
        with caplog.at_level(logging.INFO, logger="dns_monitor.scheduler"):
            jobs.report_check(result)
        record = caplog.records[-1]
        assert record.levelno == logging.WARNING
        assert "DNS Change Detected for example.com" in record.getMessage()
        assert record.domain == "example.com"

    def test_aborted_check_logs_error(self, caplog):
        result = _result(status=CheckStatus.RESOLUTION_EMPTY, snapshot_id=None, error="no records")
        with caplog.at_level(logging.INFO, logger="dns_monitor.scheduler"):
            jobs.report_check(result)
        assert caplog.records[-1].levelno == logging.ERROR


class TestJob:

    def test_skips_without_domain(self, monkeypatch):
        run_check = MagicMock()
        monkeypatch.setattr(settings, "domain", "")
        monkeypatch.setattr(jobs, "run_check", run_check)
        jobs.dns_check_job()
        run_check.assert_not_called()

    def test_runs_check_for_configured_domain(self, monkeypatch, engine):
        run_check = MagicMock(return_value=_result())
        monkeypatch.setattr(settings, "domain", "example.com")
        monkeypatch.setattr(jobs, "engine", engine)
        monkeypatch.setattr(jobs, "run_check", run_check)
        jobs.dns_check_job()
        assert run_check.call_args.kwargs["domain"] == "example.com"

    def test_job_errors_are_contained(self, monkeypatch, engine):
        monkeypatch.setattr(settings, "domain", "example.com")
        monkeypatch.setattr(jobs, "engine", engine)
        monkeypatch.setattr(jobs, "run_check", MagicMock(side_effect=RuntimeError("boom")))
        jobs.dns_check_job()


class TestScheduler:

    def test_interval_follows_frequency(self, monkeypatch):
        scheduler = MagicMock()
        monkeypatch.setattr(jobs, "scheduler", scheduler)
        monkeypatch.setattr(settings, "scheduler_enabled", True)
        monkeypatch.setattr(settings, "check_frequency", "twicedaily")
        jobs.start_scheduler()
        kwargs = scheduler.add_job.call_args.kwargs
        assert kwargs["hours"] == 12
        assert kwargs["max_instances"] == 1
        scheduler.start.assert_called_once()

    def test_disabled(self, monkeypatch):
        scheduler = MagicMock()
        monkeypatch.setattr(jobs, "scheduler", scheduler)
        monkeypatch.setattr(settings, "scheduler_enabled", False)
        jobs.start_scheduler()
        scheduler.add_job.assert_not_called()
