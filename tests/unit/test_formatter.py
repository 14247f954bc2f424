"""Tests for change notification text."""

from dns_monitor.analyzer.diff_engine import classify_changes, summarize
from dns_monitor.models.records import ARecord, MXRecord
from dns_monitor.models.snapshot_models import ChangeSummary
from dns_monitor.notifications.formatter import (
    format_change_notification,
    format_record,
    summarize_changes,
)


class TestFormatter:

    def test_format_record(self):
        record = MXRecord(host="example.com", target="mail.example.com", priority=10)
        assert format_record(record) == "MX example.com 00010|mail.example.com"

    def test_apex_host_shown_as_at(self):
        assert format_record(ARecord(host="", ip="1.1.1.1")) == "A @ 1.1.1.1"

    def test_sections(self):
        previous = [ARecord(host="x", ip="1.1.1.1"), ARecord(host="old", ip="9.9.9.9")]
        current = [ARecord(host="x", ip="2.2.2.2"), ARecord(host="new", ip="8.8.8.8")]
        text = summarize_changes(classify_changes(current, previous))
        assert "ADDED RECORDS (1):" in text
        assert "• A new 8.8.8.8" in text
        assert "REMOVED RECORDS (1):" in text
        assert "• A old 9.9.9.9" in text
        assert "MODIFIED RECORDS (1):" in text
        assert "ip: '1.1.1.1' → '2.2.2.2'" in text

    def test_unchanged_only(self):
        record = ARecord(host="x", ip="1.1.1.1")
        text = summarize_changes(classify_changes([record], [record]))
        assert text.startswith("Changes detected but no specific differences")

    def test_notification(self):
        previous = [ARecord(host="x", ip="1.1.1.1")]
        current = [ARecord(host="x", ip="2.2.2.2")]
        changes = classify_changes(current, previous)
        subject, body = format_change_notification("example.com", summarize(changes), changes)
        assert subject == "DNS Change Detected for example.com"
        assert "Modifications: 1" in body
        assert "SUMMARY OF CHANGES:" in body

    def test_notification_without_details(self):
        subject, body = format_change_notification(
            "example.com", ChangeSummary.of(1, 0, 0), []
        )
        assert "Additions: 1" in body
        assert "SUMMARY OF CHANGES:" not in body
