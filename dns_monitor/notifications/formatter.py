"""DNS Monitor: Change Notification Formatter.

Renders a check's change summary as a plain-text message. Delivery is left
to whatever channel the host application uses.
"""

from typing import List, Sequence, Tuple

from dns_monitor.analyzer.codec import encode
from dns_monitor.models.records import DNSRecord
from dns_monitor.models.snapshot_models import ChangeStatus, ChangeSummary, RecordChange

RULE = "=" * 50


def format_record(record: DNSRecord) -> str:
    """One-line description: ``A example.com 1.1.1.1``."""
    value = encode(record)
    return f"{record.type} {record.host or '@'} {value}".rstrip()


def _field_delta(change: RecordChange) -> str:
    before = change.previous.comparable() if change.previous else {}
    after = change.current.comparable() if change.current else {}
    return ", ".join(
        f"{field}: '{before.get(field, '')}' → '{after.get(field, '')}'"
        for field in change.changed_fields
    )


def _section(title: str, lines: List[str]) -> List[str]:
    if not lines:
        return []
    return [f"{title} ({len(lines)}):", *[f"• {line}" for line in lines], ""]


def summarize_changes(changes: Sequence[RecordChange]) -> str:
    """Human-readable listing of added, removed and modified records."""
    added = [format_record(c.current) for c in changes if c.status == ChangeStatus.ADDED]
    removed = [
        format_record(c.previous) for c in changes if c.status == ChangeStatus.REMOVED
    ]
    modified = [
        f"{format_record(c.current)}\n  Changes: {_field_delta(c)}"
        for c in changes
        if c.status == ChangeStatus.MODIFIED
    ]

    lines = (
        _section("ADDED RECORDS", added)
        + _section("REMOVED RECORDS", removed)
        + _section("MODIFIED RECORDS", modified)
    )
    if not lines:
        return "Changes detected but no specific differences identified.\n"
    return "\n".join(lines)


def format_change_notification(
    domain: str,
    summary: ChangeSummary,
    changes: Sequence[RecordChange],
) -> Tuple[str, str]:
    """Return ``(subject, body)`` for a DNS change alert."""
    subject = f"DNS Change Detected for {domain}"
    body = [
        f"DNS Monitor has detected a change in DNS records for {domain}.",
        "",
        f"Additions: {summary.additions}  Removals: {summary.removals}  "
        f"Modifications: {summary.modifications}  Total: {summary.total}",
        "",
    ]
    if changes:
        body += [
            "SUMMARY OF CHANGES:",
            RULE,
            summarize_changes(changes),
            RULE,
            "",
        ]
    body += [
        "Please review the changes and take appropriate action if needed.",
        "",
        "This is an automated notification from DNS Monitor.",
    ]
    return subject, "\n".join(body)
