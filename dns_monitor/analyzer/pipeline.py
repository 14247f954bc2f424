"""DNS Monitor: Check Pipeline.

Runs one "check now":
  resolve → parse + sort → load baseline → diff → decide → store snapshot

The pipeline never raises for expected conditions; the outcome is carried in
``CheckResult.status``.
"""

import time
from datetime import datetime, timezone
from typing import List, Optional, Sequence

from sqlmodel import Session

from dns_monitor.analyzer.diff_engine import (
    classify_changes,
    find_duplicate_keys,
    summarize,
)
from dns_monitor.analyzer.normalizer import canonical_key, parse_records, sort_records
from dns_monitor.config import settings
from dns_monitor.connectors.dns.resolver import DNSPythonResolver, RecordResolver
from dns_monitor.core.errors import ResolverError
from dns_monitor.models.records import DNSRecord
from dns_monitor.models.snapshot_models import (
    ChangeSummary,
    CheckResult,
    CheckStatus,
    RecordChange,
)
from dns_monitor.store.snapshot_store import SnapshotStore
from dns_monitor.core.logging import for_domain, get_logger

logger = get_logger("analyzer.pipeline")


def should_save_snapshot(
    is_first_snapshot: bool,
    changes_detected: bool,
    behavior: str,
) -> bool:
    """Decision policy: first snapshot and detected changes are always kept."""
    return is_first_snapshot or changes_detected or behavior == "always"


def _first_occurrences(records: Sequence[DNSRecord]) -> List[DNSRecord]:
    """Drop repeated canonical keys from stored history, first one wins."""
    seen: set[str] = set()
    unique: List[DNSRecord] = []
    for record in records:
        key = canonical_key(record)
        if key not in seen:
            seen.add(key)
            unique.append(record)
    return unique


def run_check(
    session: Session,
    domain: Optional[str] = None,
    resolver: Optional[RecordResolver] = None,
    save_snapshot: bool = True,
    snapshot_behavior: Optional[str] = None,
    store: Optional[SnapshotStore] = None,
) -> CheckResult:
    """Resolve the domain, compare against the latest snapshot, maybe persist."""
    domain = domain or settings.domain
    behavior = snapshot_behavior or settings.snapshot_behavior
    resolver = resolver or DNSPythonResolver()
    store = store or SnapshotStore(session)
    checked_at = datetime.now(timezone.utc)
    started = time.perf_counter()
    log = for_domain(logger, domain)

    log.info(f"Starting DNS check for {domain}")

    # ── Step 1: Resolve ──
    try:
        raw_records = resolver(domain)
    except ResolverError as e:
        log.error(f"DNS resolution failed: {e}")
        raw_records = []

    records = sort_records(parse_records(raw_records or []))
    if not records:
        log.warning(f"No DNS records returned for {domain}, check aborted")
        return CheckResult(
            status=CheckStatus.RESOLUTION_EMPTY,
            domain=domain,
            checked_at=checked_at,
            error=f"No DNS records returned for {domain}",
        )

    duplicates = find_duplicate_keys(records)
    if duplicates:
        log.error(f"Resolver returned duplicate records: {duplicates}")
        return CheckResult(
            status=CheckStatus.INVALID_RECORDS,
            domain=domain,
            checked_at=checked_at,
            record_count=len(records),
            error=f"Duplicate record keys: {', '.join(duplicates)}",
        )

    # ── Step 2: Compare against the latest snapshot ──
    baseline = store.latest()
    changes = ChangeSummary()
    record_changes: List[RecordChange] = []
    baseline_partial = False

    if baseline is not None:
        decoded = store.records_of(baseline.id)
        previous = _first_occurrences(decoded.records)
        baseline_partial = decoded.partial or len(previous) != len(decoded.records)
        if previous:
            record_changes = classify_changes(records, previous)
            changes = summarize(record_changes)

    is_first_snapshot = baseline is None
    changes_detected = not is_first_snapshot and changes.has_changes

    result = CheckResult(
        status=CheckStatus.NOT_SAVED,
        domain=domain,
        checked_at=checked_at,
        record_count=len(records),
        changes=changes,
        changes_detected=changes_detected,
        is_first_snapshot=is_first_snapshot,
        baseline_snapshot_id=baseline.id if baseline is not None else None,
        baseline_partial=baseline_partial,
        record_changes=record_changes,
    )

    # ── Step 3: Decide & Store ──
    if save_snapshot and should_save_snapshot(
        is_first_snapshot, changes_detected, behavior
    ):
        write = store.create_with_records(records, changes)
        result.write_path = write.path
        if write.ok:
            result.status = CheckStatus.SAVED
            result.snapshot_id = write.snapshot_id
        else:
            result.status = CheckStatus.SNAPSHOT_FAILED
            result.error = f"Failed to save DNS snapshot: {write.message}"

    duration_ms = round((time.perf_counter() - started) * 1000, 1)
    log.info(
        f"DNS check complete: {result.status.value}, "
        f"+{changes.additions} -{changes.removals} ~{changes.modifications}",
        extra={
            "snapshot_id": result.snapshot_id,
            "record_count": len(records),
            "duration_ms": duration_ms,
        },
    )
    return result
