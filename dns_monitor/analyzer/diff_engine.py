"""DNS Monitor: Snapshot Diff Engine.

Compares the current record set against the previous snapshot's records and
classifies every record as added, removed, modified or unchanged.

Matching runs in two passes:
  1. exact match on the canonical key; a match whose stored form (the codec
     string) differs is a modification, otherwise unchanged. Records read
     back from storage may differ in shape only (a one-element list decoded
     as a string, TXT strings split on "|"); those count as unchanged.
  2. unmatched records on both sides are paired per slot (type + host) in
     sorted order. Each pair is one modification: the record at that name
     changed value. Whatever stays unpaired is an addition or removal.

An empty previous set is a baseline, not a change: the summary is all zero.
"""

from collections import defaultdict
from typing import Dict, List, Sequence

from dns_monitor.analyzer.codec import encode
from dns_monitor.analyzer.normalizer import canonical_key, slot_key, sort_records
from dns_monitor.core.errors import DuplicateRecordError
from dns_monitor.models.records import DNSRecord
from dns_monitor.models.snapshot_models import (
    ChangeStatus,
    ChangeSummary,
    RecordChange,
)
from dns_monitor.core.logging import get_logger

logger = get_logger("analyzer.diff")


def find_duplicate_keys(records: Sequence[DNSRecord]) -> List[str]:
    """Canonical keys that occur more than once, in first-seen order."""
    seen: set[str] = set()
    duplicates: List[str] = []
    for record in records:
        key = canonical_key(record)
        if key in seen and key not in duplicates:
            duplicates.append(key)
        seen.add(key)
    return duplicates


def _require_unique(records: Sequence[DNSRecord]) -> None:
    duplicates = find_duplicate_keys(records)
    if duplicates:
        raise DuplicateRecordError(duplicates)


def _changed_fields(current: DNSRecord, previous: DNSRecord) -> List[str]:
    """Differing field names, for display. Empty when the stored forms agree."""
    if encode(current) == encode(previous):
        return []
    a = current.comparable()
    b = previous.comparable()
    return sorted(k for k in a.keys() | b.keys() if a.get(k) != b.get(k))


def classify_changes(
    current: Sequence[DNSRecord],
    previous: Sequence[DNSRecord],
) -> List[RecordChange]:
    """Per-record comparison. Raises ``DuplicateRecordError`` on repeated keys."""
    _require_unique(current)
    _require_unique(previous)

    previous_by_key: Dict[str, DNSRecord] = {canonical_key(r): r for r in previous}
    current_keys: set[str] = set()
    changes: List[RecordChange] = []
    unmatched_current: List[DNSRecord] = []

    # ── Pass 1: exact key match ──
    for record in current:
        key = canonical_key(record)
        current_keys.add(key)
        match = previous_by_key.get(key)
        if match is None:
            unmatched_current.append(record)
            continue
        fields = _changed_fields(record, match)
        changes.append(
            RecordChange(
                status=ChangeStatus.MODIFIED if fields else ChangeStatus.UNCHANGED,
                key=key,
                current=record,
                previous=match,
                changed_fields=fields,
            )
        )

    # ── Pass 2: pair leftovers occupying the same slot ──
    removed_by_slot: Dict[str, List[DNSRecord]] = defaultdict(list)
    unmatched_previous = [r for r in previous if canonical_key(r) not in current_keys]
    for record in sort_records(unmatched_previous):
        removed_by_slot[slot_key(record)].append(record)

    for record in sort_records(unmatched_current):
        bucket = removed_by_slot.get(slot_key(record))
        if bucket:
            match = bucket.pop(0)
            changes.append(
                RecordChange(
                    status=ChangeStatus.MODIFIED,
                    key=canonical_key(record),
                    current=record,
                    previous=match,
                    changed_fields=_changed_fields(record, match),
                )
            )
        else:
            changes.append(
                RecordChange(
                    status=ChangeStatus.ADDED,
                    key=canonical_key(record),
                    current=record,
                )
            )

    for bucket in removed_by_slot.values():
        for record in bucket:
            changes.append(
                RecordChange(
                    status=ChangeStatus.REMOVED,
                    key=canonical_key(record),
                    previous=record,
                )
            )

    return changes


def summarize(changes: Sequence[RecordChange]) -> ChangeSummary:
    """Count a classification into a ChangeSummary."""
    counts: Dict[ChangeStatus, int] = defaultdict(int)
    for change in changes:
        counts[change.status] += 1
    return ChangeSummary.of(
        additions=counts[ChangeStatus.ADDED],
        removals=counts[ChangeStatus.REMOVED],
        modifications=counts[ChangeStatus.MODIFIED],
    )


def diff(
    current: Sequence[DNSRecord],
    previous: Sequence[DNSRecord],
) -> ChangeSummary:
    """Change counts of ``current`` relative to ``previous``, TTL ignored."""
    if not previous:
        return ChangeSummary()

    summary = summarize(classify_changes(current, previous))
    logger.info(
        f"Diff: +{summary.additions} -{summary.removals} "
        f"~{summary.modifications} across {len(current)} current records"
    )
    return summary
