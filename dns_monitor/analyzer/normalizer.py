"""DNS Monitor: Record Normalizer.

Turns raw resolver output into typed records and derives the strings used to
identify, pair and order them. None of these include the TTL.
"""

import hashlib
from typing import Any, Iterable, List, Sequence

from pydantic import ValidationError

from dns_monitor.models.records import (
    AAAARecord,
    ARecord,
    CAARecord,
    CNAMERecord,
    DNSRecord,
    MXRecord,
    NSRecord,
    PTRRecord,
    SOARecord,
    SRVRecord,
    TXTRecord,
    UnknownRecord,
    record_adapter,
)
from dns_monitor.core.logging import get_logger

logger = get_logger("analyzer.normalizer")


def _md5(text: str) -> str:
    return hashlib.md5(text.encode("utf-8")).hexdigest()


def pad_number(number: int) -> str:
    """Zero-pad so string order matches numeric order."""
    return str(number).rjust(5, "0")


def attribute_pairs(record: UnknownRecord) -> List[str]:
    """Sorted ``field:value`` strings for an unknown record, lists comma-joined."""
    pairs = []
    for field, value in record.attributes.items():
        if isinstance(value, list):
            value = ",".join(value)
        pairs.append(f"{field}:{value}")
    return sorted(pairs)


def identity_fields(record: DNSRecord) -> List[str]:
    """Type-specific values that distinguish records sharing a type and host."""
    if isinstance(record, ARecord):
        return [record.ip]
    elif isinstance(record, AAAARecord):
        return [record.ipv6]
    elif isinstance(record, (CNAMERecord, NSRecord, PTRRecord)):
        return [record.target]
    elif isinstance(record, MXRecord):
        return [record.target, str(record.priority)]
    elif isinstance(record, TXTRecord):
        return [_md5("|".join(sorted(record.text)))]
    elif isinstance(record, SRVRecord):
        return [
            record.target,
            str(record.port),
            str(record.priority),
            str(record.weight),
        ]
    elif isinstance(record, SOARecord):
        return [record.primary_nameserver, record.responsible_email]
    elif isinstance(record, CAARecord):
        return [str(record.flags), record.tag, record.value]
    elif isinstance(record, UnknownRecord):
        return [_md5("|".join(attribute_pairs(record)))]
    raise TypeError(f"Unsupported record object: {type(record).__name__}")


def canonical_key(record: DNSRecord) -> str:
    """Deterministic identity string: type, host and identity fields."""
    return "-".join([record.type, record.host, *identity_fields(record)])


def slot_key(record: DNSRecord) -> str:
    """The zone position a record occupies, regardless of its value."""
    return f"{record.type}-{record.host}"


def primary_value(record: DNSRecord) -> str:
    """Sort value per type. MX/SRV numbers are zero-padded for string order."""
    if isinstance(record, ARecord):
        return record.ip
    elif isinstance(record, AAAARecord):
        return record.ipv6
    elif isinstance(record, (CNAMERecord, NSRecord, PTRRecord)):
        return record.target
    elif isinstance(record, MXRecord):
        return f"{pad_number(record.priority)}|{record.target}"
    elif isinstance(record, TXTRecord):
        return "|".join(sorted(record.text))
    elif isinstance(record, SRVRecord):
        return (
            f"{pad_number(record.priority)}|{pad_number(record.weight)}|"
            f"{pad_number(record.port)}|{record.target}"
        )
    elif isinstance(record, SOARecord):
        return f"{record.primary_nameserver}|{record.responsible_email}"
    elif isinstance(record, CAARecord):
        return f"{record.flags}|{record.tag}|{record.value}"
    elif isinstance(record, UnknownRecord):
        return "|".join(attribute_pairs(record))
    raise TypeError(f"Unsupported record object: {type(record).__name__}")


def sort_records(records: Iterable[DNSRecord]) -> List[DNSRecord]:
    """Stable sort by (type, primary value, host)."""
    return sorted(records, key=lambda r: (r.type, primary_value(r), r.host))


def parse_record(raw: Any) -> DNSRecord:
    """Build a typed record from a resolver dict (or pass a record through)."""
    if not isinstance(raw, dict):
        return record_adapter.validate_python(raw)
    data = dict(raw)
    data["type"] = str(data.get("type") or "").upper()
    return record_adapter.validate_python(data)


def parse_records(raw_records: Sequence[Any]) -> List[DNSRecord]:
    """Parse a resolver result, dropping entries that carry no record type."""
    records: List[DNSRecord] = []
    for raw in raw_records:
        if isinstance(raw, dict) and not raw.get("type"):
            logger.warning(f"Skipping raw record without a type: {raw!r}")
            continue
        try:
            records.append(parse_record(raw))
        except ValidationError as e:
            logger.warning(f"Skipping unparseable raw record {raw!r}: {e}")
    return records
