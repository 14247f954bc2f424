"""DNS Monitor: Record Codec.

Serializes a record's non-volatile fields into the single ``record_data``
string stored per row, and rebuilds the record from it. The format is shared
with history written by the WordPress plugin:

    A / AAAA / CNAME / NS / PTR   value
    MX                            00010|mail.example.com
    TXT                           sorted strings joined by "|"
    SRV                           priority|weight|port|target (numbers padded)
    SOA                           primary_nameserver|responsible_email
    CAA                           flags|tag|value
    other                         sorted key:value pairs joined by "|",
                                  list values comma-joined

Decoded records never carry a TTL.
"""

from typing import Dict, List

from dns_monitor.analyzer.normalizer import pad_number, attribute_pairs
from dns_monitor.core.errors import RecordDecodeError
from dns_monitor.models.records import (
    AAAARecord,
    ARecord,
    CAARecord,
    CNAMERecord,
    DNSRecord,
    FieldValue,
    MXRecord,
    NSRecord,
    PTRRecord,
    SOARecord,
    SRVRecord,
    TXTRecord,
    UnknownRecord,
)


def encode(record: DNSRecord) -> str:
    """Encode every field except ``type``, ``host`` and ``ttl``."""
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


def _split(record_type: str, encoded: str, parts: int) -> List[str]:
    pieces = encoded.split("|", parts - 1)
    if len(pieces) != parts:
        raise RecordDecodeError(
            record_type, encoded, f"expected {parts} '|'-separated parts"
        )
    return pieces


def _number(record_type: str, encoded: str, text: str) -> int:
    try:
        return int(text)
    except ValueError:
        raise RecordDecodeError(record_type, encoded, f"{text!r} is not a number")


def _decode_attributes(record_type: str, encoded: str) -> Dict[str, FieldValue]:
    if not encoded:
        return {}
    # Rows written before key:value encoding hold a single bare value
    if ":" not in encoded:
        return {"target": encoded}

    attributes: Dict[str, FieldValue] = {}
    for pair in encoded.split("|"):
        if ":" not in pair:
            raise RecordDecodeError(record_type, encoded, f"pair {pair!r} has no ':'")
        key, value = pair.split(":", 1)
        attributes[key] = value.split(",") if "," in value else value
    return attributes


def decode(host: str, record_type: str, encoded: str) -> DNSRecord:
    """Rebuild a record from its stored row. Raises ``RecordDecodeError``."""
    rtype = (record_type or "").upper()
    encoded = encoded or ""

    if rtype == "A":
        return ARecord(host=host, ip=encoded)
    elif rtype == "AAAA":
        return AAAARecord(host=host, ipv6=encoded)
    elif rtype == "CNAME":
        return CNAMERecord(host=host, target=encoded)
    elif rtype == "NS":
        return NSRecord(host=host, target=encoded)
    elif rtype == "PTR":
        return PTRRecord(host=host, target=encoded)
    elif rtype == "MX":
        priority, target = _split(rtype, encoded, 2)
        return MXRecord(
            host=host, priority=_number(rtype, encoded, priority), target=target
        )
    elif rtype == "TXT":
        return TXTRecord(host=host, text=encoded.split("|") if encoded else [])
    elif rtype == "SRV":
        priority, weight, port, target = _split(rtype, encoded, 4)
        return SRVRecord(
            host=host,
            priority=_number(rtype, encoded, priority),
            weight=_number(rtype, encoded, weight),
            port=_number(rtype, encoded, port),
            target=target,
        )
    elif rtype == "SOA":
        primary, email = _split(rtype, encoded, 2)
        return SOARecord(
            host=host, primary_nameserver=primary, responsible_email=email
        )
    elif rtype == "CAA":
        flags, tag, value = _split(rtype, encoded, 3)
        return CAARecord(
            host=host, flags=_number(rtype, encoded, flags), tag=tag, value=value
        )

    if not rtype:
        raise RecordDecodeError(record_type, encoded, "missing record type")
    return UnknownRecord(
        type=rtype, host=host, attributes=_decode_attributes(rtype, encoded)
    )
