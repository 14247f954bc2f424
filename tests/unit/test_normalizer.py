"""Tests for record parsing, canonical keys and ordering."""

import pytest
from pydantic import ValidationError

from dns_monitor.analyzer.normalizer import (
    canonical_key,
    pad_number,
    parse_record,
    parse_records,
    slot_key,
    sort_records,
)
from dns_monitor.models.records import (
    ARecord,
    CAARecord,
    MXRecord,
    SOARecord,
    SRVRecord,
    TXTRecord,
    UnknownRecord,
)


class TestCanonicalKey:

    def test_a_record_key(self):
        record = ARecord(host="example.com", ip="1.1.1.1", ttl=300)
        assert canonical_key(record) == "A-example.com-1.1.1.1"

    def test_ttl_never_affects_key(self):
        short = ARecord(host="example.com", ip="1.1.1.1", ttl=60)
        long = ARecord(host="example.com", ip="1.1.1.1", ttl=86400)
        missing = ARecord(host="example.com", ip="1.1.1.1")
        assert canonical_key(short) == canonical_key(long) == canonical_key(missing)

    def test_mx_key_includes_target_and_priority(self):
        record = MXRecord(host="example.com", target="mx1.example.com", priority=10)
        assert canonical_key(record) == "MX-example.com-mx1.example.com-10"

    def test_srv_key_includes_all_numbers(self):
        a = SRVRecord(host="_sip._tcp.example.com", target="sip", port=5060, priority=1, weight=5)
        b = SRVRecord(host="_sip._tcp.example.com", target="sip", port=5061, priority=1, weight=5)
        assert canonical_key(a) != canonical_key(b)

    def test_txt_key_ignores_string_order(self):
        a = TXTRecord(host="example.com", text=["b", "a"])
        b = TXTRecord(host="example.com", text=["a", "b"])
        assert canonical_key(a) == canonical_key(b)

    def test_unknown_key_ignores_field_order(self):
        a = parse_record({"type": "HINFO", "host": "x", "cpu": "ARM", "os": "Linux"})
        b = parse_record({"os": "Linux", "host": "x", "cpu": "ARM", "type": "hinfo"})
        assert canonical_key(a) == canonical_key(b)

    def test_unknown_key_changes_with_value(self):
        a = parse_record({"type": "HINFO", "host": "x", "cpu": "ARM"})
        b = parse_record({"type": "HINFO", "host": "x", "cpu": "x86"})
        assert canonical_key(a) != canonical_key(b)

    def test_slot_key_is_type_and_host(self):
        record = ARecord(host="www.example.com", ip="1.1.1.1")
        assert slot_key(record) == "A-www.example.com"


class TestSortRecords:

    def test_mx_priorities_sort_numerically(self):
        records = [
            MXRecord(host="x", target="c", priority=20),
            MXRecord(host="x", target="b", priority=5),
            MXRecord(host="x", target="a", priority=100),
        ]
        assert [r.priority for r in sort_records(records)] == [5, 20, 100]

    def test_type_orders_first(self):
        records = [
            TXTRecord(host="x", text=["v=spf1"]),
            MXRecord(host="x", target="m", priority=10),
            ARecord(host="x", ip="1.1.1.1"),
        ]
        assert [r.type for r in sort_records(records)] == ["A", "MX", "TXT"]

    def test_host_breaks_ties(self):
        records = [
            ARecord(host="b.example.com", ip="1.1.1.1"),
            ARecord(host="a.example.com", ip="1.1.1.1"),
        ]
        assert [r.host for r in sort_records(records)] == [
            "a.example.com",
            "b.example.com",
        ]

    def test_pad_number(self):
        assert pad_number(10) == "00010"
        assert pad_number(0) == "00000"


class TestParseRecord:

    def test_php_style_mx(self):
        record = parse_record(
            {"host": "example.com", "class": "IN", "ttl": "300", "type": "mx",
             "target": "mail.example.com", "pri": "10"}
        )
        assert isinstance(record, MXRecord)
        assert record.priority == 10
        assert record.ttl == 300

    def test_missing_fields_normalize_to_empty(self):
        record = parse_record({"type": "A", "host": "x"})
        assert isinstance(record, ARecord)
        assert record.ip == ""
        assert record.ttl is None

    def test_garbled_number_normalizes_to_zero(self):
        record = parse_record({"type": "MX", "host": "x", "target": "m", "pri": "high"})
        assert record.priority == 0

    def test_txt_single_string_becomes_list(self):
        record = parse_record({"type": "TXT", "host": "x", "txt": "v=spf1 -all"})
        assert isinstance(record, TXTRecord)
        assert record.text == ["v=spf1 -all"]

    def test_txt_is_sorted(self):
        record = TXTRecord(host="x", text=["z", "a", "m"])
        assert record.text == ["a", "m", "z"]

    def test_soa_accepts_wire_names(self):
        record = parse_record(
            {"type": "SOA", "host": "x", "mname": "ns1.x", "rname": "admin.x"}
        )
        assert isinstance(record, SOARecord)
        assert record.primary_nameserver == "ns1.x"
        assert record.responsible_email == "admin.x"

    def test_caa(self):
        record = parse_record(
            {"type": "CAA", "host": "x", "flags": 0, "tag": "issue", "value": "letsencrypt.org"}
        )
        assert isinstance(record, CAARecord)
        assert record.value == "letsencrypt.org"

    def test_unknown_type_keeps_extra_fields(self):
        record = parse_record(
            {"type": "HINFO", "host": "x", "class": "IN", "ttl": 60, "cpu": "ARM"}
        )
        assert isinstance(record, UnknownRecord)
        assert record.type == "HINFO"
        assert record.ttl == 60
        assert record.attributes == {"class": "IN", "cpu": "ARM"}

    def test_parse_records_skips_entries_without_type(self):
        records = parse_records(
            [{"host": "x", "ip": "1.1.1.1"}, {"type": "A", "host": "x", "ip": "2.2.2.2"}]
        )
        assert len(records) == 1
        assert records[0].ip == "2.2.2.2"

    def test_records_are_immutable(self):
        record = ARecord(host="x", ip="1.1.1.1")
        with pytest.raises(ValidationError):
            record.ip = "2.2.2.2"
