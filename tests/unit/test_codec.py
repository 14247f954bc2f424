"""Tests for the record_data codec."""

import pytest

from dns_monitor.analyzer.codec import decode, encode
from dns_monitor.analyzer.normalizer import parse_record
from dns_monitor.core.errors import RecordDecodeError
from dns_monitor.models.records import (
    AAAARecord,
    ARecord,
    CAARecord,
    CNAMERecord,
    MXRecord,
    NSRecord,
    PTRRecord,
    SOARecord,
    SRVRecord,
    TXTRecord,
    UnknownRecord,
)

RECORDS = [
    ARecord(host="example.com", ip="93.184.216.34", ttl=300),
    AAAARecord(host="example.com", ipv6="2606:2800:220:1:248:1893:25c8:1946", ttl=300),
    CNAMERecord(host="www.example.com", target="example.com", ttl=60),
    NSRecord(host="example.com", target="a.iana-servers.net", ttl=86400),
    PTRRecord(host="34.216.184.93.in-addr.arpa", target="example.com"),
    MXRecord(host="example.com", target="mail.example.com", priority=10, ttl=3600),
    TXTRecord(host="example.com", text=["v=spf1 -all", "google-site-verification=abc"]),
    SRVRecord(host="_sip._tcp.example.com", target="sip.example.com", port=5060, priority=10, weight=60),
    SOARecord(host="example.com", primary_nameserver="ns.icann.org", responsible_email="noc.dns.icann.org"),
    CAARecord(host="example.com", flags=0, tag="issue", value="letsencrypt.org"),
    parse_record({"type": "HINFO", "host": "example.com", "cpu": "ARM", "os": ["linux", "bsd"]}),
]


class TestRoundTrip:

    @pytest.mark.parametrize("record", RECORDS, ids=lambda r: r.type)
    def test_decode_inverts_encode_without_ttl(self, record):
        decoded = decode(record.host, record.type, encode(record))
        assert decoded == record.without_ttl()
        assert decoded.ttl is None


class TestEncode:

    def test_mx_priority_is_padded(self):
        record = MXRecord(host="x", target="mail.example.com", priority=10)
        assert encode(record) == "00010|mail.example.com"

    def test_srv_numbers_are_padded(self):
        record = SRVRecord(host="x", target="sip", port=5060, priority=1, weight=60)
        assert encode(record) == "00001|00060|05060|sip"

    def test_txt_joins_sorted_strings(self):
        record = TXTRecord(host="x", text=["b", "a"])
        assert encode(record) == "a|b"

    def test_unknown_pairs_are_sorted(self):
        record = UnknownRecord(type="HINFO", host="x", attributes={"os": "linux", "cpu": "ARM"})
        assert encode(record) == "cpu:ARM|os:linux"

    def test_ttl_not_encoded(self):
        a = ARecord(host="x", ip="1.1.1.1", ttl=60)
        b = ARecord(host="x", ip="1.1.1.1", ttl=3600)
        assert encode(a) == encode(b)


class TestDecode:

    def test_type_is_case_insensitive(self):
        assert decode("x", "mx", "00010|mail") == MXRecord(host="x", target="mail", priority=10)

    def test_empty_txt(self):
        assert decode("x", "TXT", "").text == []

    def test_mx_without_separator_fails(self):
        with pytest.raises(RecordDecodeError):
            decode("x", "MX", "mail.example.com")

    def test_mx_non_numeric_priority_fails(self):
        with pytest.raises(RecordDecodeError) as exc:
            decode("x", "MX", "ten|mail.example.com")
        assert exc.value.record_type == "MX"

    def test_srv_non_numeric_port_fails(self):
        with pytest.raises(RecordDecodeError):
            decode("x", "SRV", "00001|00005|http|sip")

    def test_caa_missing_parts_fails(self):
        with pytest.raises(RecordDecodeError):
            decode("x", "CAA", "0|issue")

    def test_unknown_pair_without_colon_fails(self):
        with pytest.raises(RecordDecodeError):
            decode("x", "HINFO", "cpu:ARM|junk")

    def test_unknown_legacy_bare_value(self):
        record = decode("x", "HINFO", "legacy-value")
        assert isinstance(record, UnknownRecord)
        assert record.attributes == {"target": "legacy-value"}

    def test_missing_type_fails(self):
        with pytest.raises(RecordDecodeError):
            decode("x", "", "1.1.1.1")


SHAPE_CHANGING = [
    parse_record({"type": "HTTPS", "host": "example.com", "value": '1 . alpn="h3,h2"'}),
    UnknownRecord(type="HINFO", host="example.com", attributes={"os": ["linux"]}),
    TXTRecord(host="example.com", text=["a|b"]),
    TXTRecord(host="example.com", text=[""]),
]


class TestLossyCorners:

    @pytest.mark.parametrize("record", SHAPE_CHANGING, ids=["comma", "single-list", "pipe", "empty-txt"])
    def test_stored_form_is_stable(self, record):
        decoded = decode(record.host, record.type, encode(record))
        assert encode(decoded) == encode(record)

    def test_comma_value_comes_back_split(self):
        record = SHAPE_CHANGING[0]
        decoded = decode(record.host, record.type, encode(record))
        assert decoded.attributes == {"value": ['1 . alpn="h3', 'h2"']}

    def test_single_element_list_comes_back_as_string(self):
        decoded = decode("x", "HINFO", encode(SHAPE_CHANGING[1]))
        assert decoded.attributes == {"os": "linux"}

    def test_txt_pipe_splits(self):
        assert decode("x", "TXT", encode(SHAPE_CHANGING[2])).text == ["a", "b"]

    def test_empty_txt_string_is_dropped(self):
        assert decode("x", "TXT", encode(SHAPE_CHANGING[3])).text == []
