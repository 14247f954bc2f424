"""
Test fixtures shared across all test files.
"""

import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.pool import StaticPool
from sqlmodel import Session

from dns_monitor.database import build_engine, init_db
from dns_monitor.models.records import ARecord, MXRecord, NSRecord, TXTRecord
from dns_monitor.store.snapshot_store import SnapshotStore


@pytest.fixture
def engine():
    """Fresh in-memory SQLite database per test."""
    engine = build_engine("sqlite://", poolclass=StaticPool)
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def store(session):
    return SnapshotStore(session, retention_limit=10)


@pytest.fixture
def sample_records():
    """A small zone: two A records, MX, NS and TXT."""
    return [
        ARecord(host="example.com", ip="93.184.216.34", ttl=300),
        ARecord(host="www.example.com", ip="93.184.216.34", ttl=300),
        MXRecord(host="example.com", target="mail.example.com", priority=10, ttl=3600),
        NSRecord(host="example.com", target="a.iana-servers.net", ttl=86400),
        TXTRecord(host="example.com", text=["v=spf1 -all"], ttl=300),
    ]


@pytest.fixture
def db_error():
    """Factory for a database error as raised by the driver layer."""

    def _make(statement="INSERT"):
        return OperationalError(statement, {}, Exception("disk I/O error"))

    return _make


@pytest.fixture
def raw_a():
    """Factory for a raw A record as the resolver returns it."""

    def _make(host, ip, ttl=300):
        return {"host": host, "class": "IN", "ttl": ttl, "type": "A", "ip": ip}

    return _make


class FakeResolver:
    """Stand-in for the DNS resolution collaborator.

    Each call returns the next queued response; the last one repeats.
    Exceptions in the queue are raised.
    """

    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls = []

    def __call__(self, domain):
        self.calls.append(domain)
        if len(self.responses) > 1:
            response = self.responses.pop(0)
        else:
            response = self.responses[0]
        if isinstance(response, Exception):
            raise response
        return response


@pytest.fixture
def fake_resolver():
    return FakeResolver
