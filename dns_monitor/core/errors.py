"""DNS Monitor: Exception Types.

Only the pure analyzer functions and the resolver raise these. The snapshot
store and the check pipeline report failures as result values instead.
"""


class DNSMonitorError(Exception):
    """Base class for DNS Monitor errors."""


class RecordDecodeError(DNSMonitorError):
    """Raised when a stored record_data string does not fit its record type."""

    def __init__(self, record_type: str, encoded: str, reason: str):
        self.record_type = record_type
        self.encoded = encoded
        self.reason = reason
        super().__init__(f"Cannot decode {record_type} record {encoded!r}: {reason}")


class DuplicateRecordError(DNSMonitorError):
    """Raised when a record set contains the same canonical key twice."""

    def __init__(self, keys: list[str]):
        self.keys = keys
        super().__init__(f"Duplicate canonical record keys: {', '.join(keys)}")


class ResolverError(DNSMonitorError):
    """Raised when the DNS resolution collaborator fails outright."""
