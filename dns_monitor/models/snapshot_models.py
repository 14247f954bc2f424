"""DNS Monitor: Snapshot Models.

Table and column names match the history written by the DNS Monitor WordPress
plugin (``{prefix}snapshots`` / ``{prefix}records``), so an existing database
can be read and extended in place.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict
from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, String, Text
from sqlmodel import Field, Relationship, SQLModel

from dns_monitor.config import settings
from dns_monitor.models.records import DNSRecord

SNAPSHOT_TABLE = f"{settings.table_prefix}snapshots"
RECORD_TABLE = f"{settings.table_prefix}records"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ─────────────────────────────────────────────
# DATABASE MODELS: immutable snapshot history
# ─────────────────────────────────────────────


class Snapshot(SQLModel, table=True):
    """One capture of the domain's record set plus its change counts.

    Never updated after insert. Removed only by retention eviction or an
    explicit delete, both of which cascade to the owned RecordRows.
    """

    __tablename__ = SNAPSHOT_TABLE
    __table_args__ = {"sqlite_autoincrement": True}

    id: Optional[int] = Field(
        default=None,
        sa_column=Column("ID", Integer, primary_key=True, autoincrement=True),
    )
    total: int = Field(
        default=0, sa_column=Column("snapshot_changes", Integer, nullable=False)
    )
    additions: int = Field(
        default=0, sa_column=Column("snapshot_additions", Integer, nullable=False)
    )
    removals: int = Field(
        default=0, sa_column=Column("snapshot_removals", Integer, nullable=False)
    )
    modifications: int = Field(
        default=0,
        sa_column=Column("snapshot_modifications", Integer, nullable=False),
    )
    created_at: datetime = Field(
        default_factory=_utcnow,
        sa_column=Column(
            "created_at", DateTime(timezone=True), nullable=False, index=True
        ),
    )

    records: List["RecordRow"] = Relationship(
        back_populates="snapshot",
        sa_relationship_kwargs={"cascade": "all, delete-orphan"},
    )


class RecordRow(SQLModel, table=True):
    """One DNS record of a snapshot, stored as host / type / codec string."""

    __tablename__ = RECORD_TABLE
    __table_args__ = (
        Index(
            f"idx_{RECORD_TABLE}_snapshot_type_host",
            "snapshot_id",
            "record_type",
            "record_host",
        ),
        Index(f"idx_{RECORD_TABLE}_type_host", "record_type", "record_host"),
        {"sqlite_autoincrement": True},
    )

    id: Optional[int] = Field(
        default=None,
        sa_column=Column("ID", Integer, primary_key=True, autoincrement=True),
    )
    snapshot_id: int = Field(
        sa_column=Column(
            "snapshot_id",
            Integer,
            ForeignKey(f"{SNAPSHOT_TABLE}.ID", ondelete="CASCADE"),
            nullable=False,
            index=True,
        )
    )
    host: str = Field(sa_column=Column("record_host", String(255), nullable=False))
    type: str = Field(sa_column=Column("record_type", String(255), nullable=False))
    encoded_value: str = Field(sa_column=Column("record_data", Text, nullable=False))
    created_at: datetime = Field(
        default_factory=_utcnow,
        sa_column=Column("created_at", DateTime(timezone=True), nullable=False),
    )

    snapshot: Optional[Snapshot] = Relationship(back_populates="records")


# ─────────────────────────────────────────────
# PYDANTIC SCHEMAS: change detection & write results
# ─────────────────────────────────────────────


class ChangeSummary(BaseModel):
    """Counts handed to the notification formatter and stored on a snapshot."""

    additions: int = 0
    removals: int = 0
    modifications: int = 0
    total: int = 0

    @classmethod
    def of(cls, additions: int, removals: int, modifications: int) -> "ChangeSummary":
        return cls(
            additions=additions,
            removals=removals,
            modifications=modifications,
            total=additions + removals + modifications,
        )

    @property
    def has_changes(self) -> bool:
        return self.total > 0


class ChangeStatus(str, Enum):
    ADDED = "added"
    REMOVED = "removed"
    MODIFIED = "modified"
    UNCHANGED = "unchanged"


class RecordChange(BaseModel):
    """Classification of one record in a current-vs-previous comparison."""

    status: ChangeStatus
    key: str
    current: Optional[DNSRecord] = None
    previous: Optional[DNSRecord] = None
    changed_fields: List[str] = []


class WritePath(str, Enum):
    """Which branch of the snapshot write state machine ran."""

    TRANSACTIONAL = "transactional"
    FALLBACK = "fallback"


class WriteFailure(str, Enum):
    EMPTY_RECORDS = "empty_records"
    DUPLICATE_RECORDS = "duplicate_records"
    INSERT_FAILURE = "insert_failure"
    COMMIT_FAILURE = "commit_failure"


class SnapshotWriteResult(BaseModel):
    """Outcome of ``SnapshotStore.create_with_records``.

    ``orphaned_snapshot_id`` is only ever set on the fallback path, when the
    record insert failed and the compensating delete failed as well.
    """

    ok: bool
    snapshot_id: Optional[int] = None
    path: Optional[WritePath] = None
    failure: Optional[WriteFailure] = None
    message: str = ""
    evicted_ids: List[int] = []
    orphaned_snapshot_id: Optional[int] = None


class DecodedRecords(BaseModel):
    """Records read back from a snapshot; undecodable rows are counted, not raised."""

    snapshot_id: int
    records: List[DNSRecord] = []
    skipped: int = 0

    @property
    def partial(self) -> bool:
        return self.skipped > 0


class SnapshotOut(BaseModel):
    """API view of a Snapshot row."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    created_at: datetime
    additions: int
    removals: int
    modifications: int
    total: int


class CheckStatus(str, Enum):
    SAVED = "saved"
    NOT_SAVED = "not_saved"  # decision policy chose not to persist
    RESOLUTION_EMPTY = "resolution_empty"
    INVALID_RECORDS = "invalid_records"
    SNAPSHOT_FAILED = "snapshot_failed"


class CheckResult(BaseModel):
    """Everything one "run a check" produced, for the API, scheduler and notifier."""

    status: CheckStatus
    domain: str
    checked_at: datetime
    record_count: int = 0
    changes: ChangeSummary = ChangeSummary()
    changes_detected: bool = False
    is_first_snapshot: bool = False
    baseline_snapshot_id: Optional[int] = None
    baseline_partial: bool = False
    snapshot_id: Optional[int] = None
    write_path: Optional[WritePath] = None
    error: Optional[str] = None
    record_changes: List[RecordChange] = []
