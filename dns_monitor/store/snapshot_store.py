"""DNS Monitor: Snapshot Store.

Persists snapshots and their record rows, enforces the retention window and
serves point-in-time lookups. The store works on the session it is given and
owns that session's transaction boundaries during a write.

Write state machine (``create_with_records``):

    validate ─▶ detect ─┬─ transactional: evict ▸ insert snapshot ▸ insert rows ▸ commit
                        │                 any failure ▸ rollback (eviction undone too)
                        └─ fallback:      evict ▸ insert snapshot ▸ commit
                                          insert rows ▸ commit
                                          failure ▸ compensating delete of the snapshot
                                                    failure ▸ orphan reported

Every branch ends in a ``SnapshotWriteResult``; database errors never escape.
The fallback cannot guarantee atomicity: if the compensating delete fails the
snapshot row stays behind with no records. That case is logged at ERROR and
surfaced as ``orphaned_snapshot_id``.
"""

from typing import List, Optional, Sequence

from sqlalchemy import and_, func, or_, text
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from dns_monitor.analyzer.codec import decode, encode
from dns_monitor.analyzer.diff_engine import find_duplicate_keys
from dns_monitor.config import settings
from dns_monitor.core.errors import RecordDecodeError
from dns_monitor.models.records import DNSRecord
from dns_monitor.models.snapshot_models import (
    SNAPSHOT_TABLE,
    ChangeSummary,
    DecodedRecords,
    RecordRow,
    Snapshot,
    SnapshotWriteResult,
    WriteFailure,
    WritePath,
)
from dns_monitor.core.logging import get_logger

logger = get_logger("store.snapshots")

MAX_PER_PAGE = 100
TRANSACTIONAL_DIALECTS = {"sqlite", "postgresql"}
MYSQL_DIALECTS = {"mysql", "mariadb"}


class SnapshotStore:
    """Snapshot history for one domain, bound to an explicit session."""

    def __init__(
        self,
        session: Session,
        retention_limit: Optional[int] = None,
        transactional: Optional[bool] = None,
    ):
        self.session = session
        self.retention_limit = (
            retention_limit if retention_limit is not None else settings.retention_limit
        )
        if self.retention_limit < 1:
            raise ValueError("retention_limit must be at least 1")
        # None → detect from the backend on each write
        self._transactional = transactional

    # ── Lookups ──

    def latest(self) -> Optional[Snapshot]:
        """Most recently created snapshot, or None when the history is empty."""
        return self.session.exec(
            select(Snapshot)
            .order_by(Snapshot.created_at.desc(), Snapshot.id.desc())  # type: ignore
            .limit(1)
        ).first()

    def get(self, snapshot_id: int) -> Optional[Snapshot]:
        return self.session.get(Snapshot, snapshot_id)

    def previous(self, snapshot_id: int) -> Optional[Snapshot]:
        """The snapshot created immediately before ``snapshot_id``."""
        current = self.get(snapshot_id)
        if current is None:
            return None

        return self.session.exec(
            select(Snapshot)
            .where(
                or_(
                    Snapshot.created_at < current.created_at,  # type: ignore
                    and_(
                        Snapshot.created_at == current.created_at,
                        Snapshot.id < current.id,  # type: ignore
                    ),
                )
            )
            .order_by(Snapshot.created_at.desc(), Snapshot.id.desc())  # type: ignore
            .limit(1)
        ).first()

    def list_snapshots(self, page: int = 1, per_page: int = 20) -> List[Snapshot]:
        """Newest first. ``per_page`` is clamped to 1..100."""
        page = max(1, page)
        per_page = max(1, min(MAX_PER_PAGE, per_page))
        return list(
            self.session.exec(
                select(Snapshot)
                .order_by(Snapshot.created_at.desc(), Snapshot.id.desc())  # type: ignore
                .offset((page - 1) * per_page)
                .limit(per_page)
            ).all()
        )

    def count(self) -> int:
        return self.session.exec(select(func.count()).select_from(Snapshot)).one()

    def records_of(self, snapshot_id: int) -> DecodedRecords:
        """Decode a snapshot's rows. Rows that fail to decode are skipped and counted."""
        rows = self.session.exec(
            select(RecordRow)
            .where(RecordRow.snapshot_id == snapshot_id)
            .order_by(RecordRow.type, RecordRow.host, RecordRow.id)  # type: ignore
        ).all()

        records: List[DNSRecord] = []
        skipped = 0
        for row in rows:
            try:
                records.append(decode(row.host, row.type, row.encoded_value))
            except RecordDecodeError as e:
                skipped += 1
                logger.warning(
                    f"Skipping undecodable record row {row.id}: {e}",
                    extra={"snapshot_id": snapshot_id},
                )

        if skipped:
            logger.warning(
                f"Snapshot {snapshot_id}: {skipped} of {len(rows)} rows could not be decoded",
                extra={"snapshot_id": snapshot_id},
            )
        return DecodedRecords(snapshot_id=snapshot_id, records=records, skipped=skipped)

    # ── Capability Detection ──

    def supports_transactions(self) -> bool:
        """Whether the snapshot table lives on a transactional engine."""
        if self._transactional is not None:
            return self._transactional

        dialect = self.session.get_bind().dialect.name
        if dialect in TRANSACTIONAL_DIALECTS:
            return True
        if dialect in MYSQL_DIALECTS:
            try:
                storage_engine = self.session.exec(
                    text(
                        "SELECT ENGINE FROM information_schema.TABLES "
                        "WHERE TABLE_SCHEMA = DATABASE() AND TABLE_NAME = :table_name"
                    ).bindparams(table_name=SNAPSHOT_TABLE)
                ).scalar()
            except SQLAlchemyError as e:
                logger.warning(f"Storage engine check failed: {e}")
                self.session.rollback()
                return False
            return (storage_engine or "").lower() == "innodb"
        return False

    # ── Write Path ──

    def _evict_for_insert(self) -> List[int]:
        """Delete the oldest snapshots so the pending insert lands at the bound."""
        count = self.count()
        if count < self.retention_limit:
            return []

        excess = count - (self.retention_limit - 1)
        oldest = self.session.exec(
            select(Snapshot)
            .order_by(Snapshot.created_at.asc(), Snapshot.id.asc())  # type: ignore
            .limit(excess)
        ).all()

        evicted = []
        for snapshot in oldest:
            evicted.append(snapshot.id)
            # cascade removes the snapshot's RecordRows
            self.session.delete(snapshot)
        self.session.flush()
        logger.info(f"Evicted {len(evicted)} snapshot(s) beyond retention: {evicted}")
        return evicted

    def _insert_snapshot(self, summary: ChangeSummary) -> int:
        snapshot = Snapshot(
            additions=summary.additions,
            removals=summary.removals,
            modifications=summary.modifications,
            total=summary.additions + summary.removals + summary.modifications,
        )
        self.session.add(snapshot)
        self.session.flush()
        return snapshot.id

    def _insert_rows(self, snapshot_id: int, records: Sequence[DNSRecord]) -> None:
        self.session.add_all(
            [
                RecordRow(
                    snapshot_id=snapshot_id,
                    host=record.host,
                    type=record.type,
                    encoded_value=encode(record),
                )
                for record in records
            ]
        )
        self.session.flush()

    def create_with_records(
        self,
        records: Sequence[DNSRecord],
        change_summary: ChangeSummary,
    ) -> SnapshotWriteResult:
        """Persist a snapshot and its records, evicting beyond the retention bound."""
        records = list(records)
        if not records:
            return SnapshotWriteResult(
                ok=False,
                failure=WriteFailure.EMPTY_RECORDS,
                message="Refusing to create a snapshot without records",
            )

        duplicates = find_duplicate_keys(records)
        if duplicates:
            return SnapshotWriteResult(
                ok=False,
                failure=WriteFailure.DUPLICATE_RECORDS,
                message=f"Duplicate record keys: {', '.join(duplicates)}",
            )

        if self.supports_transactions():
            return self._create_transactional(records, change_summary)

        logger.warning(
            "Database does not support transactions, falling back to non-atomic operation",
            extra={"write_path": WritePath.FALLBACK.value},
        )
        return self._create_fallback(records, change_summary)

    def _create_transactional(
        self,
        records: List[DNSRecord],
        change_summary: ChangeSummary,
    ) -> SnapshotWriteResult:
        path = WritePath.TRANSACTIONAL
        try:
            evicted = self._evict_for_insert()
            snapshot_id = self._insert_snapshot(change_summary)
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error(
                f"Failed to create snapshot, rolled back: {e}",
                extra={"write_path": path.value},
            )
            return SnapshotWriteResult(
                ok=False, path=path, failure=WriteFailure.INSERT_FAILURE, message=str(e)
            )

        try:
            self._insert_rows(snapshot_id, records)
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error(
                f"Failed to add records for snapshot {snapshot_id}, rolled back: {e}",
                extra={"snapshot_id": snapshot_id, "write_path": path.value},
            )
            return SnapshotWriteResult(
                ok=False, path=path, failure=WriteFailure.INSERT_FAILURE, message=str(e)
            )

        try:
            self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error(
                f"Failed to commit snapshot {snapshot_id}: {e}",
                extra={"snapshot_id": snapshot_id, "write_path": path.value},
            )
            return SnapshotWriteResult(
                ok=False, path=path, failure=WriteFailure.COMMIT_FAILURE, message=str(e)
            )

        logger.info(
            f"Snapshot {snapshot_id} stored with {len(records)} records",
            extra={
                "snapshot_id": snapshot_id,
                "write_path": path.value,
                "record_count": len(records),
            },
        )
        return SnapshotWriteResult(
            ok=True, snapshot_id=snapshot_id, path=path, evicted_ids=evicted
        )

    def _create_fallback(
        self,
        records: List[DNSRecord],
        change_summary: ChangeSummary,
    ) -> SnapshotWriteResult:
        path = WritePath.FALLBACK
        try:
            evicted = self._evict_for_insert()
            snapshot_id = self._insert_snapshot(change_summary)
            self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error(
                f"Failed to create snapshot: {e}", extra={"write_path": path.value}
            )
            return SnapshotWriteResult(
                ok=False, path=path, failure=WriteFailure.INSERT_FAILURE, message=str(e)
            )

        try:
            self._insert_rows(snapshot_id, records)
            self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error(
                f"Failed to add records, attempting to clean up snapshot {snapshot_id}: {e}",
                extra={"snapshot_id": snapshot_id, "write_path": path.value},
            )
            if self._compensate(snapshot_id):
                return SnapshotWriteResult(
                    ok=False,
                    path=path,
                    failure=WriteFailure.INSERT_FAILURE,
                    message=str(e),
                    evicted_ids=evicted,
                )
            return SnapshotWriteResult(
                ok=False,
                path=path,
                failure=WriteFailure.INSERT_FAILURE,
                message=f"{e}; snapshot {snapshot_id} left without records",
                evicted_ids=evicted,
                orphaned_snapshot_id=snapshot_id,
            )

        logger.info(
            f"Snapshot {snapshot_id} stored with {len(records)} records",
            extra={
                "snapshot_id": snapshot_id,
                "write_path": path.value,
                "record_count": len(records),
            },
        )
        return SnapshotWriteResult(
            ok=True, snapshot_id=snapshot_id, path=path, evicted_ids=evicted
        )

    def _compensate(self, snapshot_id: int) -> bool:
        """Best-effort removal of a snapshot whose records never landed."""
        try:
            snapshot = self.session.get(Snapshot, snapshot_id)
            if snapshot is not None:
                self.session.delete(snapshot)
                self.session.commit()
            return True
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error(
                f"Compensating delete failed, snapshot {snapshot_id} is orphaned: {e}",
                extra={"snapshot_id": snapshot_id, "write_path": WritePath.FALLBACK.value},
            )
            return False

    # ── Maintenance ──

    def delete(self, snapshot_id: int) -> bool:
        """Delete one snapshot and its records. False if missing or on error."""
        snapshot = self.get(snapshot_id)
        if snapshot is None:
            return False
        try:
            self.session.delete(snapshot)
            self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error(
                f"Failed to delete snapshot {snapshot_id}: {e}",
                extra={"snapshot_id": snapshot_id},
            )
            return False
        logger.info(f"Snapshot {snapshot_id} deleted", extra={"snapshot_id": snapshot_id})
        return True
