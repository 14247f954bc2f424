"""DNS Monitor: Snapshot API Routes.

Read side of the snapshot history, shaped for the admin dashboard: a
paginated list, a single snapshot with its records, and a side-by-side
comparison with the preceding snapshot.
"""

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlmodel import Session

from dns_monitor.database import get_session
from dns_monitor.analyzer.diff_engine import classify_changes, summarize
from dns_monitor.core.errors import DuplicateRecordError
from dns_monitor.models.snapshot_models import Snapshot, SnapshotOut
from dns_monitor.store.snapshot_store import SnapshotStore
from dns_monitor.core.logging import get_logger

logger = get_logger("api.snapshots")

router = APIRouter(prefix="/snapshots", tags=["Snapshots"])


def get_store(session: Session = Depends(get_session)) -> SnapshotStore:
    """Dependency: a SnapshotStore bound to the request session."""
    return SnapshotStore(session)


def _require(store: SnapshotStore, snapshot_id: int) -> Snapshot:
    snapshot = store.get(snapshot_id)
    if snapshot is None:
        raise HTTPException(status_code=404, detail="Snapshot not found")
    return snapshot


def _detail(store: SnapshotStore, snapshot: Snapshot) -> dict:
    decoded = store.records_of(snapshot.id)
    return {
        "status": "success",
        "snapshot": SnapshotOut.model_validate(snapshot),
        "records": decoded.records,
        "partial": decoded.partial,
        "skipped_rows": decoded.skipped,
    }


@router.get("")
def list_snapshots(
    page: int = Query(1, ge=1),
    per_page: int = Query(20, ge=1, le=100),
    store: SnapshotStore = Depends(get_store),
):
    """Snapshot history, newest first."""
    snapshots = store.list_snapshots(page=page, per_page=per_page)
    return {
        "status": "success",
        "page": page,
        "per_page": per_page,
        "total": store.count(),
        "count": len(snapshots),
        "snapshots": [SnapshotOut.model_validate(s) for s in snapshots],
    }


@router.get("/latest")
def get_latest_snapshot(store: SnapshotStore = Depends(get_store)):
    """The most recent snapshot with its records."""
    snapshot = store.latest()
    if snapshot is None:
        return {"status": "no_data", "message": "No DNS snapshot has been taken yet."}
    return _detail(store, snapshot)


@router.get("/{snapshot_id}")
def get_snapshot(snapshot_id: int, store: SnapshotStore = Depends(get_store)):
    """A single snapshot with its decoded records."""
    return _detail(store, _require(store, snapshot_id))


@router.get("/{snapshot_id}/compare")
def compare_snapshot(snapshot_id: int, store: SnapshotStore = Depends(get_store)):
    """Snapshot vs. its immediate predecessor, every record classified."""
    snapshot = _require(store, snapshot_id)
    current = store.records_of(snapshot.id)
    previous_snapshot = store.previous(snapshot.id)

    if previous_snapshot is None:
        return {
            "status": "success",
            "initial": True,
            "snapshot": SnapshotOut.model_validate(snapshot),
            "previous_snapshot": None,
            "records": current.records,
            "changes": [],
            "summary": None,
            "partial": current.partial,
        }

    previous = store.records_of(previous_snapshot.id)
    try:
        changes = classify_changes(current.records, previous.records)
    except DuplicateRecordError as e:
        logger.error(f"Cannot compare snapshot {snapshot_id}: {e}")
        raise HTTPException(status_code=409, detail=str(e))

    return {
        "status": "success",
        "initial": False,
        "snapshot": SnapshotOut.model_validate(snapshot),
        "previous_snapshot": SnapshotOut.model_validate(previous_snapshot),
        "records": current.records,
        "previous_records": previous.records,
        "changes": changes,
        "summary": summarize(changes),
        "partial": current.partial or previous.partial,
    }


@router.delete("/{snapshot_id}")
def delete_snapshot(snapshot_id: int, store: SnapshotStore = Depends(get_store)):
    """Delete a snapshot and all of its records."""
    _require(store, snapshot_id)
    if not store.delete(snapshot_id):
        raise HTTPException(status_code=500, detail="Failed to delete snapshot")
    return {"status": "success", "message": "Snapshot deleted successfully."}
