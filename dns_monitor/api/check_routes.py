"""DNS Monitor: Check API Routes."""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from sqlmodel import Session

from dns_monitor.config import settings
from dns_monitor.database import get_session
from dns_monitor.analyzer.pipeline import run_check
from dns_monitor.connectors.dns.resolver import DNSPythonResolver, RecordResolver
from dns_monitor.models.snapshot_models import CheckResult, CheckStatus
from dns_monitor.core.logging import get_logger

logger = get_logger("api.checks")

router = APIRouter(tags=["Checks"])


def get_resolver() -> RecordResolver:
    """Dependency: the DNS resolution collaborator."""
    return DNSPythonResolver()


# ── Request / Response Models ──


class RunCheckRequest(BaseModel):
    """Request body for POST /checks."""

    domain: Optional[str] = None
    """Domain to check. Defaults to the configured DNS_MONITOR_DOMAIN."""
    save_snapshot: bool = True
    """Persist a snapshot when the decision policy allows it."""

    model_config = {
        "json_schema_extra": {
            "examples": [
                {"save_snapshot": True},
                {"domain": "example.com", "save_snapshot": False},
            ]
        }
    }


class RunCheckResponse(BaseModel):
    """Response for POST /checks."""

    status: str = "success"
    result: CheckResult


# ── Endpoints ──


@router.post("/checks", response_model=RunCheckResponse)
def trigger_check(
    request: RunCheckRequest,
    session: Session = Depends(get_session),
    resolver: RecordResolver = Depends(get_resolver),
):
    """Run a DNS check now.

    Resolves the domain, compares against the latest snapshot and stores a
    new snapshot according to the snapshot behavior setting.
    """
    domain = request.domain or settings.domain
    if not domain:
        raise HTTPException(status_code=400, detail="No domain configured")

    result = run_check(
        session,
        domain=domain,
        resolver=resolver,
        save_snapshot=request.save_snapshot,
    )

    if result.status == CheckStatus.RESOLUTION_EMPTY:
        raise HTTPException(status_code=502, detail=result.error)
    if result.status in (CheckStatus.SNAPSHOT_FAILED, CheckStatus.INVALID_RECORDS):
        logger.error(f"DNS check failed: {result.error}", extra={"domain": domain})
        # Counts are still returned so the caller can report unsaved changes
        body = RunCheckResponse(status="error", result=result)
        status_code = 500 if result.status == CheckStatus.SNAPSHOT_FAILED else 422
        return JSONResponse(status_code=status_code, content=body.model_dump(mode="json"))

    return RunCheckResponse(
        status="warning" if result.changes_detected else "success",
        result=result,
    )
