"""DNS Monitor: Scheduler Jobs.

APScheduler interval job that runs a DNS check at the configured frequency.
"""

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from sqlmodel import Session

from dns_monitor.config import settings
from dns_monitor.database import engine
from dns_monitor.analyzer.pipeline import run_check
from dns_monitor.models.snapshot_models import CheckResult, CheckStatus
from dns_monitor.notifications.formatter import format_change_notification
from dns_monitor.core.logging import for_domain, get_logger

logger = get_logger("scheduler")

scheduler = AsyncIOScheduler()

JOB_ID = "dns_monitor_check"


def report_check(result: CheckResult) -> None:
    """Log a check outcome; detected changes are logged with the rendered alert."""
    log = for_domain(logger, result.domain)
    extra = {"snapshot_id": result.snapshot_id}
    if result.status in (CheckStatus.RESOLUTION_EMPTY, CheckStatus.INVALID_RECORDS):
        log.error(f"DNS check aborted: {result.error}", extra=extra)
        return
    if result.status == CheckStatus.SNAPSHOT_FAILED:
        log.error(
            f"Changes detected but not saved: {result.error}"
            if result.changes_detected
            else f"DNS check failed to save: {result.error}",
            extra=extra,
        )
    if result.changes_detected:
        subject, body = format_change_notification(
            result.domain, result.changes, result.record_changes
        )
        log.warning(f"{subject}\n{body}", extra=extra)
    else:
        log.info(f"DNS check finished: {result.status.value}", extra=extra)


def dns_check_job() -> None:
    """Run one check for the configured domain."""
    if not settings.domain:
        logger.warning("No domain configured, skipping scheduled DNS check")
        return

    logger.info("Scheduled DNS check starting...", extra={"domain": settings.domain})
    try:
        with Session(engine) as session:
            result = run_check(session, domain=settings.domain)
        report_check(result)
    except Exception as e:
        logger.error(f"Scheduled DNS check failed: {e}", exc_info=True)


def start_scheduler() -> None:
    """Configure and start the scheduler."""
    if not settings.scheduler_enabled:
        logger.info("Scheduler disabled via config")
        return

    scheduler.add_job(
        dns_check_job,
        "interval",
        hours=settings.check_interval_hours,
        id=JOB_ID,
        replace_existing=True,
        max_instances=1,
        coalesce=True,
        misfire_grace_time=3600,
    )
    scheduler.start()
    logger.info(
        f"Scheduler started. DNS check every {settings.check_interval_hours}h "
        f"({settings.check_frequency})"
    )


def stop_scheduler() -> None:
    """Shutdown the scheduler gracefully."""
    if scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("Scheduler stopped")
