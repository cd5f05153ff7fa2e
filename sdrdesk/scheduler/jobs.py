"""SDR Desk — Scheduler Jobs.

APScheduler cron jobs: a daily missing-report scan and an optional nightly
meeting-detail recovery run.
"""

from datetime import datetime, timezone

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from sqlmodel import Session

from sdrdesk.config import settings
from sdrdesk.connectors.resend.client import ResendClient
from sdrdesk.database import engine
from sdrdesk.reports.gateway import ReportGateway
from sdrdesk.reports.monitoring import record_missing_report_alerts
from sdrdesk.reports.recovery import recover_missing_meetings
from sdrdesk.core.logging import get_logger

logger = get_logger("scheduler")

scheduler = AsyncIOScheduler()


async def missing_reports_job():
    """Record alerts for expected SDRs who skipped recent business days."""
    if not settings.expected_sdrs:
        logger.info("No expected SDRs configured, skipping missing-report scan")
        return
    logger.info("Scheduled missing-report scan starting...")
    notifier = ResendClient()
    try:
        with Session(engine) as session:
            alerts = await record_missing_report_alerts(
                ReportGateway(session),
                notifier,
                settings.expected_sdrs,
                datetime.now(timezone.utc).date(),
                settings.monitoring_window_days,
            )
        logger.info(f"Missing-report scan complete. New alerts: {len(alerts)}")
    except Exception as e:
        logger.error(f"Missing-report scan failed: {e}")
    finally:
        await notifier.close()


async def recovery_job():
    """Run the meeting-detail recovery over every report."""
    logger.info("Scheduled recovery starting...")
    try:
        with Session(engine) as session:
            outcomes = recover_missing_meetings(ReportGateway(session))
        logger.info(f"Scheduled recovery complete. Outcomes: {len(outcomes)}")
    except Exception as e:
        logger.error(f"Scheduled recovery failed: {e}")


def start_scheduler():
    """Configure and start the scheduler."""
    if not settings.scheduler_enabled:
        logger.info("Scheduler disabled via config")
        return

    scheduler.add_job(
        missing_reports_job,
        "cron",
        day_of_week="mon-fri",
        hour=settings.monitoring_hour,
        minute=0,
        id="missing_reports",
        replace_existing=True,
        misfire_grace_time=3600,
    )
    if settings.recovery_schedule_enabled:
        scheduler.add_job(
            recovery_job,
            "cron",
            hour=settings.recovery_hour,
            minute=0,
            id="meeting_recovery",
            replace_existing=True,
            misfire_grace_time=3600,
        )
    scheduler.start()
    logger.info(
        f"Scheduler started. Missing-report scan at {settings.monitoring_hour}:00 UTC"
    )


def stop_scheduler():
    """Shutdown the scheduler gracefully."""
    if scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("Scheduler stopped")
