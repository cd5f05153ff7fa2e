"""SDR Desk — Meeting Detail Recovery Job.

Rebuilds meeting details for reports that have none, using the audit entry
written closest after the report was created. Best-effort repair: a failure
on one report is recorded in its outcome and the scan moves on.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import List, Optional

from sdrdesk.config import settings
from sdrdesk.core.errors import GatewayError
from sdrdesk.core.logging import get_logger
from sdrdesk.models.report_models import DailyReport, RecoveryOutcome
from sdrdesk.reports.gateway import ReportGateway
from sdrdesk.reports.pipeline import build_meeting_rows, filter_meetings

logger = get_logger("reports.recovery")


@dataclass(frozen=True)
class ReportRef:
    """Report columns copied when the list loads.

    A failed store call rolls the session back and expires every loaded
    DailyReport; the scan reads only these copies.
    """

    id: str
    sales_rep: str
    registration_date: str
    created_at: datetime

    @classmethod
    def of(cls, report: DailyReport) -> "ReportRef":
        return cls(
            id=report.id,
            sales_rep=report.sales_rep,
            registration_date=report.registration_date,
            created_at=report.created_at,
        )


def _outcome(report: ReportRef, status: str, **kwargs) -> RecoveryOutcome:
    return RecoveryOutcome(
        report_id=report.id,
        vendedor=report.sales_rep,
        data=report.registration_date,
        status=status,
        **kwargs,
    )


def recover_report(
    gateway: ReportGateway, report: ReportRef, window: timedelta
) -> Optional[RecoveryOutcome]:
    """Try to restore one report's meetings. None when it already has some."""
    try:
        if gateway.count_meetings(report.id) > 0:
            return None
        entry = gateway.latest_audit_between(
            report.sales_rep, report.created_at, report.created_at + window
        )
    except GatewayError as e:
        return _outcome(report, "error", error=e.detail)

    if entry is None:
        return _outcome(report, "skipped", error="no matching audit entry")

    payload = entry.payload
    meetings = filter_meetings(payload.get("reunioes") if isinstance(payload, dict) else None)
    if not meetings:
        return _outcome(report, "skipped", error="audit entry has no meetings")

    expected = len(meetings)
    try:
        inserted = gateway.insert_meetings_if_absent(
            report.id, build_meeting_rows(report.id, meetings)
        )
    except GatewayError as e:
        return _outcome(report, "error", expected_meetings=expected, error=e.detail)

    if not inserted:
        return _outcome(
            report,
            "skipped",
            expected_meetings=expected,
            error="meeting details appeared during recovery",
        )
    return _outcome(
        report, "success", expected_meetings=expected, recovered_meetings=len(inserted)
    )


def recover_missing_meetings(
    gateway: ReportGateway, window_hours: int | None = None
) -> List[RecoveryOutcome]:
    """Scan all reports, newest first, and rebuild missing meeting details.

    Raises GatewayError only if the report list itself cannot be read.
    """
    window = timedelta(
        hours=window_hours if window_hours is not None else settings.recovery_window_hours
    )
    reports = [ReportRef.of(r) for r in gateway.reports_newest_first()]
    logger.info(f"🔍 Recovery scan over {len(reports)} reports (window {window})")

    outcomes: List[RecoveryOutcome] = []
    for report in reports:
        outcome = recover_report(gateway, report, window)
        if outcome is None:
            continue
        if outcome.status == "success":
            logger.info(
                f"Recovered {outcome.recovered_meetings} meeting details",
                extra={"report_id": report.id, "vendedor": report.sales_rep},
            )
        elif outcome.status == "error":
            logger.error(
                f"Recovery failed: {outcome.error}",
                extra={"report_id": report.id, "vendedor": report.sales_rep},
            )
        outcomes.append(outcome)

    recovered = sum(o.recovered_meetings for o in outcomes)
    logger.info(f"🎯 Recovery complete: {recovered} meeting details restored")
    return outcomes
