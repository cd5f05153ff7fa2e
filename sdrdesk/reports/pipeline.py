"""SDR Desk — Report Submission Pipeline.

Runs the submission flow:
  validate → save report → save meeting details → audit → email → result

Only the first two steps can fail the call. Meeting details, the audit entry
and the email are best-effort; their failures are logged and reported through
status fields on the result.
"""

from datetime import datetime, timezone
from typing import Any, List, Optional

from sdrdesk.connectors.resend.templates import (
    MeetingLine,
    ReportSummary,
    build_report_email,
)
from sdrdesk.core.errors import GatewayError, PersistenceError, ValidationError
from sdrdesk.core.logging import get_logger
from sdrdesk.models.audit_models import AuditStatus
from sdrdesk.models.report_models import MeetingDetail, MeetingStatus, SubmissionResult
from sdrdesk.reports.gateway import ReportGateway
from sdrdesk.reports.validator import is_blank, responsible_rep_of, validate_report_payload

logger = get_logger("reports.pipeline")


def filter_meetings(meetings: Any) -> List[dict]:
    """Keep meeting entries with a non-blank lead name, drop the rest."""
    if not isinstance(meetings, list):
        return []
    return [m for m in meetings if isinstance(m, dict) and not is_blank(m.get("nomeLead"))]


def build_meeting_rows(report_id: str, meetings: List[dict]) -> List[MeetingDetail]:
    """Map filtered wire entries to MeetingDetail rows linked to report_id."""
    rows = []
    for m in meetings:
        rep = responsible_rep_of(m)
        rows.append(
            MeetingDetail(
                report_id=report_id,
                lead_name=m["nomeLead"].strip(),
                scheduled_date=m.get("dataAgendamento") or "",
                scheduled_time=m.get("horarioAgendamento") or "",
                status=m.get("status") or MeetingStatus.SCHEDULED.value,
                responsible_rep=rep.strip() if isinstance(rep, str) and rep.strip() else None,
            )
        )
    return rows


async def submit_report(
    payload: Any,
    gateway: ReportGateway,
    notifier,
    user_agent: Optional[str] = None,
) -> SubmissionResult:
    """Validate and store a daily report, then notify by email.

    Raises ValidationError or PersistenceError; every other failure degrades
    to a successful result with caveats.
    """
    validation = validate_report_payload(payload)
    if not validation.valid:
        logger.warning(f"Rejected submission: {validation.errors}")
        raise ValidationError(validation.errors)

    sales_rep = payload["vendedor"].strip()
    registration_date = payload["dataRegistro"]
    log_extra = {"vendedor": sales_rep}

    # ── Step 1: Primary record ──
    try:
        report = gateway.insert_report(
            sales_rep=sales_rep,
            registration_date=registration_date,
            meetings_scheduled=int(payload["reunioesAgendadas"]),
            meetings_completed=int(payload["reunioesRealizadas"]),
        )
    except GatewayError as e:
        logger.error(f"❌ Report insert failed: {e.detail}", extra=log_extra)
        raise PersistenceError(e.detail) from e

    # A later rollback expires `report`; only these copies are read from here on
    report_id = report.id
    meetings_scheduled = report.meetings_scheduled
    meetings_completed = report.meetings_completed
    log_extra["report_id"] = report_id
    logger.info(f"✅ Report saved for {sales_rep} on {registration_date}", extra=log_extra)

    # ── Step 2: Meeting details (enrichment) ──
    meetings = filter_meetings(payload.get("reunioes"))
    meeting_error: Optional[str] = None
    if meetings:
        try:
            saved = gateway.insert_meetings(build_meeting_rows(report_id, meetings))
            logger.info(f"Saved {len(saved)} meeting details", extra=log_extra)
        except GatewayError as e:
            meeting_error = e.detail
            logger.error(f"Meeting details not saved: {e.detail}", extra=log_extra)

    # ── Step 3: Audit trail ──
    try:
        gateway.insert_audit(
            user_identifier=sales_rep,
            payload=payload,
            status=(AuditStatus.PARTIAL_SUCCESS if meeting_error else AuditStatus.SUCCESS).value,
            error_message=meeting_error,
            user_agent=user_agent,
        )
    except GatewayError as e:
        logger.warning(f"Audit entry not written: {e.detail}", extra=log_extra)

    result = SubmissionResult(
        report_id=report_id,
        meeting_details_status="partial_failure" if meeting_error else "success",
    )

    # ── Step 4: Notification ──
    summary = ReportSummary(
        sales_rep=sales_rep,
        registration_date=registration_date,
        meetings_scheduled=meetings_scheduled,
        meetings_completed=meetings_completed,
        report_id=report_id,
        meetings=[
            MeetingLine(
                lead_name=m["nomeLead"].strip(),
                scheduled_date=m.get("dataAgendamento") or "",
                scheduled_time=m.get("horarioAgendamento") or "",
                status=m.get("status") or MeetingStatus.SCHEDULED.value,
                responsible_rep=(responsible_rep_of(m) or "").strip() or None,
            )
            for m in meetings
        ],
        meeting_details_partial=meeting_error is not None,
    )
    subject, html, text = build_report_email(summary, datetime.now(timezone.utc))
    try:
        delivery = await notifier.send(subject, html, text)
        result.email_status = "sent"
        result.email_id = delivery.id
    except Exception as e:
        logger.error(f"Notification not sent: {e}", extra=log_extra)
        result.email_status = "failed"
        result.email_error = str(e)

    if result.email_status == "failed":
        result.message = "Report saved, but the notification email could not be sent"
    elif meeting_error:
        result.message = "Report saved and email sent, but some meeting details may not have been saved"
    else:
        result.message = "Report saved and email sent"
    return result
