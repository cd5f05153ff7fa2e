"""SDR Desk — Persistence Gateway.

Thin wrapper over a SQLModel session for the report, meeting, audit, profile
and alert tables. Every call either returns plain model objects or raises
GatewayError with the session rolled back.
"""

import json
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Iterable, List, Optional, Sequence

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from sdrdesk.core.errors import GatewayError
from sdrdesk.core.logging import get_logger
from sdrdesk.models.audit_models import MissingReportAlert, SubmissionAudit
from sdrdesk.models.profile_models import Profile
from sdrdesk.models.report_models import DailyReport, MeetingDetail

logger = get_logger("reports.gateway")


class ReportGateway:
    """Store operations used by the pipeline, recovery job and admin API."""

    def __init__(self, session: Session):
        self.session = session

    @contextmanager
    def _guard(self, operation: str):
        try:
            yield
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error(f"Store operation '{operation}' failed: {e}")
            raise GatewayError(operation, str(e)) from e

    # ── Reports ──

    def insert_report(
        self,
        sales_rep: str,
        registration_date: str,
        meetings_scheduled: int,
        meetings_completed: int,
        calls_made: int = 0,
        contacts_reached: int = 0,
    ) -> DailyReport:
        report = DailyReport(
            sales_rep=sales_rep,
            registration_date=registration_date,
            meetings_scheduled=meetings_scheduled,
            meetings_completed=meetings_completed,
            calls_made=calls_made,
            contacts_reached=contacts_reached,
        )
        with self._guard("insert_report"):
            self.session.add(report)
            self.session.commit()
            self.session.refresh(report)
        return report

    def get_report(self, report_id: str) -> Optional[DailyReport]:
        with self._guard("get_report"):
            return self.session.get(DailyReport, report_id)

    def reports_newest_first(self) -> List[DailyReport]:
        """All reports ordered by creation time, newest first."""
        with self._guard("reports_newest_first"):
            return list(
                self.session.exec(
                    select(DailyReport).order_by(DailyReport.created_at.desc())  # type: ignore
                ).all()
            )

    def list_reports(
        self,
        vendedor: Optional[str] = None,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
    ) -> List[DailyReport]:
        """Reports filtered by rep and registration date, latest day first."""
        query = select(DailyReport)
        if vendedor:
            query = query.where(DailyReport.sales_rep == vendedor)
        if start_date:
            query = query.where(DailyReport.registration_date >= start_date)
        if end_date:
            query = query.where(DailyReport.registration_date <= end_date)
        query = query.order_by(
            DailyReport.registration_date.desc(),  # type: ignore
            DailyReport.created_at.desc(),  # type: ignore
        )
        with self._guard("list_reports"):
            return list(self.session.exec(query).all())

    def reports_for_dates(self, dates: Sequence[str]) -> List[DailyReport]:
        if not dates:
            return []
        with self._guard("reports_for_dates"):
            return list(
                self.session.exec(
                    select(DailyReport).where(
                        DailyReport.registration_date.in_(list(dates))  # type: ignore
                    )
                ).all()
            )

    def update_report(self, report: DailyReport, changes: dict) -> DailyReport:
        for key, value in changes.items():
            setattr(report, key, value)
        report.updated_at = datetime.now(timezone.utc)
        with self._guard("update_report"):
            self.session.add(report)
            self.session.commit()
            self.session.refresh(report)
        return report

    # ── Meeting details ──

    def count_meetings(self, report_id: str) -> int:
        with self._guard("count_meetings"):
            return self.session.exec(
                select(func.count())
                .select_from(MeetingDetail)
                .where(MeetingDetail.report_id == report_id)
            ).one()

    def insert_meetings(self, meetings: Iterable[MeetingDetail]) -> List[MeetingDetail]:
        """Insert a batch in one commit; nothing is saved if any row fails."""
        rows = list(meetings)
        with self._guard("insert_meetings"):
            self.session.add_all(rows)
            self.session.commit()
            for row in rows:
                self.session.refresh(row)
        return rows

    def insert_meetings_if_absent(
        self, report_id: str, meetings: Iterable[MeetingDetail]
    ) -> List[MeetingDetail]:
        """Insert the batch only if the report still has no meeting rows.

        The existence check and the insert share one transaction. Returns an
        empty list when rows appeared since the caller last looked.
        """
        rows = list(meetings)
        with self._guard("insert_meetings_if_absent"):
            existing = self.session.exec(
                select(func.count())
                .select_from(MeetingDetail)
                .where(MeetingDetail.report_id == report_id)
            ).one()
            if existing:
                self.session.rollback()
                return []
            self.session.add_all(rows)
            self.session.commit()
            for row in rows:
                self.session.refresh(row)
        return rows

    def get_meeting(self, meeting_id: str) -> Optional[MeetingDetail]:
        with self._guard("get_meeting"):
            return self.session.get(MeetingDetail, meeting_id)

    def list_meetings(
        self,
        report_id: Optional[str] = None,
        responsible_rep: Optional[str] = None,
    ) -> List[MeetingDetail]:
        query = select(MeetingDetail)
        if report_id:
            query = query.where(MeetingDetail.report_id == report_id)
        if responsible_rep:
            query = query.where(MeetingDetail.responsible_rep == responsible_rep)
        query = query.order_by(MeetingDetail.scheduled_date.desc())  # type: ignore
        with self._guard("list_meetings"):
            return list(self.session.exec(query).all())

    def save_meeting(self, meeting: MeetingDetail) -> MeetingDetail:
        with self._guard("save_meeting"):
            self.session.add(meeting)
            self.session.commit()
            self.session.refresh(meeting)
        return meeting

    # ── Audit (append-only) ──

    def insert_audit(
        self,
        user_identifier: str,
        payload: Any,
        status: str,
        error_message: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> SubmissionAudit:
        entry = SubmissionAudit(
            user_identifier=user_identifier,
            payload_json=json.dumps(payload, ensure_ascii=False, default=str),
            status=status,
            error_message=error_message,
            user_agent=user_agent,
        )
        with self._guard("insert_audit"):
            self.session.add(entry)
            self.session.commit()
            self.session.refresh(entry)
        return entry

    def latest_audit_between(
        self, user_identifier: str, start: datetime, end: datetime
    ) -> Optional[SubmissionAudit]:
        """Most recent entry for the user with start <= created_at <= end."""
        with self._guard("latest_audit_between"):
            return self.session.exec(
                select(SubmissionAudit)
                .where(
                    SubmissionAudit.user_identifier == user_identifier,
                    SubmissionAudit.created_at >= start,
                    SubmissionAudit.created_at <= end,
                )
                .order_by(SubmissionAudit.created_at.desc())  # type: ignore
                .limit(1)
            ).first()

    def list_audit_entries(self, limit: int = 50) -> List[SubmissionAudit]:
        with self._guard("list_audit_entries"):
            return list(
                self.session.exec(
                    select(SubmissionAudit)
                    .order_by(SubmissionAudit.created_at.desc())  # type: ignore
                    .limit(limit)
                ).all()
            )

    # ── Missing report alerts ──

    def alert_exists(self, sdr_name: str, missing_date: str) -> bool:
        with self._guard("alert_exists"):
            return (
                self.session.exec(
                    select(MissingReportAlert).where(
                        MissingReportAlert.sdr_name == sdr_name,
                        MissingReportAlert.missing_date == missing_date,
                    )
                ).first()
                is not None
            )

    def insert_alerts(self, alerts: Iterable[MissingReportAlert]) -> List[MissingReportAlert]:
        rows = list(alerts)
        with self._guard("insert_alerts"):
            self.session.add_all(rows)
            self.session.commit()
            for row in rows:
                self.session.refresh(row)
        return rows

    def mark_alerts_sent(self, alerts: Iterable[MissingReportAlert]) -> None:
        with self._guard("mark_alerts_sent"):
            for alert in alerts:
                alert.alert_sent = True
                self.session.add(alert)
            self.session.commit()

    # ── Profiles ──

    def get_profile(self, user_id: str) -> Optional[Profile]:
        with self._guard("get_profile"):
            return self.session.get(Profile, user_id)

    def save_profile(self, profile: Profile) -> Profile:
        with self._guard("save_profile"):
            self.session.add(profile)
            self.session.commit()
            self.session.refresh(profile)
        return profile
