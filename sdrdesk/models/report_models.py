"""SDR Desk — Daily Report & Meeting Detail Models."""

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from sqlmodel import SQLModel, Field


def _new_id() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class MeetingStatus(str, Enum):
    """Known meeting states, stored by their display value."""

    SCHEDULED = "Agendado"
    COMPLETED = "Realizado"
    CANCELLED = "Cancelado"
    RESCHEDULED = "Reagendado"
    NO_SHOW = "No Show"


# ─────────────────────────────────────────────
# DATABASE MODELS
# ─────────────────────────────────────────────


class DailyReport(SQLModel, table=True):
    """One day's aggregate activity for one SDR.

    (sales_rep, registration_date) is unique by convention only. Duplicate
    submissions are stored as-is and every reader must tolerate them.
    """

    __tablename__ = "daily_reports"

    id: str = Field(default_factory=_new_id, primary_key=True)
    sales_rep: str = Field(index=True, description="SDR name (wire: vendedor)")
    registration_date: str = Field(index=True, description="YYYY-MM-DD")
    meetings_scheduled: int = Field(default=0, ge=0)
    meetings_completed: int = Field(default=0, ge=0)
    calls_made: int = Field(default=0, ge=0)
    contacts_reached: int = Field(default=0, ge=0)
    created_at: datetime = Field(default_factory=_utcnow, index=True)
    updated_at: datetime = Field(default_factory=_utcnow)


class MeetingDetail(SQLModel, table=True):
    """A scheduled or held meeting.

    report_id is nullable and not cascade-enforced: admins may enter meetings
    without a parent report, and orphaned rows are a valid state.
    """

    __tablename__ = "meeting_details"

    id: str = Field(default_factory=_new_id, primary_key=True)
    report_id: Optional[str] = Field(
        default=None, foreign_key="daily_reports.id", index=True
    )
    lead_name: str
    scheduled_date: str = Field(default="", description="YYYY-MM-DD")
    scheduled_time: str = Field(default="", description="HH:MM")
    status: str = Field(default=MeetingStatus.SCHEDULED.value)
    responsible_rep: Optional[str] = None
    created_at: datetime = Field(default_factory=_utcnow)


# ─────────────────────────────────────────────
# PYDANTIC SCHEMAS: pipeline outputs (camelCase on the wire)
# ─────────────────────────────────────────────


class _WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


class SubmissionResult(_WireModel):
    """Outcome of a report submission.

    email_status / email_id / email_error form the notification's own result
    channel; they never change `success`.
    """

    success: bool = True
    message: str = ""
    report_id: str
    email_status: str = "sent"  # "sent" | "failed"
    email_id: Optional[str] = None
    email_error: Optional[str] = None
    meeting_details_status: str = "success"  # "success" | "partial_failure"


class RecoveryOutcome(_WireModel):
    """Per-report result of the recovery job."""

    report_id: str
    vendedor: str
    data: str
    status: str  # "success" | "error" | "skipped"
    expected_meetings: int = 0
    recovered_meetings: int = 0
    error: Optional[str] = None


class RecoveryReport(_WireModel):
    success: bool = True
    message: str = ""
    results: List[RecoveryOutcome] = []


class DashboardTotals(BaseModel):
    """Aggregates over a filtered report set."""

    total_scheduled: int = 0
    total_completed: int = 0
    total_sdrs: int = 0
    report_count: int = 0
