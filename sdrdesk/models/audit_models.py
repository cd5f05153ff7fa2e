"""SDR Desk — Submission Audit & Monitoring Models (Append-only)."""

import json
import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from sqlmodel import SQLModel, Field


class AuditStatus(str, Enum):
    SUCCESS = "success"
    PARTIAL_SUCCESS = "partial_success"
    ERROR = "error"
    RETRY = "retry"


class SubmissionAudit(SQLModel, table=True):
    """Raw submission attempt as the client sent it.

    Never modify this data — it's the source of truth for recovery.
    """

    __tablename__ = "submission_audit"

    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True)
    user_identifier: str = Field(
        index=True, description="Free-form: SDR name or admin marker"
    )
    payload_json: str = Field(description="Full submission payload as JSON")
    status: str = Field(default=AuditStatus.SUCCESS.value)
    error_message: Optional[str] = None
    user_agent: Optional[str] = None
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc), index=True
    )

    @property
    def payload(self) -> Any:
        """Decoded payload; None when the stored text is not valid JSON."""
        try:
            return json.loads(self.payload_json)
        except (TypeError, ValueError):
            return None


class MissingReportAlert(SQLModel, table=True):
    """An expected (SDR, day) pair with no report on file."""

    __tablename__ = "missing_reports_alerts"

    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True)
    sdr_name: str = Field(index=True)
    missing_date: str = Field(index=True, description="YYYY-MM-DD")
    alert_sent: bool = False
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
