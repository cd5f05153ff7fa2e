"""SDR Desk — Admin Dashboard Routes."""

from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from pydantic import BaseModel, Field

from sdrdesk.api.deps import get_gateway
from sdrdesk.config import settings
from sdrdesk.core.access import RequestSession, get_request_session, require_admin, require_reader
from sdrdesk.core.errors import GatewayError
from sdrdesk.core.logging import get_logger
from sdrdesk.models.audit_models import AuditStatus
from sdrdesk.models.report_models import MeetingDetail, MeetingStatus
from sdrdesk.reports.dashboard import compute_totals
from sdrdesk.reports.export import build_workbook, csv_bytes, prepare_meeting_rows, prepare_report_rows
from sdrdesk.reports.gateway import ReportGateway
from sdrdesk.reports.monitoring import find_missing_reports
from sdrdesk.reports.validator import is_valid_date

logger = get_logger("api.admin")

router = APIRouter(tags=["Admin"])

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


# ── Request Models ──


class ReportUpdate(BaseModel):
    """Inline edit of a daily report. Omitted fields stay unchanged."""

    vendedor: Optional[str] = None
    data_registro: Optional[str] = None
    reunioes_agendadas: Optional[int] = Field(default=None, ge=0)
    reunioes_realizadas: Optional[int] = Field(default=None, ge=0)


class ManualReportCreate(BaseModel):
    """Report typed in by an admin on the SDR's behalf."""

    vendedor: str
    data_registro: str
    reunioes_agendadas: int = Field(default=0, ge=0)
    reunioes_realizadas: int = Field(default=0, ge=0)
    ligacoes_realizadas: int = Field(default=0, ge=0)
    contatos_falados: int = Field(default=0, ge=0)
    observacoes: str = ""


class MeetingCreate(BaseModel):
    nome_lead: str
    data_agendamento: str
    horario_agendamento: str
    status: str = MeetingStatus.SCHEDULED.value
    vendedor_responsavel: Optional[str] = None
    report_id: Optional[str] = None
    """Parent report; empty or "none" creates an unlinked meeting."""


class MeetingUpdate(BaseModel):
    nome_lead: Optional[str] = None
    data_agendamento: Optional[str] = None
    horario_agendamento: Optional[str] = None
    status: Optional[str] = None
    vendedor_responsavel: Optional[str] = None


# ── Helpers ──


def _store_call(fn, *args, **kwargs):
    """Run a gateway call, turning store failures into a 500."""
    try:
        return fn(*args, **kwargs)
    except GatewayError as e:
        raise HTTPException(status_code=500, detail=f"Store error: {e.detail}")


def _require_name(value: str, field: str) -> str:
    if not value or not value.strip():
        raise HTTPException(status_code=400, detail=f"{field} is required")
    return value.strip()


def _require_date(value: str, field: str) -> str:
    if not is_valid_date(value):
        raise HTTPException(status_code=400, detail=f"{field} must use the YYYY-MM-DD format")
    return value


# ── Session ──


@router.get("/me")
async def whoami(request_session: RequestSession = Depends(get_request_session)):
    """The caller's resolved access level."""
    return {
        "user_id": request_session.user_id,
        "email": request_session.email,
        "access_level": request_session.access_level.value,
        "is_admin": request_session.is_admin,
    }


# ── Reports ──


@router.get("/admin/reports")
async def list_reports(
    vendedor: Optional[str] = Query(None),
    start_date: Optional[str] = Query(None, description="YYYY-MM-DD, inclusive"),
    end_date: Optional[str] = Query(None, description="YYYY-MM-DD, inclusive"),
    gateway: ReportGateway = Depends(get_gateway),
    _: RequestSession = Depends(require_reader),
):
    reports = _store_call(gateway.list_reports, vendedor, start_date, end_date)
    return {"status": "success", "count": len(reports), "reports": reports}


@router.get("/admin/summary")
async def dashboard_summary(
    vendedor: Optional[str] = Query(None),
    start_date: Optional[str] = Query(None),
    end_date: Optional[str] = Query(None),
    gateway: ReportGateway = Depends(get_gateway),
    _: RequestSession = Depends(require_reader),
):
    reports = _store_call(gateway.list_reports, vendedor, start_date, end_date)
    return {"status": "success", "totals": compute_totals(reports)}


@router.patch("/admin/reports/{report_id}")
async def update_report(
    report_id: str,
    update: ReportUpdate,
    gateway: ReportGateway = Depends(get_gateway),
    _: RequestSession = Depends(require_admin),
):
    report = _store_call(gateway.get_report, report_id)
    if report is None:
        raise HTTPException(status_code=404, detail="Report not found")

    changes = {}
    if update.vendedor is not None:
        changes["sales_rep"] = _require_name(update.vendedor, "vendedor")
    if update.data_registro is not None:
        changes["registration_date"] = _require_date(update.data_registro, "data_registro")
    if update.reunioes_agendadas is not None:
        changes["meetings_scheduled"] = update.reunioes_agendadas
    if update.reunioes_realizadas is not None:
        changes["meetings_completed"] = update.reunioes_realizadas

    report = _store_call(gateway.update_report, report, changes)
    logger.info("Report updated by admin", extra={"report_id": report.id})
    return {"status": "success", "report": report}


@router.post("/admin/reports/manual", status_code=201)
async def create_manual_report(
    body: ManualReportCreate,
    gateway: ReportGateway = Depends(get_gateway),
    _: RequestSession = Depends(require_admin),
):
    """Add a report for an SDR who could not submit one."""
    sales_rep = _require_name(body.vendedor, "vendedor")
    registration_date = _require_date(body.data_registro, "data_registro")

    report = _store_call(
        gateway.insert_report,
        sales_rep=sales_rep,
        registration_date=registration_date,
        meetings_scheduled=body.reunioes_agendadas,
        meetings_completed=body.reunioes_realizadas,
        calls_made=body.ligacoes_realizadas,
        contacts_reached=body.contatos_falados,
    )

    try:
        gateway.insert_audit(
            user_identifier=f"admin_manual_entry_for_{sales_rep}",
            payload=body.model_dump(),
            status=AuditStatus.SUCCESS.value,
            error_message=f"Manual entry by admin - {body.observacoes or 'No observations'}",
        )
    except GatewayError as e:
        logger.warning(f"Manual entry audit not written: {e.detail}")

    return {"status": "success", "report": report}


# ── Meetings ──


@router.get("/admin/meetings")
async def list_meetings(
    report_id: Optional[str] = Query(None),
    vendedor_responsavel: Optional[str] = Query(None),
    gateway: ReportGateway = Depends(get_gateway),
    _: RequestSession = Depends(require_reader),
):
    meetings = _store_call(gateway.list_meetings, report_id, vendedor_responsavel)
    return {"status": "success", "count": len(meetings), "meetings": meetings}


@router.post("/admin/meetings", status_code=201)
async def create_meeting(
    body: MeetingCreate,
    gateway: ReportGateway = Depends(get_gateway),
    _: RequestSession = Depends(require_admin),
):
    lead_name = _require_name(body.nome_lead, "nome_lead")
    if not body.data_agendamento or not body.horario_agendamento:
        raise HTTPException(
            status_code=400, detail="data_agendamento and horario_agendamento are required"
        )

    report_id = body.report_id if body.report_id not in (None, "", "none") else None
    if report_id and _store_call(gateway.get_report, report_id) is None:
        raise HTTPException(status_code=404, detail="Report not found")

    meeting = _store_call(
        gateway.save_meeting,
        MeetingDetail(
            report_id=report_id,
            lead_name=lead_name,
            scheduled_date=body.data_agendamento,
            scheduled_time=body.horario_agendamento,
            status=body.status or MeetingStatus.SCHEDULED.value,
            responsible_rep=(body.vendedor_responsavel or "").strip() or None,
        ),
    )
    return {"status": "success", "meeting": meeting}


@router.patch("/admin/meetings/{meeting_id}")
async def update_meeting(
    meeting_id: str,
    update: MeetingUpdate,
    gateway: ReportGateway = Depends(get_gateway),
    _: RequestSession = Depends(require_admin),
):
    meeting = _store_call(gateway.get_meeting, meeting_id)
    if meeting is None:
        raise HTTPException(status_code=404, detail="Meeting not found")

    if update.nome_lead is not None:
        meeting.lead_name = _require_name(update.nome_lead, "nome_lead")
    if update.data_agendamento is not None:
        meeting.scheduled_date = update.data_agendamento
    if update.horario_agendamento is not None:
        meeting.scheduled_time = update.horario_agendamento
    if update.status is not None:
        meeting.status = update.status
    if update.vendedor_responsavel is not None:
        meeting.responsible_rep = update.vendedor_responsavel.strip() or None

    meeting = _store_call(gateway.save_meeting, meeting)
    return {"status": "success", "meeting": meeting}


# ── Monitoring ──


@router.get("/admin/audit")
async def list_audit_entries(
    limit: int = Query(50, ge=1, le=500),
    gateway: ReportGateway = Depends(get_gateway),
    _: RequestSession = Depends(require_admin),
):
    entries = _store_call(gateway.list_audit_entries, limit)
    return {
        "status": "success",
        "count": len(entries),
        "entries": [
            {
                "id": e.id,
                "user_identifier": e.user_identifier,
                "status": e.status,
                "error_message": e.error_message,
                "created_at": e.created_at.isoformat(),
                "submission_data": e.payload,
            }
            for e in entries
        ],
    }


@router.get("/admin/missing-reports")
async def list_missing_reports(
    days: Optional[int] = Query(None, ge=1, le=60),
    gateway: ReportGateway = Depends(get_gateway),
    _: RequestSession = Depends(require_admin),
):
    """Expected SDRs with no report on recent business days."""
    missing = _store_call(
        find_missing_reports,
        gateway,
        settings.expected_sdrs,
        datetime.now(timezone.utc).date(),
        days or settings.monitoring_window_days,
    )
    return {
        "status": "success",
        "count": len(missing),
        "missing": [{"sdr_name": m.sdr_name, "missing_date": m.missing_date} for m in missing],
    }


# ── Exports ──


def _attachment(content: bytes, media_type: str, stem: str, ext: str) -> Response:
    stamp = datetime.now(timezone.utc).strftime("%Y-%m-%d_%H-%M-%S")
    return Response(
        content=content,
        media_type=media_type,
        headers={"Content-Disposition": f'attachment; filename="{stem}_{stamp}.{ext}"'},
    )


@router.get("/admin/export/reports.csv")
async def export_reports_csv(
    gateway: ReportGateway = Depends(get_gateway),
    _: RequestSession = Depends(require_reader),
):
    reports = _store_call(gateway.list_reports)
    return _attachment(
        csv_bytes(prepare_report_rows(reports)), "text/csv; charset=utf-8", "relatorios", "csv"
    )


@router.get("/admin/export/meetings.csv")
async def export_meetings_csv(
    gateway: ReportGateway = Depends(get_gateway),
    _: RequestSession = Depends(require_reader),
):
    reports = _store_call(gateway.list_reports)
    meetings = _store_call(gateway.list_meetings)
    return _attachment(
        csv_bytes(prepare_meeting_rows(meetings, reports)),
        "text/csv; charset=utf-8",
        "reunioes",
        "csv",
    )


@router.get("/admin/export/workbook.xlsx")
async def export_workbook(
    gateway: ReportGateway = Depends(get_gateway),
    _: RequestSession = Depends(require_reader),
):
    reports = _store_call(gateway.list_reports)
    meetings = _store_call(gateway.list_meetings)
    return _attachment(build_workbook(reports, meetings), XLSX_MEDIA_TYPE, "reunioes", "xlsx")
