"""SDR Desk — CSV and XLSX Exports."""

import csv
import io
from datetime import datetime
from typing import Dict, List, Sequence

from openpyxl import Workbook
from openpyxl.styles import Font

from sdrdesk.models.report_models import DailyReport, MeetingDetail

CSV_BOM = "\ufeff"

REPORT_SHEET = "Relatórios"
MEETING_SHEET = "Detalhes das Reuniões"
REPORT_COLUMN_WIDTHS = [20, 12, 18, 18, 18]
MEETING_COLUMN_WIDTHS = [25, 12, 10, 12, 20, 20]


def _format_day(value: str) -> str:
    try:
        return datetime.strptime(value, "%Y-%m-%d").strftime("%d/%m/%Y")
    except (TypeError, ValueError):
        return value


def prepare_report_rows(reports: Sequence[DailyReport]) -> List[Dict[str, object]]:
    return [
        {
            "SDR": r.sales_rep,
            "Data": _format_day(r.registration_date),
            "Reuniões Agendadas": r.meetings_scheduled,
            "Reuniões Realizadas": r.meetings_completed,
            "Data de Envio": r.created_at.strftime("%d/%m/%Y %H:%M"),
        }
        for r in reports
    ]


def prepare_meeting_rows(
    meetings: Sequence[MeetingDetail], reports: Sequence[DailyReport]
) -> List[Dict[str, object]]:
    """Meeting rows with the SDR of the linked report, or N/A when unlinked."""
    rep_by_report = {r.id: r.sales_rep for r in reports}
    return [
        {
            "Lead": m.lead_name,
            "Data": _format_day(m.scheduled_date),
            "Horário": m.scheduled_time,
            "Status": m.status,
            "SDR Responsável": rep_by_report.get(m.report_id, "N/A") if m.report_id else "N/A",
            "Vendedor Responsável": m.responsible_rep or "N/A",
        }
        for m in meetings
    ]


def rows_to_csv(rows: Sequence[Dict[str, object]]) -> str:
    """Comma-separated text with a header row. Empty input gives ''."""
    if not rows:
        return ""
    headers = list(rows[0].keys())
    output = io.StringIO()
    writer = csv.writer(output, lineterminator="\n")
    writer.writerow(headers)
    for row in rows:
        writer.writerow([row.get(h, "") for h in headers])
    # No trailing newline after the last record
    return output.getvalue().rstrip("\n")


def csv_bytes(rows: Sequence[Dict[str, object]]) -> bytes:
    """CSV encoded as UTF-8 with a byte-order mark, for spreadsheet apps."""
    return (CSV_BOM + rows_to_csv(rows)).encode("utf-8")


def _fill_sheet(ws, rows: Sequence[Dict[str, object]], headers: List[str], widths: List[int]):
    ws.append(headers)
    for cell in ws[1]:
        cell.font = Font(bold=True)
    for row in rows:
        ws.append([row.get(h, "") for h in headers])
    for idx, width in enumerate(widths, start=1):
        column_letter = ws.cell(row=1, column=idx).column_letter
        ws.column_dimensions[column_letter].width = width


def build_workbook(
    reports: Sequence[DailyReport], meetings: Sequence[MeetingDetail]
) -> bytes:
    """Two-sheet workbook (reports, meeting details) serialized to .xlsx bytes."""
    wb = Workbook()
    report_ws = wb.active
    report_ws.title = REPORT_SHEET
    _fill_sheet(
        report_ws,
        prepare_report_rows(reports),
        ["SDR", "Data", "Reuniões Agendadas", "Reuniões Realizadas", "Data de Envio"],
        REPORT_COLUMN_WIDTHS,
    )

    meeting_ws = wb.create_sheet(MEETING_SHEET)
    _fill_sheet(
        meeting_ws,
        prepare_meeting_rows(meetings, reports),
        ["Lead", "Data", "Horário", "Status", "SDR Responsável", "Vendedor Responsável"],
        MEETING_COLUMN_WIDTHS,
    )

    buf = io.BytesIO()
    wb.save(buf)
    return buf.getvalue()
