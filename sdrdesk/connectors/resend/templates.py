"""SDR Desk — Email Templates."""

from dataclasses import dataclass, field
from datetime import datetime
from html import escape
from typing import List, Optional, Sequence, Tuple

NO_MEETINGS_TEXT = "Nenhuma reunião registrada."


@dataclass
class MeetingLine:
    lead_name: str
    scheduled_date: str
    scheduled_time: str
    status: str
    responsible_rep: Optional[str] = None


@dataclass
class ReportSummary:
    """Everything the notification needs to know about a saved report."""

    sales_rep: str
    registration_date: str
    meetings_scheduled: int
    meetings_completed: int
    report_id: str
    meetings: List[MeetingLine] = field(default_factory=list)
    meeting_details_partial: bool = False


def format_br_date(value: str) -> str:
    """YYYY-MM-DD → DD/MM/YYYY; anything else is returned unchanged."""
    try:
        return datetime.strptime(value, "%Y-%m-%d").strftime("%d/%m/%Y")
    except (TypeError, ValueError):
        return value


def format_meeting_lines(meetings: Sequence[MeetingLine]) -> str:
    """Plain-text listing, one meeting per line."""
    if not meetings:
        return NO_MEETINGS_TEXT
    return "\n".join(
        f"- {m.lead_name} | {m.scheduled_date} {m.scheduled_time} | "
        f"Status: {m.status} | Responsável: {m.responsible_rep or 'N/A'}"
        for m in meetings
    )


def build_report_email(summary: ReportSummary, sent_at: datetime) -> Tuple[str, str, str]:
    """Return (subject, html, text) for a daily report notification."""
    date_label = format_br_date(summary.registration_date)
    subject = f"📊 Relatório Diário - {summary.sales_rep} - {date_label}"
    if summary.meeting_details_partial:
        subject += " (Detalhes Parciais)"

    listing = format_meeting_lines(summary.meetings)
    warning = (
        '<div style="background-color: #fef2f2; border: 1px solid #fecaca; padding: 10px;">'
        '<strong style="color: #dc2626;">⚠️ Aviso:</strong> Houve um problema ao salvar '
        "alguns detalhes das reuniões no sistema.</div>"
        if summary.meeting_details_partial
        else ""
    )

    html = f"""
      <div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
        <h2 style="color: #1bccae;">📊 Relatório Diário de Atividades de Vendas</h2>
        <div style="background-color: #f0fdf4; padding: 20px;">
          <p><strong>SDR:</strong> {escape(summary.sales_rep)}</p>
          <p><strong>Data:</strong> {escape(date_label)}</p>
        </div>
        <div style="background-color: #ecfdf5; padding: 20px;">
          <p><strong>📅 Reuniões Agendadas:</strong> {summary.meetings_scheduled}</p>
          <p><strong>✅ Reuniões Realizadas:</strong> {summary.meetings_completed}</p>
        </div>
        <div style="background-color: #f8fafc; padding: 20px;">
          <h3>🤝 Detalhes das Reuniões</h3>
          <pre style="white-space: pre-wrap;">{escape(listing)}</pre>
          {warning}
        </div>
        <p style="color: #6b7280; font-size: 12px;">
          Data de envio: {sent_at.strftime("%d/%m/%Y %H:%M:%S")}<br>
          ID do Relatório: {escape(summary.report_id)}
        </p>
      </div>
    """

    text = (
        f"SDR: {summary.sales_rep}\n"
        f"Data: {date_label}\n"
        f"Reuniões Agendadas: {summary.meetings_scheduled}\n"
        f"Reuniões Realizadas: {summary.meetings_completed}\n\n"
        f"{listing}\n\n"
        f"ID do Relatório: {summary.report_id}"
    )
    return subject, html, text


def build_missing_reports_email(missing: Sequence[Tuple[str, str]]) -> Tuple[str, str, str]:
    """Return (subject, html, text) listing (sdr, date) pairs without a report."""
    lines = [f"- {sdr}: {format_br_date(day)}" for sdr, day in missing]
    text = "Relatórios ausentes:\n" + "\n".join(lines)
    items = "".join(
        f"<li>{escape(sdr)} — {escape(format_br_date(day))}</li>" for sdr, day in missing
    )
    html = f"<h2>⚠️ Relatórios ausentes</h2><ul>{items}</ul>"
    subject = f"⚠️ {len(missing)} relatório(s) diário(s) ausente(s)"
    return subject, html, text
