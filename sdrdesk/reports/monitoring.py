"""SDR Desk — Submission Monitoring.

Detects business days on which an expected SDR filed no report, and records
alerts for them.
"""

from dataclasses import dataclass
from datetime import date, timedelta
from typing import List, Sequence

from sdrdesk.connectors.resend.templates import build_missing_reports_email
from sdrdesk.core.logging import get_logger
from sdrdesk.models.audit_models import MissingReportAlert
from sdrdesk.reports.gateway import ReportGateway

logger = get_logger("reports.monitoring")


@dataclass(frozen=True)
class MissingReport:
    sdr_name: str
    missing_date: str


def business_days(today: date, days: int) -> List[str]:
    """The last `days` calendar days ending today, weekends removed, newest first."""
    window = (today - timedelta(days=offset) for offset in range(days))
    return [d.isoformat() for d in window if d.weekday() < 5]


def find_missing_reports(
    gateway: ReportGateway,
    expected_sdrs: Sequence[str],
    today: date,
    days: int = 7,
) -> List[MissingReport]:
    """Every (expected SDR, business day) pair with no report on file."""
    dates = business_days(today, days)
    filed = {
        (r.sales_rep, r.registration_date) for r in gateway.reports_for_dates(dates)
    }
    return [
        MissingReport(sdr_name=sdr, missing_date=day)
        for day in dates
        for sdr in expected_sdrs
        if (sdr, day) not in filed
    ]


async def record_missing_report_alerts(
    gateway: ReportGateway,
    notifier,
    expected_sdrs: Sequence[str],
    today: date,
    days: int = 7,
) -> List[MissingReportAlert]:
    """Store an alert per newly missing pair and email one summary.

    Pairs that already have an alert are left alone. Alerts are marked sent
    only when the email goes out.
    """
    missing = find_missing_reports(gateway, expected_sdrs, today, days)
    new_alerts = [
        MissingReportAlert(sdr_name=m.sdr_name, missing_date=m.missing_date)
        for m in missing
        if not gateway.alert_exists(m.sdr_name, m.missing_date)
    ]
    if not new_alerts:
        logger.info("No new missing reports")
        return []

    gateway.insert_alerts(new_alerts)
    logger.warning(f"⚠️ {len(new_alerts)} missing reports recorded")

    subject, html, text = build_missing_reports_email(
        [(a.sdr_name, a.missing_date) for a in new_alerts]
    )
    try:
        await notifier.send(subject, html, text)
    except Exception as e:
        logger.error(f"Missing report alert email not sent: {e}")
        return new_alerts
    gateway.mark_alerts_sent(new_alerts)
    return new_alerts
