"""SDR Desk — Dashboard Totals."""

from typing import Sequence

from sdrdesk.models.report_models import DailyReport, DashboardTotals


def compute_totals(reports: Sequence[DailyReport]) -> DashboardTotals:
    return DashboardTotals(
        total_scheduled=sum(r.meetings_scheduled for r in reports),
        total_completed=sum(r.meetings_completed for r in reports),
        total_sdrs=len({r.sales_rep for r in reports}),
        report_count=len(reports),
    )
