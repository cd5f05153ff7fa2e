"""Tests for missing-report detection and alerting."""

from datetime import date

import pytest
from sqlmodel import select

from conftest import FakeNotifier
from sdrdesk.models.audit_models import MissingReportAlert
from sdrdesk.reports.monitoring import (
    business_days,
    find_missing_reports,
    record_missing_report_alerts,
)

MONDAY = date(2024, 3, 4)


def test_business_days_skip_weekends():
    assert business_days(MONDAY, 7) == [
        "2024-03-04",
        "2024-03-01",
        "2024-02-29",
        "2024-02-28",
        "2024-02-27",
    ]


def test_business_days_on_a_saturday():
    assert business_days(date(2024, 3, 9), 2) == []


def test_find_missing_reports(gateway):
    gateway.insert_report("Ana", "2024-03-04", 1, 0)
    gateway.insert_report("Ana", "2024-03-01", 1, 0)
    gateway.insert_report("Bia", "2024-03-04", 2, 1)

    missing = find_missing_reports(gateway, ["Ana", "Bia"], MONDAY, days=4)

    assert [(m.sdr_name, m.missing_date) for m in missing] == [("Bia", "2024-03-01")]


@pytest.mark.asyncio
async def test_alerts_recorded_once_and_marked_sent(session, gateway, notifier):
    first = await record_missing_report_alerts(gateway, notifier, ["Ana"], MONDAY, days=1)
    second = await record_missing_report_alerts(gateway, notifier, ["Ana"], MONDAY, days=1)

    assert len(first) == 1
    assert second == []
    assert len(notifier.sent) == 1
    assert "Ana" in notifier.sent[0]["text"]
    [alert] = session.exec(select(MissingReportAlert)).all()
    assert alert.missing_date == "2024-03-04"
    assert alert.alert_sent is True


@pytest.mark.asyncio
async def test_alerts_kept_unsent_when_email_fails(session, gateway):
    alerts = await record_missing_report_alerts(
        gateway, FakeNotifier(fail=True), ["Ana"], MONDAY, days=1
    )

    assert len(alerts) == 1
    [alert] = session.exec(select(MissingReportAlert)).all()
    assert alert.alert_sent is False
