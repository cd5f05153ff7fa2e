"""HTTP-level tests for the report and admin routes."""

import io
from datetime import datetime, timedelta, timezone

import pytest
from openpyxl import load_workbook
from sqlmodel import Session, select

from conftest import ADMIN_HEADERS, make_payload
from sdrdesk.models.audit_models import SubmissionAudit
from sdrdesk.models.profile_models import Profile
from sdrdesk.models.report_models import DailyReport, MeetingDetail
from sdrdesk.reports.gateway import ReportGateway

READER_HEADERS = {"X-User-Id": "bot-1", "X-User-Email": "bot@example.com"}


@pytest.fixture
def reader(engine):
    with Session(engine) as session:
        session.add(Profile(id="bot-1", email="bot@example.com", access_level="ai"))
        session.commit()


# ── Submission ──


@pytest.mark.asyncio
async def test_submit_report(client, notifier):
    resp = await client.post("/send-report-email", json=make_payload())

    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    assert body["reportId"]
    assert body["emailStatus"] == "sent"
    assert body["emailId"] == "email-1"
    assert body["meetingDetailsStatus"] == "success"
    assert "emailError" not in body
    assert len(notifier.sent) == 1


@pytest.mark.asyncio
async def test_submit_invalid_payload(client, engine, notifier):
    resp = await client.post("/send-report-email", json=make_payload(vendedor=""))

    assert resp.status_code == 400
    assert resp.json() == {"success": False, "error": "Invalid payload: vendedor is required"}
    with Session(engine) as session:
        assert session.exec(select(DailyReport)).all() == []
    assert notifier.sent == []


@pytest.mark.asyncio
async def test_submit_malformed_json(client):
    resp = await client.post(
        "/send-report-email",
        content=b"{not json",
        headers={"Content-Type": "application/json"},
    )
    assert resp.status_code == 400
    assert resp.json()["success"] is False


@pytest.mark.asyncio
async def test_submit_store_failure_hides_detail(client, monkeypatch):
    from sdrdesk.core.errors import GatewayError

    def broken_insert(self, *args, **kwargs):
        raise GatewayError("insert_report", "password authentication failed")

    monkeypatch.setattr(ReportGateway, "insert_report", broken_insert)
    resp = await client.post("/send-report-email", json=make_payload())

    assert resp.status_code == 500
    assert resp.json() == {"success": False, "error": "Failed to save report"}


@pytest.mark.asyncio
@pytest.mark.parametrize("path", ["/send-report-email", "/recovery-meeting-details"])
async def test_preflight(client, path):
    resp = await client.options(path)
    assert resp.status_code == 200
    assert resp.content == b""


# ── Recovery ──


@pytest.mark.asyncio
async def test_recovery_endpoint(client, engine):
    with Session(engine) as session:
        gateway = ReportGateway(session)
        report = gateway.insert_report("Ana", "2024-03-01", 5, 2)
        entry = gateway.insert_audit("Ana", make_payload(), "success")
        entry.created_at = report.created_at + timedelta(seconds=1)
        session.add(entry)
        session.commit()
        report_id = report.id

    resp = await client.post("/recovery-meeting-details")

    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    [result] = body["results"]
    assert result["reportId"] == report_id
    assert result["status"] == "success"
    assert result["expectedMeetings"] == 1
    assert result["recoveredMeetings"] == 1


@pytest.mark.asyncio
async def test_recovery_endpoint_with_nothing_to_do(client):
    resp = await client.post("/recovery-meeting-details")
    assert resp.json() == {"success": True, "message": "Recovery finished", "results": []}


@pytest.mark.asyncio
async def test_recovery_endpoint_hides_store_detail(client, store_outage):
    store_outage["down"] = True

    resp = await client.post("/recovery-meeting-details")

    assert resp.status_code == 500
    assert resp.json() == {"success": False, "error": "Failed to load reports for recovery"}
    assert "SELECT" not in resp.text


# ── Access ──


@pytest.mark.asyncio
async def test_admin_routes_need_identity(client):
    assert (await client.get("/admin/reports")).status_code == 403
    assert (await client.get("/admin/audit")).status_code == 403


@pytest.mark.asyncio
async def test_whoami(client):
    resp = await client.get("/me", headers=ADMIN_HEADERS)
    assert resp.json()["access_level"] == "admin"
    assert resp.json()["is_admin"] is True

    anonymous = await client.get("/me")
    assert anonymous.json()["access_level"] == "user"


@pytest.mark.asyncio
async def test_reader_can_list_but_not_edit(client, reader):
    await client.post("/send-report-email", json=make_payload())

    listed = await client.get("/admin/reports", headers=READER_HEADERS)
    assert listed.status_code == 200
    assert listed.json()["count"] == 1
    report_id = listed.json()["reports"][0]["id"]

    edited = await client.patch(
        f"/admin/reports/{report_id}", json={"reunioes_agendadas": 9}, headers=READER_HEADERS
    )
    assert edited.status_code == 403
    assert (await client.get("/admin/audit", headers=READER_HEADERS)).status_code == 403


# ── Admin CRUD ──


@pytest.mark.asyncio
async def test_list_and_summarize_reports(client):
    await client.post("/send-report-email", json=make_payload())
    await client.post(
        "/send-report-email",
        json=make_payload(vendedor="Bia", dataRegistro="2024-03-04", reunioesAgendadas=3),
    )

    filtered = await client.get(
        "/admin/reports", params={"start_date": "2024-03-02"}, headers=ADMIN_HEADERS
    )
    assert [r["sales_rep"] for r in filtered.json()["reports"]] == ["Bia"]

    summary = await client.get("/admin/summary", headers=ADMIN_HEADERS)
    assert summary.json()["totals"] == {
        "total_scheduled": 8,
        "total_completed": 4,
        "total_sdrs": 2,
        "report_count": 2,
    }


@pytest.mark.asyncio
async def test_update_report(client):
    created = await client.post("/send-report-email", json=make_payload())
    report_id = created.json()["reportId"]

    resp = await client.patch(
        f"/admin/reports/{report_id}",
        json={"reunioes_realizadas": 4, "data_registro": "2024-03-02"},
        headers=ADMIN_HEADERS,
    )

    assert resp.status_code == 200
    report = resp.json()["report"]
    assert report["meetings_completed"] == 4
    assert report["registration_date"] == "2024-03-02"
    assert report["meetings_scheduled"] == 5


@pytest.mark.asyncio
async def test_update_report_rejects_bad_date(client):
    created = await client.post("/send-report-email", json=make_payload())
    resp = await client.patch(
        f"/admin/reports/{created.json()['reportId']}",
        json={"data_registro": "02/03/2024"},
        headers=ADMIN_HEADERS,
    )
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_update_missing_report(client):
    resp = await client.patch("/admin/reports/nope", json={}, headers=ADMIN_HEADERS)
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_manual_report_writes_audit_entry(client, engine):
    resp = await client.post(
        "/admin/reports/manual",
        json={
            "vendedor": "Caio",
            "data_registro": "2024-03-01",
            "reunioes_agendadas": 2,
            "observacoes": "sick day",
        },
        headers=ADMIN_HEADERS,
    )

    assert resp.status_code == 201
    assert resp.json()["report"]["sales_rep"] == "Caio"
    with Session(engine) as session:
        [entry] = session.exec(select(SubmissionAudit)).all()
    assert entry.user_identifier == "admin_manual_entry_for_Caio"
    assert entry.error_message == "Manual entry by admin - sick day"


@pytest.mark.asyncio
async def test_create_and_update_meeting(client):
    created = await client.post(
        "/admin/meetings",
        json={
            "nome_lead": "Acme",
            "data_agendamento": "2024-03-05",
            "horario_agendamento": "09:30",
            "report_id": "none",
        },
        headers=ADMIN_HEADERS,
    )
    assert created.status_code == 201
    meeting = created.json()["meeting"]
    assert meeting["report_id"] is None
    assert meeting["status"] == "Agendado"

    updated = await client.patch(
        f"/admin/meetings/{meeting['id']}",
        json={"status": "Realizado", "vendedor_responsavel": " Ana "},
        headers=ADMIN_HEADERS,
    )
    assert updated.json()["meeting"]["status"] == "Realizado"
    assert updated.json()["meeting"]["responsible_rep"] == "Ana"

    listed = await client.get(
        "/admin/meetings", params={"vendedor_responsavel": "Ana"}, headers=ADMIN_HEADERS
    )
    assert listed.json()["count"] == 1


@pytest.mark.asyncio
async def test_create_meeting_for_unknown_report(client):
    resp = await client.post(
        "/admin/meetings",
        json={
            "nome_lead": "Acme",
            "data_agendamento": "2024-03-05",
            "horario_agendamento": "09:30",
            "report_id": "missing",
        },
        headers=ADMIN_HEADERS,
    )
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_audit_listing_decodes_payload(client):
    await client.post("/send-report-email", json=make_payload())

    resp = await client.get("/admin/audit", headers=ADMIN_HEADERS)

    [entry] = resp.json()["entries"]
    assert entry["user_identifier"] == "Ana"
    assert entry["submission_data"]["vendedor"] == "Ana"


@pytest.mark.asyncio
async def test_missing_reports(client, monkeypatch):
    from sdrdesk.config import settings

    monkeypatch.setattr(settings, "expected_sdrs", ["Ana"])
    today = datetime.now(timezone.utc).date()

    resp = await client.get("/admin/missing-reports", params={"days": 1}, headers=ADMIN_HEADERS)

    assert resp.status_code == 200
    expected = 0 if today.weekday() >= 5 else 1
    assert resp.json()["count"] == expected


# ── Exports ──


@pytest.mark.asyncio
async def test_csv_exports(client):
    await client.post("/send-report-email", json=make_payload())

    reports = await client.get("/admin/export/reports.csv", headers=ADMIN_HEADERS)
    assert reports.status_code == 200
    assert reports.headers["content-type"].startswith("text/csv")
    assert 'filename="relatorios_' in reports.headers["content-disposition"]
    assert reports.content.startswith(b"\xef\xbb\xbf")
    assert "Ana,01/03/2024,5,2," in reports.content.decode("utf-8-sig")

    meetings = await client.get("/admin/export/meetings.csv", headers=ADMIN_HEADERS)
    lines = meetings.content.decode("utf-8-sig").split("\n")
    assert lines[0] == "Lead,Data,Horário,Status,SDR Responsável,Vendedor Responsável"
    assert lines[1] == "João,02/03/2024,14:00,Agendado,Ana,Ana"


@pytest.mark.asyncio
async def test_workbook_export(client):
    await client.post("/send-report-email", json=make_payload())

    resp = await client.get("/admin/export/workbook.xlsx", headers=ADMIN_HEADERS)

    assert resp.status_code == 200
    wb = load_workbook(io.BytesIO(resp.content))
    assert len(wb.sheetnames) == 2
    assert wb.worksheets[1].max_row == 2


@pytest.mark.asyncio
async def test_exports_need_reader_access(client):
    resp = await client.get("/admin/export/workbook.xlsx")
    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_meeting_rows_survive_in_store(client, engine):
    await client.post("/send-report-email", json=make_payload())
    with Session(engine) as session:
        [meeting] = session.exec(select(MeetingDetail)).all()
    assert meeting.lead_name == "João"
