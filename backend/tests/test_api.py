"""
API tests for upload, stored data, dashboard and report endpoints.

The report store is a temporary directory (see conftest) and outgoing mail
is patched, so nothing leaves the test process.
"""
from unittest.mock import AsyncMock

import pytest

from tests.conftest import build_workbook, standard_sheets

XLSX = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


async def _upload(client, content: bytes, filename: str = "GENERAL_REPORT.xlsx"):
    return await client.post("/api/upload", files={"file": (filename, content, XLSX)})


@pytest.fixture
def mail(monkeypatch):
    mock = AsyncMock(return_value={"id": "msg_123"})
    monkeypatch.setattr("rentdash.api.reports.send_email", mock)
    return mock


@pytest.mark.asyncio
async def test_root(client):
    resp = await client.get("/")
    assert resp.status_code == 200
    data = resp.json()
    assert data["name"] == "Rent Collection Dashboard API"
    assert data["status"] == "running"


@pytest.mark.asyncio
async def test_health(client):
    resp = await client.get("/api/health")
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "ok"
    assert "timestamp" in data


class TestUpload:
    @pytest.mark.asyncio
    async def test_upload_workbook(self, client, standard_workbook):
        resp = await _upload(client, standard_workbook)
        assert resp.status_code == 200
        data = resp.json()
        assert data["success"] is True
        assert data["file_name"] == "GENERAL_REPORT.xlsx"
        assert data["months"] == ["JANUARY 26", "FEBRUARY 26"]
        assert data["tenants"] == 4
        assert data["period_sheets"] == ["JANUARY 26", "FEBRUARY 26"]
        assert data["warnings"] == []

    @pytest.mark.asyncio
    async def test_rejects_other_extensions(self, client):
        resp = await _upload(client, b"a,b,c", filename="report.csv")
        assert resp.status_code == 400

    @pytest.mark.asyncio
    async def test_rejects_oversized_file(self, client, report_store, standard_workbook, monkeypatch):
        monkeypatch.setattr("rentdash.api.uploads.MAX_UPLOAD_BYTES", 1024)
        monkeypatch.setattr("rentdash.api.uploads.UPLOAD_CHUNK_BYTES", 256)
        resp = await _upload(client, standard_workbook)
        assert resp.status_code == 413
        assert report_store.load() is None

    @pytest.mark.asyncio
    async def test_rejects_unreadable_file(self, client):
        resp = await _upload(client, b"not a workbook")
        assert resp.status_code == 422
        assert "Failed to parse document" in resp.json()["detail"]

    @pytest.mark.asyncio
    async def test_rejects_workbook_without_required_sheets(self, client, report_store):
        sheets = standard_sheets()
        del sheets["DASHBOARD"]
        del sheets["JANUARY 26"]
        del sheets["FEBRUARY 26"]
        del sheets["Tenant Master"]
        resp = await _upload(client, build_workbook(sheets))
        assert resp.status_code == 422
        assert resp.json()["detail"] == "Missing DASHBOARD sheet; Missing Tenant Master data"
        assert report_store.load() is None


class TestData:
    @pytest.mark.asyncio
    async def test_no_data_is_null(self, client):
        resp = await client.get("/api/data")
        assert resp.status_code == 200
        assert resp.json() is None

    @pytest.mark.asyncio
    async def test_upload_then_get(self, client, standard_workbook):
        await _upload(client, standard_workbook)
        resp = await client.get("/api/data")
        assert resp.status_code == 200
        data = resp.json()
        assert data["months"] == ["JANUARY 26", "FEBRUARY 26"]
        assert data["dashboard"]["totalCollected"] == [700, 350]
        assert data["vacancy"] == {"totalUnits": 50, "vacant": 2, "occupancy": 0.96}
        assert len(data["monthlySheets"]["FEBRUARY 26"]) == 4

    @pytest.mark.asyncio
    async def test_post_roundtrip(self, client, standard_workbook):
        await _upload(client, standard_workbook)
        stored = (await client.get("/api/data")).json()
        await client.delete("/api/data")

        resp = await client.post("/api/data", json=stored)
        assert resp.status_code == 200
        assert resp.json() == {"success": True, "months": ["JANUARY 26", "FEBRUARY 26"], "tenants": 4}
        assert (await client.get("/api/data")).json() == stored

    @pytest.mark.asyncio
    async def test_post_incomplete(self, client):
        resp = await client.post("/api/data", json={"tenants": []})
        assert resp.status_code == 422

    @pytest.mark.asyncio
    async def test_post_rejects_wrongly_typed_field(self, client, report_store, standard_workbook):
        await _upload(client, standard_workbook)
        stored = (await client.get("/api/data")).json()
        stored["paymentHistory"][0]["timesLate"] = "3"

        resp = await client.post("/api/data", json=stored)

        assert resp.status_code == 422
        assert report_store.load().payment_history[0].times_late == 0
        assert (await client.get("/api/dashboard/at-risk")).status_code == 200
        assert (await client.get("/api/dashboard/overview")).status_code == 200

    @pytest.mark.asyncio
    async def test_post_rejects_text_amount(self, client, standard_workbook):
        await _upload(client, standard_workbook)
        stored = (await client.get("/api/data")).json()
        stored["monthlySheets"]["FEBRUARY 26"][0]["due"] = "250"
        resp = await client.post("/api/data", json=stored)
        assert resp.status_code == 422

    @pytest.mark.asyncio
    async def test_delete(self, client, standard_workbook):
        await _upload(client, standard_workbook)
        resp = await client.delete("/api/data")
        assert resp.json() == {"deleted": True}
        resp = await client.delete("/api/data")
        assert resp.json() == {"deleted": False}
        assert (await client.get("/api/data")).json() is None


class TestDashboard:
    @pytest.mark.asyncio
    async def test_no_data(self, client):
        resp = await client.get("/api/dashboard/overview")
        assert resp.status_code == 404

    @pytest.mark.asyncio
    async def test_overview(self, client, standard_workbook):
        await _upload(client, standard_workbook)
        resp = await client.get("/api/dashboard/overview")
        assert resp.status_code == 200
        data = resp.json()
        assert data["period"] == "FEBRUARY 26"
        assert data["kpis"]["total_due"] == 750
        assert data["at_risk_count"] == 2

    @pytest.mark.asyncio
    async def test_tenants(self, client, standard_workbook):
        await _upload(client, standard_workbook)
        resp = await client.get("/api/dashboard/tenants", params={"filter": "owner"})
        data = resp.json()
        assert data["count"] == 2
        assert data["total"] == 4

        resp = await client.get("/api/dashboard/tenants", params={"filter": "bogus"})
        assert resp.status_code == 400

    @pytest.mark.asyncio
    async def test_periods(self, client, standard_workbook):
        await _upload(client, standard_workbook)
        resp = await client.get("/api/dashboard/periods")
        assert resp.json()["period"] == "FEBRUARY 26"

        resp = await client.get("/api/dashboard/periods/JANUARY 26")
        assert resp.status_code == 200
        assert resp.json()["period"] == "JANUARY 26"

        resp = await client.get("/api/dashboard/periods/MARCH 26")
        assert resp.status_code == 404

    @pytest.mark.asyncio
    async def test_history_and_at_risk(self, client, standard_workbook):
        await _upload(client, standard_workbook)
        history = (await client.get("/api/dashboard/history")).json()
        assert history["months"] == ["JANUARY 26", "FEBRUARY 26"]
        assert len(history["rows"]) == 3

        at_risk = (await client.get("/api/dashboard/at-risk")).json()
        assert at_risk["count"] == 2
        assert {t["unit"] for t in at_risk["tenants"]} == {"G-02", "1-01"}


class TestReport:
    @pytest.mark.asyncio
    async def test_requires_token(self, client, settings_env, mail):
        settings_env(report_secret="s3cret", report_email_to="owner@x.com")
        resp = await client.get("/api/report", params={"token": "wrong"})
        assert resp.status_code == 401
        mail.assert_not_called()

    @pytest.mark.asyncio
    async def test_no_data(self, client, settings_env, mail):
        settings_env(report_secret="s3cret", report_email_to="owner@x.com")
        resp = await client.get("/api/report", params={"token": "s3cret"})
        assert resp.status_code == 404

    @pytest.mark.asyncio
    async def test_missing_recipient(self, client, settings_env, mail, standard_workbook):
        settings_env(report_secret="", report_email_to="")
        await _upload(client, standard_workbook)
        resp = await client.get("/api/report")
        assert resp.status_code == 500
        assert resp.json()["detail"] == "REPORT_EMAIL_TO not configured"

    @pytest.mark.asyncio
    async def test_sends_report(self, client, settings_env, mail, standard_workbook):
        settings_env(report_secret="s3cret", report_email_to="owner@x.com")
        await _upload(client, standard_workbook)

        resp = await client.get("/api/report", params={"token": "s3cret"})

        assert resp.status_code == 200
        data = resp.json()
        assert data["ok"] is True
        assert data["sent_to"] == "owner@x.com"
        assert data["id"] == "msg_123"
        assert data["data_source"] == "live"
        to, subject, html = mail.await_args.args
        assert to == "owner@x.com"
        assert subject.startswith("MPIRE Weekly Report — ")
        assert "Weekly Rent Report" in html


class TestTestEmail:
    @pytest.mark.asyncio
    async def test_invalid_address(self, client, mail):
        resp = await client.post("/api/test-email", json={"to": "nobody"})
        assert resp.status_code == 400

    @pytest.mark.asyncio
    async def test_sample_data_without_upload(self, client, mail):
        resp = await client.post("/api/test-email", json={"to": "me@x.com"})
        assert resp.status_code == 200
        assert resp.json()["data_source"] == "sample"
        subject = mail.await_args.args[1]
        assert subject.startswith("[SAMPLE DATA] ")

    @pytest.mark.asyncio
    async def test_live_data_after_upload(self, client, mail, standard_workbook):
        await _upload(client, standard_workbook)
        resp = await client.post("/api/test-email", json={"to": "me@x.com"})
        assert resp.json()["data_source"] == "live"

    @pytest.mark.asyncio
    async def test_mailer_not_configured(self, client, settings_env):
        settings_env(resend_api_key="")
        resp = await client.post("/api/test-email", json={"to": "me@x.com"})
        assert resp.status_code == 500
        assert resp.json()["detail"] == "RESEND_API_KEY not configured"
