"""Integration tests for the FastAPI endpoints.

Uses TestClient against an in-memory database shared through StaticPool.
"""
from __future__ import annotations

import io

import openpyxl
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from uglybaby.models import Base, Company


@pytest.fixture()
def test_db():
    """Create a temporary SQLite in-memory database for testing.

    Uses StaticPool so all connections share the same in-memory database.
    """
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    TestSession = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
    return engine, TestSession


@pytest.fixture()
def client(test_db, monkeypatch, tmp_path):
    """FastAPI TestClient using in-memory database."""
    # lifespan still runs init_db(); keep its file out of the package
    monkeypatch.setenv("UGLYBABY_DB_PATH", str(tmp_path / "lifespan.db"))
    engine, TestSession = test_db
    from uglybaby.app import app, db_session

    def override_db_session():
        session = TestSession()
        try:
            yield session
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    app.dependency_overrides[db_session] = override_db_session
    with TestClient(app, raise_server_exceptions=True) as c:
        yield c, TestSession
    app.dependency_overrides.clear()


@pytest.fixture()
def seeded_client(client):
    """Client with one company and a few answers pre-seeded."""
    c, TestSession = client
    resp = c.post("/api/companies", json={
        "name": "Acme Freight", "stage": "Seed", "category": "Logistics", "description": "Freight matching",
    })
    company_id = resp.json()["id"]
    for key, answer in [
        ("solution_core", "Fast, affordable freight matching with an open API."),
        ("traction_proof", "We grew 25% month over month with 2,500 customers and strong retention"),
        ("problem_core", "Shippers waste hours on phone calls."),
    ]:
        c.put(f"/api/companies/{company_id}/responses", json={"question_key": key, "answer": answer})
    return c, TestSession, company_id


MEMO = {
    "content": {
        "sections": [
            {
                "title": "Team",
                "vcReflection": {
                    "analysis": "Strong operators. The team has a gap in engineering leadership.",
                    "questions": ["Who owns the platform roadmap?"],
                },
            },
        ],
        "vcQuickTake": {"concerns": ["Pricing looks unsustainable"]},
    },
    "tools": {
        "Team": {
            "sectionScore": {"score": 55, "vcBenchmark": 70},
            "vcInvestmentLogic": {
                "reasoning": "No technical cofounder has joined yet. Engineering is outsourced to an agency.",
                "keyCondition": "Demonstrate a committed technical lead.",
            },
        },
    },
}


class TestCompanyEndpoints:
    def test_create_and_list(self, seeded_client):
        c, _, company_id = seeded_client
        resp = c.get("/api/companies")
        assert resp.status_code == 200
        data = resp.json()
        assert data["total"] == 1
        assert data["items"][0]["id"] == company_id
        assert data["items"][0]["response_count"] == 3

    def test_list_filters(self, seeded_client):
        c, _, _ = seeded_client
        assert c.get("/api/companies", params={"stage": "seed"}).json()["total"] == 1
        assert c.get("/api/companies", params={"stage": "series a"}).json()["total"] == 0
        assert c.get("/api/companies", params={"search": "nothing"}).json()["total"] == 0

    def test_duplicate_company_409(self, seeded_client):
        c, _, _ = seeded_client
        resp = c.post("/api/companies", json={"name": "acme freight"})
        assert resp.status_code == 409

    def test_blank_name_422(self, client):
        c, _ = client
        assert c.post("/api/companies", json={"name": "   "}).status_code == 422

    def test_get_company(self, seeded_client):
        c, _, company_id = seeded_client
        resp = c.get(f"/api/companies/{company_id}")
        assert resp.status_code == 200
        keys = [r["question_key"] for r in resp.json()["responses"]]
        assert keys == ["problem_core", "solution_core", "traction_proof"]

    def test_get_missing_404(self, client):
        c, _ = client
        assert c.get("/api/companies/999").status_code == 404
        assert c.get("/api/companies/999/scorecard").status_code == 404

    def test_update_company(self, seeded_client):
        c, _, company_id = seeded_client
        resp = c.put(f"/api/companies/{company_id}", json={"stage": "Series A"})
        assert resp.status_code == 200
        assert resp.json()["stage"] == "Series A"
        assert resp.json()["category"] == "Logistics"

    def test_update_blank_name_422(self, seeded_client):
        c, _, company_id = seeded_client
        resp = c.put(f"/api/companies/{company_id}", json={"name": "   "})
        assert resp.status_code == 422
        assert c.get(f"/api/companies/{company_id}").json()["name"] == "Acme Freight"

    def test_update_name_is_stripped(self, seeded_client):
        c, _, company_id = seeded_client
        resp = c.put(f"/api/companies/{company_id}", json={"name": "  Acme Cargo  "})
        assert resp.status_code == 200
        assert resp.json()["name"] == "Acme Cargo"

    def test_rename_to_taken_name_409(self, seeded_client):
        c, _, company_id = seeded_client
        c.post("/api/companies", json={"name": "Other"})
        resp = c.put(f"/api/companies/{company_id}", json={"name": "other"})
        assert resp.status_code == 409

    def test_delete_company(self, seeded_client):
        c, TestSession, company_id = seeded_client
        assert c.delete(f"/api/companies/{company_id}").json() == {"ok": True}
        session = TestSession()
        assert session.get(Company, company_id) is None
        session.close()

    def test_upsert_response(self, seeded_client):
        c, _, company_id = seeded_client
        resp = c.put(f"/api/companies/{company_id}/responses",
                     json={"question_key": "problem_core", "answer": "Updated"})
        assert resp.status_code == 200
        responses = c.get(f"/api/companies/{company_id}/responses").json()
        assert len(responses) == 3
        assert responses[0]["answer"] == "Updated"

    def test_bad_question_key_422(self, seeded_client):
        c, _, company_id = seeded_client
        resp = c.put(f"/api/companies/{company_id}/responses",
                     json={"question_key": "bad key!", "answer": "x"})
        assert resp.status_code == 422


class TestMemoEndpoints:
    def test_upload_memo(self, seeded_client):
        c, _, company_id = seeded_client
        resp = c.post(f"/api/companies/{company_id}/memo", json=MEMO)
        assert resp.status_code == 201
        assert resp.json()["sections"] == 1
        assert c.get(f"/api/companies/{company_id}").json()["has_memo"] is True

    def test_invalid_memo_422(self, seeded_client):
        c, _, company_id = seeded_client
        resp = c.post(f"/api/companies/{company_id}/memo", json={"content": {"sections": 5}})
        assert resp.status_code == 422


class TestScoringEndpoints:
    def test_differentiation(self, seeded_client):
        c, _, company_id = seeded_client
        data = c.get(f"/api/companies/{company_id}/differentiation").json()
        assert data["company_name"] == "Acme Freight"
        assert len(data["factors"]) == 6
        assert data["band"] in {"clear", "emerging", "unclear"}

    def test_momentum(self, seeded_client):
        c, _, company_id = seeded_client
        data = c.get(f"/api/companies/{company_id}/momentum").json()
        assert data["score"] == 79
        assert data["trajectory"] == "STRONG MOMENTUM"
        assert data["stage"] == "Seed"
        assert len(data["benchmarks"]) == 3

    def test_action_plan_without_memo(self, seeded_client):
        c, _, company_id = seeded_client
        data = c.get(f"/api/companies/{company_id}/action-plan").json()
        assert [i["category"] for i in data["items"]] == ["narrative", "traction", "team"]

    def test_action_plan_with_memo(self, seeded_client):
        c, _, company_id = seeded_client
        c.post(f"/api/companies/{company_id}/memo", json=MEMO)
        data = c.get(f"/api/companies/{company_id}/action-plan").json()
        assert [i["category"] for i in data["items"]] == ["business", "team", "narrative"]
        assert data["items"][1]["problem"] == "The team has a gap in engineering leadership"

    def test_insights_and_explain(self, seeded_client):
        c, _, company_id = seeded_client
        c.post(f"/api/companies/{company_id}/memo", json=MEMO)
        insights = c.get(f"/api/companies/{company_id}/insights").json()
        assert list(insights["section_insights"]) == ["Team"]
        resp = c.get(f"/api/companies/{company_id}/insights/explain",
                     params={"text": "no technical cofounder"})
        assert resp.status_code == 200
        data = resp.json()
        assert data["section"] == "Team"
        assert data["company_context"] == (
            "No technical cofounder has joined yet. Demonstrate a committed technical lead."
        )
        assert data["evidence"] == ["Team score: 55/70 benchmark (-15 gap)"]

    def test_explain_no_match_404(self, seeded_client):
        c, _, company_id = seeded_client
        resp = c.get(f"/api/companies/{company_id}/insights/explain", params={"text": "anything"})
        assert resp.status_code == 404

    def test_suggestions(self, seeded_client):
        c, _, company_id = seeded_client
        c.post(f"/api/companies/{company_id}/memo", json=MEMO)
        data = c.get(f"/api/companies/{company_id}/insights/Team/suggestions").json()
        assert data["suggestions"] == ["Demonstrate a committed technical lead"]

    def test_scorecard(self, seeded_client):
        c, _, company_id = seeded_client
        data = c.get(f"/api/companies/{company_id}/scorecard").json()
        assert data["company"]["id"] == company_id
        assert data["momentum"]["metrics"]["user_count"] == 2500

    def test_stateless_differentiation(self, client):
        c, _ = client
        resp = c.post("/api/score/differentiation", json={"solution_text": ""})
        assert resp.status_code == 200
        assert resp.json()["score"] == 30
        assert resp.json()["band"] == "unclear"

    def test_stateless_momentum(self, client):
        c, _ = client
        resp = c.post("/api/score/momentum", json={"traction_text": "", "stage": "Series B"})
        data = resp.json()
        assert data["score"] == 30
        assert data["trajectory"] == "EARLY STAGE"
        assert data["benchmarks"][0]["benchmark"] == "15-25%"


class TestImportEndpoint:
    @staticmethod
    def _xlsx_bytes(sheet="Companies"):
        wb = openpyxl.Workbook()
        ws = wb.active
        ws.title = sheet
        ws.append(["Name", "Stage", "Category", "Description"])
        ws.append(["Imported Co", "Seed", "Fintech", "Payments"])
        buf = io.BytesIO()
        wb.save(buf)
        return buf.getvalue()

    def test_import(self, client):
        c, _ = client
        resp = c.post("/api/import", files={"file": ("in.xlsx", self._xlsx_bytes(), "application/octet-stream")})
        assert resp.status_code == 200
        assert resp.json()["companies_created"] == 1
        assert c.get("/api/companies").json()["items"][0]["name"] == "Imported Co"

    def test_wrong_extension_400(self, client):
        c, _ = client
        resp = c.post("/api/import", files={"file": ("in.csv", b"a,b", "text/csv")})
        assert resp.status_code == 400

    def test_unknown_sheet_400(self, client):
        c, _ = client
        resp = c.post("/api/import", files={"file": ("in.xlsx", self._xlsx_bytes("Notes"), "application/octet-stream")})
        assert resp.status_code == 400


class TestStatsEndpoint:
    def test_stats(self, seeded_client):
        c, _, _ = seeded_client
        data = c.get("/api/stats").json()
        assert data["total"] == 1
        assert data["by_trajectory"] == {"STRONG MOMENTUM": 1}
