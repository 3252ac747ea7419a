"""Tests for the MCP tool functions, called directly against an in-memory database."""
from __future__ import annotations

import json

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from uglybaby.models import Base


@pytest.fixture()
def session_factory(monkeypatch):
    """Point ``session_scope`` at a shared in-memory database."""
    import uglybaby.db as db_mod
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    factory = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
    monkeypatch.setattr(db_mod, "_engine", engine)
    monkeypatch.setattr(db_mod, "_SessionLocal", factory)
    yield factory
    engine.dispose()


@pytest.fixture()
def company_id(session_factory) -> int:
    from uglybaby.services import create_company, store_memo, upsert_response
    session = session_factory()
    company = create_company(session, name="Acme Freight", stage="Seed")
    upsert_response(session, company, "traction_proof", "We grew 25% month over month with 2,500 customers")
    store_memo(
        session, company,
        {"sections": [], "vcQuickTake": {"concerns": ["No revenue yet"]}},
        {"Traction": {"vcInvestmentLogic": {
            "reasoning": "Retention data is missing for the pilot cohort.",
            "keyCondition": "Show three months of retention.",
        }}},
    )
    session.commit()
    cid = company.id
    session.close()
    return cid


class TestCompanyTools:
    def test_list_companies(self, company_id):
        from uglybaby.mcp_server import list_companies
        items = list_companies()
        assert [i["id"] for i in items] == [company_id]
        assert list_companies(stage="series a") == []

    def test_get_company(self, company_id):
        from uglybaby.mcp_server import get_company
        detail = get_company(company_id)
        assert detail["name"] == "Acme Freight"
        assert detail["has_memo"] is True

    def test_unknown_company_returns_error(self, session_factory):
        from uglybaby.mcp_server import get_action_plan, get_company, get_scorecard
        assert get_company(999) == {"error": "Company 999 not found"}
        assert get_scorecard(999) == {"error": "Company 999 not found"}
        assert get_action_plan(999) == {"error": "Company 999 not found"}

    def test_get_stats(self, company_id):
        from uglybaby.mcp_server import get_stats
        stats = get_stats()
        assert stats["total"] == 1
        assert stats["with_memo"] == 1


class TestScoringTools:
    def test_get_scorecard(self, company_id):
        from uglybaby.mcp_server import get_scorecard
        card = get_scorecard(company_id)
        assert card["company"]["id"] == company_id
        assert card["momentum"]["metrics"]["growth_rate"] == 25
        assert card["insights"]["sections"] == ["Traction"]

    def test_get_action_plan(self, company_id):
        from uglybaby.mcp_server import get_action_plan
        plan = get_action_plan(company_id)
        assert [i["category"] for i in plan["items"]] == ["traction", "narrative", "team"]

    def test_explain_insight(self, company_id):
        from uglybaby.mcp_server import explain_insight
        match = explain_insight(company_id, "pilot retention data")
        assert match["section"] == "Traction"
        assert match["company_context"].endswith("Show three months of retention.")

    def test_explain_insight_no_match(self, company_id):
        from uglybaby.mcp_server import explain_insight
        assert explain_insight(company_id, "zzzz qqqq") == {
            "error": "No matching section context", "text": "zzzz qqqq",
        }

    def test_explain_insight_unknown_company(self, session_factory):
        from uglybaby.mcp_server import explain_insight
        assert explain_insight(42, "retention") == {"error": "Company 42 not found"}

    def test_score_text(self):
        from uglybaby.mcp_server import score_text
        result = score_text(
            solution_text="",
            traction_text="We grew 25% month over month with 2,500 customers and strong retention",
        )
        assert result["differentiation"]["score"] == 30
        assert result["differentiation"]["band"] == "unclear"
        assert result["momentum"]["score"] == 79
        assert result["momentum"]["stage"] == "seed"


class TestOverviewResource:
    def test_overview_is_json(self):
        from uglybaby.mcp_server import uglybaby_overview
        data = json.loads(uglybaby_overview())
        assert data["trajectories"] == ["ROCKETSHIP", "STRONG MOMENTUM", "BUILDING", "EARLY STAGE"]
