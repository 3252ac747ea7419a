from __future__ import annotations

import json
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import asdict

from mcp.server.fastmcp import FastMCP
from sqlalchemy import select

from uglybaby import services
from uglybaby.db import init_db, session_scope
from uglybaby.differentiation import compute_differentiation, differentiation_band
from uglybaby.models import Company
from uglybaby.momentum import compute_momentum

log = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------


@asynccontextmanager
async def uglybaby_lifespan(server: FastMCP) -> AsyncIterator[None]:
    init_db()
    yield


mcp = FastMCP(
    "UglyBaby",
    instructions=(
        "UglyBaby scores startup investment memos the way a VC would read them. "
        "Start with list_companies() to browse, then get_scorecard(id) for the "
        "differentiation, momentum, action plan, and insight summary of one company. "
        "Use explain_insight(id, text) to ground a concern in the memo's own evidence."
    ),
    lifespan=uglybaby_lifespan,
    json_response=True,
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _get_or_error(session, model, entity_id, label="Entity"):
    obj = session.execute(select(model).where(model.id == entity_id)).scalars().first()
    if not obj:
        return None, {"error": f"{label} {entity_id} not found"}
    return obj, None


# ---------------------------------------------------------------------------
# Resource
# ---------------------------------------------------------------------------


@mcp.resource("uglybaby://overview")
def uglybaby_overview() -> str:
    """Overview of UglyBaby: data model, scorecards, and workflow."""
    return json.dumps({
        "system": "UglyBaby: heuristic memo scoring for startup founders",
        "data_model": {
            "company": "A startup with a name, funding stage, category, and description.",
            "response": "One questionnaire answer keyed by question_key (e.g. solution_core, traction_proof).",
            "memo": "AI-generated memo content (sections, VC reflections, quick take) plus per-section tools.",
        },
        "scorecards": {
            "differentiation": "Six factors rated strong/moderate/weak against doing nothing and competitors. Score 0-100.",
            "momentum": "Growth rate, user count, and traction signals. Score 0-100 with a trajectory label.",
            "action_plan": "Three to five prioritized fixes drawn from the memo's VC reflections.",
            "insights": "Section scores, key conditions, and evidence aggregated from memo tools.",
        },
        "workflow": [
            "1. list_companies(): browse companies, optionally filtered by stage.",
            "2. get_company(id): answers and memo status.",
            "3. get_scorecard(id): all scorecards in one call.",
            "4. get_action_plan(id): what to fix first.",
            "5. explain_insight(id, text): company-specific context for a concern.",
            "6. score_text(...): score ad-hoc text without storing anything.",
        ],
        "trajectories": ["ROCKETSHIP", "STRONG MOMENTUM", "BUILDING", "EARLY STAGE"],
    }, indent=2)


# ---------------------------------------------------------------------------
# Tools: Companies
# ---------------------------------------------------------------------------


@mcp.tool()
def list_companies(stage: str | None = None, search: str | None = None) -> list[dict]:
    """List companies.

    Args:
        stage: Filter by stage. Comma-separated, e.g. "pre-seed,seed".
        search: Free-text search across name and description.
    """
    with session_scope() as session:
        return services.list_companies(session, stage=stage, search=search)


@mcp.tool()
def get_company(company_id: int) -> dict:
    """Get one company with all of its questionnaire answers."""
    with session_scope() as session:
        company, err = _get_or_error(session, Company, company_id, "Company")
        return err if err else services.company_detail(company)


@mcp.tool()
def get_stats() -> dict:
    """Get summary statistics: company counts by stage and momentum trajectory."""
    with session_scope() as session:
        return services.compute_stats(session)


# ---------------------------------------------------------------------------
# Tools: Scoring
# ---------------------------------------------------------------------------


@mcp.tool()
def get_scorecard(company_id: int) -> dict:
    """Differentiation, momentum, action plan, and insight summary for one company."""
    with session_scope() as session:
        company, err = _get_or_error(session, Company, company_id, "Company")
        return err if err else services.scorecard(company)


@mcp.tool()
def get_action_plan(company_id: int) -> dict:
    """Prioritized action items (3 to 5) drawn from the company's latest memo."""
    with session_scope() as session:
        company, err = _get_or_error(session, Company, company_id, "Company")
        return err if err else services.action_plan_for(company)


@mcp.tool()
def explain_insight(company_id: int, text: str) -> dict:
    """Find the memo section and evidence that best explain a concern or insight.

    Args:
        company_id: Company to look up.
        text: The concern or insight, e.g. "customer retention looks weak".
    """
    with session_scope() as session:
        company, err = _get_or_error(session, Company, company_id, "Company")
        if err:
            return err
        match = services.explain_insight(company, text)
        if match is None:
            return {"error": "No matching section context", "text": text}
        return match


@mcp.tool()
def score_text(solution_text: str = "", traction_text: str = "", stage: str = "seed") -> dict:
    """Score ad-hoc text without storing anything.

    Args:
        solution_text: Solution description, rated for differentiation.
        traction_text: Traction description, parsed for momentum metrics.
        stage: Funding stage used for momentum thresholds and benchmarks.
    """
    diff = compute_differentiation(solution_text, None, "")
    return {
        "differentiation": {**asdict(diff), "band": differentiation_band(diff.score)},
        "momentum": asdict(compute_momentum(traction_text, stage)),
    }


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def main():
    """Run the UglyBaby MCP server over stdio."""
    mcp.run()


if __name__ == "__main__":
    main()
