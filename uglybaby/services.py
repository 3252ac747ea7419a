"""Shared business logic for the UglyBaby API and MCP server."""
from __future__ import annotations

import json
import logging
from collections import Counter
from dataclasses import asdict
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from uglybaby.action_plan import extract_action_plan
from uglybaby.differentiation import compute_differentiation, differentiation_band
from uglybaby.insight_context import (
    CompanyInsightContext,
    extract_company_insight_context,
    get_company_context_for_insight,
    get_improvement_suggestions,
)
from uglybaby.models import Company, Memo, QuestionnaireResponse
from uglybaby.momentum import compute_momentum
from uglybaby.schemas import MemoContent
from uglybaby.utils import json_parse

log = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Questionnaire key groups (joined in order to form scorer input)
# ---------------------------------------------------------------------------

PROBLEM_KEYS = ("problem_core", "problem_description", "problem_evidence", "problem_validation")
SOLUTION_KEYS = ("solution_core", "solution_description", "solution_defensibility")
TRACTION_KEYS = ("traction_proof", "traction_revenue", "traction_milestones", "traction_key_customers")

DEFAULT_STAGE = "Pre-seed"

UPDATABLE_FIELDS = ("name", "stage", "category", "description")


# ---------------------------------------------------------------------------
# Lookup & mutation helpers
# ---------------------------------------------------------------------------


def get_entity(session: Session, model, entity_id: int):
    return session.execute(select(model).where(model.id == entity_id)).scalars().first()


def normalize_name(name: str) -> str:
    """Matching key for company names, shared with the importer."""
    return name.strip().casefold()


def find_company_by_name(session: Session, name: str) -> Company | None:
    # SQLite lower() only folds ASCII, so compare in Python
    wanted = normalize_name(name)
    for company in session.execute(select(Company)).scalars():
        if normalize_name(company.name) == wanted:
            return company
    return None


def apply_updates(obj, updates: dict[str, Any], fields: tuple[str, ...]) -> None:
    """Apply non-None values from updates dict to an ORM object."""
    for field in fields:
        val = updates.get(field)
        if val is not None:
            setattr(obj, field, val)


def create_company(
    session: Session, *, name: str, stage: str = "", category: str = "", description: str = "",
) -> Company | None:
    """Create a company; returns None if the name is already taken (caller must commit)."""
    if find_company_by_name(session, name) is not None:
        return None
    company = Company(name=name.strip(), stage=stage, category=category, description=description)
    session.add(company)
    session.flush()
    return company


def upsert_response(session: Session, company: Company, question_key: str, answer: str) -> QuestionnaireResponse:
    """Insert or overwrite the answer for (company, question_key) (caller must commit)."""
    for r in company.responses:
        if r.question_key == question_key:
            r.answer = answer
            return r
    response = QuestionnaireResponse(company_id=company.id, question_key=question_key, answer=answer)
    company.responses.append(response)
    session.add(response)
    return response


def store_memo(
    session: Session, company: Company, content: dict[str, Any], tools: dict[str, Any] | None = None,
) -> Memo:
    """Validate and attach a generated memo to a company (caller must commit).

    Raises pydantic ``ValidationError`` if *content* is not memo-shaped.
    """
    MemoContent.model_validate(content)
    memo = Memo(
        company_id=company.id,
        content_json=json.dumps(content),
        tools_json=json.dumps(tools or {}),
    )
    company.memos.append(memo)
    session.add(memo)
    session.flush()
    return memo


def latest_memo(company: Company) -> Memo | None:
    if not company.memos:
        return None
    return max(company.memos, key=lambda m: (m.generated_at, m.id))


def memo_content(memo: Memo | None) -> MemoContent:
    if memo is None:
        return MemoContent()
    raw = json_parse(memo.content_json, None)
    if not isinstance(raw, dict):
        log.warning("Memo %s has unreadable content JSON", memo.id)
        return MemoContent()
    return MemoContent.model_validate(raw)


def memo_tools(memo: Memo | None) -> dict[str, Any]:
    if memo is None:
        return {}
    tools = json_parse(memo.tools_json, {})
    if not isinstance(tools, dict):
        log.warning("Memo %s has unreadable tools JSON", memo.id)
        return {}
    return tools


# ---------------------------------------------------------------------------
# Serialization helpers
# ---------------------------------------------------------------------------


def answers_by_key(company: Company) -> dict[str, str]:
    return {r.question_key: r.answer or "" for r in company.responses}


def section_text(company: Company, keys: tuple[str, ...], memo_section: str | None = None) -> str:
    """Join the company's answers for *keys*; fall back to the memo section text."""
    answers = answers_by_key(company)
    text = "\n\n".join(answers[k].strip() for k in keys if answers.get(k, "").strip())
    if text or memo_section is None:
        return text
    section = memo_content(latest_memo(company)).section(memo_section)
    return section.plain_text() if section else ""


def company_stage(company: Company) -> str:
    return company.stage or DEFAULT_STAGE


def company_summary(company: Company) -> dict:
    return {
        "id": company.id, "name": company.name, "stage": company.stage,
        "category": company.category, "description": company.description,
        "response_count": len(company.responses),
        "has_memo": bool(company.memos),
        "created_at": company.created_at.isoformat() if company.created_at else None,
    }


def company_detail(company: Company) -> dict:
    base = company_summary(company)
    base["responses"] = [
        {"question_key": r.question_key, "answer": r.answer,
         "updated_at": r.updated_at.isoformat() if r.updated_at else None}
        for r in sorted(company.responses, key=lambda r: r.question_key)
    ]
    return base


def list_companies(session: Session, *, stage: str | None = None, search: str | None = None) -> list[dict]:
    companies = session.execute(select(Company).order_by(Company.name)).scalars().all()
    items = [company_summary(c) for c in companies]
    if stage:
        stages = {s.strip().lower() for s in stage.split(",")}
        items = [i for i in items if (i["stage"] or "").lower() in stages]
    if search:
        q = search.lower()
        items = [i for i in items if q in i["name"].lower() or q in i["description"].lower()]
    return items


# ---------------------------------------------------------------------------
# Scoring
# ---------------------------------------------------------------------------


def differentiation_for(company: Company) -> dict:
    result = compute_differentiation(
        section_text(company, SOLUTION_KEYS, "Solution"),
        section_text(company, PROBLEM_KEYS, "Problem") or None,
        company.name,
    )
    return {**asdict(result), "band": differentiation_band(result.score)}


def momentum_for(company: Company) -> dict:
    result = compute_momentum(section_text(company, TRACTION_KEYS, "Traction"), company_stage(company))
    return asdict(result)


def action_plan_for(company: Company) -> dict:
    content = memo_content(latest_memo(company))
    return asdict(extract_action_plan(content, content.vc_quick_take))


def insight_context_for(company: Company) -> CompanyInsightContext:
    return extract_company_insight_context(
        memo_tools(latest_memo(company)), company.name, company_stage(company), company.category or None,
    )


def explain_insight(company: Company, text: str) -> dict | None:
    match = get_company_context_for_insight(text, insight_context_for(company))
    return asdict(match) if match is not None else None


def improvement_suggestions_for(company: Company, section: str) -> list[str]:
    return get_improvement_suggestions(section, insight_context_for(company))


def scorecard(company: Company) -> dict:
    """Everything the memo dashboard renders for one company."""
    context = insight_context_for(company)
    return {
        "company": company_summary(company),
        "differentiation": differentiation_for(company),
        "momentum": momentum_for(company),
        "action_plan": action_plan_for(company),
        "insights": {
            "sections": sorted(context.section_insights),
            "key_evidence": context.key_evidence,
            "coherence_score": context.coherence_score,
            "data_quality_notes": context.data_quality_notes,
        },
    }


def compute_stats(session: Session) -> dict:
    companies = session.execute(select(Company)).scalars().all()
    by_stage: Counter[str] = Counter()
    by_trajectory: Counter[str] = Counter()
    with_memo = with_responses = 0
    for c in companies:
        by_stage[c.stage or "Unknown"] += 1
        if c.memos:
            with_memo += 1
        if c.responses:
            with_responses += 1
            by_trajectory[momentum_for(c)["trajectory"]] += 1
    return {
        "total": len(companies), "with_responses": with_responses, "with_memo": with_memo,
        "by_stage": dict(by_stage), "by_trajectory": dict(by_trajectory),
    }
