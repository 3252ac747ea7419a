from __future__ import annotations

import logging
import os
import tempfile
from contextlib import asynccontextmanager
from dataclasses import asdict
from pathlib import Path
from typing import Generator

from fastapi import Depends, FastAPI, File, HTTPException, Query, UploadFile
from pydantic import BaseModel, ValidationError
from sqlalchemy.orm import Session

from uglybaby import services
from uglybaby.db import get_session, init_db
from uglybaby.differentiation import compute_differentiation, differentiation_band
from uglybaby.importer import import_xlsx
from uglybaby.models import Company
from uglybaby.momentum import compute_momentum
from uglybaby.schemas import (
    CompanyCreate,
    CompanyDetail,
    CompanyOut,
    CompanyUpdate,
    DifferentiationRequest,
    ImportResult,
    MemoUpload,
    MomentumRequest,
    ResponseOut,
    ResponseUpsert,
)

log = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    yield


app = FastAPI(
    title="UglyBaby",
    version="0.1.0",
    description=(
        "Memo scoring API for startup founders. Stores questionnaire answers and "
        "AI-generated memos, and computes differentiation, momentum, action plans, "
        "and company-specific insight context. All endpoints return JSON."
    ),
    lifespan=lifespan,
    openapi_tags=[
        {"name": "Companies", "description": "Company profiles and questionnaire answers."},
        {"name": "Memos", "description": "Store AI-generated memo content and section tools."},
        {"name": "Scoring", "description": "Heuristic scorecards computed from answers and memos."},
        {"name": "Import", "description": "Bulk import companies and answers from XLSX spreadsheets."},
        {"name": "Stats", "description": "Aggregate statistics and breakdowns."},
    ],
)


# ---------------------------------------------------------------------------
# Dependencies & Helpers
# ---------------------------------------------------------------------------


def db_session() -> Generator[Session, None, None]:
    session = get_session()
    try:
        yield session
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def _get_or_404(session: Session, model, entity_id: int, label: str = "Entity"):
    obj = services.get_entity(session, model, entity_id)
    if not obj:
        raise HTTPException(404, f"{label} not found")
    return obj


# ---------------------------------------------------------------------------
# Routes: Companies
# ---------------------------------------------------------------------------


class CompanyListResponse(BaseModel):
    items: list[CompanyOut]
    total: int


@app.get("/api/companies", response_model=CompanyListResponse,
         tags=["Companies"], summary="List companies with optional stage filter and search")
async def list_companies(
    stage: str | None = Query(None, description="Comma-separated stages, e.g. pre-seed,seed"),
    search: str | None = Query(None, description="Free-text search across name and description"),
    session: Session = Depends(db_session),
):
    items = services.list_companies(session, stage=stage, search=search)
    return {"items": items, "total": len(items)}


@app.post("/api/companies", response_model=CompanyDetail, status_code=201,
          tags=["Companies"], summary="Register a company")
async def create_company(body: CompanyCreate, session: Session = Depends(db_session)):
    company = services.create_company(
        session, name=body.name, stage=body.stage, category=body.category, description=body.description,
    )
    if company is None:
        raise HTTPException(409, f"Company '{body.name}' already exists")
    session.commit()
    return services.company_detail(company)


@app.get("/api/companies/{company_id}", response_model=CompanyDetail,
         tags=["Companies"], summary="Get a company with its questionnaire answers")
async def get_company(company_id: int, session: Session = Depends(db_session)):
    return services.company_detail(_get_or_404(session, Company, company_id, "Company"))


@app.put("/api/companies/{company_id}", response_model=CompanyDetail,
         tags=["Companies"], summary="Update company fields (partial update, null fields ignored)")
async def update_company(company_id: int, body: CompanyUpdate, session: Session = Depends(db_session)):
    company = _get_or_404(session, Company, company_id, "Company")
    if body.name is not None:
        other = services.find_company_by_name(session, body.name)
        if other is not None and other.id != company.id:
            raise HTTPException(409, f"Company '{body.name}' already exists")
    services.apply_updates(company, body.model_dump(), services.UPDATABLE_FIELDS)
    session.commit()
    return services.company_detail(company)


@app.delete("/api/companies/{company_id}", tags=["Companies"],
            summary="Delete a company with its answers and memos")
async def delete_company(company_id: int, session: Session = Depends(db_session)):
    company = _get_or_404(session, Company, company_id, "Company")
    session.delete(company)
    session.commit()
    return {"ok": True}


@app.get("/api/companies/{company_id}/responses", response_model=list[ResponseOut],
         tags=["Companies"], summary="List questionnaire answers")
async def list_responses(company_id: int, session: Session = Depends(db_session)):
    return services.company_detail(_get_or_404(session, Company, company_id, "Company"))["responses"]


@app.put("/api/companies/{company_id}/responses", response_model=ResponseOut,
         tags=["Companies"], summary="Create or overwrite one questionnaire answer")
async def upsert_response(company_id: int, body: ResponseUpsert, session: Session = Depends(db_session)):
    company = _get_or_404(session, Company, company_id, "Company")
    response = services.upsert_response(session, company, body.question_key, body.answer)
    session.commit()
    return {
        "question_key": response.question_key, "answer": response.answer,
        "updated_at": response.updated_at.isoformat() if response.updated_at else None,
    }


# ---------------------------------------------------------------------------
# Routes: Memos
# ---------------------------------------------------------------------------


@app.post("/api/companies/{company_id}/memo", status_code=201,
          tags=["Memos"], summary="Store a generated memo (content + section tools)")
async def upload_memo(company_id: int, body: MemoUpload, session: Session = Depends(db_session)):
    company = _get_or_404(session, Company, company_id, "Company")
    try:
        memo = services.store_memo(session, company, body.content, body.tools)
    except ValidationError as exc:
        raise HTTPException(422, f"Memo content is not valid: {exc.error_count()} error(s)") from exc
    session.commit()
    return {"memo_id": memo.id, "sections": len(body.content.get("sections") or [])}


# ---------------------------------------------------------------------------
# Routes: Scoring
# ---------------------------------------------------------------------------


@app.get("/api/companies/{company_id}/differentiation", tags=["Scoring"],
         summary="Differentiation matrix vs. competitors and doing nothing")
async def get_differentiation(company_id: int, session: Session = Depends(db_session)):
    return services.differentiation_for(_get_or_404(session, Company, company_id, "Company"))


@app.get("/api/companies/{company_id}/momentum", tags=["Scoring"],
         summary="Momentum score, trajectory, and stage benchmarks")
async def get_momentum(company_id: int, session: Session = Depends(db_session)):
    return services.momentum_for(_get_or_404(session, Company, company_id, "Company"))


@app.get("/api/companies/{company_id}/action-plan", tags=["Scoring"],
         summary="Prioritized action items from the latest memo")
async def get_action_plan(company_id: int, session: Session = Depends(db_session)):
    return services.action_plan_for(_get_or_404(session, Company, company_id, "Company"))


@app.get("/api/companies/{company_id}/insights", tags=["Scoring"],
         summary="Section insights aggregated from the latest memo's tools")
async def get_insights(company_id: int, session: Session = Depends(db_session)):
    company = _get_or_404(session, Company, company_id, "Company")
    return asdict(services.insight_context_for(company))


@app.get("/api/companies/{company_id}/insights/explain", tags=["Scoring"],
         summary="Company-specific context for a concern or insight")
async def explain_insight(
    company_id: int,
    text: str = Query(..., min_length=1, description="Concern or insight text to explain"),
    session: Session = Depends(db_session),
):
    company = _get_or_404(session, Company, company_id, "Company")
    match = services.explain_insight(company, text)
    if match is None:
        raise HTTPException(404, "No matching section context")
    return match


@app.get("/api/companies/{company_id}/insights/{section}/suggestions", tags=["Scoring"],
         summary="Improvement suggestions for one memo section")
async def get_suggestions(company_id: int, section: str, session: Session = Depends(db_session)):
    company = _get_or_404(session, Company, company_id, "Company")
    return {"section": section, "suggestions": services.improvement_suggestions_for(company, section)}


@app.get("/api/companies/{company_id}/scorecard", tags=["Scoring"],
         summary="All scorecards for one company")
async def get_scorecard(company_id: int, session: Session = Depends(db_session)):
    return services.scorecard(_get_or_404(session, Company, company_id, "Company"))


@app.post("/api/score/differentiation", tags=["Scoring"],
          summary="Score arbitrary solution text without storing anything")
async def score_differentiation(body: DifferentiationRequest):
    result = compute_differentiation(body.solution_text, body.problem_text, body.company_name)
    return {**asdict(result), "band": differentiation_band(result.score)}


@app.post("/api/score/momentum", tags=["Scoring"],
          summary="Score arbitrary traction text without storing anything")
async def score_momentum(body: MomentumRequest):
    return asdict(compute_momentum(body.traction_text, body.stage))


# ---------------------------------------------------------------------------
# Routes: Import
# ---------------------------------------------------------------------------


@app.post("/api/import", response_model=ImportResult,
          tags=["Import"], summary="Import companies and answers from an XLSX spreadsheet")
async def import_file(file: UploadFile = File(...), session: Session = Depends(db_session)):
    if not file.filename or not file.filename.endswith(".xlsx"):
        raise HTTPException(400, "Only .xlsx files are supported")
    content = await file.read()
    tmp_path = None
    try:
        with tempfile.NamedTemporaryFile(suffix=".xlsx", delete=False) as f:
            tmp_path = Path(f.name)
            f.write(content)
        return import_xlsx(tmp_path, session)
    except ValueError as exc:
        raise HTTPException(400, str(exc)) from exc
    finally:
        if tmp_path:
            tmp_path.unlink(missing_ok=True)


# ---------------------------------------------------------------------------
# Routes: Stats
# ---------------------------------------------------------------------------


@app.get("/api/stats", tags=["Stats"], summary="Company counts by stage and momentum trajectory")
async def get_stats(session: Session = Depends(db_session)):
    return services.compute_stats(session)


# ---------------------------------------------------------------------------
# Startup
# ---------------------------------------------------------------------------


def main():
    import uvicorn
    uvicorn.run(
        "uglybaby.app:app",
        host=os.environ.get("UGLYBABY_HOST", "127.0.0.1"),
        port=int(os.environ.get("UGLYBABY_PORT", "8001")),
    )


if __name__ == "__main__":
    main()
