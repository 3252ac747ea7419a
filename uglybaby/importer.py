from __future__ import annotations

import logging
from pathlib import Path

import openpyxl
from sqlalchemy import select
from sqlalchemy.orm import Session

from uglybaby.models import Company
from uglybaby.schemas import ImportResult
from uglybaby.services import normalize_name, upsert_response

log = logging.getLogger(__name__)


def _s(value: object) -> str:
    """Safely coerce cell value to stripped string."""
    if value is None:
        return ""
    return str(value).strip()


def _col(row: tuple, idx: int) -> object:
    """Safely get a column value from a row tuple."""
    return row[idx] if idx < len(row) else None


# ---------------------------------------------------------------------------
# Sheet parsers
# ---------------------------------------------------------------------------

# field_name -> column_index
_COMPANY_COLS = {"name": 0, "stage": 1, "category": 2, "description": 3}
_ANSWER_COLS = {"company": 0, "question_key": 1, "answer": 2}


def _parse_companies(ws) -> list[dict]:
    out: list[dict] = []
    for row in ws.iter_rows(min_row=2, values_only=True):
        if not row or not _s(_col(row, _COMPANY_COLS["name"])):
            continue
        out.append({field: _s(_col(row, idx)) for field, idx in _COMPANY_COLS.items()})
    return out


def _parse_answers(ws) -> list[dict]:
    out: list[dict] = []
    for row in ws.iter_rows(min_row=2, values_only=True):
        if not row:
            continue
        entry = {field: _s(_col(row, idx)) for field, idx in _ANSWER_COLS.items()}
        if not entry["company"] and not entry["question_key"]:
            continue
        out.append(entry)
    return out


def _upsert_company(session: Session, data: dict, existing: dict[str, Company]) -> bool:
    """Insert new or update existing company. Returns True if created."""
    key = normalize_name(data["name"])
    if key in existing:
        company = existing[key]
        for field in ("stage", "category", "description"):
            if data.get(field):
                setattr(company, field, data[field])
        return False
    company = Company(**data)
    session.add(company)
    existing[key] = company
    return True


def import_xlsx(file_path: str | Path, session: Session) -> ImportResult:
    """Import a workbook with a "Companies" and/or an "Answers" sheet.

    Companies are upserted by case-folded name; answers by (company, question_key).
    Answer rows naming an unknown company or lacking a key are skipped.
    """
    file_path = Path(file_path)
    wb = openpyxl.load_workbook(file_path, read_only=True, data_only=True)

    company_rows: list[dict] = []
    answer_rows: list[dict] = []
    found = False
    for sheet_name in wb.sheetnames:
        lower = sheet_name.strip().casefold()
        if lower in ("companies", "company"):
            company_rows = _parse_companies(wb[sheet_name])
            found = True
        elif lower in ("answers", "responses", "questionnaire"):
            answer_rows = _parse_answers(wb[sheet_name])
            found = True
    wb.close()

    if not found:
        raise ValueError("Workbook needs a 'Companies' or 'Answers' sheet")

    existing: dict[str, Company] = {
        normalize_name(c.name): c for c in session.execute(select(Company)).scalars().all()
    }

    created = updated = 0
    for data in company_rows:
        if _upsert_company(session, data, existing):
            created += 1
        else:
            updated += 1
    session.flush()

    written = skipped = 0
    for row in answer_rows:
        company = existing.get(normalize_name(row["company"]))
        if company is None or not row["question_key"]:
            log.warning("Skipping answer row for %r / %r", row["company"], row["question_key"])
            skipped += 1
            continue
        upsert_response(session, company, row["question_key"], row["answer"])
        written += 1

    session.commit()
    return ImportResult(
        companies_created=created,
        companies_updated=updated,
        responses_written=written,
        rows_skipped=skipped,
    )
