"""Pydantic schemas: API request/response bodies and the stored memo JSON shapes."""
from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel


# ---------------------------------------------------------------------------
# Memo content (written upstream by the memo generation pipeline, camelCase)
# ---------------------------------------------------------------------------


class _MemoShape(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


class VCQuestion(_MemoShape):
    question: str = ""
    vc_rationale: str = ""
    what_to_prepare: str = ""


class VCReflection(_MemoShape):
    analysis: str = ""
    questions: list[str | VCQuestion] = []
    benchmarking: str = ""
    conclusion: str = ""

    def first_question(self) -> str:
        if not self.questions:
            return ""
        q = self.questions[0]
        return q if isinstance(q, str) else q.question


class VCQuickTake(_MemoShape):
    verdict: str = ""
    concerns: list[str] = []
    strengths: list[str] = []
    readiness_level: str = ""
    readiness_rationale: str = ""


class MemoParagraph(_MemoShape):
    text: str = ""
    emphasis: str | None = None


class MemoNarrative(_MemoShape):
    paragraphs: list[MemoParagraph] = []
    key_points: list[str] = []


class MemoSection(_MemoShape):
    title: str = ""
    narrative: MemoNarrative | None = None
    # Older memos put paragraphs directly on the section
    paragraphs: list[MemoParagraph] = []
    vc_reflection: VCReflection | None = None

    def plain_text(self) -> str:
        paragraphs = self.narrative.paragraphs if self.narrative else []
        return "\n\n".join(p.text for p in (paragraphs or self.paragraphs) if p.text)


class MemoContent(_MemoShape):
    sections: list[MemoSection] = []
    vc_quick_take: VCQuickTake | None = None
    generated_at: str | None = None

    def section(self, title: str) -> MemoSection | None:
        wanted = title.strip().lower()
        for s in self.sections:
            if s.title.strip().lower() == wanted:
                return s
        return None


# ---------------------------------------------------------------------------
# Companies & questionnaire
# ---------------------------------------------------------------------------


class CompanyCreate(BaseModel):
    name: str
    stage: str = ""
    category: str = ""
    description: str = ""

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("name must not be blank")
        return v


class CompanyUpdate(BaseModel):
    name: str | None = None
    stage: str | None = None
    category: str | None = None
    description: str | None = None

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str | None) -> str | None:
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError("name must not be blank")
        return v


class CompanyOut(BaseModel):
    id: int
    name: str
    stage: str
    category: str
    description: str
    response_count: int = 0
    has_memo: bool = False
    created_at: str | None = None


class ResponseOut(BaseModel):
    question_key: str
    answer: str
    updated_at: str | None = None


class CompanyDetail(CompanyOut):
    responses: list[ResponseOut] = []


class ResponseUpsert(BaseModel):
    question_key: str
    answer: str = ""

    @field_validator("question_key")
    @classmethod
    def key_must_be_safe(cls, v: str) -> str:
        v = v.strip()
        if not v or not all(c.isalnum() or c in "_-" for c in v):
            raise ValueError("question_key must contain only letters, numbers, hyphens, and underscores")
        return v


class MemoUpload(BaseModel):
    content: dict[str, Any]
    tools: dict[str, dict[str, Any]] = {}


class ImportResult(BaseModel):
    companies_created: int
    companies_updated: int
    responses_written: int
    rows_skipped: int


# ---------------------------------------------------------------------------
# Stateless scoring requests
# ---------------------------------------------------------------------------


class DifferentiationRequest(BaseModel):
    solution_text: str = ""
    problem_text: str | None = None
    company_name: str = ""


class MomentumRequest(BaseModel):
    traction_text: str = ""
    stage: str = "seed"
