"""Company-specific context for insight tooltips.

The memo pipeline stores per-section tool output (``sectionScore``,
``vcInvestmentLogic``).  :func:`extract_company_insight_context` folds that
into a lookup keyed by section name, and :func:`get_company_context_for_insight`
finds the reasoning sentence that best explains a given concern.

Matching is a relevance approximation: query words are looked up as
substrings in each reasoning sentence and weighted by length, with a bonus for
several distinct hits.  Weak matches fall back to a section keyword table.
No precision guarantee is made.
"""
from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from uglybaby.keywords import contains_any
from uglybaby.taxonomy import (
    ACTION_PHRASE_RE,
    COHERENCE_RE,
    EVIDENCE_PATTERNS,
    INSIGHT_STOPWORDS,
    LOW_CONFIDENCE,
    MAX_IMPROVEMENT_SUGGESTIONS,
    MAX_INSIGHT_EVIDENCE,
    MIN_SENTENCE_SCORE,
    MIN_WORD_LENGTH,
    SCORE_GAP_THRESHOLD,
    SECTION_KEYWORDS,
)
from uglybaby.utils import safe_array, safe_number, safe_text


@dataclass
class SectionInsight:
    section: str
    score: float | None = None
    benchmark: float | None = None
    reasoning: str = ""
    key_condition: str = ""
    decision: str = ""
    what_this_tells_vc: str = ""
    fundability_impact: str = ""
    top_insight: str = ""
    assumptions: list[str] = field(default_factory=list)
    what_would_change: list[str] = field(default_factory=list)
    confidence_score: float | None = None
    evidence_points: list[str] = field(default_factory=list)


@dataclass
class CompanyInsightContext:
    company_name: str
    stage: str
    category: str | None = None
    section_insights: dict[str, SectionInsight] = field(default_factory=dict)
    key_evidence: list[str] = field(default_factory=list)
    coherence_score: int | None = None
    data_quality_notes: list[str] = field(default_factory=list)


@dataclass
class InsightMatch:
    section: str
    company_context: str
    evidence: list[str]


# ---------------------------------------------------------------------------
# Extraction
# ---------------------------------------------------------------------------


def _is_low_confidence(confidence: float | None) -> bool:
    return bool(confidence) and confidence < LOW_CONFIDENCE


def reasoning_evidence(reasoning: str) -> list[str]:
    """Literal evidence snippets found in AI reasoning text, pattern by pattern."""
    found: list[str] = []
    for pattern in EVIDENCE_PATTERNS:
        found.extend(m.strip() for m in pattern.findall(reasoning))
    return found


def extract_section_insight(section: str, tools: Mapping[str, Any]) -> SectionInsight | None:
    """Project one section's tool output; ``None`` if it carries nothing useful."""
    insight = SectionInsight(section=section)

    section_score = tools.get("sectionScore")
    if isinstance(section_score, Mapping):
        insight.score = safe_number(section_score.get("score"), None)
        insight.benchmark = safe_number(section_score.get("vcBenchmark"), None)
        insight.what_this_tells_vc = safe_text(section_score.get("whatThisTellsVC"))
        insight.fundability_impact = safe_text(section_score.get("fundabilityImpact"))
        insight.top_insight = safe_text(section_score.get("topInsight"))

        assessment = section_score.get("assessment")
        if isinstance(assessment, Mapping):
            insight.assumptions = [safe_text(a) for a in safe_array(assessment.get("assumptions"))]
            insight.what_would_change = [
                safe_text(w) for w in safe_array(assessment.get("whatWouldChangeThisAssessment"))
            ]
            insight.confidence_score = safe_number(assessment.get("confidenceScore"), None)
            insight.evidence_points.extend(insight.assumptions)

    logic = tools.get("vcInvestmentLogic")
    if isinstance(logic, Mapping):
        insight.reasoning = safe_text(logic.get("reasoning"))
        insight.key_condition = safe_text(logic.get("keyCondition"))
        insight.decision = safe_text(logic.get("decision"))
        insight.evidence_points.extend(reasoning_evidence(insight.reasoning))

    if insight.reasoning or insight.what_this_tells_vc or insight.score is not None:
        return insight
    return None


def extract_company_insight_context(
    section_tools: Mapping[str, Mapping[str, Any]],
    company_name: str,
    stage: str,
    category: str | None = None,
) -> CompanyInsightContext:
    context = CompanyInsightContext(company_name=company_name, stage=stage, category=category)

    for section, tools in section_tools.items():
        if not isinstance(tools, Mapping):
            continue
        insight = extract_section_insight(section, tools)
        if insight is None:
            continue
        context.section_insights[section] = insight
        context.key_evidence.extend(insight.evidence_points)

        if _is_low_confidence(insight.confidence_score):
            context.data_quality_notes.append(
                f"{section}: Low confidence ({insight.confidence_score:g}/100)"
            )
        for assumption in insight.assumptions:
            m = COHERENCE_RE.search(assumption)
            if m:
                context.coherence_score = int(m.group(1))

    return context


# ---------------------------------------------------------------------------
# Matching
# ---------------------------------------------------------------------------

_WORD_RE = re.compile(r"[^\W_]+")
_SENTENCE_RE = re.compile(r"(?<=[.!?])\s+(?=[A-Z])")


@dataclass
class _Candidate:
    section: str
    sentence: str
    score: float


def query_words(text: str, stopwords: frozenset[str] = INSIGHT_STOPWORDS) -> list[str]:
    """Distinct lowercase words of at least four characters, minus stopwords."""
    words: list[str] = []
    for w in _WORD_RE.findall(text.lower()):
        if len(w) >= MIN_WORD_LENGTH and w not in stopwords and w not in words:
            words.append(w)
    return words


def split_sentences(text: str) -> list[str]:
    return [s.strip() for s in _SENTENCE_RE.split(text) if s.strip()]


def sentence_score(sentence: str, words: list[str]) -> float:
    lower = sentence.lower()
    hits = [w for w in words if w in lower]
    score = float(sum(len(w) for w in hits))
    if len(hits) >= 3:
        score *= 2
    elif len(hits) >= 2:
        score *= 1.5
    return score


def _best_sentence(words: list[str], context: CompanyInsightContext) -> _Candidate | None:
    best: _Candidate | None = None
    if not words:
        return None
    for section, insight in context.section_insights.items():
        for sentence in split_sentences(insight.reasoning):
            score = sentence_score(sentence, words)
            if score > 0 and (best is None or score > best.score):
                best = _Candidate(section, sentence, score)
    return best


def _find_section(context: CompanyInsightContext, name: str) -> SectionInsight | None:
    wanted = name.lower()
    for section, insight in context.section_insights.items():
        if section.lower() == wanted:
            return insight
    return None


def _keyword_section(text: str, context: CompanyInsightContext) -> _Candidate | None:
    lower = text.lower()
    for name, keywords in SECTION_KEYWORDS:
        if not contains_any(lower, keywords):
            continue
        insight = _find_section(context, name)
        if insight is None:
            continue
        sentences = split_sentences(insight.reasoning or insight.what_this_tells_vc)
        if sentences:
            return _Candidate(insight.section, sentences[0], 0.0)
    return None


def _section_evidence(insight: SectionInsight) -> list[str]:
    evidence = list(insight.assumptions[:MAX_INSIGHT_EVIDENCE])
    if insight.score is not None and insight.benchmark is not None:
        delta = insight.score - insight.benchmark
        if delta < SCORE_GAP_THRESHOLD:
            evidence.append(
                f"{insight.section} score: {insight.score:g}/{insight.benchmark:g} benchmark ({delta:g} gap)"
            )
    if _is_low_confidence(insight.confidence_score):
        evidence.append(f"Confidence: {insight.confidence_score:g}/100 (data quality issues)")
    return evidence[:MAX_INSIGHT_EVIDENCE]


def get_company_context_for_insight(
    insight_text: str, context: CompanyInsightContext,
) -> InsightMatch | None:
    """Find the stored reasoning that best explains *insight_text*.

    Returns ``None`` when there are no sections or nothing matches.
    """
    if not context.section_insights:
        return None

    best = _best_sentence(query_words(insight_text), context)
    if best is None or best.score < MIN_SENTENCE_SCORE:
        fallback = _keyword_section(insight_text, context)
        if fallback is not None:
            best = fallback
        elif best is None:
            # Relaxed pass: stopwords count too
            best = _best_sentence(query_words(insight_text, frozenset()), context)
    if best is None:
        return None

    insight = context.section_insights[best.section]
    company_context = best.sentence
    if company_context and not company_context.endswith((".", "!", "?")):
        company_context += "."
    if insight.key_condition and insight.key_condition[:30] not in company_context:
        company_context = f"{company_context} {insight.key_condition}".strip()

    evidence = _section_evidence(insight)
    if not company_context and not evidence:
        return None
    return InsightMatch(
        section=best.section,
        company_context=company_context or "This assessment is based on your provided data.",
        evidence=evidence,
    )


def get_improvement_suggestions(section: str, context: CompanyInsightContext) -> list[str]:
    """What would change the assessment, plus asks parsed from the key condition."""
    insight = context.section_insights.get(section)
    if insight is None:
        return []
    suggestions = list(insight.what_would_change)
    if insight.key_condition:
        for phrase in ACTION_PHRASE_RE.findall(insight.key_condition):
            suggestions.append(phrase[:1].upper() + phrase[1:])
    return suggestions[:MAX_IMPROVEMENT_SUGGESTIONS]
