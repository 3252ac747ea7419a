"""Differentiation matrix: how a solution stacks up against competitors and doing nothing.

Each of the six factors in :data:`~uglybaby.taxonomy.DIFFERENTIATION_FACTORS`
is rated ``strong`` when the solution/problem text mentions any of its
keywords, otherwise it keeps the factor's default tier.  The "do nothing" and
"competitors" columns are fixed per factor and never derived from text.

Score per factor is ``(yours - competitors) * 10 + 10``; the average is
multiplied by 3 and clamped to 0-100.  Against the default ``moderate``
competitor baseline that puts every company between 30 (no keywords) and 60
(every factor strong).
"""
from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field

from uglybaby.keywords import contains_any
from uglybaby.taxonomy import (
    DIFFERENTIATION_FACTORS,
    MAX_SUGGESTIONS,
    MODERATE,
    STRONG,
    TIER_VALUE,
    WEAK,
    FactorSpec,
)


@dataclass
class DifferentiationFactor:
    factor: str
    your_solution: str
    do_nothing: str
    competitors: str


@dataclass
class DifferentiationResult:
    company_name: str
    factors: list[DifferentiationFactor]
    score: int
    suggestions: list[str] = field(default_factory=list)
    strong_count: int = 0


def classify_factors(
    solution_text: str,
    problem_text: str | None = None,
    factors: Sequence[FactorSpec] = DIFFERENTIATION_FACTORS,
) -> list[DifferentiationFactor]:
    """Rate the solution on every factor by keyword presence."""
    blob = f"{solution_text.lower()} {(problem_text or '').lower()}"
    return [
        DifferentiationFactor(
            factor=spec.name,
            your_solution=STRONG if contains_any(blob, spec.keywords) else spec.default_tier,
            do_nothing=spec.do_nothing,
            competitors=spec.competitors,
        )
        for spec in factors
    ]


def differentiation_score(factors: Sequence[DifferentiationFactor]) -> int:
    if not factors:
        return 0
    total = 0
    for f in factors:
        delta = TIER_VALUE[f.your_solution] - TIER_VALUE[f.competitors]
        total += delta * 10 + 10
    return min(100, max(0, round(total / len(factors) * 3)))


def uvp_suggestions(
    rated: Sequence[DifferentiationFactor],
    factors: Sequence[FactorSpec] = DIFFERENTIATION_FACTORS,
) -> list[str]:
    """Canned improvement lines for factors that are not yet strong."""
    specs = {spec.name: spec for spec in factors}
    suggestions: list[str] = []
    for f in rated:
        if f.your_solution not in (WEAK, MODERATE):
            continue
        spec = specs.get(f.factor)
        if spec is not None and spec.suggestion:
            suggestions.append(spec.suggestion)
    return suggestions[:MAX_SUGGESTIONS]


def differentiation_band(score: int) -> str:
    if score >= 70:
        return "clear"
    if score >= 50:
        return "emerging"
    return "unclear"


def compute_differentiation(
    solution_text: str,
    problem_text: str | None,
    company_name: str,
    factors: Sequence[FactorSpec] = DIFFERENTIATION_FACTORS,
) -> DifferentiationResult:
    """Build the differentiation matrix, score, and suggestions.

    Args:
        solution_text: Free text describing the solution. May be empty.
        problem_text: Optional problem text, scanned together with the solution.
        company_name: Carried through for display; does not affect the score.
        factors: Factor table, defaults to the six standard factors.
    """
    rated = classify_factors(solution_text, problem_text, factors)
    return DifferentiationResult(
        company_name=company_name,
        factors=rated,
        score=differentiation_score(rated),
        suggestions=uvp_suggestions(rated, factors),
        strong_count=sum(1 for f in rated if f.your_solution == STRONG),
    )
