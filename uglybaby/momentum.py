"""Momentum scorecard: is the company on a venture trajectory?

Growth rate and customer count are pulled out of traction text with ordered
regexes (first match wins, no plausibility check).  Revenue, retention and
velocity signals are plain keyword hits.  The combined score starts at 30 and
is capped at 100.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field

from uglybaby.keywords import matched_keywords
from uglybaby.taxonomy import (
    DEFAULT_BENCHMARK_STAGE,
    DEFAULT_USER_THRESHOLD,
    GROWTH_PATTERNS,
    GROWTH_POINTS,
    MOMENTUM_BASE_SCORE,
    RETENTION_KEYWORDS,
    REVENUE_KEYWORDS,
    SIGNAL_POINTS,
    STAGE_BENCHMARKS,
    STAGE_USER_THRESHOLDS,
    TRAJECTORY_BANDS,
    USER_COUNT_PATTERNS,
    VELOCITY_KEYWORDS,
    Benchmark,
)

log = logging.getLogger(__name__)


@dataclass
class MomentumMetrics:
    growth_rate: int | None = None
    user_count: int | None = None
    revenue_signals: list[str] = field(default_factory=list)
    retention_signals: list[str] = field(default_factory=list)
    velocity_signals: list[str] = field(default_factory=list)


@dataclass
class MomentumResult:
    metrics: MomentumMetrics
    score: int
    trajectory: str
    stage: str
    benchmarks: list[Benchmark]
    has_data: bool


def normalize_stage(stage: str) -> str:
    return stage.strip().lower()


def parse_count(raw: str) -> int:
    """Parse ``"2,500"`` or ``"1.5k"`` into an integer count."""
    s = raw.strip().replace(",", "")
    multiplier = 1
    if s[-1:] in ("k", "K"):
        multiplier = 1000
        s = s[:-1]
    return int(round(float(s) * multiplier))


def extract_growth_rate(text: str) -> int | None:
    for pattern in GROWTH_PATTERNS:
        m = pattern.search(text)
        if m:
            return int(m.group(1))
    return None


def extract_user_count(text: str) -> int | None:
    for pattern in USER_COUNT_PATTERNS:
        m = pattern.search(text)
        if m:
            return parse_count(m.group(1))
    return None


def extract_momentum_metrics(text: str) -> MomentumMetrics:
    return MomentumMetrics(
        growth_rate=extract_growth_rate(text),
        user_count=extract_user_count(text),
        revenue_signals=matched_keywords(text, REVENUE_KEYWORDS),
        retention_signals=matched_keywords(text, RETENTION_KEYWORDS),
        velocity_signals=matched_keywords(text, VELOCITY_KEYWORDS),
    )


def user_threshold(stage: str) -> int:
    return STAGE_USER_THRESHOLDS.get(normalize_stage(stage), DEFAULT_USER_THRESHOLD)


def momentum_score(metrics: MomentumMetrics, stage: str) -> int:
    score = MOMENTUM_BASE_SCORE

    if metrics.growth_rate:
        for minimum, points in GROWTH_POINTS:
            if metrics.growth_rate >= minimum:
                score += points
                break

    if metrics.user_count:
        threshold = user_threshold(stage)
        if metrics.user_count >= threshold:
            score += 20
        elif metrics.user_count >= threshold / 2:
            score += 10

    score += len(metrics.revenue_signals) * SIGNAL_POINTS["revenue"]
    score += len(metrics.retention_signals) * SIGNAL_POINTS["retention"]
    score += len(metrics.velocity_signals) * SIGNAL_POINTS["velocity"]
    return min(100, score)


def growth_trajectory(score: int) -> str:
    for minimum, label in TRAJECTORY_BANDS:
        if score >= minimum:
            return label
    return TRAJECTORY_BANDS[-1][1]


def stage_benchmarks(stage: str) -> list[Benchmark]:
    """Benchmark rows for *stage*; unrecognized stages use the seed rows."""
    key = normalize_stage(stage)
    if key not in STAGE_BENCHMARKS:
        log.debug("No benchmarks for stage %r, using %r", stage, DEFAULT_BENCHMARK_STAGE)
        key = DEFAULT_BENCHMARK_STAGE
    return list(STAGE_BENCHMARKS[key])


def compute_momentum(traction_text: str, stage: str) -> MomentumResult:
    metrics = extract_momentum_metrics(traction_text)
    score = momentum_score(metrics, stage)
    return MomentumResult(
        metrics=metrics,
        score=score,
        trajectory=growth_trajectory(score),
        stage=stage,
        benchmarks=stage_benchmarks(stage),
        has_data=bool(
            metrics.growth_rate or metrics.user_count
            or metrics.revenue_signals or metrics.retention_signals
        ),
    )
