"""Prioritized action plan extracted from a generated memo.

Concerns from the VC Quick Take are the strongest signal and are processed
first; section VC reflections add further issues; the list is backfilled with
category defaults to at least three items and capped at five.  Each category
appears at most once.  Examples and fixes are canned per category, not
generated from the company's own text.
"""
from __future__ import annotations

import re
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from uglybaby.keywords import contains_any
from uglybaby.schemas import MemoContent, VCQuickTake, VCReflection
from uglybaby.taxonomy import (
    ACTION_CATEGORIES,
    CATEGORY_FALLBACKS,
    DEFAULT_CATEGORY,
    MAX_ACTION_ITEMS,
    MIN_ACTION_ITEMS,
    SECTION_TITLE_CATEGORIES,
    SUMMARY_CRITICAL,
    SUMMARY_DEFAULT,
    SUMMARY_NARRATIVE,
    SUMMARY_PROOF_AND_TEAM,
    CategorySpec,
)


@dataclass
class ActionItem:
    id: str
    priority: int
    category: str
    problem: str
    impact: str
    how_to_fix: str
    bad_example: str
    good_example: str


@dataclass
class ActionPlan:
    items: list[ActionItem]
    overall_urgency: str
    summary_line: str


@dataclass
class _Issue:
    text: str
    category: str


# ---------------------------------------------------------------------------
# Categorization
# ---------------------------------------------------------------------------


def categorize_issue(text: str, categories: Sequence[CategorySpec] = ACTION_CATEGORIES) -> str:
    """Map a concern to a category: keyword sets first, then broad fallbacks."""
    lower = text.lower()
    for spec in categories:
        if contains_any(lower, spec.keywords):
            return spec.key
    for substrings, category in CATEGORY_FALLBACKS:
        if contains_any(lower, substrings):
            return category
    return DEFAULT_CATEGORY


def categorize_section_title(title: str) -> str:
    lower = title.lower()
    for substrings, category in SECTION_TITLE_CATEGORIES:
        if contains_any(lower, substrings):
            return category
    return DEFAULT_CATEGORY


_SENTENCE_SPLIT_RE = re.compile(r"[.!?]+")


def relevant_sentence(text: str, keywords: Sequence[str]) -> str:
    """First sentence mentioning any keyword, else the first sentence."""
    sentences = _SENTENCE_SPLIT_RE.split(text)
    for sentence in sentences:
        if contains_any(sentence, keywords):
            return sentence.strip()
    return sentences[0].strip()


def clean_problem_text(text: str) -> str:
    """Strip markdown emphasis and bullets, capitalize the first letter."""
    cleaned = text.replace("**", "").replace("*", "")
    cleaned = re.sub(r"^[-•]\s*", "", cleaned).strip()
    return cleaned[:1].upper() + cleaned[1:]


def issues_from_reflection(
    reflection: VCReflection,
    section_title: str,
    categories: Sequence[CategorySpec] = ACTION_CATEGORIES,
) -> list[_Issue]:
    issues: list[_Issue] = []

    if reflection.analysis:
        for spec in categories:
            if contains_any(reflection.analysis, spec.keywords):
                issues.append(_Issue(relevant_sentence(reflection.analysis, spec.keywords), spec.key))
                break  # one issue per section

    question = reflection.first_question()
    if question and not any(question[:20] in i.text for i in issues):
        issues.append(_Issue(
            f'Address the question: "{question}"', categorize_section_title(section_title),
        ))
    return issues


# ---------------------------------------------------------------------------
# Plan assembly
# ---------------------------------------------------------------------------


def _make_item(index: int, text: str, spec: CategorySpec, priority: int) -> ActionItem:
    return ActionItem(
        id=f"action-{index}",
        priority=priority,
        category=spec.key,
        problem=clean_problem_text(text),
        impact=spec.impact,
        how_to_fix=spec.default_fix,
        bad_example=spec.bad_example,
        good_example=spec.good_example,
    )


def overall_urgency(item_count: int) -> str:
    if item_count >= 4:
        return "critical"
    if item_count >= 2:
        return "high"
    return "moderate"


def summary_line(items: Sequence[ActionItem], urgency: str) -> str:
    """Pick the summary template; earlier branches take precedence."""
    cats = {i.category for i in items}
    if urgency == "critical":
        return SUMMARY_CRITICAL
    if "traction" in cats and "team" in cats:
        return SUMMARY_PROOF_AND_TEAM
    if "narrative" in cats:
        return SUMMARY_NARRATIVE
    return SUMMARY_DEFAULT


def extract_action_plan(
    memo: MemoContent | Mapping[str, Any],
    vc_quick_take: VCQuickTake | Mapping[str, Any] | None = None,
    categories: Sequence[CategorySpec] = ACTION_CATEGORIES,
) -> ActionPlan:
    """Build the action plan for a memo.

    Args:
        memo: Structured memo content (model or camelCase dict).
        vc_quick_take: Optional Quick Take with ``concerns``/``strengths``.
        categories: Ordered category table; order is the backfill order.
    """
    if not isinstance(memo, MemoContent):
        memo = MemoContent.model_validate(memo)
    if vc_quick_take is not None and not isinstance(vc_quick_take, VCQuickTake):
        vc_quick_take = VCQuickTake.model_validate(vc_quick_take)

    specs = {spec.key: spec for spec in categories}
    items: list[ActionItem] = []
    used: set[str] = set()
    counter = 0

    def add(text: str, category: str) -> None:
        nonlocal counter
        counter += 1
        items.append(_make_item(counter, text, specs[category], len(items) + 1))
        used.add(category)

    if vc_quick_take is not None:
        for concern in vc_quick_take.concerns:
            category = categorize_issue(concern, categories)
            if category not in used and category in specs:
                add(concern, category)

    for section in memo.sections:
        if section.vc_reflection is None:
            continue
        for issue in issues_from_reflection(section.vc_reflection, section.title, categories):
            if issue.category not in used and issue.category in specs and len(items) < MAX_ACTION_ITEMS:
                add(issue.text, issue.category)

    while len(items) < MIN_ACTION_ITEMS:
        unused = next((spec for spec in categories if spec.key not in used), None)
        if unused is None:
            break
        add(unused.default_problem, unused.key)

    final = items[:MAX_ACTION_ITEMS]
    urgency = overall_urgency(len(final))
    return ActionPlan(items=final, overall_urgency=urgency, summary_line=summary_line(final, urgency))
