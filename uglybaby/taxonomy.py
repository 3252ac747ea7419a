"""Scoring taxonomy: keyword tables, canned copy, and ordered priority lists.

Every heuristic scorer in this package reads its vocabulary from here.  Tables
are immutable and ordered; where precedence matters (categorization,
backfill, pattern extraction, summary selection) the order of the tuple *is*
the priority.  Scorers accept an override of their table so the taxonomy can
be tested and extended without touching scoring logic.
"""
from __future__ import annotations

import re
from dataclasses import dataclass

# ---------------------------------------------------------------------------
# Tiers
# ---------------------------------------------------------------------------

STRONG = "strong"
MODERATE = "moderate"
WEAK = "weak"

TIER_VALUE = {STRONG: 3, MODERATE: 2, WEAK: 1}


# ---------------------------------------------------------------------------
# Differentiation factors
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class FactorSpec:
    """One competitive dimension of the differentiation matrix."""
    name: str
    keywords: tuple[str, ...]
    default_tier: str = MODERATE
    do_nothing: str = WEAK
    competitors: str = MODERATE
    suggestion: str | None = None


DIFFERENTIATION_FACTORS: tuple[FactorSpec, ...] = (
    FactorSpec(
        name="Speed / Time to Value",
        keywords=("fast", "quick", "instant", "real-time", "automated", "minutes not hours"),
        suggestion="Quantify time savings (e.g., '10x faster than manual processes')",
    ),
    FactorSpec(
        name="Cost Efficiency",
        keywords=("cheaper", "affordable", "save", "saving", "reduce cost", "roi", "efficient"),
        suggestion="Add specific ROI figures or cost comparison to alternatives",
    ),
    FactorSpec(
        name="Ease of Use",
        keywords=("simple", "easy", "intuitive", "no-code", "self-serve", "frictionless",
                  "seamless", "instant"),
        do_nothing=MODERATE,
    ),
    FactorSpec(
        name="Innovation / Technology",
        keywords=("ai", "machine learning", "proprietary", "patented", "novel", "unique", "first"),
        suggestion="Highlight proprietary technology or unique methodology",
    ),
    FactorSpec(
        name="Integration Capability",
        keywords=("integrate", "connect", "api", "ecosystem", "compatible", "plug"),
        suggestion="Mention key integrations or API capabilities",
    ),
    FactorSpec(
        name="Scalability",
        keywords=("scale", "enterprise", "grow", "unlimited", "any size"),
    ),
)

MAX_SUGGESTIONS = 3


# ---------------------------------------------------------------------------
# Momentum
# ---------------------------------------------------------------------------

# First match wins.
GROWTH_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"(\d+)%\s*(?:month|mom|m/m|weekly|monthly)\s*(?:growth|increase)", re.I),
    re.compile(r"(\d+)%\s*(?:month[\s-]+over[\s-]+month|week[\s-]+over[\s-]+week)", re.I),
    re.compile(r"(?:growing|grew)\s*(?:by\s*)?(\d+)%", re.I),
    re.compile(r"(\d+)x\s*(?:growth|increase)", re.I),
)

_COUNT = r"(\d+(?:,\d{3})*(?:\.\d+)?k?)"

USER_COUNT_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(_COUNT + r"\s*(?:users|customers|clients|subscribers)", re.I),
    re.compile(r"(?:users|customers):\s*" + _COUNT, re.I),
)

REVENUE_KEYWORDS = ("revenue", "arr", "mrr", "paying", "monetizing", "sales", "contracts", "deals")
RETENTION_KEYWORDS = ("retention", "churn", "nps", "engagement", "active", "returning", "loyalty")
VELOCITY_KEYWORDS = ("viral", "organic", "word of mouth", "referral", "waitlist", "pipeline",
                     "accelerating")

MOMENTUM_BASE_SCORE = 30

# (minimum growth %, points), checked in order
GROWTH_POINTS: tuple[tuple[int, int], ...] = ((20, 25), (10, 15), (5, 10))

STAGE_USER_THRESHOLDS = {"pre-seed": 100, "seed": 1000, "series a": 10000}
DEFAULT_USER_THRESHOLD = 500

SIGNAL_POINTS = {"revenue": 3, "retention": 4, "velocity": 3}

TRAJECTORY_BANDS: tuple[tuple[int, str], ...] = (
    (80, "ROCKETSHIP"),
    (60, "STRONG MOMENTUM"),
    (40, "BUILDING"),
    (0, "EARLY STAGE"),
)


@dataclass(frozen=True)
class Benchmark:
    metric: str
    benchmark: str
    vc_expectation: str


STAGE_BENCHMARKS: dict[str, tuple[Benchmark, ...]] = {
    "pre-seed": (
        Benchmark("MoM Growth", "15-20%", "Show early product-market fit signals"),
        Benchmark("Users", "100-500", "Engaged pilot customers or beta users"),
        Benchmark("Revenue", "Optional", "Early monetization is a bonus, not required"),
    ),
    "seed": (
        Benchmark("MoM Growth", "15-25%", "Consistent growth with repeatability"),
        Benchmark("Users", "1,000-5,000", "Evidence of scalable acquisition"),
        Benchmark("Revenue", "$10K-50K MRR", "Clear path to $1M ARR"),
    ),
    "series a": (
        Benchmark("MoM Growth", "10-15%", "T2D3 trajectory (triple, triple, double, double)"),
        Benchmark("Users", "10,000+", "Proven scalable acquisition channels"),
        Benchmark("Revenue", "$1M+ ARR", "Path to $10M ARR visible"),
    ),
}
DEFAULT_BENCHMARK_STAGE = "seed"


# ---------------------------------------------------------------------------
# Action plan categories
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class CategorySpec:
    """Problem category for action-plan items, with its canned copy."""
    key: str
    keywords: tuple[str, ...]
    default_problem: str
    default_fix: str
    impact: str
    bad_example: str
    good_example: str


ACTION_CATEGORIES: tuple[CategorySpec, ...] = (
    CategorySpec(
        key="narrative",
        keywords=("unclear", "vague", "generic", "weak story", "confusing", "not compelling",
                  "missing narrative", "no clear"),
        default_problem="Your narrative doesn't clearly communicate why this matters",
        default_fix="Lead with the specific pain point and quantify the impact on your target customer",
        impact="VCs will pass in the first 30 seconds if they can't understand what you do",
        bad_example="We're building an AI-powered platform that leverages machine learning to optimize workflows.",
        good_example=(
            "Construction delays cost US builders $177B annually. Our tool predicts delays 3 weeks "
            "earlier than any alternative, saving mid-size contractors $2M/year."
        ),
    ),
    CategorySpec(
        key="traction",
        keywords=("no traction", "limited traction", "early stage", "no customers", "no revenue",
                  "pre-revenue", "unproven", "no validation"),
        default_problem="Lack of tangible proof points to validate market demand",
        default_fix="Get 3-5 design partners or LOIs before your next pitch",
        impact="Without proof of demand, VCs see you as a 'nice idea' not an investment",
        bad_example="We have strong interest from potential customers and a growing waitlist.",
        good_example=(
            "12 paying customers at $2K MRR each, 95% retention, 3 enterprise pilots starting Q1 "
            "with $500K combined ACV."
        ),
    ),
    CategorySpec(
        key="team",
        keywords=("missing", "gap", "inexperience", "first-time", "no technical", "solo founder",
                  "incomplete team", "need to hire"),
        default_problem="Critical skill gaps in the founding team",
        default_fix="Add an advisor with domain expertise or recruit a co-founder",
        impact="Investors bet on teams first—this gap makes you a riskier bet",
        bad_example="Our team is passionate about solving this problem and has diverse backgrounds.",
        good_example=(
            "CEO spent 8 years at target customer (Stripe), CTO built ML infrastructure at Google, "
            "combined 3 previous exits."
        ),
    ),
    CategorySpec(
        key="market",
        keywords=("small market", "niche", "unclear tam", "limited scale", "narrow focus",
                  "local only", "not scalable"),
        default_problem="Market size or scalability concerns",
        default_fix="Reframe your market with a credible bottoms-up TAM calculation",
        impact="If the market isn't big enough, even 100% market share won't return the fund",
        bad_example="The global market for our solution is worth $50 billion.",
        good_example=(
            "500K US dental practices x $3K/year willingness to pay = $1.5B SAM. We're starting "
            "with the 50K practices using legacy software X."
        ),
    ),
    CategorySpec(
        key="business",
        keywords=("unit economics", "margins", "ltv", "cac", "burn rate", "unsustainable", "pricing",
                  "monetization unclear"),
        default_problem="Unit economics or business model concerns",
        default_fix="Model your LTV:CAC ratio and path to profitability",
        impact="Unsustainable economics means you'll need more capital at worse terms",
        bad_example="We plan to monetize through a freemium model with premium tiers.",
        good_example="LTV: $18K (36-month avg. retention x $500 MRR). CAC: $2.4K. Ratio: 7.5:1. Payback: 5 months.",
    ),
    CategorySpec(
        key="competition",
        keywords=("commoditized", "no moat", "easy to copy", "incumbent", "well-funded competitor",
                  "differentiation", "defensibility"),
        default_problem="Weak competitive positioning or defensibility",
        default_fix="Articulate your unfair advantage and barriers to entry",
        impact="Without defensibility, any traction you build can be copied by better-funded players",
        bad_example="We're faster, cheaper, and easier to use than the competition.",
        good_example=(
            "Only solution with FDA 510(k) clearance. 18-month regulatory head start. Exclusive data "
            "partnership with Johns Hopkins."
        ),
    ),
)

DEFAULT_CATEGORY = "narrative"

# Secondary heuristics when no category keyword matched: (substrings, category)
CATEGORY_FALLBACKS: tuple[tuple[tuple[str, ...], str], ...] = (
    (("customer", "revenue"), "traction"),
    (("founder", "hire"), "team"),
    (("market", "tam"), "market"),
)

SECTION_TITLE_CATEGORIES: tuple[tuple[tuple[str, ...], str], ...] = (
    (("problem", "solution"), "narrative"),
    (("traction",), "traction"),
    (("team",), "team"),
    (("market",), "market"),
    (("business",), "business"),
    (("competition",), "competition"),
)

MIN_ACTION_ITEMS = 3
MAX_ACTION_ITEMS = 5

SUMMARY_CRITICAL = (
    "Your pitch has fundamental gaps that will get you rejected. Fix these before your next meeting."
)
SUMMARY_PROOF_AND_TEAM = (
    "Strengthen your proof points and team story to move from 'interesting' to 'investable'."
)
SUMMARY_NARRATIVE = "Your story needs sharpening. VCs decide in seconds—make every word count."
SUMMARY_DEFAULT = "Address these gaps to significantly improve your fundability score."


# ---------------------------------------------------------------------------
# Insight context
# ---------------------------------------------------------------------------

EVIDENCE_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"lack of .*? validation", re.I),
    re.compile(r"\d+/100.*?score", re.I),
    re.compile(r"no .*? customers", re.I),
    re.compile(r"\d+ customers", re.I),
    re.compile(r"€[\d,]+k? (?:ACV|MRR|ARR)", re.I),
    re.compile(r"\$[\d,]+k? (?:ACV|MRR|ARR)", re.I),
    re.compile(r"contradictory", re.I),
    re.compile(r"unverified", re.I),
    re.compile(r"assumed", re.I),
)

COHERENCE_RE = re.compile(r"coherence score[^0-9]*(\d+)", re.I)

INSIGHT_STOPWORDS = frozenset({
    "this", "that", "with", "from", "have", "been", "their", "they", "what",
    "which", "will", "would", "about", "there", "these", "into", "more", "than",
})

MIN_WORD_LENGTH = 4
MIN_SENTENCE_SCORE = 12
MAX_INSIGHT_EVIDENCE = 3
LOW_CONFIDENCE = 50
SCORE_GAP_THRESHOLD = -10

SECTION_KEYWORDS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("Problem", ("problem", "pain", "customer validation", "pain point")),
    ("Solution", ("solution", "product", "api", "technology", "differentiation")),
    ("Market", ("market", "tam", "sam", "som", "addressable", "market size")),
    ("Competition", ("competition", "competitor", "moat", "defensibility", "crowded")),
    ("Team", ("team", "founder", "experience", "domain expertise", "execution")),
    ("Business Model", ("unit economics", "acv", "cac", "ltv", "pricing", "revenue model", "burn")),
    ("Traction", ("traction", "customer", "revenue", "growth", "retention", "churn", "pmf")),
    ("Vision", ("vision", "exit", "scale", "roadmap", "milestone")),
)

ACTION_PHRASE_RE = re.compile(r"(?:provide|demonstrate|show|add|include|verify)\s+[^.]+", re.I)
MAX_IMPROVEMENT_SUGGESTIONS = 5
