"""Scoring engine: signals to an itemized 0-100 readiness score.

Total: 100 points
- Entity Clarity: 25
- Structural Comprehension: 20
- Answerability Signals: 20
- Trust & Legitimacy: 20
- Commercial Clarity: 15

Unusable fetches never get partial scores. They short-circuit to a single
``Error`` breakdown item and a negative sentinel score.
"""

import re

from defaultanswer.constants import (
    ABOUT_LABEL,
    CONTACT_LABEL,
    EMERGING_SCORE_FLOOR,
    EMPTY_BODY_TEXT_THRESHOLD,
    FAILED_ANALYSIS_SCORE,
    FAQ_LABEL,
    H1_PRESENT_LABEL,
    H1_QUALITY_LABEL,
    H2_LABEL,
    HEADINGS_LABEL,
    MAX_NEGATIVE_REASONING,
    MAX_POSITIVE_REASONING,
    MAX_SCORE,
    META_LABEL,
    PRICING_LABEL,
    SCHEMA_LABEL,
    SNAPSHOT_INCOMPLETE_SCORE,
    STRONG_MAX_NEGATIVE_BULLETS,
    STRONG_SCORE_THRESHOLD,
    THIN_BYTES_THRESHOLD,
    THIN_TEXT_THRESHOLD,
    TITLE_LABEL,
    WEAKNESS_RATIO,
)
from defaultanswer.models.analysis_models import (
    AnalysisResult,
    BreakdownItem,
    Coverage,
    FixPlanItem,
    ReadinessClassification,
    ReadinessLabel,
    ReasoningBullet,
)
from defaultanswer.models.signal_models import (
    ExtractedSignals,
    FetchDiagnostics,
    SnapshotQuality,
)
from defaultanswer.services.fix_plan import access_fix, build_fix_plan

GENERIC_H1_RE = re.compile(r"^(welcome|home|hello|hey|hi|untitled|page|website)$", re.I)
GENERIC_HEADING_RE = re.compile(
    r"^(welcome|home|hello|hey|hi|untitled|section|more|learn more|click here|read more)$",
    re.I,
)
JS_ROOT_PATTERNS = (
    re.compile(r"__next", re.I),
    re.compile(r"id=[\"']root[\"']", re.I),
    re.compile(r"id=[\"']app[\"']", re.I),
    re.compile(r"window\.__NUXT__", re.I),
    re.compile(r"data-reactroot", re.I),
    re.compile(r"<script[^>]+chunk[^>]*\.js", re.I),
    re.compile(r"<script[^>]+bundle[^>]*\.js", re.I),
)
BODY_RE = re.compile(r"<body[^>]*>(.*?)</body>", re.I | re.S)
TAG_RE = re.compile(r"<[^>]*>")

WEAKNESS_MESSAGES: dict[str, str] = {
    TITLE_LABEL: "AI lacks a clear definition of what your brand is: your title doesn't establish entity identity.",
    META_LABEL: "Missing meta description means LLMs have less context about your page's purpose.",
    H1_QUALITY_LABEL: "Your main heading doesn't clearly describe what you offer. LLMs need explicit category signals.",
    H1_PRESENT_LABEL: "No H1 heading found. This is a critical structural signal for LLMs.",
    H2_LABEL: "Insufficient heading structure. LLMs rely on headings to understand page organization.",
    HEADINGS_LABEL: "Generic headings like 'Welcome' or 'Home' don't help LLMs understand your content.",
    FAQ_LABEL: "No FAQ section found. LLMs heavily weight Q&A-style content for recommendations.",
    SCHEMA_LABEL: "Missing structured data. Schema.org helps LLMs categorize your entity type.",
    ABOUT_LABEL: "No About page detected. LLMs prefer businesses with verifiable backgrounds.",
    CONTACT_LABEL: "No contact information found. This reduces trust signals for LLM recommendations.",
    PRICING_LABEL: "Pricing not visible. An unclear commercial offering weakens recommendation likelihood.",
}


# =============================================================================
# Check evaluation
# =============================================================================


def _evaluate_h1_quality(h1s: list[str]) -> tuple[int, str]:
    if not h1s:
        return 0, "No H1 heading found"
    h1 = h1s[0]
    if GENERIC_H1_RE.match(h1.strip()):
        return 2, f'H1 "{h1}" is too generic for LLMs to understand'
    word_count = len(h1.split())
    if word_count >= 3:
        return 10, f'H1 "{h1[:50]}" clearly describes the offering'
    if word_count == 2:
        return 7, f'H1 "{h1}" is brief, consider more descriptive text'
    return 4, f'H1 "{h1}" is a single word, add context for LLMs'


def _evaluate_heading_quality(headings: list[str]) -> tuple[int, str]:
    if not headings:
        return 0, "No headings found on page"
    generic = sum(1 for h in headings if GENERIC_HEADING_RE.match(h.strip()))
    ratio = generic / len(headings)
    if ratio > 0.5:
        return 2, f"{generic}/{len(headings)} headings are generic (Welcome, Home, etc.)"
    if ratio > 0.2:
        return 6, "Some headings are generic, use descriptive text"
    return 10, "Headings are descriptive and meaningful"


def _title_item(extracted: ExtractedSignals) -> BreakdownItem:
    title = extracted.title
    brand = extracted.brand_guess
    has_brand = bool(title and brand and brand.lower() in title.lower())
    if not title:
        points, reason = 0, "No title tag found"
    elif has_brand:
        points, reason = 10, f'Title "{title[:50]}" includes brand name'
    else:
        points, reason = 5, "Title exists but brand name not clearly present"
    return BreakdownItem(
        label=TITLE_LABEL, category="Entity Clarity", points=points, max=10, reason=reason
    )


def _faq_item(extracted: ExtractedSignals) -> BreakdownItem:
    if extracted.has_faq:
        points, reason = 10, "FAQ section detected on page"
    elif extracted.has_direct_answer_block:
        points, reason = 6, "Direct answer blocks detected (partial credit)"
    elif extracted.has_indirect_faq:
        points, reason = 4, "Indirect FAQ presence detected"
    else:
        points, reason = 0, "No retrievable answer blocks found on homepage"
    return BreakdownItem(
        label=FAQ_LABEL,
        category="Answerability Signals",
        points=points,
        max=10,
        reason=reason,
    )


def _schema_item(extracted: ExtractedSignals) -> BreakdownItem:
    if extracted.has_schema_json_ld:
        types = ", ".join(extracted.schema_types[:5])
        reason = (
            f"JSON-LD structured data found (types: {types})"
            if types
            else "JSON-LD structured data found"
        )
        points = 10
    else:
        points, reason = 0, "No Schema.org JSON-LD found, reduces entity certainty"
    return BreakdownItem(
        label=SCHEMA_LABEL,
        category="Answerability Signals",
        points=points,
        max=10,
        reason=reason,
    )


def calculate_score(extracted: ExtractedSignals) -> tuple[int, list[BreakdownItem]]:
    """
    Score every check independently and sum the points.

    Returns:
        Tuple of (score clamped to [0, 100], ordered breakdown)
    """
    h1_points, h1_reason = _evaluate_h1_quality(extracted.h1s)
    heading_points, heading_reason = _evaluate_heading_quality(
        extracted.h1s + extracted.h2s
    )
    h1_count = len(extracted.h1s)
    h2_count = len(extracted.h2s)
    if h2_count >= 3:
        h2_points, h2_reason = 5, f"Found {h2_count} H2 headings providing good structure"
    elif h2_count >= 1:
        h2_points, h2_reason = 2, f"Only {h2_count} H2 heading(s) found, recommend 3+"
    else:
        h2_points, h2_reason = 0, "No H2 headings found"

    contact_reason = (
        f"Contact signals found ({', '.join(extracted.contact_evidence[:3])})"
        if extracted.has_contact_signals
        else "No contact signals found, reduces trust and recommendation confidence"
    )

    breakdown = [
        _title_item(extracted),
        BreakdownItem(
            label=META_LABEL,
            category="Entity Clarity",
            points=5 if extracted.meta_description else 0,
            max=5,
            reason=(
                f"Meta description found ({len(extracted.meta_description)} chars)"
                if extracted.meta_description
                else "No meta description tag found"
            ),
        ),
        BreakdownItem(
            label=H1_QUALITY_LABEL,
            category="Entity Clarity",
            points=h1_points,
            max=10,
            reason=h1_reason,
        ),
        BreakdownItem(
            label=H1_PRESENT_LABEL,
            category="Structural Comprehension",
            points=5 if h1_count else 0,
            max=5,
            reason=(
                f"Found {h1_count} H1 heading(s)"
                if h1_count
                else "No H1 heading found on page"
            ),
        ),
        BreakdownItem(
            label=H2_LABEL,
            category="Structural Comprehension",
            points=h2_points,
            max=5,
            reason=h2_reason,
        ),
        BreakdownItem(
            label=HEADINGS_LABEL,
            category="Structural Comprehension",
            points=heading_points,
            max=10,
            reason=heading_reason,
        ),
        _faq_item(extracted),
        _schema_item(extracted),
        BreakdownItem(
            label=ABOUT_LABEL,
            category="Trust & Legitimacy",
            points=10 if extracted.has_about else 0,
            max=10,
            reason=(
                "About/Company/Team page link found"
                if extracted.has_about
                else "No About page link found, reduces perceived legitimacy"
            ),
        ),
        BreakdownItem(
            label=CONTACT_LABEL,
            category="Trust & Legitimacy",
            points=10 if extracted.has_contact_signals else 0,
            max=10,
            reason=contact_reason,
        ),
        BreakdownItem(
            label=PRICING_LABEL,
            category="Commercial Clarity",
            points=15 if extracted.has_pricing else 0,
            max=15,
            reason=(
                "Pricing or plans information detected"
                if extracted.has_pricing
                else "No pricing information found, unclear what users get"
            ),
        ),
    ]
    total = sum(item.points for item in breakdown)
    return max(0, min(MAX_SCORE, total)), breakdown


def generate_weaknesses(breakdown: list[BreakdownItem]) -> list[str]:
    """One message per check scoring under the weakness ratio."""
    return [
        WEAKNESS_MESSAGES[item.label]
        for item in breakdown
        if item.ratio < WEAKNESS_RATIO and item.label in WEAKNESS_MESSAGES
    ]


# =============================================================================
# Reasoning
# =============================================================================


def _clip(text: str, limit: int) -> str:
    return f"{text[:limit]}..." if len(text) > limit else text


def generate_reasoning(
    extracted: ExtractedSignals, breakdown: list[BreakdownItem]
) -> list[ReasoningBullet]:
    """
    Explain how a language model would plausibly read the page.

    Returns up to three negative bullets (actionable) followed by up to two
    positive ones (strengths).
    """
    bullets: list[ReasoningBullet] = []
    brand = extracted.brand_guess or "this site"
    points = {item.label: item.points for item in breakdown}
    has_h1 = bool(extracted.h1s)

    if extracted.title and has_h1:
        if points.get(TITLE_LABEL, 0) >= 7 and points.get(H1_QUALITY_LABEL, 0) >= 7:
            bullets.append(
                ReasoningBullet(
                    signal="Entity Clarity",
                    interpretation=(
                        f'When asked "What is {brand}?", I can confidently extract that '
                        f'the title "{_clip(extracted.title, 60)}" and main heading '
                        f'"{_clip(extracted.h1s[0], 50)}" establish {brand} as a clear '
                        "entity in its category."
                    ),
                    impact="positive",
                )
            )
        elif points.get(TITLE_LABEL, 0) < 5:
            bullets.append(
                ReasoningBullet(
                    signal="Entity Clarity",
                    interpretation=(
                        f"The page title doesn't clearly establish what {brand} is. When "
                        f'users ask "What is {brand}?", I would struggle to provide a '
                        "confident answer because the core identity signal is weak."
                    ),
                    impact="negative",
                )
            )
    else:
        missing = [
            label
            for label, absent in (
                ("no title tag", not extracted.title),
                ("no H1 heading", not has_h1),
            )
            if absent
        ]
        bullets.append(
            ReasoningBullet(
                signal="Entity Clarity",
                interpretation=(
                    f"{brand} lacks fundamental identity signals: {' and '.join(missing)}. "
                    "When a user asks me to recommend solutions in this category, I "
                    f"cannot confidently identify what {brand} even is."
                ),
                impact="negative",
            )
        )

    h2_count = len(extracted.h2s)
    if h2_count >= 3 and points.get(HEADINGS_LABEL, 0) >= 7:
        bullets.append(
            ReasoningBullet(
                signal="Content Structure",
                interpretation=(
                    f"The page has {h2_count} well-organized sections with descriptive "
                    "headings, which makes it easier to cite "
                    f"{brand} when answering relevant queries."
                ),
                impact="positive",
            )
        )
    elif h2_count < 2:
        plural = "" if h2_count == 1 else "s"
        bullets.append(
            ReasoningBullet(
                signal="Content Structure",
                interpretation=(
                    f"With only {h2_count} section heading{plural}, the page lacks the "
                    f"structural depth I need to understand {brand}'s full offering."
                ),
                impact="negative",
            )
        )

    if extracted.has_faq:
        bullets.append(
            ReasoningBullet(
                signal="Answerability",
                interpretation=(
                    "The FAQ section presents information in a question-answer format "
                    f'that matches how users query me, e.g. "Is {brand} good for X?".'
                ),
                impact="positive",
            )
        )
    else:
        bullets.append(
            ReasoningBullet(
                signal="Answerability",
                interpretation=(
                    "Without an FAQ section, the page misses a key opportunity. "
                    "Q&A-formatted content is closely aligned with how I retrieve "
                    f"information; adding one would improve {brand}'s citation likelihood."
                ),
                impact="negative",
            )
        )

    if extracted.has_schema:
        bullets.append(
            ReasoningBullet(
                signal="Structured Data",
                interpretation=(
                    "Schema.org markup provides machine-readable entity information "
                    f"that helps me categorize {brand} correctly."
                ),
                impact="positive",
            )
        )

    if extracted.has_about and extracted.has_contact_signals:
        bullets.append(
            ReasoningBullet(
                signal="Trust Signals",
                interpretation=(
                    f"{brand} shows legitimate business indicators: About and Contact "
                    "information is present, so I can suggest a real, reachable business."
                ),
                impact="positive",
            )
        )
    elif not extracted.has_about and not extracted.has_contact_signals:
        bullets.append(
            ReasoningBullet(
                signal="Trust Signals",
                interpretation=(
                    f"I cannot find About or Contact information for {brand}, which "
                    "makes me hesitant to recommend it over competitors who clearly "
                    "establish their legitimacy."
                ),
                impact="negative",
            )
        )

    if extracted.has_pricing:
        bullets.append(
            ReasoningBullet(
                signal="Commercial Clarity",
                interpretation=(
                    f'Pricing is visible, which helps me answer "How much does {brand} '
                    'cost?" and include it in price comparisons.'
                ),
                impact="positive",
            )
        )
    else:
        bullets.append(
            ReasoningBullet(
                signal="Commercial Clarity",
                interpretation=(
                    "No clear pricing is visible. When users ask me to compare pricing "
                    f"for solutions like this, I cannot include {brand}."
                ),
                impact="negative",
            )
        )

    negatives = [b for b in bullets if b.impact == "negative"][:MAX_NEGATIVE_REASONING]
    positives = [b for b in bullets if b.impact == "positive"][:MAX_POSITIVE_REASONING]
    return negatives + positives


# =============================================================================
# Snapshot quality and failure analyses
# =============================================================================


def _strip_tags(html: str) -> str:
    return re.sub(r"\s+", " ", TAG_RE.sub(" ", html or ""))


def classify_snapshot_quality(html: str, byte_count: int | None = None) -> SnapshotQuality:
    """
    Decide whether a fetched snapshot is usable.

    ``likely_js`` when the body is nearly empty and a client-side framework
    root is present; ``thin`` when the document is small or has little
    visible text; ``ok`` otherwise.
    """
    html = html or ""
    if byte_count is None:
        byte_count = len(html.encode("utf-8"))
    body_match = BODY_RE.search(html)
    body = body_match.group(1) if body_match else html
    visible = _strip_tags(body)

    has_js_root = any(pattern.search(html) for pattern in JS_ROOT_PATTERNS)
    body_mostly_empty = len(visible.strip()) < EMPTY_BODY_TEXT_THRESHOLD
    if body_mostly_empty and has_js_root:
        return "likely_js"
    if byte_count < THIN_BYTES_THRESHOLD or len(visible) < THIN_TEXT_THRESHOLD:
        return "thin"
    return "ok"


def _error_item(label: str, reason: str) -> BreakdownItem:
    return BreakdownItem(label=label, category="Error", points=0, max=100, reason=reason)


def blocked_analysis(
    extracted: ExtractedSignals,
    reason: str,
    fetch_diagnostics: FetchDiagnostics | None = None,
) -> AnalysisResult:
    """The host refused the fetch (403/429 style)."""
    return AnalysisResult(
        score=FAILED_ANALYSIS_SCORE,
        breakdown=[
            _error_item(
                "Analysis unavailable",
                f"Could not fetch or analyze the page ({reason})",
            )
        ],
        weaknesses=["Unable to analyze page: fetch was blocked."],
        fix_plan=[access_fix()],
        analysis_status="blocked",
        fetch_diagnostics=fetch_diagnostics,
        extracted=extracted,
    )


def error_analysis(
    extracted: ExtractedSignals,
    reason: str,
    fetch_diagnostics: FetchDiagnostics | None = None,
) -> AnalysisResult:
    """Any other unrecoverable fetch or analysis failure."""
    if fetch_diagnostics is not None and fetch_diagnostics.error_type == "blocked":
        return blocked_analysis(extracted, reason, fetch_diagnostics)
    return AnalysisResult(
        score=FAILED_ANALYSIS_SCORE,
        breakdown=[
            _error_item(
                "Analysis unavailable",
                f"Could not fetch or analyze the page ({reason})",
            )
        ],
        weaknesses=[
            "Unable to analyze page: fetch failed or the site was unavailable."
        ],
        fix_plan=[
            access_fix(),
            FixPlanItem(
                priority="medium",
                action=(
                    "Check that your homepage loads without requiring JavaScript "
                    "to render core content."
                ),
            ),
        ],
        analysis_status="error",
        fetch_diagnostics=fetch_diagnostics,
        extracted=extracted,
    )


SNAPSHOT_INCOMPLETE_WEAKNESS = (
    "Analysis incomplete: the homepage content appears to require JavaScript "
    "or is too thin to evaluate reliably."
)


def snapshot_incomplete_analysis(
    extracted: ExtractedSignals,
    snapshot_quality: SnapshotQuality,
    fetch_diagnostics: FetchDiagnostics | None = None,
) -> AnalysisResult:
    """Content was fetched but is too thin or needs client-side rendering."""
    return AnalysisResult(
        score=SNAPSHOT_INCOMPLETE_SCORE,
        breakdown=[_error_item("Snapshot incomplete", SNAPSHOT_INCOMPLETE_WEAKNESS)],
        weaknesses=[SNAPSHOT_INCOMPLETE_WEAKNESS],
        fix_plan=[
            FixPlanItem(
                priority="high",
                action="Make core identity + FAQ answers visible in server-rendered HTML.",
            ),
            FixPlanItem(
                priority="medium",
                action="Ensure title/meta/H1 exist in initial HTML.",
            ),
            FixPlanItem(priority="low", action="Add schema JSON-LD to initial HTML."),
        ],
        analysis_status="snapshot_incomplete",
        snapshot_quality=snapshot_quality,
        fetch_diagnostics=fetch_diagnostics,
        extracted=extracted,
    )


# =============================================================================
# Entry point
# =============================================================================


def score(
    extracted: ExtractedSignals,
    *,
    snapshot_quality: SnapshotQuality = "ok",
    fetch_diagnostics: FetchDiagnostics | None = None,
) -> AnalysisResult:
    """
    Turn extracted signals into a complete analysis.

    A failed fetch (diagnostics not ``ok``) or an unusable snapshot
    short-circuits to the matching sentinel analysis.
    """
    if fetch_diagnostics is not None and not fetch_diagnostics.ok:
        reason = (
            f"HTTP {fetch_diagnostics.status}"
            if fetch_diagnostics.status
            else fetch_diagnostics.error_type or "fetch failed"
        )
        return error_analysis(extracted, reason, fetch_diagnostics)

    if snapshot_quality != "ok":
        return snapshot_incomplete_analysis(extracted, snapshot_quality, fetch_diagnostics)

    total, breakdown = calculate_score(extracted)
    return AnalysisResult(
        score=total,
        breakdown=breakdown,
        weaknesses=generate_weaknesses(breakdown),
        fix_plan=build_fix_plan(breakdown, extracted),
        analysis_status="ok",
        reasoning=generate_reasoning(extracted, breakdown),
        snapshot_quality=snapshot_quality,
        fetch_diagnostics=fetch_diagnostics,
        extracted=extracted,
    )


# =============================================================================
# Readiness and coverage
# =============================================================================


def get_readiness_classification(analysis: AnalysisResult) -> ReadinessClassification:
    """Fixed threshold policy; any failed status is never a candidate."""
    status = analysis.analysis_status
    if status == "blocked":
        diagnostics = analysis.fetch_diagnostics
        why = f"HTTP {diagnostics.status}" if diagnostics and diagnostics.status else "fetch blocked"
        return ReadinessClassification(
            level="not-candidate",
            label="Not a Default Candidate",
            explanation=(
                f"I could not retrieve your homepage ({why}). When content is not "
                "retrievable, AI systems avoid recommending it by default."
            ),
        )
    if status == "snapshot_incomplete":
        return ReadinessClassification(
            level="not-candidate",
            label="Not a Default Candidate",
            explanation=SNAPSHOT_INCOMPLETE_WEAKNESS,
        )
    if status == "error":
        return ReadinessClassification(
            level="not-candidate",
            label="Not a Default Candidate",
            explanation=(
                "AI lacks sufficient clarity and trust signals to recommend your brand "
                "as a default option. Analysis could not be completed reliably."
            ),
        )

    negatives = sum(1 for bullet in analysis.reasoning if bullet.impact == "negative")
    if analysis.score >= STRONG_SCORE_THRESHOLD and negatives <= STRONG_MAX_NEGATIVE_BULLETS:
        return ReadinessClassification(
            level="strong",
            label="Strong Default Candidate",
            explanation=(
                "Your site provides clear signals that allow AI to confidently "
                "identify, trust, and recommend your brand."
            ),
        )
    if analysis.score < EMERGING_SCORE_FLOOR:
        return ReadinessClassification(
            level="not-candidate",
            label="Not a Default Candidate",
            explanation=(
                "AI lacks sufficient clarity and trust signals to recommend your "
                "brand as a default option."
            ),
        )
    return ReadinessClassification(
        level="emerging",
        label="Emerging Option",
        explanation=(
            "AI can understand your brand, but confidence gaps prevent it from "
            "consistently recommending you as the default."
        ),
    )


def readiness_label(analysis: AnalysisResult) -> ReadinessLabel:
    return get_readiness_classification(analysis).label


COVERAGE_NEXT_MOVES = {
    "structure": "Increase coverage by adding descriptive H2 sections (features, use cases, how it works).",
    "answer": "Increase coverage by adding direct FAQ-style answers.",
    "entity": "Increase coverage by stating the category in the title/H1 and adding schema.",
    "commercial": "Increase coverage by adding a pricing or plans section.",
}


def build_coverage(analysis: AnalysisResult) -> Coverage:
    """
    Estimate how much of the page surface a model can retrieve.

    Sub-scores are independent of the point breakdown; the next move
    targets the weakest area (ties resolve structure, answer, entity,
    commercial).
    """
    extracted = analysis.extracted
    h2_count = len(extracted.h2s)

    structure = 40 if extracted.h1s else 0
    if h2_count >= 6:
        structure += 60
    elif h2_count >= 3:
        structure += 45
    elif h2_count >= 1:
        structure += 25

    snippets = (
        extracted.evidence.faq_evidence.direct_answer_snippets
        if extracted.evidence
        else []
    )
    answer = 50 if extracted.has_faq else 0
    if extracted.has_direct_answer_block:
        answer += 30
    if len(snippets) >= 2:
        answer += 20
    elif len(snippets) == 1:
        answer += 10

    entity = (35 if extracted.title else 0) + (35 if extracted.h1s else 0)
    if extracted.has_schema:
        entity += 30

    commercial = 100 if extracted.has_pricing else 0

    subs = {
        "structure": min(structure, 100),
        "answer": min(answer, 100),
        "entity": min(entity, 100),
        "commercial": commercial,
    }
    overall = round(
        subs["structure"] * 0.25
        + subs["answer"] * 0.3
        + subs["entity"] * 0.25
        + subs["commercial"] * 0.2
    )
    weakest = min(subs, key=subs.get)
    return Coverage(overall=overall, next_move=COVERAGE_NEXT_MOVES[weakest], **subs)


def biggest_gap_category(breakdown: list[BreakdownItem]) -> str:
    """Category with the lowest points/max ratio, ``Other`` when nothing is missing."""
    totals: dict[str, list[int]] = {}
    for item in breakdown:
        if item.category == "Error":
            continue
        bucket = totals.setdefault(item.category, [0, 0])
        bucket[0] += item.points
        bucket[1] += item.max

    gap, gap_ratio = "Other", 1.0
    for category, (points, maximum) in totals.items():
        ratio = points / maximum if maximum else 1.0
        if ratio < gap_ratio:
            gap, gap_ratio = category, ratio
    return gap


def primary_blocker(analysis: AnalysisResult, coverage: Coverage | None = None) -> str:
    gap = biggest_gap_category(analysis.breakdown)
    if gap != "Other":
        return f"{gap} signals are the primary blocker."
    return (coverage or build_coverage(analysis)).next_move
