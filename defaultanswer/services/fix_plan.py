"""
Fix-plan engine.

Builds candidate fixes from weak checks, then runs a pipeline of pure list
transforms over them: intent deduplication, the FAQ top-fix gate and the
retrieval-optimization downgrade for sites that are already strong.
Items are frozen; every transform returns new lists and new items.
"""

import re

from defaultanswer.constants import (
    ABOUT_LABEL,
    ACCESS_FIX_ACTION,
    CONTACT_LABEL,
    FAQ_GATE_MIN_GAPS,
    FAQ_GATE_SCORE,
    FAQ_LABEL,
    H1_PRESENT_LABEL,
    H1_QUALITY_LABEL,
    H2_LABEL,
    HEADINGS_LABEL,
    MAX_FIX_PLAN_ITEMS,
    META_LABEL,
    PRICING_LABEL,
    RETRIEVAL_OPTIMIZATION_SCORE,
    RETRIEVAL_OPTIMIZATION_TAG,
    SCHEMA_LABEL,
    TITLE_LABEL,
    WEAKNESS_RATIO,
)
from defaultanswer.models.analysis_models import (
    PRIORITY_ORDER,
    BreakdownItem,
    FixDecision,
    FixPlanItem,
)
from defaultanswer.models.signal_models import ExtractedSignals

FAQ_ACTION_RE = re.compile(r"faq section", re.I)
ADD_H1_RE = re.compile(r"add an h1\b", re.I)
REWRITE_H1_RE = re.compile(r"rewrite your h1\b", re.I)
HOW_IT_WORKS_RE = re.compile(r"how\s+it\s+works?", re.I)
NON_ALNUM_RE = re.compile(r"[^a-z0-9]+")

STRONG_LABEL = "Strong Default Candidate"


def access_fix() -> FixPlanItem:
    return FixPlanItem(priority="high", action=ACCESS_FIX_ACTION)


def _fix_for(item: BreakdownItem, extracted: ExtractedSignals) -> FixPlanItem | None:
    brand = extracted.brand_guess or "your brand"
    if item.label == FAQ_LABEL:
        if extracted.has_direct_answer_block:
            return FixPlanItem(
                priority="medium",
                action=(
                    "Convert key answers into a visible FAQ section for retrieval "
                    f"alignment (e.g., 'What is {brand}?', 'Who is it for?', "
                    "'How does it work?')."
                ),
            )
        return FixPlanItem(
            priority="high",
            action=(
                f"Add an FAQ section answering: 'What is {brand}?', "
                "'Who is it for?', 'How does it work?'"
            ),
        )

    actions = {
        TITLE_LABEL: (
            "high",
            f'Update your title tag to include "{brand}" and a clear product '
            "category description.",
        ),
        META_LABEL: (
            "medium",
            "Add a meta description (150-160 chars) that clearly states what you "
            "offer and who it's for.",
        ),
        H1_QUALITY_LABEL: (
            "high",
            "Rewrite your H1 to be a clear, complete sentence that defines your "
            "product category.",
        ),
        H1_PRESENT_LABEL: (
            "high",
            "Add an H1 heading that clearly states what your product/service is "
            "in one sentence.",
        ),
        H2_LABEL: (
            "medium",
            "Add H2 sections for Features, Benefits, How It Works, and Use Cases.",
        ),
        HEADINGS_LABEL: (
            "medium",
            "Replace generic headings with specific, descriptive text that "
            "explains each section's content.",
        ),
        SCHEMA_LABEL: (
            "medium",
            "Add Schema.org JSON-LD for Organization, Product, or "
            "SoftwareApplication as appropriate.",
        ),
        ABOUT_LABEL: (
            "medium",
            "Create an About page explaining your company background, team, and mission.",
        ),
        CONTACT_LABEL: (
            "low",
            "Add a Contact page or visible email address to establish business legitimacy.",
        ),
        PRICING_LABEL: (
            "low",
            "Add a Pricing section or page with clear plan names and what users get.",
        ),
    }
    if item.label not in actions:
        return None
    priority, action = actions[item.label]
    return FixPlanItem(priority=priority, action=action)


def prioritize(fixes: list[FixPlanItem]) -> list[FixPlanItem]:
    """Stable sort by tier: high, medium, low."""
    return sorted(fixes, key=lambda fix: PRIORITY_ORDER.get(fix.priority, 9))


def build_fix_plan(
    breakdown: list[BreakdownItem], extracted: ExtractedSignals
) -> list[FixPlanItem]:
    """One candidate per check under the weakness ratio, tiered and capped."""
    fixes = []
    for item in breakdown:
        if item.ratio >= WEAKNESS_RATIO:
            continue
        fix = _fix_for(item, extracted)
        if fix is not None:
            fixes.append(fix)
    return prioritize(fixes)[:MAX_FIX_PLAN_ITEMS]


# =============================================================================
# Intent deduplication
# =============================================================================


def intent_key(action: str) -> str:
    """Bucket an action by what it asks the site owner to do."""
    text = (action or "").lower()
    if "publicly accessible" in text or "blocking automated" in text:
        return "access"
    if "add an h1" in text:
        return "h1_add"
    if "rewrite your h1" in text:
        return "h1_rewrite"
    if "title tag" in text:
        return "title"
    if "meta description" in text:
        return "meta"
    if "faq" in text:
        return "faq"
    if "schema.org" in text:
        return "schema"
    if "about page" in text:
        return "about"
    if "contact page" in text or "email address" in text:
        return "contact"
    if "pricing" in text:
        return "pricing"
    if "h2" in text:
        return "h2"
    if "headings" in text:
        return "headings"
    return NON_ALNUM_RE.sub(" ", text).strip()


def dedupe_fix_plan_by_intent(fixes: list[FixPlanItem]) -> list[FixPlanItem]:
    """
    Keep the first fix per intent.

    "Add an H1" makes "Rewrite your H1" redundant. Output is stable by tier
    and running it twice changes nothing.
    """
    has_add_h1 = any(ADD_H1_RE.search(fix.action) for fix in fixes)
    seen: set[str] = set()
    kept = []
    for fix in fixes:
        if has_add_h1 and REWRITE_H1_RE.search(fix.action):
            continue
        key = intent_key(fix.action)
        if key in seen:
            continue
        seen.add(key)
        kept.append(fix)
    return prioritize(kept)


# =============================================================================
# FAQ gate and retrieval-optimization downgrade
# =============================================================================


def is_faq_fix(fix: FixPlanItem) -> bool:
    return bool(FAQ_ACTION_RE.search(fix.action or ""))


def has_how_it_works_heading(h2s: list[str], h3s: list[str]) -> bool:
    return any(HOW_IT_WORKS_RE.search(heading) for heading in [*h2s, *h3s])


def should_allow_faq_as_top_fix(score: int, extracted: ExtractedSignals) -> bool:
    """High scorers only get an FAQ top fix when several answer gaps remain."""
    if score < FAQ_GATE_SCORE:
        return True
    gaps = [
        not extracted.has_faq,
        not extracted.has_schema,
        not has_how_it_works_heading(extracted.h2s, extracted.h3s),
    ]
    return sum(gaps) >= FAQ_GATE_MIN_GAPS


def should_downgrade_faq(score: int, readiness_label: str, extracted: ExtractedSignals) -> bool:
    if readiness_label != STRONG_LABEL or score < RETRIEVAL_OPTIMIZATION_SCORE:
        return False
    has_trust_or_entity = extracted.has_schema or (
        extracted.has_about and extracted.has_contact_signals
    )
    has_faq_signals = extracted.has_indirect_faq or extracted.has_direct_answer_block
    return has_trust_or_entity and has_faq_signals


def downgrade_faq_for_retrieval_optimization(
    fixes: list[FixPlanItem],
) -> tuple[list[FixPlanItem], bool]:
    """
    Relabel FAQ fixes as medium-priority retrieval optimizations.

    Returns:
        Tuple of (new fix list, whether any high FAQ fix was downgraded)
    """
    downgraded = False
    adjusted = []
    for fix in fixes:
        if not is_faq_fix(fix):
            adjusted.append(fix)
            continue
        downgraded = downgraded or fix.priority == "high"
        action = (
            fix.action
            if RETRIEVAL_OPTIMIZATION_TAG in fix.action
            else f"{RETRIEVAL_OPTIMIZATION_TAG} {fix.action}"
        )
        adjusted.append(fix.model_copy(update={"priority": "medium", "action": action}))
    return adjusted, downgraded


def select_top_fix(
    fixes: list[FixPlanItem],
    score: int,
    extracted: ExtractedSignals,
    *,
    disallow_faq: bool = False,
) -> FixPlanItem | None:
    ordered = prioritize(fixes)
    if not ordered:
        return None
    first = ordered[0]
    if not is_faq_fix(first):
        return first
    if disallow_faq or (
        score >= FAQ_GATE_SCORE and not should_allow_faq_as_top_fix(score, extracted)
    ):
        return next((fix for fix in ordered if not is_faq_fix(fix)), None)
    return first


def decide_what_to_fix_first(
    fixes: list[FixPlanItem],
    score: int,
    readiness_label: str,
    extracted: ExtractedSignals,
) -> FixDecision:
    """Pick the single most important fix, or say there is nothing critical."""
    if not fixes:
        return FixDecision(kind="none")

    if score < 0:
        access = next(
            (fix for fix in fixes if fix.action.strip() == ACCESS_FIX_ACTION), None
        )
        if access is None:
            return FixDecision(kind="none")
        return FixDecision(kind="top_fix", fix=access)

    deduped = dedupe_fix_plan_by_intent(fixes)
    downgrade = should_downgrade_faq(score, readiness_label, extracted)
    if downgrade:
        adjusted, downgraded_faq = downgrade_faq_for_retrieval_optimization(deduped)
    else:
        adjusted, downgraded_faq = deduped, False

    has_critical_high = any(
        fix.priority == "high"
        and (not is_faq_fix(fix) or should_allow_faq_as_top_fix(score, extracted))
        for fix in adjusted
    )

    if downgrade and not has_critical_high:
        return FixDecision(
            kind="no_critical_fixes", retrieval_optimization=True, downgraded_faq=True
        )
    if (
        score >= RETRIEVAL_OPTIMIZATION_SCORE
        and readiness_label == STRONG_LABEL
        and not has_critical_high
    ):
        return FixDecision(
            kind="no_critical_fixes",
            retrieval_optimization=downgrade,
            downgraded_faq=downgraded_faq,
        )

    top = select_top_fix(adjusted, score, extracted, disallow_faq=downgrade)
    if top is None:
        return FixDecision(kind="none")
    return FixDecision(
        kind="top_fix",
        fix=top,
        retrieval_optimization=downgrade,
        downgraded_faq=downgraded_faq,
    )
