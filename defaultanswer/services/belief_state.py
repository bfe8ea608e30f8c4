"""
Belief-state tracker.

Keeps one current readiness judgment per domain and an append-only history
of the reports that moved it. Each update explains in plain language why
confidence changed since the previous scan.
"""

import threading
from typing import Protocol

from defaultanswer.constants import (
    BELIEF_KEY_PREFIX,
    COMPACT_SENTENCE_CHARS,
    MAX_BELIEF_FACTORS,
)
from defaultanswer.models.analysis_models import AnalysisResult
from defaultanswer.models.belief_models import (
    BeliefHistoryEntry,
    BeliefState,
    BeliefUpdate,
    BeliefUpdateParams,
    PreviousBeliefState,
)
from defaultanswer.services.scorer import (
    biggest_gap_category,
    get_readiness_classification,
)
from defaultanswer.services.signal_extractor import unique_strings

SUPPORT_SIGNALS = {
    "Title includes brand/entity": "your title makes the entity explicit",
    "Meta description present": "your page summary is explicit",
    "H1 describes product/category": "your primary heading defines what you are",
    "H1 heading present": "a primary heading is present",
    "Multiple H2 headings": "your section structure is retrievable",
    "Headings are descriptive": "your headings are descriptive",
    "FAQ section present": "direct Q&A is retrievable",
    "Schema.org markup": "structured entity data is retrievable",
    "About page linked": "legitimacy context is retrievable",
    "Contact info present": "contact legitimacy is retrievable",
    "Pricing/plans visible": "commercial terms are retrievable",
}


class BeliefStateStoreError(Exception):
    """Raised when a belief store cannot read or persist a record."""


class BeliefStore(Protocol):
    """Key-value persistence for belief records, keyed by lowercase domain."""

    def get(self, domain: str) -> BeliefState | None: ...

    def put(self, state: BeliefState) -> None: ...


def belief_key(domain: str) -> str:
    return f"{BELIEF_KEY_PREFIX}{(domain or '').lower()}"


class InMemoryBeliefStore:
    """Process-local store for tests, the CLI and deployments without Supabase."""

    def __init__(self):
        self._records: dict[str, BeliefState] = {}

    def get(self, domain: str) -> BeliefState | None:
        state = self._records.get(belief_key(domain))
        return state.model_copy(deep=True) if state else None

    def put(self, state: BeliefState) -> None:
        self._records[belief_key(state.domain)] = state.model_copy(deep=True)


# =============================================================================
# Delta explanation
# =============================================================================


def explain_delta(
    previous: BeliefState | None,
    params: BeliefUpdateParams,
    delta_score: int | None,
) -> str:
    """First matching rule wins; without a numeric delta only factor sets are compared."""
    if previous is None:
        return "First scan — establishing baseline belief."

    added_support = next(
        (s for s in params.supporting_signals if s not in previous.supporting_signals),
        None,
    )
    removed_block = next(
        (b for b in previous.blocking_factors if b not in params.blocking_factors),
        None,
    )
    added_block = next(
        (b for b in params.blocking_factors if b not in previous.blocking_factors),
        None,
    )

    if delta_score is not None:
        if delta_score > 0:
            if added_support:
                return f"Confidence increased because {added_support.lower()}."
            if removed_block:
                return (
                    "Confidence increased because a prior blocker was reduced: "
                    f"{removed_block.lower()}."
                )
            return "Confidence increased due to stronger supporting signals."
        if delta_score < 0:
            if added_block:
                return f"Confidence decreased because {added_block.lower()}."
            return "Confidence decreased due to weaker retrievable signals."
        return (
            "Confidence did not change because the primary uncertainty remains: "
            f"{params.primary_uncertainty}"
        )

    if added_support:
        return f"Changed because {added_support.lower()}."
    if removed_block:
        return f"Changed because a prior blocker was reduced: {removed_block.lower()}."
    if added_block:
        return f"Changed because {added_block.lower()}."
    return (
        "No meaningful change detected; primary uncertainty remains: "
        f"{params.primary_uncertainty}"
    )


# =============================================================================
# Tracker
# =============================================================================


class BeliefStateTracker:
    """
    Serializes read-modify-write per domain on top of a ``BeliefStore``.

    Concurrent updates for different domains proceed in parallel; updates
    for the same domain are applied one at a time, last writer wins on
    ``current``. History is unique per ``report_id``, and a replay is
    answered from the stored history, so it holds across trackers and
    processes.
    """

    def __init__(self, store: BeliefStore):
        self.store = store
        self._guard = threading.Lock()
        self._locks: dict[str, threading.Lock] = {}

    def _lock_for(self, domain: str) -> threading.Lock:
        with self._guard:
            return self._locks.setdefault(domain, threading.Lock())

    def upsert(self, params: BeliefUpdateParams) -> BeliefUpdate:
        domain = params.domain.lower()
        with self._lock_for(domain):
            previous = self.store.get(domain)

            index = previous.report_index(params.report_id) if previous else None
            if index is not None:
                return replay_update(previous, index)

            delta_score = None
            if (
                previous is not None
                and previous.confidence_score >= 0
                and params.confidence_score >= 0
            ):
                delta_score = params.confidence_score - previous.confidence_score

            entry = BeliefHistoryEntry(
                report_id=params.report_id,
                timestamp=params.timestamp,
                score=params.confidence_score,
                readiness_state=params.readiness_state,
                delta_score=delta_score,
                delta_explanation=explain_delta(previous, params, delta_score),
                blocking_factors=list(params.blocking_factors),
                supporting_signals=list(params.supporting_signals),
                primary_uncertainty=params.primary_uncertainty,
            )
            history = [*(previous.history if previous else []), entry]
            current = state_at(domain, history, len(history) - 1)
            self.store.put(current)
            return BeliefUpdate(current=current, previous=previous)


def state_at(domain: str, history: list[BeliefHistoryEntry], index: int) -> BeliefState:
    """The belief as it stood right after ``history[index]`` was written."""
    entry = history[index]
    prior = history[index - 1] if index > 0 else None
    return BeliefState(
        domain=domain,
        readiness_state=entry.readiness_state,
        confidence_score=entry.score,
        blocking_factors=list(entry.blocking_factors),
        supporting_signals=list(entry.supporting_signals),
        primary_uncertainty=entry.primary_uncertainty,
        last_updated=entry.timestamp,
        previous_state=(
            PreviousBeliefState(
                readiness_state=prior.readiness_state,
                confidence_score=prior.score,
                last_updated=prior.timestamp,
            )
            if prior
            else None
        ),
        history=list(history[: index + 1]),
    )


def replay_update(stored: BeliefState, index: int) -> BeliefUpdate:
    """Rebuild the ``current``/``previous`` pair first returned for ``history[index]``."""
    return BeliefUpdate(
        current=state_at(stored.domain, stored.history, index),
        previous=state_at(stored.domain, stored.history, index - 1) if index > 0 else None,
    )


def upsert_belief_state(store: BeliefStore, params: BeliefUpdateParams) -> BeliefUpdate:
    """One-off update without a long-lived tracker (no cross-call locking)."""
    return BeliefStateTracker(store).upsert(params)


# =============================================================================
# Deriving belief inputs from an analysis
# =============================================================================


def compact_sentence(text: str) -> str:
    text = (text or "").strip()
    if len(text) > COMPACT_SENTENCE_CHARS:
        return f"{text[:COMPACT_SENTENCE_CHARS - 3]}..."
    return text


def map_support_signal(label: str) -> str:
    return SUPPORT_SIGNALS.get(label, label)


def belief_supporting_signals(analysis: AnalysisResult) -> list[str]:
    signals = unique_strings(
        map_support_signal(item.label)
        for item in analysis.breakdown
        if item.points > 0 and item.category != "Error"
    )
    if signals:
        return signals[:MAX_BELIEF_FACTORS]
    return unique_strings(
        bullet.signal for bullet in analysis.reasoning if bullet.impact == "positive"
    )[:MAX_BELIEF_FACTORS]


def belief_blocking_factors(analysis: AnalysisResult) -> list[str]:
    """Constraints phrased from the model's point of view."""
    status = analysis.analysis_status
    if status == "blocked":
        return []
    if status == "snapshot_incomplete":
        return [
            "The HTML snapshot looks incomplete: key identity and FAQ answers likely "
            "require JavaScript, so I would have to infer instead of retrieve.",
            "Until core answers are visible in the initial HTML, I cannot cite your "
            "site as a default source.",
        ]

    extracted = analysis.extracted
    brand = extracted.brand_guess or extracted.domain or "your site"
    no_answers = not extracted.has_faq and not extracted.has_indirect_faq
    factors = []
    if extracted.title and extracted.h1s and no_answers:
        factors.append(
            "You are identifiable as an entity, but I cannot retrieve direct Q&A "
            f"answers. That forces me to infer intent instead of citing {brand}."
        )
    if len(extracted.h2s) >= 3 and not extracted.has_schema:
        factors.append(
            "Your structure is readable, but without Schema.org markup I have to "
            "infer entity type instead of retrieving a machine-readable definition."
        )
    if extracted.has_about != extracted.has_contact_signals:
        factors.append(
            "You show some legitimacy, but missing trust signals reduce how "
            "confidently I can recommend you by default."
        )
    if extracted.has_schema and no_answers:
        factors.append(
            "You provide structured entity data, but you do not expose direct "
            "answers to common questions on the homepage."
        )
    if len(factors) < 3:
        factors.extend(
            compact_sentence(bullet.interpretation)
            for bullet in analysis.reasoning
            if bullet.impact == "negative"
        )
    return unique_strings(factors)[:MAX_BELIEF_FACTORS]


def belief_primary_uncertainty(analysis: AnalysisResult) -> str:
    if analysis.analysis_status == "blocked":
        return "I could not retrieve your homepage content."
    if analysis.analysis_status == "snapshot_incomplete":
        return "The homepage snapshot is incomplete."
    if analysis.weaknesses:
        return analysis.weaknesses[0]
    gap = biggest_gap_category(analysis.breakdown)
    if gap == "Other":
        return "The remaining gaps are marginal."
    return f"{gap} signals are the main uncertainty."


def belief_params_from_analysis(
    analysis: AnalysisResult,
    *,
    domain: str,
    report_id: str,
    timestamp: str,
) -> BeliefUpdateParams:
    return BeliefUpdateParams(
        domain=domain.lower(),
        report_id=report_id,
        timestamp=timestamp,
        readiness_state=get_readiness_classification(analysis).label,
        confidence_score=analysis.score,
        blocking_factors=belief_blocking_factors(analysis),
        supporting_signals=belief_supporting_signals(analysis),
        primary_uncertainty=belief_primary_uncertainty(analysis),
    )
