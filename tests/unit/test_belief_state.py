"""Tests for the belief-state tracker and its delta explanations."""

import threading

from defaultanswer.models.belief_models import BeliefState, BeliefUpdateParams
from defaultanswer.services import scorer
from defaultanswer.services.belief_state import (
    BeliefStateTracker,
    InMemoryBeliefStore,
    belief_blocking_factors,
    belief_key,
    belief_params_from_analysis,
    belief_primary_uncertainty,
    belief_supporting_signals,
    compact_sentence,
    explain_delta,
    upsert_belief_state,
)
from defaultanswer.services.signal_extractor import extract_page_data, skeleton_signals


def _params(report_id: str = "r1", score: int = 60, **overrides) -> BeliefUpdateParams:
    values = {
        "domain": "example.com",
        "report_id": report_id,
        "timestamp": f"2026-01-0{len(report_id)}T00:00:00+00:00",
        "readiness_state": "Emerging Option",
        "confidence_score": score,
        "blocking_factors": ["No FAQ"],
        "supporting_signals": ["Title is clear"],
        "primary_uncertainty": "FAQ coverage",
    }
    values.update(overrides)
    return BeliefUpdateParams(**values)


class TestUpsert:
    """Tests for BeliefStateTracker.upsert()."""

    def test_replaying_a_report_is_idempotent(self):
        tracker = BeliefStateTracker(InMemoryBeliefStore())

        first = tracker.upsert(_params("r1"))
        second = tracker.upsert(_params("r1"))

        assert len(first.current.history) == 1
        assert len(second.current.history) == 1
        assert second == first
        assert len(tracker.store.get("example.com").history) == 1

    def test_second_report_appends_history(self):
        tracker = BeliefStateTracker(InMemoryBeliefStore())
        tracker.upsert(_params("r1", score=60))

        update = tracker.upsert(_params("r2", score=72, supporting_signals=["Title is clear", "Pricing visible"]))

        assert [entry.report_id for entry in update.current.history] == ["r1", "r2"]
        assert update.current.history[-1].delta_score == 12
        assert update.current.history[-1].delta_explanation == (
            "Confidence increased because pricing visible."
        )
        assert update.previous.confidence_score == 60
        assert update.current.previous_state.confidence_score == 60

    def test_first_scan_has_no_delta(self):
        update = BeliefStateTracker(InMemoryBeliefStore()).upsert(_params("r1"))

        entry = update.current.history[0]
        assert entry.delta_score is None
        assert entry.delta_explanation.startswith("First scan")
        assert update.previous is None
        assert update.current.previous_state is None

    def test_sentinel_scores_have_no_numeric_delta(self):
        tracker = BeliefStateTracker(InMemoryBeliefStore())
        tracker.upsert(_params("r1", score=60))

        update = tracker.upsert(
            _params("r2", score=-1, readiness_state="Not a Default Candidate", blocking_factors=[])
        )

        assert update.current.history[-1].delta_score is None
        assert update.current.history[-1].delta_explanation == (
            "Changed because a prior blocker was reduced: no faq."
        )

    def test_domain_is_case_insensitive(self):
        tracker = BeliefStateTracker(InMemoryBeliefStore())
        tracker.upsert(_params("r1", domain="Example.COM"))

        assert tracker.store.get("example.com").domain == "example.com"

    def test_replay_from_another_process(self):
        """A fresh tracker answers a replay from the stored history."""
        store = InMemoryBeliefStore()
        first = BeliefStateTracker(store).upsert(_params("r1"))

        update = BeliefStateTracker(store).upsert(_params("r1", score=99))

        assert update == first
        assert update.previous is None
        assert len(store.get("example.com").history) == 1

    def test_replay_of_an_older_report(self):
        store = InMemoryBeliefStore()
        tracker = BeliefStateTracker(store)
        tracker.upsert(_params("r1", score=60))
        second = tracker.upsert(_params("r2", score=72, blocking_factors=[]))
        tracker.upsert(_params("r3", score=80))

        update = BeliefStateTracker(store).upsert(_params("r2"))

        assert update == second
        assert update.current.confidence_score == 72
        assert update.current.blocking_factors == []
        assert update.previous.confidence_score == 60
        assert store.get("example.com").confidence_score == 80

    def test_concurrent_updates_keep_every_report(self):
        tracker = BeliefStateTracker(InMemoryBeliefStore())
        threads = [
            threading.Thread(target=tracker.upsert, args=(_params(f"r{i}"),))
            for i in range(8)
        ]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        history = tracker.store.get("example.com").history
        assert sorted(entry.report_id for entry in history) == [f"r{i}" for i in range(8)]

    def test_upsert_belief_state_helper(self):
        store = InMemoryBeliefStore()
        update = upsert_belief_state(store, _params("r1"))
        assert store.get("example.com") == update.current

    def test_upsert_belief_state_replay(self):
        store = InMemoryBeliefStore()
        first = upsert_belief_state(store, _params("r1"))
        upsert_belief_state(store, _params("r2", score=70))

        replay = upsert_belief_state(store, _params("r1"))

        assert replay == first
        assert replay.previous is None
        assert [entry.report_id for entry in store.get("example.com").history] == ["r1", "r2"]

    def test_history_entries_keep_factors(self):
        update = BeliefStateTracker(InMemoryBeliefStore()).upsert(_params("r1"))

        entry = update.current.history[0]
        assert entry.blocking_factors == ["No FAQ"]
        assert entry.supporting_signals == ["Title is clear"]
        assert entry.primary_uncertainty == "FAQ coverage"


class TestExplainDelta:
    """Tests for explain_delta() rule ordering."""

    def _previous(self) -> BeliefState:
        return BeliefState(
            domain="example.com",
            readiness_state="Emerging Option",
            confidence_score=60,
            blocking_factors=["No FAQ", "No schema"],
            supporting_signals=["Title is clear"],
            last_updated="2026-01-01T00:00:00+00:00",
        )

    def test_increase_with_removed_blocker(self):
        params = _params("r2", blocking_factors=["No schema"], supporting_signals=["Title is clear"])
        assert explain_delta(self._previous(), params, 5) == (
            "Confidence increased because a prior blocker was reduced: no faq."
        )

    def test_increase_without_factor_change(self):
        params = _params("r2", blocking_factors=["No FAQ", "No schema"])
        assert explain_delta(self._previous(), params, 5) == (
            "Confidence increased due to stronger supporting signals."
        )

    def test_decrease_with_new_blocker(self):
        params = _params("r2", blocking_factors=["No FAQ", "No schema", "Thin content"])
        assert explain_delta(self._previous(), params, -4) == (
            "Confidence decreased because thin content."
        )

    def test_decrease_without_new_blocker(self):
        params = _params("r2", blocking_factors=["No FAQ"])
        assert explain_delta(self._previous(), params, -4) == (
            "Confidence decreased due to weaker retrievable signals."
        )

    def test_unchanged_score(self):
        params = _params("r2", blocking_factors=["No FAQ", "No schema"])
        assert explain_delta(self._previous(), params, 0) == (
            "Confidence did not change because the primary uncertainty remains: FAQ coverage"
        )

    def test_no_numeric_delta_and_no_factor_change(self):
        params = _params("r2", blocking_factors=["No FAQ", "No schema"])
        assert explain_delta(self._previous(), params, None) == (
            "No meaningful change detected; primary uncertainty remains: FAQ coverage"
        )


class TestBeliefInputs:
    """Tests for deriving belief inputs from an analysis."""

    def test_params_from_strong_analysis(self, strong_homepage_html):
        analysis = scorer.score(extract_page_data(strong_homepage_html, "https://acme.com"))

        params = belief_params_from_analysis(
            analysis, domain="ACME.com", report_id="r1", timestamp="2026-01-01T00:00:00Z"
        )

        assert params.domain == "acme.com"
        assert params.readiness_state == "Strong Default Candidate"
        assert params.confidence_score == 100
        assert len(params.supporting_signals) == 5
        assert params.supporting_signals[0] == "your title makes the entity explicit"
        assert params.primary_uncertainty == "The remaining gaps are marginal."

    def test_weak_analysis_blockers(self, weak_homepage_html):
        analysis = scorer.score(extract_page_data(weak_homepage_html, "https://example.com"))

        factors = belief_blocking_factors(analysis)

        assert factors[0].startswith("You are identifiable as an entity")
        assert len(factors) <= 5
        assert belief_primary_uncertainty(analysis) == analysis.weaknesses[0]

    def test_blocked_analysis_inputs(self):
        analysis = scorer.blocked_analysis(skeleton_signals("https://acme.com"), "HTTP 403")

        assert belief_blocking_factors(analysis) == []
        assert belief_supporting_signals(analysis) == []
        assert belief_primary_uncertainty(analysis) == (
            "I could not retrieve your homepage content."
        )

    def test_compact_sentence(self):
        assert compact_sentence("short") == "short"
        compacted = compact_sentence("x" * 500)
        assert len(compacted) == 180
        assert compacted.endswith("...")

    def test_belief_key(self):
        assert belief_key("Example.com") == "defaultanswer:belief:example.com"
