"""Tests for repository functions."""

from unittest.mock import patch

import pytest

from defaultanswer.db.repository import (
    SupabaseBeliefStore,
    create_sweep,
    fetch_last_scan,
    fetch_latest_scans,
    fetch_recent_scans,
    fetch_sweep_results,
    get_stored_report,
    insert_sweep_result,
    save_scan_record,
    save_stored_report,
    upsert_scan_summary,
)
from defaultanswer.models.belief_models import BeliefState
from defaultanswer.models.scan_models import ScanRecord, ScanSummary
from defaultanswer.models.sweep_models import SweepResultRow
from defaultanswer.services import scorer
from defaultanswer.services.belief_state import BeliefStateStoreError
from defaultanswer.services.signal_extractor import skeleton_signals

SUMMARY_ROW = {
    "id": "scan-1",
    "normalized_url": "acme.com",
    "report_id": "r1",
    "created_at": "2026-01-01T00:00:00+00:00",
    "score": 72,
    "readiness": "Emerging Option",
    "coverage_overall": 64,
    "has_faq": False,
    "has_schema": True,
    "has_pricing": True,
    "primary_blocker": "Answerability Signals signals are the primary blocker.",
}


def _summary() -> ScanSummary:
    return ScanSummary(
        normalized_url="acme.com",
        report_id="r1",
        score=72,
        readiness="Emerging Option",
        coverage_overall=64,
    )


def _belief() -> BeliefState:
    return BeliefState(
        domain="acme.com",
        readiness_state="Emerging Option",
        confidence_score=72,
        last_updated="2026-01-01T00:00:00+00:00",
    )


class TestScanSummaries:
    """Tests for report_scans functions."""

    @patch("defaultanswer.db.repository.get_supabase_client")
    def test_upsert_scan_summary(self, mock_get_client, mock_supabase_client):
        mock_supabase_client.execute_result.data = [SUMMARY_ROW]
        mock_get_client.return_value = mock_supabase_client

        stored = upsert_scan_summary(_summary())

        assert stored.id == "scan-1"
        mock_supabase_client.table.assert_called_with("report_scans")
        table = mock_supabase_client.table.return_value
        inserted = table.upsert.call_args[0][0]
        assert table.upsert.call_args[1] == {"on_conflict": "report_id"}
        assert inserted["normalized_url"] == "acme.com"
        assert "id" not in inserted
        assert "created_at" not in inserted

    @patch("defaultanswer.db.repository.get_supabase_client")
    def test_upsert_scan_summary_failure(self, mock_get_client, mock_supabase_client):
        mock_get_client.return_value = mock_supabase_client

        with pytest.raises(ValueError, match="Failed to store scan summary"):
            upsert_scan_summary(_summary())

    @patch("defaultanswer.db.repository.get_supabase_client")
    def test_fetch_last_scan_anonymous(self, mock_get_client, mock_supabase_client):
        mock_supabase_client.execute_result.data = [SUMMARY_ROW]
        mock_get_client.return_value = mock_supabase_client

        scan = fetch_last_scan("acme.com")

        assert scan.score == 72
        table = mock_supabase_client.table.return_value
        table.eq.assert_called_once_with("normalized_url", "acme.com")
        table.is_.assert_called_once_with("user_id", "null")
        table.order.assert_called_once_with("created_at", desc=True)
        table.limit.assert_called_once_with(1)
        table.neq.assert_not_called()

    @patch("defaultanswer.db.repository.get_supabase_client")
    def test_fetch_last_scan_excludes_current_report(self, mock_get_client, mock_supabase_client):
        mock_get_client.return_value = mock_supabase_client

        fetch_last_scan("acme.com", exclude_report_id="r2")

        mock_supabase_client.table.return_value.neq.assert_called_once_with("report_id", "r2")

    @patch("defaultanswer.db.repository.get_supabase_client")
    def test_fetch_last_scan_scoped_to_user(self, mock_get_client, mock_supabase_client):
        mock_get_client.return_value = mock_supabase_client

        assert fetch_last_scan("acme.com", user_id="u1") is None

        table = mock_supabase_client.table.return_value
        table.eq.assert_any_call("user_id", "u1")
        table.is_.assert_not_called()

    @patch("defaultanswer.db.repository.get_supabase_client")
    def test_fetch_recent_scans(self, mock_get_client, mock_supabase_client):
        mock_supabase_client.execute_result.data = [SUMMARY_ROW, {**SUMMARY_ROW, "id": "scan-0"}]
        mock_get_client.return_value = mock_supabase_client

        scans = fetch_recent_scans("acme.com", limit=5)

        assert [scan.id for scan in scans] == ["scan-1", "scan-0"]
        mock_supabase_client.table.return_value.limit.assert_called_once_with(5)


class TestScanRecords:
    """Tests for defaultanswer_scans functions."""

    def _record(self) -> ScanRecord:
        return ScanRecord(
            url="https://acme.com",
            domain="acme.com",
            score=72,
            readiness="ok",
            hash="a" * 64,
        )

    @patch("defaultanswer.db.repository.get_supabase_client")
    def test_save_scan_record(self, mock_get_client, mock_supabase_client):
        row = {**self._record().model_dump(mode="json"), "id": "rec-1"}
        mock_supabase_client.execute_result.data = [row]
        mock_get_client.return_value = mock_supabase_client

        stored = save_scan_record(self._record())

        assert stored.id == "rec-1"
        mock_supabase_client.table.assert_called_with("defaultanswer_scans")

    @patch("defaultanswer.db.repository.get_supabase_client")
    def test_save_scan_record_failure(self, mock_get_client, mock_supabase_client):
        mock_get_client.return_value = mock_supabase_client

        with pytest.raises(ValueError, match="Failed to save scan record"):
            save_scan_record(self._record())

    @patch("defaultanswer.db.repository.get_supabase_client")
    def test_fetch_latest_scans_empty(self, mock_get_client, mock_supabase_client):
        mock_get_client.return_value = mock_supabase_client

        assert fetch_latest_scans("https://acme.com") == []
        mock_supabase_client.table.return_value.limit.assert_called_once_with(2)


class TestStoredReports:
    """Tests for stored_reports functions."""

    @patch("defaultanswer.db.repository.get_supabase_client")
    def test_save_stored_report_upserts_per_domain(self, mock_get_client, mock_supabase_client):
        mock_supabase_client.execute_result.data = [{"report_id": "r1"}]
        mock_get_client.return_value = mock_supabase_client
        analysis = scorer.blocked_analysis(skeleton_signals("https://acme.com"), "HTTP 403")

        report_id = save_stored_report("r1", "https://acme.com", "ACME.com", analysis, "u1")

        assert report_id == "r1"
        table = mock_supabase_client.table.return_value
        data = table.upsert.call_args[0][0]
        assert table.upsert.call_args[1] == {"on_conflict": "domain,user_id"}
        assert data["domain"] == "acme.com"
        assert data["score"] == -1
        assert data["analysis_status"] == "blocked"
        assert data["payload"]["score"] == -1

    @patch("defaultanswer.db.repository.get_supabase_client")
    def test_get_stored_report_missing(self, mock_get_client, mock_supabase_client):
        mock_get_client.return_value = mock_supabase_client
        assert get_stored_report("nope") is None

    @patch("defaultanswer.db.repository.get_supabase_client")
    def test_get_stored_report_parses_payload(self, mock_get_client, mock_supabase_client):
        analysis = scorer.blocked_analysis(skeleton_signals("https://acme.com"), "HTTP 403")
        mock_supabase_client.execute_result.data = [
            {
                "id": 7,
                "report_id": "r1",
                "url": "https://acme.com",
                "domain": "acme.com",
                "user_id": None,
                "score": -1,
                "analysis_status": "blocked",
                "payload": analysis.model_dump(mode="json"),
                "updated_at": "2026-01-01T00:00:00+00:00",
            }
        ]
        mock_get_client.return_value = mock_supabase_client

        stored = get_stored_report("r1")

        assert stored.report_id == "r1"
        assert stored.payload.analysis_status == "blocked"
        assert stored.payload.score == -1
        table = mock_supabase_client.table.return_value
        table.eq.assert_called_with("report_id", "r1")


class TestSupabaseBeliefStore:
    """Tests for the Supabase-backed belief store."""

    @patch("defaultanswer.db.repository.get_supabase_client")
    def test_get_returns_state(self, mock_get_client, mock_supabase_client):
        mock_supabase_client.execute_result.data = [
            {"key": "defaultanswer:belief:acme.com", "state": _belief().model_dump(mode="json")}
        ]
        mock_get_client.return_value = mock_supabase_client

        state = SupabaseBeliefStore().get("ACME.com")

        assert state == _belief()
        mock_supabase_client.table.assert_called_with("belief_states")
        mock_supabase_client.table.return_value.eq.assert_called_once_with(
            "key", "defaultanswer:belief:acme.com"
        )

    @patch("defaultanswer.db.repository.get_supabase_client")
    def test_get_missing(self, mock_get_client, mock_supabase_client):
        mock_get_client.return_value = mock_supabase_client
        assert SupabaseBeliefStore().get("acme.com") is None

    @patch("defaultanswer.db.repository.get_supabase_client")
    def test_put_upserts_by_key(self, mock_get_client, mock_supabase_client):
        mock_supabase_client.execute_result.data = [{"key": "defaultanswer:belief:acme.com"}]
        mock_get_client.return_value = mock_supabase_client

        SupabaseBeliefStore().put(_belief())

        table = mock_supabase_client.table.return_value
        data = table.upsert.call_args[0][0]
        assert data["key"] == "defaultanswer:belief:acme.com"
        assert data["state"]["confidence_score"] == 72
        assert table.upsert.call_args[1] == {"on_conflict": "key"}

    @patch("defaultanswer.db.repository.get_supabase_client")
    def test_put_empty_result_raises(self, mock_get_client, mock_supabase_client):
        mock_get_client.return_value = mock_supabase_client

        with pytest.raises(BeliefStateStoreError):
            SupabaseBeliefStore().put(_belief())

    @patch("defaultanswer.db.repository.get_supabase_client")
    def test_database_errors_are_wrapped(self, mock_get_client, mock_supabase_client):
        mock_supabase_client.table.return_value.execute.side_effect = RuntimeError("boom")
        mock_get_client.return_value = mock_supabase_client

        with pytest.raises(BeliefStateStoreError) as exc_info:
            SupabaseBeliefStore().get("acme.com")

        assert isinstance(exc_info.value.__cause__, RuntimeError)


class TestSweeps:
    """Tests for ai_sweeps and ai_sweep_results functions."""

    @patch("defaultanswer.db.repository.get_supabase_client")
    def test_create_sweep(self, mock_get_client, mock_supabase_client, mock_logfire):
        mock_supabase_client.execute_result.data = [{"id": "sweep-1"}]
        mock_get_client.return_value = mock_supabase_client

        sweep_id = create_sweep(
            label="manual",
            prompt_set_version="v3-grounded",
            category="Analytics",
            brand_name="Acme",
            domain="acme.com",
            models={"openai": "gateway/openai:gpt-4o-mini"},
        )

        assert sweep_id == "sweep-1"
        mock_supabase_client.table.assert_called_with("ai_sweeps")
        inserted = mock_supabase_client.table.return_value.insert.call_args[0][0]
        assert inserted["models"] == {"openai": "gateway/openai:gpt-4o-mini"}
        assert "created_at" in inserted

    @patch("defaultanswer.db.repository.get_supabase_client")
    def test_create_sweep_failure(self, mock_get_client, mock_supabase_client):
        mock_get_client.return_value = mock_supabase_client

        with pytest.raises(ValueError, match="Failed to create sweep"):
            create_sweep(
                label="manual",
                prompt_set_version="v3-grounded",
                category="Analytics",
                brand_name="Acme",
                domain="acme.com",
                models={},
            )

    @patch("defaultanswer.db.repository.get_supabase_client")
    def test_insert_and_fetch_results(self, mock_get_client, mock_supabase_client):
        row = SweepResultRow(
            sweep_id="sweep-1",
            provider="openai",
            model="gateway/openai:gpt-4o-mini",
            prompt_key="category_top_tools",
            prompt_text="List the top tools",
        )
        mock_supabase_client.execute_result.data = [row.model_dump(mode="json")]
        mock_get_client.return_value = mock_supabase_client

        insert_sweep_result(row)
        results = fetch_sweep_results("sweep-1")

        assert results == [row]
        mock_supabase_client.table.assert_called_with("ai_sweep_results")

    @patch("defaultanswer.db.repository.get_supabase_client")
    def test_insert_sweep_result_failure(self, mock_get_client, mock_supabase_client):
        mock_get_client.return_value = mock_supabase_client
        row = SweepResultRow(
            sweep_id="sweep-1",
            provider="openai",
            model="m",
            prompt_key="k",
            prompt_text="p",
        )

        with pytest.raises(ValueError, match="Failed to insert sweep result"):
            insert_sweep_result(row)
