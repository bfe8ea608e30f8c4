"""Request/response models for the report and sweep surfaces."""

from pydantic import BaseModel, Field, field_validator

from defaultanswer.models.analysis_models import (
    AnalysisResult,
    Coverage,
    FixDecision,
    ReadinessClassification,
)
from defaultanswer.models.belief_models import BeliefState
from defaultanswer.models.scan_models import ScanDelta, ScanDiff, ScanRecord


class AnalyzeRequest(BaseModel):
    url: str = Field(..., min_length=1, max_length=2048)
    multi_page: bool = False
    report_id: str | None = Field(default=None, max_length=64)
    user_id: str | None = None

    @field_validator("url")
    @classmethod
    def strip_url(cls, v: str) -> str:
        return v.strip()


class Report(BaseModel):
    """Everything a caller needs to render one scan."""

    report_id: str
    url: str
    domain: str
    analysis: AnalysisResult
    readiness: ReadinessClassification
    coverage: Coverage
    fix_decision: FixDecision
    delta: ScanDelta | None = None
    belief: BeliefState | None = None
    persisted: bool = False


class HistoryDiffResponse(BaseModel):
    url: str
    current: ScanRecord | None = None
    previous: ScanRecord | None = None
    diff: ScanDiff | None = None


class StoredReport(BaseModel):
    """Latest stored analysis for a domain, as written by ``save_stored_report``."""

    report_id: str
    url: str
    domain: str
    user_id: str | None = None
    score: int
    analysis_status: str
    payload: AnalysisResult
    updated_at: str | None = None
