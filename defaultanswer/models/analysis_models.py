"""Analysis result models: breakdown, fix plan, reasoning and readiness."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from defaultanswer.models.signal_models import (
    ExtractedSignals,
    FetchDiagnostics,
    SnapshotQuality,
)

AnalysisStatus = Literal["ok", "blocked", "snapshot_incomplete", "error"]
Priority = Literal["high", "medium", "low"]
Impact = Literal["positive", "negative", "neutral"]
Category = Literal[
    "Entity Clarity",
    "Structural Comprehension",
    "Answerability Signals",
    "Trust & Legitimacy",
    "Commercial Clarity",
    "Error",
]
ReadinessLabel = Literal[
    "Strong Default Candidate",
    "Emerging Option",
    "Not a Default Candidate",
]

PRIORITY_ORDER: dict[str, int] = {"high": 0, "medium": 1, "low": 2}


class BreakdownItem(BaseModel):
    """One scored check."""

    label: str
    category: Category
    points: int = Field(..., ge=0)
    max: int = Field(..., gt=0)
    reason: str

    @model_validator(mode="after")
    def _points_within_max(self) -> "BreakdownItem":
        if self.points > self.max:
            raise ValueError(
                f"points ({self.points}) exceed max ({self.max}) for {self.label!r}"
            )
        return self

    @property
    def ratio(self) -> float:
        return self.points / self.max


class FixPlanItem(BaseModel):
    """A remediation action. Rewrites produce new items."""

    model_config = ConfigDict(frozen=True)

    priority: Priority
    action: str = Field(..., min_length=1)


class ReasoningBullet(BaseModel):
    """How a language model would plausibly read one signal."""

    signal: str
    interpretation: str
    impact: Impact


class AnalysisResult(BaseModel):
    """
    Final artifact of one scan.

    A negative score is a sentinel: -1 for blocked/error, -2 for an
    incomplete snapshot. Status and score are validated together so a
    failed analysis can never carry a comparable score.
    """

    score: int
    breakdown: list[BreakdownItem]
    weaknesses: list[str] = Field(default_factory=list)
    fix_plan: list[FixPlanItem] = Field(default_factory=list)
    analysis_status: AnalysisStatus = "ok"
    reasoning: list[ReasoningBullet] = Field(default_factory=list)
    snapshot_quality: SnapshotQuality | None = None
    fetch_diagnostics: FetchDiagnostics | None = None
    extracted: ExtractedSignals

    @model_validator(mode="after")
    def _sentinel_matches_status(self) -> "AnalysisResult":
        failed = self.analysis_status != "ok"
        if failed != (self.score < 0):
            raise ValueError(
                f"score {self.score} is inconsistent with status {self.analysis_status!r}"
            )
        if self.score > 100:
            raise ValueError(f"score {self.score} exceeds 100")
        has_error_item = any(item.category == "Error" for item in self.breakdown)
        if has_error_item and not failed:
            raise ValueError("Error breakdown items require a failed analysis")
        if has_error_item and len(self.breakdown) != 1:
            raise ValueError("Error breakdown items cannot be mixed with checks")
        return self


class ReadinessClassification(BaseModel):
    """Readiness label with a short explanation."""

    level: Literal["strong", "emerging", "not-candidate"]
    label: ReadinessLabel
    explanation: str


class Coverage(BaseModel):
    """Weighted estimate of how much of the page surface is retrievable."""

    overall: int = Field(..., ge=0, le=100)
    structure: int = Field(..., ge=0, le=100)
    answer: int = Field(..., ge=0, le=100)
    entity: int = Field(..., ge=0, le=100)
    commercial: int = Field(..., ge=0, le=100)
    next_move: str


class FixDecision(BaseModel):
    """What to surface as the first fix."""

    kind: Literal["top_fix", "no_critical_fixes", "none"]
    fix: FixPlanItem | None = None
    retrieval_optimization: bool = False
    downgraded_faq: bool = False
