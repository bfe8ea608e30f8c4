"""Belief state models: the persisted per-domain readiness judgment."""

from pydantic import BaseModel, Field

from defaultanswer.models.analysis_models import ReadinessLabel


class PreviousBeliefState(BaseModel):
    """Snapshot of the belief that existed right before the current write."""

    readiness_state: ReadinessLabel
    confidence_score: int
    last_updated: str


class BeliefHistoryEntry(BaseModel):
    """
    One append-only history row, unique per report.

    Carries the factor lists written by that report so the belief as it
    stood after any report can be rebuilt from the stored history alone.
    """

    report_id: str
    timestamp: str
    score: int
    readiness_state: ReadinessLabel
    delta_score: int | None = None
    delta_explanation: str
    blocking_factors: list[str] = Field(default_factory=list)
    supporting_signals: list[str] = Field(default_factory=list)
    primary_uncertainty: str = ""


class BeliefState(BaseModel):
    """Current belief about one domain (keyed by lowercase domain)."""

    domain: str
    readiness_state: ReadinessLabel
    confidence_score: int
    blocking_factors: list[str] = Field(default_factory=list)
    supporting_signals: list[str] = Field(default_factory=list)
    primary_uncertainty: str = ""
    last_updated: str
    previous_state: PreviousBeliefState | None = None
    history: list[BeliefHistoryEntry] = Field(default_factory=list)

    def has_report(self, report_id: str) -> bool:
        return self.report_index(report_id) is not None

    def report_index(self, report_id: str) -> int | None:
        return next(
            (i for i, entry in enumerate(self.history) if entry.report_id == report_id),
            None,
        )


class BeliefUpdateParams(BaseModel):
    """Inputs for one belief update."""

    domain: str = Field(..., min_length=1)
    report_id: str = Field(..., min_length=1)
    timestamp: str
    readiness_state: ReadinessLabel
    confidence_score: int
    blocking_factors: list[str] = Field(default_factory=list)
    supporting_signals: list[str] = Field(default_factory=list)
    primary_uncertainty: str = ""


class BeliefUpdate(BaseModel):
    """Result of an upsert: the new belief and the one it replaced."""

    current: BeliefState
    previous: BeliefState | None = None
