"""Models for scan history: compact summaries, full records and diffs."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

Tone = Literal["positive", "negative", "neutral"]


class ScanSummary(BaseModel):
    """Compact per-scan row used for deltas (``report_scans`` table)."""

    id: str | None = None
    user_id: str | None = None
    normalized_url: str
    report_id: str
    created_at: datetime | None = None
    score: int
    readiness: str
    coverage_overall: int = Field(default=0, ge=0, le=100)
    has_faq: bool = False
    has_schema: bool = False
    has_pricing: bool = False
    primary_blocker: str = ""


class DeltaChip(BaseModel):
    label: str
    tone: Tone


class ScanDelta(BaseModel):
    """Human-readable change between two scans of the same URL."""

    score_delta: int
    coverage_delta: int
    readiness_changed: bool
    chips: list[DeltaChip] = Field(default_factory=list, max_length=3)
    summary_line: str


class BreakdownEntry(BaseModel):
    label: str
    category: str
    points: int
    max: int


class ScanSignals(BaseModel):
    has_faq: bool = False
    has_schema: bool = False
    has_pricing: bool = False
    has_about: bool = False
    has_contact: bool = False
    schema_types: list[str] = Field(default_factory=list)


class ScanEvidence(BaseModel):
    title_text: str | None = None
    h1_text: str | None = None
    meta_description: str | None = None
    pricing_evidence: str | None = None
    schema_types: list[str] = Field(default_factory=list)


class ScanRecord(BaseModel):
    """Full scan record (``defaultanswer_scans`` table) with a content hash."""

    id: str | None = None
    created_at: datetime | None = None
    url: str
    domain: str
    canonical_url: str | None = None
    score: int
    readiness: str
    breakdown: list[BreakdownEntry] = Field(default_factory=list)
    signals: ScanSignals = Field(default_factory=ScanSignals)
    evidence: ScanEvidence = Field(default_factory=ScanEvidence)
    snapshot_quality: str = "ok"
    fetch_status: int | None = None
    hash: str


class SignalChanges(BaseModel):
    gained: list[str] = Field(default_factory=list)
    lost: list[str] = Field(default_factory=list)
    schema_added: list[str] = Field(default_factory=list)
    schema_removed: list[str] = Field(default_factory=list)


class BreakdownChange(BaseModel):
    label: str
    category: str
    delta: int
    previous_points: int
    current_points: int
    max: int


class ScanDiff(BaseModel):
    """Detailed comparison between two scan records."""

    changed: bool
    score_delta: int
    readiness_changed: bool
    signal_changes: SignalChanges = Field(default_factory=SignalChanges)
    breakdown_changes: list[BreakdownChange] = Field(default_factory=list)
    content_changes: list[str] = Field(default_factory=list)
