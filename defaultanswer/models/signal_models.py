"""Models for signals extracted from a fetched page."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

FetchErrorType = Literal["blocked", "timeout", "dns", "invalid_url", "unknown"]
SnapshotQuality = Literal["ok", "thin", "likely_js"]


class FetchDiagnostics(BaseModel):
    """What the fetch layer observed for one request."""

    requested_url: str
    final_url: str | None = None
    status: int | None = None
    ok: bool = False
    error_type: FetchErrorType | None = None
    content_type: str | None = None
    bytes: int | None = Field(default=None, ge=0)
    duration_ms: int | None = Field(default=None, ge=0)
    retry_after: str | None = None


class FaqEvidence(BaseModel):
    """The three independent forms of FAQ evidence."""

    explicit_faq_detected: bool = False
    indirect_faq_links: list[str] = Field(default_factory=list)
    direct_answer_snippets: list[str] = Field(default_factory=list)


class Evidence(BaseModel):
    """Short sanitized snippets backing each signal."""

    title_text: str | None = None
    meta_description: str | None = None
    h1_text: str | None = None
    h2_texts: list[str] = Field(default_factory=list)
    schema_types: list[str] = Field(default_factory=list)
    schema_raw_sample: str | None = None
    contact_evidence: list[str] = Field(default_factory=list)
    about_evidence: list[str] = Field(default_factory=list)
    faq_evidence: FaqEvidence = Field(default_factory=FaqEvidence)
    pricing_evidence: list[str] = Field(default_factory=list)


class ScannedPage(BaseModel):
    """One page visited during a multi-page scan."""

    url: str
    path: str
    status: Literal["success", "error"]
    error: str | None = None


class PageScanMetadata(BaseModel):
    """Summary of the pages that contributed to an analysis."""

    scanned_pages: list[ScannedPage] = Field(default_factory=list)
    total_scanned: int = 0
    success_count: int = 0
    error_count: int = 0
    scan_depth: Literal["homepage-only", "multi-page"] = "homepage-only"


class ExtractedSignals(BaseModel):
    """
    Typed signals extracted from one page (or aggregated over several).

    Immutable once produced; use ``model_copy(update=...)`` to derive a
    new instance.
    """

    model_config = ConfigDict(frozen=True)

    title: str | None = None
    meta_description: str | None = None
    h1s: list[str] = Field(default_factory=list)
    h2s: list[str] = Field(default_factory=list)
    h3s: list[str] = Field(default_factory=list)
    has_faq: bool = False
    has_indirect_faq: bool = False
    has_direct_answer_block: bool = False
    has_schema: bool = False
    has_schema_json_ld: bool = False
    schema_types: list[str] = Field(default_factory=list)
    has_pricing: bool = False
    has_about: bool = False
    has_contact: bool = False
    has_contact_signals: bool = False
    contact_evidence: list[str] = Field(default_factory=list)
    domain: str = ""
    brand_guess: str = ""
    canonical_url: str | None = None
    evaluated_page: str | None = None
    evaluated_url: str | None = None
    fetched_at: str | None = None
    evidence: Evidence | None = None
    page_scan: PageScanMetadata | None = None
