"""Sweep models: prompts, per-response extraction and stored rows."""

from typing import Any, Literal

from pydantic import BaseModel, Field

SweepIntent = Literal[
    "grounding",
    "evaluation",
    "category_ranking",
    "citation_style",
    "learning_v1_1",
    "learning_confidence_gate_v1",
]
ExtractionConfidence = Literal["high", "medium", "low"]


class SweepPrompt(BaseModel):
    key: str
    template: str
    intent: SweepIntent


class SweepExtraction(BaseModel):
    """Deterministic classification of one free-text model answer."""

    has_brand_mention: bool = False
    has_domain_mention: bool = False
    mentioned: bool = False
    mention_rank: int | None = Field(default=None, ge=1)
    winner: str | None = None
    alternatives: list[str] = Field(default_factory=list)
    confidence: int = Field(default=0, ge=0, le=100)
    parse_failed: bool = False
    extraction_confidence: ExtractionConfidence = "low"


class LearningExtraction(BaseModel):
    """Coarse labels used to study how models talk about a brand."""

    refusal_type: Literal["none", "partial", "full"] = "none"
    category_label: str | None = None
    winner: str | None = None
    mentioned_domains: list[str] = Field(default_factory=list)
    mentioned_brands: list[str] = Field(default_factory=list)
    confidence_language: Literal["hedged", "assertive", "mixed"] = "assertive"


class SweepModelSpec(BaseModel):
    provider: str
    model: str


class SweepRequest(BaseModel):
    """Parameters for one sweep run."""

    label: str = "manual"
    category: str | None = None
    brand_name: str | None = None
    domain: str | None = None
    providers: dict[str, bool] = Field(
        default_factory=lambda: {"openai": True, "anthropic": True}
    )
    limit_prompts: int | None = Field(default=None, ge=1)
    preset: Literal["learning_v1_1", "learning_confidence_gate_v1"] | None = None
    openai_model: str | None = None
    anthropic_model: str | None = None


class SweepResultRow(BaseModel):
    """One stored result (``ai_sweep_results`` table)."""

    sweep_id: str
    provider: str
    model: str
    prompt_key: str
    prompt_text: str
    response_text: str | None = None
    error_text: str | None = None
    latency_ms: int = 0
    mentioned: bool = False
    mention_rank: int | None = None
    winner: str | None = None
    alternatives: list[str] = Field(default_factory=list)
    has_domain_mention: bool = False
    has_brand_mention: bool = False
    confidence: int = 0
    evaluation_notes: dict[str, Any] = Field(default_factory=dict)
    learning_extract: LearningExtraction | None = None


class ProviderStats(BaseModel):
    attempted: int = 0
    succeeded: int = 0
    failed: int = 0


class SweepSummary(BaseModel):
    """Outcome of a sweep run."""

    sweep_id: str
    prompt_set_version: str
    prompts_count: int
    attempted: int = 0
    inserted: int = 0
    failed: int = 0
    parse_failed: int = 0
    provider_stats: dict[str, ProviderStats] = Field(default_factory=dict)
    errors: list[str] = Field(default_factory=list)
