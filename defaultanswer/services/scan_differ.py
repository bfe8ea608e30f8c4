"""Scan differ: compares scans of the same URL and records scan history rows."""

import hashlib
import json
import re
from urllib.parse import urlparse

from defaultanswer.constants import (
    MAX_BREAKDOWN_CHANGES,
    MAX_DELTA_CHIPS,
    SCORE_CHIP_THRESHOLD,
)
from defaultanswer.models.analysis_models import AnalysisResult, Coverage
from defaultanswer.models.scan_models import (
    BreakdownChange,
    BreakdownEntry,
    DeltaChip,
    ScanDelta,
    ScanDiff,
    ScanEvidence,
    ScanRecord,
    ScanSignals,
    ScanSummary,
    SignalChanges,
)
from defaultanswer.services.scorer import (
    build_coverage,
    primary_blocker,
    readiness_label,
)
from defaultanswer.services.signal_extractor import extract_domain

TRACKED_SIGNALS = ("has_faq", "has_schema", "has_pricing", "has_about", "has_contact")


def format_delta(value: int) -> str:
    return f"+{value}" if value >= 0 else str(value)


def compute_scan_delta(current: ScanSummary, previous: ScanSummary) -> ScanDelta:
    """
    Summarize what moved between two scans.

    Chips are added in a fixed order (pricing, schema, FAQ, then a generic
    score chip) so the most decision-relevant change always gets a slot.
    """
    score_delta = current.score - previous.score
    coverage_delta = current.coverage_overall - previous.coverage_overall
    chips: list[DeltaChip] = []

    if current.has_pricing != previous.has_pricing:
        chips.append(
            DeltaChip(label="Pricing now visible", tone="positive")
            if current.has_pricing
            else DeltaChip(label="Pricing no longer visible", tone="negative")
        )
    if current.has_schema != previous.has_schema:
        chips.append(
            DeltaChip(label="Schema added", tone="positive")
            if current.has_schema
            else DeltaChip(label="Schema removed", tone="negative")
        )
    if current.has_faq != previous.has_faq:
        chips.append(
            DeltaChip(label="FAQ added", tone="positive")
            if current.has_faq
            else DeltaChip(label="FAQ removed", tone="negative")
        )
    if score_delta >= SCORE_CHIP_THRESHOLD:
        chips.append(DeltaChip(label="Score improved", tone="positive"))
    elif score_delta <= -SCORE_CHIP_THRESHOLD:
        chips.append(DeltaChip(label="Score dropped", tone="negative"))

    return ScanDelta(
        score_delta=score_delta,
        coverage_delta=coverage_delta,
        readiness_changed=current.readiness != previous.readiness,
        chips=chips[:MAX_DELTA_CHIPS],
        summary_line=(
            f"Since last scan: Score {format_delta(score_delta)}, "
            f"Coverage {format_delta(coverage_delta)}"
        ),
    )


def normalize_url(url: str) -> str:
    """Lowercase host without ``www.`` plus the path without a trailing slash."""
    if not url:
        return ""
    parsed = urlparse(url.strip())
    if parsed.scheme and parsed.hostname:
        host = re.sub(r"^www\.", "", parsed.hostname.lower())
        return f"{host}{parsed.path.rstrip('/')}"
    bare = re.sub(r"^https?://", "", url.strip(), flags=re.I)
    bare = re.sub(r"^www\.", "", bare, flags=re.I)
    return bare.rstrip("/").lower()


def build_scan_summary(
    analysis: AnalysisResult,
    *,
    url: str,
    report_id: str,
    user_id: str | None = None,
    coverage: Coverage | None = None,
) -> ScanSummary:
    coverage = coverage or build_coverage(analysis)
    extracted = analysis.extracted
    return ScanSummary(
        user_id=user_id,
        normalized_url=normalize_url(url),
        report_id=report_id,
        score=analysis.score,
        readiness=readiness_label(analysis),
        coverage_overall=coverage.overall,
        has_faq=extracted.has_faq,
        has_schema=extracted.has_schema,
        has_pricing=extracted.has_pricing,
        primary_blocker=primary_blocker(analysis, coverage),
    )


# =============================================================================
# Full scan records
# =============================================================================


def compute_scan_hash(payload: dict) -> str:
    """SHA-256 of the canonical JSON form of ``payload``."""
    encoded = json.dumps(payload, sort_keys=True, separators=(",", ":"), default=str)
    return hashlib.sha256(encoded.encode("utf-8")).hexdigest()


def build_scan_record(url: str, analysis: AnalysisResult) -> ScanRecord:
    """Content-addressed history record; equal analyses hash equal."""
    extracted = analysis.extracted
    breakdown = sorted(
        (
            BreakdownEntry(
                label=item.label,
                category=item.category,
                points=item.points,
                max=item.max,
            )
            for item in analysis.breakdown
        ),
        key=lambda entry: f"{entry.category}::{entry.label}",
    )
    schema_types = sorted(extracted.schema_types)
    signals = ScanSignals(
        has_faq=extracted.has_faq,
        has_schema=extracted.has_schema_json_ld or extracted.has_schema,
        has_pricing=extracted.has_pricing,
        has_about=extracted.has_about,
        has_contact=extracted.has_contact_signals,
        schema_types=schema_types,
    )
    digest = compute_scan_hash(
        {
            "score": analysis.score,
            "readiness": analysis.analysis_status,
            "breakdown": [entry.model_dump() for entry in breakdown],
            "signals": signals.model_dump(),
        }
    )
    pricing_evidence = (
        extracted.evidence.pricing_evidence[0]
        if extracted.evidence and extracted.evidence.pricing_evidence
        else None
    )
    return ScanRecord(
        url=url,
        domain=extracted.domain or extract_domain(url),
        canonical_url=extracted.canonical_url or extracted.evaluated_url,
        score=analysis.score,
        readiness=analysis.analysis_status,
        breakdown=breakdown,
        signals=signals,
        evidence=ScanEvidence(
            title_text=extracted.title,
            h1_text=extracted.h1s[0] if extracted.h1s else None,
            meta_description=extracted.meta_description,
            pricing_evidence=pricing_evidence,
            schema_types=schema_types,
        ),
        snapshot_quality=analysis.snapshot_quality or "ok",
        fetch_status=analysis.fetch_diagnostics.status if analysis.fetch_diagnostics else None,
        hash=digest,
    )


def _breakdown_changes(
    previous: list[BreakdownEntry], current: list[BreakdownEntry]
) -> list[BreakdownChange]:
    before = {f"{e.category}::{e.label}": e for e in previous}
    after = {f"{e.category}::{e.label}": e for e in current}
    changes = []
    for key in dict.fromkeys([*before, *after]):
        old, new = before.get(key), after.get(key)
        old_points = old.points if old else 0
        new_points = new.points if new else 0
        delta = new_points - old_points
        if delta == 0:
            continue
        category, label = key.split("::", 1)
        changes.append(
            BreakdownChange(
                label=label,
                category=category,
                delta=delta,
                previous_points=old_points,
                current_points=new_points,
                max=(old or new).max,
            )
        )
    changes.sort(key=lambda change: abs(change.delta), reverse=True)
    return changes[:MAX_BREAKDOWN_CHANGES]


def diff_scans(previous: ScanRecord | None, current: ScanRecord) -> ScanDiff:
    if previous is None:
        return ScanDiff(changed=True, score_delta=0, readiness_changed=False)

    gained, lost = [], []
    for name in TRACKED_SIGNALS:
        was, now = getattr(previous.signals, name), getattr(current.signals, name)
        if was != now:
            (gained if now else lost).append(name)

    before_types = set(previous.signals.schema_types)
    after_types = set(current.signals.schema_types)

    content_changes = []
    if (previous.evidence.title_text or "") != (current.evidence.title_text or ""):
        content_changes.append("Title changed")
    if (previous.evidence.h1_text or "") != (current.evidence.h1_text or ""):
        content_changes.append("H1 changed")
    if (previous.evidence.meta_description or "") != (current.evidence.meta_description or ""):
        content_changes.append("Meta description changed")

    return ScanDiff(
        changed=previous.hash != current.hash,
        score_delta=current.score - previous.score,
        readiness_changed=current.readiness != previous.readiness,
        signal_changes=SignalChanges(
            gained=gained,
            lost=lost,
            schema_added=sorted(after_types - before_types),
            schema_removed=sorted(before_types - after_types),
        ),
        breakdown_changes=_breakdown_changes(previous.breakdown, current.breakdown),
        content_changes=content_changes,
    )
