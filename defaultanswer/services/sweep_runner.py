"""Recommendation sweeps: ask language models the prompt set and store what they say."""

import asyncio
import os
import time
from typing import Callable, Protocol

import logfire
from pydantic_ai import Agent

from defaultanswer.config import get_settings
from defaultanswer.constants import DEFAULT_SWEEP_BRAND, DEFAULT_SWEEP_DOMAIN
from defaultanswer.db import repository
from defaultanswer.logging_config import mask_secret
from defaultanswer.models.sweep_models import (
    ProviderStats,
    SweepModelSpec,
    SweepRequest,
    SweepExtraction,
    SweepResultRow,
    SweepSummary,
)
from defaultanswer.services.sweep_extractor import (
    extract_learning_fields,
    extract_sweep_signals,
)
from defaultanswer.services.sweep_prompts import (
    PROMPT_SET_VERSION,
    build_brand_names,
    build_domains,
    build_prompt,
    default_category,
    select_prompts,
    should_expect_list,
)

SWEEP_SYSTEM_PROMPT = "You are a helpful assistant. Follow formatting instructions exactly."


class SweepConfigurationError(Exception):
    """Raised when a sweep cannot start (no providers or models configured)."""


class LanguageModel(Protocol):
    """Protocol for text completion."""

    async def complete(self, prompt: str, model: str) -> str:
        """Return the model's plain-text answer to ``prompt``."""
        ...


class PydanticAILanguageModel:
    """Plain-text completions through PydanticAI Gateway."""

    def __init__(self, api_key: str | None = None):
        api_key = api_key or get_settings().pydantic_ai_gateway_api_key
        if api_key:
            os.environ.setdefault("PYDANTIC_AI_GATEWAY_API_KEY", api_key)
        self._agents: dict[str, Agent] = {}

    def _agent(self, model: str) -> Agent:
        if model not in self._agents:
            self._agents[model] = Agent(model, system_prompt=SWEEP_SYSTEM_PROMPT)
        return self._agents[model]

    async def complete(self, prompt: str, model: str) -> str:
        result = await self._agent(model).run(prompt)
        return result.output


ResultSink = Callable[[SweepResultRow], None]
SweepCreator = Callable[..., str]


def resolve_models(request: SweepRequest) -> list[SweepModelSpec]:
    """Enabled providers paired with their model (request override, then settings)."""
    settings = get_settings()
    configured = {
        "openai": request.openai_model or settings.openai_model,
        "anthropic": request.anthropic_model or settings.anthropic_model,
    }
    specs = [
        SweepModelSpec(provider=provider, model=configured[provider])
        for provider, enabled in request.providers.items()
        if enabled and configured.get(provider)
    ]
    if not specs:
        raise SweepConfigurationError("No sweep providers enabled or configured")
    return specs


class SweepRunner:
    """
    Runs every selected prompt against every enabled provider.

    A failing call, a timeout or a failed insert is counted and recorded,
    never raised; the loop always finishes the whole grid.
    """

    def __init__(
        self,
        language_model: LanguageModel | None = None,
        *,
        create_sweep: SweepCreator = repository.create_sweep,
        insert_result: ResultSink = repository.insert_sweep_result,
        call_timeout: float | None = None,
    ):
        settings = get_settings()
        self.language_model = language_model or PydanticAILanguageModel()
        self.create_sweep = create_sweep
        self.insert_result = insert_result
        self.call_timeout = call_timeout or settings.sweep_call_timeout_seconds

    async def _call(self, prompt: str, model: str) -> tuple[str | None, str | None, int]:
        started = time.perf_counter()
        try:
            text = await asyncio.wait_for(
                self.language_model.complete(prompt, model), timeout=self.call_timeout
            )
            return text, None, int((time.perf_counter() - started) * 1000)
        except asyncio.TimeoutError:
            error = f"Timed out after {self.call_timeout:g}s"
        except Exception as e:
            error = f"{type(e).__name__}: {e}"
        return None, error, int((time.perf_counter() - started) * 1000)

    async def run(self, request: SweepRequest) -> SweepSummary:
        settings = get_settings()
        specs = resolve_models(request)
        brand_name = request.brand_name or DEFAULT_SWEEP_BRAND
        domain = request.domain or DEFAULT_SWEEP_DOMAIN
        category = request.category or default_category(request.preset)
        prompts = select_prompts(request.preset, request.limit_prompts)
        brand_names = build_brand_names(brand_name)
        domains = build_domains(domain)

        logfire.info(
            "Starting sweep",
            label=request.label,
            preset=request.preset,
            prompts=len(prompts),
            models={spec.provider: spec.model for spec in specs},
            gateway_key=mask_secret(settings.pydantic_ai_gateway_api_key),
        )

        sweep_id = self.create_sweep(
            label=request.label,
            prompt_set_version=PROMPT_SET_VERSION,
            category=category,
            brand_name=brand_name,
            domain=domain,
            models={spec.provider: spec.model for spec in specs},
        )
        summary = SweepSummary(
            sweep_id=sweep_id,
            prompt_set_version=PROMPT_SET_VERSION,
            prompts_count=len(prompts),
            provider_stats={spec.provider: ProviderStats() for spec in specs},
        )

        for spec in specs:
            stats = summary.provider_stats[spec.provider]
            for prompt in prompts:
                prompt_text = build_prompt(
                    prompt.template, category=category, brand_name=brand_name, domain=domain
                )
                summary.attempted += 1
                stats.attempted += 1

                response_text, error, latency_ms = await self._call(prompt_text, spec.model)
                if error:
                    summary.failed += 1
                    stats.failed += 1
                    summary.errors.append(f"{spec.provider}/{prompt.key}: {error}")
                    logfire.warning(
                        "Sweep call failed",
                        sweep_id=sweep_id,
                        provider=spec.provider,
                        prompt_key=prompt.key,
                        error=error,
                    )
                    extraction = SweepExtraction()
                else:
                    stats.succeeded += 1
                    extraction = extract_sweep_signals(
                        response_text,
                        brand_names,
                        domains,
                        expect_list=should_expect_list(prompt.key),
                    )
                    if extraction.parse_failed:
                        summary.parse_failed += 1

                reason_if_unknown = None
                if error:
                    reason_if_unknown = "call_failed"
                elif extraction.parse_failed:
                    reason_if_unknown = "parse_failed"
                elif not extraction.mentioned:
                    reason_if_unknown = "not_mentioned"

                row = SweepResultRow(
                    sweep_id=sweep_id,
                    provider=spec.provider,
                    model=spec.model,
                    prompt_key=prompt.key,
                    prompt_text=prompt_text,
                    response_text=response_text,
                    error_text=error or ("parse_failed" if extraction.parse_failed else None),
                    latency_ms=latency_ms,
                    mentioned=extraction.mentioned,
                    mention_rank=extraction.mention_rank,
                    winner=extraction.winner,
                    alternatives=extraction.alternatives,
                    has_domain_mention=extraction.has_domain_mention,
                    has_brand_mention=extraction.has_brand_mention,
                    confidence=extraction.confidence,
                    evaluation_notes={
                        "intent": prompt.intent,
                        "extraction_confidence": extraction.extraction_confidence,
                        "reason_if_unknown": reason_if_unknown,
                    },
                    learning_extract=(
                        extract_learning_fields(prompt_text, response_text)
                        if response_text
                        else None
                    ),
                )
                try:
                    self.insert_result(row)
                    summary.inserted += 1
                except Exception as e:
                    summary.errors.append(f"{spec.provider}/{prompt.key}: insert failed: {e}")
                    logfire.error(
                        "Sweep result insert failed",
                        sweep_id=sweep_id,
                        prompt_key=prompt.key,
                        error=str(e),
                        error_type=type(e).__name__,
                    )

        logfire.info(
            "Sweep completed",
            sweep_id=sweep_id,
            attempted=summary.attempted,
            inserted=summary.inserted,
            failed=summary.failed,
            parse_failed=summary.parse_failed,
        )
        return summary
