"""Typer CLI: run an analysis or a recommendation sweep from the terminal."""

import os

os.environ.setdefault("LOGFIRE_IGNORE_NO_CONFIG", "1")

import asyncio
import json
from pathlib import Path

import typer
from dotenv import load_dotenv
from pydantic import ValidationError

_project_root = Path(__file__).resolve().parent.parent.parent
load_dotenv(_project_root / ".env")
load_dotenv(_project_root / ".env.local")

from defaultanswer.config import get_settings
from defaultanswer.logging_config import setup_logfire
from defaultanswer.models.report_models import Report
from defaultanswer.models.sweep_models import SweepRequest
from defaultanswer.services.report_service import generate_report
from defaultanswer.services.sweep_runner import SweepConfigurationError, SweepRunner

app = typer.Typer(help="DefaultAnswer: AI recommendation readiness for websites.")

STATUS_COLORS = {
    "ok": typer.colors.GREEN,
    "snapshot_incomplete": typer.colors.YELLOW,
    "blocked": typer.colors.RED,
    "error": typer.colors.RED,
}


def _print_report(report: Report) -> None:
    analysis = report.analysis
    status = typer.style(
        analysis.analysis_status, fg=STATUS_COLORS[analysis.analysis_status], bold=True
    )
    typer.echo(f"{report.url} [{status}]")
    if analysis.score >= 0:
        typer.echo(f"Score: {analysis.score}/100  ({report.readiness.label})")
    typer.echo(report.readiness.explanation)
    typer.echo(f"Coverage: {report.coverage.overall}%  Next: {report.coverage.next_move}")

    typer.echo("\nBreakdown:")
    for item in analysis.breakdown:
        typer.echo(f"  {item.points:>2}/{item.max:<2} {item.label}: {item.reason}")

    decision = report.fix_decision
    if decision.kind == "top_fix" and decision.fix:
        typer.echo(f"\nFix first ({decision.fix.priority}): {decision.fix.action}")
    elif decision.kind == "no_critical_fixes":
        typer.echo("\nNo critical fixes. Remaining items are retrieval optimizations.")

    if report.delta:
        typer.echo(f"\n{report.delta.summary_line}")
    if report.belief and report.belief.history:
        typer.echo(report.belief.history[-1].delta_explanation)


@app.command()
def analyze(
    url: str = typer.Argument(..., help="Website to analyze"),
    multi_page: bool = typer.Option(
        False, "--multi-page", help="Also evaluate pricing/about/contact/features pages"
    ),
    report_id: str | None = typer.Option(None, help="Report ID (generated when omitted)"),
    as_json: bool = typer.Option(False, "--json", help="Print the full report as JSON"),
):
    """Analyze a website's readiness to be recommended by AI assistants."""
    setup_logfire()
    report = asyncio.run(generate_report(url, multi_page=multi_page, report_id=report_id))

    if as_json:
        typer.echo(json.dumps(report.model_dump(mode="json"), indent=2))
    else:
        _print_report(report)

    if report.analysis.analysis_status in ("blocked", "error"):
        raise typer.Exit(1)


@app.command()
def sweep(
    label: str = typer.Option("manual", help="Label stored with the sweep"),
    brand: str | None = typer.Option(None, help="Brand name to look for"),
    domain: str | None = typer.Option(None, help="Domain to look for"),
    category: str | None = typer.Option(None, help="Category used in prompts"),
    preset: str | None = typer.Option(
        None, help="learning_v1_1 or learning_confidence_gate_v1"
    ),
    limit: int | None = typer.Option(None, min=1, help="Only run the first N prompts"),
    openai: bool = typer.Option(True, "--openai/--no-openai"),
    anthropic: bool = typer.Option(True, "--anthropic/--no-anthropic"),
):
    """Ask language models the sweep prompt set and store every answer."""
    setup_logfire()
    if not get_settings().history_configured:
        typer.echo("✗ SUPABASE_URL and SUPABASE_SERVICE_KEY are required for sweeps", err=True)
        raise typer.Exit(1)

    try:
        request = SweepRequest(
            label=label,
            brand_name=brand,
            domain=domain,
            category=category,
            preset=preset,
            limit_prompts=limit,
            providers={"openai": openai, "anthropic": anthropic},
        )
    except ValidationError as e:
        fields = ", ".join(str(error["loc"][0]) for error in e.errors())
        raise typer.BadParameter(f"invalid value for {fields}") from e
    try:
        summary = asyncio.run(SweepRunner().run(request))
    except SweepConfigurationError as e:
        typer.echo(f"✗ {e}", err=True)
        raise typer.Exit(1)

    typer.echo(f"✓ Sweep {summary.sweep_id} ({summary.prompt_set_version})")
    typer.echo(
        f"  attempted={summary.attempted} inserted={summary.inserted} "
        f"failed={summary.failed} parse_failed={summary.parse_failed}"
    )
    for provider, stats in summary.provider_stats.items():
        typer.echo(f"  {provider}: {stats.succeeded}/{stats.attempted} succeeded")
    for error in summary.errors:
        typer.echo(typer.style(f"  {error}", fg=typer.colors.YELLOW))


if __name__ == "__main__":
    app()
