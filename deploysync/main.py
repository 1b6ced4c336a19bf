"""
deploysync — CLI Entry Point

Usage:
    deploysync run [--config deploysync.yaml] [--dry-run] [--json]
    deploysync check [--json]
    deploysync show-config
    deploysync explain-code CODE
    deploysync history [--limit N]
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

import click
from dotenv import load_dotenv

from .cli.config import check, show_config
from .cli.helpers import EXIT_FAILED, load_or_exit
from .cli.ops import explain_code, history
from .engine.pipeline import DeploymentPipeline, PipelineResult
from .logging_config import setup_logging
from .persistence.ledger import RunLedger

STATUS_STYLE = {
    "ok": ("✓", "green"),
    "notes": ("⚠", "yellow"),
    "skipped": ("⊘", "cyan"),
    "failed": ("✗", "red"),
}


@click.group()
@click.option("--log-level", default=None, help="DEBUG, INFO, WARNING, ERROR (default: $LOG_LEVEL or INFO)")
@click.option("--log-format", type=click.Choice(["text", "json"]), default=None, help="Log output format")
@click.pass_context
def cli(ctx: click.Context, log_level: Optional[str], log_format: Optional[str]) -> None:
    """deploysync — Mirror, package, and relocate deployment artifacts."""
    env_file = Path.cwd() / ".env"
    if env_file.exists():
        load_dotenv(env_file, override=False)

    setup_logging(level=log_level, format_type=log_format)
    ctx.ensure_object(dict)


def print_report(result: PipelineResult) -> None:
    """Print the StageReport as a human-readable table."""
    click.echo()
    click.secho(f"Run {result.run_id}", bold=True)
    for entry in result.report.entries:
        icon, color = STATUS_STYLE.get(entry.status, ("?", "white"))
        code = f" [code {entry.code}]" if entry.code is not None else ""
        click.secho(f"  {icon} {entry.stage:<11}", fg=color, nl=False)
        click.echo(f" {entry.status:<8}{code} {entry.message}")
    click.echo()

    if result.dry_run:
        click.secho("(Dry run — nothing was changed)", fg="cyan")
    elif result.ok:
        click.secho(f"✓ Deployment complete ({result.duration_ms}ms)", fg="green", bold=True)
    else:
        click.secho(f"✗ Failed in {result.failed_stage}: {result.error}", fg="red", bold=True)


@cli.command()
@click.option("--config", "config_path", default=None, help="Path to deploysync.yaml")
@click.option("--dry-run", is_flag=True, help="Show what would happen, change nothing")
@click.option("--json", "as_json", is_flag=True, help="Print the result as JSON")
@click.option("--ledger", "ledger_path", default=None, help="Append run events to this NDJSON file")
def run(config_path: Optional[str], dry_run: bool, as_json: bool, ledger_path: Optional[str]) -> None:
    """Mirror, archive, and relocate in one idempotent run."""
    settings = load_or_exit(config_path)

    ledger = RunLedger(Path(ledger_path)) if ledger_path else None
    pipeline = DeploymentPipeline.from_settings(settings, ledger=ledger)
    result = pipeline.run(dry_run=dry_run)

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2, default=str))
    else:
        print_report(result)

    if not result.ok and not result.dry_run:
        raise SystemExit(EXIT_FAILED)


cli.add_command(check)
cli.add_command(show_config)
cli.add_command(explain_code)
cli.add_command(history)


if __name__ == "__main__":
    cli()
