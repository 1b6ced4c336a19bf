"""
CLI ops commands — exit code lookup and run history.

Usage:
    deploysync explain-code CODE
    deploysync history [--ledger PATH] [--limit N] [--json]
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

import click

from .helpers import load_or_exit


@click.command("explain-code")
@click.argument("code", type=int)
def explain_code(code: int) -> None:
    """Explain what a mirror tool exit status means for a run."""
    from ..mirror.exit_codes import classify

    outcome = classify(code)
    verdict = {
        "success": ("✅ success", "green"),
        "success_with_notes": ("⚠️  success with notes (logged, not fatal)", "yellow"),
        "fatal": ("❌ fatal (run stops)", "red"),
    }[outcome.kind]

    click.echo(f"Code {outcome.code}: {outcome.description}")
    click.secho(f"  {verdict[0]}", fg=verdict[1])


@click.command("history")
@click.option("--ledger", "ledger_path", default=None, help="NDJSON ledger (default: from config)")
@click.option("--config", "config_path", default=None, help="Path to deploysync.yaml")
@click.option("--limit", default=10, show_default=True, help="Number of runs to show")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def history(ledger_path: Optional[str], config_path: Optional[str], limit: int, as_json: bool) -> None:
    """Show recent pipeline runs from the ledger."""
    from dateutil import parser as date_parser

    from ..persistence.ledger import read_runs

    if ledger_path:
        path = Path(ledger_path)
    else:
        settings = load_or_exit(config_path)
        if settings.ledger_path is None:
            click.echo("No ledger configured. Set 'ledger:' in deploysync.yaml or pass --ledger.")
            return
        path = settings.ledger_path

    runs = read_runs(path, limit=limit)

    if as_json:
        click.echo(json.dumps(runs, indent=2))
        return

    if not runs:
        click.echo(f"No runs recorded in {path}")
        return

    click.echo()
    for event in runs:
        details = event.get("details", {})
        ts = date_parser.isoparse(event["ts_iso"]).strftime("%Y-%m-%d %H:%M:%S")
        state = details.get("state", "?")
        color = {"done": "green", "failed": "red"}.get(state, "cyan")
        click.echo(f"  {ts}  {event.get('run_id', '?'):<26} ", nl=False)
        click.secho(f"{state:<7}", fg=color, nl=False)
        if details.get("failed_stage"):
            click.echo(f" {details['failed_stage']}: {details.get('error')}")
        else:
            click.echo(f" {details.get('duration_ms', 0)}ms {details.get('archive_tool') or ''}")
    click.echo()
