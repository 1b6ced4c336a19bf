"""
CLI config commands — environment check and resolved settings.

Usage:
    deploysync check [--config PATH] [--json]
    deploysync show-config [--config PATH] [--json]
"""

from __future__ import annotations

import json
from typing import Optional

import click

from .helpers import EXIT_FAILED, load_or_exit


@click.command("check")
@click.option("--config", "config_path", default=None, help="Path to deploysync.yaml")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def check(config_path: Optional[str], as_json: bool) -> None:
    """Check directories and external tools without changing anything."""
    from ..config.validator import EnvironmentValidator

    settings = load_or_exit(config_path)
    validator = EnvironmentValidator(settings)
    results = validator.validate_all()
    ready = validator.is_ready(results)

    if as_json:
        click.echo(json.dumps({
            "ready": ready,
            "checks": [r.to_dict() for r in results],
        }, indent=2))
    else:
        click.echo()
        click.secho("🔍 Environment Check", bold=True)
        click.echo()
        for r in results:
            if r.ok:
                click.secho(f"  ✅ {r.name}", fg="green", nl=False)
            elif r.required:
                click.secho(f"  ❌ {r.name}", fg="red", nl=False)
            else:
                click.secho(f"  ⬚  {r.name}", fg="yellow", nl=False)
            click.echo(f": {r.detail}")
            if not r.ok and r.guidance:
                click.echo(f"      → {r.guidance}")
        click.echo()
        if ready:
            click.secho("✓ Ready to deploy", fg="green", bold=True)
        else:
            click.secho("✗ Not ready — fix the items above", fg="red", bold=True)

    if not ready:
        raise SystemExit(EXIT_FAILED)


@click.command("show-config")
@click.option("--config", "config_path", default=None, help="Path to deploysync.yaml")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def show_config(config_path: Optional[str], as_json: bool) -> None:
    """Show the resolved configuration."""
    settings = load_or_exit(config_path)

    data = {
        "config_file": str(settings.source_file) if settings.source_file else None,
        "paths": {k: str(v) for k, v in settings.paths.model_dump().items()},
        "tools": {
            "mirror_tool": settings.tools.effective_mirror_tool,
            "sevenzip": settings.tools.sevenzip_command,
            "powershell": settings.tools.powershell_command,
        },
        "staging_path": str(settings.staging_path()),
        "ledger": str(settings.ledger_path) if settings.ledger_path else None,
    }

    if as_json:
        click.echo(json.dumps(data, indent=2))
        return

    click.echo()
    click.echo(f"  Config file:   {data['config_file'] or '(environment only)'}")
    click.echo()
    click.echo(f"  Mirror:        {data['paths']['mirror_source']}")
    click.echo(f"            →    {data['paths']['mirror_target']}")
    click.echo(f"  Archive:       {data['paths']['archive_source']}")
    click.echo(f"            →    {data['paths']['archive_destination']}")
    click.echo(f"  Staging:       {data['staging_path']}")
    click.echo()
    click.echo(f"  Mirror tool:   {data['tools']['mirror_tool']}")
    click.echo(f"  7-Zip:         {data['tools']['sevenzip']}")
    click.echo(f"  PowerShell:    {data['tools']['powershell']}")
    click.echo(f"  Ledger:        {data['ledger'] or '(disabled)'}")
    click.echo()
