"""
Shared helpers for CLI commands.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import click

from ..config.loader import load_settings
from ..errors import ConfigError
from ..models.config import DeploySettings

EXIT_FAILED = 1
EXIT_CONFIG = 2


def load_or_exit(config_path: Optional[str]) -> DeploySettings:
    """Load settings, or print the problem and exit with the config status."""
    try:
        return load_settings(Path(config_path) if config_path else None)
    except ConfigError as e:
        click.secho(f"✗ Configuration error: {e}", fg="red", err=True)
        raise SystemExit(EXIT_CONFIG)
