"""
Config Loader — Resolve deployment settings from YAML and environment.

Sources, lowest to highest precedence:
1. YAML file (default: ./deploysync.yaml)
2. DEPLOYSYNC_* environment variables

## YAML layout

    paths:
      mirror_source: build/server
      mirror_target: /srv/game/Resources/Server/App
      archive_source: build/client
      archive_destination: /srv/game/Resources/Client/App.zip
    tools:
      mirror_tool: auto          # auto | robocopy | rsync
      sevenzip: 7z
      powershell: pwsh
      staging_dir: /srv/game/tmp # optional
    ledger: logs/deploysync.ndjson

Relative paths are anchored at the YAML file's directory, or at the
current directory when no file is used.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml
from pydantic import ValidationError

from ..errors import ConfigError
from ..models.config import DeploySettings, PipelineConfig, ToolSettings

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = "deploysync.yaml"

ENV_PATHS = {
    "mirror_source": "DEPLOYSYNC_MIRROR_SOURCE",
    "mirror_target": "DEPLOYSYNC_MIRROR_TARGET",
    "archive_source": "DEPLOYSYNC_ARCHIVE_SOURCE",
    "archive_destination": "DEPLOYSYNC_ARCHIVE_DESTINATION",
}

ENV_TOOLS = {
    "mirror_tool": "DEPLOYSYNC_MIRROR_TOOL",
    "sevenzip_command": "DEPLOYSYNC_SEVENZIP",
    "powershell_command": "DEPLOYSYNC_POWERSHELL",
    "staging_dir": "DEPLOYSYNC_STAGING_DIR",
}

ENV_LEDGER = "DEPLOYSYNC_LEDGER"

# Short YAML keys accepted under tools:
TOOL_ALIASES = {
    "sevenzip": "sevenzip_command",
    "7z": "sevenzip_command",
    "powershell": "powershell_command",
}


def load_yaml(path: Path) -> Dict[str, Any]:
    """Load a YAML file and return its contents."""
    with path.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ConfigError(f"{path}: expected a mapping at the top level")
    return data


def _section(data: Dict[str, Any], name: str, path: Optional[Path]) -> Dict[str, Any]:
    section = data.get(name) or {}
    if not isinstance(section, dict):
        raise ConfigError(f"{path or 'config'}: '{name}' must be a mapping")
    return dict(section)


def _anchor(value: Any, base: Path) -> Path:
    p = Path(str(value)).expanduser()
    if not p.is_absolute():
        p = base / p
    return p.resolve()


def _describe_validation_error(exc: ValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(x) for x in err.get("loc", ()))
        parts.append(f"{loc}: {err.get('msg')}")
    return "; ".join(parts)


def load_settings(
    config_path: Optional[Path] = None,
    env: Optional[Mapping[str, str]] = None,
    cwd: Optional[Path] = None,
) -> DeploySettings:
    """
    Load and validate deployment settings.

    Args:
        config_path: Explicit YAML file. Must exist if given.
        env: Environment mapping (defaults to os.environ)
        cwd: Directory for the default config file and relative paths

    Returns:
        DeploySettings with all paths absolute

    Raises:
        ConfigError: file unreadable, or a required path missing/empty
    """
    env = os.environ if env is None else env
    cwd = Path(cwd or Path.cwd())

    source_file: Optional[Path] = None
    data: Dict[str, Any] = {}

    if config_path is not None:
        source_file = Path(config_path)
        if not source_file.is_absolute():
            source_file = cwd / source_file
        if not source_file.is_file():
            raise ConfigError(f"Config file not found: {source_file}")
    elif (cwd / DEFAULT_CONFIG_FILE).is_file():
        source_file = cwd / DEFAULT_CONFIG_FILE

    if source_file is not None:
        logger.debug(f"Loading config from {source_file}")
        try:
            data = load_yaml(source_file)
        except yaml.YAMLError as e:
            raise ConfigError(f"{source_file}: invalid YAML: {e}")

    base = source_file.parent.resolve() if source_file else cwd.resolve()

    paths = _section(data, "paths", source_file)
    tools = {
        TOOL_ALIASES.get(k, k): v
        for k, v in _section(data, "tools", source_file).items()
    }
    ledger = data.get("ledger")

    # Environment overrides
    for key, var in ENV_PATHS.items():
        if env.get(var):
            paths[key] = env[var]
    for key, var in ENV_TOOLS.items():
        if env.get(var):
            tools[key] = env[var]
    if env.get(ENV_LEDGER):
        ledger = env[ENV_LEDGER]

    missing = [k for k in ENV_PATHS if not str(paths.get(k) or "").strip()]
    if missing:
        hints = ", ".join(f"{k} ({ENV_PATHS[k]})" for k in missing)
        raise ConfigError(f"Missing required path(s): {hints}")

    if tools.get("staging_dir"):
        tools["staging_dir"] = _anchor(tools["staging_dir"], base)

    try:
        pipeline_config = PipelineConfig(**paths).resolved(base)
        tool_settings = ToolSettings(**tools)
        settings = DeploySettings(
            paths=pipeline_config,
            tools=tool_settings,
            ledger_path=_anchor(ledger, base) if ledger else None,
            source_file=source_file,
        )
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration: {_describe_validation_error(e)}")

    logger.debug(
        f"Config resolved: mirror_tool={settings.tools.effective_mirror_tool}, "
        f"staging={settings.staging_path()}"
    )
    return settings
