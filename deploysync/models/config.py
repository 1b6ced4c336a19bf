"""
Config Models — Pydantic schemas for resolved deployment settings.

PipelineConfig is built once before a run and is immutable afterwards.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, field_validator


class PipelineConfig(BaseModel):
    """The four filesystem locations a run operates on."""

    model_config = ConfigDict(frozen=True)

    mirror_source: Path
    mirror_target: Path
    archive_source: Path
    archive_destination: Path

    @field_validator(
        "mirror_source",
        "mirror_target",
        "archive_source",
        "archive_destination",
        mode="before",
    )
    @classmethod
    def _not_empty(cls, value):
        if value is None or not str(value).strip():
            raise ValueError("path must not be empty")
        return value

    def resolved(self, base: Path) -> "PipelineConfig":
        """Return a copy with ~ expanded and relative paths anchored at *base*."""

        def _resolve(p: Path) -> Path:
            p = p.expanduser()
            if not p.is_absolute():
                p = base / p
            return p.resolve()

        return PipelineConfig(
            mirror_source=_resolve(self.mirror_source),
            mirror_target=_resolve(self.mirror_target),
            archive_source=_resolve(self.archive_source),
            archive_destination=_resolve(self.archive_destination),
        )


def _default_powershell() -> str:
    return "powershell" if os.name == "nt" else "pwsh"


class ToolSettings(BaseModel):
    """Which external tools to drive, and where to stage the archive."""

    model_config = ConfigDict(frozen=True)

    mirror_tool: Literal["auto", "robocopy", "rsync"] = "auto"
    sevenzip_command: str = "7z"
    powershell_command: str = _default_powershell()
    staging_dir: Optional[Path] = None

    @property
    def effective_mirror_tool(self) -> str:
        if self.mirror_tool != "auto":
            return self.mirror_tool
        return "robocopy" if os.name == "nt" else "rsync"


def staging_path_for(destination: Path, staging_dir: Optional[Path] = None) -> Path:
    """Where the archive for *destination* is built before relocation."""
    return (staging_dir or destination.parent) / f".{destination.stem}.staging.zip"


class DeploySettings(BaseModel):
    """Everything a run needs, as loaded from file and environment."""

    model_config = ConfigDict(frozen=True)

    paths: PipelineConfig
    tools: ToolSettings = ToolSettings()
    ledger_path: Optional[Path] = None
    source_file: Optional[Path] = None

    def staging_path(self) -> Path:
        """Where the archive is built before relocation."""
        return staging_path_for(self.paths.archive_destination, self.tools.staging_dir)
