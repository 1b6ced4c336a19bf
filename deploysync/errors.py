"""
Error types raised by pipeline components.

Components raise these; DeploymentPipeline turns them into StageEntry
values and a terminal failed result, so nothing escapes a run.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Union


class DeploySyncError(Exception):
    """Base class for all deploysync errors."""

    kind = "error"

    def to_dict(self) -> dict:
        return {"kind": self.kind, "message": str(self)}


class ConfigError(DeploySyncError):
    """Configuration is missing or invalid."""

    kind = "config_error"


class SourceNotFound(DeploySyncError):
    """A source directory the stage depends on does not exist."""

    kind = "source_not_found"

    def __init__(self, path: Union[str, Path], role: str = "source"):
        self.path = Path(path)
        self.role = role
        super().__init__(f"{role} directory does not exist: {self.path}")

    def to_dict(self) -> dict:
        data = super().to_dict()
        data.update({"path": str(self.path), "role": self.role})
        return data


class MirrorFatal(DeploySyncError):
    """The mirror tool reported an unrecoverable condition."""

    kind = "mirror_fatal"

    def __init__(self, code: int, description: str):
        self.code = code
        self.description = description
        super().__init__(f"mirror tool failed (code {code}): {description}")

    def to_dict(self) -> dict:
        data = super().to_dict()
        data.update({"code": self.code, "description": self.description})
        return data


class ArchiveToolUnavailable(DeploySyncError):
    """A compressor could not be used. Only surfaced if both tools fail."""

    kind = "archive_tool_unavailable"

    def __init__(self, tool: str, reason: Optional[str] = None):
        self.tool = tool
        self.reason = reason or "not available"
        super().__init__(f"{tool}: {self.reason}")

    def to_dict(self) -> dict:
        data = super().to_dict()
        data.update({"tool": self.tool, "reason": self.reason})
        return data


class ArchiveBuildFailed(DeploySyncError):
    kind = "archive_build_failed"

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"archive build failed: {reason}")


class RelocationFailed(DeploySyncError):
    kind = "relocation_failed"

    def __init__(self, cause: str):
        self.cause = cause
        super().__init__(f"relocation failed: {cause}")
