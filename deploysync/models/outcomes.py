"""
Outcome Models — Tagged results produced by pipeline stages.

MirrorOutcome comes out of the exit code classifier; ArchiveResult comes
out of a compressor. Both are created fresh per run and never persisted
except as ledger details.
"""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict


class MirrorOutcome(BaseModel):
    """
    Semantic result of one mirror tool invocation.

    kind:
        success              exit status 0-7, nothing to report
        success_with_notes   exit status 8-15, surfaced as diagnostic text
        fatal                exit status >= 16 or negative
    """

    model_config = ConfigDict(frozen=True)

    kind: Literal["success", "success_with_notes", "fatal"]
    code: int
    description: str

    @classmethod
    def success(cls, code: int, description: str) -> "MirrorOutcome":
        return cls(kind="success", code=code, description=description)

    @classmethod
    def with_notes(cls, code: int, description: str) -> "MirrorOutcome":
        return cls(kind="success_with_notes", code=code, description=description)

    @classmethod
    def fatal(cls, code: int, description: str) -> "MirrorOutcome":
        return cls(kind="fatal", code=code, description=description)

    @property
    def is_fatal(self) -> bool:
        return self.kind == "fatal"

    @property
    def has_notes(self) -> bool:
        return self.kind == "success_with_notes"


class ArchiveResult(BaseModel):
    """
    Result of building an archive.

    kind:
        built         the archive was written by `tool`
        failed        the tool ran and reported an error
        unavailable   the tool could not be launched at all
    """

    model_config = ConfigDict(frozen=True)

    kind: Literal["built", "failed", "unavailable"]
    tool: Optional[str] = None
    reason: Optional[str] = None

    @classmethod
    def built_with(cls, tool: str) -> "ArchiveResult":
        return cls(kind="built", tool=tool)

    @classmethod
    def failed(cls, reason: str, tool: Optional[str] = None) -> "ArchiveResult":
        return cls(kind="failed", tool=tool, reason=reason)

    @classmethod
    def unavailable(cls, reason: str, tool: Optional[str] = None) -> "ArchiveResult":
        return cls(kind="unavailable", tool=tool, reason=reason)

    @property
    def ok(self) -> bool:
        return self.kind == "built"
