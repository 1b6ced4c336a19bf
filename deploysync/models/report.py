"""
Stage Report — Ordered, append-only log of stage outcomes for one run.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field


StageStatus = Literal["ok", "notes", "skipped", "failed"]


class StageEntry(BaseModel):
    """One (stage name, outcome) pair."""

    stage: str
    status: StageStatus
    message: str = ""
    code: Optional[int] = None
    ts_iso: str = Field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")
    )
    details: Optional[Dict[str, Any]] = None


class StageReport(BaseModel):
    """
    Diagnostic record accumulated by DeploymentPipeline.

    Entries are only ever appended. The report is emitted in full whether
    the run succeeds or fails.
    """

    entries: List[StageEntry] = Field(default_factory=list)

    def add(
        self,
        stage: str,
        status: StageStatus,
        message: str = "",
        code: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> StageEntry:
        entry = StageEntry(
            stage=stage,
            status=status,
            message=message,
            code=code,
            details=details,
        )
        self.entries.append(entry)
        return entry

    @property
    def stages(self) -> List[str]:
        return [e.stage for e in self.entries]

    @property
    def failed(self) -> Optional[StageEntry]:
        """First failed entry, if any."""
        return next((e for e in self.entries if e.status == "failed"), None)
