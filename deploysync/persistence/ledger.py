"""
Run Ledger — Append-only NDJSON record of pipeline runs.

Each line is one JSON object (newline-delimited JSON).
Events are never edited, only appended.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional
from uuid import uuid4

from ..models.report import StageEntry

logger = logging.getLogger(__name__)


class RunLedger:
    """
    Append-only NDJSON ledger writer.

    Usage:
        ledger = RunLedger(Path("logs/deploysync.ndjson"))
        ledger.emit("run_start", run_id="R-123")
    """

    def __init__(self, path: Path):
        self.path = Path(path)
        self._ensure_exists()

    def _ensure_exists(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        if not self.path.exists():
            self.path.touch()

    def emit(
        self,
        event_type: str,
        run_id: str,
        level: str = "info",
        details: Optional[Dict[str, Any]] = None,
    ) -> str:
        """
        Append one event.

        Returns:
            Generated event_id
        """
        event_id = f"E-{uuid4().hex[:8].upper()}"
        now = datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")

        entry: Dict[str, Any] = {
            "ts_iso": now,
            "event_id": event_id,
            "run_id": run_id,
            "level": level,
            "type": event_type,
        }
        if details is not None:
            entry["details"] = details

        with self.path.open("a", encoding="utf-8") as f:
            f.write(json.dumps(entry, default=str) + "\n")

        return event_id

    def emit_run_start(self, run_id: str, paths: Dict[str, str], dry_run: bool) -> str:
        return self.emit("run_start", run_id, details={"paths": paths, "dry_run": dry_run})

    def emit_stage(self, run_id: str, entry: StageEntry) -> str:
        level = {"failed": "error", "notes": "warning"}.get(entry.status, "info")
        return self.emit("stage", run_id, level=level, details=entry.model_dump())

    def emit_run_end(
        self,
        run_id: str,
        state: str,
        duration_ms: int,
        failed_stage: Optional[str] = None,
        error: Optional[str] = None,
        archive_tool: Optional[str] = None,
    ) -> str:
        return self.emit(
            "run_end",
            run_id,
            level="error" if failed_stage else "info",
            details={
                "state": state,
                "duration_ms": duration_ms,
                "failed_stage": failed_stage,
                "error": error,
                "archive_tool": archive_tool,
            },
        )


def read_runs(path: Path, limit: int = 10) -> List[Dict[str, Any]]:
    """Return the most recent run_end events, newest first."""
    path = Path(path)
    if not path.exists():
        return []

    runs: List[Dict[str, Any]] = []
    with path.open("r", encoding="utf-8") as f:
        for line_no, line in enumerate(f, start=1):
            line = line.strip()
            if not line:
                continue
            try:
                event = json.loads(line)
            except json.JSONDecodeError:
                logger.warning(f"Skipping malformed ledger line {line_no} in {path}")
                continue
            if event.get("type") == "run_end":
                runs.append(event)

    runs.reverse()
    return runs[:limit]
