"""
Deployment Pipeline — Mirror, archive, relocate.

A run is the atomic unit of execution. Each run:
1. Mirrors the mirror source into the mirror target
2. Builds a fresh archive of the archive source at the staging path
3. Moves the archive to its final destination
4. Returns a PipelineResult with the full StageReport

## Design Principles

- **Fail-fast**: the first failed stage ends the run; later stages never start
- **Idempotency**: stale outputs are removed before writing, so re-running
  after any partial failure converges to the same end state
- **Explicit results**: stage errors become report entries and a terminal
  failed state; nothing is raised out of run()

## Run ID Format

    R-{YYYYMMDD}T{HHMMSS}-{RANDOM}
    Example: R-20260204T221903-92929A

## Usage

    from deploysync.engine.pipeline import DeploymentPipeline

    pipeline = DeploymentPipeline.from_settings(settings)
    result = pipeline.run()

    if not result.ok:
        print(f"Failed in {result.failed_stage}: {result.error}")
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional
from uuid import uuid4

from ..archive.builder import ArchiveBuilder
from ..archive.compressors import PowerShellCompressor, SevenZipCompressor
from ..archive.relocator import ArchiveRelocator
from ..errors import ArchiveBuildFailed, DeploySyncError
from ..mirror.directory import DirectoryMirror
from ..mirror.tools import get_mirror_tool
from ..models.config import DeploySettings, PipelineConfig, staging_path_for
from ..models.report import StageEntry, StageReport
from ..persistence.ledger import RunLedger

logger = logging.getLogger(__name__)

STAGE_MIRRORING = "Mirroring"
STAGE_ARCHIVING = "Archiving"
STAGE_RELOCATING = "Relocating"


class PipelineState(str, Enum):
    """Pipeline states. FAILED is reachable from any non-idle state."""
    IDLE = "idle"
    MIRRORING = "mirroring"
    ARCHIVING = "archiving"
    RELOCATING = "relocating"
    DONE = "done"
    FAILED = "failed"


STAGE_STATES = {
    STAGE_MIRRORING: PipelineState.MIRRORING,
    STAGE_ARCHIVING: PipelineState.ARCHIVING,
    STAGE_RELOCATING: PipelineState.RELOCATING,
}


@dataclass
class PipelineResult:
    """Result of a pipeline run."""

    run_id: str
    started_at: str
    ended_at: Optional[str] = None
    duration_ms: int = 0
    dry_run: bool = False

    state: PipelineState = PipelineState.IDLE
    transitions: List[str] = field(default_factory=lambda: [PipelineState.IDLE.value])

    # Failure
    failed_stage: Optional[str] = None
    error: Optional[str] = None
    error_kind: Optional[str] = None

    archive_tool: Optional[str] = None
    report: StageReport = field(default_factory=StageReport)

    @property
    def ok(self) -> bool:
        return self.state == PipelineState.DONE

    def to_dict(self) -> Dict[str, Any]:
        return {
            "run_id": self.run_id,
            "started_at": self.started_at,
            "ended_at": self.ended_at,
            "duration_ms": self.duration_ms,
            "dry_run": self.dry_run,
            "state": self.state.value,
            "transitions": list(self.transitions),
            "failed_stage": self.failed_stage,
            "error": self.error,
            "error_kind": self.error_kind,
            "archive_tool": self.archive_tool,
            "report": [e.model_dump() for e in self.report.entries],
        }


def generate_run_id() -> str:
    """Generate a unique run ID."""
    ts = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%S")
    suffix = uuid4().hex[:6].upper()
    return f"R-{ts}-{suffix}"


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


class DeploymentPipeline:
    """
    Sequences DirectoryMirror → ArchiveBuilder → ArchiveRelocator.

    Components are injected so tests can substitute fakes; use
    from_settings() to wire the real external tools.
    """

    def __init__(
        self,
        config: PipelineConfig,
        mirror: DirectoryMirror,
        builder: ArchiveBuilder,
        relocator: ArchiveRelocator,
        staging_path: Optional[Path] = None,
        ledger: Optional[RunLedger] = None,
    ):
        self.config = config
        self.mirror = mirror
        self.builder = builder
        self.relocator = relocator
        self.staging_path = staging_path or staging_path_for(config.archive_destination)
        self.ledger = ledger

    @classmethod
    def from_settings(
        cls,
        settings: DeploySettings,
        ledger: Optional[RunLedger] = None,
    ) -> "DeploymentPipeline":
        """Create a pipeline backed by the configured external tools."""
        tools = settings.tools
        mirror_tool = get_mirror_tool(tools.effective_mirror_tool)
        if ledger is None and settings.ledger_path is not None:
            ledger = RunLedger(settings.ledger_path)

        return cls(
            config=settings.paths,
            mirror=DirectoryMirror(mirror_tool),
            builder=ArchiveBuilder(
                primary=SevenZipCompressor(tools.sevenzip_command),
                secondary=PowerShellCompressor(tools.powershell_command),
            ),
            relocator=ArchiveRelocator(),
            staging_path=settings.staging_path(),
            ledger=ledger,
        )

    # ─── Run ────────────────────────────────────────────────

    def run(self, dry_run: bool = False) -> PipelineResult:
        """
        Execute one pipeline run.

        Args:
            dry_run: If True, log what would happen and touch nothing

        Returns:
            PipelineResult; never raises for stage failures
        """
        start_time = time.time()
        result = PipelineResult(
            run_id=generate_run_id(),
            started_at=_now_iso(),
            dry_run=dry_run,
        )
        log_extra = {"run_id": result.run_id}

        logger.info(
            f"{'═' * 50}\n"
            f"  Starting Run {result.run_id}{' (dry run)' if dry_run else ''}\n"
            f"  ├─ Mirror:  {self.config.mirror_source} → {self.config.mirror_target}\n"
            f"  ├─ Archive: {self.config.archive_source} → {self.staging_path}\n"
            f"  └─ Deploy:  {self.config.archive_destination}\n"
            f"{'─' * 50}",
            extra=log_extra,
        )

        self._record(
            result,
            lambda ledger: ledger.emit_run_start(
                result.run_id,
                paths={k: str(v) for k, v in self.config.model_dump().items()},
                dry_run=dry_run,
            ),
        )

        if dry_run:
            self._plan(result)
        else:
            stages: List[tuple] = [
                (STAGE_MIRRORING, self._stage_mirror),
                (STAGE_ARCHIVING, self._stage_archive),
                (STAGE_RELOCATING, self._stage_relocate),
            ]
            for stage_name, stage_fn in stages:
                if not self._run_stage(result, stage_name, stage_fn):
                    break
            else:
                self._transition(result, PipelineState.DONE)

        # --- Finalization ---
        result.duration_ms = int((time.time() - start_time) * 1000)
        result.ended_at = _now_iso()

        self._record(result, lambda ledger: self._emit_outcome(ledger, result))

        indicator = "✓" if result.ok else ("━" if dry_run else "✗")
        summary = result.state.value.upper()
        if result.failed_stage:
            summary += f" in {result.failed_stage}: {result.error}"
        logger.info(
            f"{'═' * 50}\n"
            f"  Run {result.run_id} Complete\n"
            f"  ├─ Duration: {result.duration_ms}ms\n"
            f"  ├─ Stages: {len(result.report.entries)}\n"
            f"  └─ Result: {indicator} {summary}\n"
            f"{'═' * 50}",
            extra=log_extra,
        )

        return result

    # ─── Ledger ────────────────────────────────────────────

    def _record(self, result: PipelineResult, write: Callable[[RunLedger], Any]) -> None:
        """Write to the ledger if one is configured. Write errors are logged, not raised."""
        if self.ledger is None:
            return
        try:
            write(self.ledger)
        except OSError as e:
            logger.error(
                f"Could not write run ledger {self.ledger.path}: {e}",
                extra={"run_id": result.run_id},
            )

    @staticmethod
    def _emit_outcome(ledger: RunLedger, result: PipelineResult) -> None:
        for entry in result.report.entries:
            ledger.emit_stage(result.run_id, entry)
        ledger.emit_run_end(
            result.run_id,
            state=result.state.value,
            duration_ms=result.duration_ms,
            failed_stage=result.failed_stage,
            error=result.error,
            archive_tool=result.archive_tool,
        )

    # ─── Stage plumbing ─────────────────────────────────────

    def _transition(self, result: PipelineResult, state: PipelineState) -> None:
        result.state = state
        result.transitions.append(state.value)

    def _run_stage(
        self,
        result: PipelineResult,
        stage_name: str,
        stage_fn: Callable[[PipelineResult], StageEntry],
    ) -> bool:
        """Run one stage, record its entry, and return False if the run must stop."""
        self._transition(result, STAGE_STATES[stage_name])
        logger.info(f"→ {stage_name}", extra={"run_id": result.run_id, "stage": stage_name})

        stage_start = time.time()
        try:
            entry = stage_fn(result)
        except DeploySyncError as e:
            entry = result.report.add(
                stage_name,
                "failed",
                message=str(e),
                code=getattr(e, "code", None),
                details=e.to_dict(),
            )
            result.error_kind = e.kind
        except Exception as e:
            logger.exception(f"{stage_name} raised unexpectedly: {e}")
            entry = result.report.add(
                stage_name,
                "failed",
                message=f"{type(e).__name__}: {e}",
                details={"kind": "unexpected", "message": str(e)},
            )
            result.error_kind = "unexpected"

        duration_ms = int((time.time() - stage_start) * 1000)

        if entry.status == "failed":
            logger.error(
                f"  ✗ {stage_name}: FAILED [{duration_ms}ms] — {entry.message}",
                extra={"run_id": result.run_id, "stage": stage_name},
            )
            result.failed_stage = stage_name
            result.error = entry.message
            self._transition(result, PipelineState.FAILED)
            return False

        mark = "⚠" if entry.status == "notes" else "✓"
        logger.info(
            f"  {mark} {stage_name}: {entry.status.upper()} [{duration_ms}ms] {entry.message}",
            extra={"run_id": result.run_id, "stage": stage_name},
        )
        return True

    # ─── Stages ─────────────────────────────────────────────

    def _stage_mirror(self, result: PipelineResult) -> StageEntry:
        outcome = self.mirror.mirror(self.config.mirror_source, self.config.mirror_target)
        return result.report.add(
            STAGE_MIRRORING,
            "notes" if outcome.has_notes else "ok",
            message=outcome.description,
            code=outcome.code,
            details={"kind": outcome.kind},
        )

    def _stage_archive(self, result: PipelineResult) -> StageEntry:
        archive = self.builder.build(self.config.archive_source, self.staging_path)
        if not archive.ok:
            raise ArchiveBuildFailed(archive.reason or "unknown error")

        result.archive_tool = archive.tool
        return result.report.add(
            STAGE_ARCHIVING,
            "ok",
            message=f"built with {archive.tool}",
            details={"tool": archive.tool, "path": str(self.staging_path)},
        )

    def _stage_relocate(self, result: PipelineResult) -> StageEntry:
        final = self.relocator.relocate(self.staging_path, self.config.archive_destination)
        return result.report.add(
            STAGE_RELOCATING,
            "ok",
            message=f"moved to {final}",
            details={"path": str(final)},
        )

    # ─── Dry run ────────────────────────────────────────────

    def _plan(self, result: PipelineResult) -> None:
        cfg = self.config
        mirror_cmd = self.mirror.tool.command_line(cfg.mirror_source, cfg.mirror_target)
        primary_cmd = self.builder.primary.command_line(cfg.archive_source, self.staging_path)
        fallback_cmd = self.builder.secondary.command_line(cfg.archive_source, self.staging_path)

        plan = [
            (STAGE_MIRRORING, cfg.mirror_source,
             f"would mirror {cfg.mirror_source} → {cfg.mirror_target}",
             {"command": mirror_cmd}),
            (STAGE_ARCHIVING, cfg.archive_source,
             f"would archive {cfg.archive_source} → {self.staging_path}",
             {"command": primary_cmd, "fallback_command": fallback_cmd}),
            (STAGE_RELOCATING, None,
             f"would move {self.staging_path} → {cfg.archive_destination}",
             {}),
        ]
        for stage_name, source, message, details in plan:
            if source is not None:
                details["source_exists"] = Path(source).is_dir()
                if not details["source_exists"]:
                    message += " (source missing)"
            result.report.add(stage_name, "skipped", message=message, details=details)
            logger.info(f"  ⊘ {stage_name}: {message}", extra={"run_id": result.run_id})
            for key, label in (("command", "$"), ("fallback_command", "$ (fallback)")):
                if key in details:
                    logger.info(f"      {label} {' '.join(details[key])}", extra={"run_id": result.run_id})
