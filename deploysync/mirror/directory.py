"""
Directory Mirror — Make a target directory an exact copy of a source.

    mirror = DirectoryMirror(RsyncTool())
    outcome = mirror.mirror(Path("build/server"), Path("/srv/app/server"))

The target is created before the tool runs, so a retry after a failed
mirror needs no separate setup step.
"""

from __future__ import annotations

import logging
from pathlib import Path

from ..errors import MirrorFatal, SourceNotFound
from ..models.outcomes import MirrorOutcome
from .exit_codes import classify
from .tools import FATAL_STATUS, MirrorTool

logger = logging.getLogger(__name__)


class DirectoryMirror:
    """Runs a MirrorTool and interprets its exit status."""

    def __init__(self, tool: MirrorTool):
        self.tool = tool

    def mirror(self, source: Path, target: Path) -> MirrorOutcome:
        """
        Mirror *source* into *target*.

        Returns a success or success_with_notes outcome.

        Raises:
            SourceNotFound: source is not an existing directory (no tool is run)
            MirrorFatal: the target could not be created, or the tool
                reported a fatal status
        """
        source = Path(source)
        target = Path(target)

        if not source.is_dir():
            raise SourceNotFound(source, role="mirror source")

        try:
            target.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise MirrorFatal(FATAL_STATUS, f"could not create target directory {target}: {e}")

        logger.info(f"[mirror] {self.tool.name}: {source} → {target}")
        code = self.tool.run(source, target)
        outcome = classify(code)

        if outcome.is_fatal:
            logger.error(f"[mirror] Fatal status {outcome.code}: {outcome.description}")
            raise MirrorFatal(outcome.code, outcome.description)

        if outcome.has_notes:
            logger.warning(f"[mirror] Completed with notes (code {outcome.code}): {outcome.description}")
        else:
            logger.info(f"[mirror] Done (code {outcome.code}): {outcome.description}")

        return outcome
