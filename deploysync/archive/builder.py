"""
Archive Builder — Produce a fresh zip of a directory.

Any archive already at the output path is deleted first; archives are
never appended to. The primary compressor is probed and used if present,
otherwise the secondary one is used. There is no third option.
"""

from __future__ import annotations

import logging
from pathlib import Path

from ..errors import ArchiveBuildFailed, ArchiveToolUnavailable, SourceNotFound
from ..models.outcomes import ArchiveResult
from .compressors import Compressor

logger = logging.getLogger(__name__)


class ArchiveBuilder:
    """Selects a compressor by availability and builds one archive per call."""

    def __init__(self, primary: Compressor, secondary: Compressor):
        self.primary = primary
        self.secondary = secondary

    def select(self) -> Compressor:
        """Return the primary compressor if its probe succeeds, else the secondary."""
        try:
            available = self.primary.probe()
        except Exception as e:
            logger.debug(f"[archive] {self.primary.name} probe raised: {e}")
            available = False

        if available:
            logger.info(f"[archive] Using {self.primary.name}")
            return self.primary

        logger.info(f"[archive] {self.primary.name} not available, falling back to {self.secondary.name}")
        return self.secondary

    def build(self, source: Path, output: Path) -> ArchiveResult:
        """
        Build *output* from the contents of *source*.

        Raises:
            SourceNotFound: source directory is missing (nothing is deleted)
            ArchiveBuildFailed: a stale archive could not be removed, or the
                output directory could not be created
            ArchiveToolUnavailable: the primary tool is missing and the
                fallback could not be launched either
        """
        source = Path(source)
        output = Path(output)

        if not source.is_dir():
            raise SourceNotFound(source, role="archive source")

        self._remove_stale(output)
        try:
            output.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ArchiveBuildFailed(f"could not create {output.parent}: {e}")

        compressor = self.select()
        logger.info(f"[archive] {compressor.name}: {source} → {output}")
        result = compressor.build(source, output)

        if result.ok and not output.is_file():
            result = ArchiveResult.failed(
                f"{compressor.name} reported success but no archive was written to {output}",
                tool=compressor.name,
            )

        if result.ok:
            logger.info(f"[archive] Built with {result.tool} ({output.stat().st_size} bytes)")
            return result

        logger.error(f"[archive] {result.reason}")
        self._discard_partial(output)

        if result.kind == "unavailable" and compressor is self.secondary:
            raise ArchiveToolUnavailable(
                f"{self.primary.name} and {self.secondary.name}",
                reason=f"neither archive tool could be started ({result.reason})",
            )
        return result

    @staticmethod
    def _discard_partial(output: Path) -> None:
        if not output.is_file():
            return
        try:
            output.unlink()
        except OSError as e:
            logger.warning(f"[archive] Could not remove partial archive {output}: {e}")

    @staticmethod
    def _remove_stale(output: Path) -> None:
        if output.is_dir():
            raise ArchiveBuildFailed(f"output path is a directory: {output}")
        if output.exists():
            logger.info(f"[archive] Removing stale archive {output}")
            try:
                output.unlink()
            except OSError as e:
                raise ArchiveBuildFailed(f"could not remove stale archive {output}: {e}")
