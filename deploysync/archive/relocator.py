"""
Archive Relocator — Move a finished archive into its final location.

os.replace() swaps the file in atomically on POSIX and Windows alike, so
the destination holds either the previous archive or the new one, never
a partial write. Moves across devices are refused rather than copied.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from ..errors import RelocationFailed

logger = logging.getLogger(__name__)


class ArchiveRelocator:

    def relocate(self, archive: Path, destination: Path) -> Path:
        """
        Move *archive* to *destination*, replacing whatever file is there.

        Returns the destination path.

        Raises:
            RelocationFailed: archive missing, destination is a directory,
                or the rename itself failed (cross-device, permissions)
        """
        archive = Path(archive)
        destination = Path(destination)

        if not archive.is_file():
            raise RelocationFailed(f"archive not found: {archive}")

        if destination.is_dir():
            raise RelocationFailed(f"destination is a directory: {destination}")

        try:
            destination.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise RelocationFailed(f"could not create {destination.parent}: {e}")

        if destination.exists():
            logger.info(f"[relocate] Replacing existing {destination}")

        try:
            os.replace(archive, destination)
        except OSError as e:
            raise RelocationFailed(f"could not move {archive} → {destination}: {e}")

        logger.info(f"[relocate] Archive moved to {destination}")
        return destination
