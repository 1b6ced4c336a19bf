"""
Compressors — External tools that pack a directory into a zip archive.

Two implementations, chosen at runtime by availability:

    SevenZipCompressor     primary, probed first
    PowerShellCompressor   fallback (Compress-Archive)

Both put the *contents* of the source directory at the archive root,
not a folder named after it. Tool failures are returned as
ArchiveResult.failed values and launch failures as
ArchiveResult.unavailable, never raised.
"""

from __future__ import annotations

import logging
import subprocess
from abc import ABC, abstractmethod
from pathlib import Path
from typing import List

from ..models.outcomes import ArchiveResult

logger = logging.getLogger(__name__)


def _run(cmd: List[str], quiet: bool = False) -> subprocess.CompletedProcess:
    """Run an external command and wait for it. Raises FileNotFoundError if missing."""
    logger.debug(f"$ {' '.join(cmd)}")
    if quiet:
        return subprocess.run(
            cmd,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
            stdin=subprocess.DEVNULL,
        )
    return subprocess.run(
        cmd,
        capture_output=True,
        text=True,
        stdin=subprocess.DEVNULL,
    )


def _failure_reason(tool: str, result: subprocess.CompletedProcess) -> str:
    output = (result.stderr or result.stdout or "").strip().splitlines()
    tail = output[-1] if output else "no output"
    return f"{tool} exited with code {result.returncode}: {tail}"


class Compressor(ABC):
    """Interface for an archive-building tool."""

    @property
    @abstractmethod
    def name(self) -> str:
        pass

    @abstractmethod
    def probe(self) -> bool:
        """Cheap availability check. Must not touch the filesystem."""
        pass

    def command_line(self, source: Path, output: Path) -> List[str]:
        """The command build() would run, for logging and dry runs."""
        return [self.name, str(source), str(output)]

    @abstractmethod
    def build(self, source: Path, output: Path) -> ArchiveResult:
        """Zip every entry under *source* into *output*."""
        pass


class SevenZipCompressor(Compressor):
    """7-Zip in zip mode."""

    def __init__(self, command: str = "7z"):
        self.command = command

    @property
    def name(self) -> str:
        return "7-Zip"

    def probe(self) -> bool:
        # Bare invocation prints usage and exits 0
        try:
            result = _run([self.command], quiet=True)
        except OSError as e:
            logger.debug(f"[archive] {self.command} probe failed: {e}")
            return False
        return result.returncode == 0

    def command_line(self, source: Path, output: Path) -> List[str]:
        return [self.command, "a", "-tzip", str(output), str(Path(source) / "*")]

    def build(self, source: Path, output: Path) -> ArchiveResult:
        try:
            result = _run(self.command_line(source, output))
        except OSError as e:
            return ArchiveResult.unavailable(f"could not start {self.command}: {e}", tool=self.name)

        if result.returncode != 0:
            return ArchiveResult.failed(_failure_reason(self.name, result), tool=self.name)
        return ArchiveResult.built_with(self.name)


def _ps_quote(value: str) -> str:
    """Quote a string as a PowerShell single-quoted literal."""
    return "'" + value.replace("'", "''") + "'"


class PowerShellCompressor(Compressor):
    """PowerShell Compress-Archive with -Force overwrite."""

    def __init__(self, command: str = "powershell"):
        self.command = command

    @property
    def name(self) -> str:
        return "PowerShell"

    def probe(self) -> bool:
        try:
            result = _run(
                [self.command, "-NoProfile", "-NonInteractive", "-Command", "exit 0"],
                quiet=True,
            )
        except OSError:
            return False
        return result.returncode == 0

    def command_line(self, source: Path, output: Path) -> List[str]:
        script = (
            f"Compress-Archive -Path {_ps_quote(str(Path(source) / '*'))} "
            f"-DestinationPath {_ps_quote(str(output))} -Force"
        )
        return [self.command, "-NoProfile", "-NonInteractive", "-Command", script]

    def build(self, source: Path, output: Path) -> ArchiveResult:
        try:
            result = _run(self.command_line(source, output))
        except OSError as e:
            return ArchiveResult.unavailable(f"could not start {self.command}: {e}", tool=self.name)

        if result.returncode != 0:
            return ArchiveResult.failed(_failure_reason(self.name, result), tool=self.name)
        return ArchiveResult.built_with(self.name)
