"""
Mirror Tools — External commands that make a target tree match a source tree.

Every tool reports its result as an exit status in the robocopy convention
(see exit_codes.py), so the classifier does not need to know which tool ran.

    robocopy   Windows, native convention, status passed through
    rsync      POSIX, status translated into the robocopy convention

Invocations block until the tool exits. There is no timeout.
"""

from __future__ import annotations

import logging
import shutil
import subprocess
from abc import ABC, abstractmethod
from pathlib import Path
from typing import List

from ..errors import MirrorFatal

logger = logging.getLogger(__name__)

FATAL_STATUS = 16


def _run(cmd: List[str], capture: bool = True) -> subprocess.CompletedProcess:
    """Run an external command and wait for it. Raises FileNotFoundError if missing."""
    logger.debug(f"$ {' '.join(cmd)}")
    return subprocess.run(
        cmd,
        capture_output=capture,
        text=True,
        stdin=subprocess.DEVNULL,
    )


def _windows_path(path: Path) -> str:
    return str(path).replace("/", "\\")


class MirrorTool(ABC):
    """Interface for an external mirroring command."""

    @property
    @abstractmethod
    def name(self) -> str:
        pass

    @property
    @abstractmethod
    def command(self) -> str:
        """Executable looked up on PATH."""
        pass

    def is_available(self) -> bool:
        return shutil.which(self.command) is not None

    def command_line(self, source: Path, target: Path) -> List[str]:
        """The command run() would execute, for logging and dry runs."""
        return [self.command, str(source), str(target)]

    @abstractmethod
    def run(self, source: Path, target: Path) -> int:
        """
        Mirror *source* into *target* (deleting target-only entries).

        Returns an exit status in the robocopy convention.
        Raises MirrorFatal if the tool cannot be launched.
        """
        pass

    def _launch(self, cmd: List[str]) -> subprocess.CompletedProcess:
        try:
            return _run(cmd)
        except FileNotFoundError:
            raise MirrorFatal(FATAL_STATUS, f"{self.command} not found on PATH")
        except OSError as e:
            raise MirrorFatal(FATAL_STATUS, f"could not start {self.command}: {e}")


class RobocopyTool(MirrorTool):
    """robocopy in /MIR mode with all listing output suppressed."""

    FLAGS = ["/E", "/MIR", "/NFL", "/NDL", "/NJH", "/NJS"]

    def __init__(self, command: str = "robocopy"):
        self._command = command

    @property
    def name(self) -> str:
        return "robocopy"

    @property
    def command(self) -> str:
        return self._command

    def command_line(self, source: Path, target: Path) -> List[str]:
        return [self._command, _windows_path(source), _windows_path(target)] + self.FLAGS

    def run(self, source: Path, target: Path) -> int:
        result = self._launch(self.command_line(source, target))
        return result.returncode


class RsyncTool(MirrorTool):
    """
    rsync -a --delete, translated into the robocopy convention.

    Itemized output decides the success bits (1 = copied, 2 = extras
    removed). Partial transfers (23) and vanished source files (24) become
    15, "copy errors", which is non-fatal. Anything else non-zero is fatal.
    """

    PARTIAL_STATUSES = {
        23: "partial transfer due to error",
        24: "some source files vanished before they could be transferred",
    }

    def __init__(self, command: str = "rsync"):
        self._command = command

    @property
    def name(self) -> str:
        return "rsync"

    @property
    def command(self) -> str:
        return self._command

    def command_line(self, source: Path, target: Path) -> List[str]:
        return [
            self._command,
            "-a",
            "--delete",
            "--itemize-changes",
            f"{source}/",
            f"{target}/",
        ]

    def run(self, source: Path, target: Path) -> int:
        result = self._launch(self.command_line(source, target))

        if result.returncode == 0:
            return self._success_status(result.stdout or "")

        if result.returncode in self.PARTIAL_STATUSES:
            logger.warning(
                f"[mirror] rsync: {self.PARTIAL_STATUSES[result.returncode]} "
                f"(rsync status {result.returncode})"
            )
            return 15

        error = (result.stderr or "").strip().splitlines()
        logger.error(
            f"[mirror] rsync exited {result.returncode}: "
            f"{error[-1] if error else 'no error output'}"
        )
        return FATAL_STATUS

    @staticmethod
    def _success_status(itemized: str) -> int:
        lines = [line for line in itemized.splitlines() if line.strip()]
        copied = any(not line.startswith("*deleting") for line in lines)
        removed = any(line.startswith("*deleting") for line in lines)
        return (1 if copied else 0) | (2 if removed else 0)


def get_mirror_tool(name: str) -> MirrorTool:
    """Look up a mirror tool by name."""
    tools = {
        "robocopy": RobocopyTool,
        "rsync": RsyncTool,
    }
    if name not in tools:
        raise ValueError(f"Unknown mirror tool '{name}' (expected one of: {', '.join(tools)})")
    return tools[name]()
