"""
Environment Validator — Check that a run can start, without running it.

Looks at the configured source directories and the external tools.
Nothing is created, deleted, or written.

## Usage

    from deploysync.config.validator import EnvironmentValidator

    validator = EnvironmentValidator(settings)
    for check in validator.validate_all():
        if not check.ok:
            print(f"{check.name}: {check.detail}")
"""

from __future__ import annotations

import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional

from ..archive.compressors import Compressor, PowerShellCompressor, SevenZipCompressor
from ..mirror.tools import MirrorTool, get_mirror_tool
from ..models.config import DeploySettings


@dataclass
class CheckResult:
    """Status of a single environment check."""

    name: str
    ok: bool
    detail: str = ""
    required: bool = True
    guidance: Optional[str] = None

    def to_dict(self) -> Dict:
        return {
            "name": self.name,
            "ok": self.ok,
            "detail": self.detail,
            "required": self.required,
            "guidance": self.guidance,
        }


TOOL_GUIDANCE = {
    "robocopy": "robocopy ships with Windows; check that System32 is on PATH",
    "rsync": "Install rsync with your package manager (e.g. apt install rsync)",
    "7-Zip": "Install 7-Zip (https://www.7-zip.org) or p7zip, or set tools.sevenzip",
    "PowerShell": "Install PowerShell (pwsh) or set tools.powershell",
}


class EnvironmentValidator:
    """Validate directories and external tools for a configured pipeline."""

    def __init__(
        self,
        settings: DeploySettings,
        mirror_tool: Optional[MirrorTool] = None,
        primary: Optional[Compressor] = None,
        secondary: Optional[Compressor] = None,
    ):
        self.settings = settings
        tools = settings.tools
        self.mirror_tool = mirror_tool or get_mirror_tool(tools.effective_mirror_tool)
        self.primary = primary or SevenZipCompressor(tools.sevenzip_command)
        self.secondary = secondary or PowerShellCompressor(tools.powershell_command)

    def check_directory(self, name: str, path: Path) -> CheckResult:
        if path.is_dir():
            return CheckResult(name=name, ok=True, detail=str(path))
        return CheckResult(
            name=name,
            ok=False,
            detail=f"not a directory: {path}",
            guidance="Fix the path in deploysync.yaml or the environment",
        )

    def check_mirror_tool(self) -> CheckResult:
        tool = self.mirror_tool
        if tool.is_available():
            return CheckResult(name=f"mirror tool ({tool.name})", ok=True, detail=shutil.which(tool.command) or "")
        return CheckResult(
            name=f"mirror tool ({tool.name})",
            ok=False,
            detail=f"{tool.command} not found on PATH",
            guidance=TOOL_GUIDANCE.get(tool.name),
        )

    def check_archive_tools(self) -> List[CheckResult]:
        """Primary via probe, secondary via PATH lookup. One of them is enough."""
        primary_ok = self.primary.probe()
        secondary_cmd = getattr(self.secondary, "command", "")
        secondary_ok = bool(secondary_cmd) and shutil.which(secondary_cmd) is not None
        any_ok = primary_ok or secondary_ok

        results = []
        for compressor, ok, role in (
            (self.primary, primary_ok, "primary"),
            (self.secondary, secondary_ok, "fallback"),
        ):
            results.append(CheckResult(
                name=f"archive tool ({compressor.name}, {role})",
                ok=ok,
                detail="available" if ok else "not available",
                # Either tool alone is enough
                required=not any_ok,
                guidance=None if ok else TOOL_GUIDANCE.get(compressor.name),
            ))
        return results

    def validate_all(self) -> List[CheckResult]:
        paths = self.settings.paths
        results = [
            self.check_directory("mirror source", paths.mirror_source),
            self.check_directory("archive source", paths.archive_source),
            self.check_mirror_tool(),
        ]
        results.extend(self.check_archive_tools())
        return results

    def is_ready(self, results: Optional[List[CheckResult]] = None) -> bool:
        results = results if results is not None else self.validate_all()
        return all(r.ok for r in results if r.required)
