"""
Shared fixtures for pipeline tests.

Provides stand-ins for the external tools so the filesystem behaviour of
each stage can be checked without robocopy, rsync, 7-Zip, or PowerShell:

- MirrorStub: a mirror tool that really mirrors using shutil and reports
  robocopy-convention statuses (or a forced status)
- ZipStub: a compressor that really zips using zipfile (or fails on demand)
"""

from __future__ import annotations

import shutil
import zipfile
from pathlib import Path
from typing import Dict, List, Optional
from unittest import mock

import pytest

from deploysync.archive.builder import ArchiveBuilder
from deploysync.archive.compressors import Compressor
from deploysync.archive.relocator import ArchiveRelocator
from deploysync.engine.pipeline import DeploymentPipeline
from deploysync.mirror.directory import DirectoryMirror
from deploysync.mirror.tools import MirrorTool
from deploysync.models.config import PipelineConfig
from deploysync.models.outcomes import ArchiveResult


class MirrorStub(MirrorTool):
    """Mirror tool that copies with shutil, deleting target-only entries."""

    def __init__(self, status: Optional[int] = None):
        self.status = status
        self.calls: List[tuple] = []

    @property
    def name(self) -> str:
        return "stub-mirror"

    @property
    def command(self) -> str:
        return "stub-mirror"

    def is_available(self) -> bool:
        return True

    def run(self, source: Path, target: Path) -> int:
        self.calls.append((source, target))
        if self.status is not None and self.status >= 16:
            return self.status

        copied = removed = False
        for existing in list(target.iterdir()):
            if not (source / existing.name).exists():
                if existing.is_dir():
                    shutil.rmtree(existing)
                else:
                    existing.unlink()
                removed = True
        for item in source.rglob("*"):
            dest = target / item.relative_to(source)
            if item.is_dir():
                dest.mkdir(parents=True, exist_ok=True)
            else:
                dest.parent.mkdir(parents=True, exist_ok=True)
                shutil.copy2(item, dest)
                copied = True

        if self.status is not None:
            return self.status
        return (1 if copied else 0) | (2 if removed else 0)


class ZipStub(Compressor):
    """Compressor that zips with zipfile, entries at the archive root."""

    def __init__(self, name: str = "stub-zip", available: bool = True, fail: Optional[str] = None):
        self._name = name
        self.available = available
        self.fail = fail
        self.probes = 0
        self.builds: List[tuple] = []

    @property
    def name(self) -> str:
        return self._name

    def probe(self) -> bool:
        self.probes += 1
        return self.available

    def build(self, source: Path, output: Path) -> ArchiveResult:
        self.builds.append((source, output))
        if self.fail:
            # Leave a partial file behind like a crashed tool would
            output.write_bytes(b"PK partial")
            return ArchiveResult.failed(self.fail, tool=self.name)
        with zipfile.ZipFile(output, "a") as zf:
            for item in sorted(source.rglob("*")):
                if item.is_file():
                    zf.write(item, item.relative_to(source).as_posix())
        return ArchiveResult.built_with(self.name)


def make_tree(root: Path, files: Dict[str, str]) -> Path:
    """Create files (relative path → text) under root."""
    root.mkdir(parents=True, exist_ok=True)
    for rel, text in files.items():
        p = root / rel
        p.parent.mkdir(parents=True, exist_ok=True)
        p.write_text(text, encoding="utf-8")
    return root


def read_tree(root: Path) -> Dict[str, bytes]:
    """Relative path → bytes for every file under root."""
    return {
        p.relative_to(root).as_posix(): p.read_bytes()
        for p in sorted(root.rglob("*"))
        if p.is_file()
    }


def zip_names(path: Path) -> set:
    with zipfile.ZipFile(path) as zf:
        return set(zf.namelist())


@pytest.fixture
def tree():
    """Factory: tree(root, {"a.txt": "..."})."""
    return make_tree


@pytest.fixture
def snapshot():
    return read_tree


@pytest.fixture
def names():
    return zip_names


@pytest.fixture
def pipeline_config(tmp_path: Path, tree) -> PipelineConfig:
    """A project with server files to mirror and client files to archive."""
    tree(tmp_path / "src" / "server", {"main.lua": "print('server')", "lib/util.lua": "return {}"})
    tree(tmp_path / "src" / "client", {"ui/app.js": "// app", "scripts/init.lua": "-- init"})
    return PipelineConfig(
        mirror_source=tmp_path / "src" / "server",
        mirror_target=tmp_path / "deploy" / "Server" / "App",
        archive_source=tmp_path / "src" / "client",
        archive_destination=tmp_path / "deploy" / "Client" / "App.zip",
    )


@pytest.fixture
def mirror_stub():
    return MirrorStub


@pytest.fixture
def zip_stub():
    return ZipStub


@pytest.fixture
def make_pipeline(pipeline_config):
    """Factory for a pipeline wired to stubs. Returns (pipeline, mirror_tool, primary, secondary)."""

    def _make(
        mirror_tool: Optional[MirrorTool] = None,
        primary: Optional[Compressor] = None,
        secondary: Optional[Compressor] = None,
        config: Optional[PipelineConfig] = None,
        **kwargs,
    ):
        mirror_tool = mirror_tool or MirrorStub()
        primary = primary or ZipStub("7-Zip")
        secondary = secondary or ZipStub("PowerShell")
        pipeline = DeploymentPipeline(
            config=config or pipeline_config,
            mirror=DirectoryMirror(mirror_tool),
            builder=ArchiveBuilder(primary, secondary),
            relocator=ArchiveRelocator(),
            **kwargs,
        )
        return pipeline, mirror_tool, primary, secondary

    return _make


@pytest.fixture
def no_logging_setup():
    """Keep CLI invocations from replacing pytest's log handlers."""
    with mock.patch("deploysync.main.setup_logging"):
        yield
