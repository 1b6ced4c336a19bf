"""
Tests for DirectoryMirror and the mirror tool backends.

Tool invocations are mocked at deploysync.mirror.tools._run; the
end-to-end tests use a shutil-backed stub, plus real rsync when present.
"""

import logging
import shutil
import subprocess
from pathlib import Path
from unittest import mock

import pytest

from deploysync.errors import MirrorFatal, SourceNotFound
from deploysync.mirror import DirectoryMirror
from deploysync.mirror.tools import RobocopyTool, RsyncTool, get_mirror_tool


def _completed(returncode: int = 0, stdout: str = "", stderr: str = ""):
    return subprocess.CompletedProcess(
        args=["tool"], returncode=returncode, stdout=stdout, stderr=stderr,
    )


# ---------------------------------------------------------------------------
# DirectoryMirror
# ---------------------------------------------------------------------------

class TestDirectoryMirror:

    def test_missing_source_raises_before_tool_runs(self, tmp_path, mirror_stub):
        tool = mirror_stub()
        target = tmp_path / "target"

        with pytest.raises(SourceNotFound) as exc_info:
            DirectoryMirror(tool).mirror(tmp_path / "nope", target)

        assert exc_info.value.role == "mirror source"
        assert tool.calls == []
        assert not target.exists()

    def test_source_that_is_a_file_is_not_found(self, tmp_path, mirror_stub):
        (tmp_path / "file.txt").write_text("x")
        with pytest.raises(SourceNotFound):
            DirectoryMirror(mirror_stub()).mirror(tmp_path / "file.txt", tmp_path / "t")

    def test_target_created_even_when_tool_fails(self, tmp_path, tree, mirror_stub):
        source = tree(tmp_path / "src", {"a.txt": "a"})
        target = tmp_path / "deep" / "nested" / "target"

        with pytest.raises(MirrorFatal) as exc_info:
            DirectoryMirror(mirror_stub(status=16)).mirror(source, target)

        assert target.is_dir()
        assert exc_info.value.code == 16

    def test_target_that_is_a_file_is_fatal(self, tmp_path, tree, mirror_stub):
        source = tree(tmp_path / "src", {"a.txt": "a"})
        target = tmp_path / "target"
        target.write_text("in the way")
        tool = mirror_stub()

        with pytest.raises(MirrorFatal) as exc_info:
            DirectoryMirror(tool).mirror(source, target)

        assert exc_info.value.code == 16
        assert "could not create target directory" in exc_info.value.description
        assert tool.calls == []

    def test_notes_status_is_returned_not_raised(self, tmp_path, tree, mirror_stub, caplog):
        source = tree(tmp_path / "src", {"a.txt": "a"})

        with caplog.at_level(logging.WARNING):
            outcome = DirectoryMirror(mirror_stub(status=9)).mirror(source, tmp_path / "t")

        assert outcome.has_notes
        assert outcome.code == 9
        assert "notes" in caplog.text

    def test_mirror_makes_target_exact_copy(self, tmp_path, tree, snapshot, mirror_stub):
        source = tree(tmp_path / "A", {"x.txt": "new x", "y.txt": "new y"})
        target = tree(tmp_path / "B", {"y.txt": "old y", "z.txt": "stray"})

        outcome = DirectoryMirror(mirror_stub()).mirror(source, target)

        assert snapshot(target) == snapshot(source)
        assert not (target / "z.txt").exists()
        # Copied and removed
        assert outcome.code == 3
        assert outcome.kind == "success"


# ---------------------------------------------------------------------------
# RobocopyTool
# ---------------------------------------------------------------------------

class TestRobocopyTool:

    @mock.patch("deploysync.mirror.tools._run")
    def test_command_line(self, mock_run):
        mock_run.return_value = _completed(returncode=1)

        code = RobocopyTool().run(Path("C:/build/server"), Path("C:/deploy/server"))

        assert code == 1
        cmd = mock_run.call_args[0][0]
        assert cmd[0] == "robocopy"
        assert cmd[1] == "C:\\build\\server"
        assert cmd[2] == "C:\\deploy\\server"
        assert cmd[3:] == ["/E", "/MIR", "/NFL", "/NDL", "/NJH", "/NJS"]

    @mock.patch("deploysync.mirror.tools._run")
    def test_status_passed_through(self, mock_run):
        mock_run.return_value = _completed(returncode=11)
        assert RobocopyTool().run(Path("a"), Path("b")) == 11

    @mock.patch("deploysync.mirror.tools._run", side_effect=FileNotFoundError("robocopy"))
    def test_missing_executable_is_fatal(self, mock_run):
        with pytest.raises(MirrorFatal) as exc_info:
            RobocopyTool().run(Path("a"), Path("b"))
        assert exc_info.value.code == 16
        assert "not found" in exc_info.value.description

    @mock.patch("deploysync.mirror.tools._run", side_effect=PermissionError("denied"))
    def test_unlaunchable_executable_is_fatal(self, mock_run):
        with pytest.raises(MirrorFatal) as exc_info:
            RobocopyTool().run(Path("a"), Path("b"))
        assert exc_info.value.code == 16


# ---------------------------------------------------------------------------
# RsyncTool
# ---------------------------------------------------------------------------

class TestRsyncTool:

    @mock.patch("deploysync.mirror.tools._run")
    def test_command_line_uses_trailing_slashes(self, mock_run):
        mock_run.return_value = _completed()

        RsyncTool().run(Path("/build/server"), Path("/deploy/server"))

        cmd = mock_run.call_args[0][0]
        assert cmd[:4] == ["rsync", "-a", "--delete", "--itemize-changes"]
        assert cmd[4] == "/build/server/"
        assert cmd[5] == "/deploy/server/"

    @pytest.mark.parametrize("stdout,expected", [
        ("", 0),
        (">f+++++++++ main.lua\n", 1),
        ("*deleting   stray.txt\n", 2),
        (">f.st...... main.lua\n*deleting   stray.txt\n", 3),
    ])
    @mock.patch("deploysync.mirror.tools._run")
    def test_itemized_output_sets_success_bits(self, mock_run, stdout, expected):
        mock_run.return_value = _completed(stdout=stdout)
        assert RsyncTool().run(Path("a"), Path("b")) == expected

    @pytest.mark.parametrize("rsync_status", [23, 24])
    @mock.patch("deploysync.mirror.tools._run")
    def test_partial_transfer_is_copy_error(self, mock_run, rsync_status):
        mock_run.return_value = _completed(returncode=rsync_status)
        assert RsyncTool().run(Path("a"), Path("b")) == 15

    @pytest.mark.parametrize("rsync_status", [1, 11, 12, 255])
    @mock.patch("deploysync.mirror.tools._run")
    def test_other_failures_are_fatal(self, mock_run, rsync_status):
        mock_run.return_value = _completed(returncode=rsync_status, stderr="rsync error: boom")
        assert RsyncTool().run(Path("a"), Path("b")) == 16

    @pytest.mark.skipif(shutil.which("rsync") is None, reason="rsync not installed")
    def test_real_rsync_mirrors(self, tmp_path, tree, snapshot):
        source = tree(tmp_path / "A", {"x.txt": "new x", "sub/y.txt": "y"})
        target = tree(tmp_path / "B", {"x.txt": "old", "z.txt": "stray", "old/q.txt": "q"})

        outcome = DirectoryMirror(RsyncTool()).mirror(source, target)

        assert not outcome.is_fatal
        assert snapshot(target) == snapshot(source)
        assert not (target / "old").exists()


class TestGetMirrorTool:

    def test_known_tools(self):
        assert isinstance(get_mirror_tool("robocopy"), RobocopyTool)
        assert isinstance(get_mirror_tool("rsync"), RsyncTool)

    def test_unknown_tool(self):
        with pytest.raises(ValueError, match="Unknown mirror tool"):
            get_mirror_tool("xcopy")
