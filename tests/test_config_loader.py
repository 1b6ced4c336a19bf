"""
Tests for settings loading from YAML and DEPLOYSYNC_* environment variables.
"""

from pathlib import Path

import pytest

from deploysync.config.loader import load_settings
from deploysync.errors import ConfigError
from deploysync.models.config import PipelineConfig, ToolSettings


FULL_YAML = """\
paths:
  mirror_source: build/server
  mirror_target: deploy/Server/App
  archive_source: build/client
  archive_destination: deploy/Client/App.zip
tools:
  mirror_tool: rsync
  sevenzip: 7za
  powershell: pwsh
  staging_dir: tmp
ledger: logs/runs.ndjson
"""

ENV_PATHS = {
    "DEPLOYSYNC_MIRROR_SOURCE": "/env/server",
    "DEPLOYSYNC_MIRROR_TARGET": "/env/target",
    "DEPLOYSYNC_ARCHIVE_SOURCE": "/env/client",
    "DEPLOYSYNC_ARCHIVE_DESTINATION": "/env/App.zip",
}


def _write_config(directory: Path, text: str = FULL_YAML, name: str = "deploysync.yaml") -> Path:
    path = directory / name
    path.write_text(text, encoding="utf-8")
    return path


class TestLoadFromYaml:

    def test_default_file_in_cwd(self, tmp_path):
        _write_config(tmp_path)

        settings = load_settings(env={}, cwd=tmp_path)

        base = tmp_path.resolve()
        assert settings.source_file == tmp_path / "deploysync.yaml"
        assert settings.paths.mirror_source == base / "build" / "server"
        assert settings.paths.archive_destination == base / "deploy" / "Client" / "App.zip"
        assert settings.tools.mirror_tool == "rsync"
        assert settings.tools.sevenzip_command == "7za"
        assert settings.tools.powershell_command == "pwsh"
        assert settings.tools.staging_dir == base / "tmp"
        assert settings.ledger_path == base / "logs" / "runs.ndjson"

    def test_relative_paths_anchor_at_config_file(self, tmp_path):
        conf_dir = tmp_path / "conf"
        conf_dir.mkdir()
        path = _write_config(conf_dir, name="prod.yaml")

        settings = load_settings(path, env={}, cwd=tmp_path)

        assert settings.paths.mirror_source == conf_dir.resolve() / "build" / "server"

    def test_explicit_file_must_exist(self, tmp_path):
        with pytest.raises(ConfigError, match="not found"):
            load_settings(tmp_path / "missing.yaml", env={}, cwd=tmp_path)

    def test_invalid_yaml(self, tmp_path):
        path = _write_config(tmp_path, "paths: [unclosed")
        with pytest.raises(ConfigError, match="invalid YAML"):
            load_settings(path, env={}, cwd=tmp_path)

    def test_top_level_must_be_mapping(self, tmp_path):
        path = _write_config(tmp_path, "- just\n- a list\n")
        with pytest.raises(ConfigError, match="mapping"):
            load_settings(path, env={}, cwd=tmp_path)

    def test_unknown_mirror_tool(self, tmp_path):
        path = _write_config(tmp_path, FULL_YAML.replace("mirror_tool: rsync", "mirror_tool: xcopy"))
        with pytest.raises(ConfigError, match="mirror_tool"):
            load_settings(path, env={}, cwd=tmp_path)

    def test_missing_path_names_env_var(self, tmp_path):
        path = _write_config(tmp_path, "paths:\n  mirror_source: a\n  mirror_target: b\n  archive_source: c\n")
        with pytest.raises(ConfigError, match="DEPLOYSYNC_ARCHIVE_DESTINATION"):
            load_settings(path, env={}, cwd=tmp_path)

    def test_empty_path_is_missing(self, tmp_path):
        path = _write_config(tmp_path, FULL_YAML.replace("mirror_target: deploy/Server/App", "mirror_target: ''"))
        with pytest.raises(ConfigError, match="mirror_target"):
            load_settings(path, env={}, cwd=tmp_path)


class TestEnvironment:

    def test_env_only(self, tmp_path):
        settings = load_settings(env=ENV_PATHS, cwd=tmp_path)

        assert settings.source_file is None
        assert settings.paths.mirror_source == Path("/env/server").resolve()
        assert settings.ledger_path is None

    def test_env_overrides_yaml(self, tmp_path):
        _write_config(tmp_path)
        env = {
            "DEPLOYSYNC_MIRROR_TARGET": "/override/target",
            "DEPLOYSYNC_MIRROR_TOOL": "robocopy",
            "DEPLOYSYNC_LEDGER": "other.ndjson",
        }

        settings = load_settings(env=env, cwd=tmp_path)

        assert settings.paths.mirror_target == Path("/override/target").resolve()
        assert settings.paths.mirror_source == tmp_path.resolve() / "build" / "server"
        assert settings.tools.mirror_tool == "robocopy"
        assert settings.ledger_path == tmp_path.resolve() / "other.ndjson"

    def test_empty_env_value_does_not_override(self, tmp_path):
        _write_config(tmp_path)
        settings = load_settings(env={"DEPLOYSYNC_MIRROR_SOURCE": ""}, cwd=tmp_path)
        assert settings.paths.mirror_source == tmp_path.resolve() / "build" / "server"


class TestModels:

    def test_pipeline_config_rejects_empty(self):
        with pytest.raises(ValueError):
            PipelineConfig(
                mirror_source="  ",
                mirror_target="b",
                archive_source="c",
                archive_destination="d.zip",
            )

    def test_pipeline_config_is_frozen(self):
        config = PipelineConfig(
            mirror_source="a", mirror_target="b", archive_source="c", archive_destination="d.zip",
        )
        with pytest.raises(ValueError):
            config.mirror_source = Path("x")

    def test_explicit_mirror_tool_wins(self):
        assert ToolSettings(mirror_tool="rsync").effective_mirror_tool == "rsync"

    def test_auto_mirror_tool_is_platform_default(self):
        assert ToolSettings().effective_mirror_tool in ("robocopy", "rsync")

    def test_staging_path(self, tmp_path):
        _write_config(tmp_path)
        settings = load_settings(env={}, cwd=tmp_path)
        assert settings.staging_path() == tmp_path.resolve() / "tmp" / ".App.staging.zip"
