from pathlib import Path

import pytest

from soundpad_remote.config.loader import ConfigError, load_options
from soundpad_remote.config.schema import DEFAULT_PIPE_NAME


class TestLoadOptions:
    def test_load_nested_under_soundpad_key(self, fixtures_dir: Path) -> None:
        options = load_options(fixtures_dir / "options.yaml")
        assert options.pipe_name == r"\\.\pipe\sp_remote_control"
        assert options.auto_reconnect is True
        assert options.start_on_connect is True
        assert options.reconnect_delay == 2.5
        assert options.idle_timeout == 30
        assert options.client_version == "1.1.2"

    def test_load_top_level(self, tmp_path: Path) -> None:
        path = tmp_path / "client.yaml"
        path.write_text("pipe_name: my_pipe\nstatus_poll_interval: 0.25\n")
        options = load_options(path)
        assert options.pipe_name == "my_pipe"
        assert options.status_poll_interval == 0.25
        assert options.auto_reconnect is False

    def test_overrides_win(self, fixtures_dir: Path) -> None:
        options = load_options(fixtures_dir / "options.yaml", auto_reconnect=False)
        assert options.auto_reconnect is False
        assert options.reconnect_delay == 2.5

    def test_empty_yaml_file(self, tmp_path: Path) -> None:
        path = tmp_path / "empty.yaml"
        path.write_text("")
        options = load_options(path)
        assert options.pipe_name == DEFAULT_PIPE_NAME

    def test_empty_soundpad_section(self, tmp_path: Path) -> None:
        path = tmp_path / "client.yaml"
        path.write_text("soundpad:\n")
        assert load_options(path).pipe_name == DEFAULT_PIPE_NAME

    def test_invalid_values(self, fixtures_dir: Path) -> None:
        with pytest.raises(ConfigError, match="Validation error"):
            load_options(fixtures_dir / "invalid_options.yaml")

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="Cannot read file") as exc_info:
            load_options(tmp_path / "nope.yaml")
        assert exc_info.value.path == tmp_path / "nope.yaml"

    def test_invalid_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "broken.yaml"
        path.write_text("pipe_name: [unclosed\n")
        with pytest.raises(ConfigError, match="Invalid YAML"):
            load_options(path)

    def test_top_level_list_rejected(self, tmp_path: Path) -> None:
        path = tmp_path / "list.yaml"
        path.write_text("- pipe_name: a\n")
        with pytest.raises(ConfigError, match="Expected a YAML mapping"):
            load_options(path)

    def test_non_mapping_soundpad_section(self, tmp_path: Path) -> None:
        path = tmp_path / "client.yaml"
        path.write_text("soundpad: just-a-string\n")
        with pytest.raises(ConfigError, match="Expected a mapping under 'soundpad'"):
            load_options(path)
