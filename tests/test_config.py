"""Tests for churchhub.config module."""

import tomllib

import pytest

from churchhub.config import DEFAULT_CONFIG_TEMPLATE, generate_config, load_config


class TestLoadConfig:
    def test_missing_file_returns_defaults(self, tmp_path, capsys):
        config = load_config(str(tmp_path / "nonexistent.toml"))
        assert config["database"]["path"] == "churchhub.db"
        assert config["import"]["default_mode"] == "replace"
        assert config["import"]["require_guardian"] is False
        assert config["analytics"]["months"] == 6
        assert config["notifications"]["feed_limit"] == 50
        assert "not found" in capsys.readouterr().err

    def test_quiet_suppresses_warning(self, tmp_path, capsys):
        load_config(str(tmp_path / "nonexistent.toml"), quiet=True)
        assert capsys.readouterr().err == ""

    def test_partial_file_keeps_defaults(self, tmp_path):
        toml_path = tmp_path / "test.toml"
        toml_path.write_text('[import]\ndefault_mode = "merge"\n\n[database]\npath = "other.db"\n')
        config = load_config(str(toml_path))
        assert config["import"]["default_mode"] == "merge"
        assert config["import"]["require_guardian"] is False
        assert config["database"]["path"] == "other.db"
        assert config["analytics"]["months"] == 6

    def test_unknown_sections_ignored(self, tmp_path):
        toml_path = tmp_path / "test.toml"
        toml_path.write_text("[theme]\ncolor = \"blue\"\n")
        assert "theme" not in load_config(str(toml_path))

    def test_bad_mode_rejected(self, tmp_path):
        toml_path = tmp_path / "test.toml"
        toml_path.write_text('[import]\ndefault_mode = "append"\n')
        with pytest.raises(ValueError, match="default_mode"):
            load_config(str(toml_path))


class TestGenerateConfig:
    def test_writes_template(self, tmp_path):
        path = generate_config(str(tmp_path / "churchhub.toml"))
        assert open(path).read() == DEFAULT_CONFIG_TEMPLATE

    def test_template_matches_defaults(self, tmp_path):
        path = generate_config(str(tmp_path / "churchhub.toml"))
        with open(path, "rb") as f:
            raw = tomllib.load(f)
        assert load_config(path) == raw
