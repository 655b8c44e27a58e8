"""Tests for pythia.lib.config module."""

import pytest
from pathlib import Path

from pythia.lib.config import find_project_dir, load_config, parse_env_file


def write_env(project_dir: Path, text: str) -> Path:
    env_path = project_dir / ".pythia" / "pythia.env"
    env_path.parent.mkdir(parents=True, exist_ok=True)
    env_path.write_text(text)
    return env_path


class TestParseEnvFile:
    """Test KEY=value parsing and forbidden pattern rejection."""

    def test_parses_keys_and_strips_quotes(self, tmp_path):
        path = write_env(tmp_path, '# comment\n\nDOCS_ROOT="docs"\nSTRICT_RULES=true\n')
        assert parse_env_file(path) == {"DOCS_ROOT": "docs", "STRICT_RULES": "true"}

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            parse_env_file(tmp_path / "nope.env")

    def test_line_without_equals(self, tmp_path):
        path = write_env(tmp_path, "DOCS_ROOT\n")
        with pytest.raises(ValueError, match="line 1: Invalid syntax"):
            parse_env_file(path)

    def test_lowercase_key(self, tmp_path):
        path = write_env(tmp_path, "docs_root=docs\n")
        with pytest.raises(ValueError, match="Invalid key 'docs_root'"):
            parse_env_file(path)

    @pytest.mark.parametrize("value", ["$(rm -rf /)", "`id`", "${HOME}/docs", "a; b", "a && b", "a | b"])
    def test_forbidden_patterns(self, tmp_path, value):
        path = write_env(tmp_path, f"DOCS_ROOT={value}\n")
        with pytest.raises(ValueError, match="Forbidden pattern"):
            parse_env_file(path)


class TestLoadConfig:
    """Test defaults and overrides in load_config."""

    def test_defaults_without_env_file(self, tmp_path):
        config = load_config(tmp_path)
        assert config.docs_root == tmp_path / ".pythia" / "workflows"
        assert config.registry_path == config.docs_root / "status.md"
        assert config.report_path == config.docs_root / "report.md"
        assert config.log_dir == tmp_path / ".pythia" / "logs" / "status-changes"
        assert config.changelog_path == tmp_path / ".pythia" / "CHANGELOG.md"
        assert config.require_approval is True
        assert config.strict_rules is False
        assert config.archive_age_days == 7

    def test_docs_root_moves_dependent_paths(self, tmp_path):
        write_env(tmp_path, "DOCS_ROOT=docs\n")
        config = load_config(tmp_path)
        assert config.docs_root == tmp_path / "docs"
        assert config.registry_path == tmp_path / "docs" / "status.md"
        assert config.report_path == tmp_path / "docs" / "report.md"

    def test_explicit_paths_and_flags(self, tmp_path):
        write_env(tmp_path, (
            "REGISTRY_PATH=/srv/status.md\n"
            "REQUIRE_APPROVAL=no\n"
            "STRICT_RULES=1\n"
            "ARCHIVE_AGE_DAYS=30\n"
        ))
        config = load_config(tmp_path)
        assert config.registry_path == Path("/srv/status.md")
        assert config.require_approval is False
        assert config.strict_rules is True
        assert config.archive_age_days == 30

    def test_unknown_key_warns(self, tmp_path, caplog):
        write_env(tmp_path, "MERGE_MODE=local\n")
        load_config(tmp_path)
        assert "Ignoring unknown key 'MERGE_MODE'" in caplog.text

    def test_bad_bool(self, tmp_path):
        write_env(tmp_path, "STRICT_RULES=maybe\n")
        with pytest.raises(ValueError, match="STRICT_RULES must be true or false"):
            load_config(tmp_path)

    @pytest.mark.parametrize("raw", ["soon", "-1"])
    def test_bad_age(self, tmp_path, raw):
        write_env(tmp_path, f"ARCHIVE_AGE_DAYS={raw}\n")
        with pytest.raises(ValueError, match="ARCHIVE_AGE_DAYS"):
            load_config(tmp_path)


class TestFindProjectDir:
    def test_walks_up_to_pythia_dir(self, tmp_path):
        (tmp_path / ".pythia").mkdir()
        nested = tmp_path / "src" / "pkg"
        nested.mkdir(parents=True)
        assert find_project_dir(nested) == tmp_path.resolve()

    def test_falls_back_to_start(self, tmp_path):
        assert find_project_dir(tmp_path) == tmp_path.resolve()
