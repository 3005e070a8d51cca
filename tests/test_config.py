"""Tests for settings loading from env, .env and JSON config files."""
import json

import pytest

from src.config import CONFIG_FILE_NAME, DetectorSettings, default_config, load_settings


def _write(path, document):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(document) if not isinstance(document, str) else document)
    return path


class TestDefaults:
    def test_defaults(self, isolated):
        settings = load_settings()
        assert settings.thresholds == {}
        assert settings.exclude == []
        assert settings.max_workers is None
        assert settings.timeout_per_file == 30.0
        assert settings.output_format == "console"
        assert settings.rate_limit_per_minute == 120
        assert settings.resolved_thresholds().template_depth == 6

    def test_default_config_document_is_valid(self, isolated):
        settings = DetectorSettings(**default_config())
        assert settings.resolved_thresholds().component_script_length == 500
        assert "**/*.spec.vue" in settings.exclude


class TestEnvironment:
    def test_env_variables(self, isolated, monkeypatch):
        monkeypatch.setenv("VUE_ANALYSIS_MAX_WORKERS", "4")
        monkeypatch.setenv("VUE_ANALYSIS_THRESHOLDS", '{"templateDepth": 3}')
        monkeypatch.setenv("VUE_ANALYSIS_FORMAT", "json")
        settings = load_settings()
        assert settings.max_workers == 4
        assert settings.output_format == "json"
        assert settings.resolved_thresholds().template_depth == 3

    def test_env_file(self, isolated):
        work, _ = isolated
        env_file = work / "custom.env"
        env_file.write_text("VUE_ANALYSIS_RATE_LIMIT_PER_MINUTE=5\n")
        assert load_settings(env_file=str(env_file)).rate_limit_per_minute == 5


class TestConfigFile:
    def test_project_config(self, isolated, monkeypatch):
        work, _ = isolated
        monkeypatch.setenv("VUE_ANALYSIS_VERBOSE", "false")
        _write(work / CONFIG_FILE_NAME, {"thresholds": {"templateDepth": 4}, "exclude": ["legacy/**"], "verbose": True})
        settings = load_settings()
        assert settings.verbose is True
        assert settings.exclude == ["legacy/**"]
        assert settings.resolved_thresholds().template_depth == 4

    def test_alias_keys(self, isolated):
        work, _ = isolated
        _write(work / CONFIG_FILE_NAME, {"VUE_ANALYSIS_MAX_WORKERS": 2})
        assert load_settings().max_workers == 2

    def test_home_config(self, isolated):
        _, home = isolated
        _write(home / ".vue-analysis" / "config.json", {"exclude": ["vendor/**"]})
        assert load_settings().exclude == ["vendor/**"]

    def test_project_config_wins_over_home(self, isolated):
        work, home = isolated
        _write(home / ".vue-analysis" / "config.json", {"exclude": ["vendor/**"]})
        _write(work / CONFIG_FILE_NAME, {"exclude": ["legacy/**"]})
        assert load_settings().exclude == ["legacy/**"]

    def test_explicit_path(self, isolated, tmp_path):
        path = _write(tmp_path / "elsewhere" / "analysis.json", {"timeout_per_file": 5})
        assert load_settings(config_file=str(path)).timeout_per_file == 5.0

    def test_unknown_setting(self, isolated):
        work, _ = isolated
        _write(work / CONFIG_FILE_NAME, {"colour": "red"})
        with pytest.raises(RuntimeError) as excinfo:
            load_settings()
        assert "unknown settings: colour" in str(excinfo.value)
        assert "thresholds" in str(excinfo.value)

    @pytest.mark.parametrize(
        "document, message",
        [
            ({"output_format": "pdf"}, "Invalid config file"),
            ("[1, 2]", "must contain a JSON object"),
            ("{not json", "Failed to read config file"),
            ({"thresholds": {"bogus": 1}}, "Invalid thresholds in config file"),
        ],
    )
    def test_invalid_documents(self, isolated, document, message):
        work, _ = isolated
        _write(work / CONFIG_FILE_NAME, document)
        with pytest.raises(RuntimeError) as excinfo:
            load_settings()
        assert message in str(excinfo.value)
