"""
Configuration tests.
"""
import pytest

from oracle.core.config import Settings, get_settings, load_model_config


class TestSettings:
    """Environment-backed settings."""

    def test_defaults(self):
        settings = Settings()
        assert settings.max_interview_exchanges == 20
        assert settings.response_timeout_hours == 24.0
        assert settings.engine_done_max_chars == 50
        assert settings.workflow_done_max_chars == 80
        assert settings.maintenance_agent_name == "maintenance-dispatcher"
        assert settings.uses_mongodb is False

    def test_environment_override(self, monkeypatch):
        monkeypatch.setenv("SESSION_STORAGE_BACKEND", "MongoDB")
        monkeypatch.setenv("MAX_INTERVIEW_EXCHANGES", "12")
        settings = Settings()
        assert settings.uses_mongodb is True
        assert settings.max_interview_exchanges == 12

    def test_cached(self):
        assert get_settings() is get_settings()


class TestModelConfig:
    """YAML model configuration."""

    def test_bundled_config(self):
        config = load_model_config()
        assert config["providers"]["llm"]["provider"] == "ollama"
        assert config["providers"]["llm"]["model"]

    def test_explicit_path(self, tmp_path):
        path = tmp_path / "models.yaml"
        path.write_text("providers:\n  llm:\n    provider: vllm\n    model: mistral-7b\n")
        config = load_model_config(str(path))
        assert config["providers"]["llm"] == {"provider": "vllm", "model": "mistral-7b"}

    def test_empty_file(self, tmp_path):
        path = tmp_path / "models.yaml"
        path.write_text("")
        assert load_model_config(str(path)) == {"providers": {"llm": {}}}

    def test_missing_explicit_path(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_model_config(str(tmp_path / "absent.yaml"))
