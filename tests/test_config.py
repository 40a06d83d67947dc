"""Tests for settings loading and provider-specific client config selection."""

import pytest

from src.config import Settings, build_client_config, get_settings


class TestSettings:
    def test_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        for name in ("AI_PROVIDER", "OPENAI_API_KEY", "AI_TIMEOUT_SECONDS", "LOG_LEVEL"):
            monkeypatch.delenv(name, raising=False)
        settings = Settings()
        assert settings.ai_provider == "openai"
        assert settings.openai_api_key == ""
        assert settings.ai_timeout_seconds == 60
        assert settings.log_level == "INFO"

    def test_env_overrides(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("AI_PROVIDER", "anthropic")
        monkeypatch.setenv("ANTHROPIC_API_KEY", "sk-ant-env")
        monkeypatch.setenv("AI_TIMEOUT_SECONDS", "15")
        settings = Settings()
        assert settings.ai_provider == "anthropic"
        assert settings.anthropic_api_key == "sk-ant-env"
        assert settings.ai_timeout_seconds == 15.0

    def test_get_settings_is_cached(self) -> None:
        assert get_settings() is get_settings()


class TestBuildClientConfig:
    def test_openai_selection(self) -> None:
        settings = Settings(
            openai_api_key="sk-openai",
            openai_model="gpt-4o",
            openai_base_url="https://proxy/v1",
            anthropic_api_key="sk-ant",
        )
        config = build_client_config(settings)
        assert config.provider == "openai"
        assert config.api_key == "sk-openai"
        assert config.model == "gpt-4o"
        assert config.base_url == "https://proxy/v1"

    def test_anthropic_selection(self) -> None:
        settings = Settings(
            ai_provider="Anthropic",
            openai_api_key="sk-openai",
            anthropic_api_key="sk-ant",
            anthropic_model="claude-x",
            openai_base_url="https://proxy/v1",
        )
        config = build_client_config(settings)
        assert config.api_key == "sk-ant"
        assert config.model == "claude-x"
        assert config.base_url == ""

    def test_shared_tuning(self) -> None:
        settings = Settings(ai_timeout_seconds=7, ai_temperature=0.0, ai_max_tokens=123)
        config = build_client_config(settings)
        assert config.timeout_seconds == 7
        assert config.temperature == 0.0
        assert config.max_tokens == 123

    def test_unknown_provider_passed_through(self) -> None:
        config = build_client_config(Settings(ai_provider="gemini"))
        assert config.provider == "gemini"
