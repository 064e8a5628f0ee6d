"""Tests for settings and LLMConfig."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from inkline.core.config import LLMConfig, Settings


@pytest.mark.unit
class TestLLMConfig:
    def test_valid_llm_config(self):
        config = LLMConfig(
            provider="deepseek",
            base_url="https://api.deepseek.com/v1",
            model="deepseek-chat",
            temperature=0.3,
            max_tokens=2048,
            timeout=60,
        )

        assert config.provider == "deepseek"
        assert config.api_key == ""
        assert config.max_tokens == 2048

    def test_temperature_validation_max(self):
        with pytest.raises(ValidationError) as exc_info:
            LLMConfig(
                provider="deepseek",
                base_url="https://api.deepseek.com/v1",
                model="deepseek-chat",
                temperature=2.5,
                max_tokens=1000,
                timeout=60,
            )

        assert "temperature" in str(exc_info.value).lower()

    def test_llm_config_is_frozen(self):
        config = LLMConfig(
            provider="qwen",
            base_url="https://example.com/v1",
            model="qwen-vl-max",
            temperature=0.2,
            max_tokens=600,
            timeout=30,
        )

        with pytest.raises(ValidationError):
            config.model = "other"  # type: ignore[misc]


@pytest.mark.unit
class TestSettings:
    def test_defaults(self, monkeypatch: pytest.MonkeyPatch):
        for key in ("DAILY_QUOTA_LIMIT", "CACHE_TTL_SECONDS", "SEARCH_MIN_TEXT_LENGTH"):
            monkeypatch.delenv(key, raising=False)

        settings = Settings(_env_file=None)

        assert settings.CACHE_TTL_SECONDS == 86400
        assert settings.DAILY_QUOTA_LIMIT == 200
        assert settings.SEARCH_MAX_RESULTS == 5
        assert settings.SEARCH_MIN_TEXT_LENGTH == 40
        assert "x.com" in settings.SEARCH_EXCLUDED_DOMAINS
        assert settings.CLIENT_HOVER_DELAY_MS == 600
        assert settings.CLIENT_DEBOUNCE_MS == 100

    def test_env_override_is_case_insensitive(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("daily_quota_limit", "25")

        settings = Settings(_env_file=None)

        assert settings.DAILY_QUOTA_LIMIT == 25

    def test_judgment_llm_config(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("JUDGMENT_LLM_API_KEY", "sk-test-123456")
        monkeypatch.setenv("JUDGMENT_LLM_MODEL", "deepseek-chat")

        config = Settings(_env_file=None).judgment_llm_config

        assert config.api_key == "sk-test-123456"
        assert config.model == "deepseek-chat"
        assert config.max_tokens == 2048

    def test_capability_availability(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("TAVILY_API_KEY", "")
        monkeypatch.setenv("VISION_LLM_API_KEY", "sk-vision-123456")

        settings = Settings(_env_file=None)

        assert settings.search_available is False
        assert settings.vision_available is True

    def test_rejects_zero_quota(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("DAILY_QUOTA_LIMIT", "0")

        with pytest.raises(ValidationError):
            Settings(_env_file=None)
