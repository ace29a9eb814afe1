"""Unit tests for agent configuration utilities.

Tests functions for loading the chat model and its settings from environment
variables.
"""

import pytest
from pydantic_ai.models.openai import OpenAIChatModel

from src.agent.config import get_model, get_temperature


@pytest.mark.unit
class TestGetModel:
    """Test get_model configuration function."""

    def test_get_model_returns_openai_model(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test that get_model returns an OpenAIChatModel instance."""
        monkeypatch.setenv("LLM_CHOICE", "gpt-4o-mini")
        monkeypatch.setenv("LLM_BASE_URL", "https://api.openai.com/v1")
        monkeypatch.setenv("LLM_API_KEY", "test-key")

        result = get_model()

        assert isinstance(result, OpenAIChatModel)
        assert result.model_name == "gpt-4o-mini"

    def test_get_model_uses_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test that get_model uses default values when env vars not set."""
        monkeypatch.delenv("LLM_CHOICE", raising=False)
        monkeypatch.delenv("LLM_BASE_URL", raising=False)
        monkeypatch.delenv("LLM_API_KEY", raising=False)

        result = get_model()

        assert isinstance(result, OpenAIChatModel)
        assert result.model_name == "gpt-4o-mini"

    def test_get_model_with_custom_llm_choice(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test that get_model respects custom LLM_CHOICE."""
        monkeypatch.setenv("LLM_CHOICE", "gpt-4-turbo")
        monkeypatch.setenv("LLM_API_KEY", "test-key")

        result = get_model()

        assert result.model_name == "gpt-4-turbo"

    def test_get_model_accepts_fallback_key(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test that a resolved key is used when LLM_API_KEY is unset."""
        monkeypatch.delenv("LLM_API_KEY", raising=False)

        result = get_model(api_key="stored-key")

        assert isinstance(result, OpenAIChatModel)


@pytest.mark.unit
class TestGetTemperature:
    """Test get_temperature configuration function."""

    def test_default_temperature(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("LLM_TEMPERATURE", raising=False)

        assert get_temperature() == 0.3

    def test_custom_temperature(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("LLM_TEMPERATURE", "0.7")

        assert get_temperature() == 0.7
