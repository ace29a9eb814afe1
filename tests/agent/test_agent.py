"""Unit tests for the chat-completion service."""

import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from src.agent.agent import ChatCompletionService
from src.lesson_rag.errors import AnswerGenerationError


@pytest.mark.unit
class TestChatCompletionService:
    """Test suite for ChatCompletionService class."""

    @pytest.fixture
    def model(self) -> MagicMock:
        return MagicMock()

    @pytest.mark.asyncio
    async def test_complete_returns_agent_output(self, model: MagicMock) -> None:
        with patch("src.agent.agent.Agent") as mock_agent_cls:
            mock_agent_cls.return_value.run = AsyncMock(
                return_value=MagicMock(output="A loop repeats code.")
            )
            service = ChatCompletionService(model=model, temperature=0.3, timeout_seconds=5)

            text = await service.complete("system prompt", "user prompt")

        assert text == "A loop repeats code."
        mock_agent_cls.assert_called_once_with(model, system_prompt="system prompt")
        mock_agent_cls.return_value.run.assert_awaited_once_with(
            "user prompt", model_settings={"temperature": 0.3}
        )

    @pytest.mark.asyncio
    async def test_provider_error_is_wrapped(self, model: MagicMock) -> None:
        with patch("src.agent.agent.Agent") as mock_agent_cls:
            mock_agent_cls.return_value.run = AsyncMock(side_effect=Exception("quota exceeded"))
            service = ChatCompletionService(model=model, temperature=0.3, timeout_seconds=5)

            with pytest.raises(AnswerGenerationError, match="quota exceeded"):
                await service.complete("system", "user")

    @pytest.mark.asyncio
    async def test_empty_output_raises(self, model: MagicMock) -> None:
        with patch("src.agent.agent.Agent") as mock_agent_cls:
            mock_agent_cls.return_value.run = AsyncMock(return_value=MagicMock(output="  "))
            service = ChatCompletionService(model=model, temperature=0.3, timeout_seconds=5)

            with pytest.raises(AnswerGenerationError, match="no text"):
                await service.complete("system", "user")

    @pytest.mark.asyncio
    async def test_timeout_raises(self, model: MagicMock) -> None:
        async def slow_run(*args, **kwargs):
            await asyncio.sleep(1)

        with patch("src.agent.agent.Agent") as mock_agent_cls:
            mock_agent_cls.return_value.run = slow_run
            service = ChatCompletionService(model=model, temperature=0.3, timeout_seconds=0.01)

            with pytest.raises(AnswerGenerationError, match="timed out"):
                await service.complete("system", "user")
