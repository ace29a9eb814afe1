"""Chat-completion client for the lesson assistant.

Wraps a Pydantic AI agent behind a ``complete(system_prompt, user_prompt)``
call so the answer synthesizer never sees provider payloads.
"""

import asyncio

from pydantic_ai import Agent
from pydantic_ai.models import Model

from src.agent.config import get_model, get_temperature
from src.lesson_rag.errors import AnswerGenerationError
from src.utils.logging import get_logger

logger = get_logger(__name__)

DEFAULT_TIMEOUT_SECONDS = 30.0


class ChatCompletionService:
    """Single-turn chat completions with a bounded timeout.

    A fresh agent is built per call so each request carries its own system
    prompt and no conversation state is kept between requests.
    """

    def __init__(
        self,
        model: Model | None = None,
        temperature: float | None = None,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
    ):
        self.model = model or get_model()
        self.temperature = temperature if temperature is not None else get_temperature()
        self.timeout_seconds = timeout_seconds

    async def complete(self, system_prompt: str, user_prompt: str) -> str:
        """Generate a completion for one system/user prompt pair.

        Args:
            system_prompt: Instructions scoping the assistant.
            user_prompt: Lesson context and learner question.

        Returns:
            Completion text, verbatim.

        Raises:
            AnswerGenerationError: If the call fails, times out or returns no text.
        """
        logger.info(
            "chat_completion_started",
            system_prompt_chars=len(system_prompt),
            user_prompt_chars=len(user_prompt),
        )

        agent = Agent(self.model, system_prompt=system_prompt)

        try:
            result = await asyncio.wait_for(
                agent.run(user_prompt, model_settings={"temperature": self.temperature}),
                timeout=self.timeout_seconds,
            )
        except TimeoutError as e:
            logger.error("chat_completion_timeout", timeout=self.timeout_seconds)
            raise AnswerGenerationError(
                f"Chat completion timed out after {self.timeout_seconds}s"
            ) from e
        except Exception as e:
            logger.exception("chat_completion_failed", error_type=type(e).__name__)
            raise AnswerGenerationError(f"Chat completion failed: {e}") from e

        text = result.output
        if not isinstance(text, str) or not text.strip():
            logger.error("chat_completion_empty")
            raise AnswerGenerationError("Chat completion returned no text")

        logger.info("chat_completion_completed", response_chars=len(text))
        return text
