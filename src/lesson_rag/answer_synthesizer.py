"""Answer synthesis grounded in retrieved lesson chunks."""

from collections.abc import Sequence
from typing import Protocol

from src.utils.logging import get_logger

from .schemas import Answer, Chunk

logger = get_logger(__name__)

# ==============================================================================
# Prompts
# ==============================================================================

FALLBACK_ANSWER = (
    "Desculpe, só posso responder perguntas relacionadas ao conteúdo desta aula, "
    "e não encontrei informações sobre isso."
)

OFF_TOPIC_REDIRECT = (
    "Meu propósito é ajudar com o conteúdo desta aula. "
    "Você tem alguma pergunta sobre o material apresentado?"
)

NO_CONTEXT_ANSWER = (
    "Desculpe, ainda não tenho informações sobre esta aula para responder sua pergunta."
)

CONTEXT_DELIMITER = "\n\n---\n\n"

LESSON_ASSISTANT_SYSTEM_PROMPT = f"""You are a helpful and friendly assistant for an online course.
Your goal is to help the student learn the content of the lesson.

First, handle basic greetings and simple conversational questions (like "hello", "how are you?", "who are you?") in a friendly and natural way.

For any other question, answer it based primarily on the provided context from the lesson transcript.
If the question is about the lesson's content but the answer isn't explicitly in the context, you can provide a helpful summary or point the student in the right direction based on the context.
If the question is completely unrelated to the lesson's topic, gently guide the student back to the lesson content, for example by saying: "{OFF_TOPIC_REDIRECT}"
If the provided context is empty, you must say: "{NO_CONTEXT_ANSWER}"
"""


class ChatProvider(Protocol):
    """Anything that can turn a system/user prompt pair into text."""

    async def complete(self, system_prompt: str, user_prompt: str) -> str: ...


def build_context(chunks: Sequence[Chunk]) -> str:
    """Join chunk texts, in retrieval order, with a visible delimiter."""
    return CONTEXT_DELIMITER.join(chunk.text for chunk in chunks)


def build_user_prompt(context: str, question: str) -> str:
    """Format the lesson context and the learner question for the model."""
    return f'Contexto da Aula:\n"""\n{context}\n"""\n\nPergunta do Aluno: {question}'


class AnswerSynthesizer:
    """Turns retrieved chunks and a question into an answer.

    With no chunks the fixed fallback is returned without calling the chat
    provider. Provider failures propagate as ``AnswerGenerationError`` and are
    never turned into the fallback, since the fallback means "nothing
    relevant found" and not "provider unavailable".
    """

    def __init__(self, chat_provider: ChatProvider, system_prompt: str = LESSON_ASSISTANT_SYSTEM_PROMPT):
        self.chat_provider = chat_provider
        self.system_prompt = system_prompt

    async def synthesize(self, question: str, chunks: Sequence[Chunk]) -> Answer:
        """Produce an answer for the question from the retrieved chunks.

        Args:
            question: Learner question.
            chunks: Retrieved chunks, most relevant first.

        Returns:
            Grounded answer, or the fallback with ``grounded=False``.

        Raises:
            AnswerGenerationError: If the chat provider fails.
        """
        if not chunks:
            logger.info("answer_fallback_returned", reason="no_chunks")
            return Answer(text=FALLBACK_ANSWER, grounded=False)

        context = build_context(chunks)
        text = await self.chat_provider.complete(
            self.system_prompt,
            build_user_prompt(context, question),
        )

        logger.info(
            "answer_synthesized",
            chunks_used=len(chunks),
            context_chars=len(context),
            answer_chars=len(text),
        )
        return Answer(text=text, grounded=True)
