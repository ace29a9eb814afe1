"""Chunking service for sentence-respecting transcript segmentation."""

import re

from src.utils.logging import get_logger

from .config import LessonRAGConfig

logger = get_logger(__name__)

# Sentence boundary: after '.', '?' or '!' followed by whitespace
SENTENCE_BOUNDARY = re.compile(r"(?<=[.?!])\s+")

# Rough characters-per-token ratio used instead of a real tokenizer
CHARS_PER_TOKEN = 4


def split_sentences(text: str) -> list[str]:
    """Split text into sentences on '.', '?' and '!' followed by whitespace.

    Args:
        text: Normalized transcript text.

    Returns:
        Non-empty sentences in their original order.
    """
    return [s for s in SENTENCE_BOUNDARY.split(text.strip()) if s]


def estimate_tokens(text: str) -> float:
    """Estimate the token count of text as ``len(text) / 4``.

    Args:
        text: Candidate chunk text.

    Returns:
        Approximate number of tokens.
    """
    return len(text) / CHARS_PER_TOKEN


class ChunkingService:
    """Service for chunking lesson transcripts with a token budget.

    Sentences are accumulated greedily into chunks whose estimated token count
    stays within ``max_chunk_tokens``. Sentences are never split, so a single
    sentence longer than the budget becomes a chunk of its own.
    """

    def __init__(self, config: LessonRAGConfig):
        """Initialize chunking service with configuration.

        Args:
            config: Configuration object with the default token budget.
        """
        self.config = config
        logger.info(
            "chunking_service_initialized",
            max_tokens=config.max_chunk_tokens,
        )

    def chunk_text(self, text: str, max_tokens: int | None = None) -> list[str]:
        """Chunk normalized transcript text.

        The same text and budget always produce the same chunks.

        Args:
            text: Normalized transcript text.
            max_tokens: Token budget per chunk. Defaults to the configured value.

        Returns:
            List of chunk strings; empty for empty input.
        """
        budget = max_tokens if max_tokens is not None else self.config.max_chunk_tokens

        chunks: list[str] = []
        current_chunk = ""

        for sentence in split_sentences(text):
            candidate = f"{current_chunk} {sentence}" if current_chunk else sentence

            if estimate_tokens(candidate) > budget:
                # Close the current chunk and start over with this sentence
                if current_chunk:
                    chunks.append(current_chunk)
                current_chunk = sentence
            else:
                current_chunk = candidate

        if current_chunk:
            chunks.append(current_chunk)

        logger.info(
            "chunking_completed",
            input_chars=len(text),
            max_tokens=budget,
            chunks_created=len(chunks),
        )
        return chunks
