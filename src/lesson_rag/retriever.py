"""Retriever: question embedding plus per-lesson similarity search."""

from src.utils.logging import get_logger

from .embedding_service import EmbeddingService
from .schemas import Chunk
from .storage_service import ChunkStore

logger = get_logger(__name__)

DEFAULT_MATCH_COUNT = 3


class Retriever:
    """Find the transcript chunks of a lesson most relevant to a question.

    Results come back exactly as the chunk store ranked them. An empty list
    means the lesson has no chunks yet and is not an error.
    """

    def __init__(
        self,
        embedding_service: EmbeddingService,
        chunk_store: ChunkStore,
        default_k: int = DEFAULT_MATCH_COUNT,
    ):
        self.embedding_service = embedding_service
        self.chunk_store = chunk_store
        self.default_k = default_k

    async def retrieve(self, lesson_id: str, question: str, k: int | None = None) -> list[Chunk]:
        """Embed the question and query the lesson's chunks.

        Args:
            lesson_id: Lesson to search in.
            question: Learner question.
            k: Number of chunks to return. Defaults to ``default_k``.

        Returns:
            Up to k chunks, most similar first.

        Raises:
            EmbeddingProviderError: If the question cannot be embedded.
            StoreError: If the chunk store query fails.
        """
        match_count = k if k is not None else self.default_k

        query_vector = await self.embedding_service.embed_text(question)
        chunks = await self.chunk_store.query_top_k(lesson_id, query_vector, match_count)

        logger.info(
            "retrieval_completed",
            lesson_id=lesson_id,
            match_count=match_count,
            results_found=len(chunks),
        )
        return chunks
