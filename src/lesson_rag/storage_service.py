"""Chunk storage: atomic per-lesson replacement and cosine top-K queries."""

import asyncio
import json
from abc import ABC, abstractmethod
from collections.abc import Callable, Sequence
from typing import Any, TypeVar

import numpy as np
from supabase import Client, create_client

from src.utils.logging import get_logger

from .config import LessonRAGConfig
from .errors import StoreError
from .schemas import Chunk, ChunkInput

logger = get_logger(__name__)

T = TypeVar("T")

REPLACE_FUNCTION = "replace_lesson_chunks"
MATCH_FUNCTION = "match_lesson_chunks"


def validate_chunk_inputs(chunks: Sequence[ChunkInput]) -> None:
    """Check that chunk texts are non-empty and share one embedding dimension.

    Raises:
        StoreError: If the chunk set violates either invariant.
    """
    dimensions = set()
    for chunk in chunks:
        if not chunk.text.strip():
            raise StoreError("Chunk text must not be empty")
        if not chunk.embedding:
            raise StoreError("Chunk embedding must not be empty")
        dimensions.add(len(chunk.embedding))

    if len(dimensions) > 1:
        raise StoreError(f"Chunks of one lesson must share a dimension, got {sorted(dimensions)}")


def rank_chunks(chunks: list[Chunk], k: int) -> list[Chunk]:
    """Order by similarity descending, then sequence index ascending, and keep k."""
    ranked = sorted(
        chunks,
        key=lambda chunk: (-(chunk.similarity or 0.0), chunk.sequence_index),
    )
    return ranked[:k]


class ChunkStore(ABC):
    """Persistence for (lesson_id, chunk text, embedding) triples.

    ``replace_chunks`` is the only mutation. Readers see either the complete
    old chunk set of a lesson or the complete new one, never a mix.
    """

    @abstractmethod
    async def replace_chunks(self, lesson_id: str, chunks: Sequence[ChunkInput]) -> int:
        """Atomically replace every chunk of a lesson.

        Args:
            lesson_id: Lesson whose chunk set is replaced.
            chunks: New chunk set, in sequence order. May be empty.

        Returns:
            Number of chunks stored.

        Raises:
            StoreError: If the write fails or the chunk set is invalid.
        """
        ...

    @abstractmethod
    async def query_top_k(
        self, lesson_id: str, query_vector: Sequence[float], k: int
    ) -> list[Chunk]:
        """Return the k chunks of a lesson most similar to the query vector.

        Args:
            lesson_id: Lesson to search in; other lessons are never returned.
            query_vector: Query embedding.
            k: Maximum number of chunks.

        Returns:
            Chunks by descending cosine similarity, ties broken by sequence
            index ascending. Empty if the lesson has no chunks.

        Raises:
            StoreError: If the read fails.
        """
        ...

    @abstractmethod
    async def count_chunks(self, lesson_id: str) -> int:
        """Return the number of chunks stored for a lesson."""
        ...


class SupabaseChunkStore(ChunkStore):
    """Chunk store backed by a Supabase (Postgres + pgvector) table.

    Replacement runs the ``replace_lesson_chunks`` SQL function so the delete
    and the insert commit in one transaction. Similarity search runs the
    ``match_lesson_chunks`` function, which scopes rows to one lesson and
    computes cosine similarity with pgvector. Both functions are defined in
    ``sql/lesson_chunks.sql``.

    supabase-py is synchronous, so each request runs in a worker thread and
    is bounded by the configured timeout.
    """

    def __init__(self, config: LessonRAGConfig, client: Client | None = None):
        """Initialize storage service with configuration.

        Args:
            config: Configuration object with Supabase credentials.
            client: Existing Supabase client to reuse (optional).
        """
        self.config = config
        self.client: Client = client or create_client(
            config.supabase_url,
            config.supabase_key,
        )
        logger.info(
            "chunk_store_initialized",
            backend="supabase",
            table=config.chunks_table,
        )

    async def _run(self, operation: str, call: Callable[[], T]) -> T:
        """Run a blocking Supabase call in a thread with the request timeout."""
        try:
            return await asyncio.wait_for(
                asyncio.to_thread(call),
                timeout=self.config.request_timeout_seconds,
            )
        except TimeoutError as e:
            logger.error("chunk_store_timeout", operation=operation)
            raise StoreError(f"Chunk store {operation} timed out") from e
        except StoreError:
            raise
        except Exception as e:
            logger.exception(
                "chunk_store_failed",
                operation=operation,
                error_type=type(e).__name__,
            )
            raise StoreError(f"Chunk store {operation} failed: {e}") from e

    async def replace_chunks(self, lesson_id: str, chunks: Sequence[ChunkInput]) -> int:
        validate_chunk_inputs(chunks)

        payload = [
            {
                "chunk_index": index,
                "chunk_text": chunk.text,
                "embedding": chunk.embedding,
            }
            for index, chunk in enumerate(chunks)
        ]

        await self._run(
            "replace",
            lambda: self.client.rpc(
                REPLACE_FUNCTION,
                {"p_lesson_id": lesson_id, "p_chunks": payload},
            ).execute(),
        )

        logger.info("chunks_replaced", lesson_id=lesson_id, count=len(payload))
        return len(payload)

    async def query_top_k(
        self, lesson_id: str, query_vector: Sequence[float], k: int
    ) -> list[Chunk]:
        if k <= 0:
            return []

        response = await self._run(
            "query",
            lambda: self.client.rpc(
                MATCH_FUNCTION,
                {
                    "query_embedding": list(query_vector),
                    "match_lesson_id": lesson_id,
                    "match_count": k,
                },
            ).execute(),
        )

        rows: list[dict[str, Any]] = response.data or []
        try:
            chunks = [self._row_to_chunk(lesson_id, row) for row in rows]
        except (KeyError, TypeError, ValueError) as e:
            raise StoreError(f"Malformed chunk row returned by {MATCH_FUNCTION}") from e

        results = rank_chunks(chunks, k)
        logger.info(
            "vector_search_completed",
            lesson_id=lesson_id,
            results=len(results),
            match_count=k,
        )
        return results

    async def count_chunks(self, lesson_id: str) -> int:
        response = await self._run(
            "count",
            lambda: self.client.table(self.config.chunks_table)
            .select("id", count="exact")
            .eq("lesson_id", lesson_id)
            .execute(),
        )
        return int(response.count or 0)

    @staticmethod
    def _row_to_chunk(lesson_id: str, row: dict[str, Any]) -> Chunk:
        embedding = row.get("embedding") or []
        # PostgREST serializes pgvector columns as "[0.1,0.2,...]"
        if isinstance(embedding, str):
            embedding = json.loads(embedding)

        return Chunk(
            lesson_id=row.get("lesson_id", lesson_id),
            text=row["chunk_text"],
            embedding=[float(x) for x in embedding],
            sequence_index=int(row.get("chunk_index", 0)),
            similarity=float(row["similarity"]),
        )


class InMemoryChunkStore(ChunkStore):
    """Process-local chunk store used for development, the CLI and tests.

    Each lesson maps to an immutable tuple of chunks. Replacement builds the
    new tuple first and swaps it in with a single assignment, so a concurrent
    query holds either the old tuple or the new one.
    """

    def __init__(self) -> None:
        self._chunks: dict[str, tuple[Chunk, ...]] = {}
        logger.info("chunk_store_initialized", backend="memory")

    async def replace_chunks(self, lesson_id: str, chunks: Sequence[ChunkInput]) -> int:
        validate_chunk_inputs(chunks)

        new_chunks = tuple(
            Chunk(
                lesson_id=lesson_id,
                text=chunk.text,
                embedding=list(chunk.embedding),
                sequence_index=index,
            )
            for index, chunk in enumerate(chunks)
        )

        if new_chunks:
            self._chunks[lesson_id] = new_chunks
        else:
            self._chunks.pop(lesson_id, None)

        logger.info("chunks_replaced", lesson_id=lesson_id, count=len(new_chunks))
        return len(new_chunks)

    async def query_top_k(
        self, lesson_id: str, query_vector: Sequence[float], k: int
    ) -> list[Chunk]:
        snapshot = self._chunks.get(lesson_id, ())
        if k <= 0 or not snapshot:
            return []

        matrix = np.asarray([chunk.embedding for chunk in snapshot], dtype=float)
        query = np.asarray(query_vector, dtype=float)
        if query.ndim != 1 or query.shape[0] != matrix.shape[1]:
            raise StoreError(
                f"Query vector has dimension {query.shape[-1] if query.ndim else 0}, "
                f"chunks have {matrix.shape[1]}"
            )

        # Cosine similarity on raw vectors; zero vectors score 0
        norms = np.linalg.norm(matrix, axis=1) * np.linalg.norm(query)
        dots = matrix @ query
        similarities = np.divide(dots, norms, out=np.zeros_like(dots), where=norms > 0)

        scored = [
            chunk.model_copy(update={"similarity": float(score)})
            for chunk, score in zip(snapshot, similarities, strict=True)
        ]
        results = rank_chunks(scored, k)

        logger.info(
            "vector_search_completed",
            lesson_id=lesson_id,
            results=len(results),
            match_count=k,
        )
        return results

    async def count_chunks(self, lesson_id: str) -> int:
        return len(self._chunks.get(lesson_id, ()))


def create_chunk_store(config: LessonRAGConfig, client: Client | None = None) -> ChunkStore:
    """Build the chunk store selected by ``config.chunk_store_backend``."""
    if config.chunk_store_backend == "memory":
        return InMemoryChunkStore()
    return SupabaseChunkStore(config, client=client)
