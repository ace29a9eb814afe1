"""Unit tests for the retriever."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from src.lesson_rag.errors import EmbeddingProviderError
from src.lesson_rag.retriever import Retriever
from src.lesson_rag.schemas import Chunk, ChunkInput
from src.lesson_rag.storage_service import InMemoryChunkStore


@pytest.mark.unit
class TestRetriever:
    """Test suite for Retriever class."""

    @pytest.fixture
    def embedding_service(self) -> MagicMock:
        service = MagicMock()
        service.embed_text = AsyncMock(return_value=[1.0, 0.0])
        return service

    @pytest.mark.asyncio
    async def test_retrieve_embeds_question_and_queries_store(
        self, embedding_service: MagicMock
    ) -> None:
        chunk = Chunk(lesson_id="L1", text="loops", embedding=[1.0, 0.0], sequence_index=0)
        store = MagicMock()
        store.query_top_k = AsyncMock(return_value=[chunk])

        retriever = Retriever(embedding_service, store, default_k=3)
        results = await retriever.retrieve("L1", "What is a loop?")

        assert results == [chunk]
        embedding_service.embed_text.assert_awaited_once_with("What is a loop?")
        store.query_top_k.assert_awaited_once_with("L1", [1.0, 0.0], 3)

    @pytest.mark.asyncio
    async def test_explicit_k_overrides_default(self, embedding_service: MagicMock) -> None:
        store = InMemoryChunkStore()
        await store.replace_chunks(
            "L1",
            [ChunkInput(text=f"chunk {i}", embedding=[1.0, float(i)]) for i in range(5)],
        )

        retriever = Retriever(embedding_service, store, default_k=3)

        assert len(await retriever.retrieve("L1", "q", k=1)) == 1
        assert len(await retriever.retrieve("L1", "q")) == 3

    @pytest.mark.asyncio
    async def test_lesson_without_chunks_returns_empty(
        self, embedding_service: MagicMock
    ) -> None:
        retriever = Retriever(embedding_service, InMemoryChunkStore())

        assert await retriever.retrieve("empty", "q") == []

    @pytest.mark.asyncio
    async def test_embedding_error_propagates(self) -> None:
        embedding_service = MagicMock()
        embedding_service.embed_text = AsyncMock(side_effect=EmbeddingProviderError("down"))
        store = MagicMock()
        store.query_top_k = AsyncMock()

        retriever = Retriever(embedding_service, store)

        with pytest.raises(EmbeddingProviderError):
            await retriever.retrieve("L1", "q")
        store.query_top_k.assert_not_called()
