"""Unit tests for the question embedding cache."""

import pytest

from src.lesson_rag.embedding_cache import LRUEmbeddingCache


@pytest.mark.unit
class TestLRUEmbeddingCache:
    """Test suite for LRUEmbeddingCache class."""

    def test_get_missing_returns_none(self) -> None:
        cache = LRUEmbeddingCache(max_entries=2)

        assert cache.get("model", "text") is None

    def test_put_then_get(self) -> None:
        cache = LRUEmbeddingCache(max_entries=2)
        cache.put("model", "text", [1.0, 2.0])

        assert cache.get("model", "text") == [1.0, 2.0]

    def test_entries_are_scoped_by_model(self) -> None:
        cache = LRUEmbeddingCache(max_entries=2)
        cache.put("model-a", "text", [1.0])

        assert cache.get("model-b", "text") is None

    def test_least_recently_used_is_evicted(self) -> None:
        cache = LRUEmbeddingCache(max_entries=2)
        cache.put("m", "a", [1.0])
        cache.put("m", "b", [2.0])
        cache.get("m", "a")
        cache.put("m", "c", [3.0])

        assert len(cache) == 2
        assert cache.get("m", "b") is None
        assert cache.get("m", "a") == [1.0]
        assert cache.get("m", "c") == [3.0]

    def test_invalid_size_rejected(self) -> None:
        with pytest.raises(ValueError):
            LRUEmbeddingCache(max_entries=0)
