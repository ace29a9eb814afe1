"""Injectable cache for question embeddings."""

from abc import ABC, abstractmethod
from collections import OrderedDict


class EmbeddingCache(ABC):
    """Cache collaborator mapping (model, text) to an embedding vector."""

    @abstractmethod
    def get(self, model: str, text: str) -> list[float] | None:
        """Return the cached vector or None."""
        ...

    @abstractmethod
    def put(self, model: str, text: str, embedding: list[float]) -> None:
        """Store a vector."""
        ...


class LRUEmbeddingCache(EmbeddingCache):
    """Bounded cache evicting the least recently used entry.

    Args:
        max_entries: Maximum number of vectors kept in memory.
    """

    def __init__(self, max_entries: int = 256):
        if max_entries <= 0:
            raise ValueError("max_entries must be positive")
        self.max_entries = max_entries
        self._entries: OrderedDict[tuple[str, str], list[float]] = OrderedDict()

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, model: str, text: str) -> list[float] | None:
        key = (model, text)
        embedding = self._entries.get(key)
        if embedding is not None:
            self._entries.move_to_end(key)
        return embedding

    def put(self, model: str, text: str, embedding: list[float]) -> None:
        key = (model, text)
        self._entries[key] = list(embedding)
        self._entries.move_to_end(key)
        while len(self._entries) > self.max_entries:
            self._entries.popitem(last=False)
