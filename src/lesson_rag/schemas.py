"""Pydantic schemas for the lesson RAG pipeline."""

from enum import Enum

from pydantic import BaseModel, Field, field_validator


class ChunkInput(BaseModel):
    """Chunk text paired with its embedding, ready to be persisted.

    This is what ingestion hands to the chunk store; the store assigns the
    lesson id and sequence index.
    """

    text: str
    embedding: list[float]

    @field_validator("text")
    @classmethod
    def _text_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("chunk text must not be empty")
        return value


class Chunk(BaseModel):
    """Stored transcript chunk of a single lesson.

    Chunks are generated, never edited in place. ``sequence_index`` keeps the
    insertion order and only breaks similarity ties. ``similarity`` is set on
    query results and left empty otherwise.
    """

    lesson_id: str
    text: str
    embedding: list[float]
    sequence_index: int
    similarity: float | None = None


class Question(BaseModel):
    """Learner question about one lesson. Never persisted."""

    lesson_id: str
    question: str


class Answer(BaseModel):
    """Answer returned to the learner.

    ``grounded`` is False only for the canned "no information" fallback.
    """

    text: str
    grounded: bool


class IngestionState(str, Enum):
    """States of a single ingestion run."""

    IDLE = "idle"
    FETCHING = "fetching"
    NORMALIZING = "normalizing"
    CHUNKING = "chunking"
    EMBEDDING = "embedding"
    PERSISTING = "persisting"
    DONE = "done"
    FAILED = "failed"


class QueryState(str, Enum):
    """States of a single question-answering run."""

    IDLE = "idle"
    RETRIEVING = "retrieving"
    SYNTHESIZING = "synthesizing"
    ANSWERED = "answered"
    FAILED = "failed"


class IngestionResult(BaseModel):
    """Outcome of an ingestion run that reached ``done``.

    ``chunks_created`` is zero for the "nothing to do" short-circuit.
    """

    lesson_id: str
    state: IngestionState
    chunks_created: int
    message: str
    transitions: list[IngestionState] = Field(default_factory=list)


class QueryResult(BaseModel):
    """Outcome of a question-answering run that reached ``answered``."""

    lesson_id: str
    answer: Answer
    chunks_retrieved: int
    transitions: list[QueryState] = Field(default_factory=list)
