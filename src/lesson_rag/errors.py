"""Typed errors raised by the lesson RAG pipeline.

Services raise the provider-level errors; the pipelines wrap them into
``IngestionFailedError`` / ``QueryFailedError`` carrying the stage that
failed, chained to the original error.
"""


class LessonRAGError(Exception):
    """Base class for every error raised by the lesson RAG core."""


class ValidationError(LessonRAGError):
    """Missing or malformed input (blank lesson id or question)."""


class EmbeddingProviderError(LessonRAGError):
    """Embedding call failed, timed out or returned malformed data."""


class StoreError(LessonRAGError):
    """Chunk store read or write failed."""


class TranscriptSourceError(LessonRAGError):
    """Lesson transcript could not be read from the lesson store."""


class AnswerGenerationError(LessonRAGError):
    """Chat-completion call failed or returned no text."""


class PipelineStageError(LessonRAGError):
    """A pipeline run terminated in the failed state.

    Attributes:
        stage: Name of the stage that was running when the error happened.
        lesson_id: Lesson the run was for.
    """

    def __init__(self, stage: str, lesson_id: str, message: str):
        super().__init__(message)
        self.stage = stage
        self.lesson_id = lesson_id


class IngestionFailedError(PipelineStageError):
    """Ingestion run failed at ``stage``."""


class QueryFailedError(PipelineStageError):
    """Question-answering run failed at ``stage``."""
