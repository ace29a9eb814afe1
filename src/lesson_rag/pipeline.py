"""Ingestion and question-answering pipelines for lesson transcripts."""

from enum import Enum
from typing import Generic, NoReturn, TypeVar

from src.agent.agent import ChatCompletionService
from src.utils.logging import get_logger

from .answer_synthesizer import AnswerSynthesizer
from .chunking_service import ChunkingService
from .config import LessonRAGConfig, get_config
from .embedding_cache import LRUEmbeddingCache
from .embedding_service import EmbeddingService
from .errors import IngestionFailedError, QueryFailedError, ValidationError
from .lesson_service import InMemoryLessonService, LessonService
from .retriever import Retriever
from .schemas import (
    ChunkInput,
    IngestionResult,
    IngestionState,
    QueryResult,
    QueryState,
)
from .storage_service import ChunkStore, create_chunk_store
from .transcript_normalizer import normalize_transcript

logger = get_logger(__name__)

S = TypeVar("S", bound=Enum)

NO_TRANSCRIPT_MESSAGE = "No transcript found for this lesson. Nothing to do."
EMPTY_TRANSCRIPT_MESSAGE = "Transcript was empty or invalid. Nothing to do."


class PipelineRun(Generic[S]):
    """State of one pipeline run.

    Created per call so the pipelines themselves hold no request state.
    """

    def __init__(self, initial: S):
        self.state: S = initial
        self.transitions: list[S] = [initial]

    def advance(self, state: S) -> None:
        self.state = state
        self.transitions.append(state)


def require_text(value: object, name: str) -> str:
    """Return the stripped value, or raise ValidationError if it is blank."""
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"Missing {name}")
    return value.strip()


def build_embedding_service(config: LessonRAGConfig) -> EmbeddingService:
    """Embedding service with the query cache enabled when configured."""
    cache = LRUEmbeddingCache(config.query_cache_size) if config.query_cache_size > 0 else None
    return EmbeddingService(config, cache=cache)


class LessonIngestionPipeline:
    """Orchestrates transcript ingestion for one lesson at a time.

    States: idle → fetching → normalizing → chunking → embedding →
    persisting → done, with failed reachable from any of them. The chunk
    store is only touched in the persisting stage, through one atomic
    replacement. A lesson without a transcript ends in done with the store
    untouched; a transcript that normalizes to no text ends in done with the
    lesson's chunk set cleared.
    """

    def __init__(
        self,
        config: LessonRAGConfig | None = None,
        lesson_service: LessonService | InMemoryLessonService | None = None,
        chunking_service: ChunkingService | None = None,
        embedding_service: EmbeddingService | None = None,
        chunk_store: ChunkStore | None = None,
    ):
        """Initialize pipeline with all required services.

        Args:
            config: Configuration object. If None, loads from environment.
            lesson_service: Lesson transcript source.
            chunking_service: Transcript chunker.
            embedding_service: Embedding provider adapter.
            chunk_store: Chunk persistence.
        """
        self.config = config or get_config()
        self.lesson_service = lesson_service or LessonService(self.config)
        self.chunking_service = chunking_service or ChunkingService(self.config)
        self.embedding_service = embedding_service or build_embedding_service(self.config)
        self.chunk_store = chunk_store or create_chunk_store(self.config)

        logger.info(
            "ingestion_pipeline_initialized",
            max_tokens=self.config.max_chunk_tokens,
            store=type(self.chunk_store).__name__,
        )

    async def ingest(self, lesson_id: str) -> IngestionResult:
        """Fetch a lesson's transcript and rebuild its chunk set.

        Args:
            lesson_id: Lesson to ingest.

        Returns:
            IngestionResult in the done state.

        Raises:
            ValidationError: If lesson_id is blank.
            IngestionFailedError: If any stage fails; ``stage`` names it.
        """
        lesson_id = require_text(lesson_id, "lesson_id")
        run: PipelineRun[IngestionState] = PipelineRun(IngestionState.IDLE)

        logger.info("ingestion_started", lesson_id=lesson_id)

        try:
            run.advance(IngestionState.FETCHING)
            raw_transcript = await self.lesson_service.get_transcript(lesson_id)
        except Exception as e:
            self._fail(run, lesson_id, e)

        return await self._ingest(run, lesson_id, raw_transcript)

    async def ingest_text(self, lesson_id: str, raw_transcript: str | None) -> IngestionResult:
        """Rebuild a lesson's chunk set from transcript text supplied by the caller.

        Args:
            lesson_id: Lesson the transcript belongs to.
            raw_transcript: Raw transcript, plain or cue formatted.

        Returns:
            IngestionResult in the done state.

        Raises:
            ValidationError: If lesson_id is blank.
            IngestionFailedError: If any stage fails.
        """
        lesson_id = require_text(lesson_id, "lesson_id")
        run: PipelineRun[IngestionState] = PipelineRun(IngestionState.IDLE)

        logger.info("ingestion_started", lesson_id=lesson_id, source="text")
        return await self._ingest(run, lesson_id, raw_transcript)

    async def _ingest(
        self,
        run: PipelineRun[IngestionState],
        lesson_id: str,
        raw_transcript: str | None,
    ) -> IngestionResult:
        if not raw_transcript:
            return self._nothing_to_do(run, lesson_id, NO_TRANSCRIPT_MESSAGE)

        try:
            # 1. Normalize subtitle cues to prose
            run.advance(IngestionState.NORMALIZING)
            text = normalize_transcript(raw_transcript)

            # 2. Chunk by sentences within the token budget
            chunks: list[str] = []
            if text:
                run.advance(IngestionState.CHUNKING)
                chunks = self.chunking_service.chunk_text(text)

            if not chunks:
                # Transcript exists but holds no text: drop the stale chunk set
                run.advance(IngestionState.PERSISTING)
                await self.chunk_store.replace_chunks(lesson_id, [])
                return self._nothing_to_do(run, lesson_id, EMPTY_TRANSCRIPT_MESSAGE)

            # 3. Embed every chunk in one batch
            run.advance(IngestionState.EMBEDDING)
            embeddings = await self.embedding_service.embed(chunks)

            # 4. Replace the lesson's chunk set atomically
            run.advance(IngestionState.PERSISTING)
            chunk_inputs = [
                ChunkInput(text=chunk, embedding=embedding)
                for chunk, embedding in zip(chunks, embeddings, strict=True)
            ]
            stored = await self.chunk_store.replace_chunks(lesson_id, chunk_inputs)

        except Exception as e:
            self._fail(run, lesson_id, e)

        run.advance(IngestionState.DONE)
        logger.info("ingestion_completed", lesson_id=lesson_id, chunks_created=stored)

        return IngestionResult(
            lesson_id=lesson_id,
            state=run.state,
            chunks_created=stored,
            message=f"Successfully generated and stored {stored} chunks.",
            transitions=run.transitions,
        )

    def _nothing_to_do(
        self, run: PipelineRun[IngestionState], lesson_id: str, message: str
    ) -> IngestionResult:
        run.advance(IngestionState.DONE)
        logger.info("ingestion_skipped", lesson_id=lesson_id, reason=message)
        return IngestionResult(
            lesson_id=lesson_id,
            state=run.state,
            chunks_created=0,
            message=message,
            transitions=run.transitions,
        )

    def _fail(
        self, run: PipelineRun[IngestionState], lesson_id: str, error: Exception
    ) -> NoReturn:
        stage = run.state
        run.advance(IngestionState.FAILED)
        logger.error(
            "ingestion_failed",
            lesson_id=lesson_id,
            stage=stage.value,
            error_type=type(error).__name__,
            error=str(error),
        )
        raise IngestionFailedError(
            stage.value, lesson_id, f"Ingestion failed at {stage.value}: {error}"
        ) from error


class LessonQueryPipeline:
    """Answers a learner question from one lesson's chunks.

    States: idle → retrieving → synthesizing → answered, with failed
    reachable from retrieving and synthesizing. Input is validated before
    any provider is called. Synthesis always runs after a successful
    retrieval, so an empty retrieval yields the fallback answer.
    """

    def __init__(
        self,
        config: LessonRAGConfig | None = None,
        retriever: Retriever | None = None,
        synthesizer: AnswerSynthesizer | None = None,
    ):
        """Initialize pipeline with all required services.

        Args:
            config: Configuration object. If None, loads from environment.
            retriever: Question retriever.
            synthesizer: Answer synthesizer.
        """
        self.config = config or get_config()
        self.retriever = retriever or Retriever(
            build_embedding_service(self.config),
            create_chunk_store(self.config),
            default_k=self.config.match_count,
        )
        self.synthesizer = synthesizer or AnswerSynthesizer(
            ChatCompletionService(timeout_seconds=self.config.request_timeout_seconds)
        )

        logger.info("query_pipeline_initialized", match_count=self.config.match_count)

    async def ask(self, lesson_id: str, question: str) -> QueryResult:
        """Answer a question about a lesson.

        Args:
            lesson_id: Lesson the question is about.
            question: Learner question.

        Returns:
            QueryResult in the answered state.

        Raises:
            ValidationError: If lesson_id or question is blank.
            QueryFailedError: If retrieval or synthesis fails.
        """
        lesson_id = require_text(lesson_id, "lesson_id")
        question = require_text(question, "question")
        run: PipelineRun[QueryState] = PipelineRun(QueryState.IDLE)

        logger.info("query_started", lesson_id=lesson_id, question_length=len(question))

        try:
            run.advance(QueryState.RETRIEVING)
            chunks = await self.retriever.retrieve(lesson_id, question)

            run.advance(QueryState.SYNTHESIZING)
            answer = await self.synthesizer.synthesize(question, chunks)

        except Exception as e:
            stage = run.state
            run.advance(QueryState.FAILED)
            logger.error(
                "query_failed",
                lesson_id=lesson_id,
                stage=stage.value,
                error_type=type(e).__name__,
                error=str(e),
            )
            raise QueryFailedError(
                stage.value, lesson_id, f"Query failed at {stage.value}: {e}"
            ) from e

        run.advance(QueryState.ANSWERED)
        logger.info(
            "query_completed",
            lesson_id=lesson_id,
            chunks_retrieved=len(chunks),
            grounded=answer.grounded,
        )

        return QueryResult(
            lesson_id=lesson_id,
            answer=answer,
            chunks_retrieved=len(chunks),
            transitions=run.transitions,
        )
