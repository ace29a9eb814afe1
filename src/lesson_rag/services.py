"""Wiring of the lesson RAG services shared by the API, the CLI and scripts."""

from dataclasses import dataclass

from supabase import Client

from src.agent.agent import ChatCompletionService
from src.agent.config import get_model
from src.utils.clients import get_supabase_client, with_resolved_api_key
from src.utils.logging import get_logger

from .answer_synthesizer import AnswerSynthesizer
from .chunking_service import ChunkingService
from .config import LessonRAGConfig, get_config
from .lesson_service import InMemoryLessonService, LessonService
from .pipeline import LessonIngestionPipeline, LessonQueryPipeline, build_embedding_service
from .retriever import Retriever
from .storage_service import ChunkStore, InMemoryChunkStore, SupabaseChunkStore

logger = get_logger(__name__)


@dataclass
class LessonRAGServices:
    """Runtime services for one process.

    Every attribute is a stateless collaborator or, for the chunk store, the
    single shared persistence layer; none of them holds per-request state.

    Attributes:
        config: Resolved configuration (API key filled in if it was looked up).
        supabase: Supabase client, or None in memory-only mode.
        lesson_service: Transcript source.
        chunk_store: Chunk persistence.
        ingestion: Ingestion pipeline.
        query: Question-answering pipeline.
    """

    config: LessonRAGConfig
    supabase: Client | None
    lesson_service: LessonService | InMemoryLessonService
    chunk_store: ChunkStore
    ingestion: LessonIngestionPipeline
    query: LessonQueryPipeline


def build_services(config: LessonRAGConfig | None = None) -> LessonRAGServices:
    """Build every service from configuration.

    With the memory backend and no Supabase settings, lessons and chunks both
    live in process memory; otherwise Supabase is required.

    Raises:
        ValueError: If Supabase settings are required but missing.
    """
    config = config or get_config()

    memory_only = config.chunk_store_backend == "memory" and not (
        config.supabase_url and config.supabase_key
    )
    supabase = None if memory_only else get_supabase_client(config)
    config = with_resolved_api_key(config, supabase)

    lesson_service: LessonService | InMemoryLessonService
    chunk_store: ChunkStore
    if supabase is None:
        lesson_service = InMemoryLessonService()
    else:
        lesson_service = LessonService(config, client=supabase)

    if config.chunk_store_backend == "memory":
        chunk_store = InMemoryChunkStore()
    else:
        chunk_store = SupabaseChunkStore(config, client=supabase)

    embedding_service = build_embedding_service(config)
    chat_service = ChatCompletionService(
        model=get_model(api_key=config.embedding_api_key or None),
        timeout_seconds=config.request_timeout_seconds,
    )

    ingestion = LessonIngestionPipeline(
        config,
        lesson_service=lesson_service,
        chunking_service=ChunkingService(config),
        embedding_service=embedding_service,
        chunk_store=chunk_store,
    )
    query = LessonQueryPipeline(
        config,
        retriever=Retriever(embedding_service, chunk_store, default_k=config.match_count),
        synthesizer=AnswerSynthesizer(chat_service),
    )

    logger.info(
        "services_built",
        chunk_store=type(chunk_store).__name__,
        lesson_source=type(lesson_service).__name__,
    )
    return LessonRAGServices(
        config=config,
        supabase=supabase,
        lesson_service=lesson_service,
        chunk_store=chunk_store,
        ingestion=ingestion,
        query=query,
    )
