"""Configuration module for the lesson RAG pipeline."""

import os

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, field_validator

# Load environment variables from .env file
load_dotenv()

CHUNK_STORE_BACKENDS = ("supabase", "memory")


class LessonRAGConfig(BaseModel):
    """Configuration for lesson transcript ingestion and question answering.

    Manages settings for chunking, embedding, chunk storage and provider
    timeouts. All settings can be overridden via environment variables.
    """

    # Run validators on environment-provided defaults
    model_config = ConfigDict(validate_default=True)

    # Embedding settings
    embedding_provider: str = Field(
        default_factory=lambda: os.getenv("EMBEDDING_PROVIDER", "openai")
    )
    embedding_base_url: str = Field(
        default_factory=lambda: os.getenv(
            "EMBEDDING_BASE_URL", "https://api.openai.com/v1"
        )
    )
    embedding_api_key: str = Field(
        default_factory=lambda: os.getenv("EMBEDDING_API_KEY", "")
    )
    embedding_model: str = Field(
        default_factory=lambda: os.getenv(
            "EMBEDDING_MODEL_CHOICE", "text-embedding-ada-002"
        )
    )

    # Chunking and retrieval settings (token budget is chars / 4)
    max_chunk_tokens: int = Field(
        default_factory=lambda: int(os.getenv("MAX_CHUNK_TOKENS", "500"))
    )
    match_count: int = Field(
        default_factory=lambda: int(os.getenv("MATCH_COUNT", "3"))
    )

    # Every provider and store call is bounded by this timeout
    request_timeout_seconds: float = Field(
        default_factory=lambda: float(os.getenv("REQUEST_TIMEOUT_SECONDS", "30"))
    )

    # Query embedding cache, 0 disables it
    query_cache_size: int = Field(
        default_factory=lambda: int(os.getenv("QUERY_EMBEDDING_CACHE_SIZE", "0"))
    )

    # Storage settings
    chunk_store_backend: str = Field(
        default_factory=lambda: os.getenv("CHUNK_STORE_BACKEND", "supabase")
    )
    supabase_url: str = Field(default_factory=lambda: os.getenv("SUPABASE_URL", ""))
    supabase_key: str = Field(
        default_factory=lambda: os.getenv("SUPABASE_SERVICE_KEY", "")
    )
    lessons_table: str = Field(
        default_factory=lambda: os.getenv("LESSONS_TABLE", "lessons")
    )
    chunks_table: str = Field(
        default_factory=lambda: os.getenv("LESSON_CHUNKS_TABLE", "lesson_chunks")
    )

    # Row in api_configs holding the OpenAI key when none is set in the env
    api_config_name: str = Field(
        default_factory=lambda: os.getenv("API_CONFIG_NAME", "ChatGPT")
    )

    @field_validator("max_chunk_tokens", "match_count")
    @classmethod
    def _must_be_positive(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("must be a positive integer")
        return value

    @field_validator("request_timeout_seconds")
    @classmethod
    def _timeout_must_be_positive(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("timeout must be positive")
        return value

    @field_validator("chunk_store_backend")
    @classmethod
    def _known_backend(cls, value: str) -> str:
        value = value.lower()
        if value not in CHUNK_STORE_BACKENDS:
            raise ValueError(f"chunk_store_backend must be one of {CHUNK_STORE_BACKENDS}")
        return value


def get_config() -> LessonRAGConfig:
    """Get validated configuration instance.

    Returns:
        LessonRAGConfig: Validated configuration object with all settings.

    Raises:
        pydantic.ValidationError: If an environment variable holds an invalid value.
    """
    return LessonRAGConfig()
