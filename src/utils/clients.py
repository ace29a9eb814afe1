"""Client initialization utilities.

Provides functions for initializing the Supabase client and resolving the
OpenAI API key used by the lesson RAG services.
"""

from supabase import Client, create_client

from src.lesson_rag.config import LessonRAGConfig
from src.utils.logging import get_logger

logger = get_logger(__name__)


def get_supabase_client(config: LessonRAGConfig) -> Client:
    """Initialize the Supabase client from configuration.

    Args:
        config: Configuration with SUPABASE_URL and SUPABASE_SERVICE_KEY values.

    Returns:
        Supabase client.

    Raises:
        ValueError: If the Supabase settings are missing.
    """
    if not config.supabase_url or not config.supabase_key:
        raise ValueError("SUPABASE_URL and SUPABASE_SERVICE_KEY environment variables are required")

    return create_client(config.supabase_url, config.supabase_key)


def resolve_api_key(supabase: Client, config_name: str) -> str | None:
    """Read an API key stored in the api_configs table.

    Admins can keep the OpenAI key in ``api_configs.credentials.apiKey``
    instead of the environment; this is only consulted when no key is set in
    the environment.

    Args:
        supabase: Supabase client.
        config_name: Value of ``api_configs.name`` (e.g. "ChatGPT").

    Returns:
        The stored key, or None if no usable row exists.

    Examples:
        >>> key = resolve_api_key(supabase, "ChatGPT")
    """
    try:
        response = (
            supabase.table("api_configs")
            .select("credentials")
            .eq("name", config_name)
            .limit(1)
            .execute()
        )
    except Exception as e:
        logger.warning(
            "api_config_lookup_failed",
            config_name=config_name,
            error_type=type(e).__name__,
        )
        return None

    if not response.data:
        logger.warning("api_config_not_found", config_name=config_name)
        return None

    credentials = response.data[0].get("credentials") or {}
    api_key = credentials.get("apiKey") if isinstance(credentials, dict) else None
    if not api_key:
        logger.warning("api_config_missing_key", config_name=config_name)
        return None

    logger.info("api_config_key_resolved", config_name=config_name)
    return str(api_key)


def with_resolved_api_key(config: LessonRAGConfig, supabase: Client | None) -> LessonRAGConfig:
    """Return config with the embedding key filled in from api_configs if unset."""
    if config.embedding_api_key or supabase is None or config.embedding_provider == "ollama":
        return config

    api_key = resolve_api_key(supabase, config.api_config_name)
    if not api_key:
        return config
    return config.model_copy(update={"embedding_api_key": api_key})
