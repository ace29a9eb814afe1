"""Chat model configuration utilities.

Provides functions for loading the chat-completion model and its settings
from environment variables.
"""

import os
from pathlib import Path

from dotenv import load_dotenv
from pydantic_ai.models.openai import OpenAIChatModel
from pydantic_ai.providers.openai import OpenAIProvider

# Check if we're in production
is_production = os.getenv("ENVIRONMENT") == "production"

if not is_production:
    # Development: prioritize .env file
    project_root = Path(__file__).resolve().parent.parent.parent
    dotenv_path = project_root / ".env"
    load_dotenv(dotenv_path, override=True)
else:
    # Production: use cloud platform env vars only
    load_dotenv()


def get_model(api_key: str | None = None) -> OpenAIChatModel:
    """Get the configured chat model used to answer lesson questions.

    Reads configuration from environment variables:
    - LLM_CHOICE: Model name (default: gpt-4o-mini)
    - LLM_BASE_URL: API base URL (default: https://api.openai.com/v1)
    - LLM_API_KEY: API key (falls back to ``api_key``, then "ollama")

    Args:
        api_key: Key to use when LLM_API_KEY is not set, for example one
            resolved from the api_configs table.

    Returns:
        OpenAIChatModel configured with environment settings.

    Examples:
        >>> model = get_model()
        >>> # Uses gpt-4o-mini by default
    """
    llm = os.getenv("LLM_CHOICE") or "gpt-4o-mini"
    base_url = os.getenv("LLM_BASE_URL") or "https://api.openai.com/v1"
    key = os.getenv("LLM_API_KEY") or api_key or "ollama"

    return OpenAIChatModel(llm, provider=OpenAIProvider(base_url=base_url, api_key=key))


def get_temperature() -> float:
    """Get the sampling temperature for answers.

    Reads LLM_TEMPERATURE from environment (default: 0.3). A low value keeps
    answers close to the lesson transcript.

    Returns:
        Sampling temperature.
    """
    return float(os.getenv("LLM_TEMPERATURE", "0.3"))
