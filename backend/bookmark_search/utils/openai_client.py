from __future__ import annotations

from functools import lru_cache

from openai import AsyncOpenAI

from bookmark_search.config import settings
from bookmark_search.utils.logging import get_logger


@lru_cache(maxsize=1)
def get_openai_client() -> AsyncOpenAI | None:
    """Return a singleton OpenAI client, or None when no API key is configured.

    Retries are disabled: a failed or slow embedding call falls back to the
    local vectorizer instead of being repeated.
    """
    logger = get_logger(__name__)
    if not settings.openai_api_key:
        logger.info("APP_OPENAI_API_KEY not set; semantic search will use the local vectorizer")
        return None
    logger.debug("Initializing OpenAI client with APP_OPENAI_API_KEY")
    return AsyncOpenAI(
        api_key=settings.openai_api_key,
        timeout=settings.embedding_timeout_seconds,
        max_retries=0,
    )
