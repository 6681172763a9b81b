from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="APP_",
        extra="ignore",
        case_sensitive=False,
    )

    # Application
    debug: bool = False
    log_level: str = "INFO"

    # API
    api_prefix: str = "/api/v1"
    cors_origins: list[str] = [
        "http://localhost:3000",
        "http://localhost:5173",
        "http://127.0.0.1:3000",
        "http://127.0.0.1:5173",
    ]

    cors_origin_regex: str | None = None
    trusted_hosts: list[str] = ["*"]
    root_path: str = ""

    # Supabase (document source)
    supabase_url: str | None = None
    supabase_service_role_key: str | None = None
    bookmarks_table: str = "bookmarks"
    bookmarks_page_size: int = 1000

    # OpenAI embeddings; no key means the local vectorizer is used
    openai_api_key: str | None = None
    embedding_model: str = "text-embedding-3-small"
    embedding_dimensions: int = 1536
    embedding_max_input_chars: int = 8000
    embedding_timeout_seconds: float = 3.0
    embedding_concurrency: int = 8
    # Holds every document vector of the collection; a scan larger than this evicts itself
    embedding_cache_size: int = 50_000
    embedding_cache_key_chars: int = 100

    # Search tuning
    lexical_threshold: float = 0.4
    lexical_min_query_length: int = 2
    semantic_threshold: float = 0.3
    default_page_size: int = 20
    max_limit: int = 200


settings = Settings()
