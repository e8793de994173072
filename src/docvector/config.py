"""Shared configuration loaded from environment / .env file."""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application-wide settings, populated from env vars or .env file."""

    # Identity provider
    supabase_url: str = Field(default="", description="Base URL of the Supabase project")
    supabase_anon_key: str = Field(default="", description="Public anon key sent as the ``apikey`` header")
    site_url: str = Field(
        default="http://localhost:8000",
        description="Public origin of this app; used to build the OAuth callback URL",
    )
    identity_timeout: float = 10.0

    # Session cookie
    session_cookie_name: str = "sb-auth-token"
    session_cookie_max_age: int = 60 * 60 * 24 * 7  # 1 week
    session_cookie_secure: bool = False

    # Embedding
    embedding_model: str = "sentence-transformers/all-mpnet-base-v2"
    embed_max_concurrency: int = 8
    embed_max_attempts: int = Field(
        default=1,
        description="Attempts per chunk; values above 1 enable exponential-backoff retry",
    )
    embed_timeout: float = 60.0

    # Chunking
    chunk_size: int = 1000
    chunk_overlap: int = 200

    # Upload
    max_upload_bytes: int = 20 * 1024 * 1024

    # Logging
    log_level: str = "INFO"
    debug_log_capacity: int = 1000

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}


# Singleton — import `settings` wherever needed.
settings = Settings()
