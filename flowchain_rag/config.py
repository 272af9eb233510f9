"""Application configuration loaded from environment variables.

Uses pydantic-settings for validation and type-safe loading from .env.
Variables are read from .env (e.g., OPENAI_API_KEY, EMBED_CONCURRENCY).
"""

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    OPENAI_API_KEY is only needed for the OpenAI embedding provider.
    All other fields have defaults and can be overridden via .env
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    openai_api_key: str = ""

    # Embedding provider
    embedding_model_name: str = "text-embedding-3-small"
    embed_concurrency: int = 1
    embed_timeout_seconds: float = 30.0

    # Chunking configuration
    chunk_target_size: int = 800
    chunk_overlap_chars: int = 150
    min_chunk_chars: int = 50

    # Retrieval configuration
    top_k_results: int = 5

    # Storage
    upload_dir: str = "./data/uploads"

    # Application metadata
    app_name: str = "Flowchain Insight Service"
    log_level: str = "INFO"

    @field_validator("openai_api_key")
    @classmethod
    def validate_api_key(cls, v: str) -> str:
        """Reject placeholder values copied from .env.example."""
        if v and v.strip().startswith("your_"):
            raise ValueError("API key must be set to a valid value (not placeholder)")
        return v

    @field_validator("embed_concurrency", "chunk_target_size", "top_k_results")
    @classmethod
    def validate_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("must be >= 1")
        return v


settings = Settings()
