"""
Paperscope Configuration Management Module

Provides type-safe configuration management using pydantic-settings.
Supports loading configuration from environment variables and .env files.

Usage:
    from config.settings import settings
    print(settings.data_dir)
    print(settings.search.overfetch_factor)
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Project root directory
PROJECT_ROOT = Path(__file__).resolve().parent.parent


class DatabaseSettings(BaseSettings):
    """Corpus database configuration"""

    model_config = SettingsConfigDict(
        env_prefix="PAPERSCOPE_DB_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    path: str = Field(default="", description="Corpus SQLite path (default data_dir/corpus.db)")
    timeout: int = Field(default=30, description="SQLite connection timeout (seconds)")
    max_retries: int = Field(default=5, description="Retries when the database is locked/busy")
    retry_base_sleep: float = Field(default=0.2, description="Retry base sleep time (seconds)")


class SearchSettings(BaseSettings):
    """Keyword and embedding search configuration"""

    model_config = SettingsConfigDict(
        env_prefix="PAPERSCOPE_SEARCH_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    max_papers: int = Field(default=10, description="Default papers returned by keyword search")
    max_snippets_per_paper: int = Field(default=10, description="Default snippets per paper")
    # Candidate cap = max_papers * overfetch_factor. Not derived empirically; re-tune per deployment.
    overfetch_factor: int = Field(default=10, description="Candidate overfetch multiplier for keyword search")
    snippet_window: int = Field(default=400, description="Snippet window size (characters)")
    embedding_limit: int = Field(default=100, description="Default results returned by embedding search")

    @field_validator("max_papers", "max_snippets_per_paper", "overfetch_factor", "snippet_window", "embedding_limit")
    @classmethod
    def check_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("must be a positive integer")
        return v


class AnnSettings(BaseSettings):
    """Approximate nearest neighbor index configuration"""

    model_config = SettingsConfigDict(
        env_prefix="PAPERSCOPE_ANN_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Session-local recall width for embedding search. Not derived empirically; re-tune per deployment.
    ef_search: int = Field(default=1000, description="Candidates explored per embedding query")
    nlist: int = Field(default=0, description="IVF cluster count (0=auto, about sqrt(N))")
    min_train_size: int = Field(default=2000, description="Below this many vectors the index is a flat scan")

    @field_validator("ef_search", "min_train_size")
    @classmethod
    def check_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("must be a positive integer")
        return v

    @field_validator("nlist")
    @classmethod
    def check_non_negative(cls, v: int) -> int:
        if v < 0:
            raise ValueError("must be zero (auto) or a positive integer")
        return v


class WebSettings(BaseSettings):
    """Web application configuration"""

    model_config = SettingsConfigDict(
        env_prefix="PAPERSCOPE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    access_log: bool = Field(default=False, description="Enable access logging")
    max_content_length: int = Field(default=1048576, description="Max request body size (bytes)")


class Settings(BaseSettings):
    """Main configuration class"""

    model_config = SettingsConfigDict(
        env_prefix="PAPERSCOPE_",
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
    )

    # Data directories
    data_dir: Path = PROJECT_ROOT / "data"

    # Service configuration
    host: str = "http://localhost:56000"
    serve_port: int = 56000

    # Log configuration
    log_level: str = "WARNING"
    log_format: Literal["text", "json"] = "text"

    db: DatabaseSettings = DatabaseSettings()
    search: SearchSettings = SearchSettings()
    ann: AnnSettings = AnnSettings()
    web: WebSettings = WebSettings()

    @model_validator(mode="after")
    def set_defaults(self) -> Settings:
        """Set dependent default values"""
        if not self.db.path:
            self.db.path = str(self.data_dir / "corpus.db")
        return self

    @field_validator("data_dir", mode="before")
    @classmethod
    def resolve_path(cls, v):
        """Resolve path"""
        if isinstance(v, str):
            return Path(v)
        return v


@lru_cache
def get_settings() -> Settings:
    """Get settings singleton (with cache)"""
    return Settings()


settings: Settings = get_settings()


def reload_settings() -> Settings:
    """Reload settings (clear cache)"""
    get_settings.cache_clear()
    # Does not rebind the module-level `settings`; use config.reload_settings for that.
    return get_settings()
