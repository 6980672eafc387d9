"""Configuration models for the assistant."""

from __future__ import annotations

from functools import lru_cache

from pydantic import BaseModel, Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ChunkingConfig(BaseModel):
    """Configures word-window chunking used during ingestion."""

    chunk_words: int = Field(default=512, ge=1)
    overlap_words: int = Field(default=50, ge=0)

    @model_validator(mode="after")
    def _check_overlap(self) -> "ChunkingConfig":
        if self.overlap_words >= self.chunk_words:
            raise ValueError("overlap_words must be less than chunk_words")
        return self


class RetrievalConfig(BaseModel):
    """Configures similarity search limits."""

    match_threshold: float = Field(default=0.5, ge=0.0, le=1.0)
    default_k: int = Field(default=5, ge=1)
    max_k: int = Field(default=10, ge=1)
    topics_cap: int = Field(default=15, ge=1)
    misconception_k: int = Field(default=5, ge=1)


class AgentConfig(BaseModel):
    """Configures the tool-calling loop."""

    max_iterations: int = Field(default=25, ge=1)
    execute_all_tool_calls: bool = False


class Settings(BaseSettings):
    """Environment-driven settings; names match the deployed env vars."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore", case_sensitive=False)

    gemini_api_key: str | None = None
    gemini_base_url: str = "https://generativelanguage.googleapis.com/v1beta"
    generation_model: str = "gemini-2.5-flash"
    embedding_model: str = "gemini-embedding-001"
    embedding_dimension: int = 768

    supabase_url: str | None = None
    supabase_service_role_key: str | None = None

    request_timeout_seconds: float = 60.0
    log_level: str = "INFO"
    docs_path: str = "docs"

    max_iterations: int = 25
    execute_all_tool_calls: bool = False

    def agent_config(self) -> AgentConfig:
        return AgentConfig(
            max_iterations=self.max_iterations,
            execute_all_tool_calls=self.execute_all_tool_calls,
        )


@lru_cache
def get_settings() -> Settings:
    return Settings()
