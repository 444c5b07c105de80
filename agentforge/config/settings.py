"""Environment-bound configuration objects.

This module provides Pydantic BaseSettings-based configuration loading from .env files.
All settings classes automatically load from environment variables, and several
fields accept more than one alias (e.g. OPENAI_MODEL and MODEL_OPENAI_ID both work).

Example:
    from agentforge.config.settings import get_settings

    settings = get_settings()  # Cached singleton
    timeout = settings.reasoning.timeout_seconds
    db_path = settings.store.db_path
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal, Optional

from dotenv import load_dotenv
from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


load_dotenv()

ProviderName = Literal["openai", "claude"]


class ReasoningSettings(BaseSettings):
    """Reasoning collaborator routing, credentials and call limits.

    Two OpenAI-compatible provider slots are supported:
    - openai: OPENAI_MODEL / OPENAI_API_KEY / OPENAI_BASE_URL
    - claude: CLAUDE_MODEL / CLAUDE_API_KEY (or ANTHROPIC_API_KEY) / CLAUDE_BASE_URL

    A slot without an API key is treated as "not configured" and is skipped
    when the gateway falls back.
    """

    ai_enabled: bool = Field(default=True, alias="AI_ENABLED")
    default_provider: ProviderName = Field(default="openai", alias="DEFAULT_LLM_PROVIDER")
    fallback_provider: Optional[ProviderName] = Field(default="openai", alias="FALLBACK_LLM_PROVIDER")

    timeout_seconds: float = Field(default=45.0, ge=1, le=600, alias="LLM_TIMEOUT_SECONDS")
    temperature: float = Field(default=0.7, ge=0.0, le=2.0, alias="LLM_TEMPERATURE")
    max_tokens: int = Field(default=2000, ge=16, le=32000, alias="LLM_MAX_TOKENS")

    openai_model: str = Field(
        default="gpt-4.1-mini",
        validation_alias=AliasChoices("OPENAI_MODEL", "MODEL_OPENAI_ID"),
    )
    openai_api_key: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("OPENAI_API_KEY", "MODEL_OPENAI_API_KEY"),
    )
    openai_base_url: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("OPENAI_BASE_URL", "MODEL_OPENAI_BASE_URL"),
    )

    claude_model: str = Field(
        default="claude-3-5-sonnet-20241022",
        validation_alias=AliasChoices("CLAUDE_MODEL", "MODEL_CLAUDE_ID"),
    )
    claude_api_key: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("CLAUDE_API_KEY", "ANTHROPIC_API_KEY"),
    )
    claude_base_url: Optional[str] = Field(
        default="https://api.anthropic.com/v1/",
        validation_alias=AliasChoices("CLAUDE_BASE_URL", "ANTHROPIC_BASE_URL"),
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )


class StoreSettings(BaseSettings):
    """Capability store and catalog locations.

    Relative paths are resolved against the project root by the runtime.
    An empty catalog path means "use the packaged catalog.yaml".
    """

    db_path: str = Field(default="data/agentforge.db", alias="AGENTFORGE_DB_PATH")
    catalog_path: Optional[str] = Field(default=None, alias="AGENTFORGE_CATALOG_PATH")
    busy_timeout: float = Field(default=5.0, gt=0, le=60, alias="AGENTFORGE_DB_BUSY_TIMEOUT")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )


class LearningSettings(BaseSettings):
    """Daily research cycle limits and re-proposal policy."""

    max_topics: int = Field(default=3, ge=1, le=10, alias="RESEARCH_MAX_TOPICS")
    max_opportunities: int = Field(default=10, ge=1, le=100, alias="RESEARCH_MAX_OPPORTUNITIES")
    preview_chars: int = Field(default=200, ge=20, le=5000, alias="RESEARCH_PREVIEW_CHARS")
    research_max_tokens: int = Field(default=1500, ge=16, le=32000, alias="RESEARCH_MAX_TOKENS")

    # Identical descriptions rejected within this window are not proposed again
    reproposal_cooldown_days: int = Field(default=30, ge=0, le=365, alias="REPROPOSAL_COOLDOWN_DAYS")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )


class ObservabilitySettings(BaseSettings):
    """Tracing and logging configuration.

    Controls observability features:
    - LangSmith tracing (LANGCHAIN_TRACING_V2, LANGCHAIN_PROJECT, etc.)
    - Logging settings (LOG_LEVEL, LOG_DIR, LOG_PROMPT_MAX_LENGTH)
    """

    langsmith_project: Optional[str] = Field(default=None, alias="LANGCHAIN_PROJECT")
    langsmith_api_key: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("LANGCHAIN_API_KEY", "LANGSMITH_API_KEY")
    )
    langsmith_endpoint: Optional[str] = Field(default=None, alias="LANGCHAIN_ENDPOINT")
    tracing_enabled: bool = Field(default=False, alias="LANGCHAIN_TRACING_V2")

    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_dir: str = Field(default="logs", alias="LOG_DIR")
    log_prompt_max_length: int = Field(default=500, ge=100, le=5000, alias="LOG_PROMPT_MAX_LENGTH")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )


class Settings(BaseSettings):
    """Root application settings loaded from .env file.

    Hierarchical structure containing four nested settings groups:
    - reasoning: Provider routing, credentials and limits (ReasoningSettings)
    - store: Database and catalog locations (StoreSettings)
    - learning: Research cycle and triage policy (LearningSettings)
    - observability: Tracing and logging (ObservabilitySettings)

    Use get_settings() to obtain a cached singleton instance.
    """

    environment: str = Field(default="dev", alias="APP_ENV")
    reasoning: ReasoningSettings = Field(default_factory=ReasoningSettings)
    store: StoreSettings = Field(default_factory=StoreSettings)
    learning: LearningSettings = Field(default_factory=LearningSettings)
    observability: ObservabilitySettings = Field(default_factory=ObservabilitySettings)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        validate_assignment=True,
        case_sensitive=False,
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached singleton Settings instance.

    Uses LRU cache to ensure only one Settings object is created per process.

    Returns:
        Settings: Cached application settings instance
    """
    return Settings()
