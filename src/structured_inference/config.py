"""
Configuration settings for the structured inference pipeline.

All settings are loaded from environment variables with sensible defaults.
Use .env file for local development. Provider credentials are part of the
PROVIDERS entries and are handed explicitly to each adapter on construction.
"""

from typing import Literal, Optional

from pydantic import BaseModel, Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class ProviderConfig(BaseModel):
    """
    Static configuration for one provider adapter.

    Example (PROVIDERS env var, JSON):
        [{"provider_id": "openai", "kind": "openai",
          "base_url": "https://api.openai.com/v1", "model": "gpt-4o-mini",
          "api_key": "sk-..."}]
    """

    provider_id: str = Field(..., min_length=1, description="Unique provider identifier")
    kind: Literal["openai", "ollama"] = Field(
        default="openai",
        description="Wire protocol: OpenAI-compatible chat completions or Ollama /api/chat",
    )
    base_url: str = Field(..., description="Base URL, e.g. https://api.openai.com/v1")
    model: str = Field(..., description="Default model name for this provider")
    api_key: Optional[SecretStr] = Field(default=None, description="Bearer secret (never logged)")
    timeout: float = Field(default=60.0, gt=0, description="Request timeout in seconds")
    supports_structured_output: bool = Field(
        default=True,
        description="Whether the backend honors a JSON output mode flag",
    )
    model_aliases: dict[str, str] = Field(
        default_factory=dict,
        description="Maps a provider-agnostic model hint to this provider's model name",
    )
    extra_body: dict = Field(default_factory=dict, description="Extra JSON fields merged into the body")
    extra_headers: dict[str, str] = Field(default_factory=dict)

    def resolve_model(self, model_hint: Optional[str]) -> str:
        """Pick the provider-specific model for a hint, falling back to the default."""
        if model_hint and model_hint in self.model_aliases:
            return self.model_aliases[model_hint]
        return self.model


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # === Application ===
    APP_NAME: str = "Structured Inference"
    APP_VERSION: str = "0.1.0"
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    # === Providers (ordered: first entry is the primary) ===
    PROVIDERS: list[ProviderConfig] = []
    MODEL_HINT: Optional[str] = None

    # === Delivery (provider retry & fallback) ===
    DELIVERY_MAX_RETRIES: int = 3  # Attempts per provider
    DELIVERY_BACKOFF_BASE: float = 1.0  # seconds, multiplied by attempt number

    # === Generation (corrective retry on parse failures) ===
    GENERATION_MAX_ATTEMPTS: int = 3
    GENERATION_RETRY_DELAY: float = 0.5  # seconds, multiplied by attempt number
    REQUEST_DEADLINE_SECONDS: Optional[float] = None

    # === Feedback task ===
    FEEDBACK_SCORE_MAX: int = 100
    FEEDBACK_REQUIRE_ITEMS: bool = False
    FEEDBACK_REQUIRE_SCORES: bool = True

    # === Monitoring ===
    PROMETHEUS_ENABLED: bool = True


# Global settings instance
settings = Settings()
