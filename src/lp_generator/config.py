"""Settings for the AI generators, read from the environment and .env."""

from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

INPUT_LENGTH_MIN = 200
INPUT_LENGTH_MAX = 10000


class AiSettings(BaseSettings):
    api_key: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("LP_AI_API_KEY", "OPENAI_API_KEY"),
    )
    base_url: str = "https://api.openai.com/v1"

    model: str = "gpt-4.1-mini"
    model_blueprint: str = "gpt-4.1-mini"
    model_design_spec: str = "gpt-4.1-mini"
    model_decoration_spec: str = "gpt-4.1-mini"
    model_reference_spec: str = "gpt-4.1-mini"
    model_reference_zip: str = "gpt-4.1-mini"
    model_experimental_zip: str = "gpt-4.1"
    temperature: float = 0.6

    max_retries: int = 2
    max_retry_count: int = 2
    timeout_seconds: int = 45
    max_input_length: int = 2000
    max_ai_response_chars: int = 20000
    strict_json_only: bool = True

    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_prefix="LP_AI_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    @property
    def has_api_key(self) -> bool:
        return bool(self.api_key and self.api_key.strip())

    def resolve_retry_count(self, cap: int) -> int:
        """Configured retry count clamped to ``[0, cap]``.

        ``max_retry_count`` wins when positive, otherwise ``max_retries``.
        """
        value = self.max_retry_count if self.max_retry_count > 0 else self.max_retries
        return max(0, min(value, cap))

    def resolve_model(self, name: str) -> str:
        """Return the per-kind model setting, falling back to ``model``."""
        value = getattr(self, name, None)
        if isinstance(value, str) and value.strip():
            return value
        return self.model

    def input_limit(self) -> int:
        return max(INPUT_LENGTH_MIN, min(self.max_input_length, INPUT_LENGTH_MAX))


@lru_cache
def get_settings() -> AiSettings:
    return AiSettings()
