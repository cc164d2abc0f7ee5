"""
Configuration Management for ZEROBALANCE

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
The resolver settings all carry defaults, so the command resolver can be
built without any environment at all. Only the Gemini backend needs a key.
"""

from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class GeminiSettings(BaseSettings):
    """Gemini LLM configuration."""

    model_config = SettingsConfigDict(
        env_prefix="GEMINI_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    api_key: str = Field(
        ...,
        description="Gemini API key"
    )
    model_name: str = Field(
        default="gemini-1.5-flash",
        description="Gemini model to use"
    )
    max_tokens: int = Field(
        default=1024,
        ge=100,
        le=8192,
        description="Maximum tokens in response"
    )
    temperature: float = Field(
        default=0.1,
        ge=0.0,
        le=1.0,
        description="Model temperature (lower = more deterministic)"
    )


class ResolverSettings(BaseSettings):
    """
    Conversational command resolver settings.

    None of these are required. Defaults reproduce the single-attempt,
    no-deadline behaviour of the chat flow.
    """

    model_config = SettingsConfigDict(
        env_prefix="RESOLVER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    other_category_name: str = Field(
        default="other",
        min_length=1,
        description="Category name treated as the default bucket (case-insensitive)"
    )
    fallback_category_id: str = Field(
        default="other",
        min_length=1,
        description="Category id used when the caller supplies no categories"
    )
    backend_max_attempts: int = Field(
        default=1,
        ge=1,
        le=5,
        description="Attempts per resolution call (transport failures only)"
    )
    backend_timeout_seconds: Optional[float] = Field(
        default=None,
        description="Deadline for one backend call; unset means no deadline"
    )

    @field_validator('backend_timeout_seconds')
    @classmethod
    def validate_timeout(cls, v: Optional[float]) -> Optional[float]:
        """A deadline, when given, must be positive."""
        if v is not None and v <= 0:
            raise ValueError("backend_timeout_seconds must be positive")
        return v


class Settings(BaseSettings):
    """
    Root settings container.

    Aggregates all sub-settings for easy access.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Loaded lazily so the resolver works without Gemini credentials

    @property
    def gemini(self) -> GeminiSettings:
        return GeminiSettings()

    @property
    def resolver(self) -> ResolverSettings:
        return ResolverSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}, plus a
    "<name>_error" entry for every section that failed to load.
    """
    results = {}

    settings = get_settings()

    try:
        _ = settings.gemini
        results["gemini"] = True
    except Exception as e:
        results["gemini"] = False
        results["gemini_error"] = str(e)

    try:
        _ = settings.resolver
        results["resolver"] = True
    except Exception as e:
        results["resolver"] = False
        results["resolver_error"] = str(e)

    return results
