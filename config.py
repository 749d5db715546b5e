"""
Centralized configuration for the PageSpeed / Gemini proxy
All environment variables and settings are defined here
"""

from functools import lru_cache
from typing import List
from pydantic_settings import BaseSettings
from pydantic import Field


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.
    Built once at startup and handed to routes through get_settings().
    """

    # ======================
    # API Keys
    # ======================
    GEMINI_API_KEY: str = Field(default="", description="Gemini API key")
    PAGESPEED_API_KEY: str = Field(
        default="", description="PageSpeed Insights API key (optional)"
    )

    # ======================
    # Server Configuration
    # ======================
    HOST: str = Field(default="0.0.0.0", description="Listen host")
    PORT: int = Field(default=4001, description="Listen port")
    ALLOWED_ORIGINS: str = Field(
        default="*", description="Comma separated list of CORS origins"
    )
    MAX_BODY_BYTES: int = Field(
        default=2 * 1024 * 1024,  # 2 MiB
        description="Largest accepted request body in bytes"
    )

    # ======================
    # Upstream Configuration
    # ======================
    GEMINI_BASE_URL: str = Field(
        default="https://generativelanguage.googleapis.com/v1beta",
        description="Generative language API base URL"
    )
    GEMINI_MODEL: str = Field(
        default="gemini-2.5-pro",
        description="Gemini model to use for analysis"
    )
    PAGESPEED_URL: str = Field(
        default="https://www.googleapis.com/pagespeedonline/v5/runPagespeed",
        description="PageSpeed Insights endpoint"
    )
    REQUEST_TIMEOUT: float = Field(
        default=120.0,
        description="Timeout in seconds for a single outbound call"
    )

    # ======================
    # Retry Configuration
    # ======================
    RETRY_MAX_ATTEMPTS: int = Field(
        default=3, ge=1, description="Attempts per Gemini call"
    )
    RETRY_BASE_DELAY: float = Field(
        default=0.5, ge=0, description="Backoff base delay in seconds"
    )
    RETRY_JITTER_MAX: float = Field(
        default=0.3, ge=0, description="Upper bound of random jitter in seconds"
    )

    # ======================
    # Prompt Configuration
    # ======================
    MAX_PROMPT_CHARS: int = Field(
        default=15000, description="Maximum prompt length sent to Gemini"
    )
    RESPONSE_LANGUAGE: str = Field(
        default="Serbian",
        description="Language the default instructions ask the model to answer in"
    )

    # ======================
    # Logging Configuration
    # ======================
    LOG_LEVEL: str = Field(
        default="INFO",
        description="Logging level"
    )

    @property
    def cors_origins(self) -> List[str]:
        """Split ALLOWED_ORIGINS into a list"""
        return [o.strip() for o in self.ALLOWED_ORIGINS.split(",") if o.strip()]

    @property
    def gemini_endpoint(self) -> str:
        """Full generateContent URL for the configured model"""
        return f"{self.GEMINI_BASE_URL.rstrip('/')}/models/{self.GEMINI_MODEL}:generateContent"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True
        extra = "ignore"  # Allow extra env vars in .env file
        frozen = True


@lru_cache()
def get_settings() -> Settings:
    """Get the process-wide settings instance"""
    return Settings()
