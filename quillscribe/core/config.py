"""
Configuration settings for QuillScribe
"""
from typing import List, Literal, Union
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, field_validator
import logging
import secrets

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Application settings"""

    # Project Info
    PROJECT_NAME: str = "QuillScribe API"
    VERSION: str = "1.0.0"
    APP_ENV: str = Field(default="development")
    DEBUG: bool = Field(default=True)

    # API Settings
    API_V1_PREFIX: str = "/api/v1"
    SECRET_KEY: str = Field(default="")
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 7  # 7 days

    @field_validator('SECRET_KEY')
    @classmethod
    def validate_secret_key(cls, v: str, info) -> str:
        """Validate SECRET_KEY is strong enough"""
        data = info.data if info.data else {}
        is_dev = data.get('APP_ENV') == 'development' or data.get('DEBUG') is True

        if not v:
            if is_dev:
                logger.warning("No SECRET_KEY provided. Generating random key for development.")
                return secrets.token_urlsafe(32)
            raise ValueError(
                "SECRET_KEY must be set in production. "
                "Generate one with: python -c 'import secrets; print(secrets.token_urlsafe(32))'"
            )

        if len(v) < 32:
            if not is_dev:
                raise ValueError("SECRET_KEY must be at least 32 characters long in production")
            logger.warning("SECRET_KEY is too short (%s chars). Should be at least 32.", len(v))

        return v

    # CORS
    CORS_ORIGINS: Union[str, List[str]] = Field(
        default="http://localhost:3000,http://localhost"
    )

    @field_validator('CORS_ORIGINS', mode='before')
    @classmethod
    def parse_cors_origins(cls, v):
        """Parse CORS origins from string or list"""
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        elif isinstance(v, list):
            return v
        return ["http://localhost:3000", "http://localhost"]

    # Document store
    DATABASE_URL: str = Field(default="sqlite+aiosqlite:///./quillscribe.db")
    DOCUMENT_STORE_BACKEND: Literal["sql", "memory"] = Field(default="sql")

    # Generative model (OpenAI-compatible chat completions)
    LLM_API_KEY: str = Field(default="")
    LLM_API_BASE: str = "https://api.deepseek.com/v1"
    LLM_MODEL: str = "deepseek-chat"
    LLM_TIMEOUT: float = Field(default=120.0)
    LLM_TEMPERATURE: float = Field(default=0.7)
    LLM_MAX_TOKENS: int = Field(default=2000)

    # Word-count heuristics (no token accounting)
    WORD_LIMIT: int = Field(default=2500)
    CONTEXT_CHAPTER_TEXT_MAX_CHARS: int = Field(default=12000)

    # Note ingestion
    EXTRACTION_CONFIDENCE_THRESHOLD: float = Field(default=0.8, ge=0.0, le=1.0)

    # Rate Limiting
    RATE_LIMIT_PER_MINUTE: int = 60

    # Logging
    LOG_LEVEL: str = Field(default="INFO")
    STRUCTURED_LOGGING_ENABLED: bool = Field(default=False)

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )


# Create settings instance
settings = Settings()
