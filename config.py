"""
Centralized configuration for the UX Audit service
All environment variables and settings are defined here
"""

from typing import List, Optional
from pydantic_settings import BaseSettings
from pydantic import Field


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.
    Provides centralized configuration with validation and defaults.
    """

    # ======================
    # AI Provider Configuration
    # ======================
    OPENROUTER_API_KEY: str = Field(default="", description="OpenRouter API key")
    OPENROUTER_MODELS: str = Field(
        default="google/gemma-3-27b-it:free",
        description="Comma-separated model list, tried in order on rate limits",
    )
    OPENROUTER_REFERER: str = Field(
        default="https://lemonyellow.design",
        description="HTTP-Referer header sent to OpenRouter",
    )
    OPENROUTER_TITLE: str = Field(
        default="LimeMind UX Audit Tool",
        description="X-Title header sent to OpenRouter",
    )
    AI_TIMEOUT: float = Field(default=90.0, description="LLM request timeout in seconds")
    AI_PROVIDER: str = Field(
        default="openrouter",
        description="Which LLM adapter to use: openrouter or gemini",
    )
    GEMINI_API_KEY: str = Field(default="", description="Google Gemini API key")
    GEMINI_MODEL: str = Field(
        default="gemini-2.5-flash",
        description="Gemini model used when AI_PROVIDER=gemini",
    )

    # ======================
    # Email Configuration
    # ======================
    BREVO_API_KEY: str = Field(default="", description="Brevo transactional email API key")
    EMAIL_FROM: str = Field(
        default="experience@lemonyellow.design",
        description="Sender address for report emails",
    )
    EMAIL_FROM_NAME: str = Field(default="LYcheeLens", description="Sender display name")
    EMAIL_TIMEOUT: float = Field(default=300.0, description="Brevo request timeout in seconds")

    # ======================
    # Admin Archive Configuration
    # ======================
    ADMIN_ENDPOINT: Optional[str] = Field(
        default=None,
        description="External endpoint that archives shared PDF reports",
    )
    ADMIN_TIMEOUT: float = Field(default=30.0, description="Admin archive timeout in seconds")

    # ======================
    # Server Configuration
    # ======================
    PORT: int = Field(default=3001, description="HTTP port for uvicorn")
    NODE_ENV: str = Field(default="development", description="Runtime environment name")
    VERCEL_URL: Optional[str] = Field(default=None, description="Deployment host for CORS")
    VERCEL_ENV: Optional[str] = Field(default=None, description="Deployment environment name")
    VERCEL_REGION: Optional[str] = Field(default=None, description="Deployment region")
    STATIC_DIR: str = Field(
        default="frontend/build",
        description="Directory holding the built single-page frontend",
    )
    MAX_UPLOAD_BYTES: int = Field(
        default=10 * 1024 * 1024,
        description="Maximum accepted upload size in bytes",
    )

    # ======================
    # Browser Pool Configuration
    # ======================
    BROWSER_POOL_SIZE: int = Field(
        default=2,
        description="Number of browser instances in pool",
    )
    BROWSER_MAX_PAGES: int = Field(
        default=20,
        description="Max pages per browser before recycling",
    )
    BROWSER_TIMEOUT: int = Field(
        default=600,
        description="Max browser age in seconds before recycling",
    )

    # ======================
    # Screenshot Configuration
    # ======================
    VIEWPORT_WIDTH: int = Field(
        default=1920,
        description="Browser viewport width",
    )
    VIEWPORT_HEIGHT: int = Field(
        default=1080,
        description="Browser viewport height",
    )
    JPEG_QUALITY: int = Field(default=85, description="JPEG quality for screenshots")

    # ======================
    # Context Configuration
    # ======================
    TOKEN_BUDGET: int = Field(
        default=6000,
        description="Approximate token budget for parsed page context",
    )
    FAVICON_CACHE_TTL: int = Field(
        default=3600,  # 1 hour
        description="Favicon cache time-to-live in seconds",
    )
    FAVICON_CACHE_SIZE: int = Field(
        default=1024,
        description="Maximum number of origins kept in the favicon cache",
    )

    # ======================
    # Logging Configuration
    # ======================
    LOG_LEVEL: str = Field(
        default="INFO",
        description="Logging level",
    )

    @property
    def openrouter_models(self) -> List[str]:
        """Ordered model fallback list"""
        models = [m.strip() for m in self.OPENROUTER_MODELS.split(",")]
        return [m for m in models if m]

    @property
    def environment(self) -> str:
        """Deployment environment, preferring the platform-provided name"""
        return self.VERCEL_ENV or self.NODE_ENV or "development"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True
        extra = "ignore"  # Allow extra env vars in .env file


# Global settings instance
settings = Settings()


# ======================
# Convenience Functions
# ======================

def is_production() -> bool:
    """Check if running in production"""
    return settings.environment == "production"
