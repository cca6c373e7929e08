"""
Configuration management using Pydantic Settings
"""
from pydantic_settings import BaseSettings
from typing import List


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # Database
    DATABASE_URL: str

    # Gemini API
    GEMINI_API_KEY: str
    GEMINI_GENERATION_MODEL: str = "gemini-2.5-flash"
    GEMINI_GRADING_MODEL: str = "gemini-2.5-flash"

    # Redis
    REDIS_URL: str = "redis://redis:6379/0"
    CACHE_ENABLED: bool = True
    TOPICS_CACHE_TTL: int = 3600  # topics are immutable after seed
    START_LOCK_TTL: int = 10
    START_LOCK_WAIT_SECONDS: float = 2.0

    # Application
    APP_NAME: str = "Quiz Authoring Platform"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    ALLOWED_ORIGINS: List[str] = ["http://localhost:5173", "http://localhost:3000"]

    # Rate Limiting (LLM-backed endpoints only)
    RATE_LIMIT_PER_MINUTE: int = 30
    RATE_LIMIT_PER_HOUR: int = 500

    # Quiz Settings
    DEFAULT_USER_ID: int = 1
    ANSWER_EXCLUSION_WINDOW_HOURS: int = 24
    MAX_GENERATED_QUESTIONS: int = 10

    # Logging
    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"
        case_sensitive = True


# Global settings instance
settings = Settings()
