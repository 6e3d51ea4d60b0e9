from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    # App
    APP_NAME: str = "ReviewHub"
    ENVIRONMENT: str = "development"
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"

    # Database
    DATABASE_URL: str = "sqlite:///./reviewhub.db"

    # Redis (Celery broker + result backend)
    REDIS_URL: str = "redis://redis:6379/0"

    # Frontend (public survey pages live at {FRONTEND_URL}/s/{survey_id})
    FRONTEND_URL: str = "http://localhost:3000"

    # AI reply generation
    OPENAI_API_KEY: Optional[str] = None
    OPENAI_MODEL: str = "gpt-3.5-turbo"
    GEMINI_API_KEY: Optional[str] = None
    GEMINI_MODEL: str = "gemini-pro"
    REPLY_GENERATION_TIMEOUT_SECONDS: float = 30.0
    # Use the prompt template itself as the reply when no provider key is set
    REPLY_FALLBACK_ENABLED: bool = True

    # Auto-reply batch runs
    AUTO_REPLY_INTERVAL_SECONDS: float = 1.0  # pause between reviews
    AUTO_REPLY_SWEEP_MINUTES: int = 15  # celery beat cadence

    # Survey redirect
    REDIRECT_COMPLETION_DELAY_SECONDS: float = 1.0
    REDIRECT_ATTEMPT_TIMEOUT_SECONDS: float = 2.0
    MOBILE_MAX_VIEWPORT_WIDTH: int = 768

    class Config:
        env_file = ".env"
        case_sensitive = True


settings = Settings()
