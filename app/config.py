"""Application configuration settings."""
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings."""

    database_url: str = ""
    environment: str = "dev"
    # Authentication settings
    secret_key: str = "school-grading-secret-key-change-in-production"  # Should be set via environment variable
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 30
    # Quiz submission settings
    quiz_password_required: bool = False  # If True, quiz submissions must carry the student's password
    # CORS settings
    cors_origins: list[str] = ["http://localhost:3000", "http://127.0.0.1:3000"]


class LoggingSettings(BaseSettings):
    """Logging configuration."""

    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "text"  # "text" or "json"

    class Config:
        env_prefix = "APP_"


logging_settings = LoggingSettings()
settings = Settings()  # type: ignore
