# backend/config.py
from pydantic_settings import BaseSettings
from typing import ClassVar, Optional
from pathlib import Path

# Resolve absolute path to the .env file for reliable loading
env_path = Path(__file__).parent.parent / ".env"

DEFAULT_ACCESS_SECRET = "dev-access-secret-change-me"
DEFAULT_REFRESH_SECRET = "dev-refresh-secret-change-me"


class Settings(BaseSettings):
    APP_ENV: str = "development"
    LOG_LEVEL: str = "INFO"

    DATABASE_URL: str = "sqlite:///./database_feedback.db"

    # JWT
    ACCESS_TOKEN_SECRET: str = DEFAULT_ACCESS_SECRET
    REFRESH_TOKEN_SECRET: str = DEFAULT_REFRESH_SECRET
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 15
    REFRESH_TOKEN_EXPIRE_DAYS: int = 10

    # Auth cookies are httpOnly; secure can be switched off for plain-http local setups
    COOKIE_SECURE: bool = True

    FRONTEND_URL: str = "http://localhost:5173"

    RESET_CODE_EXPIRE_MINUTES: int = 10

    # SMTP (empty host = log mails instead of sending)
    SMTP_HOST: Optional[str] = None
    SMTP_PORT: int = 587
    SMTP_USER: Optional[str] = None
    SMTP_PASSWORD: Optional[str] = None
    SMTP_USE_TLS: bool = True
    MAIL_FROM: str = "support@slt.com"

    class Config:
        env_file: ClassVar[str] = str(env_path)
        extra: ClassVar[str] = "ignore"


settings = Settings()


def validate_runtime_config() -> None:
    if settings.APP_ENV.lower() != "production":
        return
    if settings.ACCESS_TOKEN_SECRET == DEFAULT_ACCESS_SECRET or settings.REFRESH_TOKEN_SECRET == DEFAULT_REFRESH_SECRET:
        raise RuntimeError("ACCESS_TOKEN_SECRET and REFRESH_TOKEN_SECRET must be set in production.")
