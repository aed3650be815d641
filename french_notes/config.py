from typing import Literal

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./french_notes.db"
    REDIS_URL: str = "redis://localhost:6379/0"
    CACHE_ENABLED: bool = True
    CACHE_TTL: int = 300  # 5 minutes

    SECRET_KEY: str = "dev-secret-french-notes"
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_TTL_MINUTES: int = 60 * 24
    RESET_TOKEN_TTL_MINUTES: int = 15
    BCRYPT_ROUNDS: int = 12

    # auto: new devices are approved up to the quota; manual: queued for an admin
    LOGIN_APPROVAL_MODE: Literal["auto", "manual"] = "auto"
    MAX_APPROVED_DEVICES: int = 2
    # manual mode only; cap on requests waiting for an admin decision
    MAX_PENDING_DEVICES: int = 3

    FRONTEND_URL: str = "http://localhost:3000"
    CORS_ORIGINS: list[str] = ["http://localhost:3000"]

    MEDIA_ENDPOINT_URL: str | None = None
    MEDIA_BUCKET: str = "french-notes"
    MEDIA_ACCESS_KEY: str | None = None
    MEDIA_SECRET_KEY: str | None = None
    MEDIA_REGION: str = "auto"
    MEDIA_PUBLIC_BASE_URL: str | None = None
    MEDIA_CONNECT_TIMEOUT: float = 5.0
    MEDIA_READ_TIMEOUT: float = 30.0

    SMTP_HOST: str = "smtp.gmail.com"
    SMTP_PORT: int = 465
    SMTP_USE_SSL: bool = True
    SMTP_USER: str | None = None
    SMTP_PASSWORD: str | None = None
    SMTP_FROM: str | None = None
    SMTP_TIMEOUT: float = 10.0

    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        frozen = True


settings = Settings()


def get_settings() -> Settings:
    return settings
