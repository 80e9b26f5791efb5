from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List


class Settings(BaseSettings):
    DATABASE_URL: str
    REDIS_URL: str = "redis://localhost:6379/0"

    JWT_KEY: str
    JWT_ALGORITHM: str = "HS256"

    # debit scheduler
    DEBIT_INTERVAL_SECONDS: float = 3600
    SCHEDULER_ENABLED: bool = True
    SCHEDULER_START_DELAY_SECONDS: float = 2
    DEBIT_STATUS_WINDOW_HOURS: int = 24

    LOG_LEVEL: str = "INFO"

    CORS_ORIGINS: List[str] = [
        "http://localhost:3000",
        "http://localhost:5173",
        "http://127.0.0.1:3000",
        "http://127.0.0.1:5173",
    ]

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore"
    )


Config = Settings()
