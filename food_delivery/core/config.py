from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List


class Settings(BaseSettings):
    """
    Settings class to retrieve environment variables.
    """

    DATABASE_URL: str = "sqlite+aiosqlite:///./food_delivery.db"
    DB_POOL_SIZE: int = 5
    DB_POOL_TIMEOUT: int = 30       # seconds to wait for a pooled connection
    DB_CONNECT_TIMEOUT: int = 10    # seconds to wait for a new connection
    DB_ECHO: bool = False

    # Local object store for restaurant media
    MEDIA_ROOT: str = "uploads"
    MEDIA_BASE_URL: str = "/media"
    MEDIA_MAX_FILE_SIZE: int = 5 * 1024 * 1024  # 5MB
    MEDIA_TIMEOUT_SECONDS: float = 15.0

    # Timezone used to decide whether a restaurant is open
    RESTAURANT_TIMEZONE: str = "UTC"

    LOG_LEVEL: str = "INFO"
    CORS_ORIGINS: List[str] = ["http://localhost", "http://localhost:3000"]

    model_config = SettingsConfigDict(
        env_file='.env',
        extra='ignore',
    )


Config = Settings()
