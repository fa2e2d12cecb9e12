"""Configuration settings for the face recognition service."""
from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings.

    These settings are loaded from environment variables with the following precedence:
    1. Environment variables
    2. .env file
    3. Default values

    Attributes:
        DATABASE_URL: SQLAlchemy async URL of the face/log store
        REDIS_URL: Redis instance backing the recognition result cache
        RECOGNITION_THRESHOLD: Minimum similarity (1 - euclidean distance) for a match
        DUPLICATE_THRESHOLD: Minimum similarity at which an enrollment is a duplicate
    """
    model_config = SettingsConfigDict(
        case_sensitive=True,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        env_prefix="",
        env_nested_delimiter="__"
    )

    # Core Settings
    PROJECT_NAME: str = "Face Recognition Service"
    VERSION: str = "1.0.0"
    API_V1_STR: str = "/api/v1"
    ENVIRONMENT: str = "development"

    # CORS Settings
    ALLOWED_ORIGINS: str = "http://localhost:3000"

    @property
    def cors_origins(self) -> List[str]:
        """Get list of allowed origins."""
        return [origin.strip() for origin in self.ALLOWED_ORIGINS.split(",")]

    # Persistent store
    DATABASE_URL: str = "sqlite+aiosqlite:///./data/faces.db"
    DB_ECHO: bool = False

    # Result cache
    REDIS_URL: str = "redis://localhost:6379/0"
    REDIS_SOCKET_TIMEOUT: float = 2.0
    CACHE_TTL_SECONDS: int = 3600

    # Matching thresholds (similarity scale, higher is stricter)
    RECOGNITION_THRESHOLD: float = 0.6
    DUPLICATE_THRESHOLD: float = 0.7

    # Face Recognition Settings
    MODEL_PATH: str = "buffalo_l"
    MODEL_CACHE_DIR: str = ".model_cache"
    DETECTION_SIZE: int = 640
    MIN_FACE_SIZE: int = 50  # pixels, applies to both box width and height

    # Image ingestion
    UPLOAD_DIR: str = "uploads"
    MAX_UPLOAD_BYTES: int = 10 * 1024 * 1024
    MAX_IMAGE_DIMENSION: int = 800
    JPEG_QUALITY: int = 85

    # Live recognition client
    LIVE_CAPTURE_INTERVAL: float = 1.0
    LIVE_OVERLAY_REFRESH: float = 1 / 30

    # Optional settings with defaults
    LOG_LEVEL: str = "INFO"
    DEBUG: bool = False
    HOST: str = "0.0.0.0"
    PORT: int = 8000


settings = Settings()
