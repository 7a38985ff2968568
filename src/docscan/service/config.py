"""Configuration module using pydantic-settings.

Environment variable management for the HTTP service and the CLI, with
.env file support.
"""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict

from docscan.model.storage import DEFAULT_BUCKET, DEFAULT_PREFIX


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Attributes:
        LOG_LEVEL: Logging level (DEBUG, INFO, WARNING, ERROR)
        HOST: Bind address for the HTTP server
        PORT: HTTP server port
        MODELS_DIR: Local directory holding the ONNX models
        MINIO_ENDPOINT: MinIO server endpoint (host:port); unset disables fetching
        MINIO_ACCESS_KEY: MinIO access key
        MINIO_SECRET_KEY: MinIO secret key
        MINIO_BUCKET: Bucket holding the models
        MINIO_PREFIX: Key prefix of the models inside the bucket
        MINIO_SECURE: Use HTTPS for MinIO connection
        PRELOAD_MODELS: Open ONNX sessions at startup instead of on first request
    """

    LOG_LEVEL: str = "INFO"
    HOST: str = "0.0.0.0"
    PORT: int = 8100
    MODELS_DIR: str = "./models"
    MINIO_ENDPOINT: str | None = None
    MINIO_ACCESS_KEY: str = "minioadmin"
    MINIO_SECRET_KEY: str = "minioadmin"
    MINIO_BUCKET: str = DEFAULT_BUCKET
    MINIO_PREFIX: str = DEFAULT_PREFIX
    MINIO_SECURE: bool = False
    PRELOAD_MODELS: bool = True

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached Settings instance (singleton pattern)."""
    return Settings()
