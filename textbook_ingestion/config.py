"""
Configuration management using Pydantic Settings
"""
from pydantic_settings import BaseSettings
from typing import List


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # Database
    DATABASE_URL: str

    # Redis (empty string disables it; book locks fall back to in-process)
    REDIS_URL: str = "redis://redis:6379/0"

    # Application
    APP_NAME: str = "Textbook Ingestion Service"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    ALLOWED_ORIGINS: List[str] = ["http://localhost:3000", "http://localhost:8000"]

    # Storage
    UPLOAD_DIR: str = "uploads/textbooks"
    TEMP_UPLOAD_DIR: str = "uploads/temp"
    MAX_UPLOAD_SIZE_MB: int = 100

    # Chunking defaults
    CHUNK_SIZE_WORDS: int = 800
    CHUNK_OVERLAP_WORDS: int = 50
    CHAPTER_ASSIGNMENT_STRATEGY: str = "offset"  # offset | search

    # Per-book ingestion lock
    BOOK_LOCK_TIMEOUT: int = 1800  # max seconds a lock may be held
    BOOK_LOCK_WAIT: float = 5.0  # seconds to wait before giving up

    # Rate Limiting (upload / reprocess / preview)
    INGESTION_RATE_LIMIT_PER_HOUR: int = 30

    # Logging
    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"
        case_sensitive = True


# Global settings instance
settings = Settings()
