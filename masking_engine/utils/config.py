"""Application Configuration"""

from pydantic_settings import BaseSettings
from typing import List
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings"""

    APP_NAME: str = "PII Masking Engine"
    DEBUG: bool = False
    ENVIRONMENT: str = "development"

    ALLOWED_ORIGINS: List[str] = ["http://localhost:3000"]

    # Reveal
    REVEAL_DURATION_MS: int = 3000

    # Audit
    AUDIT_SINK: str = "memory"  # memory, log
    AUDIT_HASH_SALT: str = ""
    AUDIT_MAX_RECORDS: int = 10000

    class Config:
        env_file = ".env"


@lru_cache()
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
