from pydantic import field_validator
from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    # Request bodies
    MAX_BODY_SIZE: int = 10 * 1024 * 1024
    MAX_MEMORY_FILE_SIZE: int = 1024 * 1024  # multipart parts above this spool to disk

    # Coercion
    STRICT_NUMBERS: bool = False  # reject "1.5" for integer targets instead of truncating

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = False

    @field_validator("MAX_BODY_SIZE", "MAX_MEMORY_FILE_SIZE")
    @classmethod
    def _positive_size(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("size limits must be positive")
        return value

    class Config:
        env_prefix = "URSA_"
        env_file = ".env"
        extra = "ignore"


@lru_cache
def get_settings() -> Settings:
    return Settings()
