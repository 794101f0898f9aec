"""Service settings, loaded from ``ROUTING_*`` environment variables or a ``.env`` file."""

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_ACQUIRERS_PATH = Path(__file__).with_name("acquirers.json")

class Settings(BaseSettings):
    acquirers_path: Path = Field(default=DEFAULT_ACQUIRERS_PATH, description="Acquirer registry JSON file")
    history_path: Optional[Path] = Field(
        default=None, description="Historical transactions JSON; synthetic history is generated when unset"
    )
    history_seed: int = Field(default=42, description="Seed for synthetic history generation")
    history_size: int = Field(default=1000, gt=0, description="Number of synthetic transactions")
    log_level: str = Field(default="INFO", description="Logging level")

    model_config = SettingsConfigDict(
        env_prefix="ROUTING_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unsupported log level {v!r}")
        return level

@lru_cache
def get_settings() -> Settings:
    return Settings()
