"""CloudInv application configuration using Pydantic Settings."""

from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """CloudInv application settings.

    All fields can be overridden via environment variables with
    the CLOUDINV_ prefix (e.g., CLOUDINV_DB_PATH).
    """

    db_path: Path = Path("data/cloudinv.duckdb")
    host: str = "0.0.0.0"
    port: int = 8000
    api_base_url: str = "http://localhost:8000"
    request_timeout: float = 30.0
    cors_origins: list[str] = ["http://localhost:3000"]
    behind_proxy: bool = False  # Set CLOUDINV_BEHIND_PROXY=true in Docker

    model_config = {
        "env_prefix": "CLOUDINV_",
        "env_file": ".env",
        "extra": "ignore",
    }


@lru_cache
def get_settings() -> Settings:
    """Return cached application settings (singleton)."""
    return Settings()
