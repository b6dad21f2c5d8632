from pathlib import Path
from dotenv import dotenv_values
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

import os

# Explicitly load .env for local/dev environments only if values are missing from the environment
BASE_DIR = Path(__file__).resolve().parent.parent.parent
env_file = BASE_DIR / ".env"

if env_file.exists():
    file_env = dotenv_values(env_file)
    missing_keys = {k: v for k, v in file_env.items() if k not in os.environ and v is not None}
    for k, v in missing_keys.items():
        os.environ[k] = v


class Settings(BaseSettings):
    """Application settings pulled from environment variables."""

    model_config = SettingsConfigDict(env_prefix="PY_ISLE_", extra="ignore")

    # API Configuration
    api_host: str = Field(default="0.0.0.0", description="API host")
    api_port: int = Field(default=8000, description="API port")
    debug: bool = Field(default=False, description="Enable debug mode")
    allowed_origins: str = Field(default="*", description="Comma separated CORS allowed origins")

    # Logging Configuration
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: str = Field(default="json", description="Logging format (plain or json)")

    # Island Generation Configuration
    default_radius: int = Field(default=20, description="Default island radius")
    max_radius: int = Field(default=60, description="Max allowed island radius")

    # Performance Configuration
    generation_cache_size: int = Field(default=16, description="Generated islands kept in memory")

    @property
    def cors_origins(self) -> list:
        return [origin.strip() for origin in self.allowed_origins.split(",") if origin.strip()]


# Instantiate singleton settings object
settings = Settings()
