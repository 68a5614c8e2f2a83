"""Configuration Management."""

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


class Settings(BaseSettings):
    """Application settings from environment."""

    model_config = SettingsConfigDict(
        env_prefix="SDUI_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # Ignore extra environment variables
    )

    # Server
    host: str = Field(default="0.0.0.0", description="HTTP bind address")
    port: int = Field(default=8080, gt=0, lt=65536, description="HTTP port")

    # Template store
    template_store: Literal["memory", "file", "http"] = Field(
        default="memory", description="Template backing store"
    )
    template_dir: str = Field(default="static/screens", description="Directory of <screen>.json files")
    template_url: str = Field(default="http://localhost:9000", description="Remote template service URL")
    template_timeout: float = Field(default=5.0, gt=0, description="Remote template request timeout")

    # Caching
    enable_cache: bool = Field(default=True, description="Cache decoded templates")
    cache_size: int = Field(default=256, gt=0, description="Cache max size")
    cache_ttl: int | None = Field(default=None, gt=0, description="Cache TTL (seconds), unset = forever")

    # Interpreter
    max_depth: int = Field(default=32, gt=0, le=256, description="Max component nesting depth")
    coerce_condition_types: bool = Field(
        default=False, description="Compare mismatched condition types as strings/numbers"
    )

    environment_file: str = Field(
        default="", description="JSON file of {static, users} bindings for server-side renders"
    )

    # Actions and resources
    action_url: str = Field(default="", description="Action sink URL (empty = log only)")
    action_timeout: float = Field(default=5.0, gt=0, description="Action dispatch timeout")
    resource_timeout: float = Field(default=10.0, gt=0, description="Remote resource fetch timeout")

    # Validation
    max_template_size: int = Field(default=512 * 1024, gt=0, description="Max template size in bytes")
    max_template_depth: int = Field(default=256, gt=0, description="Max template JSON nesting")

    # Logging
    log_level: str = Field(default="INFO", description="Log level")
    json_logs: bool = Field(default=False, description="Use JSON log format")


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
