"""
Application configuration loaded from environment variables or a .env file.
"""

from typing import Optional
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # ai endpoint (openai compatible)
    NEBIUS_API_KEY: Optional[str] = Field(default=None, description="API key for the AI endpoint")
    NEBIUS_BASE_URL: str = Field(default="https://api.studio.nebius.com/v1/", description="Base URL of the AI endpoint")
    NEBIUS_TEXT_MODEL: str = Field(default="meta-llama/Meta-Llama-3.1-70B-Instruct")
    NEBIUS_IMAGE_MODEL: str = Field(default="black-forest-labs/flux-schnell")
    CHAT_TIMEOUT_SECONDS: int = 120
    IMAGE_TIMEOUT_SECONDS: int = 120  # image generation can take time

    # storage
    STORAGE_ROOT: str = Field(default="wwwroot", description="Base directory for stored files")
    STORAGE_FOLDER: str = Field(default="generated-stories")

    # pipeline
    CACHE_EXPIRATION_HOURS: int = 24
    MAX_UPLOAD_SIZE_MB: int = 10

    LOG_LEVEL: str = "INFO"

    @property
    def max_upload_size_bytes(self) -> int:
        return self.MAX_UPLOAD_SIZE_MB * 1024 * 1024


# global settings instance
settings = None

def get_settings() -> Settings:
    """Get or create the global settings instance"""
    global settings
    if settings is None:
        settings = Settings()
    return settings
