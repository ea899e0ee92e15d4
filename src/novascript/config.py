"""Configuration helpers for the NovaScript workflow."""

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

ImageResolution = Literal["1K", "2K", "4K"]

# Image model quality per resolution tier.
RESOLUTION_QUALITY: dict[str, str] = {"1K": "low", "2K": "medium", "4K": "high"}


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    openai_api_key: str | None = Field(None, alias="OPENAI_API_KEY")
    fetch_model: str = Field(
        "gpt-5-mini", description="Model that searches the web for headlines."
    )
    summarizer_model: str = Field("gpt-5-mini", description="Headline summarizer model.")
    script_model: str = Field("gpt-5.1", description="Script writer model.")
    image_model: str = Field("gpt-image-1", description="Image generation model.")
    image_size: str = Field(
        "1536x1024", description="Frame size for thumbnails and segment images."
    )
    image_resolution: ImageResolution = Field(
        "1K", description="Default resolution tier when a run does not pick one."
    )
    max_tokens: int = Field(
        0,
        description="Max output tokens for text responses; 0 removes the cap.",
    )
    log_level: str = Field("INFO", alias="LOG_LEVEL")


def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()  # pydantic settings cache internally
