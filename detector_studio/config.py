import os
from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Gemini REST API (generateContent, predictLongRunning, operations)
    gemini_base_url: str = "https://generativelanguage.googleapis.com/v1beta"
    gemini_api_key: Optional[str] = Field(default=None, validate_default=True)

    analysis_model: str = "gemini-2.5-pro"
    video_model: str = "veo-3.1-fast-generate-preview"

    # Timeouts (seconds)
    llm_timeout_seconds: float = 120.0
    video_submit_timeout_seconds: float = 60.0
    video_poll_timeout_seconds: float = 30.0
    video_download_timeout_seconds: float = 120.0
    ffmpeg_timeout_seconds: float = 60.0

    # Video generation polling; attempts * interval bounds the whole job (15 minutes by default)
    video_poll_interval_seconds: float = 10.0
    video_max_poll_attempts: int = 90

    # Uploads
    video_frame_count: int = 4
    max_upload_bytes: int = 20 * 1024 * 1024  # inline request data limit on the Gemini side

    class Config:
        env_prefix = "DETECTOR_"
        env_file = ".env"
        env_file_encoding = "utf-8"

    @field_validator("gemini_api_key", mode="after")
    @classmethod
    def resolve_gemini_api_key(cls, v: Optional[str]) -> Optional[str]:
        if v and v.strip():
            return v.strip()
        for name in ("GEMINI_API_KEY", "API_KEY"):
            key = (os.environ.get(name) or "").strip()
            if key:
                return key
        return None


@lru_cache()
def get_settings() -> Settings:
    return Settings()
