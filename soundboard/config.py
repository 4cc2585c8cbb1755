"""Configuration settings for the sound effects board."""

from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    # App
    app_name: str = "Sound Effects Board"
    debug: bool = False
    log_level: str = "INFO"

    # Remote store (PostgREST / Supabase REST). Unset = in-process memory store.
    store_url: Optional[str] = None
    store_api_key: Optional[str] = None
    store_timeout_sec: float = 10.0

    # Media
    sounds_dir: str = "./public/sounds"
    max_inline_upload_bytes: int = 2 * 1024 * 1024  # data: URL fallback cap
    max_ephemeral_blobs: int = 32

    # Edit mode
    edit_password: Optional[str] = None
    session_cookie: str = "sfx_session"
    max_sessions: int = 1000

    # Now-playing panel
    panel_hide_delay_ms: int = 1800
    default_show_url: Optional[str] = None

    class Config:
        env_file = ".env"


settings = Settings()
