# core/config.py
from __future__ import annotations

import os
import tempfile
from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field, AliasChoices
from pydantic_settings import BaseSettings, SettingsConfigDict


# Project root: .../midi-mcp
BASE_DIR = Path(__file__).resolve().parents[1]

DEFAULT_CHUNK_SIZE = 50


def default_midi_dir() -> Path:
    """
    Per-user MIDI directory used for relative output paths.
    HOME -> USERPROFILE -> system temp dir.
    """
    base = os.environ.get("HOME") or os.environ.get("USERPROFILE") or tempfile.gettempdir()
    return Path(base) / "midi-files"


class Settings(BaseSettings):
    """
    midi-mcp settings.

    Reads from:
    - environment variables
    - .env in project root

    Nothing is created on disk here; the emitter creates midi_dir lazily.
    """

    model_config = SettingsConfigDict(
        env_file=str(BASE_DIR / ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    # ---- Environment / server ----
    app_env: str = Field(default="development", validation_alias="APP_ENV")
    host: str = Field(default="0.0.0.0", validation_alias="HOST")
    port: int = Field(default=8000, validation_alias="PORT")
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    cors_allow_origins: Optional[str] = Field(default=None, validation_alias="CORS_ALLOW_ORIGINS")

    # ---- Output ----
    # Relative output paths collapse into this directory (support alias MIDI_OUTPUT_DIR)
    midi_dir: Optional[Path] = Field(
        default=None,
        validation_alias=AliasChoices("MIDI_DIR", "MIDI_OUTPUT_DIR"),
    )

    # ---- Build tuning ----
    # Notes per progress chunk; does not affect event order
    chunk_size: int = Field(default=DEFAULT_CHUNK_SIZE, validation_alias="CHUNK_SIZE")

    # Guard for composition_file reads
    max_composition_bytes: int = Field(default=10 * 1024 * 1024, validation_alias="MAX_COMPOSITION_BYTES")

    def model_post_init(self, __context) -> None:
        if self.midi_dir is None:
            self.midi_dir = default_midi_dir()
        self.midi_dir = self.midi_dir.expanduser()
        if not self.midi_dir.is_absolute():
            self.midi_dir = (BASE_DIR / self.midi_dir).resolve()

        if self.chunk_size < 1:
            self.chunk_size = DEFAULT_CHUNK_SIZE

        if self.max_composition_bytes <= 0:
            self.max_composition_bytes = 10 * 1024 * 1024

        self.log_level = (self.log_level or "INFO").strip().upper()


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
