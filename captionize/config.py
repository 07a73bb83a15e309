"""Configuration constants, settings loading, and .env support.

WHY: Centralizes every configurable value so it is easy to find and
override. Provider keys and work directories are read once into a
Settings object and handed to the collaborators that need them, rather
than being consulted as process-wide globals deep inside the code.

HOW: python-dotenv loads the .env file when load_settings() is called.
Plain constants cover defaults and supported file types. Settings is a
frozen dataclass; require_api_key() gives a clear error when the key
is missing.

RULES:
- The API key is never hardcoded and never has a placeholder default
- All defaults can be overridden via environment variables
- SUPPORTED_MEDIA_FORMATS lists accepted upload extensions (lowercase, with dot)
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# ---------------------------------------------------------------------------
# Supported audio/video file extensions
# ---------------------------------------------------------------------------

SUPPORTED_MEDIA_FORMATS: set[str] = {
    ".aac", ".avi", ".flac", ".m4a", ".mkv", ".mov",
    ".mp3", ".mp4", ".ogg", ".wav", ".webm",
}
"""Audio/video file extensions accepted for upload."""

# ---------------------------------------------------------------------------
# Provider defaults
# ---------------------------------------------------------------------------

DEFAULT_BASE_URL = "https://api.assemblyai.com/v2"
DEFAULT_POLL_INTERVAL_S = 3.0
DEFAULT_POLL_TIMEOUT_S = 30 * 60  # 30 minutes


@dataclass(frozen=True)
class Settings:
    """Runtime configuration passed explicitly to collaborators.

    RULES:
    - api_key may be empty here; require_api_key() enforces presence
    - work_dir None means "use a fresh temporary directory per download"
    """

    api_key: str = ""
    base_url: str = DEFAULT_BASE_URL
    poll_interval_s: float = DEFAULT_POLL_INTERVAL_S
    poll_timeout_s: float = DEFAULT_POLL_TIMEOUT_S
    work_dir: Optional[Path] = None

    def require_api_key(self) -> str:
        """Return the API key, raising ValueError if it is not configured."""
        key = self.api_key.strip()
        if not key:
            raise ValueError(
                "AssemblyAI API key not configured. "
                "Add ASSEMBLYAI_API_KEY to the .env file or the environment."
            )
        return key


def load_settings() -> Settings:
    """Build Settings from the environment (after loading .env).

    RULES:
    - ASSEMBLYAI_API_KEY, ASSEMBLYAI_BASE_URL
    - CAPTIONIZE_POLL_INTERVAL, CAPTIONIZE_POLL_TIMEOUT (seconds, float)
    - CAPTIONIZE_WORK_DIR (optional directory for downloads)
    - Malformed numbers raise ValueError naming the variable
    """
    load_dotenv()

    work_dir = os.getenv("CAPTIONIZE_WORK_DIR", "").strip()
    return Settings(
        api_key=os.getenv("ASSEMBLYAI_API_KEY", "").strip(),
        base_url=os.getenv("ASSEMBLYAI_BASE_URL", DEFAULT_BASE_URL),
        poll_interval_s=_float_env("CAPTIONIZE_POLL_INTERVAL", DEFAULT_POLL_INTERVAL_S),
        poll_timeout_s=_float_env("CAPTIONIZE_POLL_TIMEOUT", DEFAULT_POLL_TIMEOUT_S),
        work_dir=Path(work_dir) if work_dir else None,
    )


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name, "").strip()
    if not raw:
        return float(default)
    try:
        return float(raw)
    except ValueError:
        raise ValueError("{} must be a number of seconds, got {!r}".format(name, raw))
