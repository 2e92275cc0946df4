"""Application settings with JSON persistence.

Settings are stored at:
    ~/Library/Application Support/ChronoStack/settings.json

Usage::

    settings = load_settings()
    settings.tick_interval_ms = 250
    save_settings(settings)
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, asdict, fields
from pathlib import Path


logger = logging.getLogger(__name__)

# Reuse the app-support directory from db.py
APP_SUPPORT_DIR = Path.home() / "Library" / "Application Support" / "ChronoStack"
SETTINGS_PATH = APP_SUPPORT_DIR / "settings.json"


@dataclass
class Settings:
    """All user-configurable preferences."""

    # ── timers ────────────────────────────────────────────────────────
    tick_interval_ms: int = 100
    default_timer_label: str = "Timer 1"
    default_timer_duration: int = 300      # seconds
    autosave_interval_ms: int = 5000

    # ── window ────────────────────────────────────────────────────────
    window_x: int | None = None
    window_y: int | None = None
    window_width: int = 480
    window_height: int = 640
    always_on_top: bool = False


def load_settings() -> Settings:
    """Load settings from disk, falling back to defaults."""
    try:
        if SETTINGS_PATH.exists():
            data = json.loads(SETTINGS_PATH.read_text(encoding="utf-8"))
            # Only use keys that exist in the dataclass
            valid_keys = {f.name for f in fields(Settings)}
            filtered = {k: v for k, v in data.items() if k in valid_keys}
            return Settings(**filtered)
    except (OSError, ValueError, TypeError, AttributeError) as exc:
        logger.warning("ignoring unreadable settings file: %s", exc)
    return Settings()


def save_settings(settings: Settings) -> None:
    """Write settings to disk as JSON."""
    APP_SUPPORT_DIR.mkdir(parents=True, exist_ok=True)
    SETTINGS_PATH.write_text(
        json.dumps(asdict(settings), indent=2) + "\n",
        encoding="utf-8",
    )
