from __future__ import annotations

from pathlib import Path

from ..config_manager import ConfigManager


def log_file_path() -> Path:
    # Settings fall back to defaults (logs/ under the working directory) on bad config
    return Path(ConfigManager().get().logging.file)


def log_level() -> str:
    return ConfigManager().get().logging.level
