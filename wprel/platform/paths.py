"""Platform-aware path utilities.

Locates user-level directories. The dependency cache store lives under the
user cache directory unless config or WPREL_CACHE_DIR points elsewhere.
"""

from __future__ import annotations

import os
import sys
from functools import lru_cache
from pathlib import Path

__all__ = [
    "home",
    "user_cache_dir",
]

# Application name used for directory naming
APP_NAME = "wprel"


@lru_cache(maxsize=1)
def home() -> Path:
    """Get user's home directory.

    Uses USERPROFILE on Windows, HOME on Unix, then Path.home().
    """
    var = "USERPROFILE" if sys.platform == "win32" else "HOME"
    value = os.environ.get(var)
    if value:
        return Path(value)
    return Path.home()


@lru_cache(maxsize=1)
def user_cache_dir() -> Path:
    """Get the user-level cache directory.

    Location: ~/.cache/wprel/ (Linux/macOS, or $XDG_CACHE_HOME/wprel/)
    or %LOCALAPPDATA%/wprel/ (Windows)
    """
    if sys.platform == "win32":
        local = os.environ.get("LOCALAPPDATA")
        if local:
            return Path(local) / APP_NAME
        return home() / "AppData" / "Local" / APP_NAME

    xdg_cache = os.environ.get("XDG_CACHE_HOME")
    if xdg_cache:
        return Path(xdg_cache) / APP_NAME
    return home() / ".cache" / APP_NAME


def clear_caches() -> None:
    """Clear all cached paths.

    Useful for testing when environment variables change.
    """
    home.cache_clear()
    user_cache_dir.cache_clear()
