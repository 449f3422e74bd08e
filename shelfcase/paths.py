from __future__ import annotations

import os
from pathlib import Path


def app_root() -> Path:
    """
    The package folder (the parent of this file) is the app root.
    """
    return Path(__file__).resolve().parent


def app_data_dir() -> Path:
    """Files shipped with the package (default templates)."""
    return app_root() / "data"


def user_data_dir() -> Path:
    """
    Simple cross-platform user data path.
    - Windows: %APPDATA%/Shelfcase
    - others : ~/.shelfcase
    SHELFCASE_HOME overrides both.
    """
    override = os.environ.get("SHELFCASE_HOME")
    if override:
        return Path(override).expanduser()
    home = Path.home()
    if os.name == "nt":
        base = Path(os.environ.get("APPDATA", str(home)))
        return base / "Shelfcase"
    return home / ".shelfcase"


def user_styles_dir() -> Path:
    """User supplied CSL styles and HTML templates."""
    return user_data_dir() / "styles"


def log_dir() -> Path:
    return user_data_dir() / "logs"
