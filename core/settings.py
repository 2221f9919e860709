"""Centralized application configuration."""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional
import os
import sys


def get_default_data_dir(
    app_name: str,
    *,
    platform: Optional[str] = None,
    env: Optional[Mapping[str, str]] = None,
    home: Optional[Path] = None,
) -> Path:
    """Return an OS-specific user data directory for ``app_name``.

    ``APROPRIAPP_DATA_DIR`` overrides the platform default (used by tests and
    by field tablets that keep data on removable storage).
    """

    platform_id = (platform or sys.platform).lower()
    environ = dict(env if env is not None else os.environ)
    override = environ.get("APROPRIAPP_DATA_DIR")
    if override:
        return Path(override).expanduser()

    home_dir = Path(home or Path.home())
    sanitized = app_name.strip() or "app"
    sanitized = sanitized.replace("/", "-").replace("\\", "-")

    if platform_id.startswith("win"):
        base = Path(environ.get("APPDATA") or home_dir / "AppData" / "Roaming")
    elif platform_id == "darwin":
        base = Path(home_dir / "Library" / "Application Support")
    else:
        base = Path(environ.get("XDG_DATA_HOME") or home_dir / ".local" / "share")

    return base.expanduser() / sanitized


APP_NAME = "ApropriApp"


DATA_DIR = get_default_data_dir(APP_NAME)
STORAGE_DIR = DATA_DIR / "storage"
SECRETS_DIR = DATA_DIR / "secrets"
LOG_DIR = DATA_DIR / "logs"

for _dir in (DATA_DIR, STORAGE_DIR, SECRETS_DIR, LOG_DIR):
    _dir.mkdir(parents=True, exist_ok=True)


DB_PATH = DATA_DIR / "app.db"
CONFIG_PATH = STORAGE_DIR / "config.json"
TOKEN_PATH = DATA_DIR / "token.json"
CLIENT_SECRET_PATH = SECRETS_DIR / "client_secret.json"
SYNC_LOG_PATH = LOG_DIR / "sync.log"


BACKEND_APPS_SCRIPT = "apps_script"
BACKEND_SHEETS_API = "sheets_api"


@dataclass(frozen=True)
class SheetsSyncSettings:
    backend: str = BACKEND_APPS_SCRIPT
    apps_script_url: str = ""
    apps_script_secret: str = ""
    spreadsheet_id: str = ""
    request_timeout_sec: float = 30.0
    auto_sync_delay_sec: float = 2.0
    storage_key: str = "apropriapp_offline_pending"
    default_operator: str = "Sistema"


def _sheets_from_env(env: Optional[Mapping[str, str]] = None) -> SheetsSyncSettings:
    environ = env if env is not None else os.environ
    return SheetsSyncSettings(
        backend=(environ.get("SHEETS_BACKEND") or BACKEND_APPS_SCRIPT).strip().lower(),
        apps_script_url=environ.get("GOOGLE_APPS_SCRIPT_URL", "").strip(),
        apps_script_secret=environ.get("GOOGLE_APPS_SCRIPT_SECRET", ""),
        spreadsheet_id=environ.get("GOOGLE_SPREADSHEET_ID", "").strip(),
    )


SHEETS_SYNC = _sheets_from_env()


@dataclass(frozen=True)
class ConnectivitySettings:
    probe_host: str = "8.8.8.8"
    probe_port: int = 53
    probe_timeout_sec: float = 3.0
    poll_interval_sec: float = 5.0


CONNECTIVITY = ConnectivitySettings()


@dataclass(frozen=True)
class ThemeColors:
    surface_bg: str = "#F1F5F9"
    online_bg: str = "#ECFDF5"
    online_text: str = "#047857"
    offline_bg: str = "#FEF2F2"
    offline_text: str = "#B91C1C"
    text_subtle: str = "#6B7280"


@dataclass(frozen=True)
class UISettings:
    app_title: str = APP_NAME
    theme_mode: str = "light"
    color_scheme_seed: str = "#D97706"
    window_min_width: int = 420
    window_min_height: int = 640
    theme: ThemeColors = ThemeColors()


UI = UISettings()


__all__ = [
    "APP_NAME",
    "DATA_DIR",
    "STORAGE_DIR",
    "SECRETS_DIR",
    "LOG_DIR",
    "DB_PATH",
    "CONFIG_PATH",
    "TOKEN_PATH",
    "CLIENT_SECRET_PATH",
    "SYNC_LOG_PATH",
    "BACKEND_APPS_SCRIPT",
    "BACKEND_SHEETS_API",
    "SheetsSyncSettings",
    "SHEETS_SYNC",
    "CONNECTIVITY",
    "UI",
    "get_default_data_dir",
]
