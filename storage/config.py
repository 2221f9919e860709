"""User-editable connection settings persisted to ``config.json``."""
from __future__ import annotations

import json
from dataclasses import asdict, dataclass, replace
from pathlib import Path
from typing import Any, Dict, Optional

from core.settings import CONFIG_PATH, SHEETS_SYNC, SheetsSyncSettings


@dataclass
class AppConfig:
    """Values entered on the settings page; empty means "use the default"."""

    apps_script_url: Optional[str] = None
    apps_script_secret: Optional[str] = None
    spreadsheet_id: Optional[str] = None
    backend: Optional[str] = None
    operator_email: Optional[str] = None


def _ensure_parent(path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)


def _load_raw(path: Path) -> Dict[str, Any]:
    if not path.exists():
        return {}
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError):
        return {}
    return data if isinstance(data, dict) else {}


def load_config(path: Optional[Path] = None) -> AppConfig:
    target = path or CONFIG_PATH
    data = _load_raw(target)
    return AppConfig(
        apps_script_url=data.get("apps_script_url"),
        apps_script_secret=data.get("apps_script_secret"),
        spreadsheet_id=data.get("spreadsheet_id"),
        backend=data.get("backend"),
        operator_email=data.get("operator_email"),
    )


def save_config(config: AppConfig, path: Optional[Path] = None) -> None:
    target = path or CONFIG_PATH
    _ensure_parent(target)
    payload = json.dumps(asdict(config), ensure_ascii=False, indent=2, sort_keys=True)
    tmp = target.with_suffix(".tmp")
    try:
        tmp.write_text(payload, encoding="utf-8")
        tmp.replace(target)
    finally:
        if tmp.exists():
            try:
                tmp.unlink()
            except OSError:
                pass


def update_config(path: Optional[Path] = None, **changes: Any) -> AppConfig:
    target = path or CONFIG_PATH
    cfg = load_config(target)
    for key, value in changes.items():
        if hasattr(cfg, key):
            setattr(cfg, key, value)
    save_config(cfg, target)
    return cfg


def resolve_sheets_settings(
    config: Optional[AppConfig] = None,
    base: SheetsSyncSettings = SHEETS_SYNC,
) -> SheetsSyncSettings:
    """Overlay non-empty user values on the environment defaults."""

    cfg = config or load_config()
    overrides = {
        "apps_script_url": cfg.apps_script_url,
        "apps_script_secret": cfg.apps_script_secret,
        "spreadsheet_id": cfg.spreadsheet_id,
        "backend": cfg.backend,
        "default_operator": cfg.operator_email,
    }
    return replace(base, **{k: v.strip() for k, v in overrides.items() if v and v.strip()})


__all__ = [
    "AppConfig",
    "load_config",
    "resolve_sheets_settings",
    "save_config",
    "update_config",
]
