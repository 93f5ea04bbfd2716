"""
Application configuration, loaded from config/app.json.

Missing keys fall back to DEFAULT_CONFIG, so the file only needs to hold
what a user actually changed.
"""

from __future__ import annotations

import copy
import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from src.data.models import User

logger = logging.getLogger(__name__)

ROOT_DIR = Path(__file__).resolve().parent.parent
CONFIG_PATH = ROOT_DIR / "config" / "app.json"

DEFAULT_CONFIG = {
    "db_path": "memory_todo.db",
    "log_file": "memory_todo.log",
    "log_level": "INFO",
    "refresh_interval_ms": 60000,
    "memory": {
        "primary_name": "memory",
        "primary_capacity": 100,
        "secondary_name": "hwvm",
        "secondary_capacity": 50,
        "process_size": 10,
        "growth_rate": 0.5,
    },
    "user": {
        "id": "jWnP4HIwrIV2y62I9ODO1VIolnd2",
        "email": "dummy.user@gmail.com",
        "display_name": "Dummy User",
    },
}

# sections merged key-by-key instead of replaced wholesale
_NESTED = ("memory", "user")


@dataclass(frozen=True)
class MemorySettings:
    primary_name: str = "memory"
    primary_capacity: float = 100
    secondary_name: str = "hwvm"
    secondary_capacity: float = 50
    process_size: float = 10
    growth_rate: float = 0.5     # size units per hour

    @classmethod
    def from_dict(cls, data: dict) -> "MemorySettings":
        known = {k: v for k, v in data.items() if k in cls.__dataclass_fields__}
        return cls(**known)


class AppConfig:
    """Typed accessors over the merged config dict."""

    def __init__(self, data: Optional[dict] = None,
                 path: Optional[Union[Path, str]] = None) -> None:
        self.path = Path(path) if path else CONFIG_PATH
        self.data = merge_config(data or {})

    @classmethod
    def load(cls, path: Optional[Union[Path, str]] = None) -> "AppConfig":
        cfg_path = Path(path) if path else CONFIG_PATH
        return cls(load_config(cfg_path), cfg_path)

    @property
    def db_path(self) -> Union[Path, str]:
        if self.data["db_path"] == ":memory:":
            return ":memory:"
        p = Path(self.data["db_path"])
        return p if p.is_absolute() else ROOT_DIR / p

    @property
    def log_file(self) -> Path:
        p = Path(self.data["log_file"])
        return p if p.is_absolute() else ROOT_DIR / p

    @property
    def log_level(self) -> int:
        return getattr(logging, str(self.data["log_level"]).upper(), logging.INFO)

    @property
    def refresh_interval_ms(self) -> int:
        return int(self.data["refresh_interval_ms"])

    @property
    def memory(self) -> MemorySettings:
        return MemorySettings.from_dict(self.data["memory"])

    @property
    def user(self) -> User:
        u = self.data["user"]
        return User(id=u.get("id", ""), email=u.get("email", ""),
                    display_name=u.get("display_name", ""))

    def save(self) -> None:
        save_config(self.data, self.path)


def merge_config(cfg: dict) -> dict:
    merged = copy.deepcopy(DEFAULT_CONFIG)
    for key, value in cfg.items():
        if key in _NESTED and isinstance(value, dict):
            merged[key].update(value)
        else:
            merged[key] = value
    return merged


def load_config(path: Path = CONFIG_PATH) -> dict:
    if path.exists():
        try:
            with open(path, encoding="utf-8") as f:
                cfg = json.load(f)
            if not isinstance(cfg, dict):
                raise ValueError("top level must be an object")
            return merge_config(cfg)
        except (json.JSONDecodeError, ValueError):
            logger.warning("Bad app config at %s, using defaults.", path)
    return copy.deepcopy(DEFAULT_CONFIG)


def save_config(cfg: dict, path: Path = CONFIG_PATH) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(cfg, f, indent=2)
