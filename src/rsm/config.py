from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional
import os
import sys

from rsm.domain.errors import ValidationError

BACKENDS = ("sqlite", "supabase")


@dataclass(frozen=True)
class AppPaths:
    base_dir: Path
    db_path: Path
    logs_dir: Path


@dataclass(frozen=True)
class BackendSettings:
    backend: str = "sqlite"
    db_path: Optional[Path] = None
    supabase_url: Optional[str] = None
    supabase_anon_key: Optional[str] = None
    supabase_email: Optional[str] = None
    supabase_password: Optional[str] = None
    log_level: str = "INFO"


def _windows_appdata() -> Path:
    return Path(os.environ.get("APPDATA", str(Path.home() / "AppData" / "Roaming")))


def _mac_app_support() -> Path:
    return Path.home() / "Library" / "Application Support"


def get_app_paths(app_name: str = "RetailSalesManager") -> AppPaths:
    if sys.platform.startswith("win"):
        base = _windows_appdata() / app_name
    elif sys.platform == "darwin":
        base = _mac_app_support() / app_name
    else:
        base = Path.home() / f".{app_name.lower()}"

    logs = base / "logs"
    db = base / "retail.db"

    base.mkdir(parents=True, exist_ok=True)
    logs.mkdir(parents=True, exist_ok=True)

    return AppPaths(base_dir=base, db_path=db, logs_dir=logs)


def _env(env: Mapping[str, str], key: str) -> Optional[str]:
    value = env.get(key, "").strip()
    return value or None


def load_settings(env: Mapping[str, str] | None = None) -> BackendSettings:
    env = os.environ if env is None else env

    backend = (_env(env, "RSM_BACKEND") or "sqlite").lower()
    if backend not in BACKENDS:
        raise ValidationError(f"RSM_BACKEND must be one of: {', '.join(BACKENDS)}.")

    db_path = _env(env, "RSM_DB_PATH")
    settings = BackendSettings(
        backend=backend,
        db_path=Path(db_path) if db_path else None,
        supabase_url=_env(env, "SUPABASE_URL"),
        supabase_anon_key=_env(env, "SUPABASE_ANON_KEY"),
        supabase_email=_env(env, "SUPABASE_EMAIL"),
        supabase_password=_env(env, "SUPABASE_PASSWORD"),
        log_level=(_env(env, "RSM_LOG_LEVEL") or "INFO").upper(),
    )

    if settings.backend == "supabase" and not (settings.supabase_url and settings.supabase_anon_key):
        raise ValidationError("SUPABASE_URL and SUPABASE_ANON_KEY are required for the supabase backend.")
    return settings
