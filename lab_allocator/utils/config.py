"""Environment-driven application settings."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path


PROJECT_ROOT = Path(__file__).resolve().parents[2]


def _env_str(name: str, default: str) -> str:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip()


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from exc


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _env_tuple(name: str, default: tuple[str, ...]) -> tuple[str, ...]:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return tuple(item.strip() for item in raw.split(",") if item.strip())


@dataclass(frozen=True)
class Settings:
    app_name: str = "Lab Allocation Service"
    app_version: str = "1.0.0"
    log_level: str = "INFO"
    database_path: Path = PROJECT_ROOT / "data" / "lab_allocator.db"
    admin_token: str = ""
    allowed_email_domain: str = ""
    academic_years: tuple[str, ...] = field(default=("1", "2", "3"))
    max_lab_capacity: int = 500
    max_group_headcount: int = 500
    seed_demo_roster: bool = False


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Load settings once per process.

    Tests derive variants with ``dataclasses.replace`` instead of mutating the
    cached instance.
    """
    settings = Settings(
        app_name=_env_str("APP_NAME", Settings.app_name),
        app_version=_env_str("APP_VERSION", Settings.app_version),
        log_level=_env_str("LOG_LEVEL", Settings.log_level),
        database_path=Path(
            _env_str("DATABASE_PATH", str(Settings.database_path))
        ),
        admin_token=_env_str("ADMIN_TOKEN", ""),
        allowed_email_domain=_env_str("ALLOWED_EMAIL_DOMAIN", ""),
        academic_years=_env_tuple("ACADEMIC_YEARS", ("1", "2", "3")),
        max_lab_capacity=_env_int("MAX_LAB_CAPACITY", Settings.max_lab_capacity),
        max_group_headcount=_env_int(
            "MAX_GROUP_HEADCOUNT", Settings.max_group_headcount
        ),
        seed_demo_roster=_env_bool("SEED_DEMO_ROSTER", Settings.seed_demo_roster),
    )
    if settings.max_lab_capacity <= 0:
        raise ValueError("MAX_LAB_CAPACITY must be > 0")
    if settings.max_group_headcount <= 0:
        raise ValueError("MAX_GROUP_HEADCOUNT must be > 0")
    if not settings.academic_years:
        raise ValueError("ACADEMIC_YEARS must list at least one year")
    return settings
