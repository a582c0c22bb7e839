"""
Configuration helpers for the votes API.

Settings are read once from environment variables so that routers/services
never fetch os.environ directly. Tests reset the cache with
``get_settings.cache_clear()`` after changing the environment.
"""

from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
import os

DEFAULT_DATA_FILE = Path(__file__).resolve().parents[2] / "votes.json"


@dataclass(frozen=True)
class Settings:
    """Typed view of environment variables."""

    app_env: str
    data_file: Path
    host: str
    port: int
    log_level: str
    strict_not_found: bool
    strict_update: bool
    metrics_enabled: bool


@lru_cache
def get_settings() -> Settings:
    """Read the current environment and build a Settings instance."""
    def _int(value: str, default: int = 0) -> int:
        try:
            return int(value)
        except (TypeError, ValueError):
            return default

    def _bool(value: str | None, default: bool = False) -> bool:
        if value is None:
            return default
        return value.strip().lower() in {"1", "true", "yes", "on"}

    app_env = (os.getenv("APP_ENV") or "dev").lower()
    default_level = "DEBUG" if app_env == "dev" else "INFO"
    data_file = os.getenv("VOTES_DATA_FILE") or str(DEFAULT_DATA_FILE)

    return Settings(
        app_env=app_env,
        data_file=Path(data_file).expanduser(),
        host=os.getenv("HOST", "0.0.0.0"),
        port=_int(os.getenv("PORT", "3000"), 3000),
        log_level=(os.getenv("LOG_LEVEL") or default_level).upper(),
        strict_not_found=_bool(os.getenv("VOTES_STRICT_NOT_FOUND"), False),
        strict_update=_bool(os.getenv("VOTES_STRICT_UPDATE"), False),
        metrics_enabled=_bool(os.getenv("METRICS_ENABLED"), True),
    )
