import logging
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import ConfigDict
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Environment
    ENV: str = "development"
    CONFIG_STRICT: bool = False
    LOG_LEVEL: str = "INFO"

    # Local storage (one record per key)
    STORAGE_DIR: str = ".smart75"
    STORAGE_KEY: str = "75smartrules"

    # Remote mirror
    DATABASE_URL: Optional[str] = None
    REMOTE_SYNC_ENABLED: bool = False

    # Day keys are computed in this zone; None means the host's local time
    TIMEZONE: Optional[str] = None

    # HTTP surface
    CORS_ORIGINS: str = "http://localhost:5173"  # comma-separated

    model_config = ConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


settings = Settings()


def resolve_timezone(settings_obj: Optional[Settings] = None) -> Optional[ZoneInfo]:
    """Return the configured zone, or None for host-local time."""
    cfg = settings_obj or settings
    if not cfg.TIMEZONE:
        return None
    return ZoneInfo(cfg.TIMEZONE)


def validate_config(strict: Optional[bool] = None, settings_obj: Optional[Settings] = None, logger: Optional[logging.Logger] = None) -> bool:
    """Validate configuration.

    In strict mode raise RuntimeError; otherwise emit warnings only.
    The database URL itself is never logged.
    """
    cfg = settings_obj or settings
    log = logger or logging.getLogger("smart75")
    strict_mode = strict if strict is not None else getattr(cfg, "CONFIG_STRICT", False)

    problems = []
    if cfg.REMOTE_SYNC_ENABLED and not cfg.DATABASE_URL:
        problems.append("REMOTE_SYNC_ENABLED is set but DATABASE_URL is missing")
    if not cfg.STORAGE_KEY:
        problems.append("STORAGE_KEY must not be empty")
    if cfg.TIMEZONE:
        try:
            ZoneInfo(cfg.TIMEZONE)
        except (ZoneInfoNotFoundError, ValueError):
            problems.append(f"Unknown TIMEZONE: {cfg.TIMEZONE}")

    if problems:
        message = f"Invalid configuration: {'; '.join(problems)}"
        if strict_mode:
            raise RuntimeError(message)
        log.warning(message)
        return False

    return True
