"""Environment-driven settings for the scheduling service."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache

from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class Settings:
    jwt_secret: str
    jwt_issuer: str
    jwt_expiry_hours: int
    schedule_timezone: str
    client_origin: str
    log_level: str
    seed_data: bool


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Read settings from the environment once per process."""
    return Settings(
        jwt_secret=os.getenv("JWT_SECRET", "change-me"),
        jwt_issuer=os.getenv("JWT_ISSUER", "shiftboard"),
        jwt_expiry_hours=int(os.getenv("JWT_EXPIRY_HOURS", "168")),
        schedule_timezone=os.getenv("SCHEDULE_TIMEZONE", "UTC"),
        client_origin=os.getenv("CLIENT_ORIGIN", "http://localhost:3000"),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        seed_data=_env_bool("SEED_DATA", False),
    )
