from __future__ import annotations

import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

DEFAULT_PORT = 3000
DEFAULT_ALLOWED_ORIGINS = (
    "https://redroofcomp.up.railway.app",
    "http://localhost:3000",
    "https://database4-production.up.railway.app",
)


def get_database_url() -> str:
    raw_url = os.getenv("DATABASE_URL", "sqlite:///./battleid.db")
    if raw_url.startswith("postgres://"):
        return raw_url.replace("postgres://", "postgresql+psycopg://", 1)
    if raw_url.startswith("postgresql://") and "+" not in raw_url.split("://", 1)[0]:
        return raw_url.replace("postgresql://", "postgresql+psycopg://", 1)
    return raw_url


def _env_flag(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _env_origins() -> tuple[str, ...]:
    raw = os.getenv("CORS_ALLOWED_ORIGINS", "")
    origins = tuple(origin.strip() for origin in raw.split(",") if origin.strip())
    return origins or DEFAULT_ALLOWED_ORIGINS


@dataclass(frozen=True)
class Settings:
    database_url: str = "sqlite:///./battleid.db"
    # "require" encrypts but does not verify the server certificate.
    database_sslmode: str = "require"
    port: int = DEFAULT_PORT
    allowed_origins: tuple[str, ...] = field(default=DEFAULT_ALLOWED_ORIGINS)
    repair_sequences: bool = True
    log_level: str = "INFO"


def load_settings() -> Settings:
    load_dotenv()
    return Settings(
        database_url=get_database_url(),
        database_sslmode=os.getenv("DATABASE_SSLMODE", "require"),
        port=int(os.getenv("PORT", str(DEFAULT_PORT))),
        allowed_origins=_env_origins(),
        repair_sequences=_env_flag("REPAIR_SEQUENCES", True),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
    )
