from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

BASE_DIR = Path(__file__).resolve().parent.parent
load_dotenv(BASE_DIR / ".env")


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from exc


class Settings:
    """Client settings read from the environment (and ``.env`` at the project root)."""

    def __init__(self) -> None:
        self.username: Optional[str] = os.getenv("BIND_USERNAME")
        self.password: Optional[str] = os.getenv("BIND_PASSWORD")
        self.consumer_key: Optional[str] = os.getenv("BIND_CONSUMER_KEY")
        self.environment: str = os.getenv("BIND_ENVIRONMENT", "sandbox")
        self.timeout_ms: int = _env_int("BIND_TIMEOUT_MS", 30_000)
        # DirectLogin tokens carry no expiry; this is the lifetime we assume.
        self.token_lifetime_seconds: int = _env_int("BIND_TOKEN_LIFETIME_SECONDS", 3600)

    @property
    def has_credentials(self) -> bool:
        return all([self.username, self.password, self.consumer_key])


settings = Settings()
