"""Project-level configuration and path helpers."""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Union

PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
DATA_DIR = PROJECT_ROOT / "03_data"
LOGS_DIR = PROJECT_ROOT / "04_logs"
DEFAULT_DB_PATH = DATA_DIR / "chat_bridge.db"
DEFAULT_LOG_PATH = LOGS_DIR / "app.log"

DEFAULT_MODEL = "claude-3-5-sonnet-20241022"
DEFAULT_DEDUP_TTL_SECONDS = 60
DEFAULT_HISTORY_LIMIT = 10
DEFAULT_OPENAI_API_URL = "https://api.openai.com/v1/completions"

DATA_DIR.mkdir(parents=True, exist_ok=True)
LOGS_DIR.mkdir(parents=True, exist_ok=True)


PathLike = Union[str, Path]


def resolve_db_path(env_value: PathLike | None = None) -> PathLike:
    """Resolve DATABASE_URL to an absolute path."""
    if not env_value:
        return DEFAULT_DB_PATH

    if str(env_value) == ":memory:":
        return ":memory:"

    candidate = Path(env_value)
    return candidate if candidate.is_absolute() else PROJECT_ROOT / candidate


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None
    if value <= 0:
        raise ValueError(f"{name} must be positive, got {value}")
    return value


@dataclass(frozen=True)
class Settings:
    """Runtime settings consumed by the bridge."""

    upstream_model: str = DEFAULT_MODEL
    dedup_ttl_seconds: int = DEFAULT_DEDUP_TTL_SECONDS
    history_limit: int = DEFAULT_HISTORY_LIMIT
    wechat_token: str = ""
    anthropic_api_key: str | None = None
    openai_api_key: str | None = None
    openai_api_url: str = DEFAULT_OPENAI_API_URL
    db_path: PathLike = DEFAULT_DB_PATH

    @classmethod
    def from_env(cls) -> "Settings":
        """
        Build settings from environment variables.

        Expects `.env` to be loaded already (see main.py).

        Raises:
            ValueError: If an integer variable is malformed or not positive.
        """
        return cls(
            upstream_model=os.getenv("UPSTREAM_MODEL", DEFAULT_MODEL),
            dedup_ttl_seconds=_env_int("DEDUP_TTL_SECONDS", DEFAULT_DEDUP_TTL_SECONDS),
            history_limit=_env_int("HISTORY_LIMIT", DEFAULT_HISTORY_LIMIT),
            wechat_token=os.getenv("WECHAT_TOKEN", ""),
            anthropic_api_key=os.getenv("ANTHROPIC_API_KEY"),
            openai_api_key=os.getenv("OPENAI_API_KEY"),
            openai_api_url=os.getenv("OPENAI_API_URL", DEFAULT_OPENAI_API_URL),
            db_path=resolve_db_path(os.getenv("DATABASE_URL")),
        )
