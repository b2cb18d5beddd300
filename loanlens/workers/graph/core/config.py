"""Environment-driven settings for the LoanLens service."""
from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional, Tuple

from .constants import (
    DEFAULT_API_BASE,
    DEFAULT_DATASET,
    DEFAULT_DATASET_MEMBER,
)
from .errors import ConfigurationError

_PACKAGE_DIR = Path(__file__).resolve().parents[3]
DEFAULT_STATIC_DIR = _PACKAGE_DIR / "public"
DEFAULT_CORS_ORIGINS = ("http://localhost:3000", "http://127.0.0.1:3000")


@dataclass(frozen=True)
class KaggleCredentials:
    key: str
    username: Optional[str] = None


@dataclass(frozen=True)
class Settings:
    dataset: str = DEFAULT_DATASET
    dataset_member: str = DEFAULT_DATASET_MEMBER
    api_base: str = DEFAULT_API_BASE
    credentials_path: str = "kaggle.json"
    api_key: Optional[str] = None
    download_timeout: float = 60.0
    cache_ttl: float = 300.0
    static_dir: str = str(DEFAULT_STATIC_DIR)
    cors_origins: Tuple[str, ...] = DEFAULT_CORS_ORIGINS
    log_level: str = "INFO"
    port: int = 8000

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        env = os.environ if environ is None else environ
        origins = env.get("LOANLENS_CORS_ORIGINS")
        return cls(
            dataset=env.get("LOANLENS_DATASET", DEFAULT_DATASET),
            dataset_member=env.get("LOANLENS_DATASET_MEMBER", DEFAULT_DATASET_MEMBER),
            api_base=env.get("KAGGLE_API_BASE", DEFAULT_API_BASE).rstrip("/"),
            credentials_path=env.get("KAGGLE_CONFIG_PATH", "kaggle.json"),
            api_key=env.get("KAGGLE_KEY") or None,
            download_timeout=_number(env, "LOANLENS_DOWNLOAD_TIMEOUT", 60.0),
            cache_ttl=_number(env, "LOANLENS_CACHE_TTL", 300.0),
            static_dir=env.get("LOANLENS_STATIC_DIR", str(DEFAULT_STATIC_DIR)),
            cors_origins=(
                tuple(origin.strip() for origin in origins.split(",") if origin.strip())
                if origins is not None
                else DEFAULT_CORS_ORIGINS
            ),
            log_level=env.get("LOG_LEVEL", "INFO").upper(),
            port=int(_number(env, "PORT", 8000)),
        )


def _number(env: Mapping[str, str], name: str, default: float) -> float:
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = float(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be numeric, got {raw!r}") from exc
    if value < 0:
        raise ConfigurationError(f"{name} must not be negative")
    return value


def load_credentials(settings: Settings) -> KaggleCredentials:
    """Resolve the bearer key, preferring ``KAGGLE_KEY`` over the credentials file."""
    if settings.api_key:
        return KaggleCredentials(key=settings.api_key)

    path = Path(settings.credentials_path)
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError as exc:
        raise ConfigurationError(f"Kaggle credentials file not found: {path}") from exc
    except (OSError, json.JSONDecodeError) as exc:
        raise ConfigurationError(f"Kaggle credentials file is unreadable: {path}") from exc

    if not isinstance(payload, dict) or not payload.get("key"):
        raise ConfigurationError(f"Kaggle credentials file has no key: {path}")
    username = payload.get("username")
    return KaggleCredentials(key=str(payload["key"]), username=str(username) if username else None)


__all__ = ["KaggleCredentials", "Settings", "load_credentials"]
