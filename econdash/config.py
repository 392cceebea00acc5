from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import List, Mapping, Optional

DEFAULT_BACKEND_BASE = "http://127.0.0.1:5000/api"
DEFAULT_FRED_API_BASE = "https://api.stlouisfed.org/fred"
DEFAULT_CORS_ORIGINS = ["http://localhost:3000", "http://127.0.0.1:3000"]

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


@dataclass(frozen=True)
class Settings:
    backend_base: str = DEFAULT_BACKEND_BASE
    timeout: float = 10.0
    keep_monthly: Optional[int] = None
    keep_quarterly: Optional[int] = None
    fred_api_key: str = ""
    fred_api_base: str = DEFAULT_FRED_API_BASE
    log_level: str = "INFO"
    cors_origins: List[str] = field(default_factory=lambda: list(DEFAULT_CORS_ORIGINS))


def _as_float(value: Optional[str], default: float) -> float:
    if value is None or not value.strip():
        return default
    try:
        out = float(value)
    except ValueError:
        return default
    return out if out > 0 else default


def _as_keep(value: Optional[str]) -> Optional[int]:
    if value is None or not value.strip():
        return None
    try:
        out = int(value)
    except ValueError:
        return None
    return out if out > 0 else None


def _as_list(value: Optional[str], default: List[str]) -> List[str]:
    if value is None:
        return list(default)
    return [item.strip() for item in value.split(",") if item.strip()]


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    env = os.environ if environ is None else environ
    return Settings(
        backend_base=(env.get("ECONDASH_BACKEND_BASE") or DEFAULT_BACKEND_BASE).rstrip("/"),
        timeout=_as_float(env.get("ECONDASH_TIMEOUT"), 10.0),
        keep_monthly=_as_keep(env.get("ECONDASH_KEEP_MONTHLY")),
        keep_quarterly=_as_keep(env.get("ECONDASH_KEEP_QUARTERLY")),
        fred_api_key=env.get("FRED_API_KEY", ""),
        fred_api_base=(env.get("FRED_API_BASE") or DEFAULT_FRED_API_BASE).rstrip("/"),
        log_level=(env.get("ECONDASH_LOG_LEVEL") or "INFO").upper(),
        cors_origins=_as_list(env.get("ECONDASH_CORS_ORIGINS"), DEFAULT_CORS_ORIGINS),
    )


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging once; later calls only adjust the level."""
    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(level=level, format=LOG_FORMAT)
    root.setLevel(level)
