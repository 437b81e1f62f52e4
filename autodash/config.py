"""Runtime settings read from the environment."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Optional

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def require(env_key: str) -> str:
    val = os.getenv(env_key)
    if not val:
        raise RuntimeError(f"Missing required environment variable: {env_key}")
    return val


def _env_number(env_key: str, default: str, cast):
    raw = os.getenv(env_key, default)
    try:
        return cast(raw)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Invalid value for {env_key}: {raw!r}") from exc


@dataclass(frozen=True)
class Settings:
    openai_api_key: Optional[str]
    openai_model: str = "gpt-4o-mini"
    temperature: float = 0.2
    sample_size: int = 50
    completion_timeout: float = 60.0
    forecast_max_horizon: int = 12
    forecast_jitter: float = 0.05
    log_level: str = "INFO"


def load_settings(*, require_api_key: bool = False) -> Settings:
    return Settings(
        openai_api_key=require("OPENAI_API_KEY") if require_api_key else os.getenv("OPENAI_API_KEY"),
        openai_model=os.getenv("OPENAI_MODEL", "gpt-4o-mini"),
        temperature=_env_number("AUTODASH_TEMPERATURE", "0.2", float),
        sample_size=_env_number("AUTODASH_SAMPLE_SIZE", "50", int),
        completion_timeout=_env_number("AUTODASH_COMPLETION_TIMEOUT", "60", float),
        forecast_max_horizon=_env_number("AUTODASH_FORECAST_MAX_HORIZON", "12", int),
        forecast_jitter=_env_number("AUTODASH_FORECAST_JITTER", "0.05", float),
        log_level=os.getenv("AUTODASH_LOG_LEVEL", "INFO").upper(),
    )


def configure_logging(level: str = "INFO") -> None:
    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(format=LOG_FORMAT)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
