"""Runtime settings and logging setup.

Values are read from Streamlit secrets first, then environment variables,
then the defaults below. Reading secrets outside a Streamlit run is allowed;
a missing ``secrets.toml`` simply falls through to the environment.
"""

from __future__ import annotations

import logging
import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import streamlit as st

logger = logging.getLogger(__name__)

APP_NAME = "月光生活家"
VERSION = "1.0.0"

DEFAULT_MODEL = "deepseek-chat"
DEFAULT_BASE_URL = "https://api.deepseek.com"
PLACEHOLDER_KEYS = {"", "sk-xxxx"}

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


@dataclass(frozen=True)
class Features:
    ai_insights: bool = True
    budget_management: bool = True
    mood_tracking: bool = True
    image_upload: bool = True


@dataclass(frozen=True)
class Settings:
    api_key: str | None = None
    model: str = DEFAULT_MODEL
    base_url: str = DEFAULT_BASE_URL
    max_retries: int = 2
    data_dir: Path = Path("data")
    log_level: str = "INFO"
    features: Features = Features()

    @property
    def has_api_key(self) -> bool:
        return bool(self.api_key) and self.api_key not in PLACEHOLDER_KEYS

    @property
    def insight_cache_key(self) -> tuple[bool, str, str, bool]:
        """Settings that change what an insight request returns."""

        return (self.has_api_key, self.model, self.base_url, self.features.ai_insights)


def _secret(name: str) -> Any:
    try:
        return st.secrets.get(name)
    except Exception:  # no secrets.toml outside a configured Streamlit app
        return None


def _lookup(name: str, default: Any = None) -> Any:
    value = _secret(name)
    if value is None or value == "":
        value = os.getenv(name)
    if value is None or value == "":
        return default
    return value


def _flag(name: str, default: bool = True) -> bool:
    value = _lookup(name)
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _TRUE:
        return True
    if text in _FALSE:
        return False
    logger.warning("Ignoring unrecognised value %r for %s", value, name)
    return default


def _int(name: str, default: int) -> int:
    value = _lookup(name)
    if value is None:
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        logger.warning("Ignoring non-integer value %r for %s", value, name)
        return default


def load_settings() -> Settings:
    """Assemble :class:`Settings` from secrets and the environment."""

    api_key = _lookup("DEEPSEEK_API_KEY")
    if api_key is not None and str(api_key).strip() in PLACEHOLDER_KEYS:
        api_key = None

    settings = Settings(
        api_key=str(api_key).strip() if api_key else None,
        model=str(_lookup("LLM_MODEL", DEFAULT_MODEL)),
        base_url=str(_lookup("LLM_BASE_URL", DEFAULT_BASE_URL)),
        max_retries=_int("LLM_MAX_RETRIES", 2),
        data_dir=Path(_lookup("MOONLIGHT_DATA_DIR", "data")),
        log_level=str(_lookup("MOONLIGHT_LOG_LEVEL", "INFO")).upper(),
        features=Features(
            ai_insights=_flag("FEATURE_AI_INSIGHTS"),
            budget_management=_flag("FEATURE_BUDGET_MANAGEMENT"),
            mood_tracking=_flag("FEATURE_MOOD_TRACKING"),
            image_upload=_flag("FEATURE_IMAGE_UPLOAD"),
        ),
    )
    logger.debug(
        "Settings loaded (model=%s, base_url=%s, has_api_key=%s)",
        settings.model,
        settings.base_url,
        settings.has_api_key,
    )
    return settings


def configure_logging(level: str = "INFO") -> None:
    """Install a single stdout handler on the root logger."""

    root = logging.getLogger()
    if any(getattr(handler, "_moonlight", False) for handler in root.handlers):
        root.setLevel(level)
        return

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s"))
    handler._moonlight = True  # type: ignore[attr-defined]
    root.addHandler(handler)
    root.setLevel(level)

    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("openai").setLevel(logging.WARNING)
