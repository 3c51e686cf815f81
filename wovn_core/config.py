"""Environment and runtime configuration helpers for the translation client."""
from __future__ import annotations

import json
import logging
import os
from dataclasses import asdict, dataclass, field
from functools import lru_cache
from typing import Any, Dict, Mapping

from dotenv import load_dotenv

LOGGER = logging.getLogger(__name__)

DEFAULT_API_URL = "https://wovn.global.ssl.fastly.net/v0/"
DEFAULT_API_TIMEOUT = 1.0
DEFAULT_URL_PATTERN = "query"

_TRUTHY = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class TranslationSettings:
    api_url: str = DEFAULT_API_URL
    api_timeout_seconds: float = DEFAULT_API_TIMEOUT
    project_token: str = ""
    url_pattern: str = DEFAULT_URL_PATTERN
    custom_lang_aliases: Mapping[str, str] = field(default_factory=dict)
    dev_mode: bool = False
    extra: Mapping[str, Any] = field(default_factory=dict)

    def as_dict(self) -> Dict[str, Any]:
        """Full settings structure as plain data (what the fingerprint hashes)."""
        data = asdict(self)
        data["custom_lang_aliases"] = dict(self.custom_lang_aliases)
        extra = dict(data.pop("extra") or {})
        for key, value in extra.items():
            data.setdefault(key, value)
        return data


def _float_or(default: float, raw: str | None) -> float:
    try:
        return float(raw) if raw is not None and raw.strip() else default
    except ValueError:
        LOGGER.warning("Invalid timeout %r, using %s", raw, default)
        return default


def _bool_env(raw: str | None) -> bool:
    return (raw or "").strip().lower() in _TRUTHY


def _parse_aliases(raw: str | None) -> Dict[str, str]:
    if not raw or not raw.strip():
        return {}
    try:
        parsed = json.loads(raw)
    except ValueError:
        LOGGER.warning("WOVN_CUSTOM_LANG_ALIASES is not valid JSON; ignoring it")
        return {}
    if not isinstance(parsed, dict):
        LOGGER.warning("WOVN_CUSTOM_LANG_ALIASES must be a JSON object; ignoring it")
        return {}
    return {str(k): str(v) for k, v in parsed.items()}


def load_settings() -> TranslationSettings:
    """Read settings from the environment (and .env), bypassing the cache."""
    load_dotenv(override=True)

    return TranslationSettings(
        api_url=os.getenv("WOVN_API_URL", DEFAULT_API_URL).strip() or DEFAULT_API_URL,
        api_timeout_seconds=_float_or(DEFAULT_API_TIMEOUT, os.getenv("WOVN_API_TIMEOUT")),
        project_token=os.getenv("WOVN_PROJECT_TOKEN", "").strip(),
        url_pattern=os.getenv("WOVN_URL_PATTERN", DEFAULT_URL_PATTERN).strip() or DEFAULT_URL_PATTERN,
        custom_lang_aliases=_parse_aliases(os.getenv("WOVN_CUSTOM_LANG_ALIASES")),
        dev_mode=_bool_env(os.getenv("WOVN_DEV_MODE")),
    )


@lru_cache(maxsize=1)
def get_settings() -> TranslationSettings:
    """Return cached translation settings."""
    return load_settings()


def reload_settings() -> TranslationSettings:
    """Force reloading .env contents and return the new settings."""
    get_settings.cache_clear()
    return get_settings()
