from __future__ import annotations

import hashlib
import json
from datetime import datetime
from typing import Any, Callable, Dict, Mapping, Optional
from urllib.parse import quote_plus

Clock = Callable[[], datetime]


def _escape(value: str) -> str:
    return quote_plus(value, safe="", errors="surrogatepass")


def canonical_settings_json(settings: Mapping[str, Any]) -> str:
    return json.dumps(dict(settings), sort_keys=True, ensure_ascii=False, separators=(",", ":"), default=str)


def settings_fingerprint(settings: Mapping[str, Any]) -> str:
    """MD5 of the settings serialized with stable key order.

    The remote cache is keyed on this value, so two processes holding the same
    settings must produce the same digest regardless of dict insertion order.
    """

    return hashlib.md5(canonical_settings_json(settings).encode("utf-8", errors="surrogatepass")).hexdigest()


def body_fingerprint(body: str) -> str:
    return hashlib.md5((body or "").encode("utf-8", errors="surrogatepass")).hexdigest()


def disable_cache_stamp(now: datetime) -> str:
    return now.strftime("%Y%m%d%H%M%S%f")


def compute_cache_key(
    *,
    token: str,
    settings: Mapping[str, Any],
    body: str,
    pathname: str,
    lang_code: str,
    disable_cache: bool = False,
    clock: Optional[Clock] = None,
) -> str:
    """Opaque, percent-encoded cache key for one translation request.

    key = escape("(token=..&settings_hash=..&body_hash=..&path=..&lang=..[&disableCache=..])")
    """

    components: Dict[str, str] = {
        "token": token or "",
        "settings_hash": settings_fingerprint(settings),
        "body_hash": body_fingerprint(body),
        "path": pathname or "",
        "lang": lang_code or "",
    }
    if disable_cache:
        components["disableCache"] = disable_cache_stamp((clock or datetime.now)())
    packed = "&".join(f"{k}={v}" for k, v in components.items())
    return _escape(f"({packed})")
