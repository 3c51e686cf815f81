"""Outbound request assembly: cache-key-bearing path plus form payload."""
from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Dict, Optional
from urllib.parse import urlsplit

from wovn_core.cache_key import Clock, compute_cache_key
from wovn_core.config import TranslationSettings
from wovn_core.context import PageContext

PRODUCT_NAME = "WOVN.py"
PRODUCT_VERSION = "0.1.0"


@dataclass(frozen=True)
class ApiEndpoint:
    scheme: str
    host: str
    port: int
    path: str


def parse_api_url(api_url: str) -> ApiEndpoint:
    parts = urlsplit(api_url)
    scheme = (parts.scheme or "https").lower()
    port = parts.port or (443 if scheme == "https" else 80)
    return ApiEndpoint(scheme=scheme, host=parts.hostname or "", port=port, path=parts.path or "")


def build_cache_key(
    body: str,
    settings: TranslationSettings,
    context: PageContext,
    *,
    clock: Optional[Clock] = None,
) -> str:
    return compute_cache_key(
        token=settings.project_token,
        settings=settings.as_dict(),
        body=body,
        pathname=context.pathname,
        lang_code=context.lang_code,
        disable_cache=context.disable_cache,
        clock=clock,
    )


def build_request_path(
    body: str,
    settings: TranslationSettings,
    context: PageContext,
    *,
    clock: Optional[Clock] = None,
) -> str:
    base = parse_api_url(settings.api_url).path
    if base.endswith("/"):
        base = base[:-1]
    return f"{base}/translation?cache_key={build_cache_key(body, settings, context, clock=clock)}"


def build_request_data(body: str, settings: TranslationSettings, context: PageContext) -> Dict[str, str]:
    """Form fields sent to the translation API.

    Optional features are signalled by key presence: ``debug_mode``/``log_html``
    only appear in debug mode and ``custom_lang_aliases`` only when aliases are
    configured.
    """

    data: Dict[str, str] = {
        "url": context.page_url,
        "token": settings.project_token,
        "lang_code": context.lang_code,
        "url_pattern": settings.url_pattern,
        "product": PRODUCT_NAME,
        "version": PRODUCT_VERSION,
        "body": body,
    }
    if context.debug_mode:
        data["debug_mode"] = "true"
        data["log_html"] = "true"

    aliases = dict(settings.custom_lang_aliases or {})
    if aliases:
        data["custom_lang_aliases"] = json.dumps(aliases, sort_keys=True, ensure_ascii=False)

    return data
