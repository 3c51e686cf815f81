"""Per-request page context plus the collaborator interfaces the translator talks to."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Protocol
from urllib.parse import urlsplit

LOGGER = logging.getLogger(__name__)


class Tracer(Protocol):
    def trace(self, message: str) -> None: ...


class DiagnosticsSink(Protocol):
    def register_custom_http_header(self, name: str, value: Optional[str]) -> None: ...


class ErrorReporter(Protocol):
    def error(self, msg: str, *args: object) -> None: ...

    def warning(self, msg: str, *args: object) -> None: ...


def normalize_pathname(path: Optional[str]) -> str:
    """Strip query/fragment; keep a trailing slash only when the caller sent one."""
    if not path:
        return "/"
    clean = path.split("?", 1)[0].split("#", 1)[0]
    if not clean.startswith("/"):
        clean = "/" + clean
    return clean


@dataclass
class PageContext:
    protocol: str
    url: str
    pathname: str
    lang_code: str
    debug_mode: bool = False
    disable_cache: bool = False
    traces: List[str] = field(default_factory=list)
    custom_headers: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_url(
        cls,
        full_url: str,
        lang_code: str,
        *,
        debug_mode: bool = False,
        disable_cache: bool = False,
    ) -> "PageContext":
        parts = urlsplit(full_url)
        protocol = parts.scheme or "http"
        url = parts.netloc + (parts.path or "/")
        if parts.query:
            url += "?" + parts.query
        return cls(
            protocol=protocol,
            url=url,
            pathname=normalize_pathname(parts.path),
            lang_code=lang_code,
            debug_mode=debug_mode,
            disable_cache=disable_cache,
        )

    @property
    def page_url(self) -> str:
        return f"{self.protocol}://{self.url}"

    def trace(self, message: str) -> None:
        self.traces.append(message)
        LOGGER.debug("trace: %s", message)

    def register_custom_http_header(self, name: str, value: Optional[str]) -> None:
        if value is None:
            return
        self.custom_headers[name] = str(value)


__all__ = [
    "DiagnosticsSink",
    "ErrorReporter",
    "PageContext",
    "Tracer",
    "normalize_pathname",
]
