from __future__ import annotations

import logging
import os
import sys
from typing import Optional


class _CleanLogFilter(logging.Filter):
    """Keep our own logs, drop chatty HTTP library lines.

    Controlled by env:
    - LOG_PRESET=clean|verbose (default: clean)
    - SHOW_THIRD_PARTY_LOGS=1 to allow third-party INFO/DEBUG
    """

    def __init__(self) -> None:
        super().__init__()
        self._show_third_party = (os.getenv("SHOW_THIRD_PARTY_LOGS", "0") or "").strip().lower() in {"1", "true", "yes", "on"}
        self._third_party_prefixes: tuple[str, ...] = (
            "httpx",
            "httpcore",
            "urllib3",
            "hpack",
        )

    def filter(self, record: logging.LogRecord) -> bool:  # noqa: A003
        name = record.name or ""

        if name.startswith("wovn_core") or name == "__main__":
            return True

        if name.startswith(self._third_party_prefixes):
            if self._show_third_party:
                return True
            return record.levelno >= logging.WARNING

        return record.levelno >= logging.WARNING


def _parse_level(raw: Optional[str], default: int) -> int:
    if not raw:
        return default
    value = raw.strip().upper()
    return getattr(logging, value, default)


def configure_logging() -> None:
    """Central logging config.

    Env:
    - LOG_PRESET=clean|verbose (default: clean)
    - LOG_LEVEL=INFO|DEBUG|WARNING (default: INFO)
    - LOG_FORMAT=... (stdlib logging format string)
    - HTTPX_LOG_LEVEL=... (default: WARNING, DEBUG for verbose)
    """

    preset = (os.getenv("LOG_PRESET", "clean") or "clean").strip().lower()
    verbose = preset in {"verbose", "debug"}

    root_level = _parse_level(os.getenv("LOG_LEVEL"), logging.INFO)

    # Reset existing handlers to avoid duplicates when the host app reconfigures.
    root = logging.getLogger()
    for h in list(root.handlers):
        root.removeHandler(h)

    handler = logging.StreamHandler(stream=sys.stdout)
    fmt = os.getenv(
        "LOG_FORMAT",
        "%(asctime)s %(levelname)s %(name)s:%(lineno)d | %(message)s",
    )
    handler.setFormatter(logging.Formatter(fmt))

    if not verbose:
        handler.addFilter(_CleanLogFilter())

    root.addHandler(handler)
    root.setLevel(root_level)

    httpx_default = "DEBUG" if verbose else "WARNING"
    httpx_level = _parse_level(os.getenv("HTTPX_LOG_LEVEL", httpx_default), logging.WARNING)
    logging.getLogger("httpx").setLevel(httpx_level)
    logging.getLogger("httpcore").setLevel(httpx_level)
