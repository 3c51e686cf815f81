"""Lightweight, opt-in timing logs for the translation API exchange.

Logging only, never changes behavior. Enable by setting `ENABLE_TIMING_LOGS=1`.
"""

from __future__ import annotations

import logging
import os
import time
from contextlib import contextmanager
from typing import Any, Dict, Iterator


_TIMING_LOGGER = logging.getLogger("wovn_core.timing")


def timing_enabled() -> bool:
    return os.getenv("ENABLE_TIMING_LOGS", "0").strip().lower() not in {"", "0", "false", "off", "no"}


def _clean_fields(fields: Dict[str, Any]) -> Dict[str, Any]:
    # never emit whole HTML bodies
    cleaned: Dict[str, Any] = {}
    for key, value in (fields or {}).items():
        if value is None:
            continue
        if isinstance(value, (str, bytes)) and len(value) > 256:
            cleaned[key] = f"<{type(value).__name__}:{len(value)}>"
        else:
            cleaned[key] = value
    return cleaned


def log_timing(event: str, duration_ms: float, **fields: Any) -> None:
    if not timing_enabled():
        return
    payload = {
        "event": event,
        "ms": round(float(duration_ms), 2),
    }
    payload.update(_clean_fields(fields))
    _TIMING_LOGGER.info("timing %s", event, extra={"timing": payload})


@contextmanager
def timed(event: str, **fields: Any) -> Iterator[None]:
    start = time.perf_counter()
    try:
        yield
    finally:
        log_timing(event, (time.perf_counter() - start) * 1000.0, **fields)
