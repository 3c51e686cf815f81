"""Turn a translation API exchange into the body to serve.

Every result is classified into one :class:`ResponseKind` first, then handled
by a single ordered dispatch. Anything other than a usable ``body`` field
falls back to the original HTML.
"""
from __future__ import annotations

import gzip
import json
import logging
import zlib
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from wovn_core.clients.translation_api import ApiResponse, TransportError
from wovn_core.context import DiagnosticsSink, ErrorReporter, Tracer

LOGGER = logging.getLogger(__name__)

API_NAME = "WOVNio translation API"

# outbound header -> response header
DIAGNOSTIC_HEADERS = (
    ("X-Wovn-Cache", "x-cache"),
    ("X-Wovn-Cache-Hits", "x-cache-hits"),
    ("X-Wovn-Surrogate-Key", "x-wovn-surrogate-key"),
)


class ResponseKind(str, Enum):
    TRANSPORT_ERROR = "transport_error"
    UNSUCCESSFUL = "unsuccessful"
    SUCCESS_GZIP = "success_gzip"
    SUCCESS_RAW_DEV = "success_raw_dev"
    SUCCESS_INVALID_ENCODING = "success_invalid_encoding"


class FallbackReason(str, Enum):
    REQUEST_FAILURE = "request_failure"
    CONNECTION_FAILURE = "connection_failure"
    UNSUCCESSFUL_RESPONSE = "unsuccessful_response"
    INVALID_ENCODING = "invalid_encoding"
    MALFORMED_PAYLOAD = "malformed_payload"
    MISSING_BODY = "missing_body"


@dataclass(frozen=True)
class TranslationOutcome:
    body: str
    translated: bool
    kind: ResponseKind
    reason: Optional[FallbackReason] = None
    status_code: Optional[int] = None


class PayloadError(ValueError):
    """Success response whose body could not be decoded."""


def classify(response: Optional[ApiResponse], *, dev_mode: bool) -> ResponseKind:
    if response is None:
        return ResponseKind.TRANSPORT_ERROR
    if not response.is_success:
        return ResponseKind.UNSUCCESSFUL
    if (response.header("content-encoding") or "").strip().lower() == "gzip":
        return ResponseKind.SUCCESS_GZIP
    if dev_mode:
        return ResponseKind.SUCCESS_RAW_DEV
    return ResponseKind.SUCCESS_INVALID_ENCODING


def _parse_json(raw: bytes) -> Any:
    try:
        return json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, ValueError, RecursionError) as exc:
        raise PayloadError(f"response is not valid JSON: {exc}") from exc


def _gunzip(raw: bytes) -> bytes:
    try:
        return gzip.decompress(raw)
    except (OSError, EOFError, zlib.error) as exc:
        raise PayloadError(f"response is not valid gzip: {exc}") from exc


def extract_body(data: Any) -> Optional[str]:
    if not isinstance(data, dict):
        return None
    value = data.get("body")
    if isinstance(value, str):
        return value
    return None


def register_diagnostics(response: Optional[ApiResponse], sink: DiagnosticsSink) -> None:
    if response is None:
        return
    for outbound, inbound in DIAGNOSTIC_HEADERS:
        sink.register_custom_http_header(outbound, response.header(inbound))


class ResponseInterpreter:
    def __init__(
        self,
        *,
        tracer: Tracer,
        diagnostics: DiagnosticsSink,
        error_reporter: Optional[ErrorReporter] = None,
        dev_mode: bool = False,
        debug_mode: bool = False,
    ) -> None:
        self._tracer = tracer
        self._diagnostics = diagnostics
        self._errors: ErrorReporter = error_reporter or LOGGER
        self._dev_mode = dev_mode
        self._debug_mode = debug_mode

    def request_failed(self, original: str, exc: Exception) -> TranslationOutcome:
        """The request could not be built, so nothing was sent."""
        self._tracer.trace(f"API request not sent: {type(exc).__name__}")
        self._errors.error('Could not build request for %s: "%s"', API_NAME, exc)
        return TranslationOutcome(original, False, ResponseKind.TRANSPORT_ERROR, FallbackReason.REQUEST_FAILURE)

    def interpret(
        self,
        original: str,
        response: Optional[ApiResponse] = None,
        error: Optional[TransportError] = None,
    ) -> TranslationOutcome:
        if self._debug_mode:
            register_diagnostics(response, self._diagnostics)

        if error is not None or response is None:
            message = str(error) if error is not None else "no response"
            self._tracer.trace("API connection failure: " + message)
            self._errors.error('"%s" error occurred when contacting %s', message, API_NAME)
            return TranslationOutcome(original, False, ResponseKind.TRANSPORT_ERROR, FallbackReason.CONNECTION_FAILURE)

        kind = classify(response, dev_mode=self._dev_mode)
        status = response.status_code

        if kind is ResponseKind.UNSUCCESSFUL:
            self._tracer.trace(f"API response unsuccessful: status {status}")
            self._errors.error('Received "%s" from %s.', response.reason or status, API_NAME)
            return TranslationOutcome(original, False, kind, FallbackReason.UNSUCCESSFUL_RESPONSE, status)

        self._tracer.trace(f"API response successful: status {status}")

        if kind is ResponseKind.SUCCESS_INVALID_ENCODING:
            encoding = response.header("content-encoding") or ""
            self._tracer.trace("API response content-encoding invalid: " + encoding)
            self._errors.error('Received invalid content ("%s") from %s.', encoding, API_NAME)
            return TranslationOutcome(original, False, kind, FallbackReason.INVALID_ENCODING, status)

        try:
            raw = _gunzip(response.content) if kind is ResponseKind.SUCCESS_GZIP else response.content
            data = _parse_json(raw)
        except PayloadError as exc:
            self._tracer.trace("API response malformed: " + str(exc))
            self._errors.warning("Malformed payload from %s: %s", API_NAME, exc)
            return TranslationOutcome(original, False, kind, FallbackReason.MALFORMED_PAYLOAD, status)

        translated = extract_body(data)
        if translated is None:
            LOGGER.debug("%s response had no body field", API_NAME)
            return TranslationOutcome(original, False, kind, FallbackReason.MISSING_BODY, status)
        return TranslationOutcome(translated, True, kind, None, status)
