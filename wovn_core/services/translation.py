"""HTML page translation through the WOVN translation API."""
from __future__ import annotations

import logging
from typing import Mapping, Optional, Protocol

from wovn_core.cache_key import Clock
from wovn_core.clients.translation_api import ApiResponse, TranslationApiClient, TransportError
from wovn_core.config import TranslationSettings, get_settings
from wovn_core.context import ErrorReporter, PageContext
from wovn_core.services.compression import compress_payload
from wovn_core.services.request_builder import build_request_data, build_request_path, parse_api_url
from wovn_core.services.response_interpreter import ResponseInterpreter, TranslationOutcome
from wovn_core.telemetry import timed

LOGGER = logging.getLogger(__name__)


class Transport(Protocol):
    def send(
        self,
        *,
        host: str,
        port: int,
        timeout: float,
        path: str,
        headers: Mapping[str, str],
        body: bytes,
        method: str = ...,
        scheme: str = ...,
    ) -> ApiResponse: ...


class ApiTranslator:
    """Send one rendered page to the API and return the translated HTML.

    Holds no state between calls beyond its collaborators; build one per
    request. ``translate`` never raises and returns either the API's body or
    the original ``body`` unchanged.
    """

    def __init__(
        self,
        settings: TranslationSettings,
        context: PageContext,
        *,
        transport: Optional[Transport] = None,
        error_reporter: Optional[ErrorReporter] = None,
        clock: Optional[Clock] = None,
    ) -> None:
        self._settings = settings
        self._context = context
        self._transport: Transport = transport or TranslationApiClient()
        self._errors: ErrorReporter = error_reporter or LOGGER
        self._clock = clock

    def translate(self, body: str) -> str:
        return self.translate_with_outcome(body).body

    def translate_with_outcome(self, body: str) -> TranslationOutcome:
        settings = self._settings
        context = self._context
        interpreter = ResponseInterpreter(
            tracer=context,
            diagnostics=context,
            error_reporter=self._errors,
            dev_mode=settings.dev_mode,
            debug_mode=context.debug_mode,
        )

        try:
            endpoint = parse_api_url(settings.api_url)
            path = build_request_path(body, settings, context, clock=self._clock)
            payload, headers = compress_payload(build_request_data(body, settings, context))
        except Exception as exc:
            return interpreter.request_failed(body, exc)

        try:
            with timed("translation_api.request", host=endpoint.host, lang=context.lang_code, bytes=len(payload)):
                response = self._transport.send(
                    host=endpoint.host,
                    port=endpoint.port,
                    timeout=settings.api_timeout_seconds,
                    method="POST",
                    path=path,
                    headers=headers,
                    body=payload,
                    scheme=endpoint.scheme,
                )
        except TransportError as exc:
            return interpreter.interpret(body, error=exc)
        except OSError as exc:
            return interpreter.interpret(body, error=TransportError(str(exc) or type(exc).__name__))

        context.trace("API connection established")
        outcome = interpreter.interpret(body, response=response)
        LOGGER.debug("translation outcome kind=%s reason=%s", outcome.kind.value, outcome.reason)
        return outcome


def translate_html(
    body: str,
    context: PageContext,
    settings: Optional[TranslationSettings] = None,
    *,
    transport: Optional[Transport] = None,
) -> str:
    """Translate ``body`` with the environment settings unless ``settings`` is given."""
    return ApiTranslator(settings or get_settings(), context, transport=transport).translate(body)
