import gzip
import json
from datetime import datetime

import pytest

from wovn_core import config
from wovn_core.clients.translation_api import ApiResponse, TransportError
from wovn_core.config import TranslationSettings
from wovn_core.context import PageContext
from wovn_core.services.compression import decode_payload
from wovn_core.services.response_interpreter import FallbackReason
from wovn_core.services.translation import ApiTranslator, translate_html

ORIGINAL = "<html><body><h1>Hello</h1></body></html>"
TRANSLATED = "<html><body><h1>こんにちは</h1></body></html>"


class FakeTransport:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.calls = []

    def send(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        return self.response


def _settings(**overrides):
    params = dict(api_url="https://api.example.com:8443/v0/", api_timeout_seconds=1.5, project_token="TOKEN")
    params.update(overrides)
    return TranslationSettings(**params)


def _context(**overrides):
    params = dict(protocol="https", url="example.com/about/", pathname="/about/", lang_code="ja")
    params.update(overrides)
    return PageContext(**params)


def _gzip_ok(data):
    return ApiResponse(200, "OK", {"content-encoding": "gzip"}, gzip.compress(json.dumps(data).encode("utf-8")))


def _translate(transport, settings=None, context=None):
    return ApiTranslator(settings or _settings(), context or _context(), transport=transport).translate(ORIGINAL)


def test_request_sent_to_api():
    transport = FakeTransport(_gzip_ok({"body": TRANSLATED}))
    context = _context()
    ApiTranslator(_settings(), context, transport=transport).translate(ORIGINAL)

    (call,) = transport.calls
    assert call["scheme"] == "https"
    assert call["host"] == "api.example.com"
    assert call["port"] == 8443
    assert call["timeout"] == 1.5
    assert call["method"] == "POST"
    assert call["path"].startswith("/v0/translation?cache_key=%28token%3DTOKEN%26settings_hash%3D")
    assert call["headers"]["Content-Length"] == str(len(call["body"]))
    sent = decode_payload(call["body"])
    assert sent["body"] == ORIGINAL
    assert sent["url"] == "https://example.com/about/"
    assert sent["lang_code"] == "ja"
    assert "API connection established" in context.traces


def test_scenario_a_gzip_translation():
    assert _translate(FakeTransport(_gzip_ok({"body": TRANSLATED}))) == TRANSLATED


def test_scenario_b_missing_body_field():
    assert _translate(FakeTransport(_gzip_ok({"unexpected": True}))) == ORIGINAL


@pytest.mark.parametrize("error", [TransportError("timed out"), ConnectionRefusedError("refused"), TimeoutError()])
def test_scenario_c_connection_error(error):
    context = _context()
    translator = ApiTranslator(_settings(), context, transport=FakeTransport(error=error))
    outcome = translator.translate_with_outcome(ORIGINAL)
    assert outcome.body == ORIGINAL
    assert outcome.reason is FallbackReason.CONNECTION_FAILURE
    assert context.traces[0].startswith("API connection failure: ")
    assert "API connection established" not in context.traces


def test_scenario_d_server_error():
    assert _translate(FakeTransport(ApiResponse(500, "Internal Server Error"))) == ORIGINAL


def test_scenario_e_identity_encoding_outside_dev_mode():
    response = ApiResponse(200, "OK", {"content-encoding": "identity"}, json.dumps({"body": TRANSLATED}).encode())
    assert _translate(FakeTransport(response), settings=_settings(dev_mode=False)) == ORIGINAL


def test_scenario_f_identity_encoding_in_dev_mode():
    response = ApiResponse(200, "OK", {"content-encoding": "identity"}, json.dumps({"body": TRANSLATED}).encode())
    assert _translate(FakeTransport(response), settings=_settings(dev_mode=True)) == TRANSLATED


def test_same_inputs_hit_same_cache_key():
    first, second = FakeTransport(_gzip_ok({"body": "x"})), FakeTransport(_gzip_ok({"body": "x"}))
    _translate(first)
    _translate(second)
    assert first.calls[0]["path"] == second.calls[0]["path"]


def test_disabled_cache_gives_unique_paths():
    stamps = iter([datetime(2024, 1, 1, 12, 0, 0, 10), datetime(2024, 1, 1, 12, 0, 0, 11)])
    transport = FakeTransport(_gzip_ok({"body": "x"}))
    for _ in range(2):
        ApiTranslator(
            _settings(),
            _context(disable_cache=True),
            transport=transport,
            clock=lambda: next(stamps),
        ).translate(ORIGINAL)
    assert transport.calls[0]["path"] != transport.calls[1]["path"]


def test_debug_mode_flags_and_headers():
    response = _gzip_ok({"body": TRANSLATED})
    response.headers.update({"x-cache": "HIT", "x-cache-hits": "7", "x-wovn-surrogate-key": "k1"})
    transport = FakeTransport(response)
    context = _context(debug_mode=True)
    ApiTranslator(_settings(), context, transport=transport).translate(ORIGINAL)

    sent = decode_payload(transport.calls[0]["body"])
    assert sent["debug_mode"] == "true" and sent["log_html"] == "true"
    assert context.custom_headers["X-Wovn-Cache"] == "HIT"
    assert context.custom_headers["X-Wovn-Cache-Hits"] == "7"
    assert context.custom_headers["X-Wovn-Surrogate-Key"] == "k1"


def test_translate_html_uses_env_settings(monkeypatch):
    monkeypatch.setattr(config, "load_dotenv", lambda override=True: False)
    monkeypatch.setenv("WOVN_API_URL", "http://localhost:3001/v0/")
    monkeypatch.setenv("WOVN_PROJECT_TOKEN", "ENVTOKEN")
    config.get_settings.cache_clear()
    try:
        transport = FakeTransport(_gzip_ok({"body": TRANSLATED}))
        assert translate_html(ORIGINAL, _context(), transport=transport) == TRANSLATED
        assert transport.calls[0]["host"] == "localhost"
        assert transport.calls[0]["port"] == 3001
        assert decode_payload(transport.calls[0]["body"])["token"] == "ENVTOKEN"
    finally:
        config.get_settings.cache_clear()


def test_invalid_api_url_falls_back_without_sending():
    transport = FakeTransport(_gzip_ok({"body": TRANSLATED}))
    outcome = ApiTranslator(
        _settings(api_url="https://api.example.com:notaport/v0/"),
        _context(),
        transport=transport,
    ).translate_with_outcome(ORIGINAL)
    assert outcome.body == ORIGINAL
    assert outcome.reason is FallbackReason.REQUEST_FAILURE
    assert transport.calls == []


def test_body_with_lone_surrogates_is_still_sent():
    body = b"<p>\xff caf\xc3\xa9</p>".decode("utf-8", "surrogateescape")
    transport = FakeTransport(_gzip_ok({"body": TRANSLATED}))
    assert ApiTranslator(_settings(), _context(), transport=transport).translate(body) == TRANSLATED
    assert decode_payload(transport.calls[0]["body"])["body"] == body


def test_request_build_failure_falls_back_without_sending(monkeypatch):
    from wovn_core.services import translation

    def _boom(*args, **kwargs):
        raise UnicodeEncodeError("utf-8", "\udcff", 0, 1, "surrogates not allowed")

    monkeypatch.setattr(translation, "compress_payload", _boom)
    transport = FakeTransport(_gzip_ok({"body": TRANSLATED}))
    context = _context()
    outcome = ApiTranslator(_settings(), context, transport=transport).translate_with_outcome(ORIGINAL)
    assert outcome.body == ORIGINAL
    assert outcome.reason is FallbackReason.REQUEST_FAILURE
    assert transport.calls == []
    assert context.traces == ["API request not sent: UnicodeEncodeError"]


def test_deeply_nested_json_response_falls_back():
    response = ApiResponse(200, "OK", {"content-encoding": "gzip"}, gzip.compress(b"[" * 200000))
    assert _translate(FakeTransport(response)) == ORIGINAL
