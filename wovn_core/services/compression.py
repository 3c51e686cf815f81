"""Gzip'd form encoding for request bodies."""
from __future__ import annotations

import gzip
from typing import Dict, Mapping, Tuple
from urllib.parse import quote_plus, unquote_plus

CONTENT_TYPE = "application/octet-stream"
CONTENT_ENCODING = "gzip"

# lone surrogates (HTML decoded with surrogateescape) pass through as raw bytes
_TEXT_ERRORS = "surrogatepass"


def _quote(value: object) -> str:
    return quote_plus(str(value), safe="", errors=_TEXT_ERRORS)


def encode_form(data: Mapping[str, str]) -> str:
    return "&".join(f"{_quote(k)}={_quote(v)}" for k, v in data.items())


def compress_payload(data: Mapping[str, str]) -> Tuple[bytes, Dict[str, str]]:
    """Return (gzip bytes, headers) ready for the transport."""
    payload = gzip.compress(encode_form(data).encode("ascii"), mtime=0)
    headers = {
        "Accept-Encoding": CONTENT_ENCODING,
        "Content-Type": CONTENT_TYPE,
        "Content-Length": str(len(payload)),
    }
    return payload, headers


def decode_payload(payload: bytes) -> Dict[str, str]:
    """Inverse of :func:`compress_payload`."""
    text = gzip.decompress(payload).decode("ascii")
    decoded: Dict[str, str] = {}
    if not text:
        return decoded
    for pair in text.split("&"):
        key, _, value = pair.partition("=")
        decoded[unquote_plus(key, errors=_TEXT_ERRORS)] = unquote_plus(value, errors=_TEXT_ERRORS)
    return decoded
