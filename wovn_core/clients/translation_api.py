# -*- coding: utf-8 -*-
"""Synchronous httpx transport for the translation API."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Mapping, Optional

import httpx


class TransportError(RuntimeError):
    """Raised when the exchange with the translation API could not complete."""


@dataclass(slots=True)
class ApiResponse:
    status_code: int
    reason: str = ""
    headers: Dict[str, str] = field(default_factory=dict)
    content: bytes = b""

    @property
    def is_success(self) -> bool:
        return 200 <= self.status_code < 300

    def header(self, name: str) -> Optional[str]:
        return self.headers.get(name.lower())


class TranslationApiClient:
    """Thin wrapper that sends one request and returns the raw response.

    Response bodies are returned exactly as received (still gzip'd when the
    server compressed them); decoding is the caller's job.
    """

    def __init__(self, *, client: Optional[httpx.Client] = None) -> None:
        self._client = client

    def send(
        self,
        *,
        host: str,
        port: int,
        timeout: float,
        path: str,
        headers: Mapping[str, str],
        body: bytes,
        method: str = "POST",
        scheme: str = "https",
    ) -> ApiResponse:
        default_port = 443 if scheme == "https" else 80
        netloc = host if port == default_port else f"{host}:{port}"
        url = f"{scheme}://{netloc}{path}"
        client = self._client or httpx.Client(timeout=httpx.Timeout(timeout))
        close_client = self._client is None
        try:
            request = client.build_request(
                method,
                url,
                headers=dict(headers),
                content=body,
                timeout=httpx.Timeout(timeout),
            )
            response = client.send(request, stream=True)
            try:
                raw = b"".join(response.iter_raw())
            finally:
                response.close()
        except (httpx.HTTPError, httpx.InvalidURL, httpx.StreamError) as exc:
            raise TransportError(str(exc) or type(exc).__name__) from exc
        except OSError as exc:
            raise TransportError(str(exc) or type(exc).__name__) from exc
        finally:
            if close_client:
                client.close()

        return ApiResponse(
            status_code=response.status_code,
            reason=response.reason_phrase or "",
            headers={k.lower(): v for k, v in response.headers.items()},
            content=raw,
        )
