# app/gateway/http.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional

import httpx

logger = logging.getLogger("billing.gateway")


@dataclass
class HttpResponse:
    status_code: int
    json: Optional[dict[str, Any]]
    text: str


class HttpClient:
    def __init__(self, base_url: str, timeout_s: float = 5.0, transport: httpx.BaseTransport | None = None):
        self._client = httpx.Client(base_url=base_url.rstrip("/"), timeout=timeout_s, transport=transport)

    def post(self, path: str, *, json_body: dict[str, Any] | None = None, headers: dict[str, str] | None = None) -> HttpResponse:
        r = self._client.post(path, headers=headers, json=json_body)
        logger.debug("POST %s -> %s", path, r.status_code)
        return self._wrap(r)

    def get(self, path: str, *, headers: dict[str, str] | None = None) -> HttpResponse:
        r = self._client.get(path, headers=headers)
        logger.debug("GET %s -> %s", path, r.status_code)
        return self._wrap(r)

    def close(self) -> None:
        self._client.close()

    @staticmethod
    def _wrap(r: httpx.Response) -> HttpResponse:
        try:
            payload = r.json()
        except ValueError:
            payload = None
        if payload is not None and not isinstance(payload, dict):
            payload = {"data": payload}
        return HttpResponse(status_code=r.status_code, json=payload, text=r.text)


def is_retryable_http(code: int) -> bool:
    # Transient / throttling / gateway issues
    return code in (408, 425, 429, 500, 502, 503, 504)
