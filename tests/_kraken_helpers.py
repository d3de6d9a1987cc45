from __future__ import annotations

import base64
import json
from typing import Any, Dict, List

import httpx

API_KEY = "test-key"
API_SECRET = base64.b64encode(b"super-secret").decode("utf-8")
FIXED_NONCE = 1616492376594000000


class RecordingTransport:
    """Answer every request with a fixed JSON payload and remember the requests."""

    def __init__(self, payload: Any, status_code: int = 200) -> None:
        self.payload = payload
        self.status_code = status_code
        self.requests: List[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(self.status_code, content=json.dumps(self.payload).encode("utf-8"))

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]


def envelope(result: Any = None, error: List[str] | None = None) -> Dict[str, Any]:
    payload: Dict[str, Any] = {"error": error or []}
    if result is not None:
        payload["result"] = result
    return payload


def raw(result: Any = None, error: List[str] | None = None) -> bytes:
    return json.dumps(envelope(result, error)).encode("utf-8")
