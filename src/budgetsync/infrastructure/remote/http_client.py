from __future__ import annotations

import json
import logging
import os
import socket
import time
import urllib.error
import urllib.parse
import urllib.request
from datetime import date
from decimal import Decimal
from typing import Any

from budgetsync.domain.errors import GatewayError, NetworkError, NotFound, Unauthenticated, ValidationError

logger = logging.getLogger(__name__)


def _json_default(obj: Any) -> Any:
    if isinstance(obj, date):
        return obj.isoformat()
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


def encode_json(value: Any) -> str:
    """
    Serialize a request payload, writing `Decimal` values as exact JSON numbers.

    `json.dumps` only knows floats, which would round large amounts and turn
    overflowing ones into the non-JSON token `Infinity`.
    """
    if isinstance(value, Decimal):
        if not value.is_finite():
            raise ValueError(f"Cannot send non-finite amount {value}")
        return format(value, "f")
    if isinstance(value, dict):
        items = (f"{json.dumps(str(key))}: {encode_json(item)}" for key, item in value.items())
        return "{" + ", ".join(items) + "}"
    if isinstance(value, (list, tuple)):
        return "[" + ", ".join(encode_json(item) for item in value) + "]"
    return json.dumps(value, default=_json_default, allow_nan=False)


def _error_message(body: Any, fallback: str) -> str:
    if isinstance(body, dict):
        for key in ("error", "message", "detail"):
            value = body.get(key)
            if value:
                return value if isinstance(value, str) else json.dumps(value, default=str)
    if isinstance(body, str) and body.strip():
        return body.strip()
    return fallback


class ApiHttpClient:
    """JSON-over-HTTP client for the remote budget service."""

    def __init__(
        self,
        base_url: str | None = None,
        timeout_seconds: float | None = None,
    ) -> None:
        self.base_url = (base_url or os.getenv("BUDGETSYNC_API_URL", "http://localhost:5001")).rstrip("/")
        self.timeout_seconds = timeout_seconds or float(os.getenv("BUDGETSYNC_TIMEOUT_SECONDS", "15"))
        self._token: str | None = None

    @property
    def has_authorization(self) -> bool:
        return self._token is not None

    def set_authorization(self, token: str | None) -> None:
        self._token = token or None
        logger.debug("ApiHttpClient authorization %s", "set" if self._token else "cleared")

    def request(
        self,
        method: str,
        path: str,
        payload: dict[str, Any] | None = None,
        *,
        authenticated: bool = True,
    ) -> Any:
        if authenticated and self._token is None:
            raise Unauthenticated(f"No credential available for {method} {path}")

        headers = {"Accept": "application/json"}
        data = None
        if payload is not None:
            data = encode_json(payload).encode("utf-8")
            headers["Content-Type"] = "application/json"
        if authenticated:
            headers["Authorization"] = f"Bearer {self._token}"

        req = urllib.request.Request(
            url=f"{self.base_url}{path}",
            data=data,
            headers=headers,
            method=method,
        )

        started = time.perf_counter()
        logger.info("ApiHttpClient request start method=%s path=%s timeout=%.1fs", method, path, self.timeout_seconds)
        try:
            with urllib.request.urlopen(req, timeout=self.timeout_seconds) as resp:
                status = resp.status
                raw = resp.read()
        except urllib.error.HTTPError as exc:
            elapsed = time.perf_counter() - started
            body = self._decode(exc.read() if exc.fp is not None else b"")
            logger.warning(
                "ApiHttpClient request rejected method=%s path=%s status=%d after %.2fs",
                method,
                path,
                exc.code,
                elapsed,
            )
            raise self._status_error(exc.code, body, method, path) from exc
        except (socket.timeout, TimeoutError, urllib.error.URLError, ConnectionError) as exc:
            elapsed = time.perf_counter() - started
            logger.warning("ApiHttpClient request failed method=%s path=%s after %.2fs: %s", method, path, elapsed, exc)
            raise NetworkError(f"{method} {path} failed: {getattr(exc, 'reason', exc)}") from exc

        body = self._decode(raw)
        logger.info(
            "ApiHttpClient request complete method=%s path=%s status=%d in %.2fs",
            method,
            path,
            status,
            time.perf_counter() - started,
        )
        if isinstance(body, _Undecodable):
            raise GatewayError(f"{method} {path} returned a non-JSON body", status=status)
        return body

    def quote(self, identifier: str) -> str:
        return urllib.parse.quote(str(identifier), safe="")

    def _decode(self, raw: bytes) -> Any:
        if not raw or not raw.strip():
            return None
        text = raw.decode("utf-8", errors="replace")
        try:
            return json.loads(text, parse_float=Decimal)
        except json.JSONDecodeError:
            return _Undecodable(text)

    def _status_error(self, status: int, body: Any, method: str, path: str) -> Exception:
        if isinstance(body, _Undecodable):
            body = body.text
        message = _error_message(body, f"{method} {path} failed with HTTP {status}")
        if status in (401, 403):
            return Unauthenticated(message)
        if status == 404:
            return NotFound(message)
        if status in (400, 422):
            return ValidationError(message)
        return GatewayError(message, status=status)


class _Undecodable:
    def __init__(self, text: str):
        self.text = text
