from __future__ import annotations

import json
import logging
import time
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any
from urllib.parse import urljoin

import requests
from requests.adapters import HTTPAdapter

from .config import ClientConfig
from .error_mapper import map_error
from .exceptions import RequestCancelledError, TransportError

logger = logging.getLogger(__name__)

BRANCH_HEADER = "X-Branch-ID"
_CACHE_KEY_HEADERS = {"Authorization", BRANCH_HEADER}

JsonPayload = dict[str, Any] | list[Any] | None


def _cancelled(message: str, operation: str) -> RequestCancelledError:
    return RequestCancelledError(
        code="REQUEST_CANCELLED",
        message=message,
        details={"type": "context_switched"},
        status_code=0,
        operation=operation,
    )


@dataclass
class HttpClient:
    """Pooled JSON transport shared by every resource client of a session.

    GET/HEAD are retried on transport errors and 5xx; mutations are sent
    once. Successful GETs are cached briefly, keyed by URL plus the auth and
    branch headers, and mutations drop the cached paths they declare.
    """

    config: ClientConfig
    session: requests.Session | None = None
    cache_ttl_seconds: float = 3.0
    enable_get_cache: bool = True
    _cache: dict[str, tuple[float, JsonPayload]] | None = None
    _context_versions: dict[str, int] | None = None

    def __post_init__(self) -> None:
        if self.session is None:
            self.session = requests.Session()
            adapter = HTTPAdapter(
                pool_connections=self.config.max_connections,
                pool_maxsize=self.config.max_connections,
            )
            self.session.mount("http://", adapter)
            self.session.mount("https://", adapter)
        if self._cache is None:
            self._cache = {}
        if self._context_versions is None:
            self._context_versions = {}

    def _build_url(self, path: str) -> str:
        return urljoin(self.config.api_base_url.rstrip("/") + "/", path.lstrip("/"))

    def request(
        self,
        method: str,
        path: str,
        *,
        headers: dict[str, str] | None = None,
        json_body: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
        module: str = "unknown",
        operation: str = "unknown",
        use_get_cache: bool = True,
        context_key: str | None = None,
        context_version: int | None = None,
        invalidate_paths: list[str] | None = None,
    ) -> JsonPayload:
        request_headers = {"Accept": "application/json", **(headers or {})}
        normalized_method = method.upper()
        url = self._build_url(path)
        qualified = f"{module}.{operation}"

        cache_key = self._cache_key(normalized_method, url, request_headers, params)
        use_cache = self.enable_get_cache and use_get_cache and cache_key is not None
        if use_cache:
            cached = self._read_cache(cache_key)
            if cached is not None:
                logger.debug("http_cache_hit", extra={"api_module": module, "operation": operation})
                return cached

        if context_key and context_version is None:
            context_version = self.get_context_version(context_key)
        if context_key and not self._context_is_current(context_key, context_version):
            raise _cancelled("Request cancelled before dispatch", qualified)

        started = time.monotonic()
        response = self._send(normalized_method, url, path, request_headers, json_body, params, qualified)
        duration_ms = int((time.monotonic() - started) * 1000)

        if context_key and not self._context_is_current(context_key, context_version):
            # The backend side effect happened; only the response is discarded.
            raise _cancelled("Request cancelled due to context switch", qualified)

        if not response.ok:
            logger.info(
                "http_request_failed",
                extra={
                    "api_module": module,
                    "operation": operation,
                    "status_code": response.status_code,
                    "duration_ms": duration_ms,
                },
            )
            try:
                decoded = response.json()
            except ValueError:
                decoded = None
            raise map_error(
                response.status_code,
                decoded if isinstance(decoded, dict) else None,
                response.text,
                operation=qualified,
            )

        parsed: JsonPayload = None
        if response.content:
            try:
                parsed = response.json()
            except ValueError:
                logger.warning(
                    "http_non_json_success_body",
                    extra={"method": normalized_method, "path": path, "status_code": response.status_code},
                )
        if use_cache:
            self._write_cache(cache_key, parsed)
        if normalized_method != "GET":
            self._invalidate_cache(invalidate_paths or [])
        logger.debug(
            "http_request_succeeded",
            extra={"api_module": module, "operation": operation, "duration_ms": duration_ms},
        )
        return parsed

    def _send(
        self,
        method: str,
        url: str,
        path: str,
        headers: dict[str, str],
        json_body: dict[str, Any] | None,
        params: dict[str, Any] | None,
        operation: str,
    ) -> requests.Response:
        attempts = self.config.retries + 1 if method in {"GET", "HEAD"} else 1
        for attempt in range(attempts):
            last_attempt = attempt >= attempts - 1
            try:
                response = self.session.request(
                    method=method,
                    url=url,
                    headers=headers,
                    json=json_body,
                    params=params,
                    timeout=(self.config.connect_timeout_seconds, self.config.read_timeout_seconds),
                    verify=self.config.verify_ssl,
                )
            except requests.RequestException as exc:
                if last_attempt:
                    raise TransportError(
                        code="TRANSPORT_ERROR",
                        message=str(exc),
                        details={"type": type(exc).__name__},
                        status_code=0,
                        operation=operation,
                    ) from exc
                logger.warning("http_transport_retry", extra={"method": method, "path": path, "attempt": attempt + 1})
            else:
                if response.status_code < 500 or last_attempt:
                    return response
                logger.warning(
                    "http_server_error_retry",
                    extra={"method": method, "path": path, "status_code": response.status_code},
                )
            time.sleep(self.config.retry_backoff_seconds * (2**attempt))
        raise RuntimeError("HTTP retry loop exited without a response")

    def switch_context(self, context_key: str) -> int:
        new_version = self.get_context_version(context_key) + 1
        self._context_versions[context_key] = new_version
        self.clear_cache()
        return new_version

    def get_context_version(self, context_key: str) -> int:
        return self._context_versions.get(context_key, 0)

    def clear_cache(self) -> None:
        self._cache.clear()

    def _context_is_current(self, context_key: str, context_version: int | None) -> bool:
        if context_version is None:
            return True
        return self.get_context_version(context_key) == context_version

    def _cache_key(
        self,
        method: str,
        url: str,
        headers: Mapping[str, str],
        params: dict[str, Any] | None,
    ) -> str | None:
        if method != "GET":
            return None
        safe_headers = {key: value for key, value in headers.items() if key in _CACHE_KEY_HEADERS}
        return json.dumps({"url": url, "headers": safe_headers, "params": params or {}}, sort_keys=True)

    def _read_cache(self, key: str) -> JsonPayload:
        record = self._cache.get(key)
        if not record:
            return None
        expires_at, payload = record
        if time.monotonic() >= expires_at:
            self._cache.pop(key, None)
            return None
        return payload

    def _write_cache(self, key: str, payload: JsonPayload) -> None:
        self._cache[key] = (time.monotonic() + self.cache_ttl_seconds, payload)

    def _invalidate_cache(self, paths: list[str]) -> None:
        doomed = [key for key in self._cache if any(path in key for path in paths)]
        for key in doomed:
            self._cache.pop(key, None)
