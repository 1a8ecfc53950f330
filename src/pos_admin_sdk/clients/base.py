from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable

from ..exceptions import UnauthorizedError
from ..http_client import BRANCH_HEADER, HttpClient

logger = logging.getLogger(__name__)

TokenRefresher = Callable[[], str]
TokenProvider = Callable[[], str | None]


@dataclass
class BaseClient:
    http: HttpClient
    access_token: str | None = None
    branch_id: int | None = None
    refresh_token_hook: TokenRefresher | None = None
    token_provider: TokenProvider | None = None
    # Requests made after this context moves on are cancelled or discarded.
    context_key: str | None = None
    context_version: int | None = None

    def _auth_headers(self) -> dict[str, str]:
        headers: dict[str, str] = {}
        if self.token_provider is not None:
            self.access_token = self.token_provider() or self.access_token
        if self.access_token:
            headers["Authorization"] = f"Bearer {self.access_token}"
        if self.branch_id is not None:
            headers[BRANCH_HEADER] = str(self.branch_id)
        return headers

    def _request(self, method: str, path: str, **kwargs: Any):
        headers = kwargs.pop("headers", {})
        if self.context_key is not None:
            kwargs.setdefault("context_key", self.context_key)
            kwargs.setdefault("context_version", self.context_version)
        try:
            return self.http.request(method, path, headers={**self._auth_headers(), **headers}, **kwargs)
        except UnauthorizedError:
            if self.refresh_token_hook is None:
                raise
            logger.info("auth_token_refresh_retry", extra={"method": method, "path": path})
            self.access_token = self.refresh_token_hook()
        return self.http.request(method, path, headers={**self._auth_headers(), **headers}, **kwargs)


def expect_object(data: Any, what: str) -> dict[str, Any]:
    if not isinstance(data, dict):
        raise ValueError(f"Expected {what} response to be a JSON object")
    return data
