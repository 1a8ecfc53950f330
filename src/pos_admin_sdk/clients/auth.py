from __future__ import annotations

from ..models import TokenResponse, WorkerResponse
from .base import BaseClient, expect_object


class AuthClient(BaseClient):
    def login(self, email: str, password: str) -> TokenResponse:
        payload = {"email": email, "password": password}
        data = self.http.request("POST", "/auth/login", json_body=payload, module="auth", operation="login")
        return TokenResponse.model_validate(expect_object(data, "login"))

    def refresh(self, refresh_token: str) -> TokenResponse:
        data = self.http.request(
            "POST",
            "/auth/refresh",
            json_body={"refresh_token": refresh_token},
            module="auth",
            operation="refresh",
        )
        return TokenResponse.model_validate(expect_object(data, "refresh"))

    def worker_by_email(self, email: str) -> WorkerResponse:
        data = self._request(
            "GET",
            "/worker/getByEmail",
            params={"email": email},
            use_get_cache=False,
            module="auth",
            operation="worker_by_email",
        )
        return WorkerResponse.model_validate(expect_object(data, "worker profile"))
