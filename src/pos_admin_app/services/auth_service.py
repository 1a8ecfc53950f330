from __future__ import annotations

import logging

from pos_admin_sdk import ApiError, ApiSession, TokenResponse, WorkerProfile

from ..telemetry import TelemetryLogger, auth_event

logger = logging.getLogger(__name__)


class AuthService:
    def __init__(self, session: ApiSession, *, telemetry: TelemetryLogger | None = None) -> None:
        self.session = session
        self.telemetry = telemetry

    def has_active_session(self) -> bool:
        return bool(self.session.token)

    def login(self, email: str, password: str) -> TokenResponse:
        logger.info("login_attempt")
        try:
            token = self.session.login(email, password)
        except ApiError as exc:
            logger.exception("login_failure")
            self._emit("login", success=False, error_code=exc.code)
            raise
        has_refresh_token = bool(token.refresh_token)
        logger.info("login_success", extra={"has_refresh_token": has_refresh_token})
        self._emit("login", success=True, extra={"has_refresh_token": has_refresh_token})
        return token

    def profile(self, *, force_refresh: bool = False) -> WorkerProfile:
        profile = self.session.profile_provider().get_profile(force_refresh=force_refresh)
        if self.session.branch_id is None and profile.branch_id is not None:
            self.session.set_branch(profile.branch_id)
        return profile

    def logout(self) -> None:
        logger.info("logout")
        self.session.clear()
        self._emit("logout", success=True)

    def _emit(self, action: str, *, success: bool, error_code: str | None = None, extra: dict | None = None) -> None:
        if self.telemetry is None:
            return
        self.telemetry.emit(auth_event(action, success=success, error_code=error_code, extra=extra))
