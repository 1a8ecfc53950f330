from __future__ import annotations

import logging
from dataclasses import dataclass

from .auth_store import AuthStore, ProfileStore
from .clients.auth import AuthClient
from .clients.base import BaseClient
from .clients.cards_client import CardsClient
from .clients.catalog_client import CatalogClient
from .clients.credits_client import CreditsClient
from .clients.inventory_details_client import InventoryDetailsClient
from .clients.sale_details_client import SaleDetailsClient
from .clients.sales_client import SalesClient
from .config import ClientConfig
from .exceptions import ForbiddenError, NotAuthenticatedError, SessionExpiredError, UnauthorizedError
from .http_client import HttpClient
from .models import SessionData, TokenResponse, WorkerProfile
from .profile_cache import ProfileProvider, build_worker_profile

logger = logging.getLogger(__name__)

BRANCH_CONTEXT = "branch"


@dataclass
class ApiSession:
    config: ClientConfig
    auth_store: AuthStore | None = None
    profile_store: ProfileStore | None = None
    http: HttpClient | None = None
    token: str | None = None
    refresh_token: str | None = None
    email: str | None = None
    branch_id: int | None = None

    def __post_init__(self) -> None:
        self.auth_store = self.auth_store or AuthStore()
        self.profile_store = self.profile_store or ProfileStore()
        self.http = self.http or HttpClient(config=self.config)
        stored = self.auth_store.load()
        if stored and not self.token:
            self.token = stored.access_token
            self.refresh_token = stored.refresh_token
            self.email = stored.email
            self.branch_id = stored.branch_id
        if self.branch_id is None:
            self.branch_id = self.config.default_branch_id

    def _client(self, client_type: type[BaseClient]) -> BaseClient:
        return client_type(
            http=self.http,
            access_token=self.token,
            branch_id=self.branch_id,
            refresh_token_hook=self.refresh_access_token,
            token_provider=self.current_token,
            context_key=BRANCH_CONTEXT,
            context_version=self.context_version(),
        )

    def current_token(self) -> str | None:
        return self.token

    def context_version(self) -> int:
        return self.http.get_context_version(BRANCH_CONTEXT)

    def auth_client(self) -> AuthClient:
        return self._client(AuthClient)

    def sales_client(self) -> SalesClient:
        return self._client(SalesClient)

    def sale_details_client(self) -> SaleDetailsClient:
        return self._client(SaleDetailsClient)

    def inventory_details_client(self) -> InventoryDetailsClient:
        return self._client(InventoryDetailsClient)

    def cards_client(self) -> CardsClient:
        return self._client(CardsClient)

    def catalog_client(self) -> CatalogClient:
        return self._client(CatalogClient)

    def credits_client(self) -> CreditsClient:
        return self._client(CreditsClient)

    def profile_provider(self) -> ProfileProvider:
        return ProfileProvider(
            fetcher=self.fetch_profile,
            store=self.profile_store,
            ttl_seconds=self.config.profile_cache_ttl_seconds,
        )

    def login(self, email: str, password: str) -> TokenResponse:
        token = AuthClient(http=self.http).login(email, password)
        self.establish(token, email=email)
        return token

    def establish(self, token: TokenResponse, *, email: str | None = None) -> None:
        self.token = token.access_token
        self.refresh_token = token.refresh_token or self.refresh_token
        if email is not None:
            self.email = email
        self._persist()

    def refresh_access_token(self) -> str:
        """Exchange the refresh credential for a new bearer token.

        A definitive rejection clears every piece of local session state and
        raises ``SessionExpiredError`` so the caller restarts authentication.
        """
        if not self.refresh_token:
            self.clear()
            raise SessionExpiredError(
                code="SESSION_EXPIRED",
                message="No refresh credential available; sign in again",
                details=None,
                status_code=401,
            )
        try:
            token = AuthClient(http=self.http).refresh(self.refresh_token)
        except (UnauthorizedError, ForbiddenError) as exc:
            logger.warning("auth_refresh_rejected", extra={"status_code": exc.status_code})
            self.clear()
            raise SessionExpiredError(
                code="SESSION_EXPIRED",
                message="Session expired; sign in again",
                details=exc.details,
                status_code=exc.status_code,
                raw_payload=exc.raw_payload,
            ) from exc
        self.establish(token)
        logger.info("auth_refresh_success")
        return token.access_token

    def fetch_profile(self) -> WorkerProfile:
        if not self.token:
            raise NotAuthenticatedError(
                code="NOT_AUTHENTICATED",
                message="No auth token (not authenticated)",
                details=None,
                status_code=401,
            )
        if not self.email:
            raise NotAuthenticatedError(
                code="NOT_AUTHENTICATED",
                message="No email stored for the current session",
                details=None,
                status_code=401,
            )
        worker = self.auth_client().worker_by_email(self.email)
        return build_worker_profile(worker, self.email)

    def set_branch(self, branch_id: int | None) -> None:
        self.branch_id = branch_id
        self.http.switch_context(BRANCH_CONTEXT)
        if self.token:
            self._persist()

    def clear(self) -> None:
        self.token = None
        self.refresh_token = None
        self.email = None
        self.branch_id = None
        if self.auth_store:
            self.auth_store.clear()
        if self.profile_store:
            self.profile_store.clear()
        if self.http:
            self.http.clear_cache()

    def _persist(self) -> None:
        if not self.token:
            return
        self.auth_store.save(
            SessionData(
                access_token=self.token,
                refresh_token=self.refresh_token,
                email=self.email,
                branch_id=self.branch_id,
                env_name=self.config.env_name,
            )
        )
