from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Callable

from .auth_store import ProfileStore
from .exceptions import ApiError, NotAuthenticatedError, SessionExpiredError
from .models import CachedProfile, WorkerProfile, WorkerResponse

logger = logging.getLogger(__name__)

DEFAULT_PROFILE_TTL_SECONDS = 60 * 60


def build_worker_profile(worker: WorkerResponse, email: str | None = None) -> WorkerProfile:
    if worker.persona is None:
        raise ValueError("Invalid profile response: missing persona")
    persona = worker.persona
    name = persona.full_name
    first_name = (persona.first_name or "").strip()
    short_name = first_name or name
    initial_source = first_name or name
    return WorkerProfile(
        id=worker.id,
        branch_id=worker.branch_id,
        email=email,
        name=name,
        short_name=short_name,
        initials=initial_source[:1].upper() if initial_source else "U",
        raw=worker.model_dump(mode="json", by_alias=True),
    )


@dataclass
class ProfileProvider:
    """Cached worker profile with a TTL window and stale fallback on fetch failure."""

    fetcher: Callable[[], WorkerProfile]
    store: ProfileStore = field(default_factory=ProfileStore)
    ttl_seconds: float = DEFAULT_PROFILE_TTL_SECONDS
    clock: Callable[[], float] = time.time

    def read_cached(self, *, allow_stale: bool = False) -> WorkerProfile | None:
        cached = self.store.load()
        if cached is None:
            return None
        if not allow_stale and self.clock() - cached.ts > self.ttl_seconds:
            return None
        return cached.profile

    def get_profile(self, *, force_refresh: bool = False) -> WorkerProfile:
        if not force_refresh:
            cached = self.read_cached()
            if cached is not None:
                return cached
        try:
            profile = self.fetcher()
        except (SessionExpiredError, NotAuthenticatedError):
            raise
        except (ApiError, ValueError) as exc:
            stale = self.read_cached(allow_stale=True)
            if stale is None:
                raise
            logger.warning("profile_cache_stale_fallback", extra={"error": str(exc), "user_id": stale.id})
            return stale
        self.store.save(CachedProfile(ts=self.clock(), profile=profile))
        logger.info("profile_fetch_success", extra={"user_id": profile.id, "branch_id": profile.branch_id})
        return profile

    def clear(self) -> None:
        self.store.clear()
