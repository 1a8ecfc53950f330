from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path

from platformdirs import user_data_dir
from pydantic import ValidationError as PydanticValidationError

from .models import CachedProfile, SessionData

logger = logging.getLogger(__name__)


@dataclass
class _JsonFileStore:
    app_name: str = "pos-admin"
    filename: str = "store.json"
    base_dir: Path | None = None

    def _path(self) -> Path:
        base = self.base_dir or Path(user_data_dir(self.app_name, "POS"))
        base.mkdir(parents=True, exist_ok=True)
        return base / self.filename

    def _write(self, data: dict) -> None:
        path = self._path()
        path.write_text(json.dumps(data, indent=2))
        try:
            path.chmod(0o600)
        except OSError:
            logger.warning("store_chmod_failed", extra={"path": str(path)})

    def _read(self) -> dict | None:
        path = self._path()
        if not path.exists():
            return None
        try:
            data = json.loads(path.read_text())
        except json.JSONDecodeError:
            logger.warning("store_corrupt_discarded", extra={"path": str(path)})
            self.clear()
            return None
        return data if isinstance(data, dict) else None

    def clear(self) -> None:
        path = self._path()
        if path.exists():
            path.unlink()


@dataclass
class AuthStore(_JsonFileStore):
    filename: str = "session.json"

    def save(self, session: SessionData) -> None:
        self._write(session.model_dump())

    def load(self) -> SessionData | None:
        data = self._read()
        if data is None:
            return None
        try:
            return SessionData(**data)
        except PydanticValidationError:
            self.clear()
            return None


@dataclass
class ProfileStore(_JsonFileStore):
    filename: str = "profile.json"

    def save(self, cached: CachedProfile) -> None:
        self._write(cached.model_dump())

    def load(self) -> CachedProfile | None:
        data = self._read()
        if data is None:
            return None
        try:
            return CachedProfile.model_validate(data)
        except PydanticValidationError:
            self.clear()
            return None
