from __future__ import annotations

import json
import logging
import threading
from pathlib import Path
from typing import TextIO

from platformdirs import user_log_dir

from pos_admin_sdk import ClientConfig

from .events import TelemetryEvent

logger = logging.getLogger(__name__)

APP_NAME = "pos-admin"


def default_log_file() -> Path:
    return Path(user_log_dir(APP_NAME, "POS")) / "telemetry.jsonl"


class TelemetryLogger:
    """Appends telemetry records to a JSONL file when telemetry is opted into.

    A write failure is logged and swallowed: a sale that reached the backend
    must still be reported to the clerk.
    """

    def __init__(
        self,
        *,
        enabled: bool = False,
        log_file: str | Path | None = None,
        echo: TextIO | None = None,
    ) -> None:
        self.enabled = enabled
        self.log_file = Path(log_file) if log_file else default_log_file()
        self.echo = echo
        self._lock = threading.Lock()

    @classmethod
    def from_config(cls, config: ClientConfig, *, echo: TextIO | None = None) -> "TelemetryLogger":
        return cls(enabled=config.telemetry_enabled, log_file=config.telemetry_file, echo=echo)

    def emit(self, event: TelemetryEvent) -> bool:
        if not self.enabled:
            return False
        line = json.dumps({"app_name": APP_NAME, **event.to_dict()}, sort_keys=True)
        try:
            with self._lock:
                self.log_file.parent.mkdir(parents=True, exist_ok=True)
                with self.log_file.open("a", encoding="utf-8") as fp:
                    fp.write(f"{line}\n")
        except OSError as exc:
            logger.warning("telemetry_write_failed", extra={"path": str(self.log_file), "error": str(exc)})
            return False
        if self.echo is not None:
            self.echo.write(f"{line}\n")
            self.echo.flush()
        return True
