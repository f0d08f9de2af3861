"""Background reaper for abandoned watch sessions."""
from __future__ import annotations

import threading

from adrewards.config import SESSION_SETTINGS
from adrewards.services.watch_service import AdWatchService
from adrewards.utils import get_logger

logger = get_logger(__name__)


class SessionReaper:
    def __init__(self, service: AdWatchService, *, interval_seconds: float | None = None):
        self.service = service
        self.interval_seconds = float(
            interval_seconds if interval_seconds is not None else SESSION_SETTINGS["sweep_interval_seconds"]
        )
        self._thread: threading.Thread | None = None
        self._stop_event = threading.Event()

    def start(self) -> None:
        if self._thread and self._thread.is_alive():  # pragma: no cover
            return
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._loop, name="watch-session-reaper", daemon=True)
        self._thread.start()
        logger.info("Session reaper started", interval_seconds=self.interval_seconds)

    def stop(self, timeout: float | None = 5.0) -> None:
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout)
        logger.info("Session reaper stop requested")

    def run_once(self) -> int:
        try:
            return self.service.sweep_expired_sessions()
        except Exception as e:
            logger.error("Session sweep failed", error=str(e), exc_info=True)
            return 0

    def _loop(self) -> None:
        # Event.wait doubles as the sleep so stop() interrupts promptly.
        while not self._stop_event.wait(self.interval_seconds):
            self.run_once()


__all__ = ["SessionReaper"]
