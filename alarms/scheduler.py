from __future__ import annotations

import logging
from datetime import datetime
from threading import Event, Thread
from typing import Callable, List, Optional

from .storage import Alarm
from .store import AlarmStore

logger = logging.getLogger(__name__)

Notifier = Callable[[List[Alarm]], None]


class LoggingNotifier:
    """Default sink: one log line per alarm that became due."""

    def __init__(self, log: Optional[logging.Logger] = None):
        self.log = log or logger

    def __call__(self, alarms: List[Alarm]) -> None:
        for alarm in alarms:
            self.log.info(
                "Alarm ringing: %s at %s (id=%s, url=%s)",
                alarm.title or "(untitled)",
                alarm.time_label,
                alarm.id,
                alarm.url or "-",
            )


class AlarmScheduler:
    """Polls the store on a fixed interval and hands due alarms to ``notify``."""

    def __init__(
        self,
        store: AlarmStore,
        notify: Optional[Notifier] = None,
        check_interval: float = 1.0,
    ):
        self.store = store
        self.notify = notify or LoggingNotifier()
        self.check_interval = max(0.2, check_interval)
        self._stop_event = Event()
        self._thread: Optional[Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.running:
            return
        self._stop_event.clear()
        self._thread = Thread(target=self._loop, name="alarm-scheduler", daemon=True)
        self._thread.start()
        logger.info("Alarm scheduler started (interval=%.1fs)", self.check_interval)

    def shutdown(self) -> None:
        self._stop_event.set()
        if self._thread:
            self._thread.join(timeout=2)
        self._thread = None

    def tick(self, now: Optional[datetime] = None) -> List[Alarm]:
        due = self.store.due_alarms(now)
        if due:
            try:
                self.notify(due)
            except Exception:
                logger.error("Alarm notification callback failed", exc_info=True)
        return due

    def _loop(self) -> None:
        while not self._stop_event.is_set():
            try:
                self.tick()
            except Exception:
                logger.error("Due alarm check failed", exc_info=True)
            self._stop_event.wait(self.check_interval)
