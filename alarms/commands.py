from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Iterable, List, Optional

from .errors import AlarmError
from .store import AlarmStore

logger = logging.getLogger(__name__)


@dataclass
class CommandResult:
    ok: bool
    alarms: List[dict] = field(default_factory=list)
    error: Optional[str] = None
    action: Optional[str] = None


class AlarmCommands:
    """Host-facing commands. Each answers with the fresh alarm list or an error message."""

    def __init__(self, store: AlarmStore):
        self.store = store

    def list_alarms(self) -> CommandResult:
        return self._run("list", lambda: None)

    def create_alarm(self, payload) -> CommandResult:
        return self._run("create", lambda: self.store.create(payload))

    def delete_alarm(self, alarm_id: str) -> CommandResult:
        return self._run("delete", lambda: self.store.delete(alarm_id))

    def update_alarm_title(self, alarm_id: str, title: str) -> CommandResult:
        return self._run("update_title", lambda: self.store.update_title(alarm_id, title))

    def update_alarm(self, alarm_id: str, payload) -> CommandResult:
        return self._run("update", lambda: self.store.update(alarm_id, payload))

    def acknowledge_alarm(self, alarm_id: str) -> CommandResult:
        return self._run("acknowledge", lambda: self.store.acknowledge(alarm_id))

    def import_alarms(self, payloads: Iterable, replace_existing: bool) -> CommandResult:
        return self._run("import", lambda: self.store.import_many(payloads, replace_existing))

    def _run(self, action: str, mutate: Callable[[], object]) -> CommandResult:
        with self.store.lock:
            try:
                mutate()
            except AlarmError as exc:
                logger.warning("Alarm command %s failed: %s", action, exc)
                return CommandResult(ok=False, error=str(exc), action=action)
            alarms = [a.to_dict() for a in self.store.list_alarms()]
        return CommandResult(ok=True, alarms=alarms, action=action)
