from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from .errors import LoadCorruption, PersistenceError
from .schedule import DEFAULT_LEAD_MINUTES
from .weekdays import Weekday

logger = logging.getLogger(__name__)


@dataclass
class Alarm:
    id: str
    title: str
    time_label: str
    next_fire_time: str
    url: Optional[str] = None
    repeat_enabled: bool = False
    repeat_days: List[Weekday] = field(default_factory=list)
    lead_minutes: int = DEFAULT_LEAD_MINUTES

    @property
    def is_repeating(self) -> bool:
        return self.repeat_enabled and bool(self.repeat_days)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "timeLabel": self.time_label,
            "nextFireTime": self.next_fire_time,
            "url": self.url,
            "repeatEnabled": self.repeat_enabled,
            "repeatDays": [d.value for d in self.repeat_days],
            "leadMinutes": self.lead_minutes,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Alarm":
        if not isinstance(data, dict):
            raise LoadCorruption(f"Alarm record must be an object, got {type(data).__name__}")
        for key in ("id", "title", "timeLabel", "nextFireTime"):
            if not isinstance(data.get(key), str):
                raise LoadCorruption(f"Alarm record field {key} is missing or not a string")
        url = data.get("url")
        if url is not None and not isinstance(url, str):
            raise LoadCorruption("Alarm record field url must be a string")
        repeat_enabled = data.get("repeatEnabled")
        if not isinstance(repeat_enabled, bool):
            raise LoadCorruption("Alarm record field repeatEnabled must be a boolean")
        lead_minutes = data.get("leadMinutes", DEFAULT_LEAD_MINUTES)
        if isinstance(lead_minutes, bool) or not isinstance(lead_minutes, int):
            raise LoadCorruption("Alarm record field leadMinutes must be an integer")
        try:
            repeat_days = [Weekday(d) for d in data.get("repeatDays") or []]
        except (TypeError, ValueError) as exc:
            raise LoadCorruption(f"Alarm record has an unknown weekday: {exc}") from exc
        return cls(
            id=data["id"],
            title=data["title"],
            time_label=data["timeLabel"],
            next_fire_time=data["nextFireTime"],
            url=url,
            repeat_enabled=repeat_enabled,
            repeat_days=repeat_days,
            lead_minutes=lead_minutes,
        )


def load_alarms(path: Path) -> List[Alarm]:
    """Read the alarm file, moving an unreadable one aside instead of failing."""
    if not path.exists():
        return []
    try:
        raw = path.read_text(encoding="utf-8")
    except UnicodeDecodeError as exc:
        _quarantine(path, exc)
        return []
    except OSError as exc:
        raise PersistenceError(f"Failed to read alarms from {path}: {exc}") from exc
    if not raw.strip():
        return []
    try:
        return _parse_alarms(raw)
    except LoadCorruption as exc:
        _quarantine(path, exc)
        return []


def save_alarms(path: Path, alarms: List[Alarm]) -> None:
    serializable = [a.to_dict() for a in alarms]
    tmp = path.with_name(path.name + ".tmp")
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with tmp.open("w", encoding="utf-8") as f:
            json.dump(serializable, f, ensure_ascii=False, indent=2)
        os.replace(tmp, path)
    except OSError as exc:
        raise PersistenceError(f"Failed to save alarms to {path}: {exc}") from exc


def _parse_alarms(raw: str) -> List[Alarm]:
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise LoadCorruption(str(exc)) from exc
    if not isinstance(payload, list):
        raise LoadCorruption(f"Expected a list of alarms, got {type(payload).__name__}")
    return [Alarm.from_dict(item) for item in payload]


def quarantine_path(path: Path, when: Optional[datetime] = None) -> Path:
    stamp = (when or datetime.now()).strftime("%Y%m%d%H%M%S")
    return path.with_suffix(f".corrupt-{stamp}")


def _quarantine(path: Path, reason: Exception) -> None:
    logger.error("Failed to parse alarms file %s: %s", path, reason)
    backup = quarantine_path(path)
    try:
        path.rename(backup)
    except OSError:
        logger.error("Failed to move corrupted alarms file %s aside", path, exc_info=True)
        return
    logger.warning("Corrupted alarms file moved to %s; starting with no alarms", backup)
