from __future__ import annotations

import logging
import uuid
from dataclasses import replace
from datetime import datetime
from pathlib import Path
from threading import RLock
from typing import Callable, Iterable, List, Optional, Set

from time_utils import ensure_aware, is_after, local_timezone, now_in_tz

from .errors import NotFound, ValidationError
from .payload import AlarmPayload, coerce_payload
from .schedule import compute_next_fire, format_fire_time, parse_fire_time
from .storage import Alarm, load_alarms, save_alarms

logger = logging.getLogger(__name__)


class AlarmStore:
    """Owns the alarm collection and the set of ringing alarm ids.

    Every public method takes ``lock``; it is reentrant so a caller can hold it
    around a mutation and the listing that follows. Mutations persist the whole
    collection before returning. A failed save raises PersistenceError but the
    in-memory change stays applied.
    """

    def __init__(
        self,
        storage_path,
        clock: Optional[Callable[[], datetime]] = None,
        timezone=None,
    ):
        self.storage_path = Path(storage_path)
        # None follows the host offset afresh on every clock reading
        self.tzinfo = timezone if timezone is not None else local_timezone()
        self._clock = clock or (lambda: now_in_tz(self.tzinfo))
        self.lock = RLock()
        self._alarms: List[Alarm] = []
        self._ringing: Set[str] = set()
        self.reload()

    def now(self) -> datetime:
        return ensure_aware(self._clock(), self.tzinfo)

    def reload(self) -> None:
        alarms = load_alarms(self.storage_path)
        with self.lock:
            self._alarms = alarms
            self._ringing.clear()
        logger.info("Loaded %s alarms from %s", len(alarms), self.storage_path)

    def list_alarms(self) -> List[Alarm]:
        with self.lock:
            return [_copy(a) for a in sorted(self._alarms, key=lambda a: a.next_fire_time)]

    def get(self, alarm_id: str) -> Optional[Alarm]:
        with self.lock:
            alarm = self._find(alarm_id)
            return _copy(alarm) if alarm else None

    def ringing_ids(self) -> Set[str]:
        with self.lock:
            return set(self._ringing)

    def create(self, payload) -> Alarm:
        with self.lock:
            alarm = self._build_alarm(coerce_payload(payload), self.now())
            self._alarms.append(alarm)
            logger.info("Alarm %s created for %s (title=%s)", alarm.id, alarm.next_fire_time, alarm.title)
            self._save()
            return _copy(alarm)

    def delete(self, alarm_id: str) -> None:
        with self.lock:
            before = len(self._alarms)
            self._alarms = [a for a in self._alarms if a.id != alarm_id]
            self._ringing.discard(alarm_id)
            if len(self._alarms) != before:
                logger.info("Deleted alarm %s", alarm_id)
            else:
                logger.debug("Delete requested for unknown alarm %s", alarm_id)
            self._save()

    def update_title(self, alarm_id: str, title: str) -> Alarm:
        with self.lock:
            alarm = self._require(alarm_id)
            alarm.title = (title or "").strip()
            logger.info("Renamed alarm %s to %s", alarm_id, alarm.title)
            self._save()
            return _copy(alarm)

    def update(self, alarm_id: str, payload) -> Alarm:
        with self.lock:
            built = self._build_alarm(coerce_payload(payload), self.now(), alarm_id=alarm_id)
            alarm = self._require(alarm_id)
            alarm.title = built.title
            alarm.time_label = built.time_label
            alarm.url = built.url
            alarm.repeat_enabled = built.repeat_enabled
            alarm.repeat_days = built.repeat_days
            alarm.lead_minutes = built.lead_minutes
            alarm.next_fire_time = built.next_fire_time
            logger.info("Alarm %s updated, next fire %s", alarm_id, alarm.next_fire_time)
            self._save()
            return _copy(alarm)

    def due_alarms(self, now: Optional[datetime] = None) -> List[Alarm]:
        """Move every armed alarm whose fire time has come into the ringing set."""
        now = ensure_aware(now, self.tzinfo) if now is not None else self.now()
        due: List[Alarm] = []
        with self.lock:
            for alarm in self._alarms:
                if alarm.id in self._ringing:
                    continue
                try:
                    fire_at = parse_fire_time(alarm.next_fire_time)
                except ValueError as exc:
                    logger.warning("next_fire_time parse error (%s): %s", alarm.id, exc)
                    continue
                if not is_after(fire_at, now):
                    self._ringing.add(alarm.id)
                    due.append(_copy(alarm))
        if due:
            logger.info("Alarms due: %s", ", ".join(a.id for a in due))
        return due

    def acknowledge(self, alarm_id: str) -> Optional[Alarm]:
        """Re-arm a repeating alarm or consume a one-shot one.

        Returns the re-armed alarm, or None when the alarm was removed or absent.
        """
        with self.lock:
            alarm = self._find(alarm_id)
            rearmed = None
            if alarm is not None and alarm.is_repeating:
                next_fire = compute_next_fire(
                    alarm.time_label,
                    None,
                    True,
                    alarm.repeat_days,
                    alarm.lead_minutes,
                    self.now(),
                )
                alarm.next_fire_time = format_fire_time(next_fire)
                rearmed = _copy(alarm)
                logger.info("Alarm %s re-armed for %s", alarm_id, alarm.next_fire_time)
            elif alarm is not None:
                self._alarms = [a for a in self._alarms if a.id != alarm_id]
                logger.info("One-shot alarm %s acknowledged and removed", alarm_id)
            else:
                logger.debug("Acknowledge for unknown alarm %s", alarm_id)
            self._ringing.discard(alarm_id)
            if alarm is not None:
                self._save()
            return rearmed

    def import_many(self, payloads: Iterable, replace_existing: bool) -> List[Alarm]:
        payloads = list(payloads)
        if not payloads:
            raise ValidationError("Nothing to import")
        with self.lock:
            now = self.now()
            incoming = []
            for index, payload in enumerate(payloads):
                try:
                    incoming.append(self._build_alarm(coerce_payload(payload), now))
                except ValidationError as exc:
                    raise exc.__class__(f"Record {index + 1}: {exc}") from exc
            if replace_existing:
                self._alarms = incoming
                self._ringing.clear()
            else:
                self._alarms.extend(incoming)
            logger.info(
                "Imported %s alarms (%s)", len(incoming), "replaced existing" if replace_existing else "appended"
            )
            self._save()
            return [_copy(a) for a in incoming]

    def _build_alarm(self, payload: AlarmPayload, now: datetime, alarm_id: Optional[str] = None) -> Alarm:
        payload = payload.normalized()
        next_fire = compute_next_fire(
            payload.time_label,
            payload.date_label,
            payload.repeat_enabled,
            payload.repeat_days,
            payload.lead_minutes,
            now,
        )
        return Alarm(
            id=alarm_id or str(uuid.uuid4()),
            title=payload.title,
            time_label=payload.time_label,
            next_fire_time=format_fire_time(next_fire),
            url=payload.url,
            repeat_enabled=payload.repeat_enabled,
            repeat_days=list(payload.repeat_days),
            lead_minutes=payload.lead_minutes,
        )

    def _find(self, alarm_id: str) -> Optional[Alarm]:
        for alarm in self._alarms:
            if alarm.id == alarm_id:
                return alarm
        return None

    def _require(self, alarm_id: str) -> Alarm:
        alarm = self._find(alarm_id)
        if alarm is None:
            raise NotFound(f"Alarm {alarm_id} not found")
        return alarm

    def _save(self) -> None:
        save_alarms(self.storage_path, self._alarms)


def _copy(alarm: Alarm) -> Alarm:
    return replace(alarm, repeat_days=list(alarm.repeat_days))
