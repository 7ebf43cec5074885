from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field, replace
from typing import Any, List, Mapping, Optional

from .errors import ValidationError
from .schedule import DEFAULT_LEAD_MINUTES, clamp_lead_minutes
from .weekdays import Weekday, parse_weekdays

logger = logging.getLogger(__name__)


@dataclass
class AlarmPayload:
    """User input for creating, editing or importing an alarm."""

    title: str
    time_label: str
    date_label: Optional[str] = None
    url: Optional[str] = None
    repeat_enabled: bool = False
    repeat_days: List[Weekday] = field(default_factory=list)
    lead_minutes: int = DEFAULT_LEAD_MINUTES

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], index: Optional[int] = None) -> "AlarmPayload":
        prefix = f"Record {index + 1}: " if index is not None else ""
        if not isinstance(data, Mapping):
            raise ValidationError(f"{prefix}alarm entry must be an object")

        title = _pick(data, "title")
        time_label = _pick(data, "timeLabel", "time_label")
        for name, value in (("title", title), ("timeLabel", time_label)):
            if not isinstance(value, str) or not value.strip():
                raise ValidationError(f"{prefix}{name} is missing or not a string")

        try:
            repeat_days = parse_weekdays(_pick(data, "repeatDays", "repeat_days"))
        except ValueError as exc:
            raise ValidationError(f"{prefix}{exc}") from exc

        lead_raw = _pick(data, "leadMinutes", "lead_minutes")
        if lead_raw is None or (isinstance(lead_raw, str) and not lead_raw.strip()):
            lead_minutes = DEFAULT_LEAD_MINUTES
        elif isinstance(lead_raw, bool) or not isinstance(lead_raw, (int, float, str)):
            raise ValidationError(f"{prefix}leadMinutes must be a number")
        else:
            try:
                lead_minutes = int(float(lead_raw))
            except (ValueError, OverflowError) as exc:
                raise ValidationError(f"{prefix}leadMinutes must be a number: {lead_raw!r}") from exc

        return cls(
            title=title,
            time_label=time_label,
            date_label=_optional_str(_pick(data, "dateLabel", "date_label")),
            url=_optional_str(_pick(data, "url")),
            repeat_enabled=bool(_pick(data, "repeatEnabled", "repeat_enabled")),
            repeat_days=repeat_days,
            lead_minutes=lead_minutes,
        )

    @property
    def is_repeating(self) -> bool:
        return self.repeat_enabled and bool(self.repeat_days)

    def normalized(self) -> "AlarmPayload":
        """Trimmed and clamped copy; raises ValidationError if repeat has no weekdays."""
        if self.repeat_enabled and not self.repeat_days:
            raise ValidationError("Select at least one weekday when repeat is enabled")
        return replace(
            self,
            title=(self.title or "").strip(),
            time_label=(self.time_label or "").strip(),
            date_label=_optional_str(self.date_label),
            url=_optional_str(self.url),
            repeat_days=[Weekday(d) for d in self.repeat_days],
            lead_minutes=clamp_lead_minutes(self.lead_minutes),
        )


def coerce_payload(payload) -> AlarmPayload:
    if isinstance(payload, AlarmPayload):
        return payload
    return AlarmPayload.from_dict(payload)


def parse_import_document(text: str) -> List[AlarmPayload]:
    """Parse an import document: ``[...]`` or ``{"alarms": [...]}``."""
    if not text or not text.strip():
        return []
    try:
        document = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ValidationError(f"Import document is not valid JSON: {exc}") from exc

    if isinstance(document, Mapping) and isinstance(document.get("alarms"), list):
        records = document["alarms"]
    elif isinstance(document, list):
        records = document
    else:
        raise ValidationError('Import document root must be an array or {"alarms": [...]}')

    payloads = [AlarmPayload.from_dict(item, index=i) for i, item in enumerate(records)]
    logger.debug("Parsed %s alarm payloads from import document", len(payloads))
    return payloads


def _pick(data: Mapping[str, Any], *keys: str):
    for key in keys:
        if key in data:
            return data[key]
    return None


def _optional_str(value) -> Optional[str]:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None
