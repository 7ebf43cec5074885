from __future__ import annotations

import enum
import re
from typing import Iterable, List, Optional


class Weekday(str, enum.Enum):
    MON = "Mon"
    TUE = "Tue"
    WED = "Wed"
    THU = "Thu"
    FRI = "Fri"
    SAT = "Sat"
    SUN = "Sun"

    @classmethod
    def from_date_index(cls, index: int) -> "Weekday":
        """Map ``date.weekday()`` numbering (Monday is 0) to a token."""
        return _ORDER[index]

    @classmethod
    def from_token(cls, token: str) -> Optional["Weekday"]:
        token = token.strip()
        if not token:
            return None
        normalized = token[0].upper() + token[1:3].lower()
        for day in cls:
            if day.value == normalized:
                return day
        return None


_ORDER = list(Weekday)


def parse_weekdays(value) -> List[Weekday]:
    """Turn a list of tokens or a ``"Mon, Wed Fri"`` string into weekdays.

    Unknown tokens are dropped and duplicates collapsed, keeping the order of
    first appearance. Raises ``ValueError`` when tokens were given but none
    of them names a weekday.
    """
    if not value:
        return []
    if isinstance(value, str):
        tokens = [t for t in re.split(r"[,\s]+", value) if t]
    elif isinstance(value, Iterable):
        tokens = [t.value if isinstance(t, Weekday) else t for t in value if isinstance(t, str)]
    else:
        raise ValueError("repeatDays must be a list of weekday names")

    days: List[Weekday] = []
    for token in tokens:
        day = Weekday.from_token(token)
        if day is not None and day not in days:
            days.append(day)
    if tokens and not days:
        raise ValueError(f"No valid weekday in repeatDays: {', '.join(tokens)}")
    return days
