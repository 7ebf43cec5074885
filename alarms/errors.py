from __future__ import annotations


class AlarmError(Exception):
    """Base class for every error the alarm engine reports to its callers."""


class ValidationError(AlarmError, ValueError):
    pass


class ScheduleError(ValidationError):
    """The next fire instant could not be computed from the given inputs."""


class InvalidTimeFormat(ScheduleError):
    pass


class InvalidDateFormat(ScheduleError):
    pass


class DateInPast(ScheduleError):
    pass


class NoFeasibleOccurrence(ScheduleError):
    pass


class AmbiguousOrInvalidLocalTime(ScheduleError):
    pass


class NotFound(AlarmError, KeyError):
    def __str__(self) -> str:
        # KeyError quotes its argument by default
        return str(self.args[0]) if self.args else "Alarm not found"


class PersistenceError(AlarmError, OSError):
    pass


class LoadCorruption(AlarmError):
    pass
