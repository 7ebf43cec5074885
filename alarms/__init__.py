"""Alarm scheduling engine for Sebastian."""

from .commands import AlarmCommands, CommandResult
from .payload import AlarmPayload, parse_import_document
from .scheduler import AlarmScheduler, LoggingNotifier
from .schedule import compute_next_fire
from .storage import Alarm
from .store import AlarmStore
from .weekdays import Weekday
