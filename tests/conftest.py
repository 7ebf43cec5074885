from datetime import datetime, timedelta, timezone

import pytest

from alarms.store import AlarmStore

TZ = timezone(timedelta(hours=9))


class FakeClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture
def clock():
    return FakeClock(datetime(2025, 1, 1, 10, 0, tzinfo=TZ))


@pytest.fixture
def alarms_path(tmp_path):
    return tmp_path / "data" / "alarms.json"


@pytest.fixture
def store(alarms_path, clock):
    return AlarmStore(alarms_path, clock=clock, timezone=TZ)
