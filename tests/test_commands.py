from alarms.commands import AlarmCommands


def _payload(**kwargs) -> dict:
    data = {"title": "Meeting", "timeLabel": "11:00", "dateLabel": "2025-01-01", "leadMinutes": 15}
    data.update(kwargs)
    return data


def test_create_returns_fresh_list(store):
    commands = AlarmCommands(store)
    result = commands.create_alarm(_payload())
    assert result.ok
    assert result.error is None
    assert result.action == "create"
    assert [a["nextFireTime"] for a in result.alarms] == ["2025-01-01T01:45:00+00:00"]
    assert result.alarms[0]["repeatDays"] == []


def test_errors_become_messages(store):
    commands = AlarmCommands(store)
    result = commands.create_alarm(_payload(timeLabel="10:10"))
    assert not result.ok
    assert "past" in result.error
    assert result.alarms == []

    result = commands.update_alarm_title("missing", "x")
    assert not result.ok
    assert result.error == "Alarm missing not found"


def test_full_lifecycle(store, clock):
    commands = AlarmCommands(store)
    alarm_id = commands.create_alarm(_payload()).alarms[0]["id"]

    assert commands.update_alarm_title(alarm_id, "Call").alarms[0]["title"] == "Call"
    updated = commands.update_alarm(alarm_id, _payload(title="Call", timeLabel="12:00"))
    assert updated.alarms[0]["nextFireTime"] == "2025-01-01T02:45:00+00:00"

    clock.advance(hours=2)
    assert [a.id for a in store.due_alarms()] == [alarm_id]
    assert commands.acknowledge_alarm(alarm_id).alarms == []
    assert commands.list_alarms().alarms == []


def test_import_and_delete(store):
    commands = AlarmCommands(store)
    result = commands.import_alarms([_payload(title="A"), _payload(title="B")], replace_existing=False)
    assert sorted(a["title"] for a in result.alarms) == ["A", "B"]

    empty = commands.import_alarms([], replace_existing=True)
    assert not empty.ok
    assert empty.error == "Nothing to import"

    for alarm in result.alarms:
        commands.delete_alarm(alarm["id"])
    assert commands.list_alarms().alarms == []
