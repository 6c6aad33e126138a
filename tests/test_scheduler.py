import json
from datetime import date

import pytest

from justbirthdays.birthday_reminder import service as service_module
from justbirthdays.birthday_reminder.models import BirthdayRecordCreate
from justbirthdays.birthday_reminder.service import BirthdayService
from justbirthdays.services import scheduler


@pytest.mark.parametrize("value,expected", [
    ("07:30", (7, 30)),
    ("0:00", (0, 0)),
    ("23:59", (23, 59)),
    ("24:00", (0, 5)),
    ("12:60", (0, 5)),
    ("noon", (0, 5)),
    ("1:2:3", (0, 5)),
])
def test_parse_refresh_time(monkeypatch, value, expected):
    monkeypatch.setenv("REFRESH_TIME", value)
    assert scheduler.parse_refresh_time() == expected


def test_parse_refresh_time_default():
    assert scheduler.parse_refresh_time() == (0, 5)


def test_run_daily_refresh(db, isolated_environment, monkeypatch):
    today = date.today()
    BirthdayService.add_record(BirthdayRecordCreate(name="Now", birth_month=today.month, birth_day=today.day))

    sent = []

    async def fake_send(text):
        sent.append(text)
        return True

    monkeypatch.setattr(service_module, "send_notification", fake_send)
    scheduler.run_daily_refresh()

    widget = json.loads((isolated_environment / "widget-data.json").read_text(encoding="utf-8"))
    assert [e["name"] for e in widget["todays_birthdays"]] == ["Now"]
    assert len(sent) == 1
    assert "Now" in sent[0]


def test_start_and_shutdown(monkeypatch):
    started = []
    monkeypatch.setattr(scheduler.scheduler, "start", lambda: started.append(True))
    monkeypatch.setenv("REFRESH_TIME", "06:15")

    scheduler.start_scheduler()
    try:
        job = scheduler.scheduler.get_job("birthday_daily_refresh")
        assert job is not None
        assert "06:15" in job.name
        assert started == [True]
    finally:
        scheduler.scheduler.remove_job("birthday_daily_refresh")
    scheduler.shutdown_scheduler()
