"""
Pytest 配置与共享 fixtures

- 每个测试使用独立的临时 SQLite 数据库、设置文件和小组件文件
- client: 挂载 /api 路由的 FastAPI TestClient (带 token)
"""
import sys
from datetime import date
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from justbirthdays.birthday_reminder.models import BirthdayRecord
from justbirthdays.services.database import DatabaseService, init_db

TEST_TOKEN = "test_token_123456"
TODAY = date(2024, 6, 15)


@pytest.fixture(autouse=True)
def isolated_environment(tmp_path, monkeypatch):
    """设置/小组件文件指向临时目录，清掉可能影响默认值的环境变量"""
    monkeypatch.setenv("SETTINGS_FILE", str(tmp_path / "settings.json"))
    monkeypatch.setenv("WIDGET_DATA_PATH", str(tmp_path / "widget-data.json"))
    for name in ("UPCOMING_DAYS", "SHOW_YEAR_IN_LIST", "LEAP_DAY_POLICY",
                 "WIDGET_UPCOMING_DAYS", "NOTIFICATION_URL", "REFRESH_TIME", "ADMIN_PASSWORD"):
        monkeypatch.delenv(name, raising=False)
    yield tmp_path


@pytest.fixture
def db(tmp_path):
    db_path = tmp_path / "test.db"
    init_db(db_path=str(db_path))
    assert DatabaseService.init_tables()
    yield db_path


@pytest.fixture
def make_record():
    def _make(name="Ada", month=6, day=15, year=None, **kwargs):
        return BirthdayRecord(name=name, birth_month=month, birth_day=day, birth_year=year, **kwargs)
    return _make


@pytest.fixture
def client(db, monkeypatch):
    from fastapi import FastAPI
    from fastapi.testclient import TestClient

    from justbirthdays.api.routers import api_router

    monkeypatch.setenv("API_TOKEN", TEST_TOKEN)
    app = FastAPI()
    app.include_router(api_router)
    with TestClient(app) as c:
        c.headers.update({"Authorization": f"Bearer {TEST_TOKEN}"})
        yield c
