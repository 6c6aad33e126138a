from fastapi.testclient import TestClient

from justbirthdays.api import deps
from justbirthdays.birthday_reminder.csv_transcoder import HEADER_KEYS
from justbirthdays.services.database import get_connection

TODAY_PARAM = {"today": "2024-06-15"}


def _create(client, **data):
    payload = {"name": "Ada", "birth_month": 6, "birth_day": 15}
    payload.update(data)
    resp = client.post("/api/birthday", json=payload)
    assert resp.status_code == 200, resp.text
    return resp.json()["data"]["id"]


def test_requires_token(client):
    bare = TestClient(client.app)
    assert bare.get("/api/birthday/list").status_code in (401, 403)

    bad = TestClient(client.app, headers={"Authorization": "Bearer nope"})
    assert bad.get("/api/birthday/list").status_code == 401


def test_api_token_compared_in_constant_time(client, monkeypatch):
    calls = []
    real = deps.secrets.compare_digest

    def spy(a, b):
        calls.append((a, b))
        return real(a, b)

    monkeypatch.setattr(deps.secrets, "compare_digest", spy)
    assert client.get("/api/settings").status_code == 200
    assert calls


def test_create_and_get(client):
    record_id = _create(client, birth_year=1990, phone_number=" 555 ")

    resp = client.get(f"/api/birthday/{record_id}", params=TODAY_PARAM)
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["name"] == "Ada"
    assert data["phone_number"] == "555"
    assert data["year_known"] is True
    assert data["formatted_birthday"] == "June 15"
    assert data["has_any_contact_info"] is True
    assert data["is_today"] is True
    assert data["next_occurrence"] == "2024-06-15"
    assert data["days_until"] == 0
    assert data["age"] == 34


def test_create_invalid_returns_422(client):
    resp = client.post("/api/birthday", json={"name": "X", "birth_month": 2, "birth_day": 30})
    assert resp.status_code == 422
    resp = client.post("/api/birthday", json={"name": "  ", "birth_month": 1, "birth_day": 1})
    assert resp.status_code == 422


def test_list_sort_and_search(client):
    _create(client, name="Zed", birth_month=1, birth_day=1)
    _create(client, name="amy", birth_month=12, birth_day=31)
    _create(client, name="Bob", birth_month=6, birth_day=20)

    resp = client.get("/api/birthday/list", params={**TODAY_PARAM, "sort": "alphabetical"})
    body = resp.json()["data"]
    assert body["total"] == 3
    assert [r["name"] for r in body["list"]] == ["amy", "Bob", "Zed"]

    resp = client.get("/api/birthday/list", params={**TODAY_PARAM, "sort": "next_occurrence"})
    assert [r["name"] for r in resp.json()["data"]["list"]] == ["Bob", "amy", "Zed"]

    resp = client.get("/api/birthday/list", params={**TODAY_PARAM, "name": "ZE"})
    assert [r["name"] for r in resp.json()["data"]["list"]] == ["Zed"]

    assert client.get("/api/birthday/list", params={"sort": "random"}).status_code == 422


def test_today_and_upcoming(client):
    _create(client, name="Today")
    _create(client, name="Soon", birth_day=18)
    _create(client, name="Later", birth_day=30)

    resp = client.get("/api/birthday/today", params=TODAY_PARAM)
    assert [r["name"] for r in resp.json()["data"]] == ["Today"]

    resp = client.get("/api/birthday/upcoming", params=TODAY_PARAM)
    assert [r["name"] for r in resp.json()["data"]] == ["Soon", "Later"]

    resp = client.get("/api/birthday/upcoming", params={**TODAY_PARAM, "days": 7})
    assert [r["name"] for r in resp.json()["data"]] == ["Soon"]

    resp = client.get("/api/birthday/upcoming", params={**TODAY_PARAM, "days": 0})
    assert resp.status_code == 400


def test_update(client):
    record_id = _create(client, birth_year=1990)

    resp = client.put(f"/api/birthday/{record_id}", params=TODAY_PARAM,
                      json={"name": "Ada L.", "birth_year": None})
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["name"] == "Ada L."
    assert data["birth_year"] is None
    assert data["year_known"] is False
    assert data["is_today"] is True
    assert data["days_until"] == 0
    assert data["age"] is None
    assert data == client.get(f"/api/birthday/{record_id}", params=TODAY_PARAM).json()["data"]

    resp = client.put(f"/api/birthday/{record_id}", json={"birth_day": 31})
    assert resp.status_code == 422
    assert client.get(f"/api/birthday/{record_id}").json()["data"]["birth_day"] == 15

    missing = "00000000-0000-0000-0000-000000000000"
    assert client.put(f"/api/birthday/{missing}", json={"name": "x"}).status_code == 404


def test_delete(client):
    record_id = _create(client)
    assert client.delete(f"/api/birthday/{record_id}").status_code == 200
    assert client.get(f"/api/birthday/{record_id}").status_code == 404
    assert client.delete(f"/api/birthday/{record_id}").status_code == 404


def test_export_and_import(client):
    _create(client, name='Mary "M" O\'Brien', notes="line1\nline2")

    resp = client.get("/api/birthday/export")
    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("text/csv")
    assert "JustBirthdays_Export.csv" in resp.headers["content-disposition"]
    csv_text = resp.text
    assert csv_text.splitlines()[0] == ",".join(HEADER_KEYS)

    bad_row = '"","Bad","2024-02-30","","","","","true"\n'
    new_row = '"","Grace","1604-12-09","","","","","false"\n'
    resp = client.post("/api/birthday/import", params={"replace": "true"},
                       content=(csv_text + bad_row + new_row).encode("utf-8"))
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["imported"] == 2
    assert data["skipped"] == 1
    assert data["errors"][0]["value"] == "2024-02-30"

    names = [r["name"] for r in client.get("/api/birthday/list").json()["data"]["list"]]
    assert sorted(names) == ["Grace", 'Mary "M" O\'Brien']


def test_import_store_failure_returns_500(client):
    with get_connection() as conn:
        conn.execute("DROP TABLE birthday_records")
        conn.commit()

    body = ",".join(HEADER_KEYS) + "\n" + '"","Ada","1990-06-15","","","","","true"\n'
    resp = client.post("/api/birthday/import", content=body.encode("utf-8"))
    assert resp.status_code == 500


def test_import_bad_header(client):
    resp = client.post("/api/birthday/import", content=b"name,birthday\nAda,2000-01-01\n")
    assert resp.status_code == 400
    assert resp.json()["detail"]["line"] == 1


def test_settings(client):
    resp = client.get("/api/settings")
    assert resp.json()["data"]["upcoming_days"] == 30

    resp = client.put("/api/settings", json={"upcoming_days": 14, "leap_day_policy": "feb28"})
    assert resp.status_code == 200
    assert resp.json()["data"]["leap_day_policy"] == "feb28"
    assert client.get("/api/settings").json()["data"]["upcoming_days"] == 14

    assert client.put("/api/settings", json={"upcoming_days": 0}).status_code == 422


def test_show_year_in_list(client):
    _create(client, birth_year=1990)
    client.put("/api/settings", json={"show_year_in_list": True})
    record = client.get("/api/birthday/list").json()["data"]["list"][0]
    assert record["formatted_birthday"] == "June 15, 1990"


def test_widget(client):
    _create(client, name="Today", birth_year=2000)
    _create(client, name="Soon", birth_day=17)

    data = client.get("/api/widget", params=TODAY_PARAM).json()["data"]
    assert data["generated_on"] == "2024-06-15"
    assert [(e["name"], e["age"]) for e in data["todays_birthdays"]] == [("Today", 24)]
    assert [(e["name"], e["days_until"]) for e in data["upcoming_birthdays"]] == [("Soon", 2)]


def test_login_logout(client, monkeypatch):
    monkeypatch.setenv("ADMIN_PASSWORD", "secret")
    bare = TestClient(client.app)

    assert bare.post("/api/auth/login", json={"username": "admin", "password": "wrong"}).status_code == 401

    resp = bare.post("/api/auth/login", json={"username": "admin", "password": "secret"})
    assert resp.status_code == 200
    token = resp.json()["data"]["token"]
    headers = {"Authorization": f"Bearer {token}"}

    assert bare.get("/api/settings", headers=headers).status_code == 200
    assert bare.post("/api/auth/logout", headers=headers).status_code == 200
    assert bare.get("/api/settings", headers=headers).status_code == 401
