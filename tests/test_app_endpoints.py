import json

import pytest
from fastapi.testclient import TestClient

from jsonvault.app import create_app
from jsonvault.infra.db import Database
from jsonvault.services.record_service import RecordStore

from conftest import PASSWORD, USERNAME

COOKIE = "jsonvault_session"


class ExplodingRecords:
    def get(self):
        raise AssertionError("record store must not be touched")

    def put(self, payload):
        raise AssertionError("record store must not be touched")


def test_login_form_is_served(client):
    r = client.get("/login")
    assert r.status_code == 200
    assert 'name="username"' in r.text
    assert 'name="password"' in r.text


def test_login_sets_hardened_cookie(client):
    r = client.post("/login", data={"username": USERNAME, "password": PASSWORD}, follow_redirects=False)
    assert r.status_code == 303
    assert r.headers["location"] == "/"
    set_cookie = r.headers["set-cookie"]
    assert set_cookie.startswith(f"{COOKIE}=")
    assert "HttpOnly" in set_cookie
    assert "samesite=strict" in set_cookie.lower()
    assert "Max-Age=86400" in set_cookie


@pytest.mark.parametrize("username, password", [(USERNAME, "wrong"), ("nobody", PASSWORD), ("", "")])
def test_failed_login_redirects_back_without_session(client, username, password):
    r = client.post("/login", data={"username": username, "password": password}, follow_redirects=False)
    assert r.status_code == 303
    assert r.headers["location"].startswith("/login")
    assert COOKIE not in r.cookies
    assert client.get("/data").status_code == 401


def test_failed_login_page_shows_generic_error(client):
    r = client.post("/login", data={"username": USERNAME, "password": "wrong"})
    assert r.status_code == 200
    assert "Invalid username or password" in r.text


def test_login_page_redirects_when_already_logged_in(auth_client):
    r = auth_client.get("/login", follow_redirects=False)
    assert r.status_code == 303
    assert r.headers["location"] == "/"


def test_unauthenticated_data_is_401_and_never_reads_store(client):
    client.app.state.records = ExplodingRecords()
    r = client.get("/data")
    assert r.status_code == 401
    assert r.json() == {"message": "Not authenticated"}

    r = client.post("/data", json=[{"a": 1}])
    assert r.status_code == 401


def test_landing_page_requires_login(client):
    r = client.get("/", follow_redirects=False)
    assert r.status_code == 303
    assert r.headers["location"] == "/login"


def test_landing_page_when_logged_in(auth_client):
    r = auth_client.get("/")
    assert r.status_code == 200
    assert r.headers["content-type"].startswith("text/html")
    assert "/data" in r.text


def test_fresh_store_roundtrip(auth_client):
    assert auth_client.get("/data").json() == []

    r = auth_client.post("/data", json=[{"a": 1}])
    assert r.status_code == 200
    assert r.json() == {"message": "Data updated successfully"}

    r = auth_client.get("/data")
    assert r.status_code == 200
    assert r.json() == [{"a": 1}]


def test_bare_object_is_wrapped(auth_client):
    assert auth_client.post("/data", json={"a": 1}).status_code == 200
    assert auth_client.get("/data").json() == [{"a": 1}]


def test_scalar_payload_becomes_empty_list(auth_client):
    auth_client.post("/data", json=[1, 2, 3])
    assert auth_client.post("/data", json="hello").status_code == 200
    assert auth_client.get("/data").json() == []


def test_second_write_replaces_first(auth_client):
    auth_client.post("/data", json=[{"a": 1}, {"b": 2}])
    auth_client.post("/data", json=[{"c": 3}])
    assert auth_client.get("/data").json() == [{"c": 3}]


def test_malformed_json_is_400(auth_client):
    auth_client.post("/data", json=[{"keep": True}])
    r = auth_client.post("/data", content=b"{not json", headers={"Content-Type": "application/json"})
    assert r.status_code == 400
    assert "error" in r.json()
    assert auth_client.get("/data").json() == [{"keep": True}]


@pytest.mark.parametrize("body", [b"[NaN]", b"[1, Infinity]", b'{"a": -Infinity}'])
def test_non_finite_numbers_are_400_and_keep_document(auth_client, body):
    auth_client.post("/data", json=[{"keep": True}])
    r = auth_client.post("/data", content=body, headers={"Content-Type": "application/json"})
    assert r.status_code == 400
    assert "error" in r.json()

    r = auth_client.get("/data")
    assert r.status_code == 200
    assert r.json() == [{"keep": True}]


def test_deeply_nested_json_is_400(auth_client):
    auth_client.post("/data", json=[{"keep": True}])
    body = b"[" * 100_000 + b"]" * 100_000
    r = auth_client.post("/data", content=body, headers={"Content-Type": "application/json"})
    assert r.status_code == 400
    assert auth_client.get("/data").json() == [{"keep": True}]


def test_oversized_body_is_413(tmp_path, user_store, seeded_user, settings):
    from dataclasses import replace

    small = replace(settings, max_body_bytes=64)
    with TestClient(create_app(small)) as c:
        c.post("/login", data={"username": USERNAME, "password": PASSWORD})
        body = json.dumps([{"x": "y" * 100}])
        r = c.post("/data", content=body, headers={"Content-Type": "application/json"})
        assert r.status_code == 413
        assert "error" in r.json()
        assert c.get("/data").json() == []


def test_chunked_oversized_body_is_413(tmp_path, user_store, seeded_user, settings):
    from dataclasses import replace

    small = replace(settings, max_body_bytes=64)

    def chunks():
        yield b"["
        for _ in range(20):
            yield b'"yyyyyyyyyyyyyy",'
        yield b"1]"

    with TestClient(create_app(small)) as c:
        c.post("/login", data={"username": USERNAME, "password": PASSWORD})
        r = c.post("/data", content=chunks(), headers={"Content-Type": "application/json"})
        assert r.status_code == 413
        assert c.get("/data").json() == []


def test_chunked_body_within_limit_is_accepted(auth_client):
    def chunks():
        yield b'[{"a": '
        yield b"1}]"

    r = auth_client.post("/data", content=chunks(), headers={"Content-Type": "application/json"})
    assert r.status_code == 200
    assert auth_client.get("/data").json() == [{"a": 1}]


def test_storage_failure_is_500(auth_client, tmp_path):
    auth_client.app.state.records = RecordStore(Database(tmp_path / "never-opened.db"))
    r = auth_client.get("/data")
    assert r.status_code == 500
    assert "error" in r.json()
    r = auth_client.post("/data", json=[1])
    assert r.status_code == 500


def test_logout_then_replayed_cookie_is_rejected(auth_client):
    token = auth_client.cookies.get(COOKIE)
    assert token
    assert auth_client.get("/data").status_code == 200

    r = auth_client.get("/logout", follow_redirects=False)
    assert r.status_code == 303
    assert r.headers["location"] == "/login"

    assert auth_client.get("/data").status_code == 401
    r = auth_client.get("/data", headers={"Cookie": f"{COOKIE}={token}"})
    assert r.status_code == 401


def test_logout_without_session_is_harmless(client):
    r = client.get("/logout", follow_redirects=False)
    assert r.status_code == 303
    assert r.headers["location"] == "/login"


def test_shared_database_file(tmp_path):
    from jsonvault.auth.users import UserStore
    from jsonvault.config import Settings

    path = tmp_path / "vault.db"
    with Database(path) as db:
        store = UserStore(db)
        store.init_schema()
        store.add_user(USERNAME, PASSWORD)

    s = Settings(session_secret="x", credential_store_path=path, record_store_path=path)
    with TestClient(create_app(s)) as c:
        c.post("/login", data={"username": USERNAME, "password": PASSWORD})
        assert c.post("/data", json=[1, 2]).status_code == 200
        assert c.get("/data").json() == [1, 2]
