import sys
from pathlib import Path as _Path
sys.path.insert(0, str(_Path(__file__).resolve().parents[1] / "src"))

from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from jsonvault.app import create_app
from jsonvault.auth.users import UserStore
from jsonvault.config import Settings
from jsonvault.infra.db import Database

USERNAME = "admin"
PASSWORD = "correct horse battery staple"


@pytest.fixture()
def settings(tmp_path: Path) -> Settings:
    return Settings(
        session_secret="test-secret",
        credential_store_path=tmp_path / "users.db",
        record_store_path=tmp_path / "data.db",
    )


@pytest.fixture()
def users_db(settings: Settings):
    with Database(settings.credential_store_path) as db:
        yield db


@pytest.fixture()
def user_store(users_db: Database) -> UserStore:
    store = UserStore(users_db)
    store.init_schema()
    return store


@pytest.fixture()
def seeded_user(user_store: UserStore):
    """A known user in the credential store."""
    return user_store.add_user(USERNAME, PASSWORD)


@pytest.fixture()
def client(settings: Settings, seeded_user):
    with TestClient(create_app(settings)) as c:
        yield c


@pytest.fixture()
def auth_client(client: TestClient) -> TestClient:
    r = client.post("/login", data={"username": USERNAME, "password": PASSWORD}, follow_redirects=False)
    assert r.status_code == 303
    assert r.headers["location"] == "/"
    return client
