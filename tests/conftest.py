"""Общие фикстуры: свежая sqlite-база на каждый тест и шлюз-заглушка"""

import pytest
from fastapi.testclient import TestClient

from config.plans import load_plans
from config.settings import settings
from infrastructure.db.sqlite import init_db, connect, SQLiteUserRepository, SQLiteTransactionRepository
from infrastructure.payments.stub_provider import StubPaymentProvider
from main import app


@pytest.fixture
def db_path(tmp_path, monkeypatch):
    path = str(tmp_path / "test.db")
    monkeypatch.setattr(settings, "DB_PATH", path)
    init_db(path)
    return path


@pytest.fixture
def conn(db_path):
    c = connect(db_path)
    yield c
    c.close()


@pytest.fixture
def users(conn):
    return SQLiteUserRepository(conn)


@pytest.fixture
def transactions(conn):
    return SQLiteTransactionRepository(conn)


@pytest.fixture
def gateway():
    return StubPaymentProvider()


@pytest.fixture
def plans():
    return load_plans()


@pytest.fixture
def client(db_path, gateway, monkeypatch):
    monkeypatch.setattr(settings, "PLANS", "")
    app.state.payment_provider = gateway
    with TestClient(app) as c:
        yield c
    app.state.payment_provider = None


def register(client, name="Alice", email="alice@example.com", password="s3cret-pass"):
    return client.post("/api/user/register", json={"name": name, "email": email, "password": password})


def auth_headers(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def alice(client):
    resp = register(client)
    assert resp.status_code == 201
    return auth_headers(resp.json()["token"])
