import os

# Keep password hashing fast; must be set before config is imported.
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest
from fastapi.testclient import TestClient

import config
from database import Database
from main import create_app
from services import build_services


@pytest.fixture
def app():
    return create_app(seed=True)


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


@pytest.fixture
def services():
    """Seeded services over a private store, for tests that skip HTTP."""
    from seed import seed_sample_data

    svc = build_services(Database("test"))
    seed_sample_data(svc)
    return svc


def auth_headers(session_id):
    return {"Authorization": f"Bearer {session_id}"}


def register(client, email="alice@craftmail.com", password="secret123", first_name="Alice", last_name="Weaver"):
    resp = client.post("/api/auth/register", json={
        "email": email,
        "password": password,
        "firstName": first_name,
        "lastName": last_name,
    })
    assert resp.status_code == 200, resp.text
    return resp.json()


@pytest.fixture
def user(client):
    body = register(client)
    return {"id": body["user"]["id"], "headers": auth_headers(body["sessionId"])}


@pytest.fixture
def other_user(client):
    body = register(client, email="bob@craftmail.com", first_name="Bob", last_name="Potter")
    return {"id": body["user"]["id"], "headers": auth_headers(body["sessionId"])}


@pytest.fixture
def admin_headers(client):
    resp = client.post("/api/auth/login", json={"email": config.ADMIN_EMAIL, "password": config.ADMIN_PASSWORD})
    assert resp.status_code == 200, resp.text
    return auth_headers(resp.json()["sessionId"])
