import os

# Settings are read at import time, so the environment must be ready first
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("DATABASE_URL", "sqlite:///./test_unused.db")

import pytest
from fastapi.testclient import TestClient

from money_tracker.core.database import Database
from money_tracker.main import create_app

TEST_EMAIL = "a@x.com"
TEST_PASSWORD = "p1"
OTHER_EMAIL = "b@x.com"
OTHER_PASSWORD = "p2"
VALID_DATETIME = "2024-03-01T12:00:00Z"


@pytest.fixture
def database(tmp_path):
    """A connected Database over a throwaway SQLite file"""
    db = Database(f"sqlite:///{tmp_path / 'test.db'}")
    db.connect()
    yield db
    db.dispose()


@pytest.fixture
def db_session(database):
    session = database.session()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def app(tmp_path):
    return create_app(database=Database(f"sqlite:///{tmp_path / 'app.db'}"))


@pytest.fixture
def client(app):
    # Context manager runs the lifespan, which connects the database
    with TestClient(app) as test_client:
        yield test_client


def signup(client, email, password):
    return client.post("/api/auth/signup", json={"email": email, "password": password})


def login(client, email, password):
    return client.post("/api/auth/login", json={"email": email, "password": password})


def register_and_login(client, email, password):
    """Sign up, log in and return ready-to-use auth headers"""
    r_signup = signup(client, email, password)
    assert r_signup.status_code == 200, r_signup.text
    r_login = login(client, email, password)
    assert r_login.status_code == 200, r_login.text
    return {"Authorization": f"Bearer {r_login.json()['access_token']}"}


@pytest.fixture
def auth_headers(client):
    return register_and_login(client, TEST_EMAIL, TEST_PASSWORD)


@pytest.fixture
def other_headers(client):
    return register_and_login(client, OTHER_EMAIL, OTHER_PASSWORD)


def make_transaction(client, headers, **overrides):
    payload = {
        "name": "coffee",
        "description": "",
        "price": -5,
        "datetime": VALID_DATETIME,
    }
    payload.update(overrides)
    return client.post("/api/transaction", json=payload, headers=headers)
