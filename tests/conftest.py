"""Pytest configuration and shared fixtures."""

import os

os.environ["AUTH_SECRET_CODE"] = "letmein"
os.environ["BEARER_TOKEN"] = "admin-bearer-token"
os.environ["MONGODB_URI"] = "mongodb://localhost:27017"
os.environ["MONGODB_DB"] = "devtrack_test"

import mongomock  # noqa: E402
import pytest  # noqa: E402

import config  # noqa: E402
import store  # noqa: E402
from app import app as flask_app  # noqa: E402


ADMIN_TOKEN = config.BEARER_TOKEN


@pytest.fixture(autouse=True)
def mongo(monkeypatch):
    """Swap the process-wide client for an in-memory one."""
    monkeypatch.setattr(store, "MongoClient", mongomock.MongoClient)
    client = store.init_client(config.MONGODB_URI, config.MONGODB_DB)
    yield client
    store.close_client()


@pytest.fixture
def posts(mongo):
    return mongo[config.MONGODB_DB][config.POSTS_COLLECTION]


@pytest.fixture
def client():
    flask_app.config.update(TESTING=True)
    with flask_app.test_client() as c:
        yield c


@pytest.fixture
def admin_client(client):
    client.set_cookie(config.AUTH_COOKIE, ADMIN_TOKEN)
    return client


@pytest.fixture
def guest_client(client):
    client.set_cookie(config.AUTH_COOKIE, config.GUEST_TOKEN)
    return client
