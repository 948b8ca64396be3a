"""Shared pytest fixtures."""

from datetime import UTC, datetime, timedelta
from typing import Any

import bcrypt
import pytest
from fastapi.testclient import TestClient

from clientportal.app import App
from clientportal.config import Config
from clientportal.core.core import Core
from clientportal.core.modules.account.models import Account
from clientportal.core.modules.session.models import Role
from clientportal.core.storage import MemoryStorage
from clientportal.web.server import create_fastapi_app

PASSWORD = "correct-horse-42"


class FakeClock:
    """Clock that only moves when told to."""

    def __init__(self, start: datetime) -> None:
        self.current = start

    def __call__(self) -> datetime:
        return self.current

    def advance(self, **kwargs: float) -> None:
        self.current += timedelta(**kwargs)


def make_config(**overrides) -> Config:
    values = {
        "database_url": "mongodb://localhost:27017/clientportal_test",
        "secure_cookies": False,  # TestClient talks plain http
        "cron_secret": "cron-secret-value",
    }
    values.update(overrides)
    return Config(_env_file=None, **values)


def make_account(email: str, role: Role, username: str | None = None) -> Account:
    return Account(
        email=email,
        username=username,
        name=email.split("@")[0].title(),
        company="Acme",
        role=role,
        password_hash=bcrypt.hashpw(PASSWORD.encode(), bcrypt.gensalt(rounds=4)).decode(),
    )


def seed_accounts(storage: MemoryStorage, *accounts: Account) -> None:
    """Load accounts directly, as the business side would have created them."""
    for account in accounts:
        storage.accounts._accounts[account.id] = account


def put_session_document(storage: MemoryStorage, document: dict[str, Any]) -> None:
    """Store a session document without validation, as a foreign writer could."""
    storage.sessions._sessions[document["token"]] = document


@pytest.fixture
def clock():
    return FakeClock(datetime(2025, 1, 15, 12, 0, tzinfo=UTC))


@pytest.fixture
def config():
    return make_config()


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
def core(config, storage, clock):
    return Core(config, storage, clock)


@pytest.fixture
def client_account(storage):
    account = make_account("client@example.com", Role.CLIENT, username="client")
    seed_accounts(storage, account)
    return account


@pytest.fixture
def admin_account(storage):
    account = make_account("admin@example.com", Role.ADMIN, username="admin")
    seed_accounts(storage, account)
    return account


@pytest.fixture
def app(config, storage, clock):
    return App(config, storage, clock)


@pytest.fixture
def client(app, config):
    with TestClient(create_fastapi_app(app, config)) as test_client:
        yield test_client
