from datetime import datetime
from zoneinfo import ZoneInfo

import pytest

from payroll_deductions import create_app
from payroll_deductions.models import (
    CONTRACTOR_LIST_HEADERS,
    DATA_HEADERS,
    USER_HEADERS,
)
from payroll_deductions.store.memory import InMemoryRowStore

CAIRO = ZoneInfo("Africa/Cairo")


@pytest.fixture
def fixed_now():
    return datetime(2024, 5, 23, 14, 30, tzinfo=CAIRO)


@pytest.fixture
def fallback_store():
    return InMemoryRowStore()


@pytest.fixture
def sheet_store():
    """A configured spreadsheet, pre-filled with reference data."""
    return InMemoryRowStore(
        {
            "Users": [
                USER_HEADERS,
                [" Boss@Example.com ", "s3cret", "admin"],
                ["clerk@example.com", "pw", "user"],
                ["norole@example.com", "pw", ""],
            ],
            "Contractors": [
                CONTRACTOR_LIST_HEADERS,
                ["مقاول أ"],
                ["مقاول ب"],
                ["مقاول أ"],
                [""],
            ],
            "DMC DATA": [
                DATA_HEADERS,
                ["عقد 1", "بند 1"],
                ["عقد 2", ""],
                ["عقد 1", "بند 2"],
            ],
        }
    )


@pytest.fixture
def app(fallback_store):
    app = create_app("config.TestConfig")
    app.extensions["row_store"] = None
    app.extensions["fallback_store"] = fallback_store
    return app


@pytest.fixture
def configured_app(app, sheet_store):
    app.extensions["row_store"] = sheet_store
    return app


@pytest.fixture
def client(app):
    return app.test_client()


def login(client, email, password, role="user"):
    return client.post(
        "/auth/login",
        data={"email": email, "password": password, "role": role},
    )


@pytest.fixture
def user_client(client):
    login(client, "user@test.com", "123", "user")
    return client


@pytest.fixture
def admin_client(client):
    login(client, "admin@test.com", "123", "admin")
    return client
