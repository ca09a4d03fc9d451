"""
Shared fixtures: a throwaway SQLite store, a scripted partner client and
artisan record builders.
"""
import os

# Must be set before artisan_sync.config is first imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["LOG_TO_FILE"] = "false"
os.environ["ENABLE_SCHEDULER"] = "false"
os.environ["SYNC_TIMEZONE"] = "UTC"

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import NullPool

from artisan_sync.exceptions import PushError
from artisan_sync.models.base import enable_sqlite_savepoints, init_db


@pytest.fixture
def database_url(tmp_path):
    return f"sqlite:///{tmp_path / 'artisan_sync_test.db'}"


@pytest.fixture
def engine(database_url):
    engine = create_engine(
        database_url,
        connect_args={"check_same_thread": False},
        poolclass=NullPool,
    )
    enable_sqlite_savepoints(engine)
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autoflush=False, bind=engine)


@pytest.fixture
def db(engine, database_url):
    """Inspection session on a plain pysqlite engine; its reads never hold a transaction open"""
    reader = create_engine(database_url, connect_args={"check_same_thread": False}, poolclass=NullPool)
    session = sessionmaker(bind=reader)()
    yield session
    session.close()
    reader.dispose()


class FakeVishwakarmaClient:
    """Scripted stand-in for VishwakarmaConnector"""

    def __init__(self, pages=None):
        self.pages = pages or []
        self.auth_error = None
        self.fetch_error = None
        self.push_error = None
        self.push_response = {"Success": True}
        self.auth_calls = 0
        self.fetch_calls = []
        self.pushed = []

    async def authenticate(self):
        self.auth_calls += 1
        if self.auth_error is not None:
            raise self.auth_error
        return "test-token"

    async def fetch_artisans(self, token, date, page):
        self.fetch_calls.append((date, page))
        if self.fetch_error is not None:
            raise self.fetch_error
        if page <= len(self.pages):
            return self.pages[page - 1]
        return []

    async def push_call_details(self, token, payload):
        self.pushed.append(payload)
        if self.push_error is not None:
            raise self.push_error
        return self.push_response

    def get_status(self):
        return {"name": "Fake", "request_count": len(self.fetch_calls)}


@pytest.fixture
def fake_client():
    return FakeVishwakarmaClient()


@pytest.fixture
def push_rejected():
    return PushError("rejected", status=400, payload={"Message": "Invalid ArtisanId"})


def build_artisan(artisan_id="501", name="Ravi", contact="9000000001",
                  lat="26.4", lon="80.3", categories=None):
    if categories is None:
        categories = [{
            "serviceCategoryId": 1,
            "serviceCategoryName": "Home",
            "serviceSubCategory": [{
                "serviceSubCategoryId": 2,
                "subCategoryName": "Repair",
                "service": [{"serviceId": 3, "serviceName": "Plumbing"}],
            }],
        }]
    return {
        "artisanId": artisan_id,
        "artisanName": name,
        "contactNo": contact,
        "lattitude": lat,
        "longitude": lon,
        "serviceCategory": categories,
    }


@pytest.fixture
def make_artisan():
    return build_artisan
