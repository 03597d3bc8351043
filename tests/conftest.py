"""
Shared fixtures. The API runs against a throwaway SQLite file per test and
with the Elasticsearch sink disabled unless a test supplies its own.
"""

import logging

import pytest
import structlog
from fastapi.testclient import TestClient

from product_api.core.config import Settings
from product_api.main import create_app

# Suppress noisy logs from SQLAlchemy during tests for cleaner output
logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


class FakeIndices:
    def __init__(self, exists=False, acknowledged=True, error=None):
        self._exists = exists
        self.acknowledged = acknowledged
        self.error = error
        self.created = []

    def exists(self, index):
        if self.error is not None:
            raise self.error
        return self._exists

    def create(self, index):
        self.created.append(index)
        self._exists = self.acknowledged
        return {"acknowledged": self.acknowledged, "index": index}


class FakeElasticsearch:
    """Stands in for the Elasticsearch client; records indexed documents."""

    def __init__(self, exists=False, acknowledged=True, index_error=None, error=None):
        self.indices = FakeIndices(exists=exists, acknowledged=acknowledged, error=error)
        self.index_error = index_error
        self.documents = []
        self.closed = False

    def index(self, index, document):
        if self.index_error is not None:
            raise self.index_error
        self.documents.append((index, document))
        return {"result": "created"}

    def close(self):
        self.closed = True


@pytest.fixture
def make_es_client():
    return FakeElasticsearch


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'products.db'}",
        elasticsearch_url="",
        environment="test",
        log_level="WARNING",
    )


@pytest.fixture
def app(settings):
    return create_app(settings)


@pytest.fixture
def client(app):
    """
    TestClient runs the lifespan, so tables exist before the first request.
    """
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture(autouse=True)
def reset_structlog():
    """Each test starts from structlog's defaults, dropping any configured sink."""
    yield
    structlog.reset_defaults()
    structlog.contextvars.clear_contextvars()
