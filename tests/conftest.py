import pytest

from navhub import create_app
from navhub.config import TestConfig
from navhub.extensions import db
from navhub.services.catalog import CatalogStore
from navhub.storage import MemoryStorage


class RecordingStorage(MemoryStorage):
    def __init__(self, initial=None):
        super().__init__(initial)
        self.writes = []

    def set_many(self, items):
        self.writes.append(sorted(items))
        super().set_many(items)


@pytest.fixture
def app():
    app = create_app(TestConfig)
    with app.app_context():
        db.drop_all()
        db.create_all()
    yield app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def storage():
    return RecordingStorage()


@pytest.fixture
def store(storage):
    return CatalogStore(storage).load()
