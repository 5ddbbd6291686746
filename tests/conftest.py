"""Pytest configuration and fixtures."""

from unittest.mock import MagicMock

import pytest

from mongorepository.db.repositories import MongoRepository
from tests.helpers.entities import Person, Product
from tests.helpers.fake_motor import FakeCollection


@pytest.fixture
def mock_settings():
    """Mock Settings for testing."""
    settings = MagicMock()

    # Default connection target
    settings.mongo.server_settings = "mongodb://localhost:27017/test_db"
    settings.mongo.database = None

    # Driver and operation settings
    settings.database.server_selection_timeout_ms = 5000
    settings.database.connect_timeout_ms = 10000
    settings.database.socket_timeout_ms = 30000
    settings.database.operation_timeout = None
    settings.database.cursor_batch_size = 100

    return settings


@pytest.fixture
def people_collection():
    """In-memory collection for Person entities."""
    return FakeCollection("Person")


@pytest.fixture
def people(people_collection, mock_settings):
    """Repository of Person entities (ObjectId keys) on a fake collection."""
    return MongoRepository.from_collection(
        Person, people_collection, settings=mock_settings
    )


@pytest.fixture
def products_collection():
    """In-memory collection for Product entities."""
    return FakeCollection("Product")


@pytest.fixture
def products(products_collection, mock_settings):
    """Repository of Product entities (opaque string keys) on a fake collection."""
    return MongoRepository.from_collection(
        Product, products_collection, settings=mock_settings
    )
