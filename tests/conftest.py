"""
pyorm Test Configuration and Fixtures
"""
import pytest
from faker import Faker

from fixtures.database import SCHEMA, RecordingConnection
from fixtures.models import ALL_MODELS


@pytest.fixture
def faker():
    """Faker instance for generating test data."""
    fake = Faker()
    fake.seed_instance(1234)
    return fake


@pytest.fixture
def connection():
    """Unbound in-memory connection with the example schema."""
    conn = RecordingConnection()
    conn.execute_script(SCHEMA)
    yield conn
    conn.disconnect()


@pytest.fixture
def db(connection):
    """Connection with every example model bound to it."""
    for model in ALL_MODELS:
        model.bind(connection)
    connection.statements.clear()
    yield connection
    for model in ALL_MODELS:
        model.bind(None)


@pytest.fixture
def seeded_users(db):
    """The two users from the query-builder scenario."""
    from fixtures.models import User

    jane = User.create(name='Jane', email='jane@example.com', age=30, status='active')
    bob = User.create(name='Bob', email='bob@example.com', age=20, status='inactive')
    db.statements.clear()
    return jane, bob


# Custom markers
def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests")
    config.addinivalue_line("markers", "security: Security tests")
    config.addinivalue_line("markers", "database: Database-related tests")
