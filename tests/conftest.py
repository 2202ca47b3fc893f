import pytest

from expense_splitter.app import create_app
from expense_splitter import config
from expense_splitter.settlement import Expense
from expense_splitter.store import MemoryGroupStore


@pytest.fixture
def store():
    return MemoryGroupStore()


@pytest.fixture
def app(store):
    return create_app(config.TestConfig, store=store)


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def trip_expenses():
    """Dinner paid by Alice for everyone, drinks paid by Bob for everyone."""
    return [
        Expense("Alice", 300.0, ("Alice", "Bob", "Charlie"), "Dinner", 1),
        Expense("Bob", 100.0, ("Alice", "Bob", "Charlie"), "Drinks", 2),
    ]
