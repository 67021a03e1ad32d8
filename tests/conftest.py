# tests/conftest.py

import pytest


@pytest.fixture
def app_with_db():
    """
    Creates a new app instance for a single test, sets up an in-memory database,
    and yields the app within an application context.
    """
    from app import create_app, db
    from config import TestConfig

    app = create_app(TestConfig)

    with app.app_context():
        db.create_all()
        yield app  # The tests will run here
        db.session.remove()
        db.drop_all()


@pytest.fixture
def seeded_app(app_with_db):
    """The app with the demo locations, assignments and transactions loaded."""
    from app.seed import seed_data
    seed_data()
    return app_with_db


@pytest.fixture
def client(seeded_app):
    return seeded_app.test_client()


@pytest.fixture
def allocator():
    from app.calculator.engine import CommissionAllocator
    return CommissionAllocator(remainder_party='HouseParty')
