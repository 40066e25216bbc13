"""
Global test fixtures.

- app: Flask app built from TestingConfig (in-memory SQLite, bcrypt rounds = 4)
- client: Flask test client
- user / auth_headers: an authenticated user for protected endpoints
"""

import pytest

from app import create_app
from config import TestingConfig
from models import db as _db
from tokens import issue_token


@pytest.fixture
def app():
    app = create_app(TestingConfig)

    with app.app_context():
        yield app
        _db.session.remove()
        _db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def db(app):
    return _db


def headers_for(user):
    """Bearer header for the given user."""
    return {'Authorization': f'Bearer {issue_token(user.id)}'}


@pytest.fixture
def user(app):
    from tests.factories import UserFactory
    return UserFactory(email='owner@example.com', name='Owner')


@pytest.fixture
def other_user(app):
    from tests.factories import UserFactory
    return UserFactory(email='outsider@example.com', name='Outsider')


@pytest.fixture
def auth_headers(user):
    return headers_for(user)


@pytest.fixture
def other_auth_headers(other_user):
    return headers_for(other_user)
