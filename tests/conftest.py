"""
Shared fixtures for the Translation Assistant test suite.
"""
import os
import sys
import json
import tempfile

import pytest

# Setup test environment
os.environ.setdefault('VERBOSE_DEBUG', 'false')
os.environ.setdefault('LOG_REQUESTS', 'false')
os.environ.setdefault('LOG_DIR', tempfile.mkdtemp(prefix='translation-assistant-logs-'))

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from translation_assistant.services.openai_client import TranslationServiceError


STRONG_PASSWORD = 'Secret1!pass'


class FakeOpenAIClient:
    """Stands in for the chat completions client in route tests."""

    def __init__(self):
        self.calls = []
        self.error: TranslationServiceError = None

    def translate(self, text, tone='natural'):
        self.calls.append((text, tone))
        if self.error is not None:
            raise self.error
        return f"[{tone}] {text.strip()} (en)"


@pytest.fixture
def database(tmp_path):
    """Fresh SQLite database for each test."""
    from translation_assistant.database.connection import init_database, reset_database

    db = init_database(tmp_path / 'test.db')
    yield db
    reset_database()


@pytest.fixture
def fake_client(monkeypatch):
    client = FakeOpenAIClient()
    monkeypatch.setattr('translation_assistant.api.routes.get_openai_client', lambda: client)
    return client


@pytest.fixture
def app(database, fake_client):
    """Create Flask app wired to the test database and fake client."""
    from translation_assistant.app import create_app
    from translation_assistant.api.middleware import reset_rate_limiters

    reset_rate_limiters()
    app = create_app(testing=True)
    app.config['TESTING'] = True
    yield app
    reset_rate_limiters()


@pytest.fixture
def client(app):
    """Create test client for Flask app."""
    with app.test_client() as client:
        yield client


def register(client, email='alice@example.com', username='alice', password=STRONG_PASSWORD):
    return client.post('/api/auth/register', json={
        'email': email,
        'username': username,
        'password': password,
        'confirmPassword': password,
    })


@pytest.fixture
def auth_headers(client):
    """Register a user and return its Authorization header."""
    response = register(client)
    token = json.loads(response.data)['data']['token']
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture
def other_auth_headers(client):
    response = register(client, email='bob@example.com', username='bob')
    token = json.loads(response.data)['data']['token']
    return {'Authorization': f'Bearer {token}'}
