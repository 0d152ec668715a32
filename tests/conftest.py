"""
Pytest configuration and fixtures for API testing.
"""
import pytest
import requests

from catfacts.app import create_app
from catfacts.model import Model


class FakeResponse:
    def __init__(self, status_code: int = 200, text: str = '{"message": "Queued. Thank you."}'):
        self.status_code = status_code
        self.text = text


class FakeMailgunSession:
    """Stands in for requests.Session, records every request."""

    def __init__(self):
        self.calls = []
        self.fail_for = set()      # recipients/addresses answered with 500
        self.raise_for = set()     # recipients/addresses raising ConnectionError

    def request(self, method, url, data=None, auth=None, timeout=None, verify=None):
        self.calls.append({
            'method': method, 'url': url, 'data': data, 'auth': auth, 'timeout': timeout, 'verify': verify,
        })
        target = (data or {}).get('to') or (data or {}).get('address') or url.rsplit('/', 1)[-1]
        if target in self.raise_for:
            raise requests.exceptions.ConnectionError(f'cannot reach mailgun for {target}')
        if target in self.fail_for:
            return FakeResponse(500, 'boom')
        return FakeResponse()

    def messages(self) -> list:
        return [c for c in self.calls if c['url'].endswith('/messages')]

    def list_members(self) -> list:
        return [c for c in self.calls if c['method'] == 'POST' and c['url'].endswith('/members')]

    def removed_members(self) -> list:
        return [c for c in self.calls if c['method'] == 'DELETE']


@pytest.fixture
def mailgun():
    return FakeMailgunSession()


@pytest.fixture
def app(tmp_path, mailgun):
    app = create_app({
        'DATA_DIR': tmp_path,
        'DB_PATH': tmp_path / 'app.db',
        'MAILGUN_KEY': 'key-test',
        'MAILGUN_URL': 'example.org',
        'MAIL_ENABLED': False,
        'TESTING': True,
    }, mailgun_session=mailgun)
    yield app
    Model.close()


@pytest.fixture
def api(app):
    """API client fixture - provides helper methods for API calls."""
    class APIClient:
        def __init__(self, client):
            self.client = client

        def get(self, path: str):
            return self.client.get(path)

        def post(self, path: str, json: dict = None):
            return self.client.post(path, json=json)

        def put(self, path: str, json: dict = None):
            return self.client.put(path, json=json)

        def delete(self, path: str):
            return self.client.delete(path)

        def reset(self):
            """Clear all test data."""
            r = self.post('/api/test/reset')
            assert r.status_code == 200, f"Reset failed: {r.get_data(as_text=True)}"

        def bulk_facts(self, facts: list) -> dict:
            r = self.post('/api/test/bulk-facts', json={'facts': facts})
            assert r.status_code == 200, f"Bulk facts failed: {r.get_data(as_text=True)}"
            return r.get_json()

        def bulk_subscribers(self, emails: list) -> dict:
            r = self.post('/api/test/bulk-subscribers', json={'emails': emails})
            assert r.status_code == 200, f"Bulk subscribers failed: {r.get_data(as_text=True)}"
            return r.get_json()

    return APIClient(app.test_client())


@pytest.fixture
def clean_db(api):
    """Reset the database before each test."""
    api.reset()
    yield
