"""Pytest configuration and fixtures for Pole Capture tests."""
import pytest
import tempfile
import os
from urllib.parse import urlsplit
from backend.app import create_app
from backend.models import db
from backend.services.upload_signer import UploadSigner

FIXED_NOW = 1760871234.5
FIXED_MS = 1760871234500
BACKEND_URL = 'http://backend.test'
ISSUER_URL = f'{BACKEND_URL}/'
PUBLIC_BASE_URL = 'https://pub-123.r2.dev'


def make_signer(**overrides):
    settings = {
        'access_key_id': 'test-access-key',
        'secret_access_key': 'test-secret-key',
        'bucket_name': 'pole-photos',
        'public_base_url': PUBLIC_BASE_URL,
        'account_id': 'acct123',
        'clock': lambda: FIXED_NOW,
    }
    settings.update(overrides)
    return UploadSigner(**settings)


@pytest.fixture
def app(tmp_path, monkeypatch):
    """Create and configure a test app instance."""
    monkeypatch.setenv('LOG_DIR', str(tmp_path / 'logs'))

    # Create temporary database for testing
    db_fd, db_path = tempfile.mkstemp(suffix='.db')

    test_config = {
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': f'sqlite:///{db_path}',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
    }

    app = create_app(test_config, upload_signer=make_signer())

    with app.app_context():
        db.create_all()

    yield app

    with app.app_context():
        db.engine.dispose()

    # Cleanup
    os.close(db_fd)
    os.unlink(db_path)


@pytest.fixture
def client(app):
    """A test client for the app."""
    return app.test_client()


@pytest.fixture
def runner(app):
    """A test runner for the app's Click commands."""
    return app.test_cli_runner()


class FlaskResponse:
    """The slice of ``requests.Response`` the client code reads."""

    def __init__(self, response):
        self._response = response
        self.status_code = response.status_code
        self.text = response.get_data(as_text=True)

    @property
    def ok(self):
        return self.status_code < 400

    def json(self):
        if self._response.is_json:
            return self._response.get_json()
        raise ValueError(f"Response is not JSON: {self.text[:100]}")


class FlaskClientSession:
    """Stands in for ``requests.Session``, routing backend calls to the Flask test client.

    PUTs to any other host are treated as object storage uploads and kept in
    ``uploaded`` keyed by URL.
    """

    def __init__(self, client, base_url=BACKEND_URL):
        self.client = client
        self.host = urlsplit(base_url).netloc
        self.uploaded = {}
        self.calls = []
        self.closed = False

    def request(self, method, url, params=None, json=None, data=None, headers=None, timeout=None):
        self.calls.append((method, url))
        parts = urlsplit(url)
        if parts.netloc != self.host:
            return self._store_object(method, url, data, headers)

        response = self.client.open(
            parts.path or '/',
            method=method,
            query_string=params,
            json=json,
            data=data,
            headers=headers,
        )
        return FlaskResponse(response)

    def _store_object(self, method, url, data, headers):
        assert method == 'PUT', f"unexpected {method} to object storage"
        self.uploaded[url] = {'data': data, 'content_type': (headers or {}).get('Content-Type')}
        return _StorageResponse(200)

    def post(self, url, **kwargs):
        return self.request('POST', url, **kwargs)

    def put(self, url, **kwargs):
        return self.request('PUT', url, **kwargs)

    def close(self):
        self.closed = True


class _StorageResponse:
    def __init__(self, status_code, text=''):
        self.status_code = status_code
        self.text = text
        self.ok = status_code < 400


@pytest.fixture
def backend_session(client):
    """A requests-like session talking to the in-process backend."""
    return FlaskClientSession(client)


class FakeDevice:
    def __init__(self, taker_id='device-test-1'):
        self.taker_id = taker_id


@pytest.fixture
def device():
    return FakeDevice()


@pytest.fixture
def api_service(backend_session):
    from pole_app.services.api_service import APIService
    return APIService(BACKEND_URL, anon_key='anon-key', session=backend_session)


@pytest.fixture
def jpeg_file(tmp_path):
    """A small file with a JPEG header, enough for upload tests."""
    path = tmp_path / 'source.jpg'
    path.write_bytes(b'\xff\xd8\xff\xe0' + b'pole-bytes' * 10)
    return path
