"""API service for HTTP client abstraction."""
import requests
import logging
from shared.errors import NetworkError


class APIService:
    """HTTP client for the metadata backend.

    Requests are issued once: there is no retry and no offline queue. Transport
    failures and non-2xx responses are raised as NetworkError.
    """

    def __init__(self, base_url, anon_key=None, timeout=None, session=None):
        self.base_url = base_url.rstrip('/')
        self.anon_key = anon_key
        self.timeout = timeout
        self.session = session or requests.Session()
        self.logger = logging.getLogger(self.__class__.__name__)

    def _get_auth_headers(self):
        """Headers identifying the client with the anonymous API key."""
        headers = {}
        if self.anon_key:
            headers['apikey'] = self.anon_key
        return headers

    def _merge_headers(self, kwargs):
        """Merge auth headers with any provided headers in kwargs."""
        auth_headers = self._get_auth_headers()
        if not auth_headers:
            return kwargs

        existing_headers = kwargs.get('headers', {})
        if not isinstance(existing_headers, dict):
            existing_headers = {}

        kwargs['headers'] = {**existing_headers, **auth_headers}
        return kwargs

    def _make_request(self, method, url, **kwargs):
        """Make a single HTTP request, wrapping transport errors."""
        kwargs = self._merge_headers(kwargs)
        if self.timeout is not None:
            kwargs.setdefault('timeout', self.timeout)

        try:
            return self.session.request(method, url, **kwargs)
        except requests.exceptions.RequestException as e:
            self.logger.error(f"{method} {url} failed: {e}")
            raise NetworkError(f"{method} {url} failed: {e}") from e

    def raise_for_status(self, response, operation):
        """Raise NetworkError carrying status and body for non-2xx responses."""
        if response.ok:
            return response
        body = response.text
        self.logger.error(f"Failed to {operation}: {response.status_code} {body}")
        raise NetworkError(f"Failed to {operation}: {response.status_code} {body}",
                           status_code=response.status_code, body=body)

    def get(self, endpoint, **kwargs):
        """GET request with error handling."""
        return self._make_request('GET', f"{self.base_url}{endpoint}", **kwargs)

    def post(self, endpoint, **kwargs):
        """POST request with error handling."""
        return self._make_request('POST', f"{self.base_url}{endpoint}", **kwargs)

    def patch(self, endpoint, **kwargs):
        """PATCH request with error handling."""
        return self._make_request('PATCH', f"{self.base_url}{endpoint}", **kwargs)

    def delete(self, endpoint, **kwargs):
        """DELETE request with error handling."""
        return self._make_request('DELETE', f"{self.base_url}{endpoint}", **kwargs)

    def check_connection(self):
        """Return True if the backend answers its health probe."""
        try:
            response = self.get('/api/health')
        except NetworkError:
            return False
        if not response.ok:
            self.logger.error(f"Backend connection error: {response.status_code} {response.text}")
            return False
        self.logger.info("Backend connected successfully")
        return True
