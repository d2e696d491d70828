import logging
from urllib.parse import unquote, urlsplit, urlunsplit

import requests

from ..config import Config
from ..errors import MalformedPayload, TransportError, UpstreamStatus

logger = logging.getLogger(__name__)


class GrafanaClient:
    """Thin HTTP transport for the Grafana REST API.

    Every call is a single attempt.  A status other than 200 raises
    ``UpstreamStatus``; a connection-level failure raises ``TransportError``.
    """

    def __init__(self, config: Config):
        self.config = config
        self.base_url, self._auth = self._split_credentials(
            config.grafana_url
        )
        self._session: requests.Session | None = None

    @property
    def session(self) -> requests.Session:
        """Lazily created session shared by all requests."""
        if self._session is None:
            self._session = self._create_session()
        return self._session

    @staticmethod
    def _split_credentials(
        url: str,
    ) -> tuple[str, tuple[str, str] | None]:
        # Userinfo embedded in the configured URL becomes session auth so
        # request URLs (and log lines) never carry the password.
        parts = urlsplit(url)
        if parts.username is None:
            return url.rstrip("/"), None
        host = parts.hostname or ""
        if parts.port is not None:
            host = f"{host}:{parts.port}"
        bare = urlunsplit(
            (parts.scheme, host, parts.path, parts.query, parts.fragment)
        )
        auth = (unquote(parts.username), unquote(parts.password or ""))
        return bare.rstrip("/"), auth

    def _create_session(self) -> requests.Session:
        session = requests.Session()
        session.auth = self._auth
        session.headers.update(
            {
                "Content-Type": "application/json",
                "Accept": "application/json",
            }
        )
        return session

    def url_for(self, path: str) -> str:
        return f"{self.base_url}{path}"

    def _request(
        self, method: str, path: str, data: bytes | None = None
    ) -> requests.Response:
        """
        Send one request and enforce the exactly-200 contract.
        """
        url = self.url_for(path)
        logger.debug("%s %s", method, url)
        try:
            response = self.session.request(
                method,
                url,
                data=data,
                timeout=self.config.request_timeout,
            )
        except requests.RequestException as exc:
            raise TransportError(f"{method} {url} failed: {exc}") from exc

        if response.status_code != 200:
            raise UpstreamStatus(
                response.status_code,
                f"{response.status_code} {response.reason or ''}".strip(),
            )
        return response

    def get(self, path: str) -> bytes:
        """
        GET *path* and return the raw response body.
        """
        return self._request("GET", path).content

    def post(self, path: str, body: bytes) -> bytes:
        """
        POST a JSON *body* to *path* and return the raw response body.
        """
        return self._request("POST", path, data=body).content

    def delete(self, path: str) -> None:
        self._request("DELETE", path)

    def validate_connection(self) -> str:
        """
        Validate connection by calling /api/health.
        Returns the reported Grafana version, or an empty string.
        """
        response = self._request("GET", "/api/health")
        try:
            body = response.json()
        except ValueError as exc:
            raise MalformedPayload(
                f"/api/health returned invalid JSON: {exc}"
            ) from exc
        version = body.get("version") if isinstance(body, dict) else None
        return str(version) if version is not None else ""

    def close(self) -> None:
        if self._session is not None:
            self._session.close()
            self._session = None
