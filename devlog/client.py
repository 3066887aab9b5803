"""HTTP client for a running dev-log server."""

import logging

import requests

from devlog.lifecycle import LifecycleRecord, probe_host

logger = logging.getLogger(__name__)


class ClientError(Exception):
    """Raised when the server rejects a request or cannot be located."""


class DevLogClient:
    """Posts entries to, and reads entries from, a dev-log server."""

    def __init__(self, host: str, port: int, timeout: float = 5.0,
                 trust_env: bool = False):
        self.base_url = f"http://{probe_host(host)}:{port}"
        self.timeout = timeout
        # Proxy settings from the environment are ignored unless asked for
        self.trust_env = trust_env

    @classmethod
    def from_record(cls, record: LifecycleRecord, host: str = "127.0.0.1",
                    timeout: float = 5.0) -> "DevLogClient":
        """Locate the server through its port record."""
        port = record.read_port()
        if port is None:
            raise ClientError(f"No port recorded in {record.port_path}; is the server running?")
        return cls(host, port, timeout=timeout)

    def health(self) -> dict:
        return self._request("GET", "/health")

    def send(self, entries) -> dict:
        """Post one entry (a dict) or a batch (a list of dicts)."""
        return self._request("POST", "/logs", json=entries)

    def fetch(self) -> list:
        return self._request("GET", "/logs")

    def _request(self, method: str, path: str, **kwargs):
        url = self.base_url + path
        try:
            with requests.Session() as session:
                session.trust_env = self.trust_env
                resp = session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            raise ClientError(f"{method} {url} failed: {e}") from e

        if resp.status_code != 200:
            try:
                detail = resp.json().get("error", resp.text)
            except ValueError:
                detail = resp.text
            raise ClientError(f"{method} {url} returned {resp.status_code}: {detail}")

        logger.debug("%s %s -> %d", method, url, resp.status_code)
        return resp.json()
