"""Telemetry endpoint collector.

Fetches the fleet as JSON from an HTTP(S) telemetry service that aggregates
controller data (e.g. a storage management API or an exporter sidecar).
"""

from __future__ import annotations

import datetime as dt
from typing import Any, Dict, Optional

import requests
import urllib3
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from .base import BaseCollector, CollectorError

try:
    import certifi
    DEFAULT_CA_BUNDLE = certifi.where()
except Exception:
    DEFAULT_CA_BUNDLE = True


class TelemetryHTTPCollector(BaseCollector):
    """Collector for a JSON fleet telemetry endpoint.

    The endpoint must return either a list of array records or an object
    with an ``arrays`` list.
    """

    def __init__(
        self,
        url: str,
        timeout: int = 20,
        verify: bool = True,
        ca_bundle: Optional[str] = None,
        headers: Optional[Dict[str, str]] = None,
    ):
        self.url = url
        self.timeout = timeout
        self._verify = self._determine_verify(not verify, ca_bundle)
        self._headers = headers or {}
        self._session: Optional[requests.Session] = None

        if self._verify is False:
            urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)

    @property
    def name(self) -> str:
        return "telemetry"

    @property
    def display_name(self) -> str:
        return "Array Telemetry"

    def is_available(self) -> bool:
        """Telemetry is available if the endpoint answers without a server error."""
        try:
            resp = self._get_session().head(self.url, timeout=5)
            return resp.status_code < 500
        except Exception:
            return False

    def collect(self) -> Dict[str, Any]:
        """Fetch the fleet payload.

        Raises:
            CollectorError: On TLS, connection, HTTP or decoding failures.
        """
        try:
            resp = self._get_session().get(self.url, timeout=self.timeout)
            resp.raise_for_status()
            data = resp.json()
        except requests.exceptions.SSLError as e:
            raise CollectorError(
                self.name,
                "TLS/SSL error: certificate verify failed. Consider using --insecure or --ca-bundle.",
                e,
            )
        except requests.exceptions.JSONDecodeError as e:
            raise CollectorError(self.name, f"Response from {self.url} is not valid JSON", e)
        except requests.exceptions.RequestException as e:
            raise CollectorError(self.name, str(e), e)

        if isinstance(data, list):
            data = {"arrays": data}
        if not isinstance(data, dict):
            raise CollectorError(self.name, "Unexpected telemetry payload")

        data.setdefault("meta", {})
        data["meta"].setdefault("source_url", self.url)
        data["meta"].setdefault("collector", self.name)
        data["meta"].setdefault(
            "generated_at", dt.datetime.utcnow().replace(microsecond=0).isoformat() + "Z"
        )
        data.setdefault("arrays", [])
        return data

    def _determine_verify(self, insecure: bool, ca_bundle: Optional[str]):
        """Determine SSL verification setting."""
        if insecure:
            return False
        if ca_bundle:
            return ca_bundle
        return DEFAULT_CA_BUNDLE

    def _get_session(self) -> requests.Session:
        """Get or create a requests session with retry configuration."""
        if self._session is None:
            session = requests.Session()
            retry = Retry(
                total=3,
                connect=3,
                read=3,
                backoff_factor=0.5,
                status_forcelist=(429, 500, 502, 503, 504),
                allowed_methods=("GET", "HEAD"),
            )
            adapter = HTTPAdapter(max_retries=retry, pool_connections=2, pool_maxsize=4)
            session.mount("https://", adapter)
            session.mount("http://", adapter)
            session.verify = self._verify
            session.headers.update({"User-Agent": "rebuild-monitor/1.0", "Accept": "application/json"})
            session.headers.update(self._headers)
            self._session = session
        return self._session

    def close(self) -> None:
        """Close the session and release resources."""
        if self._session is not None:
            self._session.close()
            self._session = None
