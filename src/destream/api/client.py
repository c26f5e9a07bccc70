"""
HTTP client for the streaming platform's API gateway.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import requests
from requests.adapters import HTTPAdapter
from urllib3.util import Retry

from destream import __version__
from destream.config import defaults
from destream.exceptions import ApiError, ExitCode

if TYPE_CHECKING:
    from destream.models.session import Session

logger = logging.getLogger(__name__)

RETRY_STATUSES = (429, 500, 502, 503, 504)


def build_http_session(
    retries: int = defaults.API_RETRIES,
    backoff_factor: float = defaults.API_BACKOFF_FACTOR,
) -> requests.Session:
    """Create a requests session that retries throttled and failed calls."""
    http = requests.Session()
    retry = Retry(
        total=retries,
        read=retries,
        connect=retries,
        backoff_factor=backoff_factor,
        status_forcelist=RETRY_STATUSES,
        raise_on_status=False,
    )
    adapter = HTTPAdapter(max_retries=retry)
    http.mount("http://", adapter)
    http.mount("https://", adapter)
    http.headers.update({"User-Agent": f"destream/{__version__}"})
    return http


class ApiClient:
    """Authenticated calls against ``Session.api_gateway_uri``.

    Every request carries the bearer token of the current Session and the
    ``api-version`` query parameter. Replace the Session with set_session()
    after a refresh.
    """

    def __init__(
        self,
        session: Session,
        *,
        http: requests.Session | None = None,
        timeout: float = defaults.API_TIMEOUT,
    ):
        self.session = session
        self.http = http or build_http_session()
        self.timeout = timeout

    def set_session(self, session: Session) -> None:
        self.session = session

    def url_for(self, path: str) -> str:
        return self.session.api_gateway_uri.rstrip("/") + "/" + path.lstrip("/")

    def call(self, path: str, params: dict[str, Any] | None = None, method: str = "GET") -> Any:
        """Call an API endpoint and return the decoded JSON body.

        Args:
            path: Endpoint relative to the API gateway, e.g. ``videos/<guid>``
            params: Extra query parameters
            method: HTTP method

        Raises:
            ApiError: On transport errors, non-2xx responses or non-JSON bodies
        """
        url = self.url_for(path)
        query = {**(params or {}), "api-version": self.session.api_gateway_version}
        headers = {"Authorization": self.session.authorization_header}

        logger.debug(f"{method} {url}")
        try:
            response = self.http.request(
                method, url, params=query, headers=headers, timeout=self.timeout
            )
        except requests.RequestException as e:
            raise ApiError(f"Request to {url} failed: {e}", url=url) from e

        if not response.ok:
            exit_code = ExitCode.NO_SESSION_INFO if response.status_code == 401 else None
            raise ApiError(
                f"{method} {path} returned HTTP {response.status_code}",
                status_code=response.status_code,
                url=url,
                exit_code=exit_code,
            )

        try:
            return response.json()
        except ValueError as e:
            raise ApiError(f"Invalid JSON from {url}", status_code=response.status_code, url=url) from e
