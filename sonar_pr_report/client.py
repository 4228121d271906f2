"""SonarQube API client.

Usage:
    client = SonarClient(url="https://sonar.example.com", token="squ_xxx")
    for page in client.iter_pages("/api/issues/search", params, results_key="issues"):
        issues.extend(page["issues"])
"""

import logging
import warnings
from typing import Any, Iterator

import requests

PAGE_SIZE = 500
PAGINATION_WARNING_THRESHOLD = 10_000

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------

class SonarClientError(Exception):
    """Base exception for all client errors."""


class AuthenticationError(SonarClientError):
    """Raised on HTTP 401 — invalid or expired token."""


class NotFoundError(SonarClientError):
    """Raised on HTTP 404 — project, PR or resource not found."""


class NetworkError(SonarClientError):
    """Raised on connection timeout or unreachable server."""


# ---------------------------------------------------------------------------
# Client
# ---------------------------------------------------------------------------

class SonarClient:
    """Thin wrapper around the SonarQube REST API."""

    def __init__(self, url: str, token: str, timeout: int = 30) -> None:
        self.base_url = url.rstrip("/")
        self._timeout = timeout
        self._session = requests.Session()
        # SonarQube auth: token as username, empty password
        self._session.auth = (token, "")

    # ------------------------------------------------------------------
    # Public interface
    # ------------------------------------------------------------------

    def iter_pages(
        self,
        endpoint: str,
        params: dict[str, Any],
        results_key: str,
    ) -> Iterator[dict]:
        """Yield each raw page of a paginated endpoint.

        SonarQube paginates via ``p`` (page number) and ``ps`` (page size).
        The total result count is in ``response["paging"]["total"]``.
        Pages are full response bodies, so side lists such as
        ``components`` stay available to the caller.

        Emits a warning when total > PAGINATION_WARNING_THRESHOLD (10 000)
        because SonarQube refuses to page beyond that limit.

        Raises:
            AuthenticationError: HTTP 401
            NotFoundError:       HTTP 404
            SonarClientError:    Any other non-2xx response
            NetworkError:        Timeout or connection failure
        """
        fetched = 0
        page = 1
        warning_emitted = False

        while True:
            page_params = {**params, "ps": PAGE_SIZE, "p": page}
            data = self._request(endpoint, page_params)
            yield data

            results = data.get(results_key, [])
            fetched += len(results)

            paging = data.get("paging", {})
            total: int = paging.get("total", fetched)

            if total > PAGINATION_WARNING_THRESHOLD and not warning_emitted:
                warnings.warn(
                    f"Result set exceeds {PAGINATION_WARNING_THRESHOLD} items (total={total}). "
                    "SonarQube caps pagination at 10 000 — some results may be missing.",
                    UserWarning,
                    stacklevel=2,
                )
                warning_emitted = True

            # Stop when we've fetched everything
            if fetched >= total or not results:
                break

            page += 1

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _request(self, endpoint: str, params: dict[str, Any]) -> dict:
        url = f"{self.base_url}{endpoint}"
        logger.debug("GET %s %s", url, params)
        try:
            response = self._session.get(url, params=params, timeout=self._timeout)
        except requests.exceptions.Timeout as exc:
            raise NetworkError(
                f"Request timed out after {self._timeout}s while contacting '{url}'"
            ) from exc
        except requests.exceptions.ConnectionError as exc:
            raise NetworkError(
                f"Unable to reach SonarQube server at '{self.base_url}'"
            ) from exc

        if response.status_code == 401:
            raise AuthenticationError(
                "Authentication failed — check that your token is valid and not expired."
            )
        if response.status_code == 404:
            raise NotFoundError(
                f"Resource not found: {url}"
            )
        if not response.ok:
            raise SonarClientError(
                f"Unexpected response {response.status_code} from {url}: {response.text[:200]}"
            )

        return response.json()
