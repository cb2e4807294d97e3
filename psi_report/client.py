"""PageSpeed Insights API client.

Usage:
    client = PageSpeedClient(api_key="AIza...")
    raw    = client.run_pagespeed("https://www.example.org/", DeviceProfile.MOBILE)
"""

import threading
from typing import Any

import requests

from psi_report.models import DeviceProfile

PSI_URL = "https://www.googleapis.com/pagespeedonline/v5/runPagespeed"

# Lighthouse runs server-side and regularly takes tens of seconds
DEFAULT_TIMEOUT = 120

CATEGORIES = ("PERFORMANCE", "ACCESSIBILITY", "BEST_PRACTICES", "SEO", "PWA")


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------

class PageSpeedClientError(Exception):
    """Base exception for all client errors."""


class AuthenticationError(PageSpeedClientError):
    """Raised when the API key is rejected."""


class RateLimitError(PageSpeedClientError):
    """Raised on HTTP 429 — quota exhausted for the key (or the anonymous quota)."""


class NetworkError(PageSpeedClientError):
    """Raised on connection timeout or unreachable server."""


# ---------------------------------------------------------------------------
# Client
# ---------------------------------------------------------------------------

class PageSpeedClient:
    """Thin wrapper around the PageSpeed Insights v5 REST API."""

    def __init__(
        self,
        api_key: str | None = None,
        timeout: int = DEFAULT_TIMEOUT,
        base_url: str = PSI_URL,
    ) -> None:
        self.base_url = base_url
        self._api_key = api_key or None
        self._timeout = timeout
        # Session is not thread-safe; each worker thread gets its own
        self._local = threading.local()

    # ------------------------------------------------------------------
    # Public interface
    # ------------------------------------------------------------------

    def run_pagespeed(self, url: str, device: DeviceProfile = DeviceProfile.DESKTOP) -> dict:
        """Analyze *url* and return the decoded PSI response.

        Raises:
            AuthenticationError:  invalid API key
            RateLimitError:       HTTP 429
            PageSpeedClientError: any other non-2xx response
            NetworkError:         timeout or connection failure
        """
        params: dict[str, Any] = {
            "url": url,
            "strategy": device.value,
            # requests repeats the parameter for list values
            "category": list(CATEGORIES),
        }
        if self._api_key:
            params["key"] = self._api_key
        return self._request(params)

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    @property
    def _session(self) -> requests.Session:
        session = getattr(self._local, "session", None)
        if session is None:
            session = requests.Session()
            self._local.session = session
        return session

    def _request(self, params: dict[str, Any]) -> dict:
        try:
            response = self._session.get(self.base_url, params=params, timeout=self._timeout)
        except requests.exceptions.Timeout as exc:
            raise NetworkError(
                f"Request timed out after {self._timeout}s while analyzing '{params['url']}'"
            ) from exc
        except requests.exceptions.ConnectionError as exc:
            raise NetworkError(
                f"Unable to reach PageSpeed Insights at '{self.base_url}'"
            ) from exc

        if response.ok:
            return response.json()

        message = _error_message(response)
        if response.status_code in (401, 403) or (
            response.status_code == 400 and "API key" in message
        ):
            raise AuthenticationError(
                f"API key rejected — check that it is valid and has the PageSpeed API enabled. ({message})"
            )
        if response.status_code == 429:
            raise RateLimitError(f"Quota exceeded: {message}")
        raise PageSpeedClientError(
            f"Unexpected response {response.status_code} for '{params['url']}': {message}"
        )


def _error_message(response: requests.Response) -> str:
    """Return the ``error.message`` field of a Google API error body, or the raw text."""
    try:
        return response.json()["error"]["message"]
    except (ValueError, KeyError, TypeError):
        return response.text[:200]
