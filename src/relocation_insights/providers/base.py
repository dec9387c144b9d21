"""
Base class for the third-party data providers.

All providers inherit from BaseProvider and get:
- A lazily created requests.Session with JSON headers
- Per-request timeout and bounded retry with exponential backoff
- Uniform error translation into the ProviderError family
"""

import abc
import random
import time
from typing import Any, Optional

import requests

from relocation_insights.config import settings
from relocation_insights.logging_config import get_logger
from relocation_insights.exceptions import (
    ProviderNotConfiguredError,
    ProviderParsingError,
    ProviderRequestError,
)

logger = get_logger(__name__)


class BaseProvider(abc.ABC):
    """
    Abstract base class for HTTP-backed data providers.

    Provides:
        - request_json(): GET with timeout, retry on network/5xx errors
        - require_key(): fail fast when the provider's API key is missing

    Subclasses set:
        - NAME: Human-readable provider name used in logs and errors
        - BASE_URL: Prefix for relative request paths
    """

    NAME: str = ""
    BASE_URL: str = ""
    BACKOFF_BASE: float = 1.0

    def __init__(
        self,
        api_key: Optional[str] = None,
        timeout: Optional[int] = None,
        max_retries: Optional[int] = None,
        session: Optional[requests.Session] = None,
    ):
        self.api_key = api_key
        self.timeout = timeout or settings.providers.provider_timeout
        self.max_retries = max(1, max_retries or settings.providers.provider_max_retries)
        self._session = session

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    def require_key(self) -> str:
        if not self.api_key:
            raise ProviderNotConfiguredError(self.NAME)
        return self.api_key

    # ─── HTTP ───────────────────────────────────────────────

    @property
    def session(self) -> requests.Session:
        """Lazy-init a requests session with JSON headers."""
        if self._session is None:
            self._session = requests.Session()
            self._session.headers.update(self.default_headers())
        return self._session

    def default_headers(self) -> dict[str, str]:
        return {
            "Accept": "application/json",
            "User-Agent": "relocation-insights/1.0",
        }

    def request_json(
        self,
        path: str,
        params: Optional[dict[str, Any]] = None,
        headers: Optional[dict[str, str]] = None,
        timeout: Optional[int] = None,
    ) -> Any:
        """
        GET a JSON document.

        Args:
            path: Absolute URL or path relative to BASE_URL.
            params: Query parameters.
            headers: Extra headers for this request.
            timeout: Override the provider timeout (seconds).

        Returns:
            Decoded JSON body.

        Raises:
            ProviderRequestError: Network failure or non-2xx status (details carry ``status``).
            ProviderParsingError: Body is not JSON.
        """
        url = path if path.startswith("http") else f"{self.BASE_URL}{path}"
        last_error: Optional[Exception] = None

        for attempt in range(1, self.max_retries + 1):
            try:
                response = self.session.get(
                    url, params=params, headers=headers, timeout=timeout or self.timeout,
                )
            except requests.RequestException as e:
                last_error = e
            else:
                status = response.status_code
                if status < 400:
                    try:
                        return response.json()
                    except ValueError as e:
                        raise ProviderParsingError(
                            message=f"{self.NAME} returned a non-JSON body",
                            details={"url": url, "status": status},
                        ) from e
                error = ProviderRequestError(
                    message=f"{self.NAME} returned HTTP {status}",
                    details={"url": url, "status": status},
                )
                if status < 500:
                    raise error
                last_error = error

            if attempt < self.max_retries:
                wait = self.BACKOFF_BASE * 2 ** (attempt - 1) + random.uniform(0, 0.5)
                logger.warning(
                    "%s request attempt %d/%d failed for %s: %s — retrying in %.1fs",
                    self.NAME, attempt, self.max_retries, url, last_error, wait,
                )
                time.sleep(wait)

        if isinstance(last_error, ProviderRequestError):
            raise last_error
        raise ProviderRequestError(
            message=f"{self.NAME} request failed: {last_error}",
            details={"url": url, "last_error": str(last_error)},
        ) from last_error

    # ─── Context Manager ────────────────────────────────────

    def close(self) -> None:
        if self._session is not None:
            self._session.close()
            self._session = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False


def status_of(error: Exception) -> Optional[int]:
    """HTTP status carried by a ProviderRequestError, if any."""
    details = getattr(error, "details", None) or {}
    return details.get("status")
