"""HTTP fetch of the remote listing document."""

import logging

import requests

from jobtracker.config.models import ListingConfig
from jobtracker.logging import get_logger

from .exceptions import ListingConfigurationError, ListingUnavailableError

logger = get_logger(__name__, component="listings")


class ListingFetcher:
    """Fetches the listing document with a single blocking GET.

    No caching and no retries: any failure is reported immediately as
    ListingUnavailableError.

    Attributes:
        url: Raw URL of the markdown document
        timeout: HTTP request timeout in seconds
        user_agent: User-Agent header for HTTP requests
    """

    def __init__(
        self,
        url: str,
        timeout: int = 30,
        user_agent: str = "JobApplicationTracker/1.0",
    ) -> None:
        """Initialize fetcher.

        Raises:
            ListingConfigurationError: If url is not http(s), timeout is outside
                5-300 seconds or user_agent is empty
        """
        if not url or not url.startswith(("http://", "https://")):
            raise ListingConfigurationError(f"Listing url must be http(s), got: {url!r}")
        if not 5 <= timeout <= 300:
            raise ListingConfigurationError(
                f"Timeout must be between 5 and 300 seconds, got: {timeout}"
            )
        if not user_agent or not user_agent.strip():
            raise ListingConfigurationError("user_agent cannot be empty")

        self.url = url
        self.timeout = timeout
        self.user_agent = user_agent.strip()

        self._session = requests.Session()
        self._session.headers.update({"User-Agent": self.user_agent})

    @classmethod
    def from_config(cls, listing_config: ListingConfig) -> "ListingFetcher":
        """Build a fetcher from the ``listing`` configuration section."""
        return cls(
            url=listing_config.url,
            timeout=listing_config.http_request_timeout,
            user_agent=listing_config.user_agent,
        )

    def fetch(self) -> str:
        """Download the listing document.

        Returns:
            Document text decoded as UTF-8

        Raises:
            ListingUnavailableError: On timeout, connection failure or HTTP status >= 400
        """
        logger.debug(
            f"HTTP GET request to {self.url}",
            extra={
                "event": "listings.fetch.request",
                "url": self.url,
                "timeout": self.timeout,
            },
        )

        try:
            response = self._session.request(method="GET", url=self.url, timeout=self.timeout)
        except requests.exceptions.Timeout as e:
            logger.warning(
                f"Listing request timed out after {self.timeout} seconds",
                extra={
                    "event": "listings.fetch.error",
                    "error_type": "Timeout",
                    "url": self.url,
                },
            )
            raise ListingUnavailableError(
                f"Request to {self.url} timed out after {self.timeout} seconds",
                url=self.url,
            ) from e
        except requests.exceptions.RequestException as e:
            logger.error(
                f"Listing request failed: {e}",
                extra={
                    "event": "listings.fetch.error",
                    "error_type": type(e).__name__,
                    "url": self.url,
                },
            )
            raise ListingUnavailableError(f"Request to {self.url} failed: {e}", url=self.url) from e

        if response.status_code >= 400:
            level = logging.WARNING if response.status_code >= 500 else logging.ERROR
            logger.log(
                level,
                f"HTTP {response.status_code} error from {self.url}",
                extra={
                    "event": "listings.fetch.error",
                    "status_code": response.status_code,
                    "url": self.url,
                },
            )
            raise ListingUnavailableError(
                f"HTTP {response.status_code}: {response.reason}",
                url=self.url,
                status_code=response.status_code,
            )

        # raw.githubusercontent.com serves text/plain without a charset
        response.encoding = "utf-8"
        text = response.text

        logger.info(
            "Listing document fetched",
            extra={
                "event": "listings.fetch.succeeded",
                "status_code": response.status_code,
                "url": self.url,
                "document_chars": len(text),
            },
        )
        return text
