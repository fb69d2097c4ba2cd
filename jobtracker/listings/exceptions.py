"""Custom exceptions for listing ingestion."""

from typing import Optional


class ListingError(Exception):
    """Base exception for all listing errors.

    Catching this covers every whole-document failure. Per-row problems are
    never raised; malformed rows are dropped by the parser.
    """

    pass


class ListingUnavailableError(ListingError):
    """The remote listing could not be fetched.

    Raised for connection failures, timeouts and HTTP error statuses. There is
    no automatic retry; the caller reports the listing as unavailable.
    """

    def __init__(self, message: str, url: str, status_code: Optional[int] = None) -> None:
        """Initialize with the failing URL and HTTP status, if one was received.

        Args:
            message: Human-readable error message
            url: URL that failed
            status_code: HTTP status code, None for network-level failures
        """
        super().__init__(message)
        self.url = url
        self.status_code = status_code


class SectionNotFoundError(ListingError):
    """The expected section heading is absent from the document.

    ``list_listings`` turns this into an empty result; it only reaches callers
    that use ``extract_section`` directly.
    """

    def __init__(self, heading: str) -> None:
        super().__init__(f"Section heading not found in listing document: {heading!r}")
        self.heading = heading


class ListingConfigurationError(ListingError):
    """Invalid fetcher settings (timeout out of range, empty user agent, bad URL)."""

    pass


class ListingNotFoundError(ListingError):
    """No open listing matches the requested company and title."""

    def __init__(self, company: str, job_title: str) -> None:
        super().__init__(f"No open listing for {company!r} / {job_title!r}")
        self.company = company
        self.job_title = job_title
