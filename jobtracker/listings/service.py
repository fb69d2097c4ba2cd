"""Listing orchestration: fetch, parse, reconcile against the tracker, present."""

from datetime import datetime
from typing import Callable, List, Optional
from uuid import uuid4

from jobtracker.config.models import DEFAULT_SECTION_HEADING, AppConfig
from jobtracker.domain.models import JobApplication, ListingRecord, ListingView, SortOption
from jobtracker.logging import get_logger
from jobtracker.logging.context import log_context
from jobtracker.tracker.service import TrackerService
from jobtracker.utils.timestamps import utc_now

from .exceptions import ListingNotFoundError
from .fetcher import ListingFetcher
from .models import ListingBrowseResult
from .parser import list_listings
from .reconcile import count_new, filter_listings, reconcile, sort_listings

logger = get_logger(__name__, component="listings")


class ListingService:
    """
    Presents the remote listing against one user's tracked applications.

    Every call fetches the document again; parsed records are never cached
    or persisted. A fetch failure propagates as ListingUnavailableError, while
    a missing section yields an empty listing.
    """

    def __init__(
        self,
        fetcher: ListingFetcher,
        tracker: TrackerService,
        section_heading: str = DEFAULT_SECTION_HEADING,
        clock: Callable[[], datetime] = utc_now,
    ):
        """
        Initialize the listing service.

        Args:
            fetcher: Downloads the listing document
            tracker: Source of the user's tracked (company, title) pairs
            section_heading: Heading of the category to parse
            clock: Returns the current UTC time
        """
        self.fetcher = fetcher
        self.tracker = tracker
        self.section_heading = section_heading
        self.clock = clock

    @classmethod
    def from_config(cls, app_config: AppConfig, tracker: Optional[TrackerService] = None) -> "ListingService":
        """Wire a service from the application configuration."""
        listing = app_config.listing
        return cls(
            fetcher=ListingFetcher.from_config(listing),
            tracker=tracker or TrackerService(source_name=listing.source_name),
            section_heading=listing.section_heading,
        )

    def fetch_listings(self) -> List[ListingRecord]:
        """Fetch and parse the listing, in document order.

        Raises:
            ListingUnavailableError: If the document could not be fetched
        """
        document = self.fetcher.fetch()
        return list_listings(document, self.section_heading)

    def browse(
        self,
        owner: str,
        sort_option: SortOption = SortOption.DATE,
        view: ListingView = ListingView.NEW,
    ) -> ListingBrowseResult:
        """
        Fetch the listing and reconcile it with the owner's applications.

        Counts are taken before filtering, so ``new_count`` is the same for
        every view.

        Args:
            owner: Username whose applications mark listings as tracked
            sort_option: date, company or title
            view: new, all or tracked

        Returns:
            ListingBrowseResult with the sorted, filtered listings

        Raises:
            ValueError: If sort_option or view is unknown
            ListingUnavailableError: If the document could not be fetched
            PersistenceError: If tracked applications could not be read
        """
        sort_option = SortOption(sort_option)
        view = ListingView(view)

        with log_context(owner=owner, request_id=uuid4().hex):
            fetched_at = self.clock()
            records = self.fetch_listings()
            tracked = reconcile(records, self.tracker.existing_pairs(owner))

            result = ListingBrowseResult(
                sort_option=sort_option,
                view=view,
                fetched_at=fetched_at,
                listings=sort_listings(filter_listings(tracked, view), sort_option),
                total_count=len(tracked),
                new_count=count_new(tracked),
            )

            logger.info(
                f"{result.new_count} new of {result.total_count} listings",
                extra={
                    "event": "listings.browse.completed",
                    "sort": sort_option.value,
                    "view": view.value,
                    "total_count": result.total_count,
                    "new_count": result.new_count,
                    "shown_count": len(result.listings),
                },
            )
            return result

    def import_listing(self, owner: str, company: str, job_title: str) -> JobApplication:
        """
        Add the open listing matching company and title to the owner's tracker.

        Matching ignores case. When several rows match, the first in document
        order is used.

        Raises:
            ListingNotFoundError: If no open listing matches
            ListingUnavailableError: If the document could not be fetched
        """
        with log_context(owner=owner, request_id=uuid4().hex):
            record = find_listing(self.fetch_listings(), company, job_title)
            if record is None:
                raise ListingNotFoundError(company, job_title)
            return self.tracker.add_listing_to_tracker(record, owner)


def find_listing(records: List[ListingRecord], company: str, job_title: str) -> Optional[ListingRecord]:
    """First record whose company and title equal the given ones, ignoring case."""
    key = (company.strip().casefold(), job_title.strip().casefold())
    return next((record for record in records if record.tracking_key() == key), None)
