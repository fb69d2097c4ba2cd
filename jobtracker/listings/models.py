"""Result types for reconciled listings."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import List

from jobtracker.domain.models import ListingRecord, ListingView, SortOption


@dataclass(frozen=True)
class TrackedListing:
    """A listing record annotated with whether the user already tracks it.

    Attributes:
        record: Parsed listing record
        is_tracked: True if an application with the same company and title
            (case-insensitive) exists for the user
    """

    record: ListingRecord
    is_tracked: bool


@dataclass
class ListingBrowseResult:
    """What one browse request returns to the presentation layer.

    Attributes:
        listings: Reconciled, sorted and filtered listings
        total_count: Number of parsed listings before filtering
        new_count: Number of parsed listings the user does not track yet
        sort_option: Ordering applied to ``listings``
        view: Filter applied to ``listings``
        fetched_at: When the document was fetched (UTC)
    """

    sort_option: SortOption
    view: ListingView
    fetched_at: datetime
    listings: List[TrackedListing] = field(default_factory=list)
    total_count: int = 0
    new_count: int = 0

    @property
    def tracked_count(self) -> int:
        """Number of parsed listings already in the tracker."""
        return self.total_count - self.new_count
