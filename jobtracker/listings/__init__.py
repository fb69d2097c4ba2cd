"""Listing ingestion: fetch the remote job list, parse it, reconcile it."""

from .exceptions import (
    ListingConfigurationError,
    ListingError,
    ListingNotFoundError,
    ListingUnavailableError,
    SectionNotFoundError,
)
from .fetcher import ListingFetcher
from .models import ListingBrowseResult, TrackedListing
from .parser import extract_section, list_listings, parse_row, parse_table
from .reconcile import count_new, filter_listings, reconcile, reconcile_and_sort, sort_listings
from .service import ListingService, find_listing

__all__ = [
    "ListingFetcher",
    "ListingService",
    "ListingBrowseResult",
    "TrackedListing",
    "extract_section",
    "list_listings",
    "parse_row",
    "parse_table",
    "reconcile",
    "reconcile_and_sort",
    "sort_listings",
    "filter_listings",
    "count_new",
    "find_listing",
    "ListingError",
    "ListingUnavailableError",
    "SectionNotFoundError",
    "ListingConfigurationError",
    "ListingNotFoundError",
]
