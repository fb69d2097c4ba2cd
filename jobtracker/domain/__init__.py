"""Domain models for the job application tracker."""

from .models import (
    UNKNOWN_AGE_DAYS,
    ApplicationStatus,
    ApplicationUpdate,
    JobApplication,
    ListingRecord,
    ListingView,
    NewJobApplication,
    SortOption,
    parse_age_days,
)

__all__ = [
    "ListingRecord",
    "JobApplication",
    "NewJobApplication",
    "ApplicationUpdate",
    "ApplicationStatus",
    "SortOption",
    "ListingView",
    "parse_age_days",
    "UNKNOWN_AGE_DAYS",
]
