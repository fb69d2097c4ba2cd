"""Core domain models for listings and tracked job applications.

This module defines the data structures used throughout the application:
- ListingRecord: one open posting parsed from the remote listing document
- JobApplication: a persisted application owned by exactly one user
- NewJobApplication: validated payload for creating an application
- ApplicationUpdate: validated partial update for an existing application
"""

import re
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, field_validator

from jobtracker.utils.timestamps import ensure_utc

# Age assigned to tokens that are not "<int>d" or "<int>mo"; sorts after real ages
UNKNOWN_AGE_DAYS = 999

_AGE_TOKEN = re.compile(r"^(\d+)(d|mo)$")
_UNIT_DAYS = {"d": 1, "mo": 30}


def parse_age_days(date_posted: str) -> int:
    """Convert a relative age token such as "3d" or "2mo" into days.

    Example:
        >>> parse_age_days("2mo")
        60
        >>> parse_age_days("soon")
        999
    """
    match = _AGE_TOKEN.match((date_posted or "").strip())
    if not match:
        return UNKNOWN_AGE_DAYS
    return int(match.group(1)) * _UNIT_DAYS[match.group(2)]


def _require_text(v: str) -> str:
    if v is None or not v.strip():
        raise ValueError("Field cannot be empty or whitespace-only")
    return v.strip()


def _optional_text(v: Optional[str]) -> Optional[str]:
    if v is None:
        return None
    stripped = v.strip()
    return stripped if stripped else None


class ApplicationStatus(str, Enum):
    """Lifecycle states of a tracked application."""

    APPLIED = "applied"
    INTERVIEWING = "interviewing"
    OFFER = "offer"
    REJECTED = "rejected"


class SortOption(str, Enum):
    """Orderings available for a reconciled listing."""

    DATE = "date"
    COMPANY = "company"
    TITLE = "title"


class ListingView(str, Enum):
    """Which reconciled listings to show."""

    NEW = "new"
    ALL = "all"
    TRACKED = "tracked"


class ListingRecord(BaseModel):
    """A posting parsed from the listing document.

    Rebuilt on every fetch and never persisted. ``company`` may have been
    inherited from a preceding row through a continuation marker.
    """

    company: str = Field(..., description="Company name")
    job_title: str = Field(..., description="Job title")
    location: str = Field("", description="Locations joined by ', '")
    application_url: str = Field("", description="First link in the row, empty if none")
    date_posted: str = Field("", description="Relative age token, e.g. '3d' or '1mo'")
    is_faang: bool = Field(False, description="Row carried the fire marker")

    @field_validator("company", "job_title")
    @classmethod
    def strip_required(cls, v: str) -> str:
        """Company and title are never empty in an emitted record."""
        return _require_text(v)

    @property
    def age_days(self) -> int:
        """Age of the posting in days (999 when the token is unparseable)."""
        return parse_age_days(self.date_posted)

    def tracking_key(self) -> tuple[str, str]:
        """Case-insensitive (company, job_title) identity used for reconciliation."""
        return (self.company.casefold(), self.job_title.casefold())

    model_config = {"frozen": True, "json_schema_extra": {"example": {
        "company": "Acme",
        "job_title": "Software Engineer, New Grad",
        "location": "NYC, SF",
        "application_url": "https://jobs.example.com/acme/123",
        "date_posted": "3d",
        "is_faang": False,
    }}}


class NewJobApplication(BaseModel):
    """Fields supplied when a user adds an application.

    Empty optional strings are stored as NULL. New applications always start
    in the ``applied`` state.
    """

    company: str = Field(..., description="Company name")
    job_title: str = Field(..., description="Job title")
    job_description: Optional[str] = Field(None, description="Free-form job description")
    location: Optional[str] = Field(None, description="Job location")
    application_url: Optional[str] = Field(None, description="Link to the posting")
    notes: Optional[str] = Field(None, description="Personal notes")

    @field_validator("company", "job_title")
    @classmethod
    def strip_required(cls, v: str) -> str:
        """Strip whitespace from required fields."""
        return _require_text(v)

    @field_validator("job_description", "location", "application_url", "notes")
    @classmethod
    def strip_optional(cls, v: Optional[str]) -> Optional[str]:
        """Blank optional fields become None."""
        return _optional_text(v)


class ApplicationUpdate(BaseModel):
    """Partial update of an application.

    Only fields that were explicitly provided are written. An update that
    sets nothing but ``status`` is treated as a status-only update.
    """

    company: Optional[str] = None
    job_title: Optional[str] = None
    job_description: Optional[str] = None
    location: Optional[str] = None
    application_url: Optional[str] = None
    notes: Optional[str] = None
    status: Optional[ApplicationStatus] = None

    @field_validator("company", "job_title")
    @classmethod
    def strip_required(cls, v: Optional[str]) -> str:
        """Company and title may be omitted but never blanked."""
        return _require_text(v)

    @field_validator("job_description", "location", "application_url", "notes")
    @classmethod
    def strip_optional(cls, v: Optional[str]) -> Optional[str]:
        """Blank optional fields become None."""
        return _optional_text(v)

    @field_validator("status")
    @classmethod
    def status_not_null(cls, v: Optional[ApplicationStatus]) -> ApplicationStatus:
        """Status may be omitted but not cleared."""
        if v is None:
            raise ValueError("status cannot be null")
        return v

    @property
    def is_status_only(self) -> bool:
        """True when the payload only changes the status."""
        return self.model_fields_set == {"status"}

    def changes(self) -> Dict[str, Any]:
        """Fields explicitly set on this update."""
        return {name: getattr(self, name) for name in self.model_fields_set}


class JobApplication(BaseModel):
    """A job application tracked by one user.

    Ownership is a lookup key: every read, update and delete matches both
    ``id`` and ``username``.
    """

    id: str = Field(..., description="Opaque unique identifier")
    username: str = Field(..., description="Owner username")
    company: str = Field(..., description="Company name")
    job_title: str = Field(..., description="Job title")
    job_description: Optional[str] = Field(None, description="Free-form job description")
    location: Optional[str] = Field(None, description="Job location")
    application_url: Optional[str] = Field(None, description="Link to the posting")
    status: ApplicationStatus = Field(ApplicationStatus.APPLIED, description="Current status")
    notes: Optional[str] = Field(None, description="Personal notes")
    created_at: datetime = Field(..., description="When the application was added (UTC)")
    updated_at: datetime = Field(..., description="Last modification (UTC)")

    @field_validator("id", "username", "company", "job_title")
    @classmethod
    def strip_required(cls, v: str) -> str:
        """Strip whitespace from required string fields."""
        return _require_text(v)

    @field_validator("created_at", "updated_at")
    @classmethod
    def normalize_utc(cls, v: datetime) -> datetime:
        """Ensure datetime is timezone-aware and in UTC."""
        return ensure_utc(v)

    model_config = {"json_schema_extra": {"example": {
        "id": "5b0c4f0e7d9a4a4f9a63f7d1c2e8b1aa",
        "username": "alice",
        "company": "Acme",
        "job_title": "Software Engineer, New Grad",
        "job_description": None,
        "location": "NYC",
        "application_url": "https://jobs.example.com/acme/123",
        "status": "applied",
        "notes": "Added from SimplifyJobs on 2026-10-19",
        "created_at": "2026-10-19T08:30:00Z",
        "updated_at": "2026-10-19T08:30:00Z",
    }}}
