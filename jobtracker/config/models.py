"""Configuration schema models using Pydantic."""

from enum import Enum

from pydantic import BaseModel, Field, field_validator

from jobtracker.domain.models import ListingView, SortOption

DEFAULT_LISTING_URL = "https://raw.githubusercontent.com/SimplifyJobs/New-Grad-Positions/dev/README.md"
DEFAULT_SECTION_HEADING = "## 💻 Software Engineering New Grad Roles"


class LogLevel(str, Enum):
    """Logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class LogFormat(str, Enum):
    """Log output formats."""

    JSON = "json"
    KEY_VALUE = "key-value"


class ListingConfig(BaseModel):
    """Where the remote listing lives and how to fetch it."""

    url: str = Field(DEFAULT_LISTING_URL, min_length=1, description="Raw URL of the listing document")
    section_heading: str = Field(
        DEFAULT_SECTION_HEADING,
        description="Markdown heading that opens the section holding the table",
    )
    source_name: str = Field(
        "SimplifyJobs", min_length=1, description="Name recorded in import notes"
    )
    http_request_timeout: int = Field(
        30, ge=5, le=300, description="Request timeout for the listing fetch (seconds)"
    )
    user_agent: str = Field(
        "JobApplicationTracker/1.0",
        min_length=1,
        description="User-Agent string for HTTP requests",
    )

    @field_validator("url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        """URL must be http(s)."""
        stripped = v.strip()
        if not stripped.startswith(("http://", "https://")):
            raise ValueError(f"Listing url must start with http:// or https://, got: {v}")
        return stripped

    @field_validator("section_heading")
    @classmethod
    def validate_heading(cls, v: str) -> str:
        """Heading must be a markdown heading with a title."""
        stripped = v.strip()
        title = stripped.lstrip("#").strip()
        if not stripped.startswith("#") or not title:
            raise ValueError(
                f"section_heading must be a markdown heading such as '## Title', got: {v!r}"
            )
        return stripped

    @field_validator("source_name", "user_agent")
    @classmethod
    def strip_whitespace(cls, v: str) -> str:
        """Strip whitespace from string fields."""
        stripped = v.strip()
        if not stripped:
            raise ValueError("Field cannot be empty or whitespace-only")
        return stripped


class TrackerConfig(BaseModel):
    """Presentation defaults for reconciled listings."""

    default_sort: SortOption = Field(SortOption.DATE, validate_default=True, description="date, company or title")
    default_show: ListingView = Field(ListingView.NEW, validate_default=True, description="new, all or tracked")

    model_config = {"use_enum_values": True}


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: LogLevel = Field(LogLevel.INFO, validate_default=True, description="Log level")
    format: LogFormat = Field(
        LogFormat.KEY_VALUE,
        validate_default=True,
        description="Log output format (json or key-value)",
    )

    model_config = {"use_enum_values": True}


class AppConfig(BaseModel):
    """Root configuration object. Every section has defaults."""

    listing: ListingConfig = Field(default_factory=ListingConfig, description="Listing source")
    tracker: TrackerConfig = Field(default_factory=TrackerConfig, description="Tracker defaults")
    logging: LoggingConfig = Field(
        default_factory=LoggingConfig, description="Logging configuration"
    )
