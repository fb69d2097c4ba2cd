"""Tracker service: owner-scoped operations on job applications.

Each public method runs in its own database session. Nothing here spans
several storage calls, and failures propagate as PersistenceError subclasses
for the caller to report.
"""

from datetime import datetime
from typing import Callable, List, Tuple

from jobtracker.domain.models import (
    ApplicationStatus,
    ApplicationUpdate,
    JobApplication,
    ListingRecord,
    NewJobApplication,
)
from jobtracker.logging import get_logger
from jobtracker.logging.context import log_context
from jobtracker.persistence.database import get_session
from jobtracker.persistence.exceptions import RecordNotFoundError
from jobtracker.persistence.repositories import JobApplicationRepository
from jobtracker.utils.timestamps import format_date, utc_now

logger = get_logger(__name__, component="tracker")


def import_note(source_name: str, imported_at: datetime) -> str:
    """Provenance note stored on applications created from a listing.

    Example:
        >>> import_note("SimplifyJobs", datetime(2026, 10, 19))
        'Added from SimplifyJobs on 2026-10-19'
    """
    return f"Added from {source_name} on {format_date(imported_at)}"


class TrackerService:
    """Creates, reads, updates and deletes a user's job applications.

    Responsibilities:
    - Manual add and add-from-listing (always starting as ``applied``)
    - Status-only and full updates, re-stamping ``updated_at``
    - Owner scoping: every lookup matches both id and username
    - Supplying tracked (company, title) pairs for listing reconciliation
    """

    def __init__(
        self,
        source_name: str = "SimplifyJobs",
        clock: Callable[[], datetime] = utc_now,
    ):
        """Initialize TrackerService.

        Args:
            source_name: Listing source named in import notes
            clock: Returns the current UTC time (injectable for tests)
        """
        self.source_name = source_name
        self.clock = clock

    def list_applications(self, owner: str) -> List[JobApplication]:
        """All applications of the owner, newest first."""
        with get_session() as session:
            return JobApplicationRepository(session).list_for_owner(owner)

    def existing_pairs(self, owner: str) -> List[Tuple[str, str]]:
        """(company, job_title) of every application the owner tracks."""
        with get_session() as session:
            return JobApplicationRepository(session).existing_pairs(owner)

    def get_application(self, application_id: str, owner: str) -> JobApplication:
        """Fetch one application.

        Raises:
            RecordNotFoundError: If it does not exist or belongs to someone else
        """
        with get_session() as session:
            application = JobApplicationRepository(session).get(application_id, owner)

        if application is None:
            raise RecordNotFoundError(application_id, owner)
        return application

    def add_application(self, owner: str, fields: NewJobApplication) -> JobApplication:
        """Add an application entered by hand."""
        return self._create(owner, fields, origin="manual")

    def add_listing_to_tracker(self, record: ListingRecord, owner: str) -> JobApplication:
        """Track a listing as a new ``applied`` application.

        Company, title, location and link are copied from the record and the
        notes record where and when it was imported. No duplicate check is
        made: calling this twice for the same record creates two applications.

        Args:
            record: Listing record to import
            owner: Username that will own the application

        Returns:
            The persisted JobApplication

        Raises:
            PersistenceError: If the application could not be stored
        """
        fields = NewJobApplication(
            company=record.company,
            job_title=record.job_title,
            location=record.location or None,
            application_url=record.application_url or None,
            notes=import_note(self.source_name, self.clock()),
        )
        return self._create(owner, fields, origin="listing")

    def update_status(
        self, application_id: str, owner: str, status: ApplicationStatus
    ) -> JobApplication:
        """Change only the status of an application.

        Raises:
            ValueError: If status is not a valid ApplicationStatus
            RecordNotFoundError: If no application matches id and owner
        """
        status = ApplicationStatus(status)
        with log_context(owner=owner, application_id=application_id):
            with get_session() as session:
                application = JobApplicationRepository(session).update_status(
                    application_id, owner, status, now=self.clock()
                )

            logger.info(
                f"Application status changed to {status.value}",
                extra={
                    "event": "tracker.application.status_changed",
                    "status": status.value,
                },
            )
        return application

    def update_application(
        self, application_id: str, owner: str, update: ApplicationUpdate
    ) -> JobApplication:
        """Apply a partial update; a status-only payload takes the status path.

        Raises:
            RecordNotFoundError: If no application matches id and owner
        """
        if update.is_status_only:
            return self.update_status(application_id, owner, update.status)

        changes = update.changes()
        with log_context(owner=owner, application_id=application_id):
            with get_session() as session:
                application = JobApplicationRepository(session).update(
                    application_id, owner, changes, now=self.clock()
                )

            logger.info(
                "Application updated",
                extra={
                    "event": "tracker.application.updated",
                    "fields": sorted(changes),
                },
            )
        return application

    def delete_application(self, application_id: str, owner: str) -> None:
        """Delete an application.

        Raises:
            RecordNotFoundError: If no application matches id and owner
        """
        with log_context(owner=owner, application_id=application_id):
            with get_session() as session:
                JobApplicationRepository(session).delete(application_id, owner)

            logger.info("Application deleted", extra={"event": "tracker.application.deleted"})

    def _create(self, owner: str, fields: NewJobApplication, origin: str) -> JobApplication:
        with log_context(owner=owner):
            with get_session() as session:
                application = JobApplicationRepository(session).create(owner, fields, now=self.clock())

            logger.info(
                f"Added application {application.company} / {application.job_title}",
                extra={
                    "event": "tracker.application.created",
                    "application_id": application.id,
                    "origin": origin,
                },
            )
        return application
