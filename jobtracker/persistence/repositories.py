"""Data access layer (repositories) for job applications.

Repositories encapsulate database operations and return domain models rather
than ORM models. Every query is scoped to an owner username.
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple
from uuid import uuid4

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from jobtracker.domain.models import ApplicationStatus, JobApplication, NewJobApplication
from jobtracker.utils.timestamps import format_timestamp, utc_now

from .exceptions import DataIntegrityError, PersistenceError, RecordNotFoundError
from .schema import JobApplicationModel

logger = logging.getLogger(__name__)

# Columns a full update may write; id, username and created_at are immutable
UPDATABLE_COLUMNS = frozenset({
    "company",
    "job_title",
    "job_description",
    "location",
    "application_url",
    "notes",
    "status",
})


class JobApplicationRepository:
    """Repository for job application CRUD operations."""

    def __init__(self, session: Session):
        """Initialize repository with database session.

        Args:
            session: SQLAlchemy session for database operations
        """
        self.session = session

    def create(
        self,
        username: str,
        fields: NewJobApplication,
        now: Optional[datetime] = None,
    ) -> JobApplication:
        """Insert a new application in the ``applied`` state.

        Args:
            username: Owner of the new application
            fields: Validated creation payload
            now: Creation timestamp (defaults to utc_now())

        Returns:
            Persisted JobApplication with generated id and timestamps

        Raises:
            DataIntegrityError: On constraint violation
            PersistenceError: If database error occurs
        """
        created_at = now or utc_now()
        application = JobApplication(
            id=uuid4().hex,
            username=username,
            company=fields.company,
            job_title=fields.job_title,
            job_description=fields.job_description,
            location=fields.location,
            application_url=fields.application_url,
            notes=fields.notes,
            status=ApplicationStatus.APPLIED,
            created_at=created_at,
            updated_at=created_at,
        )

        try:
            model = JobApplicationModel.from_domain(application)
            self.session.add(model)
            self.session.flush()
            return model.to_domain()

        except IntegrityError as e:
            logger.error(f"Integrity error creating application for {username}: {e}", exc_info=True)
            raise DataIntegrityError(f"Failed to create application due to constraint violation: {e}") from e
        except SQLAlchemyError as e:
            logger.error(f"Error creating application for {username}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to create application: {e}") from e

    def get(self, application_id: str, username: str) -> Optional[JobApplication]:
        """Retrieve an application by id, scoped to its owner.

        Returns:
            JobApplication if found and owned by username, None otherwise

        Raises:
            PersistenceError: If database error occurs
        """
        try:
            model = self._find(application_id, username)
            return model.to_domain() if model is not None else None

        except SQLAlchemyError as e:
            logger.error(f"Error retrieving application {application_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to retrieve application: {e}") from e

    def list_for_owner(self, username: str) -> List[JobApplication]:
        """All applications of a user, newest first.

        Raises:
            PersistenceError: If database error occurs
        """
        try:
            stmt = (
                select(JobApplicationModel)
                .where(JobApplicationModel.username == username)
                .order_by(JobApplicationModel.created_at.desc())
            )
            return [model.to_domain() for model in self.session.execute(stmt).scalars().all()]

        except SQLAlchemyError as e:
            logger.error(f"Error listing applications for {username}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to list applications: {e}") from e

    def existing_pairs(self, username: str) -> List[Tuple[str, str]]:
        """(company, job_title) of every application the user tracks.

        Read-only projection used to reconcile listings.

        Raises:
            PersistenceError: If database error occurs
        """
        try:
            stmt = select(JobApplicationModel.company, JobApplicationModel.job_title).where(
                JobApplicationModel.username == username
            )
            return [(company, job_title) for company, job_title in self.session.execute(stmt).all()]

        except SQLAlchemyError as e:
            logger.error(f"Error loading tracked pairs for {username}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to load tracked applications: {e}") from e

    def update_status(
        self,
        application_id: str,
        username: str,
        status: ApplicationStatus,
        now: Optional[datetime] = None,
    ) -> JobApplication:
        """Change only the status, re-stamping updated_at.

        Raises:
            RecordNotFoundError: If no application matches id and owner
            PersistenceError: If database error occurs
        """
        return self.update(application_id, username, {"status": status}, now=now)

    def update(
        self,
        application_id: str,
        username: str,
        changes: Dict[str, Any],
        now: Optional[datetime] = None,
    ) -> JobApplication:
        """Write the given columns and re-stamp updated_at.

        Args:
            application_id: Application to update
            username: Owner; rows of other users are never touched
            changes: Column name -> new value (subset of UPDATABLE_COLUMNS)
            now: Modification timestamp (defaults to utc_now())

        Returns:
            The updated JobApplication

        Raises:
            ValueError: If changes names a column that cannot be updated
            RecordNotFoundError: If no application matches id and owner
            PersistenceError: If database error occurs
        """
        unknown = set(changes) - UPDATABLE_COLUMNS
        if unknown:
            raise ValueError(f"Cannot update columns: {', '.join(sorted(unknown))}")

        values = dict(changes)
        if "status" in values:
            values["status"] = ApplicationStatus(values["status"]).value
        values["updated_at"] = format_timestamp(now or utc_now())

        try:
            stmt = (
                update(JobApplicationModel)
                .where(
                    JobApplicationModel.id == application_id,
                    JobApplicationModel.username == username,
                )
                .values(**values)
                .execution_options(synchronize_session="evaluate")
            )
            result = self.session.execute(stmt)
            self.session.flush()

            if result.rowcount == 0:
                raise RecordNotFoundError(application_id, username)

            return self._find(application_id, username).to_domain()

        except RecordNotFoundError:
            raise
        except IntegrityError as e:
            logger.error(f"Integrity error updating application {application_id}: {e}", exc_info=True)
            raise DataIntegrityError(f"Failed to update application due to constraint violation: {e}") from e
        except SQLAlchemyError as e:
            logger.error(f"Error updating application {application_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to update application: {e}") from e

    def delete(self, application_id: str, username: str) -> None:
        """Delete an application owned by username.

        Raises:
            RecordNotFoundError: If no application matches id and owner
            PersistenceError: If database error occurs
        """
        try:
            stmt = delete(JobApplicationModel).where(
                JobApplicationModel.id == application_id,
                JobApplicationModel.username == username,
            )
            result = self.session.execute(stmt)
            self.session.flush()

            if result.rowcount == 0:
                raise RecordNotFoundError(application_id, username)

        except RecordNotFoundError:
            raise
        except SQLAlchemyError as e:
            logger.error(f"Error deleting application {application_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to delete application: {e}") from e

    def _find(self, application_id: str, username: str) -> Optional[JobApplicationModel]:
        stmt = select(JobApplicationModel).where(
            JobApplicationModel.id == application_id,
            JobApplicationModel.username == username,
        )
        return self.session.execute(stmt).scalar_one_or_none()
