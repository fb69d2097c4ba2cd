"""Database schema definition and ORM models.

Defines the ``job_applications`` table and the conversion between the ORM row
and the JobApplication domain model.
"""

import logging

from sqlalchemy import Column, Index, String, Text, inspect
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base

from jobtracker.domain.models import ApplicationStatus, JobApplication
from jobtracker.utils.timestamps import format_timestamp, parse_timestamp

logger = logging.getLogger(__name__)

Base = declarative_base()


class JobApplicationModel(Base):
    """ORM model for the job_applications table."""

    __tablename__ = "job_applications"

    id = Column(String(64), primary_key=True, nullable=False)
    username = Column(String(64), nullable=False)

    company = Column(String(255), nullable=False)
    job_title = Column(Text, nullable=False)
    job_description = Column(Text, nullable=True)
    location = Column(Text, nullable=True)
    application_url = Column(Text, nullable=True)

    status = Column(String(20), nullable=False, default=ApplicationStatus.APPLIED.value)
    notes = Column(Text, nullable=True)

    # Timestamps (stored as ISO 8601 strings)
    created_at = Column(String(50), nullable=False)
    updated_at = Column(String(50), nullable=False)

    __table_args__ = (
        Index("idx_job_applications_owner_created", "username", "created_at"),
    )

    def to_domain(self) -> JobApplication:
        """Convert ORM model to domain model."""
        return JobApplication(
            id=self.id,
            username=self.username,
            company=self.company,
            job_title=self.job_title,
            job_description=self.job_description,
            location=self.location,
            application_url=self.application_url,
            status=ApplicationStatus(self.status),
            notes=self.notes,
            created_at=parse_timestamp(self.created_at),
            updated_at=parse_timestamp(self.updated_at),
        )

    @classmethod
    def from_domain(cls, application: JobApplication) -> "JobApplicationModel":
        """Create ORM model from domain model."""
        return cls(
            id=application.id,
            username=application.username,
            company=application.company,
            job_title=application.job_title,
            job_description=application.job_description,
            location=application.location,
            application_url=application.application_url,
            status=ApplicationStatus(application.status).value,
            notes=application.notes,
            created_at=format_timestamp(application.created_at),
            updated_at=format_timestamp(application.updated_at),
        )


def create_schema(engine: Engine) -> None:
    """Create all tables and indexes if they don't exist (idempotent)."""
    try:
        Base.metadata.create_all(engine, checkfirst=True)
        tables = inspect(engine).get_table_names()
        logger.info(f"Database schema ready. Tables: {', '.join(tables)}")
    except Exception as e:
        logger.error(f"Failed to create database schema: {e}", exc_info=True)
        raise
