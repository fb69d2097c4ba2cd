"""Persistence layer for tracked job applications.

Public API:
    # Database initialization and session management
    - init_database(database_url: str) -> None
    - get_session() -> ContextManager[Session]
    - close_database() -> None
    - get_engine() -> Engine

    # Repository
    - JobApplicationRepository: owner-scoped CRUD for job applications

    # Exceptions
    - PersistenceError: Base exception for all persistence errors
    - DatabaseConnectionError: Database connection/initialization failures
    - RecordNotFoundError: No application matches id + owner
    - DataIntegrityError: Constraint violations

Example usage:
    >>> from jobtracker.persistence import init_database, get_session, JobApplicationRepository
    >>> init_database("sqlite:///./data/job_tracker.db")
    >>> with get_session() as session:
    ...     repo = JobApplicationRepository(session)
    ...     applications = repo.list_for_owner("alice")
"""

from .database import close_database, get_engine, get_session, init_database
from .exceptions import (
    DatabaseConnectionError,
    DataIntegrityError,
    PersistenceError,
    RecordNotFoundError,
)
from .repositories import JobApplicationRepository

__all__ = [
    # Database functions
    "init_database",
    "get_session",
    "close_database",
    "get_engine",
    # Repositories
    "JobApplicationRepository",
    # Exceptions
    "PersistenceError",
    "DatabaseConnectionError",
    "RecordNotFoundError",
    "DataIntegrityError",
]
