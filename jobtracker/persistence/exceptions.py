"""Persistence layer exceptions.

Every storage failure surfaces as a PersistenceError subclass so callers can
report "could not save, try again" with a single except clause.
"""


class PersistenceError(Exception):
    """Base exception for all persistence layer errors."""

    pass


class DatabaseConnectionError(PersistenceError):
    """Raised when the database cannot be initialised or reached.

    Examples:
    - Empty or malformed database URL
    - Database file not accessible
    - get_session() called before init_database()
    """

    pass


class RecordNotFoundError(PersistenceError):
    """Raised when no application matches the requested id and owner.

    An application that exists but belongs to someone else is reported the
    same way as one that does not exist.
    """

    def __init__(self, application_id: str, username: str) -> None:
        super().__init__(f"Job application {application_id} not found for user {username}")
        self.application_id = application_id
        self.username = username


class DataIntegrityError(PersistenceError):
    """Raised when a database constraint is violated."""

    pass
