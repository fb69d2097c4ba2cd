"""Owner-scoped job application tracking."""

from .service import TrackerService, import_note

__all__ = ["TrackerService", "import_note"]
