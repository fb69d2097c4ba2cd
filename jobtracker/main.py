"""Command-line entry point for the job application tracker."""

from dotenv import load_dotenv
load_dotenv()

import argparse
import sys
from pathlib import Path
from typing import List, Optional, Tuple

from pydantic import ValidationError

from jobtracker.config.environment import EnvironmentConfig, is_valid_username
from jobtracker.config.exceptions import ConfigurationError
from jobtracker.config.loader import load_config
from jobtracker.config.models import AppConfig
from jobtracker.domain.models import (
    ApplicationStatus,
    ApplicationUpdate,
    JobApplication,
    ListingView,
    NewJobApplication,
    SortOption,
)
from jobtracker.listings.exceptions import ListingError, ListingNotFoundError, ListingUnavailableError
from jobtracker.listings.models import ListingBrowseResult
from jobtracker.listings.service import ListingService
from jobtracker.logging import get_logger
from jobtracker.logging.config import configure_logging
from jobtracker.persistence.database import close_database, init_database
from jobtracker.persistence.exceptions import PersistenceError, RecordNotFoundError
from jobtracker.tracker.service import TrackerService

logger = get_logger(__name__, component="cli")

STATUS_CHOICES = [status.value for status in ApplicationStatus]

# CLI option -> ApplicationUpdate / NewJobApplication field
_FIELD_OPTIONS = {
    "company": "company",
    "title": "job_title",
    "description": "job_description",
    "location": "location",
    "url": "application_url",
    "notes": "notes",
}


def load_runtime_config(
    config_path: Optional[Path], log_level_override: Optional[str]
) -> Tuple[AppConfig, EnvironmentConfig]:
    """
    Load configuration and resolve the effective log level.

    Log level priority: CLI > LOG_LEVEL environment variable > config file,
    whose level defaults to INFO.

    Raises:
        ConfigurationError: If configuration is invalid
    """
    app_config, env_config = load_config(config_path)

    if log_level_override:
        env_config.log_level = log_level_override
    elif not env_config.log_level:
        env_config.log_level = app_config.logging.level

    return app_config, env_config


def resolve_owner(cli_user: Optional[str], env_config: EnvironmentConfig) -> str:
    """
    Pick the acting username: --user, then TRACKER_USER.

    Raises:
        ConfigurationError: If neither is set or the name is invalid
    """
    owner = cli_user or env_config.tracker_user
    if not owner:
        raise ConfigurationError(
            "No user given",
            suggestions=["Pass --user NAME", "Or set TRACKER_USER in .env"],
        )
    if not is_valid_username(owner):
        raise ConfigurationError(
            f"Invalid user name: {owner!r}",
            suggestions=["Use letters, digits, '.', '_', '-' or '@'"],
        )
    return owner


def build_parser() -> argparse.ArgumentParser:
    """Argument parser for every subcommand."""
    parser = argparse.ArgumentParser(
        prog="job-tracker",
        description="Job Application Tracker - browse open new-grad listings and track your applications",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to configuration file (default: config.yaml if present)",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Log level (overrides config and environment)",
    )
    parser.add_argument(
        "--user",
        default=None,
        help="Acting username (default: TRACKER_USER)",
    )

    commands = parser.add_subparsers(dest="command", required=True)

    listings = commands.add_parser("listings", help="Show open listings against your tracker")
    listings.add_argument(
        "--sort",
        choices=[option.value for option in SortOption],
        default=None,
        help="Ordering (default from config: date)",
    )
    listings.add_argument(
        "--show",
        choices=[view.value for view in ListingView],
        default=None,
        help="Which listings to show (default from config: new)",
    )
    listings.add_argument("--limit", type=int, default=None, help="Show at most N listings")

    importer = commands.add_parser("import", help="Track an open listing as a new application")
    importer.add_argument("company", help="Company as shown in the listing")
    importer.add_argument("title", help="Job title as shown in the listing")

    jobs = commands.add_parser("jobs", help="Manage tracked applications")
    jobs_commands = jobs.add_subparsers(dest="jobs_command", required=True)

    jobs_commands.add_parser("list", help="List your applications, newest first")

    add = jobs_commands.add_parser("add", help="Add an application by hand")
    add.add_argument("--company", required=True)
    add.add_argument("--title", required=True)
    _add_optional_field_arguments(add)

    status = jobs_commands.add_parser("status", help="Change the status of an application")
    status.add_argument("id", help="Application id")
    status.add_argument("status", choices=STATUS_CHOICES)

    update = jobs_commands.add_parser("update", help="Change fields of an application")
    update.add_argument("id", help="Application id")
    update.add_argument("--company")
    update.add_argument("--title")
    update.add_argument("--status", choices=STATUS_CHOICES)
    _add_optional_field_arguments(update)

    delete = jobs_commands.add_parser("delete", help="Delete an application")
    delete.add_argument("id", help="Application id")

    return parser


def _add_optional_field_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--description", help="Job description")
    parser.add_argument("--location", help="Job location")
    parser.add_argument("--url", help="Application link")
    parser.add_argument("--notes", help="Personal notes (empty string clears)")


def _field_values(args: argparse.Namespace) -> dict:
    """Map the options the user actually passed to model field names."""
    values = {
        field: getattr(args, option)
        for option, field in _FIELD_OPTIONS.items()
        if getattr(args, option, None) is not None
    }
    if getattr(args, "status", None) is not None:
        values["status"] = args.status
    return values


def format_browse_result(result: ListingBrowseResult, limit: Optional[int] = None) -> List[str]:
    """Render a browse result as text lines."""
    lines = [
        f"{result.new_count} new of {result.total_count} open listings "
        f"(sorted by {result.sort_option.value}, showing {result.view.value})"
    ]
    shown = result.listings if limit is None else result.listings[:max(limit, 0)]
    for item in shown:
        record = item.record
        mark = "[x]" if item.is_tracked else "[ ]"
        parts = [f"{mark} {record.company} - {record.job_title}"]
        if record.location:
            parts.append(record.location)
        if record.date_posted:
            parts.append(record.date_posted)
        if record.application_url:
            parts.append(record.application_url)
        lines.append(" | ".join(parts))
    return lines


def format_application(application: JobApplication) -> str:
    """One-line summary of an application."""
    status = ApplicationStatus(application.status).value
    line = (
        f"{application.id}  {status:<12} {application.company} - {application.job_title}"
        f"  (added {application.created_at.date().isoformat()})"
    )
    if application.location:
        line += f"  {application.location}"
    return line


def run_command(args: argparse.Namespace, app_config: AppConfig, owner: str) -> int:
    """Dispatch a parsed command. Errors propagate to main()."""
    tracker = TrackerService(source_name=app_config.listing.source_name)

    if args.command == "listings":
        service = ListingService.from_config(app_config, tracker=tracker)
        result = service.browse(
            owner,
            sort_option=args.sort or app_config.tracker.default_sort,
            view=args.show or app_config.tracker.default_show,
        )
        for line in format_browse_result(result, args.limit):
            print(line)
        return 0

    if args.command == "import":
        service = ListingService.from_config(app_config, tracker=tracker)
        application = service.import_listing(owner, args.company, args.title)
        print(f"Tracking {application.company} - {application.job_title} ({application.id})")
        return 0

    if args.jobs_command == "list":
        applications = tracker.list_applications(owner)
        if not applications:
            print("No applications tracked yet")
        for application in applications:
            print(format_application(application))
        return 0

    if args.jobs_command == "add":
        application = tracker.add_application(owner, NewJobApplication(**_field_values(args)))
        print(f"Added {application.company} - {application.job_title} ({application.id})")
        return 0

    if args.jobs_command == "status":
        application = tracker.update_status(args.id, owner, ApplicationStatus(args.status))
        print(format_application(application))
        return 0

    if args.jobs_command == "update":
        application = tracker.update_application(args.id, owner, ApplicationUpdate(**_field_values(args)))
        print(format_application(application))
        return 0

    if args.jobs_command == "delete":
        tracker.delete_application(args.id, owner)
        print(f"Deleted {args.id}")
        return 0

    raise ValueError(f"Unknown command: {args.command}")


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point for the job application tracker.

    Args:
        argv: Arguments without the program name (default: sys.argv[1:])

    Returns:
        Exit code (0 for success, 1 for failure).
    """
    args = build_parser().parse_args(argv)

    try:
        app_config, env_config = load_runtime_config(args.config, args.log_level)

        configure_logging(
            level=env_config.log_level,
            format_type=app_config.logging.format,
            environment=env_config.environment,
            stream=sys.stderr,
        )

        owner = resolve_owner(args.user, env_config)

        logger.info(
            "Job Application Tracker starting",
            extra={
                "event": "service.starting",
                "command": args.command,
                "log_level": env_config.log_level,
            },
        )

        init_database(env_config.database_url)
        try:
            return run_command(args, app_config, owner)
        finally:
            close_database()

    except ConfigurationError as e:
        print(f"Configuration Error: {e}", file=sys.stderr)
        return 1
    except ListingUnavailableError as e:
        print(f"Listing unavailable: {e}", file=sys.stderr)
        logger.error(str(e), extra={"event": "service.command.failed", "error_type": type(e).__name__})
        return 1
    except ListingNotFoundError as e:
        print(f"Not found: {e}", file=sys.stderr)
        return 1
    except RecordNotFoundError as e:
        print(f"Not found: {e}", file=sys.stderr)
        return 1
    except (ListingError, PersistenceError) as e:
        print(f"Error: {e}", file=sys.stderr)
        logger.error(str(e), extra={"event": "service.command.failed", "error_type": type(e).__name__})
        return 1
    except ValidationError as e:
        messages = "; ".join(f"{'.'.join(str(loc) for loc in err['loc'])}: {err['msg']}" for err in e.errors())
        print(f"Invalid input: {messages}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("\nInterrupted", file=sys.stderr)
        return 1
    except Exception as e:
        print(f"Fatal error: {e}", file=sys.stderr)
        logger.critical(
            "Fatal error",
            extra={
                "event": "service.failed",
                "error_type": type(e).__name__,
                "error": str(e),
            },
            exc_info=True,
        )
        return 1


if __name__ == "__main__":
    sys.exit(main())
