"""Unit tests for the command-line entry point.

Covers argument parsing, configuration priority (CLI > env > config),
each subcommand against a temporary SQLite file, and exit codes.
"""

import logging
import re
from unittest.mock import Mock, patch

import pytest
import requests

from jobtracker.config.environment import EnvironmentConfig
from jobtracker.config.exceptions import ConfigurationError
from jobtracker.config.models import AppConfig
from jobtracker.main import build_parser, load_runtime_config, main, resolve_owner

ID_PATTERN = re.compile(r"\(([0-9a-f]{32})\)")


@pytest.fixture(autouse=True)
def restore_root_logger():
    """main() reconfigures the root logger; put it back afterwards."""
    root_logger = logging.getLogger()
    handlers = list(root_logger.handlers)
    level = root_logger.level
    yield
    root_logger.handlers[:] = handlers
    root_logger.setLevel(level)


@pytest.fixture
def cli_env(mock_env_vars, tmp_path):
    """Run the CLI in an empty directory against a temporary database."""
    mock_env_vars.chdir(tmp_path)
    mock_env_vars.setenv("DATABASE_URL", f"sqlite:///{tmp_path / 'tracker.db'}")
    mock_env_vars.setenv("TRACKER_USER", "alice")
    mock_env_vars.setenv("LOG_LEVEL", "ERROR")
    return mock_env_vars


@pytest.fixture
def serve_listing(listing_document):
    """Answer every HTTP request with the recorded listing document."""
    response = Mock()
    response.status_code = 200
    response.text = listing_document
    with patch.object(requests.Session, "request", return_value=response) as mock_request:
        yield mock_request


def added_id(output):
    return ID_PATTERN.search(output).group(1)


class TestLoadRuntimeConfig:
    """Tests for the log level priority."""

    def _run(self, cli_level, env_level, config_level):
        app_config = AppConfig.model_validate({"logging": {"level": config_level}})
        env_config = EnvironmentConfig(log_level=env_level)
        with patch("jobtracker.main.load_config", return_value=(app_config, env_config)):
            _, resolved = load_runtime_config(None, cli_level)
        return resolved.log_level

    def test_cli_wins(self):
        assert self._run("DEBUG", "ERROR", "WARNING") == "DEBUG"

    def test_environment_beats_config(self):
        assert self._run(None, "ERROR", "WARNING") == "ERROR"

    def test_config_used_last(self):
        assert self._run(None, None, "WARNING") == "WARNING"

    def test_config_default_is_plain_info(self):
        with patch("jobtracker.main.load_config", return_value=(AppConfig(), EnvironmentConfig())):
            _, resolved = load_runtime_config(None, None)

        assert resolved.log_level == "INFO"
        assert type(resolved.log_level) is str


class TestResolveOwner:
    """Tests for choosing the acting user."""

    def test_cli_user_wins(self):
        assert resolve_owner("bob", EnvironmentConfig(tracker_user="alice")) == "bob"

    def test_environment_user(self):
        assert resolve_owner(None, EnvironmentConfig(tracker_user="alice")) == "alice"

    def test_missing_user(self):
        with pytest.raises(ConfigurationError, match="No user given"):
            resolve_owner(None, EnvironmentConfig())

    def test_invalid_user(self):
        with pytest.raises(ConfigurationError, match="Invalid user name"):
            resolve_owner("alice smith", EnvironmentConfig())


class TestArgumentParsing:
    """Tests for the argument parser."""

    def test_command_is_required(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args([])

    def test_listings_options(self):
        args = build_parser().parse_args(["--user", "bob", "listings", "--sort", "title", "--show", "all", "--limit", "5"])
        assert (args.user, args.command, args.sort, args.show, args.limit) == ("bob", "listings", "title", "all", 5)

    def test_invalid_status_choice(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["jobs", "status", "abc", "ghosted"])


class TestJobsCommands:
    """Tests for manual application management."""

    def test_add_and_list(self, cli_env, capsys):
        assert main(["jobs", "add", "--company", "Acme", "--title", "SWE", "--location", "NYC"]) == 0
        application_id = added_id(capsys.readouterr().out)

        assert main(["jobs", "list"]) == 0
        output = capsys.readouterr().out
        assert application_id in output
        assert "applied" in output
        assert "Acme - SWE" in output
        assert "NYC" in output

    def test_list_empty(self, cli_env, capsys):
        assert main(["jobs", "list"]) == 0
        assert "No applications tracked yet" in capsys.readouterr().out

    def test_logs_stay_off_stdout_at_default_level(self, cli_env, capsys):
        cli_env.delenv("LOG_LEVEL")

        assert main(["jobs", "list"]) == 0

        captured = capsys.readouterr()
        assert captured.out == "No applications tracked yet\n"
        assert "event=service.starting" in captured.err
        assert "log_level=INFO" in captured.err

    def test_status_update(self, cli_env, capsys):
        main(["jobs", "add", "--company", "Acme", "--title", "SWE"])
        application_id = added_id(capsys.readouterr().out)

        assert main(["jobs", "status", application_id, "interviewing"]) == 0
        assert "interviewing" in capsys.readouterr().out

    def test_update_fields(self, cli_env, capsys):
        main(["jobs", "add", "--company", "Acme", "--title", "SWE"])
        application_id = added_id(capsys.readouterr().out)

        assert main(["jobs", "update", application_id, "--title", "Senior SWE", "--status", "offer"]) == 0
        output = capsys.readouterr().out
        assert "Senior SWE" in output
        assert "offer" in output

    def test_delete(self, cli_env, capsys):
        main(["jobs", "add", "--company", "Acme", "--title", "SWE"])
        application_id = added_id(capsys.readouterr().out)

        assert main(["jobs", "delete", application_id]) == 0
        main(["jobs", "list"])
        assert "No applications tracked yet" in capsys.readouterr().out

    def test_other_user_cannot_change_application(self, cli_env, capsys):
        main(["jobs", "add", "--company", "Acme", "--title", "SWE"])
        application_id = added_id(capsys.readouterr().out)

        assert main(["--user", "bob", "jobs", "delete", application_id]) == 1
        assert "Not found" in capsys.readouterr().err

        main(["jobs", "list"])
        assert application_id in capsys.readouterr().out

    def test_blank_company_is_invalid_input(self, cli_env, capsys):
        assert main(["jobs", "add", "--company", "  ", "--title", "SWE"]) == 1
        assert "Invalid input" in capsys.readouterr().err

    def test_missing_user_fails(self, cli_env, capsys):
        cli_env.delenv("TRACKER_USER")

        assert main(["jobs", "list"]) == 1
        assert "No user given" in capsys.readouterr().err

    def test_invalid_environment_fails(self, cli_env, capsys):
        cli_env.setenv("LOG_LEVEL", "LOUD")

        assert main(["jobs", "list"]) == 1
        assert "Configuration Error" in capsys.readouterr().err


class TestListingCommands:
    """Tests for listing browse and import."""

    def test_listings_shows_new_by_default(self, cli_env, serve_listing, capsys):
        assert main(["listings"]) == 0

        lines = capsys.readouterr().out.splitlines()
        assert lines[0] == "5 new of 5 open listings (sorted by date, showing new)"
        assert lines[1].startswith("[ ] Globex 🔥 - New Grad Software Engineer")
        assert len(lines) == 6

    def test_listings_limit(self, cli_env, serve_listing, capsys):
        assert main(["listings", "--limit", "2"]) == 0
        assert len(capsys.readouterr().out.splitlines()) == 3

    def test_import_then_show_tracked(self, cli_env, serve_listing, capsys):
        assert main(["import", "Acme", "Backend Engineer I"]) == 0
        assert "Tracking Acme - Backend Engineer I" in capsys.readouterr().out

        assert main(["listings", "--show", "tracked"]) == 0
        lines = capsys.readouterr().out.splitlines()
        assert lines[0].startswith("4 new of 5 open listings")
        assert lines[1].startswith("[x] Acme - Backend Engineer I")

        main(["jobs", "list"])
        assert "Acme - Backend Engineer I" in capsys.readouterr().out

    def test_import_unknown_listing(self, cli_env, serve_listing, capsys):
        assert main(["import", "Umbrella", "Data Engineer"]) == 1
        assert "Not found" in capsys.readouterr().err

    def test_listing_unavailable(self, cli_env, capsys):
        with patch.object(requests.Session, "request", side_effect=requests.exceptions.ConnectionError("offline")):
            assert main(["listings"]) == 1

        assert "Listing unavailable" in capsys.readouterr().err

    def test_config_defaults_apply(self, cli_env, serve_listing, capsys, tmp_path):
        (tmp_path / "config.yaml").write_text("tracker:\n  default_sort: company\n  default_show: all\n")

        assert main(["listings"]) == 0
        header = capsys.readouterr().out.splitlines()[0]
        assert header.endswith("(sorted by company, showing all)")
