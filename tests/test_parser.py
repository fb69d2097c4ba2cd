"""Unit tests for the listing document parser."""

import logging

import pytest

from jobtracker.config.models import DEFAULT_SECTION_HEADING
from jobtracker.listings.exceptions import SectionNotFoundError
from jobtracker.listings.parser import (
    clean_cell_text,
    clean_location,
    extract_first_link,
    extract_rows,
    extract_section,
    list_listings,
    parse_row,
    parse_table,
)


def make_row(*cells):
    """Render cells as one HTML table row."""
    return "<tr>" + "".join(f"<td>{cell}</td>" for cell in cells) + "</tr>"


def make_document(*rows, heading=DEFAULT_SECTION_HEADING, trailer=""):
    """Wrap rows in a table under the section heading."""
    return (
        "# New Grad Positions\n\n"
        f"{heading}\n\n"
        "<table>\n<tbody>\n" + "\n".join(rows) + "\n</tbody>\n</table>\n"
        f"{trailer}"
    )


HEADER_ROW = make_row("<strong>Company</strong>", "Role", "Location", "Application", "Age")


# ============================================================================
# Text transforms
# ============================================================================


class TestCleanCellText:
    """Tests for tag stripping and entity decoding."""

    def test_strips_nested_tags(self):
        assert clean_cell_text('<strong><a href="https://x.example">Acme</a></strong>') == "Acme"

    def test_decodes_the_five_basic_entities(self):
        assert clean_cell_text("&amp; &lt; &gt; &quot; &#x27;") == "& < > \" '"

    def test_other_entities_pass_through(self):
        assert clean_cell_text("Caf&eacute; &nbsp;Bar") == "Caf&eacute; &nbsp;Bar"

    def test_no_double_decoding(self):
        """&amp;lt; decodes once to the literal text &lt;."""
        assert clean_cell_text("&amp;lt;") == "&lt;"

    def test_collapses_whitespace(self):
        assert clean_cell_text("  Software\n   Engineer\t I ") == "Software Engineer I"

    def test_adjacent_tags_do_not_glue_words(self):
        assert clean_cell_text("<span>Senior</span><span>Engineer</span>") == "Senior Engineer"

    def test_empty_input(self):
        assert clean_cell_text("") == ""
        assert clean_cell_text(None) == ""


class TestCleanLocation:
    """Tests for location cell cleaning."""

    @pytest.mark.parametrize("markup", ["<br>", "<br/>", "<br />", "</br>", "<BR>"])
    def test_line_breaks_become_comma_separators(self, markup):
        assert clean_location(f"NYC{markup}SF") == "NYC, SF"

    def test_multiple_locations(self):
        assert clean_location("Austin, TX</br>Remote in USA</br>Seattle, WA") == (
            "Austin, TX, Remote in USA, Seattle, WA"
        )

    def test_details_block_is_flattened(self):
        cell = "<details><summary><strong>3 locations</strong></summary>NYC</br>SF</br>LA</details>"
        assert clean_location(cell) == "3 locations NYC, SF, LA"

    @pytest.mark.parametrize("cell", ["NY<br>", "<br>NY", "NY<br><br>", " <br> NY <br> "])
    def test_empty_places_are_dropped(self, cell):
        assert clean_location(cell) == "NY"


class TestExtractFirstLink:
    """Tests for application link extraction."""

    def test_double_quoted_href(self):
        assert extract_first_link('<a href="https://a.example/1">Apply</a>') == "https://a.example/1"

    def test_single_quoted_href(self):
        assert extract_first_link("<a href='https://a.example/2'>Apply</a>") == "https://a.example/2"

    def test_unquoted_href(self):
        assert extract_first_link("<a href=x>Apply</a>") == "x"

    def test_first_anchor_wins(self):
        cell = (
            '<div align="center"><a href="https://apply.example/1"><img src="apply.png"></a> '
            '<a href="https://simplify.example/1"><img src="simplify.png"></a></div>'
        )
        assert extract_first_link(cell) == "https://apply.example/1"

    def test_attributes_before_href(self):
        assert extract_first_link('<a target="_blank" href="https://a.example/3">x</a>') == "https://a.example/3"

    def test_no_anchor(self):
        assert extract_first_link("🔒") == ""
        assert extract_first_link("") == ""


# ============================================================================
# Section and row extraction
# ============================================================================


class TestExtractSection:
    """Tests for locating the category section."""

    def test_section_ends_at_next_heading_of_same_level(self):
        document = make_document(
            make_row("Acme", "SWE", "NY", "", "1d"),
            trailer="\n## 📱 Product Management New Grad Roles\n" + make_row("Hooli", "APM", "CA", "", "2d"),
        )
        section = extract_section(document, DEFAULT_SECTION_HEADING)
        assert "Acme" in section
        assert "Hooli" not in section

    def test_section_ends_at_higher_level_heading(self):
        document = make_document(make_row("Acme", "SWE", "NY", "", "1d"), trailer="\n# Appendix\nHooli")
        assert "Hooli" not in extract_section(document, DEFAULT_SECTION_HEADING)

    def test_lower_level_heading_does_not_end_section(self):
        document = make_document(
            "### Backend\n" + make_row("Acme", "SWE", "NY", "", "1d"),
        )
        assert "Acme" in extract_section(document, DEFAULT_SECTION_HEADING)

    def test_section_runs_to_end_of_document(self):
        document = make_document(make_row("Acme", "SWE", "NY", "", "1d"))
        assert extract_section(document, DEFAULT_SECTION_HEADING).rstrip().endswith("</table>")

    def test_missing_heading_raises(self):
        with pytest.raises(SectionNotFoundError) as exc_info:
            extract_section("# Nothing here\n", DEFAULT_SECTION_HEADING)
        assert exc_info.value.heading == DEFAULT_SECTION_HEADING

    def test_heading_with_different_level_is_not_matched(self):
        document = "### 💻 Software Engineering New Grad Roles\n" + make_row("Acme", "SWE", "NY", "", "1d")
        with pytest.raises(SectionNotFoundError):
            extract_section(document, DEFAULT_SECTION_HEADING)

    def test_invalid_heading_raises_value_error(self):
        with pytest.raises(ValueError, match="Not a markdown heading"):
            extract_section("anything", "Software Engineering")


class TestExtractRows:
    """Tests for row and cell splitting."""

    def test_cells_are_trimmed_raw_html(self):
        rows = extract_rows('<tr>\n<td> <strong>Acme</strong> </td>\n<td align="left">SWE</td>\n</tr>')
        assert rows == [["<strong>Acme</strong>", "SWE"]]

    def test_header_cells_are_not_data_cells(self):
        assert extract_rows("<tr><th>Company</th><th>Role</th></tr>") == [[]]

    def test_multiple_rows(self):
        section = make_row("a", "b") + make_row("c", "d", "e")
        assert [len(row) for row in extract_rows(section)] == [2, 3]


# ============================================================================
# Row classification
# ============================================================================


class TestParseRow:
    """Tests for the ordered row classification rules."""

    def test_valid_row(self):
        outcome = parse_row(
            ["<strong>Acme</strong>", "SWE", "NY</br>SF", '<a href="https://a.example">Apply</a>', "3d"],
            last_company="",
        )
        assert outcome.skip_reason is None
        assert outcome.last_company == "Acme"
        record = outcome.record
        assert record.company == "Acme"
        assert record.job_title == "SWE"
        assert record.location == "NY, SF"
        assert record.application_url == "https://a.example"
        assert record.date_posted == "3d"
        assert record.age_days == 3
        assert record.is_faang is False

    @pytest.mark.parametrize("count", [0, 1, 4])
    def test_too_few_cells(self, count):
        outcome = parse_row(["x"] * count, last_company="Acme")
        assert outcome.record is None
        assert outcome.skip_reason == "too_few_cells"
        assert outcome.last_company == "Acme"

    def test_extra_cells_are_ignored(self):
        outcome = parse_row(["Acme", "SWE", "NY", "", "1d", "extra"], last_company="")
        assert outcome.record.company == "Acme"

    @pytest.mark.parametrize("company_cell", ["Company", "<strong>Company</strong>", "<em>Company</em>"])
    def test_header_row(self, company_cell):
        outcome = parse_row([company_cell, "Role", "Location", "Application", "Age"], last_company="")
        assert outcome.skip_reason == "header"

    def test_closed_posting(self):
        outcome = parse_row(["Acme", "SWE", "NY", "🔒", "1d"], last_company="")
        assert outcome.record is None
        assert outcome.skip_reason == "closed"

    @pytest.mark.parametrize(
        "cells",
        [
            ["Acme 🇺🇸", "SWE", "NY", "", "1d"],
            ["Acme", "SWE 🇺🇸", "NY", "", "1d"],
        ],
    )
    def test_citizenship_required(self, cells):
        assert parse_row(cells, last_company="").skip_reason == "citizenship_required"

    @pytest.mark.parametrize(
        "cells",
        [
            ["Acme 🛂", "SWE", "NY", "", "1d"],
            ["Acme", "SWE 🛂", "NY", "", "1d"],
        ],
    )
    def test_no_sponsorship(self, cells):
        assert parse_row(cells, last_company="").skip_reason == "no_sponsorship"

    def test_first_exclusion_wins(self):
        outcome = parse_row(["Acme 🛂", "SWE 🇺🇸", "NY", "🔒", "1d"], last_company="")
        assert outcome.skip_reason == "closed"

    def test_continuation_inherits_last_company(self):
        outcome = parse_row(["↳", "SRE", "NY", "", "10d"], last_company="Acme")
        assert outcome.record.company == "Acme"
        assert outcome.last_company == "Acme"

    def test_continuation_inside_markup(self):
        outcome = parse_row(["<strong>↳</strong>", "SRE", "NY", "", "10d"], last_company="Acme")
        assert outcome.record.company == "Acme"

    def test_continuation_without_previous_company(self):
        outcome = parse_row(["↳", "SRE", "NY", "", "10d"], last_company="")
        assert outcome.record is None
        assert outcome.skip_reason == "missing_company"

    def test_empty_company(self):
        outcome = parse_row(["<strong></strong>", "SWE", "NY", "", "1d"], last_company="Acme")
        assert outcome.skip_reason == "missing_company"
        assert outcome.last_company == "Acme"

    def test_empty_title(self):
        outcome = parse_row(["Acme", "  ", "NY", "", "1d"], last_company="")
        assert outcome.skip_reason == "missing_title"
        assert outcome.last_company == ""

    def test_faang_marker_checked_on_raw_company_cell(self):
        outcome = parse_row(['<strong>Globex</strong> 🔥', "SWE", "NY", "", "1d"], last_company="")
        assert outcome.record.is_faang is True
        assert outcome.record.company == "Globex 🔥"

    def test_faang_marker_inside_markup(self):
        outcome = parse_row(['<a href="x"><img alt="🔥">Globex</a>', "SWE", "NY", "", "1d"], last_company="")
        assert outcome.record.is_faang is True

    def test_continuation_row_is_not_faang(self):
        outcome = parse_row(["↳", "SWE", "NY", "", "1d"], last_company="Globex 🔥")
        assert outcome.record.is_faang is False

    def test_missing_link_gives_empty_url(self):
        assert parse_row(["Acme", "SWE", "NY", "", "1d"], last_company="").record.application_url == ""


class TestParseTable:
    """Tests for threading the last company through a table."""

    def test_continuation_uses_preceding_company(self):
        section = (
            make_row("Acme", "SWE", "NY", "", "1d")
            + make_row("↳", "SRE", "NY", "", "2d")
            + make_row("Globex", "PM", "SF", "", "3d")
            + make_row("↳", "TPM", "SF", "", "4d")
        )
        records = parse_table(section)
        assert [(r.company, r.job_title) for r in records] == [
            ("Acme", "SWE"),
            ("Acme", "SRE"),
            ("Globex", "PM"),
            ("Globex", "TPM"),
        ]

    def test_skipped_row_does_not_become_last_company(self):
        """A closed posting is never the company a continuation inherits."""
        section = (
            make_row("Acme", "SWE", "NY", "", "1d")
            + make_row("Globex", "PM", "SF", "🔒", "3d")
            + make_row("↳", "SRE", "NY", "", "2d")
        )
        records = parse_table(section)
        assert [(r.company, r.job_title) for r in records] == [("Acme", "SWE"), ("Acme", "SRE")]

    def test_state_does_not_leak_between_calls(self):
        parse_table(make_row("Acme", "SWE", "NY", "", "1d"))
        assert parse_table(make_row("↳", "SRE", "NY", "", "2d")) == []

    def test_skipped_rows_are_logged(self, caplog):
        with caplog.at_level(logging.DEBUG, logger="jobtracker.listings.parser"):
            parse_table(make_row("a", "b") + make_row("Acme", "SWE", "NY", "🔒", "1d"))

        reasons = [r.reason for r in caplog.records if getattr(r, "event", None) == "listings.row.skipped"]
        assert reasons == ["too_few_cells", "closed"]

    def test_malformed_rows_never_abort_parse(self):
        section = (
            make_row("<strong>broken", "</td>")
            + make_row("Acme", "SWE", "NY", "", "1d")
            + "<tr><td>unclosed"
        )
        records = parse_table(section)
        assert [r.company for r in records] == ["Acme"]


# ============================================================================
# Whole document
# ============================================================================


class TestListListings:
    """Tests for list_listings."""

    def test_end_to_end_scenario(self):
        document = make_document(
            HEADER_ROW,
            make_row("Acme", "SWE", "NY", "<a href=x>", "3d"),
            make_row("↳", "SRE", "NY, SF", "", "10d"),
            make_row("Globex", "PM", "🔒", "", "1d"),
        )

        records = list_listings(document)

        assert len(records) == 2
        first, second = records
        assert (first.company, first.job_title, first.age_days) == ("Acme", "SWE", 3)
        assert first.application_url == "x"
        assert (second.company, second.job_title, second.age_days) == ("Acme", "SRE", 10)
        assert second.location == "NY, SF"

    def test_excluded_glyphs_never_appear(self):
        document = make_document(
            make_row("Acme", "SWE", "NY", "🔒", "1d"),
            make_row("Acme", "SWE 🇺🇸", "NY", "", "1d"),
            make_row("Acme 🛂", "SWE", "NY", "", "1d"),
            make_row("Globex", "PM", "SF", "", "1d"),
        )
        records = list_listings(document)
        assert [r.company for r in records] == ["Globex"]

    @pytest.mark.parametrize("document", ["", "# Title\n\nNo table here.\n", "just text"])
    def test_empty_or_headingless_document(self, document):
        assert list_listings(document) == []

    def test_none_document(self):
        assert list_listings(None) == []

    def test_missing_section_logs_warning(self, caplog):
        with caplog.at_level(logging.WARNING, logger="jobtracker.listings.parser"):
            assert list_listings("# Other\n") == []

        events = [getattr(r, "event", None) for r in caplog.records]
        assert "listings.section.not_found" in events

    def test_custom_section_heading(self):
        document = make_document(
            make_row("Acme", "SWE", "NY", "", "1d"),
            trailer="\n## 📱 Product Management New Grad Roles\n<table>" + make_row("Hooli", "APM", "CA", "", "2d") + "</table>",
        )
        records = list_listings(document, "## 📱 Product Management New Grad Roles")
        assert [r.company for r in records] == ["Hooli"]

    def test_recorded_listing(self, listing_document):
        records = list_listings(listing_document)

        assert [(r.company, r.job_title) for r in records] == [
            ("Acme", "Software Engineer, New Grad"),
            ("Acme", "Backend Engineer I"),
            ("Globex 🔥", "New Grad Software Engineer"),
            ("Initech", "Software Engineer"),
            ("Émile & Co", "Software Developer <Grad>"),
        ]

        acme, backend, globex, initech, emile = records
        assert acme.location == "NYC, SF"
        assert acme.application_url == "https://jobs.example.com/acme/123"
        assert backend.age_days == 30
        assert backend.application_url == "https://jobs.example.com/acme/456"
        assert globex.is_faang is True
        assert globex.application_url == "https://careers.globex.example/ng"
        assert globex.age_days == 0
        assert initech.application_url == "https://initech.example/jobs/1"
        assert emile.application_url == ""
        assert emile.age_days == 999
