"""Parser for the community-maintained job listing document.

The listing is a markdown README whose postings live in an HTML table under a
category heading. The document is edited by hand, so the parser is permissive:
rows it cannot make sense of are dropped one at a time and never abort the
whole parse.

Row layout (first five ``<td>`` cells)::

    company | title | location | links | age

Status markers are emoji embedded in the cells:

- 🔒 (normally in the links cell): posting closed
- 🇺🇸 (normally next to company or title): US citizenship required
- 🛂 (normally next to company or title): no visa sponsorship
- 🔥 in company: FAANG+ employer
- ↳ as the whole company cell: same company as the previous posting
"""

import re
from typing import List, NamedTuple, Optional, Sequence

from jobtracker.config.models import DEFAULT_SECTION_HEADING
from jobtracker.domain.models import ListingRecord
from jobtracker.logging import get_logger

from .exceptions import SectionNotFoundError

logger = get_logger(__name__, component="listings")

CLOSED_MARKER = "🔒"
CITIZENSHIP_MARKER = "🇺🇸"
NO_SPONSORSHIP_MARKER = "🛂"
FAANG_MARKER = "🔥"
CONTINUATION_MARKER = "↳"
HEADER_WORD = "Company"
MIN_CELLS = 5

LOCATION_SEPARATOR = ", "

_ROW = re.compile(r"<tr\b[^>]*>(.*?)</tr\s*>", re.IGNORECASE | re.DOTALL)
_CELL = re.compile(r"<td\b[^>]*>(.*?)</td\s*>", re.IGNORECASE | re.DOTALL)
_TAG = re.compile(r"<[^>]+>")
_LINE_BREAK = re.compile(r"<\s*/?\s*br\s*/?\s*>", re.IGNORECASE)
_HREF = re.compile(
    r"""<a\b[^>]*?\bhref\s*=\s*(?:"([^"]*)"|'([^']*)'|([^\s"'>]+))""",
    re.IGNORECASE,
)
_WHITESPACE = re.compile(r"\s+")
_SPACE_BEFORE_COMMA = re.compile(r"\s+,")

# Only these five entities are decoded; anything else is left as written
_ENTITY = re.compile(r"&(?:amp|lt|gt|quot|#x27);")
_ENTITIES = {
    "&amp;": "&",
    "&lt;": "<",
    "&gt;": ">",
    "&quot;": '"',
    "&#x27;": "'",
}


class RowOutcome(NamedTuple):
    """Result of classifying one table row.

    Attributes:
        record: Emitted record, or None when the row was skipped
        last_company: Company a following continuation row inherits
        skip_reason: Why the row was skipped (None when emitted)
    """

    record: Optional[ListingRecord]
    last_company: str
    skip_reason: Optional[str] = None


def clean_cell_text(html_text: str) -> str:
    """Strip tags, decode the basic entities and normalize whitespace.

    Tags are replaced by a space before whitespace is collapsed, so adjacent
    inline elements do not glue words together.

    Example:
        >>> clean_cell_text("<strong><a href='x'>AT&amp;T</a></strong>")
        'AT&T'
    """
    if not html_text:
        return ""

    text = _TAG.sub(" ", html_text)
    text = _ENTITY.sub(lambda m: _ENTITIES[m.group(0)], text)
    text = _WHITESPACE.sub(" ", text)
    text = _SPACE_BEFORE_COMMA.sub(",", text)
    return text.strip()


def clean_location(html_text: str) -> str:
    """Clean a location cell, joining line-break separated places with ', '.

    Example:
        >>> clean_location("NYC</br>SF")
        'NYC, SF'
    """
    places = (clean_cell_text(part) for part in _LINE_BREAK.split(html_text or ""))
    return LOCATION_SEPARATOR.join(place for place in places if place)


def extract_first_link(html_text: str) -> str:
    """Return the href of the first anchor tag, or '' if there is none."""
    match = _HREF.search(html_text or "")
    if not match:
        return ""
    return next(group for group in match.groups() if group is not None)


def extract_section(document: str, heading: str = DEFAULT_SECTION_HEADING) -> str:
    """Return the text between ``heading`` and the next heading of equal or higher level.

    Args:
        document: Full markdown document
        heading: Markdown heading line, e.g. "## 💻 Software Engineering New Grad Roles"

    Returns:
        Section body (without the heading line itself)

    Raises:
        ValueError: If heading is not a markdown heading
        SectionNotFoundError: If the heading does not occur in the document
    """
    stripped = heading.strip()
    level = len(stripped) - len(stripped.lstrip("#"))
    title = stripped[level:].strip()
    if level == 0 or not title:
        raise ValueError(f"Not a markdown heading: {heading!r}")

    start_pattern = re.compile(
        rf"^[ \t]*#{{{level}}}[ \t]*{re.escape(title)}[^\n]*$", re.MULTILINE
    )
    start = start_pattern.search(document or "")
    if start is None:
        raise SectionNotFoundError(stripped)

    end_pattern = re.compile(rf"^[ \t]*#{{1,{level}}}(?!#)", re.MULTILINE)
    end = end_pattern.search(document, start.end())

    return document[start.end():end.start() if end else len(document)]


def extract_rows(section: str) -> List[List[str]]:
    """Split a section into rows of trimmed raw cell HTML.

    Rows are returned whatever their width; the caller decides which are usable.
    """
    return [
        [cell.strip() for cell in _CELL.findall(row_html)]
        for row_html in _ROW.findall(section or "")
    ]


def parse_row(cells: Sequence[str], last_company: str) -> RowOutcome:
    """Classify one row and build its record.

    Rules are applied in order and the first exclusion wins: too few cells,
    header row, closed posting, citizenship required, no sponsorship. A
    continuation row reuses ``last_company``. Rows left without a company or
    title are dropped.

    Args:
        cells: Raw cell HTML of the row
        last_company: Company of the most recently emitted non-continuation row

    Returns:
        RowOutcome carrying the record (or skip reason) and the company the
        next continuation row should inherit
    """
    if len(cells) < MIN_CELLS:
        return RowOutcome(None, last_company, "too_few_cells")

    company_cell, title_cell, location_cell, links_cell, date_cell = cells[:MIN_CELLS]

    # Markers are matched across the whole row; the list usually puts the
    # lock in the links cell and the flags next to the company or title.
    row_html = " ".join(cells)

    if HEADER_WORD in company_cell:
        return RowOutcome(None, last_company, "header")
    if CLOSED_MARKER in row_html:
        return RowOutcome(None, last_company, "closed")
    if CITIZENSHIP_MARKER in row_html:
        return RowOutcome(None, last_company, "citizenship_required")
    if NO_SPONSORSHIP_MARKER in row_html:
        return RowOutcome(None, last_company, "no_sponsorship")

    is_continuation = clean_cell_text(company_cell) == CONTINUATION_MARKER
    company = last_company if is_continuation else clean_cell_text(company_cell)
    if not company:
        return RowOutcome(None, last_company, "missing_company")

    job_title = clean_cell_text(title_cell)
    if not job_title:
        return RowOutcome(None, last_company, "missing_title")

    record = ListingRecord(
        company=company,
        job_title=job_title,
        location=clean_location(location_cell),
        application_url=extract_first_link(links_cell),
        date_posted=clean_cell_text(date_cell),
        is_faang=FAANG_MARKER in company_cell,
    )
    return RowOutcome(record, last_company if is_continuation else company)


def parse_table(section: str) -> List[ListingRecord]:
    """Parse every row of a section into records, in table order.

    ``last_company`` is threaded through the rows left to right and lives only
    for the duration of this call.
    """
    records: List[ListingRecord] = []
    last_company = ""

    for index, cells in enumerate(extract_rows(section)):
        outcome = parse_row(cells, last_company)
        last_company = outcome.last_company

        if outcome.record is None:
            logger.debug(
                "Skipped listing row",
                extra={
                    "event": "listings.row.skipped",
                    "row_index": index,
                    "reason": outcome.skip_reason,
                },
            )
            continue

        records.append(outcome.record)

    return records


def list_listings(document: str, section_heading: str = DEFAULT_SECTION_HEADING) -> List[ListingRecord]:
    """Parse the open postings of one category from a listing document.

    A missing section is not an error for the caller: it is logged and an
    empty list is returned.

    Args:
        document: Raw markdown/HTML text of the listing
        section_heading: Heading of the category to read

    Returns:
        ListingRecords in document order
    """
    try:
        section = extract_section(document or "", section_heading)
    except SectionNotFoundError as e:
        logger.warning(
            "Listing section not found; no postings available",
            extra={
                "event": "listings.section.not_found",
                "heading": e.heading,
                "document_chars": len(document or ""),
            },
        )
        return []

    records = parse_table(section)

    logger.info(
        f"Parsed {len(records)} listings",
        extra={
            "event": "listings.parse.completed",
            "heading": section_heading,
            "record_count": len(records),
        },
    )
    return records
