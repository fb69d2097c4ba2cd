"""Reconciliation of parsed listings against tracked applications.

Everything here is pure: inputs are never mutated and every function returns
a new list. Classification only annotates, sorting only reorders and
filtering only selects.
"""

import unicodedata
from typing import Callable, Dict, Iterable, List, Sequence, Set, Tuple

from jobtracker.domain.models import ListingRecord, ListingView, SortOption

from .models import TrackedListing

CompanyTitlePair = Tuple[str, str]


def tracking_keys(existing_pairs: Iterable[CompanyTitlePair]) -> Set[CompanyTitlePair]:
    """Case-insensitive lookup set of (company, job_title) pairs."""
    return {(company.casefold(), job_title.casefold()) for company, job_title in existing_pairs}


def reconcile(
    records: Sequence[ListingRecord],
    existing_pairs: Iterable[CompanyTitlePair],
) -> List[TrackedListing]:
    """Mark each record as tracked or untracked, keeping order and length.

    Args:
        records: Parsed listing records
        existing_pairs: (company, job_title) of the user's applications

    Returns:
        One TrackedListing per record, in the same order
    """
    keys = tracking_keys(existing_pairs)
    return [TrackedListing(record=record, is_tracked=record.tracking_key() in keys) for record in records]


def collation_key(text: str) -> str:
    """Sort key that ignores case and accents ("Émile" sorts with "emile")."""
    decomposed = unicodedata.normalize("NFKD", text or "")
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return stripped.casefold()


_SORT_KEYS: Dict[SortOption, Callable[[TrackedListing], object]] = {
    SortOption.DATE: lambda item: item.record.age_days,
    SortOption.COMPANY: lambda item: collation_key(item.record.company),
    SortOption.TITLE: lambda item: collation_key(item.record.job_title),
}


def sort_listings(items: Sequence[TrackedListing], sort_option: SortOption) -> List[TrackedListing]:
    """Stable ascending sort; equal keys keep their original relative order.

    ``date`` orders by age in days with unparseable ages last; ``company``
    and ``title`` order alphabetically ignoring case and accents.

    Raises:
        ValueError: If sort_option is not a known SortOption
    """
    return sorted(items, key=_SORT_KEYS[SortOption(sort_option)])


def filter_listings(items: Sequence[TrackedListing], view: ListingView) -> List[TrackedListing]:
    """Select listings for a view: new (untracked), tracked, or all."""
    view = ListingView(view)
    if view is ListingView.NEW:
        return [item for item in items if not item.is_tracked]
    if view is ListingView.TRACKED:
        return [item for item in items if item.is_tracked]
    return list(items)


def count_new(items: Iterable[TrackedListing]) -> int:
    """Number of listings the user does not track yet."""
    return sum(1 for item in items if not item.is_tracked)


def reconcile_and_sort(
    records: Sequence[ListingRecord],
    existing_pairs: Iterable[CompanyTitlePair],
    sort_option: SortOption = SortOption.DATE,
) -> List[TrackedListing]:
    """Classify records against tracked pairs and order them.

    Example:
        >>> items = reconcile_and_sort(records, [("acme", "swe")], SortOption.COMPANY)
        >>> [(i.record.company, i.is_tracked) for i in items]
        [('Acme', True), ('Globex', False)]
    """
    return sort_listings(reconcile(records, existing_pairs), sort_option)
