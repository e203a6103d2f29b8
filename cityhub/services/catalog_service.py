"""
List-page helpers: category options, keyword/category/open-now filtering and
map marker selection.
"""
from __future__ import annotations

from datetime import datetime
from typing import Iterable, List, Optional

from cityhub.models.models import Facility, StatusCode
from cityhub.utils.availability import current_local_time, get_business_status

ALL_CATEGORIES = '전체'


def category_options(facilities: Iterable[Facility]) -> List[str]:
    seen = dict.fromkeys(f.category for f in facilities if f.category)
    return [ALL_CATEGORIES, *seen]


def matches_keyword(facility: Facility, keyword: Optional[str]) -> bool:
    """Every whitespace-separated term must appear in the name, menu, category or address."""
    fields = (
        facility.name or '',
        ' '.join(facility.menu),
        facility.category or '',
        facility.address or '',
    )
    return all(any(term in field for field in fields) for term in (keyword or '').split())


def filter_facilities(facilities: Iterable[Facility], *, category: Optional[str] = None,
                      keyword: Optional[str] = None, open_only: bool = False,
                      now: Optional[datetime] = None) -> List[Facility]:
    result = list(facilities)

    if category and category != ALL_CATEGORIES:
        result = [f for f in result if f.category == category]

    if keyword and keyword.strip():
        result = [f for f in result if matches_keyword(f, keyword)]

    if open_only:
        now = now or current_local_time()
        result = [f for f in result if get_business_status(f.hours_text, now).status == StatusCode.OPEN]

    return result


def map_markers(facilities: Iterable[Facility]) -> List[Facility]:
    # Unresolved addresses cannot be placed on a map
    return [f for f in facilities if f.has_coordinates]
