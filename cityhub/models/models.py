"""
Domain models for the City Services Hub recommendation core.

Facilities come from the remote directory service and are treated as immutable
values: geocoding and favorite merges produce new instances instead of patching
fields in place, so a captured snapshot of the collection never changes.
"""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Dict, Optional, Tuple


class Urgency:
    """Urgency tiers. Ordering comes from RANK, never from rule order."""

    EMERGENCY = 'EMERGENCY'
    URGENT = 'URGENT'
    NORMAL = 'NORMAL'

    RANK = {NORMAL: 0, URGENT: 1, EMERGENCY: 2}

    @classmethod
    def highest(cls, tiers) -> str:
        """Return the most severe tier in ``tiers`` (NORMAL when empty)."""
        result = cls.NORMAL
        for tier in tiers:
            if cls.RANK[tier] > cls.RANK[result]:
                result = tier
        return result


class StatusCode:
    OPEN = 'OPEN'
    BREAK = 'BREAK'
    CLOSED = 'CLOSED'


# Category field name used by each directory domain
CATEGORY_FIELDS = {
    'hospital': ('treatCategory', 'type'),
    'restaurant': ('restCategory', 'category'),
}


@dataclass(frozen=True)
class Facility:
    """
    A hospital, restaurant or similar place of service.

    ``lat``/``lng`` are filled in by the geocoding orchestrator and
    ``is_favorite`` by the favorites merge; everything else is owned by the
    directory service.
    """
    id: int
    name: str
    address: str = ''
    category: str = ''
    hours_text: Optional[str] = None
    lat: Optional[float] = None
    lng: Optional[float] = None
    is_favorite: bool = False
    menu: Tuple[str, ...] = ()

    @property
    def has_coordinates(self) -> bool:
        return self.lat is not None and self.lng is not None

    def with_coordinates(self, lat: float, lng: float) -> 'Facility':
        return replace(self, lat=float(lat), lng=float(lng))

    def with_favorite(self, is_favorite: bool) -> 'Facility':
        return replace(self, is_favorite=bool(is_favorite))

    @classmethod
    def from_api(cls, payload: Dict[str, Any], domain: str = 'hospital') -> 'Facility':
        """Build a facility from a directory-service JSON record."""
        raw_id = payload.get('id')
        if isinstance(raw_id, bool) or raw_id is None:
            raise ValueError(f'Facility record without an id: {payload!r}')
        try:
            facility_id = int(raw_id)
        except (TypeError, ValueError):
            raise ValueError(f'Facility id must be an integer: {raw_id!r}')

        category = ''
        for key in CATEGORY_FIELDS.get(domain, ('category',)):
            if payload.get(key):
                category = str(payload[key])
                break

        hours_text = payload.get('restOpenTime') or payload.get('openTime') or None
        return cls(
            id=facility_id,
            name=str(payload.get('name') or ''),
            address=str(payload.get('address') or ''),
            category=category,
            hours_text=hours_text,
            lat=_optional_float(payload.get('lat')),
            lng=_optional_float(payload.get('lng')),
            is_favorite=bool(payload.get('isFavorite', False)),
            menu=_menu_items(payload.get('menu')),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert facility to dictionary"""
        return {
            'id': self.id,
            'name': self.name,
            'address': self.address,
            'category': self.category,
            'hoursText': self.hours_text,
            'lat': self.lat,
            'lng': self.lng,
            'isFavorite': self.is_favorite,
            'menu': list(self.menu),
        }


@dataclass(frozen=True)
class BusinessStatus:
    status: str
    today_label: str

    def to_dict(self) -> Dict[str, str]:
        return {'businessStatus': self.status, 'todayHours': self.today_label}


@dataclass(frozen=True)
class Rule:
    """One row of the static symptom rule table."""
    keywords: Tuple[str, ...]
    department: str
    description: str
    eligible_types: Tuple[str, ...]
    urgency: str = Urgency.NORMAL

    def matches(self, text: str) -> bool:
        return any(keyword in text for keyword in self.keywords)


@dataclass(frozen=True)
class ClassificationResult:
    title: str
    description: str
    urgency: str
    is_complex: bool
    departments: Tuple[str, ...] = ()
    eligible_types: Tuple[str, ...] = ()
    match_keywords: Tuple[str, ...] = ()
    matched_rule_count: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'title': self.title,
            'description': self.description,
            'urgency': self.urgency,
            'isComplex': self.is_complex,
            'departments': list(self.departments),
            'eligibleTypes': list(self.eligible_types),
            'matchKeywords': list(self.match_keywords),
        }


@dataclass(frozen=True)
class RankedFacility:
    facility: Facility
    score: int
    business_status: Optional[BusinessStatus] = None

    def to_dict(self) -> Dict[str, Any]:
        data = self.facility.to_dict()
        data['score'] = self.score
        if self.business_status is not None:
            data.update(self.business_status.to_dict())
        return data


@dataclass(frozen=True)
class Recommendation:
    classification: ClassificationResult
    ranked_facilities: Tuple[RankedFacility, ...] = field(default_factory=tuple)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'classification': self.classification.to_dict(),
            'facilities': [item.to_dict() for item in self.ranked_facilities],
        }


def _menu_items(value) -> Tuple[str, ...]:
    # Restaurants list menu items; other domains have none
    if not value:
        return ()
    if isinstance(value, str):
        return (value,)
    return tuple(str(item) for item in value if item)


def _optional_float(value) -> Optional[float]:
    if value is None or value == '':
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None
