from __future__ import annotations

from typing import Iterable, List, Optional

from cityhub.config import Config
from cityhub.models.models import ClassificationResult, Facility, RankedFacility, Urgency
from cityhub.services.rules import DENTAL_KEYWORD, INTERNAL_MEDICINE_KEYWORD, LARGE_HOSPITAL_MARKERS


class RankingService:
    """Filters and orders facilities for one classification result."""

    NAME_MATCH_POINTS = 3
    CATEGORY_MATCH_POINTS = 2
    LARGE_HOSPITAL_BONUS_URGENT = 10
    LARGE_HOSPITAL_BONUS_COMPLEX = 5
    LARGE_HOSPITAL_BONUS_DEFAULT = 1

    def __init__(self, limit: Optional[int] = None) -> None:
        self.limit = limit if limit is not None else Config.RECOMMENDATION_LIMIT

    def rank(self, facilities: Iterable[Facility], classification: ClassificationResult,
             limit: Optional[int] = None) -> List[RankedFacility]:
        candidates = [f for f in facilities if self.is_eligible(f, classification)]
        scored = [RankedFacility(f, self.score(f, classification)) for f in candidates]
        # sorted() is stable: equal scores keep the directory order
        scored = sorted(scored, key=lambda item: item.score, reverse=True)
        return scored[: limit if limit is not None else self.limit]

    @staticmethod
    def is_eligible(facility: Facility, classification: ClassificationResult) -> bool:
        if not facility.has_coordinates:
            return False

        category = facility.category or ''
        name = facility.name or ''
        keywords = classification.match_keywords

        if DENTAL_KEYWORD in keywords and INTERNAL_MEDICINE_KEYWORD not in keywords:
            return DENTAL_KEYWORD in category or DENTAL_KEYWORD in name

        type_match = any(t in category for t in classification.eligible_types)
        name_match = any(k in name for k in keywords)
        return type_match or name_match

    def score(self, facility: Facility, classification: ClassificationResult) -> int:
        category = facility.category or ''
        name = facility.name or ''

        total = 0
        for keyword in classification.match_keywords:
            if keyword in name:
                total += self.NAME_MATCH_POINTS
            if keyword in category:
                total += self.CATEGORY_MATCH_POINTS

        if self.is_large_hospital(facility):
            if classification.urgency in (Urgency.EMERGENCY, Urgency.URGENT):
                total += self.LARGE_HOSPITAL_BONUS_URGENT
            elif classification.is_complex:
                total += self.LARGE_HOSPITAL_BONUS_COMPLEX
            else:
                total += self.LARGE_HOSPITAL_BONUS_DEFAULT
        return total

    @staticmethod
    def is_large_hospital(facility: Facility) -> bool:
        text = f'{facility.name or ""} {facility.category or ""}'
        return any(marker in text for marker in LARGE_HOSPITAL_MARKERS)
