"""
Rule-based symptom classifier.

Maps free text to the matching departments, an urgency tier and the facility
categories used by the ranker. Matching is plain substring containment against
the static rule table; there is no tokenization.
"""
from __future__ import annotations

import logging
from typing import List, Optional, Sequence

from flask import current_app, has_app_context

from cityhub.models.models import ClassificationResult, Rule, Urgency
from cityhub.services.rules import (
    ANALYSIS_RULES,
    EMERGENCY_DEPARTMENT,
    FALLBACK_TYPES,
    GENERAL_HOSPITAL_TYPE,
    NIGHT_CARE_DEPARTMENT,
)


def _unique(values) -> tuple:
    """De-duplicate while keeping first-seen order."""
    return tuple(dict.fromkeys(values))


class TriageService:
    """Classifies symptom descriptions against the rule table."""

    FALLBACK_TITLE = '가까운 병원'
    FALLBACK_DESCRIPTION = '증상을 명확히 파악하기 어려워 일반 진료 병원을 추천합니다.'

    # Departments that never take part in name matching
    NAME_MATCH_EXCLUDED = {EMERGENCY_DEPARTMENT, NIGHT_CARE_DEPARTMENT}

    def __init__(self, rules: Optional[Sequence[Rule]] = None) -> None:
        self.rules = tuple(rules if rules is not None else ANALYSIS_RULES)
        self.logger = current_app.logger if has_app_context() else logging.getLogger(__name__)

    # Public API --------------------------------------------------------------

    def matching_rules(self, text: str) -> List[Rule]:
        return [rule for rule in self.rules if rule.matches(text)]

    def classify(self, text: str) -> ClassificationResult:
        matched = self.matching_rules(text or '')
        if not matched:
            self.logger.debug('No symptom rule matched %r', text)
            return ClassificationResult(
                title=self.FALLBACK_TITLE,
                description=self.FALLBACK_DESCRIPTION,
                urgency=Urgency.NORMAL,
                is_complex=False,
                eligible_types=FALLBACK_TYPES,
            )

        urgency = Urgency.highest(rule.urgency for rule in matched)
        departments = _unique(
            rule.department for rule in matched if rule.department != NIGHT_CARE_DEPARTMENT
        )

        eligible_types = []
        if urgency in (Urgency.EMERGENCY, Urgency.URGENT):
            eligible_types.append(GENERAL_HOSPITAL_TYPE)
        for rule in matched:
            eligible_types.extend(rule.eligible_types)

        match_keywords = _unique(
            rule.department.split('/')[0]
            for rule in matched
            if rule.department not in self.NAME_MATCH_EXCLUDED
        )

        title, description = self._describe(matched, urgency, departments)
        self.logger.info('Classified symptom text: urgency=%s rules=%d departments=%s',
                         urgency, len(matched), ', '.join(departments))
        return ClassificationResult(
            title=title,
            description=description,
            urgency=urgency,
            is_complex=len(matched) > 1,
            departments=departments,
            eligible_types=_unique(eligible_types),
            match_keywords=match_keywords,
            matched_rule_count=len(matched),
        )

    # Display helpers ---------------------------------------------------------

    @staticmethod
    def _describe(matched: Sequence[Rule], urgency: str, departments: Sequence[str]):
        joined = ', '.join(departments)
        if urgency == Urgency.EMERGENCY:
            return '응급 상황 감지', '즉시 처치가 가능한 종합병원 및 응급의료기관을 추천합니다.'
        if urgency == Urgency.URGENT:
            title = f'{joined} (야간/진료가능)' if joined else '야간/휴일 진료'
            return title, '현재 진료 가능성이 높은 대형 병원을 우선 추천합니다.'
        if len(matched) > 1:
            return joined, '여러 증상이 복합되어 종합적인 진료가 필요해 보입니다.'
        return joined, f'{matched[0].description} 관련 전문 병원을 우선 추천합니다.'
