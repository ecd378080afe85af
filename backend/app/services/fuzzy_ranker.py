"""
Fuzzy Ranker - keyword relevance scoring over the catalog

Every keyword must hit at least one field of a record (AND semantics).
Each keyword contributes its best field weight; the record's severity adds
a bonus, and the total is capped below an exact regex match.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence

from app.core.config import settings
from app.models.tech_message import Severity
from app.services.tech_message_records import TechMessageRecord

logger = logging.getLogger(__name__)

MAX_FUZZY_SCORE = 0.9

SEVERITY_BONUS: Dict[Severity, float] = {
    Severity.CRITICAL: 0.1,
    Severity.HIGH: 0.075,
    Severity.MEDIUM: 0.05,
    Severity.LOW: 0.025,
}


def tokenize(text: Optional[str], max_keywords: Optional[int] = None) -> List[str]:
    """Split on whitespace, lower-case, keep the first `max_keywords` tokens"""
    if not text:
        return []
    limit = max_keywords if max_keywords is not None else settings.SEARCH_MAX_KEYWORDS
    return [token.lower() for token in text.split() if token.strip()][:limit]


@dataclass
class ScoredRecord:
    record: TechMessageRecord
    score: float


class ScoringPolicy:
    """Maps (keyword, record) to a score contribution. 0 means no hit."""

    def keyword_score(self, keyword: str, record: TechMessageRecord) -> float:
        raise NotImplementedError

    def severity_bonus(self, record: TechMessageRecord) -> float:
        return 0.0

    def max_score(self) -> float:
        return MAX_FUZZY_SCORE


class FieldWeightScoringPolicy(ScoringPolicy):
    """Weights: category exact > category substring > description = pattern"""

    def __init__(self,
                 category_exact: float = 0.5,
                 category_contains: float = 0.3,
                 description_contains: float = 0.2,
                 pattern_contains: float = 0.2,
                 severity_bonus: Optional[Dict[Severity, float]] = None):
        self.category_exact = category_exact
        self.category_contains = category_contains
        self.description_contains = description_contains
        self.pattern_contains = pattern_contains
        self.severity_bonuses = severity_bonus if severity_bonus is not None else SEVERITY_BONUS

    def keyword_score(self, keyword: str, record: TechMessageRecord) -> float:
        keyword = keyword.lower()
        category = (record.category or "").lower()

        if category == keyword:
            return self.category_exact

        best = 0.0
        if keyword in category:
            best = max(best, self.category_contains)
        if record.description and keyword in record.description.lower():
            best = max(best, self.description_contains)
        if record.pattern and keyword in record.pattern.lower():
            best = max(best, self.pattern_contains)
        return best

    def severity_bonus(self, record: TechMessageRecord) -> float:
        return self.severity_bonuses.get(record.severity, 0.0)


class FuzzyRanker:

    def __init__(self, policy: Optional[ScoringPolicy] = None):
        self.policy = policy or FieldWeightScoringPolicy()

    def score(self, keywords: Sequence[str], record: TechMessageRecord) -> Optional[float]:
        """Record score, or None when any keyword misses"""
        total = 0.0
        for keyword in keywords:
            contribution = self.policy.keyword_score(keyword, record)
            if contribution <= 0:
                return None
            total += contribution

        total += self.policy.severity_bonus(record)
        return round(min(total, self.policy.max_score()), 4)

    def rank(self, keywords: Sequence[str], catalog: Iterable[TechMessageRecord]) -> List[ScoredRecord]:
        """Qualifying records, best score first; ties keep catalog order"""
        if not keywords:
            return []

        scored = []
        for record in catalog:
            value = self.score(keywords, record)
            if value is not None:
                scored.append(ScoredRecord(record=record, score=value))

        scored.sort(key=lambda item: item.score, reverse=True)
        logger.debug(f"[FuzzyRanker] {len(scored)} record(s) matched keywords {list(keywords)}")
        return scored


fuzzy_ranker = FuzzyRanker()
