"""
Tech Message Search - combines regex and keyword matching

Pipeline for one query:
1. Validate the text (>= SEARCH_MIN_TEXT_LENGTH after trimming) and mode
2. EXACT: run every catalog pattern against the raw text (score 1.0)
3. FUZZY: tokenize and rank the catalog by keyword relevance (score <= 0.9)
4. Deduplicate by record id, keeping the EXACT hit
5. Sort: EXACT in catalog order, then FUZZY by score, severity, catalog order
6. Attach the recommended action for the occurrence count
"""

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Protocol, Sequence, Tuple

from app.core.config import settings
from app.core.exceptions import InvalidSearchQueryError
from app.core.logging_config import logger
from app.services.frequency_analyzer import FrequencyAnalyzer, frequency_analyzer
from app.services.fuzzy_ranker import FuzzyRanker, fuzzy_ranker, tokenize
from app.services.pattern_matcher import PatternMatcher, pattern_matcher
from app.services.tech_message_records import ActionTier, TechMessageRecord


class MatchMode(str, Enum):
    EXACT = "EXACT"
    FUZZY = "FUZZY"
    BOTH = "BOTH"

    @property
    def includes_exact(self) -> bool:
        return self in (MatchMode.EXACT, MatchMode.BOTH)

    @property
    def includes_fuzzy(self) -> bool:
        return self in (MatchMode.FUZZY, MatchMode.BOTH)

    @classmethod
    def parse(cls, value) -> "MatchMode":
        if value is None:
            return cls.BOTH
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            raise InvalidSearchQueryError(
                f"Invalid match mode '{value}'. Expected one of EXACT, FUZZY, BOTH",
                field="matchMode",
            )


class MatchType(str, Enum):
    EXACT = "EXACT"
    FUZZY = "FUZZY"


@dataclass
class SearchQuery:
    text: str
    occurrence_count: Optional[int] = None
    mode: MatchMode = MatchMode.BOTH


@dataclass
class SearchMatch:
    """One ranked search result"""
    tech_message: TechMessageRecord
    match_type: MatchType
    match_score: float
    matched_text: Optional[str] = None
    extracted_variables: Optional[Dict[str, str]] = None
    recommended_action: Optional[ActionTier] = None
    all_action_levels: Tuple[ActionTier, ...] = field(default_factory=tuple)


class CatalogProvider(Protocol):
    async def load_all_records(self) -> Tuple[TechMessageRecord, ...]:
        ...


class SearchOrchestrator:
    """Pure search over an already-loaded catalog snapshot"""

    def __init__(self,
                 matcher: Optional[PatternMatcher] = None,
                 ranker: Optional[FuzzyRanker] = None,
                 analyzer: Optional[FrequencyAnalyzer] = None):
        self.matcher = matcher or pattern_matcher
        self.ranker = ranker or fuzzy_ranker
        self.analyzer = analyzer or frequency_analyzer

    def validate(self, query: SearchQuery) -> MatchMode:
        mode = MatchMode.parse(query.mode)
        text = (query.text or "").strip()
        if len(text) < settings.SEARCH_MIN_TEXT_LENGTH:
            raise InvalidSearchQueryError(
                f"Search text must be at least {settings.SEARCH_MIN_TEXT_LENGTH} characters",
                field="searchText",
            )
        return mode

    def search(self, query: SearchQuery, catalog: Sequence[TechMessageRecord]) -> List[SearchMatch]:
        mode = self.validate(query)
        position = {record.id: index for index, record in enumerate(catalog)}

        exact: List[SearchMatch] = []
        if mode.includes_exact:
            for hit in self.matcher.match(query.text, catalog):
                exact.append(SearchMatch(
                    tech_message=hit.record,
                    match_type=MatchType.EXACT,
                    match_score=1.0,
                    matched_text=hit.matched_text,
                    extracted_variables=hit.variables,
                ))

        fuzzy: List[SearchMatch] = []
        if mode.includes_fuzzy:
            exact_ids = {match.tech_message.id for match in exact}
            for scored in self.ranker.rank(tokenize(query.text), catalog):
                if scored.record.id in exact_ids:
                    continue
                fuzzy.append(SearchMatch(
                    tech_message=scored.record,
                    match_type=MatchType.FUZZY,
                    match_score=scored.score,
                ))

        exact.sort(key=lambda m: position[m.tech_message.id])
        fuzzy.sort(key=lambda m: (
            -m.match_score,
            -m.tech_message.severity.rank,
            position[m.tech_message.id],
        ))

        results = exact + fuzzy
        for match in results:
            tiers = match.tech_message.action_levels
            match.recommended_action = self.analyzer.select_tier(tiers, query.occurrence_count)
            match.all_action_levels = tuple(tiers)
        return results


class TechMessageSearchService:
    """Loads the catalog once per query and delegates to the orchestrator"""

    def __init__(self, orchestrator: Optional[SearchOrchestrator] = None):
        self.orchestrator = orchestrator or SearchOrchestrator()

    async def search(self, query: SearchQuery, provider: CatalogProvider) -> List[SearchMatch]:
        # Reject bad input before touching the database
        mode = self.orchestrator.validate(query)

        start = time.perf_counter()
        catalog = await provider.load_all_records()
        results = self.orchestrator.search(query, catalog)
        duration_ms = (time.perf_counter() - start) * 1000

        exact_count = sum(1 for m in results if m.match_type == MatchType.EXACT)
        logger.log_search_event(
            mode=mode.value,
            text_length=len(query.text.strip()),
            occurrence_count=query.occurrence_count,
            exact_count=exact_count,
            fuzzy_count=len(results) - exact_count,
            duration_ms=duration_ms,
            catalog_size=len(catalog),
        )
        return results


search_service = TechMessageSearchService()
