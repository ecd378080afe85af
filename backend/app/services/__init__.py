# Tech message engine and catalog services
from app.services.tech_message_records import TechMessageRecord, ActionTier
from app.services.pattern_matcher import (
    PatternMatcher,
    PatternCache,
    MatchResult,
    PatternValidation,
    pattern_matcher,
    pattern_cache,
)
from app.services.frequency_analyzer import FrequencyAnalyzer, frequency_analyzer
from app.services.fuzzy_ranker import (
    FuzzyRanker,
    ScoringPolicy,
    FieldWeightScoringPolicy,
    ScoredRecord,
    tokenize,
    fuzzy_ranker,
)
from app.services.tech_message_search import (
    MatchMode,
    MatchType,
    SearchQuery,
    SearchMatch,
    SearchOrchestrator,
    TechMessageSearchService,
    search_service,
)
from app.services.tech_message_service import (
    TechMessageCatalog,
    TechMessageService,
    tech_message_service,
)

__all__ = [
    # Snapshots
    "TechMessageRecord",
    "ActionTier",
    # Engine
    "PatternMatcher",
    "PatternCache",
    "MatchResult",
    "PatternValidation",
    "pattern_matcher",
    "pattern_cache",
    "FrequencyAnalyzer",
    "frequency_analyzer",
    "FuzzyRanker",
    "ScoringPolicy",
    "FieldWeightScoringPolicy",
    "ScoredRecord",
    "tokenize",
    "fuzzy_ranker",
    "MatchMode",
    "MatchType",
    "SearchQuery",
    "SearchMatch",
    "SearchOrchestrator",
    "TechMessageSearchService",
    "search_service",
    # Catalog
    "TechMessageCatalog",
    "TechMessageService",
    "tech_message_service",
]
