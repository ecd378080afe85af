"""
Unit Tests for the Search Orchestrator and Search Service
"""
import pytest

from app.core.exceptions import InvalidSearchQueryError
from app.models.tech_message import Severity
from app.services.pattern_matcher import PatternCache, PatternMatcher
from app.services.tech_message_records import ActionTier, TechMessageRecord
from app.services.tech_message_search import (
    MatchMode,
    MatchType,
    SearchOrchestrator,
    SearchQuery,
    TechMessageSearchService,
)


def make_catalog():
    return (
        TechMessageRecord(
            id=1,
            category="Database",
            severity=Severity.HIGH,
            pattern=r"connection timeout after (?<seconds>\d+)s",
            description="Database connection timeout",
            action_levels=(
                ActionTier(id=1, occurrence_min=1, occurrence_max=5, action_text="check connection pool"),
                ActionTier(id=2, occurrence_min=6, occurrence_max=None, action_text="escalate"),
            ),
        ),
        TechMessageRecord(
            id=2,
            category="Network",
            severity=Severity.CRITICAL,
            pattern=r"link (?P<interface>\S+) down",
            description="Interface link failure",
            action_levels=(
                ActionTier(id=3, occurrence_min=1, occurrence_max=None, action_text="fail over"),
            ),
        ),
        TechMessageRecord(
            id=3,
            category="Disk",
            severity=Severity.LOW,
            pattern=r"disk usage \d+%",
            description="Filesystem nearly full",
        ),
    )


class StubProvider:
    """Catalog provider that counts loads"""

    def __init__(self, records):
        self.records = records
        self.loads = 0

    async def load_all_records(self):
        self.loads += 1
        return self.records


@pytest.fixture
def orchestrator() -> SearchOrchestrator:
    return SearchOrchestrator(matcher=PatternMatcher(cache=PatternCache()))


class TestMatchMode:

    @pytest.mark.parametrize("value,expected", [
        (None, MatchMode.BOTH),
        ("EXACT", MatchMode.EXACT),
        ("FUZZY", MatchMode.FUZZY),
        (MatchMode.BOTH, MatchMode.BOTH),
    ])
    def test_parse(self, value, expected):
        assert MatchMode.parse(value) is expected

    def test_parse_rejects_unknown(self):
        with pytest.raises(InvalidSearchQueryError) as exc_info:
            MatchMode.parse("SOMETIMES")
        assert exc_info.value.details["field"] == "matchMode"

    @pytest.mark.parametrize("value", ["exact", "Fuzzy", " BOTH ", ""])
    def test_parse_is_case_and_whitespace_sensitive(self, value):
        with pytest.raises(InvalidSearchQueryError):
            MatchMode.parse(value)

    def test_flags(self):
        assert MatchMode.EXACT.includes_exact and not MatchMode.EXACT.includes_fuzzy
        assert MatchMode.FUZZY.includes_fuzzy and not MatchMode.FUZZY.includes_exact
        assert MatchMode.BOTH.includes_exact and MatchMode.BOTH.includes_fuzzy


class TestValidation:

    @pytest.mark.parametrize("mode", ["EXACT", "FUZZY", "BOTH"])
    @pytest.mark.parametrize("text", ["ab", "  ab  ", "", None])
    def test_short_text_rejected_in_every_mode(self, orchestrator, mode, text):
        with pytest.raises(InvalidSearchQueryError) as exc_info:
            orchestrator.search(SearchQuery(text=text, mode=mode), make_catalog())
        assert exc_info.value.details["field"] == "searchText"

    def test_minimum_length_accepted(self, orchestrator):
        assert orchestrator.search(SearchQuery(text=" abc "), make_catalog()) == []


class TestSearch:

    def test_exact_timeout_with_escalation(self, orchestrator):
        query = SearchQuery(text="Database connection timeout after 30s", occurrence_count=7)
        results = orchestrator.search(query, make_catalog())

        assert len(results) == 1
        match = results[0]
        assert match.match_type == MatchType.EXACT
        assert match.match_score == 1.0
        assert match.matched_text == "connection timeout after 30s"
        assert match.extracted_variables == {"seconds": "30"}
        assert match.recommended_action.action_text == "escalate"
        assert [t.id for t in match.all_action_levels] == [1, 2]

    def test_fuzzy_category_search(self, orchestrator):
        results = orchestrator.search(SearchQuery(text="Database", occurrence_count=3), make_catalog())

        assert len(results) == 1
        assert results[0].match_type == MatchType.FUZZY
        assert results[0].match_score == 0.575
        assert results[0].matched_text is None
        assert results[0].extracted_variables is None
        assert results[0].recommended_action.action_text == "check connection pool"

    def test_exact_wins_deduplication(self, orchestrator):
        """A record hit by both regex and keywords is reported once, as EXACT"""
        catalog = (TechMessageRecord(id=5, category="Timeout", severity=Severity.MEDIUM, pattern="timeout"),)
        results = orchestrator.search(SearchQuery(text="timeout"), catalog)

        assert [(m.tech_message.id, m.match_type, m.match_score) for m in results] == [
            (5, MatchType.EXACT, 1.0),
        ]

    def test_exact_only_mode(self, orchestrator):
        assert orchestrator.search(SearchQuery(text="Database", mode="EXACT"), make_catalog()) == []

    def test_fuzzy_only_mode_skips_regex(self, orchestrator):
        catalog = (TechMessageRecord(id=5, category="Timeout", severity=Severity.MEDIUM, pattern="timeout"),)
        results = orchestrator.search(SearchQuery(text="timeout", mode="FUZZY"), catalog)

        assert [(m.tech_message.id, m.match_type) for m in results] == [(5, MatchType.FUZZY)]
        assert results[0].match_score == 0.55

    def test_exact_before_fuzzy(self, orchestrator):
        catalog = make_catalog() + (
            TechMessageRecord(id=4, category="Disk", severity=Severity.CRITICAL, pattern="disk usage 95% reached"),
        )
        results = orchestrator.search(SearchQuery(text="disk usage 95%"), catalog)

        assert [(m.tech_message.id, m.match_type) for m in results] == [
            (3, MatchType.EXACT),
            (4, MatchType.FUZZY),
        ]

    def test_fuzzy_ties_broken_by_severity_then_catalog_order(self, orchestrator):
        catalog = (
            TechMessageRecord(id=10, category="Network", severity=Severity.LOW, pattern="a"),
            TechMessageRecord(id=11, category="Network", severity=Severity.CRITICAL, pattern="b"),
            TechMessageRecord(id=12, category="Network", severity=Severity.CRITICAL, pattern="c"),
        )
        results = orchestrator.search(SearchQuery(text="net net net", mode="FUZZY"), catalog)

        assert {m.match_score for m in results} == {0.9}
        assert [m.tech_message.id for m in results] == [11, 12, 10]

    def test_exact_results_keep_catalog_order(self, orchestrator):
        catalog = (
            TechMessageRecord(id=7, category="A", severity=Severity.LOW, pattern="fail"),
            TechMessageRecord(id=3, category="B", severity=Severity.CRITICAL, pattern="failure"),
        )
        results = orchestrator.search(SearchQuery(text="failure", mode="EXACT"), catalog)

        assert [m.tech_message.id for m in results] == [7, 3]

    @pytest.mark.parametrize("count", [None, 0])
    def test_no_recommendation_without_count(self, orchestrator, count):
        results = orchestrator.search(
            SearchQuery(text="connection timeout after 5s", occurrence_count=count), make_catalog()
        )

        assert results[0].recommended_action is None
        assert len(results[0].all_action_levels) == 2

    def test_record_without_tiers(self, orchestrator):
        results = orchestrator.search(SearchQuery(text="disk usage 80%", occurrence_count=4), make_catalog())

        assert results[0].recommended_action is None
        assert results[0].all_action_levels == ()

    def test_idempotent(self, orchestrator):
        query = SearchQuery(text="Database connection timeout after 30s", occurrence_count=2)
        catalog = make_catalog()

        first = orchestrator.search(query, catalog)
        second = orchestrator.search(query, catalog)

        assert first == second

    def test_empty_catalog(self, orchestrator):
        assert orchestrator.search(SearchQuery(text="anything"), ()) == []


class TestSearchService:

    @pytest.mark.asyncio
    async def test_loads_catalog_once(self, orchestrator):
        provider = StubProvider(make_catalog())
        service = TechMessageSearchService(orchestrator=orchestrator)

        results = await service.search(SearchQuery(text="link eth1 down", occurrence_count=2), provider)

        assert provider.loads == 1
        assert results[0].recommended_action.action_text == "fail over"

    @pytest.mark.asyncio
    async def test_invalid_query_never_loads(self, orchestrator):
        provider = StubProvider(make_catalog())
        service = TechMessageSearchService(orchestrator=orchestrator)

        with pytest.raises(InvalidSearchQueryError):
            await service.search(SearchQuery(text="x"), provider)
        with pytest.raises(InvalidSearchQueryError):
            await service.search(SearchQuery(text="valid text", mode="WRONG"), provider)
        assert provider.loads == 0
