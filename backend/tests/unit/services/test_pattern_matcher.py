"""
Unit Tests for the Pattern Matcher
"""
import logging
import re

import pytest

from app.models.tech_message import Severity
from app.services.pattern_matcher import (
    PatternCache,
    PatternMatcher,
    normalize_pattern,
)
from app.services.tech_message_records import TechMessageRecord


def make_record(record_id: int, pattern: str, category: str = "General") -> TechMessageRecord:
    return TechMessageRecord(
        id=record_id,
        category=category,
        severity=Severity.MEDIUM,
        pattern=pattern,
    )


@pytest.fixture
def matcher() -> PatternMatcher:
    return PatternMatcher(cache=PatternCache(max_size=16))


class TestNormalizePattern:

    def test_java_named_group_rewritten(self):
        assert normalize_pattern(r"(?<host>\w+)") == r"(?P<host>\w+)"

    def test_lookbehind_untouched(self):
        pattern = r"(?<=port )\d+(?<!0)"
        assert normalize_pattern(pattern) == pattern

    def test_python_named_group_untouched(self):
        assert normalize_pattern(r"(?P<host>\w+)") == r"(?P<host>\w+)"

    def test_escaped_paren_untouched(self):
        assert normalize_pattern(r"\(?<x") == r"\(?<x"

    def test_group_after_escaped_backslash_rewritten(self):
        assert normalize_pattern(r"C:\\(?<dir>\w+)") == r"C:\\(?P<dir>\w+)"

    def test_paren_after_odd_backslashes_untouched(self):
        assert normalize_pattern(r"\\\(?<x") == r"\\\(?<x"

    def test_group_after_escaped_backslash_extracts(self, matcher):
        record = make_record(1, r"C:\\(?<dir>\w+)")
        results = matcher.match(r"open C:\Windows failed", [record])

        assert len(results) == 1
        assert results[0].variables == {"dir": "Windows"}


class TestMatch:

    def test_unanchored_search_extracts_named_groups(self, matcher):
        record = make_record(1, r"ERROR (?P<code>\d{3}) on (?<host>\S+)")
        results = matcher.match("2024-01-01 ERROR 503 on web-01 (retrying)", [record])

        assert len(results) == 1
        assert results[0].record is record
        assert results[0].matched_text == "ERROR 503 on web-01"
        assert results[0].variables == {"code": "503", "host": "web-01"}

    def test_unnamed_and_unmatched_groups_omitted(self, matcher):
        record = make_record(1, r"(fail|error)(?: code (?P<code>\d+))?")
        results = matcher.match("fatal error", [record])

        assert results[0].matched_text == "error"
        assert results[0].variables == {}

    def test_dotall_spans_lines(self, matcher):
        record = make_record(1, r"begin.*end")
        results = matcher.match("begin\nmiddle\nend", [record])

        assert results[0].matched_text == "begin\nmiddle\nend"

    def test_catalog_order_and_non_matches(self, matcher):
        catalog = [
            make_record(1, r"timeout"),
            make_record(2, r"refused"),
            make_record(3, r"time"),
        ]
        results = matcher.match("connection timeout", catalog)

        assert [r.record.id for r in results] == [1, 3]

    def test_one_result_per_record(self, matcher):
        results = matcher.match("a1 a2 a3", [make_record(1, r"a(?P<n>\d)")])

        assert len(results) == 1
        assert results[0].variables == {"n": "1"}

    def test_soundness(self, matcher):
        """Every reported record's pattern really occurs in the text"""
        catalog = [make_record(i, p) for i, p in enumerate([r"\d+", r"xyz", r"^conn", r"out$"], 1)]
        text = "connection timeout"

        for result in matcher.match(text, catalog):
            assert re.search(normalize_pattern(result.record.pattern), text, re.DOTALL)
            assert result.matched_text in text

    def test_empty_catalog(self, matcher):
        assert matcher.match("anything", []) == []

    def test_malformed_pattern_skipped_and_logged(self, matcher, caplog):
        catalog = [make_record(1, r"(unclosed"), make_record(2, r"timeout")]

        with caplog.at_level(logging.ERROR, logger="app.services.pattern_matcher"):
            results = matcher.match("timeout", catalog)

        assert [r.record.id for r in results] == [2]
        assert "(unclosed" not in matcher.cache
        assert any("tech message 1" in message for message in caplog.messages)


class TestMatchFirst:

    def test_returns_first_in_catalog_order(self, matcher):
        catalog = [make_record(1, r"nothing"), make_record(2, r"time"), make_record(3, r"timeout")]
        result = matcher.match_first("timeout", catalog)

        assert result.record.id == 2

    def test_none_when_no_match(self, matcher):
        assert matcher.match_first("ok", [make_record(1, r"fail")]) is None


class TestValidatePattern:

    @pytest.mark.parametrize("pattern", [r"\d+", r"(?<name>x)", r"(?<=a)b", r"C:\\(?<dir>\w+)"])
    def test_valid(self, pattern):
        assert PatternMatcher.validate_pattern(pattern).valid is True

    @pytest.mark.parametrize("pattern", [r"(", r"[a-", r"*x", "", "   "])
    def test_invalid(self, pattern):
        validation = PatternMatcher.validate_pattern(pattern)

        assert validation.valid is False
        assert validation.error_message


class TestPatternCache:

    def test_compiles_once(self):
        cache = PatternCache()
        first = cache.get(r"abc")

        assert cache.get(r"abc") is first
        assert len(cache) == 1

    def test_invalidate(self):
        cache = PatternCache()
        cache.get(r"abc")
        cache.invalidate(r"abc")

        assert r"abc" not in cache

    def test_invalid_pattern_raises_and_is_not_cached(self):
        cache = PatternCache()
        with pytest.raises(re.error):
            cache.get(r"(")
        assert len(cache) == 0

    def test_evicts_oldest_when_full(self):
        cache = PatternCache(max_size=2)
        cache.get("a")
        cache.get("b")
        cache.get("c")

        assert "a" not in cache
        assert "b" in cache and "c" in cache
