"""
Pattern Matcher - regex catalog evaluation

Tests free text against every catalog pattern and extracts named groups.

- Patterns compile with DOTALL and are searched (never anchored)
- Java-style named groups `(?<name>...)` are accepted and rewritten
- Compiled patterns are shared through a process-wide PatternCache
- A stored pattern that fails to compile is logged and skipped
"""

import logging
import re
import threading
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Pattern

from app.core.config import settings
from app.services.tech_message_records import TechMessageRecord

logger = logging.getLogger(__name__)

# `(?<name>` but not lookbehind `(?<=` / `(?<!` or a paren escaped by an odd run of backslashes
_JAVA_NAMED_GROUP = re.compile(r'(?<!\\)((?:\\\\)*)\(\?<(?=[A-Za-z_])')


def normalize_pattern(pattern: str) -> str:
    """Rewrite Java-style named groups to Python syntax"""
    return _JAVA_NAMED_GROUP.sub(r'\1(?P<', pattern)


@dataclass
class MatchResult:
    """A single record hit"""
    record: TechMessageRecord
    matched_text: str
    variables: Dict[str, str] = field(default_factory=dict)


@dataclass
class PatternValidation:
    valid: bool
    error_message: Optional[str] = None


class PatternCache:
    """
    Compiled-pattern cache keyed by the stored pattern string.

    Lookups are plain dict reads; inserts and invalidations take a short lock.
    When full, the oldest entry is evicted.
    """

    def __init__(self, max_size: int = 2048):
        self.max_size = max_size
        self._patterns: Dict[str, Pattern] = {}
        self._lock = threading.Lock()

    def get(self, pattern: str) -> Pattern:
        """Return the compiled pattern, compiling on first use. Raises re.error."""
        compiled = self._patterns.get(pattern)
        if compiled is not None:
            return compiled

        compiled = re.compile(normalize_pattern(pattern), re.DOTALL)
        with self._lock:
            if pattern not in self._patterns and len(self._patterns) >= self.max_size:
                self._patterns.pop(next(iter(self._patterns)))
            self._patterns.setdefault(pattern, compiled)
        return compiled

    def invalidate(self, pattern: Optional[str]) -> None:
        if not pattern:
            return
        with self._lock:
            if self._patterns.pop(pattern, None) is not None:
                logger.debug(f"[PatternCache] Invalidated {pattern!r}")

    def clear(self) -> None:
        with self._lock:
            self._patterns.clear()

    def __contains__(self, pattern: str) -> bool:
        return pattern in self._patterns

    def __len__(self) -> int:
        return len(self._patterns)


pattern_cache = PatternCache(max_size=settings.PATTERN_CACHE_MAX_SIZE)


class PatternMatcher:
    """Evaluates catalog patterns against input text"""

    def __init__(self, cache: Optional[PatternCache] = None):
        self.cache = cache if cache is not None else pattern_cache

    def _compile(self, record: TechMessageRecord) -> Optional[Pattern]:
        try:
            return self.cache.get(record.pattern)
        except re.error as e:
            logger.error(
                f"[PatternMatcher] Skipping tech message {record.id}: invalid pattern {record.pattern!r} ({e})"
            )
            return None

    def _match_one(self, text: str, record: TechMessageRecord) -> Optional[MatchResult]:
        compiled = self._compile(record)
        if compiled is None:
            return None

        found = compiled.search(text)
        if not found:
            return None

        variables = {
            name: value
            for name, value in found.groupdict().items()
            if value is not None
        }
        return MatchResult(record=record, matched_text=found.group(0), variables=variables)

    def match(self, text: str, catalog: Iterable[TechMessageRecord]) -> List[MatchResult]:
        """All records whose pattern occurs in `text`, in catalog order"""
        if text is None:
            return []

        results = []
        for record in catalog:
            result = self._match_one(text, record)
            if result is not None:
                results.append(result)

        logger.debug(f"[PatternMatcher] {len(results)} pattern hit(s)")
        return results

    def match_first(self, text: str, catalog: Iterable[TechMessageRecord]) -> Optional[MatchResult]:
        """First record (catalog order) whose pattern occurs in `text`"""
        if text is None:
            return None

        for record in catalog:
            result = self._match_one(text, record)
            if result is not None:
                return result
        return None

    @staticmethod
    def validate_pattern(pattern: Optional[str]) -> PatternValidation:
        """Check that a pattern compiles, without caching it"""
        if pattern is None or not pattern.strip():
            return PatternValidation(valid=False, error_message="Pattern must not be empty")
        try:
            re.compile(normalize_pattern(pattern), re.DOTALL)
        except re.error as e:
            return PatternValidation(valid=False, error_message=str(e))
        return PatternValidation(valid=True)


pattern_matcher = PatternMatcher()
