"""
Frequency Analyzer - picks the remediation step for an occurrence count.

A tier qualifies when min <= count <= max (max unset = unbounded).
Overlaps resolve by highest priority, then smallest minimum, then the
tier created first.
"""

from typing import List, Optional, Sequence

from app.services.tech_message_records import ActionTier


def _usable_count(occurrence_count: Optional[int]) -> bool:
    return occurrence_count is not None and occurrence_count > 0


class FrequencyAnalyzer:

    def matching_tiers(self, tiers: Sequence[ActionTier],
                       occurrence_count: Optional[int]) -> List[ActionTier]:
        """Qualifying tiers, best first"""
        if not tiers or not _usable_count(occurrence_count):
            return []

        indexed = [
            (position, tier) for position, tier in enumerate(tiers)
            if tier.covers(occurrence_count)
        ]
        indexed.sort(key=lambda item: (-item[1].priority, item[1].occurrence_min, item[0]))
        return [tier for _, tier in indexed]

    def select_tier(self, tiers: Sequence[ActionTier],
                    occurrence_count: Optional[int]) -> Optional[ActionTier]:
        qualifying = self.matching_tiers(tiers, occurrence_count)
        return qualifying[0] if qualifying else None

    def recommended_action_text(self, tiers: Sequence[ActionTier],
                                occurrence_count: Optional[int]) -> Optional[str]:
        tier = self.select_tier(tiers, occurrence_count)
        return tier.action_text if tier else None


frequency_analyzer = FrequencyAnalyzer()
