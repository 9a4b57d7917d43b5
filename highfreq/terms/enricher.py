"""
Second pass: fill in total term frequency and re-rank by it.

The pass runs over a result that is already small (the top K by document
frequency), so one lookup per term is affordable. Lookups that fail degrade
to 0; only an unusable index aborts the pass.
"""

from __future__ import annotations

import enum
import logging
from typing import Dict, Iterable, List

from ..exceptions import StatUnavailableError
from ..index.reader import IndexReader
from .term_stats import TermStat, total_term_freq_sort_key

logger = logging.getLogger(__name__)


class TermFreqMode(enum.Enum):
    """Where the total term frequency of a term comes from."""

    TERM = "term"  # occurrences of the term itself
    FIELD = "field"  # occurrences of every term of the field (approximate)


class TotalFrequencyEnricher:
    """Look up total term frequencies and sort by them, highest first."""

    def __init__(self, mode: TermFreqMode = TermFreqMode.TERM):
        self.mode = TermFreqMode(mode)

    def enrich_and_sort(self, index: IndexReader, terms: Iterable[TermStat]) -> List[TermStat]:
        """
        Return new TermStat values with ``total_term_freq`` populated, sorted
        by it descending. The input is left untouched and the output has the
        same (field, term) pairs.
        """
        index.ensure_open()
        if self.mode is TermFreqMode.FIELD:
            logger.warning(
                "[HighFreqTerms] Using field-wide total term frequency; per-term totals are approximate"
            )
        field_cache: Dict[str, int] = {}
        enriched = [stat.with_total_term_freq(self._lookup(index, stat, field_cache)) for stat in terms]
        enriched.sort(key=total_term_freq_sort_key)
        return enriched

    def _lookup(self, index: IndexReader, stat: TermStat, field_cache: Dict[str, int]) -> int:
        try:
            if self.mode is TermFreqMode.FIELD:
                if stat.field not in field_cache:
                    field_cache[stat.field] = index.sum_total_term_freq(stat.field)
                return field_cache[stat.field]
            return index.total_term_freq(stat.field, stat.term)
        except (StatUnavailableError, KeyError, NotImplementedError) as exc:
            logger.debug("[HighFreqTerms] Total term frequency unavailable for %s: %s", stat, exc)
            if self.mode is TermFreqMode.FIELD:
                field_cache[stat.field] = 0
            return 0


def enrich_and_sort(index: IndexReader, terms: Iterable[TermStat],
                    mode: TermFreqMode = TermFreqMode.TERM) -> List[TermStat]:
    """Fill in total term frequencies for ``terms`` and sort by them, descending."""
    return TotalFrequencyEnricher(mode).enrich_and_sort(index, terms)
