"""
Top-K extraction of the terms with the highest document frequency.

Every scanned field feeds one shared ``BoundedTopKSelector``, so the K budget
is global: a field full of frequent terms can crowd every other field out of
the result. The selector is drained once at the end, which yields the result
already sorted by document frequency, highest first.
"""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional

from ..exceptions import ConfigurationError
from ..index.reader import IndexReader
from .selector import BoundedTopKSelector
from .term_stats import TermStat, doc_freq_less_than

logger = logging.getLogger(__name__)

DEFAULT_NUM_TERMS = 100


class TopKTermExtractor:
    """Collect the ``k`` terms with the highest document frequency.

    One extractor may be reused for many calls; each call gets its own
    selector, so calls share no mutable state.
    """

    def __init__(self, k: int = DEFAULT_NUM_TERMS):
        if k <= 0:
            raise ConfigurationError(f"number of terms must be > 0, got {k}")
        self.k = k

    def extract(self, index: IndexReader, field_names: Optional[Iterable[str]] = None) -> List[TermStat]:
        """
        Scan ``field_names`` (every field of the index when None) and return
        at most ``k`` TermStat values ordered by doc_freq descending.

        Fields without a term dictionary contribute nothing. An index with no
        fields yields an empty list. ``FieldReadError`` and
        ``IndexUnavailableError`` propagate and abort the whole call.
        """
        index.ensure_open()
        if field_names is None:
            fields = index.field_names()
            if not fields:
                logger.info("[HighFreqTerms] Index with no fields - probably empty or corrupted")
                return []
        else:
            # keep caller order, drop repeats so no pair is offered twice
            fields = list(dict.fromkeys(field_names))

        selector: BoundedTopKSelector[TermStat] = BoundedTopKSelector(self.k, doc_freq_less_than)
        terms_seen = 0
        fields_scanned = 0
        for field in fields:
            entries = index.terms(field)
            if entries is None:
                logger.debug("[HighFreqTerms] Field %r has no term dictionary; skipping", field)
                continue
            fields_scanned += 1
            terms_seen += self._fill(selector, field, entries)

        result = selector.drain_descending()
        logger.info(
            "[HighFreqTerms] Scanned %d field(s), %d term(s); kept top %d",
            fields_scanned, terms_seen, len(result),
        )
        return result

    @staticmethod
    def _fill(selector: BoundedTopKSelector[TermStat], field: str, entries) -> int:
        count = 0
        for term, doc_freq in entries:
            selector.offer(TermStat(field, bytes(term), doc_freq))
            count += 1
        logger.debug("[HighFreqTerms] Field %r: offered %d term(s)", field, count)
        return count


def extract_top_k(index: IndexReader, field_names: Optional[Iterable[str]] = None,
                  k: int = DEFAULT_NUM_TERMS) -> List[TermStat]:
    """Return the ``k`` terms of ``index`` with the highest document frequency."""
    return TopKTermExtractor(k).extract(index, field_names)
