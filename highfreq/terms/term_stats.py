"""Term statistics record and the orderings used to rank it.

A ``TermStat`` describes one (field, term) pair of an inverted index:

    field            name of the indexed field, e.g. "title"
    term             raw term bytes as stored in the term dictionary
    doc_freq         number of documents containing the term in that field
    total_term_freq  total occurrences across all documents, or -1 until the
                     enrichment pass has filled it in

Term bytes are never assumed to be valid text; ``term_text`` is a display
helper only.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Tuple

UNKNOWN_TOTAL_TERM_FREQ = -1  # sentinel: total occurrences not looked up yet


@dataclass(frozen=True)
class TermStat:
    """Immutable statistics for a single term of a single field."""

    field: str
    term: bytes
    doc_freq: int
    total_term_freq: int = UNKNOWN_TOTAL_TERM_FREQ

    def __post_init__(self):
        if not isinstance(self.field, str) or not self.field:
            raise ValueError("field must be a non-empty string")
        if not isinstance(self.term, (bytes, bytearray, memoryview)):
            raise ValueError(f"term must be bytes, got {type(self.term).__name__}")
        if isinstance(self.term, (bytearray, memoryview)):
            # copy out of any shared buffer so the record owns its bytes
            object.__setattr__(self, "term", bytes(self.term))
        if self.doc_freq < 0:
            raise ValueError(f"doc_freq must be >= 0, got {self.doc_freq}")
        if self.total_term_freq < 0 and self.total_term_freq != UNKNOWN_TOTAL_TERM_FREQ:
            raise ValueError(f"total_term_freq must be >= 0 or unknown, got {self.total_term_freq}")

    @property
    def has_total_term_freq(self) -> bool:
        return self.total_term_freq != UNKNOWN_TOTAL_TERM_FREQ

    @property
    def term_text(self) -> str:
        """Best-effort display form of the term (undecodable bytes are replaced)."""
        return self.term.decode("utf-8", errors="replace")

    @property
    def identity(self) -> Tuple[str, bytes]:
        return self.field, self.term

    def with_total_term_freq(self, total_term_freq: int) -> "TermStat":
        """Return a copy carrying ``total_term_freq``; the original is unchanged."""
        return replace(self, total_term_freq=total_term_freq)

    def __str__(self) -> str:
        return f"{self.field}:{self.term_text}"


def doc_freq_less_than(a: TermStat, b: TermStat) -> bool:
    """True when ``a`` ranks worse than ``b`` by document frequency.

    Equal document frequencies fall back to (field, term): the pair that sorts
    later lexicographically ranks worse, so the selector keeps the earlier one.
    """
    if a.doc_freq != b.doc_freq:
        return a.doc_freq < b.doc_freq
    return a.identity > b.identity


def doc_freq_sort_key(stat: TermStat):
    """Sort key for descending document frequency with the same tie-break."""
    return -stat.doc_freq, stat.field, stat.term


def total_term_freq_sort_key(stat: TermStat):
    """Sort key for descending total term frequency.

    Ties fall back to document frequency (descending), then (field, term).
    """
    return -stat.total_term_freq, -stat.doc_freq, stat.field, stat.term
