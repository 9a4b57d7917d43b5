"""
Read-only index interface consumed by the term statistics engine.

An index exposes named fields; each field has a term dictionary that can be
scanned lazily as (term bytes, doc_freq) pairs in dictionary order. Total
occurrence counts are looked up separately, per term or as a field-wide sum.

``MemoryIndexReader`` implements the interface over plain dictionaries.
"""

from __future__ import annotations

import abc
from typing import Dict, Iterator, List, Mapping, Optional, Tuple, Union

from ..exceptions import IndexUnavailableError, StatUnavailableError

TermEntry = Tuple[bytes, int]  # (term bytes, doc_freq)


class IndexReader(abc.ABC):
    """Base class for fielded, read-only term statistics sources."""

    def __init__(self):
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        self._closed = True

    def ensure_open(self) -> None:
        if self._closed:
            raise IndexUnavailableError(f"{type(self).__name__} is closed")

    def __enter__(self):
        self.ensure_open()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False

    @abc.abstractmethod
    def field_names(self) -> List[str]:
        """Return every field name; an empty list means the index has no fields."""

    @abc.abstractmethod
    def terms(self, field: str) -> Optional[Iterator[TermEntry]]:
        """Return a lazy (term, doc_freq) scan of ``field``, or None if it has no dictionary."""

    @abc.abstractmethod
    def total_term_freq(self, field: str, term: bytes) -> int:
        """Total occurrences of ``term`` in ``field`` across all documents."""

    @abc.abstractmethod
    def sum_total_term_freq(self, field: str) -> int:
        """Total occurrences of every term in ``field`` across all documents."""


RawFieldTerms = Mapping[Union[str, bytes], Union[int, Tuple[int, int]]]


def _as_bytes(term: Union[str, bytes]) -> bytes:
    return term.encode("utf-8") if isinstance(term, str) else bytes(term)


class MemoryIndexReader(IndexReader):
    """Index reader over in-memory statistics.

    ``fields`` maps a field name to ``{term: doc_freq}`` or
    ``{term: (doc_freq, total_term_freq)}``. String terms are stored UTF-8
    encoded. Per-term totals are only available where they were supplied;
    ``field_totals`` overrides the field-wide sums, which otherwise are
    derived from the per-term totals when every term has one.
    """

    def __init__(self, fields: Mapping[str, RawFieldTerms],
                 field_totals: Optional[Mapping[str, int]] = None):
        super().__init__()
        self._doc_freqs: Dict[str, Dict[bytes, int]] = {}
        self._totals: Dict[str, Dict[bytes, int]] = {}
        for field, raw_terms in fields.items():
            doc_freqs: Dict[bytes, int] = {}
            totals: Dict[bytes, int] = {}
            for term, stats in raw_terms.items():
                key = _as_bytes(term)
                if isinstance(stats, tuple):
                    doc_freqs[key], totals[key] = stats
                else:
                    doc_freqs[key] = stats
            self._doc_freqs[field] = doc_freqs
            self._totals[field] = totals
        self._field_totals: Dict[str, int] = dict(field_totals or {})

    def field_names(self) -> List[str]:
        self.ensure_open()
        return list(self._doc_freqs)

    def terms(self, field: str) -> Optional[Iterator[TermEntry]]:
        self.ensure_open()
        doc_freqs = self._doc_freqs.get(field)
        if not doc_freqs:
            return None
        return self._scan(doc_freqs)

    def _scan(self, doc_freqs: Dict[bytes, int]) -> Iterator[TermEntry]:
        for term in sorted(doc_freqs):
            self.ensure_open()
            yield term, doc_freqs[term]

    def total_term_freq(self, field: str, term: bytes) -> int:
        self.ensure_open()
        totals = self._totals.get(field)
        if totals is None:
            raise StatUnavailableError(f"unknown field {field!r}")
        if term not in totals:
            raise StatUnavailableError(f"no total term frequency for {field}:{term!r}")
        return totals[term]

    def sum_total_term_freq(self, field: str) -> int:
        self.ensure_open()
        if field in self._field_totals:
            return self._field_totals[field]
        doc_freqs = self._doc_freqs.get(field)
        totals = self._totals.get(field)
        if doc_freqs is None or totals is None or len(totals) != len(doc_freqs):
            raise StatUnavailableError(f"no field-wide total term frequency for {field!r}")
        return sum(totals.values())
