"""Tests for total term frequency enrichment."""

import pytest

from highfreq.exceptions import IndexUnavailableError, StatUnavailableError
from highfreq.index.reader import MemoryIndexReader
from highfreq.terms.enricher import TermFreqMode, TotalFrequencyEnricher, enrich_and_sort
from highfreq.terms.extractor import extract_top_k
from highfreq.terms.term_stats import TermStat

FIELDS = {
    "title": {"a": (5, 6), "b": (2, 40), "c": (9, 9)},
    "body": {"a": (1, 1), "c": (3, 12), "d": (7, 14)},
}


def test_field_aggregate_example():
    index = MemoryIndexReader({"f": {"x": 5}}, field_totals={"f": 42})
    result = enrich_and_sort(index, [TermStat("f", b"x", 5)], TermFreqMode.FIELD)
    assert result == [TermStat("f", b"x", 5, 42)]


def test_per_term_example():
    index = MemoryIndexReader({"f": {"x": (5, 42)}})
    assert enrich_and_sort(index, [TermStat("f", b"x", 5)]) == [TermStat("f", b"x", 5, 42)]


def test_sorted_by_total_term_freq_descending():
    index = MemoryIndexReader(FIELDS)
    top = extract_top_k(index, None, 4)
    result = enrich_and_sort(index, top)

    assert [(s.field, s.term_text, s.total_term_freq) for s in result] == [
        ("body", "d", 14), ("body", "c", 12), ("title", "c", 9), ("title", "a", 6),
    ]


def test_preserves_identity_and_input():
    index = MemoryIndexReader(FIELDS)
    top = extract_top_k(index, None, 6)
    snapshot = list(top)
    result = enrich_and_sort(index, top)

    assert top == snapshot
    assert len(result) == len(top)
    assert {s.identity for s in result} == {s.identity for s in top}
    assert all(s.has_total_term_freq for s in result)
    assert [s.total_term_freq for s in result] == [40, 14, 12, 9, 6, 1]


def test_re_sorting_output_is_stable():
    index = MemoryIndexReader({"f": {"x": (5, 10), "y": (3, 10), "z": (9, 10)}})
    once = enrich_and_sort(index, extract_top_k(index, None, 3))
    twice = enrich_and_sort(index, once)
    assert once == twice
    assert [s.term_text for s in once] == ["z", "x", "y"]  # equal totals: doc freq decides


def test_failed_lookups_degrade_to_zero():
    index = MemoryIndexReader({"f": {"x": 5, "y": (2, 8)}})
    result = enrich_and_sort(index, [TermStat("f", b"x", 5), TermStat("f", b"y", 2),
                                     TermStat("gone", b"q", 1)])
    assert [(s.term_text, s.total_term_freq) for s in result] == [("y", 8), ("x", 0), ("q", 0)]


def test_field_mode_without_aggregate_degrades_to_zero():
    index = MemoryIndexReader({"f": {"x": 5}})
    result = enrich_and_sort(index, [TermStat("f", b"x", 5)], TermFreqMode.FIELD)
    assert result[0].total_term_freq == 0


class CountingIndex(MemoryIndexReader):
    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.aggregate_calls = 0

    def sum_total_term_freq(self, field):
        self.aggregate_calls += 1
        return super().sum_total_term_freq(field)


def test_field_mode_looks_up_each_field_once():
    index = CountingIndex(FIELDS)
    result = TotalFrequencyEnricher(TermFreqMode.FIELD).enrich_and_sort(index, extract_top_k(index, None, 6))

    assert index.aggregate_calls == 2
    assert {(s.field, s.total_term_freq) for s in result} == {("title", 55), ("body", 27)}
    assert [s.field for s in result] == ["title"] * 3 + ["body"] * 3


def test_mode_accepts_string_value():
    assert TotalFrequencyEnricher("field").mode is TermFreqMode.FIELD


def test_empty_input():
    assert enrich_and_sort(MemoryIndexReader(FIELDS), []) == []


class BrokenIndex(MemoryIndexReader):
    def total_term_freq(self, field, term):
        raise IndexUnavailableError("index closed underneath us")


def test_structural_failure_propagates():
    with pytest.raises(IndexUnavailableError):
        enrich_and_sort(BrokenIndex(FIELDS), [TermStat("title", b"a", 5)])

    index = MemoryIndexReader(FIELDS)
    index.close()
    with pytest.raises(IndexUnavailableError):
        enrich_and_sort(index, [TermStat("title", b"a", 5)])


class UnavailableIndex(MemoryIndexReader):
    def total_term_freq(self, field, term):
        raise StatUnavailableError("codec does not record frequencies")


def test_unavailable_statistics_never_fatal():
    result = enrich_and_sort(UnavailableIndex(FIELDS), [TermStat("title", b"a", 5)])
    assert result == [TermStat("title", b"a", 5, 0)]
