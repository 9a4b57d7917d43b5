#!/usr/bin/env python3
"""Summarize every field of a postings index.

Usage:
  python scripts/field_stats.py --index-dir C:\\...\\storage

Prints one JSON object per field with its term count, summed document
frequency and summed total term frequency.
"""
from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Dict

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.append(str(PROJECT_ROOT))

from highfreq.exceptions import HighFreqTermsError, StatUnavailableError
from highfreq.index.postings import PostingsDirectoryIndex
from highfreq.index.reader import IndexReader


def field_summary(index: IndexReader, field: str) -> Dict[str, object]:
    term_count = 0
    sum_doc_freq = 0
    entries = index.terms(field)
    for _term, doc_freq in entries or ():
        term_count += 1
        sum_doc_freq += doc_freq
    try:
        sum_total = index.sum_total_term_freq(field)
    except StatUnavailableError:
        sum_total = None
    return {
        "field": field,
        "term_count": term_count,
        "sum_doc_freq": sum_doc_freq,
        "sum_total_term_freq": sum_total,
    }


def main(argv=None) -> int:
    p = argparse.ArgumentParser()
    p.add_argument("--index-dir", required=True)
    args = p.parse_args(argv)

    try:
        with PostingsDirectoryIndex(Path(args.index_dir)) as index:
            fields = index.field_names()
            if not fields:
                print("Index has no fields")
                return 0
            summary = [field_summary(index, field) for field in fields]
    except HighFreqTermsError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    print(json.dumps(summary, indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
