#!/usr/bin/env python3
"""Print the most frequent terms of a postings index.

Usage:
  python -m highfreq.high_freq_terms storage --num-terms 20
  python -m highfreq.high_freq_terms storage -n 50 -f title -f abstract -t

Without ``-t`` terms are listed by document frequency. With ``-t`` the same
terms are re-ranked by total term frequency (total number of occurrences).
"""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from .exceptions import ConfigurationError, FieldReadError, IndexUnavailableError
from .index.postings import DEFAULT_FIELD, PostingsDirectoryIndex
from .terms.enricher import TermFreqMode, enrich_and_sort
from .terms.extractor import DEFAULT_NUM_TERMS, extract_top_k


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="highfreq-terms", description="Extract the top terms of an index by frequency")
    p.add_argument("index_dir", help="Index root: a field directory or a directory of field directories")
    p.add_argument("-n", "--num-terms", type=int, default=DEFAULT_NUM_TERMS, help="How many terms to report")
    p.add_argument("-f", "--field", action="append", dest="fields", default=None,
                   help="Restrict to this field (repeatable); default is every field")
    p.add_argument("-t", "--total-term-freq", action="store_true",
                   help="Also look up total term frequency and sort by it")
    p.add_argument("--approximate", action="store_true",
                   help="With -t, use the field-wide total instead of per-term totals")
    p.add_argument("--default-field", default=DEFAULT_FIELD,
                   help="Field name used when the index root is a single field directory")
    p.add_argument("--log-level", default="WARNING", help="Logging level (DEBUG, INFO, WARNING, ...)")
    return p


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=args.log_level.upper(), format="%(levelname)s %(name)s: %(message)s")

    try:
        with PostingsDirectoryIndex(Path(args.index_dir), default_field=args.default_field) as index:
            terms = extract_top_k(index, args.fields, args.num_terms)
            if not args.total_term_freq:
                for stat in terms:
                    print(f"{stat.field}:{stat.term_text} {stat.doc_freq:,}")
            else:
                mode = TermFreqMode.FIELD if args.approximate else TermFreqMode.TERM
                for stat in enrich_and_sort(index, terms, mode):
                    print(f"{stat.field}:{stat.term_text} \t totalTF = {stat.total_term_freq:,} \t doc freq = {stat.doc_freq:,}")
    except ConfigurationError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except IndexUnavailableError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2
    except FieldReadError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 3
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
