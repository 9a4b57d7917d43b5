"""
Read-only index over postings directories.

Each field of the index is a directory holding the three files written by the
indexing pipeline (all little-endian):

lexicon.bin
    uint32 vocab_size
    repeated: uint32 token_len, token bytes, uint32 token_id

postings_offsets.bin
    uint32 token_count
    repeated: uint32 token_id, uint64 offset, uint64 length

postings_index.bin
    concatenated per-token blocks:
        uint32 doc_count
        repeated: uint32 doc_id, uint32 freq, uint32 pos_count, pos_count * uint32 position

An index root is either a single field directory (the root itself holds
``lexicon.bin``; the field is named ``DEFAULT_FIELD``) or a directory of field
directories, one per field, named after the field.

The term dictionary is streamed from ``lexicon.bin`` in its on-disk order; a
term's document frequency is the ``doc_count`` header of its postings block,
read straight from the memory-mapped postings file.
"""

from __future__ import annotations

import logging
import mmap
import struct
from pathlib import Path
from typing import BinaryIO, Dict, Iterator, List, Optional, Tuple

from ..exceptions import FieldReadError, IndexUnavailableError, StatUnavailableError
from .reader import IndexReader, TermEntry

logger = logging.getLogger(__name__)

LEXICON = "lexicon.bin"
POSTINGS_OFFSETS = "postings_offsets.bin"
POSTINGS_INDEX = "postings_index.bin"
DEFAULT_FIELD = "text"  # field name for a single-field index root
LOG_EVERY = 100_000  # log scan progress every N terms

_OFFSET_ENTRY = struct.Struct("<IQQ")
_DOC_HEADER = struct.Struct("<III")


def iter_lexicon(path: Path) -> Iterator[Tuple[bytes, int]]:
    """Stream (token bytes, token_id) pairs from ``lexicon.bin``.

    Raises ValueError when the file ends before ``vocab_size`` entries were read.
    """
    with path.open("rb") as fh:
        header = fh.read(4)
        if not header:
            return
        if len(header) < 4:
            raise ValueError(f"{path.name} truncated while reading header")
        vocab_size = struct.unpack("<I", header)[0]
        for _ in range(vocab_size):
            raw_len = fh.read(4)
            if len(raw_len) < 4:
                raise ValueError(f"{path.name} truncated while reading token length")
            token_len = struct.unpack("<I", raw_len)[0]
            token = fh.read(token_len)
            if len(token) != token_len:
                raise ValueError(f"{path.name} truncated while reading token bytes")
            raw_id = fh.read(4)
            if len(raw_id) < 4:
                raise ValueError(f"{path.name} truncated while reading token id")
            yield token, struct.unpack("<I", raw_id)[0]


def load_postings_offsets(path: Path) -> Dict[int, Tuple[int, int]]:
    """Load ``postings_offsets.bin`` into token_id -> (offset, length)."""
    data = path.read_bytes()
    mapping: Dict[int, Tuple[int, int]] = {}
    if not data:
        return mapping
    if len(data) < 4:
        raise ValueError(f"{path.name} truncated while reading header")
    count = struct.unpack_from("<I", data, 0)[0]
    off = 4
    if off + count * _OFFSET_ENTRY.size > len(data):
        raise ValueError(f"{path.name} declares {count} entries but is only {len(data)} bytes")
    for _ in range(count):
        token_id, offset, length = _OFFSET_ENTRY.unpack_from(data, off)
        off += _OFFSET_ENTRY.size
        mapping[token_id] = (int(offset), int(length))
    return mapping


def read_doc_count(data, offset: int, length: int) -> int:
    """Return the ``doc_count`` header of the block at ``offset``."""
    if length < 4 or offset + 4 > len(data):
        raise ValueError(f"postings block at offset {offset} is truncated")
    return struct.unpack_from("<I", data, offset)[0]


def parse_postings_block(data, offset: int, length: int) -> Tuple[int, int]:
    """Parse the block at ``offset`` and return (doc_count, summed freq).

    Positions are skipped without being unpacked.
    """
    end = offset + length
    if end > len(data):
        raise ValueError(f"postings block at offset {offset} runs past end of file")
    doc_count = read_doc_count(data, offset, length)
    off = offset + 4
    total_freq = 0
    for _ in range(doc_count):
        if off + _DOC_HEADER.size > end:
            raise ValueError(f"postings block at offset {offset} is truncated")
        _doc_id, freq, pos_count = _DOC_HEADER.unpack_from(data, off)
        off += _DOC_HEADER.size + 4 * pos_count
        total_freq += freq
    if off > end:
        raise ValueError(f"postings block at offset {offset} is truncated")
    return doc_count, total_freq


class _FieldPostings:
    """Lazily opened files of one field directory."""

    def __init__(self, name: str, directory: Path):
        self.name = name
        self.directory = directory
        self.lexicon_path = directory / LEXICON
        self.offsets_path = directory / POSTINGS_OFFSETS
        self.index_path = directory / POSTINGS_INDEX
        self._offsets: Optional[Dict[int, Tuple[int, int]]] = None
        self._handle: Optional[BinaryIO] = None
        self._data = None
        self._term_ids: Optional[Dict[bytes, int]] = None
        self._sum_total: Optional[int] = None

    @property
    def has_postings(self) -> bool:
        return self.offsets_path.exists() and self.index_path.exists()

    def offsets(self) -> Dict[int, Tuple[int, int]]:
        if self._offsets is None:
            self._offsets = load_postings_offsets(self.offsets_path)
        return self._offsets

    def data(self):
        """Postings file contents, memory-mapped unless the file is empty."""
        if self._data is None:
            self._handle = self.index_path.open("rb")
            if self.index_path.stat().st_size == 0:
                self._data = b""
            else:
                self._data = mmap.mmap(self._handle.fileno(), 0, access=mmap.ACCESS_READ)
        return self._data

    def term_id(self, term: bytes) -> Optional[int]:
        if self._term_ids is None:
            self._term_ids = {token: token_id for token, token_id in iter_lexicon(self.lexicon_path)}
        return self._term_ids.get(term)

    def sum_total(self) -> int:
        if self._sum_total is None:
            data = self.data()
            self._sum_total = sum(
                parse_postings_block(data, offset, length)[1]
                for offset, length in self.offsets().values()
            )
        return self._sum_total

    def close(self) -> None:
        if isinstance(self._data, mmap.mmap):
            self._data.close()
        self._data = None
        if self._handle is not None:
            self._handle.close()
            self._handle = None


class PostingsDirectoryIndex(IndexReader):
    """Index reader over a postings directory tree (see module docstring)."""

    def __init__(self, index_dir: Path, default_field: str = DEFAULT_FIELD):
        super().__init__()
        self.index_dir = Path(index_dir)
        if not self.index_dir.is_dir():
            raise IndexUnavailableError(f"Index directory not found: {self.index_dir}")
        try:
            self._fields = self._discover_fields(default_field)
        except OSError as exc:
            raise IndexUnavailableError(f"Cannot read index directory {self.index_dir}: {exc}") from exc
        logger.debug("[Postings] Opened %s with fields %s", self.index_dir, list(self._fields))

    def _discover_fields(self, default_field: str) -> Dict[str, _FieldPostings]:
        if (self.index_dir / LEXICON).exists():
            return {default_field: _FieldPostings(default_field, self.index_dir)}
        fields: Dict[str, _FieldPostings] = {}
        for child in sorted(self.index_dir.iterdir()):
            if child.is_dir() and (child / LEXICON).exists():
                fields[child.name] = _FieldPostings(child.name, child)
        return fields

    def field_names(self) -> List[str]:
        self.ensure_open()
        return list(self._fields)

    def terms(self, field: str) -> Optional[Iterator[TermEntry]]:
        self.ensure_open()
        postings = self._fields.get(field)
        if postings is None or not postings.has_postings:
            return None
        try:
            offsets = postings.offsets()
            data = postings.data()
        except (OSError, ValueError, struct.error) as exc:
            raise FieldReadError(field, str(exc)) from exc
        if not offsets:
            return None
        return self._scan(postings, offsets, data)

    def _scan(self, postings: _FieldPostings, offsets: Dict[int, Tuple[int, int]], data) -> Iterator[TermEntry]:
        scanned = 0
        try:
            for term, token_id in iter_lexicon(postings.lexicon_path):
                self.ensure_open()
                entry = offsets.get(token_id)
                if entry is None:
                    continue
                doc_freq = read_doc_count(data, *entry)
                if doc_freq == 0:
                    continue
                scanned += 1
                if scanned % LOG_EVERY == 0:
                    logger.debug("[Postings] %s: scanned %d terms", postings.name, scanned)
                yield term, doc_freq
        except (OSError, ValueError, struct.error) as exc:
            raise FieldReadError(postings.name, str(exc)) from exc

    def total_term_freq(self, field: str, term: bytes) -> int:
        self.ensure_open()
        postings = self._fields.get(field)
        if postings is None or not postings.has_postings:
            raise StatUnavailableError(f"no postings for field {field!r}")
        try:
            token_id = postings.term_id(term)
            entry = postings.offsets().get(token_id) if token_id is not None else None
            if entry is None:
                return 0
            return parse_postings_block(postings.data(), *entry)[1]
        except (OSError, ValueError, struct.error) as exc:
            raise StatUnavailableError(f"{field}:{term!r}: {exc}") from exc

    def sum_total_term_freq(self, field: str) -> int:
        self.ensure_open()
        postings = self._fields.get(field)
        if postings is None or not postings.has_postings:
            raise StatUnavailableError(f"no postings for field {field!r}")
        try:
            return postings.sum_total()
        except (OSError, ValueError, struct.error) as exc:
            raise StatUnavailableError(f"{field}: {exc}") from exc

    def close(self) -> None:
        for postings in self._fields.values():
            postings.close()
        super().close()
