import struct
import sys
from pathlib import Path
from typing import Dict, List, Optional, Sequence

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.append(str(PROJECT_ROOT))


def write_postings_field(directory: Path, postings: Dict[str, Sequence[Sequence[int]]],
                         extra_tokens: Optional[List[str]] = None) -> Path:
    """Write lexicon.bin, postings_offsets.bin and postings_index.bin for one field.

    ``postings`` maps a token to one positions list per document containing
    it; the document id is the list's index and freq is its length. Tokens in
    ``extra_tokens`` get a lexicon entry but no postings.
    """
    directory.mkdir(parents=True, exist_ok=True)
    tokens = list(postings) + list(extra_tokens or [])

    with (directory / "lexicon.bin").open("wb") as f:
        f.write(struct.pack("<I", len(tokens)))
        for token_id, token in enumerate(tokens):
            encoded = token.encode("utf-8")
            f.write(struct.pack("<I", len(encoded)))
            f.write(encoded)
            f.write(struct.pack("<I", token_id))

    offsets = []
    with (directory / "postings_index.bin").open("wb") as f:
        for token_id, token in enumerate(postings):
            start = f.tell()
            docs = postings[token]
            f.write(struct.pack("<I", len(docs)))
            for doc_id, positions in enumerate(docs):
                f.write(struct.pack("<III", doc_id, len(positions), len(positions)))
                if positions:
                    f.write(struct.pack(f"<{len(positions)}I", *positions))
            offsets.append((token_id, start, f.tell() - start))

    with (directory / "postings_offsets.bin").open("wb") as f:
        f.write(struct.pack("<I", len(offsets)))
        for token_id, offset, length in offsets:
            f.write(struct.pack("<IQQ", token_id, offset, length))
    return directory


@pytest.fixture
def postings_index_dir(tmp_path):
    """Two-field index: title {a:5, b:2, c:9}, body {a:1, c:3, d:7} (doc freqs)."""
    root = tmp_path / "index"
    write_postings_field(root / "title", {
        "a": [[0]] * 5,
        "b": [[0, 3]] * 2,
        "c": [[1]] * 9,
    })
    write_postings_field(root / "body", {
        "a": [[4]],
        "c": [[0, 1, 2, 3]] * 3,
        "d": [[7, 9]] * 7,
    })
    return root
