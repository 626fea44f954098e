"""
Full-text Search Index

Immutable sorted key -> integer map stored in a single file. Built once per
refresh, then only read.

File layout (all integers big-endian):

    magic   8 bytes  b"ACSIDX01"
    count   u64
    entries count x (key_len u32, key bytes, value u64)

Keys must be inserted in strictly ascending byte order; a builder rejects
anything else at insert time, before the file can be used for lookups.
"""
from __future__ import annotations

import bisect
import io
import logging
import os
import re
import struct
from pathlib import Path
from typing import BinaryIO, Iterable, Iterator, List, Optional, Tuple, Union

from acs_explorer.acs.grammar import format_table_code
from acs_explorer.acs.models import TableRecord
from acs_explorer.errors import SearchIndexError

log = logging.getLogger("SearchIndex")

MAGIC = b"ACSIDX01"
_COUNT = struct.Struct(">Q")
_KEY_LEN = struct.Struct(">I")
_VALUE = struct.Struct(">Q")

# separates a term from the table id it points at inside a key
TERM_SEPARATOR = b"\x00"

_TERM_RE = re.compile(r"[a-z0-9]+")


class SearchIndexBuilder:
    """
    Streams sorted entries into an index file.

    Usage:
        with open(path, "wb") as fh:
            builder = SearchIndexBuilder(fh)
            builder.insert(b"income", 7)
            builder.finish()
    """

    def __init__(self, writer: BinaryIO):
        self._writer = writer
        self._buffer = io.BytesIO()
        self._last_key: Optional[bytes] = None
        self._count = 0
        self._finished = False

    def insert(self, key: Union[bytes, str], value: int) -> None:
        if self._finished:
            raise SearchIndexError("Search index already finished")
        if isinstance(key, str):
            key = key.encode("utf-8")
        if self._last_key is not None and key <= self._last_key:
            raise SearchIndexError(
                f"Search index keys must be strictly ascending: {key!r} after {self._last_key!r}"
            )
        if not 0 <= value < 2 ** 64:
            raise SearchIndexError(f"Search index value out of range: {value}")

        self._buffer.write(_KEY_LEN.pack(len(key)))
        self._buffer.write(key)
        self._buffer.write(_VALUE.pack(value))
        self._last_key = key
        self._count += 1

    def finish(self) -> int:
        """Write header and entries. Returns the number of entries."""
        if self._finished:
            raise SearchIndexError("Search index already finished")
        try:
            self._writer.write(MAGIC)
            self._writer.write(_COUNT.pack(self._count))
            self._writer.write(self._buffer.getvalue())
            self._writer.flush()
        except OSError as e:
            raise SearchIndexError(f"Error writing search index: {e}") from e
        self._finished = True
        return self._count


class SearchIndex:
    """Read-only view over a finished index file."""

    def __init__(self, keys: List[bytes], values: List[int]):
        self._keys = keys
        self._values = values

    @classmethod
    def from_path(cls, path: Union[str, Path]) -> "SearchIndex":
        try:
            data = Path(path).read_bytes()
        except OSError as e:
            raise SearchIndexError(f"Error opening search index {path}: {e}") from e
        return cls.from_bytes(data)

    @classmethod
    def from_bytes(cls, data: bytes) -> "SearchIndex":
        if data[:len(MAGIC)] != MAGIC:
            raise SearchIndexError("Not a search index file (bad magic)")

        keys: List[bytes] = []
        values: List[int] = []
        try:
            (count,) = _COUNT.unpack_from(data, len(MAGIC))
            pos = len(MAGIC) + _COUNT.size
            for _ in range(count):
                (key_len,) = _KEY_LEN.unpack_from(data, pos)
                pos += _KEY_LEN.size
                key = data[pos:pos + key_len]
                if len(key) != key_len:
                    raise SearchIndexError("Truncated search index")
                pos += key_len
                (value,) = _VALUE.unpack_from(data, pos)
                pos += _VALUE.size

                if keys and key <= keys[-1]:
                    raise SearchIndexError("Search index keys out of order")
                keys.append(key)
                values.append(value)
        except struct.error as e:
            raise SearchIndexError(f"Truncated search index: {e}") from e

        if pos != len(data):
            raise SearchIndexError("Trailing bytes in search index")

        return cls(keys, values)

    def __len__(self) -> int:
        return len(self._keys)

    def get(self, key: Union[bytes, str]) -> Optional[int]:
        if isinstance(key, str):
            key = key.encode("utf-8")
        i = bisect.bisect_left(self._keys, key)
        if i < len(self._keys) and self._keys[i] == key:
            return self._values[i]
        return None

    def scan_prefix(self, prefix: Union[bytes, str]) -> Iterator[Tuple[bytes, int]]:
        if isinstance(prefix, str):
            prefix = prefix.encode("utf-8")
        i = bisect.bisect_left(self._keys, prefix)
        while i < len(self._keys) and self._keys[i].startswith(prefix):
            yield self._keys[i], self._values[i]
            i += 1


# ===================== Catalog Index ===================== #

def normalize_terms(text: str) -> List[str]:
    """Lower-cased alphanumeric terms of a label or query, in order, deduplicated."""
    seen = []
    for term in _TERM_RE.findall(text.lower()):
        if term not in seen:
            seen.append(term)
    return seen


def table_terms(record: TableRecord) -> List[str]:
    terms = normalize_terms(record.label)
    for term in (format_table_code(record.code).lower(), record.code.table_id):
        if term not in terms:
            terms.append(term)
    return terms


def term_key(term: str, table_pk: int) -> bytes:
    return term.encode("utf-8") + TERM_SEPARATOR + _VALUE.pack(table_pk)


def lookup_term(index: SearchIndex, term: str) -> List[int]:
    """Primary keys of every table indexed under an exact term."""
    prefix = term.encode("utf-8") + TERM_SEPARATOR
    return [value for _, value in index.scan_prefix(prefix)]


def build_catalog_index(path: Union[str, Path], tables: Iterable[Tuple[int, TableRecord]]) -> int:
    """
    Build the index for (primary key, table record) pairs into path.

    Returns:
        Number of keys written
    """
    keys = sorted(
        {term_key(term, pk): pk for pk, record in tables for term in table_terms(record)}.items()
    )

    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    try:
        with open(path, "wb") as fh:
            builder = SearchIndexBuilder(fh)
            for key, pk in keys:
                builder.insert(key, pk)
            count = builder.finish()
    except OSError as e:
        raise SearchIndexError(f"Error writing search index {path}: {e}") from e

    log.info(f"Built search index with {count} keys at {path}")
    return count


def publish_index(staging_path: Union[str, Path], path: Union[str, Path]) -> None:
    """Atomically replace the live index with a freshly built one."""
    try:
        os.replace(staging_path, path)
    except OSError as e:
        raise SearchIndexError(f"Error publishing search index to {path}: {e}") from e
