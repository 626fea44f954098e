"""
ACS Identifier Grammar

Parses and formats the two identifier formats used by the Census API:

    table code     := prefix table_id suffix?
    variable code  := table code "_" column_id var_type
    table record   := table code "." whitespace label

    prefix    := "B" | "C"
    table_id  := digit+
    suffix    := letter*          (upper-cased on read)
    column_id := digit+
    var_type  := "E" | "M"

Examples:
    B20005E_045M  -> table B20005E, column 045, margin of error
    "B24126.  Detailed Occupation ..." -> table B24126 with its label

Every parser consumes its whole input and raises ParseError naming the
sub-token that failed and the offending bytes.
"""
from dataclasses import dataclass
from typing import Optional, Union

from acs_explorer.acs.models import (
    TableCode, TablePrefix, TableRecord, VariableCode, VariableType,
)
from acs_explorer.errors import ParseError

_DIGITS = b"0123456789"
_SPACE = b" \t"

# Companion annotation variables (e.g. B01001_001EA) listed next to the values
ANNOTATION_SUFFIXES = ("EA", "MA")


class _Cursor:
    """Position over the raw bytes being parsed."""

    def __init__(self, data: bytes):
        self.data = data
        self.pos = 0

    def at_end(self) -> bool:
        return self.pos >= len(self.data)

    def peek(self) -> bytes:
        return self.data[self.pos:self.pos + 1]

    def take_while(self, accept) -> bytes:
        start = self.pos
        while self.pos < len(self.data) and accept(self.data[self.pos]):
            self.pos += 1
        return self.data[start:self.pos]

    def fail(self, token: str, width: int = 1) -> ParseError:
        raw = self.data[self.pos:self.pos + width] if width else self.data[self.pos:]
        return ParseError(token, raw, self.pos)


def _to_bytes(data: Union[bytes, str]) -> bytes:
    if isinstance(data, str):
        return data.encode("utf-8")
    return bytes(data)


def _is_digit(b: int) -> bool:
    return b in _DIGITS


def _is_letter(b: int) -> bool:
    return (65 <= b <= 90) or (97 <= b <= 122)


def _expect_end(cursor: _Cursor) -> None:
    if not cursor.at_end():
        raise cursor.fail("trailing", width=0)


# ===================== Sub-token Parsers ===================== #

def _parse_prefix(cursor: _Cursor) -> TablePrefix:
    b = cursor.peek()
    if b == b"B":
        cursor.pos += 1
        return TablePrefix.B
    if b == b"C":
        cursor.pos += 1
        return TablePrefix.C
    raise cursor.fail("prefix")


def _parse_digits(cursor: _Cursor, token: str) -> str:
    digits = cursor.take_while(_is_digit)
    if not digits:
        raise cursor.fail(token)
    return digits.decode("ascii")


def _parse_suffix(cursor: _Cursor) -> Optional[str]:
    letters = cursor.take_while(_is_letter)
    if not letters:
        return None
    return letters.decode("ascii").upper()


def _parse_table_code(cursor: _Cursor) -> TableCode:
    prefix = _parse_prefix(cursor)
    table_id = _parse_digits(cursor, "table_id")
    suffix = _parse_suffix(cursor)
    return TableCode(prefix=prefix, table_id=table_id, suffix=suffix)


def _parse_var_type(cursor: _Cursor) -> VariableType:
    b = cursor.peek()
    if b == b"E":
        cursor.pos += 1
        return VariableType.VALUE
    if b == b"M":
        cursor.pos += 1
        return VariableType.MARGIN_OF_ERROR
    raise cursor.fail("var_type", width=0)


# ===================== Public Parsers ===================== #

def parse_table_code(data: Union[bytes, str]) -> TableCode:
    cursor = _Cursor(_to_bytes(data))
    code = _parse_table_code(cursor)
    _expect_end(cursor)
    return code


def parse_variable_code(data: Union[bytes, str]) -> VariableCode:
    """
    Parse a Census variable name such as "B01001_001E".

    Raises:
        ParseError: token is one of prefix, table_id, separator, column_id,
            var_type or trailing
    """
    cursor = _Cursor(_to_bytes(data))
    table_code = _parse_table_code(cursor)

    if cursor.peek() != b"_":
        raise cursor.fail("separator")
    cursor.pos += 1

    column_id = _parse_digits(cursor, "column_id")
    var_type = _parse_var_type(cursor)
    _expect_end(cursor)

    return VariableCode(table_code=table_code, column_id=column_id, var_type=var_type)


def parse_table_record(data: Union[bytes, str]) -> TableRecord:
    """
    Parse a variable's "concept" text into the table it belongs to.

    The label is returned verbatim; callers strip trailing punctuation.
    """
    cursor = _Cursor(_to_bytes(data))
    code = _parse_table_code(cursor)

    if cursor.peek() != b".":
        raise cursor.fail("separator")
    cursor.pos += 1

    if not cursor.take_while(lambda b: b in _SPACE):
        raise cursor.fail("whitespace")

    start = cursor.pos
    try:
        label = cursor.data[start:].decode("utf-8")
    except UnicodeDecodeError as e:
        raise ParseError("label", cursor.data[start:], start) from e
    cursor.pos = len(cursor.data)

    return TableRecord(code=code, label=label)


# ===================== Formatting ===================== #

def format_table_code(code: TableCode) -> str:
    return f"{code.prefix.value}{code.table_id}{code.suffix or ''}"


def format_variable_code(code: VariableCode) -> str:
    return f"{format_table_code(code.table_code)}_{code.column_id}{code.var_type.value}"


def is_annotation_key(name: str) -> bool:
    """True for annotation companions like B01001_001EA, which are not variables."""
    _, _, column = name.partition("_")
    return column.endswith(ANNOTATION_SUFFIXES) and column[:-2].isdigit()


# ===================== User Table Queries ===================== #

@dataclass(frozen=True)
class TableQuery:
    """A table id typed by a user: prefix and suffix are optional."""
    table_id: str
    prefix: Optional[TablePrefix] = None
    suffix: Optional[str] = None

    def to_table_code(self) -> TableCode:
        if self.prefix is None:
            raise ParseError("prefix", b"", 0, f"Table query {self} needs a B or C prefix")
        return TableCode(prefix=self.prefix, table_id=self.table_id, suffix=self.suffix)

    def __str__(self) -> str:
        prefix = self.prefix.value if self.prefix else ""
        return f"{prefix}{self.table_id}{self.suffix or ''}"


def parse_table_query(text: Union[bytes, str]) -> TableQuery:
    """
    Parse a user-entered table id ("B20005", "20005", "c24126a").

    Only the prefix and suffix letters are case-insensitive.
    """
    data = _to_bytes(text).strip()
    cursor = _Cursor(data.upper())

    prefix = None
    if cursor.peek() in (b"B", b"C"):
        prefix = _parse_prefix(cursor)

    table_id = _parse_digits(cursor, "table_id")
    suffix = _parse_suffix(cursor)
    _expect_end(cursor)

    return TableQuery(table_id=table_id, prefix=prefix, suffix=suffix)
