"""
ACS Catalog Value Objects

Table and variable identifiers of the American Community Survey plus the
records a refresh collects for them.

Ordering rules:
  - TableCode: table_id, then prefix (B < C), then no suffix before any
    suffix, then suffix.
  - VariableCode: table code, then column id, then var type (E < M).
  - Estimate tags ("1yr"/"5yr") are the persisted form; unknown tags raise
    instead of falling back to a default variant.

Author: ACS Explorer
Created: 2026-10-19
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from functools import total_ordering
from typing import List, Optional, Tuple

from acs_explorer.errors import ParseError


# Hierarchy delimiter inside variable labels ("Estimate!!Total!!Male")
LABEL_DELIMITER = "!!"


class TablePrefix(str, Enum):
    B = "B"  # detailed tables
    C = "C"  # collapsed tables

    @classmethod
    def from_code(cls, value: str) -> "TablePrefix":
        if value == "B":
            return cls.B
        if value == "C":
            return cls.C
        raise ParseError("prefix", value or "")

    def __str__(self) -> str:
        return self.value


class VariableType(str, Enum):
    VALUE = "E"
    MARGIN_OF_ERROR = "M"

    @classmethod
    def from_code(cls, value: str) -> "VariableType":
        if value == "E":
            return cls.VALUE
        if value == "M":
            return cls.MARGIN_OF_ERROR
        raise ParseError("var_type", value or "")

    def __str__(self) -> str:
        return self.value


class Estimate(str, Enum):
    ONE_YEAR = "1yr"
    FIVE_YEAR = "5yr"

    @classmethod
    def from_code(cls, value: str) -> "Estimate":
        if value == "1yr":
            return cls.ONE_YEAR
        if value == "5yr":
            return cls.FIVE_YEAR
        raise ParseError("estimate", value or "")

    @property
    def url_frag(self) -> str:
        """Path segment of the Census API for this estimate."""
        if self is Estimate.ONE_YEAR:
            return "acs1/"
        return "acs5/"

    @property
    def description(self) -> str:
        if self is Estimate.ONE_YEAR:
            return "ACS 1-year estimate"
        return "ACS 5-year estimate"

    def __str__(self) -> str:
        return self.value


@total_ordering
@dataclass(frozen=True)
class TableCode:
    prefix: TablePrefix
    table_id: str
    suffix: Optional[str] = None

    def __post_init__(self):
        # an empty suffix formats like no suffix
        if self.suffix == "":
            object.__setattr__(self, "suffix", None)

    def sort_key(self) -> Tuple[str, str, int, str]:
        return (
            self.table_id,
            self.prefix.value,
            0 if self.suffix is None else 1,
            self.suffix or "",
        )

    def __lt__(self, other: "TableCode") -> bool:
        if not isinstance(other, TableCode):
            return NotImplemented
        return self.sort_key() < other.sort_key()

    def __str__(self) -> str:
        return f"{self.prefix.value}{self.table_id}{self.suffix or ''}"


@total_ordering
@dataclass(frozen=True)
class VariableCode:
    table_code: TableCode
    column_id: str
    var_type: VariableType

    def sort_key(self) -> Tuple[Tuple[str, str, int, str], str, str]:
        return (self.table_code.sort_key(), self.column_id, self.var_type.value)

    def __lt__(self, other: "VariableCode") -> bool:
        if not isinstance(other, VariableCode):
            return NotImplemented
        return self.sort_key() < other.sort_key()

    def __str__(self) -> str:
        return f"{self.table_code}_{self.column_id}{self.var_type.value}"


@total_ordering
@dataclass(frozen=True)
class TableRecord:
    code: TableCode
    label: str

    def __lt__(self, other: "TableRecord") -> bool:
        if not isinstance(other, TableRecord):
            return NotImplemented
        return (self.code.sort_key(), self.label) < (other.code.sort_key(), other.label)


@total_ordering
@dataclass(frozen=True)
class VariableRecord:
    """One variable as observed for a single (year, estimate) snapshot."""
    code: VariableCode
    label: str
    year: int
    estimate: Estimate

    def sort_key(self):
        return (self.code.sort_key(), self.year, self.estimate.value)

    def __lt__(self, other: "VariableRecord") -> bool:
        if not isinstance(other, VariableRecord):
            return NotImplemented
        return self.sort_key() < other.sort_key()

    @property
    def label_segments(self) -> List[str]:
        """Label hierarchy with the trailing ':' of older vintages removed."""
        return [s.rstrip(":") for s in self.label.split(LABEL_DELIMITER)]


@dataclass
class TableVersion:
    """A year range over which a table's variable layout did not change."""
    records: List[VariableRecord]
    min_year: int
    max_year: Optional[int] = None
    years: List[int] = field(default_factory=list)

    def __repr__(self):
        return f"<TableVersion(years={self.min_year}-{self.max_year}, records={len(self.records)})>"
