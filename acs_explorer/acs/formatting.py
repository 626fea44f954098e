"""
Console formatting for catalog query results.
"""
from typing import Dict, Iterable, List, Optional

from acs_explorer.acs.grammar import format_table_code, format_variable_code
from acs_explorer.acs.models import (
    Estimate, TableRecord, TableVersion, VariableRecord, VariableType,
)

INDENT = "    "


def format_table_name(record: TableRecord) -> str:
    return f"{format_table_code(record.code)} | {record.label}\n"


def format_table_records(records: Iterable[TableRecord]) -> str:
    res = "code      | label\n==========|====================\n"
    for record in sorted(records):
        res += format_table_name(record)
    return res


def _select(records: Iterable[VariableRecord], year: int, estimate: Optional[Estimate]) -> List[VariableRecord]:
    return [
        r for r in sorted(records)
        if r.year == year and (estimate is None or r.estimate == estimate)
    ]


def format_describe_table_raw(
    year: int,
    records: Iterable[VariableRecord],
    estimate: Optional[Estimate] = None,
) -> str:
    """One "CODE label" line per variable of the given year."""
    return "".join(
        f"{format_variable_code(r.code)} {r.label}\n"
        for r in _select(records, year, estimate)
    )


def format_describe_table_pretty(
    year: int,
    records: Iterable[VariableRecord],
    estimate: Optional[Estimate] = None,
) -> str:
    """Value columns of a year, indented by label depth."""
    res = "\ncode | label\n=====|====================================\n"

    for r in _select(records, year, estimate):
        if r.code.var_type != VariableType.VALUE:
            continue
        segments = r.label_segments
        indents = INDENT * (len(segments) - 1)
        res += f"{r.code.column_id:5}| {indents}{segments[-1]}\n"
    return res


def _to_camelcase(s: str) -> str:
    return "".join(word[:1].upper() + word[1:] for word in s.split())


def format_etl_config(
    year: int,
    records: Iterable[VariableRecord],
    estimate: Optional[Estimate] = None,
) -> str:
    """
    ETL column config for a table: leaf value columns only.

    Labels ending with ':' are headers of a sub-hierarchy and are skipped,
    unless the table has a single value column.
    """
    selected = [r for r in _select(records, year, estimate) if r.code.var_type == VariableType.VALUE]
    if not selected:
        return ""

    if len(selected) > 1:
        selected = [r for r in selected if not r.label.endswith(":")]

    code = selected[0].code.table_code if selected else None
    table_code = f"{code.prefix.value}{code.table_id}" if code else ""

    res = (
        f'name: "TABLENAME"\n'
        f'tag: "acs"\n'
        f'acs_table:\n'
        f'{INDENT}id: "{table_code}"\n'
        f'{INDENT}value_label: "population"\n'
        f'{INDENT}dimension_labels: [\n'
        f'{INDENT * 2}"DIMENSION",\n'
        f'{INDENT}]\n'
        f'{INDENT}columns:\n'
    )
    for r in selected:
        label = "_".join(r.label_segments).replace("'", "")
        res += f'{INDENT * 2}{r.code.column_id}{r.code.var_type.value}: "{_to_camelcase(label)}"\n'
    return res


def format_est_years(est_years: Dict[Estimate, List[int]]) -> str:
    return "".join(
        f"{estimate.description}: {sorted(years)}\n"
        for estimate, years in sorted(est_years.items(), key=lambda item: item[0].value)
    )


def format_table_versions(versions: Iterable[TableVersion]) -> str:
    res = ""
    for version in versions:
        span = f"{version.min_year}-{version.max_year}"
        if not version.records:
            res += f"{span}: not published\n"
            continue
        res += f"{span}: {len(version.records)} variables, years {version.years}\n"
    return res
