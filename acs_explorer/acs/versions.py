"""
Table Version Detection

Census tables change layout over the years: columns are added, removed or
relabeled. Two years with the same number of variables are not necessarily
the same table, so versions are split on record count AND labels.
"""
import logging
from typing import Iterable, List, Optional

from acs_explorer.acs.models import (
    Estimate, TableVersion, VariableRecord, VariableType,
)

log = logging.getLogger("VersionDetector")


def _same_layout(current: List[VariableRecord], candidate: List[VariableRecord]) -> bool:
    if len(current) != len(candidate):
        return False
    for old, new in zip(current, candidate):
        if old.label.lower() != new.label.lower():
            return False
    return True


def detect_table_versions(
    records: Iterable[VariableRecord],
    start_year: int,
    end_year: int,
    estimate: Optional[Estimate] = None,
    var_type: Optional[VariableType] = None,
) -> List[TableVersion]:
    """
    Partition one table's variable records into stable versions.

    Args:
        records: Variable records of a single table (any order)
        start_year: First year of the configured range
        end_year: Last year of the configured range (inclusive)
        estimate: Only consider records of this estimate
        var_type: Only consider records of this variable type

    Returns:
        Versions in ascending year order. The first version may hold no
        records when the table did not exist yet at start_year.
    """
    if end_year < start_year:
        raise ValueError("end_year must be >= start_year")

    family = sorted(
        r for r in records
        if (estimate is None or r.estimate == estimate)
        and (var_type is None or r.code.var_type == var_type)
    )

    versions: List[TableVersion] = []

    for year in range(start_year, end_year + 1):
        subset = [r for r in family if r.year == year]

        if not versions:
            versions.append(TableVersion(records=subset, min_year=year, years=[year] if subset else []))
            continue

        # gap year: table not published
        if not subset:
            continue

        current = versions[-1]
        if _same_layout(current.records, subset):
            current.years.append(year)
            continue

        current.max_year = year - 1
        versions.append(TableVersion(records=subset, min_year=year, years=[year]))

    versions[-1].max_year = end_year

    log.debug(f"Detected {len(versions)} version(s) for {len(family)} records")
    return versions
