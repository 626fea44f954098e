"""
ACS Catalog Refresher

Rebuilds the local catalog from the Census API variable listings for every
(year, estimate) combination in the requested range.

Flow:
    idle -> schema_reset -> fetching (each year x estimate) -> bulk_write
         -> index_build -> done

A failed combination (network, bad JSON, unparseable identifier) is logged,
counted and skipped; its partial results are discarded. The whole refresh
fails, leaving the previous catalog in place, when no combination succeeds
or when writing the catalog or building the index fails.

Author: ACS Explorer
Created: 2026-10-19
"""
import logging
import time
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime, UTC
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional, Set, Tuple

from acs_explorer.acs.acs_client import CensusClient, parse_variables_payload
from acs_explorer.acs.fulltext import build_catalog_index, publish_index
from acs_explorer.acs.grammar import is_annotation_key, parse_table_record, parse_variable_code
from acs_explorer.acs.models import (
    Estimate, TableCode, TableRecord, VariableCode, VariableRecord,
)
from acs_explorer.database.catalog_store import CatalogStore
from acs_explorer.errors import ACSExplorerError, FetchError, ParseError, SearchIndexError, StoreError

log = logging.getLogger("ACSRefresher")


class RefreshState(str, Enum):
    IDLE = "idle"
    SCHEMA_RESET = "schema_reset"
    FETCHING = "fetching"
    BULK_WRITE = "bulk_write"
    INDEX_BUILD = "index_build"
    DONE = "done"
    FAILED = "failed"


def combination_label(year: int, estimate: Estimate) -> str:
    return f"{year}-{estimate.value}"


# ===================== Accumulation ===================== #

@dataclass
class StepBuffer:
    """Records parsed from one (year, estimate) listing."""
    year: int
    estimate: Estimate
    tables: Dict[TableCode, str] = field(default_factory=dict)
    variables: Dict[VariableCode, str] = field(default_factory=dict)
    skipped_keys: int = 0


class RefreshAccumulator:
    """
    Deduplicating maps owned by one refresh call.

    Merging keeps the first label seen for a key; write order is imposed by
    sorting, not by insertion.
    """

    def __init__(self):
        self.tables: Dict[TableCode, str] = {}
        self.variables: Dict[Tuple[VariableCode, int, Estimate], str] = {}
        self.est_years: Dict[Tuple[TableCode, Estimate], Set[int]] = defaultdict(set)

    def merge(self, step: StepBuffer) -> None:
        for code, label in step.tables.items():
            self.tables.setdefault(code, label)

        for code, label in step.variables.items():
            self.variables.setdefault((code, step.year, step.estimate), label)
            self.est_years[(code.table_code, step.estimate)].add(step.year)

    def table_records(self) -> List[Tuple[int, TableRecord]]:
        """Tables in canonical order with primary keys 1..n."""
        codes = sorted(self.tables)
        return [
            (pk, TableRecord(code=code, label=self.tables[code]))
            for pk, code in enumerate(codes, start=1)
        ]

    def variable_records(self) -> List[VariableRecord]:
        return sorted(
            VariableRecord(code=code, label=label, year=year, estimate=estimate)
            for (code, year, estimate), label in self.variables.items()
        )


# ===================== Progress Tracking ===================== #

class RefreshProgress:
    """Progress tracking for a catalog refresh"""

    def __init__(self, total_combinations: int = 0):
        self.state = RefreshState.IDLE
        self.total_combinations = total_combinations
        self.succeeded: List[str] = []
        self.failed: Dict[str, str] = {}
        self.variables_seen = 0
        self.counts: Dict[str, int] = {}
        self.index_keys = 0
        self.start_time = datetime.now(UTC)
        self.end_time: Optional[datetime] = None

    @property
    def elapsed_seconds(self) -> float:
        return ((self.end_time or datetime.now(UTC)) - self.start_time).total_seconds()

    def to_dict(self) -> Dict[str, Any]:
        return {
            'state': self.state.value,
            'total_combinations': self.total_combinations,
            'succeeded': len(self.succeeded),
            'failed': len(self.failed),
            'failures': dict(self.failed),
            'variables_seen': self.variables_seen,
            'counts': dict(self.counts),
            'index_keys': self.index_keys,
            'duration_seconds': self.elapsed_seconds,
        }


# ===================== Refresher ===================== #

class ACSCatalogRefresher:
    """Full rebuild of the catalog database and search index."""

    def __init__(
        self,
        client: CensusClient,
        store: CatalogStore,
        index_path: Path,
        progress_callback: Optional[Callable[[RefreshProgress], None]] = None,
    ):
        self.client = client
        self.store = store
        self.index_path = Path(index_path)
        self.progress_callback = progress_callback

    @property
    def staging_index_path(self) -> Path:
        return self.index_path.with_name(self.index_path.name + ".staging")

    def refresh(self, years: Iterable[int], estimates: Iterable[Estimate]) -> RefreshProgress:
        """
        Rebuild the catalog for every year x estimate.

        Raises:
            FetchError: No combination succeeded (previous catalog kept)
            StoreError: Catalog write failed (previous catalog kept)
            SearchIndexError: Index build failed (previous catalog kept)
        """
        years = list(years)
        estimates = list(estimates)
        grid = [(year, est) for year in years for est in estimates]

        progress = RefreshProgress(total_combinations=len(grid))
        log.info(f"Refreshing ACS catalog: {len(years)} years x {len(estimates)} estimates")

        progress.state = RefreshState.SCHEMA_RESET
        accumulator = RefreshAccumulator()
        self._discard_staging_index()

        progress.state = RefreshState.FETCHING
        for year, estimate in grid:
            label = combination_label(year, estimate)
            try:
                step = self.refresh_combination(year, estimate)
            except ACSExplorerError as e:
                progress.failed[label] = str(e)
                log.warning(f"no refresh {label}: {e}")
            else:
                accumulator.merge(step)
                progress.succeeded.append(label)
                progress.variables_seen += len(step.variables)
                log.info(f"completed refresh {label}")

            if self.progress_callback:
                self.progress_callback(progress)

        # nothing fetched: keep the previous catalog and index
        if not progress.succeeded:
            failed = ", ".join(progress.failed) or "none requested"
            log.error(f"Refresh failed during {progress.state.value}: no combination refreshed ({failed})")
            progress.state = RefreshState.FAILED
            progress.end_time = datetime.now(UTC)
            raise FetchError(f"No year/estimate combination could be refreshed: {failed}")

        tables = accumulator.table_records()
        variables = accumulator.variable_records()

        def build_index():
            # runs inside the catalog transaction: an index failure rolls the write back
            progress.state = RefreshState.INDEX_BUILD
            progress.index_keys = build_catalog_index(self.staging_index_path, tables)

        try:
            progress.state = RefreshState.BULK_WRITE
            progress.counts = self.store.replace_catalog(
                tables, variables, accumulator.est_years, before_commit=build_index,
            )
            publish_index(self.staging_index_path, self.index_path)
        except (StoreError, SearchIndexError) as e:
            log.error(f"Refresh failed during {progress.state.value}: {e}")
            progress.state = RefreshState.FAILED
            progress.end_time = datetime.now(UTC)
            self._discard_staging_index()
            raise

        progress.state = RefreshState.DONE
        progress.end_time = datetime.now(UTC)
        log.info(
            f"Overall refresh time: {progress.elapsed_seconds:.1f}s "
            f"({len(progress.succeeded)} ok, {len(progress.failed)} failed)"
        )
        return progress

    def refresh_combination(self, year: int, estimate: Estimate) -> StepBuffer:
        """Fetch and parse one year/estimate listing."""
        label = combination_label(year, estimate)

        start = time.perf_counter()
        raw = self.client.fetch_variables(year, estimate)
        log.info(f"Fetch time for {label}: {time.perf_counter() - start:.2f}s")

        start = time.perf_counter()
        step = self.process_variables_data(year, estimate, raw)
        log.info(
            f"Process time for {label}: {time.perf_counter() - start:.2f}s, "
            f"{len(step.variables)} vars"
        )
        return step

    def process_variables_data(self, year: int, estimate: Estimate, raw: bytes) -> StepBuffer:
        """
        Parse a variables.json body into a step buffer.

        Raises:
            DecodeError: Body is not a variables listing
            ParseError: A variable name or concept could not be parsed
        """
        variables = parse_variables_payload(raw)
        step = StepBuffer(year=year, estimate=estimate)

        for name, info in variables.items():
            # variable names have exactly one '_' (B01001_001E); skip NAME, for, in, ...
            if len(name.split("_")) != 2 or is_annotation_key(name):
                step.skipped_keys += 1
                continue

            info = info if isinstance(info, dict) else {}
            try:
                code = parse_variable_code(name)
            except ParseError as e:
                raise ParseError(e.token, e.raw, e.position, f"Error parsing variable {name}: {e}") from e

            concept = str(info.get("concept", ""))
            try:
                table_record = parse_table_record(concept)
            except ParseError as e:
                raise ParseError(e.token, e.raw, e.position, f"Error parsing table str {concept!r}: {e}") from e

            step.variables.setdefault(code, str(info.get("label", "")))
            step.tables.setdefault(table_record.code, table_record.label.rstrip(": "))

        return step

    def _discard_staging_index(self) -> None:
        try:
            self.staging_index_path.unlink(missing_ok=True)
        except OSError as e:
            log.warning(f"Could not remove staging index {self.staging_index_path}: {e}")
