"""
ACS Explorer

Query entry point over the local catalog: table lookups, table descriptions,
published years per estimate, full-text label search, and refresh.

Reads never touch the network; only refresh() does.

Usage:
    explorer = Explorer.from_settings()
    explorer.refresh()
    explorer.query_by_table_id(TablePrefix.B, "20005")
    explorer.fulltext_search("median income")
"""
import logging
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple

from acs_explorer.acs.acs_client import CensusClient
from acs_explorer.acs.acs_collector import ACSCatalogRefresher, RefreshProgress
from acs_explorer.acs.fulltext import SearchIndex, lookup_term, normalize_terms
from acs_explorer.acs.models import (
    Estimate, TableCode, TablePrefix, TableRecord, TableVersion, VariableRecord, VariableType,
)
from acs_explorer.acs.versions import detect_table_versions
from acs_explorer.config import settings
from acs_explorer.database.catalog_store import CatalogStore
from acs_explorer.database.connection import DatabaseConnection
from acs_explorer.errors import SearchIndexError

log = logging.getLogger("ACSExplorer")


class Explorer:
    def __init__(
        self,
        store: CatalogStore,
        index_path: Path,
        client: Optional[CensusClient] = None,
        start_year: int = 2009,
        end_year: Optional[int] = None,
    ):
        self.store = store
        self.index_path = Path(index_path)
        self.client = client
        self.start_year = start_year
        self.end_year = end_year
        self._index: Optional[SearchIndex] = None
        self._index_stamp: Optional[Tuple[int, int, int]] = None

    @classmethod
    def from_settings(cls) -> "Explorer":
        return cls(
            store=CatalogStore(DatabaseConnection.get_engine()),
            index_path=settings.app.index_path,
            client=CensusClient.from_settings(settings.census),
            start_year=settings.refresh.start_year,
            end_year=settings.refresh.last_year,
        )

    @property
    def years(self) -> range:
        end_year = self.end_year if self.end_year is not None else settings.refresh.last_year
        return range(self.start_year, end_year + 1)

    # ===================== Refresh ===================== #

    def refresh(
        self,
        years: Optional[Iterable[int]] = None,
        estimates: Optional[Iterable[Estimate]] = None,
        progress_callback=None,
    ) -> RefreshProgress:
        if self.client is None:
            raise ValueError("Explorer has no CensusClient; cannot refresh")

        refresher = ACSCatalogRefresher(
            self.client, self.store, self.index_path, progress_callback=progress_callback,
        )
        progress = refresher.refresh(
            years if years is not None else self.years,
            estimates if estimates is not None else [Estimate.FIVE_YEAR, Estimate.ONE_YEAR],
        )
        # drop the cached reader so the next search sees the new index
        self._index = None
        return progress

    # ===================== Queries ===================== #

    def query_by_table_id(
        self,
        prefix: Optional[TablePrefix],
        table_id: str,
        suffix: Optional[str] = None,
    ) -> List[TableRecord]:
        return self.store.query_by_table_id(prefix, table_id, suffix)

    def describe_table(
        self,
        prefix: TablePrefix,
        table_id: str,
        suffix: Optional[str] = None,
    ) -> List[VariableRecord]:
        return self.store.describe_table(TableCode(prefix=prefix, table_id=table_id, suffix=suffix))

    def query_est_years(
        self,
        prefix: TablePrefix,
        table_id: str,
        suffix: Optional[str] = None,
    ) -> Dict[Estimate, List[int]]:
        return self.store.query_est_years(TableCode(prefix=prefix, table_id=table_id, suffix=suffix))

    def table_versions(
        self,
        prefix: TablePrefix,
        table_id: str,
        suffix: Optional[str] = None,
        estimate: Estimate = Estimate.FIVE_YEAR,
        var_type: VariableType = VariableType.VALUE,
    ) -> List[TableVersion]:
        """Layout history of a table for one estimate and variable type."""
        records = self.describe_table(prefix, table_id, suffix)
        return detect_table_versions(
            records,
            start_year=self.years.start,
            end_year=self.years.stop - 1,
            estimate=estimate,
            var_type=var_type,
        )

    def fulltext_search(self, text: str) -> List[TableRecord]:
        """
        Tables whose label, code or table id contain every term of text.

        Terms match whole words exactly ("income" does not match "incomes").
        """
        terms = normalize_terms(text)
        if not terms:
            return []

        index = self._get_index()
        matches: Optional[set] = None
        for term in terms:
            ids = set(lookup_term(index, term))
            matches = ids if matches is None else matches & ids
            if not matches:
                return []

        return self.store.get_tables_by_ids(matches)

    def _get_index(self) -> SearchIndex:
        """Cached index, reloaded when the file on disk was replaced since the last load."""
        try:
            st = self.index_path.stat()
        except OSError as e:
            raise SearchIndexError(f"Error opening search index {self.index_path}: {e}") from e
        stamp = (st.st_ino, st.st_mtime_ns, st.st_size)

        if self._index is None or stamp != self._index_stamp:
            self._index = SearchIndex.from_path(self.index_path)
            self._index_stamp = stamp
            log.debug(f"Loaded search index with {len(self._index)} keys")
        return self._index
