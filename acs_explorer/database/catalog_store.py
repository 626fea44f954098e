"""
ACS Catalog Store

Transactional bulk writer and reader over the acs_tables / acs_vars /
acs_est_years tables.

A refresh replaces the whole catalog in one transaction: tables are dropped,
recreated and filled before the commit, so readers only ever see the previous
catalog or the complete new one.

Author: ACS Explorer
Created: 2026-10-19
"""
import logging
from collections import defaultdict
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Set, Tuple

from sqlalchemy import func, insert, inspect, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from acs_explorer.acs.models import (
    Estimate, TableCode, TablePrefix, TableRecord, VariableCode, VariableRecord, VariableType,
)
from acs_explorer.database.acs_models import Base, ACSTable, ACSVariable, ACSEstimateYear
from acs_explorer.database.connection import make_session_factory, session_scope
from acs_explorer.errors import ParseError, StoreError

log = logging.getLogger("CatalogStore")

CATALOG_TABLES = [ACSTable.__table__, ACSVariable.__table__, ACSEstimateYear.__table__]

# (table code, estimate) -> years
EstYears = Mapping[Tuple[TableCode, Estimate], Iterable[int]]


def _suffix_filter(column, suffix: Optional[str]):
    return column.is_(None) if suffix is None else column == suffix


class CatalogStore:
    """
    Reader/writer for the catalog database.

    Usage:
        store = CatalogStore(engine)
        store.replace_catalog(tables, variables, est_years)
        records = store.query_by_table_id(TablePrefix.B, "20005", None)
    """

    def __init__(self, engine: Engine):
        self.engine = engine
        self._session_factory = make_session_factory(engine)

    # ===================== Write ===================== #

    def replace_catalog(
        self,
        tables: List[Tuple[int, TableRecord]],
        variables: Iterable[VariableRecord],
        est_years: EstYears,
        before_commit: Optional[Callable[[], None]] = None,
    ) -> Dict[str, int]:
        """
        Drop, recreate and fill all catalog tables in a single transaction.

        Args:
            tables: (primary key, record) pairs
            variables: Variable records to insert
            est_years: Years observed per (table code, estimate)
            before_commit: Called after the inserts; raising rolls everything back

        Returns:
            Row counts per table
        """
        table_rows = [
            {
                'id': pk,
                'prefix': record.code.prefix.value,
                'table_id': record.code.table_id,
                'suffix': record.code.suffix,
                'label': record.label,
            }
            for pk, record in tables
        ]
        var_rows = [
            {
                'prefix': var.code.table_code.prefix.value,
                'table_id': var.code.table_code.table_id,
                'suffix': var.code.table_code.suffix,
                'column_id': var.code.column_id,
                'var_type': var.code.var_type.value,
                'estimate': var.estimate.value,
                'year': var.year,
                'label': var.label,
            }
            for var in sorted(variables)
        ]
        est_year_rows = [
            {
                'prefix': code.prefix.value,
                'table_id': code.table_id,
                'suffix': code.suffix,
                'estimate': estimate.value,
                'year': year,
            }
            for (code, estimate), years in sorted(
                est_years.items(), key=lambda item: (item[0][0].sort_key(), item[0][1].value)
            )
            for year in sorted(set(years))
        ]

        try:
            with session_scope(self._session_factory) as session:
                conn = session.connection()
                Base.metadata.drop_all(bind=conn, tables=CATALOG_TABLES)
                Base.metadata.create_all(bind=conn, tables=CATALOG_TABLES)

                if table_rows:
                    session.execute(insert(ACSTable), table_rows)
                if var_rows:
                    session.execute(insert(ACSVariable), var_rows)
                if est_year_rows:
                    session.execute(insert(ACSEstimateYear), est_year_rows)

                if before_commit is not None:
                    session.flush()
                    before_commit()
        except SQLAlchemyError as e:
            raise StoreError(f"Error writing catalog: {e}") from e

        counts = {
            'acs_tables': len(table_rows),
            'acs_vars': len(var_rows),
            'acs_est_years': len(est_year_rows),
        }
        log.info(f"Catalog written: {counts}")
        return counts

    # ===================== Read ===================== #

    def is_initialized(self) -> bool:
        try:
            names = set(inspect(self.engine).get_table_names())
        except SQLAlchemyError as e:
            raise StoreError(f"Error inspecting catalog: {e}") from e
        return all(t.name in names for t in CATALOG_TABLES)

    def query_by_table_id(
        self,
        prefix: Optional[TablePrefix],
        table_id: str,
        suffix: Optional[str] = None,
    ) -> List[TableRecord]:
        """Tables matching table_id; a missing prefix or suffix matches any."""
        stmt = select(ACSTable).where(ACSTable.table_id == table_id)
        if prefix is not None:
            stmt = stmt.where(ACSTable.prefix == prefix.value)
        if suffix is not None:
            stmt = stmt.where(ACSTable.suffix == suffix)

        rows = self._fetch_scalars(stmt, "querying tables")
        return sorted(self._to_table_record(row) for row in rows)

    def get_tables_by_ids(self, ids: Iterable[int]) -> List[TableRecord]:
        ids = sorted(set(ids))
        if not ids:
            return []
        stmt = select(ACSTable).where(ACSTable.id.in_(ids))
        rows = self._fetch_scalars(stmt, "loading tables")
        return sorted(self._to_table_record(row) for row in rows)

    def describe_table(self, code: TableCode) -> List[VariableRecord]:
        """Every variable record of a table across all years and estimates."""
        stmt = select(ACSVariable).where(
            ACSVariable.table_id == code.table_id,
            ACSVariable.prefix == code.prefix.value,
            _suffix_filter(ACSVariable.suffix, code.suffix),
        )
        rows = self._fetch_scalars(stmt, "describing table")
        return sorted(self._to_variable_record(row) for row in rows)

    def query_est_years(self, code: TableCode) -> Dict[Estimate, List[int]]:
        stmt = select(ACSEstimateYear.estimate, ACSEstimateYear.year).where(
            ACSEstimateYear.table_id == code.table_id,
            ACSEstimateYear.prefix == code.prefix.value,
            _suffix_filter(ACSEstimateYear.suffix, code.suffix),
        )
        result: Dict[Estimate, Set[int]] = defaultdict(set)
        try:
            with session_scope(self._session_factory) as session:
                for estimate, year in session.execute(stmt):
                    result[Estimate.from_code(estimate)].add(year)
        except SQLAlchemyError as e:
            raise StoreError(f"Error querying estimate years: {e}") from e
        except ParseError as e:
            raise StoreError(f"Corrupt estimate in catalog: {e}") from e

        return {est: sorted(result[est]) for est in sorted(result, key=lambda e: e.value)}

    def catalog_stats(self) -> Dict[str, int]:
        """Row counts of each catalog table"""
        stats = {}
        try:
            with session_scope(self._session_factory) as session:
                for model in (ACSTable, ACSVariable, ACSEstimateYear):
                    stats[model.__tablename__] = session.scalar(
                        select(func.count()).select_from(model)
                    )
        except SQLAlchemyError as e:
            raise StoreError(f"Error reading catalog stats: {e}") from e
        return stats

    # ===================== Helpers ===================== #

    def _fetch_scalars(self, stmt, action: str) -> list:
        try:
            with session_scope(self._session_factory) as session:
                return list(session.execute(stmt).scalars())
        except SQLAlchemyError as e:
            raise StoreError(f"Error {action}: {e}") from e

    @staticmethod
    def _to_table_code(row) -> TableCode:
        return TableCode(
            prefix=TablePrefix.from_code(row.prefix),
            table_id=row.table_id,
            suffix=row.suffix,
        )

    def _to_table_record(self, row: ACSTable) -> TableRecord:
        try:
            return TableRecord(code=self._to_table_code(row), label=row.label)
        except ParseError as e:
            raise StoreError(f"Corrupt table row {row!r}: {e}") from e

    def _to_variable_record(self, row: ACSVariable) -> VariableRecord:
        try:
            return VariableRecord(
                code=VariableCode(
                    table_code=self._to_table_code(row),
                    column_id=row.column_id,
                    var_type=VariableType.from_code(row.var_type),
                ),
                label=row.label,
                year=row.year,
                estimate=Estimate.from_code(row.estimate),
            )
        except ParseError as e:
            raise StoreError(f"Corrupt variable row {row!r}: {e}") from e
