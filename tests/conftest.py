"""Shared pytest fixtures for catalog, refresh and query tests."""

import json
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple, Union

import pytest

from acs_explorer.acs.models import (
    Estimate, TableCode, TablePrefix, VariableCode, VariableRecord, VariableType,
)
from acs_explorer.database.catalog_store import CatalogStore
from acs_explorer.database.connection import create_catalog_engine
from acs_explorer.errors import FetchError


OCCUPATION_LABEL = (
    "Detailed Occupation for the Full-Time, Year-Round Civilian Employed "
    "Female Population 16 Years and Over"
)


def make_var(
    column_id: str,
    year: int,
    label: str,
    table_id: str = "20005",
    prefix: TablePrefix = TablePrefix.B,
    suffix: Optional[str] = None,
    estimate: Estimate = Estimate.FIVE_YEAR,
    var_type: VariableType = VariableType.VALUE,
) -> VariableRecord:
    return VariableRecord(
        code=VariableCode(
            table_code=TableCode(prefix=prefix, table_id=table_id, suffix=suffix),
            column_id=column_id,
            var_type=var_type,
        ),
        label=label,
        year=year,
        estimate=estimate,
    )


def make_payload(entries: Iterable[Tuple[str, str, str]]) -> bytes:
    """variables.json body for (name, label, concept) entries plus the usual non-variable keys."""
    variables: Dict[str, Dict[str, str]] = {
        "for": {"label": "Census API FIPS 'for' clause", "concept": "Census API Geography Specification"},
        "in": {"label": "Census API FIPS 'in' clause", "concept": "Census API Geography Specification"},
        "NAME": {"label": "Geographic Area Name", "concept": "Selectable Geographies"},
    }
    for name, label, concept in entries:
        variables[name] = {"label": label, "concept": concept, "predicateType": "int"}
    return json.dumps({"variables": variables}).encode("utf-8")


def standard_payload(year: int) -> bytes:
    """B20005 and B24126 listings; B20005 grows a column from 2012 on."""
    entries = [
        ("B20005_001E", "Total:", "B20005.  Sex by Work Experience by Earnings"),
        ("B20005_001M", "Total:", "B20005.  Sex by Work Experience by Earnings"),
        ("B20005_002E", "Total:!!Male:", "B20005.  Sex by Work Experience by Earnings"),
        ("B24126_001E", "Total:", f"B24126.  {OCCUPATION_LABEL}"),
        ("C24126_001E", "Total:", "C24126.  Occupation for the Civilian Population"),
        ("B20005_001EA", "Annotation of Total:", "B20005.  Sex by Work Experience by Earnings"),
    ]
    if year >= 2012:
        entries.append(("B20005_003E", "Total:!!Female:", "B20005.  Sex by Work Experience by Earnings"))
    return make_payload(entries)


class FakeCensusClient:
    """Stands in for CensusClient; responses keyed by (year, estimate)."""

    def __init__(self, responses: Optional[Dict[Tuple[int, Estimate], Union[bytes, Exception]]] = None, default=None):
        self.responses = responses or {}
        self.default = default
        self.calls: List[Tuple[int, Estimate]] = []

    def fetch_variables(self, year: int, estimate: Estimate) -> bytes:
        self.calls.append((year, estimate))
        response = self.responses.get((year, estimate))
        if response is None and self.default is not None:
            response = self.default(year, estimate)
        if response is None:
            raise FetchError(f"Error fetching from census api: HTTP 404 for {year}/{estimate.url_frag}")
        if isinstance(response, Exception):
            raise response
        return response


@pytest.fixture
def engine(tmp_path: Path):
    engine = create_catalog_engine(f"sqlite:///{tmp_path / 'vars.db'}")
    yield engine
    engine.dispose()


@pytest.fixture
def store(engine) -> CatalogStore:
    return CatalogStore(engine)


@pytest.fixture
def index_path(tmp_path: Path) -> Path:
    return tmp_path / "vars.idx"


@pytest.fixture
def fake_client() -> FakeCensusClient:
    return FakeCensusClient(default=lambda year, estimate: standard_payload(year))
