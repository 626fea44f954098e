"""
ACS Module

Catalog of American Community Survey tables and variables.

Components:
- grammar: table/variable identifier parsing and formatting
- CensusClient: API client for the variables.json listings
- ACSCatalogRefresher: full catalog rebuild (database + search index)
- Explorer: queries over the local catalog

Usage:
    from acs_explorer.acs import Explorer

    explorer = Explorer.from_settings()
    explorer.refresh()
    tables = explorer.fulltext_search("median household income")
"""
from .acs_client import CensusClient
from .acs_collector import ACSCatalogRefresher, RefreshProgress
from .explorer import Explorer

__all__ = [
    'CensusClient',
    'ACSCatalogRefresher',
    'RefreshProgress',
    'Explorer',
]
