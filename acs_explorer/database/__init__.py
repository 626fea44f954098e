"""Catalog database models, connection handling and the catalog store."""
