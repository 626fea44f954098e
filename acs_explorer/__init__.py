"""
ACS Explorer

Local, offline-searchable catalog of American Community Survey tables and
variables built from the Census API variable listings.
"""
__version__ = "0.1.0"
