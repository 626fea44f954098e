"""
ACS Explorer Exceptions

One exception per failing stage so callers can tell a bad identifier from a
network failure or a broken cache.
"""
from typing import Optional, Union


class ACSExplorerError(Exception):
    """Base exception for ACS Explorer errors."""
    pass


class ParseError(ACSExplorerError):
    """Malformed table/variable identifier or table record text."""

    def __init__(self, token: str, raw: Union[bytes, str], position: int = 0, message: Optional[str] = None):
        if isinstance(raw, str):
            raw = raw.encode("utf-8")
        self.token = token
        self.raw = raw
        self.position = position
        super().__init__(message or f"Invalid {token} at position {position}: {raw!r}")


class FetchError(ACSExplorerError):
    """Network failure or non-success status from the Census API."""
    pass


class DecodeError(ACSExplorerError):
    """Census API body is not the expected JSON document."""
    pass


class StoreError(ACSExplorerError):
    """Catalog database read or write failed."""
    pass


class SearchIndexError(ACSExplorerError):
    """Full-text index build or read failed."""
    pass
