"""
Census API Client

Fetches the ACS variable listings used to build the local catalog:

    https://api.census.gov/data/{year}/{acs1|acs5}/variables.json

Key features:
  - Automatic retry with exponential backoff on 5xx and network errors
  - Polite pacing between requests
  - Raw bytes out; decoding is a separate step so a bad body can be told
    apart from a failed request

Author: ACS Explorer
Created: 2026-10-19
"""
from __future__ import annotations
import json
import logging
import random
import time
from typing import Any, Dict, Optional
from urllib.parse import urljoin

import requests

from acs_explorer.acs.models import Estimate
from acs_explorer.config import CENSUS_VARS_FILE
from acs_explorer.errors import DecodeError, FetchError

log = logging.getLogger("CensusClient")


class CensusClient:
    """
    Client for the Census Data API variable listings.

    Usage:
        client = CensusClient(api_key="YOUR_KEY")
        raw = client.fetch_variables(2015, Estimate.FIVE_YEAR)
        variables = parse_variables_payload(raw)
    """

    BASE_URL = "https://api.census.gov/data/"

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: str = BASE_URL,
        session: Optional[requests.Session] = None,
        timeout: int = 60,
        max_retries: int = 3,
        backoff: float = 0.7,
        sleep_sec: float = 0.0,
        user_agent: str = "ACSExplorer/1.0",
    ):
        """
        Initialize Census API client.

        Args:
            api_key: Optional Census API key
            base_url: API root, must end with '/'
            session: Optional requests session for connection pooling
            timeout: Request timeout in seconds
            max_retries: Maximum attempts for retryable failures
            backoff: Initial backoff in seconds, doubled per retry
            sleep_sec: Pause after every successful request
            user_agent: User agent string for requests
        """
        self.api_key = api_key
        self.base_url = base_url if base_url.endswith("/") else base_url + "/"
        self.session = session or requests.Session()
        self.session.headers.update({"User-Agent": user_agent})
        self.timeout = timeout
        self.max_retries = max(1, max_retries)
        self.backoff = backoff
        self.sleep_sec = sleep_sec

        self._request_count = 0

    @classmethod
    def from_settings(cls, census_settings) -> "CensusClient":
        return cls(
            api_key=census_settings.api_key,
            base_url=census_settings.base_url,
            timeout=census_settings.timeout,
            max_retries=census_settings.retries,
            backoff=census_settings.backoff,
            sleep_sec=census_settings.sleep_sec,
        )

    def variables_url(self, year: int, estimate: Estimate) -> str:
        return urljoin(self.base_url, f"{year}/{estimate.url_frag}{CENSUS_VARS_FILE}")

    def fetch_variables(self, year: int, estimate: Estimate) -> bytes:
        """
        Fetch the raw variables.json body for one year and estimate.

        Raises:
            FetchError: Network failure or non-200 status
        """
        return self._get(self.variables_url(year, estimate))

    # ===================== Request Handling ===================== #

    def _get(self, url: str) -> bytes:
        params = {"key": self.api_key} if self.api_key else None
        backoff = self.backoff
        last_error: Optional[Exception] = None

        for attempt in range(1, self.max_retries + 1):
            try:
                self._request_count += 1
                response = self.session.get(url, params=params, timeout=self.timeout)

                if response.status_code == 429 or response.status_code >= 500:
                    raise _RetryableError(f"HTTP {response.status_code} from {url}")

                if response.status_code != 200:
                    raise FetchError(f"Error fetching from census api: HTTP {response.status_code} for {url}")

                if self.sleep_sec:
                    time.sleep(self.sleep_sec)
                return response.content

            except (_RetryableError, requests.RequestException) as e:
                last_error = e
                if attempt == self.max_retries:
                    break

                sleep_time = backoff + _jitter(0.1, 0.5)
                log.warning(f"{e}; retry {attempt}/{self.max_retries} in {sleep_time:.1f}s")
                time.sleep(sleep_time)
                backoff = min(60, backoff * 2)

        raise FetchError(f"Request failed after {self.max_retries} attempts: {last_error}") from last_error

    def get_request_stats(self) -> Dict[str, Any]:
        return {"requests_made": self._request_count}


def parse_variables_payload(raw: bytes) -> Dict[str, Any]:
    """
    Decode a variables.json body and return its "variables" object.

    Raises:
        DecodeError: Body is not JSON or has no "variables" object
    """
    try:
        data = json.loads(raw)
    except (ValueError, TypeError) as e:
        raise DecodeError(f"Error parsing json response: {e}") from e

    variables = data.get("variables") if isinstance(data, dict) else None
    if not isinstance(variables, dict):
        raise DecodeError("JSON response has no 'variables' object")
    return variables


# ===================== Exceptions ===================== #

class _RetryableError(Exception):
    """Internal exception for retryable errors."""
    pass


# ===================== Helpers ===================== #

def _jitter(min_val: float, max_val: float) -> float:
    """Add random jitter to prevent thundering herd."""
    return random.uniform(min_val, max_val)
