"""Contract and shared helpers for provider adapters."""

import logging
from abc import ABC, abstractmethod
from datetime import datetime

import requests
from bs4 import BeautifulSoup

from showscout.config import METRO_LATITUDE, METRO_LONGITUDE, METRO_RADIUS_KM, REQUEST_TIMEOUT
from showscout.geo import haversine_km
from showscout.models import Event, ScraperStatus

logger = logging.getLogger(__name__)

USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)


class ScraperError(Exception):
    """A provider could not be reached or its response could not be used."""


class BaseScraper(ABC):
    """
    Base for all provider adapters.

    Subclasses implement fetch_events(). Callers use scrape(), which keeps the
    diagnostic state (last run time, success flag, error count) and returns
    an empty list when the adapter has no usable configuration.

    fetch_events() should skip malformed items itself (via log_failure) and
    only raise when the source as a whole is unusable.
    """

    def __init__(self, name: str, base_url: str, timeout: float = REQUEST_TIMEOUT):
        self.name = name
        self.base_url = base_url
        self.timeout = timeout
        self._last_run_time: datetime | None = None
        self._last_run_success = False
        self._error_count = 0

    @property
    def last_run_time(self) -> datetime | None:
        return self._last_run_time

    @property
    def last_run_success(self) -> bool:
        return self._last_run_success

    @property
    def error_count(self) -> int:
        return self._error_count

    def is_configured(self) -> bool:
        """Whether the adapter has the credentials it needs."""
        return True

    @abstractmethod
    def fetch_events(self) -> list[Event]:
        """Fetch and parse events from the source."""

    def scrape(self) -> list[Event]:
        """
        Run the adapter once.

        Returns:
            Normalized events without internal ids

        Raises:
            Exception: whatever fetch_events() raised on a hard failure,
                after recording it
        """
        if not self.is_configured():
            logger.warning("%s is not configured, skipping", self.name)
            return []

        logger.info("Starting to scrape %s events...", self.name)
        self._last_run_time = datetime.now()
        try:
            events = self.fetch_events()
        except Exception as e:
            self._last_run_success = False
            self.log_failure(self.base_url, e)
            raise

        self._last_run_success = True
        logger.info("Found %d events from %s", len(events), self.name)
        return events

    def status(self) -> ScraperStatus:
        return ScraperStatus(
            name=self.name,
            last_run_time=self._last_run_time,
            last_run_success=self._last_run_success,
            error_count=self._error_count,
        )

    def log_failure(self, context: str, error: Exception) -> None:
        """Count a failure and log where it happened."""
        self._error_count += 1
        logger.warning("%s scraper error on %s: %s", self.name, context, error)

    def fetch_html(self, url: str) -> str:
        """GET a page with a browser user agent and the configured timeout."""
        try:
            response = requests.get(
                url, headers={"User-Agent": USER_AGENT}, timeout=self.timeout
            )
            response.raise_for_status()
        except requests.Timeout as e:
            raise ScraperError(f"Request to {url} timed out") from e
        except requests.RequestException as e:
            raise ScraperError(f"Request to {url} failed: {e}") from e
        return response.text

    def fetch_json(self, url: str, params: dict | None = None):
        """GET a JSON document with the configured timeout."""
        try:
            response = requests.get(
                url,
                params=params,
                headers={"User-Agent": USER_AGENT, "Accept": "application/json"},
                timeout=self.timeout,
            )
            response.raise_for_status()
            return response.json()
        except requests.Timeout as e:
            raise ScraperError(f"Request to {url} timed out") from e
        except requests.RequestException as e:
            raise ScraperError(f"Request to {url} failed: {e}") from e
        except ValueError as e:
            raise ScraperError(f"Invalid JSON from {url}") from e

    @staticmethod
    def parse_html(html: str) -> BeautifulSoup:
        return BeautifulSoup(html, "lxml")

    @staticmethod
    def distance_km(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
        return haversine_km(lat1, lng1, lat2, lng2)

    def in_metro_area(self, lat: float | None, lng: float | None) -> bool:
        """True if the coordinates fall inside the configured metro radius."""
        if lat is None or lng is None:
            return False
        return (
            self.distance_km(METRO_LATITUDE, METRO_LONGITUDE, lat, lng)
            <= METRO_RADIUS_KM
        )
