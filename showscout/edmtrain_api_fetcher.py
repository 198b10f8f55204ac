"""EDMTrain API adapter for electronic music events."""

import logging
from datetime import datetime, time, timedelta

from showscout import config
from showscout.base_scraper import BaseScraper, ScraperError
from showscout.models import Event
from showscout.text_utils import extract_genre

logger = logging.getLogger(__name__)


class EDMTrainAPIError(ScraperError):
    """Base exception for EDMTrain API errors."""


class EDMTrainAuthError(EDMTrainAPIError):
    """Authentication/API key error."""


class EDMTrainDataError(EDMTrainAPIError):
    """Invalid data from API or parsing error."""


API_BASE_URL = "https://edmtrain.com/api"
DEFAULT_GENRE = "electronic"
MAX_ARTISTS_IN_GENERATED_NAME = 3  # Show first N artists in generated event names


class EDMTrainApiFetcher(BaseScraper):
    """
    Fetches upcoming events from EDMTrain.

    Queries the configured location ids when present; otherwise queries
    without a location filter and keeps only venues inside the metro radius.
    """

    def __init__(
        self,
        api_key: str | None = None,
        location_ids: list[int] | None = None,
        lookahead_days: int = config.LOOKAHEAD_DAYS,
    ):
        super().__init__("EDMTrain", f"{API_BASE_URL}/events")
        self.api_key = api_key if api_key is not None else config.EDMTRAIN_API_KEY
        self.location_ids = (
            location_ids if location_ids is not None else config.EDMTRAIN_LOCATION_IDS
        )
        self.lookahead_days = lookahead_days

    def is_configured(self) -> bool:
        return bool(self.api_key)

    def fetch_events(self) -> list[Event]:
        start_date, end_date = _calculate_date_range(self.lookahead_days)
        params = {
            "client": self.api_key,
            "startDate": start_date,
            "endDate": end_date,
            "includeElectronicGenreInd": "true",
            "includeOtherGenreInd": "false",
        }
        if self.location_ids:
            params["locationIds"] = ",".join(str(lid) for lid in self.location_ids)

        data = self.fetch_json(self.base_url, params=params)
        api_events = _unwrap_response(data)
        logger.info("Received %d events from EDMTrain", len(api_events))

        events = self.parse_events(api_events)
        if not self.location_ids:
            events = [e for e in events if self.in_metro_area(e.latitude, e.longitude)]
        return events

    def parse_events(self, api_events: list[dict]) -> list[Event]:
        """Transform API events, skipping invalid entries."""
        events = []
        for api_event in api_events:
            try:
                transformed = _transform_api_event(api_event, self.name)
            except (EDMTrainDataError, KeyError, TypeError, ValueError) as e:
                self.log_failure(f"event {api_event.get('id', 'unknown')}", e)
                continue
            if transformed is not None:
                events.append(transformed)
        return events


def _unwrap_response(data) -> list[dict]:
    """
    Check the API envelope and return its event list.

    Raises:
        EDMTrainAuthError: If the API rejects the client key
        EDMTrainAPIError: If the API reports any other failure
    """
    if not isinstance(data, dict):
        raise EDMTrainDataError("Unexpected response shape")

    if not data.get("success", False):
        error_msg = data.get("message", "Unknown API error")
        if "client" in error_msg.lower() or "key" in error_msg.lower():
            raise EDMTrainAuthError(f"API rejected client key: {error_msg}")
        raise EDMTrainAPIError(f"API request failed: {error_msg}")

    return data.get("data", [])


def _transform_api_event(api_event: dict, source: str) -> Event | None:
    """
    Transform single API event response to an Event.

    Args:
        api_event: Raw event dict from API
        source: Adapter name recorded as provenance

    Returns:
        Event object or None if invalid
    """
    event_id = api_event.get("id", "unknown")

    if not api_event.get("date"):
        logger.warning("Skipping event %s: missing date", event_id)
        return None

    venue_data = api_event.get("venue") or {}
    venue_name = venue_data.get("name")
    if not venue_name:
        logger.warning("Skipping event %s: missing venue name", event_id)
        return None

    event_date = _parse_event_date(api_event["date"])
    start_time = _parse_iso_time(api_event["startTime"]) if api_event.get("startTime") else None
    if start_time is not None:
        event_date = datetime.combine(event_date.date(), start_time)

    artist_names = _parse_artists(api_event.get("artistList", []))
    event_name = api_event.get("name") or _generate_event_name_from_artists(artist_names)
    if not event_name:
        logger.warning("Skipping event %s: no name and no artists", event_id)
        return None

    description = f"Lineup: {', '.join(artist_names)}" if artist_names else None
    if api_event.get("festivalInd"):
        description = f"Festival. {description}" if description else "Festival"

    latitude = venue_data.get("latitude")
    longitude = venue_data.get("longitude")

    return Event(
        name=event_name,
        venue=venue_name,
        date=event_date,
        description=description,
        ticket_url=api_event.get("link"),
        latitude=float(latitude) if latitude is not None else None,
        longitude=float(longitude) if longitude is not None else None,
        genre=extract_genre(f"{event_name} {description or ''}") or DEFAULT_GENRE,
        source=source,
        external_id=f"edmtrain-{api_event['id']}",
    )


def _parse_artists(artist_list: list[dict]) -> list[str]:
    """Extract artist names from API lineup data."""
    return [artist["name"] for artist in artist_list if artist.get("name")]


def _generate_event_name_from_artists(artist_names: list[str]) -> str | None:
    """
    Generate an event name from the artist lineup.

    Args:
        artist_names: Artist names in lineup order

    Returns:
        Generated event name or None if no artists
    """
    if not artist_names:
        return None

    if len(artist_names) <= MAX_ARTISTS_IN_GENERATED_NAME:
        return " & ".join(artist_names)

    shown = artist_names[:MAX_ARTISTS_IN_GENERATED_NAME]
    remaining = len(artist_names) - MAX_ARTISTS_IN_GENERATED_NAME
    return f"{' & '.join(shown)} +{remaining} more"


def _parse_event_date(event_date: str) -> datetime:
    """
    Parse ISO date string (YYYY-MM-DD) to a datetime at midnight.

    Raises:
        EDMTrainDataError: If event_date is not in valid ISO format
    """
    try:
        return datetime.strptime(event_date, "%Y-%m-%d")
    except ValueError as e:
        raise EDMTrainDataError(f"Invalid date format: {event_date}") from e


def _parse_iso_time(time_str: str) -> time | None:
    """
    Parse ISO time string to time object.

    Args:
        time_str: ISO format time string ("HH:MM:SS" or "HH:MM"), optionally
            prefixed with a date ("YYYY-MM-DDTHH:MM:SS")

    Returns:
        time object or None if parsing fails
    """
    if "T" in time_str:
        time_str = time_str.split("T", 1)[1]

    for fmt in ["%H:%M:%S", "%H:%M"]:
        try:
            return datetime.strptime(time_str, fmt).time()
        except ValueError:
            continue

    logger.warning("Failed to parse time string: %s", time_str)
    return None


def _calculate_date_range(lookahead_days: int) -> tuple[str, str]:
    """
    Calculate date range for event query (today + lookahead_days).

    Returns:
        Tuple of (start_date, end_date) in ISO format
    """
    today = datetime.now()
    end_date = today + timedelta(days=lookahead_days)

    return (today.strftime("%Y-%m-%d"), end_date.strftime("%Y-%m-%d"))
