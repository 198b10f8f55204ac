"""Eventbrite API adapter for music events around the metro area."""

import logging

from showscout import config
from showscout.base_scraper import BaseScraper
from showscout.models import Event
from showscout.text_utils import (
    DEFAULT_GENRE,
    FREE_PRICE,
    UNKNOWN_PRICE,
    clean_text,
    extract_genre,
    parse_event_datetime,
)

logger = logging.getLogger(__name__)

API_URL = "https://www.eventbriteapi.com/v3/events/search/"
MUSIC_CATEGORY_ID = "103"
SEARCH_RADIUS = "30mi"
MAX_PAGES = 5


class EventbriteApiFetcher(BaseScraper):
    """Searches Eventbrite's music category near the metro center."""

    def __init__(self, api_key: str | None = None):
        super().__init__("Eventbrite", API_URL)
        self.api_key = api_key if api_key is not None else config.EVENTBRITE_API_KEY

    def is_configured(self) -> bool:
        return bool(self.api_key)

    def fetch_events(self) -> list[Event]:
        events = []
        page = 1

        while page <= MAX_PAGES:
            params = {
                "token": self.api_key,
                "location.latitude": config.METRO_LATITUDE,
                "location.longitude": config.METRO_LONGITUDE,
                "categories": MUSIC_CATEGORY_ID,
                "within": SEARCH_RADIUS,
                "expand": "venue",
                "page": page,
            }
            data = self.fetch_json(self.base_url, params=params)
            if not isinstance(data, dict) or "events" not in data:
                raise ValueError("Invalid response from Eventbrite API")

            events.extend(self.parse_events(data["events"]))

            if not data.get("pagination", {}).get("has_more_items"):
                break
            page += 1

        return events

    def parse_events(self, api_events: list[dict]) -> list[Event]:
        """Transform API events, skipping the ones that fail to parse."""
        events = []
        for api_event in api_events:
            try:
                event = _transform_api_event(api_event, self.name)
            except (KeyError, ValueError, TypeError, AttributeError) as e:
                self.log_failure(f"event parsing - {api_event.get('id', 'unknown')}", e)
                continue
            if event is not None:
                events.append(event)
        return events


def _transform_api_event(api_event: dict, source: str) -> Event | None:
    """
    Transform a single Eventbrite API event.

    Returns:
        Event, or None when the event lacks a start time
    """
    name = clean_text((api_event.get("name") or {}).get("text")) or "Unknown Event"
    description = clean_text((api_event.get("description") or {}).get("text"))

    start = api_event.get("start") or {}
    date = parse_event_datetime(start.get("local") or start.get("utc"))
    if date is None:
        logger.warning("Skipping event %s: missing start time", api_event.get("id"))
        return None

    venue = api_event.get("venue") or {}
    latitude = venue.get("latitude")
    longitude = venue.get("longitude")

    logo = api_event.get("logo") or {}

    return Event(
        name=name,
        venue=venue.get("name") or "Unknown Venue",
        date=date,
        description=description or None,
        image_url=logo.get("url"),
        ticket_url=api_event.get("url"),
        latitude=float(latitude) if latitude else None,
        longitude=float(longitude) if longitude else None,
        genre=extract_genre(f"{description} {name}") or DEFAULT_GENRE,
        price=FREE_PRICE if api_event.get("is_free") else UNKNOWN_PRICE,
        source=source,
        external_id=f"eventbrite-{api_event['id']}",
    )
