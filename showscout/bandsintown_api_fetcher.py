"""BandsInTown artist-tour adapter: upcoming dates for a watch list of artists."""

import logging
from urllib.parse import quote

from showscout import config
from showscout.base_scraper import BaseScraper, ScraperError
from showscout.models import Event
from showscout.text_utils import DEFAULT_GENRE, clean_text, extract_genre, parse_event_datetime

logger = logging.getLogger(__name__)

API_BASE_URL = "https://rest.bandsintown.com/artists/"


class BandsInTownApiFetcher(BaseScraper):
    """
    Looks up each watched artist's tour dates and keeps the ones inside the
    metro radius. A failing artist lookup is skipped; the run only fails when
    every lookup does.
    """

    def __init__(self, app_id: str | None = None, artists: list[str] | None = None):
        super().__init__("BandsInTown", API_BASE_URL)
        self.app_id = app_id if app_id is not None else config.BANDSINTOWN_APP_ID
        self.artists = artists if artists is not None else list(config.BANDSINTOWN_ARTISTS)

    def is_configured(self) -> bool:
        return bool(self.app_id)

    def fetch_events(self) -> list[Event]:
        all_events = []
        failures = 0

        for artist in self.artists:
            try:
                all_events.extend(self.fetch_artist_events(artist))
            except ScraperError as e:
                failures += 1
                self.log_failure(f"artist {artist}", e)

        if self.artists and failures == len(self.artists):
            raise ScraperError(f"All {failures} artist lookups failed")

        return all_events

    def fetch_artist_events(self, artist: str) -> list[Event]:
        url = f"{self.base_url}{quote(artist, safe='')}/events"
        data = self.fetch_json(url, params={"app_id": self.app_id, "date": "upcoming"})

        # The API answers unknown artists with an error object instead of a list
        if not isinstance(data, list):
            logger.info("No BandsInTown events for %s", artist)
            return []

        return self.parse_artist_events(artist, data)

    def parse_artist_events(self, artist: str, api_events: list[dict]) -> list[Event]:
        """Transform an artist's tour dates, keeping only metro-area venues."""
        events = []
        for api_event in api_events:
            event_id = api_event.get("id")
            if event_id is None:
                self.log_failure("event parsing", ValueError("event without an id"))
                continue

            venue = api_event.get("venue") or {}
            try:
                latitude = float(venue["latitude"]) if venue.get("latitude") else None
                longitude = float(venue["longitude"]) if venue.get("longitude") else None
            except (TypeError, ValueError) as e:
                self.log_failure(f"event {event_id}", e)
                continue

            if not self.in_metro_area(latitude, longitude):
                continue

            date = parse_event_datetime(api_event.get("datetime"))
            if date is None:
                self.log_failure(
                    f"event {event_id}",
                    ValueError(f"unparseable datetime {api_event.get('datetime')!r}"),
                )
                continue

            venue_name = venue.get("name") or "Unknown Venue"
            description = clean_text(api_event.get("description")) or (
                f"{artist} performing at {venue_name}"
            )
            artist_data = api_event.get("artist") or {}
            offers = api_event.get("offers") or []

            events.append(
                Event(
                    name=clean_text(api_event.get("title")) or f"{artist} Concert",
                    venue=venue_name,
                    date=date,
                    description=description,
                    image_url=artist_data.get("image_url"),
                    ticket_url=(offers[0].get("url") if offers else None) or api_event.get("url"),
                    latitude=latitude,
                    longitude=longitude,
                    genre=extract_genre(description) or DEFAULT_GENRE,
                    source=self.name,
                    external_id=f"bandsintown-{event_id}",
                )
            )

        return events
