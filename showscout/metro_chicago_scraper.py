"""Adapter for the Metro Chicago shows calendar (https://metrochicago.com/shows/)."""

import logging
from datetime import datetime

from showscout.base_scraper import BaseScraper
from showscout.models import Event
from showscout.text_utils import (
    DEFAULT_GENRE,
    clean_text,
    extract_genre,
    extract_price,
    make_external_id,
    parse_event_datetime,
)

logger = logging.getLogger(__name__)

VENUE_NAME = "Metro Chicago"
VENUE_LATITUDE = 41.9470
VENUE_LONGITUDE = -87.6603


class MetroChicagoScraper(BaseScraper):
    """Scrapes the venue's event listing page."""

    def __init__(self):
        super().__init__("MetroChicago", "https://metrochicago.com/shows/")

    def fetch_events(self) -> list[Event]:
        html = self.fetch_html(self.base_url)
        return self.parse_events(html)

    def parse_events(self, html: str, reference: datetime | None = None) -> list[Event]:
        """
        Parse every event article on the listing page.

        Args:
            html: Listing page HTML
            reference: Date used to infer missing years

        Returns:
            Events that parsed cleanly; malformed articles are skipped
        """
        soup = self.parse_html(html)
        events = []

        for article in soup.select(".mec-event-article"):
            try:
                events.append(self._parse_article(article, reference))
            except (AttributeError, ValueError, TypeError) as e:
                self.log_failure("event parsing", e)
                continue

        return events

    def _parse_article(self, article, reference: datetime | None) -> Event:
        title = article.select_one(".mec-event-title")
        name = clean_text(title.get_text() if title else None)
        if not name:
            raise ValueError("event without a title")

        date_label = article.select_one(".mec-start-date-label")
        time_label = article.select_one(".mec-start-time, .mec-event-time")
        date = parse_event_datetime(
            date_label.get_text() if date_label else None,
            time_label.get_text() if time_label else None,
            reference=reference,
        )
        if date is None:
            raise ValueError(f"unparseable date for {name!r}")

        content = article.select_one(".mec-event-content p")
        description = clean_text(content.get_text() if content else None)

        booking = article.select_one(".mec-booking-button")
        image = article.select_one(".mec-event-image img")
        cost = article.select_one(".mec-event-cost")

        return Event(
            name=name,
            venue=VENUE_NAME,
            date=date,
            description=description or None,
            image_url=image.get("src") if image else None,
            ticket_url=booking.get("href") if booking else None,
            latitude=VENUE_LATITUDE,
            longitude=VENUE_LONGITUDE,
            genre=extract_genre(f"{description} {name}") or DEFAULT_GENRE,
            price=extract_price(cost.get_text() if cost else description),
            source=self.name,
            external_id=make_external_id("metrochicago", name, date),
        )
