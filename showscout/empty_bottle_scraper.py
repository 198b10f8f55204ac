"""Adapter for the Empty Bottle events calendar (https://www.emptybottle.com)."""

import hashlib
import logging
from datetime import datetime
from urllib.parse import urljoin

from showscout.base_scraper import BaseScraper
from showscout.models import Event
from showscout.text_utils import (
    DEFAULT_GENRE,
    clean_text,
    extract_genre,
    extract_price,
    parse_event_datetime,
)

logger = logging.getLogger(__name__)

VENUE_NAME = "Empty Bottle"
VENUE_LATITUDE = 41.900271
VENUE_LONGITUDE = -87.686584


def _generate_event_id(event_url: str) -> str:
    """Generate a stable external id from the event page URL."""
    digest = hashlib.md5(event_url.encode(), usedforsecurity=False).hexdigest()
    return f"empty-bottle-{digest}"


def _show_time_text(time_text: str) -> str:
    """Prefer the show time over the door time ("DOORS: 7:30PM, SHOW: 8:30PM")."""
    upper = time_text.upper()
    if "SHOW:" in upper:
        return time_text[upper.index("SHOW:") + len("SHOW:"):]
    return time_text


class EmptyBottleScraper(BaseScraper):
    """Scrapes show cards from the venue's event calendar page."""

    def __init__(self):
        super().__init__("Empty Bottle", "https://www.emptybottle.com")

    def fetch_events(self) -> list[Event]:
        html = self.fetch_html(f"{self.base_url}/events/")
        return self.parse_events(html)

    def parse_events(self, html: str, reference: datetime | None = None) -> list[Event]:
        soup = self.parse_html(html)
        events = []
        seen_ids = set()

        for card in soup.select(".show-card"):
            try:
                event = self._parse_card(card, reference)
            except (AttributeError, ValueError, TypeError) as e:
                self.log_failure("show card parsing", e)
                continue

            if event.external_id in seen_ids:
                logger.debug("Skipping repeated show card for %s", event.name)
                continue
            seen_ids.add(event.external_id)
            events.append(event)

        return events

    def _parse_card(self, card, reference: datetime | None) -> Event:
        title = card.select_one(".show-title")
        name = clean_text(title.get_text() if title else None)
        if not name:
            raise ValueError("show card without a title")

        link = card.select_one("a.show-header-link")
        detail_href = link.get("href", "") if link else ""
        event_url = urljoin(self.base_url, detail_href) if detail_href else self.base_url

        date_el = card.select_one(".show-date")
        time_el = card.select_one(".show-time")
        time_text = _show_time_text(clean_text(time_el.get_text())) if time_el else None
        date = parse_event_datetime(
            date_el.get_text() if date_el else None, time_text, reference=reference
        )
        if date is None:
            raise ValueError(f"unparseable date for {name!r}")

        details = card.select_one(".show-details p")
        description = clean_text(details.get_text() if details else None)

        tickets = card.select_one(".show-links a.show-tickets")
        image = card.select_one(".show-img img")
        price_el = card.select_one(".show-price")

        return Event(
            name=name,
            venue=VENUE_NAME,
            date=date,
            description=description or None,
            image_url=image.get("src") if image else None,
            ticket_url=tickets.get("href") if tickets else event_url,
            latitude=VENUE_LATITUDE,
            longitude=VENUE_LONGITUDE,
            genre=extract_genre(name) or extract_genre(description) or DEFAULT_GENRE,
            price=extract_price(price_el.get_text() if price_el else description),
            source=self.name,
            external_id=_generate_event_id(event_url),
        )
