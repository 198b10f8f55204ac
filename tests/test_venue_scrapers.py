"""Tests for the venue HTML adapters."""

from datetime import datetime

import pytest

from showscout.base_scraper import ScraperError
from showscout.empty_bottle_scraper import EmptyBottleScraper
from showscout.metro_chicago_scraper import MetroChicagoScraper

REFERENCE = datetime(2025, 1, 10)

METRO_HTML = """
<html><body>
<article class="mec-event-article">
  <div class="mec-event-image"><img src="https://metrochicago.com/img/band.jpg"></div>
  <h3 class="mec-event-title"><a>The   Smashing
     Pumpkins</a></h3>
  <span class="mec-start-date-label">Sat, Mar 15</span>
  <span class="mec-start-time">Doors 7pm</span>
  <div class="mec-event-content"><p>An alternative rock legend returns.</p></div>
  <span class="mec-event-cost">$45 - $65</span>
  <a class="mec-booking-button" href="https://tickets.example.com/sp">Tickets</a>
</article>
<article class="mec-event-article">
  <h3 class="mec-event-title"><a>Mystery Night</a></h3>
  <span class="mec-start-date-label">Whenever</span>
</article>
<article class="mec-event-article">
  <h3 class="mec-event-title"><a>Open Decks</a></h3>
  <span class="mec-start-date-label">April 2</span>
  <div class="mec-event-content"><p>No cover. Bring your records.</p></div>
</article>
</body></html>
"""

EMPTY_BOTTLE_HTML = """
<html><body>
<div class="show-card">
  <div class="show-img"><img src="https://www.emptybottle.com/img/1.jpg"></div>
  <a class="show-header-link" href="/shows/twin-peaks/"><h2 class="show-title">Twin Peaks</h2></a>
  <div class="show-date">Fri, Feb 7</div>
  <div class="show-time">DOORS: 7:30PM, SHOW: 8:30PM</div>
  <div class="show-details"><p>Garage punk from the neighborhood.</p></div>
  <div class="show-price">$18</div>
  <div class="show-links"><a class="show-tickets" href="https://tix.example.com/tp">Buy</a></div>
</div>
<div class="show-card">
  <a class="show-header-link" href="/shows/twin-peaks/"><h2 class="show-title">Twin Peaks</h2></a>
  <div class="show-date">Fri, Feb 7</div>
  <div class="show-links"><a class="show-tickets" href="https://tix.example.com/tp">Buy</a></div>
</div>
<div class="show-card">
  <div class="show-date">Sat, Feb 8</div>
</div>
</body></html>
"""


SHARED_TICKET_HTML = """
<html><body>
<div class="show-card">
  <a class="show-header-link" href="/event/band-a/"><h2 class="show-title">Band A</h2></a>
  <div class="show-date">Sat, Feb 8</div>
  <div class="show-time">SHOW: 9PM</div>
  <div class="show-links"><a class="show-tickets" href="https://tix.example.com/empty-bottle">Buy</a></div>
</div>
<div class="show-card">
  <a class="show-header-link" href="/event/band-b/"><h2 class="show-title">Band B</h2></a>
  <div class="show-date">Sun, Feb 9</div>
  <div class="show-time">SHOW: 9PM</div>
  <div class="show-links"><a class="show-tickets" href="https://tix.example.com/empty-bottle">Buy</a></div>
</div>
</body></html>
"""


class TestMetroChicagoScraper:
    """Tests for MetroChicagoScraper.parse_events."""

    def test_parses_articles(self):
        """Test parsing Metro Chicago event articles."""
        scraper = MetroChicagoScraper()
        events = scraper.parse_events(METRO_HTML, reference=REFERENCE)

        assert [e.name for e in events] == ["The Smashing Pumpkins", "Open Decks"]
        first = events[0]
        assert first.date == datetime(2025, 3, 15, 19, 0)
        assert first.venue == "Metro Chicago"
        assert first.genre == "rock"
        assert first.price == "$45–$65"
        assert first.ticket_url == "https://tickets.example.com/sp"
        assert first.image_url == "https://metrochicago.com/img/band.jpg"
        assert first.external_id == "metrochicago-the-smashing-pumpkins-2025-03-15"
        assert first.has_coordinates

    def test_defaults_for_sparse_article(self):
        """Test the defaults for an article with little detail."""
        events = MetroChicagoScraper().parse_events(METRO_HTML, reference=REFERENCE)
        open_decks = events[1]

        assert open_decks.genre == "Music"
        assert open_decks.price == "Free Entry"
        assert open_decks.ticket_url is None

    def test_bad_article_is_skipped_and_counted(self):
        """Test that a broken article is skipped and counted."""
        scraper = MetroChicagoScraper()
        scraper.parse_events(METRO_HTML, reference=REFERENCE)
        assert scraper.error_count == 1

    def test_unreachable_site_is_a_hard_failure(self, monkeypatch):
        """Test that an unreachable site fails the run."""
        scraper = MetroChicagoScraper()

        def fail(url):
            raise ScraperError("Request timed out")

        monkeypatch.setattr(scraper, "fetch_html", fail)

        with pytest.raises(ScraperError):
            scraper.scrape()
        assert scraper.last_run_success is False
        assert scraper.last_run_time is not None
        assert scraper.error_count == 1


class TestEmptyBottleScraper:
    """Tests for EmptyBottleScraper.parse_events."""

    def test_parses_cards_and_prefers_show_time(self):
        """Test parsing show cards and using the show time over doors."""
        scraper = EmptyBottleScraper()
        events = scraper.parse_events(EMPTY_BOTTLE_HTML, reference=REFERENCE)

        assert len(events) == 1
        event = events[0]
        assert event.name == "Twin Peaks"
        assert event.date == datetime(2025, 2, 7, 20, 30)
        assert event.genre == "punk"
        assert event.price == "$18"
        assert event.ticket_url == "https://tix.example.com/tp"
        assert event.external_id.startswith("empty-bottle-")

    def test_external_id_is_stable(self):
        """Test that external ids are the same across runs."""
        first = EmptyBottleScraper().parse_events(EMPTY_BOTTLE_HTML, reference=REFERENCE)
        second = EmptyBottleScraper().parse_events(EMPTY_BOTTLE_HTML, reference=REFERENCE)
        assert first[0].external_id == second[0].external_id

    def test_card_without_title_is_counted(self):
        """Test that a card without a title is counted as an error."""
        scraper = EmptyBottleScraper()
        scraper.parse_events(EMPTY_BOTTLE_HTML, reference=REFERENCE)
        assert scraper.error_count == 1

    def test_scrape_records_success(self, monkeypatch):
        """Test that a successful scrape is recorded in the status."""
        scraper = EmptyBottleScraper()
        monkeypatch.setattr(scraper, "fetch_html", lambda url: EMPTY_BOTTLE_HTML)

        events = scraper.scrape()

        assert len(events) == 1
        assert scraper.last_run_success is True
        assert scraper.status().name == "Empty Bottle"

    def test_distinct_shows_sharing_ticket_link_are_kept(self):
        """Test that shows with their own detail pages survive a shared ticket link."""
        scraper = EmptyBottleScraper()
        events = scraper.parse_events(SHARED_TICKET_HTML, reference=REFERENCE)

        assert [e.name for e in events] == ["Band A", "Band B"]
        assert events[0].external_id != events[1].external_id
        assert scraper.error_count == 0

    def test_card_without_genre_keyword_gets_default_genre(self):
        """Test that a show with no genre keyword falls back to the default genre."""
        events = EmptyBottleScraper().parse_events(SHARED_TICKET_HTML, reference=REFERENCE)
        assert {e.genre for e in events} == {"Music"}
