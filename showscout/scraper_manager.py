"""Runs every registered provider adapter and persists what they return."""

import logging
import threading
from collections.abc import Callable
from datetime import datetime

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger

from showscout import config
from showscout.bandsintown_api_fetcher import BandsInTownApiFetcher
from showscout.base_scraper import BaseScraper
from showscout.edmtrain_api_fetcher import EDMTrainApiFetcher
from showscout.empty_bottle_scraper import EmptyBottleScraper
from showscout.event_store import EventStore
from showscout.eventbrite_api_fetcher import EventbriteApiFetcher
from showscout.metro_chicago_scraper import MetroChicagoScraper
from showscout.models import Event, ScrapeRun

logger = logging.getLogger(__name__)

SCHEDULE_JOB_ID = "daily_event_scrape"


def default_scrapers() -> list[BaseScraper]:
    """The registered adapters, in the order they run."""
    return [
        MetroChicagoScraper(),
        EmptyBottleScraper(),
        EventbriteApiFetcher(),
        EDMTrainApiFetcher(),
        BandsInTownApiFetcher(),
    ]


class ScraperManager:
    """
    Owns the adapter list and the run state.

    At most one run is ever in progress: a trigger that arrives while a run
    is active returns immediately. Adapters run one after another, and one
    adapter raising never stops the others.
    """

    def __init__(
        self,
        event_store: EventStore,
        scrapers: list[BaseScraper] | None = None,
        hour: int = config.SCRAPE_HOUR,
        minute: int = config.SCRAPE_MINUTE,
        after_run: Callable[[dict], None] | None = None,
    ):
        self.event_store = event_store
        self.scrapers = list(scrapers) if scrapers is not None else default_scrapers()
        self.hour = hour
        self.minute = minute
        # Called with the summary once a run finishes, before the next can start
        self.after_run = after_run
        self._run_lock = threading.Lock()
        self._run = ScrapeRun()
        self._scheduler: BackgroundScheduler | None = None
        logger.info("ScraperManager initialized with %d scrapers", len(self.scrapers))

    @property
    def is_running(self) -> bool:
        return self._run.running

    def run_all(self) -> dict:
        """
        Run all adapters sequentially and persist their events.

        Returns:
            Summary with "ran" (False when a run was already in progress) and
            per-adapter counts of created and updated events
        """
        if not self._run_lock.acquire(blocking=False):
            logger.info("Scraping already in progress, skipping...")
            return {"ran": False, "scrapers": {}}

        self._run.running = True
        self._run.started_at = datetime.now()
        self._run.last_run_success = False
        summary: dict = {"ran": True, "scrapers": {}}

        try:
            logger.info("Starting to run all scrapers...")
            for scraper in self.scrapers:
                summary["scrapers"][scraper.name] = self._run_scraper(scraper)

            self._run.last_run_success = True
            logger.info("All scrapers completed")
        except Exception:
            logger.exception("Error running scrapers")
            self._run.last_run_success = False
        finally:
            self._run.last_run_time = datetime.now()
            summary["success"] = self._run.last_run_success
            self._notify_after_run(summary)
            self._run.running = False
            self._run_lock.release()

        return summary

    def _notify_after_run(self, summary: dict) -> None:
        if self.after_run is None:
            return
        try:
            self.after_run(summary)
        except Exception:
            logger.exception("Error in post-run hook")

    def _run_scraper(self, scraper: BaseScraper) -> dict:
        logger.info("Running scraper: %s", scraper.name)
        try:
            events = scraper.scrape()
        except Exception as e:
            logger.error("Error running scraper %s: %s", scraper.name, e)
            return {"success": False, "created": 0, "updated": 0}

        created, updated = self.save_events(scraper, events)
        logger.info(
            "Finished scraper %s: %d new, %d updated", scraper.name, created, updated
        )
        return {"success": True, "created": created, "updated": updated}

    def save_events(self, scraper: BaseScraper, events: list[Event]) -> tuple[int, int]:
        """
        Persist events, updating in place when the external id is already stored.

        Returns:
            Tuple of (created, updated) counts
        """
        created = updated = 0
        for event in events:
            try:
                existing = (
                    self.event_store.get_by_external_id(event.external_id)
                    if event.external_id
                    else None
                )
                self.event_store.upsert(event)
            except Exception as e:
                scraper.log_failure(f"saving event {event.name!r}", e)
                continue

            if existing is not None:
                updated += 1
            else:
                created += 1
        return created, updated

    def status(self) -> ScrapeRun:
        """Snapshot of the run state and every adapter's diagnostics."""
        run = self._run.snapshot()
        run.scrapers = [scraper.status() for scraper in self.scrapers]
        run.schedule = self.schedule_description()
        return run

    def schedule_description(self) -> str:
        if self._scheduler is not None and self._scheduler.running:
            return f"Active (daily at {self.hour:02d}:{self.minute:02d})"
        return "Not scheduled"

    def start(self) -> None:
        """Start the daily trigger in a background thread."""
        if self._scheduler is not None and self._scheduler.running:
            return

        self._scheduler = BackgroundScheduler()
        self._scheduler.add_job(
            self._scheduled_run,
            trigger=CronTrigger(hour=self.hour, minute=self.minute),
            id=SCHEDULE_JOB_ID,
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
        self._scheduler.start()
        logger.info("Event scraping scheduled daily at %02d:%02d", self.hour, self.minute)

    def stop(self) -> None:
        if self._scheduler is not None and self._scheduler.running:
            self._scheduler.shutdown(wait=False)
            logger.info("Event scraper scheduling stopped")
        self._scheduler = None

    def _scheduled_run(self) -> None:
        logger.info("Running scheduled event scraping...")
        self.run_all()
