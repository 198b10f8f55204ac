"""Entry points the rest of the system calls: ingestion, queries, moods, playlists."""

import logging

from showscout import config, geo
from showscout.event_store import EventStore, TasteProfileStore
from showscout.models import Event, GeneratedPlaylist, ScoredEvent, ScrapeRun
from showscout.moods import Mood, list_moods, parse_mood
from showscout.playlist_builder import Catalog, generate_playlist
from showscout.scoring import (
    rank_by_taste,
    recommended_moods,
    score_events_for_mood,
    top_events_per_mood,
)
from showscout.scraper_manager import ScraperManager

logger = logging.getLogger(__name__)


class EventNotFoundError(KeyError):
    """No stored event has the requested id."""


class DiscoveryEngine:
    """
    Wires the event store, taste profiles, ingestion and catalog together.

    The catalog is optional; only playlist generation needs it.
    """

    def __init__(
        self,
        event_store: EventStore,
        profile_store: TasteProfileStore | None = None,
        scraper_manager: ScraperManager | None = None,
        catalog: Catalog | None = None,
    ):
        self.event_store = event_store
        self.profile_store = profile_store or TasteProfileStore()
        self.scraper_manager = scraper_manager or ScraperManager(event_store)
        self.catalog = catalog

    def run_ingestion(self) -> dict:
        """Trigger one ingestion run; a no-op while another run is active."""
        return self.scraper_manager.run_all()

    def get_ingestion_status(self) -> ScrapeRun:
        return self.scraper_manager.status()

    def _candidates(
        self,
        lat: float | None,
        lng: float | None,
        radius_km: float | None,
    ) -> list[Event]:
        if lat is not None and lng is not None:
            return self.event_store.query_by_radius(
                lat, lng, radius_km if radius_km is not None else config.DEFAULT_RADIUS_KM
            )
        return geo.query_events(self.event_store.all())

    def query_events(
        self,
        lat: float | None = None,
        lng: float | None = None,
        radius_km: float | None = None,
        user_id: str | None = None,
    ) -> list[ScoredEvent]:
        """
        Events near a location, ranked for the user when a taste profile exists.

        Without a location every stored event is returned, sorted by date.
        Without a stored profile for user_id the order is by date and every
        event keeps the base score.
        """
        events = geo.sort_by_date(self._candidates(lat, lng, radius_km))

        profile = self.profile_store.get(user_id) if user_id is not None else None
        if profile is None:
            if user_id is not None:
                logger.info("No taste profile for user %s, returning unranked events", user_id)
            return [ScoredEvent(event=event, relevance_score=1.0) for event in events]

        return rank_by_taste(events, profile)

    def list_moods(self) -> list[dict]:
        return list_moods()

    def recommended_moods_for_user(
        self,
        user_id: str,
        lat: float | None = None,
        lng: float | None = None,
        radius_km: float | None = None,
    ) -> dict:
        """
        Moods that suit the user's genres, with the top five events for each.

        Returns:
            Dict with "recommended_moods" (list of Mood) and "recommendations"
            (Mood -> list of ScoredEvent); both empty without a profile
        """
        profile = self.profile_store.get(user_id)
        if profile is None:
            logger.info("No taste profile for user %s, no mood recommendations", user_id)
            return {"recommended_moods": [], "recommendations": {}}

        moods = recommended_moods(profile)
        events = self._candidates(lat, lng, radius_km)
        return {
            "recommended_moods": moods,
            "recommendations": top_events_per_mood(events, moods),
        }

    def mood_events(
        self,
        mood: "str | Mood",
        lat: float | None = None,
        lng: float | None = None,
        radius_km: float | None = None,
    ) -> list[ScoredEvent]:
        """
        Events matching a mood, best first; events with no keyword hit are dropped.

        Raises:
            UnknownMoodError: If mood is not one of the fixed moods
        """
        mood = parse_mood(mood)
        return score_events_for_mood(self._candidates(lat, lng, radius_km), mood)

    def events_by_genre(self, genre: str) -> list[Event]:
        return geo.sort_by_date(self.event_store.by_genre(genre))

    def delete_event(self, event_id: int) -> bool:
        deleted = self.event_store.delete(event_id)
        if deleted:
            logger.info("Deleted event %d", event_id)
        return deleted

    def generate_playlist(
        self,
        event_id: int,
        mood: "str | Mood | None" = None,
        track_count: int = config.DEFAULT_TRACK_COUNT,
    ) -> GeneratedPlaylist:
        """
        Build and publish a playlist for a stored event.

        Raises:
            EventNotFoundError: If no event has this id
            UnknownMoodError: If mood is not one of the fixed moods
            CatalogError: If the playlist cannot be created or filled
        """
        event = self.event_store.get_by_id(event_id)
        if event is None:
            raise EventNotFoundError(event_id)
        if self.catalog is None:
            raise RuntimeError("No catalog configured for playlist generation")

        return generate_playlist(event, self.catalog, mood=mood, track_count=track_count)
