"""In-process event and taste-profile stores with JSON snapshots."""

import itertools
import json
import logging
import threading
from dataclasses import replace
from pathlib import Path

from showscout.geo import filter_by_radius
from showscout.models import Event, TasteProfile

logger = logging.getLogger(__name__)


class EventStore:
    """
    Keeps normalized events keyed by internal id.

    external_id is unique across the store: upsert() updates the existing
    event in place instead of inserting a second one.
    """

    def __init__(self, events: list[Event] | None = None):
        self._events: dict[int, Event] = {}
        self._by_external_id: dict[str, int] = {}
        self._ids = itertools.count(1)
        self._lock = threading.Lock()
        for event in events or []:
            self.upsert(event)

    def __len__(self) -> int:
        return len(self._events)

    def get_by_id(self, event_id: int) -> Event | None:
        return self._events.get(event_id)

    def get_by_external_id(self, external_id: str) -> Event | None:
        event_id = self._by_external_id.get(external_id)
        return self._events.get(event_id) if event_id is not None else None

    def upsert(self, event: Event) -> Event:
        """
        Insert an event, or overwrite the stored event with the same external_id.

        Events without an external_id are always inserted.

        Returns:
            The stored event, carrying its internal id
        """
        with self._lock:
            existing_id = (
                self._by_external_id.get(event.external_id)
                if event.external_id
                else None
            )
            if existing_id is not None:
                stored = replace(event, id=existing_id)
            else:
                # Respect ids carried over from a snapshot
                new_id = event.id if event.id and event.id not in self._events else None
                stored = replace(event, id=new_id or self._next_id())

            self._events[stored.id] = stored
            if stored.external_id:
                self._by_external_id[stored.external_id] = stored.id
            return stored

    def all(self) -> list[Event]:
        return list(self._events.values())

    def query_by_radius(self, lat: float, lng: float, radius_km: float) -> list[Event]:
        return filter_by_radius(self.all(), lat, lng, radius_km)

    def by_genre(self, genre: str) -> list[Event]:
        """Events whose genre contains the given text, case-insensitively."""
        needle = genre.lower()
        return [e for e in self.all() if e.genre and needle in e.genre.lower()]

    def delete(self, event_id: int) -> bool:
        """Administrative removal; ingestion never deletes."""
        with self._lock:
            event = self._events.pop(event_id, None)
            if event is None:
                return False
            if event.external_id:
                self._by_external_id.pop(event.external_id, None)
            return True

    def save(self, filepath: Path) -> None:
        """Write a JSON snapshot; upserts and other saves wait until it is on disk."""
        filepath.parent.mkdir(parents=True, exist_ok=True)
        with self._lock:
            events_data = [event.to_dict() for event in self._events.values()]
            with open(filepath, "w", encoding="utf-8") as f:
                json.dump({"events": events_data, "count": len(events_data)}, f, indent=2)
        logger.info("Wrote %d events to %s", len(events_data), filepath)

    @classmethod
    def load(cls, filepath: Path) -> "EventStore":
        """Load a snapshot; a missing file yields an empty store."""
        if not filepath.exists():
            logger.info("No event snapshot at %s, starting empty", filepath)
            return cls()

        with open(filepath, encoding="utf-8") as f:
            data = json.load(f)

        store = cls([Event.from_dict(item) for item in data.get("events", [])])
        logger.info("Loaded %d events", len(store))
        return store

    def _next_id(self) -> int:
        new_id = next(self._ids)
        while new_id in self._events:
            new_id = next(self._ids)
        return new_id


class TasteProfileStore:
    """Taste profiles keyed by user id; a refresh replaces the whole profile."""

    def __init__(self, profiles: dict[str, TasteProfile] | None = None):
        self._profiles: dict[str, TasteProfile] = dict(profiles or {})

    def get(self, user_id: str) -> TasteProfile | None:
        return self._profiles.get(str(user_id))

    def save(self, user_id: str, profile: TasteProfile) -> None:
        self._profiles[str(user_id)] = profile

    def dump(self, filepath: Path) -> None:
        filepath.parent.mkdir(parents=True, exist_ok=True)
        with open(filepath, "w", encoding="utf-8") as f:
            json.dump(
                {uid: p.to_dict() for uid, p in self._profiles.items()},
                f,
                indent=2,
                ensure_ascii=False,
            )
        logger.info("Wrote %d taste profiles to %s", len(self._profiles), filepath)

    @classmethod
    def load(cls, filepath: Path) -> "TasteProfileStore":
        if not filepath.exists():
            return cls()

        with open(filepath, encoding="utf-8") as f:
            raw_data = json.load(f)

        profiles = {uid: TasteProfile.from_dict(p) for uid, p in raw_data.items()}
        logger.info("Loaded %d taste profiles", len(profiles))
        return cls(profiles)
