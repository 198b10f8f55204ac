"""Data models for events, taste profiles, scrape runs and playlists."""

from dataclasses import asdict, dataclass, field, replace
from datetime import datetime


@dataclass
class Event:
    """A normalized live-music event at a venue."""

    name: str
    venue: str
    date: datetime  # Always a timestamp after normalization
    description: str | None = None
    image_url: str | None = None
    ticket_url: str | None = None
    latitude: float | None = None
    longitude: float | None = None
    genre: str | None = None
    price: str | None = None
    source: str | None = None  # Name of the adapter that produced the event
    external_id: str | None = None  # Provider-scoped id, sole dedup key
    reason: str | None = None
    id: int | None = None  # Assigned by the event store

    @property
    def has_coordinates(self) -> bool:
        return self.latitude is not None and self.longitude is not None

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        data = asdict(self)
        data["date"] = self.date.isoformat()
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "Event":
        """Rebuild an event from its JSON representation."""
        values = dict(data)
        values["date"] = datetime.fromisoformat(values["date"])
        return cls(**values)


@dataclass(frozen=True)
class GenreWeight:
    """A genre and how strongly it features in a listening profile."""

    genre: str
    weight: float


@dataclass(frozen=True)
class ArtistWeight:
    """An artist and how strongly it features in a listening profile."""

    name: str
    weight: float


@dataclass
class TasteProfile:
    """
    Summary of a user's listening behavior.

    top_genres and recent_genres are ranked independently; recent_genres is
    only consulted by the scorer when no top genre matches.
    """

    top_genres: list[GenreWeight] = field(default_factory=list)
    recent_genres: list[GenreWeight] = field(default_factory=list)
    top_artists: list[ArtistWeight] = field(default_factory=list)
    mood_score: float | None = None
    genre_profile: dict[str, float] = field(default_factory=dict)
    last_updated: datetime | None = None

    def __post_init__(self):
        for entry in (*self.top_genres, *self.recent_genres, *self.top_artists):
            if entry.weight < 0:
                raise ValueError(f"Negative taste weight: {entry}")

    def genre_tokens(self) -> list[str]:
        """Lowercased top genres followed by recent genres, blanks dropped."""
        return [
            g.genre.lower()
            for g in (*self.top_genres, *self.recent_genres)
            if g.genre
        ]

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "top_genres": [asdict(g) for g in self.top_genres],
            "recent_genres": [asdict(g) for g in self.recent_genres],
            "top_artists": [asdict(a) for a in self.top_artists],
            "mood_score": self.mood_score,
            "genre_profile": self.genre_profile,
            "last_updated": (
                self.last_updated.isoformat() if self.last_updated else None
            ),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "TasteProfile":
        last_updated = data.get("last_updated")
        return cls(
            top_genres=[GenreWeight(**g) for g in data.get("top_genres", [])],
            recent_genres=[GenreWeight(**g) for g in data.get("recent_genres", [])],
            top_artists=[ArtistWeight(**a) for a in data.get("top_artists", [])],
            mood_score=data.get("mood_score"),
            genre_profile=data.get("genre_profile", {}),
            last_updated=datetime.fromisoformat(last_updated) if last_updated else None,
        )


@dataclass
class ScoredEvent:
    """An event annotated with its relevance for one taste profile or mood."""

    event: Event
    relevance_score: float
    personal_reason: str | None = None

    def to_dict(self) -> dict:
        data = self.event.to_dict()
        data["relevance_score"] = round(self.relevance_score, 3)
        if self.personal_reason:
            data["personal_reason"] = self.personal_reason
        return data


@dataclass(frozen=True)
class ScraperStatus:
    """Diagnostic snapshot of a single adapter."""

    name: str
    last_run_time: datetime | None
    last_run_success: bool
    error_count: int


@dataclass
class ScrapeRun:
    """Operational record of the latest ingestion run."""

    running: bool = False
    started_at: datetime | None = None
    last_run_time: datetime | None = None
    last_run_success: bool = False
    scrapers: list[ScraperStatus] = field(default_factory=list)
    schedule: str | None = None

    def to_dict(self) -> dict:
        def _iso(value: datetime | None) -> str | None:
            return value.isoformat() if value else None

        return {
            "running": self.running,
            "started_at": _iso(self.started_at),
            "last_run_time": _iso(self.last_run_time),
            "last_run_success": self.last_run_success,
            "scraper_count": len(self.scrapers),
            "scrapers": [
                {
                    "name": s.name,
                    "last_run_time": _iso(s.last_run_time),
                    "last_run_success": s.last_run_success,
                    "error_count": s.error_count,
                }
                for s in self.scrapers
            ],
            "schedule": self.schedule,
        }

    def snapshot(self) -> "ScrapeRun":
        return replace(self, scrapers=list(self.scrapers))


@dataclass(frozen=True)
class Seed:
    """A catalog search seed: an artist name or a genre."""

    kind: str  # "artist" or "genre"
    value: str


@dataclass(frozen=True)
class Track:
    """A catalog track; id is the dedup identity."""

    id: str
    uri: str
    name: str
    artists: tuple[str, ...] = ()


@dataclass(frozen=True)
class PlaylistHandle:
    """A playlist created in the external catalog."""

    id: str
    name: str
    description: str = ""
    public: bool = True
    url: str | None = None


@dataclass
class GeneratedPlaylist:
    """A created playlist and the tracks added to it, in order."""

    playlist: PlaylistHandle
    tracks: list[Track] = field(default_factory=list)
    mood: str | None = None

    def to_dict(self) -> dict:
        return {
            "playlist": asdict(self.playlist),
            "mood": self.mood,
            "track_count": len(self.tracks),
            "tracks": [
                {"id": t.id, "uri": t.uri, "name": t.name, "artists": list(t.artists)}
                for t in self.tracks
            ],
        }
