"""Turns an event (and an optional mood) into a generated playlist."""

import logging
import math
import random
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Protocol

from showscout import config
from showscout.models import Event, GeneratedPlaylist, PlaylistHandle, Seed, Track
from showscout.moods import Mood, get_target, parse_mood
from showscout.text_utils import DEFAULT_GENRE

logger = logging.getLogger(__name__)

MAX_SEEDS = 5  # Catalog seed-count ceiling
MIN_SEEDS = 3
MAX_SEARCH_WORKERS = 5
HEADLINER_SEPARATOR = " - "

RELATED_GENRES = {
    "rock": ["indie", "alternative", "punk", "metal", "hard-rock"],
    "indie": ["indie-pop", "alternative", "folk", "rock"],
    "alternative": ["indie", "rock", "grunge", "punk"],
    "pop": ["dance", "indie-pop", "synth-pop", "r-n-b"],
    "electronic": ["house", "techno", "edm", "dance", "electro"],
    "edm": ["electronic", "house", "dubstep", "dance"],
    "techno": ["electronic", "house", "minimal-techno", "detroit-techno"],
    "house": ["electronic", "deep-house", "dance", "disco"],
    "dubstep": ["electronic", "edm", "drum-and-bass"],
    "hip hop": ["hip-hop", "rap", "r-n-b", "trap"],
    "hip-hop": ["rap", "r-n-b", "trap", "soul"],
    "rap": ["hip-hop", "trap", "r-n-b"],
    "r&b": ["r-n-b", "soul", "hip-hop", "funk"],
    "jazz": ["blues", "soul", "funk", "bossanova"],
    "blues": ["jazz", "soul", "rock-n-roll"],
    "metal": ["heavy-metal", "hard-rock", "metalcore", "death-metal"],
    "punk": ["punk-rock", "hardcore", "emo", "rock"],
    "folk": ["acoustic", "singer-songwriter", "indie", "country"],
    "country": ["folk", "bluegrass", "honky-tonk"],
    "classical": ["piano", "opera", "ambient"],
}

BACKFILL_GENRES = ["pop", "rock", "indie", "electronic", "hip-hop"]


class Catalog(Protocol):
    """Catalog search, playlist creation and track add, as the assembler needs them."""

    def search_tracks(
        self, seed: Seed, limit: int, targets: dict[str, float] | None = None
    ) -> list[Track]: ...

    def create_playlist(
        self, name: str, description: str = "", public: bool = True
    ) -> PlaylistHandle: ...

    def add_tracks(self, playlist: PlaylistHandle, track_uris: list[str]) -> None: ...


def headline_artist(event: Event) -> str | None:
    """The artist in front of " - " in names like "Artist - World Tour"."""
    if HEADLINER_SEPARATOR not in event.name:
        return None
    artist = event.name.split(HEADLINER_SEPARATOR, 1)[0].strip()
    return artist or None


def _event_genre(event: Event) -> str | None:
    genre = (event.genre or "").strip().lower()
    if not genre or genre == DEFAULT_GENRE.lower():
        return None
    return genre


def build_seeds(event: Event, artist: str | None = None) -> list[Seed]:
    """
    Ranked search seeds for an event.

    Headline artist first, then the event's genre, then its related genres.
    Backfill genres are only added while fewer than three seeds exist.
    Never more than five seeds.
    """
    seeds: list[Seed] = []
    seen: set[tuple[str, str]] = set()

    def add(kind: str, value: str) -> None:
        key = (kind, value.lower())
        if len(seeds) < MAX_SEEDS and key not in seen:
            seen.add(key)
            seeds.append(Seed(kind, value))

    artist = artist or headline_artist(event)
    if artist:
        add("artist", artist)

    genre = _event_genre(event)
    if genre:
        add("genre", genre)
        for related in RELATED_GENRES.get(genre, []):
            add("genre", related)

    for backfill in BACKFILL_GENRES:
        if len(seeds) >= MIN_SEEDS:
            break
        add("genre", backfill)

    return seeds


def _primary_genre(event: Event, seeds: list[Seed]) -> str:
    genre = _event_genre(event)
    if genre:
        return genre
    genre_seeds = [s.value for s in seeds if s.kind == "genre"]
    return genre_seeds[0] if genre_seeds else BACKFILL_GENRES[0]


def _safe_search(
    catalog: Catalog, seed: Seed, limit: int, targets: dict[str, float] | None
) -> list[Track]:
    try:
        return catalog.search_tracks(seed, limit, targets)
    except Exception as e:
        logger.warning("Catalog search failed for %s %r: %s", seed.kind, seed.value, e)
        return []


def _dedupe(tracks: list[Track]) -> list[Track]:
    unique: dict[str, Track] = {}
    for track in tracks:
        unique.setdefault(track.id, track)
    return list(unique.values())


def assemble_tracks(
    event: Event,
    catalog: Catalog,
    track_count: int = config.DEFAULT_TRACK_COUNT,
    mood: "str | Mood | None" = None,
    artist: str | None = None,
    rng: random.Random | None = None,
) -> list[Track]:
    """
    Collect a shuffled, duplicate-free track list for an event.

    Each seed is searched independently for its share of track_count; a
    failed search contributes no tracks. When the combined results are
    under half of track_count, one broader search on the primary genre is
    added. Returns an empty list when every search fails.
    """
    if track_count <= 0:
        return []

    seeds = build_seeds(event, artist)
    targets = get_target(mood).audio_targets() if mood else None
    per_seed = math.ceil(track_count / len(seeds))
    logger.info(
        "Searching %d seeds for %d tracks each: %s",
        len(seeds),
        per_seed,
        ", ".join(f"{s.kind}:{s.value}" for s in seeds),
    )

    results: list[Track] = []
    with ThreadPoolExecutor(max_workers=min(MAX_SEARCH_WORKERS, len(seeds))) as executor:
        futures = {
            executor.submit(_safe_search, catalog, seed, per_seed, targets): index
            for index, seed in enumerate(seeds)
        }
        by_seed: dict[int, list[Track]] = {}
        for future in as_completed(futures):
            by_seed[futures[future]] = future.result()

    # Merge in seed order so the result does not depend on completion order
    for index in sorted(by_seed):
        results.extend(by_seed[index])

    tracks = _dedupe(results)
    if len(tracks) < track_count / 2:
        primary = _primary_genre(event, seeds)
        logger.info(
            "Only %d tracks found, falling back to a broad %s search", len(tracks), primary
        )
        tracks = _dedupe(
            tracks + _safe_search(catalog, Seed("genre", primary), track_count, targets)
        )

    rng = rng or random.Random()
    rng.shuffle(tracks)
    return tracks[:track_count]


def playlist_description(event: Event, mood: "str | Mood | None" = None) -> str:
    description = f"Inspired by {event.name} at {event.venue}"
    if mood:
        description += f", tuned for a {parse_mood(mood).value} mood"
    return description


def generate_playlist(
    event: Event,
    catalog: Catalog,
    mood: "str | Mood | None" = None,
    track_count: int = config.DEFAULT_TRACK_COUNT,
    artist: str | None = None,
    name: str | None = None,
    public: bool = True,
    rng: random.Random | None = None,
) -> GeneratedPlaylist:
    """
    Assemble tracks for an event and publish them as a new playlist.

    The playlist is created even when no tracks were found.

    Raises:
        UnknownMoodError: If mood is not one of the fixed moods
        CatalogError: If the playlist cannot be created or filled
    """
    mood_value = parse_mood(mood).value if mood else None
    tracks = assemble_tracks(event, catalog, track_count, mood_value, artist, rng)

    playlist = catalog.create_playlist(
        name or event.name, playlist_description(event, mood_value), public
    )
    if tracks:
        catalog.add_tracks(playlist, [track.uri for track in tracks])
    else:
        logger.warning("No tracks found for %s, playlist %s is empty", event.name, playlist.id)

    return GeneratedPlaylist(playlist=playlist, tracks=tracks, mood=mood_value)
