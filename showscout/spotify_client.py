"""Spotify collaborators: catalog search, playlist creation and taste profiles."""

import logging
from collections import Counter
from datetime import datetime, timedelta

import requests
import spotipy
from spotipy.oauth2 import SpotifyOAuth

from showscout import config
from showscout.models import (
    ArtistWeight,
    GenreWeight,
    PlaylistHandle,
    Seed,
    TasteProfile,
    Track,
)

logger = logging.getLogger(__name__)

MAX_SEARCH_LIMIT = 50
MAX_RECOMMENDATION_LIMIT = 100
ADD_TRACKS_CHUNK_SIZE = 100  # Spotify's per-request limit
TOP_GENRE_COUNT = 10
TOP_ARTIST_COUNT = 10
PROFILE_MAX_AGE = timedelta(hours=24)

# Broad categories for the genre profile, checked in order
GENRE_CATEGORIES = [
    ("electronic", ("electronic", "edm", "techno", "house")),
    ("rock", ("rock", "alternative", "metal", "punk")),
    ("hiphop", ("hip hop", "hip-hop", "rap", "r&b")),
    ("pop", ("pop",)),
    ("jazz", ("jazz", "blues", "soul")),
    ("folk", ("folk", "acoustic", "singer-songwriter")),
    ("classical", ("classical", "orchestra")),
    ("world", ("world", "latin", "reggae")),
]


class CatalogError(Exception):
    """A Spotify request failed."""


def create_spotify_client(spotify_config: dict | None = None) -> spotipy.Spotify:
    """
    Build an authenticated client for the current user.

    Raises:
        CatalogError: If the client id or secret is missing
    """
    spotify_config = spotify_config or config.load_spotify_config()
    if not spotify_config.get("clientId") or not spotify_config.get("clientSecret"):
        raise CatalogError(
            f"Spotify credentials missing. Set SPOTIFY_CLIENT_ID/SPOTIFY_CLIENT_SECRET "
            f"or create {config.SPOTIFY_CONFIG_PATH} with clientId and clientSecret fields."
        )

    auth_manager = SpotifyOAuth(
        client_id=spotify_config["clientId"],
        client_secret=spotify_config["clientSecret"],
        redirect_uri=spotify_config.get("redirectUri") or "http://127.0.0.1:8888/callback",
        scope=config.SPOTIFY_SCOPES,
    )
    return spotipy.Spotify(auth_manager=auth_manager, requests_timeout=config.REQUEST_TIMEOUT)


def _to_track(item: dict) -> Track | None:
    if not item or not item.get("id"):
        return None
    return Track(
        id=item["id"],
        uri=item.get("uri") or f"spotify:track:{item['id']}",
        name=item.get("name", ""),
        artists=tuple(a["name"] for a in item.get("artists", []) if a.get("name")),
    )


class SpotifyCatalog:
    """Catalog search, playlist creation and track add over one spotipy client."""

    def __init__(self, client: spotipy.Spotify):
        self.client = client

    def search_tracks(
        self, seed: Seed, limit: int, targets: dict[str, float] | None = None
    ) -> list[Track]:
        """
        Find tracks for one seed.

        Artist seeds run a track search restricted to the artist; genre seeds
        go through the recommendations endpoint with the audio-feature targets.

        Raises:
            CatalogError: If the request fails
        """
        try:
            if seed.kind == "artist":
                results = self.client.search(
                    q=f'artist:"{seed.value}"',
                    type="track",
                    limit=min(limit, MAX_SEARCH_LIMIT),
                )
                items = results["tracks"]["items"]
            else:
                hints = {f"target_{name}": value for name, value in (targets or {}).items()}
                results = self.client.recommendations(
                    seed_genres=[seed.value.lower().replace(" ", "-")],
                    limit=min(limit, MAX_RECOMMENDATION_LIMIT),
                    **hints,
                )
                items = results["tracks"]
        except (spotipy.SpotifyException, requests.exceptions.RequestException) as e:
            raise CatalogError(f"Search failed for {seed.kind} {seed.value!r}: {e}") from e

        tracks = [t for t in (_to_track(item) for item in items) if t is not None]
        logger.debug("Seed %s %r returned %d tracks", seed.kind, seed.value, len(tracks))
        return tracks

    def create_playlist(self, name: str, description: str = "", public: bool = True) -> PlaylistHandle:
        try:
            user_id = self.client.current_user()["id"]
            playlist = self.client.user_playlist_create(
                user_id, name, public=public, description=description
            )
        except (spotipy.SpotifyException, requests.exceptions.RequestException) as e:
            raise CatalogError(f"Could not create playlist {name!r}: {e}") from e

        logger.info("Created playlist %s (%s)", name, playlist["id"])
        return PlaylistHandle(
            id=playlist["id"],
            name=playlist.get("name", name),
            description=description,
            public=public,
            url=(playlist.get("external_urls") or {}).get("spotify"),
        )

    def add_tracks(self, playlist: PlaylistHandle, track_uris: list[str]) -> None:
        try:
            for start in range(0, len(track_uris), ADD_TRACKS_CHUNK_SIZE):
                chunk = track_uris[start:start + ADD_TRACKS_CHUNK_SIZE]
                self.client.playlist_add_items(playlist.id, chunk)
        except (spotipy.SpotifyException, requests.exceptions.RequestException) as e:
            raise CatalogError(f"Could not add tracks to playlist {playlist.id}: {e}") from e

        logger.info("Added %d tracks to playlist %s", len(track_uris), playlist.id)


def genre_category(genre: str) -> str | None:
    lower = genre.lower()
    for category, markers in GENRE_CATEGORIES:
        if any(marker in lower for marker in markers):
            return category
    return None


def count_genres(artists: list[dict], limit: int = TOP_GENRE_COUNT) -> list[GenreWeight]:
    """Rank genres by how many of the given artists carry them."""
    counts = Counter(genre for artist in artists for genre in artist.get("genres") or [])
    return [GenreWeight(genre, count) for genre, count in counts.most_common(limit)]


def genre_distribution(artists: list[dict]) -> dict[str, float]:
    """Share of each broad category among the artists' genres, summing to 1."""
    counts = Counter()
    for artist in artists:
        for genre in artist.get("genres") or []:
            category = genre_category(genre)
            if category:
                counts[category] += 1

    total = sum(counts.values())
    if not total:
        return {}
    return {category: round(count / total, 3) for category, count in counts.items()}


def is_profile_stale(profile: TasteProfile | None, now: datetime | None = None) -> bool:
    if profile is None or profile.last_updated is None:
        return True
    now = now or datetime.now()
    return now - profile.last_updated >= PROFILE_MAX_AGE


def _average_valence(client: spotipy.Spotify, track_ids: list[str]) -> float | None:
    if not track_ids:
        return None
    try:
        features = client.audio_features(track_ids) or []
    except (spotipy.SpotifyException, requests.exceptions.RequestException) as e:
        # The audio-features endpoint is not available to every app
        logger.warning("Audio features unavailable: %s", e)
        return None

    valences = [f["valence"] for f in features if f and f.get("valence") is not None]
    if not valences:
        return None
    return round(sum(valences) / len(valences) * 100, 1)


def build_taste_profile(client: spotipy.Spotify) -> TasteProfile:
    """
    Summarize the current user's listening history.

    Raises:
        CatalogError: If the top-artists or recently-played requests fail
    """
    try:
        top_artists = client.current_user_top_artists(limit=50, time_range="medium_term")["items"]
        recent_items = client.current_user_recently_played(limit=50)["items"]
        top_tracks = client.current_user_top_tracks(limit=20, time_range="short_term")["items"]

        recent_artist_ids = list(dict.fromkeys(
            artist["id"]
            for item in recent_items
            for artist in (item.get("track") or {}).get("artists", [])
            if artist.get("id")
        ))[:MAX_SEARCH_LIMIT]
        recent_artists = (
            client.artists(recent_artist_ids)["artists"] if recent_artist_ids else []
        )
    except (spotipy.SpotifyException, requests.exceptions.RequestException) as e:
        raise CatalogError(f"Could not read listening history: {e}") from e

    logger.info(
        "Building taste profile from %d top artists and %d recent artists",
        len(top_artists),
        len(recent_artists),
    )

    return TasteProfile(
        top_genres=count_genres(top_artists),
        recent_genres=count_genres([a for a in recent_artists if a]),
        top_artists=[
            ArtistWeight(artist["name"], TOP_ARTIST_COUNT - rank)
            for rank, artist in enumerate(top_artists[:TOP_ARTIST_COUNT])
        ],
        mood_score=_average_valence(client, [t["id"] for t in top_tracks if t.get("id")]),
        genre_profile=genre_distribution(top_artists),
        last_updated=datetime.now(),
    )
