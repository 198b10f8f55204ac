"""Tests for the playlist assembler."""

import random
import threading
from datetime import datetime

import pytest

from showscout.models import Event, PlaylistHandle, Seed, Track
from showscout.moods import UnknownMoodError
from showscout.playlist_builder import (
    MAX_SEEDS,
    assemble_tracks,
    build_seeds,
    generate_playlist,
    headline_artist,
)
from showscout.spotify_client import CatalogError


def _event(name="Wilco - Cousin Tour", genre="rock"):
    return Event(name=name, venue="Salt Shed", date=datetime(2025, 8, 1, 20), genre=genre)


def _tracks(prefix, count):
    return [Track(id=f"{prefix}-{i}", uri=f"spotify:track:{prefix}-{i}", name=f"{prefix} {i}") for i in range(count)]


class FakeCatalog:
    """Catalog returning canned tracks per seed value."""

    def __init__(self, results=None, failing=(), default_count=10):
        self.results = results or {}
        self.failing = set(failing)
        self.default_count = default_count
        self.searches = []
        self.created = []
        self.added = []
        self._lock = threading.Lock()

    def search_tracks(self, seed, limit, targets=None):
        with self._lock:
            self.searches.append((seed, limit, targets))
        if seed.value in self.failing:
            raise CatalogError(f"search failed for {seed.value}")
        tracks = self.results.get(seed.value, _tracks(seed.value, self.default_count))
        return tracks[:limit]

    def create_playlist(self, name, description="", public=True):
        handle = PlaylistHandle(id=f"pl-{len(self.created) + 1}", name=name, description=description, public=public)
        self.created.append(handle)
        return handle

    def add_tracks(self, playlist, track_uris):
        self.added.append((playlist.id, list(track_uris)))


class TestSeeds:
    """Tests for build_seeds."""

    def test_headline_artist_from_name(self):
        """Test taking the headliner from an "Artist - Tour" name."""
        assert headline_artist(_event("Wilco - Cousin Tour")) == "Wilco"
        assert headline_artist(_event("Jazz Night @ The Dawson")) is None

    def test_artist_then_genre_then_related_capped(self):
        """Test seed order and the seed cap."""
        seeds = build_seeds(_event())

        assert seeds[0] == Seed("artist", "Wilco")
        assert seeds[1] == Seed("genre", "rock")
        assert [s.value for s in seeds[2:]] == ["indie", "alternative", "punk"]
        assert len(seeds) == MAX_SEEDS

    def test_explicit_artist_overrides_name(self):
        """Test that an explicit artist replaces the parsed headliner."""
        seeds = build_seeds(_event("Jazz Night", genre="jazz"), artist="Makaya McCraven")
        assert seeds[0] == Seed("artist", "Makaya McCraven")

    def test_backfill_only_below_three_seeds(self):
        """Test that backfill genres are added only below three seeds."""
        seeds = build_seeds(_event("Open Mic", genre="Music"))
        assert seeds == [Seed("genre", "pop"), Seed("genre", "rock"), Seed("genre", "indie")]

    def test_unknown_genre_gets_backfill(self):
        """Test that a genre with no related genres gets backfill."""
        seeds = build_seeds(_event("Open Mic", genre="soundtrack"))
        assert [s.value for s in seeds] == ["soundtrack", "pop", "rock"]

    def test_related_genres_fill_before_backfill(self):
        """Test that related genres come before backfill genres."""
        seeds = build_seeds(_event("Late Show", genre="country"))
        assert [s.value for s in seeds] == ["country", "folk", "bluegrass", "honky-tonk"]


class TestAssembleTracks:
    """Tests for assemble_tracks."""

    def test_no_duplicate_tracks(self):
        """Test that a track returned by several seeds appears once."""
        shared = _tracks("shared", 10)
        catalog = FakeCatalog(results={"Wilco": shared, "rock": shared, "indie": shared})

        tracks = assemble_tracks(_event(), catalog, track_count=25, rng=random.Random(1))

        ids = [t.id for t in tracks]
        assert len(ids) == len(set(ids))
        assert len(tracks) <= 25

    def test_truncates_to_track_count(self):
        """Test that the result is cut to the requested track count."""
        tracks = assemble_tracks(_event(), FakeCatalog(), track_count=12, rng=random.Random(2))
        assert len(tracks) == 12

    def test_failing_seed_contributes_nothing(self):
        """Test that a failed seed search is skipped."""
        catalog = FakeCatalog(failing={"Wilco"})
        tracks = assemble_tracks(_event(), catalog, track_count=20, rng=random.Random(3))

        assert len(tracks) == 16
        assert not any(t.id.startswith("Wilco") for t in tracks)

    def test_all_searches_failing_gives_empty_list(self):
        """Test that no tracks come back when every search fails."""
        catalog = FakeCatalog(failing={"Wilco", "rock", "indie", "alternative", "punk"})
        assert assemble_tracks(_event(), catalog, track_count=10) == []

    def test_fallback_search_on_primary_genre(self):
        """Test the extra primary-genre search when seeds return too few tracks."""
        catalog = FakeCatalog(
            results={"Wilco": _tracks("w", 2), "indie": [], "alternative": [], "punk": []},
            failing=set(),
        )
        catalog.results["rock"] = _tracks("rock", 2)

        tracks = assemble_tracks(_event(), catalog, track_count=20, rng=random.Random(4))

        fallback = [s for s in catalog.searches if s[1] == 20]
        assert fallback and fallback[0][0] == Seed("genre", "rock")
        assert len(tracks) == 4

    def test_no_fallback_when_enough_tracks(self):
        """Test that no extra search runs when seeds return enough tracks."""
        catalog = FakeCatalog()
        assemble_tracks(_event(), catalog, track_count=10, rng=random.Random(5))
        assert len(catalog.searches) == MAX_SEEDS

    def test_mood_targets_passed_to_searches(self):
        """Test that mood audio targets reach every search."""
        catalog = FakeCatalog()
        assemble_tracks(_event(), catalog, track_count=10, mood="party")

        targets = catalog.searches[0][2]
        assert targets == {"energy": 0.85, "danceability": 0.9, "valence": 0.75}

    def test_share_per_seed(self):
        """Test that each seed asks for an equal share of the tracks."""
        catalog = FakeCatalog()
        assemble_tracks(_event(), catalog, track_count=25)
        assert {s[1] for s in catalog.searches} == {5}


class TestGeneratePlaylist:
    """Tests for generate_playlist."""

    def test_creates_and_fills_playlist(self):
        """Test creating a playlist and adding the assembled tracks."""
        catalog = FakeCatalog()
        result = generate_playlist(_event(), catalog, mood="Energetic", track_count=15)

        assert result.playlist.name == "Wilco - Cousin Tour"
        assert "energetic" in result.playlist.description
        assert result.mood == "energetic"
        assert len(result.tracks) == 15
        assert catalog.added == [("pl-1", [t.uri for t in result.tracks])]

    def test_empty_result_still_creates_playlist(self):
        """Test that a playlist is created even with no tracks."""
        catalog = FakeCatalog(failing={"Wilco", "rock", "indie", "alternative", "punk"})
        result = generate_playlist(_event(), catalog)

        assert result.tracks == []
        assert len(catalog.created) == 1
        assert catalog.added == []

    def test_unknown_mood(self):
        """Test that an unknown mood is rejected before any search."""
        with pytest.raises(UnknownMoodError):
            generate_playlist(_event(), FakeCatalog(), mood="grumpy")
