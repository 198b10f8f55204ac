"""Tests for the Spotify collaborators, using a stand-in for the spotipy client."""

from datetime import datetime, timedelta

import pytest
import spotipy

from showscout.models import PlaylistHandle, Seed, TasteProfile
from showscout.spotify_client import (
    CatalogError,
    SpotifyCatalog,
    build_taste_profile,
    create_spotify_client,
    genre_category,
    is_profile_stale,
)


def _track(track_id, artist="Wilco"):
    return {
        "id": track_id,
        "uri": f"spotify:track:{track_id}",
        "name": f"Song {track_id}",
        "artists": [{"name": artist, "id": f"id-{artist}"}],
    }


class FakeSpotify:
    """Records calls and returns canned responses like spotipy.Spotify."""

    def __init__(self, fail_audio_features=False):
        self.calls = []
        self.fail_audio_features = fail_audio_features

    def search(self, q, type, limit):
        self.calls.append(("search", q, type, limit))
        return {"tracks": {"items": [_track("a1"), _track("a2"), {"id": None}]}}

    def recommendations(self, seed_genres, limit, **kwargs):
        self.calls.append(("recommendations", seed_genres, limit, kwargs))
        return {"tracks": [_track("g1")]}

    def current_user(self):
        return {"id": "user-1"}

    def user_playlist_create(self, user, name, public, description):
        self.calls.append(("create", user, name, public, description))
        return {"id": "pl-1", "name": name, "external_urls": {"spotify": "https://open.spotify.com/playlist/pl-1"}}

    def playlist_add_items(self, playlist_id, items):
        self.calls.append(("add", playlist_id, list(items)))

    def current_user_top_artists(self, limit, time_range):
        return {
            "items": [
                {"id": "1", "name": "Wilco", "genres": ["alternative country", "indie rock"]},
                {"id": "2", "name": "Makaya McCraven", "genres": ["jazz", "indie rock"]},
                {"id": "3", "name": "Floating Points", "genres": ["electronic"]},
            ]
        }

    def current_user_recently_played(self, limit):
        return {"items": [{"track": _track("r1", "Floating Points")}, {"track": _track("r2", "Floating Points")}]}

    def artists(self, artist_ids):
        self.calls.append(("artists", list(artist_ids)))
        return {"artists": [{"id": "id-Floating Points", "genres": ["electronic", "ambient"]}]}

    def current_user_top_tracks(self, limit, time_range):
        return {"items": [{"id": "t1"}, {"id": "t2"}]}

    def audio_features(self, track_ids):
        if self.fail_audio_features:
            raise spotipy.SpotifyException(403, -1, "Forbidden")
        return [{"valence": 0.4}, {"valence": 0.6}]


class TestSpotifyCatalog:
    """Tests for SpotifyCatalog."""

    def test_artist_seed_uses_track_search(self):
        """Test that an artist seed runs a track search."""
        client = FakeSpotify()
        tracks = SpotifyCatalog(client).search_tracks(Seed("artist", "Wilco"), 80)

        assert [t.id for t in tracks] == ["a1", "a2"]
        assert client.calls[0] == ("search", 'artist:"Wilco"', "track", 50)
        assert tracks[0].artists == ("Wilco",)

    def test_genre_seed_uses_recommendations_with_targets(self):
        """Test that a genre seed uses recommendations with audio targets."""
        client = FakeSpotify()
        SpotifyCatalog(client).search_tracks(Seed("genre", "hip hop"), 5, {"energy": 0.8})

        name, seed_genres, limit, hints = client.calls[0]
        assert name == "recommendations"
        assert seed_genres == ["hip-hop"]
        assert hints == {"target_energy": 0.8}

    def test_search_failure_wrapped(self, monkeypatch):
        """Test that spotipy errors are raised as CatalogError."""
        client = FakeSpotify()

        def fail(**kwargs):
            raise spotipy.SpotifyException(404, -1, "Not found")

        monkeypatch.setattr(client, "search", fail)

        with pytest.raises(CatalogError):
            SpotifyCatalog(client).search_tracks(Seed("artist", "Nobody"), 5)

    def test_create_playlist(self):
        """Test creating a playlist for the current user."""
        client = FakeSpotify()
        handle = SpotifyCatalog(client).create_playlist("Night Out", "desc", public=False)

        assert handle.id == "pl-1"
        assert handle.url == "https://open.spotify.com/playlist/pl-1"
        assert client.calls[0] == ("create", "user-1", "Night Out", False, "desc")

    def test_add_tracks_in_chunks_of_100(self):
        """Test that tracks are added in chunks of 100."""
        client = FakeSpotify()
        uris = [f"spotify:track:{i}" for i in range(250)]

        SpotifyCatalog(client).add_tracks(PlaylistHandle(id="pl-1", name="x"), uris)

        sizes = [len(call[2]) for call in client.calls if call[0] == "add"]
        assert sizes == [100, 100, 50]


class TestTasteProfile:
    """Tests for build_taste_profile and staleness."""

    def test_build_profile(self):
        """Test building a taste profile from listening history."""
        client = FakeSpotify()
        profile = build_taste_profile(client)

        assert profile.top_genres[0].genre == "indie rock"
        assert profile.top_genres[0].weight == 2
        assert [g.genre for g in profile.recent_genres] == ["electronic", "ambient"]
        assert [(a.name, a.weight) for a in profile.top_artists] == [
            ("Wilco", 10),
            ("Makaya McCraven", 9),
            ("Floating Points", 8),
        ]
        assert profile.mood_score == pytest.approx(50.0)
        assert sum(profile.genre_profile.values()) == pytest.approx(1.0, abs=0.01)
        assert profile.last_updated is not None
        assert ("artists", ["id-Floating Points"]) in client.calls

    def test_audio_features_unavailable(self):
        """Test that the mood score is empty when audio features fail."""
        profile = build_taste_profile(FakeSpotify(fail_audio_features=True))
        assert profile.mood_score is None

    def test_staleness(self):
        """Test the 24 hour profile staleness window."""
        now = datetime(2025, 6, 1, 12)
        fresh = TasteProfile(last_updated=now - timedelta(hours=3))
        old = TasteProfile(last_updated=now - timedelta(hours=25))

        assert is_profile_stale(fresh, now) is False
        assert is_profile_stale(old, now) is True
        assert is_profile_stale(None, now) is True

    def test_genre_category(self):
        """Test mapping genres to broad categories."""
        assert genre_category("Deep House") == "electronic"
        assert genre_category("chicago rap") == "hiphop"
        assert genre_category("polka") is None


def test_client_requires_credentials():
    """Test that creating a client without credentials fails."""
    with pytest.raises(CatalogError, match="credentials missing"):
        create_spotify_client({"clientId": None, "clientSecret": None})
