"""Relevance scoring of events against a taste profile or a mood."""

import logging
from collections.abc import Iterable

from showscout.models import Event, ScoredEvent, TasteProfile
from showscout.moods import MOOD_TARGETS, Mood, parse_mood

logger = logging.getLogger(__name__)

BASE_SCORE = 1.0
TOP_GENRE_FACTOR = 3
RECENT_GENRE_FACTOR = 2
TOP_ARTIST_FACTOR = 5
WEIGHT_SCALE = 10

MOOD_SATURATION_HITS = 3
TOP_EVENTS_PER_MOOD = 5


def score_event_for_taste(event: Event, profile: TasteProfile) -> ScoredEvent:
    """
    Score one event against a listening profile.

    Every event starts at 1. The first top genre contained in the event's
    genre adds 3 * weight/10; only when no top genre matched, the first
    matching recent genre adds 2 * weight/10. The first top artist contained
    in the event name adds 5 * weight/10. Later matches are ignored.

    Args:
        event: Candidate event
        profile: The user's taste profile

    Returns:
        ScoredEvent with the score and a one-line reason, if anything matched
    """
    score = BASE_SCORE
    reason = None

    event_genre = (event.genre or "").lower()
    genre_matched = False
    if event_genre:
        for entry in profile.top_genres:
            if entry.genre and entry.genre.lower() in event_genre:
                score += TOP_GENRE_FACTOR * (entry.weight / WEIGHT_SCALE)
                reason = f"Because {entry.genre} is one of your favorite genres"
                genre_matched = True
                break

        if not genre_matched:
            for entry in profile.recent_genres:
                if entry.genre and entry.genre.lower() in event_genre:
                    score += RECENT_GENRE_FACTOR * (entry.weight / WEIGHT_SCALE)
                    reason = f"Matching your recent interest in {entry.genre} music"
                    break

    event_name = event.name.lower()
    for artist in profile.top_artists:
        if artist.name and artist.name.lower() in event_name:
            score += TOP_ARTIST_FACTOR * (artist.weight / WEIGHT_SCALE)
            reason = f"Your most streamed artist {artist.name} is performing nearby"
            break

    return ScoredEvent(event=event, relevance_score=score, personal_reason=reason)


def rank_by_taste(events: Iterable[Event], profile: TasteProfile) -> list[ScoredEvent]:
    """Score every event and sort by descending score; ties keep input order."""
    scored = [score_event_for_taste(event, profile) for event in events]
    scored.sort(key=lambda s: s.relevance_score, reverse=True)
    return scored


def mood_text(event: Event) -> str:
    return f"{event.name} {event.description or ''} {event.genre or ''}".lower()


def mood_relevance(event: Event, mood: "str | Mood") -> float:
    """
    Keyword relevance of an event for a mood, in [0, 1].

    Each distinct keyword found in the event's name, description and genre
    counts once; three hits saturate the score.
    """
    text = mood_text(event)
    keywords = MOOD_TARGETS[parse_mood(mood)].keywords
    hits = sum(1 for keyword in keywords if keyword.lower() in text)
    return min(hits / MOOD_SATURATION_HITS, 1.0)


def score_events_for_mood(events: Iterable[Event], mood: "str | Mood") -> list[ScoredEvent]:
    """Events with a non-zero mood score, highest first; ties keep input order."""
    mood = parse_mood(mood)
    scored = []
    for event in events:
        score = mood_relevance(event, mood)
        if score > 0:
            scored.append(ScoredEvent(event=event, relevance_score=score))

    scored.sort(key=lambda s: s.relevance_score, reverse=True)
    return scored


def _genres_overlap(user_genre: str, mood_genre: str) -> bool:
    return user_genre in mood_genre or mood_genre in user_genre


def recommended_moods(profile: TasteProfile) -> list[Mood]:
    """
    Moods whose genre seeds overlap the user's top or recent genres.

    A user genre overlaps a mood genre when either string contains the
    other ("indie rock" matches "rock", "r&b" matches "alternative r&b").
    """
    user_genres = profile.genre_tokens()
    moods = []
    for mood, target in MOOD_TARGETS.items():
        if any(
            _genres_overlap(user_genre, mood_genre)
            for mood_genre in target.genres
            for user_genre in user_genres
        ):
            moods.append(mood)

    logger.debug("Recommended moods: %s", [m.value for m in moods])
    return moods


def top_events_per_mood(
    events: Iterable[Event],
    moods: Iterable[Mood],
    limit: int = TOP_EVENTS_PER_MOOD,
) -> dict[Mood, list[ScoredEvent]]:
    """Top events by mood score for each mood; moods without any match are left out."""
    events = list(events)
    recommendations = {}
    for mood in moods:
        top = score_events_for_mood(events, mood)[:limit]
        if top:
            recommendations[mood] = top
    return recommendations
