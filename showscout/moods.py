"""Static mood table: event keywords, catalog genre seeds and audio-feature targets."""

from dataclasses import dataclass
from enum import Enum


class Mood(str, Enum):
    ENERGETIC = "energetic"
    RELAXED = "relaxed"
    UPBEAT = "upbeat"
    MELANCHOLIC = "melancholic"
    PARTY = "party"
    FOCUSED = "focused"
    ROMANTIC = "romantic"


class UnknownMoodError(ValueError):
    """Raised for a mood label outside the fixed mood set."""


@dataclass(frozen=True)
class MoodTarget:
    """
    What a mood means for event matching and for playlist generation.

    keywords are matched against event text; genres are the catalog seeds a
    user's taste is compared with; energy, danceability and valence are the
    audio-feature targets in [0, 1] passed along with catalog searches.
    """

    keywords: tuple[str, ...]
    genres: tuple[str, ...]
    energy: float
    danceability: float
    valence: float

    def audio_targets(self) -> dict[str, float]:
        return {
            "energy": self.energy,
            "danceability": self.danceability,
            "valence": self.valence,
        }


MOOD_TARGETS: dict[Mood, MoodTarget] = {
    Mood.ENERGETIC: MoodTarget(
        keywords=("rock", "electronic", "dance", "edm", "pop", "upbeat", "party", "hip-hop", "rap"),
        genres=("rock", "electronic", "dance", "hip-hop"),
        energy=0.85,
        danceability=0.7,
        valence=0.7,
    ),
    Mood.RELAXED: MoodTarget(
        keywords=("jazz", "ambient", "acoustic", "folk", "indie", "chill", "classical"),
        genres=("jazz", "ambient", "acoustic", "folk", "classical"),
        energy=0.3,
        danceability=0.4,
        valence=0.5,
    ),
    Mood.UPBEAT: MoodTarget(
        keywords=("pop", "dance", "funk", "disco", "tropical", "summer", "happy"),
        genres=("pop", "funk", "disco"),
        energy=0.75,
        danceability=0.75,
        valence=0.85,
    ),
    Mood.MELANCHOLIC: MoodTarget(
        keywords=("indie", "alternative", "folk", "singer-songwriter", "soul", "blues"),
        genres=("indie", "alternative", "folk", "soul", "blues"),
        energy=0.35,
        danceability=0.35,
        valence=0.2,
    ),
    Mood.PARTY: MoodTarget(
        keywords=("electronic", "dance", "hip-hop", "rap", "r&b", "latin", "reggaeton"),
        genres=("electronic", "dance", "hip-hop", "r&b", "latin"),
        energy=0.85,
        danceability=0.9,
        valence=0.75,
    ),
    Mood.FOCUSED: MoodTarget(
        keywords=("classical", "instrumental", "ambient", "study", "concentration", "piano"),
        genres=("classical", "ambient", "instrumental"),
        energy=0.35,
        danceability=0.3,
        valence=0.45,
    ),
    Mood.ROMANTIC: MoodTarget(
        keywords=("r&b", "soul", "jazz", "ballad", "acoustic", "love"),
        genres=("r&b", "soul", "jazz"),
        energy=0.45,
        danceability=0.5,
        valence=0.6,
    ),
}


def parse_mood(value: "str | Mood") -> Mood:
    """
    Resolve a mood label, case-insensitively.

    Raises:
        UnknownMoodError: If the label is not one of the fixed moods
    """
    if isinstance(value, Mood):
        return value
    try:
        return Mood(str(value).strip().lower())
    except ValueError as e:
        valid = ", ".join(m.value for m in Mood)
        raise UnknownMoodError(f"Invalid mood {value!r}, expected one of: {valid}") from e


def get_target(mood: "str | Mood") -> MoodTarget:
    return MOOD_TARGETS[parse_mood(mood)]


def list_moods() -> list[dict]:
    """The mood catalog for display, keywords joined into a single string."""
    return [
        {
            "id": mood.value,
            "name": mood.value.capitalize(),
            "keywords": ", ".join(target.keywords),
        }
        for mood, target in MOOD_TARGETS.items()
    ]
