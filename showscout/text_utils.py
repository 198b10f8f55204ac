"""Shared text, genre, price and date helpers used by the provider adapters."""

import logging
import re
from datetime import datetime, time

logger = logging.getLogger(__name__)

# Checked in order; the first keyword found in the text wins
GENRE_KEYWORDS = [
    "rock", "indie", "pop", "electronic", "jazz", "blues", "hip hop",
    "rap", "metal", "punk", "folk", "country", "r&b", "techno",
    "house", "classical", "alternative", "edm", "dubstep",
]

DEFAULT_GENRE = "Music"
UNKNOWN_PRICE = "TBD"
FREE_PRICE = "Free Entry"

_FREE_MARKERS = ("free", "no cover", "no charge")
_PRICE_RANGE_RE = re.compile(r"\$(\d+)\s*[-–—]\s*\$?(\d+)")
_SINGLE_PRICE_RE = re.compile(r"\$(\d+)")
_CLOCK_RE = re.compile(r"(\d{1,2})(?::(\d{2}))?\s*([ap])\.?m?\b", re.IGNORECASE)

NOON_HOUR_12 = 12
PM_HOUR_OFFSET = 12

_DATED_FORMATS = [
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%d %H:%M",
    "%Y-%m-%d",
    "%A, %B %d, %Y",
    "%a, %b %d, %Y",
    "%a %b %d, %Y",
    "%a %b %d %Y",
    "%B %d, %Y",
    "%b %d, %Y",
    "%b %d %Y",
    "%m/%d/%Y",
]

# Venue calendars often omit the year; these get one appended before parsing
_YEARLESS_FORMATS = [
    "%A, %B %d",
    "%a, %b %d",
    "%a %b %d",
    "%A %B %d",
    "%B %d",
    "%b %d",
    "%m/%d",
]


def clean_text(text: str | None) -> str:
    """Collapse runs of whitespace, tabs and newlines into single spaces."""
    if not text:
        return ""
    return re.sub(r"\s+", " ", text).strip()


def extract_genre(text: str | None) -> str | None:
    """
    Infer a genre from free text.

    Case-insensitive substring test against GENRE_KEYWORDS; the first
    keyword in list order that occurs wins, there is no ranking of
    multiple matches.

    Args:
        text: Text to analyze (event name, description, ...)

    Returns:
        The matching keyword, or None if nothing matches
    """
    if not text:
        return None

    lower_text = text.lower()
    for genre in GENRE_KEYWORDS:
        if genre in lower_text:
            return genre
    return None


def extract_price(text: str | None) -> str:
    """
    Normalize price information from free text.

    Examples: "No cover" -> "Free Entry", "$20 - $35" -> "$20–$35",
    "Tickets $15 adv" -> "$15", "" -> "TBD"
    """
    if not text:
        return UNKNOWN_PRICE

    lower_text = text.lower()
    if any(marker in lower_text for marker in _FREE_MARKERS):
        return FREE_PRICE

    range_match = _PRICE_RANGE_RE.search(text)
    if range_match:
        return f"${range_match.group(1)}–${range_match.group(2)}"

    single_match = _SINGLE_PRICE_RE.search(text)
    if single_match:
        return f"${single_match.group(1)}"

    return UNKNOWN_PRICE


def slugify(text: str) -> str:
    """Lowercase and replace every non-alphanumeric character with a dash."""
    return re.sub(r"[^a-z0-9]", "-", text.lower())


def make_external_id(source: str, name: str, date: datetime) -> str:
    """Build a stable dedup key for sources that do not expose their own ids."""
    return f"{slugify(source)}-{slugify(name)}-{date.strftime('%Y-%m-%d')}"


def parse_clock_time(text: str | None) -> time | None:
    """
    Parse the first clock time in text like "Doors 7pm / Show 8:30 PM".

    Returns:
        time object for the first match, or None
    """
    if not text:
        return None

    match = _CLOCK_RE.search(text)
    if not match:
        return None

    hour_str, minute_str, period = match.groups()
    hour = int(hour_str)
    minute = int(minute_str) if minute_str else 0
    if hour > NOON_HOUR_12 or minute > 59:
        return None

    if period.lower() == "a":
        if hour == NOON_HOUR_12:
            hour = 0
    elif hour != NOON_HOUR_12:
        hour += PM_HOUR_OFFSET

    return time(hour, minute)


def parse_event_datetime(
    date_text: str | None,
    time_text: str | None = None,
    reference: datetime | None = None,
) -> datetime | None:
    """
    Normalize a provider date (and optional time) into a datetime.

    ISO timestamps are parsed directly. Dates without a year resolve to the
    next occurrence on or after the reference date.

    Args:
        date_text: Date text from the provider
        time_text: Optional separate time text ("8pm", "Show 9:00 PM")
        reference: Date used to infer missing years (defaults to now)

    Returns:
        Naive datetime, or None if the date cannot be parsed
    """
    date_text = clean_text(date_text)
    if not date_text:
        return None

    reference = reference or datetime.now()
    parsed = _parse_iso(date_text) or _parse_dated(date_text)

    if parsed is None:
        parsed = _parse_yearless(date_text, reference)

    if parsed is None:
        logger.warning("Failed to parse date string: %s", date_text)
        return None

    clock = parse_clock_time(time_text)
    if clock is not None:
        parsed = datetime.combine(parsed.date(), clock)

    return parsed


def _parse_iso(text: str) -> datetime | None:
    try:
        parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone().replace(tzinfo=None)
    return parsed


def _parse_dated(text: str) -> datetime | None:
    for fmt in _DATED_FORMATS:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue
    return None


def _parse_yearless(text: str, reference: datetime) -> datetime | None:
    # Drop trailing ordinal suffixes such as "April 15th"
    text = re.sub(r"(\d)(st|nd|rd|th)\b", r"\1", text)

    for fmt in _YEARLESS_FORMATS:
        for year in (reference.year, reference.year + 1):
            try:
                parsed = datetime.strptime(f"{text} {year}", f"{fmt} %Y")
            except ValueError:
                continue
            if parsed.date() >= reference.date():
                return parsed
    return None
