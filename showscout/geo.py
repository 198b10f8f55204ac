"""Great-circle distance and the location filter applied before scoring."""

import math
from collections.abc import Iterable

from showscout.models import Event

EARTH_RADIUS_KM = 6371.0


def haversine_km(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Great-circle distance between two coordinates in kilometers."""
    d_lat = math.radians(lat2 - lat1)
    d_lng = math.radians(lng2 - lng1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1))
        * math.cos(math.radians(lat2))
        * math.sin(d_lng / 2) ** 2
    )
    return EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def within_radius(event: Event, lat: float, lng: float, radius_km: float) -> bool:
    """True if the event has coordinates and lies within radius_km of (lat, lng)."""
    if not event.has_coordinates:
        return False
    return haversine_km(lat, lng, event.latitude, event.longitude) <= radius_km


def filter_by_radius(
    events: Iterable[Event], lat: float, lng: float, radius_km: float
) -> list[Event]:
    """Keep events within radius_km; events missing a coordinate never qualify."""
    return [event for event in events if within_radius(event, lat, lng, radius_km)]


def sort_by_date(events: Iterable[Event]) -> list[Event]:
    return sorted(events, key=lambda event: event.date)


def query_events(
    events: Iterable[Event],
    lat: float | None = None,
    lng: float | None = None,
    radius_km: float | None = None,
) -> list[Event]:
    """
    Select candidate events for a location.

    With a location, returns the events inside the radius. Without one, falls
    back to every event sorted by ascending start time.

    Args:
        events: Events from the event store
        lat: Latitude of the search center
        lng: Longitude of the search center
        radius_km: Search radius; required when lat/lng are given

    Returns:
        List of candidate events
    """
    if lat is None or lng is None:
        return sort_by_date(events)

    if radius_km is None:
        raise ValueError("radius_km is required for a location query")

    return filter_by_radius(events, lat, lng, radius_km)
