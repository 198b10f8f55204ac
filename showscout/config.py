"""Runtime configuration read from the environment."""

import json
import logging
import os
from pathlib import Path

logger = logging.getLogger(__name__)

# Provider credentials; an adapter without its credential disables itself
EVENTBRITE_API_KEY = os.getenv("EVENTBRITE_API_KEY")
EDMTRAIN_API_KEY = os.getenv("EDMTRAIN_API_KEY")
BANDSINTOWN_APP_ID = os.getenv("BANDSINTOWN_APP_ID")

# Comma-separated EDMTrain location ids; empty means query by metro coordinates
EDMTRAIN_LOCATION_IDS = [
    int(lid) for lid in os.getenv("EDMTRAIN_LOCATION_IDS", "").split(",") if lid.strip()
]

# Metro area the adapters keep events for (Chicago by default, 50 miles)
METRO_LATITUDE = float(os.getenv("METRO_LATITUDE", "41.8781"))
METRO_LONGITUDE = float(os.getenv("METRO_LONGITUDE", "-87.6298"))
METRO_RADIUS_KM = float(os.getenv("METRO_RADIUS_KM", "80.47"))

REQUEST_TIMEOUT = float(os.getenv("REQUEST_TIMEOUT", "30"))
LOOKAHEAD_DAYS = int(os.getenv("LOOKAHEAD_DAYS", "60"))

# Daily ingestion time (local wall clock)
SCRAPE_HOUR = int(os.getenv("SCRAPE_HOUR", "3"))
SCRAPE_MINUTE = int(os.getenv("SCRAPE_MINUTE", "0"))

DEFAULT_RADIUS_KM = float(os.getenv("DEFAULT_RADIUS_KM", "25"))
DEFAULT_TRACK_COUNT = int(os.getenv("DEFAULT_TRACK_COUNT", "25"))

BANDSINTOWN_ARTISTS = [
    name.strip()
    for name in os.getenv(
        "BANDSINTOWN_ARTISTS",
        "Chance the Rapper,Wilco,Smashing Pumpkins,Fall Out Boy,Lupe Fiasco,"
        "Common,Twista,Earth Wind & Fire,Dua Lipa,Bad Bunny,Coldplay,Olivia Rodrigo",
    ).split(",")
    if name.strip()
]

SPOTIFY_CONFIG_PATH = Path(os.getenv("SPOTIFY_CONFIG_PATH", "spotify-config.json"))
SPOTIFY_SCOPES = (
    "user-top-read user-read-recently-played "
    "playlist-modify-public playlist-modify-private"
)

OUTPUT_DIR = Path(os.getenv("SHOWSCOUT_OUTPUT_DIR", "output"))
EVENTS_FILE = OUTPUT_DIR / "events.json"
PROFILES_FILE = OUTPUT_DIR / "taste_profiles.json"


def load_spotify_config(path: Path = SPOTIFY_CONFIG_PATH) -> dict:
    """
    Load Spotify credentials from a JSON config file.

    Environment variables SPOTIFY_CLIENT_ID, SPOTIFY_CLIENT_SECRET and
    SPOTIFY_REDIRECT_URI override the file values.

    Args:
        path: Path to spotify-config.json

    Returns:
        Dict with clientId, clientSecret and redirectUri keys (values may be None)
    """
    config: dict = {}
    if path.exists():
        with open(path, encoding="utf-8") as f:
            config = json.load(f)
    else:
        logger.debug("No Spotify config file at %s", path)

    overrides = {
        "clientId": os.getenv("SPOTIFY_CLIENT_ID"),
        "clientSecret": os.getenv("SPOTIFY_CLIENT_SECRET"),
        "redirectUri": os.getenv("SPOTIFY_REDIRECT_URI"),
    }
    for key, value in overrides.items():
        if value:
            config[key] = value
        config.setdefault(key, None)

    return config
