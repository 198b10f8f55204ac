"""CLI entry point for showscout."""

import argparse
import json
import logging
import sys
import time

from showscout import config
from showscout.base_scraper import ScraperError
from showscout.discovery import DiscoveryEngine, EventNotFoundError
from showscout.event_store import EventStore, TasteProfileStore
from showscout.moods import UnknownMoodError
from showscout.scraper_manager import ScraperManager
from showscout.spotify_client import (
    CatalogError,
    SpotifyCatalog,
    build_taste_profile,
    create_spotify_client,
    is_profile_stale,
)

logger = logging.getLogger(__name__)


def _print_json(data) -> None:
    print(json.dumps(data, indent=2, ensure_ascii=False))


def _build_engine(catalog=None) -> DiscoveryEngine:
    event_store = EventStore.load(config.EVENTS_FILE)
    profile_store = TasteProfileStore.load(config.PROFILES_FILE)
    return DiscoveryEngine(
        event_store,
        profile_store=profile_store,
        scraper_manager=ScraperManager(event_store),
        catalog=catalog,
    )


def cmd_ingest(args: argparse.Namespace) -> int:
    """Run every adapter once and save the event snapshot."""
    engine = _build_engine()
    summary = engine.run_ingestion()
    engine.event_store.save(config.EVENTS_FILE)
    _print_json(summary)
    return 0 if summary.get("success") else 1


def cmd_schedule(args: argparse.Namespace) -> int:
    """Run ingestion daily until interrupted."""
    engine = _build_engine()
    manager = engine.scraper_manager
    manager.after_run = lambda summary: engine.event_store.save(config.EVENTS_FILE)
    manager.start()
    if args.run_now:
        engine.run_ingestion()

    try:
        while True:
            time.sleep(60)
    except KeyboardInterrupt:
        logger.info("Stopping scheduler...")
    finally:
        manager.stop()
        engine.event_store.save(config.EVENTS_FILE)
    return 0


def cmd_status(args: argparse.Namespace) -> int:
    engine = _build_engine()
    status = engine.get_ingestion_status().to_dict()
    status["event_count"] = len(engine.event_store)
    _print_json(status)
    return 0


def cmd_events(args: argparse.Namespace) -> int:
    engine = _build_engine()
    if args.genre:
        events = engine.events_by_genre(args.genre)
        _print_json({"genre": args.genre, "count": len(events), "events": [e.to_dict() for e in events]})
        return 0

    scored = engine.query_events(args.lat, args.lng, args.radius, args.user)
    _print_json({"count": len(scored), "events": [s.to_dict() for s in scored]})
    return 0


def cmd_moods(args: argparse.Namespace) -> int:
    moods = _build_engine().list_moods()
    _print_json({"count": len(moods), "moods": moods})
    return 0


def cmd_mood_events(args: argparse.Namespace) -> int:
    scored = _build_engine().mood_events(args.mood, args.lat, args.lng, args.radius)
    _print_json({"mood": args.mood, "count": len(scored), "events": [s.to_dict() for s in scored]})
    return 0


def cmd_recommend(args: argparse.Namespace) -> int:
    result = _build_engine().recommended_moods_for_user(args.user_id, args.lat, args.lng, args.radius)
    _print_json({
        "user_id": args.user_id,
        "recommended_moods": [m.value for m in result["recommended_moods"]],
        "recommendations": {
            mood.value: [s.to_dict() for s in scored]
            for mood, scored in result["recommendations"].items()
        },
    })
    return 0


def cmd_profile(args: argparse.Namespace) -> int:
    """Refresh a user's taste profile from their Spotify history."""
    profile_store = TasteProfileStore.load(config.PROFILES_FILE)
    existing = profile_store.get(args.user_id)
    if not args.force and not is_profile_stale(existing):
        logger.info("Taste profile for %s is less than a day old, keeping it", args.user_id)
        _print_json(existing.to_dict())
        return 0

    profile = build_taste_profile(create_spotify_client())
    profile_store.save(args.user_id, profile)
    profile_store.dump(config.PROFILES_FILE)
    _print_json(profile.to_dict())
    return 0


def cmd_playlist(args: argparse.Namespace) -> int:
    catalog = SpotifyCatalog(create_spotify_client())
    result = _build_engine(catalog).generate_playlist(args.event_id, args.mood, args.tracks)
    _print_json(result.to_dict())
    return 0


def _add_location_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--lat", type=float, default=None, help="Latitude of the search center")
    parser.add_argument("--lng", type=float, default=None, help="Longitude of the search center")
    parser.add_argument(
        "--radius",
        type=float,
        default=None,
        help=f"Search radius in km (default: {config.DEFAULT_RADIUS_KM:g})",
    )


def main() -> int:
    """Main CLI function."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        handlers=[
            logging.FileHandler("showscout.log", encoding="utf-8"),
            logging.StreamHandler(),
        ],
    )

    parser = argparse.ArgumentParser(
        description="Discover live music events and turn them into playlists",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py ingest                         # Run all scrapers once
  python main.py events --lat 41.88 --lng -87.63 --user 1
  python main.py mood-events party
  python main.py playlist 12 --mood energetic --tracks 30
        """,
    )
    subparsers = parser.add_subparsers(dest="command", help="Command to execute")

    ingest_parser = subparsers.add_parser("ingest", help="Run all scrapers once")
    ingest_parser.set_defaults(func=cmd_ingest)

    schedule_parser = subparsers.add_parser("schedule", help="Run scrapers daily until stopped")
    schedule_parser.add_argument("--run-now", action="store_true", help="Also run once at startup")
    schedule_parser.set_defaults(func=cmd_schedule)

    status_parser = subparsers.add_parser("status", help="Show ingestion status")
    status_parser.set_defaults(func=cmd_status)

    events_parser = subparsers.add_parser("events", help="List events, ranked for a user")
    _add_location_args(events_parser)
    events_parser.add_argument("--user", default=None, help="User id with a stored taste profile")
    events_parser.add_argument("--genre", default=None, help="Only events of this genre")
    events_parser.set_defaults(func=cmd_events)

    moods_parser = subparsers.add_parser("moods", help="List available moods")
    moods_parser.set_defaults(func=cmd_moods)

    mood_events_parser = subparsers.add_parser("mood-events", help="Events matching a mood")
    mood_events_parser.add_argument("mood", help="Mood name, e.g. party")
    _add_location_args(mood_events_parser)
    mood_events_parser.set_defaults(func=cmd_mood_events)

    recommend_parser = subparsers.add_parser("recommend", help="Moods and events for a user")
    recommend_parser.add_argument("user_id")
    _add_location_args(recommend_parser)
    recommend_parser.set_defaults(func=cmd_recommend)

    profile_parser = subparsers.add_parser("profile", help="Refresh a taste profile from Spotify")
    profile_parser.add_argument("user_id")
    profile_parser.add_argument("--force", action="store_true", help="Refresh even if recent")
    profile_parser.set_defaults(func=cmd_profile)

    playlist_parser = subparsers.add_parser("playlist", help="Generate a playlist for an event")
    playlist_parser.add_argument("event_id", type=int)
    playlist_parser.add_argument("--mood", default=None, help="Mood to tune the playlist for")
    playlist_parser.add_argument(
        "--tracks",
        type=int,
        default=config.DEFAULT_TRACK_COUNT,
        help=f"Number of tracks (default: {config.DEFAULT_TRACK_COUNT})",
    )
    playlist_parser.set_defaults(func=cmd_playlist)

    args = parser.parse_args()
    if not args.command:
        parser.print_help()
        return 1

    try:
        return args.func(args)
    except EventNotFoundError as e:
        logger.error("No event with id %s", e.args[0])
    except UnknownMoodError as e:
        logger.error("%s", e)
    except (CatalogError, ScraperError) as e:
        logger.error("%s", e)
    return 1


if __name__ == "__main__":
    sys.exit(main())
