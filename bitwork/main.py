"""CLI entry point: initialise the database, print stats, run the web app."""

import argparse
import json
import logging
import sys

from bitwork.config import AppConfig, load_config, validate_config
from bitwork.models import ROLES
from bitwork.services import profiles, stats
from bitwork.storage.database import Database
from bitwork.utils.logging_config import setup_logging

logger = logging.getLogger("bitwork")


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Bitwork - local skills and jobs marketplace",
    )
    parser.add_argument(
        "--config", default=None,
        help="Path to config file (default: built-in defaults plus environment)",
    )
    parser.add_argument(
        "--init-db", action="store_true",
        help="Create any missing tables and exit",
    )
    parser.add_argument(
        "--stats", metavar="USER_ID",
        help="Print dashboard statistics for a user and exit",
    )
    parser.add_argument(
        "--role", choices=ROLES,
        help="Role to compute --stats for (default: the profile's role)",
    )
    parser.add_argument(
        "--serve", action="store_true",
        help="Run the web app",
    )
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=8000)
    return parser.parse_args(argv)


def init_db(config: AppConfig) -> None:
    with Database(config.database.url, echo=config.database.echo) as database:
        database.create_all()
    logger.info("Database schema is up to date")


def print_stats(config: AppConfig, user_id: str, role: str | None = None) -> int:
    """Print provider or seeker stats as JSON; returns a process exit code."""
    with Database(config.database.url) as database, database.session() as db:
        profile = profiles.get_profile(db, user_id)
        if profile is None:
            print(f"No profile with id {user_id}", file=sys.stderr)
            return 1

        role = role or profile.role
        if role == "provider":
            result = stats.get_provider_stats(db, user_id)
        elif role == "seeker":
            result = stats.get_seeker_stats(db, user_id)
        else:
            print(f"Profile {user_id} has no role yet; pass --role", file=sys.stderr)
            return 1

    print(f"\n=== Bitwork {role} statistics for {profile.display_name} ===")
    print(json.dumps(result.to_dict(), indent=2))
    return 0


def serve(config: AppConfig, host: str, port: int) -> None:
    import uvicorn

    from bitwork.web.app import create_app

    logger.info("Starting web app on %s:%d", host, port)
    uvicorn.run(create_app(config), host=host, port=port, log_config=None)


def main(argv=None):
    args = parse_args(argv)

    # Load config
    try:
        config = load_config(args.config)
    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    setup_logging(config.log_dir, config.log_level)

    for w in validate_config(config):
        logger.warning("Config: %s", w)

    if args.init_db:
        init_db(config)
        return

    if args.stats:
        sys.exit(print_stats(config, args.stats, args.role))

    if args.serve:
        serve(config, args.host, args.port)
        return

    print("Nothing to do. Use --init-db, --stats USER_ID or --serve.", file=sys.stderr)
    sys.exit(2)


if __name__ == "__main__":
    main()
