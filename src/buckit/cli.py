"""CLI entry point for buckit.

Provides commands for running the service and its jobs:
  - serve: Run the web app with uvicorn
  - scan: Run one Reddit scan
  - parse: Parse a saved post (JSON or plain text) and print the prediction
  - status: Show stored prediction status
  - migrate: Run database migrations
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys

from buckit.config import load_config
from buckit.models.post import RedditPost
from buckit.parsing.reddit import build_reddit_prediction
from buckit.storage.db import Database
from buckit.storage.predictions import PredictionStore, build_store


def setup_logging(verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)-8s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def _open_store(config) -> tuple[PredictionStore, Database | None]:
    db = None
    if config.db_dsn:
        db = Database(config.db_dsn)
        db.connect()
    return build_store(config, db), db


def cmd_serve(args: argparse.Namespace) -> None:
    """Run the web app."""
    import uvicorn

    uvicorn.run(
        "buckit.api.app:create_app",
        factory=True,
        host=args.host,
        port=args.port,
        log_level="debug" if args.verbose else "info",
    )


async def _run_scan(config, store: PredictionStore):
    from buckit.data.reddit import RedditClient
    from buckit.imaging.generator import ImageGenerator
    from buckit.scanner import Scanner

    reddit = RedditClient(config)
    images = ImageGenerator(config, store)
    await reddit.start()
    try:
        return await Scanner(config, store, reddit, images).run()
    finally:
        await reddit.close()
        await images.close()


def cmd_scan(args: argparse.Namespace) -> None:
    """Run one Reddit scan."""
    config = load_config()
    store, db = _open_store(config)
    try:
        result = asyncio.run(_run_scan(config, store))
    finally:
        if db is not None:
            db.close()
    print(json.dumps(result.to_dict(), indent=2))


def _load_post(text: str) -> RedditPost:
    """A post from Reddit JSON (bare, or a listing child) or from plain text."""
    try:
        data = json.loads(text)
    except ValueError:
        return RedditPost(id="", title="", selftext=text)
    if not isinstance(data, dict):
        return RedditPost(id="", title="", selftext=text)
    if isinstance(data.get("data"), dict):
        data = data["data"]
    return RedditPost.from_listing_child(data)


def cmd_parse(args: argparse.Namespace) -> None:
    """Parse a post and print the resulting prediction."""
    if args.file == "-":
        text = sys.stdin.read()
    else:
        with open(args.file, encoding="utf-8") as f:
            text = f.read()
    prediction = build_reddit_prediction(_load_post(text))
    print(json.dumps(prediction.to_dict(), indent=2))


def cmd_status(args: argparse.Namespace) -> None:
    """Show stored prediction status."""
    config = load_config()
    store, db = _open_store(config)
    try:
        status = store.status()
        latest = store.get_latest()
        db_ok = db.health_check() if db is not None else None
    finally:
        if db is not None:
            db.close()

    print("Status:")
    print(f"  store: {'memory' if db is None else 'postgres'}")
    if db_ok is not None:
        print(f"  database: {'ok' if db_ok else 'unreachable'}")
    for key, value in status.items():
        print(f"  {key}: {value}")
    if latest:
        print("\nLatest prediction:")
        for label, slot in (("gas", latest.gas), ("diesel", latest.diesel)):
            if slot is None:
                continue
            price = f"${slot.price}" if slot.price is not None else "n/a"
            print(f"  {label}: {slot.direction} (adjustment {slot.adjustment}, price {price})")


def cmd_migrate(args: argparse.Namespace) -> None:
    """Run database migrations."""
    config = load_config()
    if not config.db_dsn:
        print("DATABASE_URL is not set; nothing to migrate.")
        sys.exit(1)
    with Database(config.db_dsn) as db:
        applied = db.run_migrations()
    print(f"Migrations complete ({len(applied)} applied).")


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        prog="buckit",
        description="Halifax fuel price predictions from r/halifax",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose output")

    subs = parser.add_subparsers(dest="command", required=True)

    # serve
    p_serve = subs.add_parser("serve", help="Run the web app")
    p_serve.add_argument("--host", default="0.0.0.0", help="Bind address")
    p_serve.add_argument("--port", type=int, default=8000, help="Port")

    # scan
    subs.add_parser("scan", help="Run one Reddit scan")

    # parse
    p_parse = subs.add_parser("parse", help="Parse a saved post and print the prediction")
    p_parse.add_argument("file", help="Post JSON or text file, or - for stdin")

    # status
    subs.add_parser("status", help="Show stored prediction status")

    # migrate
    subs.add_parser("migrate", help="Run database migrations")

    args = parser.parse_args(argv)
    setup_logging(args.verbose)

    commands = {
        "serve": cmd_serve,
        "scan": cmd_scan,
        "parse": cmd_parse,
        "status": cmd_status,
        "migrate": cmd_migrate,
    }
    commands[args.command](args)


if __name__ == "__main__":
    main()
