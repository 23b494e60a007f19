#!/usr/bin/env python3
"""
Admit catalog games to the Elo ladder.

A game qualifies by popularity: a minimum catalog score, optionally
limited to the best N. Games already on the ladder keep their rating,
so this is safe to re-run after every catalog refresh.

Usage:
    # Admit every game scoring 80 or more (the configured default)
    python scripts/admit_games.py

    # Admit the top 500 games by score
    python scripts/admit_games.py --min-score 0 --top 500

    # Admit specific catalog ids
    python scripts/admit_games.py --ids 10,20,30

    # See what would be admitted without writing anything
    python scripts/admit_games.py --dry-run
"""

import argparse
import logging
import sys
from pathlib import Path

# Add src to path so this script can be run directly
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from steamrank.catalog import SqlCatalog
from steamrank.config import settings
from steamrank.db.session import create_db_engine, create_session_factory
from steamrank.errors import NotFound
from steamrank.ladder.store import RatingStore

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Admit catalog games to the Elo ladder.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument(
        "--min-score",
        type=int,
        default=settings.admission_min_score,
        help=f"Minimum catalog score (default: {settings.admission_min_score}).",
    )
    parser.add_argument(
        "--top",
        type=int,
        default=None,
        help="Only admit the best N qualifying games.",
    )
    parser.add_argument(
        "--ids",
        default=None,
        help="Comma-separated catalog ids to admit (skips the score filter).",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="List qualifying games without admitting them.",
    )
    return parser


def main() -> int:
    args = _build_parser().parse_args()

    engine = create_db_engine()
    try:
        session_factory = create_session_factory(engine)
        catalog = SqlCatalog(session_factory)
        store = RatingStore.from_settings(session_factory)

        if args.ids:
            try:
                ids = [int(x.strip()) for x in args.ids.split(",") if x.strip()]
            except ValueError as exc:
                logger.error("--ids must be comma-separated integers: %s", exc)
                return 1
        else:
            ids = catalog.popular_ids(min_score=args.min_score, top=args.top)

        logger.info("%d game(s) qualify for the ladder", len(ids))
        if args.dry_run:
            for game_id in ids:
                print(game_id)
            return 0

        try:
            added = store.admit(ids)
        except NotFound as exc:
            logger.error("%s", exc)
            return 1

        logger.info("Admitted %d new game(s); ladder now holds %d", added, store.count())
        return 0
    finally:
        engine.dispose()


if __name__ == "__main__":
    raise SystemExit(main())
