#!/usr/bin/env python3
"""
Rebuild every ladder rating by replaying the judgment log.

Normal usage (after a K-factor change or a manual data fix):
    python scripts/rebuild_ratings.py

Audit only (report drift between stored and replayed ratings):
    python scripts/rebuild_ratings.py --dry-run

Write a JSON summary for monitoring:
    python scripts/rebuild_ratings.py --dry-run --metrics-json artifacts/replay.json
"""
from __future__ import annotations

import argparse
import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from time import perf_counter

# Add src to path so this script can be run directly
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from steamrank.db.session import create_db_engine, create_session_factory
from steamrank.errors import ConcurrencyConflict
from steamrank.ladder.replay import rebuild_ratings
from steamrank.ladder.store import RatingStore

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger(__name__)


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Replay the judgment log and rebuild ladder ratings.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Compute and report drift but do not write to the database.",
    )
    parser.add_argument(
        "--metrics-json",
        default=None,
        help="Write a JSON summary to this path on completion.",
    )
    return parser


def main() -> int:
    args = _build_parser().parse_args()

    started_at = _utc_now_iso()
    print(f"RATING REBUILD  dry_run={args.dry_run}  started={started_at}")
    print("-" * 60)

    t_start = perf_counter()
    engine = create_db_engine()
    try:
        store = RatingStore.from_settings(create_session_factory(engine))
        try:
            report = rebuild_ratings(store, dry_run=args.dry_run)
        except ConcurrencyConflict as exc:
            logger.error("Rebuild abandoned: %s", exc)
            return 1
    finally:
        engine.dispose()

    elapsed = perf_counter() - t_start

    print("-" * 60)
    print(f"Judgments replayed:  {report.judgments_replayed}")
    print(f"Games:               {len(report.ratings)}")
    print(f"Games drifted:       {len(report.drift)}")
    print(f"Max drift:           {report.max_drift:.6f}")
    print(f"Written:             {'YES' if report.written else 'no (dry run)'}")
    print(f"Elapsed:             {elapsed:.2f}s")

    if args.metrics_json:
        payload = {
            "status": "success",
            "dry_run": args.dry_run,
            "started_at": started_at,
            "elapsed_s": round(elapsed, 3),
            **report.to_dict(),
        }
        metrics_path = Path(args.metrics_json)
        metrics_path.parent.mkdir(parents=True, exist_ok=True)
        metrics_path.write_text(json.dumps(payload, indent=2) + "\n", encoding="utf-8")

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
