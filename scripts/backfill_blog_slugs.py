"""
Backfill slugs for blog posts stored before slugs were assigned on save.

Run once after deploying; re-running only touches posts still lacking a slug.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from mudbeaver.dependencies import get_db_client
from mudbeaver.slugs import backfill_slugs


logger = logging.getLogger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Report the slugs that would be assigned without saving them.",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    logging.basicConfig(level=logging.INFO)
    args = parse_args(argv)
    db = get_db_client()
    assigned = backfill_slugs(db, dry_run=args.dry_run)
    for post_id, slug in assigned:
        logger.info("%s %s -> %s", "Would set" if args.dry_run else "Set", post_id, slug)
    logger.info("%d post(s) %s", len(assigned), "pending" if args.dry_run else "updated")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
