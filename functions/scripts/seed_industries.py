"""
CLI helper to (re)seed the industry category catalogue.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from backend.dependencies import get_industry_catalog
from backend.errors import ServiceError
from backend.industries import DEFAULT_INDUSTRIES

logger = logging.getLogger(__name__)


def main() -> int:
    parser = argparse.ArgumentParser(description="Seed industry categories")
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Report how many rows would be written without saving",
    )
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(levelname)s:%(message)s")
    if args.dry_run:
        logger.info("Would seed %d industries", len(DEFAULT_INDUSTRIES))
        return 0

    try:
        count = get_industry_catalog().reseed()
    except ServiceError as exc:
        logger.error("Seeding failed: %s", exc.message)
        return 1
    logger.info("Seeded %d industries", count)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
