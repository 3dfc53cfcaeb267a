"""Remove expired or long-unrefreshed push subscriptions.

Meant to run from cron, e.g. once a day::

    veil-prune-subscriptions --max-age-days 90
"""
from __future__ import annotations

import argparse
import logging
import sys

from sqlalchemy.exc import SQLAlchemyError

from veil_inbox.core.logging import configure_logging
from veil_inbox.core.settings import settings
from veil_inbox.db.session import SessionLocal
from veil_inbox.services.notifications import prune_stale_subscriptions

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument(
        "--max-age-days",
        type=int,
        default=settings.subscription_max_age_days,
        help="Delete subscriptions not refreshed within this many days (default: %(default)s)",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(settings.log_level, settings.log_format)

    if args.max_age_days < 1:
        logger.error("--max-age-days must be at least 1")
        return 2

    db = SessionLocal()
    try:
        removed = prune_stale_subscriptions(db, max_age_days=args.max_age_days)
    except SQLAlchemyError as exc:
        logger.error("Pruning push subscriptions failed: %s", exc)
        return 1
    finally:
        db.close()

    print(f"Removed {removed} stale push subscription(s)")
    return 0


if __name__ == "__main__":
    sys.exit(main())
