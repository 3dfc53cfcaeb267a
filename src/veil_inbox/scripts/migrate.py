# src/veil_inbox/scripts/migrate.py
"""Upgrade the configured database to the latest schema revision."""

from __future__ import annotations

import logging
import os
import sys

from alembic import command
from alembic.config import Config

from veil_inbox.core.logging import configure_logging
from veil_inbox.core.settings import settings

logger = logging.getLogger(__name__)

_PROJECT_ROOT = os.path.join(os.path.dirname(__file__), "..", "..", "..")


def alembic_config() -> Config:
    cfg = Config(os.path.abspath(os.path.join(_PROJECT_ROOT, "alembic.ini")))
    cfg.set_main_option("sqlalchemy.url", settings.database_url_sync)
    cfg.set_main_option("script_location", os.path.abspath(os.path.join(_PROJECT_ROOT, "migrations")))
    return cfg


def run_upgrade_head() -> None:
    """Apply every pending Alembic migration to the configured database."""
    command.upgrade(alembic_config(), "head")


def main() -> int:
    configure_logging(settings.log_level, settings.log_format)
    run_upgrade_head()
    logger.info("Database schema is up to date")
    return 0


if __name__ == "__main__":
    sys.exit(main())
