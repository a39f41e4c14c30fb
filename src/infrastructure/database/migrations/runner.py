# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Database migration runner.

Runs Alembic programmatically, without an alembic.ini, against the
database configured in the application settings.

Example:
    python -m src.infrastructure.database.migrations.runner upgrade head
    python -m src.infrastructure.database.migrations.runner downgrade base
"""

import logging
import sys
from pathlib import Path

from alembic import command
from alembic.config import Config

logger = logging.getLogger(__name__)

MIGRATIONS_DIR = Path(__file__).resolve().parent


def build_config(database_url: str | None = None) -> Config:
    """Build an Alembic config pointing at this package.

    Args:
        database_url: Optional URL overriding the application settings.

    Returns:
        Alembic Config.
    """
    config = Config()
    config.set_main_option("script_location", str(MIGRATIONS_DIR))
    config.set_main_option("version_locations", str(MIGRATIONS_DIR / "versions"))
    if database_url:
        config.set_main_option("sqlalchemy.url", database_url)
    return config


def upgrade(revision: str = "head", database_url: str | None = None) -> None:
    """Apply migrations up to a revision."""
    logger.info("Upgrading database to %s", revision)
    command.upgrade(build_config(database_url), revision)


def downgrade(revision: str, database_url: str | None = None) -> None:
    """Revert migrations down to a revision."""
    logger.info("Downgrading database to %s", revision)
    command.downgrade(build_config(database_url), revision)


def main(argv: list[str]) -> int:
    if len(argv) != 2 or argv[0] not in {"upgrade", "downgrade"}:
        print("usage: runner.py upgrade|downgrade <revision>", file=sys.stderr)
        return 2
    action, revision = argv
    logging.basicConfig(level=logging.INFO)
    if action == "upgrade":
        upgrade(revision)
    else:
        downgrade(revision)
    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
