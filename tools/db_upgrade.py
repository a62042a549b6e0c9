#!/usr/bin/env python3
"""Run Alembic migrations up to (or down to) a revision."""

from __future__ import annotations

import argparse
from pathlib import Path

from alembic.config import Config

from alembic import command

PROJECT_ROOT = Path(__file__).resolve().parent.parent


def alembic_config() -> Config:
    return Config(str(PROJECT_ROOT / "alembic.ini"))


def upgrade(revision: str = "head") -> None:
    command.upgrade(alembic_config(), revision)


def downgrade(revision: str) -> None:
    command.downgrade(alembic_config(), revision)


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("revision", nargs="?", default="head")
    parser.add_argument(
        "--down", action="store_true", help="downgrade to REVISION instead"
    )
    args = parser.parse_args()
    if args.down:
        downgrade(args.revision)
    else:
        upgrade(args.revision)


if __name__ == "__main__":
    main()
