"""Create (or recreate) the Unison schema on the configured database."""
from __future__ import annotations

import argparse
import sys

from sqlalchemy.exc import SQLAlchemyError

from unison_stage.core.settings import settings
from unison_stage.db.session import create_tables, drop_tables


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Initialize the configured database")
    parser.add_argument(
        "--drop-tables",
        action="store_true",
        help="Drop every table before creating the schema.",
    )
    args = parser.parse_args(argv)

    try:
        if args.drop_tables:
            drop_tables()
            print("[init_db] dropped all tables")
        create_tables()
    except SQLAlchemyError as exc:
        print(f"[init_db] ERROR: {exc}", file=sys.stderr)
        return 1

    print(f"[init_db] schema ready at {settings.effective_database_url.split('@')[-1]}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
