"""Run one score cycle against the configured database.

Usage::

    python -m unison_stage.scripts.update_scores [--create-tables]

Suited to cron or a scheduler when the in-process worker is disabled
(`SCORE_UPDATE_ENABLED=false`).
"""
from __future__ import annotations

import argparse
import json
import logging
import sys

from sqlalchemy.exc import SQLAlchemyError

from unison_stage.core.config import get_reputation_config
from unison_stage.core.settings import settings
from unison_stage.db.session import SessionLocal, create_tables
from unison_stage.services.cache import get_cache_service
from unison_stage.services.score_updater import run_score_cycle

logger = logging.getLogger("unison_stage.scripts.update_scores")


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Recompute effective scores and reputations")
    parser.add_argument(
        "--create-tables",
        action="store_true",
        help="Create missing tables before running the cycle.",
    )
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        if args.create_tables:
            create_tables()
        with SessionLocal() as db:
            result = run_score_cycle(db, get_reputation_config(), cache=get_cache_service())
    except SQLAlchemyError as exc:
        logger.error("Score cycle aborted: %s", exc, exc_info=True)
        return 1

    print(json.dumps(result.to_dict()))
    return 1 if result.failed or result.adjustment_failures else 0


if __name__ == "__main__":
    sys.exit(main())
