"""Background worker running score cycles on a fixed interval.

The worker lives on the application's event loop and pushes each cycle into a
thread with `asyncio.to_thread`, so the blocking database work never stalls
request handling. Scheduled and on-demand runs share one lock; cycles never
overlap.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from unison_stage.core.config import ReputationConfig
from unison_stage.db.session import SessionLocal
from unison_stage.services.cache import CacheService
from unison_stage.services.score_updater import ScoreCycleResult, ScoreUpdater

logger = logging.getLogger(__name__)


class ScoreUpdateWorker:
    """Periodically rescores recently voted documents and applies feedback."""

    def __init__(
        self,
        config: ReputationConfig,
        *,
        interval_seconds: float,
        cache: CacheService | None = None,
        session_factory: Callable[[], Session] | None = None,
    ) -> None:
        """Initialize the worker.

        Args:
            config: Engine configuration passed to each cycle.
            interval_seconds: Pause between the end of one cycle and the next.
            cache: Cache whose per-video entries are dropped on rescoring.
            session_factory: Callable returning a new session. Defaults to
                the application's `SessionLocal`.
        """
        self.updater = ScoreUpdater(config, cache)
        self.interval_seconds = max(0.1, float(interval_seconds))
        self._session_factory = session_factory or SessionLocal
        self._task: asyncio.Task[None] | None = None
        self._stopping = asyncio.Event()
        self._lock = asyncio.Lock()
        self.last_result: ScoreCycleResult | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        """Start the background loop."""
        if not self.running:
            self._stopping.clear()
            self._task = asyncio.create_task(self._run())

    async def stop(self) -> None:
        """Stop the loop, letting a cycle already in progress finish."""
        if self._task is None:
            return

        self._stopping.set()
        await self._task
        self._task = None

    async def run_once(self) -> ScoreCycleResult:
        """Run one cycle now, waiting for any cycle already in progress."""
        async with self._lock:
            result = await asyncio.to_thread(self._run_cycle)
        self.last_result = result
        return result

    def _run_cycle(self) -> ScoreCycleResult:
        with self._session_factory() as db:
            return self.updater.run(db)

    async def _run(self) -> None:
        while not self._stopping.is_set():
            try:
                await self.run_once()
            except SQLAlchemyError as e:
                logger.warning("ScoreUpdateWorker encountered database error: %s", e)
            except (ValueError, TypeError, KeyError, AttributeError) as e:
                logger.error(
                    "ScoreUpdateWorker encountered data processing error: %s", e, exc_info=True
                )

            try:
                await asyncio.wait_for(self._stopping.wait(), timeout=self.interval_seconds)
            except TimeoutError:
                continue
