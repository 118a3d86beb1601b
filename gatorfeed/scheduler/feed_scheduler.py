"""
GatorFeed Feed Scheduler
========================

Runs ingestion cycles back to back at a fixed interval until stopped.

Features:
- First cycle starts immediately
- Interval measured from the start of each cycle; an overrunning cycle is
  followed straight away by the next one and missed ticks are dropped
- A stop request cancels an in-flight cycle and ends the loop
- One HTTP session shared by every cycle of a run
"""

import asyncio
from datetime import timedelta
from typing import Optional

from ..ingestion.engine import CycleResult, IngestionEngine
from ..utils.logging import get_logger_for_component
from ..utils.exceptions import InvalidIntervalError
from ..utils.validators import format_interval, parse_poll_interval


class FeedScheduler:
    """Drives an :class:`IngestionEngine` on a fixed interval."""

    def __init__(
        self,
        engine: IngestionEngine,
        interval: timedelta,
        stop_event: Optional[asyncio.Event] = None,
        max_cycles: Optional[int] = None,
    ):
        """Initialize the scheduler.

        Args:
            engine: Engine whose cycles are run
            interval: Time between cycle starts
            stop_event: Cancellation token; set it to stop the loop
            max_cycles: Stop after this many completed cycles (unbounded if None)
        """
        if interval.total_seconds() <= 0:
            raise InvalidIntervalError(
                f"Poll interval must be positive: {interval}", value=str(interval)
            )

        self.engine = engine
        self.interval = interval
        # Created in run() when not injected so it binds to the running loop.
        self.stop_event = stop_event
        self._stop_requested = False
        self.max_cycles = max_cycles
        self.logger = get_logger_for_component("scheduler")

        self.cycles_completed = 0
        self.last_result: Optional[CycleResult] = None

    @classmethod
    def from_interval_string(
        cls, engine: IngestionEngine, interval: str, **kwargs
    ) -> "FeedScheduler":
        return cls(engine, parse_poll_interval(interval), **kwargs)

    def stop(self) -> None:
        """Request the loop to stop; safe to call more than once."""
        if self.stop_event is None:
            self._stop_requested = True
            return
        if not self.stop_event.is_set():
            self.logger.info("Stop requested")
        self.stop_event.set()

    async def run(self) -> int:
        """Run cycles until stopped.

        Returns:
            Number of cycles that ran to completion
        """
        loop = asyncio.get_running_loop()
        if self.stop_event is None:
            self.stop_event = asyncio.Event()
            if self._stop_requested:
                self.stop_event.set()

        self.logger.info(f"Collecting feeds every {format_interval(self.interval)}")

        async with self.engine.open_session() as session:
            while not self.stop_event.is_set():
                started = loop.time()
                self.logger.info(f"Starting ingestion cycle {self.cycles_completed + 1}")

                if not await self._run_cycle_until_stopped(session):
                    break

                self.cycles_completed += 1
                if self.max_cycles is not None and self.cycles_completed >= self.max_cycles:
                    break

                remaining = self.interval.total_seconds() - (loop.time() - started)
                if remaining <= 0:
                    self.logger.warning(
                        f"Cycle took longer than {format_interval(self.interval)}; "
                        f"starting next cycle immediately"
                    )
                    continue

                if await self._wait_for_stop(remaining):
                    break

        self.logger.info(f"Scheduler stopped after {self.cycles_completed} cycles")
        return self.cycles_completed

    async def _run_cycle_until_stopped(self, session) -> bool:
        """Run one cycle, racing it against the stop token.

        Returns:
            True if the cycle completed, False if it was cancelled by a stop
        """
        cycle = asyncio.ensure_future(self.engine.run_cycle(session))
        stopper = asyncio.ensure_future(self.stop_event.wait())

        try:
            done, _ = await asyncio.wait(
                {cycle, stopper}, return_when=asyncio.FIRST_COMPLETED
            )
        except asyncio.CancelledError:
            cycle.cancel()
            raise
        finally:
            stopper.cancel()

        if cycle in done:
            try:
                self.last_result = cycle.result()
            except Exception as e:
                self.last_result = None
                self.logger.error(f"Ingestion cycle raised: {e}", exc_info=True)
            return True

        cycle.cancel()
        await asyncio.wait({cycle})
        self.logger.info("In-flight ingestion cycle cancelled")
        return False

    async def _wait_for_stop(self, timeout: float) -> bool:
        """Sleep until the next tick; True if a stop arrived meanwhile."""
        try:
            await asyncio.wait_for(self.stop_event.wait(), timeout=timeout)
            return True
        except asyncio.TimeoutError:
            return False
