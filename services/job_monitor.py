"""
Sync Job Monitor

Consumes JobOutcome events from the event bus, writes one log line per cycle
and remembers the latest outcome and run counters of each job so the health
endpoint can report them.
"""

import asyncio
import contextlib
from typing import Any, Dict, Optional

from core.logging import get_logger
from core.schemas import JobOutcome
from services.event_bus import SYNC_JOBS_TOPIC, EventBus, bus


class JobMonitor:
    """
    Background consumer of the "sync_jobs" topic.
    """

    def __init__(self, event_bus: Optional[EventBus] = None) -> None:
        self._bus = event_bus or bus
        self._logger = get_logger(__name__)
        self._queue: Optional[asyncio.Queue] = None
        self._task: Optional[asyncio.Task] = None
        self._latest: Dict[str, JobOutcome] = {}
        self._counts: Dict[str, Dict[str, int]] = {}

    async def start(self) -> None:
        if self._task:
            return
        self._queue = await self._bus.subscribe(SYNC_JOBS_TOPIC)
        self._task = asyncio.create_task(self._run(), name="job_monitor")

    async def stop(self) -> None:
        if not self._task:
            return
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None
        await self._bus.unsubscribe(SYNC_JOBS_TOPIC, self._queue)
        self._queue = None

    async def _run(self) -> None:
        while True:
            outcome = await self._queue.get()
            self.record(outcome)

    # ============================================
    # Recording
    # ============================================

    def record(self, outcome: JobOutcome) -> None:
        self._latest[outcome.job] = outcome
        counts = self._counts.setdefault(outcome.job, {})
        counts[outcome.status] = counts.get(outcome.status, 0) + 1

        message = (
            f"{outcome.job} {outcome.status} in {outcome.duration_seconds:.2f}s "
            f"(processed={outcome.processed}, failed={outcome.failed})"
        )
        if outcome.status == "failed":
            self._logger.error(f"{message}: {outcome.error}")
        elif outcome.status == "partial":
            self._logger.warning(f"{message}: {', '.join(outcome.failed_ids)}")
        else:
            self._logger.info(message)

    def latest(self, job: str) -> Optional[JobOutcome]:
        return self._latest.get(job)

    def summary(self) -> Dict[str, Any]:
        """Latest outcome and status counters per job, JSON-ready."""
        return {
            job: {
                "last": outcome.model_dump(mode="json"),
                "runs": dict(self._counts.get(job, {})),
            }
            for job, outcome in self._latest.items()
        }
