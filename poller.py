# poller.py

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from typing import Any, Callable, Optional, Protocol

import config
from subagents.aggregator import AggregatorSnapshot, ExecutionEventAggregator
from subagents.models import EventBatch


class EventSource(Protocol):
    def poll_events(self, agent_id: str) -> EventBatch: ...


class SubagentPoller:
    """
    Explicit, cancellable ticker: every `interval_s` it polls one agent's events
    and feeds them to the aggregator. The aggregator itself stays synchronous.

    run() fetches on a worker thread and folds on the event-loop thread.
    A failed poll leaves the aggregator (and so the last snapshot) untouched;
    the error is kept in `last_error` and the next tick retries.
    """

    def __init__(
        self,
        source: EventSource,
        aggregator: ExecutionEventAggregator,
        agent_id: str,
        *,
        interval_s: Optional[float] = None,
        on_snapshot: Optional[Callable[[AggregatorSnapshot], Any]] = None,
        trace: bool = False,
    ) -> None:
        self.source = source
        self.aggregator = aggregator
        self.agent_id = agent_id
        self.interval_s = float(
            interval_s if interval_s is not None else getattr(config, "POLL_INTERVAL_S", 2.0)
        )
        self.on_snapshot = on_snapshot
        self.trace = trace

        self.last_snapshot: Optional[AggregatorSnapshot] = None
        self.last_error: Optional[Exception] = None
        self.last_success_at: Optional[datetime] = None
        self.polls = 0
        self.failures = 0

        self._stop: Optional[asyncio.Event] = None
        self._task: Optional[asyncio.Task] = None

    def poll_once(self) -> bool:
        """Blocking form: fetch and fold on the calling thread (REPL use)."""
        self.polls += 1
        try:
            batch = self.source.poll_events(self.agent_id)
        except Exception as e:
            self._record_failure(e)
            return False
        self._fold(batch)
        return True

    async def poll_once_async(self) -> bool:
        """Only the fetch goes to a worker thread; the aggregator is touched on the loop thread."""
        self.polls += 1
        try:
            batch = await asyncio.to_thread(self.source.poll_events, self.agent_id)
        except Exception as e:
            self._record_failure(e)
            return False
        self._fold(batch)
        return True

    def _record_failure(self, e: Exception) -> None:
        self.failures += 1
        self.last_error = e
        if self.trace:
            print(f"[POLL] {self.agent_id}: poll failed, keeping last snapshot: {e}")

    def _fold(self, batch: EventBatch) -> None:
        self.aggregator.ingest(batch.events, batch.hierarchy)
        self.last_snapshot = self.aggregator.snapshot()
        self.last_error = None
        self.last_success_at = datetime.now(timezone.utc)

        if self.trace:
            snap = self.last_snapshot
            print(f"[POLL] {self.agent_id}: {snap.active_count} active / {snap.total_count} total")

        if self.on_snapshot is not None:
            self.on_snapshot(self.last_snapshot)

    async def run(self, stop: Optional[asyncio.Event] = None) -> None:
        self._stop = stop or self._stop or asyncio.Event()
        while not self._stop.is_set():
            await self.poll_once_async()
            try:
                await asyncio.wait_for(self._stop.wait(), timeout=self.interval_s)
            except asyncio.TimeoutError:
                pass

    def start(self) -> asyncio.Task:
        """Schedule run() on the running loop. Must be called from async code."""
        if self._task is not None and not self._task.done():
            raise RuntimeError(f"Poller for {self.agent_id!r} is already running")
        self._stop = asyncio.Event()
        self._task = asyncio.create_task(self.run(self._stop))
        return self._task

    def cancel(self) -> None:
        if self._stop is not None:
            self._stop.set()

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()
