"""
services/notification_service.py
================================

Statement-created notifications.

After a statement is durably stored, StatementService hands the response
projection to StatementEventPublisher.publish(). Delivery is fire-and-forget:

- publish() never blocks: the event goes to a bounded asyncio queue
  (full queue → event dropped with a warning)
- a background worker drains the queue and calls every listener
- listener errors are logged and swallowed; they never roll back or retry
  the write

Listeners:
- LoggingStatementListener → logs actor / verb / object
- WebhookStatementListener → POSTs the statement JSON (httpx)
"""

from __future__ import annotations

import asyncio
import logging
from typing import List, Optional, Protocol

import httpx

from lrs_api.config import NOTIFY_QUEUE_SIZE, NOTIFY_TIMEOUT_SEC, NOTIFY_WEBHOOK_URL
from lrs_api.models import StatementResponse

logger = logging.getLogger(__name__)


class StatementListener(Protocol):
    async def on_statement_created(self, statement: StatementResponse) -> None:
        ...


# ============================================================================
# LISTENERS
# ============================================================================


class LoggingStatementListener:
    """Writes one log line per created statement."""

    async def on_statement_created(self, statement: StatementResponse) -> None:
        logger.info(f"Statement created event received: {statement.id}")
        logger.debug(
            f"Actor: {statement.actor.name or 'unknown'}, "
            f"Verb: {statement.verb.id}, "
            f"Activity: {statement.object.id}"
        )


class WebhookStatementListener:
    """Forwards created statements to an external webhook."""

    def __init__(self, url: str, timeout: float = NOTIFY_TIMEOUT_SEC):
        self.url = url
        self.timeout = timeout

    async def on_statement_created(self, statement: StatementResponse) -> None:
        payload = {
            "event": "statement.created",
            "statement": statement.to_payload(),
        }

        async with httpx.AsyncClient(timeout=self.timeout) as client:
            response = await client.post(
                self.url,
                json=payload,
                headers={"Content-Type": "application/json"},
            )

        logger.info(f"Statement webhook response: {response.status_code}")
        if response.status_code >= 300:
            logger.warning(
                f"Statement webhook rejected {statement.id}: "
                f"HTTP {response.status_code}: {response.text[:200]}"
            )


# ============================================================================
# PUBLISHER
# ============================================================================


class StatementEventPublisher:
    """
    Bounded in-process event channel.

    start() / stop() are driven by the FastAPI lifespan. Without a running
    worker, events wait in the queue until it fills up. publish() may be
    called from worker threads; the hand-off then goes through the loop.
    """

    def __init__(
        self,
        listeners: Optional[List[StatementListener]] = None,
        max_queue_size: int = NOTIFY_QUEUE_SIZE,
    ):
        self.listeners: List[StatementListener] = list(listeners or [])
        self.max_queue_size = max_queue_size
        self.queue: asyncio.Queue = asyncio.Queue(maxsize=max_queue_size)
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._worker: Optional[asyncio.Task] = None
        self.dropped = 0

    @property
    def running(self) -> bool:
        return self._worker is not None and not self._worker.done()

    def publish(self, statement: StatementResponse) -> bool:
        """
        Queue a statement-created event.

        Returns False when the event was dropped. Events handed over from
        another thread are reported as accepted; a later drop is still logged.
        """
        loop = self._loop
        if self.running and loop is not None and not self._on_loop(loop):
            loop.call_soon_threadsafe(self._enqueue, statement)
            return True
        return self._enqueue(statement)

    @staticmethod
    def _on_loop(loop: asyncio.AbstractEventLoop) -> bool:
        try:
            return asyncio.get_running_loop() is loop
        except RuntimeError:
            return False

    def _enqueue(self, statement: StatementResponse) -> bool:
        try:
            self.queue.put_nowait(statement)
        except asyncio.QueueFull:
            self.dropped += 1
            logger.warning(
                f"Notification queue full, dropping statement created event: {statement.id}"
            )
            return False

        logger.debug(f"Statement created event queued: {statement.id}")
        return True

    async def deliver(self, statement: StatementResponse) -> None:
        """Call every listener once; failures are logged, never raised."""
        for listener in self.listeners:
            try:
                await listener.on_statement_created(statement)
            except Exception as e:
                logger.error(
                    f"Statement listener {type(listener).__name__} failed "
                    f"for {statement.id}: {e}"
                )

    async def _run(self) -> None:
        while True:
            statement = await self.queue.get()
            try:
                await self.deliver(statement)
            finally:
                self.queue.task_done()

    def start(self) -> None:
        if self.running:
            return

        # Fresh queue bound to the current loop; carry over pending events
        pending = []
        while not self.queue.empty():
            pending.append(self.queue.get_nowait())
        self.queue = asyncio.Queue(maxsize=self.max_queue_size)
        for statement in pending:
            self._enqueue(statement)

        self._loop = asyncio.get_running_loop()
        self._worker = self._loop.create_task(self._run())
        logger.info(f"Statement event publisher started ({len(self.listeners)} listeners)")

    async def drain(self) -> None:
        """Wait until every queued event has been delivered."""
        await self.queue.join()

    async def stop(self, timeout: float = 5.0) -> None:
        """Deliver what is queued (up to `timeout` seconds), then stop the worker."""
        if self._worker is None:
            return

        try:
            await asyncio.wait_for(self.drain(), timeout=timeout)
        except asyncio.TimeoutError:
            logger.warning(
                f"Statement event publisher stopping with {self.queue.qsize()} "
                f"undelivered events"
            )

        self._worker.cancel()
        try:
            await self._worker
        except asyncio.CancelledError:
            pass
        self._worker = None
        self._loop = None
        logger.info("Statement event publisher stopped")


def build_default_listeners() -> List[StatementListener]:
    listeners: List[StatementListener] = [LoggingStatementListener()]
    if NOTIFY_WEBHOOK_URL:
        listeners.append(WebhookStatementListener(NOTIFY_WEBHOOK_URL))
    return listeners


__all__ = [
    "StatementListener",
    "LoggingStatementListener",
    "WebhookStatementListener",
    "StatementEventPublisher",
    "build_default_listeners",
]
