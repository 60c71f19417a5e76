"""
Outbound delivery gateway.

Two strategies behind one send(user_id, message) contract, chosen once at
startup from DELIVERY_MODE:
- DirectDelivery: send inline, await, raise TransientDeliveryError on failure
- QueuedDelivery: enqueue; a bounded pool of asyncio workers sends with
  exponential-backoff retries (tenacity). After the last attempt the message
  is logged and dropped.
"""

import asyncio
import logging
from collections import Counter
from dataclasses import dataclass
from enum import Enum
from typing import Protocol

from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from app.constants.event_types import (
    EVENT_DELIVERY_DROPPED,
    EVENT_DELIVERY_RETRY,
    EVENT_WHATSAPP_SEND_FAILURE,
)
from app.core.config import Settings
from app.core.errors import TransientDeliveryError
from app.schemas.messages import OutboundMessage

logger = logging.getLogger(__name__)

MAX_BACKOFF_SECONDS = 30


class Transport(Protocol):
    async def send(self, to: str, message: OutboundMessage) -> str | None: ...


class DeliveryStatus(str, Enum):
    SENT = "sent"
    QUEUED = "queued"


@dataclass(frozen=True)
class DeliveryOutcome:
    status: DeliveryStatus
    message_id: str | None = None


class MessageGateway(Protocol):
    async def send(self, user_id: str, message: OutboundMessage) -> DeliveryOutcome: ...

    async def start(self) -> None: ...

    async def stop(self) -> None: ...


class DirectDelivery:
    """Send immediately; failures surface to the caller."""

    def __init__(self, transport: Transport):
        self._transport = transport

    async def send(self, user_id: str, message: OutboundMessage) -> DeliveryOutcome:
        try:
            message_id = await self._transport.send(user_id, message)
        except TransientDeliveryError as e:
            logger.error(
                f"Send to {user_id} failed: {e}",
                extra={"event_type": EVENT_WHATSAPP_SEND_FAILURE},
            )
            raise
        return DeliveryOutcome(status=DeliveryStatus.SENT, message_id=message_id)

    async def start(self) -> None:
        return None

    async def stop(self) -> None:
        return None


class QueuedDelivery:
    """
    Asynchronous delivery with bounded workers and per-message retries.

    send() returns as soon as the message is queued. Messages for one user are
    picked up in FIFO order; with more than one worker a retried message can
    be overtaken by a later one.
    """

    def __init__(
        self,
        transport: Transport,
        workers: int = 5,
        max_attempts: int = 3,
        initial_delay: float = 1.5,
    ):
        self._transport = transport
        self._worker_count = max(1, workers)
        self._max_attempts = max_attempts
        self._initial_delay = initial_delay
        self._queue: asyncio.Queue[tuple[str, OutboundMessage]] = asyncio.Queue()
        self._workers: list[asyncio.Task] = []
        self.stats: Counter[str] = Counter()

    @property
    def running(self) -> bool:
        return bool(self._workers)

    async def start(self) -> None:
        if self._workers:
            return
        self._workers = [
            asyncio.create_task(self._worker(i), name=f"delivery-worker-{i}")
            for i in range(self._worker_count)
        ]
        logger.info(f"Started {self._worker_count} delivery workers")

    async def send(self, user_id: str, message: OutboundMessage) -> DeliveryOutcome:
        if not self._workers:
            await self.start()
        self._queue.put_nowait((user_id, message))
        self.stats["queued"] += 1
        return DeliveryOutcome(status=DeliveryStatus.QUEUED)

    async def join(self) -> None:
        """Wait until every queued message was sent or dropped."""
        await self._queue.join()

    async def stop(self, drain_timeout: float = 5.0) -> None:
        """Give queued messages a chance to go out, then cancel the workers."""
        if not self._workers:
            return
        try:
            await asyncio.wait_for(self._queue.join(), timeout=drain_timeout)
        except TimeoutError:
            logger.warning(f"Delivery queue not drained on shutdown ({self._queue.qsize()} pending)")
        for task in self._workers:
            task.cancel()
        await asyncio.gather(*self._workers, return_exceptions=True)
        self._workers = []

    async def _worker(self, index: int) -> None:
        while True:
            user_id, message = await self._queue.get()
            try:
                await self._deliver(user_id, message)
            finally:
                self._queue.task_done()

    async def _deliver(self, user_id: str, message: OutboundMessage) -> None:
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self._max_attempts),
            wait=wait_exponential(multiplier=self._initial_delay, max=MAX_BACKOFF_SECONDS),
            retry=retry_if_exception_type(TransientDeliveryError),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )
        try:
            async for attempt in retrying:
                with attempt:
                    if attempt.retry_state.attempt_number > 1:
                        self.stats["retried"] += 1
                        logger.info(
                            f"Retrying send to {user_id} (attempt {attempt.retry_state.attempt_number})",
                            extra={"event_type": EVENT_DELIVERY_RETRY},
                        )
                    await self._transport.send(user_id, message)
        except TransientDeliveryError as e:
            self.stats["dropped"] += 1
            logger.error(
                f"Dropping message to {user_id} after {self._max_attempts} attempts: {e}",
                extra={"event_type": EVENT_DELIVERY_DROPPED},
            )
            return
        except Exception as e:
            # Not a transport failure; retrying would not help
            self.stats["dropped"] += 1
            logger.error(
                f"Dropping message to {user_id}: {e}",
                extra={"event_type": EVENT_DELIVERY_DROPPED},
                exc_info=True,
            )
            return
        self.stats["sent"] += 1


def build_delivery(settings: Settings, transport: Transport) -> DirectDelivery | QueuedDelivery:
    """Pick the delivery strategy from DELIVERY_MODE (direct | queued)."""
    mode = (settings.delivery_mode or "direct").strip().lower()
    if mode == "queued":
        return QueuedDelivery(
            transport,
            workers=settings.delivery_workers,
            max_attempts=settings.delivery_max_attempts,
            initial_delay=settings.delivery_initial_delay_seconds,
        )
    if mode != "direct":
        logger.warning(f"Unknown DELIVERY_MODE {settings.delivery_mode!r} - using direct delivery")
    return DirectDelivery(transport)
