"""
Polling loops that let the customer and the shopkeeper see each other's changes.

There is no push channel: each side re-reads the store on a timer. Delivery is
at-least-once and eventually consistent; the shopkeeper loop hands over the full
pending list on every tick and the consumer de-duplicates against what it shows.
"""
import asyncio
import inspect
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, List, Optional, Protocol, TypeVar

from core.config import settings
from core.errors import PersistenceError
from models.order import Order, OrderStatus
from services.order_repository import OrderRepository

logger = logging.getLogger(__name__)

T = TypeVar("T")
Sleep = Callable[[float], Awaitable[None]]


async def _deliver(callback: Callable[[Any], Any], value: Any) -> None:
    result = callback(value)
    if inspect.isawaitable(result):
        await result


class PollHandle:
    """Returned by every subscription. ``dispose()`` stops the next tick from being scheduled.

    A poll that is already reading the store is allowed to finish, but its result is
    dropped once the handle is disposed.
    """

    def __init__(self, name: str):
        self.name = name
        self._disposed = False
        self._sleeping = False
        self._task: Optional[asyncio.Task] = None

    @property
    def disposed(self) -> bool:
        return self._disposed

    @property
    def done(self) -> bool:
        return self._task is not None and self._task.done()

    def dispose(self) -> None:
        if self._disposed:
            return
        self._disposed = True
        if self._task is not None and self._sleeping and not self._task.done():
            self._task.cancel()
        logger.debug(f"Poll loop {self.name} disposed")

    async def wait(self) -> None:
        """Wait for the loop to exit, whichever way it ends."""
        if self._task is not None:
            await asyncio.wait({self._task})


class Watcher(Protocol):
    def subscribe(
        self,
        fetch: Callable[[], Awaitable[T]],
        callback: Callable[[T], Any],
        *,
        interval: float,
        predicate: Optional[Callable[[T], bool]] = None,
        initial_delay: float = 0.0,
        max_attempts: Optional[int] = None,
        once: bool = False,
        on_exhausted: Optional[Callable[[Optional[T]], Any]] = None,
        name: str = "poll",
    ) -> PollHandle: ...


class PollingWatcher:
    """``Watcher`` backed by a timer loop on the running event loop."""

    def __init__(self, sleep: Sleep = asyncio.sleep):
        self._sleep = sleep

    def subscribe(
        self,
        fetch,
        callback,
        *,
        interval,
        predicate=None,
        initial_delay=0.0,
        max_attempts=None,
        once=False,
        on_exhausted=None,
        name="poll",
    ) -> PollHandle:
        handle = PollHandle(name)
        handle._task = asyncio.create_task(
            self._run(handle, fetch, callback, interval, predicate, initial_delay, max_attempts, once, on_exhausted),
            name=f"poll:{name}",
        )
        return handle

    async def _pause(self, handle: PollHandle, seconds: float) -> None:
        handle._sleeping = True
        try:
            await self._sleep(seconds)
        finally:
            handle._sleeping = False

    async def _run(self, handle, fetch, callback, interval, predicate, initial_delay, max_attempts, once, on_exhausted):
        attempts = 0
        last = None
        delay = initial_delay
        while not handle.disposed:
            if delay > 0:
                await self._pause(handle, delay)
                if handle.disposed:
                    break
            delay = interval
            attempts += 1
            try:
                last = await fetch()
            except PersistenceError:
                logger.exception(f"Poll {handle.name} failed (attempt {attempts}), will retry")
            else:
                if handle.disposed:
                    break
                try:
                    if predicate is None or predicate(last):
                        await _deliver(callback, last)
                        if once:
                            break
                except Exception:
                    logger.exception(f"Poll {handle.name} callback failed (attempt {attempts}), will retry")
            if max_attempts is not None and attempts >= max_attempts:
                logger.info(f"Poll {handle.name} gave up after {attempts} attempts")
                if on_exhausted is not None and not handle.disposed:
                    try:
                        await _deliver(on_exhausted, last)
                    except Exception:
                        logger.exception(f"Poll {handle.name} exhaustion callback failed")
                break


class DecisionOutcome(str, Enum):
    APPROVED = "approved"
    REJECTED = "rejected"
    CANCELLED = "cancelled"
    NOT_FOUND = "not_found"
    TIMEOUT = "timeout"


@dataclass
class OrderDecision:
    outcome: DecisionOutcome
    order: Optional[Order] = None


def classify_decision(order: Optional[Order]) -> Optional[DecisionOutcome]:
    """The shopkeeper's decision as seen from the customer side, or None while still pending."""
    if order is None:
        return DecisionOutcome.NOT_FOUND
    if order.status == OrderStatus.PENDING_APPROVAL:
        return None
    if order.status == OrderStatus.REJECTED:
        return DecisionOutcome.REJECTED
    if order.status == OrderStatus.CANCELLED:
        return DecisionOutcome.CANCELLED
    # anything past the approval gate was approved at some point
    return DecisionOutcome.APPROVED


class StatusSynchronizer:
    def __init__(
        self,
        repository: OrderRepository,
        watcher: Optional[Watcher] = None,
        shopkeeper_interval: Optional[float] = None,
        customer_initial_delay: Optional[float] = None,
        customer_interval: Optional[float] = None,
        customer_max_attempts: Optional[int] = None,
    ):
        self.repository = repository
        self.watcher = watcher or PollingWatcher()
        self.shopkeeper_interval = (
            settings.SHOPKEEPER_POLL_SECONDS if shopkeeper_interval is None else shopkeeper_interval
        )
        self.customer_initial_delay = (
            settings.CUSTOMER_POLL_INITIAL_DELAY if customer_initial_delay is None else customer_initial_delay
        )
        self.customer_interval = settings.CUSTOMER_POLL_INTERVAL if customer_interval is None else customer_interval
        self.customer_max_attempts = (
            settings.CUSTOMER_POLL_MAX_ATTEMPTS if customer_max_attempts is None else customer_max_attempts
        )

    def watch_pending_orders(self, shop_id: str, callback: Callable[[List[Order]], Any]) -> PollHandle:
        """Shopkeeper side: the whole approval queue, now and on every tick."""
        return self.watcher.subscribe(
            lambda: self.repository.find_pending_for_shop(shop_id),
            callback,
            interval=self.shopkeeper_interval,
            name=f"pending:{shop_id}",
        )

    def watch_order_decision(self, order_id: str, callback: Callable[[OrderDecision], Any]) -> PollHandle:
        """Customer side: fires once with the decision, or with TIMEOUT if none arrives in time."""
        return self.watcher.subscribe(
            lambda: self.repository.find_by_id(order_id),
            lambda order: callback(OrderDecision(classify_decision(order), order)),
            predicate=lambda order: classify_decision(order) is not None,
            interval=self.customer_interval,
            initial_delay=self.customer_initial_delay,
            max_attempts=self.customer_max_attempts,
            once=True,
            on_exhausted=lambda order: callback(OrderDecision(DecisionOutcome.TIMEOUT, order)),
            name=f"decision:{order_id}",
        )
