import asyncio
import logging
import random
import string
import time
from typing import Awaitable, Callable, Optional

from core.config import settings
from schemas.payment import PaymentDetails, PaymentResult

logger = logging.getLogger(__name__)

DECLINE_REASON = "Insufficient funds or card declined"


def _transaction_id() -> str:
    suffix = "".join(random.choices(string.ascii_lowercase + string.digits, k=9))
    return f"txn_{int(time.time() * 1000)}_{suffix}"


class PaymentSimulator:
    """Mock gateway: waits ``delay`` seconds, then succeeds with probability ``success_rate``.

    Every call is an independent draw; nothing is remembered between attempts.
    """

    def __init__(
        self,
        delay: Optional[float] = None,
        success_rate: Optional[float] = None,
        rng: Optional[random.Random] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.delay = settings.PAYMENT_DELAY_SECONDS if delay is None else delay
        self.success_rate = settings.PAYMENT_SUCCESS_RATE if success_rate is None else success_rate
        self.rng = rng or random.Random()
        self._sleep = sleep

    async def process_payment(self, details: PaymentDetails) -> PaymentResult:
        logger.info(f"Processing payment for order {details.order_id}: {details.amount:.2f} {details.currency}")
        if self.delay > 0:
            await self._sleep(self.delay)

        if self.rng.random() < self.success_rate:
            return PaymentResult(success=True, transaction_id=_transaction_id(), message="Payment processed successfully")
        logger.info(f"Payment declined for order {details.order_id}")
        return PaymentResult(success=False, message="Payment failed", error=DECLINE_REASON)
