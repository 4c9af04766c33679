"""Bounded polling of the provider's transaction status.

Polling stops on completion, when the retry policy runs out, or when the
caller sets the cancellation event (for example when the checkout view is
closed).

The movie access endpoint uses it for a short server-side wait; clients
that keep a checkout view open call it with their own policy and event.
"""

import logging
import threading
from dataclasses import dataclass, field
from typing import Callable, Iterator, Optional

from paywall.exceptions import ProviderError
from paywall.pakasir_service import get_transaction_detail

logger = logging.getLogger(__name__)

COMPLETED = "completed"
TIMEOUT = "timeout"
CANCELLED = "cancelled"


@dataclass
class RetryPolicy:
    max_attempts: int = 40
    initial_delay: float = 3.0
    backoff: float = 1.5
    max_delay: float = 30.0

    def delays(self) -> Iterator[float]:
        """Delays to wait between consecutive attempts."""
        delay = self.initial_delay
        for _ in range(max(self.max_attempts - 1, 0)):
            yield min(delay, self.max_delay)
            delay *= self.backoff


@dataclass
class PollResult:
    status: str
    attempts: int
    transaction: Optional[dict] = field(default=None)

    @property
    def completed(self) -> bool:
        return self.status == COMPLETED


def poll_transaction_status(
    order_id: str,
    amount: int,
    policy: Optional[RetryPolicy] = None,
    cancel_event: Optional[threading.Event] = None,
    fetch: Optional[Callable[[str, int], dict]] = None,
    sleep: Optional[Callable[[float], None]] = None,
) -> PollResult:
    policy = policy or RetryPolicy()
    fetch = fetch or get_transaction_detail
    cancel_event = cancel_event or threading.Event()
    if sleep is None:
        # Waiting on the event lets cancellation interrupt the delay.
        sleep = cancel_event.wait

    delays = policy.delays()
    attempts = 0
    last = None

    while attempts < policy.max_attempts:
        if cancel_event.is_set():
            logger.info("Polling for %s cancelled after %d attempts", order_id, attempts)
            return PollResult(CANCELLED, attempts, last)

        attempts += 1
        try:
            body = fetch(order_id, amount)
        except ProviderError as exc:
            logger.warning("Status check %d for %s failed: %s", attempts, order_id, exc.message)
        else:
            last = (body or {}).get("transaction") or last
            if last and last.get("status") == COMPLETED:
                logger.info("Order %s completed after %d attempts", order_id, attempts)
                return PollResult(COMPLETED, attempts, last)

        delay = next(delays, None)
        if delay is None:
            break
        sleep(delay)

    if cancel_event.is_set():
        return PollResult(CANCELLED, attempts, last)
    logger.info("Gave up polling %s after %d attempts", order_id, attempts)
    return PollResult(TIMEOUT, attempts, last)