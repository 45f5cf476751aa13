"""Fee window helpers: recommendation bands and a bounded wait for a
cheaper submission window.

``wait_for_lower_fee`` always terminates: it returns ``True`` as soon as
the fee is at or below the target, ``False`` once the timeout elapses.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from enum import Enum

from vibelog.bridge.ledger_gateway import FeeSource, LedgerError

logger = logging.getLogger(__name__)


class FeeLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


def classify_fee(fee_gwei: float, *, low_below: float = 5.0, high_from: float = 10.0) -> FeeLevel:
    """Bucket a fee into low / medium / high."""
    if fee_gwei < low_below:
        return FeeLevel.LOW
    if fee_gwei < high_from:
        return FeeLevel.MEDIUM
    return FeeLevel.HIGH


def wait_for_lower_fee(
    source: FeeSource,
    max_gwei: float,
    *,
    timeout_seconds: float = 300.0,
    poll_interval_seconds: float = 5.0,
    clock: Callable[[], float] = time.monotonic,
    sleep: Callable[[float], None] = time.sleep,
) -> bool:
    """Poll *source* until its fee drops to *max_gwei* or the timeout passes.

    Fee lookup failures count as "not yet" and polling continues.
    """
    deadline = clock() + timeout_seconds
    while True:
        try:
            fee = source.current_fee_gwei()
        except LedgerError as exc:
            logger.warning("Fee lookup failed: %s", exc)
        else:
            logger.debug("Current fee %.2f gwei (target %.2f)", fee, max_gwei)
            if fee <= max_gwei:
                return True

        remaining = deadline - clock()
        if remaining <= 0:
            return False
        sleep(min(poll_interval_seconds, remaining))
