"""Validation Stage — runs the 4 field/connection checks concurrently, fail-fast.

Invariants:
    - Exactly 4 tasks, started in order: connection, card, CVV, expiry
    - Every check settles asynchronously (after delay_ms), never synchronously
    - Returns the record unchanged; raises the first validation error to settle

Design Decisions:
    - Pure checks live in core/validate_payment.py; this module only adds
      timing and composition via all_of
    - When several checks fail at the same delay, the reported error is
      whichever settles first on the event loop — not a fixed priority
"""

import asyncio
import logging
from collections.abc import Callable
from datetime import datetime, timezone

from payflow.core.errors import NoConnectionError, PaymentError
from payflow.core.transaction import TransactionRecord
from payflow.core.validate_payment import check_card_number, check_cvv, check_expiry
from payflow.infrastructure.connectivity import ConnectivityMonitor
from payflow.services.combinators import all_of

logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ValidationStage:
    """Fail-fast parallel validation of a TransactionRecord."""

    def __init__(
        self,
        monitor: ConnectivityMonitor,
        delay_ms: int = 100,
        clock: Callable[[], datetime] = _utc_now,
    ):
        self.monitor = monitor
        self.delay_ms = delay_ms
        self.clock = clock

    async def _after_delay(self, check: Callable[[], str]) -> str:
        await asyncio.sleep(self.delay_ms / 1000)
        return check()

    def _connection(self) -> str:
        if not self.monitor.is_online():
            raise NoConnectionError()
        return "connection-ok"

    def build_tasks(self, record: TransactionRecord) -> list:
        return [
            lambda: self._after_delay(self._connection),
            lambda: self._after_delay(lambda: check_card_number(record.card_number)),
            lambda: self._after_delay(lambda: check_cvv(record.cvv)),
            lambda: self._after_delay(
                lambda: check_expiry(record.expiry_date, self.clock()),
            ),
        ]

    async def run(self, record: TransactionRecord) -> TransactionRecord:
        try:
            confirmations = await all_of(self.build_tasks(record))
        except PaymentError as e:
            e.context.stage = "validation"
            logger.info(
                f"Validation failed: {e.message}",
                extra={"stage": "validation", "error_code": e.code},
            )
            raise
        logger.info(
            "Validations passed: %s", ", ".join(confirmations),
            extra={"stage": "validation"},
        )
        return record
