"""Processing Stage — races the payment work against a deadline.

Invariants:
    - Exactly 2 tasks: work (processing_delay_ms) and deadline (deadline_ms)
    - Whichever settles first decides; the loser keeps running but its
      result never reaches the caller
    - A deadline win raises ProcessingTimeoutError

Design Decisions:
    - race_first over asyncio.wait_for: wait_for cancels the work task, while
      the payment server keeps processing after a client-side timeout
"""

import asyncio
import logging
import random
from collections.abc import Callable
from datetime import datetime, timezone

from payflow.core.errors import ProcessingTimeoutError
from payflow.core.transaction import (
    ProcessingResult, TransactionRecord, build_processing_result,
)
from payflow.services.combinators import race_first

logger = logging.getLogger(__name__)


class ProcessingStage:
    """Simulated payment processing bounded by a deadline."""

    def __init__(
        self,
        processing_delay_ms: int = 2000,
        deadline_ms: int = 3000,
        rng: random.Random | None = None,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        self.processing_delay_ms = processing_delay_ms
        self.deadline_ms = deadline_ms
        self.rng = rng or random.Random()
        self.clock = clock

    async def _work(self, record: TransactionRecord) -> ProcessingResult:
        await asyncio.sleep(self.processing_delay_ms / 1000)
        return build_processing_result(record, self.clock(), self.rng)

    async def _deadline(self) -> ProcessingResult:
        await asyncio.sleep(self.deadline_ms / 1000)
        raise ProcessingTimeoutError(self.deadline_ms)

    async def run(self, record: TransactionRecord) -> ProcessingResult:
        try:
            result = await race_first([
                lambda: self._work(record),
                self._deadline,
            ])
        except ProcessingTimeoutError as e:
            e.context.stage = "processing"
            logger.warning(
                f"Processing timed out after {self.deadline_ms} ms",
                extra={"stage": "processing", "error_code": e.code},
            )
            raise
        logger.info(
            "Payment processed",
            extra={"stage": "processing", "transaction_id": result.transaction_id},
        )
        return result
