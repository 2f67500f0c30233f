"""Post-Task Stage — best-effort side effects after a processed payment.

Invariants:
    - Exactly 4 tasks: notify customer, update inventory, log transaction,
      notify warehouse; none blocks the others
    - Never raises for a task failure: failures are counted, logged, absorbed
    - Summary total is always 4

Design Decisions:
    - all_settled over all_of: a lost notification must not undo a payment
    - rng injected so tests can force each notification to pass or fail
"""

import asyncio
import logging
import random
from dataclasses import dataclass

from payflow.core.domain_types import PostTask
from payflow.core.errors import (
    NotificationFailedError, PaymentError, WarehouseNotifyFailedError,
)
from payflow.core.outcome import Err, count_ok
from payflow.core.transaction import PostTaskSummary, ProcessingResult
from payflow.services.combinators import all_settled

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PostTaskTimings:
    notify_customer_ms: int = 500
    update_inventory_ms: int = 300
    log_transaction_ms: int = 400
    notify_warehouse_ms: int = 600


class PostTaskStage:
    """Fan-out of independent side effects with a success count."""

    ORDER = (
        PostTask.NOTIFY_CUSTOMER,
        PostTask.UPDATE_INVENTORY,
        PostTask.LOG_TRANSACTION,
        PostTask.NOTIFY_WAREHOUSE,
    )

    def __init__(
        self,
        timings: PostTaskTimings | None = None,
        notify_customer_success_rate: float = 0.9,
        notify_warehouse_success_rate: float = 0.8,
        rng: random.Random | None = None,
    ):
        self.timings = timings or PostTaskTimings()
        self.notify_customer_success_rate = notify_customer_success_rate
        self.notify_warehouse_success_rate = notify_warehouse_success_rate
        self.rng = rng or random.Random()

    async def _notify_customer(self, result: ProcessingResult) -> str:
        await asyncio.sleep(self.timings.notify_customer_ms / 1000)
        if self.rng.random() >= self.notify_customer_success_rate:
            raise NotificationFailedError()
        return f"customer notified for {result.transaction_id}"

    async def _update_inventory(self, result: ProcessingResult) -> str:
        await asyncio.sleep(self.timings.update_inventory_ms / 1000)
        return "inventory updated"

    async def _log_transaction(self, result: ProcessingResult) -> str:
        await asyncio.sleep(self.timings.log_transaction_ms / 1000)
        return f"transaction {result.transaction_id} logged"

    async def _notify_warehouse(self, result: ProcessingResult) -> str:
        await asyncio.sleep(self.timings.notify_warehouse_ms / 1000)
        if self.rng.random() >= self.notify_warehouse_success_rate:
            raise WarehouseNotifyFailedError()
        return "warehouse notified"

    async def run(self, result: ProcessingResult) -> ProcessingResult:
        outcomes = await all_settled([
            lambda: self._notify_customer(result),
            lambda: self._update_inventory(result),
            lambda: self._log_transaction(result),
            lambda: self._notify_warehouse(result),
        ])
        for task, outcome in zip(self.ORDER, outcomes):
            if isinstance(outcome, Err):
                code = getattr(outcome.error, "code", "UNEXPECTED")
                if not isinstance(outcome.error, PaymentError):
                    logger.error(
                        f"Post-task {task.value} raised unexpectedly: {outcome.error!r}",
                        extra={"stage": "post_tasks", "transaction_id": result.transaction_id},
                    )
                else:
                    logger.warning(
                        f"Post-task {task.value} failed: {outcome.error}",
                        extra={
                            "stage": "post_tasks", "error_code": code,
                            "transaction_id": result.transaction_id,
                        },
                    )
        summary = PostTaskSummary(total=len(outcomes), successful=count_ok(outcomes))
        logger.info(
            f"Post-tasks completed: {summary.successful}/{summary.total}",
            extra={"stage": "post_tasks", "transaction_id": result.transaction_id},
        )
        return result.with_post_tasks(summary)
