"""Processing Stage — work raced against a deadline."""

import asyncio
import random
import re
from datetime import datetime, timezone
from decimal import Decimal

import pytest

from payflow.core.errors import ProcessingTimeoutError
from payflow.core.transaction import TransactionRecord
from payflow.services.processing_stage import ProcessingStage

TXN_PATTERN = re.compile(r"^TXN-\d+-[A-Z0-9]{9}$")


def _record():
    return TransactionRecord.from_raw(
        customer_name="Ana", id_number="1", card_number="4111111111111111",
        expiry_date="12/30", cvv="123", amount="42.50",
    )


async def test_work_faster_than_deadline_wins():
    stage = ProcessingStage(processing_delay_ms=5, deadline_ms=200, rng=random.Random(3))
    result = await stage.run(_record())
    assert TXN_PATTERN.match(result.transaction_id)
    assert result.amount == Decimal("42.50")
    assert result.customer_name == "Ana"
    assert result.success is True


async def test_deadline_faster_than_work_times_out():
    stage = ProcessingStage(processing_delay_ms=200, deadline_ms=5)
    with pytest.raises(ProcessingTimeoutError) as exc:
        await stage.run(_record())
    assert exc.value.deadline_ms == 5
    assert exc.value.context.stage == "processing"


async def test_late_work_after_timeout_is_discarded():
    built = []
    stage = ProcessingStage(processing_delay_ms=30, deadline_ms=5)
    original = stage._work

    async def tracking_work(record):
        result = await original(record)
        built.append(result)
        return result

    stage._work = tracking_work
    with pytest.raises(ProcessingTimeoutError):
        await stage.run(_record())
    await asyncio.sleep(0.06)
    # Work still ran to completion in the background; nobody received it.
    assert len(built) == 1


async def test_timestamp_comes_from_clock():
    now = datetime(2026, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
    stage = ProcessingStage(processing_delay_ms=1, deadline_ms=100, clock=lambda: now)
    result = await stage.run(_record())
    assert result.timestamp == now.isoformat()
    assert result.transaction_id.startswith(f"TXN-{int(now.timestamp() * 1000)}-")
