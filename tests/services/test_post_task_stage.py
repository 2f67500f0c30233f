"""Post-Task Stage — best-effort fan-out; never fails the payment."""

import random
from decimal import Decimal

import pytest

from tests.services.fakes import FixedRandom
from payflow.core.transaction import ProcessingResult
from payflow.services.post_task_stage import PostTaskStage, PostTaskTimings


def _result():
    return ProcessingResult(
        transaction_id="TXN-1-ABCDEFGHI", amount=Decimal("10"),
        customer_name="Ana", timestamp="2026-01-01T00:00:00+00:00",
    )


def _stage(value: float):
    return PostTaskStage(timings=PostTaskTimings(1, 2, 3, 4), rng=FixedRandom(value))


@pytest.mark.parametrize("draw, successful", [
    (0.0, 4),    # both notifications succeed
    (0.85, 3),   # customer ok (< 0.9), warehouse fails (>= 0.8)
    (0.95, 2),   # both notifications fail
])
async def test_summary_counts_successes(draw, successful):
    result = await _stage(draw).run(_result())
    assert result.post_tasks.total == 4
    assert result.post_tasks.successful == successful


async def test_failures_never_raise_and_keep_payment_fields():
    original = _result()
    result = await _stage(0.99).run(original)
    assert result.transaction_id == original.transaction_id
    assert result.success is True
    assert original.post_tasks is None


async def test_failed_notifications_are_logged(caplog):
    with caplog.at_level("WARNING"):
        await _stage(0.99).run(_result())
    codes = {getattr(r, "error_code", None) for r in caplog.records}
    assert {"NOTIFICATION_FAILED", "WAREHOUSE_NOTIFY_FAILED"} <= codes


async def test_unexpected_task_error_is_absorbed():
    stage = _stage(0.0)

    async def broken(result):
        raise RuntimeError("inventory db down")

    stage._update_inventory = broken
    result = await stage.run(_result())
    assert result.post_tasks.successful == 3


async def test_seeded_rng_gives_summary_within_bounds():
    stage = PostTaskStage(timings=PostTaskTimings(1, 1, 1, 1), rng=random.Random(99))
    result = await stage.run(_result())
    assert 2 <= result.post_tasks.successful <= 4
