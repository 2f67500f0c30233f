"""Transaction Records — construction, immutability, and id format."""

import dataclasses
import random
import re
from datetime import datetime, timezone
from decimal import Decimal

import pytest

from payflow.core.transaction import (
    PostTaskSummary, TransactionRecord, build_processing_result,
    generate_transaction_id,
)

TXN_PATTERN = re.compile(r"^TXN-\d+-[A-Z0-9]{9}$")
NOW = datetime(2026, 6, 15, 12, 0, tzinfo=timezone.utc)


def _record(**overrides):
    fields = dict(
        customer_name="Ana Torres", id_number="0102030405",
        card_number="4111 1111 1111 1111", expiry_date="12/30",
        cvv="123", amount="100.00", now=NOW,
    )
    fields.update(overrides)
    return TransactionRecord.from_raw(**fields)


def test_from_raw_strips_card_whitespace():
    assert _record().card_number == "4111111111111111"


def test_from_raw_parses_amount_as_decimal():
    record = _record(amount=100.0)
    assert record.amount == Decimal("100.0")


def test_timestamp_is_iso_8601():
    assert _record().timestamp == "2026-06-15T12:00:00+00:00"


def test_record_is_immutable():
    record = _record()
    with pytest.raises(dataclasses.FrozenInstanceError):
        record.amount = Decimal("1")


def test_transaction_id_format():
    tid = generate_transaction_id(NOW, random.Random(7))
    assert TXN_PATTERN.match(tid)
    assert tid.startswith(f"TXN-{int(NOW.timestamp() * 1000)}-")


def test_transaction_ids_differ_across_draws():
    rng = random.Random(7)
    ids = {generate_transaction_id(NOW, rng) for _ in range(50)}
    assert len(ids) == 50


def test_with_post_tasks_returns_new_result():
    result = build_processing_result(_record(), NOW, random.Random(1))
    summary = PostTaskSummary(total=4, successful=3)
    augmented = result.with_post_tasks(summary)
    assert augmented.post_tasks == summary
    assert result.post_tasks is None
    assert augmented.transaction_id == result.transaction_id


def test_processing_result_copies_record_fields():
    result = build_processing_result(_record(), NOW, random.Random(1))
    assert result.amount == Decimal("100.00")
    assert result.customer_name == "Ana Torres"
    assert result.success is True


@pytest.mark.parametrize("successful", [-1, 5])
def test_summary_rejects_out_of_range_success_count(successful):
    with pytest.raises(ValueError):
        PostTaskSummary(total=4, successful=successful)
