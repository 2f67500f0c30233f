"""Transaction Records — immutable values flowing through the payment pipeline.

Invariants:
    - TransactionRecord and ProcessingResult are frozen; stages return new values
    - card_number never contains whitespace once a record is built
    - PostTaskSummary.successful is within [0, total]

Design Decisions:
    - Frozen dataclasses over Pydantic in core: no IO boundary here, the API
      layer owns request parsing (schemas/payment.py)
    - generate_transaction_id takes clock and rng: best-effort uniqueness
      (time component + random suffix, no collision ledger)
"""

import random
import string
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from decimal import Decimal

from payflow.core.domain_types import TransactionId

_ID_ALPHABET = string.ascii_uppercase + string.digits
_ID_SUFFIX_LENGTH = 9


@dataclass(frozen=True)
class TransactionRecord:
    customer_name: str
    id_number: str
    card_number: str
    expiry_date: str
    cvv: str
    amount: Decimal
    timestamp: str

    @classmethod
    def from_raw(
        cls,
        *,
        customer_name: str,
        id_number: str,
        card_number: str,
        expiry_date: str,
        cvv: str,
        amount: Decimal | float | str,
        now: datetime | None = None,
    ) -> "TransactionRecord":
        """Build a record from raw form values, stripping card whitespace."""
        created = now or datetime.now(timezone.utc)
        return cls(
            customer_name=customer_name,
            id_number=id_number,
            card_number="".join(card_number.split()),
            expiry_date=expiry_date.strip(),
            cvv=cvv.strip(),
            amount=Decimal(str(amount)),
            timestamp=created.isoformat(),
        )


@dataclass(frozen=True)
class PostTaskSummary:
    total: int
    successful: int

    def __post_init__(self):
        if not 0 <= self.successful <= self.total:
            raise ValueError(
                f"successful={self.successful} outside [0, {self.total}]",
            )


@dataclass(frozen=True)
class ProcessingResult:
    transaction_id: TransactionId
    amount: Decimal
    customer_name: str
    timestamp: str
    success: bool = True
    message: str = "Payment processed successfully"
    post_tasks: PostTaskSummary | None = None

    def with_post_tasks(self, summary: PostTaskSummary) -> "ProcessingResult":
        return replace(self, post_tasks=summary)


def generate_transaction_id(now: datetime, rng: random.Random) -> TransactionId:
    """TXN-<epoch milliseconds>-<9 uppercase alphanumerics>."""
    millis = int(now.timestamp() * 1000)
    suffix = "".join(rng.choices(_ID_ALPHABET, k=_ID_SUFFIX_LENGTH))
    return TransactionId(f"TXN-{millis}-{suffix}")


def build_processing_result(
    record: TransactionRecord, now: datetime, rng: random.Random,
) -> ProcessingResult:
    """Result of a successful processing step for `record`."""
    return ProcessingResult(
        transaction_id=generate_transaction_id(now, rng),
        amount=record.amount,
        customer_name=record.customer_name,
        timestamp=now.isoformat(),
    )
