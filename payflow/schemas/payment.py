"""Payment Schemas — Pydantic models for the payments API boundary.

Invariants:
    - PaymentRequest checks presence only (non-empty strings, amount >= 0);
      field format rules belong to the validation stage
    - card_number has all whitespace removed before reaching the pipeline

Design Decisions:
    - Response mirrors ProcessingResult field-for-field so the route is a
      straight conversion
"""

from decimal import Decimal

from pydantic import BaseModel, Field, field_validator

from payflow.core.transaction import ProcessingResult


class PaymentRequest(BaseModel):
    """Raw payment form values."""
    customer_name: str = Field(min_length=1, max_length=200)
    id_number: str = Field(min_length=1, max_length=50)
    card_number: str = Field(min_length=1, max_length=40)
    expiry_date: str = Field(min_length=1, max_length=10)
    cvv: str = Field(min_length=1, max_length=10)
    amount: Decimal = Field(ge=0)

    @field_validator("card_number")
    @classmethod
    def strip_card_spaces(cls, v: str) -> str:
        return "".join(v.split())

    @field_validator("customer_name", "id_number")
    @classmethod
    def strip_text(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("field cannot be empty or whitespace")
        return v


class PostTaskSummaryResponse(BaseModel):
    total: int
    successful: int


class PaymentResponse(BaseModel):
    """Successful payment — public-facing result."""
    success: bool
    transaction_id: str
    amount: Decimal
    customer_name: str
    timestamp: str
    message: str
    post_tasks: PostTaskSummaryResponse | None = None

    @classmethod
    def from_result(cls, result: ProcessingResult) -> "PaymentResponse":
        post_tasks = None
        if result.post_tasks is not None:
            post_tasks = PostTaskSummaryResponse(
                total=result.post_tasks.total,
                successful=result.post_tasks.successful,
            )
        return cls(
            success=result.success,
            transaction_id=result.transaction_id,
            amount=result.amount,
            customer_name=result.customer_name,
            timestamp=result.timestamp,
            message=result.message,
            post_tasks=post_tasks,
        )
