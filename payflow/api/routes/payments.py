"""Payments — single entry point from the presentation layer into the pipeline.

Invariants:
    - One POST = one independent pipeline run
    - Success → 200 PaymentResponse; failure → the PaymentError envelope
      (rendered by the global handler) with the error's HTTP status

Design Decisions:
    - Route raises the pipeline's Err instead of formatting it: error shape
      stays owned by api/error_handlers.py
"""

import logging

from fastapi import APIRouter, Depends

from payflow.api.dependencies import get_pipeline
from payflow.core.outcome import Err
from payflow.core.transaction import TransactionRecord
from payflow.schemas.payment import PaymentRequest, PaymentResponse
from payflow.services.payment_pipeline import PaymentPipeline

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/payments", tags=["payments"])


@router.post("", response_model=PaymentResponse)
async def create_payment(
    body: PaymentRequest, pipeline: PaymentPipeline = Depends(get_pipeline),
):
    """Validate, process, and run post-tasks for one payment."""
    record = TransactionRecord.from_raw(**body.model_dump())
    outcome = await pipeline.submit(record)
    if isinstance(outcome, Err):
        raise outcome.error
    return PaymentResponse.from_result(outcome.value)
