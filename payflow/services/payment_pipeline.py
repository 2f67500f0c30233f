"""Payment Pipeline — sequences validation, processing, and post-tasks per submission.

Invariants:
    - Each submit() creates a fresh PipelineRun starting at IDLE
    - IDLE -> VALIDATING -> PROCESSING -> POST_TASKS -> SUCCEEDED, or any
      stage -> FAILED on a PaymentError; no stage runs after FAILED
    - Concurrent submissions are independent runs, never serialized
    - submit() returns Ok(ProcessingResult) or Err(PaymentError); it does not raise
      for pipeline errors

Design Decisions:
    - Explicit run object with transition table (core/domain_types.py): illegal
      moves raise PipelineStateError instead of silently corrupting state
    - Unexpected (non-PaymentError) exceptions propagate: they are bugs, and the
      API catch-all handler owns them
"""

import logging
from dataclasses import dataclass, field

from payflow.config import Settings
from payflow.core.domain_types import PIPELINE_TRANSITIONS, PipelineState
from payflow.core.errors import PaymentError, PipelineStateError
from payflow.core.outcome import Err, Ok, Outcome
from payflow.core.transaction import ProcessingResult, TransactionRecord
from payflow.infrastructure.connectivity import ConnectivityMonitor
from payflow.services.post_task_stage import PostTaskStage, PostTaskTimings
from payflow.services.processing_stage import ProcessingStage
from payflow.services.validation_stage import ValidationStage

logger = logging.getLogger(__name__)


@dataclass
class PipelineRun:
    """State of one submission through the pipeline."""
    state: PipelineState = PipelineState.IDLE
    history: list[PipelineState] = field(
        default_factory=lambda: [PipelineState.IDLE],
    )
    error: PaymentError | None = None
    result: ProcessingResult | None = None

    @property
    def finished(self) -> bool:
        return self.state in (PipelineState.SUCCEEDED, PipelineState.FAILED)

    def advance(self, target: PipelineState) -> None:
        if target not in PIPELINE_TRANSITIONS[self.state]:
            raise PipelineStateError(self.state.value, target.value)
        self.state = target
        self.history.append(target)


class PaymentPipeline:
    """Single entry point for the presentation layer."""

    def __init__(
        self,
        validation: ValidationStage,
        processing: ProcessingStage,
        post_tasks: PostTaskStage,
    ):
        self.validation = validation
        self.processing = processing
        self.post_tasks = post_tasks

    async def submit(self, record: TransactionRecord) -> Outcome[ProcessingResult]:
        run = PipelineRun()
        await self.execute(run, record)
        if run.state is PipelineState.SUCCEEDED:
            return Ok(run.result)
        return Err(run.error)

    async def execute(self, run: PipelineRun, record: TransactionRecord) -> None:
        """Drive `run` to a terminal state."""
        try:
            run.advance(PipelineState.VALIDATING)
            validated = await self.validation.run(record)

            run.advance(PipelineState.PROCESSING)
            processed = await self.processing.run(validated)

            run.advance(PipelineState.POST_TASKS)
            run.result = await self.post_tasks.run(processed)
            run.advance(PipelineState.SUCCEEDED)
        except PipelineStateError:
            raise
        except PaymentError as e:
            run.error = e
            run.advance(PipelineState.FAILED)
            logger.debug(
                "Run failed after %s", " -> ".join(s.value for s in run.history[:-1]),
                extra={"error_code": e.code, "stage": e.context.stage},
            )
            return
        logger.info(
            "Payment succeeded",
            extra={"transaction_id": run.result.transaction_id},
        )


def build_pipeline(
    settings: Settings, monitor: ConnectivityMonitor,
) -> PaymentPipeline:
    """Wire the three stages from settings."""
    return PaymentPipeline(
        validation=ValidationStage(monitor, delay_ms=settings.validation_delay_ms),
        processing=ProcessingStage(
            processing_delay_ms=settings.processing_delay_ms,
            deadline_ms=settings.processing_deadline_ms,
        ),
        post_tasks=PostTaskStage(
            timings=PostTaskTimings(
                notify_customer_ms=settings.notify_customer_delay_ms,
                update_inventory_ms=settings.update_inventory_delay_ms,
                log_transaction_ms=settings.log_transaction_delay_ms,
                notify_warehouse_ms=settings.notify_warehouse_delay_ms,
            ),
            notify_customer_success_rate=settings.notify_customer_success_rate,
            notify_warehouse_success_rate=settings.notify_warehouse_success_rate,
        ),
    )
