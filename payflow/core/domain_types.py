"""Domain Types — rich types that replace bare primitives across the codebase.

Invariants:
    - TransactionId is "TXN-<epoch ms>-<9 uppercase alphanumerics>"
    - All valid states encoded as Enums — no raw string matching

Design Decisions:
    - NewType over dataclass wrappers: zero runtime cost, full type-checker support
    - str Enums: serialize to JSON without custom encoders
"""

from enum import Enum
from typing import NewType


# ─── Identity Types ──────────────────────────────────────────────

TransactionId = NewType("TransactionId", str)
ResourceKey = NewType("ResourceKey", str)      # absolute path + query


# ─── Enums ───────────────────────────────────────────────────────

class PipelineState(str, Enum):
    """Pipeline run lifecycle. SUCCEEDED and FAILED are terminal."""
    IDLE = "idle"
    VALIDATING = "validating"
    PROCESSING = "processing"
    POST_TASKS = "post_tasks"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class PostTask(str, Enum):
    """The 4 side-effect tasks run after a payment is processed."""
    NOTIFY_CUSTOMER = "notify_customer"
    UPDATE_INVENTORY = "update_inventory"
    LOG_TRANSACTION = "log_transaction"
    NOTIFY_WAREHOUSE = "notify_warehouse"


class WorkerState(str, Enum):
    """Resource cache manager lifecycle."""
    NEW = "new"
    INSTALLING = "installing"
    INSTALLED = "installed"
    ACTIVATING = "activating"
    ACTIVATED = "activated"


# Legal forward moves; any non-terminal state may also jump to FAILED.
PIPELINE_TRANSITIONS: dict[PipelineState, tuple[PipelineState, ...]] = {
    PipelineState.IDLE: (PipelineState.VALIDATING,),
    PipelineState.VALIDATING: (PipelineState.PROCESSING, PipelineState.FAILED),
    PipelineState.PROCESSING: (PipelineState.POST_TASKS, PipelineState.FAILED),
    PipelineState.POST_TASKS: (PipelineState.SUCCEEDED, PipelineState.FAILED),
    PipelineState.SUCCEEDED: (),
    PipelineState.FAILED: (),
}
