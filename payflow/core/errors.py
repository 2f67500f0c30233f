"""Error Hierarchy — typed, categorized exceptions for all payflow failure modes.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Pipeline errors (400-level) are terminal for one run, never retried internally
    - Post-task errors are absorbed by the post-task stage, never raised to callers
    - to_response() produces the REST envelope; no internal details leaked

Design Decisions:
    - Single hierarchy with PaymentError base: FastAPI global handler catches all
    - ErrorContext as dataclass: observability without coupling to logging
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any


class ErrorSeverity(str, Enum):
    """Error severity for observability and client handling."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    """High-level error categories for routing and handling."""
    VALIDATION = "validation"
    CONNECTIVITY = "connectivity"
    TIMEOUT = "timeout"
    SIDE_EFFECT = "side_effect"
    EXTERNAL_API = "external_api"
    DATABASE = "database"
    INTERNAL = "internal"


@dataclass
class ErrorContext:
    """Rich context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    transaction_id: str | None = None
    stage: str | None = None
    resource_key: str | None = None
    debug_info: dict[str, Any] | None = None


class PaymentError(Exception):
    """Base exception for all payflow errors."""

    def __init__(
        self,
        message: str,
        code: str,
        category: ErrorCategory,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        context: ErrorContext | None = None,
        http_status: int = 500,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.category = category
        self.severity = severity
        self.context = context or ErrorContext()
        self.http_status = http_status

    def to_response(self) -> dict:
        """Convert to standardized REST error response."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "category": self.category.value,
                "severity": self.severity.value,
                "timestamp": self.context.timestamp.isoformat(),
                "context": {
                    "transaction_id": self.context.transaction_id,
                    "stage": self.context.stage,
                    "resource_key": self.context.resource_key,
                },
            }
        }


# ─── Validation Errors (400-level) ──────────────────────────────

class NoConnectionError(PaymentError):
    """Device reports no network connectivity."""
    def __init__(self, context: ErrorContext | None = None):
        super().__init__(
            "No internet connection",
            "NO_CONNECTION", ErrorCategory.CONNECTIVITY,
            ErrorSeverity.ERROR, context, 503,
        )


class InvalidCardError(PaymentError):
    """Card number is not exactly 16 digits."""
    def __init__(self, context: ErrorContext | None = None):
        super().__init__(
            "Card number must have 16 digits",
            "INVALID_CARD", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, context, 400,
        )


class InvalidCVVError(PaymentError):
    """CVV is not exactly 3 digits."""
    def __init__(self, context: ErrorContext | None = None):
        super().__init__(
            "CVV must have 3 digits",
            "INVALID_CVV", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, context, 400,
        )


class InvalidExpiryFormatError(PaymentError):
    """Expiry date does not match MM/YY."""
    def __init__(self, expiry: str, context: ErrorContext | None = None):
        super().__init__(
            f"Invalid expiry date format '{expiry}' (expected MM/YY)",
            "INVALID_EXPIRY_FORMAT", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, context, 400,
        )
        self.expiry = expiry


class CardExpiredError(PaymentError):
    """Card expiry month has already ended."""
    def __init__(self, expiry: str, context: ErrorContext | None = None):
        super().__init__(
            f"Card expired ({expiry})",
            "CARD_EXPIRED", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, context, 400,
        )
        self.expiry = expiry


# ─── Processing Errors ──────────────────────────────────────────

class ProcessingTimeoutError(PaymentError):
    """Processing did not settle before the deadline."""
    def __init__(self, deadline_ms: int, context: ErrorContext | None = None):
        super().__init__(
            f"Timeout: payment server took longer than {deadline_ms} ms",
            "PROCESSING_TIMEOUT", ErrorCategory.TIMEOUT,
            ErrorSeverity.ERROR, context, 504,
        )
        self.deadline_ms = deadline_ms


# ─── Post-Task Errors (absorbed into PostTaskSummary) ───────────

class NotificationFailedError(PaymentError):
    """Customer notification could not be delivered."""
    def __init__(self, context: ErrorContext | None = None):
        super().__init__(
            "Customer notification failed",
            "NOTIFICATION_FAILED", ErrorCategory.SIDE_EFFECT,
            ErrorSeverity.WARNING, context, 502,
        )


class WarehouseNotifyFailedError(PaymentError):
    """Warehouse notification could not be delivered."""
    def __init__(self, context: ErrorContext | None = None):
        super().__init__(
            "Warehouse notification failed",
            "WAREHOUSE_NOTIFY_FAILED", ErrorCategory.SIDE_EFFECT,
            ErrorSeverity.WARNING, context, 502,
        )


# ─── Infrastructure Errors (500-level) ──────────────────────────

class OriginFetchFailedError(PaymentError):
    """Origin server unreachable for a resource request."""
    def __init__(self, url: str, reason: str, context: ErrorContext | None = None):
        super().__init__(
            f"Origin fetch failed for {url}: {reason}",
            "ORIGIN_FETCH_FAILED", ErrorCategory.EXTERNAL_API,
            ErrorSeverity.ERROR, context, 502,
        )
        self.url = url


class ManifestPopulationFailedError(PaymentError):
    """At least one manifest resource could not be stored during install."""
    def __init__(
        self, cache_name: str, failed: list[str], context: ErrorContext | None = None,
    ):
        super().__init__(
            f"Could not populate cache '{cache_name}': {', '.join(failed)}",
            "MANIFEST_POPULATION_FAILED", ErrorCategory.EXTERNAL_API,
            ErrorSeverity.CRITICAL, context, 503,
        )
        self.cache_name = cache_name
        self.failed = failed


class DatabaseError(PaymentError):
    """Resource store operation failed."""
    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        super().__init__(
            f"Database {operation} failed: {message}",
            "DATABASE_ERROR", ErrorCategory.DATABASE,
            ErrorSeverity.CRITICAL, context, 503,
        )
        self.operation = operation


class PipelineStateError(PaymentError):
    """Pipeline run attempted an illegal state transition."""
    def __init__(self, current: str, target: str, context: ErrorContext | None = None):
        super().__init__(
            f"Illegal pipeline transition {current} -> {target}",
            "PIPELINE_STATE_ERROR", ErrorCategory.INTERNAL,
            ErrorSeverity.CRITICAL, context, 500,
        )
        self.current = current
        self.target = target
