"""Payment Field Checks — pure validators for card, CVV, and expiry fields.

Invariants:
    - Each check returns a short confirmation string or raises a PaymentError
    - Expiry is valid until the first instant of the month after MM/YY
    - Years are interpreted as 2000 + YY

Design Decisions:
    - Pure functions with `now` injected: the async wrapper in
      services/validation_stage.py adds the delay, tests pin the clock
"""

import re
from datetime import datetime, timezone

from payflow.core.errors import (
    CardExpiredError, InvalidCardError, InvalidCVVError, InvalidExpiryFormatError,
)

_EXPIRY_PATTERN = re.compile(r"^(0[1-9]|1[0-2])/(\d{2})$")
_CARD_LENGTH = 16
_CVV_LENGTH = 3


def _is_digits(value: str, length: int) -> bool:
    # str.isdigit accepts superscripts and other unicode digits
    return len(value) == length and value.isascii() and value.isdigit()


def check_card_number(card_number: str) -> str:
    if not _is_digits(card_number, _CARD_LENGTH):
        raise InvalidCardError()
    return "card-ok"


def check_cvv(cvv: str) -> str:
    if not _is_digits(cvv, _CVV_LENGTH):
        raise InvalidCVVError()
    return "cvv-ok"


def expiry_cutoff(expiry: str) -> datetime:
    """First instant (UTC) after the card's expiry month."""
    match = _EXPIRY_PATTERN.match(expiry)
    if not match:
        raise InvalidExpiryFormatError(expiry)
    month, year = int(match.group(1)), 2000 + int(match.group(2))
    if month == 12:
        return datetime(year + 1, 1, 1, tzinfo=timezone.utc)
    return datetime(year, month + 1, 1, tzinfo=timezone.utc)


def check_expiry(expiry: str, now: datetime) -> str:
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    if expiry_cutoff(expiry) <= now:
        raise CardExpiredError(expiry)
    return "expiry-ok"
