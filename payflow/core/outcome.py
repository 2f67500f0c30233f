"""Outcome — tagged success/failure value produced exactly once by a task.

Invariants:
    - Ok and Err are frozen: an Outcome never changes after it is produced
    - Err always carries an exception instance (never a bare string)

Design Decisions:
    - Two small frozen dataclasses over a single class with a flag: pattern
      matching and isinstance checks read naturally at call sites
"""

from dataclasses import dataclass
from typing import Generic, TypeVar, Union

T = TypeVar("T")


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T

    @property
    def ok(self) -> bool:
        return True

    def unwrap(self) -> T:
        return self.value


@dataclass(frozen=True)
class Err:
    error: BaseException

    @property
    def ok(self) -> bool:
        return False

    def unwrap(self):
        raise self.error


Outcome = Union[Ok[T], Err]


def count_ok(outcomes: list) -> int:
    """Number of Ok outcomes in a settled list."""
    return sum(1 for o in outcomes if isinstance(o, Ok))
