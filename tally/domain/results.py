"""Result values returned across the executor, service and store seams.

Every operation that can fail for an expected reason returns either ``Ok``
with its value or ``Err`` with an ``ErrorKind`` and a human-readable message.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Generic, TypeVar

T = TypeVar("T")


class ErrorKind(Enum):
    """Kinds of failure a caller may need to tell apart."""

    NETWORK_FAILURE = "network_failure"
    SESSION_EXPIRED = "session_expired"
    VALIDATION_FAILURE = "validation_failure"
    INVALID_BATCH = "invalid_batch"
    MALFORMED_RECORD = "malformed_record"


@dataclass(frozen=True)
class Ok(Generic[T]):
    """Successful outcome."""

    value: T

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Err:
    """Failed outcome."""

    kind: ErrorKind
    message: str

    @property
    def ok(self) -> bool:
        return False


Result = Ok[Any] | Err
