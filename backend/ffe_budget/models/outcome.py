"""Result of a mutation API call."""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional


class MutationStatus(str, Enum):
    APPLIED = "applied"
    REJECTED = "rejected"
    NOT_FOUND = "not_found"


@dataclass
class MutationResult:
    """Outcome of a mutation.

    Attributes:
        status: applied, rejected (bad input) or not_found (stale reference)
        message: Diagnostic naming the field, entity and offending value
        data: Whatever the operation created or changed, when applied
    """

    status: MutationStatus
    message: str = ""
    data: Optional[Any] = None

    @property
    def ok(self) -> bool:
        return self.status is MutationStatus.APPLIED

    @classmethod
    def applied(cls, message: str = "", data: Any = None) -> "MutationResult":
        return cls(MutationStatus.APPLIED, message, data)

    @classmethod
    def rejected(cls, message: str) -> "MutationResult":
        return cls(MutationStatus.REJECTED, message)

    @classmethod
    def not_found(cls, message: str) -> "MutationResult":
        return cls(MutationStatus.NOT_FOUND, message)
