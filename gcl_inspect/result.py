"""
gcl_inspect/result.py
=====================

Verdict returned by every analysis' ``validate``.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional


class ValidationStatus(Enum):
    CORRECT_TERMINATED = "CorrectTerminated"
    CORRECT_NON_TERMINATED = "CorrectNonTerminated"
    MISMATCH = "Mismatch"


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of comparing a candidate Output against the reference.

    A mismatch is a failing verdict, not an error: it carries a reason and
    is returned, never raised.
    """

    status: ValidationStatus
    iterations: Optional[int] = None
    reason: Optional[str] = None

    @classmethod
    def correct_terminated(cls) -> "ValidationResult":
        return cls(ValidationStatus.CORRECT_TERMINATED)

    @classmethod
    def correct_non_terminated(cls, iterations: int) -> "ValidationResult":
        return cls(ValidationStatus.CORRECT_NON_TERMINATED, iterations=iterations)

    @classmethod
    def mismatch(cls, reason: str) -> "ValidationResult":
        return cls(ValidationStatus.MISMATCH, reason=reason)

    @property
    def is_correct(self) -> bool:
        return self.status is not ValidationStatus.MISMATCH

    def to_json(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"type": self.status.value}
        if self.iterations is not None:
            data["iterations"] = self.iterations
        if self.reason is not None:
            data["reason"] = self.reason
        return data

    def __str__(self) -> str:
        if self.status is ValidationStatus.CORRECT_NON_TERMINATED:
            return f"{self.status.value} after {self.iterations} iteration(s)"
        if self.status is ValidationStatus.MISMATCH:
            return f"{self.status.value}: {self.reason}"
        return self.status.value
