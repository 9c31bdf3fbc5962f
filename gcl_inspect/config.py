"""
gcl_inspect/config.py
=====================

Tuning knobs for the random generator and the trace validator.

* ``GenerationConfig``   – fuel, depth limits, name pool and literal ranges
* ``InterpreterConfig``  – safety bound on the validator's candidate set
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import List, Tuple


@dataclass(frozen=True)
class GenerationConfig:
    """Bounds for random program and input generation."""
    fuel: int = 10
    recursion_limit: int = 5
    negation_limit: int = 3
    names: Tuple[str, ...] = ("a", "b", "c", "d")
    number_range: Tuple[int, int] = (-100, 100)
    max_sequence_length: int = 10
    calculator_fuel: int = 25
    calculator_retries: int = 10
    memory_value_range: Tuple[int, int] = (-10, 10)
    array_length_range: Tuple[int, int] = (5, 10)
    trace_length_range: Tuple[int, int] = (10, 15)

    def with_overrides(self, **changes) -> "GenerationConfig":
        """Copy with the non-``None`` keyword arguments applied."""
        return replace(self, **{k: v for k, v in changes.items() if v is not None})

    def validate(self) -> List[str]:
        """Return a list of validation warnings (empty if valid)."""
        warnings: List[str] = []
        if self.fuel < 0:
            warnings.append("fuel must be non-negative")
        if self.recursion_limit < 0:
            warnings.append("recursion_limit must be non-negative")
        if self.negation_limit < 0:
            warnings.append("negation_limit must be non-negative")
        if self.max_sequence_length < 1:
            warnings.append("max_sequence_length must be at least 1")
        if self.calculator_retries < 1:
            warnings.append("calculator_retries must be at least 1")
        for label, (lo, hi) in (
            ("number_range", self.number_range),
            ("memory_value_range", self.memory_value_range),
            ("array_length_range", self.array_length_range),
            ("trace_length_range", self.trace_length_range),
        ):
            if lo > hi:
                warnings.append(f"{label} is empty ({lo} > {hi})")
        if self.array_length_range[0] < 0:
            warnings.append("array_length_range must be non-negative")
        if self.trace_length_range[0] < 0:
            warnings.append("trace_length_range must be non-negative")
        if len(set(self.names)) != len(self.names):
            warnings.append("names contains duplicates")
        return warnings


@dataclass(frozen=True)
class InterpreterConfig:
    """Limits for trace validation."""
    max_candidates: int = 10_000

    def validate(self) -> List[str]:
        warnings: List[str] = []
        if self.max_candidates <= 0:
            warnings.append("max_candidates must be positive")
        return warnings


DEFAULT_GENERATION = GenerationConfig()
DEFAULT_INTERPRETER = InterpreterConfig()
