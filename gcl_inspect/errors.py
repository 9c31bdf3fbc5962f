# gcl_inspect/errors.py
"""
Error types for the GCL analysis core.

Error Hierarchy:
────────────────
┌──────────────────────────────────────────────────────────────────┐
│  GclError (base)                                                 │
│  ├── ParseFailure          - malformed GCL / lattice source      │
│  ├── EvaluationFailure     - arithmetic or memory lookup failure │
│  ├── InvalidInputError     - malformed analysis Input            │
│  └── UnknownAnalysisError  - unregistered analysis tag           │
└──────────────────────────────────────────────────────────────────┘

Error Codes:
────────────
Each error carries a code of the form ``GCL-XXXX``:
  - 1000-1999: Syntax errors
  - 2000-2999: Input errors
  - 3000-3999: Registry / envelope errors
  - 5000-5999: Evaluation errors

``EvaluationFailure`` is special: the interpreter records it on the
transition that produced it and the calculator reports it as an
alternate result, so it travels as a value at least as often as it is
raised.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, unique
from typing import Optional


@unique
class ErrorPhase(Enum):
    """Pipeline phase in which an error was produced."""

    SYNTAX = "syntax"
    INPUT = "input"
    REGISTRY = "registry"
    EVALUATION = "evaluation"


@dataclass(frozen=True)
class ErrorCode:
    """Structured error code, rendered as ``GCL-NNNN``."""

    number: int
    phase: ErrorPhase
    summary: str

    @property
    def code(self) -> str:
        return f"GCL-{self.number:04d}"

    def __str__(self) -> str:
        return self.code


class GclErrorCodes:
    """Predefined error codes."""

    # ── Syntax (1000-1999) ──────────────────────────────────────────
    SYNTAX_ERROR = ErrorCode(1000, ErrorPhase.SYNTAX, "syntax error")
    INCOMPLETE_PARSE = ErrorCode(1001, ErrorPhase.SYNTAX, "trailing input")
    INVALID_LATTICE = ErrorCode(1002, ErrorPhase.SYNTAX, "invalid lattice rules")

    # ── Input (2000-2999) ───────────────────────────────────────────
    INVALID_INPUT = ErrorCode(2000, ErrorPhase.INPUT, "invalid input")
    MISSING_CLASSIFICATION = ErrorCode(2001, ErrorPhase.INPUT, "unclassified variable")
    INVALID_PAYLOAD = ErrorCode(2002, ErrorPhase.INPUT, "payload does not decode")

    # ── Registry (3000-3999) ────────────────────────────────────────
    UNKNOWN_ANALYSIS = ErrorCode(3000, ErrorPhase.REGISTRY, "unknown analysis")

    # ── Evaluation (5000-5999) ──────────────────────────────────────
    DIVISION_BY_ZERO = ErrorCode(5000, ErrorPhase.EVALUATION, "division by zero")
    NEGATIVE_EXPONENT = ErrorCode(5001, ErrorPhase.EVALUATION, "negative exponent")
    ARITHMETIC_OVERFLOW = ErrorCode(5002, ErrorPhase.EVALUATION, "arithmetic overflow")
    INDEX_OUT_OF_BOUNDS = ErrorCode(5003, ErrorPhase.EVALUATION, "index out of bounds")
    UNBOUND_VARIABLE = ErrorCode(5004, ErrorPhase.EVALUATION, "unbound variable")
    UNBOUND_ARRAY = ErrorCode(5005, ErrorPhase.EVALUATION, "unbound array")


class GclError(Exception):
    """Base exception for all errors raised by :mod:`gcl_inspect`."""

    default_code: ErrorCode = GclErrorCodes.INVALID_INPUT

    def __init__(
        self,
        message: str,
        code: Optional[ErrorCode] = None,
        cause: Optional[BaseException] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        self.cause = cause

    def __str__(self) -> str:
        return f"{self.code}: {self.message}"


class ParseFailure(GclError):
    """Source text is not a well-formed program, expression or rule list."""

    default_code = GclErrorCodes.SYNTAX_ERROR

    def __init__(
        self,
        message: str,
        line: int = 0,
        column: int = 0,
        code: Optional[ErrorCode] = None,
        cause: Optional[BaseException] = None,
    ) -> None:
        super().__init__(message, code=code, cause=cause)
        self.line = line
        self.column = column

    def __str__(self) -> str:
        if self.line:
            return f"{self.code}: {self.line}:{self.column}: {self.message}"
        return super().__str__()


class EvaluationFailure(GclError):
    """Evaluating an expression against a memory is undefined."""

    default_code = GclErrorCodes.DIVISION_BY_ZERO

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, EvaluationFailure):
            return NotImplemented
        return self.code == other.code and self.message == other.message

    def __hash__(self) -> int:
        return hash((self.code, self.message))


class InvalidInputError(GclError):
    """An analysis Input is malformed (e.g. a free variable is unclassified)."""

    default_code = GclErrorCodes.INVALID_INPUT


class UnknownAnalysisError(GclError):
    """No environment is registered under the requested analysis tag."""

    default_code = GclErrorCodes.UNKNOWN_ANALYSIS
