"""
gcl_inspect/security_analysis.py
================================

Reference information-flow check of a program against a classification
and a security lattice:

    actual     = flows(commands)
    allowed    = lattice.all_allowed(classification)
    violations = actual - allowed
    is_secure  = not violations

The analysis is deterministic, so candidate reports are compared with the
reference field by field.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, FrozenSet, List, Mapping

from gcl_inspect.ast import Commands, target_def_name
from gcl_inspect.errors import GclErrorCodes, InvalidInputError
from gcl_inspect.flow_analysis import Flow, flows
from gcl_inspect.result import ValidationResult
from gcl_inspect.security_lattice import SecurityLattice

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SecurityReport:
    actual: FrozenSet[Flow]
    allowed: FrozenSet[Flow]
    violations: FrozenSet[Flow]
    is_secure: bool

    def to_json(self) -> Dict[str, Any]:
        return {
            "actual": _sorted_json(self.actual),
            "allowed": _sorted_json(self.allowed),
            "violations": _sorted_json(self.violations),
            "is_secure": self.is_secure,
        }

    @classmethod
    def from_json(cls, data: Mapping[str, Any]) -> "SecurityReport":
        try:
            return cls(
                actual=frozenset(Flow.from_json(f) for f in data["actual"]),
                allowed=frozenset(Flow.from_json(f) for f in data["allowed"]),
                violations=frozenset(Flow.from_json(f) for f in data["violations"]),
                is_secure=bool(data["is_secure"]),
            )
        except (KeyError, TypeError) as exc:
            raise InvalidInputError(
                f"malformed security report: {exc}",
                code=GclErrorCodes.INVALID_PAYLOAD,
                cause=exc,
            ) from exc


def _sorted_json(found: FrozenSet[Flow]) -> List[Dict[str, Any]]:
    return [f.to_json() for f in sorted(found)]


def check_classified(commands: Commands, classification: Mapping[str, str]) -> None:
    """Raise unless every free variable and array of *commands* is classified."""
    missing = sorted(
        name
        for name in (target_def_name(t) for t in commands.fv())
        if name not in classification
    )
    if missing:
        raise InvalidInputError(
            f"no security class for {', '.join(missing)}",
            code=GclErrorCodes.MISSING_CLASSIFICATION,
        )


def analyse(
    commands: Commands,
    classification: Mapping[str, str],
    lattice: SecurityLattice,
) -> SecurityReport:
    check_classified(commands, classification)
    actual = flows(commands)
    allowed = lattice.all_allowed(classification)
    violations = actual - allowed
    logger.debug(
        "security: %d actual, %d allowed, %d violation(s)",
        len(actual), len(allowed), len(violations),
    )
    return SecurityReport(actual, allowed, violations, not violations)


def compare(reference: SecurityReport, candidate: SecurityReport) -> ValidationResult:
    """Correct iff every field of *candidate* equals the reference."""
    differing = [
        name
        for name in ("actual", "allowed", "violations", "is_secure")
        if getattr(reference, name) != getattr(candidate, name)
    ]
    if differing:
        details = "; ".join(
            f"{name}: expected {_describe(getattr(reference, name))}, "
            f"got {_describe(getattr(candidate, name))}"
            for name in differing
        )
        return ValidationResult.mismatch(f"Security report differs in {details}")
    return ValidationResult.correct_terminated()


def _describe(value: Any) -> str:
    if isinstance(value, frozenset):
        return "[" + ", ".join(str(f) for f in sorted(value)) + "]"
    return str(value).lower()
