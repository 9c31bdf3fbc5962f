"""Calculator: evaluate a closed arithmetic expression.

An evaluation failure is a legitimate answer: the Output then carries an
empty ``result`` and a non-empty ``error``.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from typing import Any, Dict, Mapping

from gcl_inspect.analyses.base import Analysis, Environment, register
from gcl_inspect.errors import EvaluationFailure, GclErrorCodes, InvalidInputError
from gcl_inspect.generation import generate_aexpr
from gcl_inspect.grammar import parse_aexpr
from gcl_inspect.memory import Memory
from gcl_inspect.result import ValidationResult
from gcl_inspect.semantics import evaluate_aexpr

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CalculatorInput:
    expression: str

    def to_json(self) -> Dict[str, Any]:
        return {"expression": self.expression}

    @classmethod
    def from_json(cls, data: Mapping[str, Any]) -> "CalculatorInput":
        try:
            return cls(str(data["expression"]))
        except (KeyError, TypeError) as exc:
            raise InvalidInputError(
                f"calculator input needs 'expression': {exc}",
                code=GclErrorCodes.INVALID_PAYLOAD,
                cause=exc,
            ) from exc


@dataclass(frozen=True)
class CalculatorOutput:
    result: str = ""
    error: str = ""

    def to_json(self) -> Dict[str, Any]:
        return {"result": self.result, "error": self.error}

    @classmethod
    def from_json(cls, data: Mapping[str, Any]) -> "CalculatorOutput":
        return cls(str(data.get("result", "")), str(data.get("error", "")))


@register(Analysis.CALCULATOR)
class CalculatorEnvironment(Environment[CalculatorInput, CalculatorOutput]):
    input_type = CalculatorInput
    output_type = CalculatorOutput

    def run(self, input: CalculatorInput) -> CalculatorOutput:
        expr = parse_aexpr(input.expression)
        try:
            return CalculatorOutput(result=str(evaluate_aexpr(expr, Memory())))
        except EvaluationFailure as failure:
            return CalculatorOutput(error=failure.message)

    def meta(self, input: CalculatorInput) -> Dict[str, Any]:
        return {}

    def validate(self, input: CalculatorInput, output: CalculatorOutput) -> ValidationResult:
        reference = self.run(input)
        if reference.error and output.error:
            return ValidationResult.correct_terminated()
        # Only results are compared here, so an empty result with no error
        # also passes when the reference failed.
        if reference.result == output.result:
            return ValidationResult.correct_terminated()
        return ValidationResult.mismatch(
            "Did not produce same as reference. "
            f"Output: result={output.result!r}, error={output.error!r}; "
            f"Reference: result={reference.result!r}, error={reference.error!r}"
        )

    def generate(self, rng: random.Random) -> CalculatorInput:
        config = self.generation
        expr = generate_aexpr(rng, config, fuel=config.calculator_fuel)
        for attempt in range(config.calculator_retries):
            try:
                evaluate_aexpr(expr, Memory())
                break
            except EvaluationFailure as failure:
                logger.debug("discarding %s (attempt %d): %s", expr, attempt + 1, failure)
                expr = generate_aexpr(rng, config, fuel=config.calculator_fuel)
        return CalculatorInput(str(expr))
