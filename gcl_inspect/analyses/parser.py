"""Parser: pretty-print a GCL program.

Layout is free, so a candidate is accepted iff it parses back to the
same program as the input.
"""

from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Any, Dict, Mapping

from gcl_inspect.analyses.base import Analysis, Environment, register
from gcl_inspect.errors import GclErrorCodes, InvalidInputError, ParseFailure
from gcl_inspect.generation import generate_commands
from gcl_inspect.grammar import parse_commands
from gcl_inspect.result import ValidationResult


@dataclass(frozen=True)
class ParserInput:
    commands: str

    def to_json(self) -> Dict[str, Any]:
        return {"commands": self.commands}

    @classmethod
    def from_json(cls, data: Mapping[str, Any]) -> "ParserInput":
        try:
            return cls(str(data["commands"]))
        except (KeyError, TypeError) as exc:
            raise InvalidInputError(
                f"parser input needs 'commands': {exc}",
                code=GclErrorCodes.INVALID_PAYLOAD,
                cause=exc,
            ) from exc


@dataclass(frozen=True)
class ParserOutput:
    pretty: str

    def to_json(self) -> Dict[str, Any]:
        return {"pretty": self.pretty}

    @classmethod
    def from_json(cls, data: Mapping[str, Any]) -> "ParserOutput":
        try:
            return cls(str(data["pretty"]))
        except (KeyError, TypeError) as exc:
            raise InvalidInputError(
                f"parser output needs 'pretty': {exc}",
                code=GclErrorCodes.INVALID_PAYLOAD,
                cause=exc,
            ) from exc


@register(Analysis.PARSER)
class ParserEnvironment(Environment[ParserInput, ParserOutput]):
    input_type = ParserInput
    output_type = ParserOutput

    def run(self, input: ParserInput) -> ParserOutput:
        return ParserOutput(str(parse_commands(input.commands)))

    def meta(self, input: ParserInput) -> Dict[str, Any]:
        return {}

    def validate(self, input: ParserInput, output: ParserOutput) -> ValidationResult:
        expected = parse_commands(input.commands)
        try:
            actual = parse_commands(output.pretty)
        except ParseFailure as exc:
            return ValidationResult.mismatch(f"failed to parse pretty output: {exc}")
        if actual != expected:
            return ValidationResult.mismatch(
                "pretty output parses to a different program: "
                f"expected {str(expected)!r}, got {str(actual)!r}"
            )
        return ValidationResult.correct_terminated()

    def generate(self, rng: random.Random) -> ParserInput:
        return ParserInput(str(generate_commands(rng, self.generation)))
