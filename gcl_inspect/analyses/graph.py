"""Graph: render the program graph of a GCL program as Graphviz DOT.

Node naming and layout are left to the candidate, so any output is
accepted.
"""

from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Any, Dict, Mapping

from gcl_inspect.analyses.base import Analysis, Environment, register
from gcl_inspect.errors import GclErrorCodes, InvalidInputError
from gcl_inspect.generation import generate_commands
from gcl_inspect.grammar import parse_commands
from gcl_inspect.program_graph import Determinism, ProgramGraph
from gcl_inspect.result import ValidationResult


@dataclass(frozen=True)
class GraphInput:
    commands: str
    determinism: Determinism = Determinism.NON_DETERMINISTIC

    def to_json(self) -> Dict[str, Any]:
        return {"commands": self.commands, "determinism": self.determinism.value}

    @classmethod
    def from_json(cls, data: Mapping[str, Any]) -> "GraphInput":
        try:
            return cls(str(data["commands"]), Determinism.parse(data["determinism"]))
        except (KeyError, TypeError) as exc:
            raise InvalidInputError(
                f"malformed graph input: {exc}",
                code=GclErrorCodes.INVALID_PAYLOAD,
                cause=exc,
            ) from exc


@dataclass(frozen=True)
class GraphOutput:
    dot: str

    def to_json(self) -> Dict[str, Any]:
        return {"dot": self.dot}

    @classmethod
    def from_json(cls, data: Mapping[str, Any]) -> "GraphOutput":
        try:
            return cls(str(data["dot"]))
        except (KeyError, TypeError) as exc:
            raise InvalidInputError(
                f"graph output needs 'dot': {exc}",
                code=GclErrorCodes.INVALID_PAYLOAD,
                cause=exc,
            ) from exc


@register(Analysis.GRAPH)
class GraphEnvironment(Environment[GraphInput, GraphOutput]):
    input_type = GraphInput
    output_type = GraphOutput

    def run(self, input: GraphInput) -> GraphOutput:
        graph = ProgramGraph.build(parse_commands(input.commands), input.determinism)
        return GraphOutput(graph.dot())

    def meta(self, input: GraphInput) -> Dict[str, Any]:
        return {}

    def validate(self, input: GraphInput, output: GraphOutput) -> ValidationResult:
        # DOT text is not compared; it is only rendered for inspection.
        return ValidationResult.correct_terminated()

    def generate(self, rng: random.Random) -> GraphInput:
        return GraphInput(
            str(generate_commands(rng, self.generation)), Determinism.NON_DETERMINISTIC
        )
