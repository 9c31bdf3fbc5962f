"""Interpreter: execute a program for a bounded number of steps.

The candidate trace is checked with :func:`validate_trace`, so any legal
resolution of nondeterminism is accepted, not only the reference one.

A reference run that stops because an edge failed to evaluate (division
by zero, index out of bounds, ...) is Stuck and carries the failure in
``error``; a run stuck on false guards has an empty ``error``.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Tuple

from gcl_inspect.analyses.base import Analysis, Environment, register, targets_json
from gcl_inspect.errors import GclErrorCodes, InvalidInputError, ParseFailure
from gcl_inspect.generation import generate_commands, generate_memory
from gcl_inspect.grammar import parse_commands
from gcl_inspect.interpreter import Step, TerminationState, run
from gcl_inspect.memory import Memory
from gcl_inspect.program_graph import END, START, Determinism, ProgramGraph
from gcl_inspect.result import ValidationResult
from gcl_inspect.trace_validation import validate_trace

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class InterpreterInput:
    commands: str
    determinism: Determinism = Determinism.NON_DETERMINISTIC
    assignment: Memory = field(default_factory=Memory)
    trace_length: int = 10

    def to_json(self) -> Dict[str, Any]:
        return {
            "commands": self.commands,
            "determinism": self.determinism.value,
            "assignment": self.assignment.to_json(),
            "trace_length": self.trace_length,
        }

    @classmethod
    def from_json(cls, data: Mapping[str, Any]) -> "InterpreterInput":
        try:
            trace_length = data["trace_length"]
            if isinstance(trace_length, bool) or not isinstance(trace_length, int):
                raise TypeError(f"trace_length must be an integer, got {trace_length!r}")
            return cls(
                commands=str(data["commands"]),
                determinism=Determinism.parse(data["determinism"]),
                assignment=Memory.from_json(data.get("assignment", {})),
                trace_length=trace_length,
            )
        except (KeyError, TypeError) as exc:
            raise InvalidInputError(
                f"malformed interpreter input: {exc}",
                code=GclErrorCodes.INVALID_PAYLOAD,
                cause=exc,
            ) from exc


@dataclass(frozen=True)
class InterpreterOutput:
    initial_node: str
    final_node: str
    dot: str
    trace: Tuple[Step, ...]
    termination: TerminationState
    error: str = ""

    def to_json(self) -> Dict[str, Any]:
        return {
            "initial_node": self.initial_node,
            "final_node": self.final_node,
            "dot": self.dot,
            "trace": [step.to_json() for step in self.trace],
            "termination": self.termination.value,
            "error": self.error,
        }

    @classmethod
    def from_json(cls, data: Mapping[str, Any]) -> "InterpreterOutput":
        try:
            return cls(
                initial_node=str(data.get("initial_node", START.name)),
                final_node=str(data.get("final_node", END.name)),
                dot=str(data.get("dot", "")),
                trace=tuple(Step.from_json(s) for s in data["trace"]),
                termination=TerminationState.parse(data["termination"]),
                error=str(data.get("error") or ""),
            )
        except (KeyError, TypeError) as exc:
            raise InvalidInputError(
                f"malformed interpreter output: {exc}",
                code=GclErrorCodes.INVALID_PAYLOAD,
                cause=exc,
            ) from exc


@register(Analysis.INTERPRETER)
class InterpreterEnvironment(Environment[InterpreterInput, InterpreterOutput]):
    input_type = InterpreterInput
    output_type = InterpreterOutput

    def _graph(self, input: InterpreterInput) -> ProgramGraph:
        return ProgramGraph.build(parse_commands(input.commands), input.determinism)

    def run(self, input: InterpreterInput) -> InterpreterOutput:
        graph = self._graph(input)
        execution = run(graph, input.assignment, input.trace_length)
        return InterpreterOutput(
            initial_node=START.name,
            final_node=END.name,
            dot=graph.dot(),
            trace=execution.trace,
            termination=execution.state(graph),
            error=str(execution.failure) if execution.failed else "",
        )

    def meta(self, input: InterpreterInput) -> Dict[str, Any]:
        try:
            commands = parse_commands(input.commands)
        except ParseFailure as exc:
            logger.warning("no meta for unparsable program: %s", exc)
            return {}
        return {"targets": targets_json(commands.fv())}

    def validate(self, input: InterpreterInput, output: InterpreterOutput) -> ValidationResult:
        verdict = validate_trace(
            self._graph(input),
            input.assignment,
            output.trace,
            output.termination,
            input.trace_length,
            self.interpreter,
        )
        logger.info("interpreter verdict: %s", verdict)
        return verdict

    def generate(self, rng: random.Random) -> InterpreterInput:
        config = self.generation
        commands = generate_commands(rng, config)
        assignment = generate_memory(rng, commands.fv(), config)
        determinism = rng.choice([Determinism.DETERMINISTIC, Determinism.NON_DETERMINISTIC])
        lo, hi = config.trace_length_range
        return InterpreterInput(
            commands=str(commands),
            determinism=determinism,
            assignment=assignment,
            trace_length=rng.randint(lo, hi),
        )
