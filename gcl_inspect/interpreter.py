"""
gcl_inspect/interpreter.py
==========================

Nondeterministic stepping over a :class:`ProgramGraph`.

An :class:`Execution` is an initial memory plus the ordered history of
steps taken so far.  It never changes: :meth:`Execution.nexts` returns one
new execution per enabled outgoing edge, in edge declaration order.  Edges
whose action fails to evaluate are not successors; they are reported
separately by :meth:`Execution.outcomes` / :meth:`Execution.failures` as
:class:`EvaluationFailure` values, so a failing guard is never mistaken for
a false one.

:func:`run` follows the first enabled edge at every node and is the
reference interpretation of a program.  If it stops because the only
non-false edges failed, the returned execution carries that failure.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple

from gcl_inspect.errors import EvaluationFailure, GclErrorCodes, InvalidInputError
from gcl_inspect.memory import Memory
from gcl_inspect.program_graph import START, Node, ProgramGraph

logger = logging.getLogger(__name__)


class TerminationState(Enum):
    RUNNING = "Running"
    TERMINATED = "Terminated"
    STUCK = "Stuck"

    @classmethod
    def parse(cls, text: str) -> "TerminationState":
        try:
            return cls(text)
        except ValueError:
            raise InvalidInputError(
                f"unknown termination state {text!r}",
                code=GclErrorCodes.INVALID_PAYLOAD,
            ) from None


@dataclass(frozen=True)
class Step:
    """One recorded step: the action taken, the node reached and the memory there."""

    action: str
    node: Node
    memory: Memory

    def to_json(self) -> Dict[str, Any]:
        return {
            "action": self.action,
            "node": self.node.name,
            "memory": self.memory.to_json(),
        }

    @classmethod
    def from_json(cls, data: Mapping[str, Any]) -> "Step":
        try:
            return cls(str(data["action"]), Node(str(data["node"])), Memory.from_json(data["memory"]))
        except (KeyError, TypeError) as exc:
            raise InvalidInputError(
                f"malformed trace step {data!r}",
                code=GclErrorCodes.INVALID_PAYLOAD,
                cause=exc,
            ) from exc


@dataclass(frozen=True)
class Execution:
    """An initial memory plus the steps taken so far.

    ``failure`` is set when the execution stopped because every outgoing
    edge that was not a false guard failed to evaluate.
    """

    initial_memory: Memory
    trace: Tuple[Step, ...] = ()
    failure: Optional[EvaluationFailure] = None

    @classmethod
    def start(cls, memory: Memory) -> "Execution":
        return cls(memory)

    @property
    def current_node(self) -> Node:
        return self.trace[-1].node if self.trace else START

    @property
    def current_memory(self) -> Memory:
        return self.trace[-1].memory if self.trace else self.initial_memory

    def outcomes(
        self, graph: ProgramGraph
    ) -> Tuple[List["Execution"], List[EvaluationFailure]]:
        """Successors over enabled edges, and the failures of failing edges.

        Both lists follow edge declaration order.  A false guard contributes
        to neither.
        """
        successors: List[Execution] = []
        failures: List[EvaluationFailure] = []
        for transition in graph.step(self.current_node, self.current_memory):
            if transition.enabled:
                step = Step(str(transition.action), transition.target, transition.memory)
                successors.append(Execution(self.initial_memory, self.trace + (step,)))
            elif transition.failure is not None:
                failures.append(transition.failure)
        return successors, failures

    def nexts(self, graph: ProgramGraph) -> List["Execution"]:
        return self.outcomes(graph)[0]

    def failures(self, graph: ProgramGraph) -> List[EvaluationFailure]:
        return self.outcomes(graph)[1]

    @property
    def failed(self) -> bool:
        return self.failure is not None

    def is_finished(self) -> bool:
        return self.current_node.is_end

    def is_stuck(self, graph: ProgramGraph) -> bool:
        return not self.is_finished() and not self.nexts(graph)

    def state(self, graph: ProgramGraph) -> TerminationState:
        if self.is_finished():
            return TerminationState.TERMINATED
        if self.is_stuck(graph):
            return TerminationState.STUCK
        return TerminationState.RUNNING

    def __len__(self) -> int:
        return len(self.trace)


def run(graph: ProgramGraph, memory: Memory, trace_length: int) -> Execution:
    """Take the first enabled edge up to *trace_length* times.

    When no edge is enabled but some edge failed to evaluate, the returned
    execution carries the first such failure.
    """
    execution = Execution.start(memory)
    while len(execution) < trace_length:
        successors, failures = execution.outcomes(graph)
        if not successors:
            if failures:
                execution = replace(execution, failure=failures[0])
                logger.info(
                    "execution stuck at %s: %s", execution.current_node, execution.failure
                )
            break
        execution = successors[0]
    logger.debug(
        "ran %d step(s), stopped at %s", len(execution), execution.current_node
    )
    return execution
