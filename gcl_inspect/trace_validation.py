"""
gcl_inspect/trace_validation.py
===============================

Decides whether an externally produced trace is consistent with *some*
legal execution of a program.

Nondeterminism makes comparing against one reference trace wrong, so the
validator simulates all executions at once: a candidate set starts at the
initial memory and is advanced through every recorded step, keeping only
successors whose memory equals the recorded one.  Candidates that agree on
(node, memory) behave identically from then on and are merged.
"""

from __future__ import annotations

import logging
from typing import Dict, Sequence, Tuple

from gcl_inspect.config import DEFAULT_INTERPRETER, InterpreterConfig
from gcl_inspect.interpreter import Execution, Step, TerminationState
from gcl_inspect.memory import Memory
from gcl_inspect.program_graph import Node, ProgramGraph
from gcl_inspect.result import ValidationResult

logger = logging.getLogger(__name__)

NO_POSSIBLE_EXECUTION = "No possible execution found"
NO_EXECUTION_REACHED_END = "No execution reached the end"
NOT_ENOUGH_TRACES = "Not enough traces were produced"
NO_STUCK_EXECUTION = "No stuck execution found"


def validate_trace(
    graph: ProgramGraph,
    initial_memory: Memory,
    trace: Sequence[Step],
    termination: TerminationState,
    trace_length: int,
    config: InterpreterConfig = DEFAULT_INTERPRETER,
) -> ValidationResult:
    """Check *trace* and its declared *termination* against *graph*."""
    candidates: Dict[Tuple[Node, Memory], Execution] = {
        (graph.start, initial_memory): Execution.start(initial_memory)
    }

    for index, step in enumerate(trace):
        survivors: Dict[Tuple[Node, Memory], Execution] = {}
        for execution in candidates.values():
            for successor in execution.nexts(graph):
                if successor.current_memory == step.memory:
                    key = (successor.current_node, successor.current_memory)
                    survivors.setdefault(key, successor)
        logger.debug("step %d: %d candidate(s)", index + 1, len(survivors))
        if not survivors:
            return ValidationResult.mismatch(NO_POSSIBLE_EXECUTION)
        if len(survivors) > config.max_candidates:
            return ValidationResult.mismatch(
                f"Too many possible executions ({len(survivors)} > "
                f"{config.max_candidates}) at step {index + 1}"
            )
        candidates = survivors

    executions = list(candidates.values())

    if termination is TerminationState.RUNNING and executions:
        return ValidationResult.correct_non_terminated(len(trace))

    if termination is TerminationState.TERMINATED:
        if any(e.is_finished() for e in executions):
            return ValidationResult.correct_terminated()
        return ValidationResult.mismatch(NO_EXECUTION_REACHED_END)

    if len(trace) < trace_length or termination is TerminationState.STUCK:
        if termination is TerminationState.RUNNING:
            return ValidationResult.mismatch(NOT_ENOUGH_TRACES)
        if not any(e.is_stuck(graph) for e in executions):
            return ValidationResult.mismatch(NO_STUCK_EXECUTION)
        return ValidationResult.correct_terminated()

    # TODO: cross-check a declared status against the statuses the
    # surviving executions can actually reach.
    return ValidationResult.correct_terminated()
