"""
gcl_inspect — Reference analyses for the Guarded Command Language
=================================================================

This package provides the reference implementations behind a teaching
tool for the guarded-command language (GCL): for every analysis it can
generate random inputs, compute the reference output and decide whether a
candidate output is acceptable.

Core modules
------------
ast
    Program Model: expressions, commands, guards, free targets, rendering.
grammar
    Parsimonious PEG grammar turning GCL text into the Program Model.
memory
    Immutable variable/array memory snapshots.
semantics
    32-bit expression evaluation with ``EvaluationFailure``.
program_graph
    Action-labelled Program Graph with a one-step transition relation.
interpreter
    Nondeterministic executions and the reference run.
trace_validation
    Subset simulation of externally produced traces.
flow_analysis
    Explicit and implicit information flows.
security_lattice
    Transitively closed "may flow into" relation over security classes.
security_analysis
    Actual / allowed / violating flows of a program.
generation
    Fuel-bounded random programs, expressions and memories.
analyses
    The ``run / meta / validate / generate`` environments and envelopes.

Quick start
-----------
>>> from gcl_inspect import parse_commands, ProgramGraph, Memory, run
>>> graph = ProgramGraph.build(parse_commands("x := 1; y := x + 2"))
>>> [str(step.memory) for step in run(graph, Memory(), 5).trace]
['x = 1', 'x = 1, y = 3']
"""

from __future__ import annotations

import importlib
import logging
import sys
from typing import TYPE_CHECKING, List

# ---------------------------------------------------------------------------
# Package metadata
# ---------------------------------------------------------------------------

__version__ = "0.1.0"
__all__: List[str] = []          # populated incrementally below

_log = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Internal registry: (module_name, list_of_names_to_import)
# ---------------------------------------------------------------------------

_CORE_MODULES = {
    "errors": [
        "GclError",
        "ParseFailure",
        "EvaluationFailure",
        "InvalidInputError",
        "UnknownAnalysisError",
    ],
    "ast": [
        "Commands",
        "Variable",
        "Array",
        "render",
    ],
    "grammar": [
        "parse_commands",
        "parse_aexpr",
        "parse_bexpr",
    ],
    "config": [
        "GenerationConfig",
        "InterpreterConfig",
    ],
    "memory": [
        "Memory",
    ],
    "semantics": [
        "evaluate_aexpr",
        "evaluate_bexpr",
    ],
    "program_graph": [
        "ProgramGraph",
        "Determinism",
        "Transition",
    ],
    "interpreter": [
        "Execution",
        "Step",
        "TerminationState",
        "run",
    ],
    "result": [
        "ValidationResult",
        "ValidationStatus",
    ],
    "trace_validation": [
        "validate_trace",
    ],
    "flow_analysis": [
        "Flow",
        "flows",
    ],
    "security_lattice": [
        "SecurityLattice",
    ],
    "security_analysis": [
        "SecurityReport",
        "analyse",
    ],
    "generation": [
        "Generator",
        "generate_commands",
        "generate_aexpr",
        "generate_memory",
    ],
    "analyses": [
        "Analysis",
        "Environment",
        "InputEnvelope",
        "OutputEnvelope",
        "MetaEnvelope",
        "environment",
    ],
}


def _import_names(module_rel_name: str, names: List[str]) -> None:
    """Import *names* from a submodule and bind them in the package namespace."""
    fq_name = f"{__name__}.{module_rel_name}"
    try:
        mod = importlib.import_module(fq_name)
    except ImportError as exc:
        raise ImportError(
            f"gcl_inspect: required submodule '{module_rel_name}' "
            f"failed to import: {exc}"
        ) from exc

    current_module = sys.modules[__name__]
    for name in names:
        if not hasattr(mod, name):
            raise AttributeError(f"gcl_inspect.{module_rel_name} does not export '{name}'")
        setattr(current_module, name, getattr(mod, name))
        __all__.append(name)

    setattr(current_module, module_rel_name, mod)
    if module_rel_name not in __all__:
        __all__.append(module_rel_name)


for _mod, _names in _CORE_MODULES.items():
    _import_names(_mod, _names)

del _mod, _names


def list_submodules() -> List[str]:
    """Return the names of all re-exported submodules."""
    return sorted(_CORE_MODULES)


__all__ += ["list_submodules", "__version__"]

# ---------------------------------------------------------------------------
# Static re-exports for type checkers
# ---------------------------------------------------------------------------

if TYPE_CHECKING:
    from .errors import (
        GclError as GclError,
        ParseFailure as ParseFailure,
        EvaluationFailure as EvaluationFailure,
        InvalidInputError as InvalidInputError,
        UnknownAnalysisError as UnknownAnalysisError,
    )
    from .ast import Commands as Commands, Variable as Variable, Array as Array, render as render
    from .grammar import (
        parse_commands as parse_commands,
        parse_aexpr as parse_aexpr,
        parse_bexpr as parse_bexpr,
    )
    from .config import GenerationConfig as GenerationConfig, InterpreterConfig as InterpreterConfig
    from .memory import Memory as Memory
    from .semantics import evaluate_aexpr as evaluate_aexpr, evaluate_bexpr as evaluate_bexpr
    from .program_graph import (
        ProgramGraph as ProgramGraph,
        Determinism as Determinism,
        Transition as Transition,
    )
    from .interpreter import (
        Execution as Execution,
        Step as Step,
        TerminationState as TerminationState,
        run as run,
    )
    from .result import ValidationResult as ValidationResult, ValidationStatus as ValidationStatus
    from .trace_validation import validate_trace as validate_trace
    from .flow_analysis import Flow as Flow, flows as flows
    from .security_lattice import SecurityLattice as SecurityLattice
    from .security_analysis import SecurityReport as SecurityReport, analyse as analyse
    from .generation import (
        Generator as Generator,
        generate_commands as generate_commands,
        generate_aexpr as generate_aexpr,
        generate_memory as generate_memory,
    )
    from .analyses import (
        Analysis as Analysis,
        Environment as Environment,
        InputEnvelope as InputEnvelope,
        OutputEnvelope as OutputEnvelope,
        MetaEnvelope as MetaEnvelope,
        environment as environment,
    )
