"""
gcl_inspect/analyses/base.py
============================

The uniform contract every analysis implements, and the registry that maps
analysis tags to their environments.

An environment exposes four operations over its own Input / Output types:

* ``run(input) -> output``                 – the reference solution
* ``meta(input) -> dict``                  – auxiliary facts about the input
* ``validate(input, output) -> ValidationResult``
* ``generate(rng) -> input``               – a random, well-formed input

Inputs and Outputs are dataclasses with ``to_json`` / ``from_json``.
"""

from __future__ import annotations

import logging
import random
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Callable, ClassVar, Dict, Generic, List, Mapping, Type, TypeVar

from gcl_inspect.ast import TargetDef, Variable
from gcl_inspect.config import (
    DEFAULT_GENERATION,
    DEFAULT_INTERPRETER,
    GenerationConfig,
    InterpreterConfig,
)
from gcl_inspect.errors import GclErrorCodes, UnknownAnalysisError
from gcl_inspect.result import ValidationResult

logger = logging.getLogger(__name__)

I = TypeVar("I")
O = TypeVar("O")


class Analysis(Enum):
    CALCULATOR = "Calculator"
    PARSER = "Parser"
    INTERPRETER = "Interpreter"
    SECURITY = "Security"
    GRAPH = "Graph"

    @classmethod
    def parse(cls, tag: str) -> "Analysis":
        for analysis in cls:
            if tag in (analysis.value, analysis.name, analysis.value.lower()):
                return analysis
        raise UnknownAnalysisError(
            f"unknown analysis {tag!r}; expected one of "
            f"{', '.join(a.value for a in cls)}",
            code=GclErrorCodes.UNKNOWN_ANALYSIS,
        )


class Environment(ABC, Generic[I, O]):
    """Reference implementation of one analysis."""

    analysis: ClassVar[Analysis]
    input_type: ClassVar[Type[Any]]
    output_type: ClassVar[Type[Any]]

    def __init__(
        self,
        generation: GenerationConfig = DEFAULT_GENERATION,
        interpreter: InterpreterConfig = DEFAULT_INTERPRETER,
    ) -> None:
        self.generation = generation
        self.interpreter = interpreter

    @abstractmethod
    def run(self, input: I) -> O:
        ...

    @abstractmethod
    def meta(self, input: I) -> Dict[str, Any]:
        ...

    @abstractmethod
    def validate(self, input: I, output: O) -> ValidationResult:
        ...

    @abstractmethod
    def generate(self, rng: random.Random) -> I:
        ...

    def decode_input(self, payload: Mapping[str, Any]) -> I:
        return self.input_type.from_json(payload)

    def decode_output(self, payload: Mapping[str, Any]) -> O:
        return self.output_type.from_json(payload)


def targets_json(targets) -> List[Dict[str, str]]:
    """Free targets as ``[{"kind": "Variable" | "Array", "name": ...}]``."""

    def key(t: TargetDef):
        return (0 if isinstance(t, Variable) else 1, t.name)

    return [
        {"kind": type(t).__name__, "name": t.name} for t in sorted(targets, key=key)
    ]


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

_REGISTRY: Dict[Analysis, Type[Environment]] = {}

E = TypeVar("E", bound=Type[Environment])


def register(analysis: Analysis) -> Callable[[E], E]:
    """Class decorator binding an Environment subclass to *analysis*."""

    def decorator(cls: E) -> E:
        if analysis in _REGISTRY:
            logger.warning(
                "replacing %s environment %s with %s",
                analysis.value, _REGISTRY[analysis].__name__, cls.__name__,
            )
        cls.analysis = analysis
        _REGISTRY[analysis] = cls
        return cls

    return decorator


def registered() -> List[Analysis]:
    return [a for a in Analysis if a in _REGISTRY]


def environment(
    analysis: Any,
    generation: GenerationConfig = DEFAULT_GENERATION,
    interpreter: InterpreterConfig = DEFAULT_INTERPRETER,
) -> Environment:
    """Instantiate the environment registered for *analysis* (tag or enum)."""
    if not isinstance(analysis, Analysis):
        analysis = Analysis.parse(str(analysis))
    try:
        cls = _REGISTRY[analysis]
    except KeyError:
        raise UnknownAnalysisError(
            f"no environment registered for {analysis.value}"
        ) from None
    return cls(generation, interpreter)
