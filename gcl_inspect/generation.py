"""
gcl_inspect/generation.py
=========================

Fuel-bounded random generation of GCL programs, expressions and memories.

Every production is a weighted choice over an ordered list of
``(weight, production)`` pairs.  Recursive productions get weight ``0``
once their budget is used up, which makes generation well-founded:

* ``fuel``             – debited by the length of every generated sequence
                         (command blocks, guard lists); nested ``if``/``do``
                         and binary arithmetic need fuel left.
* ``recursion_limit``  – reset at each command/guard, debited by every
                         binary, relational and logical production.
* ``negation_limit``   – reset at each command/guard, debited by ``!``.

All names are drawn from a small shared pool so that programs reuse
variables; array names are the upper-cased pool names.  With an empty pool
only closed expressions are produced and the only command is ``skip``
(inside ``if``/``do`` while fuel lasts).

Usage::

    rng = random.Random(7)
    commands = Generator(rng).commands()
"""

from __future__ import annotations

import logging
import random
from typing import Callable, Iterable, List, Optional, Sequence, Tuple, TypeVar

from gcl_inspect.ast import (
    AOp,
    Array,
    ArrayAssignment,
    ArrayElement,
    Assignment,
    Binary,
    Bool,
    Commands,
    Guard,
    If,
    Logic,
    LogicOp,
    Loop,
    Not,
    Number,
    Rel,
    RelOp,
    Skip,
    TargetDef,
    Variable,
)
from gcl_inspect.config import DEFAULT_GENERATION, GenerationConfig
from gcl_inspect.memory import Memory

logger = logging.getLogger(__name__)

T = TypeVar("T")

Production = Tuple[float, Callable[[], T]]

_AOP_WEIGHTS: Sequence[Tuple[float, AOp]] = (
    (0.5, AOp.PLUS),
    (0.4, AOp.MINUS),
    (0.4, AOp.TIMES),
    (0.1, AOp.POW),
    (0.3, AOp.DIVIDE),
)

_RELOP_WEIGHTS: Sequence[Tuple[float, RelOp]] = (
    (0.3, RelOp.EQ),
    (0.3, RelOp.GT),
    (0.3, RelOp.GE),
    (0.3, RelOp.LT),
    (0.3, RelOp.LE),
    (0.3, RelOp.NE),
)

_LOGICOP_WEIGHTS: Sequence[Tuple[float, LogicOp]] = (
    (0.3, LogicOp.AND),
    (0.3, LogicOp.LAND),
    (0.3, LogicOp.OR),
    (0.3, LogicOp.LOR),
)


class Generator:
    """Random Program Model builder holding the generation budgets."""

    def __init__(
        self,
        rng: random.Random,
        config: GenerationConfig = DEFAULT_GENERATION,
        fuel: Optional[int] = None,
        names: Optional[Sequence[str]] = None,
    ) -> None:
        self.rng = rng
        self.config = config
        self.fuel = config.fuel if fuel is None else fuel
        self.names: Tuple[str, ...] = tuple(config.names if names is None else names)
        self.recursion_limit = config.recursion_limit
        self.negation_limit = config.negation_limit

    # ── sampling primitives ─────────────────────────────────────

    def sample(self, productions: Sequence[Production]) -> T:
        """Run one production, chosen with probability proportional to its weight."""
        weights = [weight for weight, _ in productions]
        (_, produce), = self.rng.choices(productions, weights=weights)
        return produce()

    def pick(self, options: Sequence[Tuple[float, T]]) -> T:
        (_, value), = self.rng.choices(options, weights=[w for w, _ in options])
        return value

    def many(self, minimum: int, maximum: int, produce: Callable[[], T]) -> List[T]:
        """Between *minimum* and *maximum* items, never more than the fuel left
        unless *minimum* demands it.  The count is debited before recursing."""
        maximum = max(min(maximum, self.fuel), minimum)
        n = self.rng.randint(minimum, maximum)
        self.fuel = max(self.fuel - n, 0)
        return [produce() for _ in range(n)]

    def reset_limits(self) -> None:
        self.recursion_limit = self.config.recursion_limit
        self.negation_limit = self.config.negation_limit

    def _var_name(self) -> str:
        return self.rng.choice(self.names)

    def _array_name(self) -> str:
        return self.rng.choice(self.names).upper()

    def _names_weight(self, weight: float) -> float:
        return weight if self.names else 0.0

    # ── commands ────────────────────────────────────────────────

    def commands(self) -> Commands:
        return Commands(tuple(self.many(1, self.config.max_sequence_length, self.command)))

    def command(self):
        self.reset_limits()
        recursive = 0.3 if self.fuel > 0 else 0.0
        return self.sample([
            (self._names_weight(0.7), lambda: Assignment(Variable(self._var_name()), self.aexpr())),
            (self._names_weight(0.3), lambda: ArrayAssignment(self.array_element(), self.aexpr())),
            (recursive, lambda: If(self.guards())),
            (recursive, lambda: Loop(self.guards())),
            (0.0 if self.names else 1.0, Skip),
        ])

    def guards(self) -> Tuple[Guard, ...]:
        return tuple(self.many(1, self.config.max_sequence_length, self.guard))

    def guard(self) -> Guard:
        self.reset_limits()
        return Guard(self.bexpr(), self.commands())

    # ── arithmetic expressions ──────────────────────────────────

    def array_element(self) -> ArrayElement:
        return ArrayElement(Array(self._array_name()), self.aexpr())

    def number(self) -> Number:
        lo, hi = self.config.number_range
        return Number(self.rng.randint(lo, hi))

    def aexpr(self):
        binary = 0.0 if self.recursion_limit == 0 or self.fuel == 0 else 0.5
        return self.sample([
            (0.4, self.number),
            (self._names_weight(0.7), lambda: Variable(self._var_name())),
            (self._names_weight(0.1), self.array_element),
            (binary, self._binary),
        ])

    def _binary(self) -> Binary:
        self.recursion_limit = max(self.recursion_limit - 1, 0)
        return Binary(self.aexpr(), self.pick(_AOP_WEIGHTS), self.aexpr())

    # ── boolean expressions ─────────────────────────────────────

    def bexpr(self):
        nested = 0.0 if self.recursion_limit == 0 else 0.7
        return self.sample([
            (0.2, lambda: Bool(self.rng.random() < 0.5)),
            (nested, self._rel),
            (nested, self._logic),
            (0.0 if self.negation_limit == 0 else 0.4, self._not),
        ])

    def _rel(self) -> Rel:
        self.recursion_limit = max(self.recursion_limit - 1, 0)
        return Rel(self.aexpr(), self.pick(_RELOP_WEIGHTS), self.aexpr())

    def _logic(self) -> Logic:
        self.recursion_limit = max(self.recursion_limit - 1, 0)
        return Logic(self.bexpr(), self.pick(_LOGICOP_WEIGHTS), self.bexpr())

    def _not(self) -> Not:
        self.negation_limit = max(self.negation_limit - 1, 0)
        return Not(self.bexpr())


# ═══════════════════════════════════════════════════════════════════
#  Convenience entry points
# ═══════════════════════════════════════════════════════════════════


def generate_commands(
    rng: random.Random,
    config: GenerationConfig = DEFAULT_GENERATION,
) -> Commands:
    return Generator(rng, config).commands()


def generate_aexpr(
    rng: random.Random,
    config: GenerationConfig = DEFAULT_GENERATION,
    fuel: Optional[int] = None,
    names: Sequence[str] = (),
):
    """A single arithmetic expression; closed unless *names* are given."""
    return Generator(rng, config, fuel=fuel, names=names).aexpr()


def _sort_key(target: TargetDef) -> Tuple[int, str]:
    return (0 if isinstance(target, Variable) else 1, target.name)


def generate_memory(
    rng: random.Random,
    targets: Iterable[TargetDef],
    config: GenerationConfig = DEFAULT_GENERATION,
) -> Memory:
    """Random initial values for every variable and array in *targets*."""
    lo, hi = config.memory_value_range
    min_len, max_len = config.array_length_range
    memory = Memory()
    for target in sorted(targets, key=_sort_key):
        if isinstance(target, Variable):
            memory = memory.with_variable(target.name, rng.randint(lo, hi))
        else:
            length = rng.randint(min_len, max_len)
            memory = memory.with_array(target.name, [rng.randint(lo, hi) for _ in range(length)])
    return memory
