"""
gcl_inspect/security_lattice.py
===============================

Security classes ordered by a declared "may flow into" relation.

The declared rules are closed under transitivity at construction; the
relation is reflexive at query time, so ``allows(c, c)`` holds for every
class even when no rule mentions it.

Usage::

    lattice = SecurityLattice.parse("unclassified < classified, classified < secret")
    lattice.allows("unclassified", "secret")        # True
    lattice.all_allowed({"x": "secret", "y": "unclassified"})
"""

from __future__ import annotations

import logging
from itertools import product
from typing import FrozenSet, Iterable, List, Mapping, Tuple

from gcl_inspect.flow_analysis import Flow
from gcl_inspect.grammar import parse_lattice_rules

logger = logging.getLogger(__name__)


def transitive_closure(rules: Iterable[Flow]) -> FrozenSet[Flow]:
    closed = set(rules)
    while True:
        added = {
            Flow(f.source, a.into)
            for f in closed
            for a in closed
            if f.into == a.source
        } - closed
        if not added:
            return frozenset(closed)
        closed |= added


class SecurityLattice:
    def __init__(self, rules: Iterable[Flow] = ()) -> None:
        self.rules: Tuple[Flow, ...] = tuple(rules)
        self.allowed: FrozenSet[Flow] = transitive_closure(self.rules)
        logger.debug(
            "lattice: %d rule(s), %d after closure", len(self.rules), len(self.allowed)
        )

    @classmethod
    def parse(cls, text: str) -> "SecurityLattice":
        """Read rules written as ``low < high, public < private``."""
        return cls(Flow(lower, upper) for lower, upper in parse_lattice_rules(text))

    def allows(self, source: str, into: str) -> bool:
        return source == into or Flow(source, into) in self.allowed

    def all_allowed(self, classification: Mapping[str, str]) -> FrozenSet[Flow]:
        """Every ``a -> b`` between classified names whose classes allow it."""
        return frozenset(
            Flow(a, b)
            for (a, a_class), (b, b_class) in product(
                classification.items(), repeat=2
            )
            if self.allows(a_class, b_class)
        )

    def classes(self) -> List[str]:
        found = {c for rule in self.rules for c in (rule.source, rule.into)}
        return sorted(found)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SecurityLattice):
            return NotImplemented
        return self.allowed == other.allowed

    def __hash__(self) -> int:
        return hash(self.allowed)

    def __str__(self) -> str:
        return ", ".join(f"{r.source} < {r.into}" for r in self.rules)

    def __repr__(self) -> str:
        return f"SecurityLattice({str(self)!r})"
