"""
gcl_inspect/flow_analysis.py
============================

Explicit and implicit information flows of a GCL program.

A flow ``v -> x`` means the value of ``v`` may influence ``x``:

* explicitly, because ``v`` occurs in an expression assigned to ``x``;
* implicitly, because ``v`` occurs in a guard that decides whether an
  assignment to ``x`` happens.

The extraction threads an *implicit* set of names through the program.
Guards of one ``if``/``do`` are processed left to right and each guard's
condition is added to the set before its body is visited, so later guards
also carry the conditions of earlier ones.  Loops are treated as a single
unrolling.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, FrozenSet, Iterable, Mapping

from gcl_inspect.ast import (
    ArrayAssignment,
    Assignment,
    Commands,
    If,
    Loop,
    target_def_name,
)
from gcl_inspect.errors import GclErrorCodes, InvalidInputError


@dataclass(frozen=True, order=True)
class Flow:
    """Ordered pair ``from -> into`` of names or security classes."""

    source: str
    into: str

    def to_json(self) -> Dict[str, Any]:
        return {"from": self.source, "into": self.into}

    @classmethod
    def from_json(cls, data: Mapping[str, Any]) -> "Flow":
        try:
            return cls(str(data["from"]), str(data["into"]))
        except (KeyError, TypeError) as exc:
            raise InvalidInputError(
                f"malformed flow {data!r}",
                code=GclErrorCodes.INVALID_PAYLOAD,
                cause=exc,
            ) from exc

    def __str__(self) -> str:
        return f"{self.source} -> {self.into}"


def _names(node) -> FrozenSet[str]:
    return frozenset(target_def_name(t) for t in node.fv())


def flows(commands: Commands) -> FrozenSet[Flow]:
    """All flows of *commands*, starting from an empty implicit set."""
    return _commands(commands, frozenset())


def _commands(commands: Commands, implicit: FrozenSet[str]) -> FrozenSet[Flow]:
    result: FrozenSet[Flow] = frozenset()
    for command in commands:
        result |= _command(command, implicit)
    return result


def _command(command, implicit: FrozenSet[str]) -> FrozenSet[Flow]:
    if isinstance(command, Assignment):
        into = command.target.name
        return _into(implicit | _names(command.expr), into)
    if isinstance(command, ArrayAssignment):
        into = command.target.array.name
        sources = implicit | _names(command.expr) | _names(command.target.index)
        return _into(sources, into)
    if isinstance(command, (If, Loop)):
        result: FrozenSet[Flow] = frozenset()
        for guard in command.guards:
            implicit = implicit | _names(guard.condition)
            result |= _commands(guard.body, implicit)
        return result
    # skip, break, continue
    return frozenset()


def _into(sources: Iterable[str], into: str) -> FrozenSet[Flow]:
    return frozenset(Flow(source, into) for source in sources)
