"""
gcl_inspect/program_graph.py
============================

Program Graph construction for GCL commands.

A Program Graph has a Start node ``q▷``, an End node ``q◀`` and fresh
intermediate nodes ``q1, q2, ...``.  Every edge is labelled with an
*action*: an assignment, ``skip``, or a boolean :class:`Condition`.

Edges are produced by the usual structural recursion ``edges(qs, C, qe)``:

* ``x := a`` / ``A[i] := a`` / ``skip``   – one edge ``qs → qe``
* ``C1 ; C2``                             – chained through a fresh node
* ``if GC fi``                            – one condition edge per guard
* ``do GC od``                            – guard bodies loop back to ``qs``;
  an exit edge ``!(b1 || ... || bn)`` leads to ``qe``
* ``break`` / ``continue``                – ``skip`` edge to the end / start
  of the innermost enclosing loop

In :attr:`Determinism.DETERMINISTIC` mode the guards of one ``if``/``do``
are made mutually exclusive: guard *k* is ``bk && !(b1 || ... || bk-1)``,
so at most one edge leaving any node is enabled.

Usage::

    graph = ProgramGraph.build(parse_commands("x := 1; y := x + 2"))
    for transition in graph.step(graph.start, Memory()):
        print(transition.action, transition.target, transition.memory)
    print(graph.dot())
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from itertools import count
from typing import Dict, Iterator, List, Optional, Tuple, Union

from gcl_inspect.ast import (
    ArrayAssignment,
    Assignment,
    BExpr,
    Break,
    Commands,
    Continue,
    Guard,
    If,
    Logic,
    LogicOp,
    Loop,
    Not,
    Skip,
)
from gcl_inspect.errors import EvaluationFailure, GclErrorCodes, InvalidInputError
from gcl_inspect.memory import Memory
from gcl_inspect.semantics import evaluate_bexpr, execute

logger = logging.getLogger(__name__)


# ===========================================================================
# NODES, ACTIONS, EDGES
# ===========================================================================


class Determinism(Enum):
    DETERMINISTIC = "Deterministic"
    NON_DETERMINISTIC = "NonDeterministic"

    @classmethod
    def parse(cls, text: str) -> "Determinism":
        try:
            return cls(text)
        except ValueError:
            raise InvalidInputError(
                f"unknown determinism {text!r}; expected one of "
                f"{', '.join(d.value for d in cls)}",
                code=GclErrorCodes.INVALID_PAYLOAD,
            ) from None


@dataclass(frozen=True)
class Node:
    name: str

    @property
    def is_start(self) -> bool:
        return self == START

    @property
    def is_end(self) -> bool:
        return self == END

    def __str__(self) -> str:
        return self.name


START = Node("q▷")
END = Node("q◀")


@dataclass(frozen=True)
class Condition:
    """A guard edge label."""

    condition: BExpr

    def __str__(self) -> str:
        return str(self.condition)


Action = Union[Assignment, ArrayAssignment, Skip, Condition]


@dataclass(frozen=True)
class Edge:
    source: Node
    action: Action
    target: Node


@dataclass(frozen=True)
class Transition:
    """Outcome of taking one edge from a memory.

    Exactly one of ``memory`` (the edge is enabled) and ``failure`` (the
    action could not be evaluated) is set.
    """

    action: Action
    target: Node
    memory: Optional[Memory] = None
    failure: Optional[EvaluationFailure] = None

    @property
    def enabled(self) -> bool:
        return self.memory is not None


# ===========================================================================
# GRAPH
# ===========================================================================


class ProgramGraph:
    """Immutable action-labelled control-flow graph of a GCL program."""

    def __init__(self, edges: Tuple[Edge, ...], determinism: Determinism) -> None:
        self.edges = tuple(edges)
        self.determinism = determinism
        self._outgoing: Dict[Node, List[Edge]] = {}
        for edge in self.edges:
            self._outgoing.setdefault(edge.source, []).append(edge)

    @classmethod
    def build(
        cls,
        commands: Commands,
        determinism: Determinism = Determinism.NON_DETERMINISTIC,
    ) -> "ProgramGraph":
        builder = _GraphBuilder(determinism)
        builder.commands(START, commands, END, loop=None)
        graph = cls(tuple(builder.edges), determinism)
        logger.debug(
            "built %s program graph: %d nodes, %d edges",
            determinism.value, len(graph.nodes), len(graph.edges),
        )
        return graph

    @property
    def start(self) -> Node:
        return START

    @property
    def end(self) -> Node:
        return END

    @property
    def nodes(self) -> Tuple[Node, ...]:
        """All nodes, Start first and End last."""
        seen: Dict[Node, None] = {START: None}
        for edge in self.edges:
            seen.setdefault(edge.source, None)
            seen.setdefault(edge.target, None)
        seen.pop(END, None)
        seen[END] = None
        return tuple(seen)

    def outgoing(self, node: Node) -> Tuple[Edge, ...]:
        return tuple(self._outgoing.get(node, ()))

    def step(self, node: Node, memory: Memory) -> List[Transition]:
        """Every edge leaving *node* that is enabled or fails under *memory*.

        Disabled conditions (evaluating to false) are omitted; failing
        actions are reported with ``failure`` set.
        """
        transitions: List[Transition] = []
        for edge in self.outgoing(node):
            try:
                result = _apply(edge.action, memory)
            except EvaluationFailure as failure:
                logger.debug("%s -> %s: %s fails: %s", node, edge.target, edge.action, failure)
                transitions.append(Transition(edge.action, edge.target, failure=failure))
                continue
            if result is not None:
                transitions.append(Transition(edge.action, edge.target, memory=result))
        return transitions

    def dot(self) -> str:
        """Return a Graphviz DOT representation of this graph."""
        lines = ["digraph ProgramGraph {"]
        lines.append("  node [shape=circle, fontname=monospace, fontsize=10];")
        for node in self.nodes:
            style = ""
            if node.is_start:
                style = ', style=filled, fillcolor="#ccffcc"'
            elif node.is_end:
                style = ', style=filled, fillcolor="#ffcccc"'
            lines.append(f'  "{node}" [label="{node}"{style}];')
        for edge in self.edges:
            label = _escape(str(edge.action))
            style = ""
            if isinstance(edge.action, Condition):
                style = ", color=blue, fontcolor=blue"
            lines.append(f'  "{edge.source}" -> "{edge.target}" [label="{label}"{style}];')
        lines.append("}")
        return "\n".join(lines)

    def render(self) -> str:
        return self.dot()

    def __iter__(self) -> Iterator[Edge]:
        return iter(self.edges)

    def __repr__(self) -> str:
        return (
            f"ProgramGraph(determinism={self.determinism.value}, "
            f"nodes={len(self.nodes)}, edges={len(self.edges)})"
        )


def _escape(text: str) -> str:
    return text.replace("\\", "\\\\").replace('"', '\\"').replace("\n", "\\n")


def _apply(action: Action, memory: Memory) -> Optional[Memory]:
    if isinstance(action, Condition):
        return memory if evaluate_bexpr(action.condition, memory) else None
    if isinstance(action, Skip):
        return memory
    return execute(action, memory)


# ===========================================================================
# BUILDER
# ===========================================================================


class _GraphBuilder:
    def __init__(self, determinism: Determinism) -> None:
        self.determinism = determinism
        self.edges: List[Edge] = []
        self._ids = count(1)

    def fresh(self) -> Node:
        return Node(f"q{next(self._ids)}")

    def commands(
        self, qs: Node, commands: Commands, qe: Node, loop: Optional[Tuple[Node, Node]]
    ) -> None:
        items = list(commands)
        current = qs
        for index, command in enumerate(items):
            target = qe if index == len(items) - 1 else self.fresh()
            self.command(current, command, target, loop)
            current = target

    def command(self, qs: Node, command, qe: Node, loop: Optional[Tuple[Node, Node]]) -> None:
        if isinstance(command, (Assignment, ArrayAssignment, Skip)):
            self.edges.append(Edge(qs, command, qe))
        elif isinstance(command, If):
            self.guards(qs, command.guards, qe, loop)
        elif isinstance(command, Loop):
            done = self.guards(qs, command.guards, qs, (qs, qe))
            self.edges.append(Edge(qs, Condition(Not(done)), qe))
        elif isinstance(command, Break):
            self.edges.append(Edge(qs, Skip(), loop[1] if loop else END))
        elif isinstance(command, Continue):
            self.edges.append(Edge(qs, Skip(), loop[0] if loop else qe))
        else:
            raise TypeError(f"not a command: {command!r}")

    def guards(
        self,
        qs: Node,
        guards: Tuple[Guard, ...],
        qe: Node,
        loop: Optional[Tuple[Node, Node]],
    ) -> BExpr:
        """Emit the guard edges; return the disjunction of all conditions."""
        taken: Optional[BExpr] = None
        for guard in guards:
            condition = guard.condition
            if taken is not None and self.determinism is Determinism.DETERMINISTIC:
                condition = Logic(condition, LogicOp.LAND, Not(taken))
            q = self.fresh()
            self.edges.append(Edge(qs, Condition(condition), q))
            self.commands(q, guard.body, qe, loop)
            taken = (
                guard.condition
                if taken is None
                else Logic(taken, LogicOp.LOR, guard.condition)
            )
        return taken
