"""gcl_inspect/ast.py – Program Model for the guarded-command language.

GCL programs are built from arithmetic expressions, boolean expressions
and commands::

    a ::= n | x | A[a] | a + a | a - a | a * a | a / a | a ^ a | -a | (a)
    b ::= true | false | a = a | a != a | a > a | a >= a | a < a | a <= a
        | b & b | b | b | b && b | b || b | !b | (b)
    C ::= x := a | A[a] := a | skip | C ; C | if GC fi | do GC od
        | break | continue
    GC ::= b -> C | GC [] GC

Design invariants
-----------------
* Every node is a frozen dataclass; children are stored in tuples.
* Variables and arrays live in disjoint namespaces: ``Variable("a")`` and
  ``Array("a")`` are different targets.
* ``str(node)`` renders concrete syntax that parses back to an equal node
  (see :mod:`gcl_inspect.grammar`), inserting only the parentheses the
  operator precedences require.
* ``fv()`` returns the free targets of a node as a frozenset of
  :class:`Variable` / :class:`Array`.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import FrozenSet, Tuple, Union

# ════════════════════════════════════════════════════════════════════════
# §1  Operators
# ════════════════════════════════════════════════════════════════════════


class AOp(Enum):
    """Arithmetic operators."""

    PLUS = "+"
    MINUS = "-"
    TIMES = "*"
    DIVIDE = "/"
    POW = "^"

    @property
    def precedence(self) -> int:
        return _AOP_PRECEDENCE[self]

    @property
    def right_assoc(self) -> bool:
        return self is AOp.POW


_AOP_PRECEDENCE = {
    AOp.PLUS: 1,
    AOp.MINUS: 1,
    AOp.TIMES: 2,
    AOp.DIVIDE: 2,
    AOp.POW: 3,
}


class RelOp(Enum):
    """Relational operators comparing two arithmetic expressions."""

    EQ = "="
    NE = "!="
    GT = ">"
    GE = ">="
    LT = "<"
    LE = "<="


class LogicOp(Enum):
    """Boolean connectives.

    ``&`` and ``|`` evaluate both operands; ``&&`` and ``||`` short-circuit.
    """

    AND = "&"
    LAND = "&&"
    OR = "|"
    LOR = "||"

    @property
    def precedence(self) -> int:
        return 2 if self in (LogicOp.AND, LogicOp.LAND) else 1


# Precedence of atoms and prefix operators.
_ATOM = 5
_PREFIX = 4


def _wrap(node: object, needed: int) -> str:
    text = str(node)
    if _precedence(node) < needed:
        return f"({text})"
    return text


def _precedence(node: object) -> int:
    if isinstance(node, Binary):
        return node.op.precedence
    if isinstance(node, Logic):
        return node.op.precedence
    if isinstance(node, (Minus, Not)):
        return _PREFIX
    if isinstance(node, Rel):
        return 3
    return _ATOM


# ════════════════════════════════════════════════════════════════════════
# §2  Targets
# ════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class Variable:
    """A scalar variable; also usable as an arithmetic expression."""

    name: str

    def fv(self) -> FrozenSet["TargetDef"]:
        return frozenset((self,))

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class Array:
    """An array name (the declaration-level target of ``A[a]``)."""

    name: str

    def fv(self) -> FrozenSet["TargetDef"]:
        return frozenset((self,))

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class ArrayElement:
    """``A[index]`` – read as an expression or written by an assignment."""

    array: Array
    index: "AExpr"

    def fv(self) -> FrozenSet["TargetDef"]:
        return frozenset((self.array,)) | self.index.fv()

    def __str__(self) -> str:
        return f"{self.array}[{self.index}]"


#: Name-level target as reported by ``fv()`` and used by flow analysis.
TargetDef = Union[Variable, Array]

#: Left-hand side of an assignment.
Target = Union[Variable, ArrayElement]


# ════════════════════════════════════════════════════════════════════════
# §3  Arithmetic expressions
# ════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class Number:
    value: int

    def fv(self) -> FrozenSet[TargetDef]:
        return frozenset()

    def __str__(self) -> str:
        return str(self.value)


@dataclass(frozen=True)
class Binary:
    left: "AExpr"
    op: AOp
    right: "AExpr"

    def fv(self) -> FrozenSet[TargetDef]:
        return self.left.fv() | self.right.fv()

    def __str__(self) -> str:
        p = self.op.precedence
        if self.op.right_assoc:
            left, right = _wrap(self.left, p + 1), _wrap(self.right, p)
        else:
            left, right = _wrap(self.left, p), _wrap(self.right, p + 1)
        return f"{left} {self.op.value} {right}"


@dataclass(frozen=True)
class Minus:
    """Unary negation."""

    operand: "AExpr"

    def fv(self) -> FrozenSet[TargetDef]:
        return self.operand.fv()

    def __str__(self) -> str:
        # A bare number after "-" would read back as a negative literal.
        if isinstance(self.operand, Number):
            return f"-({self.operand})"
        return f"-{_wrap(self.operand, _PREFIX)}"


AExpr = Union[Number, Variable, ArrayElement, Binary, Minus]


# ════════════════════════════════════════════════════════════════════════
# §4  Boolean expressions
# ════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class Bool:
    value: bool

    def fv(self) -> FrozenSet[TargetDef]:
        return frozenset()

    def __str__(self) -> str:
        return "true" if self.value else "false"


@dataclass(frozen=True)
class Rel:
    left: AExpr
    op: RelOp
    right: AExpr

    def fv(self) -> FrozenSet[TargetDef]:
        return self.left.fv() | self.right.fv()

    def __str__(self) -> str:
        return f"{self.left} {self.op.value} {self.right}"


@dataclass(frozen=True)
class Logic:
    left: "BExpr"
    op: LogicOp
    right: "BExpr"

    def fv(self) -> FrozenSet[TargetDef]:
        return self.left.fv() | self.right.fv()

    def __str__(self) -> str:
        p = self.op.precedence
        return f"{_wrap(self.left, p)} {self.op.value} {_wrap(self.right, p + 1)}"


@dataclass(frozen=True)
class Not:
    operand: "BExpr"

    def fv(self) -> FrozenSet[TargetDef]:
        return self.operand.fv()

    def __str__(self) -> str:
        return f"!{_wrap(self.operand, _ATOM)}"


BExpr = Union[Bool, Rel, Logic, Not]


# ════════════════════════════════════════════════════════════════════════
# §5  Commands
# ════════════════════════════════════════════════════════════════════════


def _indent(text: str, prefix: str = "   ") -> str:
    return "\n".join(prefix + line for line in text.splitlines())


@dataclass(frozen=True)
class Assignment:
    target: Variable
    expr: AExpr

    def fv(self) -> FrozenSet[TargetDef]:
        return self.target.fv() | self.expr.fv()

    def __str__(self) -> str:
        return f"{self.target} := {self.expr}"


@dataclass(frozen=True)
class ArrayAssignment:
    target: ArrayElement
    expr: AExpr

    def fv(self) -> FrozenSet[TargetDef]:
        return self.target.fv() | self.expr.fv()

    def __str__(self) -> str:
        return f"{self.target} := {self.expr}"


@dataclass(frozen=True)
class Skip:
    def fv(self) -> FrozenSet[TargetDef]:
        return frozenset()

    def __str__(self) -> str:
        return "skip"


@dataclass(frozen=True)
class Break:
    def fv(self) -> FrozenSet[TargetDef]:
        return frozenset()

    def __str__(self) -> str:
        return "break"


@dataclass(frozen=True)
class Continue:
    def fv(self) -> FrozenSet[TargetDef]:
        return frozenset()

    def __str__(self) -> str:
        return "continue"


@dataclass(frozen=True)
class Guard:
    """``condition -> body``."""

    condition: BExpr
    body: "Commands"

    def fv(self) -> FrozenSet[TargetDef]:
        return self.condition.fv() | self.body.fv()

    def __str__(self) -> str:
        return f"{self.condition} ->\n{_indent(str(self.body))}"


def _guards_str(guards: Tuple[Guard, ...]) -> str:
    return "\n[] ".join(str(g) for g in guards)


@dataclass(frozen=True)
class If:
    guards: Tuple[Guard, ...]

    def __post_init__(self) -> None:
        if not self.guards:
            raise ValueError("if requires at least one guard")

    def fv(self) -> FrozenSet[TargetDef]:
        return frozenset().union(*(g.fv() for g in self.guards))

    def __str__(self) -> str:
        return f"if {_guards_str(self.guards)}\nfi"


@dataclass(frozen=True)
class Loop:
    """``do GC od``."""

    guards: Tuple[Guard, ...]

    def __post_init__(self) -> None:
        if not self.guards:
            raise ValueError("do requires at least one guard")

    def fv(self) -> FrozenSet[TargetDef]:
        return frozenset().union(*(g.fv() for g in self.guards))

    def __str__(self) -> str:
        return f"do {_guards_str(self.guards)}\nod"


Command = Union[Assignment, ArrayAssignment, Skip, If, Loop, Break, Continue]


@dataclass(frozen=True)
class Commands:
    """A non-empty ``;``-separated sequence of commands."""

    commands: Tuple[Command, ...]

    def fv(self) -> FrozenSet[TargetDef]:
        return frozenset().union(*(c.fv() for c in self.commands))

    def __iter__(self):
        return iter(self.commands)

    def __len__(self) -> int:
        return len(self.commands)

    def __str__(self) -> str:
        return " ;\n".join(str(c) for c in self.commands)


def render(node: object) -> str:
    """Render any Program Model node as GCL source text."""
    return str(node)


def target_def_name(target: TargetDef) -> str:
    return target.name
