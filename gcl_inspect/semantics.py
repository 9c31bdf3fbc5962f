"""
gcl_inspect/semantics.py
========================

Evaluation of arithmetic and boolean expressions against a :class:`Memory`,
and the effect of the atomic actions (assignment, skip, condition) that label
Program Graph edges.

Integers are 32-bit signed.  Every undefined evaluation raises
:class:`~gcl_inspect.errors.EvaluationFailure`:

* a result outside ``[-2**31, 2**31 - 1]`` (overflow)
* division by zero
* a negative exponent
* an array index out of bounds
* a variable or array that is not in memory

Division truncates toward zero.  ``&`` and ``|`` evaluate both operands;
``&&`` and ``||`` short-circuit.
"""

from __future__ import annotations

import logging
from typing import Callable, Dict

from gcl_inspect.ast import (
    AOp,
    ArrayAssignment,
    ArrayElement,
    Assignment,
    Binary,
    Bool,
    Logic,
    LogicOp,
    Minus,
    Not,
    Number,
    Rel,
    RelOp,
    Variable,
)
from gcl_inspect.errors import EvaluationFailure, GclErrorCodes
from gcl_inspect.memory import Memory

logger = logging.getLogger(__name__)

INT_MIN = -(2 ** 31)
INT_MAX = 2 ** 31 - 1


def checked(value: int) -> int:
    """Return *value* or raise if it does not fit in a 32-bit signed int."""
    if not INT_MIN <= value <= INT_MAX:
        raise EvaluationFailure(
            f"{value} does not fit in a 32-bit integer",
            code=GclErrorCodes.ARITHMETIC_OVERFLOW,
        )
    return value


def _divide(left: int, right: int) -> int:
    if right == 0:
        raise EvaluationFailure(
            f"division of {left} by zero", code=GclErrorCodes.DIVISION_BY_ZERO
        )
    quotient = abs(left) // abs(right)
    return quotient if (left < 0) == (right < 0) else -quotient


def _power(base: int, exponent: int) -> int:
    if exponent < 0:
        raise EvaluationFailure(
            f"negative exponent {exponent}", code=GclErrorCodes.NEGATIVE_EXPONENT
        )
    if abs(base) > 1 and exponent > 32:
        raise EvaluationFailure(
            f"{base} ^ {exponent} does not fit in a 32-bit integer",
            code=GclErrorCodes.ARITHMETIC_OVERFLOW,
        )
    return checked(base ** exponent)


_ARITHMETIC: Dict[AOp, Callable[[int, int], int]] = {
    AOp.PLUS: lambda a, b: a + b,
    AOp.MINUS: lambda a, b: a - b,
    AOp.TIMES: lambda a, b: a * b,
    AOp.DIVIDE: _divide,
    AOp.POW: _power,
}

_RELATIONS: Dict[RelOp, Callable[[int, int], bool]] = {
    RelOp.EQ: lambda a, b: a == b,
    RelOp.NE: lambda a, b: a != b,
    RelOp.GT: lambda a, b: a > b,
    RelOp.GE: lambda a, b: a >= b,
    RelOp.LT: lambda a, b: a < b,
    RelOp.LE: lambda a, b: a <= b,
}


def evaluate_aexpr(expr, memory: Memory) -> int:
    if isinstance(expr, Number):
        return checked(expr.value)
    if isinstance(expr, Variable):
        return memory.variable(expr.name)
    if isinstance(expr, ArrayElement):
        index = evaluate_aexpr(expr.index, memory)
        return memory.element(expr.array.name, index)
    if isinstance(expr, Binary):
        left = evaluate_aexpr(expr.left, memory)
        right = evaluate_aexpr(expr.right, memory)
        return checked(_ARITHMETIC[expr.op](left, right))
    if isinstance(expr, Minus):
        return checked(-evaluate_aexpr(expr.operand, memory))
    raise TypeError(f"not an arithmetic expression: {expr!r}")


def evaluate_bexpr(expr, memory: Memory) -> bool:
    if isinstance(expr, Bool):
        return expr.value
    if isinstance(expr, Rel):
        left = evaluate_aexpr(expr.left, memory)
        right = evaluate_aexpr(expr.right, memory)
        return _RELATIONS[expr.op](left, right)
    if isinstance(expr, Logic):
        left = evaluate_bexpr(expr.left, memory)
        if expr.op is LogicOp.LAND and not left:
            return False
        if expr.op is LogicOp.LOR and left:
            return True
        right = evaluate_bexpr(expr.right, memory)
        if expr.op in (LogicOp.AND, LogicOp.LAND):
            return left and right
        return left or right
    if isinstance(expr, Not):
        return not evaluate_bexpr(expr.operand, memory)
    raise TypeError(f"not a boolean expression: {expr!r}")


def execute(command, memory: Memory) -> Memory:
    """Apply an assignment to *memory*, returning the updated copy."""
    if isinstance(command, Assignment):
        return memory.with_variable(
            command.target.name, evaluate_aexpr(command.expr, memory)
        )
    if isinstance(command, ArrayAssignment):
        index = evaluate_aexpr(command.target.index, memory)
        value = evaluate_aexpr(command.expr, memory)
        return memory.with_element(command.target.array.name, index, value)
    raise TypeError(f"not an assignment: {command!r}")
