"""
grammar.py — GCL concrete syntax (Parsimonious PEG)
===================================================

Parses GCL source text into the Program Model of :mod:`gcl_inspect.ast`
and security-lattice rule lists into ``(from, into)`` pairs.

Usage::

    from gcl_inspect.grammar import parse_commands, parse_bexpr

    cmds = parse_commands("x := 1; if x > 0 -> y := x [] true -> skip fi")
    cond = parse_bexpr("x > 0 && !(y = 1)")

Operator precedence, loosest first:

    ||  |      (left)
    &&  &      (left)
    !          (prefix)
    = != < <= > >=
    +  -       (left)
    *  /       (left)
    ^          (right)
    -          (prefix)

A literal such as ``-5`` is a negative number; ``- 5`` and ``-(5)`` are a
negation of ``5``.  ``//`` starts a comment that runs to the end of the line.

Depends on:
    - parsimonious (PEG parser)
"""

from __future__ import annotations

import logging
from typing import Any, List, Tuple

from parsimonious.exceptions import IncompleteParseError, ParseError, VisitationError
from parsimonious.grammar import Grammar
from parsimonious.nodes import Node, NodeVisitor

from gcl_inspect.ast import (
    AOp,
    Array,
    ArrayAssignment,
    ArrayElement,
    Assignment,
    Binary,
    Bool,
    Break,
    Commands,
    Continue,
    Guard,
    If,
    Logic,
    LogicOp,
    Loop,
    Minus,
    Not,
    Number,
    Rel,
    RelOp,
    Skip,
    Variable,
)
from gcl_inspect.errors import GclErrorCodes, ParseFailure

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════
#  PART 1 — GRAMMARS
# ═══════════════════════════════════════════════════════════════════

GCL_GRAMMAR = Grammar(r'''
    # ─────────────────────────────────────────────────────────────
    # Entry points
    # ─────────────────────────────────────────────────────────────

    commands_top        = _ commands _
    aexpr_top           = _ aexpr _
    bexpr_top           = _ bexpr _

    # ─────────────────────────────────────────────────────────────
    # Commands
    # ─────────────────────────────────────────────────────────────

    commands            = command (_ ";" _ command)*
    command             = if_cmd / do_cmd / skip_cmd / break_cmd
                        / continue_cmd / array_assign / assign
    assign              = identifier _ ":=" _ aexpr
    array_assign        = array_access _ ":=" _ aexpr
    skip_cmd            = ~r"skip\b"
    break_cmd           = ~r"break\b"
    continue_cmd        = ~r"continue\b"
    if_cmd              = ~r"if\b" _ guarded _ ~r"fi\b"
    do_cmd              = ~r"do\b" _ guarded _ ~r"od\b"
    guarded             = guard (_ "[]" _ guard)*
    guard               = bexpr _ "->" _ commands

    # ─────────────────────────────────────────────────────────────
    # Boolean expressions
    # ─────────────────────────────────────────────────────────────

    bexpr               = band (_ or_op _ band)*
    or_op               = "||" / "|"
    band                = bnot (_ and_op _ bnot)*
    and_op              = "&&" / "&"
    bnot                = negation / batom
    negation            = "!" _ bnot
    batom               = true_lit / false_lit / rel / bparen
    rel                 = aexpr _ rel_op _ aexpr
    rel_op              = "!=" / ">=" / "<=" / "=" / ">" / "<"
    bparen              = "(" _ bexpr _ ")"
    true_lit            = ~r"true\b"
    false_lit           = ~r"false\b"

    # ─────────────────────────────────────────────────────────────
    # Arithmetic expressions
    # ─────────────────────────────────────────────────────────────

    aexpr               = mul (_ add_op _ mul)*
    add_op              = "+" / "-"
    mul                 = pow (_ mul_op _ pow)*
    mul_op              = "*" / "/"
    pow                 = unary (_ "^" _ pow)?
    unary               = number / neg / aatom
    neg                 = "-" _ unary
    aatom               = array_access / identifier / aparen
    array_access        = identifier _ "[" _ aexpr _ "]"
    aparen              = "(" _ aexpr _ ")"
    number              = ~r"-?[0-9]+"

    # ─────────────────────────────────────────────────────────────
    # Identifiers & Whitespace
    # ─────────────────────────────────────────────────────────────

    identifier          = ~r"(?!(?:if|fi|do|od|skip|true|false|break|continue)\b)[A-Za-z_][A-Za-z0-9_]*"
    _                   = ~r"(?:\s|//[^\n]*)*"
''')

LATTICE_GRAMMAR = Grammar(r'''
    lattice             = _ rules? _
    rules               = rule (_ "," _ rule)*
    rule                = class_name _ "<" _ class_name
    class_name          = ~r"[A-Za-z_][A-Za-z0-9_]*"
    _                   = ~r"\s*"
''')


# ═══════════════════════════════════════════════════════════════════
#  PART 2 — VISITORS (Parse Tree → Program Model)
# ═══════════════════════════════════════════════════════════════════


def _many(children: Any) -> List[Any]:
    """Children of a ``*``/``?`` node: a list when matched, a Node otherwise."""
    return children if isinstance(children, list) else []


class GclBuilder(NodeVisitor):
    """Transforms a Parsimonious parse tree into Program Model nodes."""

    unwrapped_exceptions = (ParseFailure,)

    def generic_visit(self, node: Node, visited_children: List[Any]) -> Any:
        return visited_children or node

    # ── entry points ────────────────────────────────────────────

    def visit_commands_top(self, node, visited_children):
        _, commands, _ = visited_children
        return commands

    def visit_aexpr_top(self, node, visited_children):
        _, expr, _ = visited_children
        return expr

    def visit_bexpr_top(self, node, visited_children):
        _, expr, _ = visited_children
        return expr

    # ── commands ────────────────────────────────────────────────

    def visit_commands(self, node, visited_children):
        first, rest = visited_children
        return Commands((first,) + tuple(cmd for _, _, _, cmd in _many(rest)))

    def visit_command(self, node, visited_children):
        return visited_children[0]

    def visit_assign(self, node, visited_children):
        name, _, _, _, expr = visited_children
        return Assignment(Variable(name), expr)

    def visit_array_assign(self, node, visited_children):
        target, _, _, _, expr = visited_children
        return ArrayAssignment(target, expr)

    def visit_skip_cmd(self, node, visited_children):
        return Skip()

    def visit_break_cmd(self, node, visited_children):
        return Break()

    def visit_continue_cmd(self, node, visited_children):
        return Continue()

    def visit_if_cmd(self, node, visited_children):
        _, _, guards, _, _ = visited_children
        return If(guards)

    def visit_do_cmd(self, node, visited_children):
        _, _, guards, _, _ = visited_children
        return Loop(guards)

    def visit_guarded(self, node, visited_children):
        first, rest = visited_children
        return (first,) + tuple(g for _, _, _, g in _many(rest))

    def visit_guard(self, node, visited_children):
        condition, _, _, _, body = visited_children
        return Guard(condition, body)

    # ── boolean expressions ─────────────────────────────────────

    def _fold_logic(self, node, visited_children):
        expr, rest = visited_children
        for _, op, _, right in _many(rest):
            expr = Logic(expr, op, right)
        return expr

    visit_bexpr = _fold_logic
    visit_band = _fold_logic

    def visit_or_op(self, node, visited_children):
        return LogicOp(node.text)

    def visit_and_op(self, node, visited_children):
        return LogicOp(node.text)

    def visit_bnot(self, node, visited_children):
        return visited_children[0]

    def visit_negation(self, node, visited_children):
        _, _, operand = visited_children
        return Not(operand)

    def visit_batom(self, node, visited_children):
        return visited_children[0]

    def visit_rel(self, node, visited_children):
        left, _, op, _, right = visited_children
        return Rel(left, op, right)

    def visit_rel_op(self, node, visited_children):
        return RelOp(node.text)

    def visit_bparen(self, node, visited_children):
        _, _, expr, _, _ = visited_children
        return expr

    def visit_true_lit(self, node, visited_children):
        return Bool(True)

    def visit_false_lit(self, node, visited_children):
        return Bool(False)

    # ── arithmetic expressions ──────────────────────────────────

    def _fold_binary(self, node, visited_children):
        expr, rest = visited_children
        for _, op, _, right in _many(rest):
            expr = Binary(expr, op, right)
        return expr

    visit_aexpr = _fold_binary
    visit_mul = _fold_binary

    def visit_add_op(self, node, visited_children):
        return AOp(node.text)

    def visit_mul_op(self, node, visited_children):
        return AOp(node.text)

    def visit_pow(self, node, visited_children):
        base, rest = visited_children
        for _, _, _, exponent in _many(rest):
            return Binary(base, AOp.POW, exponent)
        return base

    def visit_unary(self, node, visited_children):
        return visited_children[0]

    def visit_neg(self, node, visited_children):
        _, _, operand = visited_children
        return Minus(operand)

    def visit_aatom(self, node, visited_children):
        atom = visited_children[0]
        return Variable(atom) if isinstance(atom, str) else atom

    def visit_array_access(self, node, visited_children):
        name, _, _, _, index, _, _ = visited_children
        return ArrayElement(Array(name), index)

    def visit_aparen(self, node, visited_children):
        _, _, expr, _, _ = visited_children
        return expr

    def visit_number(self, node, visited_children):
        return Number(int(node.text))

    def visit_identifier(self, node, visited_children):
        return node.text


class LatticeBuilder(NodeVisitor):
    """Transforms a lattice rule list into ``(from, into)`` pairs."""

    def generic_visit(self, node: Node, visited_children: List[Any]) -> Any:
        return visited_children or node

    def visit_lattice(self, node, visited_children):
        _, rules, _ = visited_children
        for found in _many(rules):
            return found
        return []

    def visit_rules(self, node, visited_children):
        first, rest = visited_children
        return [first] + [rule for _, _, _, rule in _many(rest)]

    def visit_rule(self, node, visited_children):
        lower, _, _, _, upper = visited_children
        return (lower, upper)

    def visit_class_name(self, node, visited_children):
        return node.text


# ═══════════════════════════════════════════════════════════════════
#  PART 3 — PUBLIC API
# ═══════════════════════════════════════════════════════════════════


def _parse(grammar: Grammar, rule: str, builder: NodeVisitor, text: str) -> Any:
    try:
        tree = grammar[rule].parse(text)
    except IncompleteParseError as exc:
        raise ParseFailure(
            f"unexpected input {_excerpt(text, exc.pos)!r}",
            line=exc.line(),
            column=exc.column(),
            code=GclErrorCodes.INCOMPLETE_PARSE,
            cause=exc,
        ) from exc
    except ParseError as exc:
        raise ParseFailure(
            f"could not parse {_excerpt(text, exc.pos)!r} "
            f"(rule {getattr(exc.expr, 'name', '') or rule!r})",
            line=exc.line(),
            column=exc.column(),
            cause=exc,
        ) from exc
    try:
        return builder.visit(tree)
    except VisitationError as exc:
        raise ParseFailure(f"malformed syntax tree: {exc}", cause=exc) from exc


def _excerpt(text: str, pos: int, width: int = 20) -> str:
    return text[pos:pos + width]


def parse_commands(text: str) -> Commands:
    """Parse a GCL program."""
    commands = _parse(GCL_GRAMMAR, "commands_top", GclBuilder(), text)
    logger.debug("parsed %d top-level command(s)", len(commands))
    return commands


def parse_aexpr(text: str):
    """Parse a GCL arithmetic expression."""
    return _parse(GCL_GRAMMAR, "aexpr_top", GclBuilder(), text)


def parse_bexpr(text: str):
    """Parse a GCL boolean expression."""
    return _parse(GCL_GRAMMAR, "bexpr_top", GclBuilder(), text)


def parse_lattice_rules(text: str) -> List[Tuple[str, str]]:
    """Parse ``low < high, public < private`` into ``[(low, high), ...]``."""
    try:
        return _parse(LATTICE_GRAMMAR, "lattice", LatticeBuilder(), text)
    except ParseFailure as exc:
        exc.code = GclErrorCodes.INVALID_LATTICE
        raise
