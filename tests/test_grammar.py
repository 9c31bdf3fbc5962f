# tests/test_grammar.py
"""
Tests for the GCL PEG grammar, the parse-tree visitor and the renderer.
"""

import pytest
from parsimonious.exceptions import IncompleteParseError, ParseError

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
    render,
)
from gcl_inspect.errors import GclErrorCodes, ParseFailure
from gcl_inspect.grammar import (
    GCL_GRAMMAR,
    parse_aexpr,
    parse_bexpr,
    parse_commands,
    parse_lattice_rules,
)

x, y, z = Variable("x"), Variable("y"), Variable("z")


class TestGrammarRules:

    def test_identifier_simple(self):
        for name in ("x", "foo_bar", "_tmp", "A", "done", "iffy", "skipper"):
            assert GCL_GRAMMAR["identifier"].parse(name).text == name

    def test_identifier_rejects_keywords(self):
        for kw in ("if", "fi", "do", "od", "skip", "true", "false", "break", "continue"):
            with pytest.raises((ParseError, IncompleteParseError)):
                GCL_GRAMMAR["identifier"].parse(kw)

    def test_number_literals(self):
        for lit in ("0", "42", "-7"):
            assert GCL_GRAMMAR["number"].parse(lit).text == lit


class TestParseArithmetic:

    def test_number_and_variable(self):
        assert parse_aexpr("42") == Number(42)
        assert parse_aexpr("x") == x

    def test_negative_literal(self):
        assert parse_aexpr("-5") == Number(-5)

    def test_negation_of_parenthesised_literal(self):
        assert parse_aexpr("-(5)") == Minus(Number(5))
        assert parse_aexpr("- 5") == Minus(Number(5))

    def test_negation_of_variable(self):
        assert parse_aexpr("-x") == Minus(x)

    def test_array_element(self):
        assert parse_aexpr("A[x + 1]") == ArrayElement(
            Array("A"), Binary(x, AOp.PLUS, Number(1))
        )

    def test_multiplication_binds_tighter(self):
        assert parse_aexpr("x + y * z") == Binary(x, AOp.PLUS, Binary(y, AOp.TIMES, z))

    def test_subtraction_is_left_associative(self):
        assert parse_aexpr("x - y - z") == Binary(Binary(x, AOp.MINUS, y), AOp.MINUS, z)

    def test_power_is_right_associative(self):
        assert parse_aexpr("x ^ y ^ z") == Binary(x, AOp.POW, Binary(y, AOp.POW, z))

    def test_binary_minus_before_literal(self):
        assert parse_aexpr("x -1") == Binary(x, AOp.MINUS, Number(1))
        assert parse_aexpr("x - -1") == Binary(x, AOp.MINUS, Number(-1))

    def test_parentheses(self):
        assert parse_aexpr("(x + y) * z") == Binary(Binary(x, AOp.PLUS, y), AOp.TIMES, z)


class TestParseBoolean:

    def test_literals(self):
        assert parse_bexpr("true") == Bool(True)
        assert parse_bexpr("false") == Bool(False)

    def test_relations(self):
        for text, op in (("=", RelOp.EQ), ("!=", RelOp.NE), (">", RelOp.GT),
                         (">=", RelOp.GE), ("<", RelOp.LT), ("<=", RelOp.LE)):
            assert parse_bexpr(f"x {text} 1") == Rel(x, op, Number(1))

    def test_and_binds_tighter_than_or(self):
        assert parse_bexpr("true | false & true") == Logic(
            Bool(True), LogicOp.OR, Logic(Bool(False), LogicOp.AND, Bool(True))
        )

    def test_short_circuit_operators(self):
        assert parse_bexpr("true && false || true") == Logic(
            Logic(Bool(True), LogicOp.LAND, Bool(False)), LogicOp.LOR, Bool(True)
        )

    def test_negation(self):
        assert parse_bexpr("!(x > 1)") == Not(Rel(x, RelOp.GT, Number(1)))
        assert parse_bexpr("!true") == Not(Bool(True))

    def test_parenthesised_relation_operand(self):
        assert parse_bexpr("((x + 1) > 2)") == Rel(
            Binary(x, AOp.PLUS, Number(1)), RelOp.GT, Number(2)
        )


class TestParseCommands:

    def test_sequence(self):
        assert parse_commands("x := 1; y := x + 2") == Commands((
            Assignment(x, Number(1)),
            Assignment(y, Binary(x, AOp.PLUS, Number(2))),
        ))

    def test_array_assignment(self):
        assert parse_commands("A[0] := 1") == Commands((
            ArrayAssignment(ArrayElement(Array("A"), Number(0)), Number(1)),
        ))

    def test_keywords(self):
        cmds = parse_commands("skip; do true -> break [] false -> continue od")
        assert cmds.commands[0] == Skip()
        loop = cmds.commands[1]
        assert isinstance(loop, Loop)
        assert loop.guards == (
            Guard(Bool(True), Commands((Break(),))),
            Guard(Bool(False), Commands((Continue(),))),
        )

    def test_if_with_guards(self):
        cmds = parse_commands("if x > 0 -> y := 1 [] true -> skip fi")
        (cmd,) = cmds.commands
        assert isinstance(cmd, If)
        assert len(cmd.guards) == 2
        assert cmd.guards[0].condition == Rel(x, RelOp.GT, Number(0))

    def test_guard_body_is_a_sequence(self):
        (cmd,) = parse_commands("if true -> x := 1; y := 2 fi").commands
        assert len(cmd.guards[0].body) == 2

    def test_comments_and_whitespace(self):
        source = """
            // initialise
            x := 1 ;   // first
            y := 2
        """
        assert len(parse_commands(source)) == 2


class TestParseErrors:

    def test_empty_program_fails(self):
        with pytest.raises(ParseFailure):
            parse_commands("")

    def test_trailing_input(self):
        with pytest.raises(ParseFailure) as info:
            parse_commands("x := 1 y := 2")
        assert info.value.code in (GclErrorCodes.INCOMPLETE_PARSE, GclErrorCodes.SYNTAX_ERROR)

    def test_location_is_reported(self):
        with pytest.raises(ParseFailure) as info:
            parse_commands("if true ->\n   x := ;\nfi")
        assert info.value.line == 2
        assert info.value.column == 9
        assert str(info.value).startswith("GCL-")

    def test_keyword_is_not_a_target(self):
        with pytest.raises(ParseFailure):
            parse_commands("if := 1")

    def test_if_without_fi(self):
        with pytest.raises(ParseFailure):
            parse_commands("if true -> skip")


class TestRender:

    @pytest.mark.parametrize("source", [
        "x := 1 ;\ny := x + 2",
        "A[x] := -(5)",
        "x := (a + b) * c",
        "x := a - (b - c)",
        "x := (a ^ b) ^ c",
        "x := -a ^ 2",
        "x := -(a ^ 2)",
        "x := a - -5",
        "if (a > 0 | b > 0) & c > 0 ->\n   skip\n[] !(x > 1) ->\n   x := 1\nfi",
        "do x < 10 ->\n   x := x + 1 ;\n   if x = 5 ->\n      break\n   fi\nod",
    ])
    def test_render_reparses_to_same_program(self, source):
        cmds = parse_commands(source)
        assert parse_commands(render(cmds)) == cmds

    def test_render_is_canonical(self):
        assert render(parse_commands("x:=1;y:=x+2")) == "x := 1 ;\ny := x + 2"

    def test_minimal_parentheses(self):
        assert str(parse_aexpr("(x * y) + z")) == "x * y + z"
        assert str(parse_aexpr("x * (y + z)")) == "x * (y + z)"
        assert str(parse_bexpr("(true && false) || true")) == "true && false || true"

    def test_double_negation(self):
        expr = Not(Not(Bool(True)))
        assert parse_bexpr(str(expr)) == expr
        expr = Minus(Minus(Number(5)))
        assert parse_aexpr(str(expr)) == expr


class TestLatticeRules:

    def test_rules(self):
        assert parse_lattice_rules("public < private, low < high") == [
            ("public", "private"),
            ("low", "high"),
        ]

    def test_empty(self):
        assert parse_lattice_rules("") == []
        assert parse_lattice_rules("   ") == []

    def test_malformed(self):
        with pytest.raises(ParseFailure) as info:
            parse_lattice_rules("public <")
        assert info.value.code is GclErrorCodes.INVALID_LATTICE
