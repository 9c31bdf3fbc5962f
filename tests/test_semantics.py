# tests/test_semantics.py
"""
Tests for memory snapshots and expression evaluation.
"""

import pytest

from gcl_inspect.errors import EvaluationFailure, GclErrorCodes, InvalidInputError
from gcl_inspect.grammar import parse_aexpr, parse_bexpr, parse_commands
from gcl_inspect.memory import Memory
from gcl_inspect.semantics import INT_MAX, INT_MIN, evaluate_aexpr, evaluate_bexpr, execute


def ev(text, memory=None):
    return evaluate_aexpr(parse_aexpr(text), memory or Memory())


def bev(text, memory=None):
    return evaluate_bexpr(parse_bexpr(text), memory or Memory())


class TestMemory:

    def test_updates_return_new_snapshots(self):
        m0 = Memory()
        m1 = m0.with_variable("x", 1)
        assert m0.variables == {}
        assert m1.variable("x") == 1

    def test_equality_and_hash(self):
        a = Memory({"x": 1}, {"A": [1, 2]})
        b = Memory({"x": 1}, {"A": (1, 2)})
        assert a == b
        assert hash(a) == hash(b)
        assert a != Memory({"x": 2}, {"A": [1, 2]})

    def test_element_update(self):
        m = Memory(arrays={"A": [0, 0, 0]}).with_element("A", 1, 5)
        assert m.array("A") == (0, 5, 0)

    def test_json_round_trip(self):
        m = Memory({"b": 2, "a": 1}, {"A": [3]})
        assert m.to_json() == {"variables": {"a": 1, "b": 2}, "arrays": {"A": [3]}}
        assert Memory.from_json(m.to_json()) == m

    def test_from_json_rejects_non_integers(self):
        with pytest.raises(InvalidInputError):
            Memory.from_json({"variables": {"x": "1"}})
        with pytest.raises(InvalidInputError):
            Memory.from_json({"variables": {"x": True}})

    def test_str(self):
        assert str(Memory()) == "(empty)"
        assert str(Memory({"x": 1}, {"A": [1, 2]})) == "x = 1, A = [1, 2]"


class TestArithmetic:

    def test_basic_operators(self):
        assert ev("1 + 2 * 3") == 7
        assert ev("(1 + 2) * 3") == 9
        assert ev("2 ^ 10") == 1024
        assert ev("-(4)") == -4
        assert ev("0 ^ 0") == 1

    def test_division_truncates_toward_zero(self):
        assert ev("7 / 2") == 3
        assert ev("-7 / 2") == -3
        assert ev("7 / -2") == -3
        assert ev("-7 / -2") == 3

    def test_variables_and_arrays(self):
        memory = Memory({"x": 3}, {"A": [10, 20, 30]})
        assert ev("x * 2", memory) == 6
        assert ev("A[x - 1]", memory) == 30

    @pytest.mark.parametrize("text,code", [
        ("1 / 0", GclErrorCodes.DIVISION_BY_ZERO),
        ("2 ^ -1", GclErrorCodes.NEGATIVE_EXPONENT),
        ("2 ^ 31", GclErrorCodes.ARITHMETIC_OVERFLOW),
        ("2 ^ 100", GclErrorCodes.ARITHMETIC_OVERFLOW),
        ("2147483647 + 1", GclErrorCodes.ARITHMETIC_OVERFLOW),
        ("x", GclErrorCodes.UNBOUND_VARIABLE),
        ("A[0]", GclErrorCodes.UNBOUND_ARRAY),
    ])
    def test_failures(self, text, code):
        with pytest.raises(EvaluationFailure) as info:
            ev(text)
        assert info.value.code is code

    def test_index_out_of_bounds(self):
        memory = Memory(arrays={"A": [1, 2]})
        for index in ("2", "-1"):
            with pytest.raises(EvaluationFailure) as info:
                ev(f"A[{index}]", memory)
            assert info.value.code is GclErrorCodes.INDEX_OUT_OF_BOUNDS

    def test_limits(self):
        assert ev(str(INT_MAX)) == INT_MAX
        assert ev(str(INT_MIN)) == INT_MIN
        with pytest.raises(EvaluationFailure):
            ev(f"-({INT_MIN})")

    def test_powers_of_one(self):
        assert ev("1 ^ 1000000000") == 1
        assert ev("-1 ^ 1000000001") == -1


class TestBoolean:

    def test_relations(self):
        memory = Memory({"x": 2})
        assert bev("x = 2", memory)
        assert bev("x != 3", memory)
        assert bev("x >= 2 && x <= 2", memory)
        assert not bev("x > 2 || x < 2", memory)
        assert bev("!(x < 0)", memory)

    def test_short_circuit_skips_failures(self):
        assert bev("false && 1 / 0 = 1") is False
        assert bev("true || 1 / 0 = 1") is True

    def test_eager_operators_evaluate_both_sides(self):
        with pytest.raises(EvaluationFailure):
            bev("false & 1 / 0 = 1")
        with pytest.raises(EvaluationFailure):
            bev("true | 1 / 0 = 1")


class TestExecute:

    def test_assignment(self):
        (cmd,) = parse_commands("x := x + 1").commands
        assert execute(cmd, Memory({"x": 1})) == Memory({"x": 2})

    def test_array_assignment(self):
        (cmd,) = parse_commands("A[1] := 7").commands
        assert execute(cmd, Memory(arrays={"A": [0, 0]})).array("A") == (0, 7)

    def test_array_assignment_out_of_bounds(self):
        (cmd,) = parse_commands("A[5] := 7").commands
        with pytest.raises(EvaluationFailure):
            execute(cmd, Memory(arrays={"A": [0, 0]}))
