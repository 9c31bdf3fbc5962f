# tests/test_program_graph.py
"""
Tests for Program Graph construction, the one-step transition relation and
DOT rendering.
"""

import pytest

from gcl_inspect.errors import GclErrorCodes, InvalidInputError
from gcl_inspect.memory import Memory
from gcl_inspect.program_graph import END, START, Condition, Determinism, Node


def edge_strings(graph):
    return [(e.source.name, str(e.action), e.target.name) for e in graph.edges]


class TestBuild:

    def test_sequence(self, graph_of):
        graph = graph_of("x := 1; y := x + 2")
        assert edge_strings(graph) == [
            ("q▷", "x := 1", "q1"),
            ("q1", "y := x + 2", "q◀"),
        ]
        assert graph.nodes == (START, Node("q1"), END)

    def test_if_nondeterministic(self, graph_of):
        graph = graph_of("if x > 0 -> y := 1 [] x < 0 -> y := 2 fi")
        assert edge_strings(graph) == [
            ("q▷", "x > 0", "q1"),
            ("q1", "y := 1", "q◀"),
            ("q▷", "x < 0", "q2"),
            ("q2", "y := 2", "q◀"),
        ]

    def test_if_deterministic_excludes_earlier_guards(self, graph_of):
        graph = graph_of(
            "if x > 0 -> skip [] x < 5 -> skip [] true -> skip fi",
            Determinism.DETERMINISTIC,
        )
        conditions = [str(e.action) for e in graph.edges if isinstance(e.action, Condition)]
        assert conditions == [
            "x > 0",
            "x < 5 && !(x > 0)",
            "true && !(x > 0 || x < 5)",
        ]

    def test_loop(self, graph_of):
        graph = graph_of("do x < 3 -> x := x + 1 od")
        assert edge_strings(graph) == [
            ("q▷", "x < 3", "q1"),
            ("q1", "x := x + 1", "q▷"),
            ("q▷", "!(x < 3)", "q◀"),
        ]

    def test_loop_exit_covers_every_guard(self, graph_of):
        graph = graph_of("do x < 3 -> skip [] y < 3 -> skip od")
        assert str(graph.edges[-1].action) == "!(x < 3 || y < 3)"

    def test_break_and_continue(self, graph_of):
        graph = graph_of("do true -> break [] false -> continue od; skip")
        strings = edge_strings(graph)
        # the loop ends at q1, where the trailing skip starts
        assert ("q2", "skip", "q1") in strings
        assert ("q3", "skip", "q▷") in strings
        assert ("q1", "skip", "q◀") in strings

    def test_determinism_parse(self):
        assert Determinism.parse("Deterministic") is Determinism.DETERMINISTIC
        with pytest.raises(InvalidInputError) as info:
            Determinism.parse("Sometimes")
        assert info.value.code is GclErrorCodes.INVALID_PAYLOAD


class TestStep:

    def test_enabled_and_disabled_conditions(self, graph_of):
        graph = graph_of("if x > 0 -> skip [] x < 0 -> skip fi")
        (transition,) = graph.step(START, Memory({"x": 1}))
        assert transition.target == Node("q1")
        assert transition.memory == Memory({"x": 1})
        assert transition.enabled

    def test_assignment_updates_memory(self, graph_of):
        graph = graph_of("x := 5")
        (transition,) = graph.step(START, Memory())
        assert transition.memory == Memory({"x": 5})
        assert transition.target == END

    def test_failure_is_reported(self, graph_of):
        graph = graph_of("if A[3] > 0 -> skip fi")
        (transition,) = graph.step(START, Memory(arrays={"A": [1]}))
        assert not transition.enabled
        assert transition.memory is None
        assert transition.failure.code is GclErrorCodes.INDEX_OUT_OF_BOUNDS

    def test_end_has_no_transitions(self, graph_of):
        assert graph_of("skip").step(END, Memory()) == []

    def test_deterministic_has_at_most_one_enabled_edge(self, graph_of):
        graph = graph_of(
            "do x < 10 -> x := x + 1 [] x < 20 -> x := x + 2 [] true -> x := x + 3 od",
            Determinism.DETERMINISTIC,
        )
        for value in range(-5, 30):
            enabled = [t for t in graph.step(START, Memory({"x": value})) if t.enabled]
            assert len(enabled) == 1


class TestDot:

    def test_dot_lists_nodes_and_edges(self, graph_of):
        dot = graph_of("x := 1; if x > 0 -> skip fi").dot()
        assert dot.startswith("digraph ProgramGraph {")
        assert dot.rstrip().endswith("}")
        assert '"q▷" -> "q1" [label="x := 1"];' in dot
        assert '"q◀"' in dot

    def test_render_is_dot(self, graph_of):
        graph = graph_of("skip")
        assert graph.render() == graph.dot()
