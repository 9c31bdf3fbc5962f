# tests/test_analyses.py
"""
Tests for the analysis environments, the registry and the JSON envelopes.
"""

import random

import pytest

from gcl_inspect.analyses import (
    Analysis,
    InputEnvelope,
    MetaEnvelope,
    OutputEnvelope,
    environment,
    fingerprint,
    registered,
)
from gcl_inspect.analyses.calculator import CalculatorInput, CalculatorOutput
from gcl_inspect.analyses.graph import GraphInput, GraphOutput
from gcl_inspect.analyses.interpreter import InterpreterInput, InterpreterOutput
from gcl_inspect.analyses.parser import ParserInput, ParserOutput
from gcl_inspect.analyses.security import LATTICE_OPTIONS, SecurityInput
from gcl_inspect.errors import GclErrorCodes, InvalidInputError, UnknownAnalysisError
from gcl_inspect.interpreter import TerminationState
from gcl_inspect.memory import Memory
from gcl_inspect.program_graph import Determinism
from gcl_inspect.result import ValidationStatus
from gcl_inspect.security_lattice import SecurityLattice


class TestRegistry:

    def test_every_analysis_is_registered(self):
        assert registered() == list(Analysis)

    @pytest.mark.parametrize("tag", ["Interpreter", "INTERPRETER", "interpreter"])
    def test_parse_tag(self, tag):
        assert Analysis.parse(tag) is Analysis.INTERPRETER

    def test_unknown_tag(self):
        with pytest.raises(UnknownAnalysisError) as info:
            environment("Typechecker")
        assert info.value.code is GclErrorCodes.UNKNOWN_ANALYSIS

    def test_environment_carries_configs(self):
        env = environment(Analysis.CALCULATOR)
        assert env.analysis is Analysis.CALCULATOR
        assert env.generation.calculator_fuel == 25


class TestRoundTrip:
    """generate -> run -> validate accepts the reference output."""

    @pytest.mark.parametrize("analysis", list(Analysis))
    def test_reference_output_is_accepted(self, analysis):
        env = environment(analysis)
        rng = random.Random(analysis.value)
        for _ in range(15):
            input = env.generate(rng)
            output = env.run(input)
            assert env.validate(input, output).is_correct

    @pytest.mark.parametrize("analysis", list(Analysis))
    def test_payloads_survive_json(self, analysis):
        env = environment(analysis)
        input = env.generate(random.Random(3))
        decoded = env.decode_input(input.to_json())
        assert decoded.to_json() == input.to_json()
        output = env.run(decoded)
        assert env.decode_output(output.to_json()).to_json() == output.to_json()


class TestCalculator:

    env = environment(Analysis.CALCULATOR)

    def test_run(self):
        assert self.env.run(CalculatorInput("2 * (3 + 4)")) == CalculatorOutput(result="14")

    def test_run_failure(self):
        output = self.env.run(CalculatorInput("1 / (2 - 2)"))
        assert output.result == ""
        assert output.error

    def test_any_error_matches_an_error(self):
        verdict = self.env.validate(CalculatorInput("1 / 0"), CalculatorOutput(error="boom"))
        assert verdict.is_correct

    def test_wrong_result(self):
        verdict = self.env.validate(CalculatorInput("1 + 1"), CalculatorOutput(result="3"))
        assert verdict.status is ValidationStatus.MISMATCH
        assert verdict.reason.startswith("Did not produce same as reference.")

    def test_missing_error(self):
        verdict = self.env.validate(CalculatorInput("1 / 0"), CalculatorOutput(result="0"))
        assert not verdict.is_correct

    def test_empty_output_passes_when_reference_fails(self):
        verdict = self.env.validate(CalculatorInput("1 / 0"), CalculatorOutput())
        assert verdict.is_correct

    def test_generated_expressions_evaluate_without_memory(self):
        for seed in range(10):
            output = self.env.run(self.env.generate(random.Random(seed)))
            assert output.result or output.error

    def test_missing_expression(self):
        with pytest.raises(InvalidInputError):
            CalculatorInput.from_json({})


class TestParser:

    env = environment(Analysis.PARSER)

    def test_run_pretty_prints(self):
        output = self.env.run(ParserInput("x:=1;if x>0->skip fi"))
        assert output.pretty == "x := 1 ;\nif x > 0 ->\n   skip\nfi"

    def test_other_layout_is_accepted(self):
        verdict = self.env.validate(ParserInput("x := 1; y := 2"), ParserOutput("x:=1;y:=2"))
        assert verdict.is_correct

    def test_unparsable_output(self):
        verdict = self.env.validate(ParserInput("x := 1"), ParserOutput("x := "))
        assert verdict.reason.startswith("failed to parse pretty output")

    def test_different_program(self):
        verdict = self.env.validate(ParserInput("x := 1 - 2 - 3"), ParserOutput("x := 1 - (2 - 3)"))
        assert verdict.reason.startswith("pretty output parses to a different program")


class TestInterpreter:

    env = environment(Analysis.INTERPRETER)

    def _input(self, commands, memory=None, length=10, determinism=Determinism.NON_DETERMINISTIC):
        return InterpreterInput(commands, determinism, memory or Memory(), length)

    def test_run(self):
        output = self.env.run(self._input("x := 1; y := x + 2"))
        assert output.initial_node == "q▷"
        assert output.final_node == "q◀"
        assert output.termination is TerminationState.TERMINATED
        assert [str(s.memory) for s in output.trace] == ["x = 1", "x = 1, y = 3"]
        assert output.dot.startswith("digraph")

    def test_run_reports_failure_apart_from_false_guard(self):
        memory = Memory(arrays={"A": [1, 2, 3]})
        failing = self.env.run(self._input("if A[10] > 0 -> skip fi", memory))
        blocked = self.env.run(self._input("if false -> skip fi", memory))

        assert failing.termination is blocked.termination is TerminationState.STUCK
        assert failing.error.startswith("GCL-5003")
        assert blocked.error == ""
        assert failing.to_json()["error"] != blocked.to_json()["error"]

    def test_output_error_is_optional(self):
        output = InterpreterOutput.from_json({"trace": [], "termination": "Stuck"})
        assert output.error == ""

    def test_meta_lists_targets(self):
        meta = self.env.meta(self._input("A[i] := x"))
        assert meta == {
            "targets": [
                {"kind": "Variable", "name": "i"},
                {"kind": "Variable", "name": "x"},
                {"kind": "Array", "name": "A"},
            ]
        }

    def test_meta_of_unparsable_program(self):
        assert self.env.meta(self._input("x :=")) == {}

    def test_alternative_branch_validates(self):
        input = self._input("if true -> x := 1 [] true -> x := 2 fi")
        output = InterpreterOutput.from_json({
            "trace": [
                {"action": "true", "node": "q2", "memory": {"variables": {}, "arrays": {}}},
                {"action": "x := 2", "node": "q◀", "memory": {"variables": {"x": 2}}},
            ],
            "termination": "Terminated",
        })
        assert self.env.validate(input, output).is_correct

    def test_input_json(self):
        input = self._input("skip", Memory({"x": 1}), 12, Determinism.DETERMINISTIC)
        assert input.to_json() == {
            "commands": "skip",
            "determinism": "Deterministic",
            "assignment": {"variables": {"x": 1}, "arrays": {}},
            "trace_length": 12,
        }
        assert InterpreterInput.from_json(input.to_json()) == input

    @pytest.mark.parametrize("payload", [
        {"commands": "skip", "determinism": "Deterministic"},
        {"commands": "skip", "determinism": "Sometimes", "trace_length": 3},
        {"commands": "skip", "determinism": "Deterministic", "trace_length": "3"},
        {"commands": "skip", "determinism": "Deterministic", "trace_length": True},
    ])
    def test_malformed_input(self, payload):
        with pytest.raises(InvalidInputError):
            InterpreterInput.from_json(payload)


class TestSecurity:

    env = environment(Analysis.SECURITY)

    def _input(self):
        return SecurityInput(
            "x := y",
            {"x": "public", "y": "private"},
            SecurityLattice.parse("public < private").rules,
        )

    def test_input_json(self):
        data = self._input().to_json()
        assert data["lattice"] == {"rules": [{"from": "public", "into": "private"}]}
        assert SecurityInput.from_json(data) == self._input()

    def test_meta_reports_closed_lattice(self):
        input = SecurityInput(
            "x := y", {"x": "a", "y": "c"}, SecurityLattice.parse("a < b, b < c").rules
        )
        meta = self.env.meta(input)
        assert {"from": "a", "into": "c"} in meta["lattice"]["rules"]
        assert meta["targets"] == [
            {"kind": "Variable", "name": "x"},
            {"kind": "Variable", "name": "y"},
        ]

    def test_generated_inputs_are_fully_classified(self):
        rng = random.Random(11)
        for _ in range(10):
            input = self.env.generate(rng)
            assert str(input.lattice) in LATTICE_OPTIONS
            classes = input.lattice.classes()
            assert all(c in classes for c in input.classification.values())

    def test_wrong_report(self):
        input = self._input()
        report = self.env.run(input)
        assert not report.is_secure
        data = report.to_json()
        data["is_secure"] = True
        verdict = self.env.validate(input, self.env.decode_output(data))
        assert verdict.status is ValidationStatus.MISMATCH


class TestGraph:

    env = environment(Analysis.GRAPH)

    def test_run_renders_program_graph(self):
        output = self.env.run(GraphInput("x := 1; y := 2"))
        assert output.dot.startswith("digraph")
        assert '"q▷" -> "q1" [label="x := 1"]' in output.dot
        assert '"q1" -> "q◀" [label="y := 2"]' in output.dot

    def test_determinism_changes_the_graph(self):
        source = "if true -> x := 1 [] true -> x := 2 fi"
        loose = self.env.run(GraphInput(source, Determinism.NON_DETERMINISTIC))
        strict = self.env.run(GraphInput(source, Determinism.DETERMINISTIC))
        assert loose.dot != strict.dot

    def test_any_output_is_accepted(self):
        verdict = self.env.validate(GraphInput("skip"), GraphOutput("not dot at all"))
        assert verdict.status is ValidationStatus.CORRECT_TERMINATED

    def test_generated_inputs_are_non_deterministic(self):
        rng = random.Random(4)
        for _ in range(5):
            input = self.env.generate(rng)
            assert input.determinism is Determinism.NON_DETERMINISTIC
            assert self.env.meta(input) == {}

    def test_input_json(self):
        input = GraphInput("skip", Determinism.DETERMINISTIC)
        assert input.to_json() == {"commands": "skip", "determinism": "Deterministic"}
        assert GraphInput.from_json(input.to_json()) == input
        with pytest.raises(InvalidInputError):
            GraphInput.from_json({"commands": "skip"})


class TestEnvelopes:

    def test_fingerprint_is_stable(self):
        a = fingerprint(Analysis.PARSER, {"commands": "skip", "x": [1, 2]})
        b = fingerprint(Analysis.PARSER, {"x": [1, 2], "commands": "skip"})
        assert a == b
        assert len(a) == 32

    def test_fingerprint_depends_on_analysis(self):
        payload = {"commands": "skip"}
        assert fingerprint(Analysis.PARSER, payload) != fingerprint(Analysis.SECURITY, payload)

    def test_input_envelope_round_trip(self):
        envelope = InputEnvelope.wrap(Analysis.PARSER, ParserInput("skip"))
        data = envelope.to_json()
        assert data["analysis"] == "Parser"
        assert data["json"] == {"commands": "skip"}
        loaded = InputEnvelope.from_json(data)
        assert loaded == envelope
        assert loaded.decode() == ParserInput("skip")

    def test_stale_hash_is_recomputed(self):
        loaded = InputEnvelope.from_json(
            {"analysis": "Parser", "json": {"commands": "skip"}, "hash": "0" * 32}
        )
        assert loaded.hash == fingerprint(Analysis.PARSER, {"commands": "skip"})

    def test_output_envelope_decodes(self):
        envelope = OutputEnvelope.wrap(Analysis.CALCULATOR, CalculatorOutput(result="1"))
        assert OutputEnvelope.from_json(envelope.to_json()).decode() == CalculatorOutput("1")

    def test_meta_envelope(self):
        envelope = MetaEnvelope(Analysis.CALCULATOR, {})
        assert envelope.to_json() == {"analysis": "Calculator", "json": {}}
        assert MetaEnvelope.from_json(envelope.to_json()) == envelope

    def test_malformed_envelope(self):
        with pytest.raises(InvalidInputError):
            InputEnvelope.from_json({"analysis": "Parser"})
        with pytest.raises(UnknownAnalysisError):
            InputEnvelope.from_json({"analysis": "Nope", "json": {}})
