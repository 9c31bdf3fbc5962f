"""Security: information flows of a program against a classification."""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Tuple

from gcl_inspect.analyses.base import Analysis, Environment, register, targets_json
from gcl_inspect.ast import target_def_name
from gcl_inspect.errors import GclErrorCodes, InvalidInputError, ParseFailure
from gcl_inspect.flow_analysis import Flow
from gcl_inspect.generation import generate_commands
from gcl_inspect.grammar import parse_commands
from gcl_inspect.result import ValidationResult
from gcl_inspect.security_analysis import SecurityReport, analyse, compare
from gcl_inspect.security_lattice import SecurityLattice

logger = logging.getLogger(__name__)

#: Lattices offered by ``generate``.
LATTICE_OPTIONS: Tuple[str, ...] = (
    "public < private",
    "unclassified < classified, classified < secret, secret < top_secret",
    "trusted < dubious",
    "known_facts < conjecture, conjecture < alternative_facts",
    "low < high",
    "clean < Facebook, clean < Google, clean < Microsoft",
)


@dataclass(frozen=True)
class SecurityInput:
    commands: str
    classification: Mapping[str, str] = field(default_factory=dict)
    rules: Tuple[Flow, ...] = ()

    @property
    def lattice(self) -> SecurityLattice:
        return SecurityLattice(self.rules)

    def to_json(self) -> Dict[str, Any]:
        return {
            "commands": self.commands,
            "classification": dict(sorted(self.classification.items())),
            "lattice": {"rules": [rule.to_json() for rule in self.rules]},
        }

    @classmethod
    def from_json(cls, data: Mapping[str, Any]) -> "SecurityInput":
        try:
            return cls(
                commands=str(data["commands"]),
                classification={
                    str(k): str(v) for k, v in data.get("classification", {}).items()
                },
                rules=tuple(
                    Flow.from_json(r) for r in data.get("lattice", {}).get("rules", [])
                ),
            )
        except (KeyError, TypeError, AttributeError) as exc:
            raise InvalidInputError(
                f"malformed security input: {exc}",
                code=GclErrorCodes.INVALID_PAYLOAD,
                cause=exc,
            ) from exc


@register(Analysis.SECURITY)
class SecurityEnvironment(Environment[SecurityInput, SecurityReport]):
    input_type = SecurityInput
    output_type = SecurityReport

    def run(self, input: SecurityInput) -> SecurityReport:
        return analyse(parse_commands(input.commands), input.classification, input.lattice)

    def meta(self, input: SecurityInput) -> Dict[str, Any]:
        try:
            commands = parse_commands(input.commands)
        except ParseFailure as exc:
            logger.warning("no meta for unparsable program: %s", exc)
            return {}
        return {
            "lattice": {"rules": [f.to_json() for f in sorted(input.lattice.allowed)]},
            "targets": targets_json(commands.fv()),
        }

    def validate(self, input: SecurityInput, output: SecurityReport) -> ValidationResult:
        verdict = compare(self.run(input), output)
        logger.info("security verdict: %s", verdict)
        return verdict

    def generate(self, rng: random.Random) -> SecurityInput:
        commands = generate_commands(rng, self.generation)
        lattice = SecurityLattice.parse(rng.choice(LATTICE_OPTIONS))
        classes = lattice.classes()
        classification = {
            name: rng.choice(classes)
            for name in sorted(target_def_name(t) for t in commands.fv())
        }
        return SecurityInput(str(commands), classification, lattice.rules)
