"""gcl_inspect/memory.py – program memory snapshots.

A :class:`Memory` maps variable names to integers and array names to
integer sequences.  It is immutable: every update returns a new value, so
executions can share snapshots freely.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Iterable, Mapping, Sequence, Tuple

from gcl_inspect.errors import EvaluationFailure, GclErrorCodes, InvalidInputError


def _freeze(mapping: Mapping) -> Mapping:
    return MappingProxyType(dict(mapping))


@dataclass(frozen=True)
class Memory:
    variables: Mapping[str, int] = field(default_factory=dict)
    arrays: Mapping[str, Tuple[int, ...]] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "variables", _freeze(self.variables))
        object.__setattr__(
            self, "arrays", _freeze({k: tuple(v) for k, v in self.arrays.items()})
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Memory):
            return NotImplemented
        return dict(self.variables) == dict(other.variables) and dict(
            self.arrays
        ) == dict(other.arrays)

    def __hash__(self) -> int:
        return hash(
            (frozenset(self.variables.items()), frozenset(self.arrays.items()))
        )

    @classmethod
    def empty(cls) -> "Memory":
        return cls()

    # ── reads ───────────────────────────────────────────────────

    def variable(self, name: str) -> int:
        try:
            return self.variables[name]
        except KeyError:
            raise EvaluationFailure(
                f"variable {name!r} is not in memory",
                code=GclErrorCodes.UNBOUND_VARIABLE,
            ) from None

    def array(self, name: str) -> Tuple[int, ...]:
        try:
            return self.arrays[name]
        except KeyError:
            raise EvaluationFailure(
                f"array {name!r} is not in memory",
                code=GclErrorCodes.UNBOUND_ARRAY,
            ) from None

    def element(self, name: str, index: int) -> int:
        values = self.array(name)
        self._check_index(name, values, index)
        return values[index]

    # ── updates ─────────────────────────────────────────────────

    def with_variable(self, name: str, value: int) -> "Memory":
        variables = dict(self.variables)
        variables[name] = value
        return Memory(variables, self.arrays)

    def with_element(self, name: str, index: int, value: int) -> "Memory":
        values = list(self.array(name))
        self._check_index(name, values, index)
        values[index] = value
        arrays = dict(self.arrays)
        arrays[name] = tuple(values)
        return Memory(self.variables, arrays)

    def with_array(self, name: str, values: Iterable[int]) -> "Memory":
        arrays = dict(self.arrays)
        arrays[name] = tuple(values)
        return Memory(self.variables, arrays)

    @staticmethod
    def _check_index(name: str, values: Sequence[int], index: int) -> None:
        if not 0 <= index < len(values):
            raise EvaluationFailure(
                f"index {index} is out of bounds for {name} of length {len(values)}",
                code=GclErrorCodes.INDEX_OUT_OF_BOUNDS,
            )

    # ── serialisation ───────────────────────────────────────────

    def to_json(self) -> Dict[str, Any]:
        return {
            "variables": dict(sorted(self.variables.items())),
            "arrays": {k: list(v) for k, v in sorted(self.arrays.items())},
        }

    @classmethod
    def from_json(cls, data: Mapping[str, Any]) -> "Memory":
        try:
            variables = {str(k): _as_int(v) for k, v in data.get("variables", {}).items()}
            arrays = {
                str(k): tuple(_as_int(x) for x in v)
                for k, v in data.get("arrays", {}).items()
            }
        except (AttributeError, TypeError, ValueError) as exc:
            raise InvalidInputError(
                f"malformed memory: {exc}",
                code=GclErrorCodes.INVALID_PAYLOAD,
                cause=exc,
            ) from exc
        return cls(variables, arrays)

    def __str__(self) -> str:
        parts = [f"{k} = {v}" for k, v in sorted(self.variables.items())]
        parts += [
            f"{k} = [{', '.join(map(str, v))}]" for k, v in sorted(self.arrays.items())
        ]
        return ", ".join(parts) or "(empty)"


def _as_int(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"expected an integer, got {value!r}")
    return value
