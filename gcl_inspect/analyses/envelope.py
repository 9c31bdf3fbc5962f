"""
gcl_inspect/analyses/envelope.py
================================

Canonical wrappers for analysis Inputs, Outputs and Meta.

Every envelope carries the analysis tag and the JSON payload.  Input and
Output envelopes add a fingerprint: the MD5 hex digest of the canonical
JSON serialisation (sorted keys, compact separators) of ``[tag, payload]``.
Equal payloads of the same analysis therefore share a fingerprint.

On disk::

    {"analysis": "Interpreter", "json": {...}, "hash": "9e107d9d372bb6826bd81d3542a419d6"}
"""

from __future__ import annotations

import hashlib
import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, Mapping

from gcl_inspect.analyses.base import Analysis, environment
from gcl_inspect.errors import GclErrorCodes, InvalidInputError

logger = logging.getLogger(__name__)


def canonical_json(value: Any) -> str:
    return json.dumps(value, sort_keys=True, separators=(",", ":"))


def fingerprint(analysis: Analysis, payload: Any) -> str:
    digest = hashlib.md5(canonical_json([analysis.value, payload]).encode("utf-8"))
    return digest.hexdigest()


def _fields(data: Mapping[str, Any], kind: str):
    try:
        return Analysis.parse(str(data["analysis"])), data["json"]
    except (KeyError, TypeError) as exc:
        raise InvalidInputError(
            f"malformed {kind} envelope: missing {exc}",
            code=GclErrorCodes.INVALID_PAYLOAD,
            cause=exc,
        ) from exc


@dataclass(frozen=True)
class _HashedEnvelope:
    analysis: Analysis
    payload: Dict[str, Any]
    hash: str

    kind = "hashed"

    @classmethod
    def wrap(cls, analysis: Analysis, value: Any):
        payload = value.to_json()
        return cls(analysis, payload, fingerprint(analysis, payload))

    def to_json(self) -> Dict[str, Any]:
        return {"analysis": self.analysis.value, "json": self.payload, "hash": self.hash}

    @classmethod
    def from_json(cls, data: Mapping[str, Any]):
        analysis, payload = _fields(data, cls.kind)
        expected = fingerprint(analysis, payload)
        declared = data.get("hash")
        if declared is not None and declared != expected:
            logger.debug(
                "%s envelope hash %s does not match payload (%s)", cls.kind, declared, expected
            )
        return cls(analysis, payload, expected)


class InputEnvelope(_HashedEnvelope):
    kind = "input"

    def decode(self):
        return environment(self.analysis).decode_input(self.payload)


class OutputEnvelope(_HashedEnvelope):
    kind = "output"

    def decode(self):
        return environment(self.analysis).decode_output(self.payload)


@dataclass(frozen=True)
class MetaEnvelope:
    analysis: Analysis
    payload: Dict[str, Any]

    def to_json(self) -> Dict[str, Any]:
        return {"analysis": self.analysis.value, "json": self.payload}

    @classmethod
    def from_json(cls, data: Mapping[str, Any]) -> "MetaEnvelope":
        analysis, payload = _fields(data, "meta")
        return cls(analysis, payload)
