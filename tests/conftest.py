# tests/conftest.py
"""
Shared fixtures for the gcl_inspect test-suite.
"""

import random

import pytest

from gcl_inspect.grammar import parse_commands
from gcl_inspect.memory import Memory
from gcl_inspect.program_graph import Determinism, ProgramGraph


@pytest.fixture
def rng():
    """A seeded generator so every run draws the same programs."""
    return random.Random(20240611)


@pytest.fixture
def graph_of():
    """Build a Program Graph from source text."""

    def build(source, determinism=Determinism.NON_DETERMINISTIC):
        return ProgramGraph.build(parse_commands(source), determinism)

    return build


@pytest.fixture
def empty_memory():
    return Memory()
