"""
gcl_inspect.analyses — per-analysis environments
================================================

Importing this package registers every environment:

* ``Calculator``   – :mod:`.calculator`
* ``Parser``       – :mod:`.parser`
* ``Interpreter``  – :mod:`.interpreter`
* ``Security``     – :mod:`.security`
* ``Graph``        – :mod:`.graph`

>>> from gcl_inspect.analyses import environment
>>> env = environment("Calculator")
"""

from gcl_inspect.analyses.base import (
    Analysis,
    Environment,
    environment,
    register,
    registered,
)
from gcl_inspect.analyses import calculator, graph, interpreter, parser, security  # noqa: F401  (registration)
from gcl_inspect.analyses.envelope import (
    InputEnvelope,
    MetaEnvelope,
    OutputEnvelope,
    fingerprint,
)

__all__ = [
    "Analysis",
    "Environment",
    "InputEnvelope",
    "MetaEnvelope",
    "OutputEnvelope",
    "environment",
    "fingerprint",
    "register",
    "registered",
]
