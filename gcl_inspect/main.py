#!/usr/bin/env python3
"""gcl_inspect/main.py — CLI entry-point for the GCL analysis environments.

Usage examples
--------------
    # List the registered analyses
    python -m gcl_inspect analyses

    # Generate a random Interpreter input envelope
    python -m gcl_inspect generate Interpreter --seed 42 -o input.json

    # Compute the reference output for an input envelope
    python -m gcl_inspect run input.json -o output.json

    # Auxiliary facts about an input (free targets, closed lattice, ...)
    python -m gcl_inspect meta input.json

    # Check a candidate output against the reference
    python -m gcl_inspect validate input.json candidate.json

Exit codes
----------
    0   Success (for ``validate``: the candidate is correct).
    1   The input is malformed (parse failure, missing classification, ...).
    2   Infrastructure failure (missing file, invalid JSON, etc.).
    3   ``validate`` found a mismatch.

The module doubles as ``python -m gcl_inspect`` via the companion
``gcl_inspect/__main__.py`` which simply calls :func:`main`.
"""

from __future__ import annotations

import argparse
import json
import logging
import random
import sys
import textwrap
from pathlib import Path
from typing import Any, Optional, Sequence, TextIO

from gcl_inspect import __version__
from gcl_inspect.analyses import (
    Analysis,
    InputEnvelope,
    MetaEnvelope,
    OutputEnvelope,
    environment,
    registered,
)
from gcl_inspect.config import DEFAULT_GENERATION
from gcl_inspect.errors import GclError

_log = logging.getLogger("gcl_inspect")

# Exit codes ----------------------------------------------------------------

EXIT_OK: int = 0
EXIT_ERROR: int = 1
EXIT_INFRA: int = 2
EXIT_MISMATCH: int = 3


# ===========================================================================
# Utility helpers
# ===========================================================================

def _configure_logging(verbosity: int) -> None:
    """Set up the ``gcl_inspect`` logger.

    Parameters
    ----------
    verbosity:
        0 → WARNING, 1 → INFO, 2+ → DEBUG.
    """
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        logging.Formatter(
            fmt="%(asctime)s [%(levelname)-5.5s] %(name)s: %(message)s",
            datefmt="%H:%M:%S",
        )
    )
    handler.set_name("gcl-inspect-cli")
    root = logging.getLogger("gcl_inspect")
    for old in [h for h in root.handlers if h.get_name() == handler.get_name()]:
        root.removeHandler(old)
    root.setLevel(level)
    root.addHandler(handler)


def _load_json(raw: str, label: str) -> Any:
    """Read JSON from the path *raw* (``-`` for stdin), exiting on failure."""
    try:
        if raw == "-":
            return json.load(sys.stdin)
        path = Path(raw).expanduser().resolve()
        with open(path, encoding="utf-8") as fh:
            return json.load(fh)
    except FileNotFoundError:
        _log.error("%s not found: %s", label, raw)
        raise SystemExit(EXIT_INFRA)
    except json.JSONDecodeError as exc:
        _log.error("%s is not valid JSON: %s", label, exc)
        raise SystemExit(EXIT_INFRA)


def _open_output(dest: Optional[str]) -> TextIO:
    """Return a writable text stream.

    *dest* ``None`` or ``"-"`` → ``sys.stdout``; otherwise open the path
    for writing (creating parent directories as needed).
    """
    if dest is None or dest == "-":
        return sys.stdout
    p = Path(dest).expanduser().resolve()
    p.parent.mkdir(parents=True, exist_ok=True)
    return open(p, "w", encoding="utf-8")


def _emit(value: Any, dest: Optional[str]) -> None:
    out = _open_output(dest)
    try:
        json.dump(value, out, indent=2, ensure_ascii=False)
        out.write("\n")
    finally:
        if out is not sys.stdout:
            out.close()


def _load_input(raw: str) -> InputEnvelope:
    return InputEnvelope.from_json(_load_json(raw, "input envelope"))


# ===========================================================================
# Sub-commands
# ===========================================================================

def cmd_analyses(args: argparse.Namespace) -> int:
    for analysis in registered():
        print(analysis.value)
    return EXIT_OK


def cmd_generate(args: argparse.Namespace) -> int:
    analysis = Analysis.parse(args.analysis)
    trace_length = args.trace_length
    config = DEFAULT_GENERATION.with_overrides(
        fuel=args.fuel,
        trace_length_range=(trace_length, trace_length) if trace_length is not None else None,
    )
    for warning in config.validate():
        _log.warning("generation config: %s", warning)
    rng = random.Random(args.seed)
    env = environment(analysis, generation=config)
    value = env.generate(rng)
    _log.info("generated %s input (seed=%s)", analysis.value, args.seed)
    _emit(InputEnvelope.wrap(analysis, value).to_json(), args.output)
    return EXIT_OK


def cmd_run(args: argparse.Namespace) -> int:
    envelope = _load_input(args.input)
    env = environment(envelope.analysis)
    output = env.run(envelope.decode())
    _emit(OutputEnvelope.wrap(envelope.analysis, output).to_json(), args.output)
    return EXIT_OK


def cmd_meta(args: argparse.Namespace) -> int:
    envelope = _load_input(args.input)
    env = environment(envelope.analysis)
    meta = env.meta(envelope.decode())
    _emit(MetaEnvelope(envelope.analysis, meta).to_json(), args.output)
    return EXIT_OK


def cmd_validate(args: argparse.Namespace) -> int:
    input_envelope = _load_input(args.input)
    output_envelope = OutputEnvelope.from_json(_load_json(args.candidate, "output envelope"))
    if output_envelope.analysis is not input_envelope.analysis:
        _log.error(
            "output is for %s but input is for %s",
            output_envelope.analysis.value, input_envelope.analysis.value,
        )
        return EXIT_INFRA
    env = environment(input_envelope.analysis)
    verdict = env.validate(input_envelope.decode(), output_envelope.decode())
    _emit(verdict.to_json(), args.output)
    return EXIT_OK if verdict.is_correct else EXIT_MISMATCH


# ===========================================================================
# Argument parser
# ===========================================================================

def _build_parser() -> argparse.ArgumentParser:
    """Construct the full CLI argument parser with subcommands."""

    parser = argparse.ArgumentParser(
        prog="gcl-inspect",
        description=(
            "Reference analyses for the guarded-command language.\n\n"
            "Generates inputs, computes reference outputs and validates\n"
            "candidate outputs for the Calculator, Parser, Interpreter,\n"
            "Security and Graph analyses."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=textwrap.dedent("""\
            examples:
              gcl-inspect generate Security --seed 7 -o input.json
              gcl-inspect run input.json -o output.json
              gcl-inspect validate input.json output.json
        """),
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Increase verbosity (-v info, -vv debug).",
    )

    subparsers = parser.add_subparsers(
        dest="command",
        title="commands",
        metavar="<command>",
    )

    def _add_output_args(p: argparse.ArgumentParser) -> None:
        p.add_argument(
            "-o", "--output",
            default=None,
            metavar="FILE",
            help='Output file ("-" or omit for stdout).',
        )

    # ── analyses ───────────────────────────────────────────────
    p_analyses = subparsers.add_parser(
        "analyses",
        help="List the registered analyses.",
    )
    p_analyses.set_defaults(func=cmd_analyses)

    # ── generate ───────────────────────────────────────────────
    p_generate = subparsers.add_parser(
        "generate",
        help="Print a random input envelope for an analysis.",
    )
    p_generate.add_argument(
        "analysis",
        help="Analysis tag (Calculator, Parser, Interpreter, Security, Graph).",
    )
    p_generate.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Seed for the random generator (default: nondeterministic).",
    )
    p_generate.add_argument(
        "--fuel",
        type=int,
        default=None,
        help=f"Program size budget (default: {DEFAULT_GENERATION.fuel}).",
    )
    p_generate.add_argument(
        "--trace-length",
        type=int,
        default=None,
        help="Fixed interpreter trace length (default: random in "
             f"{DEFAULT_GENERATION.trace_length_range[0]}.."
             f"{DEFAULT_GENERATION.trace_length_range[1]}).",
    )
    _add_output_args(p_generate)
    p_generate.set_defaults(func=cmd_generate)

    # ── run ────────────────────────────────────────────────────
    p_run = subparsers.add_parser(
        "run",
        help="Print the reference output envelope for an input envelope.",
    )
    p_run.add_argument("input", help='Input envelope JSON ("-" for stdin).')
    _add_output_args(p_run)
    p_run.set_defaults(func=cmd_run)

    # ── meta ───────────────────────────────────────────────────
    p_meta = subparsers.add_parser(
        "meta",
        help="Print the meta envelope for an input envelope.",
    )
    p_meta.add_argument("input", help='Input envelope JSON ("-" for stdin).')
    _add_output_args(p_meta)
    p_meta.set_defaults(func=cmd_meta)

    # ── validate ───────────────────────────────────────────────
    p_validate = subparsers.add_parser(
        "validate",
        help="Check a candidate output envelope against the reference.",
    )
    p_validate.add_argument("input", help="Input envelope JSON.")
    p_validate.add_argument("candidate", help="Candidate output envelope JSON.")
    _add_output_args(p_validate)
    p_validate.set_defaults(func=cmd_validate)

    return parser


# ===========================================================================
# Main
# ===========================================================================

def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run the gcl-inspect CLI.

    Parameters
    ----------
    argv:
        Command-line arguments.  ``None`` → ``sys.argv[1:]``.

    Returns
    -------
    int
        Exit code (see module docstring for semantics).
    """
    parser = _build_parser()
    args = parser.parse_args(argv)

    _configure_logging(args.verbose)

    if not hasattr(args, "func"):
        parser.print_help(sys.stderr)
        return EXIT_INFRA

    try:
        return args.func(args)
    except KeyboardInterrupt:
        _log.info("Interrupted by user.")
        return 130
    except SystemExit as exc:
        return exc.code if isinstance(exc.code, int) else EXIT_INFRA
    except GclError as exc:
        _log.error("%s", exc)
        return EXIT_ERROR
    except Exception as exc:
        _log.error("Unhandled exception: %s", exc, exc_info=True)
        return EXIT_INFRA


if __name__ == "__main__":
    raise SystemExit(main())
