#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
irwalk/__main__.py
==================

Command-line host for the irwalk interpreter.

Usage
-----
    python -m irwalk <command> [options] [input]

Commands
--------
    run         Parse and evaluate a program, print the final bindings
    check       Parse a program and run the static checks
    dump-ast    Parse a program and dump the AST
    compile     Compile a program to Brainfuck (optionally run it)

``input`` is a path or ``-`` for standard input (the default).

Pipeline
--------

    IR source
        │
        ▼
    ┌──────────────┐
    │  Recognizer   │   parsimonious grammar → parse tree
    │  AST Builder  │   NodeVisitor → immutable AST
    └────┬─────────┘
         │
         ├──────────────▶  static checks (check)
         ├──────────────▶  Brainfuck code + cell machine (compile)
         ▼
    ┌──────────────┐
    │  Evaluator    │   tree walk → final Environment
    └────┬─────────┘
         │
         ▼
    name=value lines (or JSON)

Exit codes
----------
    0   success
    1   syntax error, literal overflow, compile error, or unreadable input
    2   runtime error (undefined variable, arithmetic overflow)
    3   execution limit exceeded (--max-steps / --timeout, or nesting depth)
    4   internal error
"""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
import textwrap
import time
import traceback
from dataclasses import fields
from typing import (
    Any,
    Dict,
    List,
    Optional,
    Sequence,
    TextIO,
    Tuple,
)

from irwalk import __version__
from irwalk import ast as A
from irwalk import errors
from irwalk.bf import CompiledProgram, compile_program, execute
from irwalk.machine import DEFAULT_MAX_STEPS
from irwalk.parser import parse
from irwalk.runtime import Environment, Evaluator, RuntimeConfig
from irwalk.semantic import Diagnostic, DiagnosticSeverity, SemanticAnalyzer

logger = logging.getLogger("irwalk.cli")

__description__ = "irwalk: tree-walking interpreter for a minimal imperative IR"

EXIT_OK: int = 0
EXIT_SYNTAX: int = 1
EXIT_RUNTIME: int = 2
EXIT_LIMIT: int = 3
EXIT_INTERNAL: int = 4


def _configure_logging(verbosity: int) -> None:
    """Set up the ``irwalk`` logger.

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
    root = logging.getLogger("irwalk")
    root.setLevel(level)
    # Repeated main() calls in one process must not stack handlers.
    root.handlers[:] = [handler]


# ═══════════════════════════════════════════════════════════════════════════
# TERMINAL COLORS
# ═══════════════════════════════════════════════════════════════════════════

class _Colors:
    """ANSI color codes, disabled when not writing to a TTY."""

    def __init__(self, enabled: bool = True) -> None:
        self.enabled = enabled

    def _code(self, code: str) -> str:
        return code if self.enabled else ""

    @property
    def RESET(self) -> str:
        return self._code("\033[0m")

    @property
    def BOLD(self) -> str:
        return self._code("\033[1m")

    @property
    def DIM(self) -> str:
        return self._code("\033[2m")

    @property
    def RED(self) -> str:
        return self._code("\033[31m")

    @property
    def GREEN(self) -> str:
        return self._code("\033[32m")

    @property
    def YELLOW(self) -> str:
        return self._code("\033[33m")

    @property
    def MAGENTA(self) -> str:
        return self._code("\033[35m")

    @property
    def CYAN(self) -> str:
        return self._code("\033[36m")


def _get_colors(stream: TextIO = sys.stderr, allowed: bool = True) -> _Colors:
    """Get color codes appropriate for the given stream."""
    try:
        is_tty = hasattr(stream, "isatty") and stream.isatty()
    except (AttributeError, ValueError):
        is_tty = False
    return _Colors(
        enabled=allowed and is_tty and os.environ.get("NO_COLOR") is None
    )


# ═══════════════════════════════════════════════════════════════════════════
# DIAGNOSTIC FORMATTER
# ═══════════════════════════════════════════════════════════════════════════

class DiagnosticFormatter:
    """Format diagnostics for terminal output.

    Produces GCC/Clang-style diagnostic messages:

        prog.ir:3:9: error: expected expression, found '}' [IR-1000]
          while x > {
                    ^
    """

    def __init__(self, colors: _Colors, stream: Optional[TextIO] = None) -> None:
        self.colors = colors
        self.stream = stream if stream is not None else sys.stderr
        self._error_count = 0
        self._warning_count = 0
        self._note_count = 0

    def error(self, message: str, location: Optional[Any] = None,
              source_line: Optional[str] = None) -> None:
        """Emit an error diagnostic."""
        self._error_count += 1
        c = self.colors
        loc = self._format_location(location)
        self.stream.write(
            f"{c.BOLD}{loc}{c.RED}error:{c.RESET}{c.BOLD} {message}{c.RESET}\n"
        )
        if source_line:
            self._print_source_context(source_line, location)

    def warning(self, message: str, location: Optional[Any] = None,
                source_line: Optional[str] = None) -> None:
        """Emit a warning diagnostic."""
        self._warning_count += 1
        c = self.colors
        loc = self._format_location(location)
        self.stream.write(
            f"{c.BOLD}{loc}{c.MAGENTA}warning:{c.RESET}{c.BOLD} {message}{c.RESET}\n"
        )
        if source_line:
            self._print_source_context(source_line, location)

    def note(self, message: str, location: Optional[Any] = None,
             source_line: Optional[str] = None) -> None:
        """Emit a note diagnostic."""
        self._note_count += 1
        c = self.colors
        loc = self._format_location(location)
        self.stream.write(
            f"{c.BOLD}{loc}{c.CYAN}note:{c.RESET} {message}\n"
        )
        if source_line:
            self._print_source_context(source_line, location)

    def summary(self) -> None:
        """Print a summary of all diagnostics."""
        parts = []
        c = self.colors
        if self._error_count:
            parts.append(f"{c.RED}{self._error_count} error(s){c.RESET}")
        if self._warning_count:
            parts.append(f"{c.MAGENTA}{self._warning_count} warning(s){c.RESET}")
        if self._note_count:
            parts.append(f"{c.CYAN}{self._note_count} note(s){c.RESET}")
        if parts:
            self.stream.write(", ".join(parts) + " generated.\n")

    def _format_location(self, location: Optional[Any]) -> str:
        """Format a source location prefix."""
        if location is None:
            return ""
        file_ = getattr(location, "file", None) or "<input>"
        line = getattr(location, "line", None) or None
        col = getattr(location, "column", None) or None
        if line is not None and col is not None:
            return f"{file_}:{line}:{col}: "
        elif line is not None:
            return f"{file_}:{line}: "
        else:
            return f"{file_}: "

    def _print_source_context(self, source_line: str, location: Optional[Any]) -> None:
        """Print source context with a caret."""
        c = self.colors
        self.stream.write(f"  {source_line.rstrip()}\n")
        col = getattr(location, "column", None)
        if col is not None and col > 0:
            padding = " " * (col - 1 + 2)  # +2 for leading indent
            self.stream.write(f"{c.GREEN}{padding}^{c.RESET}\n")


# ═══════════════════════════════════════════════════════════════════════════
# SOURCE FILE MANAGER
# ═══════════════════════════════════════════════════════════════════════════

class SourceManager:
    """Manage loading and caching of IR source files."""

    def __init__(self) -> None:
        self._cache: Dict[str, str] = {}
        self._lines_cache: Dict[str, List[str]] = {}

    def load(self, path: str) -> str:
        """Load a source file, returning its content."""
        path = os.path.abspath(path)
        if path not in self._cache:
            try:
                with open(path, "r", encoding="utf-8") as f:
                    content = f.read()
            except FileNotFoundError:
                raise FileNotFoundError(f"IR source not found: {path}") from None
            except PermissionError:
                raise PermissionError(f"Cannot read IR source: {path}") from None
            except IsADirectoryError:
                raise ValueError(f"IR source is a directory: {path}") from None
            except UnicodeDecodeError as e:
                raise ValueError(
                    f"IR source is not valid UTF-8: {path} ({e})"
                ) from None
            self._cache[path] = content
            self._lines_cache[path] = content.splitlines()
        return self._cache[path]

    def load_stdin(self) -> str:
        """Load source from stdin."""
        content = sys.stdin.read()
        self._cache["<stdin>"] = content
        self._lines_cache["<stdin>"] = content.splitlines()
        return content

    def load_input(self, path: str) -> Tuple[str, str]:
        """Load *path* (``-`` for stdin); return ``(source, display name)``."""
        if path == "-":
            return self.load_stdin(), "<stdin>"
        return self.load(path), path

    def get_line(self, path: str, line_number: int) -> Optional[str]:
        """Get a specific line from a loaded file."""
        path = os.path.abspath(path) if path != "<stdin>" else path
        lines = self._lines_cache.get(path)
        if lines and 0 < line_number <= len(lines):
            return lines[line_number - 1]
        return None


# ═══════════════════════════════════════════════════════════════════════════
# AST DUMPER
# ═══════════════════════════════════════════════════════════════════════════

class ASTDumper:
    """Dump an IR AST in a human-readable tree format."""

    def __init__(self, stream: Optional[TextIO] = None,
                 colors: Optional[_Colors] = None,
                 show_locations: bool = False) -> None:
        self.stream = stream if stream is not None else sys.stdout
        self.colors = colors or _Colors(enabled=False)
        self.show_locations = show_locations

    def dump(self, node: A.ASTNode, indent: int = 0) -> None:
        """Recursively dump an AST node."""
        prefix = "  " * indent
        c = self.colors

        header = f"{c.CYAN}{type(node).__name__}{c.RESET}"

        attrs = self._get_display_attrs(node)
        if attrs:
            attr_str = " ".join(
                f"{c.DIM}{k}={c.RESET}{c.YELLOW}{v!r}{c.RESET}"
                for k, v in attrs
            )
            header = f"{header} {attr_str}"

        loc = getattr(node, "loc", A.NO_LOC)
        if self.show_locations and loc is not A.NO_LOC:
            header = f"{header} {c.DIM}[{loc}]{c.RESET}"

        self.stream.write(f"{prefix}{header}\n")

        for child_name, child_value in self._get_children(node):
            if isinstance(child_value, tuple):
                if not child_value:
                    continue
                self.stream.write(f"{prefix}  {c.DIM}{child_name}:{c.RESET}\n")
                for item in child_value:
                    if isinstance(item, tuple):
                        op, term = item
                        self.stream.write(
                            f"{prefix}    {c.DIM}op={c.RESET}"
                            f"{c.YELLOW}{op.value!r}{c.RESET}\n"
                        )
                        self.dump(term, indent + 2)
                    else:
                        self.dump(item, indent + 2)
            elif isinstance(child_value, A.ASTNode):
                self.stream.write(f"{prefix}  {c.DIM}{child_name}:{c.RESET}\n")
                self.dump(child_value, indent + 2)

    @staticmethod
    def _is_structural(value: Any) -> bool:
        return isinstance(value, (A.ASTNode, tuple)) or value is None

    def _get_display_attrs(self, node: A.ASTNode) -> List[Tuple[str, Any]]:
        """Scalar fields, displayed inline with the node name."""
        return [
            (f.name, getattr(node, f.name))
            for f in fields(node)
            if f.name != "loc" and not self._is_structural(getattr(node, f.name))
        ]

    def _get_children(self, node: A.ASTNode) -> List[Tuple[str, Any]]:
        """Child nodes and node tuples, dumped recursively."""
        return [
            (f.name, getattr(node, f.name))
            for f in fields(node)
            if f.name != "loc" and self._is_structural(getattr(node, f.name))
        ]


# ═══════════════════════════════════════════════════════════════════════════
# PIPELINE EXECUTION
# ═══════════════════════════════════════════════════════════════════════════

class Pipeline:
    """Orchestrates the irwalk pipeline.

    Handles:
    - Parsing
    - Static checks
    - Evaluation
    - Error reporting (GCC-style or JSON)
    """

    def __init__(self, formatter: DiagnosticFormatter,
                 source_mgr: SourceManager,
                 error_format: str = "gcc") -> None:
        self.formatter = formatter
        self.source_mgr = source_mgr
        self.error_format = error_format
        self._timings: Dict[str, float] = {}

    def _timed(self, phase_name: str):
        """Context manager to time a pipeline phase."""
        class _Timer:
            def __init__(self_, name: str, pipeline: "Pipeline"):
                self_.name = name
                self_.pipeline = pipeline

            def __enter__(self_):
                self_.start = time.perf_counter()
                logger.debug("[%s] starting", self_.name)
                return self_

            def __exit__(self_, *args: Any):
                elapsed = time.perf_counter() - self_.start
                self_.pipeline._timings[self_.name] = elapsed
                logger.info("[%s] completed in %.3fs", self_.name, elapsed)

        return _Timer(phase_name, self)

    def report(self, exc: errors.IrError) -> None:
        """Print an irwalk error in the selected format."""
        if self.error_format == "json":
            self.formatter.stream.write(json.dumps(exc.to_json()) + "\n")
            return
        span = exc.span
        source_line = self.source_mgr.get_line(span.file, span.line) if span.line else None
        self.formatter.error(f"{exc.message} [{exc.code}]", span, source_line)
        if exc.error_message.hint:
            self.formatter.note(exc.error_message.hint)

    def parse(self, source: str, filename: str = "<input>") -> Optional[A.Program]:
        """Parse phase: IR text → AST. Reports and returns None on failure."""
        with self._timed("parse"):
            try:
                return parse(source, filename)
            except (errors.SyntaxError, errors.LiteralOverflowError) as e:
                self.report(e)
                return None

    def analyze(self, program: A.Program) -> List[Diagnostic]:
        """Static-check phase; diagnostics are printed, never fatal."""
        with self._timed("static-checks"):
            diagnostics = SemanticAnalyzer().analyze(program)
        for diag in diagnostics:
            message = f"{diag.message} [{diag.error_id}]"
            span = errors.SourceSpan.from_node(diag)
            source_line = self.source_mgr.get_line(span.file, span.line)
            if diag.severity == DiagnosticSeverity.WARNING:
                self.formatter.warning(message, span, source_line)
            else:
                self.formatter.note(message, span, source_line)
        return diagnostics

    def evaluate(self, program: A.Program,
                 config: RuntimeConfig) -> Tuple[Optional[Environment], int]:
        """Evaluation phase. Returns ``(environment, exit code)``."""
        with self._timed("evaluate"):
            try:
                return Evaluator(config).execute(program), EXIT_OK
            except errors.ExecutionLimitExceeded as e:
                self.report(e)
                return None, EXIT_LIMIT
            except errors.RuntimeError as e:
                self.report(e)
                return None, EXIT_RUNTIME

    def compile(self, program: A.Program) -> Tuple[Optional[CompiledProgram], int]:
        """Code generation phase. Returns ``(compiled program, exit code)``."""
        with self._timed("compile"):
            try:
                compiled = compile_program(program)
            except errors.ExecutionLimitExceeded as e:
                self.report(e)
                return None, EXIT_LIMIT
            except errors.CompileError as e:
                self.report(e)
                return None, EXIT_SYNTAX
        logger.info("compiled to %d instruction(s) over %d cell(s)",
                    len(compiled.code), compiled.cells)
        return compiled, EXIT_OK

    def execute(self, compiled: CompiledProgram,
                max_steps: Optional[int]) -> Tuple[Optional[Dict[str, int]], int]:
        """Run compiled code on the cell machine."""
        with self._timed("machine"):
            try:
                return execute(compiled, max_steps), EXIT_OK
            except errors.ExecutionLimitExceeded as e:
                self.report(e)
                return None, EXIT_LIMIT

    def log_timings(self) -> None:
        """Log pipeline phase timings at INFO level."""
        total = sum(self._timings.values())
        for phase, elapsed in self._timings.items():
            logger.info("%-16s %7.3fs", phase, elapsed)
        if self._timings:
            logger.info("%-16s %7.3fs", "TOTAL", total)


# ═══════════════════════════════════════════════════════════════════════════
# COMMAND HANDLERS
# ═══════════════════════════════════════════════════════════════════════════

def _load(args: argparse.Namespace, formatter: DiagnosticFormatter,
          source_mgr: SourceManager) -> Optional[Tuple[str, str]]:
    try:
        return source_mgr.load_input(args.input)
    except (FileNotFoundError, PermissionError, ValueError) as e:
        formatter.error(str(e))
        return None


def cmd_run(args: argparse.Namespace) -> int:
    """Handle the 'run' command (parse + evaluate)."""
    colors = _get_colors(sys.stderr, not args.no_color)
    formatter = DiagnosticFormatter(colors)
    source_mgr = SourceManager()

    loaded = _load(args, formatter, source_mgr)
    if loaded is None:
        return EXIT_SYNTAX
    source, filename = loaded

    pipeline = Pipeline(formatter, source_mgr, error_format=args.error_format)

    program = pipeline.parse(source, filename)
    if program is None:
        return EXIT_SYNTAX

    config = RuntimeConfig(max_steps=args.max_steps, timeout_seconds=args.timeout)
    env, status = pipeline.evaluate(program, config)
    pipeline.log_timings()
    if env is None:
        return status

    if args.json:
        sys.stdout.write(json.dumps(env.as_dict()) + "\n")
    else:
        for name, value in env.items():
            sys.stdout.write(f"{name}={value}\n")
    return EXIT_OK


def cmd_check(args: argparse.Namespace) -> int:
    """Handle the 'check' command (parse + static checks, no evaluation)."""
    colors = _get_colors(sys.stderr, not args.no_color)
    formatter = DiagnosticFormatter(colors)
    source_mgr = SourceManager()

    loaded = _load(args, formatter, source_mgr)
    if loaded is None:
        return EXIT_SYNTAX
    source, filename = loaded

    pipeline = Pipeline(formatter, source_mgr)

    program = pipeline.parse(source, filename)
    if program is None:
        formatter.summary()
        return EXIT_SYNTAX

    diagnostics = pipeline.analyze(program)

    if not args.quiet:
        sys.stderr.write(
            f"{colors.GREEN}✓{colors.RESET} "
            f"{colors.BOLD}{filename}{colors.RESET}: "
            f"{len(program)} top-level statement(s), "
            f"{len(diagnostics)} diagnostic(s).\n"
        )

    pipeline.log_timings()
    formatter.summary()
    return EXIT_OK


def cmd_dump_ast(args: argparse.Namespace) -> int:
    """Handle the 'dump-ast' command."""
    colors = _get_colors(sys.stderr, not args.no_color)
    formatter = DiagnosticFormatter(colors)
    source_mgr = SourceManager()

    loaded = _load(args, formatter, source_mgr)
    if loaded is None:
        return EXIT_SYNTAX
    source, filename = loaded

    pipeline = Pipeline(formatter, source_mgr)

    program = pipeline.parse(source, filename)
    if program is None:
        return EXIT_SYNTAX

    dumper = ASTDumper(
        stream=sys.stdout,
        colors=_get_colors(sys.stdout, not args.no_color),
        show_locations=args.show_locations,
    )
    dumper.dump(program)
    return EXIT_OK


def cmd_compile(args: argparse.Namespace) -> int:
    """Handle the 'compile' command (parse + Brainfuck code generation)."""
    colors = _get_colors(sys.stderr, not args.no_color)
    formatter = DiagnosticFormatter(colors)
    source_mgr = SourceManager()

    loaded = _load(args, formatter, source_mgr)
    if loaded is None:
        return EXIT_SYNTAX
    source, filename = loaded

    pipeline = Pipeline(formatter, source_mgr, error_format=args.error_format)

    program = pipeline.parse(source, filename)
    if program is None:
        return EXIT_SYNTAX

    compiled, status = pipeline.compile(program)
    if compiled is None:
        return status

    if not args.run:
        if args.output:
            with open(args.output, "w", encoding="utf-8") as f:
                f.write(compiled.code + "\n")
        else:
            sys.stdout.write(compiled.code + "\n")
        pipeline.log_timings()
        return EXIT_OK

    bindings, status = pipeline.execute(compiled, args.max_steps)
    pipeline.log_timings()
    if bindings is None:
        return status

    if args.json:
        sys.stdout.write(json.dumps(bindings) + "\n")
    else:
        for name, value in bindings.items():
            sys.stdout.write(f"{name}={value}\n")
    return EXIT_OK


# ═══════════════════════════════════════════════════════════════════════════
# ARGUMENT PARSER
# ═══════════════════════════════════════════════════════════════════════════

def _positive_int(text: str) -> int:
    value = int(text)
    if value <= 0:
        raise argparse.ArgumentTypeError(f"must be a positive integer: {text}")
    return value


def _positive_float(text: str) -> float:
    value = float(text)
    if value <= 0:
        raise argparse.ArgumentTypeError(f"must be a positive number: {text}")
    return value


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the irwalk CLI."""

    parser = argparse.ArgumentParser(
        prog="irwalk",
        description=__description__,
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=textwrap.dedent("""\
            examples:
              %(prog)s run program.ir
              echo 'let x = 3 + 4 > 2' | %(prog)s run
              %(prog)s run program.ir --max-steps 100000 --json
              %(prog)s check program.ir
              %(prog)s dump-ast program.ir --show-locations
              %(prog)s compile program.ir -o program.bf
              %(prog)s compile program.ir --run
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
        help="Increase log verbosity (-v info, -vv debug)",
    )
    parser.add_argument(
        "--no-color",
        action="store_true",
        default=False,
        help="Disable colored output",
    )

    subparsers = parser.add_subparsers(
        dest="command",
        title="commands",
        description="available commands",
        metavar="<command>",
    )

    # ── run ──────────────────────────────────────────────────────────────

    p_run = subparsers.add_parser(
        "run",
        help="Evaluate a program and print its final bindings",
        description=(
            "Parse and evaluate an IR program. On success every binding is "
            "printed as name=value in first-declaration order."
        ),
    )
    p_run.add_argument(
        "input",
        nargs="?",
        default="-",
        help="Input IR source file (default: '-' for stdin)",
    )
    p_run.add_argument(
        "--max-steps",
        type=_positive_int,
        default=None,
        metavar="N",
        help="Abort after N executed statements and loop-condition checks",
    )
    p_run.add_argument(
        "--timeout",
        type=_positive_float,
        default=None,
        metavar="SECONDS",
        help="Abort after SECONDS of wall-clock evaluation time",
    )
    p_run.add_argument(
        "--json",
        action="store_true",
        default=False,
        help="Print the final bindings as a JSON object",
    )
    p_run.add_argument(
        "--error-format",
        choices=("gcc", "json"),
        default="gcc",
        help="Format of error messages on stderr (default: gcc)",
    )
    p_run.set_defaults(func=cmd_run)

    # ── check ────────────────────────────────────────────────────────────

    p_check = subparsers.add_parser(
        "check",
        help="Parse a program and run the static checks",
        description=(
            "Parse an IR program and report static findings (undeclared "
            "variables, constant loop conditions, redeclarations). The "
            "program is not evaluated."
        ),
    )
    p_check.add_argument(
        "input",
        nargs="?",
        default="-",
        help="Input IR source file (default: '-' for stdin)",
    )
    p_check.add_argument(
        "-q", "--quiet",
        action="store_true",
        default=False,
        help="Suppress the success line",
    )
    p_check.set_defaults(func=cmd_check)

    # ── dump-ast ─────────────────────────────────────────────────────────

    p_dump = subparsers.add_parser(
        "dump-ast",
        help="Parse a program and dump the AST",
    )
    p_dump.add_argument(
        "input",
        nargs="?",
        default="-",
        help="Input IR source file (default: '-' for stdin)",
    )
    p_dump.add_argument(
        "--show-locations",
        action="store_true",
        default=False,
        help="Show source locations for each node",
    )
    p_dump.set_defaults(func=cmd_dump_ast)

    # ── compile ──────────────────────────────────────────────────────────

    p_compile = subparsers.add_parser(
        "compile",
        help="Compile a program to Brainfuck",
        description=(
            "Compile an IR program to Brainfuck over unsigned 8-bit cells. "
            "With --run the code is executed on the built-in cell machine "
            "and every variable is printed as name=value."
        ),
    )
    p_compile.add_argument(
        "input",
        nargs="?",
        default="-",
        help="Input IR source file (default: '-' for stdin)",
    )
    p_compile.add_argument(
        "-o", "--output",
        default=None,
        metavar="FILE",
        help="Write the Brainfuck code to FILE instead of stdout",
    )
    p_compile.add_argument(
        "--run",
        action="store_true",
        default=False,
        help="Execute the compiled code and print the variables",
    )
    p_compile.add_argument(
        "--max-steps",
        type=_positive_int,
        default=DEFAULT_MAX_STEPS,
        metavar="N",
        help=f"Abort --run after N machine instructions (default: {DEFAULT_MAX_STEPS})",
    )
    p_compile.add_argument(
        "--json",
        action="store_true",
        default=False,
        help="With --run, print the variables as a JSON object",
    )
    p_compile.add_argument(
        "--error-format",
        choices=("gcc", "json"),
        default="gcc",
        help="Format of error messages on stderr (default: gcc)",
    )
    p_compile.set_defaults(func=cmd_compile)

    return parser


# ═══════════════════════════════════════════════════════════════════════════
# MAIN
# ═══════════════════════════════════════════════════════════════════════════

def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point for the irwalk CLI.

    Parameters
    ----------
    argv : sequence of str, optional
        Command-line arguments. Defaults to sys.argv[1:].

    Returns
    -------
    int
        Exit code (see module docstring).
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    _configure_logging(args.verbose)

    if args.command is None:
        parser.print_help()
        return EXIT_OK

    try:
        return args.func(args)
    except KeyboardInterrupt:
        sys.stderr.write("\nInterrupted.\n")
        return 130
    except BrokenPipeError:
        # Handle piping to head, etc.
        devnull = os.open(os.devnull, os.O_WRONLY)
        os.dup2(devnull, sys.stdout.fileno())
        return EXIT_OK
    except Exception as e:
        colors = _get_colors(sys.stderr, not args.no_color)
        sys.stderr.write(
            f"\n{colors.RED}{colors.BOLD}"
            f"Internal error:{colors.RESET} {e}\n"
        )
        sys.stderr.write(
            f"{colors.DIM}This is a bug in irwalk. Please report it.{colors.RESET}\n\n"
        )
        traceback.print_exc()
        return EXIT_INTERNAL


if __name__ == "__main__":
    sys.exit(main())
