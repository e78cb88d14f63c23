"""
irwalk/runtime.py
=================

Tree-walking evaluator for the IR.

This module provides:

* ``Environment``    – the single flat, insertion-ordered variable store
* ``RuntimeConfig``  – host-imposed execution limits (steps / wall clock)
* ``Evaluator``      – ``ASTVisitor`` that executes a ``Program``
* ``evaluate`` / ``run`` – convenience entry points

Every block shares the one ``Environment``; there are no scope frames.
Values are 64-bit signed integers; ``+`` and ``-`` are checked and raise
``ArithmeticOverflow`` instead of wrapping. The language puts no bound on
``while`` loops; ``RuntimeConfig`` lets an embedding host impose one.
"""

from __future__ import annotations

import logging
import sys
import time
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional, Tuple

from irwalk import ast as A
from irwalk.errors import (
    ExecutionLimitExceeded,
    SourceSpan,
    UndefinedVariable,
)
from irwalk.parser import parse
from irwalk.visitor import ASTVisitor

logger = logging.getLogger(__name__)


# ===================================================================== #
#  Environment                                                          #
# ===================================================================== #

class Environment(Mapping):
    """Variable bindings of one run, in first-declaration order.

    Re-declaring a name overwrites its value but keeps its original
    position. Compares equal to any mapping with the same bindings,
    including a plain ``dict``.
    """

    def __init__(self, bindings: Optional[Mapping] = None) -> None:
        self._values: Dict[str, int] = dict(bindings or {})

    def declare(self, name: str, value: int = 0) -> None:
        self._values[name] = value

    def assign(self, name: str, value: int,
               span: Optional[SourceSpan] = None) -> None:
        if name not in self._values:
            raise UndefinedVariable(name, span)
        self._values[name] = value

    def lookup(self, name: str, span: Optional[SourceSpan] = None) -> int:
        try:
            return self._values[name]
        except KeyError:
            raise UndefinedVariable(name, span) from None

    def __getitem__(self, name: str) -> int:
        return self._values[name]

    def __contains__(self, name: object) -> bool:
        return name in self._values

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def as_dict(self) -> Dict[str, int]:
        return dict(self._values)

    def __repr__(self) -> str:
        return f"Environment({self._values!r})"


# ===================================================================== #
#  RuntimeConfig                                                        #
# ===================================================================== #

@dataclass
class RuntimeConfig:
    """Execution limits an embedding host may impose on a run."""
    max_steps: Optional[int] = None
    timeout_seconds: Optional[float] = None

    def validate(self) -> List[str]:
        """Return a list of validation warnings (empty if valid)."""
        warnings: List[str] = []
        if self.max_steps is not None and self.max_steps <= 0:
            warnings.append("max_steps must be positive")
        if self.timeout_seconds is not None and self.timeout_seconds <= 0:
            warnings.append("timeout_seconds must be positive")
        return warnings

    @property
    def bounded(self) -> bool:
        return self.max_steps is not None or self.timeout_seconds is not None


# ===================================================================== #
#  Evaluator                                                            #
# ===================================================================== #

class Evaluator(ASTVisitor):
    """
    Executes a ``Program`` against a fresh ``Environment``.

    Statements run in order; ``while`` re-evaluates its condition before
    every iteration and ``if`` evaluates it once. Nonzero is true.

    With a bounded ``RuntimeConfig`` every executed statement and every loop
    condition check counts as one step; exceeding ``max_steps`` or
    ``timeout_seconds`` raises ``ExecutionLimitExceeded``.

    Usage::

        env = Evaluator(RuntimeConfig(max_steps=10_000)).execute(program)
        print(env["x"])
    """

    def __init__(self, config: Optional[RuntimeConfig] = None) -> None:
        self._config = config or RuntimeConfig()
        for w in self._config.validate():
            logger.warning("RuntimeConfig: %s", w)
        self.env = Environment()
        self.steps = 0
        self._deadline: Optional[float] = None

    @property
    def config(self) -> RuntimeConfig:
        return self._config

    def execute(self, program: A.Program) -> Environment:
        """Run *program* from an empty environment and return the final one."""
        self.env = Environment()
        self.steps = 0
        start_time = time.monotonic()
        if self._config.timeout_seconds is not None:
            self._deadline = start_time + self._config.timeout_seconds
        else:
            self._deadline = None

        try:
            self.visit(program)
        except RecursionError:
            # Hand-built trees can nest deeper than parse() accepts.
            raise ExecutionLimitExceeded(
                "depth", sys.getrecursionlimit(), SourceSpan.from_node(program)
            ) from None

        logger.debug(
            "evaluated %d statement(s) in %.3fs, %d binding(s)",
            self.steps, time.monotonic() - start_time, len(self.env),
        )
        return self.env

    # -- Internal --------------------------------------------------------

    def _tick(self, node: A.ASTNode) -> None:
        self.steps += 1
        max_steps = self._config.max_steps
        if max_steps is not None and self.steps > max_steps:
            raise ExecutionLimitExceeded("steps", max_steps, SourceSpan.from_node(node))
        if self._deadline is not None and time.monotonic() > self._deadline:
            raise ExecutionLimitExceeded(
                "timeout", self._config.timeout_seconds, SourceSpan.from_node(node)
            )

    def _exec_block(self, body: Tuple[A.Statement, ...]) -> None:
        for stmt in body:
            self._tick(stmt)
            self.visit(stmt)

    def _require_bound(self, node: A.ASTNode, name: str) -> None:
        if name not in self.env:
            raise UndefinedVariable(name, SourceSpan.from_node(node))

    # -- Statements ------------------------------------------------------

    def visit_program(self, node: A.Program) -> None:
        self._exec_block(node.body)

    def visit_decl(self, node: A.Decl) -> None:
        value = self.visit(node.init) if node.init is not None else 0
        self.env.declare(node.name, value)

    def visit_assign(self, node: A.Assign) -> None:
        self._require_bound(node, node.name)
        self.env.assign(node.name, self.visit(node.value))

    def visit_add_assign(self, node: A.AddAssign) -> None:
        self._require_bound(node, node.name)
        rhs = self.visit(node.value)
        span = SourceSpan.from_node(node)
        self.env.assign(node.name, A.Operator.ADD.apply(self.env[node.name], rhs, span))

    def visit_sub_assign(self, node: A.SubAssign) -> None:
        self._require_bound(node, node.name)
        rhs = self.visit(node.value)
        span = SourceSpan.from_node(node)
        self.env.assign(node.name, A.Operator.SUB.apply(self.env[node.name], rhs, span))

    def visit_while(self, node: A.While) -> None:
        while True:
            self._tick(node.cond)
            if not self.visit(node.cond):
                break
            self._exec_block(node.body)

    def visit_if(self, node: A.If) -> None:
        if self.visit(node.cond):
            self._exec_block(node.body)

    # -- Expressions -----------------------------------------------------

    def visit_expr(self, node: A.Expr) -> int:
        acc = self.visit(node.head)
        for op, term in node.rest:
            acc = op.apply(acc, self.visit(term), SourceSpan.from_node(term))
        return acc

    def visit_const(self, node: A.Const) -> int:
        return node.value

    def visit_char_lit(self, node: A.CharLit) -> int:
        return node.value

    def visit_var(self, node: A.Var) -> int:
        return self.env.lookup(node.name, SourceSpan.from_node(node))

    def visit_group(self, node: A.Group) -> int:
        return self.visit(node.expr)


# ===================================================================== #
#  Entry points                                                         #
# ===================================================================== #

def evaluate(program: A.Program,
             config: Optional[RuntimeConfig] = None) -> Environment:
    """Execute *program* and return its final environment."""
    return Evaluator(config).execute(program)


def run(source: str, config: Optional[RuntimeConfig] = None,
        filename: str = "<input>") -> Environment:
    """Parse and evaluate IR source text in one call."""
    return evaluate(parse(source, filename), config)


__all__ = [
    "Environment",
    "RuntimeConfig",
    "Evaluator",
    "evaluate",
    "run",
]
