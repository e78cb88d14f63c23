"""
irwalk/bf.py
============

Brainfuck backend: lowers an IR ``Program`` to Brainfuck text that runs on
:class:`irwalk.machine.Machine`.

Two layers:

* ``Context``: emits code while tracking the data pointer at compile time,
  hands out cells stack-style, and builds cell primitives (``copy``,
  ``mov``, ``add_assign``, ``not_``, ``greater_than``, ...) out of the eight
  Brainfuck instructions.
* ``BrainfuckCompiler``: an ``ASTVisitor`` mapping statements and
  expressions onto those primitives.

Every variable owns one cell from its first textual ``let`` on. Every
intermediate value lives in a scratch cell that is released, zeroed, when
the statement is done. Cells are unsigned 8-bit and wrap, so compiled
programs compute modulo 256: ``0 - 1`` is 255 and ``>`` compares unsigned.
Constants outside 0..255 are rejected at compile time.

Usage::

    from irwalk.bf import compile_program, execute
    from irwalk.parser import parse

    compiled = compile_program(parse("let x = 3 + 4 > 2"))
    print(compiled.code)
    print(execute(compiled))        # {'x': 1}
"""

from __future__ import annotations

import logging
import sys
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Dict, Iterator, List, Mapping, Optional, Sequence, Tuple

from irwalk import ast as A
from irwalk.errors import (
    CellRangeError,
    ExecutionLimitExceeded,
    SourceSpan,
    UnresolvedVariable,
)
from irwalk.machine import DEFAULT_MAX_STEPS, MEM_SIZE, Machine
from irwalk.visitor import ASTVisitor

logger = logging.getLogger(__name__)

CELL_MAX = 0xFF


# ===================================================================== #
#  Cell handle                                                          #
# ===================================================================== #

class CellHandle:
    """Chainable operations on a single cell.

    ``assume`` records a value the cell is known to hold so that ``clear``
    and ``set`` can skip code; that knowledge lives only as long as the
    handle does.
    """

    __slots__ = ("_ctx", "ptr", "_known")

    def __init__(self, ctx: "Context", ptr: int) -> None:
        self._ctx = ctx
        self.ptr = ptr
        self._known: Optional[int] = None

    def assume(self, value: int) -> "CellHandle":
        self._known = value & CELL_MAX
        return self

    def clear(self) -> "CellHandle":
        if self._known == 0:
            return self
        self._ctx.seek(self.ptr)
        self._ctx.emit("[-]")
        return self.assume(0)

    def set(self, value: int) -> "CellHandle":
        if self._known == value:
            return self
        self.clear()
        return self.increment_by(value)

    def set_bool(self, value: bool) -> "CellHandle":
        target = int(value)
        if self._known == 1 - target:
            return self.increment() if target else self.decrement()
        return self.set(target)

    def increment_by(self, amount: int) -> "CellHandle":
        return self._step("+", amount)

    def decrement_by(self, amount: int) -> "CellHandle":
        return self._step("-", -amount)

    def increment(self) -> "CellHandle":
        return self.increment_by(1)

    def decrement(self) -> "CellHandle":
        return self.decrement_by(1)

    def _step(self, op: str, delta: int) -> "CellHandle":
        if delta:
            self._ctx.seek(self.ptr)
            self._ctx.emit(op * abs(delta))
            if self._known is not None:
                self._known = (self._known + delta) & CELL_MAX
        return self


# ===================================================================== #
#  Context                                                              #
# ===================================================================== #

class Context:
    """Brainfuck emitter with a compile-time data pointer and cell stack.

    Every primitive leaves the scratch cells it allocates at zero when it
    releases them, so a freshly allocated cell reads 0 at run time.
    Primitives taking a *source* and a *target* need two distinct cells.
    """

    def __init__(self, ptr: int = 0) -> None:
        self._chunks: List[str] = []
        self.ptr = ptr
        self._occupied: List[bool] = []

    @property
    def code(self) -> str:
        return "".join(self._chunks)

    @property
    def cells_used(self) -> int:
        """High-water mark of the cell stack."""
        return len(self._occupied)

    def emit(self, code: str) -> None:
        self._chunks.append(code)

    def seek(self, ptr: int) -> None:
        offset = ptr - self.ptr
        self.emit((">" if offset > 0 else "<") * abs(offset))
        self.ptr = ptr

    # -- Allocation ------------------------------------------------------

    def stack_alloc(self) -> int:
        for ptr, used in enumerate(self._occupied):
            if not used:
                self._occupied[ptr] = True
                return ptr
        self._occupied.append(True)
        return len(self._occupied) - 1

    def stack_free(self, ptr: int) -> None:
        if not 0 <= ptr < len(self._occupied) or not self._occupied[ptr]:
            raise ValueError(f"cell {ptr} is not allocated")
        self._occupied[ptr] = False

    @contextmanager
    def scratch(self, count: int = 1) -> Iterator[Tuple[int, ...]]:
        """Allocate *count* cells for the duration of the block."""
        cells = tuple(self.stack_alloc() for _ in range(count))
        try:
            yield cells
        finally:
            for ptr in reversed(cells):
                self.stack_free(ptr)

    # -- Single cells ----------------------------------------------------

    def cell(self, ptr: int) -> CellHandle:
        return CellHandle(self, ptr)

    def clear(self, ptr: int) -> None:
        self.cell(ptr).clear()

    def increment(self, ptr: int) -> None:
        self.cell(ptr).increment()

    def decrement(self, ptr: int) -> None:
        self.cell(ptr).decrement()

    # -- Control flow ----------------------------------------------------

    @contextmanager
    def loop(self, ptr: int) -> Iterator[None]:
        """``[`` block ``]`` on *ptr*: repeat while the cell is nonzero."""
        self.seek(ptr)
        self.emit("[")
        yield
        self.seek(ptr)
        self.emit("]")

    @contextmanager
    def countdown(self, counter: int) -> Iterator[None]:
        """Run the block *counter* times, leaving *counter* at zero."""
        with self.loop(counter):
            yield
            self.decrement(counter)

    @contextmanager
    def repeat(self, ptr: int) -> Iterator[None]:
        """Run the block *ptr* times; *ptr* keeps its value."""
        with self.scratch() as (counter,):
            self.copy(ptr, counter)
            with self.countdown(counter):
                yield

    @contextmanager
    def iff_destructive(self, cond: int) -> Iterator[None]:
        """Run the block once if *cond* is nonzero; *cond* ends at zero."""
        with self.loop(cond):
            yield
            self.clear(cond)

    @contextmanager
    def iff(self, cond: int) -> Iterator[None]:
        """Run the block once if *cond* is nonzero; *cond* keeps its value."""
        with self.scratch() as (flag,):
            self.copy(cond, flag)
            with self.iff_destructive(flag):
                yield

    # -- Data movement ---------------------------------------------------

    def mov(self, source: int, target: int) -> None:
        """target = source, source = 0."""
        if source == target:
            return
        self.clear(target)
        with self.loop(source):
            self.increment(target)
            self.decrement(source)

    def copy(self, source: int, target: int) -> None:
        """target = source."""
        if source == target:
            return
        with self.scratch() as (tmp,):
            self.clear(target)
            self.mov(source, tmp)
            with self.countdown(tmp):
                self.increment(source)
                self.increment(target)

    # -- Arithmetic ------------------------------------------------------

    @staticmethod
    def _distinct(source: int, target: int, operation: str) -> None:
        if source == target:
            raise ValueError(f"{operation} needs distinct cells, got {source} twice")

    def add_assign(self, source: int, target: int) -> None:
        """target += source (mod 256)."""
        self._distinct(source, target, "add_assign")
        with self.repeat(source):
            self.increment(target)

    def sub_assign(self, source: int, target: int) -> None:
        """target -= source (mod 256)."""
        self._distinct(source, target, "sub_assign")
        with self.repeat(source):
            self.decrement(target)

    def multiply_assign(self, source: int, target: int) -> None:
        """target *= source (mod 256)."""
        self._distinct(source, target, "multiply_assign")
        with self.scratch() as (tmp,):
            self.mov(target, tmp)
            with self.countdown(tmp):
                self.add_assign(source, target)

    # -- Logic -----------------------------------------------------------

    def not_(self, value: int) -> None:
        """value = 1 if value == 0 else 0."""
        with self.scratch() as (is_zero,):
            self.cell(is_zero).set(1)
            with self.loop(value):
                self.decrement(is_zero)
                self.clear(value)
            with self.countdown(is_zero):
                self.increment(value)

    def equals_assign(self, source: int, target: int) -> None:
        """target = 1 if target == source else 0."""
        self._distinct(source, target, "equals_assign")
        with self.scratch() as (tmp,):
            self.copy(source, tmp)
            with self.countdown(tmp):
                self.decrement(target)
        self.not_(target)

    def and_assign(self, source: int, target: int) -> None:
        """target = 1 if both cells are nonzero else 0."""
        self._distinct(source, target, "and_assign")
        with self.scratch() as (tmp,):
            self.mov(target, tmp)
            with self.iff(source):
                with self.iff_destructive(tmp):
                    self.cell(target).assume(0).set(1)
            self.clear(tmp)

    def or_assign(self, source: int, target: int) -> None:
        """target = 1 if either cell is nonzero else 0."""
        self._distinct(source, target, "or_assign")
        with self.scratch() as (tmp,):
            self.mov(target, tmp)
            with self.iff(source):
                self.cell(target).set(1)
            with self.iff_destructive(tmp):
                self.cell(target).set(1)

    def greater_than(self, lhs: int, rhs: int, target: int) -> None:
        """target = 1 if lhs > rhs (unsigned) else 0.

        Counts both operands down together; ``lhs`` is greater exactly when
        the ``rhs`` copy reaches zero while the ``lhs`` copy is still nonzero.
        """
        if target in (lhs, rhs):
            raise ValueError("greater_than needs a target distinct from its operands")
        with self.scratch(2) as (x, y):
            self.copy(lhs, x)
            self.copy(rhs, y)
            self.clear(target)
            with self.loop(x):
                with self.scratch(2) as (y_zero, y_live):
                    self.copy(y, y_zero)
                    self.not_(y_zero)
                    self.copy(y_zero, y_live)
                    self.not_(y_live)
                    with self.countdown(y_zero):
                        self.cell(target).set(1)
                        self.clear(x)
                    with self.countdown(y_live):
                        self.decrement(x)
                        self.decrement(y)
            self.clear(y)


# ===================================================================== #
#  Compiler                                                             #
# ===================================================================== #

@dataclass(frozen=True)
class CompiledProgram:
    """Brainfuck text plus the cell assigned to every variable."""
    code: str
    layout: Mapping[str, int]
    cells: int

    def bindings(self, memory: Sequence[int]) -> Dict[str, int]:
        """Read every variable out of *memory*, in first-declaration order."""
        return {name: memory[ptr] for name, ptr in self.layout.items()}


class BrainfuckCompiler(ASTVisitor):
    """
    Lowers a ``Program`` onto ``Context`` primitives.

    Names are resolved textually: a variable owns a cell from its first
    ``let`` onward whether or not that ``let`` runs, so a name declared in
    a skipped block reads 0 instead of failing. A name used before any
    ``let`` is a compile error. ``if`` runs its body once for any nonzero
    condition; ``while`` re-evaluates its condition at the bottom of the
    loop.

    Usage::

        compiled = BrainfuckCompiler().compile(program)
    """

    def __init__(self) -> None:
        self.ctx = Context()
        self.layout: Dict[str, int] = {}

    def compile(self, program: A.Program) -> CompiledProgram:
        self.ctx = Context()
        self.layout = {}
        try:
            self.visit(program)
        except RecursionError:
            raise ExecutionLimitExceeded(
                "depth", sys.getrecursionlimit(), SourceSpan.from_node(program)
            ) from None
        compiled = CompiledProgram(self.ctx.code, dict(self.layout),
                                   self.ctx.cells_used)
        logger.debug(
            "compiled %d statement(s) to %d instruction(s) over %d cell(s)",
            len(program), len(compiled.code), compiled.cells,
        )
        return compiled

    # -- Internal --------------------------------------------------------

    def _declare(self, name: str) -> int:
        if name not in self.layout:
            self.layout[name] = self.ctx.stack_alloc()
        return self.layout[name]

    def _resolve(self, node: A.ASTNode, name: str) -> int:
        try:
            return self.layout[name]
        except KeyError:
            raise UnresolvedVariable(name, SourceSpan.from_node(node)) from None

    def _block(self, body: Tuple[A.Statement, ...]) -> None:
        for stmt in body:
            self.visit(stmt)

    def _expr(self, expr: A.Expr, target: int) -> None:
        ctx = self.ctx
        self._term(expr.head, target)
        for op, term in expr.rest:
            with ctx.scratch() as (rhs,):
                self._term(term, rhs)
                if op is A.Operator.ADD:
                    with ctx.countdown(rhs):
                        ctx.increment(target)
                elif op is A.Operator.SUB:
                    with ctx.countdown(rhs):
                        ctx.decrement(target)
                else:
                    with ctx.scratch() as (lhs,):
                        ctx.mov(target, lhs)
                        ctx.greater_than(lhs, rhs, target)
                        ctx.clear(lhs)
                    ctx.clear(rhs)

    def _term(self, term: A.Term, target: int) -> None:
        if isinstance(term, A.Group):
            self._expr(term.expr, target)
        elif isinstance(term, A.Var):
            self.ctx.copy(self._resolve(term, term.name), target)
        else:
            if not 0 <= term.value <= CELL_MAX:
                raise CellRangeError(term.value, SourceSpan.from_node(term))
            self.ctx.cell(target).set(term.value)

    # -- Statements ------------------------------------------------------

    def visit_program(self, node: A.Program) -> None:
        self._block(node.body)

    def visit_decl(self, node: A.Decl) -> None:
        if node.init is None:
            self.ctx.clear(self._declare(node.name))
            return
        with self.ctx.scratch() as (tmp,):
            self._expr(node.init, tmp)
            self.ctx.mov(tmp, self._declare(node.name))

    def visit_assign(self, node: A.Assign) -> None:
        ptr = self._resolve(node, node.name)
        with self.ctx.scratch() as (tmp,):
            self._expr(node.value, tmp)
            self.ctx.mov(tmp, ptr)

    def visit_add_assign(self, node: A.AddAssign) -> None:
        ptr = self._resolve(node, node.name)
        with self.ctx.scratch() as (tmp,):
            self._expr(node.value, tmp)
            with self.ctx.countdown(tmp):
                self.ctx.increment(ptr)

    def visit_sub_assign(self, node: A.SubAssign) -> None:
        ptr = self._resolve(node, node.name)
        with self.ctx.scratch() as (tmp,):
            self._expr(node.value, tmp)
            with self.ctx.countdown(tmp):
                self.ctx.decrement(ptr)

    def visit_while(self, node: A.While) -> None:
        with self.ctx.scratch() as (cond,):
            self._expr(node.cond, cond)
            with self.ctx.loop(cond):
                self._block(node.body)
                self._expr(node.cond, cond)

    def visit_if(self, node: A.If) -> None:
        with self.ctx.scratch() as (cond,):
            self._expr(node.cond, cond)
            with self.ctx.iff_destructive(cond):
                self._block(node.body)


# ===================================================================== #
#  Entry points                                                         #
# ===================================================================== #

def compile_program(program: A.Program) -> CompiledProgram:
    """Compile *program* to Brainfuck along with its variable layout."""
    return BrainfuckCompiler().compile(program)


def translate(program: A.Program) -> str:
    """Compile *program* and return only the Brainfuck text."""
    return compile_program(program).code


def execute(compiled: CompiledProgram,
            max_steps: Optional[int] = DEFAULT_MAX_STEPS) -> Dict[str, int]:
    """Run compiled code on a fresh :class:`Machine` and read back the variables."""
    machine = Machine(max(MEM_SIZE, compiled.cells), max_steps=max_steps)
    machine.run(compiled.code)
    return compiled.bindings(machine.memory)


__all__ = [
    "CELL_MAX",
    "CellHandle",
    "Context",
    "CompiledProgram",
    "BrainfuckCompiler",
    "compile_program",
    "translate",
    "execute",
]
