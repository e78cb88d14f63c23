"""irwalk/ast.py – AST definitions for the IR.

The parser produces a tree of these nodes from a parsimonious parse tree; the
evaluator and the static checks consume it.

Design invariants
-----------------
* Every AST node is a frozen dataclass (immutable after construction).
* Nodes that carry children use tuples, never lists.
* Every node records its source location (``SourceLoc``) for diagnostics.
  Locations never take part in equality, so two parses of the same program
  text compare equal regardless of file name.
* An ``Expr`` is a flat chain ``head (op term)*``; the number of operators is
  always ``len(terms) - 1``.
* Character literals carry their ASCII ordinal from construction on, so the
  value domain is a single integer type.

Module layout
-------------
§1  Source location & value range
§2  Expressions
§3  Statements
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import ClassVar, Optional, Tuple, Union

from irwalk.errors import ArithmeticOverflow, SourceSpan

# ════════════════════════════════════════════════════════════════════════
# §1  Source location & value range
# ════════════════════════════════════════════════════════════════════════

#: Values are signed 64-bit two's-complement integers.
INT_BITS = 64
INT_MIN = -(2 ** (INT_BITS - 1))
INT_MAX = 2 ** (INT_BITS - 1) - 1


@dataclass(frozen=True, slots=True)
class SourceLoc:
    """Points back to a position in an IR source text."""

    file: str = "<unknown>"
    line: int = 0
    col: int = 0

    def __str__(self) -> str:
        return f"{self.file}:{self.line}:{self.col}"


#: Sentinel for nodes built by hand (no source position).
NO_LOC = SourceLoc()


class ASTNode:
    """Base of all nodes; dispatches ``visitor.visit_<visit_name>``."""

    __slots__ = ()

    visit_name: ClassVar[str] = "node"

    def accept(self, visitor):
        method = getattr(visitor, f"visit_{self.visit_name}", None)
        if method is None:
            return visitor.generic_visit(self)
        return method(self)

    def children(self) -> Tuple[ASTNode, ...]:
        """Direct child nodes, in source order."""
        return ()


# ════════════════════════════════════════════════════════════════════════
# §2  Expressions
# ════════════════════════════════════════════════════════════════════════

class Operator(Enum):
    """Binary operators of an expression chain. All share one precedence."""

    ADD = "+"
    SUB = "-"
    GREATER_THAN = ">"

    @classmethod
    def from_symbol(cls, symbol: str) -> Operator:
        return cls(symbol.strip())

    def apply(self, lhs: int, rhs: int, span: Optional[SourceSpan] = None) -> int:
        """Combine two values, raising ``ArithmeticOverflow`` outside 64 bits."""
        if self is Operator.GREATER_THAN:
            return 1 if lhs > rhs else 0
        if self is Operator.ADD:
            result, operation = lhs + rhs, "add"
        else:
            result, operation = lhs - rhs, "sub"
        if not INT_MIN <= result <= INT_MAX:
            raise ArithmeticOverflow(operation, (lhs, rhs), span)
        return result


@dataclass(frozen=True, slots=True)
class Const(ASTNode):
    """Integer literal, already range-checked by the parser."""

    value: int
    loc: SourceLoc = field(default=NO_LOC, repr=False, compare=False)

    visit_name: ClassVar[str] = "const"

    def pretty(self) -> str:
        return str(self.value)


@dataclass(frozen=True, slots=True)
class Var(ASTNode):
    """Reference to a variable; resolved only at evaluation time."""

    name: str
    loc: SourceLoc = field(default=NO_LOC, repr=False, compare=False)

    visit_name: ClassVar[str] = "var"

    def pretty(self) -> str:
        return self.name


@dataclass(frozen=True, slots=True)
class CharLit(ASTNode):
    """Single-letter literal such as ``'a'``; ``value`` is its ordinal."""

    letter: str
    value: int = field(init=False)
    loc: SourceLoc = field(default=NO_LOC, repr=False, compare=False)

    visit_name: ClassVar[str] = "char_lit"

    def __post_init__(self) -> None:
        object.__setattr__(self, "value", ord(self.letter))

    def pretty(self) -> str:
        return f"'{self.letter}'"


@dataclass(frozen=True, slots=True)
class Group(ASTNode):
    """Parenthesised sub-expression."""

    expr: Expr
    loc: SourceLoc = field(default=NO_LOC, repr=False, compare=False)

    visit_name: ClassVar[str] = "group"

    def children(self) -> Tuple[ASTNode, ...]:
        return (self.expr,)

    def pretty(self) -> str:
        return f"({self.expr.pretty()})"


#: Leaves (and the parenthesised expression) of an expression chain.
Term = Union[Const, Var, CharLit, Group]


@dataclass(frozen=True, slots=True)
class Expr(ASTNode):
    """A left-to-right chain ``head (op term)*`` without precedence tiers."""

    head: Term
    rest: Tuple[Tuple[Operator, Term], ...] = ()
    loc: SourceLoc = field(default=NO_LOC, repr=False, compare=False)

    visit_name: ClassVar[str] = "expr"

    @property
    def terms(self) -> Tuple[Term, ...]:
        return (self.head,) + tuple(term for _, term in self.rest)

    @property
    def operators(self) -> Tuple[Operator, ...]:
        return tuple(op for op, _ in self.rest)

    def children(self) -> Tuple[ASTNode, ...]:
        return self.terms

    def pretty(self) -> str:
        parts = [self.head.pretty()]
        for op, term in self.rest:
            parts.append(op.value)
            parts.append(term.pretty())
        return " ".join(parts)

    def const_value(self) -> Optional[int]:
        """Fold the chain if it references no variables.

        Returns ``None`` when a ``Var`` appears anywhere in the chain or when
        a folding step would overflow (the evaluator reports that case).
        """
        acc = _term_const_value(self.head)
        if acc is None:
            return None
        for op, term in self.rest:
            rhs = _term_const_value(term)
            if rhs is None:
                return None
            try:
                acc = op.apply(acc, rhs)
            except ArithmeticOverflow:
                return None
        return acc


def _term_const_value(term: Term) -> Optional[int]:
    if isinstance(term, (Const, CharLit)):
        return term.value
    if isinstance(term, Group):
        return term.expr.const_value()
    return None


# ════════════════════════════════════════════════════════════════════════
# §3  Statements
# ════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True, slots=True)
class Decl(ASTNode):
    """``let name`` or ``let name = init``."""

    name: str
    init: Optional[Expr] = None
    loc: SourceLoc = field(default=NO_LOC, repr=False, compare=False)

    visit_name: ClassVar[str] = "decl"

    def children(self) -> Tuple[ASTNode, ...]:
        return (self.init,) if self.init is not None else ()


@dataclass(frozen=True, slots=True)
class Assign(ASTNode):
    """``name = value``."""

    name: str
    value: Expr
    loc: SourceLoc = field(default=NO_LOC, repr=False, compare=False)

    visit_name: ClassVar[str] = "assign"

    def children(self) -> Tuple[ASTNode, ...]:
        return (self.value,)


@dataclass(frozen=True, slots=True)
class AddAssign(ASTNode):
    """``name += value``."""

    name: str
    value: Expr
    loc: SourceLoc = field(default=NO_LOC, repr=False, compare=False)

    visit_name: ClassVar[str] = "add_assign"

    def children(self) -> Tuple[ASTNode, ...]:
        return (self.value,)


@dataclass(frozen=True, slots=True)
class SubAssign(ASTNode):
    """``name -= value``."""

    name: str
    value: Expr
    loc: SourceLoc = field(default=NO_LOC, repr=False, compare=False)

    visit_name: ClassVar[str] = "sub_assign"

    def children(self) -> Tuple[ASTNode, ...]:
        return (self.value,)


@dataclass(frozen=True, slots=True)
class While(ASTNode):
    """``while cond { body }``; the condition is re-checked before every pass."""

    cond: Expr
    body: Tuple[Statement, ...] = ()
    loc: SourceLoc = field(default=NO_LOC, repr=False, compare=False)

    visit_name: ClassVar[str] = "while"

    def children(self) -> Tuple[ASTNode, ...]:
        return (self.cond,) + self.body


@dataclass(frozen=True, slots=True)
class If(ASTNode):
    """``if cond { body }``; there is no else branch."""

    cond: Expr
    body: Tuple[Statement, ...] = ()
    loc: SourceLoc = field(default=NO_LOC, repr=False, compare=False)

    visit_name: ClassVar[str] = "if"

    def children(self) -> Tuple[ASTNode, ...]:
        return (self.cond,) + self.body


Statement = Union[Decl, Assign, AddAssign, SubAssign, While, If]


@dataclass(frozen=True, slots=True)
class Program(ASTNode):
    """Root node: the top-level statement sequence."""

    body: Tuple[Statement, ...] = ()
    loc: SourceLoc = field(default=NO_LOC, repr=False, compare=False)

    visit_name: ClassVar[str] = "program"

    def children(self) -> Tuple[ASTNode, ...]:
        return self.body

    def __len__(self) -> int:
        return len(self.body)

    def __iter__(self):
        return iter(self.body)


__all__ = [
    "INT_BITS",
    "INT_MIN",
    "INT_MAX",
    "SourceLoc",
    "NO_LOC",
    "ASTNode",
    "Operator",
    "Const",
    "Var",
    "CharLit",
    "Group",
    "Term",
    "Expr",
    "Decl",
    "Assign",
    "AddAssign",
    "SubAssign",
    "While",
    "If",
    "Statement",
    "Program",
]
