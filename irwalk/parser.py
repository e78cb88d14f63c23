"""
parser.py: IR AST builder
=========================

Turns IR source text into an :class:`irwalk.ast.Program`.

The recognizer (:data:`irwalk.grammar.IR_GRAMMAR`) produces a parsimonious
parse tree; :class:`IRASTBuilder` walks it bottom-up and builds the immutable
AST. Nothing is evaluated and no identifier is resolved here. The only
semantic check is the 64-bit range of integer literals, which happens while
the tree is built and is never deferred to evaluation.

Usage::

    from irwalk.parser import parse

    program = parse("let x = 3 + 4 > 2")

Depends on:
    - parsimonious (PEG parser, NodeVisitor)
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Any, List, Union

from parsimonious.exceptions import ParseError
from parsimonious.nodes import Node, NodeVisitor

from irwalk import ast as A
from irwalk.errors import (
    LiteralOverflowError,
    NestingTooDeepError,
    SourceSpan,
    SyntaxError as IrSyntaxError,
    UnexpectedEOFError,
)
from irwalk.grammar import IR_GRAMMAR, describe_expected

logger = logging.getLogger(__name__)

#: Maximum length of the offending text quoted in a syntax error.
_GOT_WIDTH = 20

_INT_MAX_DIGITS = len(str(A.INT_MAX))


def _items(value: Any) -> List[Any]:
    """Children of an optional/repeated match; empty matches come back as a Node."""
    return value if isinstance(value, list) else []


class IRASTBuilder(NodeVisitor):
    """Transforms a Parsimonious parse tree into the IR AST."""

    grammar = IR_GRAMMAR
    unwrapped_exceptions = (LiteralOverflowError, RecursionError)

    def __init__(self, filename: str = "<input>") -> None:
        self.filename = filename

    def generic_visit(self, node, visited_children):
        """Default: pass children up, or the node itself for leaves."""
        return visited_children or node

    def _loc(self, node: Node) -> A.SourceLoc:
        text = node.full_text
        line = text.count("\n", 0, node.start) + 1
        col = node.start - (text.rfind("\n", 0, node.start) + 1) + 1
        return A.SourceLoc(self.filename, line, col)

    # ─────────────────────────────────────────────────────────────
    # Program & Statements
    # ─────────────────────────────────────────────────────────────

    def visit_ir(self, node, visited_children):
        _, stmts, _ = visited_children
        return A.Program(body=tuple(_items(stmts)), loc=self._loc(node))

    def visit_stmt(self, node, visited_children):
        return visited_children[0]

    def visit_stmt_decl(self, node, visited_children):
        _, name, init = visited_children
        init = _items(init)
        return A.Decl(
            name=name,
            init=init[0] if init else None,
            loc=self._loc(node),
        )

    def visit_decl_init(self, node, visited_children):
        _, expr = visited_children
        return expr

    def visit_stmt_assign(self, node, visited_children):
        name, _, value = visited_children
        return A.Assign(name=name, value=value, loc=self._loc(node))

    def visit_stmt_add_assign(self, node, visited_children):
        name, _, value = visited_children
        return A.AddAssign(name=name, value=value, loc=self._loc(node))

    def visit_stmt_sub_assign(self, node, visited_children):
        name, _, value = visited_children
        return A.SubAssign(name=name, value=value, loc=self._loc(node))

    def visit_stmt_while(self, node, visited_children):
        _, cond, body = visited_children
        return A.While(cond=cond, body=body, loc=self._loc(node))

    def visit_stmt_if(self, node, visited_children):
        _, cond, body = visited_children
        return A.If(cond=cond, body=body, loc=self._loc(node))

    def visit_block(self, node, visited_children):
        _, stmts, _ = visited_children
        return tuple(_items(stmts))

    # ─────────────────────────────────────────────────────────────
    # Expressions
    # ─────────────────────────────────────────────────────────────

    def visit_expr(self, node, visited_children):
        head, rest = visited_children
        return A.Expr(head=head, rest=tuple(_items(rest)), loc=self._loc(node))

    def visit_op_term(self, node, visited_children):
        op, term = visited_children
        return (op, term)

    def visit_op(self, node, visited_children):
        return A.Operator.from_symbol(node.text)

    def visit_term(self, node, visited_children):
        term = visited_children[0]
        if isinstance(term, str):
            return A.Var(name=term, loc=self._loc(node))
        return term

    def visit_group(self, node, visited_children):
        _, expr, _ = visited_children
        return A.Group(expr=expr, loc=self._loc(node))

    # ─────────────────────────────────────────────────────────────
    # Tokens
    # ─────────────────────────────────────────────────────────────

    def visit_number(self, node, visited_children):
        literal = node.text.strip()
        # Range-check on the digit count first; int() refuses very long strings.
        digits = literal.lstrip("0") or "0"
        if len(digits) > _INT_MAX_DIGITS or int(digits) > A.INT_MAX:
            raise LiteralOverflowError(
                literal,
                SourceSpan.from_offset(
                    node.full_text, node.start, self.filename, len(literal)
                ),
                max_value=A.INT_MAX,
            )
        return A.Const(value=int(digits), loc=self._loc(node))

    def visit_char(self, node, visited_children):
        letter = node.text.strip()[1]
        return A.CharLit(letter=letter, loc=self._loc(node))

    def visit_ident(self, node, visited_children):
        return node.text.strip()


# ═══════════════════════════════════════════════════════════════════
#  PUBLIC API
# ═══════════════════════════════════════════════════════════════════

def _syntax_error(source: str, exc: ParseError, filename: str) -> IrSyntaxError:
    """Translate parsimonious' furthest failure into an IR syntax error."""
    pos = exc.pos
    expected = describe_expected(exc.expr)
    remainder = source[pos:]
    if not remainder.strip():
        span = SourceSpan.from_offset(source, pos, filename)
        return UnexpectedEOFError(expected, span)
    got = remainder.split(None, 1)[0][:_GOT_WIDTH]
    span = SourceSpan.from_offset(source, pos, filename, len(got))
    return IrSyntaxError(expected, span, got=got)


def parse(source: str, filename: str = "<input>") -> A.Program:
    """Parse IR source text into a :class:`~irwalk.ast.Program`.

    Raises:
        irwalk.errors.SyntaxError: the text does not match the grammar.
        irwalk.errors.NestingTooDeepError: blocks or groups are nested
            deeper than the recursive recognizer can follow.
        irwalk.errors.LiteralOverflowError: an integer literal exceeds 64 bits.
    """
    try:
        tree = IR_GRAMMAR.parse(source)
        program = IRASTBuilder(filename).visit(tree)
    except ParseError as exc:
        error = _syntax_error(source, exc, filename)
        logger.debug("parse of %s failed at offset %d: %s",
                     filename, exc.pos, error.message)
        raise error from None
    except RecursionError:
        logger.debug("parse of %s exhausted the recursion limit (%d)",
                     filename, sys.getrecursionlimit())
        raise NestingTooDeepError(SourceSpan(file=filename)) from None

    logger.debug("parsed %d top-level statement(s) from %s",
                 len(program), filename)
    return program


def parse_file(path: Union[str, Path]) -> A.Program:
    """Read a UTF-8 source file and parse it, using the path as file name."""
    path = Path(path)
    return parse(path.read_text(encoding="utf-8"), filename=str(path))


__all__ = ["IRASTBuilder", "parse", "parse_file"]
