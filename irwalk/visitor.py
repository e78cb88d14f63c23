"""
irwalk/visitor.py
=================

Visitor pattern infrastructure for IR AST traversal.

Provides:
- ``ASTVisitor``: abstract base with default implementations
- ``DepthFirstVisitor``: generic traversal that visits all children
"""

from __future__ import annotations

import abc
from typing import Any

from irwalk import ast as A

__all__ = [
    "ASTVisitor",
    "DepthFirstVisitor",
]


class ASTVisitor(abc.ABC):
    """Abstract base class for IR AST visitors.

    Each ``visit_X`` method corresponds to an AST node type.  The default
    implementations call ``generic_visit``, which does nothing.  Subclasses
    override the methods they care about.
    """

    def visit(self, node: A.ASTNode) -> Any:
        """Dispatch to the appropriate visit method."""
        return node.accept(self)

    def generic_visit(self, node: A.ASTNode) -> Any:
        """Called when no specific visitor method exists.

        Default: return None.  Override for catch-all behavior.
        """
        return None

    # --- Top-level ---

    def visit_program(self, node: A.Program) -> Any:
        return self.generic_visit(node)

    # --- Statements ---

    def visit_decl(self, node: A.Decl) -> Any:
        return self.generic_visit(node)

    def visit_assign(self, node: A.Assign) -> Any:
        return self.generic_visit(node)

    def visit_add_assign(self, node: A.AddAssign) -> Any:
        return self.generic_visit(node)

    def visit_sub_assign(self, node: A.SubAssign) -> Any:
        return self.generic_visit(node)

    def visit_while(self, node: A.While) -> Any:
        return self.generic_visit(node)

    def visit_if(self, node: A.If) -> Any:
        return self.generic_visit(node)

    # --- Expressions ---

    def visit_expr(self, node: A.Expr) -> Any:
        return self.generic_visit(node)

    def visit_const(self, node: A.Const) -> Any:
        return self.generic_visit(node)

    def visit_var(self, node: A.Var) -> Any:
        return self.generic_visit(node)

    def visit_char_lit(self, node: A.CharLit) -> Any:
        return self.generic_visit(node)

    def visit_group(self, node: A.Group) -> Any:
        return self.generic_visit(node)


class DepthFirstVisitor(ASTVisitor):
    """Visitor that traverses all children in depth-first order.

    Override ``enter`` / ``leave`` for pre/post-order processing, or a
    specific ``visit_X`` calling ``generic_visit`` to keep descending.
    """

    def generic_visit(self, node: A.ASTNode) -> Any:
        """Visit all children, bracketed by the enter/leave hooks."""
        self.enter(node)
        for child in node.children():
            self.visit(child)
        self.leave(node)
        return None

    # Hook methods, overridden by subclasses

    def enter(self, node: A.ASTNode) -> None:
        """Called before visiting children."""
        pass

    def leave(self, node: A.ASTNode) -> None:
        """Called after visiting children."""
        pass
