"""
IR Static Checks

Optional, advisory analysis over an IR AST. Findings are diagnostics, never
errors: a program that draws warnings still evaluates exactly as it would
without the analysis.

Checks:
1. undeclaredVariable - a name is read or assigned before any textual ``let``
2. infiniteLoop       - a ``while`` condition folds to a nonzero constant
3. deadBlock          - a ``while``/``if`` condition folds to zero
4. redeclaration      - a ``let`` repeats an earlier declaration

The analysis is purely textual: it walks statements in source order and does
not follow control flow, so a ``let`` inside an ``if`` body counts as a
declaration for everything after it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Set

import irwalk.ast as A
from irwalk.visitor import DepthFirstVisitor

logger = logging.getLogger(__name__)

# ============================================================================
# PART 1: DIAGNOSTIC MODEL
# ============================================================================


class DiagnosticSeverity(Enum):
    """Severity levels for static-check diagnostics."""
    WARNING = "warning"          # Likely bug
    STYLE = "style"              # Suspicious but harmless
    INFORMATION = "information"  # Informational message


@dataclass(frozen=True, slots=True)
class Diagnostic:
    """
    Structured finding from the static checks.

    Attributes:
        error_id: Identifier of the check (e.g. "infiniteLoop")
        message: Human-readable description of the issue
        severity: How serious the issue is
        loc: Source location of the offending node
    """
    error_id: str
    message: str
    severity: DiagnosticSeverity
    loc: A.SourceLoc = A.NO_LOC

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "errorId": self.error_id,
            "message": self.message,
            "severity": self.severity.value,
            "location": {
                "file": self.loc.file,
                "line": self.loc.line,
                "column": self.loc.col,
            },
        }

    def to_gcc_format(self) -> str:
        """Format as GCC-style diagnostic string."""
        return f"{self.loc}: {self.severity.value}: [{self.error_id}] {self.message}"


class DiagnosticCollector:
    """Collects diagnostics in report order."""

    def __init__(self) -> None:
        self._diagnostics: List[Diagnostic] = []

    def report_from_ast(
        self,
        error_id: str,
        message: str,
        node: A.ASTNode,
        severity: DiagnosticSeverity = DiagnosticSeverity.WARNING,
    ) -> None:
        """Report a diagnostic located at an AST node."""
        loc = getattr(node, "loc", None) or A.NO_LOC
        self._diagnostics.append(Diagnostic(error_id, message, severity, loc))

    @property
    def diagnostics(self) -> List[Diagnostic]:
        """Get all collected diagnostics."""
        return list(self._diagnostics)

    def clear(self) -> None:
        self._diagnostics.clear()


# ============================================================================
# PART 2: ANALYZER
# ============================================================================


class SemanticAnalyzer(DepthFirstVisitor):
    """
    Runs all static checks over a ``Program``.

    Usage::

        for diag in SemanticAnalyzer().analyze(program):
            print(diag.to_gcc_format())
    """

    def __init__(self) -> None:
        self.collector = DiagnosticCollector()
        self._declared: Set[str] = set()
        self._reported: Set[str] = set()

    def analyze(self, program: A.Program) -> List[Diagnostic]:
        self.collector.clear()
        self._declared.clear()
        self._reported.clear()
        self.visit(program)
        logger.debug("static checks produced %d diagnostic(s)",
                     len(self.collector.diagnostics))
        return self.collector.diagnostics

    def _check_declared(self, node: A.ASTNode, name: str) -> None:
        # One report per name keeps a loop body from flooding the output.
        if name in self._declared or name in self._reported:
            return
        self._reported.add(name)
        self.collector.report_from_ast(
            "undeclaredVariable",
            f"variable '{name}' is used before any 'let {name}'",
            node,
        )

    def _check_condition(self, node: A.ASTNode, keyword: str,
                         cond: A.Expr) -> None:
        value: Optional[int] = cond.const_value()
        if value is None:
            return
        if value == 0:
            self.collector.report_from_ast(
                "deadBlock",
                f"'{keyword}' condition '{cond.pretty()}' is always false; "
                "the body never runs",
                node,
                DiagnosticSeverity.STYLE,
            )
        elif keyword == "while":
            self.collector.report_from_ast(
                "infiniteLoop",
                f"'while' condition '{cond.pretty()}' is always true; "
                "the loop never terminates",
                node,
            )

    # --- Statements ---

    def visit_decl(self, node: A.Decl) -> None:
        if node.init is not None:
            self.visit(node.init)
        if node.name in self._declared:
            self.collector.report_from_ast(
                "redeclaration",
                f"'{node.name}' is declared again; the new value replaces the old one",
                node,
                DiagnosticSeverity.INFORMATION,
            )
        self._declared.add(node.name)

    def visit_assign(self, node: A.Assign) -> None:
        self._check_declared(node, node.name)
        self.generic_visit(node)

    def visit_add_assign(self, node: A.AddAssign) -> None:
        self._check_declared(node, node.name)
        self.generic_visit(node)

    def visit_sub_assign(self, node: A.SubAssign) -> None:
        self._check_declared(node, node.name)
        self.generic_visit(node)

    def visit_while(self, node: A.While) -> None:
        self._check_condition(node, "while", node.cond)
        self.generic_visit(node)

    def visit_if(self, node: A.If) -> None:
        self._check_condition(node, "if", node.cond)
        self.generic_visit(node)

    # --- Expressions ---

    def visit_var(self, node: A.Var) -> None:
        self._check_declared(node, node.name)


def analyze(program: A.Program) -> List[Diagnostic]:
    """Run the static checks over *program*."""
    return SemanticAnalyzer().analyze(program)


__all__ = [
    "DiagnosticSeverity",
    "Diagnostic",
    "DiagnosticCollector",
    "SemanticAnalyzer",
    "analyze",
]
