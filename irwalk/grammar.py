"""
grammar.py: IR recognizer (Parsimonious PEG)
============================================

The whole concrete syntax of the IR lives in :data:`IR_GRAMMAR_TEXT`. Every
token rule consumes its own trailing whitespace, so the only leading ``_`` is
the one at the start of ``ir``.

Notes on the rules:

* ``expr`` is a flat chain: ``+``, ``-`` and ``>`` share one precedence level
  and associate left, so ``3 + 4 > 2`` is ``(3 + 4) > 2``.
* ``let``, ``while`` and ``if`` are keywords only when not followed by a
  letter or underscore; ``letter`` and ``iffy`` are ordinary identifiers.
* Identifiers never contain digits (``x1`` is ``x`` followed by ``1``).
* A variable reference inside an expression is a bare ``ident``; an alias
  rule such as ``var = ident`` would be folded into ``ident`` by parsimonious,
  so the AST builder wraps identifier terms itself.
* ``end`` makes trailing garbage a parse failure at the furthest position
  reached, instead of parsimonious' "didn't consume all the text".

Depends on:
    - parsimonious (PEG parser)
"""

from __future__ import annotations

from typing import Any, Dict

from parsimonious.grammar import Grammar

IR_GRAMMAR_TEXT = r'''
    # ─────────────────────────────────────────────────────────────
    # Program & Statements
    # ─────────────────────────────────────────────────────────────

    ir                  = _ stmt* end

    stmt                = stmt_decl
                        / stmt_add_assign
                        / stmt_sub_assign
                        / stmt_assign
                        / stmt_while
                        / stmt_if

    stmt_decl           = kw_let ident decl_init?
    decl_init           = assign_op expr
    stmt_assign         = ident assign_op expr
    stmt_add_assign     = ident add_assign_op expr
    stmt_sub_assign     = ident sub_assign_op expr
    stmt_while          = kw_while expr block
    stmt_if             = kw_if expr block

    block               = lbrace stmt* rbrace

    # ─────────────────────────────────────────────────────────────
    # Expressions (one precedence level, left-to-right)
    # ─────────────────────────────────────────────────────────────

    expr                = term op_term*
    op_term             = op term
    op                  = op_add / op_sub / op_gt

    term                = number / char / ident / group
    group               = lparen expr rparen

    # ─────────────────────────────────────────────────────────────
    # Tokens
    # ─────────────────────────────────────────────────────────────

    number              = ~r"[0-9]+" _
    char                = ~r"'[A-Za-z]'" _
    ident               = !~r"(let|while|if)(?![A-Za-z_])" ~r"[A-Za-z][A-Za-z_]*" _

    kw_let              = ~r"let(?![A-Za-z_])" _
    kw_while            = ~r"while(?![A-Za-z_])" _
    kw_if               = ~r"if(?![A-Za-z_])" _

    add_assign_op       = "+=" _
    sub_assign_op       = "-=" _
    assign_op           = "=" _
    op_add              = "+" _
    op_sub              = "-" _
    op_gt               = ">" _

    lbrace              = "{" _
    rbrace              = "}" _
    lparen              = "(" _
    rparen              = ")" _

    end                 = ~r"\Z"
    _                   = ~r"[ \t\r\n]*"
'''

IR_GRAMMAR = Grammar(IR_GRAMMAR_TEXT)

# Human-readable descriptions of what a failing rule was looking for.
EXPECTED: Dict[str, str] = {
    "ir": "end of input",
    "end": "statement or end of input",
    "stmt": "statement",
    "stmt_decl": "declaration",
    "decl_init": "'='",
    "stmt_assign": "assignment",
    "stmt_add_assign": "'+=' assignment",
    "stmt_sub_assign": "'-=' assignment",
    "stmt_while": "'while' loop",
    "stmt_if": "'if' statement",
    "block": "'{'",
    "expr": "expression",
    "op_term": "operator",
    "op": "operator ('+', '-' or '>')",
    "term": "expression",
    "group": "'('",
    "number": "number",
    "char": "character literal",
    "ident": "identifier",
    "kw_let": "'let'",
    "kw_while": "'while'",
    "kw_if": "'if'",
    "add_assign_op": "'+='",
    "sub_assign_op": "'-='",
    "assign_op": "'='",
    "op_add": "'+'",
    "op_sub": "'-'",
    "op_gt": "'>'",
    "lbrace": "'{'",
    "rbrace": "'}'",
    "lparen": "'('",
    "rparen": "')'",
}


def describe_expected(expr: Any) -> str:
    """Describe the parsimonious expression a parse failed on."""
    if expr is None:
        return "statement"
    name = getattr(expr, "name", "")
    if name:
        return EXPECTED.get(name, name)
    return str(expr)


__all__ = ["IR_GRAMMAR_TEXT", "IR_GRAMMAR", "EXPECTED", "describe_expected"]
