# irwalk/errors.py
"""
irwalk Error Types and Reporting Module

This module provides the error handling infrastructure for the irwalk
pipeline (recognizer → AST builder → evaluator). Every failure path of the
core raises one of the exceptions below; none is swallowed.

Architecture Overview:
─────────────────────
┌─────────────────────────────────────────────────────────────────────────────┐
│                          Error Hierarchy                                     │
├─────────────────────────────────────────────────────────────────────────────┤
│  IrError (base)                                                             │
│  ├── SyntaxError             - Source text does not match the grammar       │
│  │   ├── UnexpectedEOFError  - Input ended inside a construct               │
│  │   └── NestingTooDeepError - Blocks or groups nested too deeply to parse  │
│  ├── LiteralOverflowError    - Numeric literal exceeds 64 bits              │
│  ├── RuntimeError            - Evaluation failures                          │
│  │   ├── UndefinedVariable   - Read/write of an unbound name                │
│  │   └── ArithmeticOverflow  - Add/Sub left the 64-bit range                │
│  ├── CompileError            - Brainfuck code generation failed             │
│  │   ├── CellRangeError      - Constant does not fit an 8-bit cell          │
│  │   └── UnresolvedVariable  - Name used before any textual 'let'           │
│  ├── UnbalancedLoopError     - Brainfuck text has unmatched brackets        │
│  └── ExecutionLimitExceeded  - Host-imposed step/time/depth limit           │
└─────────────────────────────────────────────────────────────────────────────┘

Error Codes:
────────────
Each error has a unique code following the pattern IR-XXXX where XXXX is a
4-digit number in ranges:
  - 1000-1999: Syntax errors
  - 2000-2999: AST construction errors
  - 5000-5999: Runtime errors
  - 6000-6999: Execution limits imposed by the host
  - 7000-7999: Brainfuck backend (code generation and the cell machine)

``SyntaxError`` and ``RuntimeError`` deliberately shadow the builtins inside
this module. Import them qualified (``errors.SyntaxError``) or aliased.

Example Usage:
──────────────
    from irwalk import errors

    try:
        program = parse(text)
    except errors.SyntaxError as exc:
        print(exc.to_gcc_format())
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto, unique
from typing import Any, Dict, List, Optional, Tuple


# ═══════════════════════════════════════════════════════════════════════════════
# ERROR SEVERITY AND CLASSIFICATION
# ═══════════════════════════════════════════════════════════════════════════════

@unique
class ErrorSeverity(Enum):
    """Severity levels for irwalk errors."""

    ERROR = "error"


@unique
class ErrorPhase(Enum):
    """Pipeline phase where the error occurred."""

    SYNTAX = "syntax"          # Recognizer
    BUILD = "build"            # AST construction
    RUNTIME = "runtime"        # Evaluation
    HOST = "host"              # Limits imposed by the embedding host
    CODEGEN = "codegen"        # Brainfuck code generation
    MACHINE = "machine"        # Brainfuck cell machine


@unique
class ErrorCategory(Enum):
    """Fine-grained error categories for filtering and statistics."""

    # Syntax categories
    UNEXPECTED_TOKEN = auto()
    UNEXPECTED_EOF = auto()
    NESTING_TOO_DEEP = auto()

    # Build categories
    LITERAL_OVERFLOW = auto()

    # Runtime categories
    UNDEFINED_VARIABLE = auto()
    ARITHMETIC_OVERFLOW = auto()

    # Host categories
    STEP_LIMIT = auto()
    TIMEOUT = auto()
    DEPTH_LIMIT = auto()

    # Backend categories
    CELL_RANGE = auto()
    UNRESOLVED_VARIABLE = auto()
    UNBALANCED_LOOP = auto()


# ═══════════════════════════════════════════════════════════════════════════════
# ERROR CODES
# ═══════════════════════════════════════════════════════════════════════════════

class ErrorCode:
    """
    Structured error codes for irwalk errors.

    Error codes follow the pattern IR-NNNN where NNNN is a 4-digit number
    whose leading digit identifies the phase (see module docstring).
    """

    __slots__ = ("prefix", "number", "category", "phase", "default_severity")

    def __init__(
        self,
        prefix: str,
        number: int,
        category: ErrorCategory,
        phase: ErrorPhase,
        default_severity: ErrorSeverity = ErrorSeverity.ERROR,
    ) -> None:
        self.prefix = prefix
        self.number = number
        self.category = category
        self.phase = phase
        self.default_severity = default_severity

    @property
    def code(self) -> str:
        """Get the full error code string."""
        return f"{self.prefix}-{self.number:04d}"

    def __str__(self) -> str:
        return self.code

    def __repr__(self) -> str:
        return f"ErrorCode({self.code!r}, {self.category.name})"

    def __hash__(self) -> int:
        return hash((self.prefix, self.number))

    def __eq__(self, other: object) -> bool:
        if isinstance(other, ErrorCode):
            return self.prefix == other.prefix and self.number == other.number
        return NotImplemented


class IrErrorCodes:
    """Predefined error codes for the IR language."""

    # ═══════════════════════════════════════════════════════════════════════════
    # SYNTAX ERRORS (1000-1999)
    # ═══════════════════════════════════════════════════════════════════════════

    UNEXPECTED_TOKEN = ErrorCode(
        "IR", 1000, ErrorCategory.UNEXPECTED_TOKEN, ErrorPhase.SYNTAX
    )
    UNEXPECTED_EOF = ErrorCode(
        "IR", 1001, ErrorCategory.UNEXPECTED_EOF, ErrorPhase.SYNTAX
    )
    NESTING_TOO_DEEP = ErrorCode(
        "IR", 1002, ErrorCategory.NESTING_TOO_DEEP, ErrorPhase.SYNTAX
    )

    # ═══════════════════════════════════════════════════════════════════════════
    # AST CONSTRUCTION ERRORS (2000-2999)
    # ═══════════════════════════════════════════════════════════════════════════

    LITERAL_OVERFLOW = ErrorCode(
        "IR", 2001, ErrorCategory.LITERAL_OVERFLOW, ErrorPhase.BUILD
    )

    # ═══════════════════════════════════════════════════════════════════════════
    # RUNTIME ERRORS (5000-5999)
    # ═══════════════════════════════════════════════════════════════════════════

    UNDEFINED_VARIABLE = ErrorCode(
        "IR", 5001, ErrorCategory.UNDEFINED_VARIABLE, ErrorPhase.RUNTIME
    )
    ARITHMETIC_OVERFLOW = ErrorCode(
        "IR", 5002, ErrorCategory.ARITHMETIC_OVERFLOW, ErrorPhase.RUNTIME
    )

    # ═══════════════════════════════════════════════════════════════════════════
    # HOST LIMITS (6000-6999)
    # ═══════════════════════════════════════════════════════════════════════════

    STEP_LIMIT_EXCEEDED = ErrorCode(
        "IR", 6001, ErrorCategory.STEP_LIMIT, ErrorPhase.HOST
    )
    TIMEOUT_EXCEEDED = ErrorCode(
        "IR", 6002, ErrorCategory.TIMEOUT, ErrorPhase.HOST
    )
    DEPTH_LIMIT_EXCEEDED = ErrorCode(
        "IR", 6003, ErrorCategory.DEPTH_LIMIT, ErrorPhase.HOST
    )

    # ═══════════════════════════════════════════════════════════════════════════
    # BRAINFUCK BACKEND (7000-7999)
    # ═══════════════════════════════════════════════════════════════════════════

    CELL_RANGE = ErrorCode(
        "IR", 7001, ErrorCategory.CELL_RANGE, ErrorPhase.CODEGEN
    )
    UNRESOLVED_VARIABLE = ErrorCode(
        "IR", 7002, ErrorCategory.UNRESOLVED_VARIABLE, ErrorPhase.CODEGEN
    )
    UNBALANCED_LOOP = ErrorCode(
        "IR", 7101, ErrorCategory.UNBALANCED_LOOP, ErrorPhase.MACHINE
    )


# ═══════════════════════════════════════════════════════════════════════════════
# SOURCE LOCATION TYPES
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class SourceSpan:
    """
    A span of source code with start and end positions.

    ``offset`` is the 0-based character offset of the start position, or -1
    when the span was not derived from raw text.
    """

    file: str = ""
    line: int = 0
    column: int = 0
    end_line: int = 0
    end_column: int = 0
    offset: int = -1

    def __post_init__(self) -> None:
        # Normalize: if end not specified, use start
        if self.end_line == 0:
            object.__setattr__(self, "end_line", self.line)
        if self.end_column == 0:
            object.__setattr__(self, "end_column", self.column)

    @classmethod
    def from_offset(cls, text: str, offset: int, file: str = "",
                    length: int = 0) -> "SourceSpan":
        """Create a SourceSpan from a character offset into *text*."""
        line = text.count("\n", 0, offset) + 1
        column = offset - (text.rfind("\n", 0, offset) + 1) + 1
        return cls(file=file, line=line, column=column,
                   end_line=line, end_column=column + max(length, 1) - 1,
                   offset=offset)

    @classmethod
    def from_node(cls, node: Any) -> "SourceSpan":
        """Create a SourceSpan from an AST node carrying a ``loc``."""
        loc = getattr(node, "loc", None)
        if loc is None:
            return cls()
        return cls(
            file=getattr(loc, "file", ""),
            line=getattr(loc, "line", 0),
            column=getattr(loc, "col", 0),
        )

    def __str__(self) -> str:
        if not self.file and self.line == 0:
            return "<unknown location>"

        parts = []
        if self.file:
            parts.append(self.file)
        if self.line > 0:
            parts.append(str(self.line))
            if self.column > 0:
                parts.append(str(self.column))

        return ":".join(parts)


# ═══════════════════════════════════════════════════════════════════════════════
# ERROR MESSAGE FORMATTING
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass
class ErrorMessage:
    """
    A complete error message with all context.

    This is the internal representation of an error before it's printed.
    """

    code: ErrorCode
    message: str
    span: SourceSpan = field(default_factory=SourceSpan)
    severity: Optional[ErrorSeverity] = None  # None means use code's default
    hint: str = ""
    source_line: str = ""

    def __post_init__(self) -> None:
        if self.severity is None:
            self.severity = self.code.default_severity

    def with_source(self, line: str) -> "ErrorMessage":
        self.source_line = line
        return self

    def to_gcc_format(self) -> str:
        """Format as a GCC-style error message."""
        severity = self.severity.value if self.severity else "error"
        main = f"{self.span}: {severity}: {self.message} [{self.code}]"

        lines = [main]

        # Source line with caret
        if self.source_line:
            lines.append(f"    {self.source_line}")
            if self.span.column > 0:
                caret_pos = self.span.column - 1
                caret_len = max(1, self.span.end_column - self.span.column + 1)
                lines.append(f"    {' ' * caret_pos}{'^' * caret_len}")

        if self.hint:
            lines.append(f"hint: {self.hint}")

        return "\n".join(lines)

    def to_json(self) -> Dict[str, Any]:
        """Convert to JSON-serializable dict."""
        return {
            "code": self.code.code,
            "message": self.message,
            "severity": self.severity.value if self.severity else "error",
            "location": {
                "file": self.span.file,
                "line": self.span.line,
                "column": self.span.column,
                "end_line": self.span.end_line,
                "end_column": self.span.end_column,
            },
            "phase": self.code.phase.value,
            "category": self.code.category.name,
            "hint": self.hint,
        }

    def __str__(self) -> str:
        return self.to_gcc_format()


# ═══════════════════════════════════════════════════════════════════════════════
# EXCEPTION CLASSES
# ═══════════════════════════════════════════════════════════════════════════════

class IrError(Exception):
    """
    Base exception for all irwalk errors.

    Carries structured error information that can be pretty-printed or
    serialized to JSON by a host.
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode,
        span: Optional[SourceSpan] = None,
        severity: Optional[ErrorSeverity] = None,
        hint: str = "",
    ) -> None:
        super().__init__(message)
        self.error_message = ErrorMessage(
            code=code,
            message=message,
            span=span or SourceSpan(),
            severity=severity,
            hint=hint,
        )

    @property
    def message(self) -> str:
        return self.error_message.message

    @property
    def code(self) -> ErrorCode:
        return self.error_message.code

    @property
    def span(self) -> SourceSpan:
        return self.error_message.span

    @property
    def phase(self) -> ErrorPhase:
        return self.code.phase

    def with_source(self, line: str) -> "IrError":
        self.error_message.with_source(line)
        return self

    def to_gcc_format(self) -> str:
        return self.error_message.to_gcc_format()

    def to_json(self) -> Dict[str, Any]:
        return self.error_message.to_json()

    def __str__(self) -> str:
        return self.to_gcc_format()


# ───────────────────────────────────────────────────────────────────────────────
# SYNTAX ERRORS
# ───────────────────────────────────────────────────────────────────────────────

class SyntaxError(IrError):
    """Source text does not conform to the grammar.

    ``position`` is the span of the furthest point the recognizer reached;
    ``expected`` describes what the grammar wanted there.
    """

    def __init__(
        self,
        expected: str,
        span: Optional[SourceSpan] = None,
        got: str = "",
        code: Optional[ErrorCode] = None,
        message: str = "",
    ) -> None:
        if not message:
            found = f", found {got!r}" if got else ""
            message = f"expected {expected}{found}"
        super().__init__(
            message=message,
            code=code or IrErrorCodes.UNEXPECTED_TOKEN,
            span=span,
        )
        self.expected = expected
        self.got = got

    @property
    def position(self) -> SourceSpan:
        return self.span


class UnexpectedEOFError(SyntaxError):
    """Input ended inside an unfinished construct (e.g. an open block)."""

    def __init__(
        self,
        expected: str,
        span: Optional[SourceSpan] = None,
    ) -> None:
        super().__init__(
            expected=expected,
            span=span,
            code=IrErrorCodes.UNEXPECTED_EOF,
            message=f"unexpected end of input, expected {expected}",
        )


class NestingTooDeepError(SyntaxError):
    """Blocks or parenthesised groups are nested past what the recognizer
    can descend into."""

    def __init__(self, span: Optional[SourceSpan] = None) -> None:
        super().__init__(
            expected="shallower nesting",
            span=span,
            code=IrErrorCodes.NESTING_TOO_DEEP,
            message="blocks or groups are nested too deeply to parse",
        )


# ───────────────────────────────────────────────────────────────────────────────
# AST CONSTRUCTION ERRORS
# ───────────────────────────────────────────────────────────────────────────────

class LiteralOverflowError(IrError):
    """A numeric literal does not fit the 64-bit value type."""

    def __init__(
        self,
        literal: str,
        span: Optional[SourceSpan] = None,
        max_value: int = 2**63 - 1,
    ) -> None:
        shown = literal if len(literal) <= 24 else f"{literal[:20]}... ({len(literal)} digits)"
        super().__init__(
            message=f"integer literal {shown} exceeds the maximum value {max_value}",
            code=IrErrorCodes.LITERAL_OVERFLOW,
            span=span,
        )
        self.literal = literal

    @property
    def position(self) -> SourceSpan:
        return self.span


# ───────────────────────────────────────────────────────────────────────────────
# RUNTIME ERRORS
# ───────────────────────────────────────────────────────────────────────────────

class RuntimeError(IrError):
    """Error raised while evaluating a program."""


class UndefinedVariable(RuntimeError):
    """A reference, assignment, or compound assignment hit an unbound name."""

    def __init__(self, name: str, span: Optional[SourceSpan] = None) -> None:
        super().__init__(
            message=f"undefined variable {name!r}",
            code=IrErrorCodes.UNDEFINED_VARIABLE,
            span=span,
            hint=f"declare it first with 'let {name}'",
        )
        self.name = name


class ArithmeticOverflow(RuntimeError):
    """An Add/Sub step left the 64-bit two's-complement range."""

    _SYMBOLS = {"add": "+", "sub": "-"}

    def __init__(
        self,
        operation: str,
        operands: Tuple[int, int],
        span: Optional[SourceSpan] = None,
    ) -> None:
        lhs, rhs = operands
        symbol = self._SYMBOLS.get(operation, operation)
        super().__init__(
            message=f"arithmetic overflow in {lhs} {symbol} {rhs}",
            code=IrErrorCodes.ARITHMETIC_OVERFLOW,
            span=span,
        )
        self.operation = operation
        self.operands = (lhs, rhs)


# ───────────────────────────────────────────────────────────────────────────────
# HOST LIMITS
# ───────────────────────────────────────────────────────────────────────────────

class ExecutionLimitExceeded(IrError):
    """A host-imposed execution bound was hit.

    Not part of the language's error taxonomy: the language itself lets an
    always-true ``while`` run forever.
    """

    def __init__(
        self,
        limit: str,
        value: float,
        span: Optional[SourceSpan] = None,
    ) -> None:
        if limit == "timeout":
            message = f"execution exceeded the time limit of {value:g}s"
            code = IrErrorCodes.TIMEOUT_EXCEEDED
        elif limit == "depth":
            message = f"execution exceeded the nesting depth limit of {value:g} frames"
            code = IrErrorCodes.DEPTH_LIMIT_EXCEEDED
        else:
            message = f"execution exceeded the limit of {value:g} steps"
            code = IrErrorCodes.STEP_LIMIT_EXCEEDED
        super().__init__(message=message, code=code, span=span)
        self.limit = limit
        self.value = value


# ───────────────────────────────────────────────────────────────────────────────
# BRAINFUCK BACKEND
# ───────────────────────────────────────────────────────────────────────────────

class CompileError(IrError):
    """Error raised while lowering a program to Brainfuck."""


class CellRangeError(CompileError):
    """A constant does not fit the unsigned 8-bit cell of the target machine."""

    def __init__(self, value: int, span: Optional[SourceSpan] = None) -> None:
        super().__init__(
            message=f"constant {value} does not fit an 8-bit cell (0..255)",
            code=IrErrorCodes.CELL_RANGE,
            span=span,
        )
        self.value = value


class UnresolvedVariable(CompileError):
    """A name is used before any textual ``let`` gave it a cell."""

    def __init__(self, name: str, span: Optional[SourceSpan] = None) -> None:
        super().__init__(
            message=f"variable {name!r} has no cell; it is used before any 'let {name}'",
            code=IrErrorCodes.UNRESOLVED_VARIABLE,
            span=span,
            hint=f"declare it first with 'let {name}'",
        )
        self.name = name


class UnbalancedLoopError(IrError):
    """Brainfuck text handed to the cell machine has an unmatched bracket.

    ``offset`` is the 0-based index of the offending bracket in the code.
    """

    def __init__(self, bracket: str, offset: int) -> None:
        super().__init__(
            message=f"unmatched {bracket!r} at offset {offset}",
            code=IrErrorCodes.UNBALANCED_LOOP,
        )
        self.bracket = bracket
        self.offset = offset


__all__: List[str] = [
    "ErrorSeverity",
    "ErrorPhase",
    "ErrorCategory",
    "ErrorCode",
    "IrErrorCodes",
    "SourceSpan",
    "ErrorMessage",
    "IrError",
    "SyntaxError",
    "UnexpectedEOFError",
    "NestingTooDeepError",
    "LiteralOverflowError",
    "RuntimeError",
    "UndefinedVariable",
    "ArithmeticOverflow",
    "ExecutionLimitExceeded",
    "CompileError",
    "CellRangeError",
    "UnresolvedVariable",
    "UnbalancedLoopError",
]
