# tests/test_errors.py
"""
Tests for the error taxonomy, error codes and message rendering.
"""

import json

import pytest

from irwalk import errors
from irwalk.ast import SourceLoc, Var


class TestErrorCodes:

    def test_code_format(self):
        assert errors.IrErrorCodes.UNEXPECTED_TOKEN.code == "IR-1000"
        assert str(errors.IrErrorCodes.LITERAL_OVERFLOW) == "IR-2001"
        assert errors.IrErrorCodes.ARITHMETIC_OVERFLOW.code == "IR-5002"
        assert errors.IrErrorCodes.STEP_LIMIT_EXCEEDED.code == "IR-6001"

    def test_phases_follow_ranges(self):
        codes = errors.IrErrorCodes
        assert codes.UNEXPECTED_EOF.phase is errors.ErrorPhase.SYNTAX
        assert codes.LITERAL_OVERFLOW.phase is errors.ErrorPhase.BUILD
        assert codes.UNDEFINED_VARIABLE.phase is errors.ErrorPhase.RUNTIME
        assert codes.TIMEOUT_EXCEEDED.phase is errors.ErrorPhase.HOST
        assert codes.NESTING_TOO_DEEP.phase is errors.ErrorPhase.SYNTAX
        assert codes.DEPTH_LIMIT_EXCEEDED.phase is errors.ErrorPhase.HOST
        assert codes.CELL_RANGE.phase is errors.ErrorPhase.CODEGEN
        assert codes.UNBALANCED_LOOP.phase is errors.ErrorPhase.MACHINE

    def test_backend_codes(self):
        codes = errors.IrErrorCodes
        assert codes.NESTING_TOO_DEEP.code == "IR-1002"
        assert codes.DEPTH_LIMIT_EXCEEDED.code == "IR-6003"
        assert codes.CELL_RANGE.code == "IR-7001"
        assert codes.UNRESOLVED_VARIABLE.code == "IR-7002"
        assert codes.UNBALANCED_LOOP.code == "IR-7101"

    def test_every_error_is_an_error(self):
        assert list(errors.ErrorSeverity) == [errors.ErrorSeverity.ERROR]
        assert not hasattr(errors.IrError, "with_hint")
        assert not hasattr(errors.ErrorMessage, "with_hint")

    def test_equality_and_hash(self):
        a = errors.ErrorCode("IR", 1000, errors.ErrorCategory.UNEXPECTED_TOKEN,
                             errors.ErrorPhase.SYNTAX)
        assert a == errors.IrErrorCodes.UNEXPECTED_TOKEN
        assert len({a, errors.IrErrorCodes.UNEXPECTED_TOKEN}) == 1


class TestHierarchy:

    @pytest.mark.parametrize("exc", [
        errors.SyntaxError("identifier"),
        errors.UnexpectedEOFError("'}'"),
        errors.LiteralOverflowError("99999999999999999999"),
        errors.UndefinedVariable("x"),
        errors.ArithmeticOverflow("add", (1, 2)),
        errors.ExecutionLimitExceeded("steps", 10),
        errors.NestingTooDeepError(),
        errors.CellRangeError(300),
        errors.UnresolvedVariable("x"),
        errors.UnbalancedLoopError("[", 4),
    ])
    def test_all_derive_from_ir_error(self, exc):
        assert isinstance(exc, errors.IrError)
        assert isinstance(exc, Exception)

    def test_runtime_errors(self):
        assert issubclass(errors.UndefinedVariable, errors.RuntimeError)
        assert issubclass(errors.ArithmeticOverflow, errors.RuntimeError)
        assert not issubclass(errors.ExecutionLimitExceeded, errors.RuntimeError)

    def test_eof_is_a_syntax_error(self):
        assert issubclass(errors.UnexpectedEOFError, errors.SyntaxError)

    def test_nesting_is_a_syntax_error(self):
        assert issubclass(errors.NestingTooDeepError, errors.SyntaxError)

    def test_compile_errors(self):
        assert issubclass(errors.CellRangeError, errors.CompileError)
        assert issubclass(errors.UnresolvedVariable, errors.CompileError)
        assert not issubclass(errors.UnbalancedLoopError, errors.CompileError)

    def test_builtins_are_not_shadowed_elsewhere(self):
        assert errors.SyntaxError is not SyntaxError
        assert not issubclass(errors.RuntimeError, RuntimeError)


class TestSourceSpan:

    def test_from_offset(self):
        text = "let x = 1\nlet y = ;"
        span = errors.SourceSpan.from_offset(text, 18, "f.ir", length=1)
        assert (span.line, span.column, span.end_column) == (2, 9, 9)
        assert str(span) == "f.ir:2:9"

    def test_from_node(self):
        span = errors.SourceSpan.from_node(Var("x", loc=SourceLoc("a.ir", 3, 4)))
        assert (span.file, span.line, span.column) == ("a.ir", 3, 4)

    def test_unknown(self):
        assert str(errors.SourceSpan()) == "<unknown location>"


class TestMessages:

    def test_syntax_error_message(self):
        exc = errors.SyntaxError("identifier", got="=")
        assert exc.message == "expected identifier, found '='"

    def test_eof_message(self):
        exc = errors.UnexpectedEOFError("'}'")
        assert exc.message == "unexpected end of input, expected '}'"

    def test_arithmetic_overflow_message(self):
        exc = errors.ArithmeticOverflow("sub", (-5, 7))
        assert exc.message == "arithmetic overflow in -5 - 7"
        assert exc.operands == (-5, 7)

    def test_limit_messages(self):
        assert "100 steps" in errors.ExecutionLimitExceeded("steps", 100).message
        assert "0.5s" in errors.ExecutionLimitExceeded("timeout", 0.5).message
        assert "1000 frames" in errors.ExecutionLimitExceeded("depth", 1000).message

    def test_long_literal_is_shortened_in_message(self):
        literal = "1" * 100
        exc = errors.LiteralOverflowError(literal)
        assert exc.literal == literal
        assert literal not in exc.message
        assert "(100 digits)" in exc.message

    def test_backend_messages(self):
        assert errors.CellRangeError(256).message == (
            "constant 256 does not fit an 8-bit cell (0..255)")
        assert errors.UnbalancedLoopError("]", 7).message == "unmatched ']' at offset 7"
        assert errors.UnresolvedVariable("n").error_message.hint == "declare it first with 'let n'"

    def test_gcc_format_with_source_and_hint(self):
        span = errors.SourceSpan(file="p.ir", line=1, column=5)
        exc = errors.UndefinedVariable("y", span).with_source("x = y + 1")
        lines = exc.to_gcc_format().splitlines()
        assert lines[0] == "p.ir:1:5: error: undefined variable 'y' [IR-5001]"
        assert lines[1] == "    x = y + 1"
        assert lines[2] == "        ^"
        assert lines[3] == "hint: declare it first with 'let y'"

    def test_json(self):
        span = errors.SourceSpan(file="p.ir", line=2, column=3)
        payload = errors.LiteralOverflowError("99999999999999999999", span).to_json()
        assert payload["code"] == "IR-2001"
        assert payload["phase"] == "build"
        assert payload["location"]["line"] == 2
        assert json.loads(json.dumps(payload)) == payload
