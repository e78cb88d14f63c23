# tests/test_end_to_end.py
"""
End-to-end tests through the public package API (irwalk.parse / evaluate / run).
"""

import pytest

import irwalk
from irwalk import errors
from tests.conftest import SAMPLE_COUNTDOWN, SAMPLE_NESTED


class TestPublicApi:

    def test_exports(self):
        for name in ("parse", "evaluate", "run", "Environment", "RuntimeConfig"):
            assert hasattr(irwalk, name)

    def test_parse_then_evaluate(self):
        program = irwalk.parse("let x = 2 x += x")
        assert irwalk.evaluate(program) == {"x": 4}

    def test_evaluating_one_program_twice(self):
        program = irwalk.parse(SAMPLE_NESTED)
        assert irwalk.evaluate(program) == irwalk.evaluate(program)


class TestLanguageProperties:

    @pytest.mark.parametrize("source, expected", [
        ("let x", {"x": 0}),
        ("let x = 3 + 4 > 2", {"x": 1}),
        ("let x = 'a' + 1", {"x": 98}),
        ("let x = 0 while x > 5 { x = x + 1 } ", {"x": 0}),
        ("let x = 5 x += 3", {"x": 8}),
        ("let x = 5 x -= 3", {"x": 2}),
        (SAMPLE_COUNTDOWN, {"n": 0, "sum": 55}),
    ])
    def test_final_environment(self, source, expected):
        assert irwalk.run(source) == expected

    @pytest.mark.parametrize("source", ["x = 1", "x += 3", "x -= 3", "let y = x"])
    def test_undefined_variable(self, source):
        with pytest.raises(errors.UndefinedVariable) as info:
            irwalk.run(source)
        assert info.value.name == "x"

    def test_syntax_error(self):
        with pytest.raises(errors.SyntaxError):
            irwalk.parse("let = 5")

    def test_literal_overflow(self):
        with pytest.raises(errors.LiteralOverflowError):
            irwalk.run("let x = 9223372036854775808")

    def test_arithmetic_overflow(self):
        with pytest.raises(errors.ArithmeticOverflow):
            irwalk.run("let x = 9223372036854775807 + 1")

    def test_host_step_limit(self):
        with pytest.raises(errors.ExecutionLimitExceeded):
            irwalk.run("while 1 { }", irwalk.RuntimeConfig(max_steps=100))

    def test_no_error_is_swallowed(self):
        # The failing statement stops the run; nothing after it executes.
        with pytest.raises(errors.UndefinedVariable):
            irwalk.run("let a = 1 b = 2 let c = 3")
