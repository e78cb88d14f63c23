# tests/test_runtime.py
"""
Tests for the evaluator, the Environment and the host execution limits.
"""

import logging
import sys

import pytest

from irwalk import ast as A
from irwalk import errors
from irwalk.parser import parse
from irwalk.runtime import Environment, Evaluator, RuntimeConfig, evaluate, run
from tests.conftest import (
    INT_MAX,
    INT_MIN,
    SAMPLE_CHARS,
    SAMPLE_COUNTDOWN,
    SAMPLE_GROUPS,
    SAMPLE_INFINITE,
    SAMPLE_NESTED,
)


class TestEnvironment:

    def test_declare_and_lookup(self):
        env = Environment()
        env.declare("x", 3)
        assert env.lookup("x") == 3
        assert env["x"] == 3
        assert "x" in env
        assert len(env) == 1

    def test_assign_requires_binding(self):
        env = Environment()
        with pytest.raises(errors.UndefinedVariable) as info:
            env.assign("x", 1)
        assert info.value.name == "x"

    def test_lookup_of_unbound_name(self):
        with pytest.raises(errors.UndefinedVariable):
            Environment().lookup("nope")

    def test_redeclaration_keeps_first_position(self):
        env = Environment()
        env.declare("a", 1)
        env.declare("b", 2)
        env.declare("a", 3)
        assert list(env.items()) == [("a", 3), ("b", 2)]

    def test_equality_with_dict_and_environment(self):
        env = Environment({"x": 1})
        assert env == {"x": 1}
        assert env == Environment({"x": 1})
        assert env != {"x": 2}

    def test_as_dict_is_a_copy(self):
        env = Environment({"x": 1})
        snapshot = env.as_dict()
        env.assign("x", 5)
        assert snapshot == {"x": 1}


class TestDeclarations:

    def test_default_zero(self):
        assert run("let x") == {"x": 0}

    def test_initializer(self):
        assert run("let x = 3 + 4 > 2") == {"x": 1}

    def test_redeclaration_overwrites(self):
        assert run("let x = 1 let y = 2 let x") == {"x": 0, "y": 2}

    def test_declaration_order(self):
        env = run("let b = 1 let a = 2 let c = 3")
        assert list(env) == ["b", "a", "c"]

    def test_self_reference_in_first_declaration(self):
        with pytest.raises(errors.UndefinedVariable):
            run("let x = x")


class TestAssignments:

    def test_assign(self):
        assert run("let x = 1 x = x + 10") == {"x": 11}

    def test_assign_undefined(self):
        with pytest.raises(errors.UndefinedVariable) as info:
            run("x = 1")
        assert info.value.name == "x"

    def test_compound(self):
        assert run("let x = 5 x += 3") == {"x": 8}
        assert run("let x = 5 x -= 7") == {"x": -2}

    def test_compound_undefined(self):
        with pytest.raises(errors.UndefinedVariable):
            run("x += 3")
        with pytest.raises(errors.UndefinedVariable):
            run("x -= 3")

    def test_unbound_target_reported_before_rhs(self):
        with pytest.raises(errors.UndefinedVariable) as info:
            run("x = y")
        assert info.value.name == "x"


class TestExpressions:

    def test_char_arithmetic(self):
        assert run("let x = 'a' + 1") == {"x": 98}
        assert run(SAMPLE_CHARS) == {"a": 97, "z": 90, "gap": 7}

    def test_left_to_right(self):
        assert run("let x = 10 - 3 - 2") == {"x": 5}
        assert run("let x = 1 > 0 + 5") == {"x": 6}
        assert run("let x = 2 > 1 > 0") == {"x": 1}

    def test_groups(self):
        assert run(SAMPLE_GROUPS) == {"x": 8, "y": 6}

    def test_greater_than_yields_zero_or_one(self):
        assert run("let a = 5 > 5 let b = 6 > 5") == {"a": 0, "b": 1}

    def test_undefined_reference(self):
        with pytest.raises(errors.UndefinedVariable) as info:
            run("let x = y + 1")
        assert info.value.name == "y"
        assert info.value.span.column == 9

    def test_add_overflow(self):
        with pytest.raises(errors.ArithmeticOverflow) as info:
            run(f"let x = {INT_MAX} + 1")
        assert info.value.operation == "add"
        assert info.value.operands == (INT_MAX, 1)

    def test_sub_overflow(self):
        with pytest.raises(errors.ArithmeticOverflow) as info:
            run(f"let x = 0 - {INT_MAX} - 2")
        assert info.value.operation == "sub"
        assert info.value.operands == (-INT_MAX, 2)

    def test_int_min_is_reachable(self):
        assert run(f"let x = 0 - {INT_MAX} - 1") == {"x": INT_MIN}

    def test_compound_overflow(self):
        with pytest.raises(errors.ArithmeticOverflow):
            run(f"let x = {INT_MAX} x += 1")


class TestControlFlow:

    def test_while_false_never_runs(self):
        assert run("let x = 0 while x > 5 { x = x + 1 } ") == {"x": 0}

    def test_while_counts_down(self):
        assert run(SAMPLE_COUNTDOWN) == {"n": 0, "sum": 55}

    def test_nested_loops_share_environment(self):
        env = run(SAMPLE_NESTED)
        assert env == {"i": 3, "hits": 3, "j": 2}

    def test_if_runs_once(self):
        assert run("let x = 0 if 1 { x += 1 }") == {"x": 1}
        assert run("let x = 0 if 0 { x += 1 }") == {"x": 0}

    def test_nonzero_negative_is_true(self):
        assert run("let x = 0 if 0 - 1 { x = 7 }") == {"x": 7}

    def test_block_declarations_are_global(self):
        assert run("if 1 { let inner = 4 }") == {"inner": 4}

    def test_determinism(self):
        assert run(SAMPLE_NESTED) == run(SAMPLE_NESTED)


class TestExecutionLimits:

    def test_step_limit(self, bounded_config):
        with pytest.raises(errors.ExecutionLimitExceeded) as info:
            run(SAMPLE_INFINITE, bounded_config)
        assert info.value.limit == "steps"
        assert info.value.value == 1_000
        assert info.value.code == errors.IrErrorCodes.STEP_LIMIT_EXCEEDED

    def test_limit_is_not_a_language_error(self, bounded_config):
        with pytest.raises(errors.ExecutionLimitExceeded) as info:
            run(SAMPLE_INFINITE, bounded_config)
        assert not isinstance(info.value, errors.RuntimeError)

    def test_step_budget_counts_statements_and_checks(self):
        # 2 statements + 4 condition checks + 3 body statements = 9 steps
        source = "let x = 3 while x > 0 { x -= 1 }"
        assert run(source, RuntimeConfig(max_steps=9)) == {"x": 0}
        with pytest.raises(errors.ExecutionLimitExceeded):
            run(source, RuntimeConfig(max_steps=8))

    def test_timeout(self):
        with pytest.raises(errors.ExecutionLimitExceeded) as info:
            run(SAMPLE_INFINITE, RuntimeConfig(timeout_seconds=0.05))
        assert info.value.limit == "timeout"
        assert info.value.code == errors.IrErrorCodes.TIMEOUT_EXCEEDED

    def test_nesting_past_recursion_limit(self):
        body = (A.Decl("x", A.Expr(A.Const(1))),)
        for _ in range(sys.getrecursionlimit()):
            body = (A.If(A.Expr(A.Const(1)), body),)
        with pytest.raises(errors.ExecutionLimitExceeded) as info:
            evaluate(A.Program(body))
        assert info.value.limit == "depth"
        assert info.value.code == errors.IrErrorCodes.DEPTH_LIMIT_EXCEEDED

    def test_unbounded_by_default(self):
        assert not RuntimeConfig().bounded
        assert RuntimeConfig().validate() == []

    def test_invalid_config_is_logged(self, caplog):
        with caplog.at_level(logging.WARNING, logger="irwalk"):
            Evaluator(RuntimeConfig(max_steps=0, timeout_seconds=-1))
        assert "max_steps must be positive" in caplog.text
        assert "timeout_seconds must be positive" in caplog.text


class TestEvaluator:

    def test_evaluate_hand_built_program(self):
        program = A.Program((
            A.Decl("x", A.Expr(A.Const(2))),
            A.AddAssign("x", A.Expr(A.CharLit("b"))),
        ))
        assert evaluate(program) == {"x": 100}

    def test_fresh_environment_per_execute(self):
        evaluator = Evaluator()
        program = parse("let x = 1")
        first = evaluator.execute(program)
        second = evaluator.execute(parse("let y = 2"))
        assert first == {"x": 1}
        assert second == {"y": 2}

    def test_step_counter(self):
        evaluator = Evaluator()
        evaluator.execute(parse("let x = 1 x += 1"))
        assert evaluator.steps == 2
