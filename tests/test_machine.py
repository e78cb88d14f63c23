# tests/test_machine.py
"""
Tests for the Brainfuck cell machine (irwalk.machine).
"""

import pytest

from irwalk import errors
from irwalk.machine import MEM_SIZE, Machine, match_brackets


class TestInstructions:

    def test_left_wraps_around(self):
        machine = Machine()
        machine.run("<")
        assert machine.dp == MEM_SIZE - 1
        machine.run("<")
        assert machine.dp == MEM_SIZE - 2

    def test_right(self):
        machine = Machine(mem_size=4)
        machine.run(">")
        assert machine.dp == 1
        machine.run(">>>>")
        assert machine.dp == 1

    def test_increment(self):
        assert Machine().run("+>++>+++")[:3] == bytearray([1, 2, 3])

    def test_decrement_wraps(self):
        assert Machine().run("->-->---")[:3] == bytearray([255, 254, 253])

    def test_increment_wraps(self):
        assert Machine().run("+" * 257)[0] == 1

    def test_loops(self):
        assert Machine().run(">++++++[<+++++++>-]")[:2] == bytearray([42, 0])

    def test_nested_empty_loops(self):
        assert not any(Machine().run("[[[]]]"))

    def test_output(self):
        machine = Machine()
        machine.run("++++++++[>++++++++<-]>+.")
        assert bytes(machine.output) == b"A"

    def test_input_then_eof(self):
        machine = Machine()
        machine.run(",>,", stdin=b"\x05")
        assert machine.memory[:2] == bytearray([5, 0])

    def test_comments_are_ignored(self):
        machine = Machine()
        machine.run("add one: +")
        assert machine.memory[0] == 1
        assert machine.steps == 1


class TestState:

    def test_memory_persists_between_runs(self):
        machine = Machine()
        machine.run("+")
        machine.run("+")
        assert machine.memory[0] == 2

    def test_reset(self):
        machine = Machine()
        machine.run("+>+.")
        machine.reset()
        assert machine.dp == 0
        assert not any(machine.memory)
        assert machine.output == bytearray()


class TestErrors:

    def test_unmatched_close(self):
        with pytest.raises(errors.UnbalancedLoopError) as info:
            Machine().run("]")
        assert info.value.bracket == "]"
        assert info.value.offset == 0
        assert info.value.code == errors.IrErrorCodes.UNBALANCED_LOOP

    def test_unmatched_open(self):
        with pytest.raises(errors.UnbalancedLoopError) as info:
            match_brackets("+[[]")
        assert info.value.bracket == "["
        assert info.value.offset == 1

    def test_step_limit(self):
        with pytest.raises(errors.ExecutionLimitExceeded) as info:
            Machine(max_steps=100).run("+[]")
        assert info.value.limit == "steps"
        assert info.value.value == 100

    def test_unbounded(self):
        machine = Machine(max_steps=None)
        machine.run("+" * 10 + "[-]")
        assert machine.memory[0] == 0
