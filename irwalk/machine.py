"""
irwalk/machine.py
=================

A small Brainfuck cell machine, the execution target of :mod:`irwalk.bf`.

The tape is a ring of ``mem_size`` unsigned 8-bit cells: ``+`` and ``-``
wrap modulo 256, ``<`` and ``>`` wrap around the ends of the tape. ``.``
appends the current cell to :attr:`Machine.output`, ``,`` reads the next
input byte (0 once input is exhausted). Any other character is a comment.

Memory and the data pointer survive between calls to :meth:`Machine.run`;
:meth:`Machine.reset` clears them.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional

from irwalk.errors import ExecutionLimitExceeded, UnbalancedLoopError

logger = logging.getLogger(__name__)

MEM_SIZE = 30_000
DEFAULT_MAX_STEPS = 1_000_000


def match_brackets(code: str) -> Dict[int, int]:
    """Map every ``[`` to its ``]`` and back.

    Raises:
        irwalk.errors.UnbalancedLoopError: a bracket has no partner.
    """
    jumps: Dict[int, int] = {}
    stack: List[int] = []
    for offset, char in enumerate(code):
        if char == "[":
            stack.append(offset)
        elif char == "]":
            if not stack:
                raise UnbalancedLoopError("]", offset)
            start = stack.pop()
            jumps[start] = offset
            jumps[offset] = start
    if stack:
        raise UnbalancedLoopError("[", stack[-1])
    return jumps


class Machine:
    """Interpreter for Brainfuck text over a byte tape.

    ``max_steps`` bounds the number of executed instructions per
    :meth:`run`; ``None`` lets a run go on forever.
    """

    def __init__(self, mem_size: int = MEM_SIZE,
                 max_steps: Optional[int] = DEFAULT_MAX_STEPS) -> None:
        self.memory = bytearray(mem_size)
        self.max_steps = max_steps
        self.dp = 0
        self.steps = 0
        self.output = bytearray()

    def reset(self) -> None:
        self.memory = bytearray(len(self.memory))
        self.dp = 0
        self.steps = 0
        self.output = bytearray()

    def run(self, code: str, stdin: bytes = b"") -> bytearray:
        """Execute *code* and return the tape."""
        jumps = match_brackets(code)
        memory = self.memory
        size = len(memory)
        max_steps = self.max_steps
        feed = iter(stdin)
        dp = self.dp
        steps = 0
        ip = 0
        end = len(code)

        try:
            while ip < end:
                op = code[ip]
                if op == ">":
                    dp = (dp + 1) % size
                elif op == "<":
                    dp = (dp - 1) % size
                elif op == "+":
                    memory[dp] = (memory[dp] + 1) & 0xFF
                elif op == "-":
                    memory[dp] = (memory[dp] - 1) & 0xFF
                elif op == "[":
                    if not memory[dp]:
                        ip = jumps[ip]
                elif op == "]":
                    if memory[dp]:
                        ip = jumps[ip]
                elif op == ".":
                    self.output.append(memory[dp])
                elif op == ",":
                    memory[dp] = next(feed, 0)
                else:
                    ip += 1
                    continue

                steps += 1
                if max_steps is not None and steps > max_steps:
                    raise ExecutionLimitExceeded("steps", max_steps)
                ip += 1
        finally:
            self.dp = dp
            self.steps = steps

        logger.debug("machine executed %d instruction(s)", steps)
        return memory


__all__ = ["MEM_SIZE", "DEFAULT_MAX_STEPS", "Machine", "match_brackets"]
