"""
irwalk: parser and tree-walking interpreter for a minimal imperative IR.

    >>> from irwalk import run
    >>> run("let x = 'a' + 1").as_dict()
    {'x': 98}

Public API:

* ``parse(source_text)``           → ``Program``
* ``evaluate(program, config)``    → ``Environment``
* ``run(source, config)``          → ``Environment``
* ``compile_program(program)``     → ``CompiledProgram`` (Brainfuck backend)
"""

__version__ = "0.1.0"

from irwalk.bf import compile_program, translate
from irwalk.parser import parse, parse_file
from irwalk.runtime import Environment, RuntimeConfig, evaluate, run

__all__ = [
    "__version__",
    "parse",
    "parse_file",
    "evaluate",
    "run",
    "Environment",
    "RuntimeConfig",
    "compile_program",
    "translate",
]
