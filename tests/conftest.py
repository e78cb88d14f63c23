# tests/conftest.py
"""Shared sample programs and fixtures for the irwalk test-suite."""

import pytest

from irwalk.grammar import IR_GRAMMAR
from irwalk.runtime import RuntimeConfig

# ---------------------------------------------------------------------------
# Sample programs
# ---------------------------------------------------------------------------

SAMPLE_COUNTDOWN = """\
let n = 10
let sum = 0
while n > 0 {
    sum += n
    n -= 1
}
"""

SAMPLE_NESTED = """\
let i = 0
let hits = 0
while 3 > i {
    let j = 0
    while 2 > j {
        if i > j { hits += 1 }
        j = j + 1
    }
    i += 1
}
"""

SAMPLE_CHARS = """\
let a = 'a'
let z = 'Z'
let gap = a - z
"""

SAMPLE_GROUPS = "let x = 10 - (3 - 1) let y = (10 - 3) - 1"

SAMPLE_INFINITE = "while 1 { }"

INT_MAX = 2 ** 63 - 1
INT_MIN = -(2 ** 63)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture(scope="module")
def grammar():
    """The compiled IR grammar (shared, immutable)."""
    return IR_GRAMMAR


@pytest.fixture
def bounded_config():
    """A step budget small enough to stop runaway loops quickly."""
    return RuntimeConfig(max_steps=1_000)


@pytest.fixture
def program_file(tmp_path):
    """Write IR source to a temporary file and return its path."""
    def _write(source, name="prog.ir"):
        path = tmp_path / name
        path.write_text(source, encoding="utf-8")
        return path
    return _write
