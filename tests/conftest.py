"""
Cycle Spitter Tests - Shared Configuration
==========================================

pytest fixtures shared by all test modules:

- the built-in template and a custom template reserving 58 cycles
- the two sample programs under tests/fixtures/
- small helpers to run source text through the early pipeline stages
"""

from pathlib import Path

import pytest

from cyclespitter.pipeline.cycles import CycleResolver
from cyclespitter.pipeline.macros import MacroExpander
from cyclespitter.pipeline.parser import parse_source
from cyclespitter.pipeline.template import load_template, parse_template

FIXTURES_DIR = Path(__file__).parent / "fixtures"

# Left border 24, right border 24, stabilizer 10: 58 cycles reserved
TEMPLATE_58 = """\
left_border:
        move.b  d7,$ffff8260.w
        move.w  d7,$ffff8260.w
right_border:
        move.w  d7,$ffff820a.w
        move.b  d7,$ffff820a.w
stabilizer:
        exg     d0,d1
        nop
"""


# ═══════════════════════════════════════════════════════════════════════════════
# HELPER FUNCTIONS
# ═══════════════════════════════════════════════════════════════════════════════


def expand_source(text: str):
    """Parse and expand source text."""
    return MacroExpander().expand(parse_source(text, "test.s"))


def cost_source(text: str, cost_overrides=None):
    """Parse, expand and cost source text."""
    return CycleResolver(cost_overrides).resolve_all(expand_source(text))


def instructions(lines) -> list[str]:
    """The 'mnemonic operands' text of every instruction line."""
    return [line.instruction for line in lines if line.is_instruction]


# ═══════════════════════════════════════════════════════════════════════════════
# FIXTURES
# ═══════════════════════════════════════════════════════════════════════════════


@pytest.fixture(scope="session")
def fixtures_dir() -> Path:
    """Fixture: directory holding the sample programs."""
    return FIXTURES_DIR


@pytest.fixture
def default_template():
    """Fixture: the built-in template (72 cycles reserved)."""
    return load_template()


@pytest.fixture
def template_58():
    """Fixture: a custom template reserving 58 cycles."""
    return parse_template(TEMPLATE_58, "custom.s")


@pytest.fixture
def template_58_file(tmp_path) -> Path:
    """Fixture: the 58-cycle template written to a file."""
    path = tmp_path / "custom.s"
    path.write_text(TEMPLATE_58)
    return path


@pytest.fixture
def scroller_source() -> str:
    """Fixture: the scroller sample (nested REPT with SET counters)."""
    return (FIXTURES_DIR / "scroller.s").read_text()


@pytest.fixture
def cube_source() -> str:
    """Fixture: the cube sample (REPT 45 / REPT 27)."""
    return (FIXTURES_DIR / "cube.s").read_text()
