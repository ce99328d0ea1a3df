import sys
from pathlib import Path

import pytest


def pytest_configure() -> None:
    """Make `src/` importable in tests without requiring installation."""
    repo_root = Path(__file__).resolve().parents[1]
    src_dir = repo_root / "src"
    sys.path.insert(0, str(src_dir))


@pytest.fixture
def arena():
    """A fresh arena so tests do not share variable slots."""
    from tensorexpr.variables import ArenaConfig, VariableArena

    return VariableArena(ArenaConfig(name="test"))
