"""
Gemeinsame Fixtures für die LPP-Tests.
"""

import sys
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).resolve().parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from component_15_logging_config import setup_logging  # noqa: E402

# Tests schreiben keine Log-Dateien
setup_logging(log_to_file=False)

from component_1_puzzle_model import empty_state  # noqa: E402
from component_5_deduction_engine import solve  # noqa: E402
from infrastructure.cache_manager import reset_cache_manager  # noqa: E402


@pytest.fixture
def empty():
    """Fixture: Leerer PuzzleState."""
    return empty_state()


@pytest.fixture(scope="session")
def solution():
    """Fixture: Ergebnis von solve() (einmal pro Testlauf)."""
    return solve()


@pytest.fixture(autouse=True)
def fresh_cache_manager():
    """Jeder Test startet mit einem leeren CacheManager."""
    reset_cache_manager()
    yield
    reset_cache_manager()
