"""
Centralized constants for the LPP (Language Puzzle Prover) project.

This module provides a single source of truth for the structural limits of the
puzzle and the configuration values used throughout the codebase. Keeping them
here means the validator, the mutators and the deduction engine agree on the
same numbers.

Organization:
    - Puzzle Structure: Limits that are part of the puzzle statement
    - Derivation: Expected shape of the proof chain
    - Cache Configuration: Solution cache policy
    - Logging: Log directory and levels

Usage:
    from common.constants import MAX_PROBLEMS_PER_STUDENT, GRAPH_SOLVER_LIMIT

Note:
    These constants define the fixed puzzle instance. Changing the puzzle
    structure values without changing the clues makes the derivation chain
    fail its preconditions.
"""

# =============================================================================
# Puzzle Structure
# =============================================================================

MAX_PROBLEMS_PER_STUDENT: int = 3
"""
Maximum number of problem types a single student may solve.

Structural constraint of the puzzle (not one of the ten clues). Checked by
respects_max_three_problems() and enforced by the problem mutators.

Used by:
    - component_1_puzzle_model.py: add_problem() refuses a fourth problem
    - component_3_constraint_checker.py: respects_max_three_problems()
"""

GRAPH_SOLVER_LIMIT: int = 2
"""
Number of students that solve Graph problems (clue 9).

The checker treats this as an upper bound at all times (partial tolerance);
the deduction engine needs exactly this many at completion.
"""

JAVA_PROBLEM_COUNT: int = 2
"""
Exact number of problem types solved by the Java user (clue 10).
"""

# =============================================================================
# Derivation
# =============================================================================

EXPECTED_DERIVATION_STEPS: int = 17
"""
Length of the derivation chain D1..D17.

The engine compares its pipeline against this value when it is built, so a
missing or duplicated step is reported before any state is touched.
"""

PREMISE_PREFIX: str = "P"
DERIVED_FACT_PREFIX: str = "D"

FINAL_CONCLUSION: str = (
    "All students assigned languages and problems satisfying all 10 constraints"
)

# =============================================================================
# Cache Configuration
# =============================================================================

SOLUTION_CACHE_NAME: str = "lpp_solution"
"""
Name of the CacheManager cache that memoises solve().

The derivation is deterministic, so one entry is enough. Hint sessions read
from this cache instead of re-running the engine on every hint.
"""

SOLUTION_CACHE_MAXSIZE: int = 4

SOLUTION_CACHE_TTL: int = 3600
"""
TTL for the solution cache (1 hour).

The solution never changes within a process; the TTL only bounds how long a
stale object survives after reset_cache_manager() in long-running sessions.
"""

# =============================================================================
# Logging
# =============================================================================

LOG_DIR_NAME: str = "logs"

LOG_TO_FILE: bool = True
"""
Whether setup_logging() attaches the rotating file handlers.

Console logging is always enabled.
"""

CONSOLE_LOG_LEVEL_NAME: str = "INFO"
FILE_LOG_LEVEL_NAME: str = "DEBUG"
