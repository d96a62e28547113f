"""
Common constants for the LPP project.

This package provides the centralized structural limits and configuration
values used throughout the LPP codebase.
"""

from common.constants import *

__all__ = [
    # Puzzle Structure
    "MAX_PROBLEMS_PER_STUDENT",
    "GRAPH_SOLVER_LIMIT",
    "JAVA_PROBLEM_COUNT",
    # Derivation
    "EXPECTED_DERIVATION_STEPS",
    "PREMISE_PREFIX",
    "DERIVED_FACT_PREFIX",
    "FINAL_CONCLUSION",
    # Cache Configuration
    "SOLUTION_CACHE_NAME",
    "SOLUTION_CACHE_MAXSIZE",
    "SOLUTION_CACHE_TTL",
    # Logging
    "LOG_DIR_NAME",
    "LOG_TO_FILE",
    "CONSOLE_LOG_LEVEL_NAME",
    "FILE_LOG_LEVEL_NAME",
]
