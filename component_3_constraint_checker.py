"""
component_3_constraint_checker.py
=================================
Validator for (possibly partial) puzzle states.

Every clue check is partial-state tolerant: it reports a violation only when
the facts assigned so far contradict the clue, never because something is
still unassigned. This is what lets the manual mode give feedback while the
user fills the grid.

Two structural checks are not tied to a clue:
- has_unique_languages: no language held by two students
- respects_max_three_problems: no student with more than three problem types

A violation is a normal query result, not an error.

Author: LPP Development Team
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List

from common.constants import (
    GRAPH_SOLVER_LIMIT,
    JAVA_PROBLEM_COUNT,
    MAX_PROBLEMS_PER_STUDENT,
)
from component_15_logging_config import get_logger
from component_1_puzzle_model import (
    STUDENTS,
    Language,
    ProblemType,
    PuzzleState,
    Student,
)
from component_2_clue_registry import Clue, get_clues

logger = get_logger(__name__)


@dataclass
class ValidationResult:
    """
    Result of validating a state against all ten clues.

    Attributes:
        valid: True iff no clue is violated
        violated: Violated clues in ascending id order
        message: Short summary for display
    """

    valid: bool
    violated: List[Clue] = field(default_factory=list)
    message: str = ""

    @property
    def violated_ids(self) -> List[int]:
        return [clue.id for clue in self.violated]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "valid": self.valid,
            "violated": [clue.to_dict() for clue in self.violated],
            "message": self.message,
        }


# ============================================================================
# Per-clue checks
# ============================================================================


def _check_clue_1(state: PuzzleState) -> bool:
    """Bob solves Logic problems but does not use C++."""
    bob = state.assignments[Student.BOB]

    if bob.language == Language.CPP:
        return False

    # Once Bob's language is fixed his Logic assignment is expected too
    if bob.language is not None and ProblemType.LOGIC not in bob.problems:
        return False

    return True


def _check_clue_2(state: PuzzleState) -> bool:
    """Charlie uses Swift and solves Graph problems."""
    charlie = state.assignments[Student.CHARLIE]

    if charlie.language is not None and charlie.language != Language.SWIFT:
        return False

    if charlie.language is not None and ProblemType.GRAPH not in charlie.problems:
        return False

    return True


def _check_clue_3(state: PuzzleState) -> bool:
    """The Python user solves Math and not Sorting."""
    python_user = state.student_with_language(Language.PYTHON)
    if python_user is None:
        return True

    problems = state.assignments[python_user].problems
    return ProblemType.MATH in problems and ProblemType.SORTING not in problems


def _check_clue_4(state: PuzzleState) -> bool:
    """Alice solves Math problems but does not use Ruby or Swift."""
    alice = state.assignments[Student.ALICE]

    if alice.language in (Language.RUBY, Language.SWIFT):
        return False

    if alice.problems and ProblemType.MATH not in alice.problems:
        return False

    return True


def _check_clue_5(state: PuzzleState) -> bool:
    """The C++ user solves neither Logic nor Graph."""
    cpp_user = state.student_with_language(Language.CPP)
    if cpp_user is None:
        return True

    problems = state.assignments[cpp_user].problems
    return ProblemType.LOGIC not in problems and ProblemType.GRAPH not in problems


def _check_clue_6(state: PuzzleState) -> bool:
    """Eve solves Sorting problems but does not use Java or Python."""
    eve = state.assignments[Student.EVE]

    if eve.language in (Language.JAVA, Language.PYTHON):
        return False

    if eve.problems and ProblemType.SORTING not in eve.problems:
        return False

    return True


def _check_clue_7(state: PuzzleState) -> bool:
    """Dave does not solve Graph problems and does not use Ruby."""
    dave = state.assignments[Student.DAVE]
    return dave.language != Language.RUBY and ProblemType.GRAPH not in dave.problems


def _check_clue_8(state: PuzzleState) -> bool:
    """Anyone solving Sorting also solves Logic."""
    for student in STUDENTS:
        problems = state.assignments[student].problems
        if ProblemType.SORTING in problems and ProblemType.LOGIC not in problems:
            return False
    return True


def _check_clue_9(state: PuzzleState) -> bool:
    """At most two Graph solvers (exactly two only matters at completion)."""
    graph_solvers = sum(
        1 for s in STUDENTS if ProblemType.GRAPH in state.assignments[s].problems
    )
    return graph_solvers <= GRAPH_SOLVER_LIMIT


def _check_clue_10(state: PuzzleState) -> bool:
    """The Java user solves exactly two problem types (once any are set)."""
    java_user = state.student_with_language(Language.JAVA)
    if java_user is None:
        return True

    count = len(state.assignments[java_user].problems)
    return count == 0 or count == JAVA_PROBLEM_COUNT


_CLUE_CHECKS: Dict[int, Callable[[PuzzleState], bool]] = {
    1: _check_clue_1,
    2: _check_clue_2,
    3: _check_clue_3,
    4: _check_clue_4,
    5: _check_clue_5,
    6: _check_clue_6,
    7: _check_clue_7,
    8: _check_clue_8,
    9: _check_clue_9,
    10: _check_clue_10,
}


# ============================================================================
# Public API
# ============================================================================


def check_clue(clue_id: int, state: PuzzleState) -> bool:
    """
    Check one clue against the state.

    Returns:
        True if the clue is not (yet) violated

    Raises:
        ValueError: If clue_id is not in 1..10
    """
    check = _CLUE_CHECKS.get(clue_id)
    if check is None:
        raise ValueError(f"Clue id must be in 1..{len(_CLUE_CHECKS)}, got {clue_id}")
    return check(state)


def validate(state: PuzzleState) -> ValidationResult:
    """
    Validate the state against all clues.

    Never short-circuits: every clue is checked and all violations are
    reported in ascending id order.
    """
    violated = [clue for clue in get_clues() if not check_clue(clue.id, state)]

    valid = not violated
    if valid:
        message = "All constraints satisfied!"
    else:
        ids = ", ".join(f"#{clue.id}" for clue in violated)
        message = f"Violated {len(violated)} constraint(s): {ids}"

    if not valid:
        logger.debug(
            "Hinweise verletzt", extra={"violated": [clue.id for clue in violated]}
        )

    return ValidationResult(valid=valid, violated=violated, message=message)


def has_unique_languages(state: PuzzleState) -> bool:
    """True iff no language is held by more than one student."""
    used = set()
    for student in STUDENTS:
        language = state.assignments[student].language
        if language is None:
            continue
        if language in used:
            return False
        used.add(language)
    return True


def respects_max_three_problems(state: PuzzleState) -> bool:
    """True iff every student solves at most MAX_PROBLEMS_PER_STUDENT types."""
    return all(
        len(state.assignments[s].problems) <= MAX_PROBLEMS_PER_STUDENT
        for s in STUDENTS
    )

