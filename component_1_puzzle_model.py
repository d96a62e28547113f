"""
component_1_puzzle_model.py
===========================
Domain model for the programming-language puzzle.

Five students, five programming languages, four problem types:
- Each student uses exactly one language (each language used once)
- Each student solves between one and MAX_PROBLEMS_PER_STUDENT problem types

This module defines:
- Student, Language, ProblemType: the fixed finite domains
- StudentAssignment / PuzzleState: the (possibly partial) assignment state
- Solver actions: the tagged variants a derivation step applies
- Constructors, the deep-copy clone and the completeness predicate
- The interactive mutators (set_language, toggle_problem) and action replay

PuzzleState is a value type. Every public mutator clones first and returns a
new state; derivation history keeps snapshots that must never change after
the fact. problem_count and available_languages are caches over the
assignments and are updated at the single mutation site that changes them.

Author: LPP Development Team
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, FrozenSet, Iterable, Optional, Set, Tuple, Union

from common.constants import MAX_PROBLEMS_PER_STUDENT
from component_15_logging_config import get_logger
from lpp_exceptions import PuzzleStateError

logger = get_logger(__name__)


# ============================================================================
# Domains
# ============================================================================


class Student(Enum):
    """The five students."""

    ALICE = "Alice"
    BOB = "Bob"
    CHARLIE = "Charlie"
    DAVE = "Dave"
    EVE = "Eve"

    def __str__(self) -> str:
        return self.value


class Language(Enum):
    """The five programming languages."""

    PYTHON = "Python"
    JAVA = "Java"
    CPP = "C++"
    RUBY = "Ruby"
    SWIFT = "Swift"

    def __str__(self) -> str:
        return self.value


class ProblemType(Enum):
    """The four problem types."""

    MATH = "Math"
    LOGIC = "Logic"
    SORTING = "Sorting"
    GRAPH = "Graph"

    def __str__(self) -> str:
        return self.value


# Canonical order (used for iteration, summaries and serialization)
STUDENTS: Tuple[Student, ...] = tuple(Student)
LANGUAGES: Tuple[Language, ...] = tuple(Language)
PROBLEM_TYPES: Tuple[ProblemType, ...] = tuple(ProblemType)


def _coerce(enum_cls, value: Any):
    """Accept enum members or their string values (e.g. "C++")."""
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError as e:
        raise PuzzleStateError(
            f"Unknown {enum_cls.__name__}: {value!r}",
            context={"allowed": [m.value for m in enum_cls]},
            original_exception=e,
        )


def sort_problems(problems: Iterable[ProblemType]) -> list:
    """Sort problem types into canonical order."""
    return sorted(problems, key=PROBLEM_TYPES.index)


# ============================================================================
# Solver Actions
# ============================================================================


class ActionType(Enum):
    """Tags of the solver action variants."""

    ASSIGN_LANGUAGE = "assign_language"
    ASSIGN_PROBLEM = "assign_problem"
    EXCLUDE_LANGUAGE = "exclude_language"
    EXCLUDE_PROBLEM = "exclude_problem"
    DEDUCE = "deduce"


@dataclass(frozen=True)
class AssignLanguage:
    student: Student
    language: Language
    action_type: ActionType = field(default=ActionType.ASSIGN_LANGUAGE, init=False)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.action_type.value,
            "student": self.student.value,
            "language": self.language.value,
        }


@dataclass(frozen=True)
class AssignProblem:
    student: Student
    problem: ProblemType
    action_type: ActionType = field(default=ActionType.ASSIGN_PROBLEM, init=False)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.action_type.value,
            "student": self.student.value,
            "problem": self.problem.value,
        }


@dataclass(frozen=True)
class ExcludeLanguage:
    student: Student
    language: Language
    action_type: ActionType = field(default=ActionType.EXCLUDE_LANGUAGE, init=False)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.action_type.value,
            "student": self.student.value,
            "language": self.language.value,
        }


@dataclass(frozen=True)
class ExcludeProblem:
    student: Student
    problem: ProblemType
    action_type: ActionType = field(default=ActionType.EXCLUDE_PROBLEM, init=False)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.action_type.value,
            "student": self.student.value,
            "problem": self.problem.value,
        }


@dataclass(frozen=True)
class Deduce:
    """Pure deduction: records a conclusion without changing the state."""

    description: str
    action_type: ActionType = field(default=ActionType.DEDUCE, init=False)

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.action_type.value, "description": self.description}


SolverAction = Union[AssignLanguage, AssignProblem, ExcludeLanguage, ExcludeProblem, Deduce]


# ============================================================================
# State
# ============================================================================


@dataclass
class StudentAssignment:
    """
    Language and problem types of one student.

    Owned by exactly one PuzzleState; never shared between states.
    """

    student: Student
    language: Optional[Language] = None
    problems: Set[ProblemType] = field(default_factory=set)

    def copy(self) -> "StudentAssignment":
        return StudentAssignment(
            student=self.student, language=self.language, problems=set(self.problems)
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "student": self.student.value,
            "language": self.language.value if self.language else None,
            "problems": [p.value for p in sort_problems(self.problems)],
        }


@dataclass
class PuzzleState:
    """
    Complete (possibly partial) puzzle state.

    Attributes:
        assignments: One StudentAssignment per student, all five always present
        available_languages: Languages not held by any student
        problem_count: Number of students solving each problem type

    Invariants:
        - problem_count[p] == number of assignments whose problems contain p
        - available_languages == LANGUAGES minus the assigned languages
        - no assignment holds more than MAX_PROBLEMS_PER_STUDENT problems
          when built through the mutators
    """

    assignments: Dict[Student, StudentAssignment]
    available_languages: Set[Language]
    problem_count: Dict[ProblemType, int]

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------

    def language_of(self, student: Student) -> Optional[Language]:
        return self.assignments[student].language

    def problems_of(self, student: Student) -> FrozenSet[ProblemType]:
        return frozenset(self.assignments[student].problems)

    def solves(self, student: Student, problem: ProblemType) -> bool:
        return problem in self.assignments[student].problems

    def count(self, problem: ProblemType) -> int:
        return self.problem_count[problem]

    def student_with_language(self, language: Language) -> Optional[Student]:
        """First student (canonical order) holding the language, if any."""
        for student in STUDENTS:
            if self.assignments[student].language == language:
                return student
        return None

    def unassigned_students(self) -> list:
        return [s for s in STUDENTS if self.assignments[s].language is None]

    # ------------------------------------------------------------------
    # Copy
    # ------------------------------------------------------------------

    def clone(self) -> "PuzzleState":
        """Independent deep copy: no container is shared with self."""
        return PuzzleState(
            assignments={s: a.copy() for s, a in self.assignments.items()},
            available_languages=set(self.available_languages),
            problem_count=dict(self.problem_count),
        )

    # ------------------------------------------------------------------
    # In-place mutation (only on a fresh clone)
    # ------------------------------------------------------------------

    def _assign_language(
        self, student: Student, language: Optional[Language]
    ) -> None:
        self.assignments[student].language = language
        self._refresh_available_languages()

    def _refresh_available_languages(self) -> None:
        assigned = {
            a.language for a in self.assignments.values() if a.language is not None
        }
        self.available_languages = set(LANGUAGES) - assigned

    def _add_problem(self, student: Student, problem: ProblemType) -> None:
        problems = self.assignments[student].problems
        if problem in problems:
            return
        if len(problems) >= MAX_PROBLEMS_PER_STUDENT:
            raise PuzzleStateError(
                f"{student.value} already solves {MAX_PROBLEMS_PER_STUDENT} problem types",
                student=student.value,
                context={"problem": problem.value},
            )
        problems.add(problem)
        self.problem_count[problem] += 1

    def _remove_problem(self, student: Student, problem: ProblemType) -> None:
        problems = self.assignments[student].problems
        if problem not in problems:
            return
        problems.discard(problem)
        self.problem_count[problem] -= 1

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        """Convert to JSON-compatible dictionary (canonical order)"""
        return {
            "assignments": {
                s.value: self.assignments[s].to_dict() for s in STUDENTS
            },
            "available_languages": [
                lang.value for lang in LANGUAGES if lang in self.available_languages
            ],
            "problem_count": {p.value: self.problem_count[p] for p in PROBLEM_TYPES},
        }


# ============================================================================
# Constructors and predicates
# ============================================================================


def empty_state() -> PuzzleState:
    """Fresh state: no languages, no problems, all languages available."""
    return PuzzleState(
        assignments={s: StudentAssignment(student=s) for s in STUDENTS},
        available_languages=set(LANGUAGES),
        problem_count={p: 0 for p in PROBLEM_TYPES},
    )


def clone_state(state: PuzzleState) -> PuzzleState:
    return state.clone()


def is_complete(state: PuzzleState) -> bool:
    """
    True iff every student has a language and at least one problem type and
    no language is left unassigned.
    """
    for student in STUDENTS:
        assignment = state.assignments[student]
        if assignment.language is None:
            return False
        if not assignment.problems:
            return False

    return not state.available_languages


# ============================================================================
# Interactive mutators (manual mode)
# ============================================================================


def set_language(
    state: PuzzleState, student: Any, language: Optional[Any]
) -> PuzzleState:
    """
    Return a new state in which the student holds the given language.

    Passing None unsets the language. The previously held language goes back
    to available_languages and the new one is removed from it.
    """
    student = _coerce(Student, student)
    new_language = _coerce(Language, language) if language is not None else None

    new_state = state.clone()
    old_language = new_state.language_of(student)
    new_state._assign_language(student, new_language)

    logger.debug(
        "Sprache gesetzt",
        extra={
            "student": student.value,
            "old": old_language.value if old_language else None,
            "new": new_language.value if new_language else None,
        },
    )
    return new_state


def toggle_problem(
    state: PuzzleState, student: Any, problem: Any, included: bool
) -> PuzzleState:
    """
    Return a new state with the problem type added to or removed from the
    student's set; problem_count follows.

    Raises:
        PuzzleStateError: If adding would exceed MAX_PROBLEMS_PER_STUDENT
    """
    student = _coerce(Student, student)
    problem = _coerce(ProblemType, problem)

    new_state = state.clone()
    if included:
        new_state._add_problem(student, problem)
    else:
        new_state._remove_problem(student, problem)

    logger.debug(
        "Aufgabenart umgeschaltet",
        extra={
            "student": student.value,
            "problem": problem.value,
            "included": included,
        },
    )
    return new_state


def apply_action(state: PuzzleState, action: SolverAction) -> PuzzleState:
    """
    Replay one solver action onto a clone of the state.

    Exclusions and deductions carry no data change; the returned state is an
    unchanged copy.
    """
    new_state = state.clone()
    if isinstance(action, AssignLanguage):
        new_state._assign_language(action.student, action.language)
    elif isinstance(action, AssignProblem):
        new_state._add_problem(action.student, action.problem)
    return new_state


# ============================================================================
# Display helpers
# ============================================================================


def get_solution_summary(state: PuzzleState) -> str:
    """Readable summary of every student's assignment."""
    lines = ["SOLUTION SUMMARY", "=" * 50, ""]

    for student in STUDENTS:
        assignment = state.assignments[student]
        language = assignment.language.value if assignment.language else "Not assigned"
        problems = ", ".join(p.value for p in sort_problems(assignment.problems))
        lines.append(f"{student.value}:")
        lines.append(f"  Language: {language}")
        lines.append(f"  Problems: {problems or 'None'}")
        lines.append("")

    return "\n".join(lines) + "\n"
