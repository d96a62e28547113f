"""
component_7_hint_session.py
===========================
Interactive (manual) solving session with hints.

The user fills the grid with set_language / toggle_problem and may ask for
a hint at any time. A hint replaces the current state with the state after
the next precomputed derivation step, exactly as if the solver had been
stepped forward once. check() reports the live validation together with the
structural checks and whether the puzzle is solved.

Every operation is a discrete, serial call. States are never modified in
place: each operation stores a new state and pushes the previous one onto
the undo history.

Author: LPP Development Team
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from component_15_logging_config import get_logger
from component_1_puzzle_model import (
    PuzzleState,
    empty_state,
    is_complete,
    set_language as _set_language,
    toggle_problem as _toggle_problem,
)
from component_3_constraint_checker import (
    ValidationResult,
    has_unique_languages,
    respects_max_three_problems,
    validate,
)
from component_5_deduction_engine import (
    DerivationStep,
    SolutionResult,
    get_cached_solution,
)
from lpp_exceptions import HintSessionError

logger = get_logger(__name__)


@dataclass
class CheckReport:
    """
    Result of HintSession.check().

    solved is True only if every other check passes.
    """

    validation: ValidationResult
    max_problems_ok: bool
    unique_languages_ok: bool
    complete: bool

    @property
    def solved(self) -> bool:
        return (
            self.validation.valid
            and self.max_problems_ok
            and self.unique_languages_ok
            and self.complete
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "validation": self.validation.to_dict(),
            "max_problems_ok": self.max_problems_ok,
            "unique_languages_ok": self.unique_languages_ok,
            "complete": self.complete,
            "solved": self.solved,
        }


class HintSession:
    """
    Manual solving session.

    Attributes:
        state: Current PuzzleState (replaced, never mutated)
        next_hint_index: Index of the derivation step the next hint applies
    """

    def __init__(self, solution: Optional[SolutionResult] = None):
        self._solution = solution
        self.state: PuzzleState = empty_state()
        self.next_hint_index: int = 0
        self._history: List[Tuple[PuzzleState, int]] = []

    @property
    def solution(self) -> SolutionResult:
        if self._solution is None:
            self._solution = get_cached_solution()
        return self._solution

    def _push(self, new_state: PuzzleState, next_hint_index: int) -> None:
        self._history.append((self.state, self.next_hint_index))
        self.state = new_state
        self.next_hint_index = next_hint_index

    # ------------------------------------------------------------------
    # Manual moves
    # ------------------------------------------------------------------

    def set_language(self, student: Any, language: Optional[Any]) -> PuzzleState:
        """Assign (or with None unset) a student's language."""
        self._push(_set_language(self.state, student, language), self.next_hint_index)
        return self.state

    def toggle_problem(self, student: Any, problem: Any, included: bool) -> PuzzleState:
        """
        Add or remove a problem type for a student.

        Raises:
            PuzzleStateError: If the student already solves three problem types
        """
        new_state = _toggle_problem(self.state, student, problem, included)
        self._push(new_state, self.next_hint_index)
        return self.state

    # ------------------------------------------------------------------
    # Hints
    # ------------------------------------------------------------------

    @property
    def hints_remaining(self) -> int:
        solution = self.solution
        if not solution.success:
            return 0
        return len(solution.steps) - self.next_hint_index

    def next_hint(self) -> DerivationStep:
        """
        Apply the next derivation step.

        The current state is replaced by a copy of that step's state_after,
        so manual moves made since the previous hint are discarded.

        Raises:
            HintSessionError: If the solution is unavailable or all hints are used
        """
        solution = self.solution
        if not solution.success:
            raise HintSessionError(
                "No solution available for hints",
                context={"error": solution.error_message},
            )
        if self.next_hint_index >= len(solution.steps):
            raise HintSessionError(
                "All hints have been applied",
                context={"steps": len(solution.steps)},
            )

        step = solution.steps[self.next_hint_index]
        self._push(step.state_after.clone(), self.next_hint_index + 1)

        logger.info(
            "Hinweis angewendet",
            extra={"fact_id": step.derived_fact_id, "remaining": self.hints_remaining},
        )
        return step

    # ------------------------------------------------------------------
    # Check / history
    # ------------------------------------------------------------------

    def check(self) -> CheckReport:
        report = CheckReport(
            validation=validate(self.state),
            max_problems_ok=respects_max_three_problems(self.state),
            unique_languages_ok=has_unique_languages(self.state),
            complete=is_complete(self.state),
        )
        if report.solved:
            logger.info("Rätsel manuell gelöst")
        return report

    def undo(self) -> PuzzleState:
        """
        Revert the last move or hint.

        Raises:
            HintSessionError: If there is nothing to undo
        """
        if not self._history:
            raise HintSessionError("Nothing to undo")
        self.state, self.next_hint_index = self._history.pop()
        return self.state

    @property
    def can_undo(self) -> bool:
        return bool(self._history)

    def reset(self) -> None:
        """Back to the empty grid with all hints available and no history."""
        self.state = empty_state()
        self.next_hint_index = 0
        self._history.clear()
