"""
Tests für den interaktiven Hinweis-Modus (component_7).
"""

import pytest

from component_1_puzzle_model import Language, ProblemType, Student
from component_5_deduction_engine import DeductionEngine, build_pipeline
from component_7_hint_session import HintSession
from lpp_exceptions import HintSessionError, PuzzleStateError


@pytest.fixture
def session(solution):
    """Fixture: HintSession mit vorberechneter Lösung."""
    return HintSession(solution)


class TestManualMoves:
    """Tests für manuelle Züge"""

    def test_set_language_replaces_state(self, session):
        before = session.state
        session.set_language(Student.BOB, Language.JAVA)

        assert session.state is not before
        assert before.language_of(Student.BOB) is None
        assert session.state.language_of(Student.BOB) == Language.JAVA

    def test_toggle_problem(self, session):
        session.toggle_problem("Alice", "Math", True)
        assert session.state.solves(Student.ALICE, ProblemType.MATH)

    def test_fourth_problem_keeps_state(self, session):
        for problem in ("Math", "Logic", "Sorting"):
            session.toggle_problem("Bob", problem, True)
        state = session.state

        with pytest.raises(PuzzleStateError):
            session.toggle_problem("Bob", "Graph", True)
        assert session.state is state


class TestHints:
    """Tests für next_hint"""

    def test_first_hint_is_d1(self, session):
        step = session.next_hint()

        assert step.derived_fact_id == "D1"
        assert session.state == step.state_after
        assert session.state is not step.state_after
        assert session.hints_remaining == 16

    def test_hint_discards_manual_moves(self, session):
        session.set_language(Student.EVE, Language.JAVA)
        session.next_hint()
        assert session.state.language_of(Student.EVE) is None

    def test_all_hints_solve_puzzle(self, session, solution):
        for _ in range(17):
            session.next_hint()

        assert session.hints_remaining == 0
        assert session.state == solution.final_state
        assert session.check().solved is True

    def test_exhausted_hints(self, session):
        for _ in range(17):
            session.next_hint()
        with pytest.raises(HintSessionError):
            session.next_hint()

    def test_failed_solution_gives_no_hints(self):
        failed = DeductionEngine(build_pipeline()[:2]).solve()
        session = HintSession(failed)

        assert session.hints_remaining == 0
        with pytest.raises(HintSessionError):
            session.next_hint()

    def test_uses_cached_solution_by_default(self):
        session = HintSession()
        assert session.next_hint().derived_fact_id == "D1"

    def test_session_does_not_touch_solution(self, session, solution):
        session.next_hint()
        session.set_language(Student.ALICE, Language.RUBY)
        assert solution.steps[0].state_after.language_of(Student.ALICE) is None


class TestCheckUndoReset:
    """Tests für check, undo und reset"""

    def test_check_on_empty_grid(self, session):
        report = session.check()

        assert report.validation.valid is True
        assert report.max_problems_ok is True
        assert report.unique_languages_ok is True
        assert report.complete is False
        assert report.solved is False

    def test_check_reports_violation(self, session):
        session.set_language(Student.BOB, Language.CPP)
        report = session.check()

        assert report.validation.violated_ids == [1]
        assert report.to_dict()["solved"] is False

    def test_check_reports_duplicate_languages(self, session):
        session.set_language(Student.ALICE, Language.JAVA)
        session.set_language(Student.BOB, Language.JAVA)
        assert session.check().unique_languages_ok is False

    def test_undo_move_and_hint(self, session):
        session.next_hint()
        session.set_language(Student.BOB, Language.JAVA)

        session.undo()
        assert session.state.language_of(Student.BOB) is None
        assert session.next_hint_index == 1

        session.undo()
        assert session.next_hint_index == 0
        assert session.state.language_of(Student.CHARLIE) is None
        assert session.can_undo is False

    def test_undo_without_history(self, session):
        with pytest.raises(HintSessionError):
            session.undo()

    def test_reset(self, session):
        session.next_hint()
        session.next_hint()
        session.reset()

        assert session.next_hint_index == 0
        assert session.hints_remaining == 17
        assert session.state.language_of(Student.CHARLIE) is None
        assert session.can_undo is False
