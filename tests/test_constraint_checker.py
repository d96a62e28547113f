"""
Tests für Hinweis-Register und Validator (component_2, component_3).

Testet:
- Wortlaut, Reihenfolge und Kategorien der zehn Hinweise
- Jede Hinweisprüfung auf leerem, teilweisem und verletztem Zustand
- validate(): alle Verstöße in aufsteigender Reihenfolge
- Strukturprüfungen (eindeutige Sprachen, maximal drei Aufgabenarten)
"""

import pytest

from component_1_puzzle_model import (
    Language,
    ProblemType,
    Student,
    set_language,
    toggle_problem,
)
from component_2_clue_registry import CLUES, ClueCategory, get_clue, get_clues
from component_3_constraint_checker import (
    check_clue,
    has_unique_languages,
    respects_max_three_problems,
    validate,
)


def _with(state, student, language=None, problems=()):
    if language is not None:
        state = set_language(state, student, language)
    for problem in problems:
        state = toggle_problem(state, student, problem, True)
    return state


class TestClueRegistry:
    """Tests für das Hinweis-Register"""

    def test_ten_clues_in_order(self):
        assert [clue.id for clue in get_clues()] == list(range(1, 11))

    def test_same_object_every_call(self):
        assert get_clues() is get_clues() is CLUES

    def test_literal_texts(self):
        assert get_clue(1).text == "Bob solves Logic problems but does not use C++."
        assert get_clue(3).text == (
            "The student using Python solves Math problems but does not solve "
            "Sorting problems."
        )
        assert get_clue(9).text == "Only two students solve Graph problems."
        assert get_clue(10).text == (
            "The student using Java solves exactly two types of problems."
        )

    def test_categories(self):
        categories = [clue.category for clue in get_clues()]
        assert categories == [
            ClueCategory.ASSIGNMENT,
            ClueCategory.ASSIGNMENT,
            ClueCategory.IMPLICATION,
            ClueCategory.ASSIGNMENT,
            ClueCategory.IMPLICATION,
            ClueCategory.ASSIGNMENT,
            ClueCategory.EXCLUSION,
            ClueCategory.IMPLICATION,
            ClueCategory.COUNTING,
            ClueCategory.COUNTING,
        ]

    def test_premise_id(self):
        assert get_clue(7).premise_id == "P7"

    @pytest.mark.parametrize("clue_id", [0, 11, -1])
    def test_unknown_clue_id(self, clue_id):
        with pytest.raises(ValueError):
            get_clue(clue_id)


class TestEmptyAndPartialStates:
    """Teilweise Zustände verletzen keine Hinweise, solange nichts widerspricht"""

    def test_empty_state_valid(self, empty):
        result = validate(empty)

        assert result.valid is True
        assert result.violated == []
        assert result.message == "All constraints satisfied!"

    @pytest.mark.parametrize("clue_id", range(1, 11))
    def test_each_clue_holds_on_empty_state(self, empty, clue_id):
        assert check_clue(clue_id, empty) is True

    def test_consistent_partial_state(self, empty):
        state = _with(empty, Student.CHARLIE, Language.SWIFT, [ProblemType.GRAPH])
        state = _with(state, Student.EVE, problems=[ProblemType.SORTING, ProblemType.LOGIC])
        assert validate(state).valid is True

    def test_unknown_clue_id_rejected(self, empty):
        with pytest.raises(ValueError):
            check_clue(11, empty)


class TestSingleClueViolations:
    """Gezielte Verstöße gegen einzelne Hinweise"""

    def test_clue_1_bob_uses_cpp(self, empty):
        state = set_language(empty, Student.BOB, Language.CPP)

        assert check_clue(1, state) is False
        result = validate(state)
        assert 1 in result.violated_ids

    def test_clue_1_bob_language_without_logic(self, empty):
        state = set_language(empty, Student.BOB, Language.JAVA)
        assert check_clue(1, state) is False

        state = toggle_problem(state, Student.BOB, ProblemType.LOGIC, True)
        assert check_clue(1, state) is True

    def test_clue_2_charlie_wrong_language(self, empty):
        state = set_language(empty, Student.CHARLIE, Language.RUBY)
        assert check_clue(2, state) is False

    def test_clue_2_charlie_swift_without_graph(self, empty):
        state = set_language(empty, Student.CHARLIE, Language.SWIFT)
        assert check_clue(2, state) is False

    def test_clue_3_python_user_sorting(self, empty):
        state = _with(empty, Student.DAVE, Language.PYTHON, [ProblemType.MATH, ProblemType.SORTING])
        assert check_clue(3, state) is False

    def test_clue_3_python_user_without_math(self, empty):
        state = _with(empty, Student.DAVE, Language.PYTHON, [ProblemType.LOGIC])
        assert check_clue(3, state) is False

    def test_clue_3_python_user_without_problems(self, empty):
        state = set_language(empty, Student.ALICE, Language.PYTHON)
        assert check_clue(3, state) is False

    def test_clue_4_alice_swift(self, empty):
        state = set_language(empty, Student.ALICE, Language.SWIFT)
        assert check_clue(4, state) is False

    def test_clue_4_alice_problems_without_math(self, empty):
        state = toggle_problem(empty, Student.ALICE, ProblemType.LOGIC, True)
        assert check_clue(4, state) is False

    def test_clue_5_cpp_user_graph(self, empty):
        state = _with(empty, Student.DAVE, Language.CPP, [ProblemType.GRAPH])
        assert check_clue(5, state) is False

    def test_clue_6_eve_python(self, empty):
        state = set_language(empty, Student.EVE, Language.PYTHON)
        assert check_clue(6, state) is False

    def test_clue_6_eve_without_sorting(self, empty):
        state = toggle_problem(empty, Student.EVE, ProblemType.MATH, True)
        assert check_clue(6, state) is False

    def test_clue_7_dave_graph(self, empty):
        state = toggle_problem(empty, Student.DAVE, ProblemType.GRAPH, True)
        assert check_clue(7, state) is False

    def test_clue_7_dave_ruby(self, empty):
        state = set_language(empty, Student.DAVE, Language.RUBY)
        assert check_clue(7, state) is False

    def test_clue_8_sorting_without_logic(self, empty):
        state = toggle_problem(empty, Student.EVE, ProblemType.SORTING, True)
        assert check_clue(8, state) is False

    def test_clue_10_java_user_one_problem(self, empty):
        state = _with(empty, Student.BOB, Language.JAVA, [ProblemType.LOGIC])
        assert check_clue(10, state) is False

    def test_clue_10_java_user_without_problems(self, empty):
        state = set_language(empty, Student.BOB, Language.JAVA)
        assert check_clue(10, state) is True


class TestCountingConstraints:
    """Tests für die Zählbedingungen"""

    def test_three_graph_solvers(self, empty):
        """Test: Drei Graph-Löser verletzen Hinweis 9, nicht aber das Maximum"""
        state = empty
        for student in (Student.ALICE, Student.BOB, Student.CHARLIE):
            state = toggle_problem(state, student, ProblemType.GRAPH, True)

        assert state.count(ProblemType.GRAPH) == 3
        assert check_clue(9, state) is False
        assert respects_max_three_problems(state) is True

    def test_two_graph_solvers_ok(self, empty):
        state = toggle_problem(empty, Student.BOB, ProblemType.GRAPH, True)
        state = toggle_problem(state, Student.CHARLIE, ProblemType.GRAPH, True)
        assert check_clue(9, state) is True

    def test_four_problems_violate_maximum(self, empty):
        state = empty.clone()
        state.assignments[Student.ALICE].problems.update(
            {ProblemType.MATH, ProblemType.LOGIC, ProblemType.SORTING, ProblemType.GRAPH}
        )
        assert respects_max_three_problems(state) is False


class TestValidateReport:
    """Tests für den Gesamtbericht"""

    def test_multiple_violations_sorted(self, empty):
        state = set_language(empty, Student.EVE, Language.JAVA)
        state = set_language(state, Student.BOB, Language.CPP)

        result = validate(state)

        assert result.valid is False
        assert result.violated_ids == [1, 6]
        assert result.message == "Violated 2 constraint(s): #1, #6"

    def test_duplicate_languages_detected(self, empty):
        state = set_language(empty, Student.ALICE, Language.JAVA)
        state = set_language(state, Student.BOB, Language.JAVA)
        assert has_unique_languages(state) is False

    def test_unique_languages_on_empty_state(self, empty):
        assert has_unique_languages(empty) is True

    def test_result_to_dict(self, empty):
        data = validate(set_language(empty, Student.BOB, Language.CPP)).to_dict()
        assert data["valid"] is False
        assert data["violated"][0]["id"] == 1
