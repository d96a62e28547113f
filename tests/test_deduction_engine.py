"""
Tests für die Deduktions-Engine (component_5)

Testet die Ableitungskette D1..D17:
- Anzahl, Ids, Regeln, zitierte Prämissen und Schlussfolgerungen
- Endzustand und Verifikation
- Unveränderlichkeit der Schnappschüsse und Invarianten pro Schritt
- Wiederholung der Aktionen (Round-Trip)
- Fehlerpfad mit defekter Pipeline
- Abhängigkeitsketten, Beweiszusammenfassung und Lösungs-Cache
"""

import logging
from dataclasses import replace

import pytest

from component_1_puzzle_model import (
    LANGUAGES,
    PROBLEM_TYPES,
    STUDENTS,
    Deduce,
    Language,
    ProblemType,
    Student,
    apply_action,
    empty_state,
    is_complete,
)
from component_3_constraint_checker import (
    has_unique_languages,
    respects_max_three_problems,
    validate,
)
from component_4_formal_logic import InferenceRule, parse_clues
from component_5_deduction_engine import (
    DeductionEngine,
    FactRegistry,
    build_pipeline,
    get_cached_solution,
    get_dependency_chain,
    get_proof_summary,
    language_candidates,
    remaining_problems,
    solve,
)
from infrastructure.cache_manager import get_cache_manager
from lpp_exceptions import UnknownFactError

EXPECTED_CHAIN = [
    ("D1", InferenceRule.SIMPLIFICATION, ["P2"], "Charlie.uses(Swift)"),
    ("D2", InferenceRule.SIMPLIFICATION, ["P4"], "Alice.solves(Math)"),
    ("D3", InferenceRule.SIMPLIFICATION, ["P1"], "Bob.solves(Logic)"),
    ("D4", InferenceRule.SIMPLIFICATION, ["P6"], "Eve.solves(Sorting)"),
    ("D5", InferenceRule.MODUS_PONENS, ["D4", "P8"], "Eve.solves(Logic)"),
    ("D6", InferenceRule.ELIMINATION, ["P6", "D5", "P5", "D1"], "Eve.uses(Ruby)"),
    (
        "D7",
        InferenceRule.ELIMINATION,
        ["P4", "D2", "P3", "D1", "D6"],
        "Alice.uses(Python)",
    ),
    ("D8", InferenceRule.ELIMINATION, ["P1", "P7", "D1", "D6", "D7"], "Dave.uses(C++)"),
    ("D9", InferenceRule.ELIMINATION, ["D1", "D6", "D7", "D8"], "Bob.uses(Java)"),
    ("D10", InferenceRule.SIMPLIFICATION, ["P2"], "Charlie.solves(Graph)"),
    (
        "D11",
        InferenceRule.MODUS_PONENS,
        ["D8", "P5", "P7"],
        "Dave.¬solves(Logic) ∧ Dave.¬solves(Graph)",
    ),
    ("D12", InferenceRule.MODUS_TOLLENS, ["D11", "P8"], "Dave.¬solves(Sorting)"),
    ("D13", InferenceRule.ELIMINATION, ["D11", "D12"], "Dave.solves(Math)"),
    ("D14", InferenceRule.MODUS_PONENS, ["D7", "P3"], "Alice.¬solves(Sorting)"),
    (
        "D15",
        InferenceRule.ELIMINATION,
        ["D2", "D7", "D14", "P3"],
        "Alice.¬solves(Logic) ∧ Alice.¬solves(Graph)",
    ),
    (
        "D16",
        InferenceRule.ELIMINATION,
        ["P9", "D10", "D11", "D15", "D4", "D5"],
        "Bob.solves(Graph)",
    ),
    (
        "D17",
        InferenceRule.CONJUNCTION,
        ["D3", "D16", "D9", "P10"],
        "Bob.solves({Logic, Graph}) ∧ |Bob.problems| = 2",
    ),
]

EXPECTED_FINAL = {
    Student.ALICE: (Language.PYTHON, {ProblemType.MATH}),
    Student.BOB: (Language.JAVA, {ProblemType.LOGIC, ProblemType.GRAPH}),
    Student.CHARLIE: (Language.SWIFT, {ProblemType.GRAPH}),
    Student.DAVE: (Language.CPP, {ProblemType.MATH}),
    Student.EVE: (Language.RUBY, {ProblemType.SORTING, ProblemType.LOGIC}),
}


class TestDerivationChain:
    """Tests für die Ableitungskette"""

    def test_solve_succeeds_with_17_steps(self, solution):
        assert solution.success is True
        assert solution.error_message is None
        assert len(solution.steps) == 17

    def test_step_numbers_and_ids_sequential(self, solution):
        assert [s.step_number for s in solution.steps] == list(range(1, 18))
        assert [s.derived_fact_id for s in solution.steps] == [
            f"D{i}" for i in range(1, 18)
        ]

    @pytest.mark.parametrize("index", range(17))
    def test_step_matches_expected(self, solution, index):
        fact_id, rule, premises, conclusion = EXPECTED_CHAIN[index]
        step = solution.steps[index]

        assert step.derived_fact_id == fact_id
        assert step.inference_rule == rule
        assert list(step.premise_ids) == premises
        assert step.conclusion == conclusion

    def test_proof_line_format(self, solution):
        assert solution.steps[0].formal_proof_line == "P2 ⊢ Charlie.uses(Swift) [Simp]"
        assert solution.steps[4].formal_proof_line == "D4, P8 ⊢ Eve.solves(Logic) [MP]"
        assert solution.steps[5].formal_proof_line == (
            "P6, D5, P5, D1 ⊢ Eve.uses(Ruby) [Elimination]"
        )

    def test_cited_derived_facts_precede_step(self, solution):
        """Test: Jede zitierte D-Id wurde in einem früheren Schritt abgeleitet"""
        seen = set()
        for step in solution.steps:
            for cited in step.premise_ids:
                if cited.startswith("D"):
                    assert cited in seen
                else:
                    assert cited in {f"P{i}" for i in range(1, 11)}
            seen.add(step.derived_fact_id)

    def test_simplification_justification(self, solution):
        assert solution.steps[0].justification == (
            "From P2 by Simplification: Charlie.uses(Swift) ∧ Charlie.solves(Graph) "
            "⊢ Charlie.uses(Swift)"
        )

    def test_pure_deductions_use_deduce(self, solution):
        deduce_ids = [
            s.derived_fact_id for s in solution.steps if isinstance(s.action, Deduce)
        ]
        assert deduce_ids == ["D11", "D12", "D14", "D15", "D17"]
        assert solution.steps[16].action.description == (
            "Bob.problemCount = 2 (Verification)"
        )

    def test_derived_facts_registry(self, solution):
        assert list(solution.derived_facts) == [f"D{i}" for i in range(1, 18)]
        assert solution.derived_facts["D8"] == "Dave.uses(C++)"


class TestFinalState:
    """Tests für den Endzustand"""

    def test_final_assignment(self, solution):
        for student, (language, problems) in EXPECTED_FINAL.items():
            assert solution.final_state.language_of(student) == language
            assert solution.final_state.problems_of(student) == frozenset(problems)

    def test_final_state_verified(self, solution):
        state = solution.final_state

        assert validate(state).valid is True
        assert has_unique_languages(state) is True
        assert respects_max_three_problems(state) is True
        assert is_complete(state) is True
        assert state.available_languages == set()

    def test_final_problem_counts(self, solution):
        counts = {p: solution.final_state.count(p) for p in PROBLEM_TYPES}
        assert counts == {
            ProblemType.MATH: 2,
            ProblemType.LOGIC: 2,
            ProblemType.SORTING: 1,
            ProblemType.GRAPH: 2,
        }

    def test_formal_proof(self, solution):
        proof = solution.formal_proof

        assert proof is not None
        assert [p.id for p in proof.premises] == [f"P{i}" for i in range(1, 11)]
        assert len(proof.steps) == 17
        assert proof.final_conclusion == (
            "All students assigned languages and problems satisfying all 10 constraints"
        )

    def test_solve_is_deterministic(self, solution):
        again = solve()
        assert [s.formal_proof_line for s in again.steps] == [
            s.formal_proof_line for s in solution.steps
        ]
        assert again.final_state == solution.final_state


class TestSnapshots:
    """Tests für die Schnappschüsse pro Schritt"""

    def test_each_step_owns_its_state(self, solution):
        states = [step.state_after for step in solution.steps]
        assert len({id(s) for s in states}) == len(states)
        assert all(s is not solution.final_state for s in states)

    def test_deduce_steps_do_not_change_state(self, solution):
        for previous, step in zip(solution.steps, solution.steps[1:]):
            if isinstance(step.action, Deduce):
                assert step.state_after == previous.state_after

    def test_first_snapshot_only_has_swift(self, solution):
        first = solution.steps[0].state_after
        assert first.language_of(Student.CHARLIE) == Language.SWIFT
        assert first.available_languages == set(LANGUAGES) - {Language.SWIFT}
        assert all(first.count(p) == 0 for p in PROBLEM_TYPES)

    @pytest.mark.parametrize("index", range(17))
    def test_invariants_hold_after_every_step(self, solution, index):
        state = solution.steps[index].state_after

        for problem in PROBLEM_TYPES:
            holders = sum(1 for s in STUDENTS if state.solves(s, problem))
            assert state.count(problem) == holders

        assigned = {
            state.language_of(s) for s in STUDENTS if state.language_of(s) is not None
        }
        assert state.available_languages == set(LANGUAGES) - assigned
        assert has_unique_languages(state)
        assert respects_max_three_problems(state)

    def test_round_trip_replay(self, solution):
        """Test: Wiederholung aller Aktionen ergibt denselben Endzustand"""
        state = empty_state()
        for step in solution.steps:
            state = apply_action(state, step.action)
        assert state == solution.final_state


class TestFailurePath:
    """Eine defekte Pipeline bricht ab, ohne eine Exception zu werfen"""

    def test_missing_cited_fact(self):
        pipeline = [rule for rule in build_pipeline() if rule.fact_id != "D4"]

        result = DeductionEngine(pipeline).solve()

        assert result.success is False
        assert len(result.steps) == 3
        assert "D4" in result.error_message
        assert result.formal_proof is None

    def test_failed_precondition(self):
        pipeline = build_pipeline()
        pipeline[5] = replace(pipeline[5], precondition=lambda state, registry: "blocked")

        result = DeductionEngine(pipeline).solve()

        assert result.success is False
        assert len(result.steps) == 5
        assert "D6" in result.error_message
        assert "blocked" in result.error_message

    def test_out_of_sequence_rule(self):
        result = DeductionEngine(build_pipeline()[1:]).solve()

        assert result.success is False
        assert result.steps == []

    def test_truncated_pipeline_not_verified(self):
        result = DeductionEngine(build_pipeline()[:9]).solve()

        assert result.success is False
        assert len(result.steps) == 9
        assert result.final_state.language_of(Student.BOB) == Language.JAVA

    def test_unexpected_error_wrapped(self):
        def explode(state, registry):
            raise RuntimeError("boom")

        pipeline = build_pipeline()
        pipeline[0] = replace(pipeline[0], precondition=explode)

        result = DeductionEngine(pipeline).solve()

        assert result.success is False
        assert "Unexpected error" in result.error_message
        assert "boom" in result.error_message


class TestCandidates:
    """Tests für die Kandidatenberechnung der Vorbedingungen"""

    def test_eve_candidates_on_empty_state(self, empty):
        assert language_candidates(empty, Student.EVE) == {
            Language.CPP,
            Language.RUBY,
            Language.SWIFT,
        }

    def test_charlie_restricted_to_swift(self, empty):
        assert language_candidates(empty, Student.CHARLIE) == {Language.SWIFT}

    def test_assigned_student_has_own_language(self, solution):
        state = solution.final_state
        assert language_candidates(state, Student.DAVE) == {Language.CPP}

    def test_remaining_problems_respect_exclusions(self, empty):
        registry = FactRegistry(parse_clues())
        registry.exclude_problem(Student.DAVE, ProblemType.GRAPH)
        assert remaining_problems(empty, registry, Student.DAVE) == {
            ProblemType.MATH,
            ProblemType.LOGIC,
            ProblemType.SORTING,
        }

    def test_registry_rejects_unknown_ids(self):
        registry = FactRegistry(parse_clues())
        registry.require(["P1", "P10"])
        with pytest.raises(UnknownFactError):
            registry.require(["D1"])
        with pytest.raises(UnknownFactError):
            registry.require(["P11"])


class TestProofInspection:
    """Tests für Abhängigkeitsketten und Zusammenfassung"""

    def test_dependency_chain_of_d5(self, solution):
        assert get_dependency_chain(solution, "D5") == ["P6", "P8", "D4"]

    def test_dependency_chain_of_d1(self, solution):
        assert get_dependency_chain(solution, "D1") == ["P2"]

    def test_dependency_chain_of_d13(self, solution):
        chain = get_dependency_chain(solution, "D13")
        assert "D11" in chain and "D12" in chain and "D8" in chain
        assert chain.index("D8") < chain.index("D11")

    def test_unknown_fact(self, solution):
        with pytest.raises(UnknownFactError):
            get_dependency_chain(solution, "D99")

    def test_proof_summary(self, solution):
        summary = get_proof_summary(solution.steps)

        assert summary.startswith("FORMAL PROOF SUMMARY")
        assert "1. P2 ⊢ Charlie.uses(Swift) [Simp]" in summary
        assert "   Rule: Modus Tollens" in summary

    def test_result_to_dict(self, solution):
        data = solution.to_dict()
        assert data["success"] is True
        assert len(data["steps"]) == 17
        assert data["steps"][7]["action"] == {
            "type": "assign_language",
            "student": "Dave",
            "language": "C++",
        }


class TestCachedSolution:
    """Tests für die gecachte Lösung"""

    def test_same_object_returned(self):
        first = get_cached_solution()
        second = get_cached_solution()

        assert first is second
        assert first.success is True

    def test_cache_statistics(self):
        get_cached_solution()
        get_cached_solution()

        stats = get_cache_manager().get_stats("lpp_solution")
        assert stats["hits"] == 1
        assert stats["misses"] == 1
        assert stats["size"] == 1


class TestLogging:
    """Tests für das Logging der Engine"""

    def test_success_logged(self, caplog):
        caplog.set_level(logging.INFO)
        solve()
        assert any(r.getMessage() == "Rätsel gelöst" for r in caplog.records)

    def test_abort_logged_as_error(self, caplog):
        caplog.set_level(logging.INFO)
        DeductionEngine(build_pipeline()[1:]).solve()
        assert any(
            r.levelno == logging.ERROR and r.getMessage() == "Ableitung abgebrochen"
            for r in caplog.records
        )
