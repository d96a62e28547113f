"""
component_8_puzzle_reasoning_engine.py
======================================
Query front-end for the solved puzzle.

Answers three kinds of queries against the (cached) derivation:
- A formal statement, e.g. "Eve.uses(Ruby)" or "Dave.¬solves(Sorting)";
  matched against every derived conclusion and its conjuncts
- A student name, e.g. "Bob": language and problem types of that student
- A language name, e.g. "C++": the student using it

The answer comes with a ProofTree restricted to the facts the answer rests
on (the dependency chain down to the premises).

Author: LPP Development Team
"""

from typing import Any, Dict, List, Optional, Set

from component_15_logging_config import PerformanceLogger, get_logger
from component_1_puzzle_model import (
    LANGUAGES,
    STUDENTS,
    AssignLanguage,
    AssignProblem,
    Student,
    sort_problems,
)
from component_4_formal_logic import LogicalOperator
from component_5_deduction_engine import (
    SolutionResult,
    get_cached_solution,
    get_dependency_chain,
)
from component_6_proof_explanation import create_proof_tree_from_solution
from infrastructure.interfaces import BaseReasoningEngine, ReasoningResult

logger = get_logger(__name__)

STRATEGY_NAME = "deductive_proof_lookup"


def _normalize(text: str) -> str:
    return " ".join(text.split())


class PuzzleReasoningEngine(BaseReasoningEngine):
    """
    Reasoning engine backed by the derivation of solve().

    Args:
        solution: Precomputed result; defaults to the cached solution
    """

    def __init__(self, solution: Optional[SolutionResult] = None):
        self._solution = solution

    @property
    def solution(self) -> SolutionResult:
        if self._solution is None:
            self._solution = get_cached_solution()
        return self._solution

    # ------------------------------------------------------------------
    # BaseReasoningEngine
    # ------------------------------------------------------------------

    def reason(self, query: str, context: Dict[str, Any]) -> ReasoningResult:
        text = _normalize(query)
        perf = PerformanceLogger(logger.logger, "Anfrage", query=text)

        with perf:
            if not self.solution.success:
                result = ReasoningResult(
                    success=False,
                    metadata={"error": self.solution.error_message},
                    strategy_used=STRATEGY_NAME,
                )
            else:
                result = self._answer(text)

        result.computation_cost = perf.duration_ms or 0.0
        logger.debug(
            "Anfrage beantwortet",
            extra={"query": text, "success": result.success},
        )
        return result

    def get_capabilities(self) -> List[str]:
        return ["deductive", "constraint", "logic_puzzle_solving", "proof_explanation"]

    def estimate_cost(self, query: str) -> float:
        # Lookups are cheap once the derivation exists
        return 0.1 if self._solution is not None else 0.5

    # ------------------------------------------------------------------
    # Query handling
    # ------------------------------------------------------------------

    def _answer(self, text: str) -> ReasoningResult:
        student = _match_enum(STUDENTS, text)
        if student is not None:
            return self._answer_student(student)

        language = _match_enum(LANGUAGES, text)
        if language is not None:
            holder = self.solution.final_state.student_with_language(language)
            if holder is not None:
                return self._answer_student(holder, focus_language=True)

        fact_id = self.find_fact(text)
        if fact_id is None:
            return ReasoningResult(
                success=False,
                metadata={"reason": f"No derived fact matches '{text}'"},
                strategy_used=STRATEGY_NAME,
            )

        return self._build_result(
            answer=self.solution.derived_facts[fact_id],
            query=text,
            fact_ids=[fact_id],
        )

    def find_fact(self, statement: str) -> Optional[str]:
        """
        Id of the first derived fact whose conclusion (or one of its
        conjuncts) equals the statement.
        """
        wanted = _normalize(statement)
        separator = f" {LogicalOperator.AND} "
        for fact_id, conclusion in self.solution.derived_facts.items():
            if conclusion == wanted or wanted in conclusion.split(separator):
                return fact_id
        return None

    def _answer_student(
        self, student: Student, focus_language: bool = False
    ) -> ReasoningResult:
        state = self.solution.final_state
        language = state.language_of(student)
        problems = sort_problems(state.problems_of(student))

        if focus_language:
            answer = f"{student.value} uses {language.value}"
        else:
            answer = (
                f"{student.value} uses {language.value} and solves "
                + ", ".join(p.value for p in problems)
            )

        fact_ids = []
        for step in self.solution.steps:
            action = step.action
            if isinstance(action, AssignLanguage) and action.student == student:
                fact_ids.append(step.derived_fact_id)
            elif (
                isinstance(action, AssignProblem)
                and action.student == student
                and not focus_language
            ):
                fact_ids.append(step.derived_fact_id)

        return self._build_result(answer=answer, query=student.value, fact_ids=fact_ids)

    def _build_result(
        self, answer: str, query: str, fact_ids: List[str]
    ) -> ReasoningResult:
        support: Set[str] = set(fact_ids)
        for fact_id in fact_ids:
            support.update(get_dependency_chain(self.solution, fact_id))

        tree = create_proof_tree_from_solution(
            self.solution, query=query, fact_ids=support
        )
        return ReasoningResult(
            success=True,
            answer=answer,
            confidence=1.0,
            proof_tree=tree,
            metadata={"facts": fact_ids, "support": len(support)},
            strategy_used=STRATEGY_NAME,
        )


def _match_enum(members, text: str):
    lowered = text.lower()
    for member in members:
        if member.value.lower() == lowered:
            return member
    return None
