"""
component_5_deduction_engine.py
===============================
Deduction engine: derives the puzzle solution as a formal proof.

The solution is produced by a fixed pipeline of seventeen derivation rules
D1..D17. Each rule is a small record (rule of inference, cited premises,
action, justification, precondition) applied by one generic transform:

    (prior state, fact registry) -> (new state, DerivationStep)

Applying a rule:
1. Every cited id must exist (P1..P10 or an earlier D<n>)
2. The precondition is evaluated on the prior state (elimination rules
   recompute the remaining candidates instead of trusting the script)
3. The prior state is cloned and at most one assignment is applied
4. The conclusion is registered under the next sequential D<n>
5. A DerivationStep with a snapshot of the new state is recorded

This is a proof replay engine for one puzzle instance, not a general
constraint solver. Consistency is still checked by construction: a failed
precondition aborts the chain with success=False and the steps produced so
far, and a finished chain is verified against the validator before it is
reported as a success.

Inference rules used:
- Simplification (S):   A ∧ B ⊢ A
- Modus Ponens (MP):    A, A → B ⊢ B
- Modus Tollens (MT):   ¬B, A → B ⊢ ¬A
- Elimination:          all other possibilities ruled out
- Conjunction (Conj):   closing verification of the Java user

Author: LPP Development Team
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence, Set, Tuple

from common.constants import (
    DERIVED_FACT_PREFIX,
    EXPECTED_DERIVATION_STEPS,
    FINAL_CONCLUSION,
    GRAPH_SOLVER_LIMIT,
    JAVA_PROBLEM_COUNT,
    MAX_PROBLEMS_PER_STUDENT,
    PREMISE_PREFIX,
    SOLUTION_CACHE_MAXSIZE,
    SOLUTION_CACHE_NAME,
    SOLUTION_CACHE_TTL,
)
from component_15_logging_config import PerformanceLogger, get_logger
from component_1_puzzle_model import (
    PROBLEM_TYPES,
    AssignLanguage,
    AssignProblem,
    Deduce,
    Language,
    ProblemType,
    PuzzleState,
    SolverAction,
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
from component_4_formal_logic import (
    FormalPremise,
    InferenceRule,
    format_action_as_conclusion,
    format_proof_line,
    parse_clues,
)
from infrastructure.cache_manager import get_cache_manager
from lpp_exceptions import (
    DerivationError,
    LPPException,
    PuzzleStateError,
    ReasoningException,
    UnknownFactError,
)

logger = get_logger(__name__)


# ============================================================================
# Result Types
# ============================================================================


@dataclass
class DerivationStep:
    """
    One step of the derivation.

    Attributes:
        step_number: 1-based position in the chain
        inference_rule: Rule of inference applied
        premise_ids: Cited premises / derived facts, in citation order
        conclusion: Formal conclusion established by this step
        formal_proof_line: "<premises> ⊢ <conclusion> [<rule>]"
        justification: Natural language explanation
        action: State change applied (Deduce for pure deductions)
        state_after: Snapshot of the state after this step (never mutated)
        derived_fact_id: "D<n>" under which the conclusion was registered
    """

    step_number: int
    inference_rule: InferenceRule
    premise_ids: Tuple[str, ...]
    conclusion: str
    formal_proof_line: str
    justification: str
    action: SolverAction
    state_after: PuzzleState
    derived_fact_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "step_number": self.step_number,
            "inference_rule": self.inference_rule.value,
            "premise_ids": list(self.premise_ids),
            "conclusion": self.conclusion,
            "formal_proof_line": self.formal_proof_line,
            "justification": self.justification,
            "action": self.action.to_dict(),
            "state_after": self.state_after.to_dict(),
            "derived_fact_id": self.derived_fact_id,
        }


@dataclass
class FormalProof:
    """Premises, derivation and final conclusion of a successful solve."""

    premises: List[FormalPremise]
    steps: List[DerivationStep]
    final_conclusion: str = FINAL_CONCLUSION


@dataclass
class SolutionResult:
    """
    Outcome of solve().

    Read-only once returned; it may be shared between consumers (the
    solution cache hands out the same object).
    """

    success: bool
    steps: List[DerivationStep]
    final_state: PuzzleState
    error_message: Optional[str] = None
    formal_proof: Optional[FormalProof] = None
    derived_facts: Dict[str, str] = field(default_factory=dict)

    def get_step(self, fact_id: str) -> Optional[DerivationStep]:
        for step in self.steps:
            if step.derived_fact_id == fact_id:
                return step
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "steps": [step.to_dict() for step in self.steps],
            "final_state": self.final_state.to_dict(),
            "error_message": self.error_message,
            "derived_facts": dict(self.derived_facts),
            "final_conclusion": (
                self.formal_proof.final_conclusion if self.formal_proof else None
            ),
        }


# ============================================================================
# Fact Registry
# ============================================================================


class FactRegistry:
    """
    Append-only registry of everything a step may cite.

    Holds the premises P1..P10, the derived facts D1..Dn (id -> conclusion,
    insertion ordered) and the problem-type exclusions established by pure
    deduction steps.
    """

    def __init__(self, premises: Sequence[FormalPremise]):
        self.premises: Dict[str, FormalPremise] = {p.id: p for p in premises}
        self.facts: Dict[str, str] = {}
        self._excluded_problems: Set[Tuple[Student, ProblemType]] = set()

    def next_fact_id(self) -> str:
        return f"{DERIVED_FACT_PREFIX}{len(self.facts) + 1}"

    def register(self, fact_id: str, conclusion: str) -> None:
        self.facts[fact_id] = conclusion

    def conclusion(self, fact_id: str) -> str:
        try:
            return self.facts[fact_id]
        except KeyError:
            raise UnknownFactError(
                f"Derived fact {fact_id} has not been established",
                fact_id=fact_id,
                context={"known_facts": list(self.facts)},
            )

    def premise(self, premise_id: str) -> FormalPremise:
        try:
            return self.premises[premise_id]
        except KeyError:
            raise UnknownFactError(
                f"Premise {premise_id} does not exist", fact_id=premise_id
            )

    def require(self, ids: Sequence[str]) -> None:
        """Raise UnknownFactError unless every cited id is known."""
        for cited in ids:
            if cited.startswith(PREMISE_PREFIX):
                self.premise(cited)
            else:
                self.conclusion(cited)

    def exclude_problem(self, student: Student, problem: ProblemType) -> None:
        self._excluded_problems.add((student, problem))

    def is_excluded(self, student: Student, problem: ProblemType) -> bool:
        return (student, problem) in self._excluded_problems


# ============================================================================
# Candidate computation (used by the preconditions)
# ============================================================================

# Language exclusions stated directly by clues 1, 4, 6 and 7
_NAMED_LANGUAGE_EXCLUSIONS: Dict[Student, Set[Language]] = {
    Student.BOB: {Language.CPP},
    Student.ALICE: {Language.RUBY, Language.SWIFT},
    Student.EVE: {Language.JAVA, Language.PYTHON},
    Student.DAVE: {Language.RUBY},
}

# Clue 2
_NAMED_LANGUAGES: Dict[Student, Language] = {Student.CHARLIE: Language.SWIFT}


def language_candidates(state: PuzzleState, student: Student) -> Set[Language]:
    """
    Languages the student can still use given the state and the clues.

    Combines the still-available languages with the named exclusions and the
    implication clues applied to the student's current problem set
    (C++ users solve neither Logic nor Graph, the Python user solves Math but
    not Sorting, the Java user solves exactly two problem types).
    """
    assigned = state.language_of(student)
    if assigned is not None:
        return {assigned}

    candidates = set(state.available_languages)
    if student in _NAMED_LANGUAGES:
        candidates &= {_NAMED_LANGUAGES[student]}
    candidates -= _NAMED_LANGUAGE_EXCLUSIONS.get(student, set())

    problems = state.problems_of(student)
    if ProblemType.LOGIC in problems or ProblemType.GRAPH in problems:
        candidates.discard(Language.CPP)
    if ProblemType.SORTING in problems:
        candidates.discard(Language.PYTHON)
    if problems and ProblemType.MATH not in problems:
        candidates.discard(Language.PYTHON)
    if len(problems) > JAVA_PROBLEM_COUNT:
        candidates.discard(Language.JAVA)

    return candidates


def remaining_problems(
    state: PuzzleState, registry: FactRegistry, student: Student
) -> Set[ProblemType]:
    """Problem types the student neither solves already nor is excluded from."""
    return {
        p
        for p in PROBLEM_TYPES
        if not state.solves(student, p) and not registry.is_excluded(student, p)
    }


# ============================================================================
# Preconditions
# ============================================================================

Precondition = Callable[[PuzzleState, FactRegistry], Optional[str]]


def _can_take_language(student: Student, language: Language) -> Precondition:
    def check(state: PuzzleState, registry: FactRegistry) -> Optional[str]:
        if state.language_of(student) is not None:
            return f"{student.value} already uses {state.language_of(student).value}"
        if language not in language_candidates(state, student):
            return f"{language.value} is not a candidate for {student.value}"
        return None

    return check


def _only_candidate(student: Student, language: Language) -> Precondition:
    def check(state: PuzzleState, registry: FactRegistry) -> Optional[str]:
        candidates = language_candidates(state, student)
        if candidates != {language}:
            names = sorted(c.value for c in candidates)
            return (
                f"Elimination for {student.value} leaves {names}, "
                f"expected only {language.value}"
            )
        return None

    return check


def _only_holder(student: Student, language: Language) -> Precondition:
    """Every language is used once: if no other open student can take it, student must."""

    def check(state: PuzzleState, registry: FactRegistry) -> Optional[str]:
        reason = _can_take_language(student, language)(state, registry)
        if reason:
            return reason
        others = [
            s.value
            for s in state.unassigned_students()
            if s != student and language in language_candidates(state, s)
        ]
        if others:
            return f"{language.value} could still be used by {others}"
        return None

    return check


def _can_take_problem(student: Student, problem: ProblemType) -> Precondition:
    def check(state: PuzzleState, registry: FactRegistry) -> Optional[str]:
        if state.solves(student, problem):
            return f"{student.value} already solves {problem.value}"
        if registry.is_excluded(student, problem):
            return f"{student.value} is excluded from {problem.value}"
        if len(state.problems_of(student)) >= MAX_PROBLEMS_PER_STUDENT:
            return f"{student.value} already solves {MAX_PROBLEMS_PER_STUDENT} problem types"
        return None

    return check


def _uses(student: Student, language: Language) -> Precondition:
    def check(state: PuzzleState, registry: FactRegistry) -> Optional[str]:
        if state.language_of(student) != language:
            return f"{student.value} does not use {language.value}"
        return None

    return check


def _solves(student: Student, problem: ProblemType) -> Precondition:
    def check(state: PuzzleState, registry: FactRegistry) -> Optional[str]:
        if not state.solves(student, problem):
            return f"{student.value} does not solve {problem.value}"
        return None

    return check


def _excluded(student: Student, problem: ProblemType) -> Precondition:
    def check(state: PuzzleState, registry: FactRegistry) -> Optional[str]:
        if not registry.is_excluded(student, problem):
            return f"{student.value} is not known to avoid {problem.value}"
        return None

    return check


def _only_problem_left(student: Student, problem: ProblemType) -> Precondition:
    def check(state: PuzzleState, registry: FactRegistry) -> Optional[str]:
        left = remaining_problems(state, registry, student)
        if left != {problem}:
            names = sorted(p.value for p in left)
            return f"{student.value} has {names} left, expected only {problem.value}"
        return _can_take_problem(student, problem)(state, registry)

    return check


def _solves_exactly(student: Student, problems: Set[ProblemType]) -> Precondition:
    def check(state: PuzzleState, registry: FactRegistry) -> Optional[str]:
        if state.problems_of(student) != frozenset(problems):
            return (
                f"{student.value} solves "
                f"{sorted(p.value for p in state.problems_of(student))}"
            )
        return None

    return check


def _graph_capacity(open_slots: int) -> Precondition:
    """Exactly `open_slots` Graph solvers are still missing (clue 9)."""

    def check(state: PuzzleState, registry: FactRegistry) -> Optional[str]:
        missing = GRAPH_SOLVER_LIMIT - state.count(ProblemType.GRAPH)
        if missing != open_slots:
            return f"{missing} Graph solver(s) missing, expected {open_slots}"
        return None

    return check


def _java_problem_count(state: PuzzleState, registry: FactRegistry) -> Optional[str]:
    java_user = state.student_with_language(Language.JAVA)
    if java_user is None:
        return "No student uses Java"
    count = len(state.problems_of(java_user))
    if count != JAVA_PROBLEM_COUNT:
        return f"Java user {java_user.value} solves {count} problem types"
    return None


def _all(*checks: Precondition) -> Precondition:
    def check(state: PuzzleState, registry: FactRegistry) -> Optional[str]:
        for single in checks:
            reason = single(state, registry)
            if reason:
                return reason
        return None

    return check


# ============================================================================
# Derivation Rules
# ============================================================================


@dataclass(frozen=True)
class DerivationRule:
    """
    Declarative description of one derivation step.

    Attributes:
        fact_id: Id the conclusion is expected to receive ("D<n>")
        rule: Rule of inference
        premise_ids: Cited premises / derived facts
        action: State change (Deduce for pure deductions)
        precondition: Returns a failure reason, or None if the step applies
        justification: Natural language text; Simplification steps generate
            it from the premise when omitted
        conclusion: Explicit conclusion for pure deductions
        excludes: (student, problem) pairs ruled out by this step
    """

    fact_id: str
    rule: InferenceRule
    premise_ids: Tuple[str, ...]
    action: SolverAction
    precondition: Precondition
    justification: Optional[str] = None
    conclusion: Optional[str] = None
    excludes: Tuple[Tuple[Student, ProblemType], ...] = ()

    def apply(
        self, state: PuzzleState, registry: FactRegistry, step_number: int
    ) -> Tuple[PuzzleState, DerivationStep]:
        """
        Apply the rule to a prior state.

        Raises:
            UnknownFactError: If a cited id is unknown
            DerivationError: If the precondition fails or the id is out of sequence
        """
        registry.require(self.premise_ids)

        expected_id = registry.next_fact_id()
        if expected_id != self.fact_id:
            raise DerivationError(
                f"Step {step_number} would derive {self.fact_id}, next id is {expected_id}",
                fact_id=self.fact_id,
            )

        reason = self.precondition(state, registry)
        if reason:
            raise DerivationError(
                f"Precondition of {self.fact_id} failed: {reason}",
                fact_id=self.fact_id,
                context={"rule": self.rule.value},
            )

        new_state = apply_action(state, self.action)

        conclusion = self.conclusion or format_action_as_conclusion(self.action)
        registry.register(self.fact_id, conclusion)
        for student, problem in self.excludes:
            registry.exclude_problem(student, problem)

        step = DerivationStep(
            step_number=step_number,
            inference_rule=self.rule,
            premise_ids=self.premise_ids,
            conclusion=conclusion,
            formal_proof_line=format_proof_line(
                self.premise_ids, conclusion, self.rule.abbreviation
            ),
            justification=self._render_justification(registry, conclusion),
            action=self.action,
            state_after=new_state.clone(),
            derived_fact_id=self.fact_id,
        )

        logger.debug(
            "Fakt abgeleitet",
            extra={
                "fact_id": self.fact_id,
                "rule": self.rule.value,
                "premises": ",".join(self.premise_ids),
                "conclusion": conclusion,
            },
        )
        return new_state, step

    def _render_justification(self, registry: FactRegistry, conclusion: str) -> str:
        if self.justification:
            return self.justification
        cited = ", ".join(self.premise_ids)
        if self.rule == InferenceRule.SIMPLIFICATION and len(self.premise_ids) == 1:
            premise = registry.premise(self.premise_ids[0])
            return (
                f"From {cited} by Simplification: "
                f"{premise.formal_notation} ⊢ {conclusion}"
            )
        return f"From {cited} by {self.rule.value} ⊢ {conclusion}"


_S = Student
_L = Language
_T = ProblemType


def build_pipeline() -> List[DerivationRule]:
    """The seventeen derivation rules in proof order."""
    return [
        DerivationRule(
            fact_id="D1",
            rule=InferenceRule.SIMPLIFICATION,
            premise_ids=("P2",),
            action=AssignLanguage(_S.CHARLIE, _L.SWIFT),
            precondition=_can_take_language(_S.CHARLIE, _L.SWIFT),
        ),
        DerivationRule(
            fact_id="D2",
            rule=InferenceRule.SIMPLIFICATION,
            premise_ids=("P4",),
            action=AssignProblem(_S.ALICE, _T.MATH),
            precondition=_can_take_problem(_S.ALICE, _T.MATH),
        ),
        DerivationRule(
            fact_id="D3",
            rule=InferenceRule.SIMPLIFICATION,
            premise_ids=("P1",),
            action=AssignProblem(_S.BOB, _T.LOGIC),
            precondition=_can_take_problem(_S.BOB, _T.LOGIC),
        ),
        DerivationRule(
            fact_id="D4",
            rule=InferenceRule.SIMPLIFICATION,
            premise_ids=("P6",),
            action=AssignProblem(_S.EVE, _T.SORTING),
            precondition=_can_take_problem(_S.EVE, _T.SORTING),
        ),
        DerivationRule(
            fact_id="D5",
            rule=InferenceRule.MODUS_PONENS,
            premise_ids=("D4", "P8"),
            action=AssignProblem(_S.EVE, _T.LOGIC),
            precondition=_all(
                _solves(_S.EVE, _T.SORTING), _can_take_problem(_S.EVE, _T.LOGIC)
            ),
            justification=(
                "From D4, P8 by Modus Ponens: Eve.solves(Sorting), "
                "Sorting solver → Logic solver ⊢ Eve.solves(Logic)"
            ),
        ),
        DerivationRule(
            fact_id="D6",
            rule=InferenceRule.ELIMINATION,
            premise_ids=("P6", "D5", "P5", "D1"),
            action=AssignLanguage(_S.EVE, _L.RUBY),
            precondition=_only_candidate(_S.EVE, _L.RUBY),
            justification=(
                "From P6, D5, P5, D1 by Elimination: Eve ≠ Java, Python (P6), "
                "≠ Swift (D1), Eve.solves(Logic) (D5) so Eve ≠ C++ "
                "(P5: C++ → ¬Logic) ⊢ Eve.uses(Ruby)"
            ),
        ),
        DerivationRule(
            fact_id="D7",
            rule=InferenceRule.ELIMINATION,
            premise_ids=("P4", "D2", "P3", "D1", "D6"),
            action=AssignLanguage(_S.ALICE, _L.PYTHON),
            precondition=_all(
                _solves(_S.ALICE, _T.MATH), _can_take_language(_S.ALICE, _L.PYTHON)
            ),
            justification=(
                "From P4, D2, P3, D1, D6 by Elimination: Alice ≠ Ruby, Swift (P4), "
                "≠ Swift (D1), ≠ Ruby (D6). Remaining: Python, C++, Java. "
                "Alice.solves(Math) (D2), consistent with P3 (Python → Math) "
                "⊢ Alice.uses(Python)"
            ),
        ),
        DerivationRule(
            fact_id="D8",
            rule=InferenceRule.ELIMINATION,
            premise_ids=("P1", "P7", "D1", "D6", "D7"),
            action=AssignLanguage(_S.DAVE, _L.CPP),
            precondition=_only_holder(_S.DAVE, _L.CPP),
            justification=(
                "From P1, P7, D1, D6, D7 by Elimination: Swift→Charlie (D1), "
                "Ruby→Eve (D6), Python→Alice (D7). Remaining: Java, C++. "
                "Bob ¬C++ (P1), Dave ≠ Ruby (P7). Therefore ⊢ Dave.uses(C++)"
            ),
        ),
        DerivationRule(
            fact_id="D9",
            rule=InferenceRule.ELIMINATION,
            premise_ids=("D1", "D6", "D7", "D8"),
            action=AssignLanguage(_S.BOB, _L.JAVA),
            precondition=_only_candidate(_S.BOB, _L.JAVA),
            justification=(
                "From D1, D6, D7, D8 by Elimination: All other languages assigned "
                "(Swift→Charlie, Ruby→Eve, Python→Alice, C++→Dave). "
                "Java remains ⊢ Bob.uses(Java)"
            ),
        ),
        DerivationRule(
            fact_id="D10",
            rule=InferenceRule.SIMPLIFICATION,
            premise_ids=("P2",),
            action=AssignProblem(_S.CHARLIE, _T.GRAPH),
            precondition=_all(
                _graph_capacity(2), _can_take_problem(_S.CHARLIE, _T.GRAPH)
            ),
        ),
        DerivationRule(
            fact_id="D11",
            rule=InferenceRule.MODUS_PONENS,
            premise_ids=("D8", "P5", "P7"),
            action=Deduce("Dave.¬solves(Logic) ∧ Dave.¬solves(Graph)"),
            precondition=_uses(_S.DAVE, _L.CPP),
            conclusion="Dave.¬solves(Logic) ∧ Dave.¬solves(Graph)",
            justification=(
                "From D8, P5, P7 by Modus Ponens: Dave.uses(C++), "
                "C++ user → ¬Logic ∧ ¬Graph (P5), Dave ¬Graph (P7) "
                "⊢ Dave.¬solves(Logic) ∧ Dave.¬solves(Graph)"
            ),
            excludes=((_S.DAVE, _T.LOGIC), (_S.DAVE, _T.GRAPH)),
        ),
        DerivationRule(
            fact_id="D12",
            rule=InferenceRule.MODUS_TOLLENS,
            premise_ids=("D11", "P8"),
            action=Deduce("Dave.¬solves(Sorting)"),
            precondition=_excluded(_S.DAVE, _T.LOGIC),
            conclusion="Dave.¬solves(Sorting)",
            justification=(
                "From D11, P8 by Modus Tollens: Dave.¬solves(Logic) (D11), "
                "Sorting solver → Logic solver (P8) ⊢ Dave.¬solves(Sorting)"
            ),
            excludes=((_S.DAVE, _T.SORTING),),
        ),
        DerivationRule(
            fact_id="D13",
            rule=InferenceRule.ELIMINATION,
            premise_ids=("D11", "D12"),
            action=AssignProblem(_S.DAVE, _T.MATH),
            precondition=_only_problem_left(_S.DAVE, _T.MATH),
            justification=(
                "From D11, D12 by Elimination: Dave.¬solves(Logic), "
                "Dave.¬solves(Graph), Dave.¬solves(Sorting). "
                "Problem types = {Math, Logic, Sorting, Graph}. "
                "Only Math remains ⊢ Dave.solves(Math)"
            ),
        ),
        DerivationRule(
            fact_id="D14",
            rule=InferenceRule.MODUS_PONENS,
            premise_ids=("D7", "P3"),
            action=Deduce("Alice.¬solves(Sorting)"),
            precondition=_uses(_S.ALICE, _L.PYTHON),
            conclusion="Alice.¬solves(Sorting)",
            justification=(
                "From D7, P3 by Modus Ponens: Alice.uses(Python), "
                "Python user → ¬Sorting (P3) ⊢ Alice.¬solves(Sorting)"
            ),
            excludes=((_S.ALICE, _T.SORTING),),
        ),
        DerivationRule(
            fact_id="D15",
            rule=InferenceRule.ELIMINATION,
            premise_ids=("D2", "D7", "D14", "P3"),
            action=Deduce("Alice.¬solves(Logic) ∧ Alice.¬solves(Graph)"),
            precondition=_all(
                _excluded(_S.ALICE, _T.SORTING),
                _solves_exactly(_S.ALICE, {_T.MATH}),
            ),
            conclusion="Alice.¬solves(Logic) ∧ Alice.¬solves(Graph)",
            justification=(
                "From D2, D7, D14, P3 by Elimination: Alice.solves(Math) (D2), "
                "Alice.¬solves(Sorting) (D14). Based on constraints, Alice solves "
                "only Math ⊢ Alice.¬solves(Logic) ∧ Alice.¬solves(Graph)"
            ),
            excludes=((_S.ALICE, _T.LOGIC), (_S.ALICE, _T.GRAPH)),
        ),
        DerivationRule(
            fact_id="D16",
            rule=InferenceRule.ELIMINATION,
            premise_ids=("P9", "D10", "D11", "D15", "D4", "D5"),
            action=AssignProblem(_S.BOB, _T.GRAPH),
            precondition=_all(
                _graph_capacity(1),
                _solves(_S.CHARLIE, _T.GRAPH),
                _excluded(_S.DAVE, _T.GRAPH),
                _excluded(_S.ALICE, _T.GRAPH),
                _can_take_problem(_S.BOB, _T.GRAPH),
            ),
            justification=(
                "From P9, D10, D11, D15, D4, D5 by Elimination: Only 2 solve Graph "
                "(P9), Charlie solves Graph (D10), Dave ≠ Graph (D11), "
                "Alice ≠ Graph (D15), Eve solves Sorting + Logic (D4, D5) not Graph. "
                "Therefore ⊢ Bob.solves(Graph)"
            ),
        ),
        DerivationRule(
            fact_id="D17",
            rule=InferenceRule.CONJUNCTION,
            premise_ids=("D3", "D16", "D9", "P10"),
            action=Deduce("Bob.problemCount = 2 (Verification)"),
            precondition=_all(
                _uses(_S.BOB, _L.JAVA),
                _solves_exactly(_S.BOB, {_T.LOGIC, _T.GRAPH}),
                _java_problem_count,
            ),
            conclusion="Bob.solves({Logic, Graph}) ∧ |Bob.problems| = 2",
            justification=(
                "From D3, D16, D9, P10 by Conjunction & Verification: "
                "Bob.solves(Logic) (D3), Bob.solves(Graph) (D16), Bob.uses(Java) (D9), "
                "Java user solves exactly 2 (P10) ⊢ All constraints satisfied ✓"
            ),
        ),
    ]


# ============================================================================
# Engine
# ============================================================================


class DeductionEngine:
    """
    Runs a derivation pipeline from the empty state.

    Workflow:
    1. Encode clues as premises P1..P10
    2. Apply each rule to the previous state (clone + at most one assignment)
    3. Verify the final state (validator, structural checks, completeness)
    4. Package everything into a SolutionResult

    Never raises past solve(): failures become success=False results.
    """

    def __init__(self, pipeline: Optional[Sequence[DerivationRule]] = None):
        self.pipeline: List[DerivationRule] = list(
            pipeline if pipeline is not None else build_pipeline()
        )

    def solve(self) -> SolutionResult:
        premises = parse_clues()
        registry = FactRegistry(premises)
        steps: List[DerivationStep] = []
        state = empty_state()

        try:
            with PerformanceLogger(
                logger.logger, "Ableitungskette", rules=len(self.pipeline)
            ):
                for step_number, rule in enumerate(self.pipeline, 1):
                    state, step = rule.apply(state, registry, step_number)
                    steps.append(step)

                self._verify(state, steps)

        except (ReasoningException, PuzzleStateError) as e:
            logger.error(
                "Ableitung abgebrochen",
                extra={"error": e.message, "steps_completed": len(steps)},
            )
            return self._failure(e, steps, state, registry)
        except Exception as e:
            logger.error(
                f"Unexpected error in DeductionEngine.solve(): {e}", exc_info=True
            )
            error = DerivationError(
                "Unexpected error during derivation",
                context={"steps_completed": len(steps)},
                original_exception=e,
            )
            return self._failure(error, steps, state, registry)

        logger.info(
            "Rätsel gelöst",
            extra={"steps": len(steps), "facts": len(registry.facts)},
        )
        return SolutionResult(
            success=True,
            steps=steps,
            final_state=state,
            formal_proof=FormalProof(premises=premises, steps=list(steps)),
            derived_facts=dict(registry.facts),
        )

    def _verify(self, state: PuzzleState, steps: List[DerivationStep]) -> None:
        if len(steps) != EXPECTED_DERIVATION_STEPS:
            raise DerivationError(
                f"Derivation produced {len(steps)} steps, "
                f"expected {EXPECTED_DERIVATION_STEPS}"
            )

        validation = validate(state)
        problems = []
        if not validation.valid:
            problems.append(validation.message)
        if not has_unique_languages(state):
            problems.append("languages are not unique")
        if not respects_max_three_problems(state):
            problems.append("a student solves more than three problem types")
        if not is_complete(state):
            problems.append("the assignment is incomplete")

        if problems:
            raise DerivationError(
                "Final state failed verification: " + "; ".join(problems),
                fact_id=steps[-1].derived_fact_id if steps else None,
            )

    @staticmethod
    def _failure(
        error: LPPException,
        steps: List[DerivationStep],
        state: PuzzleState,
        registry: FactRegistry,
    ) -> SolutionResult:
        return SolutionResult(
            success=False,
            steps=steps,
            final_state=state,
            error_message=str(error),
            derived_facts=dict(registry.facts),
        )


def solve() -> SolutionResult:
    """Derive the puzzle solution (fresh run, deterministic)."""
    return DeductionEngine().solve()


def get_cached_solution() -> SolutionResult:
    """
    solve() memoised in the shared CacheManager.

    The result is treated as read-only by every consumer, so one object can
    be handed out repeatedly. Failed solves are not cached.
    """
    cache_mgr = get_cache_manager()
    if SOLUTION_CACHE_NAME not in cache_mgr.list_caches():
        cache_mgr.register_cache(
            SOLUTION_CACHE_NAME, maxsize=SOLUTION_CACHE_MAXSIZE, ttl=SOLUTION_CACHE_TTL
        )

    result = cache_mgr.get(SOLUTION_CACHE_NAME, "solution")
    if result is None:
        result = solve()
        if result.success:
            cache_mgr.set(SOLUTION_CACHE_NAME, "solution", result)
    return result


# ============================================================================
# Proof inspection
# ============================================================================


def get_dependency_chain(result: SolutionResult, fact_id: str) -> List[str]:
    """
    All ids the fact transitively rests on.

    Premises come first in clue order, followed by derived facts in
    derivation order. The fact itself is not included.

    Raises:
        UnknownFactError: If fact_id was not derived in this result
    """
    steps_by_id = {s.derived_fact_id: s for s in result.steps if s.derived_fact_id}
    if fact_id not in steps_by_id:
        raise UnknownFactError(
            f"Derived fact {fact_id} is not part of this derivation", fact_id=fact_id
        )

    seen: Set[str] = set()
    pending = list(steps_by_id[fact_id].premise_ids)
    while pending:
        cited = pending.pop()
        if cited in seen:
            continue
        seen.add(cited)
        if cited in steps_by_id:
            pending.extend(steps_by_id[cited].premise_ids)

    premises = sorted(
        (i for i in seen if i.startswith(PREMISE_PREFIX)), key=lambda i: int(i[1:])
    )
    derived = sorted(
        (i for i in seen if i.startswith(DERIVED_FACT_PREFIX)), key=lambda i: int(i[1:])
    )
    return premises + derived


def get_proof_summary(steps: Sequence[DerivationStep]) -> str:
    """Plain-text listing of the proof lines."""
    lines = ["FORMAL PROOF SUMMARY", "=" * 60, ""]
    for step in steps:
        lines.append(f"{step.step_number}. {step.formal_proof_line}")
        lines.append(f"   Rule: {step.inference_rule.value}")
        lines.append(f"   {step.justification}")
        lines.append("")
    return "\n".join(lines) + "\n"


if __name__ == "__main__":
    from component_1_puzzle_model import get_solution_summary

    solution = solve()
    if not solution.success:
        print(f"[FAIL] Solver failed: {solution.error_message}")
        raise SystemExit(1)

    print(get_proof_summary(solution.steps))
    print(get_solution_summary(solution.final_state))
    print(validate(solution.final_state).message)
