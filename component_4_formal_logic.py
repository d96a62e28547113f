"""
component_4_formal_logic.py
===========================
Formal notation for the puzzle clues and proof lines.

Converts each clue into a premise P<n> written in predicate-logic notation
(x.uses(L), x.solves(T), ∧ ¬ → ∀ and a cardinality notation for the
counting clues), with a decomposition into the atomic components that the
Simplification steps extract.

The notation table is fixed per clue id; it is a rendering transform, the
checks themselves live in component_3.

Notation:
    Bob.solves(Logic) ∧ ¬Bob.uses(C++)
    ∀x (x.uses(Python) → x.solves(Math) ∧ ¬x.solves(Sorting))
    |{x : x.solves(Graph)}| = 2

Proof line:
    D4, P8 ⊢ Eve.solves(Logic) [MP]

Author: LPP Development Team
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Tuple

from component_1_puzzle_model import (
    LANGUAGES,
    PROBLEM_TYPES,
    STUDENTS,
    AssignLanguage,
    AssignProblem,
    Deduce,
    ExcludeLanguage,
    ExcludeProblem,
    Language,
    ProblemType,
    SolverAction,
    Student,
)
from component_2_clue_registry import Clue, get_clues


class LogicalOperator:
    """Symbols used in formal notation"""

    AND = "∧"
    OR = "∨"
    NOT = "¬"
    IMPLIES = "→"
    TURNSTILE = "⊢"
    FORALL = "∀"


class InferenceRule(Enum):
    """Rules of inference a derivation step can be tagged with."""

    MODUS_PONENS = "Modus Ponens"
    MODUS_TOLLENS = "Modus Tollens"
    SIMPLIFICATION = "Simplification"
    CONJUNCTION = "Conjunction"
    DISJUNCTIVE_SYLLOGISM = "Disjunctive Syllogism"
    UNIVERSAL_INSTANTIATION = "Universal Instantiation"
    ELIMINATION = "Elimination"
    HYPOTHETICAL_SYLLOGISM = "Hypothetical Syllogism"
    RESOLUTION = "Resolution"

    @property
    def abbreviation(self) -> str:
        return get_rule_abbreviation(self.value)


_RULE_ABBREVIATIONS: Dict[str, str] = {
    "Modus Ponens": "MP",
    "Modus Tollens": "MT",
    "Simplification": "Simp",
    "Conjunction": "Conj",
    "Disjunctive Syllogism": "DS",
    "Universal Instantiation": "UI",
    "Elimination": "Elimination",
    "Hypothetical Syllogism": "HS",
    "Resolution": "Res",
}


@dataclass(frozen=True)
class FormalPremise:
    """
    A clue rendered as a formal premise.

    Attributes:
        id: "P<n>"
        clue: The source clue
        formal_notation: Whole clue in symbolic notation
        natural_language: The clue text
        components: Atomic sub-formulas (conjuncts / universal implications)
    """

    id: str
    clue: Clue
    formal_notation: str
    natural_language: str
    components: Tuple[str, ...] = field(default_factory=tuple)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "clue_id": self.clue.id,
            "formal_notation": self.formal_notation,
            "natural_language": self.natural_language,
            "components": list(self.components),
        }


# ============================================================================
# Clue encoding
# ============================================================================

_AND = LogicalOperator.AND
_NOT = LogicalOperator.NOT
_IMPLIES = LogicalOperator.IMPLIES
_FORALL = LogicalOperator.FORALL


def _forall(body: str) -> str:
    return f"{_FORALL}x ({body})"


# clue id -> (formal notation, components)
_NOTATION_TABLE: Dict[int, Tuple[str, Tuple[str, ...]]] = {
    1: (
        f"Bob.solves(Logic) {_AND} {_NOT}Bob.uses(C++)",
        ("Bob.solves(Logic)", f"{_NOT}Bob.uses(C++)"),
    ),
    2: (
        f"Charlie.uses(Swift) {_AND} Charlie.solves(Graph)",
        ("Charlie.uses(Swift)", "Charlie.solves(Graph)"),
    ),
    3: (
        _forall(
            f"x.uses(Python) {_IMPLIES} x.solves(Math) {_AND} {_NOT}x.solves(Sorting)"
        ),
        (
            _forall(f"x.uses(Python) {_IMPLIES} x.solves(Math)"),
            _forall(f"x.uses(Python) {_IMPLIES} {_NOT}x.solves(Sorting)"),
        ),
    ),
    4: (
        f"Alice.solves(Math) {_AND} {_NOT}Alice.uses(Ruby) {_AND} {_NOT}Alice.uses(Swift)",
        ("Alice.solves(Math)", f"{_NOT}Alice.uses(Ruby)", f"{_NOT}Alice.uses(Swift)"),
    ),
    5: (
        _forall(
            f"x.uses(C++) {_IMPLIES} {_NOT}x.solves(Logic) {_AND} {_NOT}x.solves(Graph)"
        ),
        (
            _forall(f"x.uses(C++) {_IMPLIES} {_NOT}x.solves(Logic)"),
            _forall(f"x.uses(C++) {_IMPLIES} {_NOT}x.solves(Graph)"),
        ),
    ),
    6: (
        f"Eve.solves(Sorting) {_AND} {_NOT}Eve.uses(Java) {_AND} {_NOT}Eve.uses(Python)",
        ("Eve.solves(Sorting)", f"{_NOT}Eve.uses(Java)", f"{_NOT}Eve.uses(Python)"),
    ),
    7: (
        f"{_NOT}Dave.solves(Graph) {_AND} {_NOT}Dave.uses(Ruby)",
        (f"{_NOT}Dave.solves(Graph)", f"{_NOT}Dave.uses(Ruby)"),
    ),
    8: (
        _forall(f"x.solves(Sorting) {_IMPLIES} x.solves(Logic)"),
        (_forall(f"x.solves(Sorting) {_IMPLIES} x.solves(Logic)"),),
    ),
    9: (
        "|{x : x.solves(Graph)}| = 2",
        ("|{x : x.solves(Graph)}| = 2",),
    ),
    10: (
        _forall(f"x.uses(Java) {_IMPLIES} |x.problems| = 2"),
        (_forall(f"x.uses(Java) {_IMPLIES} |x.problems| = 2"),),
    ),
}


def encode_clue(clue: Clue, premise_id: Optional[str] = None) -> FormalPremise:
    """
    Convert a clue into its formal premise.

    Args:
        clue: The clue to encode
        premise_id: Override for the premise id (default "P<clue.id>")

    Returns:
        FormalPremise; unknown clue ids fall back to the clue text
    """
    notation, components = _NOTATION_TABLE.get(clue.id, (clue.text, (clue.text,)))
    return FormalPremise(
        id=premise_id or clue.premise_id,
        clue=clue,
        formal_notation=notation,
        natural_language=clue.text,
        components=tuple(components),
    )


def parse_clues() -> List[FormalPremise]:
    """All ten premises P1..P10 in clue order."""
    return [encode_clue(clue, f"P{index}") for index, clue in enumerate(get_clues(), 1)]


# ============================================================================
# Proof lines
# ============================================================================


def get_rule_abbreviation(rule: str) -> str:
    """Abbreviation for a rule name; unknown names are returned unchanged."""
    return _RULE_ABBREVIATIONS.get(rule, rule)


def format_proof_line(
    premise_ids: Sequence[str], conclusion: str, rule_abbreviation: str
) -> str:
    """Render "<premises> ⊢ <conclusion> [<rule>]"."""
    return (
        f"{', '.join(premise_ids)} {LogicalOperator.TURNSTILE} "
        f"{conclusion} [{rule_abbreviation}]"
    )


def format_action_as_conclusion(action: SolverAction) -> str:
    """Render a solver action as the formal conclusion it establishes."""
    if isinstance(action, AssignLanguage):
        return f"{action.student.value}.uses({action.language.value})"
    if isinstance(action, AssignProblem):
        return f"{action.student.value}.solves({action.problem.value})"
    if isinstance(action, ExcludeLanguage):
        return f"{_NOT}{action.student.value}.uses({action.language.value})"
    if isinstance(action, ExcludeProblem):
        return f"{_NOT}{action.student.value}.solves({action.problem.value})"
    if isinstance(action, Deduce):
        return action.description
    return ""


# ============================================================================
# Statement helpers
# ============================================================================


def create_conjunction(statements: Sequence[str]) -> str:
    return f" {_AND} ".join(statements)


def create_disjunction(statements: Sequence[str]) -> str:
    return f" {LogicalOperator.OR} ".join(statements)


def negate_statement(statement: str) -> str:
    """Negate a statement; a leading negation is removed instead of doubled."""
    if statement.startswith(_NOT):
        return statement[len(_NOT):]
    return f"{_NOT}{statement}"


def is_negation(statement: str) -> bool:
    return statement.startswith(_NOT)


def extract_student(notation: str) -> Optional[Student]:
    """First student (canonical order) named in the notation."""
    for student in STUDENTS:
        if student.value in notation:
            return student
    return None


def extract_language(notation: str) -> Optional[Language]:
    for language in LANGUAGES:
        if language.value in notation:
            return language
    return None


def extract_problem_type(notation: str) -> Optional[ProblemType]:
    for problem in PROBLEM_TYPES:
        if problem.value in notation:
            return problem
    return None
