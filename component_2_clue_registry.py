"""
component_2_clue_registry.py
============================
The ten clues of the programming-language puzzle.

The clue text and order are part of the external contract: the validator
reports violations by clue, the formal encoder maps each clue id to its
notation, and display code shows the text verbatim. The registry is created
once at import and never modified.

Author: LPP Development Team
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Tuple


class ClueCategory(Enum):
    """Categories of clues"""

    ASSIGNMENT = "assignment"  # Direct facts about a named student
    EXCLUSION = "exclusion"  # Only negative facts about a named student
    IMPLICATION = "implication"  # Conditional on a language or problem type
    COUNTING = "counting"  # Cardinality constraints


@dataclass(frozen=True)
class Clue:
    """
    One given constraint of the puzzle (referenceable as P<id>).

    Attributes:
        id: 1..10, the position in the puzzle statement
        text: Human-readable clue text
        category: ClueCategory
    """

    id: int
    text: str
    category: ClueCategory

    @property
    def premise_id(self) -> str:
        return f"P{self.id}"

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "text": self.text, "category": self.category.value}


CLUES: Tuple[Clue, ...] = (
    Clue(
        id=1,
        text="Bob solves Logic problems but does not use C++.",
        category=ClueCategory.ASSIGNMENT,
    ),
    Clue(
        id=2,
        text="Charlie uses Swift and solves Graph problems.",
        category=ClueCategory.ASSIGNMENT,
    ),
    Clue(
        id=3,
        text="The student using Python solves Math problems but does not solve Sorting problems.",
        category=ClueCategory.IMPLICATION,
    ),
    Clue(
        id=4,
        text="Alice solves Math problems but does not use Ruby or Swift.",
        category=ClueCategory.ASSIGNMENT,
    ),
    Clue(
        id=5,
        text="The student using C++ does not solve Logic or Graph problems.",
        category=ClueCategory.IMPLICATION,
    ),
    Clue(
        id=6,
        text="Eve solves Sorting problems but does not use Java or Python.",
        category=ClueCategory.ASSIGNMENT,
    ),
    Clue(
        id=7,
        text="Dave does not solve Graph problems and does not use Ruby.",
        category=ClueCategory.EXCLUSION,
    ),
    Clue(
        id=8,
        text="The student solving Sorting problems also solves Logic problems.",
        category=ClueCategory.IMPLICATION,
    ),
    Clue(
        id=9,
        text="Only two students solve Graph problems.",
        category=ClueCategory.COUNTING,
    ),
    Clue(
        id=10,
        text="The student using Java solves exactly two types of problems.",
        category=ClueCategory.COUNTING,
    ),
)


def get_clues() -> Tuple[Clue, ...]:
    """Return the fixed, ordered clue sequence (same object on every call)."""
    return CLUES


def get_clue(clue_id: int) -> Clue:
    """
    Look up a clue by id.

    Raises:
        ValueError: If clue_id is not in 1..10
    """
    if not 1 <= clue_id <= len(CLUES):
        raise ValueError(f"Clue id must be in 1..{len(CLUES)}, got {clue_id}")
    return CLUES[clue_id - 1]
