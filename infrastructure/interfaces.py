"""
infrastructure/interfaces.py

Common interface for reasoning front-ends in LPP.

A reasoning engine answers a query string with a ReasoningResult that
carries the answer, a confidence and, where the answer was derived, the
ProofTree that justifies it. Callers (CLI, UI adapters, tests) depend on
this interface only, not on a concrete engine.

Usage:
    from infrastructure.interfaces import BaseReasoningEngine, ReasoningResult

    class PuzzleReasoningEngine(BaseReasoningEngine):
        def reason(self, query, context):
            ...

        def get_capabilities(self):
            return ["deductive", "logic_puzzle_solving"]

        def estimate_cost(self, query):
            return 0.1
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from component_6_proof_explanation import ProofTree


@dataclass
class ReasoningResult:
    """
    Ergebnis einer Anfrage an eine Reasoning-Engine.

    Attributes:
        success: Whether the query was answered
        answer: Answer text (empty if none)
        confidence: Score in [0.0, 1.0]
        proof_tree: Derivation that supports the answer
        metadata: Engine-specific details
        strategy_used: Name of the strategy that produced the answer
        computation_cost: Measured cost (milliseconds)
    """

    success: bool
    answer: str = ""
    confidence: float = 0.0
    proof_tree: Optional[ProofTree] = None
    metadata: Dict[str, Any] = field(default_factory=dict)
    strategy_used: str = ""
    computation_cost: float = 0.0

    def __post_init__(self):
        if not 0.0 <= self.confidence <= 1.0:
            raise ValueError(
                f"Confidence must be in [0.0, 1.0], got {self.confidence}"
            )


class BaseReasoningEngine(ABC):
    """
    Abstract base class for reasoning engines.

    Implementations must be safe to call repeatedly; shared results (such as
    a cached solution) are read, never modified.
    """

    @abstractmethod
    def reason(self, query: str, context: Dict[str, Any]) -> ReasoningResult:
        """
        Answer a query.

        Args:
            query: Query text (e.g. "Eve.uses(Ruby)" or "Bob")
            context: Optional engine parameters

        Returns:
            ReasoningResult; an unanswerable query is success=False, not an error
        """

    @abstractmethod
    def get_capabilities(self) -> List[str]:
        """Capability identifiers (lowercase, underscore separated)."""

    @abstractmethod
    def estimate_cost(self, query: str) -> float:
        """
        Relative cost estimate for the query.

        0.0 - 0.3 cheap (cached), 0.3 - 0.7 medium, above 0.7 expensive.
        """

    def supports_capability(self, capability: str) -> bool:
        return capability in self.get_capabilities()
