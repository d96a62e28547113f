"""
component_6_proof_explanation.py

Beweiserklärung für LPP

Converts a SolutionResult into a ProofTree for display and export:
- Premises P1..P10 become PREMISE steps
- Derived facts D1..Dn become RULE_APPLICATION steps
- The closing verification step becomes a CONCLUSION step

Every step lists the ids it cites in parent_steps, so the tree is the
derivation DAG: get_ancestors() walks it back to the premises.

Functions:
- ProofStep / ProofTree: display structure with JSON-compatible dicts
- create_proof_tree_from_solution: conversion, optionally restricted to a subset of ids
- format_proof_step / format_proof_tree / format_proof_chain: text rendering
- export_proof_to_json / import_proof_from_json: explicit export
"""

import json
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Set

from common.constants import FINAL_CONCLUSION
from component_4_formal_logic import InferenceRule, parse_clues
from component_5_deduction_engine import SolutionResult


class StepType(Enum):
    """Types of proof steps"""

    PREMISE = "premise"  # Given clue P<n>
    RULE_APPLICATION = "rule_application"  # Derived fact D<n>
    CONCLUSION = "conclusion"  # Closing verification


@dataclass
class ProofStep:
    """
    One node of the proof.

    Attributes:
        step_id: "P<n>" or "D<n>"
        step_type: StepType
        inputs: Cited ids (same as parent_steps for derived facts)
        rule_name: Rule of inference (None for premises)
        output: Formal statement established by this step
        confidence: Always 1.0 for deductive steps
        explanation_text: Natural language explanation
        parent_steps: Step ids this step depends on
        metadata: proof_line, step_number, clue text
        timestamp: Creation time
        source_component: Module that produced the step
    """

    step_id: str
    step_type: StepType
    inputs: List[str] = field(default_factory=list)
    rule_name: Optional[str] = None
    output: str = ""
    confidence: float = 1.0
    explanation_text: str = ""
    parent_steps: List[str] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=datetime.now)
    source_component: str = "unknown"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization"""
        return {
            "step_id": self.step_id,
            "step_type": self.step_type.value,
            "inputs": list(self.inputs),
            "rule_name": self.rule_name,
            "output": self.output,
            "confidence": self.confidence,
            "explanation_text": self.explanation_text,
            "parent_steps": list(self.parent_steps),
            "metadata": dict(self.metadata),
            "timestamp": self.timestamp.isoformat(),
            "source_component": self.source_component,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ProofStep":
        """Create ProofStep from dictionary"""
        data_copy = data.copy()
        data_copy["step_type"] = StepType(data_copy["step_type"])
        data_copy["timestamp"] = datetime.fromisoformat(data_copy["timestamp"])
        return cls(**data_copy)


@dataclass
class ProofTree:
    """
    Complete proof for a query: steps in derivation order, linked by
    parent_steps.
    """

    query: str
    root_steps: List[ProofStep] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)
    created_at: datetime = field(default_factory=datetime.now)

    def add_root_step(self, step: ProofStep) -> None:
        self.root_steps.append(step)

    def get_all_steps(self) -> List[ProofStep]:
        return list(self.root_steps)

    def get_step_by_id(self, step_id: str) -> Optional[ProofStep]:
        for step in self.root_steps:
            if step.step_id == step_id:
                return step
        return None

    def get_ancestors(self, step_id: str) -> Set[str]:
        """All step ids the given step depends on, transitively."""
        ancestors: Set[str] = set()
        pending = [step_id]
        while pending:
            step = self.get_step_by_id(pending.pop())
            if step is None:
                continue
            for parent in step.parent_steps:
                if parent not in ancestors:
                    ancestors.add(parent)
                    pending.append(parent)
        return ancestors

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization"""
        return {
            "query": self.query,
            "root_steps": [step.to_dict() for step in self.root_steps],
            "metadata": dict(self.metadata),
            "created_at": self.created_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ProofTree":
        tree = cls(
            query=data["query"],
            metadata=data.get("metadata", {}),
            created_at=datetime.fromisoformat(data["created_at"]),
        )
        for step_data in data["root_steps"]:
            tree.add_root_step(ProofStep.from_dict(step_data))
        return tree


# ==================== Conversion ====================


def create_proof_tree_from_solution(
    result: SolutionResult,
    query: str = FINAL_CONCLUSION,
    fact_ids: Optional[Iterable[str]] = None,
) -> ProofTree:
    """
    Build a ProofTree from a solver result.

    Args:
        result: Result of solve()
        query: Text recorded as the tree's query
        fact_ids: Restrict the tree to these premise / derived-fact ids
            (order is taken from the derivation, not from this argument)

    Returns:
        ProofTree with premises first, then derived facts in step order
    """
    wanted = set(fact_ids) if fact_ids is not None else None
    tree = ProofTree(
        query=query,
        metadata={"success": result.success, "total_steps": len(result.steps)},
    )

    for premise in parse_clues():
        if wanted is not None and premise.id not in wanted:
            continue
        tree.add_root_step(
            ProofStep(
                step_id=premise.id,
                step_type=StepType.PREMISE,
                output=premise.formal_notation,
                explanation_text=premise.natural_language,
                metadata={"clue_id": premise.clue.id},
                source_component="component_4_formal_logic",
            )
        )

    last_index = len(result.steps) - 1
    for index, step in enumerate(result.steps):
        if wanted is not None and step.derived_fact_id not in wanted:
            continue

        closing = (
            result.success
            and index == last_index
            and step.inference_rule == InferenceRule.CONJUNCTION
        )
        tree.add_root_step(
            ProofStep(
                step_id=step.derived_fact_id or f"step_{step.step_number}",
                step_type=StepType.CONCLUSION if closing else StepType.RULE_APPLICATION,
                inputs=list(step.premise_ids),
                rule_name=step.inference_rule.value,
                output=step.conclusion,
                explanation_text=step.justification,
                parent_steps=list(step.premise_ids),
                metadata={
                    "step_number": step.step_number,
                    "proof_line": step.formal_proof_line,
                },
                source_component="component_5_deduction_engine",
            )
        )

    if result.success and wanted is None:
        tree.metadata["final_conclusion"] = (
            result.formal_proof.final_conclusion
            if result.formal_proof
            else FINAL_CONCLUSION
        )
    elif not result.success:
        tree.metadata["error"] = result.error_message

    return tree


# ==================== Formatting ====================


def format_proof_step(step: ProofStep, indent: int = 0, show_details: bool = True) -> str:
    """
    Format a single proof step as human-readable text.

    Args:
        step: The ProofStep to format
        indent: Indentation level
        show_details: Whether to show cited ids, rule and proof line
    """
    prefix = "  " * indent
    lines = [f"{prefix}[{step.step_id}] {step.step_type.value}"]

    if step.explanation_text:
        lines.append(f"{prefix}   {step.explanation_text}")

    if step.output:
        lines.append(f"{prefix}   -> {step.output}")

    if show_details:
        if step.inputs:
            lines.append(f"{prefix}   Eingaben: {', '.join(step.inputs)}")
        if step.rule_name:
            lines.append(f"{prefix}   Regel: {step.rule_name}")
        proof_line = step.metadata.get("proof_line")
        if proof_line:
            lines.append(f"{prefix}   Beweiszeile: {proof_line}")

    return "\n".join(lines)


def format_proof_tree(tree: ProofTree, show_details: bool = True) -> str:
    """Format an entire proof tree as text."""
    lines = ["=" * 60, f"Beweisbaum für: {tree.query}", "=" * 60, ""]

    if not tree.root_steps:
        lines.append("Keine Beweisschritte vorhanden.")
        return "\n".join(lines)

    premises = [s for s in tree.root_steps if s.step_type == StepType.PREMISE]
    derived = [s for s in tree.root_steps if s.step_type != StepType.PREMISE]

    if premises:
        lines.append("Prämissen:")
        for step in premises:
            lines.append(format_proof_step(step, indent=1, show_details=False))
        lines.append("")

    if derived:
        lines.append("Ableitung:")
        for step in derived:
            lines.append(format_proof_step(step, indent=1, show_details=show_details))
            lines.append("")

    final = tree.metadata.get("final_conclusion")
    if final:
        lines.append(f"∴ {final}")

    lines.append(f"Gesamt: {len(tree.root_steps)} Schritte")
    return "\n".join(lines)


def format_proof_chain(steps: List[ProofStep]) -> str:
    """Linear, compact view of a list of steps."""
    lines = []
    for i, step in enumerate(steps, 1):
        lines.append(f"Schritt {i}: [{step.step_id}] {step.explanation_text}")
        if step.output:
            lines.append(f"   -> {step.output}")
    return "\n".join(lines)


# ==================== Export ====================


def export_proof_to_json(tree: ProofTree, filepath: str) -> None:
    """Export proof tree to JSON file"""
    with open(filepath, "w", encoding="utf-8") as f:
        json.dump(tree.to_dict(), f, indent=2, ensure_ascii=False)


def import_proof_from_json(filepath: str) -> ProofTree:
    """Import proof tree from JSON file"""
    with open(filepath, "r", encoding="utf-8") as f:
        data = json.load(f)
    return ProofTree.from_dict(data)
